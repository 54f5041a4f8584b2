"""
Orchestrate agent client: one chat-completions request per task batch.

Sends the batch as a JSON-encoded user message with a bearer token from
TokenService. A 401 drops the token and retries exactly once; everything else
that is not a 2xx is fatal.
"""

import json
import logging
from typing import Any

import httpx

from app.agent.extractor import extract_batch_result
from app.core.config import ERROR_BODY_PREFIX_CHARS, ORCH_API_TIMEOUT
from app.core.errors import (
    EmptyChoicesError,
    EmptyContentError,
    RemoteAuthError,
    RemoteHttpError,
    ServiceUnavailableError,
)
from app.schemas.tasks import PreviewResponse, RawTask
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)


def build_payload(user_id: str, tasks: list[RawTask], history: list[Any]) -> dict[str, Any]:
    """Chat-completions body carrying the batch as a pretty-printed JSON user message."""
    content = json.dumps(
        {
            "user_id": user_id,
            "tasks": [t.model_dump(mode="json", by_alias=True) for t in tasks],
            "history": history,
        },
        indent=2,
    )
    return {
        "messages": [{"role": "user", "content": content}],
        "additional_parameters": {},
        "context": {},
        "stream": False,
    }


class OrchestrateClient:
    """Client for one Orchestrate agent."""

    def __init__(
        self,
        base_url: str,
        agent_id: str,
        token_service: TokenService,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = ORCH_API_TIMEOUT,
    ) -> None:
        if not base_url or not agent_id:
            raise ServiceUnavailableError("ORCH_BASE_URL and ORCH_AGENT_ID must be set in .env")
        self.url = f"{base_url.rstrip('/')}/v1/orchestrate/{agent_id}/chat/completions"
        self.token_service = token_service
        self._http_client = http_client
        self._timeout = timeout

    async def _post(self, payload: dict[str, Any], token: str) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        try:
            if self._http_client is not None:
                return await self._http_client.post(self.url, json=payload, headers=headers)
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                return await client.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("[orchestrate:post] request failed: %s", e)
            raise RemoteHttpError(None, str(e)[:ERROR_BODY_PREFIX_CHARS]) from e

    async def send(
        self,
        user_id: str,
        tasks: list[RawTask],
        history: list[Any] | None = None,
    ) -> PreviewResponse:
        """
        Run one batch through the agent and return its parsed preview.

        Raises:
            CredentialFetchError: If a token cannot be obtained.
            RemoteAuthError: If the agent still answers 401 after one token refresh.
            RemoteHttpError: On any other non-2xx status or a transport failure.
            EmptyChoicesError, EmptyContentError: If the success body has no usable answer.
            NonJsonResponseError, BatchSchemaError: If the answer is not a preview.
        """
        payload = build_payload(user_id, tasks, history or [])
        logger.debug("[orchestrate:send] IN  user_id=%s tasks=%d", user_id, len(tasks))

        token = await self.token_service.get_valid_token()
        response = await self._post(payload, token)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.warning("[orchestrate:send] token unauthorized, refreshing and retrying")
            self.token_service.force_refresh()
            token = await self.token_service.get_valid_token()
            response = await self._post(payload, token)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                logger.error("[orchestrate:send] still unauthorized after token refresh")
                raise RemoteAuthError("ORCH_HTTP_401: unauthorized after token refresh")

        if not response.is_success:
            text = response.text
            logger.error(
                "[orchestrate:send] Orchestrate API error: %s %s %s",
                response.status_code,
                response.reason_phrase,
                text[:ERROR_BODY_PREFIX_CHARS],
            )
            raise RemoteHttpError(response.status_code, text[:ERROR_BODY_PREFIX_CHARS])

        content = self._first_choice_content(response)
        preview = extract_batch_result(content)
        logger.debug("[orchestrate:send] OUT tasks=%d", len(preview.tasks))
        return preview

    @staticmethod
    def _first_choice_content(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            logger.error("[orchestrate:send] success body is not JSON: %r", response.text[:ERROR_BODY_PREFIX_CHARS])
            raise EmptyChoicesError("ORCH_NO_CHOICES: Orchestrate returned a non-JSON body") from e
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("[orchestrate:send] raw response=%s", json.dumps(data, indent=2)[:2000])

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            logger.error("[orchestrate:send] no choices in response")
            raise EmptyChoicesError()

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            logger.error("[orchestrate:send] empty assistant content")
            raise EmptyContentError()
        return content.strip()
