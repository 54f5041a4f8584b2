"""
Shared fixtures and fakes for preview tests. Nothing here touches the network.
"""

import asyncio
import json
import time
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from app.schemas.tasks import OrchestratedTask, PreviewResponse, PreviewSummary, RawTask

IAM_URL = "https://iam.test/apikeys/token"
ORCH_BASE = "https://orch.test/instances/abc/"
AGENT_ID = "agent-1"
ORCH_URL = "https://orch.test/instances/abc/v1/orchestrate/agent-1/chat/completions"


def make_task(n: int) -> RawTask:
    return RawTask(task_id=f"t{n}", name=f"Post {n}", caption=f"Caption {n}", tags=["launch"])


def preview_for(tasks: list[RawTask], avg: float = 0.5, risks: list[str] | None = None, ready: int | None = None) -> PreviewResponse:
    """Agent-style preview for a batch: one orchestrated entry per task."""
    return PreviewResponse(
        tasks=[OrchestratedTask(task=t, ready=True) for t in tasks],
        summary=PreviewSummary(
            total_tasks=len(tasks),
            ready_to_schedule=len(tasks) if ready is None else ready,
            avg_completeness=avg,
            key_risks=risks or [],
        ),
    )


def completion_body(content: str) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class FakeSender:
    """
    In-memory stand-in for OrchestrateClient.

    Records when each batch was started; optional per-batch delays and failures
    let tests control completion order.
    """

    def __init__(
        self,
        delays: dict[int, float] | None = None,
        fail_on: dict[int, Exception] | None = None,
    ) -> None:
        self.delays = delays or {}
        self.fail_on = fail_on or {}
        self.calls: list[dict[str, Any]] = []
        self.completed: list[int] = []
        self.cancelled: list[int] = []

    async def send(self, user_id: str, tasks: list[RawTask], history: list[Any] | None = None) -> PreviewResponse:
        index = len(self.calls)
        self.calls.append(
            {"user_id": user_id, "tasks": list(tasks), "history": history, "started": time.monotonic()}
        )
        try:
            await asyncio.sleep(self.delays.get(index, 0))
        except asyncio.CancelledError:
            self.cancelled.append(index)
            raise
        if index in self.fail_on:
            raise self.fail_on[index]
        self.completed.append(index)
        return preview_for(list(tasks), avg=0.5, risks=[f"risk-{index}"])


class ScriptedTransport:
    """
    httpx.MockTransport handler that answers IAM and Orchestrate requests from scripts.

    iam_responses / orch_responses are consumed in order; the last entry repeats.
    """

    def __init__(
        self,
        iam_responses: list[httpx.Response] | None = None,
        orch_responses: list[httpx.Response] | None = None,
    ) -> None:
        self.iam_responses = iam_responses or [httpx.Response(200, json={"token": "tok-1", "expires_in": 3600})]
        self.orch_responses = orch_responses or []
        self.iam_requests: list[httpx.Request] = []
        self.orch_requests: list[httpx.Request] = []

    @staticmethod
    def _next(script: list[httpx.Response], count: int) -> httpx.Response:
        return script[min(count, len(script) - 1)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == IAM_URL:
            self.iam_requests.append(request)
            return self._next(self.iam_responses, len(self.iam_requests) - 1)
        if str(request.url) == ORCH_URL:
            self.orch_requests.append(request)
            return self._next(self.orch_responses, len(self.orch_requests) - 1)
        return httpx.Response(404, text=f"unexpected url {request.url}")

    def bearer_tokens(self) -> list[str]:
        return [r.headers["Authorization"] for r in self.orch_requests]

    def sent_contents(self) -> list[dict[str, Any]]:
        return [json.loads(json.loads(r.content)["messages"][0]["content"]) for r in self.orch_requests]


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def tasks7() -> list[RawTask]:
    return [make_task(i) for i in range(1, 8)]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def transport_factory() -> Callable[..., tuple[ScriptedTransport, httpx.AsyncClient]]:
    def _build(**kwargs: Any) -> tuple[ScriptedTransport, httpx.AsyncClient]:
        script = ScriptedTransport(**kwargs)
        return script, httpx.AsyncClient(transport=httpx.MockTransport(script))

    return _build
