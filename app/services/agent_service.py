"""
Preview agent: split tasks into batches, pace them out to the Orchestrate agent,
and merge the answers.

Responsibility: Batch i is submitted as soon as it is formed and batch i+1 only
after a fixed pause, so submissions are rate-limited while batches in flight
run concurrently. Results are joined in submission order; the first failing
batch fails the whole preview. Called by the API; no HTTP here.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, TypeVar

from app.agent.client import OrchestrateClient
from app.core.config import (
    ORCH_AGENT_ID,
    ORCH_API_KEY,
    ORCH_BASE_URL,
    ORCH_IAM_TOKEN_URL,
    PREVIEW_BATCH_PACING_SECONDS,
    PREVIEW_BATCH_SIZE,
)
from app.core.errors import ServiceUnavailableError
from app.schemas.tasks import PreviewResponse, RawTask
from app.services.result_merger import merge_batch_results
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BatchSender(Protocol):
    async def send(self, user_id: str, tasks: list[RawTask], history: list[Any] | None = None) -> PreviewResponse: ...


def chunk_tasks(tasks: Sequence[T], size: int) -> list[list[T]]:
    """Split tasks into consecutive batches of at most `size`, preserving order."""
    if size < 1:
        raise ValueError("size must be >= 1")
    return [list(tasks[i : i + size]) for i in range(0, len(tasks), size)]


class BatchScheduler:
    """Dispatch task batches to the agent at a bounded submission rate."""

    def __init__(
        self,
        client: BatchSender,
        batch_size: int = PREVIEW_BATCH_SIZE,
        pacing_seconds: float = PREVIEW_BATCH_PACING_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.client = client
        self.batch_size = batch_size
        self.pacing_seconds = pacing_seconds
        self._sleep = sleep

    async def run(
        self,
        user_id: str,
        tasks: Sequence[RawTask],
        history: list[Any] | None = None,
    ) -> PreviewResponse:
        history = history if history is not None else []
        batches = chunk_tasks(tasks, self.batch_size)
        logger.debug(
            "[preview_agent] Splitting %d tasks into %d batches of up to %d",
            len(tasks),
            len(batches),
            self.batch_size,
        )

        pending: list[asyncio.Task[PreviewResponse]] = []
        try:
            for i, batch in enumerate(batches):
                logger.debug("[preview_agent] submitting batch %d/%d user_id=%s tasks=%d", i + 1, len(batches), user_id, len(batch))
                pending.append(asyncio.create_task(self.client.send(user_id, batch, history)))
                if i < len(batches) - 1:
                    await self._sleep(self.pacing_seconds)

            results = await asyncio.gather(*pending)
        except BaseException as e:
            for task in pending:
                if not task.done():
                    task.cancel()
            if isinstance(e, Exception):
                logger.error("[preview_agent] Error in batch processing: %s", e)
            raise

        merged = merge_batch_results(results)
        logger.debug(
            "[preview_agent] Merged results: %d tasks, totalTasks: %d",
            len(merged.tasks),
            merged.summary.total_tasks,
        )
        return merged


_default_scheduler: BatchScheduler | None = None


def get_default_scheduler() -> BatchScheduler:
    """Scheduler wired from .env; token cache shared across requests. Built on first use."""
    global _default_scheduler
    if _default_scheduler is None:
        if not ORCH_API_KEY:
            raise ServiceUnavailableError("ORCH_API_KEY must be set in .env")
        token_service = TokenService(ORCH_API_KEY, token_url=ORCH_IAM_TOKEN_URL)
        client = OrchestrateClient(ORCH_BASE_URL, ORCH_AGENT_ID, token_service)
        _default_scheduler = BatchScheduler(client)
        logger.info("[preview_agent] Orchestrate client configured url=%s", client.url)
    return _default_scheduler


async def preview_agent(
    user_id: str,
    tasks: Sequence[RawTask],
    history: list[Any] | None = None,
    scheduler: BatchScheduler | None = None,
) -> PreviewResponse:
    """
    Enrich tasks through the Orchestrate agent and return one merged preview.

    Raises:
        ServiceUnavailableError: If Orchestrate settings are missing.
        OrchestrateError: If any batch fails; no partial preview is returned.
    """
    scheduler = scheduler or get_default_scheduler()
    return await scheduler.run(user_id, tasks, history)
