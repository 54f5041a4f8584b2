"""
Merge per-batch previews into one.

Each batch summary averages completeness over its own tasks, so the merged
average is weighted by task count. Batches that report no tasks add nothing to
the average, but their key risks are still carried over.
"""

import logging
from collections.abc import Iterable

from app.schemas.tasks import OrchestratedTask, PreviewResponse, PreviewSummary

logger = logging.getLogger(__name__)


def merge_batch_results(results: Iterable[PreviewResponse]) -> PreviewResponse:
    """Concatenate tasks and risks in batch order; sum counts; weight completeness by task count."""
    all_tasks: list[OrchestratedTask] = []
    all_key_risks: list[str] = []
    total_tasks = 0
    total_ready = 0
    weighted_completeness = 0.0
    total_weight = 0

    for result in results:
        summary = result.summary
        all_tasks.extend(result.tasks)
        total_tasks += summary.total_tasks
        total_ready += summary.ready_to_schedule
        if summary.total_tasks > 0:
            weighted_completeness += summary.avg_completeness * summary.total_tasks
            total_weight += summary.total_tasks
        all_key_risks.extend(summary.key_risks)

    avg_completeness = weighted_completeness / total_weight if total_weight > 0 else 0.0

    logger.debug("[merger] OUT tasks=%d total_tasks=%d", len(all_tasks), total_tasks)
    return PreviewResponse(
        tasks=all_tasks,
        summary=PreviewSummary(
            total_tasks=total_tasks,
            ready_to_schedule=total_ready,
            avg_completeness=avg_completeness,
            key_risks=all_key_risks,
        ),
    )
