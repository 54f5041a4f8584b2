#!/usr/bin/env python3
"""
Run a task preview against the configured Orchestrate agent from the command line.

Reads ORCH_* settings from .env, loads tasks from a JSON file (either a list of
tasks or {"tasks": [...]}), and prints the merged preview as JSON.

Run from project root:

    python scripts/preview_tasks.py tasks.json
    python scripts/preview_tasks.py tasks.json --user-id demo --batch-size 2
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from pydantic import TypeAdapter, ValidationError

from app.core.errors import OrchestrateError, ServiceUnavailableError
from app.schemas.tasks import RawTask
from app.services.agent_service import BatchScheduler, get_default_scheduler, preview_agent


def load_tasks(path: Path) -> list[RawTask]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("tasks", [])
    return TypeAdapter(list[RawTask]).validate_python(data)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return number


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Preview tasks through the Orchestrate agent.")
    parser.add_argument("tasks_file", type=Path, help="JSON file with a task list or {\"tasks\": [...]}")
    parser.add_argument("--user-id", default="cli", help="User id sent to the agent")
    parser.add_argument("--batch-size", type=_positive_int, default=None, help="Override the batch size (>= 1)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    try:
        tasks = load_tasks(args.tasks_file)
    except (OSError, ValueError, ValidationError) as e:
        print(f"Could not read tasks from {args.tasks_file}: {e}", file=sys.stderr)
        return 2

    try:
        scheduler = get_default_scheduler()
        if args.batch_size is not None:
            scheduler = BatchScheduler(
                scheduler.client,
                batch_size=args.batch_size,
                pacing_seconds=scheduler.pacing_seconds,
            )
        preview = asyncio.run(preview_agent(args.user_id, tasks, scheduler=scheduler))
    except (ServiceUnavailableError, OrchestrateError) as e:
        print(f"Preview failed: {e.message}", file=sys.stderr)
        return 1

    print(json.dumps(preview.model_dump(mode="json", by_alias=True), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
