"""
Recover a batch preview from the agent's free-form answer.

The agent is asked for JSON but sometimes wraps it in prose or a markdown
fence. Decode the whole text first; failing that, decode the span from the
first "{" to the last "}". Anything else fails loudly.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from app.core.config import RAW_CONTENT_LOG_CHARS
from app.core.errors import BatchSchemaError, NonJsonResponseError
from app.schemas.tasks import PreviewResponse

logger = logging.getLogger(__name__)


def _loads_object(text: str) -> dict[str, Any]:
    value = json.loads(text)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


def decode_json_object(raw_text: str) -> dict[str, Any]:
    """
    Decode raw_text as a JSON object: whole text first, then the outermost brace slice.

    Raises:
        NonJsonResponseError: If neither attempt yields a JSON object.
    """
    raw = (raw_text or "").strip()
    last_error: Exception | None = None

    try:
        return _loads_object(raw)
    except (ValueError, RecursionError) as e:
        last_error = e

    first_brace = raw.find("{")
    last_brace = raw.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        try:
            return _loads_object(raw[first_brace : last_brace + 1])
        except (ValueError, RecursionError) as e:
            last_error = e

    excerpt = raw[:RAW_CONTENT_LOG_CHARS]
    logger.error(
        "[extractor] failed to parse assistant content as JSON. raw_excerpt=%r parse_error=%s",
        excerpt,
        last_error,
    )
    raise NonJsonResponseError(excerpt, last_error)


def extract_batch_result(raw_text: str) -> PreviewResponse:
    """Parse the agent's answer for one batch into a PreviewResponse."""
    data = decode_json_object(raw_text)
    try:
        return PreviewResponse.model_validate(data)
    except ValidationError as e:
        logger.error("[extractor] assistant JSON is not a preview: %s", e)
        raise BatchSchemaError(f"{e.error_count()} validation error(s)") from e
