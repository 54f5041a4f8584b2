"""
API handlers: call services, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import logging

from fastapi import HTTPException, status

from app.core.errors import OrchestrateError, ServiceUnavailableError
from app.schemas.tasks import ApiResponse, PreviewResponse, RawTask
from app.services.agent_service import preview_agent

logger = logging.getLogger(__name__)


async def handle_preview(user_id: str, tasks: list[RawTask]) -> ApiResponse[PreviewResponse]:
    """
    Run the preview agent for the user's tasks; map service errors to HTTP 503/500.
    History is always empty for now.
    """
    try:
        preview = await preview_agent(user_id, tasks, history=[])
    except ServiceUnavailableError as e:
        logger.error("[api:preview] service unavailable: %s", e.message)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message) from e
    except OrchestrateError as e:
        logger.error("[api:preview] preview failed for user_id=%s: %s", user_id, e.message)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message) from e

    return ApiResponse[PreviewResponse](
        status=status.HTTP_200_OK,
        data=preview,
        message="Preview generated successfully",
    )
