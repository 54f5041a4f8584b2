"""
API route aggregator: register endpoints and delegate to handlers.

Authentication happens upstream; the verified user id arrives in X-User-Id.
"""

import logging

from fastapi import APIRouter, Header, HTTPException, status

from app.api.handlers import handle_preview
from app.schemas.tasks import ApiResponse, PreviewRequest, PreviewResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def _require_user_id(x_user_id: str | None) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity")
    return user_id


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Post preview backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Tasks ---

@router.post(
    "/tasks/preview",
    response_model=ApiResponse[PreviewResponse],
    tags=["tasks"],
    summary="Preview tasks through the Orchestrate agent",
    description="Validate tasks, optimize captions per platform, and suggest schedule slots. Tasks are sent in batches of 3; any failed batch fails the whole preview (500). 503 if the agent is not configured.",
)
async def post_preview(
    body: PreviewRequest,
    x_user_id: str | None = Header(default=None),
) -> ApiResponse[PreviewResponse]:
    user_id = _require_user_id(x_user_id)
    logger.info("[api:post_preview] IN  user_id=%s tasks=%d", user_id, len(body.tasks))
    result = await handle_preview(user_id, body.tasks)
    logger.info("[api:post_preview] OUT tasks=%d", len(result.data.tasks) if result.data else 0)
    return result
