"""
Application errors for clean API error handling.

Use ServiceUnavailableError when a dependency (Orchestrate agent, IAM) is
misconfigured so the API can return 503 with a user-facing message.
OrchestrateError and its subclasses cover failures of a preview run; any one
of them aborts the whole run.
"""


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. the Orchestrate agent) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class OrchestrateError(Exception):
    """Base class for failures while running a preview through the remote agent."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CredentialFetchError(OrchestrateError):
    """IAM token endpoint unreachable, rejected the API key, or returned a malformed body."""


class RemoteAuthError(OrchestrateError):
    """Agent endpoint still answered 401 after a forced token refresh."""


class RemoteHttpError(OrchestrateError):
    """Agent endpoint answered a non-2xx status (or the request never completed: status is None)."""

    def __init__(self, status: int | None, body_prefix: str) -> None:
        self.status = status
        self.body_prefix = body_prefix
        label = status if status is not None else "TRANSPORT"
        super().__init__(f"ORCH_HTTP_{label}: {body_prefix}")


class EmptyChoicesError(OrchestrateError):
    """Success response carried no choices."""

    def __init__(self, message: str = "ORCH_NO_CHOICES: Orchestrate returned no choices") -> None:
        super().__init__(message)


class EmptyContentError(OrchestrateError):
    """First choice carried an empty assistant message."""

    def __init__(
        self,
        message: str = "ORCH_NO_CONTENT: Orchestrate returned an assistant message with empty content",
    ) -> None:
        super().__init__(message)


class NonJsonResponseError(OrchestrateError):
    """Assistant content could not be decoded as JSON, directly or from its outer braces."""

    def __init__(self, raw_excerpt: str, cause: Exception | None = None) -> None:
        self.raw_excerpt = raw_excerpt
        self.cause = cause
        super().__init__("ORCH_NON_JSON_RESPONSE")


class BatchSchemaError(OrchestrateError):
    """Assistant content decoded as JSON but is not a batch preview."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"ORCH_BAD_PREVIEW_SHAPE: {detail}")
