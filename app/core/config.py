"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Orchestrate agent (from env). Missing values fail at first use, not at import.
ORCH_API_KEY: str = os.getenv("ORCH_API_KEY", "").strip()
ORCH_AGENT_ID: str = os.getenv("ORCH_AGENT_ID", "").strip()
ORCH_BASE_URL: str = os.getenv("ORCH_BASE_URL", "").strip()

# IAM endpoint that exchanges the API key for a short-lived bearer token
ORCH_IAM_TOKEN_URL: str = (
    os.getenv(
        "ORCH_IAM_TOKEN_URL",
        "https://iam.platform.saas.ibm.com/siusermgr/api/1.0/apikeys/token",
    ).strip()
    or "https://iam.platform.saas.ibm.com/siusermgr/api/1.0/apikeys/token"
)

# Preview batching (tuning these trades latency against upstream rate limits)
PREVIEW_BATCH_SIZE: int = 3
PREVIEW_BATCH_PACING_SECONDS: float = 1.0

# API timeouts (seconds)
ORCH_API_TIMEOUT: float = 120.0
IAM_TOKEN_TIMEOUT: float = 30.0

# Diagnostics: how much of an upstream body ends up in errors and logs
ERROR_BODY_PREFIX_CHARS: int = 200
RAW_CONTENT_LOG_CHARS: int = 500
