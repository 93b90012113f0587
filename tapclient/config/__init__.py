"""
Client configuration and settings
"""

import os

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from tapclient.core.runtime import env_float, env_int, parse_bool_env

from .constants import (
    API_TITLE,
    API_DESCRIPTION,
    API_VERSION,
    PHASE_PATH,
    RESULT_PATH,
    RUN_PHASE_BODY,
    FORM_CONTENT_TYPE,
    JOB_ID_OPEN_TAG,
    JOB_ID_CLOSE_TAG,
)

# Remote service
TAP_SERVICE_URL = os.getenv("TAP_SERVICE_URL", "").rstrip("/") or None

# Job lifecycle
DEFAULT_JOB_TIMEOUT = env_float("TAP_DEFAULT_TIMEOUT", 300.0, 0.0)
DEFAULT_MAX_PARALLEL = env_int("TAP_MAX_PARALLEL", 5, 1)
PHASE_POLL_INTERVAL = env_float("TAP_POLL_INTERVAL", 1.0, 0.0)
GATE_POLL_INTERVAL = env_float("TAP_GATE_INTERVAL", 0.1, 0.0)

# Transport timeout applied by httpx to each individual call
HTTP_TIMEOUT = env_float("TAP_HTTP_TIMEOUT", 30.0, 0.1)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")
JSON_LOGS = parse_bool_env(os.getenv("JSON_LOGS"), default=False)

__all__ = [
    "API_TITLE",
    "API_DESCRIPTION",
    "API_VERSION",
    "PHASE_PATH",
    "RESULT_PATH",
    "RUN_PHASE_BODY",
    "FORM_CONTENT_TYPE",
    "JOB_ID_OPEN_TAG",
    "JOB_ID_CLOSE_TAG",
    "TAP_SERVICE_URL",
    "DEFAULT_JOB_TIMEOUT",
    "DEFAULT_MAX_PARALLEL",
    "PHASE_POLL_INTERVAL",
    "GATE_POLL_INTERVAL",
    "HTTP_TIMEOUT",
    "LOG_LEVEL",
    "LOG_FILE",
    "JSON_LOGS",
]
