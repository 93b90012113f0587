"""
Core Module - Cross-cutting concerns shared by the client and the gateway

Organization:
    - logging.py: Structured logging configuration and correlation context
    - exceptions.py: Exception hierarchy rooted at TAPError
    - runtime.py: Environment parsing helpers

Usage:
    from tapclient.core import get_logger, ServiceErrorStatus
"""

from .logging import (
    setup_logging,
    get_logger,
    set_request_id,
    set_job_id,
    clear_context,
    LogTimer,
)

from .exceptions import (
    TAPError,
    ServiceError,
    JobFailure,
    SubmissionFailure,
    ServiceErrorStatus,
    ServiceTimedOut,
)

from .runtime import (
    parse_bool_env,
    env_int,
    env_float,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "set_request_id",
    "set_job_id",
    "clear_context",
    "LogTimer",
    # Exceptions
    "TAPError",
    "ServiceError",
    "JobFailure",
    "SubmissionFailure",
    "ServiceErrorStatus",
    "ServiceTimedOut",
    # Runtime
    "parse_bool_env",
    "env_int",
    "env_float",
]
