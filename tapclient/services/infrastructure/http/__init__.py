"""HTTP request construction for TAP services."""

from .request_builder import (
    HTTPMethod,
    RequestDescriptor,
    SyncMethod,
    TAPParameter,
    make_request,
)

__all__ = ["HTTPMethod", "RequestDescriptor", "SyncMethod", "TAPParameter", "make_request"]
