"""
Request construction for TAP endpoints

Turns a query plus TAP parameters into a RequestDescriptor: a frozen,
ready-to-send description of the submission request. Jobs only ever replay a
descriptor, they never build one.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx

from tapclient.config import FORM_CONTENT_TYPE


class SyncMethod(str, Enum):
    """How the remote service runs the query.

    The client always runs locally as an asyncio task; this only selects the
    service endpoint (/sync or /async).
    """
    SYNCHRONOUS = "sync"
    ASYNCHRONOUS = "async"


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class TAPParameter(str, Enum):
    """Request parameters understood by TAP services."""
    LANGUAGE = "LANG"
    QUERY = "QUERY"
    # Deprecated, but some services (Simbad) still require REQUEST=doQuery
    REQUEST = "REQUEST"
    # Deprecated in favour of RESPONSEFORMAT
    FORMAT = "FORMAT"
    RESPONSE_FORMAT = "RESPONSEFORMAT"
    MAX_RECORDS = "MAXREC"
    RUN_ID = "RUNID"
    UPLOAD = "UPLOAD"


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of an outbound HTTP request."""
    method: str
    url: str
    headers: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    body: Optional[bytes] = None

    @property
    def base_url(self) -> str:
        """The request URL without query string or fragment."""
        parts = urlsplit(self.url)
        return urlunsplit((parts.scheme, parts.netloc, parts.path.rstrip("/"), "", ""))

    def build(self, client: httpx.AsyncClient) -> httpx.Request:
        return client.build_request(
            self.method,
            self.url,
            headers=dict(self.headers),
            content=self.body,
        )


def _normalize_parameters(parameters: Mapping) -> Dict[str, str]:
    normalized: Dict[str, str] = {}
    for key, value in parameters.items():
        name = key.value if isinstance(key, TAPParameter) else str(key)
        normalized[name] = str(value)
    return normalized


def make_request(
    base_url: str,
    sync_method: SyncMethod,
    http_method: HTTPMethod = HTTPMethod.POST,
    parameters: Optional[Mapping] = None,
) -> RequestDescriptor:
    """
    Build the submission request for a TAP endpoint.

    Args:
        base_url: Base URL of the TAP service
        sync_method: Selects the /sync or /async endpoint
        http_method: GET sends parameters as query items, POST form-encodes them
        parameters: TAP parameters, keyed by TAPParameter or raw name

    Returns:
        RequestDescriptor ready to be sent
    """
    url = f"{base_url.rstrip('/')}/{SyncMethod(sync_method).value}"
    params = _normalize_parameters(parameters or {})
    method = HTTPMethod(http_method)

    if method == HTTPMethod.GET:
        if params:
            url = f"{url}?{urlencode(params)}"
        return RequestDescriptor(method=method.value, url=url)

    if method == HTTPMethod.POST:
        return RequestDescriptor(
            method=method.value,
            url=url,
            headers=(("Content-Type", FORM_CONTENT_TYPE),),
            body=urlencode(params).encode("utf-8"),
        )

    return RequestDescriptor(method=method.value, url=url)
