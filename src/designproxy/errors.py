"""Error taxonomy surfaced to callers.

Every failure the dispatcher reports maps to one of these classes. Each class
carries the HTTP status and a stable ``kind`` string for the response body.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

class DesignProxyError(Exception):
    status = 500
    kind = "ServerError"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body

class ConfigError(DesignProxyError):
    # Raised while loading settings; never reaches a caller as-is.
    kind = "ServerMisconfigured"

class MethodNotAllowed(DesignProxyError):
    status = 405
    kind = "MethodNotAllowed"

class InvalidRequest(DesignProxyError):
    status = 400
    kind = "InvalidRequest"

class Throttled(DesignProxyError):
    status = 429
    kind = "Throttled"

class ServerMisconfigured(DesignProxyError):
    status = 500
    kind = "ServerMisconfigured"

class UpstreamError(DesignProxyError):
    status = 500
    kind = "UpstreamError"

    def __init__(self, message: str, details: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, details)
        self.upstream_status = upstream_status

class UpstreamEmptyResponse(DesignProxyError):
    status = 502
    kind = "UpstreamEmptyResponse"

class ImageUnavailable(UpstreamEmptyResponse):
    """The provider answered but produced no image (regional or feature gating)."""
    status = 400

class ResponseDecodeError(DesignProxyError):
    status = 502
    kind = "ResponseDecodeError"
