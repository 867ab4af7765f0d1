"""Shared types and lightweight data containers.

We avoid heavy frameworks here. The goal is:
- one dataclass per operation type, so the set of variants stays closed
- keep typing clear but not over-abstract
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

OperationType = Literal["design", "style", "image", "chat"]
ImageBackend = Literal["imagen", "gemini"]

OPERATION_TYPES = ("design", "style", "image", "chat")

@dataclass
class DesignRequest:
    prompt: str
    type: OperationType = field(default="design", init=False)

@dataclass
class StyleRequest:
    # Raw base64 (no data-URI prefix), assumed to be JPEG.
    base64_image: str
    type: OperationType = field(default="style", init=False)

@dataclass
class ImageRequest:
    prompt: str
    type: OperationType = field(default="image", init=False)

@dataclass
class ChatRequest:
    # Forwarded verbatim as the provider's `contents`.
    history: List[Dict[str, Any]]
    type: OperationType = field(default="chat", init=False)

OperationRequest = Union[DesignRequest, StyleRequest, ImageRequest, ChatRequest]

@dataclass
class ProxyRequest:
    method: str
    body: Any
    client_id: str = "unknown"
    request_id: Optional[str] = None

@dataclass
class ProxyResponse:
    status: int
    body: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

@dataclass
class RateLimitSettings:
    enabled: bool = True
    max_requests: int = 30
    window_seconds: float = 60.0

@dataclass
class Settings:
    api_key_env: str = "GOOGLE_API_KEY"
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    text_model: str = "gemini-1.5-flash"
    image_model: str = "imagen-3.0-generate-002"
    image_backend: ImageBackend = "imagen"
    timeout_seconds: float = 30.0
    max_body_bytes: int = 15 * 1024 * 1024
    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
