"""Inbound request parsing.

Goals:
- Enforce the body size cap before any parsing happens.
- Accept a JSON object (string, bytes, or an already-decoded dict for direct invokes).
- Map the `type` discriminator onto exactly one request dataclass.

Anything malformed raises InvalidRequest; nothing is defaulted silently.
"""
from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, List

from .errors import InvalidRequest
from .logging_util import get_logger
from .types import (
    OPERATION_TYPES,
    ChatRequest,
    DesignRequest,
    ImageRequest,
    OperationRequest,
    StyleRequest,
)

logger = get_logger(__name__)

CHAT_ROLES = ("user", "model")

def body_size(body: Any) -> int:
    if body is None:
        return 0
    if isinstance(body, bytes):
        return len(body)
    if isinstance(body, str):
        return len(body.encode("utf-8"))
    return len(json.dumps(body, ensure_ascii=False).encode("utf-8"))

def check_body_size(body: Any, max_bytes: int):
    size = body_size(body)
    if size > max_bytes:
        raise InvalidRequest("Request body too large.", details=f"{size} bytes exceeds limit of {max_bytes}")

def parse_body(body: Any) -> Dict[str, Any]:
    if isinstance(body, dict):
        return body
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidRequest("Request body must be UTF-8 JSON.")
    if not isinstance(body, str) or not body.strip():
        raise InvalidRequest("Request body must be a JSON object.")
    try:
        data = json.loads(body)
    except ValueError:
        raise InvalidRequest("Request body is not valid JSON.")
    if not isinstance(data, dict):
        raise InvalidRequest("Request body must be a JSON object.")
    return data

def _required_text(data: Dict[str, Any], field: str) -> str:
    v = data.get(field)
    if not isinstance(v, str) or not v.strip():
        raise InvalidRequest(f"'{field}' is required and must be a non-empty string.")
    return v

def _base64_image(data: Dict[str, Any]) -> str:
    v = _required_text(data, "base64Image").strip()
    if v.startswith("data:"):
        raise InvalidRequest("'base64Image' must be raw base64 without a data URI prefix.")
    try:
        base64.b64decode(v, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidRequest("'base64Image' is not valid base64.")
    return v

def _history(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    history = data.get("history")
    if not isinstance(history, list) or not history:
        raise InvalidRequest("'history' is required and must be a non-empty list.")

    for idx, turn in enumerate(history):
        if not isinstance(turn, dict):
            raise InvalidRequest(f"history[{idx}] must be an object.")
        if turn.get("role") not in CHAT_ROLES:
            raise InvalidRequest(f"history[{idx}].role must be one of {', '.join(CHAT_ROLES)}.")
        parts = turn.get("parts")
        if not isinstance(parts, list) or not parts:
            raise InvalidRequest(f"history[{idx}].parts must be a non-empty list.")
        for p in parts:
            if not isinstance(p, dict) or not isinstance(p.get("text"), str):
                raise InvalidRequest(f"history[{idx}].parts entries must be {{\"text\": string}}.")
    return history

def parse_operation(data: Dict[str, Any]) -> OperationRequest:
    op = data.get("type")
    if op not in OPERATION_TYPES:
        logger.info("rejecting unknown type: %r", op)
        raise InvalidRequest("Unknown type", details=f"expected one of {', '.join(OPERATION_TYPES)}")

    if op == "design":
        return DesignRequest(prompt=_required_text(data, "prompt"))
    if op == "style":
        return StyleRequest(base64_image=_base64_image(data))
    if op == "image":
        return ImageRequest(prompt=_required_text(data, "prompt"))
    return ChatRequest(history=_history(data))
