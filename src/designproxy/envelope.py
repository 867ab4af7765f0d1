"""Typed decoding of provider envelopes.

Every accessor either returns the expected value or raises one of:
- UpstreamError: the envelope carries an `error` object or is not an object.
- UpstreamEmptyResponse / ImageUnavailable: success envelope without usable content.
- ResponseDecodeError: JSON-typed text that does not parse into the declared shape.

JSON text coercion keeps the lenient order used for model output:
1) json.loads as-is
2) strip a ```json ... ``` code fence and retry
3) slice from the first '{' to the last '}' and retry
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import ImageUnavailable, ResponseDecodeError, UpstreamEmptyResponse, UpstreamError

def check_envelope(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise UpstreamError("Upstream returned an unexpected response.", details=f"envelope type {type(data).__name__}")
    err = data.get("error")
    if err:
        status = err.get("code") if isinstance(err, dict) else None
        raise UpstreamError("Upstream provider reported an error.", details=f"provider error {status or 'unknown'}")
    return data

def _candidate_parts(data: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    candidates = data.get("candidates")
    if not isinstance(candidates, list):
        return
    for cand in candidates:
        if not isinstance(cand, dict):
            continue
        content = cand.get("content")
        if not isinstance(content, dict):
            continue
        parts = content.get("parts")
        if not isinstance(parts, list):
            continue
        for part in parts:
            if isinstance(part, dict):
                yield part

def _blocked_details(data: Dict[str, Any]) -> Optional[str]:
    feedback = data.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return f"blocked: {feedback['blockReason']}"
    return None

def first_candidate_text(data: Any) -> str:
    data = check_envelope(data)
    for part in _candidate_parts(data):
        text = part.get("text")
        if isinstance(text, str) and text.strip():
            return text
    raise UpstreamEmptyResponse("Upstream returned no text.", details=_blocked_details(data))

def first_inline_image(data: Any) -> str:
    """Return base64 image bytes from any of the tolerated response shapes."""
    data = check_envelope(data)

    # generateContent with responseModalities
    for part in _candidate_parts(data):
        inline = part.get("inlineData") or part.get("inline_data")
        if isinstance(inline, dict) and inline.get("data"):
            return str(inline["data"])

    # :predict (Imagen)
    for pred in data.get("predictions") or []:
        if isinstance(pred, dict) and pred.get("bytesBase64Encoded"):
            return str(pred["bytesBase64Encoded"])

    # images:generate
    for img in data.get("images") or []:
        if not isinstance(img, dict):
            continue
        inner = img.get("image")
        if isinstance(inner, dict) and inner.get("base64Data"):
            return str(inner["base64Data"])

    raise ImageUnavailable("No image data returned", details=_blocked_details(data))

def to_png_data_url(b64: str) -> str:
    return f"data:image/png;base64,{b64}"

def _strip_code_fence(s: str) -> Optional[str]:
    if not s.startswith("```"):
        return None
    lines = s.splitlines()
    if len(lines) < 2:
        return None
    body = "\n".join(lines[1:]).rstrip()
    if body.endswith("```"):
        body = body[:-3]
    return body.strip()

def coerce_json_object_text(text: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    if text is None:
        return None, "empty response"

    s = str(text).strip()
    if not s:
        return None, "empty response"

    candidates: List[str] = [s]
    fenced = _strip_code_fence(s)
    if fenced:
        candidates.append(fenced)
    i, j = s.find("{"), s.rfind("}")
    if 0 <= i < j:
        candidates.append(s[i : j + 1])

    last_err = "no JSON object found in text"
    for c in candidates:
        try:
            obj = json.loads(c)
        except ValueError as e:
            last_err = f"json parse failed: {e}"
            continue
        if isinstance(obj, dict):
            return obj, None
        last_err = f"json is not object: {type(obj).__name__}"
    return None, last_err

def decode_json_fields(text: str, fields: Tuple[str, ...]) -> Dict[str, str]:
    obj, err = coerce_json_object_text(text)
    if obj is None:
        raise ResponseDecodeError("Model response was not valid JSON.", details=err)

    missing = [f for f in fields if not isinstance(obj.get(f), str)]
    if missing:
        raise ResponseDecodeError("Model response is missing required fields.", details=", ".join(missing))

    return {f: obj[f] for f in fields}
