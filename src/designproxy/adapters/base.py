"""Adapter interface and shared HTTP plumbing for the generation provider."""
from __future__ import annotations

import hashlib
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..envelope import check_envelope
from ..errors import ImageUnavailable, UpstreamError
from ..logging_util import get_logger

logger = get_logger(__name__)

class BaseGenerateAdapter:
    def generate_content(self, api_key: str, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

class BaseImageAdapter:
    def generate_image(self, api_key: str, prompt: str) -> str:
        """Return base64 image bytes."""
        raise NotImplementedError

# How regional or tier gating of image models usually shows up.
GATED_STATUSES = (403, 404)

def raise_if_gated(e: UpstreamError):
    if e.upstream_status in GATED_STATUSES:
        raise ImageUnavailable("Image generation not available in this project.", details=e.details) from e

def build_session() -> requests.Session:
    # One retry, connection failures only. read=False keeps read timeouts
    # surfacing as requests.Timeout.
    s = requests.Session()
    retry = Retry(total=1, connect=1, read=False, status=0, other=0, allowed_methods=frozenset(["POST"]))
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s

def key_fingerprint(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:8]

class ProviderHttp:
    def __init__(self, timeout: float = 30, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or build_session()

    def post(self, url: str, api_key: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug("[PROVIDER_KEY] len=%d sha8=%s", len(api_key), key_fingerprint(api_key))
        headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}

        try:
            r = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
        except requests.Timeout:
            logger.error("provider call timed out after %ss: %s", self.timeout, url)
            raise UpstreamError("Upstream request timed out.", details="timeout")
        except requests.RequestException as e:
            logger.error("provider call failed: %s (%s)", url, e)
            raise UpstreamError("Upstream request failed.", details="network error")

        if not 200 <= r.status_code < 300:
            logger.error("provider http %d: %s", r.status_code, r.text[:800])
            raise UpstreamError("Upstream provider returned an error.", details=f"http {r.status_code}", upstream_status=r.status_code)

        try:
            data = r.json()
        except ValueError:
            logger.error("provider returned non-JSON body: %s", r.text[:800])
            raise UpstreamError("Upstream returned an unexpected response.", details="non-JSON body")

        if isinstance(data, dict) and data.get("error"):
            logger.error("provider error envelope: %s", str(data.get("error"))[:800])
        return check_envelope(data)
