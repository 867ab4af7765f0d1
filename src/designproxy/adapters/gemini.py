"""Gemini REST adapter (generateContent)."""
from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from ..envelope import first_inline_image
from ..prompt_layers import build_gemini_image_payload
from ..errors import UpstreamError
from .base import BaseGenerateAdapter, BaseImageAdapter, ProviderHttp, raise_if_gated

class GeminiAdapter(BaseGenerateAdapter):
    def __init__(self, api_base: str, timeout: float = 30, session: Optional[requests.Session] = None):
        self.api_base = api_base.rstrip("/")
        self.http = ProviderHttp(timeout=timeout, session=session)

    def url_for(self, model: str) -> str:
        return f"{self.api_base}/models/{model}:generateContent"

    def generate_content(self, api_key: str, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.http.post(self.url_for(model), api_key, payload)

class GeminiImageAdapter(BaseImageAdapter):
    """Image generation through a multimodal model asked for an IMAGE part."""

    def __init__(self, generator: BaseGenerateAdapter, model: str):
        self.generator = generator
        self.model = model

    def generate_image(self, api_key: str, prompt: str) -> str:
        try:
            data = self.generator.generate_content(api_key, self.model, build_gemini_image_payload(prompt))
        except UpstreamError as e:
            raise_if_gated(e)
            raise
        return first_inline_image(data)
