"""Imagen adapter (dedicated :predict image endpoint)."""
from __future__ import annotations

from typing import Optional

import requests

from ..envelope import first_inline_image
from ..prompt_layers import build_imagen_payload
from ..errors import UpstreamError
from .base import BaseImageAdapter, ProviderHttp, raise_if_gated

class ImagenAdapter(BaseImageAdapter):
    def __init__(self, api_base: str, model: str, timeout: float = 30, session: Optional[requests.Session] = None):
        self.api_base = api_base.rstrip("/")
        self.model = model
        self.http = ProviderHttp(timeout=timeout, session=session)

    def url(self) -> str:
        return f"{self.api_base}/models/{self.model}:predict"

    def generate_image(self, api_key: str, prompt: str) -> str:
        try:
            data = self.http.post(self.url(), api_key, build_imagen_payload(prompt))
        except UpstreamError as e:
            raise_if_gated(e)
            raise
        return first_inline_image(data)
