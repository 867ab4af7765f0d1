"""Dispatcher: the single request/response translator.

Order of checks (each fails fast, before any provider call):
1. method must be POST
2. provider credential must be configured
3. body must fit the size cap
4. caller must be under the rate limit
5. body must be a JSON object with a known `type` and its fields

Every failure becomes a JSON body `{error, kind, details?}` with the status of
its error class. Nothing escapes `handle` as an exception.
"""
from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from .adapters import BaseGenerateAdapter, BaseImageAdapter, GeminiAdapter, GeminiImageAdapter, ImagenAdapter
from .envelope import decode_json_fields, first_candidate_text, to_png_data_url
from .errors import DesignProxyError, MethodNotAllowed, ServerMisconfigured, Throttled
from .input_spec import check_body_size, parse_body, parse_operation
from .logging_util import get_logger, log_step
from .prompt_layers import (
    DESIGN_FIELDS,
    STYLE_FIELDS,
    build_chat_payload,
    build_design_payload,
    build_style_payload,
    load_system_prompts,
)
from .ratelimit import NullRateLimiter, RateLimiter, SlidingWindowRateLimiter
from .registry import load_settings, read_api_key
from .types import (
    ChatRequest,
    DesignRequest,
    ImageRequest,
    OperationRequest,
    ProxyRequest,
    ProxyResponse,
    Settings,
    StyleRequest,
)

logger = get_logger(__name__)

def build_rate_limiter(settings: Settings) -> RateLimiter:
    rl = settings.rate_limit
    if not rl.enabled:
        return NullRateLimiter()
    return SlidingWindowRateLimiter(rl.max_requests, rl.window_seconds)

def build_image_adapter(settings: Settings, generator: BaseGenerateAdapter) -> BaseImageAdapter:
    if settings.image_backend == "gemini":
        return GeminiImageAdapter(generator, settings.image_model)
    return ImagenAdapter(settings.api_base, settings.image_model, timeout=settings.timeout_seconds)

class Dispatcher:
    def __init__(
        self,
        project_root: Optional[Path] = None,
        settings: Optional[Settings] = None,
        generator: Optional[BaseGenerateAdapter] = None,
        image_adapter: Optional[BaseImageAdapter] = None,
        rate_limiter: Optional[RateLimiter] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        # <root>/src/designproxy/dispatcher.py -> parents[2] == <root>
        self.project_root = project_root or Path(__file__).resolve().parents[2]
        self._env = os.environ if env is None else env
        self.settings = settings or load_settings(self.project_root, self._env)
        self.prompts = load_system_prompts(self.project_root)

        self.generator = generator or GeminiAdapter(self.settings.api_base, timeout=self.settings.timeout_seconds)
        self.image_adapter = image_adapter or build_image_adapter(self.settings, self.generator)
        self.rate_limiter = rate_limiter or build_rate_limiter(self.settings)

        self._handlers: Dict[type, Callable[[Any, str], Dict[str, Any]]] = {
            DesignRequest: self._design,
            StyleRequest: self._style,
            ImageRequest: self._image,
            ChatRequest: self._chat,
        }

    def handle(self, req: ProxyRequest) -> ProxyResponse:
        t0 = time.time()
        try:
            log_step(logger, "1", "check method (%s)", req.method)
            if (req.method or "").upper() != "POST":
                raise MethodNotAllowed("Method not allowed")

            log_step(logger, "2", "check credential")
            api_key = read_api_key(self.settings, self._env)
            if not api_key:
                logger.error("Missing %s environment variable on the server.", self.settings.api_key_env)
                raise ServerMisconfigured("Server configuration error.")

            log_step(logger, "3", "check body size")
            check_body_size(req.body, self.settings.max_body_bytes)

            log_step(logger, "4", "rate limit client=%s", req.client_id)
            if not self.rate_limiter.allow(req.client_id):
                raise Throttled("Too many requests. Please try again later.")

            log_step(logger, "5", "parse input")
            op = parse_operation(parse_body(req.body))

            log_step(logger, "6", "call provider type=%s", op.type)
            body = self._run(op, api_key)

            logger.info("request_id=%s type=%s ok in %dms", req.request_id, op.type, int((time.time() - t0) * 1000))
            return ProxyResponse(200, body)

        except DesignProxyError as e:
            logger.warning(
                "request_id=%s failed kind=%s status=%d: %s (%s)",
                req.request_id, e.kind, e.status, e.message, e.details,
            )
            return ProxyResponse(e.status, e.to_body())

        except Exception as e:
            logger.exception("Dispatcher.handle failed: %s", e)
            return ProxyResponse(500, {"error": "Server error", "kind": "ServerError"})

    def _run(self, op: OperationRequest, api_key: str) -> Dict[str, Any]:
        handler = self._handlers.get(type(op))
        if handler is None:
            raise TypeError(f"no handler for operation {type(op).__name__}")
        return handler(op, api_key)

    def _design(self, op: DesignRequest, api_key: str) -> Dict[str, Any]:
        payload = build_design_payload(self.prompts, op)
        data = self.generator.generate_content(api_key, self.settings.text_model, payload)
        return decode_json_fields(first_candidate_text(data), DESIGN_FIELDS)

    def _style(self, op: StyleRequest, api_key: str) -> Dict[str, Any]:
        payload = build_style_payload(self.prompts, op)
        data = self.generator.generate_content(api_key, self.settings.text_model, payload)
        return decode_json_fields(first_candidate_text(data), STYLE_FIELDS)

    def _image(self, op: ImageRequest, api_key: str) -> Dict[str, Any]:
        b64 = self.image_adapter.generate_image(api_key, op.prompt)
        return {"dataUrl": to_png_data_url(b64)}

    def _chat(self, op: ChatRequest, api_key: str) -> Dict[str, Any]:
        payload = build_chat_payload(self.prompts, op)
        data = self.generator.generate_content(api_key, self.settings.text_model, payload)
        return {"reply": first_candidate_text(data)}
