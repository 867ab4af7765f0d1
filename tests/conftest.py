import json
from pathlib import Path

import pytest

from src.designproxy.adapters import GeminiAdapter, GeminiImageAdapter, ImagenAdapter
from src.designproxy.dispatcher import Dispatcher
from src.designproxy.ratelimit import NullRateLimiter
from src.designproxy.types import ProxyRequest, RateLimitSettings, Settings

ROOT = Path(__file__).resolve().parents[1]
API_KEY = "test-key-123"

class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload

class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def post(self, url, **kwargs):
        self.calls.append(dict(kwargs, url=url))
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r

def text_envelope(text):
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}

def post(body, client_id="1.2.3.4"):
    if not isinstance(body, (str, bytes)):
        body = json.dumps(body)
    return ProxyRequest(method="POST", body=body, client_id=client_id, request_id="test")

def make_settings(**overrides):
    overrides.setdefault("rate_limit", RateLimitSettings(enabled=False))
    return Settings(**overrides)

@pytest.fixture
def session():
    return FakeSession()

@pytest.fixture
def make_dispatcher(session):
    def _make(settings=None, rate_limiter=None, env=None, generator=None):
        settings = settings or make_settings()
        generator = generator or GeminiAdapter(settings.api_base, timeout=settings.timeout_seconds, session=session)
        if settings.image_backend == "gemini":
            image_adapter = GeminiImageAdapter(generator, settings.image_model)
        else:
            image_adapter = ImagenAdapter(settings.api_base, settings.image_model, timeout=settings.timeout_seconds, session=session)
        return Dispatcher(
            project_root=ROOT,
            settings=settings,
            generator=generator,
            image_adapter=image_adapter,
            rate_limiter=rate_limiter or NullRateLimiter(),
            env={"GOOGLE_API_KEY": API_KEY} if env is None else env,
        )
    return _make
