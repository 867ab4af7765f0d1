"""Deployment settings.

Design:
- src/configs/proxy.yaml holds the defaults for a deployment.
- Environment variables override individual keys (handy on Lambda).
- A missing YAML file is not an error: built-in defaults apply.

proxy.yaml supports:
- api_key_env: GOOGLE_API_KEY
- api_base: https://generativelanguage.googleapis.com/v1beta
- models:
    text: gemini-1.5-flash
    image: imagen-3.0-generate-002
- image_backend: imagen | gemini
- timeout_seconds: 30
- max_body_bytes: 15728640
- rate_limit:
    enabled: true
    max_requests: 30
    window_seconds: 60
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError
from .logging_util import get_logger
from .types import RateLimitSettings, Settings

logger = get_logger(__name__)

IMAGE_BACKENDS = ("imagen", "gemini")

def _load_yaml(path: Path) -> Dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to load YAML: {path} ({e})")
    if not isinstance(data, dict):
        raise ConfigError(f"YAML root must be a mapping: {path}")
    return data

def config_path(project_root: Path) -> Path:
    return project_root / "src" / "configs" / "proxy.yaml"

def _to_bool(v: Any, default: bool) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in ("1", "true", "y", "yes", "on"):
        return True
    if s in ("0", "false", "n", "no", "off"):
        return False
    raise ConfigError(f"not a boolean: {v!r}")

def _to_int(name: str, v: Any, default: int) -> int:
    if v is None or v == "":
        return default
    try:
        n = int(v)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {v!r}")
    if n <= 0:
        raise ConfigError(f"{name} must be positive, got {n}")
    return n

def _to_float(name: str, v: Any, default: float) -> float:
    if v is None or v == "":
        return default
    try:
        n = float(v)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {v!r}")
    if n <= 0:
        raise ConfigError(f"{name} must be positive, got {n}")
    return n

def load_settings(project_root: Path, env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    raw = _load_yaml(config_path(project_root))
    defaults = Settings()

    def pick(env_key: str, value: Any) -> Any:
        v = (env.get(env_key) or "").strip()
        return v if v else value

    models = raw.get("models") or {}
    rl = raw.get("rate_limit") or {}

    image_backend = str(pick("DESIGNPROXY_IMAGE_BACKEND", raw.get("image_backend")) or defaults.image_backend).strip().lower()
    if image_backend not in IMAGE_BACKENDS:
        raise ConfigError(f"unsupported image_backend: {image_backend}")

    settings = Settings(
        api_key_env=str(raw.get("api_key_env") or defaults.api_key_env),
        api_base=str(pick("DESIGNPROXY_API_BASE", raw.get("api_base")) or defaults.api_base).rstrip("/"),
        text_model=str(pick("DESIGNPROXY_TEXT_MODEL", models.get("text")) or defaults.text_model),
        image_model=str(pick("DESIGNPROXY_IMAGE_MODEL", models.get("image")) or defaults.image_model),
        image_backend=image_backend,  # type: ignore
        timeout_seconds=_to_float("timeout_seconds", pick("DESIGNPROXY_TIMEOUT", raw.get("timeout_seconds")), defaults.timeout_seconds),
        max_body_bytes=_to_int("max_body_bytes", pick("DESIGNPROXY_MAX_BODY_BYTES", raw.get("max_body_bytes")), defaults.max_body_bytes),
        rate_limit=RateLimitSettings(
            enabled=_to_bool(pick("DESIGNPROXY_RATE_LIMIT_ENABLED", rl.get("enabled")), True),
            max_requests=_to_int("rate_limit.max_requests", pick("DESIGNPROXY_RATE_LIMIT_MAX", rl.get("max_requests")), 30),
            window_seconds=_to_float("rate_limit.window_seconds", pick("DESIGNPROXY_RATE_LIMIT_WINDOW", rl.get("window_seconds")), 60.0),
        ),
    )

    logger.debug("Loaded settings: %s", settings)
    return settings

def sanitize_api_key(raw: str) -> str:
    # Strips whitespace plus plain and smart quotes left over from copy/paste.
    k = (raw or "").strip()
    k = k.strip(' "\'`')
    k = k.strip("“”‘’")
    return k

def read_api_key(settings: Settings, env: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if env is None else env
    return sanitize_api_key(env.get(settings.api_key_env) or "")
