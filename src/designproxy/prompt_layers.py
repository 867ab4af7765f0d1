"""Outbound payload assembly, one builder per operation type.

Rules:
- System instructions are fixed per operation type and read from src/prompts/.
- Callers never supply or override a system instruction.
- design/style ask for schema-constrained JSON (responseMimeType + responseSchema).
- chat history is forwarded as `contents` without modification.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple

from .errors import ConfigError
from .types import ChatRequest, DesignRequest, StyleRequest

DESIGN_FIELDS: Tuple[str, ...] = ("title", "description", "tileSuggestion", "bathwareSuggestion")
STYLE_FIELDS: Tuple[str, ...] = ("primaryStyle", "keyMood", "colorPalette", "materialProfile", "guidance")

CONTACT_MARKER = "[CONTACT INFO HIDDEN]"
CONTACT_REPLY = (
    "Thank you for providing your details. I've passed them to our team securely, "
    "and an expert will contact you shortly."
)

_PROMPT_FILES = {
    "design": "design_system.txt",
    "style": "style_system.txt",
    "chat": "chat_system.txt",
}

def load_system_prompts(project_root: Path) -> Dict[str, str]:
    prompts: Dict[str, str] = {}
    for name, filename in _PROMPT_FILES.items():
        p = project_root / "src" / "prompts" / filename
        try:
            prompts[name] = p.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise ConfigError(f"Failed to read system prompt: {p} ({e})")

    prompts["chat"] = prompts["chat"].format(contact_marker=CONTACT_MARKER, contact_reply=CONTACT_REPLY)
    return prompts

def response_schema(fields: Tuple[str, ...]) -> Dict[str, Any]:
    return {
        "type": "OBJECT",
        "properties": {f: {"type": "STRING"} for f in fields},
        "required": list(fields),
    }

def _system_instruction(text: str) -> Dict[str, Any]:
    return {"parts": [{"text": text}]}

def _json_generation_config(fields: Tuple[str, ...]) -> Dict[str, Any]:
    return {
        "responseMimeType": "application/json",
        "responseSchema": response_schema(fields),
    }

def build_design_payload(prompts: Dict[str, str], req: DesignRequest) -> Dict[str, Any]:
    return {
        "contents": [{"role": "user", "parts": [{"text": f'User prompt: "{req.prompt}"'}]}],
        "systemInstruction": _system_instruction(prompts["design"]),
        "generationConfig": _json_generation_config(DESIGN_FIELDS),
    }

def build_style_payload(prompts: Dict[str, str], req: StyleRequest) -> Dict[str, Any]:
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"text": "Analyze this room's style."},
                    {"inlineData": {"mimeType": "image/jpeg", "data": req.base64_image}},
                ],
            }
        ],
        "systemInstruction": _system_instruction(prompts["style"]),
        "generationConfig": _json_generation_config(STYLE_FIELDS),
    }

def build_chat_payload(prompts: Dict[str, str], req: ChatRequest) -> Dict[str, Any]:
    return {
        "contents": req.history,
        "systemInstruction": _system_instruction(prompts["chat"]),
    }

def build_imagen_payload(prompt: str) -> Dict[str, Any]:
    return {
        "instances": [{"prompt": prompt}],
        "parameters": {"sampleCount": 1},
    }

def build_gemini_image_payload(prompt: str) -> Dict[str, Any]:
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
    }
