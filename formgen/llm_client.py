from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import requests

from formgen.defaults import customized_demo_form
from formgen.llm_prompts import build_form_prompt
from formgen.pipeline import form_config_from_text
from formgen.uniqueness import enforce

log = logging.getLogger(__name__)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "").strip()
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash").strip()
GEMINI_ENDPOINT = f"https://generativelanguage.googleapis.com/v1/models/{GEMINI_MODEL}:generateContent"

try:
    LLM_TIMEOUT_SECS = int(os.getenv("LLM_TIMEOUT_SECS", "60"))
except ValueError:
    LLM_TIMEOUT_SECS = 60
try:
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))
except ValueError:
    LLM_TEMPERATURE = 0.2
try:
    LLM_MAX_OUTPUT_TOKENS = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "8192"))
except ValueError:
    LLM_MAX_OUTPUT_TOKENS = 8192


class LLMError(RuntimeError):
    """The provider call did not yield usable text."""


def status() -> Dict[str, Any]:
    if GEMINI_API_KEY:
        return {"provider": "gemini", "model": GEMINI_MODEL, "has_token": True}
    return {"provider": None, "model": None, "has_token": False, "using": "demo"}


def _extract_gemini_text(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    if isinstance(text, str) and text.strip():
        return text
    return None


def generate_raw_form_json(prompt: str) -> str:
    """Ask Gemini for a form document; return the raw reply text.

    Raises LLMError on a missing key, transport failure, non-200 status or a
    reply without candidate text.
    """
    if not GEMINI_API_KEY:
        raise LLMError("GEMINI_API_KEY is not set")
    body = {
        "contents": [{"role": "user", "parts": [{"text": build_form_prompt(prompt)}]}],
        "generationConfig": {
            "temperature": LLM_TEMPERATURE,
            "topP": 0.8,
            "topK": 40,
            "maxOutputTokens": LLM_MAX_OUTPUT_TOKENS,
        },
    }
    try:
        resp = requests.post(
            GEMINI_ENDPOINT,
            params={"key": GEMINI_API_KEY},
            json=body,
            timeout=LLM_TIMEOUT_SECS,
        )
    except requests.RequestException as e:
        raise LLMError(f"request error: {e!r}") from e

    if resp.status_code != 200:
        raise LLMError(f"HTTP {resp.status_code}: {resp.text[:400]}")

    try:
        data = resp.json()
    except ValueError as e:
        raise LLMError("non-JSON body") from e

    text = _extract_gemini_text(data)
    if not text:
        raise LLMError("empty response text")
    return text


def generate_form(prompt: str) -> Dict[str, Any]:
    """Canonical form document for `prompt`; never raises for provider problems."""
    demo = customized_demo_form(prompt)
    if not GEMINI_API_KEY:
        log.warning("llm.generate: GEMINI_API_KEY not set; serving demo form")
        return enforce(demo)
    try:
        text = generate_raw_form_json(prompt)
    except LLMError as e:
        log.warning("llm.generate: provider failed (%s); serving demo form", e)
        return enforce(demo)
    return form_config_from_text(text, fallback=demo)
