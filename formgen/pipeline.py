"""Fail-closed composition: producer text -> JSON -> shape normalizer -> enforcer."""
from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any, Dict, Optional

from formgen.defaults import default_form_config
from formgen.normalize import normalize_shape
from formgen.uniqueness import enforce

log = logging.getLogger(__name__)


def _balanced_json_slice(s: str) -> Optional[str]:
    in_str = False
    esc = False
    depth = 0
    start_idx = -1
    for i, ch in enumerate(s):
        if not in_str and ch == "{":
            if depth == 0:
                start_idx = i
            depth += 1
        elif not in_str and ch == "}":
            if depth > 0:
                depth -= 1
                if depth == 0 and start_idx != -1:
                    return s[start_idx : i + 1]
        elif ch == '"':
            if not esc:
                in_str = not in_str
            esc = False
            continue
        esc = (ch == "\\") and not esc
    return None


def extract_json_object(text: str) -> Any:
    """Extract the first JSON object from model text; raise ValueError on failure.

    Strategy:
    - Try fenced blocks: ```json ...``` first, then any ``` ... ```.
    - Try first balanced {...} object (brace-aware in presence of strings).
    - Sanitize: remove trailing commas, normalize smart quotes.
    """
    t = (text or "").strip()
    candidate = None
    m = re.search(r"```json\s*([\s\S]*?)```", t, re.IGNORECASE)
    if m:
        candidate = m.group(1)
    else:
        m2 = re.search(r"```\s*([\s\S]*?)```", t)
        if m2:
            candidate = m2.group(1)
    if not candidate or "{" not in candidate:
        candidate = _balanced_json_slice(t)
    elif not candidate.strip().startswith("{"):
        candidate = _balanced_json_slice(candidate) or candidate

    if candidate:
        try:
            return json.loads(candidate)
        except RecursionError as exc:
            raise ValueError("JSON object nested too deeply") from exc
        except json.JSONDecodeError:
            s = re.sub(r",\s*([}\]])", r"\1", candidate)
            s = s.replace("“", '"').replace("”", '"').replace("’", "'")
            try:
                return json.loads(s)
            except (ValueError, RecursionError):
                pass
    raise ValueError("No JSON object found")


def normalize_form_config(raw: Any, fallback: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Always return a canonical FormConfig for `raw`.

    When `raw` has no usable steps, a deep copy of `fallback` (the canonical
    default document when not given) is used instead. Either way the result
    has been through reordering and deduplication.
    """
    try:
        doc = normalize_shape(raw)
        if doc is not None:
            return enforce(doc)
        log.warning("pipeline.fallback: no usable steps in input; using default document")
    except (RecursionError, ValueError, TypeError, OverflowError) as exc:
        log.warning("pipeline.fallback: %s while normalizing (%s); using default document", type(exc).__name__, exc)
    doc = copy.deepcopy(fallback) if fallback is not None else default_form_config()
    return enforce(doc)


def form_config_from_text(text: str, fallback: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Canonical FormConfig from raw producer text (e.g. an LLM reply)."""
    try:
        raw = extract_json_object(text)
    except ValueError as exc:
        log.warning("pipeline.parse: %s; using default document", exc)
        raw = None
    return normalize_form_config(raw, fallback=fallback)
