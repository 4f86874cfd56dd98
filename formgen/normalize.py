"""Rewrite loosely-shaped generated form documents into the canonical step schema.

Every repair here is table-driven: a step type maps to the ordered repairs that
apply to it, and each synonym table maps a canonical key to the legacy keys that
stand in for it. A repaired step is then decoded through the strict per-type
model, which discards anything the canonical schema does not know about.

`normalize_shape` returns None when the document cannot be salvaged (no usable
steps); callers substitute a known-good document in that case.
"""
from __future__ import annotations

import copy
import logging
import math
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from formgen.defaults import (
    CONTACT_LABELS,
    CONTACT_PLACEHOLDERS,
    DEFAULT_FOLLOWUP_LABEL,
    DEFAULT_OPTION_ICON,
    DEFAULT_OPTION_TITLE,
    DEFAULT_SEARCH_PLACEHOLDER,
    DEFAULT_STEP_SUBTITLE,
    DEFAULT_STEP_TITLE,
    DEFAULT_TEXTBOX_ROWS,
    SLIDER_DEFAULTS,
    default_submission,
    default_theme,
    default_ui,
)
from formgen.models import STEP_ADAPTER, Submission, Theme, UIBundle, dump

log = logging.getLogger(__name__)

Step = Dict[str, Any]

# canonical key -> legacy keys consulted in order when the canonical one is blank
TITLE_SYNONYMS: Tuple[str, ...] = ("label", "question")
OPTION_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "id": ("value", "id"),
    "title": ("label", "title"),
}

# Model output occasionally drifts from the exact type tags
STEP_TYPE_SYNONYMS: Dict[str, str] = {
    "tile": "tiles",
    "multiselect": "multiSelect",
    "multi_select": "multiSelect",
    "multi-select": "multiSelect",
    "textarea": "textbox",
    "text": "textbox",
    "range": "slider",
}

# `fields[].field` (or `.name`) value -> contact sub-field
CONTACT_FIELD_TARGETS: Dict[str, str] = {
    "name": "firstName",
    "firstName": "firstName",
    "first_name": "firstName",
    "lastName": "lastName",
    "last_name": "lastName",
    "email": "email",
    "phone": "phone",
}

# legacy singular objects on a contact step -> contact sub-field
LEGACY_CONTACT_OBJECTS: Dict[str, str] = {
    "name": "firstName",
    "email": "email",
    "phone": "phone",
}

SINGLETON_STEP_TYPES = ("location", "contact")


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _first_text(obj: Dict[str, Any], keys: Tuple[str, ...]) -> str:
    for key in keys:
        val = _text(obj.get(key))
        if val:
            return val
    return ""


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip().replace(",", ""))
        except ValueError:
            return None
        if math.isfinite(value) and value.is_integer():
            return int(value)
    if isinstance(value, int):
        try:
            float(value)
        except OverflowError:
            return None
        return value
    if isinstance(value, float) and math.isfinite(value):
        return value
    return None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on", "required"}
    return bool(value) if isinstance(value, (bool, int, float)) else False


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _random_option_id() -> str:
    return f"option-{uuid.uuid4().hex[:7]}"


def _repair_heading(step: Step) -> None:
    if not _text(step.get("title")):
        for key in TITLE_SYNONYMS:
            if _text(step.get(key)):
                step["title"] = step.pop(key)
                break
    if not _text(step.get("subtitle")):
        if _text(step.get("field")):
            step["subtitle"] = f"Please select your {_text(step.pop('field'))}"
        elif _text(step.get("description")):
            step["subtitle"] = step.pop("description")
    step["title"] = _text(step.get("title")) or DEFAULT_STEP_TITLE
    step["subtitle"] = _text(step.get("subtitle")) or DEFAULT_STEP_SUBTITLE


def normalize_option(raw: Any) -> Optional[Dict[str, str]]:
    """Coerce one option entry into `{id, title, description, icon}`."""
    if isinstance(raw, str):
        raw = {"title": raw}
    if not isinstance(raw, dict):
        return None
    return {
        "id": _first_text(raw, OPTION_SYNONYMS["id"]) or _random_option_id(),
        "title": _first_text(raw, OPTION_SYNONYMS["title"]) or DEFAULT_OPTION_TITLE,
        "description": _text(raw.get("description")),
        "icon": _text(raw.get("icon")) or DEFAULT_OPTION_ICON,
    }


def _repair_options(step: Step) -> None:
    raw = step.get("options")
    if not isinstance(raw, list):
        raw = []
    options = [normalize_option(o) for o in raw]
    step["options"] = [o for o in options if o is not None]


def _repair_followup_input(step: Step) -> None:
    raw = _dict(step.get("followupInput"))
    kind = raw.get("type") if raw.get("type") in ("text", "number") else "text"
    out: Dict[str, Any] = {"type": kind, "label": _text(raw.get("label")) or DEFAULT_FOLLOWUP_LABEL}
    for key in ("min", "max"):
        n = _number(raw.get(key))
        if n is not None:
            out[key] = n
    if isinstance(raw.get("placeholder"), str):
        out["placeholder"] = raw["placeholder"]
    step["followupInput"] = out


def _repair_slider(step: Step) -> None:
    step.pop("required", None)
    explicit_max = _number(step.get("max")) is not None
    for key, default in SLIDER_DEFAULTS.items():
        n = _number(step.get(key))
        step[key] = default if n is None else n
    lo, hi = step["min"], step["max"]
    if lo > hi and explicit_max:
        lo, hi = hi, lo
    if hi <= lo:
        hi = lo + SLIDER_DEFAULTS["max"]
    step["min"], step["max"] = lo, hi
    if step["step"] <= 0:
        step["step"] = SLIDER_DEFAULTS["step"]
    step["defaultValue"] = min(max(step["defaultValue"], lo), hi)
    if "prefix" in step and not isinstance(step["prefix"], str):
        prefix = _text(step.pop("prefix"))
        if prefix:
            step["prefix"] = prefix


def _fold_required(step: Step) -> Optional[Dict[str, Any]]:
    """Move a bare step-level `required` into `validation.required`."""
    validation = step.get("validation") if isinstance(step.get("validation"), dict) else None
    if "required" in step:
        flag = _flag(step.pop("required"))
        validation = dict(validation or {})
        validation.setdefault("required", flag)
    if validation is None:
        step.pop("validation", None)
        return None
    return validation


def _repair_textbox(step: Step) -> None:
    step["placeholder"] = step["placeholder"] if isinstance(step.get("placeholder"), str) else ""
    rows = _number(step.get("rows"))
    step["rows"] = int(rows) if rows is not None and rows >= 1 else DEFAULT_TEXTBOX_ROWS
    validation = _fold_required(step)
    if validation is None:
        return
    out: Dict[str, Any] = {"required": _flag(validation.get("required"))}
    min_length = _number(validation.get("minLength"))
    if min_length is not None and min_length >= 0:
        out["minLength"] = int(min_length)
    step["validation"] = out


def _repair_location(step: Step) -> None:
    labels = _dict(_dict(step.get("config")).get("labels"))
    placeholder = _text(labels.get("searchPlaceholder")) or DEFAULT_SEARCH_PLACEHOLDER
    step["config"] = {"labels": {"searchPlaceholder": placeholder}}
    validation = _fold_required(step)
    if validation is not None:
        step["validation"] = {"required": _flag(validation.get("required"))}


def _override_contact_field(
    labels: Dict[str, str], placeholders: Dict[str, str], target: str, source: Dict[str, Any]
) -> None:
    label = _text(source.get("label"))
    if label:
        labels[target] = label
    placeholder = _text(source.get("placeholder"))
    if placeholder:
        placeholders[target] = placeholder


def _repair_contact(step: Step) -> None:
    config = _dict(step.get("config"))
    given_labels = _dict(config.get("labels"))
    given_placeholders = _dict(config.get("placeholders"))
    labels = {k: _text(given_labels.get(k)) or v for k, v in CONTACT_LABELS.items()}
    placeholders = {k: _text(given_placeholders.get(k)) or v for k, v in CONTACT_PLACEHOLDERS.items()}

    fields = step.pop("fields", None)
    if isinstance(fields, list):
        for entry in fields:
            if not isinstance(entry, dict):
                continue
            target = CONTACT_FIELD_TARGETS.get(_first_text(entry, ("field", "name", "id")))
            if target:
                _override_contact_field(labels, placeholders, target, entry)

    for key, target in LEGACY_CONTACT_OBJECTS.items():
        if key not in step:
            continue
        legacy = step.pop(key)
        if isinstance(legacy, dict):
            _override_contact_field(labels, placeholders, target, legacy)

    step["config"] = {"labels": labels, "placeholders": placeholders}


STEP_REPAIRS: Dict[str, Tuple[Callable[[Step], None], ...]] = {
    "tiles": (_repair_options,),
    "multiSelect": (_repair_options,),
    "followup": (_repair_options, _repair_followup_input),
    "slider": (_repair_slider,),
    "textbox": (_repair_textbox,),
    "location": (_repair_location,),
    "contact": (_repair_contact,),
}


def _step_type(raw: Any) -> str:
    t = raw if isinstance(raw, str) else ""
    t = t.strip()
    if t in STEP_REPAIRS:
        return t
    return STEP_TYPE_SYNONYMS.get(t.lower(), t)


def normalize_step(raw: Any, index: int = 0) -> Optional[Step]:
    """Repair and strictly decode a single step; None if it cannot be used."""
    if not isinstance(raw, dict):
        log.warning("normalize.step: dropping non-object step index=%d", index)
        return None
    step = copy.deepcopy(raw)
    step["type"] = _step_type(step.get("type"))
    repairs = STEP_REPAIRS.get(step["type"])
    if repairs is None:
        log.warning("normalize.step: dropping step index=%d unknown type=%r", index, raw.get("type"))
        return None
    _repair_heading(step)
    for repair in repairs:
        repair(step)
    try:
        return dump(STEP_ADAPTER.validate_python(step))
    except ValidationError as exc:
        log.warning("normalize.step: dropping step index=%d type=%s errors=%d", index, step["type"], exc.error_count())
        return None


def _section(raw: Dict[str, Any], key: str, model: type, default: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    value = raw.get(key)
    if not isinstance(value, dict):
        return default()
    try:
        return dump(model.model_validate(value))
    except ValidationError:
        log.info("normalize.section: replacing invalid %s with default", key)
        return default()


def normalize_steps(raw_steps: List[Any]) -> List[Step]:
    steps: List[Step] = []
    seen_singletons = set()
    for idx, raw in enumerate(raw_steps):
        step = normalize_step(raw, idx)
        if step is None:
            continue
        if step["type"] in SINGLETON_STEP_TYPES:
            if step["type"] in seen_singletons:
                log.warning("normalize.steps: dropping extra %s step index=%d", step["type"], idx)
                continue
            seen_singletons.add(step["type"])
        steps.append(step)
    return steps


def normalize_shape(raw: Any) -> Optional[Dict[str, Any]]:
    """Canonical-shape copy of `raw`, or None when a fallback document is needed."""
    if not isinstance(raw, dict):
        return None
    raw_steps = raw.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        return None
    steps = normalize_steps(raw_steps)
    if not steps:
        return None
    sections: Tuple[Tuple[str, type, Callable[[], Dict[str, Any]]], ...] = (
        ("theme", Theme, default_theme),
        ("ui", UIBundle, default_ui),
        ("submission", Submission, default_submission),
    )
    doc: Dict[str, Any] = {"steps": steps}
    for key, model, default in sections:
        doc[key] = _section(raw, key, model, default)
    return doc
