from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Tuple

from jsonschema.validators import Draft202012Validator

from formgen.models import STEP_TYPES

SCHEMA_PATH = Path(__file__).parent / "schemas" / "form_config.schema.json"
FINAL_STEP_ORDER = ("location", "contact")


@lru_cache(maxsize=1)
def _schema_validator() -> Draft202012Validator:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _err(path: str, message: str) -> Dict[str, str]:
    return {"path": path, "message": message}


def _duplicates(values: List[str]) -> List[str]:
    seen = set()
    dups = []
    for v in values:
        if v in seen and v not in dups:
            dups.append(v)
        seen.add(v)
    return dups


def collect_errors(config: Any) -> List[Dict[str, str]]:
    """
    Return a list of {"path": "...", "message": "..."} error dicts covering
    shape, uniqueness and final-step ordering. Messages include the word
    'required' when a required property is missing.
    """
    errors: List[Dict[str, str]] = []
    if not isinstance(config, dict):
        return [_err("", "form config must be an object")]

    theme = config.get("theme")
    if theme is None:
        errors.append(_err("theme", "required property 'theme' is missing"))
    elif not isinstance(theme, dict) or not isinstance(theme.get("colors"), dict):
        errors.append(_err("theme.colors", "required property 'colors' must be an object"))

    steps = config.get("steps")
    if not isinstance(steps, list) or not steps:
        errors.append(_err("steps", "required property 'steps' must be a non-empty array"))
        return errors  # can't go deeper safely

    titles: List[str] = []
    subtitles: List[str] = []
    types: List[str] = []
    for idx, step in enumerate(steps):
        path_prefix = f"steps[{idx}]"
        if not isinstance(step, dict):
            errors.append(_err(path_prefix, "step must be an object"))
            types.append("")
            continue
        stype = step.get("type")
        types.append(stype if isinstance(stype, str) else "")
        if stype not in STEP_TYPES:
            errors.append(_err(f"{path_prefix}.type", f"invalid step type {stype!r}"))
        for key, bucket in (("title", titles), ("subtitle", subtitles)):
            val = step.get(key)
            if not isinstance(val, str) or not val.strip():
                errors.append(_err(f"{path_prefix}.{key}", f"required property '{key}' must be a non-empty string"))
            else:
                bucket.append(val)
        options = step.get("options")
        if isinstance(options, list):
            opt_titles = [o.get("title") for o in options if isinstance(o, dict) and isinstance(o.get("title"), str)]
            for dup in _duplicates(opt_titles):
                errors.append(_err(f"{path_prefix}.options", f"duplicate option title {dup!r}"))

    for dup in _duplicates(titles):
        errors.append(_err("steps", f"duplicate step title {dup!r}"))
    for dup in _duplicates(subtitles):
        errors.append(_err("steps", f"duplicate step subtitle {dup!r}"))

    present = [t for t in FINAL_STEP_ORDER if t in types]
    for stype in present:
        if types.count(stype) > 1:
            errors.append(_err("steps", f"more than one {stype} step"))
    if present and tuple(types[-len(present):]) != tuple(present):
        errors.append(_err("steps", f"{' and '.join(present)} must be the last step(s) in that order"))
    return errors


def schema_errors(config: Any) -> List[Dict[str, str]]:
    out = []
    for e in sorted(_schema_validator().iter_errors(config), key=lambda e: list(e.absolute_path)):
        path = ".".join(str(p) for p in e.absolute_path)
        out.append(_err(path, e.message))
    return out


def validate_config(config: Any) -> Tuple[bool, List[Dict[str, str]]]:
    """Structural (JSON Schema) plus semantic checks; `(valid, errors)`."""
    errors = collect_errors(config)
    if isinstance(config, dict):
        errors.extend(schema_errors(config))
    return not errors, errors
