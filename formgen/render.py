from __future__ import annotations
from typing import Any, Dict, List
import json
import os
from jinja2 import Environment, FileSystemLoader, select_autoescape

# Jinja environment that looks in formgen/templates
_env = Environment(
    loader=FileSystemLoader(os.path.join(os.path.dirname(__file__), "templates")),
    autoescape=select_autoescape(["html", "xml"]),
    enable_async=False,
)
_env.filters["pretty_json"] = lambda v: json.dumps(v, ensure_ascii=False, indent=2)


def render_admin_page(
    forms: List[Dict[str, Any]],
    responses: List[Dict[str, Any]],
    source: str = "",
    admin_email: str | None = None,
) -> str:
    """
    Full HTML for the admin console: stored form configs and submitted responses,
    newest first, with the backend that served them.
    """
    base = _env.get_template("admin.html")
    return base.render(
        forms=forms,
        responses=responses,
        source=source,
        admin_email=admin_email,
        step_count=lambda cfg: len((cfg or {}).get("steps") or []) if isinstance(cfg, dict) else 0,
    )
