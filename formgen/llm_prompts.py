from __future__ import annotations

import json
from typing import Any, Dict

from formgen.defaults import DEFAULT_THEME, DEFAULT_UI

REQUEST_SEPARATOR = "\n\nNow create a form for the following request:\n"


def _skeleton() -> Dict[str, Any]:
    ui = {k: v for k, v in DEFAULT_UI.items() if k in ("buttons", "messages")}
    return {
        "theme": DEFAULT_THEME,
        "steps": ["<steps of type tiles, multiSelect, slider, followup, textbox, location, contact>"],
        "ui": ui,
        "submission": {
            "title": "Thank You for Trusting Us! Here's what's Next? 🚀",
            "description": "Thank you for choosing us! Here's our streamlined process:",
            "steps": [
                {"title": "Checking your Inquiry 📧", "description": "We have received your request."},
                {"title": "Instant Processing ⏳", "description": "Our experts will contact you shortly."},
                {"title": "Personalized Offer 🤝", "description": "We'll deliver an offer crafted for your needs."},
            ],
        },
    }


_STEP_SHAPES = """Step shapes (every step has "type", "title", "subtitle"):
- tiles / multiSelect: "options": [{"id", "title", "description", "icon"}]
- slider: "min", "max", "step", "defaultValue", optional "prefix"
- followup: "options" plus "followupInput": {"type": "text"|"number", "label", optional "min", "max", "placeholder"}
- textbox: "placeholder", "rows", optional "validation": {"required", "minLength"}
- location: "config": {"labels": {"searchPlaceholder"}}, optional "validation": {"required"}
- contact: "config": {"labels": {...}, "placeholders": {...}} each with "firstName", "lastName", "email", "phone"
"""


SYSTEM_PROMPT = (
    "You are a form generation engine that turns a natural-language request into a multi-step form.\n"
    "Output ONLY valid JSON. No explanations, no extra text.\n"
    "Emojis are welcome. Extract every keyword from the request and ask questions that address "
    "the user's specific needs.\n\n"
    "Titles and questions:\n"
    "1. Every step title and subtitle must be unique across the whole form\n"
    "2. Never ask the same question twice in different words\n"
    "3. Avoid semantically similar questions (e.g. budget vs. how much can you spend)\n"
    "4. Use a distinct emoji per step\n"
    "5. Option titles within one tiles/multiSelect step must be unique\n"
    "6. Each step gathers a distinct piece of information\n\n"
    "Return a document with this structure:\n"
    f"{json.dumps(_skeleton(), ensure_ascii=False, indent=2)}\n\n"
    f"{_STEP_SHAPES}\n"
    "Rules:\n"
    "1. One or two elements per page (tiles may have up to 6 options)\n"
    "2. Design for a 16:9 layout\n"
    "3. Use at most two brand colors\n"
    "4. Icons are lucide-react names\n"
    "5. Always include a location step asking for postal code and country\n"
    "6. Always include a contact step\n"
    "7. Every tiles or multiSelect step has exactly 4 or 6 options\n"
    "8. Option descriptions stay under 4 words\n"
    "9. Use modern, concise language"
)


def build_form_prompt(prompt: str) -> str:
    """Single user-turn text sent to the provider for `prompt`."""
    return f"{SYSTEM_PROMPT}{REQUEST_SEPARATOR}{(prompt or '').strip()}"
