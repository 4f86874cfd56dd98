"""Known-good form documents used whenever generated output cannot be trusted."""
from __future__ import annotations

import copy
from typing import Any, Dict

DEFAULT_OPTION_TITLE = "Option"
DEFAULT_OPTION_ICON = "CheckCircle"
DEFAULT_SEARCH_PLACEHOLDER = "Enter your postal code"
DEFAULT_STEP_TITLE = "Untitled question"
DEFAULT_STEP_SUBTITLE = "Please answer the question below"
DEFAULT_FOLLOWUP_LABEL = "Please specify"
DEFAULT_TEXTBOX_ROWS = 4

SLIDER_DEFAULTS: Dict[str, int] = {"min": 0, "max": 100, "step": 1, "defaultValue": 50}

CONTACT_LABELS: Dict[str, str] = {
    "firstName": "First Name",
    "lastName": "Last Name",
    "email": "Email Address",
    "phone": "Phone Number",
}

CONTACT_PLACEHOLDERS: Dict[str, str] = {
    "firstName": "John",
    "lastName": "Doe",
    "email": "john.doe@example.com",
    "phone": "+1 (555) 123-4567",
}

DEFAULT_THEME: Dict[str, Any] = {
    "colors": {
        "text": {"dark": "#333333", "light": "#ecebe4", "muted": "#6a6a6a"},
        "primary": "#0E565B",
        "background": {"light": "#ffffff", "white": "#ffffff"},
    }
}

DEFAULT_UI: Dict[str, Any] = {
    "buttons": {
        "next": "Continue",
        "skip": "Skip",
        "submit": "Submit",
        "startOver": "Start Over",
        "submitting": "Submitting...",
        "check": "Check Availability",
        "checking": "Checking...",
    },
    "messages": {
        "optional": "Optional",
        "required": "Required",
        "invalidEmail": "Please enter a valid email address",
        "submitError": "There was an error submitting your form. Please try again.",
        "thankYou": "Thank You!",
        "submitAnother": "Submit Another Response",
        "multiSelectHint": "Select all that apply",
        "loadError": "Failed to load the form. Please refresh the page.",
        "thisFieldRequired": "This field is required",
        "enterValidEmail": "Please enter a valid email address",
    },
    "contact": {
        "title": "Need help?",
        "description": "Contact our support team",
        "email": "support@example.com",
        "phone": "+1 (555) 987-6543",
    },
}

DEFAULT_SUBMISSION: Dict[str, Any] = {
    "title": "Thank You for Your Submission! 🎉",
    "description": "We've received your information and will be in touch soon.",
    "steps": [
        {"title": "Request Received ✓", "description": "We've successfully received your request."},
        {"title": "Review Process ⏱️", "description": "Our team is reviewing your submission."},
        {"title": "Next Steps 🚀", "description": "We'll contact you within 24 hours with a proposal."},
    ],
}

DEFAULT_STEPS = [
    {
        "type": "tiles",
        "title": "What are you looking for?",
        "subtitle": "Select the option that best describes your needs",
        "options": [
            {"id": "web-design", "title": "Website Design", "description": "Professional, modern sites", "icon": "Laptop"},
            {"id": "mobile-app", "title": "Mobile App", "description": "iOS and Android apps", "icon": "Smartphone"},
            {"id": "branding", "title": "Brand Identity", "description": "Logo and brand assets", "icon": "Palette"},
            {"id": "marketing", "title": "Digital Marketing", "description": "Grow your audience", "icon": "TrendingUp"},
        ],
    },
    {
        "type": "multiSelect",
        "title": "What features do you need?",
        "subtitle": "Select all the features you want to include",
        "options": [
            {"id": "responsive", "title": "Responsive Design", "description": "Works on all devices", "icon": "Smartphone"},
            {"id": "ecommerce", "title": "E-commerce", "description": "Sell products online", "icon": "ShoppingCart"},
            {"id": "blog", "title": "Blog System", "description": "Content management", "icon": "FileText"},
            {"id": "analytics", "title": "Analytics", "description": "Track performance", "icon": "BarChart"},
        ],
    },
    {
        "type": "slider",
        "title": "What's your budget?",
        "subtitle": "Drag the slider to select your budget range",
        "min": 1000,
        "max": 10000,
        "step": 500,
        "defaultValue": 5000,
        "prefix": "$",
    },
    {
        "type": "textbox",
        "title": "Tell us about your project",
        "subtitle": "Provide details about what you're looking to achieve",
        "placeholder": "Enter project details here...",
        "rows": 4,
        "validation": {"required": True, "minLength": 20},
    },
    {
        "type": "location",
        "title": "Where are you located?",
        "subtitle": "Please enter your location to check service availability",
        "config": {"labels": {"searchPlaceholder": DEFAULT_SEARCH_PLACEHOLDER}},
        "validation": {"required": True},
    },
    {
        "type": "contact",
        "title": "Your Contact Information",
        "subtitle": "How can we reach you?",
        "config": {
            "labels": dict(CONTACT_LABELS),
            "placeholders": dict(CONTACT_PLACEHOLDERS),
        },
    },
]

DEFAULT_FORM_CONFIG: Dict[str, Any] = {
    "theme": DEFAULT_THEME,
    "steps": DEFAULT_STEPS,
    "ui": DEFAULT_UI,
    "submission": DEFAULT_SUBMISSION,
}


def default_form_config() -> Dict[str, Any]:
    """Return a private deep copy of the canonical default document."""
    return copy.deepcopy(DEFAULT_FORM_CONFIG)


def default_ui() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_UI)


def default_submission() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_SUBMISSION)


def default_theme() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_THEME)


_OFFERING_WORDS = ("product", "service", "offering", "solution")
_TILE_RETITLES = (
    (0, ("web", "website", "application"), "Website Development", "Globe"),
    (1, ("consult", "advice"), "Consultation", "HelpCircle"),
    (2, ("support", "help"), "Technical Support", "LifeBuoy"),
)


def customized_demo_form(prompt: str) -> Dict[str, Any]:
    """Default document with the first step and closing copy adapted to `prompt`.

    Served when no provider is configured or the provider call fails, so the
    user still sees a form that echoes what they asked for.
    """
    form = default_form_config()
    text = (prompt or "").strip()
    lowered = text.lower()
    first = form["steps"][0]

    words = text.split(" ")
    first["title"] = " ".join(words[:5]) + "..." if len(words) > 5 else text
    if not first["title"]:
        first["title"] = DEFAULT_STEPS[0]["title"]
    first["subtitle"] = "Tell us about your needs"

    form["submission"]["title"] = "Thank You for Your Submission! 🎉"
    form["submission"]["description"] = (
        "We've received your information and will be in touch soon about your request."
    )

    if any(w in lowered for w in _OFFERING_WORDS) and first["type"] == "tiles":
        first["title"] = "What are you interested in?"
        for idx, keywords, title, icon in _TILE_RETITLES:
            if any(k in lowered for k in keywords):
                first["options"][idx]["title"] = title
                first["options"][idx]["icon"] = icon

    for step in form["steps"]:
        if step["type"] == "contact":
            step["title"] = "Your Contact Information"
            step["subtitle"] = "How can we reach you about your request?"
            break
    return form
