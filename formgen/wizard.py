"""Answer validity and cursor rules the rendering wizard applies to a FormConfig.

Answers are keyed by step title, which is why titles must be globally unique.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

Answer = Any
Step = Dict[str, Any]


def _required(step: Step) -> bool:
    validation = step.get("validation")
    return isinstance(validation, dict) and bool(validation.get("required"))


def _tiles_valid(step: Step, answer: Answer) -> bool:
    return bool(answer)


def _multi_select_valid(step: Step, answer: Answer) -> bool:
    return isinstance(answer, list) and len(answer) > 0


def _slider_valid(step: Step, answer: Answer) -> bool:
    # always has a value (defaultValue)
    return True


def _followup_valid(step: Step, answer: Answer) -> bool:
    return isinstance(answer, dict) and "option" in answer and "value" in answer


def _textbox_valid(step: Step, answer: Answer) -> bool:
    if not _required(step):
        return True
    if not isinstance(answer, str) or not answer:
        return False
    min_length = step["validation"].get("minLength") or 0
    return len(answer) >= min_length


def _location_valid(step: Step, answer: Answer) -> bool:
    if not _required(step):
        return True
    return isinstance(answer, dict) and "postalCode" in answer


def _contact_valid(step: Step, answer: Answer) -> bool:
    if not isinstance(answer, dict):
        return False
    first_name = answer.get("firstName")
    email = answer.get("email")
    return bool(first_name) and isinstance(email, str) and bool(EMAIL_RE.match(email))


STEP_VALIDATORS: Dict[str, Callable[[Step, Answer], bool]] = {
    "tiles": _tiles_valid,
    "multiSelect": _multi_select_valid,
    "slider": _slider_valid,
    "followup": _followup_valid,
    "textbox": _textbox_valid,
    "location": _location_valid,
    "contact": _contact_valid,
}


def is_step_valid(step: Step, answer: Answer) -> bool:
    check = STEP_VALIDATORS.get(step.get("type"))
    return True if check is None else check(step, answer)


def is_form_complete(config: Dict[str, Any], responses: Dict[str, Any]) -> bool:
    """True when every step's answer (looked up by title) is valid."""
    steps = config.get("steps") if isinstance(config, dict) else None
    if not isinstance(steps, list) or not steps:
        return False
    if not isinstance(responses, dict):
        return False
    return all(is_step_valid(s, responses.get(s.get("title"))) for s in steps if isinstance(s, dict))


@dataclass
class WizardState:
    """1-based cursor over a form's steps plus the answers collected so far."""

    config: Dict[str, Any]
    current_step: int = 1
    responses: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_steps(self) -> int:
        return len(self.config.get("steps") or []) or 1

    @property
    def step(self) -> Optional[Step]:
        steps = self.config.get("steps") or []
        idx = self.current_step - 1
        return steps[idx] if 0 <= idx < len(steps) else None

    def answer(self, value: Answer) -> None:
        step = self.step
        if step is not None:
            self.responses[step["title"]] = value

    def current_valid(self) -> bool:
        step = self.step
        return step is not None and is_step_valid(step, self.responses.get(step["title"]))

    def next(self) -> bool:
        """Advance if the current step is valid and not last; return whether it moved."""
        if self.current_step >= self.total_steps or not self.current_valid():
            return False
        self.current_step += 1
        return True

    def prev(self) -> bool:
        if self.current_step <= 1:
            return False
        self.current_step -= 1
        return True

    def reset(self) -> None:
        self.current_step = 1
        self.responses = {}

    @property
    def complete(self) -> bool:
        return is_form_complete(self.config, self.responses)


def response_key(title: str) -> str:
    key = re.sub(r"[^\w\s]", "", (title or "").lower(), flags=re.ASCII)
    return re.sub(r"\s+", "_", key)


def format_responses(responses: Dict[str, Any]) -> Dict[str, Any]:
    """Machine-friendly copy of `responses` keyed by slugged step titles."""
    return {response_key(k): v for k, v in responses.items()}
