from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from formgen.defaults import (
    CONTACT_LABELS,
    CONTACT_PLACEHOLDERS,
    DEFAULT_OPTION_ICON,
    DEFAULT_SEARCH_PLACEHOLDER,
    DEFAULT_THEME,
    DEFAULT_UI,
)

Number = Union[int, float]

STEP_TYPES = ("tiles", "multiSelect", "slider", "followup", "textbox", "location", "contact")


class _Canonical(BaseModel):
    # Unrecognized keys are discarded on decode
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Option(_Canonical):
    id: str
    title: str
    description: str = ""
    icon: str = DEFAULT_OPTION_ICON


class _StepBase(_Canonical):
    title: str = Field(min_length=1)
    subtitle: str = Field(min_length=1)


class TilesStep(_StepBase):
    type: Literal["tiles"]
    options: List[Option] = Field(default_factory=list)


class MultiSelectStep(_StepBase):
    type: Literal["multiSelect"]
    options: List[Option] = Field(default_factory=list)


class SliderStep(_StepBase):
    type: Literal["slider"]
    min: Number = 0
    max: Number = 100
    step: Number = 1
    default_value: Number = Field(default=50, alias="defaultValue")
    prefix: Optional[str] = None


class FollowupInput(_Canonical):
    type: Literal["text", "number"] = "text"
    label: str
    min: Optional[Number] = None
    max: Optional[Number] = None
    placeholder: Optional[str] = None


class FollowupStep(_StepBase):
    type: Literal["followup"]
    options: List[Option] = Field(default_factory=list)
    followup_input: FollowupInput = Field(alias="followupInput")


class TextboxValidation(_Canonical):
    required: bool = False
    min_length: Optional[int] = Field(default=None, alias="minLength")


class TextboxStep(_StepBase):
    type: Literal["textbox"]
    placeholder: str = ""
    rows: int = 4
    validation: Optional[TextboxValidation] = None


class LocationLabels(_Canonical):
    search_placeholder: str = Field(default=DEFAULT_SEARCH_PLACEHOLDER, alias="searchPlaceholder")


class LocationConfig(_Canonical):
    labels: LocationLabels = Field(default_factory=LocationLabels)


class RequiredFlag(_Canonical):
    required: bool = False


class LocationStep(_StepBase):
    type: Literal["location"]
    config: LocationConfig = Field(default_factory=LocationConfig)
    validation: Optional[RequiredFlag] = None


class ContactFields(_Canonical):
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    phone: str


class ContactConfig(_Canonical):
    labels: ContactFields = Field(default_factory=lambda: ContactFields(**CONTACT_LABELS))
    placeholders: ContactFields = Field(default_factory=lambda: ContactFields(**CONTACT_PLACEHOLDERS))


class ContactStep(_StepBase):
    type: Literal["contact"]
    config: ContactConfig = Field(default_factory=ContactConfig)


Step = Annotated[
    Union[TilesStep, MultiSelectStep, SliderStep, FollowupStep, TextboxStep, LocationStep, ContactStep],
    Field(discriminator="type"),
]

STEP_ADAPTER: TypeAdapter = TypeAdapter(Step)


_THEME_COLORS = DEFAULT_THEME["colors"]


class TextColors(_Canonical):
    dark: str = _THEME_COLORS["text"]["dark"]
    light: str = _THEME_COLORS["text"]["light"]
    muted: str = _THEME_COLORS["text"]["muted"]


class BackgroundColors(_Canonical):
    light: str = _THEME_COLORS["background"]["light"]
    white: str = _THEME_COLORS["background"]["white"]


class ThemeColors(_Canonical):
    text: TextColors = Field(default_factory=TextColors)
    primary: str = _THEME_COLORS["primary"]
    background: BackgroundColors = Field(default_factory=BackgroundColors)


class Theme(_Canonical):
    colors: ThemeColors = Field(default_factory=ThemeColors)


_BUTTONS = DEFAULT_UI["buttons"]
_MESSAGES = DEFAULT_UI["messages"]


class ButtonLabels(_Canonical):
    next: str = _BUTTONS["next"]
    skip: str = _BUTTONS["skip"]
    submit: str = _BUTTONS["submit"]
    start_over: str = Field(default=_BUTTONS["startOver"], alias="startOver")
    submitting: str = _BUTTONS["submitting"]
    check: str = _BUTTONS["check"]
    checking: str = _BUTTONS["checking"]


class MessageLabels(_Canonical):
    optional: str = _MESSAGES["optional"]
    required: str = _MESSAGES["required"]
    invalid_email: str = Field(default=_MESSAGES["invalidEmail"], alias="invalidEmail")
    submit_error: str = Field(default=_MESSAGES["submitError"], alias="submitError")
    thank_you: str = Field(default=_MESSAGES["thankYou"], alias="thankYou")
    submit_another: str = Field(default=_MESSAGES["submitAnother"], alias="submitAnother")
    multi_select_hint: str = Field(default=_MESSAGES["multiSelectHint"], alias="multiSelectHint")
    load_error: str = Field(default=_MESSAGES["loadError"], alias="loadError")
    this_field_required: str = Field(default=_MESSAGES["thisFieldRequired"], alias="thisFieldRequired")
    enter_valid_email: str = Field(default=_MESSAGES["enterValidEmail"], alias="enterValidEmail")


class LocationMessages(_Canonical):
    available_in: Optional[str] = Field(default=None, alias="availableIn")
    not_available: Optional[str] = Field(default=None, alias="notAvailable")
    address_not_found: Optional[str] = Field(default=None, alias="addressNotFound")
    invalid_city: Optional[str] = Field(default=None, alias="invalidCity")
    search_error: Optional[str] = Field(default=None, alias="searchError")
    search_placeholder: Optional[str] = Field(default=None, alias="searchPlaceholder")


class SupportContact(_Canonical):
    title: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class UIBundle(_Canonical):
    buttons: ButtonLabels = Field(default_factory=ButtonLabels)
    messages: MessageLabels = Field(default_factory=MessageLabels)
    location: Optional[LocationMessages] = None
    contact: Optional[SupportContact] = None


class SubmissionStep(_Canonical):
    title: str
    description: str = ""


class Submission(_Canonical):
    title: str
    description: str = ""
    steps: List[SubmissionStep] = Field(default_factory=list)


class FormConfig(_Canonical):
    theme: Theme = Field(default_factory=Theme)
    steps: List[Step] = Field(min_length=1)
    ui: UIBundle
    submission: Submission


def dump(model: BaseModel) -> Dict[str, Any]:
    """Canonical JSON-ready dict for a decoded model (camelCase keys, no nulls)."""
    return model.model_dump(by_alias=True, exclude_none=True)


# HTTP payloads


class PromptRequest(BaseModel):
    prompt: str = Field("", description="Natural-language description of the form to generate")


class SubmitRequest(BaseModel):
    label: Optional[str] = None
    language: Optional[str] = "en"
    response: Any = None
    portal: Optional[str] = None
    form_config_id: Optional[int] = None


class ConfigRequest(BaseModel):
    config: Any = None


class AdminLoginRequest(BaseModel):
    email: str = ""
    password: Optional[str] = None
