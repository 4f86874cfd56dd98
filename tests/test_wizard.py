import pytest

from formgen.defaults import default_form_config
from formgen.wizard import WizardState, format_responses, is_form_complete, is_step_valid


def _answers(config):
    by_type = {
        "tiles": "web-design",
        "multiSelect": ["responsive", "blog"],
        "slider": 5000,
        "textbox": "A marketing site with a booking flow",
        "location": {"postalCode": "10115", "city": "Berlin"},
        "contact": {"firstName": "Ada", "email": "ada@example.com"},
    }
    return {s["title"]: by_type[s["type"]] for s in config["steps"]}


@pytest.mark.parametrize(
    "step,answer,expected",
    [
        ({"type": "tiles"}, "a", True),
        ({"type": "tiles"}, None, False),
        ({"type": "multiSelect"}, ["a"], True),
        ({"type": "multiSelect"}, [], False),
        ({"type": "multiSelect"}, "a", False),
        ({"type": "slider"}, None, True),
        ({"type": "followup"}, {"option": "a", "value": 3}, True),
        ({"type": "followup"}, {"option": "a"}, False),
        ({"type": "textbox"}, None, True),
        ({"type": "textbox", "validation": {"required": True}}, "", False),
        ({"type": "textbox", "validation": {"required": True, "minLength": 5}}, "abcd", False),
        ({"type": "textbox", "validation": {"required": True, "minLength": 5}}, "abcde", True),
        ({"type": "location"}, None, True),
        ({"type": "location", "validation": {"required": True}}, {"city": "Berlin"}, False),
        ({"type": "location", "validation": {"required": True}}, {"postalCode": "10115"}, True),
        ({"type": "contact"}, {"firstName": "Ada", "email": "ada@example.com"}, True),
        ({"type": "contact"}, {"firstName": "Ada", "email": "not-an-email"}, False),
        ({"type": "contact"}, {"firstName": "", "email": "ada@example.com"}, False),
        ({"type": "contact"}, None, False),
    ],
)
def test_step_answer_rules(step, answer, expected):
    assert is_step_valid(step, answer) is expected


def test_form_complete_with_all_answers():
    config = default_form_config()
    answers = _answers(config)
    assert is_form_complete(config, answers)
    answers.pop(config["steps"][-1]["title"])
    assert not is_form_complete(config, answers)
    assert not is_form_complete({"steps": []}, {})


def test_wizard_cursor_is_bounded_and_gated():
    config = default_form_config()
    wiz = WizardState(config)
    assert wiz.current_step == 1
    assert not wiz.prev()
    assert not wiz.next()  # tiles unanswered

    answers = _answers(config)
    for expected in range(1, len(config["steps"]) + 1):
        assert wiz.current_step == expected
        wiz.answer(answers[wiz.step["title"]])
        moved = wiz.next()
        assert moved is (expected < len(config["steps"]))

    assert wiz.current_step == len(config["steps"])
    assert wiz.complete
    assert wiz.prev() and wiz.current_step == len(config["steps"]) - 1
    wiz.reset()
    assert wiz.current_step == 1 and wiz.responses == {}


def test_format_responses_slugs_titles():
    out = format_responses({"What's your budget?": 5000, "Where are you  located?": {"postalCode": "1"}})
    assert out == {"whats_your_budget": 5000, "where_are_you_located": {"postalCode": "1"}}
