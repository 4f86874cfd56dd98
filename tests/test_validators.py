from formgen.defaults import default_form_config
from formgen.validators import collect_errors, schema_errors, validate_config


def _messages(errors):
    return [e["message"] for e in errors]


def test_default_document_is_valid():
    valid, errors = validate_config(default_form_config())
    assert valid, errors


def test_missing_steps_reports_required():
    errors = collect_errors({"theme": {"colors": {}}})
    assert any(e["path"] == "steps" and "required" in e["message"] for e in errors)


def test_non_object_config():
    valid, errors = validate_config(["steps"])
    assert not valid
    assert errors[0]["message"] == "form config must be an object"


def test_duplicates_and_bad_type_reported():
    cfg = default_form_config()
    cfg["steps"][1]["title"] = cfg["steps"][0]["title"]
    cfg["steps"][2]["subtitle"] = cfg["steps"][0]["subtitle"]
    cfg["steps"][0]["options"][1]["title"] = cfg["steps"][0]["options"][0]["title"]
    cfg["steps"][3]["type"] = "carousel"
    msgs = _messages(collect_errors(cfg))
    assert any("duplicate step title" in m for m in msgs)
    assert any("duplicate step subtitle" in m for m in msgs)
    assert any("duplicate option title" in m for m in msgs)
    assert any("invalid step type" in m for m in msgs)


def test_final_step_order_reported():
    cfg = default_form_config()
    cfg["steps"][-1], cfg["steps"][-2] = cfg["steps"][-2], cfg["steps"][-1]
    msgs = _messages(collect_errors(cfg))
    assert any("must be the last step" in m for m in msgs)

    cfg = default_form_config()
    cfg["steps"].append(dict(cfg["steps"][-1], title="Again", subtitle="Again"))
    msgs = _messages(collect_errors(cfg))
    assert "more than one contact step" in msgs


def test_missing_title_reported():
    cfg = default_form_config()
    cfg["steps"][0]["title"] = "  "
    errors = collect_errors(cfg)
    assert {"path": "steps[0].title", "message": "required property 'title' must be a non-empty string"} in errors


def test_schema_catches_structural_problems():
    cfg = default_form_config()
    cfg["steps"][2]["step"] = 0
    del cfg["submission"]["title"]
    paths = [e["path"] for e in schema_errors(cfg)]
    assert "steps.2.step" in paths
    assert "submission" in paths
