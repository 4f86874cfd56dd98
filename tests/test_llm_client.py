import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from formgen import llm_client
from formgen.defaults import customized_demo_form
from formgen.llm_prompts import REQUEST_SEPARATOR
from formgen.uniqueness import enforce


PROMPT = "Moving company quote request with apartment size"


def _gemini_reply(text, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text if status != 200 else ""
    resp.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return resp


def test_status_without_key(monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "")
    s = llm_client.status()
    assert s["provider"] is None
    assert s["has_token"] is False


def test_status_with_key(monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "fake-key")
    s = llm_client.status()
    assert s == {"provider": "gemini", "model": llm_client.GEMINI_MODEL, "has_token": True}


def test_generate_form_without_key_serves_demo(monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "")
    with patch("requests.post") as mock_post:
        out = llm_client.generate_form(PROMPT)
    mock_post.assert_not_called()
    assert out == enforce(customized_demo_form(PROMPT))
    assert out["steps"][0]["title"] == "Moving company quote request with..."


@patch("requests.post")
def test_generate_form_parses_provider_reply(mock_post, monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "fake-key")
    doc = {
        "steps": [
            {"type": "tiles", "title": "Home size 🏠", "subtitle": "Rooms", "options": ["Studio", "2 rooms"]},
            {"type": "contact", "title": "Contact", "subtitle": "Reach you"},
            {"type": "location", "title": "Moving from", "subtitle": "Postal code", "required": True},
        ]
    }
    mock_post.return_value = _gemini_reply("```json\n" + json.dumps(doc) + "\n```")

    out = llm_client.generate_form(PROMPT)

    assert [s["type"] for s in out["steps"]] == ["tiles", "location", "contact"]
    assert out["steps"][1]["validation"] == {"required": True}

    args, kwargs = mock_post.call_args
    assert args[0] == llm_client.GEMINI_ENDPOINT
    assert kwargs["params"] == {"key": "fake-key"}
    body = kwargs["json"]
    text = body["contents"][0]["parts"][0]["text"]
    assert text.endswith(REQUEST_SEPARATOR + PROMPT)
    cfg = body["generationConfig"]
    assert cfg["topP"] == 0.8 and cfg["topK"] == 40
    assert cfg["maxOutputTokens"] == llm_client.LLM_MAX_OUTPUT_TOKENS


@patch("requests.post")
def test_generate_form_http_error_serves_demo(mock_post, monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "fake-key")
    mock_post.return_value = _gemini_reply("quota exceeded", status=429)
    assert llm_client.generate_form(PROMPT) == enforce(customized_demo_form(PROMPT))


@patch("requests.post")
def test_generate_form_transport_error_serves_demo(mock_post, monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "fake-key")
    mock_post.side_effect = requests.ConnectionError("offline")
    assert llm_client.generate_form(PROMPT) == enforce(customized_demo_form(PROMPT))


@patch("requests.post")
def test_generate_form_unparseable_reply_uses_demo_as_fallback(mock_post, monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "fake-key")
    mock_post.return_value = _gemini_reply("Sorry, I can only describe forms in prose.")
    assert llm_client.generate_form(PROMPT) == enforce(customized_demo_form(PROMPT))


@patch("requests.post")
def test_generate_raw_raises_on_missing_candidates(mock_post, monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "fake-key")
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = {"candidates": []}
    mock_post.return_value = resp
    with pytest.raises(llm_client.LLMError):
        llm_client.generate_raw_form_json(PROMPT)


def test_generate_raw_raises_without_key(monkeypatch):
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "")
    with pytest.raises(llm_client.LLMError):
        llm_client.generate_raw_form_json(PROMPT)
