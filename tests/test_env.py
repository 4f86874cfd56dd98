import os

from formgen import ENV_KEYS, load_env, read_env_file


def test_read_env_file_parses_quotes_comments_and_export(tmp_path):
    path = tmp_path / ".env"
    path.write_text(
        "# comment\n\nexport GEMINI_MODEL='gemini-pro'\nREDIS_URL=\"redis://cache:6379/0\"\nnot a pair\nAPI_KEYS=a=b\n",
        encoding="utf-8",
    )
    assert read_env_file(path) == {
        "GEMINI_MODEL": "gemini-pro",
        "REDIS_URL": "redis://cache:6379/0",
        "API_KEYS": "a=b",
    }


def test_load_env_applies_only_known_unset_keys(tmp_path, monkeypatch):
    path = tmp_path / ".env"
    path.write_text("GEMINI_MODEL=from-file\nLOG_LEVEL=DEBUG\nUNRELATED_SECRET=x\n", encoding="utf-8")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    monkeypatch.delenv("UNRELATED_SECRET", raising=False)

    applied = load_env(path)

    assert applied == {"GEMINI_MODEL": "from-file"}
    assert os.environ["GEMINI_MODEL"] == "from-file"
    assert os.environ["LOG_LEVEL"] == "WARNING"
    assert "UNRELATED_SECRET" not in os.environ
    monkeypatch.delenv("GEMINI_MODEL")


def test_load_env_missing_file(tmp_path):
    assert load_env(tmp_path / "absent.env") == {}


def test_env_keys_cover_service_settings():
    assert {"GEMINI_API_KEY", "SUPABASE_URL", "REDIS_URL", "API_KEYS"} <= set(ENV_KEYS)
