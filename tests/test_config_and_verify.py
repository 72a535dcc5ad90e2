import json

from config import DEFAULT_MAX_TOKENS, Settings
from verify_sheets import check_environment


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_SHEET_ID", " sheet-1 ")
    monkeypatch.setenv("SHEET_TAB_KEYWORD", "Ratings")
    monkeypatch.setenv("COMPLETION_TEMPERATURE", "0.3")
    monkeypatch.setenv("COMPLETION_MAX_TOKENS", "lots")
    monkeypatch.delenv("SHEET_DEFAULT_TAB", raising=False)
    settings = Settings.from_env()
    assert settings.sheet_id == "sheet-1"
    assert settings.tab_keyword == "Ratings"
    assert settings.default_tab == "Sheet1"
    assert settings.temperature == 0.3
    assert settings.max_tokens == DEFAULT_MAX_TOKENS


def test_check_environment_reports_missing_settings():
    assert check_environment({}) == ["GOOGLE_SHEET_ID is not set", "GOOGLE_SERVICE_ACCOUNT_KEY is not set"]


def test_check_environment_validates_key_fields(tmp_path):
    key = tmp_path / "key.json"
    key.write_text(json.dumps({"client_email": "svc@example.com", "project_id": "p"}), encoding="utf-8")
    problems = check_environment({"GOOGLE_SHEET_ID": "id", "GOOGLE_SERVICE_ACCOUNT_KEY": str(key)})
    assert problems == ["Key file missing fields: private_key"]


def test_check_environment_accepts_inline_key():
    payload = json.dumps({"client_email": "svc@example.com", "private_key": "k", "project_id": "p"})
    assert check_environment({"GOOGLE_SHEET_ID": "id", "GOOGLE_SERVICE_ACCOUNT_KEY": payload}) == []


def test_check_environment_rejects_non_object_inline_key():
    problems = check_environment({"GOOGLE_SHEET_ID": "id", "GOOGLE_SERVICE_ACCOUNT_KEY": "[1, 2]"})
    assert problems == ["Service account key must be a JSON object, got list"]


def test_check_environment_reports_missing_key_file(tmp_path):
    problems = check_environment({"GOOGLE_SHEET_ID": "id", "GOOGLE_SERVICE_ACCOUNT_KEY": str(tmp_path / "nope.json")})
    assert problems == [f"Service account key file not found: {tmp_path / 'nope.json'}"]
