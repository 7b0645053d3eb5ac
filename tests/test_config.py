from __future__ import annotations
import pytest
from jira_csv_export.config import Settings, normalize_base_url
from jira_csv_export.custom_fields import (
    load_custom_field_names,
    parse_custom_field_args,
    resolve_custom_field_names,
)

ENV_VARS = ["JIRA_URL", "JIRA_BASE_URL", "JIRA_USERNAME", "JIRA_PASSWORD", "JIRA_CA_BUNDLE",
            "JIRA_PAGE_SIZE", "JIRA_TIMEOUT_S", "JIRA_OUTDIR"]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv + delenv: monkeypatch räumt auch Variablen auf, die load_dotenv setzt
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_normalize_base_url():
    assert normalize_base_url("support.my_company.com") == "https://support.my_company.com"
    assert normalize_base_url("http://localhost:8080/") == "http://localhost:8080"


def test_from_env_reads_env_file(clean_env, tmp_path):
    env = tmp_path / "jira.env"
    env.write_text("JIRA_URL=jira.example.com\nJIRA_USERNAME=me\nJIRA_PASSWORD=pw\nJIRA_PAGE_SIZE=50\n", encoding="utf-8")

    s = Settings.from_env(env)

    assert s.base_url == "https://jira.example.com"
    assert (s.username, s.password) == ("me", "pw")
    assert s.page_size == 50
    assert s.outdir == "."


def test_from_env_overrides_win(clean_env):
    clean_env.setenv("JIRA_URL", "env.example.com")
    clean_env.setenv("JIRA_USERNAME", "env-user")
    clean_env.setenv("JIRA_PASSWORD", "env-pw")

    s = Settings.from_env(base_url="cli.example.com", username=None, outdir="out")

    assert s.base_url == "https://cli.example.com"
    assert s.username == "env-user"
    assert s.outdir == "out"
    assert s.page_size == 1000


def test_from_env_missing_values(clean_env):
    with pytest.raises(RuntimeError) as exc:
        Settings.from_env(base_url="jira.example.com")
    assert "JIRA_USERNAME" in str(exc.value)
    assert "JIRA_PASSWORD" in str(exc.value)


def test_from_env_rejects_non_positive_page_size(clean_env):
    with pytest.raises(ValueError):
        Settings.from_env(base_url="j", username="u", password="p", page_size=0)


def test_load_custom_field_names_json(tmp_path):
    p = tmp_path / "fields.json"
    p.write_text('{"customfield_11520": "line_of_business", "customfield_18714": "customers"}', encoding="utf-8")
    assert load_custom_field_names(p) == {"customfield_11520": "line_of_business", "customfield_18714": "customers"}


def test_load_custom_field_names_yaml(tmp_path):
    p = tmp_path / "fields.yaml"
    p.write_text("customfield_1: layer\ncustomfield_2: wave\n", encoding="utf-8")
    assert load_custom_field_names(p) == {"customfield_1": "layer", "customfield_2": "wave"}


def test_load_custom_field_names_rejects_list(tmp_path):
    p = tmp_path / "fields.json"
    p.write_text('["customfield_1"]', encoding="utf-8")
    with pytest.raises(ValueError):
        load_custom_field_names(p)


def test_parse_custom_field_args():
    assert parse_custom_field_args(["customfield_11520: line_of_business", "customfield_1:layer"]) == {
        "customfield_11520": "line_of_business",
        "customfield_1": "layer",
    }
    with pytest.raises(ValueError):
        parse_custom_field_args(["customfield_1"])


def test_resolve_custom_field_names_prefers_file(tmp_path):
    p = tmp_path / "fields.json"
    p.write_text('{"customfield_9": "nine"}', encoding="utf-8")
    assert resolve_custom_field_names(p, ["customfield_1: one"]) == {"customfield_9": "nine"}
    assert resolve_custom_field_names(None, ["customfield_1: one"]) == {"customfield_1": "one"}
    assert resolve_custom_field_names() == {}
