"""
Tests for settings loading — defaults, YAML, env overrides, errors.
"""

from pathlib import Path

import pytest

from pineforge.core.config.settings import (
    ConfigError,
    PipelineSettings,
    find_settings_file,
    load_settings,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("PINEFORGE_STATE_DIR", raising=False)
    monkeypatch.delenv("PINEFORGE_WORKSPACE_DIR", raising=False)


class TestDefaults:
    def test_defaults(self):
        s = PipelineSettings()
        assert s.directive_prefix == "RUN_COMMAND:"
        assert s.output_tail_chars == 500
        assert s.activity_capacity == 50
        assert s.description_limit == 120
        assert [(a.from_prefix, a.to_prefix) for a in s.path_aliases] == [("src/app/", "app/")]
        assert s.tag_rewards["revenue"] == "revenue_logged"

    def test_no_file_means_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_settings() == PipelineSettings()

    def test_search_disabled(self):
        assert load_settings(search=False) == PipelineSettings()


class TestLoadFile:
    def test_explicit_file(self, tmp_path: Path):
        path = tmp_path / "pineforge.yml"
        path.write_text(
            "max_directives: 8\n"
            "command_timeout_s: 12\n"
            "path_aliases:\n"
            "  - from_prefix: src/\n"
            "    to_prefix: ''\n"
        )
        s = load_settings(path)
        assert s.max_directives == 8
        assert s.command_timeout_s == 12.0
        assert s.path_aliases[0].from_prefix == "src/"

    def test_nested_under_pipeline_key(self, tmp_path: Path):
        path = tmp_path / "pineforge.yml"
        path.write_text("pipeline:\n  activity_capacity: 10\n")
        assert load_settings(path).activity_capacity == 10

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "pineforge.yml"
        path.write_text("")
        assert load_settings(path) == PipelineSettings()

    def test_found_from_subdirectory(self, tmp_path: Path, monkeypatch):
        (tmp_path / "pineforge.yml").write_text("description_limit: 40\n")
        sub = tmp_path / "a" / "b"
        sub.mkdir(parents=True)
        monkeypatch.chdir(sub)

        assert find_settings_file() == (tmp_path / "pineforge.yml").resolve()
        assert load_settings().description_limit == 40

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "pineforge.yml"
        path.write_text("state_dir: from-file\n")
        monkeypatch.setenv("PINEFORGE_STATE_DIR", str(tmp_path / "env-state"))
        s = load_settings(path)
        assert s.state_dir == str(tmp_path / "env-state")
        assert s.state_path == tmp_path / "env-state"


class TestErrors:
    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "pineforge.yml"
        path.write_text("key: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "pineforge.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / "pineforge.yml"
        path.write_text("max_directives: lots\n")
        with pytest.raises(ConfigError, match="Invalid pipeline settings"):
            load_settings(path)

    def test_config_error_status(self):
        err = ConfigError("bad")
        assert err.to_dict() == {"error": "bad", "code": "CONFIG_ERROR"}
