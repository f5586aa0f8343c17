"""Unit tests for file loading and source tracking helpers."""

import pytest

from dify_app.config import ConfigFileError, FileConfigLoader, SourceTracker, summarize_origins
from dify_app.config.file_loader import HOME_CONFIG_ENV_VAR

pytestmark = pytest.mark.unit


class TestSourceTracker:
    def test_later_origin_replaces_earlier(self):
        tracker = SourceTracker()
        tracker.set_origin("user", "default")
        tracker.set_origin("user", "env")
        assert tracker.get_source_map() == {"user": "env"}

    def test_source_map_is_a_copy(self):
        tracker = SourceTracker()
        tracker.set_origin("user", "file")
        tracker.get_source_map()["user"] = "env"  # type: ignore[index]
        assert tracker.get_source_map() == {"user": "file"}

    def test_summarize_origins(self):
        assert summarize_origins(
            {"api_key": "env", "user": "env", "base_url": "default"}
        ) == {"env": 2, "default": 1}


class TestFileConfigLoader:
    def test_pyproject_found_in_parent_directory(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[tool.dify_app]\nuser = "parent"\n')
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)

        assert FileConfigLoader().load_project_config(project_root=nested) == {"user": "parent"}

    def test_pyproject_without_section(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert FileConfigLoader().load_project_config(project_root=tmp_path) == {}

    def test_missing_profile_lists_available(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(
            "[tool.dify_app.profiles.dev]\nuser = 'd'\n"
        )
        with pytest.raises(ConfigFileError, match=r"Available profiles: \['dev'\]"):
            FileConfigLoader().load_project_config(project_root=tmp_path, profile="prod")

    def test_home_path_override(self, monkeypatch, tmp_path):
        target = tmp_path / "custom.toml"
        monkeypatch.setenv(HOME_CONFIG_ENV_VAR, str(target))
        assert FileConfigLoader().home_config_path() == target

    def test_missing_home_file_is_empty(self):
        assert FileConfigLoader().load_home_config() == {}
