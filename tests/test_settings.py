"""Tests for the YAML run settings loader."""

import tempfile

import pytest
import yaml

from clipreel.settings import default_settings, load_settings


def _write_settings(content) -> str:
    """Write a settings dict to a temp YAML file, return path."""
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    yaml.dump(content, f)
    f.close()
    return f.name


class TestDefaults:
    def test_defaults(self):
        s = default_settings()
        assert s["chunk_size"] == 3
        assert (s["width"], s["height"]) == (1920, 1080)
        assert s["preset"] == "ultrafast"
        assert s["on_failure"] == "skip"
        assert s["timeout"] is None
        assert "resolution" not in s

    def test_no_file_is_defaults(self):
        assert load_settings() == default_settings()

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path) == default_settings()


class TestLoadSettings:
    def test_overrides_from_file(self):
        path = _write_settings({"chunk_size": 5, "resolution": "1280x720", "preset": "veryfast"})
        s = load_settings(path)
        assert s["chunk_size"] == 5
        assert (s["width"], s["height"]) == (1280, 720)
        assert s["preset"] == "veryfast"

    def test_resolves_path_variables(self):
        path = _write_settings({
            "ledger": "${data}/db.json",
            "output": "${data}/out.mp4",
            "paths": {"data": "/srv/repost"},
        })
        s = load_settings(path)
        assert s["ledger"] == "/srv/repost/db.json"
        assert s["output"] == "/srv/repost/out.mp4"

    def test_cli_overrides_win_and_none_is_ignored(self):
        path = _write_settings({"chunk_size": 5, "preset": "veryfast"})
        s = load_settings(path, overrides={"chunk_size": 2, "preset": None})
        assert s["chunk_size"] == 2
        assert s["preset"] == "veryfast"

    def test_timeout_coerced_to_float(self):
        s = load_settings(overrides={"timeout": 30})
        assert s["timeout"] == 30.0


class TestSettingsValidation:
    def test_unknown_key_raises(self):
        path = _write_settings({"chunk_sise": 3})
        with pytest.raises(ValueError, match="unknown key"):
            load_settings(path)

    def test_non_mapping_raises(self):
        path = _write_settings([1, 2, 3])
        with pytest.raises(ValueError, match="mapping"):
            load_settings(path)

    @pytest.mark.parametrize("value", [0, -1, "3", True, 1.5])
    def test_invalid_chunk_size_raises(self, value):
        with pytest.raises(ValueError, match="chunk_size"):
            load_settings(overrides={"chunk_size": value})

    def test_invalid_policy_raises(self):
        with pytest.raises(ValueError, match="on_failure"):
            load_settings(overrides={"on_failure": "retry"})

    def test_invalid_timeout_raises(self):
        with pytest.raises(ValueError, match="timeout"):
            load_settings(overrides={"timeout": -5})

    def test_invalid_resolution_raises(self):
        with pytest.raises(ValueError, match="resolution"):
            load_settings(overrides={"resolution": "big"})

    def test_min_clips_above_max_raises(self):
        with pytest.raises(ValueError, match="min_clips"):
            load_settings(overrides={"min_clips": 5, "max_clips": 4})

    def test_empty_preset_raises(self):
        with pytest.raises(ValueError, match="preset"):
            load_settings(overrides={"preset": ""})

    def test_unknown_path_variable_raises(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            load_settings(overrides={"ledger": "${nowhere}/db.json"})
