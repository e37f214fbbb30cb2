"""
Tests for search settings and the settings loader.
"""

import logging

import pytest

from autojoin.config import K_SHORTEST, MAX_DEPTH, SearchSettings, load_settings


class TestSearchSettings:
    """Tests for SearchSettings defaults and validation."""

    def test_defaults(self):
        settings = SearchSettings()

        assert settings.max_depth == MAX_DEPTH == 8
        assert settings.k_shortest == K_SHORTEST == 3
        assert settings.hop_cost == 1.0
        assert settings.n_to_n_penalty == 0.5
        assert settings.parallel_edges is True
        assert settings.fail_on_ambiguity is False

    @pytest.mark.parametrize("field,value", [
        ("max_depth", 0),
        ("k_shortest", 0),
        ("hop_cost", 0),
        ("n_to_n_penalty", -1),
        ("max_tables_for_full_index", 0),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError, match=field):
            SearchSettings(**{field: value})

    def test_from_dict_ignores_unknown(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = SearchSettings.from_dict({"max_depth": 4, "colour": "blue"})

        assert settings.max_depth == 4
        assert "colour" in caplog.text

    def test_round_trip(self):
        settings = SearchSettings(max_depth=5, fail_on_ambiguity=True)
        assert SearchSettings.from_dict(settings.to_dict()) == settings


class TestLoadSettings:
    """Tests for loading settings from YAML."""

    def test_search_section(self, tmp_path):
        path = tmp_path / "autojoin.yaml"
        path.write_text("search:\n  max_depth: 4\n  k_shortest: 2\n")

        settings = load_settings(path)

        assert settings.max_depth == 4
        assert settings.k_shortest == 2

    def test_top_level_keys(self, tmp_path):
        path = tmp_path / "autojoin.yaml"
        path.write_text("parallel_edges: false\n")

        assert load_settings(path).parallel_edges is False

    def test_empty_file(self, tmp_path):
        path = tmp_path / "autojoin.yaml"
        path.write_text("")

        assert load_settings(path) == SearchSettings()

    def test_missing_file(self, tmp_path):
        assert load_settings(tmp_path / "missing.yaml") == SearchSettings()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "autojoin.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError, match="mapping"):
            load_settings(path)
