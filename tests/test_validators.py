"""Tests for pipeline config, catalog and theme document validation.

Run: pytest tests/test_validators.py -v
"""

import json
from pathlib import Path

import pytest

from conftest import build_theme_document
from themeshot.utils import validators
from themeshot.utils.validators import ConfigError, PipelineConfigV1


@pytest.fixture(scope="module")
def project_root():
    """Project root directory."""
    return Path(__file__).parent.parent


class TestPipelineConfig:
    def test_repo_config_loads(self, project_root):
        cfg = validators.load_pipeline_config(project_root / "configs" / "pipeline.v1.yaml")
        assert cfg.schema_version == "pipeline.v1"
        assert cfg.compare.pixel_threshold == 5
        assert cfg.compare.max_diff_percent == 1.0
        assert cfg.render.width == 800
        assert cfg.render.height == 520

    def test_repo_config_matches_defaults(self, project_root):
        cfg = validators.load_pipeline_config(project_root / "configs" / "pipeline.v1.yaml")
        assert cfg == PipelineConfigV1()

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert validators.load_pipeline_config(path) == PipelineConfigV1()

    def test_wrong_schema(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("schema: pipeline.v2\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="pipeline.v1"):
            validators.load_pipeline_config(path)

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("compare:\n  pixel_treshold: 3\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            validators.load_pipeline_config(path)

    def test_out_of_range(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("compare:\n  max_diff_percent: 150\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            validators.load_pipeline_config(path)

    def test_log_level_normalized(self):
        cfg = PipelineConfigV1.model_validate({"logging": {"log_level": "debug"}})
        assert cfg.logging.log_level == "DEBUG"

    def test_bad_yaml(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("render: [\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            validators.load_pipeline_config(path)


class TestCatalog:
    def write(self, tmp_path, entries):
        path = tmp_path / "theme-list.json"
        path.write_text(json.dumps(entries), encoding="utf-8")
        return path

    def test_order_preserved(self, tmp_path):
        path = self.write(tmp_path, [
            {"slug": "zeta", "name": "Zeta", "dark": True},
            {"slug": "alpha", "name": "Alpha", "dark": False},
        ])
        assert [e.slug for e in validators.load_catalog(path)] == ["zeta", "alpha"]

    def test_duplicate_slug(self, tmp_path):
        path = self.write(tmp_path, [
            {"slug": "a", "name": "A", "dark": True},
            {"slug": "a", "name": "A again", "dark": False},
        ])
        with pytest.raises(ConfigError, match="Duplicate"):
            validators.load_catalog(path)

    @pytest.mark.parametrize("slug", ["../etc", "a/b", "", "-lead"])
    def test_unsafe_slug(self, tmp_path, slug):
        path = self.write(tmp_path, [{"slug": slug, "name": "X", "dark": True}])
        with pytest.raises(ConfigError):
            validators.load_catalog(path)

    def test_missing_field(self, tmp_path):
        path = self.write(tmp_path, [{"slug": "a", "name": "A"}])
        with pytest.raises(ConfigError):
            validators.load_catalog(path)

    def test_tab_indented(self, tmp_path):
        path = tmp_path / "theme-list.json"
        path.write_text(json.dumps([{"slug": "a", "name": "A", "dark": True}], indent="\t"), encoding="utf-8")
        assert [e.slug for e in validators.load_catalog(path)] == ["a"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "theme-list.json"
        path.write_text('[{"slug": "a"}', encoding="utf-8")
        with pytest.raises(ConfigError, match="theme-list.json"):
            validators.load_catalog(path)

    def test_not_a_list(self, tmp_path):
        path = self.write(tmp_path, {"slug": "a"})
        with pytest.raises(ConfigError):
            validators.load_catalog(path)


class TestThemeDocument:
    def test_valid(self):
        assert validators.validate_theme_document(build_theme_document("Ocean Dark", True)) == []

    def test_extra_fields_allowed(self):
        doc = build_theme_document("Ocean Dark", True)
        doc["background"] = {"image": "x.png"}
        assert validators.validate_theme_document(doc) == []

    def test_messages_have_location(self):
        doc = build_theme_document("Ocean Dark", True)
        del doc["dark"]
        doc["icons"] = {}
        messages = validators.validate_theme_document(doc)
        assert len(messages) == 2
        assert any(m.startswith("dark:") for m in messages)
        assert any(m.startswith("icons:") and "ColorPalette" in m for m in messages)
