"""Tests for atomic file writes, image/YAML/JSON loading and array hashing.

Run: pytest tests/test_fs.py -v
"""

import json

import numpy as np
import pytest
import yaml

from themeshot.utils import fs, hashing


class TestAtomicWrites:
    def test_write_text_creates_parents(self, tmp_path):
        path = tmp_path / "a" / "b" / "report.txt"
        fs.atomic_write_text(path, "hello\n")
        assert path.read_text(encoding="utf-8") == "hello\n"

    def test_no_tmp_left_behind(self, tmp_path):
        path = tmp_path / "report.txt"
        fs.atomic_write_bytes(path, b"x")
        fs.atomic_write_bytes(path, b"y")
        assert path.read_bytes() == b"y"
        assert [p.name for p in tmp_path.iterdir()] == ["report.txt"]

    def test_save_and_load_rgba(self, tmp_path):
        img = np.zeros((4, 6, 4), dtype=np.uint8)
        img[1, 2] = (10, 20, 30, 40)
        path = tmp_path / "img.png"
        fs.atomic_save_image(img, path)
        loaded = fs.load_image(path)
        assert loaded.shape == (4, 6, 4)
        assert np.array_equal(loaded, img)
        assert not (tmp_path / "img.tmp.png").exists()

    def test_load_rgb_gets_opaque_alpha(self, tmp_path):
        path = tmp_path / "rgb.png"
        fs.atomic_save_image(np.full((2, 2, 3), 7, dtype=np.uint8), path)
        loaded = fs.load_image(path)
        assert (loaded[..., 3] == 255).all()

    def test_load_missing_image(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            fs.load_image(tmp_path / "nope.png")

    def test_load_corrupt_image(self, tmp_path):
        path = tmp_path / "bad.png"
        path.write_bytes(b"\x89PNG garbage")
        with pytest.raises(OSError):
            fs.load_image(path)

    def test_ensure_dir_idempotent(self, tmp_path):
        target = tmp_path / "x" / "y"
        assert fs.ensure_dir(target) == target
        assert fs.ensure_dir(target).is_dir()


class TestStructuredLoad:
    def test_yaml_keeps_key_order(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("z: 1\na: [1, 2]\n", encoding="utf-8")
        assert list(fs.load_yaml(path)) == ["z", "a"]

    def test_yaml_parse_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: [1, 2\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            fs.load_yaml(path)

    def test_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            fs.load_yaml(tmp_path / "missing.yaml")

    def test_json_with_tab_indentation(self, tmp_path):
        entries = [{"slug": "a", "name": "A", "dark": True}]
        path = tmp_path / "theme-list.json"
        path.write_text(json.dumps(entries, indent="\t"), encoding="utf-8")
        assert fs.load_json(path) == entries

    def test_json_parse_error_names_file(self, tmp_path):
        path = tmp_path / "broken.theme.json"
        path.write_text('{"name": "Broken",}', encoding="utf-8")
        with pytest.raises(json.JSONDecodeError, match="broken.theme.json"):
            fs.load_json(path)

    def test_json_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            fs.load_json(tmp_path / "missing.json")


class TestHashing:
    def test_array_hash_includes_shape(self):
        a = np.zeros((2, 8), dtype=np.uint8)
        assert hashing.sha256_array(a) != hashing.sha256_array(a.reshape(4, 4))

    def test_array_hash_includes_dtype(self):
        a = np.zeros(8, dtype=np.uint8)
        assert hashing.sha256_array(a) != hashing.sha256_array(a.view(np.int8))

    def test_array_hash_stable(self):
        a = np.arange(24, dtype=np.uint8).reshape(2, 3, 4)
        assert hashing.sha256_array(a) == hashing.sha256_array(a.copy())
        assert len(hashing.sha256_array(a)) == 64
