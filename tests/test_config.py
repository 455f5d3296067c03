"""Tests for ContainerOptions and config file loading."""

import json

import pytest

from sumexp.config import ContainerOptions, load_config


class TestContainerOptions:

    def test_defaults(self):
        opts = ContainerOptions()
        assert opts.default_assay == "counts"
        assert opts.copy_on_create is True
        assert opts.dtype == "float64"
        assert opts.warn_on_empty is True

    def test_from_dict(self):
        opts = ContainerOptions.from_dict({"default_assay": "logcounts", "dtype": "float32"})
        assert opts.default_assay == "logcounts"
        assert opts.dtype == "float32"

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown container options"):
            ContainerOptions.from_dict({"default_assy": "counts"})

    def test_non_numeric_dtype(self):
        with pytest.raises(ValueError, match="numeric"):
            ContainerOptions(dtype="object")

    def test_invalid_dtype(self):
        with pytest.raises(ValueError):
            ContainerOptions(dtype="not-a-dtype")

    def test_frozen(self):
        with pytest.raises(AttributeError):
            ContainerOptions().dtype = "int64"

    def test_round_trip_dict(self):
        opts = ContainerOptions(warn_on_empty=False)
        assert ContainerOptions.from_dict(opts.to_dict()) == opts


class TestLoadConfig:

    def test_yaml(self, tmp_path):
        path = tmp_path / "container.yaml"
        path.write_text("default_assay: logcounts\nwarn_on_empty: false\n")
        opts = ContainerOptions.from_file(path)
        assert opts.default_assay == "logcounts"
        assert opts.warn_on_empty is False

    def test_json(self, tmp_path):
        path = tmp_path / "container.json"
        path.write_text(json.dumps({"copy_on_create": False}))
        assert load_config(path) == {"copy_on_create": False}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "container.toml"
        path.write_text("x = 1")
        with pytest.raises(ValueError, match="Unsupported"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("default_assay: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- counts\n- logcounts\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)
