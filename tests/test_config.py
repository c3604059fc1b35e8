"""Tests for klo.toml discovery and loading."""

from __future__ import annotations

import pytest

from klo.config import KloConfig, config_for, find_config, load_config


class TestFindConfig:
    def test_found_in_same_dir(self, tmp_path):
        (tmp_path / "klo.toml").write_text("")
        assert find_config(tmp_path) == (tmp_path / "klo.toml").resolve()

    def test_walks_up(self, tmp_path):
        (tmp_path / "klo.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == (tmp_path / "klo.toml").resolve()

    def test_start_from_file(self, tmp_path):
        (tmp_path / "klo.toml").write_text("")
        source = tmp_path / "main.klo"
        source.write_text("print 1\n")
        assert find_config(source) == (tmp_path / "klo.toml").resolve()

    def test_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setattr("klo.config.CONFIG_NAME", "klo-never-exists.toml")
        with pytest.raises(FileNotFoundError):
            find_config(tmp_path)


class TestLoadConfig:
    def test_full(self, tmp_path):
        path = tmp_path / "klo.toml"
        path.write_text(
            '[package]\nname = "demo"\nversion = "1.2.0"\n'
            '[build]\ngo = "go1.22"\nout_dir = "out"\nkeep_go = true\n'
            "[run]\ntimeout = 5\n"
        )
        config = load_config(path)
        assert config.package.name == "demo"
        assert config.package.version == "1.2.0"
        assert config.build.go == "go1.22"
        assert config.build.out_dir == "out"
        assert config.build.keep_go is True
        assert config.run.timeout == 5
        assert config.root == tmp_path

    def test_defaults_for_missing_keys(self, tmp_path):
        path = tmp_path / "klo.toml"
        path.write_text('[package]\nname = "demo"\n[build]\nkeep_go = true\n')
        config = load_config(path)
        assert config.package.version == "0.0.0"
        assert config.build.go == "go"
        assert config.build.out_dir == "build"
        assert config.run.timeout == 60

    def test_empty_file(self, tmp_path):
        path = tmp_path / "klo.toml"
        path.write_text("")
        config = load_config(path)
        assert config.package.name == "untitled"
        assert config.build.keep_go is False


class TestConfigFor:
    def test_uses_nearest_file(self, tmp_path):
        (tmp_path / "klo.toml").write_text("[run]\ntimeout = 9\n")
        source = tmp_path / "main.klo"
        source.write_text("print 1\n")
        assert config_for(source).run.timeout == 9

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr("klo.config.CONFIG_NAME", "klo-never-exists.toml")
        config = config_for(tmp_path)
        assert config == KloConfig()
