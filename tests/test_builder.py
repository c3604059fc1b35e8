"""Tests for the transpile, build and run pipelines."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from klo import builder
from klo.builder import build_file, go_stem, run_file, transpile_file
from klo.config import BuildConfig, KloConfig
from klo.go_toolchain import GoToolchainError, build_go, find_go, run_go

_HELLO = 'name = "klo"\nprint "hello from", name\nfor i in range(3):\n    print i * 2\n'


@pytest.fixture
def hello(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "hello.klo"
    path.write_text(_HELLO)
    return path


@pytest.fixture
def fake_go(monkeypatch):
    """Replace the toolchain calls with recorders; returns the call log."""
    calls: list[tuple] = []

    def fake_run(go_file, *, go=None, timeout=60):
        calls.append(("run", go_file, go_file.read_text(), go, timeout))

    def fake_build(go_file, output, *, go=None, timeout=60):
        calls.append(("build", go_file, output, go, timeout))
        return output

    monkeypatch.setattr(builder, "run_go", fake_run)
    monkeypatch.setattr(builder, "build_go", fake_build)
    return calls


class TestGoStem:
    def test_plain(self):
        assert go_stem(Path("dir/main.klo")) == "main"

    def test_test_suffix_renamed(self):
        assert go_stem(Path("calc_test.klo")) == "calc_example"

    def test_test_in_middle_kept(self):
        assert go_stem(Path("test_calc.klo")) == "test_calc"


class TestTranspileFile:
    def test_explicit_output(self, hello, tmp_path):
        out = tmp_path / "gen" / "prog.go"
        result = transpile_file(hello, KloConfig(), out)
        assert result.ok
        assert result.go_file == out
        assert out.read_text().startswith("package main\n")

    def test_default_output_under_out_dir(self, hello, tmp_path):
        result = transpile_file(hello, KloConfig())
        assert result.go_file == tmp_path / "build" / "hello.go"
        assert result.go_file.exists()

    def test_default_output_uses_config_root(self, hello, tmp_path):
        config = KloConfig(build=BuildConfig(out_dir="gen"), root=tmp_path / "proj")
        result = transpile_file(hello, config)
        assert result.go_file == tmp_path / "proj" / "gen" / "hello.go"

    def test_compile_error(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        bad = tmp_path / "bad.klo"
        bad.write_text('print "abc\n')
        result = transpile_file(bad, KloConfig())
        assert not result.ok
        assert result.go_file is None
        assert result.diagnostics[0].code == "E100"
        assert not (tmp_path / "build").exists()


class TestRunFile:
    def test_temp_file_removed(self, hello, tmp_path, fake_go):
        result = run_file(hello, KloConfig())
        assert result.ok
        (kind, go_file, text, go, timeout) = fake_go[0]
        assert kind == "run"
        assert go_file == tmp_path / "klo_temp_hello.go"
        assert "func main() {" in text
        assert (go, timeout) == ("go", 60)
        assert not go_file.exists()
        assert result.go_file is None

    def test_keep_go(self, hello, tmp_path, fake_go):
        config = KloConfig(build=BuildConfig(keep_go=True))
        result = run_file(hello, config)
        assert result.go_file == tmp_path / "klo_temp_hello.go"
        assert result.go_file.exists()

    def test_explicit_output_kept(self, hello, tmp_path, fake_go):
        out = tmp_path / "kept.go"
        result = run_file(hello, KloConfig(), out)
        assert result.ok
        assert out.exists()

    def test_test_named_source(self, tmp_path, monkeypatch, fake_go):
        monkeypatch.chdir(tmp_path)
        source = tmp_path / "math_test.klo"
        source.write_text("print 1\n")
        run_file(source, KloConfig())
        assert fake_go[0][1].name == "klo_temp_math_example.go"

    def test_toolchain_failure_still_cleans_up(self, hello, tmp_path, monkeypatch):
        def failing_run(go_file, *, go=None, timeout=60):
            raise GoToolchainError("'go run' failed (exit 1)", stderr="boom")

        monkeypatch.setattr(builder, "run_go", failing_run)
        result = run_file(hello, KloConfig())
        assert not result.ok
        assert result.go_error == "'go run' failed (exit 1)\nboom"
        assert not (tmp_path / "klo_temp_hello.go").exists()

    def test_compile_error_skips_go(self, tmp_path, monkeypatch, fake_go):
        monkeypatch.chdir(tmp_path)
        bad = tmp_path / "bad.klo"
        bad.write_text("x = \n")
        result = run_file(bad, KloConfig())
        assert not result.ok
        assert result.diagnostics[0].code == "E200"
        assert fake_go == []


class TestBuildFile:
    def test_binary_next_to_go_file(self, hello, tmp_path, fake_go):
        result = build_file(hello, KloConfig())
        assert result.ok
        assert result.binary == tmp_path / "build" / "hello"
        kind, go_file, output, _go, _timeout = fake_go[0]
        assert kind == "build"
        assert go_file == tmp_path / "build" / "hello.go"
        assert output == result.binary

    def test_explicit_binary(self, hello, tmp_path, fake_go):
        result = build_file(hello, KloConfig(), tmp_path / "app")
        assert result.binary == tmp_path / "app"

    def test_toolchain_failure(self, hello, monkeypatch):
        def failing_build(go_file, output, *, go=None, timeout=60):
            raise GoToolchainError("no go tool found")

        monkeypatch.setattr(builder, "build_go", failing_build)
        result = build_file(hello, KloConfig())
        assert not result.ok
        assert result.go_error == "no go tool found"


class TestGoToolchain:
    def test_find_missing_executable(self):
        assert find_go("klo-no-such-go-binary") is None

    def test_missing_executable_raises(self, tmp_path):
        with pytest.raises(GoToolchainError, match="not found"):
            run_go(tmp_path / "x.go", go=str(tmp_path / "no-go-here"))

    def test_no_go_on_path(self, tmp_path, monkeypatch):
        monkeypatch.setattr("klo.go_toolchain.find_go", lambda executable="go": None)
        with pytest.raises(GoToolchainError, match="no go tool found"):
            build_go(tmp_path / "x.go", tmp_path / "x")


class TestWithGo:
    def test_run_hello(self, hello, needs_go, capfd):
        result = run_file(hello, KloConfig())
        assert result.ok, result.go_error
        out = capfd.readouterr().out
        assert out == "hello from klo\n0\n2\n4\n"

    def test_build_and_execute(self, hello, needs_go):
        result = build_file(hello, KloConfig())
        assert result.ok, result.go_error
        proc = subprocess.run(
            [str(result.binary)], capture_output=True, text=True, timeout=10,
        )
        assert proc.returncode == 0
        assert proc.stdout.splitlines() == ["hello from klo", "0", "2", "4"]

    def test_malformed_escapes_still_compile(self, tmp_path, monkeypatch, needs_go):
        monkeypatch.chdir(tmp_path)
        source = tmp_path / "escapes.klo"
        source.write_text('print "\\0"\nprint "\\x"\nprint "a\\1b"\nprint "C:\\u12"\n')
        result = build_file(source, KloConfig())
        assert result.ok, result.go_error
        proc = subprocess.run(
            [str(result.binary)], capture_output=True, text=True, timeout=10,
        )
        assert proc.stdout.splitlines() == ["\\0", "\\x", "a\\1b", "C:\\u12"]

    def test_generated_go_compiles_with_unused_and_reassigned(self, tmp_path, monkeypatch, needs_go):
        monkeypatch.chdir(tmp_path)
        source = tmp_path / "vars.klo"
        source.write_text(
            "x = 1\nx = 2\nunused = 'u'\n"
            "if x > 1:\n    inner = 3\n"
            "n = 0\nwhile n < 2:\n    n = n + 1\n"
            "1 + 2\nprint 'done'\n"
        )
        result = build_file(source, KloConfig())
        assert result.ok, result.go_error
