from __future__ import annotations

from pathlib import Path
import subprocess
import sys


def _tool_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _run(args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    run_cwd = _tool_root() if cwd is None else cwd
    return subprocess.run(
        [sys.executable, str(_tool_root() / "imgui_wrapper_gen.py"), *args],
        cwd=run_cwd,
        capture_output=True,
        text=True,
        check=False,
    )


def test_t_01_generate_writes_wrapper_and_reports_progress(tmp_path: Path) -> None:
    output = tmp_path / "ImGuiWrapper.cs"

    result = _run(["MyGame.Scripting", str(output)])

    assert result.returncode == 0
    assert result.stdout.startswith("Starting\nScanning type ImGuiNET.ImGui\n")
    assert result.stdout.endswith("Done\n")
    assert result.stderr == ""
    content = output.read_text(encoding="utf-8")
    assert "namespace MyGame.Scripting" in content
    assert "[MoonSharp.Interpreter.MoonSharpUserData]" in content
    assert "public static class ImGuiWrapper" in content


def test_t_02_no_arguments_prints_usage_and_exits_cleanly(tmp_path: Path) -> None:
    result = _run([], cwd=tmp_path)

    assert result.returncode == 0
    assert "Not enough arguments" in result.stderr
    assert result.stdout == ""
    assert list(tmp_path.iterdir()) == []


def test_t_03_extra_arguments_print_usage_and_exit_cleanly(tmp_path: Path) -> None:
    result = _run(["Ns", "out.cs", "surplus"], cwd=tmp_path)

    assert result.returncode == 0
    assert "Too many arguments" in result.stderr
    assert not (tmp_path / "out.cs").exists()


def test_t_04_unwritable_output_is_reported_on_stderr(tmp_path: Path) -> None:
    output = tmp_path / "missing" / "ImGuiWrapper.cs"

    result = _run(["Ns", str(output)])

    assert result.returncode == 0
    assert "No such file or directory" in result.stderr
    assert not output.exists()


def test_t_05_repeated_runs_are_byte_identical(tmp_path: Path) -> None:
    first = tmp_path / "a.cs"
    second = tmp_path / "b.cs"

    assert _run(["Ns", str(first)]).returncode == 0
    assert _run(["Ns", str(second)]).returncode == 0

    assert first.read_bytes() == second.read_bytes()
