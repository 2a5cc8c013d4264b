"""Tests for the command line interface."""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

cli = importlib.import_module("scale_generator.cli")
ScaleNote = importlib.import_module("scale_generator.scales").ScaleNote


def _run(tmp_path, *extra):
    argv = ["--settings-file", str(tmp_path / "none.json"), *extra]
    cli.run_cli(argv)


def test_cli_prints_scales(tmp_path, capsys):
    _run(
        tmp_path,
        "--fundamentals", "220", "330",
        "--partials", "6",
        "--min-notes", "4",
        "--max-notes", "8",
    )
    out = capsys.readouterr().out
    assert "Voice at 220.00 Hz" in out
    assert "Voice at 330.00 Hz" in out
    assert "Frequency" in out


def test_cli_target_notes(tmp_path, capsys):
    _run(
        tmp_path,
        "--fundamentals", "220", "330",
        "--partials", "6",
        "--min-notes", "6",
        "--max-notes", "10",
        "--target-notes", "3",
    )
    out = capsys.readouterr().out
    assert out.count("(3 notes)") == 2


@pytest.mark.parametrize(
    "extra",
    [
        ("--fundamentals", "330", "220"),
        ("--fundamentals", "-1", "220"),
        ("--fundamentals", "220", "--purity", "1.5"),
        ("--fundamentals", "220", "--max-notes", "4", "--target-notes", "6"),
    ],
)
def test_cli_invalid_input_exits(tmp_path, extra):
    with pytest.raises(SystemExit) as exc:
        _run(tmp_path, *extra)
    assert exc.value.code == 1


def test_cli_bad_settings_exit(tmp_path):
    settings = tmp_path / "settings.json"
    settings.write_text('{"scale_search": {"coarse_step": 0}}')
    with pytest.raises(SystemExit) as exc:
        cli.run_cli(["--settings-file", str(settings), "--fundamentals", "220"])
    assert exc.value.code == 1


def test_format_scale_marks_backfilled_notes():
    text = cli.format_scale(
        [ScaleNote(220.0, 1.0, 0.0), ScaleNote(233.08, 1.0595, 0.5, backfilled=True)]
    )
    lines = text.splitlines()
    assert len(lines) == 3
    assert "220.00" in lines[1]
    assert lines[2].endswith(" *")
    assert not lines[1].endswith("*")


@pytest.mark.parametrize(
    "content",
    ['{"scale_search": {"coarse_step": null}}', '{"scale_search": 5}'],
)
def test_cli_malformed_settings_exit(tmp_path, content):
    """Settings with the wrong JSON types are reported, not raised."""

    settings = tmp_path / "settings.json"
    settings.write_text(content)
    with pytest.raises(SystemExit) as exc:
        cli.run_cli(["--settings-file", str(settings), "--fundamentals", "220"])
    assert exc.value.code == 1
