"""Tests for the command line interface."""

import json

from click.testing import CliRunner

from docimport.cli.main import cli, load_config


def test_import_and_inspect(tmp_path):
    """Importing a markdown file prints the result and writes the state."""
    source = tmp_path / "notes.md"
    source.write_text("# Meeting Notes\n\nBudget is $5<br>approved", encoding="utf-8")
    state_path = tmp_path / "notes.state"

    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "import",
            str(source),
            "--attachments-dir",
            str(tmp_path / "attachments"),
            "--state-out",
            str(state_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Title: Meeting Notes" in result.output
    assert "Budget is \\$5\\napproved" in result.output
    assert state_path.exists()

    inspected = runner.invoke(cli, ["inspect", str(state_path)])
    assert inspected.exit_code == 0, inspected.output
    assert '"type": "doc"' in inspected.output
    assert "Budget is $5" in inspected.output


def test_import_too_large(tmp_path):
    """Oversized documents fail with a readable error."""
    source = tmp_path / "big.md"
    source.write_text("Some content", encoding="utf-8")

    result = CliRunner().invoke(
        cli,
        [
            "import",
            str(source),
            "--max-state-length",
            "5",
            "--attachments-dir",
            str(tmp_path / "attachments"),
        ],
    )

    assert result.exit_code != 0
    assert 'The document "big" is too large to import' in result.output


def test_inspect_rejects_invalid_state(tmp_path):
    """Invalid state files fail cleanly."""
    bogus = tmp_path / "bogus.state"
    bogus.write_bytes(b"definitely not a state")

    result = CliRunner().invoke(cli, ["inspect", str(bogus)])
    assert result.exit_code != 0


def test_load_config_overrides(tmp_path):
    """Command line values override the config file; None values are ignored."""
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"max_title_length": 50, "zstd_level": 5}))

    config = load_config(str(config_path), max_title_length=20, max_state_length=None)
    assert config.max_title_length == 20
    assert config.zstd_level == 5
    assert config.max_state_length == 1500 * 1024


def test_import_rejects_zero_title_length(tmp_path):
    """A title limit below one is reported as a configuration error."""
    source = tmp_path / "notes.md"
    source.write_text("Body", encoding="utf-8")

    result = CliRunner().invoke(cli, ["import", str(source), "--max-title-length", "0"])

    assert result.exit_code != 0
    assert "max_title_length must be at least 1" in result.output
