"""End-to-end tests for the command line, run against the local cache."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from granola_cli.cli import cli, main


@pytest.fixture(autouse=True)
def granola_env(monkeypatch, sample_cache_path: Path, tmp_path: Path):
    monkeypatch.setenv("GRANOLA_CACHE_PATH", str(sample_cache_path))
    monkeypatch.setenv("GRANOLA_CREDENTIALS", str(tmp_path / "no-credentials.json"))


def invoke(*args: str):
    result = CliRunner().invoke(cli, list(args))
    assert result.exit_code == 0, result.output
    return result


def invoke_json(*args: str):
    return json.loads(invoke("-o", "json", *args).stdout)


def exit_code(capsys, *args: str) -> tuple[int, str]:
    with pytest.raises(SystemExit) as excinfo:
        main(list(args))
    return excinfo.value.code, capsys.readouterr().err.strip()


class TestMeetingCommands:
    def test_list_json(self):
        docs = invoke_json("meeting", "list")
        assert [d["id"] for d in docs] == ["c3", "a1", "d4"]
        assert docs[1]["notes_markdown"] == "Discussed the roadmap"

    def test_list_falls_back_without_credentials(self):
        """Auto mode with no token quietly reads the cache."""
        docs = invoke_json("--source", "auto", "meeting", "list", "--limit", "1")
        assert [d["id"] for d in docs] == ["c3"]

    def test_zero_limit(self):
        assert invoke_json("meeting", "list", "--limit", "0") == []

    def test_list_jsonl(self):
        lines = invoke("-o", "json", "--jsonl", "meeting", "list").stdout.splitlines()
        assert [json.loads(line)["id"] for line in lines] == ["c3", "a1", "d4"]

    def test_list_markdown_filters(self):
        out = invoke(
            "-o", "markdown", "meeting", "list", "--folder", "Sal", "--since", "2024-01-01"
        ).stdout
        assert out.strip() == "- Sales pipeline review (c3) — 2024-02-01T09:00:00Z"

    def test_search(self):
        docs = invoke_json("--no-network", "meeting", "search", "roadmap")
        assert [d["id"] for d in docs] == ["a1"]

    def test_view(self):
        out = invoke("-o", "markdown", "meeting", "view", "standup").stdout
        assert out.startswith("# Standup")
        assert "Discussed the roadmap" in out
        assert "- Ship the beta" in out

    def test_view_json(self):
        data = invoke_json("meeting", "view", "a1")
        assert data["document"]["title"] == "Standup"
        assert data["summary"] == "## Roadmap\n- Ship the beta"

    def test_notes(self):
        data = invoke_json("meeting", "notes", "Sales")
        assert data == {"id": "c3", "notes": "Q1 targets"}

    def test_transcript(self):
        out = invoke("-o", "markdown", "meeting", "transcript", "a1").stdout
        assert out.splitlines() == ["[00:00:01] You: hi", "Them: hello"]

    def test_export(self):
        out = invoke("meeting", "export", "a1").stdout
        assert out.startswith("---\ngranola_id: a1\n")
        assert "## Transcript\n[00:00:01] You: hi" in out


class TestOtherCommands:
    def test_folder_list(self):
        folders = invoke_json("folder", "list")
        assert [(f["title"], f["note_count"]) for f in folders] == [
            ("engineering", 1),
            ("Sales", 2),
        ]

    def test_folder_view(self):
        docs = invoke_json("folder", "view", "engineering")
        assert [d["id"] for d in docs] == ["a1"]

    def test_people_search_markdown(self):
        out = invoke("-o", "markdown", "people", "search", "alice").stdout
        assert out.strip() == "- Alice (alice@example.com)"

    def test_workspace_list(self):
        out = invoke("-o", "markdown", "workspace", "list").stdout
        assert out.strip() == "- Acme (ws1)"

    def test_shared(self):
        assert [d["id"] for d in invoke_json("shared")] == ["s1"]

    def test_cache_status(self, sample_cache_path: Path):
        data = json.loads(invoke("cache").stdout)
        assert data["path"] == str(sample_cache_path)
        assert data["exists"] is True

    def test_whoami(self, monkeypatch, credentials_path: Path):
        monkeypatch.setenv("GRANOLA_CREDENTIALS", str(credentials_path))
        out = invoke("-o", "markdown", "whoami").stdout
        assert out.splitlines() == ["Name: Me", "Email: me@example.com"]

    def test_whoami_without_credentials(self):
        assert invoke("-o", "markdown", "whoami").stdout.strip() == (
            "No user info available."
        )


class TestExitCodes:
    def test_meeting_not_found(self, capsys):
        code, err = exit_code(capsys, "meeting", "view", "retro")
        assert code == 4
        assert err == "Meeting not found for: retro"

    def test_no_transcript(self, capsys):
        code, err = exit_code(capsys, "meeting", "transcript", "Sales")
        assert (code, err) == (4, "No transcript available for: Sales")

    def test_no_summary(self, capsys):
        code, err = exit_code(capsys, "meeting", "enhanced", "c3")
        assert (code, err) == (4, "No summary available for: c3")

    def test_folder_not_found(self, capsys):
        code, err = exit_code(capsys, "folder", "view", "Legal")
        assert (code, err) == (4, "Folder not found: Legal")

    def test_invalid_output(self, capsys):
        code, err = exit_code(capsys, "-o", "yaml", "meeting", "list")
        assert (code, err) == (5, "Invalid output format: yaml")

    def test_invalid_source(self, capsys):
        code, _ = exit_code(capsys, "--source", "web", "meeting", "list")
        assert code == 5

    def test_sync_offline(self, capsys):
        code, err = exit_code(capsys, "--no-network", "sync")
        assert code == 5
        assert "Network disabled" in err

    def test_api_mode_without_token(self, capsys):
        code, err = exit_code(capsys, "--source", "api", "meeting", "list")
        assert code == 2
        assert "Authentication required" in err

    def test_sync_without_token(self, capsys):
        code, _ = exit_code(capsys, "sync")
        assert code == 2

    def test_missing_cache(self, capsys, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("GRANOLA_CACHE_PATH", str(tmp_path / "gone.json"))
        code, err = exit_code(capsys, "--no-network", "meeting", "list")
        assert code == 1
        assert err.startswith("Granola cache not found at")

    @pytest.mark.parametrize(
        "args",
        [
            ("meeting", "list", "--limit", "abc"),
            ("meeting", "list", "--limit", "-1"),
            ("meeting", "search", "roadmap", "--limit", "-5"),
            ("meeting", "list", "--bogus"),
            ("--log-level", "loud", "meeting", "list"),
        ],
    )
    def test_usage_errors_are_invalid_arguments(self, capsys, args):
        code, err = exit_code(capsys, "--no-network", *args)
        assert code == 5
        assert "Error:" in err

    def test_invalid_timeout_setting(self, capsys, monkeypatch):
        monkeypatch.setenv("GRANOLA_TIMEOUT", "soon")
        code, err = exit_code(capsys, "--no-network", "meeting", "list")
        assert code == 5
        assert err.startswith("Invalid configuration: timeout:")

    def test_invalid_log_level_setting(self, capsys, monkeypatch):
        monkeypatch.setenv("GRANOLA_LOG_LEVEL", "loud")
        code, err = exit_code(capsys, "--no-network", "meeting", "list")
        assert code == 5
        assert err.startswith("Invalid configuration: log_level:")

    def test_log_level_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("GRANOLA_LOG_LEVEL", "Warning")
        assert invoke_json("--log-level", "ERROR", "meeting", "list", "--limit", "0") == []
