"""
Tests for the quiz command line.
"""
import re

import pytest

from studyquiz.cli import EXIT_ERROR, EXIT_OK, EXIT_PARSE_ERROR, build_parser, main
from studyquiz.core.config import settings
from studyquiz.db.session_store import JsonSessionStore, SessionStoreError


@pytest.fixture
def answers(monkeypatch):
    """Feed answers to input(); EOFError once they run out"""
    def feed(*values):
        queue = list(values)

        def fake_input(prompt=""):
            if not queue:
                raise EOFError
            return queue.pop(0)

        monkeypatch.setattr("builtins.input", fake_input)
    return feed


def _args(notes_dir, sessions_dir, *rest):
    return ["--notes-dir", str(notes_dir), "--sessions-dir", str(sessions_dir), *rest]


def _session_id(output):
    return re.search(r"Session (session_\w+)", output).group(1)


def test_run_full_session(notes_dir, sessions_dir, answers, capsys):
    answers("b", "C")

    code = main(_args(notes_dir, sessions_dir, "run", "--topic", "state", "--order", "sequential"))

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "Correct!" in out
    assert "Incorrect. The answer is A." in out
    assert "50.0%" in out
    assert "(completed)" in out


def test_run_reprompts_on_invalid_label(notes_dir, sessions_dir, answers, capsys):
    answers("Z", "B", "A")

    code = main(_args(notes_dir, sessions_dir, "run", "--topic", "state"))

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "Please answer one of A/B/C/D." in out
    assert "100.0%" in out


def test_run_quit_early_then_report(notes_dir, sessions_dir, answers, capsys):
    answers("B", "q")

    assert main(_args(notes_dir, sessions_dir, "run", "--topic", "state")) == EXIT_OK
    session_id = _session_id(capsys.readouterr().out)

    code = main(_args(notes_dir, sessions_dir, "report", "--session", session_id))

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "(completed)" in out
    state_row = next(line for line in out.splitlines() if line.startswith("state"))
    assert state_row.split() == ["state", "2", "1", "1", "100.0%"]


def test_run_shuffled_prints_seed(notes_dir, sessions_dir, answers, capsys):
    answers()

    code = main(_args(notes_dir, sessions_dir, "run", "--order", "shuffled", "--seed", "5"))

    assert code == EXIT_OK
    assert "shuffled, seed 5" in capsys.readouterr().out


def test_run_fails_on_parse_error(broken_notes_dir, sessions_dir, answers, capsys):
    answers("B", "A")

    code = main(_args(broken_notes_dir, sessions_dir, "run", "--topic", "state"))

    err = capsys.readouterr().err
    assert code == EXIT_PARSE_ERROR
    assert "providers/azurerm.md:7: MalformedBlock" in err


def test_run_allow_invalid(broken_notes_dir, sessions_dir, answers, capsys):
    answers("B", "A")

    code = main(_args(broken_notes_dir, sessions_dir, "run", "--topic", "state", "--allow-invalid"))

    assert code == EXIT_OK
    assert "100.0%" in capsys.readouterr().out


def test_run_unknown_topic(notes_dir, sessions_dir, capsys):
    code = main(_args(notes_dir, sessions_dir, "run", "--topic", "modules"))

    assert code == EXIT_ERROR
    assert "Unknown topic 'modules'" in capsys.readouterr().err


def test_report_unknown_session(notes_dir, sessions_dir, capsys):
    code = main(_args(notes_dir, sessions_dir, "report", "--session", "session_000000000000"))

    assert code == EXIT_ERROR
    assert "Session not found" in capsys.readouterr().err


def test_validate(notes_dir, broken_notes_dir, sessions_dir, capsys):
    assert main(_args(broken_notes_dir, sessions_dir, "validate")) == EXIT_PARSE_ERROR
    assert "1 documents with errors" in capsys.readouterr().out


def test_validate_clean_notes(notes_dir, sessions_dir, capsys):
    assert main(_args(notes_dir, sessions_dir, "validate")) == EXIT_OK
    assert "3 quiz items in 3 topics" in capsys.readouterr().out


def test_topics(notes_dir, sessions_dir, capsys):
    assert main(_args(notes_dir, sessions_dir, "topics")) == EXIT_OK

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["intro\t0", "meta-arguments\t1", "state\t2"]


def test_missing_notes_dir(tmp_path, sessions_dir, capsys):
    assert main(_args(tmp_path / "missing", sessions_dir, "topics")) == EXIT_ERROR


def test_run_unwritable_sessions_dir(notes_dir, tmp_path, answers, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    answers("B", "A")

    code = main(_args(notes_dir, blocker / "sessions", "run", "--topic", "state"))

    assert code == EXIT_ERROR
    assert "Failed to save session" in capsys.readouterr().err


def test_run_store_failure_while_answering(notes_dir, sessions_dir, answers, capsys, monkeypatch):
    saves = []

    def failing_save(self, session):
        saves.append(session.id)
        if len(saves) > 1:
            raise SessionStoreError("Failed to save session: disk full")

    monkeypatch.setattr(JsonSessionStore, "save", failing_save)
    answers("B", "A")

    code = main(_args(notes_dir, sessions_dir, "run", "--topic", "state"))

    assert code == EXIT_ERROR
    assert "disk full" in capsys.readouterr().err


def test_log_level_defaults_to_settings(monkeypatch):
    monkeypatch.setattr(settings, "log_level", "DEBUG")

    args = build_parser().parse_args(["topics"])

    assert args.log_level == "DEBUG"
