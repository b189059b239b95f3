from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from studyquiz.core.config import settings
from studyquiz.core.logging_config import configure_logging
from studyquiz.db.session_store import JsonSessionStore, SessionStoreError
from studyquiz.models.quiz import QuizItem
from studyquiz.models.quiz_sessions import QuizSession, SessionReport
from studyquiz.services.content_service import (
    ContentCatalog,
    NotesDirectoryError,
    UnknownTopicError,
    load_notes
)
from studyquiz.services.quiz_session_service import QuizSessionService, SessionNotFoundError

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARSE_ERROR = 2

QUIT_COMMANDS = {"q", "quit", "exit"}


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def _print_document_errors(catalog: ContentCatalog) -> None:
    for error in catalog.errors:
        location = f"{error.path}:{error.line}" if error.line else error.path
        _err(f"{location}: {error.kind}: {error.message}")


def _format_accuracy(accuracy: Optional[float]) -> str:
    return "-" if accuracy is None else f"{accuracy * 100:.1f}%"


def format_report(report: SessionReport) -> str:
    """Per-topic accuracy table; unattempted topics show '-'"""
    width = max([len("Topic"), len("Overall")] + [len(t.topic) for t in report.topics])
    header = f"{'Topic':<{width}}  {'Items':>5}  {'Answered':>8}  {'Correct':>7}  {'Accuracy':>8}"
    lines = [f"Session {report.session_id} ({report.status})", header, "-" * len(header)]

    for t in report.topics:
        lines.append(
            f"{t.topic:<{width}}  {t.total_items:>5}  {t.attempted:>8}  {t.correct:>7}  "
            f"{_format_accuracy(t.accuracy):>8}"
        )

    total_items = sum(t.total_items for t in report.topics)
    lines.append("-" * len(header))
    lines.append(
        f"{'Overall':<{width}}  {total_items:>5}  {report.attempted:>8}  {report.correct:>7}  "
        f"{_format_accuracy(report.overall_accuracy):>8}"
    )
    return "\n".join(lines)


def _print_item(item: QuizItem, position: int, total: int) -> None:
    print()
    print(f"[{position}/{total}] ({item.topic})")
    print(item.prompt)
    for choice in item.choices:
        print(f"  {choice.label}) {choice.text}")


def _ask(item: QuizItem) -> Optional[str]:
    """Prompt until a valid label is given; None means quit"""
    labels = "/".join(c.label for c in item.choices)
    while True:
        try:
            raw = input(f"Answer [{labels}, q to quit]: ").strip()
        except EOFError:
            return None

        if raw.lower() in QUIT_COMMANDS:
            return None

        label = raw.upper()
        if item.choice(label) is not None:
            return label
        print(f"Please answer one of {labels}.")


def _load_catalog(notes_dir: str) -> Optional[ContentCatalog]:
    try:
        return load_notes(notes_dir, settings.notes_glob)
    except NotesDirectoryError as e:
        _err(str(e))
        return None


def cmd_run(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args.notes_dir)
    if catalog is None:
        return EXIT_ERROR

    if catalog.errors:
        _print_document_errors(catalog)
        if not args.allow_invalid:
            _err(f"{len(catalog.errors)} documents failed to parse; use --allow-invalid to skip them.")
            return EXIT_PARSE_ERROR

    service = QuizSessionService(store=JsonSessionStore(args.sessions_dir), catalog=catalog)

    try:
        session = service.start_session(
            topic=args.topic,
            order=args.order,
            seed=args.seed,
            limit=args.limit
        )
    except (UnknownTopicError, ValueError, SessionStoreError) as e:
        _err(str(e))
        return EXIT_ERROR

    print(f"Session {session.id}: {len(session.items)} questions ({session.order}"
          + (f", seed {session.seed})" if session.seed is not None else ")"))

    try:
        _ask_all(service, session)
        report = service.get_report(session.id)
    except SessionStoreError as e:
        _err(str(e))
        return EXIT_ERROR

    print()
    print(format_report(report))
    return EXIT_OK


def _ask_all(service: QuizSessionService, session: QuizSession) -> None:
    total = len(session.items)
    for position, item in enumerate(session.items, start=1):
        _print_item(item, position, total)

        label = _ask(item)
        if label is None:
            print()
            print("Stopping early.")
            service.complete_session(session.id)
            return

        attempt, item, session = service.submit_answer(session.id, item.id, label)
        if attempt.is_correct:
            print("Correct!")
        else:
            print(f"Incorrect. The answer is {item.correct_label}.")
        if item.explanation:
            print(item.explanation)


def cmd_report(args: argparse.Namespace) -> int:
    service = QuizSessionService(store=JsonSessionStore(args.sessions_dir))
    try:
        report = service.get_report(args.session)
    except (SessionNotFoundError, SessionStoreError) as e:
        _err(str(e))
        return EXIT_ERROR

    print(format_report(report))
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args.notes_dir)
    if catalog is None:
        return EXIT_ERROR

    _print_document_errors(catalog)
    print(
        f"{len(catalog.items)} quiz items in {len(catalog.topic_names)} topics, "
        f"{len(catalog.errors)} documents with errors"
    )
    return EXIT_PARSE_ERROR if catalog.errors else EXIT_OK


def cmd_topics(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args.notes_dir)
    if catalog is None:
        return EXIT_ERROR

    for summary in catalog.summaries():
        print(f"{summary.name}\t{summary.itemCount}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="quiz", description="Self-test quizzes from Markdown study notes.")
    p.add_argument("--notes-dir", default=settings.notes_dir, help="Root folder of the notes.")
    p.add_argument("--sessions-dir", default=settings.sessions_dir, help="Where sessions are stored.")
    p.add_argument("--log-level", default=settings.log_level, help="Logging level (INFO, DEBUG, WARNING).")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("run", help="Run an interactive quiz session.")
    r.add_argument("--topic", default=None, help="Only ask items of this topic.")
    r.add_argument("--order", choices=["sequential", "shuffled"], default=settings.default_order)
    r.add_argument("--seed", type=int, default=settings.shuffle_seed, help="Seed for shuffled order.")
    r.add_argument("--limit", type=int, default=None, help="Ask at most N questions.")
    r.add_argument("--allow-invalid", action="store_true", help="Skip documents that fail to parse.")
    r.set_defaults(func=cmd_run)

    rep = sub.add_parser("report", help="Print the per-topic report of a session.")
    rep.add_argument("--session", required=True, help="Session ID.")
    rep.set_defaults(func=cmd_report)

    v = sub.add_parser("validate", help="Check every document for malformed quiz blocks.")
    v.set_defaults(func=cmd_validate)

    t = sub.add_parser("topics", help="List topics and quiz item counts.")
    t.set_defaults(func=cmd_topics)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
