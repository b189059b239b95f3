"""
Tests for session ordering, answering, completion and reports.
"""
import pytest

from studyquiz.models.quiz import Choice, QuizItem
from studyquiz.services.quiz_engine import (
    AlreadyAnswered,
    QuizEngine,
    SessionClosed,
    SessionError,
    UnknownItem,
)
from studyquiz.utils.quiz_parser import parse_document


def make_item(item_id, topic="state", correct="B"):
    return QuizItem(
        id=item_id,
        topic=topic,
        prompt=f"Question {item_id}?",
        choices=[Choice(label="A", text="first"), Choice(label="B", text="second")],
        correct_label=correct,
    )


@pytest.fixture
def engine():
    return QuizEngine()


@pytest.fixture
def items():
    return [
        make_item("state#1"),
        make_item("state#2", correct="A"),
        make_item("modules#1", topic="modules"),
        make_item("modules#2", topic="modules"),
    ]


def test_count_index_example(engine):
    items = parse_document(
        "Q: What does count.index give? A) name B) 0-based index Answer: B",
        topic="meta-arguments",
    )
    session = engine.start(items, "sequential")

    attempt = engine.answer(session, items[0].id, "B")
    assert attempt.is_correct is True

    with pytest.raises(AlreadyAnswered):
        engine.answer(session, items[0].id, "A")
    assert session.status == "completed"


def test_already_answered(engine, items):
    session = engine.start(items, "sequential")
    engine.answer(session, "state#1", "B")

    with pytest.raises(AlreadyAnswered):
        engine.answer(session, "state#1", "A")

    assert len(session.attempts) == 1


def test_unknown_item(engine, items):
    session = engine.start(items[:2], "sequential")

    with pytest.raises(UnknownItem):
        engine.answer(session, "modules#1", "B")


def test_sequential_order_is_preserved(engine, items):
    session = engine.start(items, "sequential")

    assert [i.id for i in session.items] == [i.id for i in items]
    assert session.seed is None


def test_shuffled_order_is_reproducible(engine):
    items = [make_item(f"state#{n}") for n in range(1, 21)]

    first = engine.start(items, "shuffled", seed=1234)
    second = engine.start(items, "shuffled", seed=1234)

    assert [i.id for i in first.items] == [i.id for i in second.items]
    assert sorted(i.id for i in first.items) == sorted(i.id for i in items)
    assert first.seed == 1234


def test_shuffled_without_seed_records_one(engine, items):
    session = engine.start(items, "shuffled")
    replay = engine.start(items, "shuffled", seed=session.seed)

    assert session.seed is not None
    assert [i.id for i in replay.items] == [i.id for i in session.items]


def test_limit_applies_after_ordering(engine, items):
    session = engine.start(items, "sequential", limit=2)

    assert [i.id for i in session.items] == ["state#1", "state#2"]


def test_invalid_start(engine, items):
    with pytest.raises(ValueError):
        engine.start([], "sequential")
    with pytest.raises(ValueError):
        engine.start(items, "random")
    with pytest.raises(ValueError):
        engine.start(items, "sequential", limit=0)


def test_exact_label_match(engine, items):
    session = engine.start(items, "sequential")

    assert engine.answer(session, "state#1", "b").is_correct is False
    assert engine.answer(session, "state#2", "A").is_correct is True


def test_completes_when_all_answered(engine, items):
    session = engine.start(items[:2], "sequential")
    engine.answer(session, "state#1", "B")
    assert session.status == "active"

    engine.answer(session, "state#2", "B")

    assert session.status == "completed"
    assert session.finished_at is not None
    assert engine.remaining(session) == []


def test_finish_closes_session(engine, items):
    session = engine.start(items, "sequential")
    engine.finish(session)

    assert session.status == "completed"
    with pytest.raises(SessionClosed):
        engine.answer(session, "state#1", "B")
    with pytest.raises(SessionClosed):
        engine.finish(session)


def test_remaining_keeps_order(engine, items):
    session = engine.start(items, "sequential")
    engine.answer(session, "state#2", "A")

    assert [i.id for i in engine.remaining(session)] == ["state#1", "modules#1", "modules#2"]


def test_report_without_attempts(engine, items):
    report = engine.report(engine.start(items, "sequential"))

    assert report.attempted == 0
    assert report.overall_accuracy is None
    assert all(t.accuracy is None for t in report.topics)


def test_report_per_topic(engine, items):
    session = engine.start(items, "sequential")
    engine.answer(session, "state#1", "B")
    engine.answer(session, "state#2", "B")
    engine.answer(session, "modules#1", "B")

    report = engine.report(session)
    by_topic = {t.topic: t for t in report.topics}

    assert [t.topic for t in report.topics] == ["state", "modules"]
    assert by_topic["state"].attempted == 2
    assert by_topic["state"].correct == 1
    assert by_topic["state"].accuracy == 0.5
    assert by_topic["modules"].total_items == 2
    assert by_topic["modules"].accuracy == 1.0
    assert report.attempted == 3
    assert report.correct == 2
    assert report.overall_accuracy == 2 / 3


def test_report_topic_with_no_attempts_is_none(engine, items):
    session = engine.start(items, "sequential")
    engine.answer(session, "state#1", "A")

    by_topic = {t.topic: t for t in engine.report(session).topics}

    assert by_topic["state"].accuracy == 0.0
    assert by_topic["modules"].accuracy is None


def test_session_errors_share_a_base_class():
    for error in (UnknownItem, AlreadyAnswered, SessionClosed):
        assert issubclass(error, SessionError)


def test_sessions_are_independent(engine, items):
    first = engine.start(items, "sequential")
    second = engine.start(items, "sequential")

    engine.answer(first, "state#1", "B")

    assert second.attempts == []
    engine.answer(second, "state#1", "A")
    assert first.attempts[0].is_correct is True
