"""
Quiz Engine
Runs quiz sessions: ordering, answer recording, completion and scoring
FILE: studyquiz/services/quiz_engine.py
"""
import logging
import random
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from studyquiz.models.quiz import QuizItem
from studyquiz.models.quiz_sessions import (
    AttemptResult,
    OrderPolicy,
    QuizSession,
    SessionReport,
    TopicAccuracy
)

logger = logging.getLogger(__name__)

ORDER_POLICIES = ("sequential", "shuffled")


# ==================== CUSTOM EXCEPTIONS ====================

class SessionError(Exception):
    """Base exception for session operations; the caller may retry"""
    pass


class UnknownItem(SessionError):
    """Raised when an item is not part of the session"""
    pass


class AlreadyAnswered(SessionError):
    """Raised when an item already has an answer in the session"""
    pass


class SessionClosed(SessionError):
    """Raised when a completed session is changed"""
    pass


def _accuracy(correct: int, attempted: int) -> Optional[float]:
    return correct / attempted if attempted else None


# ==================== QUIZ ENGINE ====================

class QuizEngine:
    """
    Stateless session runner

    All state lives on the QuizSession it is handed, so one engine can serve
    any number of independent sessions.
    """

    def start(
        self,
        items: Sequence[QuizItem],
        order_policy: OrderPolicy = "sequential",
        seed: Optional[int] = None,
        limit: Optional[int] = None
    ) -> QuizSession:
        """
        Start a new session

        Args:
            items: Quiz items to ask
            order_policy: "sequential" keeps the given order, "shuffled"
                permutes it with random.Random(seed)
            seed: Shuffle seed; one is generated and stored when omitted
            limit: Keep only the first N items after ordering

        Returns:
            New active QuizSession

        Raises:
            ValueError: If items is empty or the policy is unknown
        """
        if order_policy not in ORDER_POLICIES:
            raise ValueError(
                f"Invalid order policy: {order_policy}. Must be one of: {list(ORDER_POLICIES)}"
            )

        ordered = list(items)
        if not ordered:
            raise ValueError("Cannot start a session without quiz items")

        if order_policy == "shuffled":
            if seed is None:
                seed = random.SystemRandom().randrange(2 ** 32)
            random.Random(seed).shuffle(ordered)

        if limit is not None:
            if limit < 1:
                raise ValueError(f"limit must be positive, got {limit}")
            ordered = ordered[:limit]

        session = QuizSession(
            order=order_policy,
            seed=seed if order_policy == "shuffled" else None,
            items=ordered
        )

        logger.info(
            f"✅ Started session {session.id} with {len(ordered)} items "
            f"(order={order_policy}, seed={session.seed})"
        )
        return session

    def answer(self, session: QuizSession, item_id: str, chosen_label: str) -> AttemptResult:
        """
        Record an answer for one item

        Raises:
            UnknownItem: If item_id is not in the session
            AlreadyAnswered: If the item was answered before in this session
            SessionClosed: If the session is completed
        """
        item = session.get_item(item_id)
        if item is None:
            raise UnknownItem(f"Item {item_id} is not part of session {session.id}")

        if item_id in session.answered_ids():
            raise AlreadyAnswered(f"Item {item_id} was already answered in session {session.id}")

        if session.status == "completed":
            raise SessionClosed(f"Session {session.id} is completed")

        attempt = AttemptResult(
            item_id=item_id,
            topic=item.topic,
            chosen_label=chosen_label,
            is_correct=chosen_label == item.correct_label
        )
        session.attempts.append(attempt)

        logger.info(
            f"✅ Session {session.id}: {item_id} answered {chosen_label} "
            f"({'✓' if attempt.is_correct else '✗'})"
        )

        if len(session.attempts) == len(session.items):
            self._complete(session)

        return attempt

    def finish(self, session: QuizSession) -> QuizSession:
        """
        End a session early

        Raises:
            SessionClosed: If the session is already completed
        """
        if session.status == "completed":
            raise SessionClosed(f"Session {session.id} is already completed")

        self._complete(session)
        return session

    def remaining(self, session: QuizSession) -> List[QuizItem]:
        """Items not answered yet, in presentation order"""
        answered = session.answered_ids()
        return [item for item in session.items if item.id not in answered]

    def report(self, session: QuizSession) -> SessionReport:
        """
        Per-topic and overall accuracy

        Accuracy is correct / attempted, or None when nothing was attempted.
        """
        totals: Dict[str, int] = {}
        for item in session.items:
            totals[item.topic] = totals.get(item.topic, 0) + 1

        attempted: Dict[str, int] = {topic: 0 for topic in totals}
        correct: Dict[str, int] = {topic: 0 for topic in totals}
        for attempt in session.attempts:
            attempted[attempt.topic] = attempted.get(attempt.topic, 0) + 1
            if attempt.is_correct:
                correct[attempt.topic] = correct.get(attempt.topic, 0) + 1

        topics = [
            TopicAccuracy(
                topic=topic,
                total_items=total,
                attempted=attempted[topic],
                correct=correct[topic],
                accuracy=_accuracy(correct[topic], attempted[topic])
            )
            for topic, total in totals.items()
        ]

        overall_attempted = len(session.attempts)
        overall_correct = sum(1 for a in session.attempts if a.is_correct)

        return SessionReport(
            session_id=session.id,
            status=session.status,
            topics=topics,
            attempted=overall_attempted,
            correct=overall_correct,
            overall_accuracy=_accuracy(overall_correct, overall_attempted)
        )

    def _complete(self, session: QuizSession) -> None:
        session.status = "completed"
        session.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"🏁 Session {session.id} completed "
            f"({len(session.attempts)}/{len(session.items)} answered)"
        )
