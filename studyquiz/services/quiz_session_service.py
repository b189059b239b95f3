"""
Quiz Session Service
Session operations by ID on top of the quiz engine and a session store
"""
import logging
from typing import Optional, Tuple

from studyquiz.models.quiz import QuizItem
from studyquiz.models.quiz_sessions import (
    AttemptResult,
    OrderPolicy,
    QuizSession,
    SessionReport
)
from studyquiz.services.content_service import ContentCatalog
from studyquiz.services.quiz_engine import QuizEngine, SessionError

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when no session exists with the given ID"""
    pass


class QuizSessionService:
    """Service class for quiz session operations"""

    def __init__(
        self,
        store,
        catalog: Optional[ContentCatalog] = None,
        engine: Optional[QuizEngine] = None
    ):
        """
        Initialize quiz session service

        Args:
            store: Session store (InMemorySessionStore or JsonSessionStore)
            catalog: Loaded notes; only needed to start sessions
            engine: Quiz engine (a new one by default)
        """
        self.store = store
        self.catalog = catalog
        self.engine = engine or QuizEngine()

    def start_session(
        self,
        topic: Optional[str] = None,
        order: OrderPolicy = "sequential",
        seed: Optional[int] = None,
        limit: Optional[int] = None
    ) -> QuizSession:
        """
        Create and store a new session over one topic (or all items)

        Raises:
            UnknownTopicError: If the topic is not in the catalog
            ValueError: If there are no items to ask
        """
        if self.catalog is None:
            raise ValueError("No content loaded; cannot start a session")

        items = self.catalog.items_for(topic)
        if not items:
            raise ValueError(f"No quiz items found for topic '{topic}'" if topic else "No quiz items loaded")

        session = self.engine.start(items, order_policy=order, seed=seed, limit=limit)
        self.store.save(session)
        return session

    def get_session(self, session_id: str) -> QuizSession:
        """
        Raises:
            SessionNotFoundError: If the session does not exist
        """
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def submit_answer(
        self,
        session_id: str,
        item_id: str,
        chosen_label: str
    ) -> Tuple[AttemptResult, QuizItem, QuizSession]:
        """
        Record an answer and persist the session

        Returns:
            Tuple of (attempt, answered item, updated session)

        Raises:
            SessionNotFoundError: If the session does not exist
            SessionError: UnknownItem, AlreadyAnswered or SessionClosed
        """
        session = self.get_session(session_id)

        try:
            attempt = self.engine.answer(session, item_id, chosen_label)
        except SessionError as e:
            logger.warning(f"⚠️ Answer rejected for session {session_id}: {e}")
            raise

        self.store.save(session)
        return attempt, session.get_item(item_id), session

    def complete_session(self, session_id: str) -> SessionReport:
        """
        Finish a session and return its report

        Raises:
            SessionNotFoundError: If the session does not exist
            SessionClosed: If the session is already completed
        """
        session = self.get_session(session_id)
        self.engine.finish(session)
        self.store.save(session)
        return self.engine.report(session)

    def get_report(self, session_id: str) -> SessionReport:
        """Report for a stored session, active or completed"""
        return self.engine.report(self.get_session(session_id))

    def remaining_count(self, session: QuizSession) -> int:
        return len(self.engine.remaining(session))

