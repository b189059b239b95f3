"""
Session Storage
In-memory and JSON-file stores for quiz sessions
FILE: studyquiz/db/session_store.py
"""
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from studyquiz.models.quiz_sessions import QuizSession

logger = logging.getLogger(__name__)

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


class SessionStoreError(Exception):
    """Raised when a session cannot be written or read back"""
    pass


class InMemorySessionStore:
    """
    Sessions kept in process memory

    Completed sessions are dropped once they have been finished for longer
    than completed_ttl seconds; active sessions are kept. A TTL of None keeps
    everything for the lifetime of the process.
    """

    def __init__(self, completed_ttl: Optional[float] = None):
        self._sessions: Dict[str, QuizSession] = {}
        self.completed_ttl = completed_ttl

    def _evict_expired(self) -> None:
        if self.completed_ttl is None:
            return
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.completed_ttl)
        expired = [
            session_id for session_id, session in self._sessions.items()
            if session.status == "completed"
            and session.finished_at is not None
            and session.finished_at < cutoff
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info(f"🧹 Dropped {len(expired)} expired completed sessions")

    def save(self, session: QuizSession) -> None:
        self._evict_expired()
        self._sessions[session.id] = session

    def get(self, session_id: str) -> Optional[QuizSession]:
        self._evict_expired()
        return self._sessions.get(session_id)

    def list_ids(self) -> List[str]:
        return sorted(self._sessions)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None


class JsonSessionStore:
    """
    One <session_id>.json file per session

    Sessions carry their own items, so a stored session can be reported on
    without the notes it was built from.
    """

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, session_id: str) -> Path:
        if not _SESSION_ID_RE.match(session_id):
            raise SessionStoreError(f"Invalid session id: {session_id!r}")
        return self.directory / f"{session_id}.json"

    def save(self, session: QuizSession) -> None:
        path = self._path(session.id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(session.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(path)
            logger.debug(f"✅ Saved session {session.id} to {path}")
        except OSError as e:
            logger.error(f"❌ Failed to save session {session.id}: {e}")
            raise SessionStoreError(f"Failed to save session: {str(e)}")

    def get(self, session_id: str) -> Optional[QuizSession]:
        path = self._path(session_id)
        if not path.is_file():
            logger.warning(f"⚠️ Session not found: {session_id}")
            return None

        try:
            return QuizSession.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.error(f"❌ Failed to load session {session_id}: {e}")
            raise SessionStoreError(f"Failed to load session: {str(e)}")

    def list_ids(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))

    def delete(self, session_id: str) -> bool:
        path = self._path(session_id)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"✅ Deleted session: {session_id}")
        return True
