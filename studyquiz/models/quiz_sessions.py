"""
Quiz Session Models
Sessions own their attempts; items are copied in so a stored session can be
reported on without reloading the notes
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional
import uuid

from pydantic import BaseModel, Field

from studyquiz.models.quiz import QuizItem


OrderPolicy = Literal["sequential", "shuffled"]
SessionStatus = Literal["active", "completed"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttemptResult(BaseModel):
    """One answer given in a session; immutable once recorded"""
    item_id: str = Field(..., description="Answered quiz item ID")
    topic: str = Field(..., description="Topic of the answered item")
    chosen_label: str = Field(..., description="Label the learner picked")
    is_correct: bool = Field(..., description="Exact match against the correct label")
    timestamp: datetime = Field(default_factory=_utcnow, description="When answered")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "item_id": "meta-arguments/count#1",
                "topic": "meta-arguments",
                "chosen_label": "B",
                "is_correct": True,
                "timestamp": "2026-01-15T10:30:00Z"
            }
        }


class QuizSession(BaseModel):
    """One learner's run through a set of quiz items"""
    id: str = Field(
        default_factory=lambda: f"session_{uuid.uuid4().hex[:12]}",
        description="Unique session identifier"
    )
    status: SessionStatus = Field(default="active", description="Session status")
    order: OrderPolicy = Field(default="sequential", description="Item ordering policy")
    seed: Optional[int] = Field(default=None, description="Shuffle seed, for replaying a run")

    # Original item set in presentation order
    items: List[QuizItem] = Field(default_factory=list)
    attempts: List[AttemptResult] = Field(default_factory=list)

    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    def get_item(self, item_id: str) -> Optional[QuizItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def answered_ids(self) -> set:
        return {a.item_id for a in self.attempts}


class TopicAccuracy(BaseModel):
    """Per-topic mastery; accuracy is None when nothing was attempted"""
    topic: str
    total_items: int = Field(..., ge=0)
    attempted: int = Field(..., ge=0)
    correct: int = Field(..., ge=0)
    accuracy: Optional[float] = Field(default=None, ge=0, le=1)


class SessionReport(BaseModel):
    """Score report for a session"""
    session_id: str
    status: SessionStatus
    topics: List[TopicAccuracy]
    attempted: int = Field(..., ge=0)
    correct: int = Field(..., ge=0)
    overall_accuracy: Optional[float] = Field(default=None, ge=0, le=1)

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "session_abc123def456",
                "status": "completed",
                "topics": [
                    {
                        "topic": "state",
                        "total_items": 4,
                        "attempted": 4,
                        "correct": 3,
                        "accuracy": 0.75
                    },
                    {
                        "topic": "modules",
                        "total_items": 2,
                        "attempted": 0,
                        "correct": 0,
                        "accuracy": None
                    }
                ],
                "attempted": 4,
                "correct": 3,
                "overall_accuracy": 0.75
            }
        }
