"""
Start Session Request/Response Models
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from studyquiz.models.quiz import PublicQuizItem
from studyquiz.models.quiz_sessions import OrderPolicy, SessionStatus


class StartSessionRequest(BaseModel):
    """Request model for starting a new quiz session"""
    topic: Optional[str] = Field(
        default=None,
        description="Restrict the session to one topic (all topics when omitted)"
    )
    order: OrderPolicy = Field(default="sequential", description="sequential or shuffled")
    seed: Optional[int] = Field(default=None, description="Seed for shuffled order")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum number of items")

    class Config:
        json_schema_extra = {
            "example": {
                "topic": "state",
                "order": "shuffled",
                "seed": 42
            }
        }


class StartSessionResponse(BaseModel):
    """Response model for started quiz session"""
    sessionId: str = Field(..., description="Unique session identifier")
    status: SessionStatus = Field(default="active")
    order: OrderPolicy
    seed: Optional[int] = None
    items: List[PublicQuizItem] = Field(..., description="Items in presentation order")
