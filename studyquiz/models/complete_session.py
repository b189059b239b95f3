"""
Complete Session Models
"""
from pydantic import BaseModel, Field


class CompleteSessionRequest(BaseModel):
    """Request model for completing a quiz session"""

    sessionId: str = Field(
        ...,
        description="Unique identifier of the quiz session to complete",
        examples=["session_abc123def456"]
    )

    class Config:
        json_schema_extra = {
            "example": {
                "sessionId": "session_abc123def456"
            }
        }
