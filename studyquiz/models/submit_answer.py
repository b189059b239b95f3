from pydantic import BaseModel, Field, field_validator

from studyquiz.models.quiz_sessions import SessionStatus


class SubmitAnswerRequest(BaseModel):
    """Request model for answer submission"""
    sessionId: str = Field(..., description="Quiz session ID")
    itemId: str = Field(..., description="Quiz item ID being answered")
    chosenLabel: str = Field(..., description="Label of the chosen option")

    @field_validator('chosenLabel')
    @classmethod
    def validate_label_format(cls, v):
        """Labels are sent as a single letter"""
        v = v.strip()
        if len(v) != 1 or not v.isalpha():
            raise ValueError("chosenLabel must be a single letter")
        return v


class SubmitAnswerResponse(BaseModel):
    """Response model for answer evaluation"""
    isCorrect: bool = Field(..., description="Whether the answer was correct")
    correctLabel: str = Field(..., description="Label of the correct option")
    explanation: str = Field(default="", description="Explanation from the notes")
    status: SessionStatus = Field(..., description="Session status after this answer")
    remaining: int = Field(..., ge=0, description="Items not answered yet")
