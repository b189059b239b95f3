"""
Quiz Models
Pydantic models for quiz items parsed from study notes
FILE: studyquiz/models/quiz.py
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


VALID_LABELS = "ABCDEFGH"


class Choice(BaseModel):
    """A single lettered option of a quiz item"""
    label: str = Field(..., description="Option letter (A-H)")
    text: str = Field(..., description="Option text")

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        """Labels are one upper-case letter"""
        v = v.strip().upper()
        if len(v) != 1 or v not in VALID_LABELS:
            raise ValueError(f"label must be one of {', '.join(VALID_LABELS)}. Got: '{v}'")
        return v

    class Config:
        frozen = True


class QuizItem(BaseModel):
    """
    One question extracted from a study document

    Immutable once parsed: the item set is shared read-only between sessions.
    """
    id: str = Field(..., description="Stable item identifier")
    topic: str = Field(..., description="Topic (notes folder) the item belongs to")
    prompt: str = Field(..., description="Question text")
    choices: List[Choice] = Field(..., description="Ordered options")
    correct_label: str = Field(..., description="Label of the correct option")
    explanation: str = Field(default="", description="Why the answer is correct")
    source: Optional[str] = Field(default=None, description="Document the item came from")
    line: Optional[int] = Field(default=None, description="Line of the question header")

    @model_validator(mode="after")
    def validate_choices(self):
        """Choices are non-empty, uniquely labelled, and include the answer"""
        if not self.choices:
            raise ValueError("choices must not be empty")

        labels = [c.label for c in self.choices]
        if len(set(labels)) != len(labels):
            raise ValueError(f"duplicate choice labels: {labels}")

        if self.correct_label not in labels:
            raise ValueError(
                f"correct_label '{self.correct_label}' is not one of {labels}"
            )
        return self

    def choice(self, label: str) -> Optional[Choice]:
        for c in self.choices:
            if c.label == label:
                return c
        return None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "meta-arguments/count#1",
                "topic": "meta-arguments",
                "prompt": "What does count.index give?",
                "choices": [
                    {"label": "A", "text": "The resource name"},
                    {"label": "B", "text": "The 0-based index of the instance"}
                ],
                "correct_label": "B",
                "explanation": "count.index is the distinct index number, starting at 0.",
                "source": "count",
                "line": 12
            }
        }


class Topic(BaseModel):
    """Named grouping of quiz items mirroring the notes folder structure"""
    name: str
    items: List[QuizItem] = Field(default_factory=list)


class PublicChoice(BaseModel):
    label: str
    text: str


class PublicQuizItem(BaseModel):
    """Quiz item as shown to a learner (no correct answer exposed)"""
    itemId: str = Field(..., description="Quiz item ID")
    topic: str
    prompt: str
    choices: List[PublicChoice]

    @classmethod
    def from_item(cls, item: QuizItem) -> "PublicQuizItem":
        return cls(
            itemId=item.id,
            topic=item.topic,
            prompt=item.prompt,
            choices=[PublicChoice(label=c.label, text=c.text) for c in item.choices]
        )


class TopicSummary(BaseModel):
    """Topic listing entry"""
    name: str
    itemCount: int = Field(..., ge=0)


class DocumentError(BaseModel):
    """A document that failed to parse; other documents still load"""
    path: str
    kind: str = Field(..., description="MissingAnswer, MalformedBlock or InvalidItem")
    message: str
    line: Optional[int] = None
