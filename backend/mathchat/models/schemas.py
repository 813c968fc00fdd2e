from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, Tuple
from enum import Enum
from datetime import datetime, timezone
import uuid


class WireModel(BaseModel):
    """Frozen model with camelCase field names on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class MessageRole(str, Enum):
    """Who authored a transcript entry"""
    USER = "user"
    ASSISTANT = "assistant"


class MathStep(WireModel):
    """Individual step in mathematical solution"""
    title: str = Field(..., description="Action taken in this step")
    description: str = Field(..., description="Mathematical intuition behind the step")
    latex: Optional[str] = Field(None, description="Formal expression for the step")


class MathSolution(WireModel):
    """Structured step-by-step answer for one problem"""
    problem_summary: str = Field(..., description="The problem restated in one sentence")
    steps: Tuple[MathStep, ...] = Field(..., description="Derivation in solving order")
    final_answer: str = Field(..., description="Definitive result")
    concept_explanation: str = Field(..., description="Underlying theorem or property")
    related_formulas: Tuple[str, ...] = Field(default_factory=tuple, description="Related formulas in LaTeX")


class ChatMessage(WireModel):
    """One transcript entry"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique message ID")
    role: MessageRole = Field(..., description="Author of the message")
    content: str = Field(default="", description="Text typed by the user or status text")
    solution: Optional[MathSolution] = Field(None, description="Solution attached to an assistant reply")
    image: Optional[str] = Field(None, description="Attached image as a data URI")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation time",
    )

    @model_validator(mode="after")
    def _assistant_has_payload(self):
        if self.role == MessageRole.ASSISTANT and self.solution is None and not self.content.strip():
            raise ValueError("assistant message needs a solution or a failure explanation")
        return self


class SolveRequest(BaseModel):
    """Body of POST /functions/v1/solve-math"""
    prompt: Optional[str] = Field(None, description="The math problem as typed by the user")
    image: Optional[str] = Field(None, description="Optional image as data:<mime>;base64,<data>")


class ErrorResponse(BaseModel):
    """Body returned with every 4xx/5xx from the proxy"""
    error: str = Field(..., description="Human readable error message")
