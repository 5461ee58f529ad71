"""
Response Models for finchat

A handler answers one intent with a ResultBundle: the computed numbers
plus enough metadata for a templating layer to turn them into prose.
The assistant never writes prose itself beyond short fixed labels.
"""

from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finchat.models.intent import ClassificationCandidate, IntentKind


class ResponseType(str, Enum):
    """How the front end should present a bundle."""
    TEXT = "text"
    INSIGHT = "insight"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    ERROR = "error"


class ResultBundle(BaseModel):
    """
    Numeric answer to a single intent.

    `data` holds plain JSON-compatible values only (numbers, strings,
    lists, dicts) so it can be logged and rendered without extra mapping.
    """

    intent: IntentKind
    locale: str = "en"
    response_type: ResponseType = ResponseType.TEXT
    success: bool = True
    data: dict[str, Any] = Field(default_factory=dict)
    action_link: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def error(cls, intent: IntentKind, locale: str, message: str) -> "ResultBundle":
        return cls(
            intent=intent,
            locale=locale,
            response_type=ResponseType.ERROR,
            success=False,
            error_message=message,
        )


class ChatResponse(BaseModel):
    """Everything produced for one user query."""

    query_id: UUID = Field(default_factory=uuid4)
    query: str
    locale: str = "en"
    candidates: list[ClassificationCandidate] = Field(default_factory=list)
    bundles: list[ResultBundle] = Field(default_factory=list)

    @property
    def primary_intent(self) -> IntentKind:
        if not self.candidates:
            return IntentKind.UNKNOWN
        return self.candidates[0].intent

    @property
    def response_type(self) -> ResponseType:
        """Warning wins over everything else when answers are combined."""
        types = [bundle.response_type for bundle in self.bundles]
        if not types:
            return ResponseType.TEXT
        if len(types) == 1:
            return types[0]
        if ResponseType.WARNING in types:
            return ResponseType.WARNING
        return ResponseType.INSIGHT

    @property
    def action_link(self) -> Optional[str]:
        for bundle in self.bundles:
            if bundle.action_link:
                return bundle.action_link
        return None
