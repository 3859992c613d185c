"""
Domain models for misinformation analysis.

These models represent the core business concepts. They have no dependencies
on external frameworks, databases, or APIs, so the domain reads the same
whether it is stored in Snowflake or sent over HTTP.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Verdict(Enum):
    """The categorical outcome of an analysis."""
    SAFE = "safe"
    MISINFORMATION = "misinformation"
    CAUTION = "caution"


class AnalysisType(Enum):
    """What kind of input an analysis record was produced from."""
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class Upload:
    """
    A file received in a single request.

    Ephemeral: it only lives for the duration of the request that carried it.
    """
    data: bytes
    filename: str
    content_type: str = "application/octet-stream"

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class InlineMedia:
    """
    Binary media encoded for embedding in a model request.

    Frozen because media units are values: the same bytes and type
    are the same unit.
    """
    data: str  # base64 text
    media_type: str


@dataclass(frozen=True)
class AnalysisResult:
    """
    The structured verdict returned by the model.

    Validation happens at construction, so an AnalysisResult that exists
    is always well-formed. Callers parsing model output rely on this to
    reject bad replies instead of defaulting fields.
    """
    verdict: Verdict
    confidence: float
    explanation: str

    def __post_init__(self) -> None:
        if not isinstance(self.verdict, Verdict):
            raise ValueError(f"Invalid verdict: {self.verdict!r}")
        if isinstance(self.confidence, bool) or not isinstance(self.confidence, (int, float)):
            raise ValueError("Confidence must be a number")
        if math.isnan(self.confidence) or not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Confidence must be between 0 and 1")
        if not isinstance(self.explanation, str):
            raise ValueError("Explanation must be a string")

    @classmethod
    def from_dict(cls, data: Any) -> "AnalysisResult":
        """
        Build a result from parsed JSON. Raises ValueError on any deviation.

        The verdict is matched ignoring case and surrounding whitespace
        ("Safe", " CAUTION "). Any other spelling is rejected.
        """
        if not isinstance(data, dict):
            raise ValueError("Analysis must be a JSON object")

        missing = [key for key in ("verdict", "confidence", "explanation") if key not in data]
        if missing:
            raise ValueError(f"Analysis is missing keys: {', '.join(missing)}")

        verdict_raw = data["verdict"]
        if not isinstance(verdict_raw, str):
            raise ValueError(f"Invalid verdict: {verdict_raw!r}")

        return cls(
            verdict=Verdict(verdict_raw.strip().lower()),
            confidence=data["confidence"],
            explanation=data["explanation"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "confidence": float(self.confidence),
            "explanation": self.explanation,
        }


@dataclass
class AnalysisRecord:
    """
    A persisted analysis.

    Write-once: nothing in the application updates or deletes a record
    after it has been saved.
    """
    type: AnalysisType
    result: AnalysisResult
    file_name: Optional[str] = None
    storage_path: Optional[str] = None
    input_text: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    def to_document(self) -> dict[str, Any]:
        """Document shape as stored in the `analyses` collection."""
        document: dict[str, Any] = {"type": self.type.value}
        if self.input_text is not None:
            document["inputText"] = self.input_text
        if self.file_name is not None:
            document["fileName"] = self.file_name
        if self.storage_path is not None:
            document["storagePath"] = self.storage_path
        document["result"] = self.result.to_dict()
        document["createdAt"] = self.created_at.isoformat()
        return document


@dataclass
class UserAccount:
    """A registered user. Only the bcrypt hash of the password is kept."""
    email: str
    password_hash: str
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.email = self.email.strip().lower()
        if not self.email:
            raise ValueError("Email cannot be empty")
