"""Pydantic models shared across request building, normalization, and storage."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_TEXT_LENGTH = 280
MAX_CONTEXT_HINTS = 8
DEFAULT_SPARKLE_SCORE = 3
HAIKU_TAG = "haiku"
FALLBACK_TAG = "fallback"
SAFETY_COERCED_TAG = "safety-coerced"


class ArtifactType(str, Enum):
    COMPLIMENT = "compliment"
    HAIKU = "haiku"


class Style(str, Enum):
    CLASSIC = "classic"
    GOOFY = "goofy"
    POETIC = "poetic"
    PROFESSIONAL = "professional"


class Provenance(str, Enum):
    UPSTREAM = "upstream"
    FALLBACK = "fallback"


class GenerationIntent(BaseModel):
    """Caller-supplied parameters for one compliment or haiku."""

    model_config = ConfigDict(frozen=True)

    artifact_type: ArtifactType
    style: Style
    specificity: int = Field(ge=1, le=5)
    relationship: str
    context_hints: tuple[str, ...] = Field(default=(), max_length=MAX_CONTEXT_HINTS)
    name: str | None = None

    @field_validator("relationship")
    @classmethod
    def _relationship_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("relationship must be a non-empty string")
        return value

    @field_validator("context_hints")
    @classmethod
    def _hints_not_blank(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(hint.strip() for hint in value)
        if any(not hint for hint in cleaned):
            raise ValueError("context hints must be non-empty strings")
        return cleaned

    @field_validator("name")
    @classmethod
    def _blank_name_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class GenerationRequest(BaseModel):
    """Fully-specified instruction pair sent to the upstream generator."""

    model_config = ConfigDict(frozen=True)

    system_instructions: str
    user_instructions: str
    temperature: float
    max_output_tokens: int


class Artifact(BaseModel):
    """Normalized compliment or haiku handed to callers.

    Construction enforces the output invariants, so an instance that exists is
    always safe to display.
    """

    model_config = ConfigDict(frozen=True)

    artifact_type: ArtifactType
    style: Style
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    sparkle_score: int = Field(ge=1, le=5)
    tags: tuple[str, ...]
    provenance: Provenance = Provenance.UPSTREAM

    @model_validator(mode="after")
    def _check_tags(self) -> Artifact:
        if len(set(self.tags)) != len(self.tags):
            raise ValueError("tags must not contain duplicates")
        if self.style.value not in self.tags:
            raise ValueError(f"tags must include the style {self.style.value!r}")
        if self.artifact_type is ArtifactType.HAIKU:
            if HAIKU_TAG not in self.tags:
                raise ValueError("haiku artifacts must carry the 'haiku' tag")
            if self.text.count("\n") != 2:
                raise ValueError("haiku text must have exactly three lines")
        return self

    @property
    def is_fallback(self) -> bool:
        return self.provenance is Provenance.FALLBACK


class ParseSuccess(BaseModel):
    """Unwrapped upstream text that decoded to a JSON object."""

    kind: Literal["success"] = "success"
    fields: dict
    raw_text: str


class ParseFailure(BaseModel):
    """Unwrapped upstream text that is not a JSON object."""

    kind: Literal["failure"] = "failure"
    raw_text: str


ParseResult = Union[ParseSuccess, ParseFailure]


class GenerationOutcome(BaseModel):
    """Artifact plus the diagnostic channel for one pipeline run."""

    artifact: Artifact
    state: Literal["succeeded", "degraded"]
    request: GenerationRequest
    raw_response: str = ""
    error_kind: str | None = None
    error_message: str | None = None


class ArtifactRecord(BaseModel):
    """Fully materialized history entry stored in the database."""

    artifact_id: str
    created_at: datetime
    artifact_type: ArtifactType
    style: Style
    specificity: int = Field(ge=1, le=5)
    relationship: str | None = None
    context_hints: list[str] | None = None
    text: str
    sparkle_score: int = Field(ge=1, le=5)
    tags: list[str]
    provenance: Provenance
    model_name: str
    prompt_text: str
    raw_response: str
    error_kind: str | None = None
    is_favorite: bool = False


class Preferences(BaseModel):
    """Persisted user defaults for the generator."""

    default_style: Style = Style.CLASSIC
    default_specificity: int = Field(default=3, ge=1, le=5)
    privacy_no_name: bool = False
