from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from complimentary.models import (
    ArtifactRecord,
    ArtifactType,
    GenerationIntent,
    GenerationRequest,
    Provenance,
    Style,
)


class FakeTransport:
    """Transport double that returns a canned response or raises a canned error."""

    model_name = "fake-model"

    def __init__(self, response: str | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[GenerationRequest] = []

    def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response or ""


@pytest.fixture
def compliment_intent() -> GenerationIntent:
    return GenerationIntent(
        artifact_type=ArtifactType.COMPLIMENT,
        style=Style.PROFESSIONAL,
        specificity=3,
        relationship="manager",
        context_hints=("shipped the migration early",),
    )


@pytest.fixture
def haiku_intent() -> GenerationIntent:
    return GenerationIntent(
        artifact_type=ArtifactType.HAIKU,
        style=Style.GOOFY,
        specificity=2,
        relationship="friend",
        context_hints=("loves tacos",),
    )


@pytest.fixture
def artifact_record_model() -> ArtifactRecord:
    return ArtifactRecord(
        artifact_id="artifact0001",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        artifact_type=ArtifactType.COMPLIMENT,
        style=Style.CLASSIC,
        specificity=3,
        relationship="coworker",
        context_hints=["helped with the launch", "great teammate"],
        text="Thanks for being the kind of person who always shows up when it matters most.",
        sparkle_score=4,
        tags=["classic", "team"],
        provenance=Provenance.UPSTREAM,
        model_name="gemini-test",
        prompt_text="prompt",
        raw_response='{"compliment":"x"}',
    )


@pytest.fixture
def make_transport():
    return FakeTransport
