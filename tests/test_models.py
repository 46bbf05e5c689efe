from __future__ import annotations

import pytest
from pydantic import ValidationError

from complimentary.models import Artifact, ArtifactType, GenerationIntent, Provenance, Style


def test_generation_intent_given_padded_values_when_built_then_values_are_stripped() -> None:
    # Given
    fields = {
        "artifact_type": "haiku",
        "style": "poetic",
        "specificity": 4,
        "relationship": "  sister ",
        "context_hints": [" bakes bread ", "runs marathons"],
        "name": "   ",
    }

    # When
    intent = GenerationIntent(**fields)

    # Then
    assert intent.artifact_type is ArtifactType.HAIKU
    assert intent.style is Style.POETIC
    assert intent.relationship == "sister"
    assert intent.context_hints == ("bakes bread", "runs marathons")
    assert intent.name is None


@pytest.mark.parametrize(
    "override",
    [
        {"specificity": 0},
        {"specificity": 6},
        {"relationship": " "},
        {"context_hints": ["fine", "  "]},
        {"context_hints": [f"hint {i}" for i in range(9)]},
        {"style": "sarcastic"},
    ],
)
def test_generation_intent_given_invalid_field_when_built_then_validation_error_is_raised(override) -> None:
    # Given
    fields = {
        "artifact_type": "compliment",
        "style": "classic",
        "specificity": 3,
        "relationship": "coworker",
        "context_hints": ["helpful"],
        **override,
    }

    # When
    with pytest.raises(ValidationError):
        GenerationIntent(**fields)

    # Then
    # Out-of-range values are caller errors, never clamped.


def test_artifact_given_missing_style_tag_when_built_then_validation_error_is_raised() -> None:
    # Given
    fields = {
        "artifact_type": ArtifactType.COMPLIMENT,
        "style": Style.CLASSIC,
        "text": "Nice work.",
        "sparkle_score": 3,
        "tags": ("work",),
    }

    # When
    with pytest.raises(ValidationError, match="style"):
        Artifact(**fields)

    # Then
    # Tag completeness is enforced on construction.


@pytest.mark.parametrize(
    "override",
    [
        {"text": "x" * 281},
        {"sparkle_score": 0},
        {"tags": ("classic", "classic")},
        {"artifact_type": ArtifactType.HAIKU, "tags": ("classic",)},
        {"artifact_type": ArtifactType.HAIKU, "tags": ("haiku", "classic")},
    ],
)
def test_artifact_given_broken_invariant_when_built_then_validation_error_is_raised(override) -> None:
    # Given
    fields = {
        "artifact_type": ArtifactType.COMPLIMENT,
        "style": Style.CLASSIC,
        "text": "Nice work.",
        "sparkle_score": 3,
        "tags": ("classic",),
        **override,
    }

    # When
    with pytest.raises(ValidationError):
        Artifact(**fields)

    # Then
    # No artifact violating length, score, or tag rules can exist.


def test_artifact_given_valid_fields_when_built_then_it_is_frozen() -> None:
    # Given
    artifact = Artifact(
        artifact_type=ArtifactType.COMPLIMENT,
        style=Style.CLASSIC,
        text="Nice work.",
        sparkle_score=3,
        tags=("classic",),
    )

    # When
    with pytest.raises(ValidationError):
        artifact.text = "changed"

    # Then
    assert artifact.provenance is Provenance.UPSTREAM
    assert artifact.is_fallback is False
