from __future__ import annotations

import json

from complimentary.errors import InvalidIntentError
from complimentary.models import (
    MAX_TEXT_LENGTH,
    ArtifactType,
    GenerationIntent,
    GenerationRequest,
)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 500
NO_NAME_SENTINEL = "No specific name provided"

OUTPUT_CONTRACT = {
    "compliment": "string",
    "sparkleScore": "integer 1-5",
    "tags": ["string"],
}

_STYLE_RUBRIC = """
**Styles**

- classic: Warm, sincere, universally positive. No emojis.
- goofy: Playful, fun, lighthearted. May include 1-2 emojis.
- poetic: Elegant, artistic, metaphorical. No emojis.
- professional: Polished, formal, workplace-appropriate. No emojis.
"""

_SPECIFICITY_RUBRIC = """
**Specificity**

- 1: General, universal praise
- 2: Lightly contextual, some personal touches
- 3: Balanced mix of general and specific
- 4: Heavily contextual, very personalized
- 5: Highly tailored to the specific context provided

Levels 1-2 stay generic. Levels 4-5 reuse the supplied context heavily.
"""

_SAFETY_RULES = f"""
**Constraints**

1. Stay G-rated, positive, and uplifting.
2. Avoid sensitive topics (health, religion, politics, money, relationship status).
3. No comments on appearance or body unless the context explicitly asks for it.
4. Only the goofy style may use emojis. Every other style uses plain text only.
5. Keep the text under {MAX_TEXT_LENGTH} characters.
"""


def _output_format_section(example: dict) -> str:
    return (
        "**Output Format**\n\n"
        "Return ONLY one raw JSON object with exactly these three fields:\n"
        f"{json.dumps(OUTPUT_CONTRACT, ensure_ascii=False)}\n\n"
        "Example:\n"
        f"{json.dumps(example, ensure_ascii=False)}\n\n"
        "Do not wrap the JSON in markdown code fences. Do not add prose before or after it.\n"
    )


def build_system_prompt(artifact_type: ArtifactType) -> str:
    """Return the fixed instruction template for ``artifact_type``."""
    if artifact_type is ArtifactType.HAIKU:
        return (
            "## Haiku Generator\n\n"
            "You are a G-rated haiku generator. Write one short, meaningful haiku that "
            "celebrates a person, in three lines following the 5-7-5 syllable pattern.\n"
            "\n**Haiku Rules**\n\n"
            "- Line 1: exactly 5 syllables\n"
            "- Line 2: exactly 7 syllables\n"
            "- Line 3: exactly 5 syllables\n"
            "- Separate the lines with a single newline character (\\n)\n"
            "- Capture a moment or feeling with natural, flowing language\n"
            f"{_STYLE_RUBRIC}"
            f"{_SPECIFICITY_RUBRIC}"
            f"{_SAFETY_RULES}\n"
            + _output_format_section(
                {
                    "compliment": "First line here\nSecond line is longer\nThird line here",
                    "sparkleScore": 4,
                    "tags": ["haiku", "style", "contextual_tag"],
                }
            )
        )

    return (
        "## Compliment Generator\n\n"
        "You are a G-rated compliment generator. Write one short, delightful compliment "
        f"(max {MAX_TEXT_LENGTH} characters) for the person described.\n"
        f"{_STYLE_RUBRIC}"
        f"{_SPECIFICITY_RUBRIC}"
        f"{_SAFETY_RULES}"
        "6. Include relevant tags like \"work\", \"team\", \"helpful\", \"creative\".\n"
        "7. sparkleScore rates how delightful the compliment is, from 1 to 5.\n\n"
        + _output_format_section(
            {
                "compliment": "Your actual compliment text here",
                "sparkleScore": 3,
                "tags": ["style", "contextual_tag"],
            }
        )
    )


def build_user_prompt(intent: GenerationIntent) -> str:
    kind = intent.artifact_type.value
    name_line = f"Name: {intent.name}" if intent.name else NO_NAME_SENTINEL
    closing = (
        "Please ensure the haiku follows the 5-7-5 syllable pattern and matches the style "
        "and specificity level requested."
        if intent.artifact_type is ArtifactType.HAIKU
        else "Please ensure the compliment matches the style and specificity level requested."
    )
    return (
        f"Generate a {intent.style.value} {kind} for a {intent.relationship} "
        f"with specificity level {intent.specificity}.\n\n"
        f"Context: {', '.join(intent.context_hints)}\n"
        f"{name_line}\n\n"
        f"{closing}\n"
    )


def validate_intent(intent: GenerationIntent) -> None:
    """Reject intents that would waste an upstream call.

    Raises:
        InvalidIntentError: If there are no context hints. The upper bound on
            hints is enforced when the intent is constructed.
    """
    if not intent.context_hints:
        raise InvalidIntentError("At least one context hint is required.")


def build_request(intent: GenerationIntent) -> GenerationRequest:
    """Map an intent to the instruction pair and fixed call parameters."""
    validate_intent(intent)
    return GenerationRequest(
        system_instructions=build_system_prompt(intent.artifact_type),
        user_instructions=build_user_prompt(intent),
        temperature=DEFAULT_TEMPERATURE,
        max_output_tokens=DEFAULT_MAX_OUTPUT_TOKENS,
    )
