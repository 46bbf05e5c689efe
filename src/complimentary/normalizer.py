"""Turn raw upstream text into a validated ``Artifact`` or a typed failure."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from typing import Any

from complimentary.errors import (
    ContentTooLongError,
    EmptyContentError,
    HaikuShapeError,
    PolicyViolationError,
)
from complimentary.models import (
    DEFAULT_SPARKLE_SCORE,
    FALLBACK_TAG,
    HAIKU_TAG,
    MAX_TEXT_LENGTH,
    SAFETY_COERCED_TAG,
    Artifact,
    ArtifactType,
    GenerationIntent,
    ParseFailure,
    ParseResult,
    ParseSuccess,
    Provenance,
    Style,
)

logger = logging.getLogger(__name__)

TEXT_KEYS = ("compliment", "text", "haiku")
SCORE_KEYS = ("sparkleScore", "sparkle_score", "score")
RESERVED_TAGS = frozenset({FALLBACK_TAG, SAFETY_COERCED_TAG})

# Pictographs, symbols, flags, dingbats, and the joiners/selectors that glue
# multi-codepoint emoji sequences together.
EMOJI_RANGES = (
    (0x1F000, 0x1F02F),  # mahjong tiles
    (0x1F0A0, 0x1F0FF),  # playing cards
    (0x1F100, 0x1F1FF),  # enclosed alphanumerics, regional indicator flags
    (0x1F200, 0x1F2FF),  # enclosed ideographic supplement
    (0x1F300, 0x1F5FF),  # misc symbols and pictographs
    (0x1F600, 0x1F64F),  # emoticons
    (0x1F680, 0x1F6FF),  # transport and map
    (0x1F700, 0x1F77F),  # alchemical
    (0x1F780, 0x1F7FF),  # geometric shapes extended
    (0x1F800, 0x1F8FF),  # supplemental arrows-c
    (0x1F900, 0x1F9FF),  # supplemental symbols and pictographs
    (0x1FA00, 0x1FAFF),  # chess, symbols and pictographs extended-a
    (0x2600, 0x26FF),  # misc symbols
    (0x2700, 0x27BF),  # dingbats
    (0x2B00, 0x2BFF),  # misc symbols and arrows
    (0x2300, 0x23FF),  # misc technical
    (0x3030, 0x3030),
    (0x303D, 0x303D),
    (0x3297, 0x3299),
    (0x200D, 0x200D),  # zero width joiner
    (0x20E3, 0x20E3),  # combining enclosing keycap
    (0xFE0F, 0xFE0F),  # variation selector-16
    (0xE0020, 0xE007F),  # tag sequences
)

EMOJI_RE = re.compile(
    "[" + "".join(f"{re.escape(chr(start))}-{re.escape(chr(end))}" for start, end in EMOJI_RANGES) + "]"
)

_LANGUAGE_TAGS = frozenset(
    {"json", "json5", "jsonc", "javascript", "js", "text", "txt", "plaintext", "markdown", "md"}
)
_TAG_TOKEN_RE = re.compile(r"[\w+.-]+")


def _is_language_tag(first_line: str, rest: str) -> bool:
    tag = first_line.strip().lower()
    if not tag or tag in _LANGUAGE_TAGS:
        return True
    # Unknown single-token tag: only when a JSON document follows it.
    if not _TAG_TOKEN_RE.fullmatch(tag) or not rest.lstrip().startswith(("{", "[")):
        return False
    try:
        json.loads(rest)
    except json.JSONDecodeError:
        return False
    return True


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence, with or without a language tag.

    The first line inside the fence is dropped only when it is blank, a known
    language tag, or a single token followed by JSON. Anything else is content.
    """
    candidate = text.strip()
    if not candidate.startswith("```"):
        return candidate

    body = candidate[3:]
    if body.endswith("```"):
        body = body[:-3]
    first_line, newline, rest = body.partition("\n")
    if newline and _is_language_tag(first_line, rest):
        body = rest
    elif not newline:
        # Single-line fence such as ```json{...}```
        body = re.sub(r"^json(?=[\s\[{])", "", body, flags=re.IGNORECASE)
    return body.strip()


def parse_payload(raw: str) -> ParseResult:
    """Unwrap ``raw`` and decode it as a JSON object when possible.

    A bare JSON string is unquoted and salvaged as prose.
    """
    candidate = strip_code_fence(raw)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return ParseFailure(raw_text=candidate)
    if isinstance(data, str):
        return ParseFailure(raw_text=data.strip())
    if not isinstance(data, dict):
        return ParseFailure(raw_text=candidate)
    return ParseSuccess(fields=data, raw_text=candidate)


def coerce_score(value: Any) -> int:
    """Return ``value`` as an integer score in ``[1, 5]``, or the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_SPARKLE_SCORE
    if value != value or not 1 <= value <= 5:
        return DEFAULT_SPARKLE_SCORE
    return int(round(value))


def reconcile_tags(
    tags: Any,
    artifact_type: ArtifactType,
    style: Style,
    extra: Iterable[str] = (),
) -> tuple[str, ...]:
    """Clean upstream tags and guarantee the style and haiku tags are present.

    Reserved provenance tags are dropped from ``tags``; only ``extra`` may add
    them back.
    """
    if not isinstance(tags, list):
        tags = [style.value]

    cleaned: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            continue
        tag = tag.strip()
        if not tag or tag in RESERVED_TAGS or tag in cleaned:
            continue
        cleaned.append(tag)

    if style.value not in cleaned:
        cleaned.insert(0, style.value)
    if artifact_type is ArtifactType.HAIKU and HAIKU_TAG not in cleaned:
        cleaned.insert(0, HAIKU_TAG)

    for tag in extra:
        if tag not in cleaned:
            cleaned.append(tag)
    return tuple(cleaned)


def contains_emoji(text: str) -> bool:
    return EMOJI_RE.search(text) is not None


def _shape_haiku(text: str) -> str:
    if "\n" not in text and "\\n" in text:
        text = text.replace("\\n", "\n")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if len(lines) != 3:
        raise HaikuShapeError(f"Haiku must have exactly 3 lines, got {len(lines)}")
    return "\n".join(lines)


def _extract_text(fields: dict[str, Any]) -> str | None:
    for key in TEXT_KEYS:
        value = fields.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _extract_score(fields: dict[str, Any]) -> Any:
    for key in SCORE_KEYS:
        if key in fields:
            return fields[key]
    return None


def _check_text(text: str, intent: GenerationIntent) -> str:
    if intent.artifact_type is ArtifactType.HAIKU:
        text = _shape_haiku(text)
    if len(text) > MAX_TEXT_LENGTH:
        raise ContentTooLongError(f"Text is {len(text)} characters; the limit is {MAX_TEXT_LENGTH}")
    if intent.style is not Style.GOOFY and contains_emoji(text):
        raise PolicyViolationError(f"Emojis are only allowed for the goofy style, not {intent.style.value}")
    return text


def normalize_output(raw: str, intent: GenerationIntent) -> Artifact:
    """Parse model output into an ``Artifact`` for ``intent``.

    Plain-text output is salvaged as low-confidence content rather than
    rejected. Fenced and unfenced JSON normalize identically.

    Args:
        raw: Raw model response text.
        intent: The intent the response was generated for.

    Returns:
        A validated artifact with upstream provenance.

    Raises:
        EmptyContentError: If no usable text is present.
        ContentTooLongError: If the text exceeds the character ceiling.
        PolicyViolationError: If a non-goofy text contains emojis.
        HaikuShapeError: If a haiku does not have three lines.
    """
    parsed = parse_payload(raw)

    if isinstance(parsed, ParseFailure):
        text = parsed.raw_text
        if not text:
            raise EmptyContentError("Model returned only whitespace")
        logger.info("Model output is not a JSON object; salvaging it as plain text")
        score = DEFAULT_SPARKLE_SCORE
        tags = reconcile_tags([intent.artifact_type.value, intent.style.value], intent.artifact_type, intent.style)
    else:
        text = _extract_text(parsed.fields)
        if text is None:
            raise EmptyContentError(f"Model JSON has no usable text field (expected one of {TEXT_KEYS})")
        score = coerce_score(_extract_score(parsed.fields))
        tags = reconcile_tags(parsed.fields.get("tags"), intent.artifact_type, intent.style)

    text = _check_text(text, intent)
    return Artifact(
        artifact_type=intent.artifact_type,
        style=intent.style,
        text=text,
        sparkle_score=score,
        tags=tags,
        provenance=Provenance.UPSTREAM,
    )
