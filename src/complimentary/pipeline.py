"""End-to-end generation: build, call, normalize, and fall back on any failure."""

from __future__ import annotations

import logging
import random

from complimentary.errors import NormalizationError, TransportError
from complimentary.fallback import supply_fallback
from complimentary.generator import Transport
from complimentary.models import Artifact, GenerationIntent, GenerationOutcome
from complimentary.normalizer import normalize_output
from complimentary.prompting import build_request

logger = logging.getLogger(__name__)


def run_generation(
    intent: GenerationIntent,
    transport: Transport | None,
    rng: random.Random | None = None,
) -> GenerationOutcome:
    """Generate one artifact and report how it was obtained.

    There is exactly one upstream attempt. Any transport or normalization
    failure degrades to ``supply_fallback``; the failure is kept on the
    outcome for logging. Passing ``transport=None`` skips the upstream call.

    Raises:
        InvalidIntentError: If the intent cannot be turned into a request.
    """
    request = build_request(intent)

    if transport is None:
        logger.info("No transport configured; using local fallback")
        return GenerationOutcome(
            artifact=supply_fallback(intent, rng=rng),
            state="degraded",
            request=request,
        )

    raw_response = ""
    try:
        raw_response = transport.generate(request)
        artifact = normalize_output(raw_response, intent)
    except (TransportError, NormalizationError) as exc:
        error = exc
    except Exception as exc:
        logger.exception("Unexpected error while generating with %s", type(transport).__name__)
        error = TransportError(str(exc))
        error.__cause__ = exc
    else:
        return GenerationOutcome(
            artifact=artifact,
            state="succeeded",
            request=request,
            raw_response=raw_response,
        )

    error_kind = type(error).__name__
    logger.warning("Generation degraded to fallback: %s: %s", error_kind, error)
    return GenerationOutcome(
        artifact=supply_fallback(intent, rng=rng),
        state="degraded",
        request=request,
        raw_response=raw_response,
        error_kind=error_kind,
        error_message=str(error),
    )


def generate_artifact(
    intent: GenerationIntent,
    transport: Transport | None,
    rng: random.Random | None = None,
) -> Artifact:
    """Return an artifact for ``intent``; never raises for a valid intent."""
    return run_generation(intent, transport, rng=rng).artifact
