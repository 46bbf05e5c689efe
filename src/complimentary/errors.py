"""
Exceptions raised by the generation pipeline.

Hierarchy:
    ComplimentaryError
    ├── InvalidIntentError - caller supplied an unusable intent (also ValueError)
    ├── TransportError - upstream call failed (also RuntimeError)
    │   └── EmptyResponseError - upstream answered without content
    └── NormalizationError - upstream content is unusable (also RuntimeError)
        ├── EmptyContentError
        ├── ContentTooLongError
        ├── PolicyViolationError
        └── HaikuShapeError
"""

from __future__ import annotations


class ComplimentaryError(Exception):
    """Base class for all pipeline errors."""


class InvalidIntentError(ComplimentaryError, ValueError):
    """The generation intent cannot be turned into a request."""


class TransportError(ComplimentaryError, RuntimeError):
    """The upstream generator could not be reached or refused the call."""


class EmptyResponseError(TransportError):
    """The upstream call succeeded but carried no content."""


class NormalizationError(ComplimentaryError, RuntimeError):
    """Upstream content could not be turned into a valid artifact."""


class EmptyContentError(NormalizationError):
    """No usable text was found in the upstream payload."""


class ContentTooLongError(NormalizationError):
    """Artifact text exceeds the character ceiling."""


class PolicyViolationError(NormalizationError):
    """Artifact text breaks the emoji policy for its style."""


class HaikuShapeError(NormalizationError):
    """Haiku text does not have exactly three lines."""
