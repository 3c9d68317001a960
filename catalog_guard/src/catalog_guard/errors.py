"""
Typed failures raised at the generation-service boundary.

A low quality score is never an error: it triggers the correction cycle.
These exceptions cover the cases where no usable reply exists at all.
"""

from typing import Optional


class GenerationError(Exception):
    """Base class for upstream generation failures."""

    retryable = False


class GenerationTimeoutError(GenerationError):
    """The call exceeded its time budget or was cancelled."""

    retryable = True

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        detail = f" after {timeout:.1f}s" if timeout is not None else ""
        super().__init__(f"Generation call timed out{detail}")


class GenerationOverloadedError(GenerationError):
    """The service is rate limited or temporarily overloaded."""

    retryable = True


class GenerationFailedError(GenerationError):
    """Definitive failure; terminal for the request."""


class MalformedReplyError(GenerationError):
    """The reply could not be decomposed into any labelled field."""

    def __init__(self, raw_text: str):
        self.raw_text = raw_text
        preview = (raw_text or "").strip()[:80]
        super().__init__(f"No labelled field found in generation reply: {preview!r}")
