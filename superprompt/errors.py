"""Exception taxonomy for the screenshot analysis pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class InvalidArgument(PipelineError, ValueError):
    """Raised when a caller passes a value outside the accepted set."""


class AuthenticationError(PipelineError):
    """Raised when no API key is configured for the selected provider.

    The gateway raises this before any request is sent.
    """


class ProviderError(PipelineError):
    """Raised when a model provider call fails.

    Covers non-2xx responses, transport failures (``status_code is None``)
    and response envelopes without the expected text field.
    """

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        status = status_code if status_code is not None else "no response"
        super().__init__(f"Provider error ({status}): {body[:500]}")


class MalformedResponseError(PipelineError):
    """Raised when a structured-output call returns unparseable JSON."""


class SynthesisError(PipelineError):
    """Raised when the final super-prompt pass fails."""
