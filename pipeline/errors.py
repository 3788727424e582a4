"""Error types raised by the matching and brief pipelines."""

from __future__ import annotations


class CreatorMatchError(Exception):
    """Base class for pipeline errors."""


class NotFound(CreatorMatchError):
    """A campaign or creator id did not resolve. Not retried."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} {identifier} not found")


class MalformedProviderOutput(CreatorMatchError):
    """One generation attempt produced unparseable or schema-invalid output.

    Handled inside the repair loop; only the exhaustion error escapes.
    """

    def __init__(self, errors: list[str], raw: str = ""):
        self.errors = list(errors)
        self.raw = raw
        super().__init__("\n".join(self.errors))


class GenerationExhausted(CreatorMatchError):
    """Every attempt in the repair budget failed."""

    def __init__(self, attempts: int, last_error: str):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"AI brief generation failed after {attempts} attempts. Last error: {last_error}"
        )


class StorageFailure(CreatorMatchError):
    """The persistence layer failed. The original error is chained as __cause__."""
