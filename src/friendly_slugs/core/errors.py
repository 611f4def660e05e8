"""Exceptions raised while assigning and resolving friendly ids."""

from __future__ import annotations

from collections.abc import Sequence


class FriendlyIdError(Exception):
    """Base exception with an optional hint appended to the message."""

    label = "Friendly ID Error"

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[{self.label}] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class ConfigurationError(FriendlyIdError):
    """Error when a model is not set up for friendly ids."""

    label = "Configuration Error"


class UnregisteredModelError(ConfigurationError):
    """Error when a model was never registered with the service."""

    def __init__(self, model_name: str) -> None:
        super().__init__(
            f"Model '{model_name}' is not registered for friendly ids",
            "Call FriendlyIdService.register() for the model first.",
        )


class MissingAttributeError(ConfigurationError):
    """Error when a configured source or scope attribute does not exist."""

    def __init__(self, model_name: str, attribute: str) -> None:
        super().__init__(
            f"Model '{model_name}' has no attribute '{attribute}'",
            "Check the 'source' and 'scope' options for this model.",
        )


class SlugValidationError(FriendlyIdError):
    """The candidate slug text can not be used as a friendly id."""

    label = "Slug Validation Error"

    def __init__(self, raw_text: object, message: str) -> None:
        self.raw_text = "" if raw_text is None else str(raw_text)
        super().__init__(message)

    def record_message(self, attribute: str) -> str:
        """Render the error the way it is attached to a record."""
        return f'{attribute.replace("_", " ").capitalize()} can not be "{self.raw_text}"'


class BlankSlugError(SlugValidationError):
    """Slug text is empty after normalization."""

    def __init__(self, raw_text: object) -> None:
        super().__init__(raw_text, f"Slug text {raw_text!r} is blank after normalization")


class ReservedSlugError(SlugValidationError):
    """Slug text collides with a reserved word."""

    def __init__(self, raw_text: object, name: str) -> None:
        self.name = name
        super().__init__(raw_text, f"Slug text {raw_text!r} normalizes to reserved word {name!r}")


class ConflictError(FriendlyIdError):
    """Another writer already holds this (name, scope, type, sequence)."""

    label = "Slug Conflict"

    def __init__(self, name: str, scope: str | None, sluggable_type: str, sequence: int) -> None:
        self.name = name
        self.scope = scope
        self.sluggable_type = sluggable_type
        self.sequence = sequence
        super().__init__(
            f"Slug {name!r} sequence {sequence} already exists "
            f"for {sluggable_type} (scope={scope!r})"
        )


class SequenceAssignmentError(FriendlyIdError):
    """No free sequence could be claimed within the retry budget."""

    label = "Sequence Assignment Error"

    def __init__(self, name: str, scope: str | None, sluggable_type: str, attempts: int) -> None:
        self.name = name
        self.scope = scope
        self.sluggable_type = sluggable_type
        self.attempts = attempts
        super().__init__(
            f"Could not assign a sequence for slug {name!r} on {sluggable_type} "
            f"(scope={scope!r}) after {attempts} attempts",
            "Raise 'sequence_retries' if many records share this name concurrently.",
        )


class NotFoundError(FriendlyIdError):
    """No record (or not every record) matched the requested ids."""

    label = "Record Not Found"

    def __init__(
        self,
        message: str,
        *,
        tokens: Sequence[object] = (),
        expected: int | None = None,
        actual: int | None = None,
        scope_hint: str | None = None,
    ) -> None:
        self.tokens = list(tokens)
        self.expected = expected
        self.actual = actual
        self.scope_hint = scope_hint
        super().__init__(message)

    def _format_message(self) -> str:
        msg = f"[{self.label}] {self.message}"
        if self.scope_hint:
            msg += f" {self.scope_hint}"
        return msg
