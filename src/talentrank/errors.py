"""Exception types raised at the guardrail and tradeoff boundaries."""

from __future__ import annotations

from typing import Iterable

from pydantic import ValidationError


class TalentRankError(Exception):
    """Base class for errors raised by this package."""


class FieldValidationError(TalentRankError, ValueError):
    """Validation failure carrying field-qualified messages."""

    def __init__(self, errors: Iterable[tuple[str, str]]):
        self.errors: list[tuple[str, str]] = list(errors)
        super().__init__(self._render())

    @property
    def fields(self) -> list[str]:
        return [field for field, _ in self.errors]

    def _render(self) -> str:
        return "; ".join(f"{field}: {message}" for field, message in self.errors)

    @classmethod
    def from_pydantic(cls, exc: ValidationError, *, prefix: str = ""):
        entries: list[tuple[str, str]] = []
        for error in exc.errors():
            # Tagged unions add the discriminator value to the location.
            loc = [str(part) for part in error.get("loc", ()) if part not in ("weighted", "simple")]
            field = ".".join(part for part in [prefix, *loc] if part) or prefix or "<root>"
            message = str(error.get("msg", "invalid value"))
            if message.startswith("Value error, "):
                message = message[len("Value error, ") :]
            entries.append((field, message))
        return cls(entries)


class GuardrailValidationError(FieldValidationError):
    """Raised when a guardrail payload fails schema or invariant checks."""


class TradeoffValidationError(FieldValidationError):
    """Raised when a tradeoff declaration contains unknown or invalid values."""


class GuardrailStoreUnavailableError(TalentRankError):
    """Raised by guardrail stores when the backing storage cannot be reached."""


__all__ = [
    "TalentRankError",
    "FieldValidationError",
    "GuardrailValidationError",
    "TradeoffValidationError",
    "GuardrailStoreUnavailableError",
]
