"""Error hierarchy for ownergraph."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Sequence

if TYPE_CHECKING:
    from ownergraph.graph.validator import FieldViolation


class OwnergraphError(Exception):
    """Base exception for ownergraph failures."""

    def __init__(
        self,
        message: str,
        *,
        user_message: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.user_message = message if user_message is None else user_message
        self.context = dict(context) if context else {}

    def log_message(self) -> str:
        if not self.context:
            return str(self)
        return f"{self}: {self.context}"


class ConfigError(OwnergraphError):
    """Configuration loading or parsing error."""


class DiagramValidationError(OwnergraphError):
    """A diagram payload failed schema validation.

    Attributes:
        violations: Every field-level violation found in the payload.
    """

    def __init__(self, violations: Sequence[FieldViolation], *, source: str = "") -> None:
        self.violations = list(violations)
        where = f" in {source}" if source else ""
        lines = [f"Invalid diagram{where}: {len(self.violations)} problem(s)"]
        lines.extend(f"  {v}" for v in self.violations)
        super().__init__(lines[0], user_message="\n".join(lines))


class OwnershipCycleError(OwnergraphError):
    """The ownership graph contains a cycle and the policy rejects it.

    Attributes:
        cycle: Node ids forming the cycle, first id repeated at the end.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(
            f"Ownership cycle detected: {' -> '.join(self.cycle)}",
            context={"cycle": self.cycle},
        )


__all__ = [
    "OwnergraphError",
    "ConfigError",
    "DiagramValidationError",
    "OwnershipCycleError",
]
