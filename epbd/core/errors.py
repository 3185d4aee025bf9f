from dataclasses import dataclass


class EpbdError(Exception):
    """Base class of all fatal input errors of a balance computation."""


class InconsistentStepCount(EpbdError, ValueError):
    """Components of one computation have a different number of calculation steps."""


class InvalidComponent(EpbdError, ValueError):
    pass


class MissingFactor(EpbdError, KeyError):
    """A weighting factor needed for a used carrier, source and destination is not defined."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class ParseError(EpbdError, ValueError):
    pass


@dataclass(frozen=True)
class Diagnostic:
    """Non fatal issue found while computing a balance.

    Args:
        kind: Short machine readable tag, e.g. `error_acs`.
        detail: Human readable description.
    """

    kind: str
    detail: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.detail}"
