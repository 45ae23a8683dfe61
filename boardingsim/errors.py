"""Exception types raised by the boarding simulator."""


class BoardingSimError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(BoardingSimError, ValueError):
    """Malformed layout, passenger or optimizer configuration."""


class ContractViolation(BoardingSimError):
    """
    A priority function failed validation and must not drive a simulation.

    The full ValidationResult is kept on the exception so callers can show
    every error and warning, not just the first.
    """

    def __init__(self, result):
        self.result = result
        message = "; ".join(result.errors) or "priority function rejected"
        super().__init__(message)


class NonTermination(BoardingSimError):
    """A simulation hit its tick limit before every passenger was seated."""

    def __init__(self, ticks: int, seated: int, total: int):
        self.ticks = ticks
        self.seated = seated
        self.total = total
        super().__init__(
            f"simulation stopped after {ticks} ticks with {seated}/{total} passengers seated"
        )


class OptimizerPrecondition(BoardingSimError):
    """The chosen algorithm exposes nothing for the optimizer to tune."""
