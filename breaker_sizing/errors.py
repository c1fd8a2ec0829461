from typing import List, Optional, Sequence

from breaker_sizing.models import CalculationAlert


class BreakerSizingError(Exception):
    """Base class for every error raised by the sizing pipeline."""


class InputValidationError(BreakerSizingError, ValueError):
    """Malformed or out-of-range input. Lists every violated rule at once."""

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__("Invalid calculation input: " + "; ".join(self.errors))


class UnsupportedSizeError(BreakerSizingError, LookupError):
    """Requested conductor size is not present in the lookup tables."""

    def __init__(self, size: str, material: str, standard: str):
        self.size = size
        self.material = material
        self.standard = standard
        super().__init__(
            f"Conductor size {size} not found in {standard} {material} cable table"
        )


class CapacityExceededError(BreakerSizingError):
    """Minimum breaker size is above the largest standard rating."""

    def __init__(self, message: str, alert: Optional[CalculationAlert] = None,
                 alerts: Sequence[CalculationAlert] = ()):
        self.alert = alert
        self.alerts = tuple(alerts)
        super().__init__(message)
