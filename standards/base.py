from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from breaker_sizing.models import (
    ConductorMaterial, DutyCycle, FactorType, LoadType, Standard,
)
from standards.breaker_ratings import recommend_standard_breaker
from standards.trip_curves import TripCurveRecommendation, recommend_trip_curve


class ElectricalStandard(ABC):
    """Code-specific rules consumed by the sizing pipeline."""

    STANDARD: Standard
    EDITION: str
    STANDARD_VOLTAGES: Tuple[int, ...] = ()
    CONTINUOUS_LOAD_FACTOR: float = 1.0
    BREAKER_RATING_REFERENCE: str
    SHORT_CIRCUIT_REFERENCE: str

    @property
    def name(self) -> str:
        return self.STANDARD.value

    @abstractmethod
    def safety_factor(self, duty: DutyCycle) -> Tuple[float, FactorType, str]:
        """Returns (factor, factor type, code reference) for the given duty."""
        pass

    @abstractmethod
    def derating_factors(self, ambient_temp: float, insulation_rating: int,
                         number_of_conductors: int, installation_method=None) -> dict:
        """Temperature and grouping factors from the code's derating tables."""
        pass

    @abstractmethod
    def earth_conductor(self, phase_size_mm2: float, current: float,
                        material: ConductorMaterial) -> dict:
        """Minimum grounding / protective earth conductor."""
        pass

    def recommend_breaker(self, minimum_amps: float) -> Optional[int]:
        return recommend_standard_breaker(minimum_amps, self.STANDARD)

    def recommend_trip(self, load_type: LoadType, notes: Optional[str] = None) -> TripCurveRecommendation:
        return recommend_trip_curve(load_type, self.STANDARD, notes)

    def is_standard_voltage(self, voltage: float) -> bool:
        return voltage in self.STANDARD_VOLTAGES

    def general_notes(self, trip_notes: str) -> List[str]:
        return [f"Calculation per {self.name} {self.EDITION} edition", trip_notes]
