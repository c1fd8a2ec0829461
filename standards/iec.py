from typing import Tuple

from breaker_sizing.models import ConductorMaterial, DutyCycle, FactorType, Standard
from standards.base import ElectricalStandard
from standards.cable_tables import get_earth_conductor_recommendation
from standards.derating_tables import calculate_combined_derating


class IECStandard(ElectricalStandard):
    STANDARD = Standard.IEC
    EDITION = "2009"
    STANDARD_VOLTAGES = (230, 400, 690)
    BREAKER_RATING_REFERENCE = "IEC 60898-1"
    SHORT_CIRCUIT_REFERENCE = "IEC 60898-1"
    SAFETY_FACTOR_REFERENCE = "IEC 60364-5-52"

    def safety_factor(self, duty: DutyCycle) -> Tuple[float, FactorType, str]:
        # No continuous-load multiplier, IEC corrects through derating instead
        return 1.0, FactorType.CORRECTION_FACTOR, self.SAFETY_FACTOR_REFERENCE

    def derating_factors(self, ambient_temp: float, insulation_rating: int,
                         number_of_conductors: int, installation_method=None) -> dict:
        return calculate_combined_derating(
            ambient_temp, insulation_rating, number_of_conductors, Standard.IEC,
            installation_method,
        )

    def earth_conductor(self, phase_size_mm2: float, current: float,
                        material: ConductorMaterial) -> dict:
        return get_earth_conductor_recommendation(phase_size_mm2, current, material, Standard.IEC)
