from typing import List, Tuple

from breaker_sizing.models import ConductorMaterial, DutyCycle, FactorType, Standard
from standards.base import ElectricalStandard
from standards.cable_tables import get_earth_conductor_recommendation
from standards.derating_tables import calculate_combined_derating


class NECStandard(ElectricalStandard):
    STANDARD = Standard.NEC
    EDITION = "2020"
    STANDARD_VOLTAGES = (120, 208, 240, 277, 480)
    # NEC 210.20(A): continuous loads protected at 125%
    CONTINUOUS_LOAD_FACTOR = 1.25
    BREAKER_RATING_REFERENCE = "NEC 240.6(A)"
    SHORT_CIRCUIT_REFERENCE = "NEC 110.9"
    SAFETY_FACTOR_REFERENCE = "NEC 210.20(A)"

    def safety_factor(self, duty: DutyCycle) -> Tuple[float, FactorType, str]:
        factor = self.CONTINUOUS_LOAD_FACTOR if duty is DutyCycle.CONTINUOUS else 1.0
        # Intermittent loads keep the continuous-load tag
        return factor, FactorType.CONTINUOUS_LOAD, self.SAFETY_FACTOR_REFERENCE

    def derating_factors(self, ambient_temp: float, insulation_rating: int,
                         number_of_conductors: int, installation_method=None) -> dict:
        return calculate_combined_derating(
            ambient_temp, insulation_rating, number_of_conductors, Standard.NEC,
            installation_method,
        )

    def earth_conductor(self, phase_size_mm2: float, current: float,
                        material: ConductorMaterial) -> dict:
        return get_earth_conductor_recommendation(phase_size_mm2, current, material, Standard.NEC)

    def general_notes(self, trip_notes: str) -> List[str]:
        notes = super().general_notes(trip_notes)
        notes.append("NEC 125% continuous load factor applied per Article 210.20(A)")
        return notes
