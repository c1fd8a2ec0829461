from dataclasses import dataclass

from breaker_sizing.models import DutyCycle, LoadType


@dataclass(frozen=True)
class CalculatorConfig:
    calculation_version: str = "1.0.0"

    # Short circuit
    default_breaking_capacity_ka: float = 10.0

    # Derating defaults when only part of the environment is given
    default_ambient_temperature_c: float = 30.0
    default_grouped_conductors: int = 1
    derating_insulation_rating: int = 90
    significant_derating_threshold: float = 0.7

    # Voltage drop
    default_conductor_temperature_c: float = 75.0
    vd_branch_limit_percent: float = 3.0
    vd_combined_limit_percent: float = 5.0

    default_load_type: LoadType = LoadType.MIXED
    default_duty: DutyCycle = DutyCycle.CONTINUOUS

    decimal_precision: int = 34


DEFAULT_CONFIG = CalculatorConfig()
