import logging
from typing import Dict

from breaker_sizing.errors import InputValidationError
from breaker_sizing.models import DutyCycle, SafetyFactorResult, Standard
from breaker_sizing.precision import decimal_context, to_decimal, to_float
from standards.registry import get_standard

logger = logging.getLogger(__name__)

# NEC Article 100: a continuous load runs at maximum current for 3 hours or more
CONTINUOUS_LOAD_HOURS = 3


def apply_safety_factor(load_current: float, standard: Standard,
                        duty: DutyCycle = DutyCycle.CONTINUOUS,
                        precision: int = 34) -> SafetyFactorResult:
    """Minimum breaker size = load current × code safety factor."""
    factor, factor_type, reference = get_standard(standard).safety_factor(duty)
    with decimal_context(precision):
        minimum = to_decimal(load_current) * to_decimal(factor)
        minimum_amps = to_float(minimum)

    logger.debug("[safety-factor] %s %s factor=%s minimum=%.4f A",
                 standard.value, duty.value, factor, minimum_amps)
    return SafetyFactorResult(
        minimum_breaker_size=minimum_amps,
        safety_factor=factor,
        factor_type=factor_type,
        code_reference=reference,
    )


def get_safety_factor(standard: Standard, duty: DutyCycle = DutyCycle.CONTINUOUS) -> float:
    return get_standard(standard).safety_factor(duty)[0]


def get_safety_factor_code_reference(standard: Standard) -> str:
    return get_standard(standard).safety_factor(DutyCycle.CONTINUOUS)[2]


def is_load_continuous(operating_hours: float) -> bool:
    return operating_hours >= CONTINUOUS_LOAD_HOURS


def calculate_both_scenarios(load_current: float, standard: Standard) -> Dict[str, object]:
    continuous = apply_safety_factor(load_current, standard, DutyCycle.CONTINUOUS)
    intermittent = apply_safety_factor(load_current, standard, DutyCycle.INTERMITTENT)
    with decimal_context():
        difference = to_float(to_decimal(continuous.minimum_breaker_size)
                              - to_decimal(intermittent.minimum_breaker_size))
    return {
        "continuous": continuous,
        "intermittent": intermittent,
        "difference": difference,
    }


def apply_diversity_factor(load_current: float, diversity_factor: float) -> float:
    """Scales a connected load by the share expected to run simultaneously."""
    if diversity_factor < 0 or diversity_factor > 1.0:
        raise InputValidationError(["diversity_factor: Diversity factor must be between 0 and 1.0"])
    with decimal_context():
        return to_float(to_decimal(load_current) * to_decimal(diversity_factor))


def calculate_safety_margin(load_current: float, breaker_rating: float) -> float:
    """Headroom of the breaker over the load, as a percentage of the load."""
    with decimal_context():
        load = to_decimal(load_current)
        margin = (to_decimal(breaker_rating) - load) / load * 100
        return to_float(margin)
