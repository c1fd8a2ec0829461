"""Load current from power or direct current input.

Single-phase: ``I = P / (V × PF)``; three-phase: ``I = P / (√3 × V × PF)``.
Arithmetic runs on ``Decimal`` so values compared against code thresholds
carry no binary floating point error.
"""

import logging
from typing import List, Optional

from breaker_sizing.errors import InputValidationError
from breaker_sizing.models import LoadComponents, LoadCurrentResult, Phase
from breaker_sizing.precision import decimal_context, sqrt3, to_decimal, to_float

logger = logging.getLogger(__name__)

USER_INPUT_FORMULA = "I = (user input)"
SINGLE_PHASE_FORMULA = "I = P / (V × PF)"
THREE_PHASE_FORMULA = "I = P / (√3 × V × PF)"


def validate_load_current_input(voltage: float, power: Optional[float] = None,
                                current: Optional[float] = None,
                                power_factor: Optional[float] = None) -> None:
    errors: List[str] = []
    if power is None and current is None:
        errors.append("Either power or current must be provided")
    if power is not None and current is not None:
        errors.append("Cannot specify both power and current")

    if voltage <= 0:
        errors.append("Voltage must be positive")
    elif voltage < 100 or voltage > 1000:
        errors.append("Voltage must be between 100V and 1000V")

    if power is not None:
        if power_factor is None:
            errors.append("Power factor is required when calculating from power")
        elif power_factor < 0.5 or power_factor > 1.0:
            errors.append("Power factor must be between 0.5 and 1.0")
        if power <= 0:
            errors.append("Power must be positive")
    if current is not None and current <= 0:
        errors.append("Current must be positive")

    if errors:
        raise InputValidationError(errors)


def calculate_load_current(voltage: float, phase: Phase, power: Optional[float] = None,
                           current: Optional[float] = None, power_factor: Optional[float] = None,
                           precision: int = 34) -> LoadCurrentResult:
    """Exactly one of power (kW) or current (A) must be given."""
    validate_load_current_input(voltage, power, current, power_factor)

    if current is not None:
        return LoadCurrentResult(
            current_amps=current,
            formula=USER_INPUT_FORMULA,
            components=LoadComponents(voltage=voltage, phase=phase),
        )

    with decimal_context(precision):
        watts = to_decimal(power) * 1000
        denominator = to_decimal(voltage) * to_decimal(power_factor)
        if phase is Phase.SINGLE:
            formula = SINGLE_PHASE_FORMULA
        else:
            denominator = sqrt3() * denominator
            formula = THREE_PHASE_FORMULA
        amps = to_float(watts / denominator)

    logger.debug("[load-current] %s -> %.4f A", formula, amps)
    return LoadCurrentResult(
        current_amps=amps,
        formula=formula,
        components=LoadComponents(voltage=voltage, phase=phase, power=power,
                                  power_factor=power_factor),
    )


def calculate_apparent_power(real_power_kw: float, power_factor: float) -> float:
    """S (kVA) = P / PF."""
    with decimal_context():
        return to_float(to_decimal(real_power_kw) / to_decimal(power_factor))


def calculate_reactive_power(real_power_kw: float, power_factor: float) -> float:
    """Q (kVAR) = P × tan(acos(PF))."""
    # Decimal has no trig functions, tan(acos(pf)) = sqrt(1 - pf²) / pf
    with decimal_context():
        pf = to_decimal(power_factor)
        tan_phi = (1 - pf * pf).sqrt() / pf
        return to_float(to_decimal(real_power_kw) * tan_phi)


def convert_phase_current(current: float, from_phase: Phase, to_phase: Phase) -> float:
    if from_phase is to_phase:
        return current
    with decimal_context():
        amps = to_decimal(current)
        if from_phase is Phase.SINGLE:
            return to_float(amps / sqrt3())
        return to_float(amps * sqrt3())
