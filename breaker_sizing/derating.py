import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from breaker_sizing.config import CalculatorConfig
from breaker_sizing.models import (
    AlertType, CalculationAlert, ConductorMaterial, DeratingFactorsResult,
    EnvironmentalConditions, Severity, Standard,
)
from breaker_sizing.precision import decimal_context, round_to, to_decimal, to_float
from standards.cable_tables import find_minimum_cable_size, lookup_cable_by_size
from standards.registry import get_standard

logger = logging.getLogger(__name__)

HIGH_UTILIZATION_PERCENT = 80
VERY_LOW_TOTAL_FACTOR = 0.4


@dataclass(frozen=True)
class DeratingCalculation:
    temperature_factor: float
    grouping_factor: float
    total_factor: float
    standard_reference: str
    is_derated: bool
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AmpacityCheck:
    derated_ampacity: int
    is_compliant: bool
    utilization_percent: float
    warning: Optional[str] = None


def very_low_factor_warning(total_factor: float) -> Optional[str]:
    if total_factor >= VERY_LOW_TOTAL_FACTOR:
        return None
    return (f"Combined derating factor {total_factor * 100:.0f}% is very low. "
            "Consider alternative installation method.")


def calculate_derating_factors(ambient_temp: float, insulation_rating: int,
                               number_of_conductors: int, standard: Standard,
                               installation_method=None) -> DeratingCalculation:
    """Temperature × grouping correction with advisory warnings.

    ``installation_method`` accepts an IEC method (A1..G) or one of the
    aliases ``conduit``, ``cable-tray``, ``direct``, ``direct-burial`` and
    ``free-air``; it only affects IEC grouping.
    """
    raw = get_standard(standard).derating_factors(
        ambient_temp, insulation_rating, number_of_conductors, installation_method,
    )
    temperature_factor = raw["temperature_factor"]
    grouping_factor = raw["grouping_factor"]
    with decimal_context():
        total = to_decimal(temperature_factor) * to_decimal(grouping_factor)

    warnings = []
    if temperature_factor == 0:
        warnings.append(f"Ambient temperature {ambient_temp:g}°C exceeds maximum for "
                        f"{insulation_rating}°C insulation")
    if standard is Standard.NEC:
        if 0 < temperature_factor < 0.5:
            warnings.append(f"High ambient temperature {ambient_temp:g}°C results in significant "
                            f"derating ({temperature_factor * 100:.0f}%)")
        if grouping_factor < 0.5:
            warnings.append(f"Large number of conductors ({number_of_conductors}) results in "
                            f"significant derating ({grouping_factor * 100:.0f}%)")
    elif grouping_factor < 0.5:
        circuits = math.ceil(number_of_conductors / 3)
        warnings.append(f"Large number of circuits ({circuits}) results in significant "
                        f"derating ({grouping_factor * 100:.0f}%)")
    total_factor = round_to(total, 3)
    very_low = very_low_factor_warning(total_factor)
    if very_low:
        warnings.append(very_low)

    return DeratingCalculation(
        temperature_factor=round_to(temperature_factor, 3),
        grouping_factor=round_to(grouping_factor, 3),
        total_factor=total_factor,
        standard_reference=raw["standard_reference"],
        is_derated=total < 1,
        warnings=tuple(warnings),
    )


def calculate_derated_ampacity(base_ampacity: float, total_factor: float) -> int:
    with decimal_context():
        return math.floor(to_decimal(base_ampacity) * to_decimal(total_factor))


def check_ampacity_compliance(current: float, base_ampacity: float,
                              total_factor: float) -> AmpacityCheck:
    derated = calculate_derated_ampacity(base_ampacity, total_factor)
    if derated <= 0:
        raise ValueError(f"Derated ampacity of {base_ampacity:g}A cable is zero")
    with decimal_context():
        utilization = to_float(to_decimal(current) / derated * 100)
    is_compliant = current <= derated

    warning = None
    if not is_compliant:
        warning = (f"Current {current:.2f}A exceeds derated ampacity {derated}A "
                   f"({utilization:.0f}% utilization). Risk of overheating.")
    elif utilization > HIGH_UTILIZATION_PERCENT:
        warning = f"High utilization ({utilization:.0f}%). Consider larger cable size."

    return AmpacityCheck(
        derated_ampacity=derated,
        is_compliant=is_compliant,
        utilization_percent=round_to(utilization, 1),
        warning=warning,
    )


def _base_ampacity(environment: EnvironmentalConditions, minimum_breaker_size: float,
                   insulation_rating: int, standard: Standard) -> Optional[float]:
    material = environment.conductor_material or ConductorMaterial.COPPER
    size = environment.conductor_size
    if size is not None:
        entry = lookup_cable_by_size(size.key, material, size.table_standard)
        if entry is not None:
            return entry.ampacity(insulation_rating)
        logger.debug("[derating] %s not in tables, sizing conductor from breaker", size.label)
    entry = find_minimum_cable_size(minimum_breaker_size, material, insulation_rating, standard)
    return entry.ampacity(insulation_rating) if entry is not None else None


def derate_breaker_size(environment: EnvironmentalConditions, minimum_breaker_size: float,
                        load_current: float, standard: Standard, config: CalculatorConfig
                        ) -> Tuple[Optional[DeratingFactorsResult], List[CalculationAlert]]:
    """Pipeline stage: correction factors and the breaker size the derated cable still supports.

    Returns no result, only alerts, when ambient exceeds the insulation rating.
    """
    alerts: List[CalculationAlert] = []
    ambient = environment.ambient_temperature
    if ambient is None:
        ambient = config.default_ambient_temperature_c
    conductors = environment.grouped_cables
    if conductors is None:
        conductors = config.default_grouped_conductors
    insulation = config.derating_insulation_rating

    calc = calculate_derating_factors(ambient, insulation, conductors, standard,
                                      environment.installation_method)

    if calc.temperature_factor == 0:
        message = calc.warnings[0]
        logger.warning("[derating] %s", message)
        alerts.append(CalculationAlert(
            type=AlertType.WARNING,
            code="DERATING_TEMPERATURE_EXCEEDED",
            message=message,
            severity=Severity.MAJOR,
            code_reference=calc.standard_reference,
        ))
        return None, alerts

    # Cold ambient never raises the breaker's allowance above its rating
    temperature_factor = min(calc.temperature_factor, 1.0)
    with decimal_context(config.decimal_precision):
        combined = to_decimal(temperature_factor) * to_decimal(calc.grouping_factor)
        adjusted = to_decimal(minimum_breaker_size) / combined
        combined_factor = to_float(combined)
        adjusted_size = to_float(adjusted)

    if combined_factor < config.significant_derating_threshold:
        alerts.append(CalculationAlert(
            type=AlertType.WARNING,
            code="SIGNIFICANT_DERATING",
            message=(f"Combined derating factors ({combined_factor * 100:.0f}%) require "
                     f"{adjusted_size:.1f}A breaker. Verify cable ampacity allows this size."),
            severity=Severity.MAJOR,
            code_reference=calc.standard_reference,
        ))
    # Re-check the very-low warning against the clamped factor actually applied
    warnings = [w for w in calc.warnings if w != very_low_factor_warning(calc.total_factor)]
    very_low = very_low_factor_warning(combined_factor)
    if very_low:
        warnings.append(very_low)
    for warning in warnings:
        alerts.append(CalculationAlert(
            type=AlertType.WARNING,
            code="DERATING_WARNING",
            message=warning,
            severity=Severity.MINOR,
            code_reference=calc.standard_reference,
        ))

    base_ampacity = _base_ampacity(environment, minimum_breaker_size, insulation, standard)
    adjusted_ampacity = None
    utilization = None
    if base_ampacity is not None:
        check = check_ampacity_compliance(load_current, base_ampacity, combined_factor)
        adjusted_ampacity = check.derated_ampacity
        utilization = check.utilization_percent
        if not check.is_compliant:
            alerts.append(CalculationAlert(
                type=AlertType.ERROR,
                code="AMPACITY_EXCEEDED",
                message=check.warning,
                severity=Severity.CRITICAL,
                code_reference=calc.standard_reference,
            ))
        elif check.warning:
            alerts.append(CalculationAlert(
                type=AlertType.WARNING,
                code="HIGH_CONDUCTOR_UTILIZATION",
                message=check.warning,
                severity=Severity.MINOR,
                code_reference=calc.standard_reference,
            ))

    logger.debug("[derating] temp=%s grouping=%s combined=%s adjusted=%.2f A",
                 temperature_factor, calc.grouping_factor, combined_factor, adjusted_size)

    method = environment.installation_method
    return DeratingFactorsResult(
        temperature_factor=temperature_factor,
        grouping_factor=calc.grouping_factor,
        combined_factor=combined_factor,
        adjusted_breaker_size_amps=adjusted_size,
        ambient_temperature=ambient,
        grouped_conductors=conductors,
        code_reference=calc.standard_reference,
        installation_method=method,
        base_ampacity=base_ampacity,
        adjusted_ampacity=adjusted_ampacity,
        utilization_percent=utilization,
    ), alerts

