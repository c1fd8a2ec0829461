"""Breaker sizing pipeline.

Validate -> load current -> safety factor -> [derating] -> standard rating
-> trip curve -> breaker spec -> short circuit check -> recommendations
-> [voltage drop] -> results.

Core stages raise; the bracketed optional stages are isolated with
``run_optional_stage`` and only leave an alert or a log entry behind when
they fail.
"""

import dataclasses
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Union

from breaker_sizing.cache import CalculationCache, cache_key
from breaker_sizing.config import DEFAULT_CONFIG, CalculatorConfig
from breaker_sizing.derating import derate_breaker_size
from breaker_sizing.errors import CapacityExceededError
from breaker_sizing.load_current import calculate_load_current
from breaker_sizing.models import (
    AlertType, BreakerCalculationInput, BreakerSizingResult, BreakerSpecification,
    BreakerTypeGuidance, BreakerWarning, CalculationAlert, CalculationResults, LoadAnalysis,
    LoadMode, Recommendations, Severity, Standard,
)
from breaker_sizing.safety_factor import apply_safety_factor
from breaker_sizing.stages import run_optional_stage
from breaker_sizing.validation import validate_calculation_input, validate_with_warnings
from breaker_sizing.voltage_drop import analyze_voltage_drop
from standards.registry import get_standard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuickBreakerLookup:
    minimum_breaker_size_amps: float
    safety_factor: float
    recommended_breaker_amps: Optional[int]
    code_reference: str


def calculate_breaker_sizing(data: Union[BreakerCalculationInput, dict],
                             config: CalculatorConfig = DEFAULT_CONFIG,
                             cache: Optional[CalculationCache] = None) -> CalculationResults:
    """Runs the full sizing pipeline.

    Raises InputValidationError for malformed input and CapacityExceededError
    when no standard breaker rating is large enough. Everything else ends up
    as an alert on the returned results.
    """
    started = time.perf_counter()
    validated, input_warnings = validate_with_warnings(data)

    key = None
    if cache is not None:
        key = cache_key(validated, config)
        cached = cache.get(key)
        if cached is not None:
            logger.debug("[pipeline] cache hit %s", key[:12])
            return cached

    circuit = validated.circuit
    environment = validated.environment
    strategy = get_standard(circuit.standard)
    logger.info("[pipeline] calculating %s %gV %s-phase %s=%g",
                circuit.standard.value, circuit.voltage, circuit.phase.value,
                circuit.load_mode.value, circuit.load_value)

    alerts: List[CalculationAlert] = [
        CalculationAlert(
            type=AlertType.INFO,
            code="INPUT_WARNING",
            message=warning,
            severity=Severity.MINOR,
        )
        for warning in input_warnings
    ]

    # Load current
    if circuit.load_mode is LoadMode.KW:
        load = calculate_load_current(circuit.voltage, circuit.phase, power=circuit.load_value,
                                      power_factor=circuit.power_factor,
                                      precision=config.decimal_precision)
    else:
        load = calculate_load_current(circuit.voltage, circuit.phase, current=circuit.load_value,
                                      precision=config.decimal_precision)
    load_analysis = LoadAnalysis(
        calculated_current_amps=load.current_amps,
        formula=load.formula,
        components=load.components,
        continuous_load_factor=strategy.CONTINUOUS_LOAD_FACTOR,
        input_power=circuit.load_value if circuit.load_mode is LoadMode.KW else None,
        input_current=circuit.load_value if circuit.load_mode is LoadMode.AMPS else None,
    )

    # Safety factor
    safety = apply_safety_factor(load.current_amps, circuit.standard, config.default_duty,
                                 config.decimal_precision)

    # Derating
    derating = None
    if environment is not None and environment.requests_derating:
        stage = run_optional_stage("derating", derate_breaker_size, environment,
                                   safety.minimum_breaker_size, load.current_amps,
                                   circuit.standard, config)
        if stage.ok:
            derating, derating_alerts = stage.value
            alerts.extend(derating_alerts)
        else:
            logger.warning("[derating] skipped: %s", stage.error)

    # Standard breaker rating
    sizing_amps = safety.minimum_breaker_size
    if derating is not None:
        sizing_amps = derating.adjusted_breaker_size_amps
    rating = strategy.recommend_breaker(sizing_amps)
    if rating is None:
        message = (f"Calculated minimum breaker size ({sizing_amps:.1f}A) exceeds maximum "
                   "standard rating (4000A). Consider parallel breakers or higher voltage.")
        alert = CalculationAlert(
            type=AlertType.ERROR,
            code="BREAKER_SIZE_EXCEEDED",
            message=message,
            severity=Severity.CRITICAL,
            code_reference=strategy.BREAKER_RATING_REFERENCE,
        )
        alerts.append(alert)
        logger.error("[breaker-lookup] %s", message)
        raise CapacityExceededError(message, alert=alert, alerts=alerts)
    logger.info("[breaker-lookup] %.2f A -> %d A %s", sizing_amps, rating, strategy.name)

    # Trip curve and breaker specification
    load_type = validated.load_type or config.default_load_type
    trip = strategy.recommend_trip(load_type)
    breaking_capacity = validated.breaking_capacity_ka
    if breaking_capacity is None:
        breaking_capacity = config.default_breaking_capacity_ka
    breaker = BreakerSpecification(
        rating_amps=rating,
        breaking_capacity_ka=breaking_capacity,
        trip=trip.trip,
        load_type=load_type,
        standard=circuit.standard,
        code_section=strategy.BREAKER_RATING_REFERENCE,
    )

    # Short circuit
    fault_ka = validated.short_circuit_current_ka
    if fault_ka is not None:
        if fault_ka > breaking_capacity:
            alerts.append(CalculationAlert(
                type=AlertType.WARNING,
                code="SHORT_CIRCUIT_CAPACITY_LOW",
                message=(f"Fault current ({fault_ka:g}kA) exceeds breaker breaking capacity "
                         f"({breaking_capacity:g}kA). Specify higher breaking capacity breaker."),
                severity=Severity.MAJOR,
                code_reference=strategy.SHORT_CIRCUIT_REFERENCE,
            ))
            breaker = dataclasses.replace(
                breaker,
                is_safe=False,
                warnings=breaker.warnings + (BreakerWarning(
                    level=AlertType.ERROR,
                    code="INSUFFICIENT_BREAKING_CAPACITY",
                    message="Breaking capacity insufficient for fault current",
                    recommendation=f"Use breaker with ≥{fault_ka:g}kA breaking capacity",
                    code_reference=strategy.SHORT_CIRCUIT_REFERENCE,
                ),),
            )
            logger.debug("[short-circuit] %g kA > %g kA", fault_ka, breaking_capacity)
    else:
        alerts.append(CalculationAlert(
            type=AlertType.INFO,
            code="BREAKING_CAPACITY_NOT_VERIFIED",
            message="Breaking capacity not verified. Consult site-specific fault current calculations.",
            severity=Severity.MINOR,
            code_reference=strategy.SHORT_CIRCUIT_REFERENCE,
        ))

    breaker_sizing = BreakerSizingResult(
        minimum_breaker_size_amps=safety.minimum_breaker_size,
        safety_factor=safety.safety_factor,
        safety_factor_type=safety.factor_type,
        recommended_breaker_amps=rating,
        recommended_standard=circuit.standard,
        candidate_breakers=(breaker,),
    )

    # Recommendations
    recommendations = Recommendations(
        primary_breaker=breaker,
        breaker_type_guidance=BreakerTypeGuidance(
            recommended_type=trip.display_name,
            rationale=trip.rationale,
            inrush_capability=trip.inrush_capability,
        ),
        general_notes=tuple(strategy.general_notes(trip.notes)),
    )

    # Voltage drop
    voltage_drop = None
    if environment is not None and environment.requests_voltage_drop:
        stage = run_optional_stage("voltage-drop", analyze_voltage_drop, environment, circuit,
                                   load.current_amps, config)
        if stage.ok:
            voltage_drop, vd_alerts, cable_guidance = stage.value
            alerts.extend(vd_alerts)
            recommendations = dataclasses.replace(recommendations, cable_guidance=cable_guidance)
        else:
            logger.warning("[voltage-drop] skipped: %s", stage.error)

    results = CalculationResults(
        load_analysis=load_analysis,
        breaker_sizing=breaker_sizing,
        recommendations=recommendations,
        calculated_at=datetime.now(timezone.utc).isoformat(),
        calculation_version=config.calculation_version,
        alerts=tuple(alerts),
        voltage_drop_analysis=voltage_drop,
        derating_factors=derating,
    )
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("[pipeline] done in %.1f ms: %d A breaker, %d alerts",
                elapsed_ms, rating, len(results.alerts))

    if cache is not None:
        cache.put(key, results)
    return results


def quick_breaker_lookup(load_current: float, standard: Standard) -> QuickBreakerLookup:
    """Safety factor and standard rating for a bare current, without the rest of the pipeline."""
    safety = apply_safety_factor(load_current, standard)
    return QuickBreakerLookup(
        minimum_breaker_size_amps=safety.minimum_breaker_size,
        safety_factor=safety.safety_factor,
        recommended_breaker_amps=get_standard(standard).recommend_breaker(safety.minimum_breaker_size),
        code_reference=safety.code_reference,
    )


def recalculate_with_standard(data: Union[BreakerCalculationInput, dict], new_standard: Standard,
                              config: CalculatorConfig = DEFAULT_CONFIG) -> CalculationResults:
    validated = validate_calculation_input(data)
    circuit = dataclasses.replace(validated.circuit, standard=new_standard)
    return calculate_breaker_sizing(dataclasses.replace(validated, circuit=circuit), config)
