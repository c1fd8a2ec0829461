"""Enhanced voltage drop analysis (IEEE 835 style).

VD = (k × L × I × R) / 1000 × PF with k = 2 for single-phase and √3 for
three-phase, R in Ω per 1000 length units from the conductor tables.
Limits follow NEC 210.19(A): 3% for a branch circuit, 5% combined.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from breaker_sizing.config import CalculatorConfig
from breaker_sizing.errors import UnsupportedSizeError
from breaker_sizing.models import (
    AlertType, CableGuidance, CalculationAlert, CircuitConfiguration, ConductorMaterial,
    ConductorSize, CostImpact, EnvironmentalConditions, InstallationDifficulty, Phase,
    Severity, Standard, VoltageDropAnalysis, VoltageDropStatus,
)
from breaker_sizing.precision import decimal_context, sqrt3, to_decimal, to_float
from standards.cable_tables import (
    CableTableEntry, get_available_cable_sizes, is_kcmil, lookup_cable_by_size,
)

logger = logging.getLogger(__name__)

# Resistance temperature coefficients per °C
TEMPERATURE_COEFFICIENTS = {
    ConductorMaterial.COPPER: Decimal("0.00393"),
    ConductorMaterial.ALUMINUM: Decimal("0.00403"),
}
REFERENCE_TEMPERATURE_C = 75

SINGLE_PHASE_FORMULA = "VD = (2 × L × I × R) / (1000) × PF (single-phase)"
THREE_PHASE_FORMULA = "VD = (√3 × L × I × R) / (1000) × PF (three-phase)"


@dataclass(frozen=True)
class VoltageDropComponents:
    current: float
    voltage: float
    distance: float
    resistance: float  # Ω over the actual run, temperature adjusted
    power_factor: float
    temperature: float


@dataclass(frozen=True)
class EnhancedVoltageDropResult:
    voltage_drop_percent: float
    voltage_drop_volts: float
    voltage_at_load: float
    power_loss_watts: float
    formula: str
    components: VoltageDropComponents
    temp_adjusted_resistance: float  # Ω / 1000 length units
    conductor: CableTableEntry
    standard: str = "IEEE 835"


@dataclass(frozen=True)
class VoltageDropCompliance:
    status: VoltageDropStatus
    level: AlertType
    message: str
    code_reference: str
    recommended_action: str
    compliance_percentage: float


@dataclass(frozen=True)
class CableSizeRecommendation:
    recommended_size: Optional[CableTableEntry]
    predicted_voltage_drop_percent: Optional[float]
    savings_percent: Optional[float]
    message: str
    code_reference: str
    cost_impact: Optional[CostImpact] = None
    installation_difficulty: Optional[InstallationDifficulty] = None

    @property
    def recommended_label(self) -> Optional[str]:
        if self.recommended_size is None:
            return None
        return cable_label(self.recommended_size)


def cable_label(entry: CableTableEntry) -> str:
    if entry.standard is Standard.IEC:
        return f"{entry.size_metric}mm²"
    if is_kcmil(entry.size_awg):
        return f"{entry.size_awg} kcmil"
    return f"#{entry.size_awg} AWG"


def _lookup_conductor(conductor_size: ConductorSize, material: ConductorMaterial) -> CableTableEntry:
    # The size unit picks the table family: AWG/kcmil in NEC, mm² in IEC
    standard = conductor_size.table_standard
    entry = lookup_cable_by_size(conductor_size.key, material, standard)
    if entry is None:
        raise UnsupportedSizeError(conductor_size.label, material.value, standard.value)
    return entry


def _voltage_drop_for_entry(entry: CableTableEntry, current: float, voltage: float,
                            distance: float, phase: Phase, power_factor: float,
                            temperature: float) -> EnhancedVoltageDropResult:
    if current <= 0:
        raise ValueError("Current must be positive")
    if voltage <= 0:
        raise ValueError("Voltage must be positive")
    if distance <= 0:
        raise ValueError("Distance must be positive")

    with decimal_context():
        r_ref = to_decimal(entry.resistance_ohm_per_1000ft)
        alpha = TEMPERATURE_COEFFICIENTS[entry.material]
        correction = 1 + alpha * (to_decimal(temperature) - REFERENCE_TEMPERATURE_C)
        r_adjusted = r_ref * correction
        run_resistance = r_adjusted * to_decimal(distance) / 1000

        amps = to_decimal(current)
        volts = to_decimal(voltage)
        # The drop itself uses the 75°C table resistance; r_adjusted is reported only
        if phase is Phase.SINGLE:
            multiplier, formula = Decimal(2), SINGLE_PHASE_FORMULA
        else:
            multiplier, formula = sqrt3(), THREE_PHASE_FORMULA
        vd = multiplier * to_decimal(distance) * amps * r_ref / 1000 * to_decimal(power_factor)

        result = EnhancedVoltageDropResult(
            voltage_drop_percent=to_float(vd / volts * 100),
            voltage_drop_volts=to_float(vd),
            voltage_at_load=to_float(volts - vd),
            power_loss_watts=to_float(vd * amps),
            formula=formula,
            components=VoltageDropComponents(
                current=current,
                voltage=voltage,
                distance=distance,
                resistance=to_float(run_resistance),
                power_factor=power_factor,
                temperature=temperature,
            ),
            temp_adjusted_resistance=to_float(r_adjusted),
            conductor=entry,
        )
    return result


def calculate_enhanced_voltage_drop(current: float, voltage: float, distance: float,
                                    conductor_size: ConductorSize, material: ConductorMaterial,
                                    phase: Phase, power_factor: float = 1.0,
                                    temperature: float = REFERENCE_TEMPERATURE_C
                                    ) -> EnhancedVoltageDropResult:
    entry = _lookup_conductor(conductor_size, material)
    return _voltage_drop_for_entry(entry, current, voltage, distance, phase,
                                   power_factor, temperature)


def assess_voltage_drop_compliance(voltage_drop_percent: float, current: float, voltage: float,
                                   branch_limit: float = 3.0,
                                   combined_limit: float = 5.0) -> VoltageDropCompliance:
    """Classifies a drop into excellent / good / acceptable / warning / error / exceed-limit."""
    vd = voltage_drop_percent
    compliance = max(0.0, 100 - vd * 20)
    informational = "NEC 210.19(A) informational note"
    branch_ref = f"NEC 210.19(A) - {branch_limit:g}% branch circuit limit"

    if vd <= 0.5:
        return VoltageDropCompliance(
            VoltageDropStatus.EXCELLENT, AlertType.INFO,
            f"Voltage drop ({vd:.2f}%) is exceptional (< 0.5%). Optimal for sensitive equipment.",
            informational, "No action needed. Performance is optimal.", compliance)
    if vd <= 1.0:
        return VoltageDropCompliance(
            VoltageDropStatus.GOOD, AlertType.INFO,
            f"Voltage drop ({vd:.2f}%) is excellent (< 1%). Equipment will operate at optimal efficiency.",
            informational, "No action needed. Good performance.", compliance)
    if vd <= 2.0:
        return VoltageDropCompliance(
            VoltageDropStatus.ACCEPTABLE, AlertType.INFO,
            f"Voltage drop ({vd:.2f}%) is good (1-2%). Equipment performance is maintained.",
            informational, "Acceptable for most applications.", compliance)
    if vd <= branch_limit:
        return VoltageDropCompliance(
            VoltageDropStatus.WARNING, AlertType.WARNING,
            f"Voltage drop ({vd:.2f}%) approaching limit (2-{branch_limit:g}%). "
            "Consider larger cable for sensitive loads.",
            branch_ref,
            f"Consider increasing conductor size by one standard size. At {current:.2f}A and "
            f"{voltage:g}V, this represents {vd:.2f}% drop.",
            compliance)
    if vd <= combined_limit:
        return VoltageDropCompliance(
            VoltageDropStatus.ERROR, AlertType.ERROR,
            f"Voltage drop ({vd:.2f}%) exceeds NEC {branch_limit:g}% branch circuit limit. "
            "Larger cable size recommended.",
            branch_ref,
            f"Increase conductor size. At {current:.2f}A and {voltage:g}V, this represents "
            f"{vd:.2f}% drop which may cause equipment malfunction.",
            compliance)
    return VoltageDropCompliance(
        VoltageDropStatus.EXCEED_LIMIT, AlertType.ERROR,
        f"Voltage drop ({vd:.2f}%) exceeds NEC {combined_limit:g}% combined limit. "
        "Must use larger cable to prevent equipment malfunction.",
        f"NEC 210.19(A) - {combined_limit:g}% combined limit",
        f"Conductor upgrade required. At {current:.2f}A and {voltage:g}V, this represents "
        f"{vd:.2f}% drop which will likely cause equipment damage or failure.",
        compliance)


def _cost_impact(size_jump: int) -> CostImpact:
    if size_jump <= 2:
        return CostImpact.LOW
    if size_jump <= 4:
        return CostImpact.MEDIUM
    return CostImpact.HIGH


def _installation_difficulty(entry: CableTableEntry) -> InstallationDifficulty:
    cross_section = float(entry.size_metric)
    if cross_section <= 25:
        return InstallationDifficulty.EASY
    if cross_section <= 70:
        return InstallationDifficulty.MODERATE
    return InstallationDifficulty.DIFFICULT


def recommend_cable_size_for_vd(current: float, voltage: float, distance: float,
                                conductor_size: ConductorSize, material: ConductorMaterial,
                                phase: Phase, power_factor: float = 1.0,
                                temperature: float = REFERENCE_TEMPERATURE_C,
                                vd_limit: float = 3.0) -> CableSizeRecommendation:
    """Walks up the conductor table from the current size to the first one within vd_limit."""
    present = calculate_enhanced_voltage_drop(current, voltage, distance, conductor_size,
                                              material, phase, power_factor, temperature)
    present_vd = present.voltage_drop_percent
    if present_vd <= vd_limit:
        return CableSizeRecommendation(
            None, None, None,
            f"Voltage drop ({present_vd:.2f}%) is within acceptable limit ({vd_limit:g}%). "
            "No larger cable needed.",
            "NEC 210.19(A)",
        )

    table = get_available_cable_sizes(present.conductor.standard, material)
    current_index = table.index(present.conductor)
    if current_index >= len(table) - 1:
        return CableSizeRecommendation(
            None, None, None,
            "Current cable is already the largest available size. "
            "Consider voltage transformation or shorter distance.",
            "NEC Chapter 9 Table 8",
            CostImpact.HIGH, InstallationDifficulty.DIFFICULT,
        )

    for index in range(current_index + 1, len(table)):
        candidate = table[index]
        predicted = _voltage_drop_for_entry(candidate, current, voltage, distance, phase,
                                            power_factor, temperature).voltage_drop_percent
        if predicted <= vd_limit:
            savings = (present_vd - predicted) / present_vd * 100
            return CableSizeRecommendation(
                recommended_size=candidate,
                predicted_voltage_drop_percent=predicted,
                savings_percent=savings,
                message=(f"Recommended {cable_label(candidate)} {material.value} conductor. "
                         f"Reduces voltage drop from {present_vd:.2f}% to {predicted:.2f}% "
                         f"({savings:.1f}% improvement)."),
                code_reference="NEC 210.19(A) - consider larger conductor",
                cost_impact=_cost_impact(index - current_index),
                installation_difficulty=_installation_difficulty(candidate),
            )

    largest = table[-1]
    return CableSizeRecommendation(
        None, None, None,
        f"Even the largest available cable ({cable_label(largest)}) exceeds {vd_limit:g}% VD. "
        "Consider voltage transformation.",
        "NEC Chapter 9",
        CostImpact.HIGH, InstallationDifficulty.DIFFICULT,
    )


def calculate_minimum_cable_size_for_target_vd(current: float, voltage: float, distance: float,
                                               material: ConductorMaterial, phase: Phase,
                                               target_vd_percent: float,
                                               power_factor: float = 1.0,
                                               standard: Standard = Standard.NEC,
                                               temperature: float = REFERENCE_TEMPERATURE_C
                                               ) -> CableTableEntry:
    """Smallest conductor meeting the target drop, else the largest in the table."""
    table = get_available_cable_sizes(standard, material)
    for entry in table:
        result = _voltage_drop_for_entry(entry, current, voltage, distance, phase,
                                         power_factor, temperature)
        if result.voltage_drop_percent <= target_vd_percent:
            return entry
    return table[-1]


def analyze_voltage_drop(environment: EnvironmentalConditions, circuit: CircuitConfiguration,
                         load_current: float, config: CalculatorConfig
                         ) -> Tuple[VoltageDropAnalysis, List[CalculationAlert], CableGuidance]:
    """Pipeline stage: drop, compliance band and, past the branch limit, an upsized conductor."""
    if environment.conductor_size is None:
        raise ValueError("Conductor size is required for voltage drop analysis")

    temperature = environment.ambient_temperature
    if temperature is None:
        temperature = config.default_conductor_temperature_c
    size = environment.conductor_size
    material = environment.conductor_material

    vd = calculate_enhanced_voltage_drop(
        load_current, circuit.voltage, environment.circuit_distance, size, material,
        circuit.phase, circuit.power_factor, temperature,
    )
    compliance = assess_voltage_drop_compliance(
        vd.voltage_drop_percent, load_current, circuit.voltage,
        config.vd_branch_limit_percent, config.vd_combined_limit_percent,
    )

    recommendation = None
    if vd.voltage_drop_percent > config.vd_branch_limit_percent:
        recommendation = recommend_cable_size_for_vd(
            load_current, circuit.voltage, environment.circuit_distance, size, material,
            circuit.phase, circuit.power_factor, temperature, config.vd_branch_limit_percent,
        )

    alerts = []
    if compliance.status in (VoltageDropStatus.WARNING, VoltageDropStatus.ERROR,
                             VoltageDropStatus.EXCEED_LIMIT):
        alerts.append(CalculationAlert(
            type=compliance.level,
            code="VOLTAGE_DROP_ISSUE",
            message=compliance.message,
            severity=Severity.CRITICAL if compliance.level is AlertType.ERROR else Severity.MAJOR,
            code_reference=compliance.code_reference,
        ))

    analysis = VoltageDropAnalysis(
        load_current_amps=load_current,
        circuit_distance=environment.circuit_distance,
        conductor_size=size.label,
        conductor_resistance=vd.temp_adjusted_resistance,
        voltage_drop_volts=vd.voltage_drop_volts,
        voltage_drop_percent=vd.voltage_drop_percent,
        voltage_at_load=vd.voltage_at_load,
        power_loss_watts=vd.power_loss_watts,
        limit_branch_circuit=config.vd_branch_limit_percent,
        limit_combined=config.vd_combined_limit_percent,
        status=compliance.status,
        assessment=compliance.message,
        compliance_percentage=compliance.compliance_percentage,
        recommended_action=compliance.recommended_action,
        recommended_cable_size=recommendation.recommended_label if recommendation else None,
        recommended_vd_percent=recommendation.predicted_voltage_drop_percent if recommendation else None,
        cost_impact=recommendation.cost_impact if recommendation else None,
        installation_difficulty=recommendation.installation_difficulty if recommendation else None,
    )
    guidance = CableGuidance(
        minimum_size=size.label,
        recommended_size=analysis.recommended_cable_size,
        rationale=recommendation.message if recommendation else compliance.recommended_action,
    )

    logger.debug("[voltage-drop] %s %.3f%% status=%s", size.label,
                 vd.voltage_drop_percent, compliance.status.value)
    return analysis, alerts, guidance
