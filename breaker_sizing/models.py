from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union


class Standard(Enum):
    NEC = "NEC"
    IEC = "IEC"


class Phase(Enum):
    SINGLE = "single"
    THREE = "three"


class LoadMode(Enum):
    KW = "kw"
    AMPS = "amps"


class UnitSystem(Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class ConductorMaterial(Enum):
    COPPER = "copper"
    ALUMINUM = "aluminum"


class SizeUnit(Enum):
    AWG = "AWG"
    KCMIL = "kcmil"
    MM2 = "mm²"


class InstallationMethod(Enum):
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"


class LoadType(Enum):
    RESISTIVE = "resistive"
    INDUCTIVE = "inductive"
    MIXED = "mixed"
    CAPACITIVE = "capacitive"


class DutyCycle(Enum):
    CONTINUOUS = "continuous"
    INTERMITTENT = "intermittent"


class FactorType(Enum):
    CONTINUOUS_LOAD = "continuous-load"
    CORRECTION_FACTOR = "correction-factor"


class TripCurveType(Enum):
    B = "B"
    C = "C"
    D = "D"
    K = "K"
    Z = "Z"


class NECTripType(Enum):
    THERMAL_MAGNETIC = "thermal-magnetic"
    ELECTRONIC = "electronic"
    ADJUSTABLE_MAGNETIC = "adjustable-magnetic"


class AlertType(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Severity(Enum):
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


class VoltageDropStatus(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    WARNING = "warning"
    ERROR = "error"
    EXCEED_LIMIT = "exceed-limit"


class CostImpact(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InstallationDifficulty(Enum):
    EASY = "easy"
    MODERATE = "moderate"
    DIFFICULT = "difficult"


# --- Inputs ---

@dataclass(frozen=True)
class ConductorSize:
    value: Union[float, str]  # 6, "1/0", 250, 10.0 ...
    unit: SizeUnit

    @property
    def key(self) -> str:
        """Size as it appears in the conductor tables ("6", "1/0", "2.5")."""
        if isinstance(self.value, str):
            return self.value.strip()
        if float(self.value).is_integer():
            return str(int(self.value))
        return str(self.value)

    @property
    def table_standard(self) -> Standard:
        # AWG/kcmil sizes live in the NEC tables, mm² in the IEC ones
        return Standard.IEC if self.unit is SizeUnit.MM2 else Standard.NEC

    @property
    def label(self) -> str:
        if self.unit is SizeUnit.MM2:
            return f"{self.key}mm²"
        if self.unit is SizeUnit.KCMIL:
            return f"{self.key} kcmil"
        return f"#{self.key} AWG"


@dataclass(frozen=True)
class CircuitConfiguration:
    standard: Standard
    voltage: float
    phase: Phase
    load_mode: LoadMode
    load_value: float  # kW or A depending on load_mode
    power_factor: float = 0.8
    unit_system: UnitSystem = UnitSystem.METRIC


@dataclass(frozen=True)
class EnvironmentalConditions:
    ambient_temperature: Optional[float] = None  # °C
    grouped_cables: Optional[int] = None
    installation_method: Optional[InstallationMethod] = None
    circuit_distance: Optional[float] = None  # m or ft depending on unit_system
    conductor_material: Optional[ConductorMaterial] = None
    conductor_size: Optional[ConductorSize] = None

    @property
    def requests_derating(self) -> bool:
        return self.ambient_temperature is not None or self.grouped_cables is not None

    @property
    def requests_voltage_drop(self) -> bool:
        return self.circuit_distance is not None and self.conductor_material is not None


@dataclass(frozen=True)
class BreakerCalculationInput:
    circuit: CircuitConfiguration
    environment: Optional[EnvironmentalConditions] = None
    short_circuit_current_ka: Optional[float] = None
    load_type: Optional[LoadType] = None
    # Explicitly chosen breaking capacity; the default capacity applies when None
    breaking_capacity_ka: Optional[float] = None


# --- Stage results ---

@dataclass(frozen=True)
class LoadComponents:
    voltage: float
    phase: Phase
    power: Optional[float] = None
    power_factor: Optional[float] = None


@dataclass(frozen=True)
class LoadCurrentResult:
    current_amps: float
    formula: str
    components: LoadComponents


@dataclass(frozen=True)
class LoadAnalysis:
    calculated_current_amps: float
    formula: str
    components: LoadComponents
    continuous_load_factor: float
    input_power: Optional[float] = None
    input_current: Optional[float] = None


@dataclass(frozen=True)
class SafetyFactorResult:
    minimum_breaker_size: float
    safety_factor: float
    factor_type: FactorType
    code_reference: str


@dataclass(frozen=True)
class DeratingFactorsResult:
    temperature_factor: float
    grouping_factor: float
    combined_factor: float
    adjusted_breaker_size_amps: float
    ambient_temperature: float
    grouped_conductors: int
    code_reference: str
    installation_method: Optional[InstallationMethod] = None
    base_ampacity: Optional[float] = None
    adjusted_ampacity: Optional[int] = None
    utilization_percent: Optional[float] = None


@dataclass(frozen=True)
class TripCurve:
    """IEC 60898 instantaneous trip curve."""
    curve: TripCurveType

    @property
    def code(self) -> str:
        return self.curve.value


@dataclass(frozen=True)
class TripType:
    """NEC breaker trip unit type."""
    trip_type: NECTripType

    @property
    def code(self) -> str:
        return self.trip_type.value


TripSpecification = Union[TripCurve, TripType]


@dataclass(frozen=True)
class BreakerWarning:
    level: AlertType
    code: str
    message: str
    recommendation: Optional[str] = None
    code_reference: Optional[str] = None


@dataclass(frozen=True)
class BreakerSpecification:
    rating_amps: int
    breaking_capacity_ka: float
    trip: TripSpecification
    load_type: LoadType
    standard: Standard
    code_section: str
    is_safe: bool = True
    warnings: Tuple[BreakerWarning, ...] = ()

    @property
    def trip_curve(self) -> Optional[TripCurveType]:
        return self.trip.curve if isinstance(self.trip, TripCurve) else None

    @property
    def trip_type(self) -> Optional[NECTripType]:
        return self.trip.trip_type if isinstance(self.trip, TripType) else None


@dataclass(frozen=True)
class BreakerSizingResult:
    minimum_breaker_size_amps: float
    safety_factor: float
    safety_factor_type: FactorType
    recommended_breaker_amps: int
    recommended_standard: Standard
    candidate_breakers: Tuple[BreakerSpecification, ...]


@dataclass(frozen=True)
class BreakerTypeGuidance:
    recommended_type: str
    rationale: str
    inrush_capability: str


@dataclass(frozen=True)
class CableGuidance:
    minimum_size: str
    recommended_size: Optional[str] = None
    rationale: Optional[str] = None


@dataclass(frozen=True)
class Recommendations:
    primary_breaker: BreakerSpecification
    breaker_type_guidance: BreakerTypeGuidance
    general_notes: Tuple[str, ...]
    cable_guidance: Optional[CableGuidance] = None


@dataclass(frozen=True)
class VoltageDropAnalysis:
    load_current_amps: float
    circuit_distance: float
    conductor_size: str
    conductor_resistance: float  # temperature adjusted, per 1000 units of length
    voltage_drop_volts: float
    voltage_drop_percent: float
    voltage_at_load: float
    power_loss_watts: float
    limit_branch_circuit: float
    limit_combined: float
    status: VoltageDropStatus
    assessment: str
    compliance_percentage: float
    recommended_action: str
    recommended_cable_size: Optional[str] = None
    recommended_vd_percent: Optional[float] = None
    cost_impact: Optional[CostImpact] = None
    installation_difficulty: Optional[InstallationDifficulty] = None


@dataclass(frozen=True)
class CalculationAlert:
    type: AlertType
    code: str
    message: str
    severity: Severity
    code_reference: Optional[str] = None


@dataclass(frozen=True)
class CalculationResults:
    load_analysis: LoadAnalysis
    breaker_sizing: BreakerSizingResult
    recommendations: Recommendations
    calculated_at: str  # ISO-8601, UTC
    calculation_version: str
    alerts: Tuple[CalculationAlert, ...] = ()
    voltage_drop_analysis: Optional[VoltageDropAnalysis] = None
    derating_factors: Optional[DeratingFactorsResult] = None

    def to_dict(self) -> dict:
        return to_plain(self)


def to_plain(obj: Any) -> Any:
    """Recursively converts dataclasses, enums and tuples into JSON-ready values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        data = {f.name: to_plain(getattr(obj, f.name)) for f in fields(obj)}
        # Tag the trip union so both variants stay distinguishable
        if isinstance(obj, (TripCurve, TripType)):
            data["kind"] = type(obj).__name__
        return data
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [to_plain(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): to_plain(v) for k, v in obj.items()}
    return obj
