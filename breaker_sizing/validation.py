"""Input schemas and advisory checks for a breaker sizing request."""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError, field_validator

from breaker_sizing.errors import InputValidationError
from breaker_sizing.models import (
    BreakerCalculationInput, CircuitConfiguration, ConductorMaterial, ConductorSize,
    EnvironmentalConditions, InstallationMethod, LoadMode, LoadType, Phase, SizeUnit,
    Standard, UnitSystem, to_plain,
)
from standards.registry import get_standard

logger = logging.getLogger(__name__)

LONG_DISTANCE_METRIC_M = 300
LONG_DISTANCE_IMPERIAL_FT = 1000


class _BaseModel(BaseModel):
    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
    }


class ConductorSizeModel(_BaseModel):
    value: Union[float, str]
    unit: SizeUnit

    @field_validator("value")
    @classmethod
    def _positive_size(cls, v):
        if isinstance(v, str):
            if not v.strip():
                raise ValueError("Conductor size must not be empty")
        elif v <= 0:
            raise ValueError("Conductor size must be positive")
        return v

    def to_dataclass(self) -> ConductorSize:
        return ConductorSize(value=self.value, unit=self.unit)


class CircuitConfigurationModel(_BaseModel):
    standard: Standard
    voltage: float
    phase: Phase
    load_mode: LoadMode
    load_value: float
    power_factor: float = 0.8
    unit_system: UnitSystem = UnitSystem.METRIC

    @field_validator("voltage")
    @classmethod
    def _voltage_range(cls, v):
        if v <= 0:
            raise ValueError("Voltage must be positive")
        if v < 100:
            raise ValueError("Voltage must be at least 100V")
        if v > 1000:
            raise ValueError("Voltage must not exceed 1000V")
        return v

    @field_validator("load_value")
    @classmethod
    def _load_range(cls, v):
        if v <= 0:
            raise ValueError("Load must be greater than zero")
        if v > 10000:
            raise ValueError("Load must not exceed 10,000 (kW or A)")
        return v

    @field_validator("power_factor")
    @classmethod
    def _power_factor_range(cls, v):
        if v < 0.5:
            raise ValueError("Power factor must be at least 0.5")
        if v > 1.0:
            raise ValueError("Power factor must not exceed 1.0")
        return v

    def to_dataclass(self) -> CircuitConfiguration:
        return CircuitConfiguration(**dict(self))


class EnvironmentalConditionsModel(_BaseModel):
    ambient_temperature: Optional[float] = None
    grouped_cables: Optional[int] = None
    installation_method: Optional[InstallationMethod] = None
    circuit_distance: Optional[float] = None
    conductor_material: Optional[ConductorMaterial] = None
    conductor_size: Optional[ConductorSizeModel] = None

    @field_validator("ambient_temperature")
    @classmethod
    def _temperature_range(cls, v):
        if v is None:
            return v
        if v < -40:
            raise ValueError("Temperature must be at least -40°C")
        if v > 70:
            raise ValueError("Temperature must not exceed 70°C")
        return v

    @field_validator("grouped_cables")
    @classmethod
    def _grouping_range(cls, v):
        if v is None:
            return v
        if v < 1:
            raise ValueError("Must have at least 1 cable")
        if v > 100:
            raise ValueError("Grouping assumption: limit to 100 cables")
        return v

    @field_validator("circuit_distance")
    @classmethod
    def _distance_range(cls, v):
        if v is None:
            return v
        if v <= 0:
            raise ValueError("Distance must be greater than zero")
        if v > 10000:
            raise ValueError("Distance must not exceed 10,000 (m or ft)")
        return v

    def to_dataclass(self) -> EnvironmentalConditions:
        data = dict(self)
        data["conductor_size"] = self.conductor_size.to_dataclass() if self.conductor_size else None
        return EnvironmentalConditions(**data)


class BreakerCalculationInputModel(_BaseModel):
    circuit: CircuitConfigurationModel
    environment: Optional[EnvironmentalConditionsModel] = None
    short_circuit_current_ka: Optional[float] = None
    load_type: Optional[LoadType] = None
    breaking_capacity_ka: Optional[float] = None

    @field_validator("short_circuit_current_ka")
    @classmethod
    def _fault_current_range(cls, v):
        if v is None:
            return v
        if v <= 0:
            raise ValueError("Short circuit current must be greater than zero")
        if v > 200:
            raise ValueError("Short circuit current must not exceed 200 kA")
        return v

    @field_validator("breaking_capacity_ka")
    @classmethod
    def _breaking_capacity_range(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Breaking capacity must be greater than zero")
        return v

    def to_dataclass(self) -> BreakerCalculationInput:
        return BreakerCalculationInput(
            circuit=self.circuit.to_dataclass(),
            environment=self.environment.to_dataclass() if self.environment else None,
            short_circuit_current_ka=self.short_circuit_current_ka,
            load_type=self.load_type,
            breaking_capacity_ka=self.breaking_capacity_ka,
        )


def _format_error(err: Dict[str, Any]) -> str:
    path = ".".join(str(part) for part in err["loc"])
    ctx_error = err.get("ctx", {}).get("error")
    message = str(ctx_error) if ctx_error is not None else err["msg"]
    return f"{path}: {message}" if path else message


def validate_calculation_input(data: Union[BreakerCalculationInput, Dict[str, Any]]) -> BreakerCalculationInput:
    """Validates a request, raising InputValidationError with every violated rule."""
    raw = to_plain(data) if isinstance(data, BreakerCalculationInput) else data
    try:
        model = BreakerCalculationInputModel.model_validate(raw)
    except ValidationError as exc:
        errors = [_format_error(err) for err in exc.errors()]
        raise InputValidationError(errors) from exc
    return model.to_dataclass()


def check_standard_voltage(voltage: float, standard: Standard) -> Optional[str]:
    code = get_standard(standard)
    if code.is_standard_voltage(voltage):
        return None
    suggestions = "V, ".join(str(v) for v in code.STANDARD_VOLTAGES) + "V"
    return (f"Warning: {voltage:g}V is not a standard {standard.value} voltage. "
            f"Common values: {suggestions}")


def check_extreme_temperature(temperature: float) -> Optional[str]:
    if temperature > 60:
        return (f"Warning: Temperature {temperature:g}°C is extremely high. Special breakers "
                "and enclosures may be required. Consult manufacturer specifications.")
    if temperature < -20:
        return (f"Warning: Temperature {temperature:g}°C is extremely low. Cold-rated equipment "
                "may be required. Check breaker operating temperature range.")
    return None


def check_power_factor(power_factor: float) -> Optional[str]:
    if power_factor < 0.7:
        return (f"Warning: Power factor {power_factor:g} is very low. Consider power factor "
                "correction to reduce current draw. Typical industrial: 0.85-0.95.")
    return None


def check_circuit_distance(distance: float, unit_system: UnitSystem) -> Optional[str]:
    if unit_system is UnitSystem.METRIC:
        limit, unit = LONG_DISTANCE_METRIC_M, "m"
    else:
        limit, unit = LONG_DISTANCE_IMPERIAL_FT, "ft"
    if distance > limit:
        return (f"Warning: Circuit distance {distance:g}{unit} is very long. Voltage drop "
                "analysis strongly recommended. Consider larger cable size or higher voltage.")
    return None


def collect_input_warnings(data: BreakerCalculationInput) -> List[str]:
    """Advisory findings on an already valid request. These never block a calculation."""
    circuit = data.circuit
    checks = [
        check_standard_voltage(circuit.voltage, circuit.standard),
        check_power_factor(circuit.power_factor),
    ]
    env = data.environment
    if env is not None and env.ambient_temperature is not None:
        checks.append(check_extreme_temperature(env.ambient_temperature))
    if env is not None and env.circuit_distance is not None:
        checks.append(check_circuit_distance(env.circuit_distance, circuit.unit_system))
    return [w for w in checks if w]


def validate_with_warnings(data) -> Tuple[BreakerCalculationInput, List[str]]:
    try:
        validated = validate_calculation_input(data)
    except InputValidationError as exc:
        logger.error("[validate] validation failed: %s", exc.errors)
        raise
    return validated, collect_input_warnings(validated)
