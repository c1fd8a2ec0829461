from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from breaker_sizing.models import (
    LoadType, NECTripType, Standard, TripCurve, TripCurveType, TripSpecification, TripType,
)


@dataclass(frozen=True)
class TripCurveCharacteristic:
    curve: TripCurveType
    display_name: str
    trip_min: float  # instantaneous trip, multiples of In
    trip_max: float
    applications: Tuple[str, ...]
    suitable_load_types: Tuple[LoadType, ...]
    inrush_capability: str
    notes: str
    standard: str


@dataclass(frozen=True)
class NECTripCharacteristic:
    trip_type: NECTripType
    display_name: str
    applications: Tuple[str, ...]
    suitable_load_types: Tuple[LoadType, ...]
    inrush_capability: str
    notes: str
    iec_equivalent: Optional[TripCurveType]


@dataclass(frozen=True)
class TripCurveRecommendation:
    standard: Standard
    trip: TripSpecification
    display_name: str
    inrush_capability: str
    rationale: str
    applications: Tuple[str, ...]
    notes: str

    @property
    def recommendation(self) -> str:
        return self.trip.code


R, I, M, C = LoadType.RESISTIVE, LoadType.INDUCTIVE, LoadType.MIXED, LoadType.CAPACITIVE

# IEC 60898-1 / IEC 60947-2 instantaneous trip bands
IEC_TRIP_CURVES: Dict[TripCurveType, TripCurveCharacteristic] = {
    TripCurveType.B: TripCurveCharacteristic(
        TripCurveType.B, "Type B (3-5× In)", 3.0, 5.0,
        ("Residential lighting circuits", "Heating loads",
         "General residential branch circuits", "Loads with minimal inrush current"),
        (R,),
        "Low (3-5× rated current)",
        "Good cable protection for residential work. Trips fast on overload, "
        "not for motor circuits.",
        "IEC 60898-1:2015",
    ),
    TripCurveType.C: TripCurveCharacteristic(
        TripCurveType.C, "Type C (5-10× In)", 5.0, 10.0,
        ("General commercial and industrial circuits", "Mixed loads (lighting + small motors)",
         "Distribution panels", "Typical building installations"),
        (M, R, I),
        "Medium (5-10× rated current)",
        "Most common type for commercial and industrial use. Tolerates moderate inrush "
        "while still protecting the cable.",
        "IEC 60898-1:2015",
    ),
    TripCurveType.D: TripCurveCharacteristic(
        TripCurveType.D, "Type D (10-20× In)", 10.0, 20.0,
        ("Motor circuits (especially >3kW)", "Transformer primary circuits",
         "Welding equipment", "Equipment with high inrush current"),
        (I,),
        "High (10-20× rated current)",
        "For loads with high starting current. Motor starting current is typically "
        "6-10× rated, so Type D avoids nuisance trips on startup.",
        "IEC 60898-1:2015",
    ),
    TripCurveType.K: TripCurveCharacteristic(
        TripCurveType.K, "Type K (8-12× In)", 8.0, 12.0,
        ("Industrial circuits with high inrush", "Offshore installations",
         "Mining equipment", "Heavy-duty industrial motors"),
        (I, M),
        "Medium-High (8-12× rated current)",
        "Industrial curve with better discrimination than Type C. Check availability.",
        "IEC 60947-2",
    ),
    TripCurveType.Z: TripCurveCharacteristic(
        TripCurveType.Z, "Type Z (2-3× In)", 2.0, 3.0,
        ("Sensitive electronic equipment", "Semiconductor protection circuits",
         "VFD (Variable Frequency Drive) inputs", "Control circuits requiring fast protection"),
        (R,),
        "Very Low (2-3× rated current)",
        "Very sensitive to overcurrent. Trips on minimal inrush, not for motors or transformers.",
        "IEC 60947-2",
    ),
}

# UL 489 / NEC Article 240 trip mechanisms
NEC_TRIP_TYPES: Dict[NECTripType, NECTripCharacteristic] = {
    NECTripType.THERMAL_MAGNETIC: NECTripCharacteristic(
        NECTripType.THERMAL_MAGNETIC, "Thermal-Magnetic (Standard)",
        ("General residential circuits", "Standard commercial circuits",
         "Distribution panels", "Most general-purpose applications"),
        (M, R, I),
        "Medium (similar to IEC Type C)",
        "Bimetal element for overload, magnetic coil for short circuit. "
        "Most common breaker type in North America, fixed characteristics.",
        TripCurveType.C,
    ),
    NECTripType.ELECTRONIC: NECTripCharacteristic(
        NECTripType.ELECTRONIC, "Electronic Trip (Programmable)",
        ("Critical industrial circuits", "Selective coordination requirements",
         "Load shedding applications", "Systems requiring remote monitoring"),
        (M, R, I, C),
        "Adjustable (configurable thresholds)",
        "Microprocessor trip unit with long-time, short-time, instantaneous and ground "
        "fault settings. More expensive than thermal-magnetic.",
        None,
    ),
    NECTripType.ADJUSTABLE_MAGNETIC: NECTripCharacteristic(
        NECTripType.ADJUSTABLE_MAGNETIC, "Adjustable Magnetic Trip",
        ("Large motor circuits", "Transformer primary protection",
         "Equipment with variable inrush", "Industrial feeder circuits"),
        (I,),
        "High (adjustable, typically 5-15× In)",
        "Fixed thermal element with adjustable magnetic pickup. "
        "Comparable to IEC Type D but tunable per motor.",
        TripCurveType.D,
    ),
}

IEC_CURVE_BY_LOAD = {
    R: (TripCurveType.B,
        "Resistive loads (heating, lighting) have minimal inrush current. "
        "Type B gives good cable protection with fast overload response."),
    I: (TripCurveType.D,
        "Inductive loads (motors, transformers) start at 6-10× rated current. "
        "Type D tolerates 10-20× inrush, avoiding nuisance trips at startup."),
    M: (TripCurveType.C,
        "Mixed loads suit Type C. 5-10× inrush tolerance covers moderate motor "
        "starting and still protects resistive parts."),
    C: (TripCurveType.C,
        "Capacitive loads have a brief charging inrush. Type C leaves enough margin; "
        "for very sensitive loads consider Type Z."),
}

NEC_TYPE_BY_LOAD = {
    R: (NECTripType.THERMAL_MAGNETIC,
        "Standard thermal-magnetic breakers suit resistive loads and are the most "
        "cost-effective option."),
    I: (NECTripType.ADJUSTABLE_MAGNETIC,
        "Adjustable magnetic trip can be tuned to the motor starting current "
        "(typically 6-10× rated). Recommended for motors above 5HP."),
    M: (NECTripType.THERMAL_MAGNETIC,
        "Thermal-magnetic breakers handle most mixed loads. "
        "Where selective coordination is needed, consider electronic trip."),
    C: (NECTripType.THERMAL_MAGNETIC,
        "Thermal-magnetic is adequate for most capacitive loads. For capacitor banks, "
        "check the manufacturer's inrush guidance."),
}


def _with_extra_notes(base: str, notes: Optional[str]) -> str:
    if notes:
        return f"{base} Additional considerations: {notes}"
    return base


def recommend_trip_curve(load_type: LoadType, standard: Standard,
                         notes: Optional[str] = None) -> TripCurveRecommendation:
    """Picks an IEC curve or NEC trip type suited to the load's inrush behaviour."""
    if standard is Standard.IEC:
        curve, rationale = IEC_CURVE_BY_LOAD[load_type]
        char = IEC_TRIP_CURVES[curve]
        return TripCurveRecommendation(
            standard=Standard.IEC,
            trip=TripCurve(curve),
            display_name=char.display_name,
            inrush_capability=char.inrush_capability,
            rationale=rationale,
            applications=char.applications,
            notes=_with_extra_notes(char.notes, notes),
        )

    trip_type, rationale = NEC_TYPE_BY_LOAD[load_type]
    char = NEC_TRIP_TYPES[trip_type]
    return TripCurveRecommendation(
        standard=Standard.NEC,
        trip=TripType(trip_type),
        display_name=char.display_name,
        inrush_capability=char.inrush_capability,
        rationale=rationale,
        applications=char.applications,
        notes=_with_extra_notes(char.notes, notes),
    )


def get_available_trip_curves(standard: Standard) -> List[str]:
    if standard is Standard.IEC:
        return [c.value for c in IEC_TRIP_CURVES]
    return [t.value for t in NEC_TRIP_TYPES]


def get_trip_curve_details(code: str, standard: Standard
                           ) -> Optional[Union[TripCurveCharacteristic, NECTripCharacteristic]]:
    if standard is Standard.IEC:
        lookup = {c.value: v for c, v in IEC_TRIP_CURVES.items()}
    else:
        lookup = {t.value: v for t, v in NEC_TRIP_TYPES.items()}
    return lookup.get(code)
