import math
from typing import Optional, Union

from breaker_sizing.models import InstallationMethod, Standard

# NEC Table 310.15(B)(2)(a) - Ambient Temperature Correction Factors
# Based on 30°C ambient, rows below 30°C never increase ampacity here
# Format: {(Temp_Min, Temp_Max): {Insulation_Rating: Factor}}
NEC_TEMP_CORRECTION_FACTORS = {
    (-40, 30): {60: 1.00, 75: 1.00, 90: 1.00},
    (31, 35): {60: 0.91, 75: 0.94, 90: 0.96},
    (36, 40): {60: 0.82, 75: 0.88, 90: 0.91},
    (41, 45): {60: 0.71, 75: 0.82, 90: 0.87},
    (46, 50): {60: 0.58, 75: 0.75, 90: 0.82},
    (51, 55): {60: 0.41, 75: 0.67, 90: 0.76},
    (56, 60): {60: 0.00, 75: 0.58, 90: 0.71},
    (61, 65): {60: 0.00, 75: 0.47, 90: 0.65},
    (66, 70): {60: 0.00, 75: 0.33, 90: 0.58},
    (71, 75): {60: 0.00, 75: 0.00, 90: 0.50},
    (76, 80): {60: 0.00, 75: 0.00, 90: 0.41},
    (81, 85): {60: 0.00, 75: 0.00, 90: 0.29},
    (86, 90): {60: 0.00, 75: 0.00, 90: 0.00},
}

# NEC Table 310.15(C)(1) - More Than Three Current-Carrying Conductors
# Format: {Max_Conductors: Factor}
NEC_GROUPING_FACTORS = {
    3: 1.00,
    6: 0.80,   # 4-6 conductors
    9: 0.70,   # 7-9
    20: 0.50,  # 10-20
    30: 0.45,  # 21-30
    40: 0.40,  # 31-40
    999: 0.35  # 41+
}

# IEC 60364-5-52 Table B.52.14 - PVC (70°C) and XLPE/EPR (90°C)
IEC_TEMP_CORRECTION_FACTORS = {
    (10, 10): {70: 1.22, 90: 1.15},
    (11, 15): {70: 1.17, 90: 1.12},
    (16, 20): {70: 1.12, 90: 1.08},
    (21, 25): {70: 1.06, 90: 1.04},
    (26, 30): {70: 1.00, 90: 1.00},
    (31, 35): {70: 0.94, 90: 0.96},
    (36, 40): {70: 0.87, 90: 0.91},
    (41, 45): {70: 0.79, 90: 0.87},
    (46, 50): {70: 0.71, 90: 0.82},
    (51, 55): {70: 0.61, 90: 0.76},
    (56, 60): {70: 0.50, 90: 0.71},
    (61, 65): {70: 0.35, 90: 0.65},
    (66, 70): {70: 0.00, 90: 0.58},
    (71, 75): {70: 0.00, 90: 0.50},
    (76, 80): {70: 0.00, 90: 0.41},
}

# IEC 60364-5-52 Table B.52.17 - Grouping, by number of circuits
# A: conduit in insulated wall, B: conduit on wall, C: clipped direct, E: free air
# Format: {Max_Circuits: {Method: Factor}}
IEC_GROUPING_FACTORS = {
    1: {"A": 1.00, "B": 1.00, "C": 1.00, "E": 1.00},
    2: {"A": 0.80, "B": 0.85, "C": 0.85, "E": 0.88},
    3: {"A": 0.70, "B": 0.79, "C": 0.79, "E": 0.82},
    4: {"A": 0.65, "B": 0.75, "C": 0.75, "E": 0.77},
    5: {"A": 0.60, "B": 0.73, "C": 0.73, "E": 0.75},
    6: {"A": 0.57, "B": 0.72, "C": 0.72, "E": 0.73},
    7: {"A": 0.54, "B": 0.70, "C": 0.70, "E": 0.73},
    8: {"A": 0.52, "B": 0.70, "C": 0.70, "E": 0.72},
    9: {"A": 0.50, "B": 0.70, "C": 0.70, "E": 0.72},
    12: {"A": 0.45, "B": 0.65, "C": 0.65, "E": 0.70},
    16: {"A": 0.41, "B": 0.60, "C": 0.60, "E": 0.68},
    20: {"A": 0.38, "B": 0.57, "C": 0.57, "E": 0.66},
}

NEC_DERATING_REFERENCE = "NEC 310.15(B)(2)(a), NEC 310.15(C)(1)"
IEC_DERATING_REFERENCE = "IEC 60364-5-52 Table B.52.14, Table B.52.17"

# Installation methods and plain-language aliases onto the B.52.17 columns
INSTALLATION_METHOD_COLUMNS = {
    "A": "A", "A1": "A", "A2": "A", "conduit": "A",
    "B": "B", "B1": "B", "B2": "B",
    "C": "C", "D": "C", "cable-tray": "C", "direct": "C", "direct-burial": "C",
    "E": "E", "F": "E", "G": "E", "free-air": "E",
}


def _lookup_range(table: dict, temp_c: float) -> Optional[dict]:
    # Rows are contiguous, so fractional temperatures fall into the next row up
    low = min(t_min for t_min, _ in table)
    if temp_c < low:
        return None
    for (_, max_t), ratings in table.items():
        if temp_c <= max_t:
            return ratings
    return None


def get_nec_temperature_factor(ambient_temp: float, insulation_rating: int) -> float:
    ratings = _lookup_range(NEC_TEMP_CORRECTION_FACTORS, ambient_temp)
    if ratings is None:
        if ambient_temp < -40:
            return 1.0
        return 0.0  # Too hot
    return ratings.get(insulation_rating, ratings[75])


def get_nec_grouping_factor(number_of_conductors: int) -> float:
    for limit in sorted(NEC_GROUPING_FACTORS.keys()):
        if number_of_conductors <= limit:
            return NEC_GROUPING_FACTORS[limit]
    return 0.35


def get_iec_temperature_factor(ambient_temp: float, insulation_rating: int) -> float:
    ratings = _lookup_range(IEC_TEMP_CORRECTION_FACTORS, ambient_temp)
    if ratings is None:
        if ambient_temp < 10:
            return 1.22
        return 0.0  # Too hot
    return ratings[70] if insulation_rating == 70 else ratings[90]


def map_installation_method(method: Union[InstallationMethod, str, None]) -> str:
    """Maps an installation method or alias onto an IEC grouping column (A/B/C/E)."""
    if isinstance(method, InstallationMethod):
        method = method.value
    return INSTALLATION_METHOD_COLUMNS.get(method, "B")


def get_iec_grouping_factor(number_of_circuits: int,
                            installation_method: Union[InstallationMethod, str, None] = "B") -> float:
    column = map_installation_method(installation_method)
    limits = sorted(IEC_GROUPING_FACTORS.keys())
    for limit in limits:
        if number_of_circuits <= limit:
            return IEC_GROUPING_FACTORS[limit][column]
    # More than 20 circuits keep the last tabulated value of the column
    return IEC_GROUPING_FACTORS[limits[-1]][column]


def calculate_combined_derating(ambient_temp: float, insulation_rating: int,
                                number_of_conductors: int, standard: Standard,
                                installation_method=None) -> dict:
    if standard is Standard.NEC:
        nec_rating = 75 if insulation_rating == 70 else insulation_rating
        temperature_factor = get_nec_temperature_factor(ambient_temp, nec_rating)
        grouping_factor = get_nec_grouping_factor(number_of_conductors)
        reference = NEC_DERATING_REFERENCE
    else:
        # 60/75 ratings have no IEC column, they use the PVC one
        iec_rating = 70 if insulation_rating in (60, 70, 75) else 90
        temperature_factor = get_iec_temperature_factor(ambient_temp, iec_rating)
        # Three conductors per circuit
        circuits = math.ceil(number_of_conductors / 3)
        grouping_factor = get_iec_grouping_factor(circuits, installation_method or "B")
        reference = IEC_DERATING_REFERENCE

    return {
        "temperature_factor": temperature_factor,
        "grouping_factor": grouping_factor,
        "total_factor": temperature_factor * grouping_factor,
        "standard_reference": reference,
    }
