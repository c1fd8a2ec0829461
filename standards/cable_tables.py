import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from breaker_sizing.models import ConductorMaterial, Standard


@dataclass(frozen=True)
class CableTableEntry:
    size_metric: str  # mm²
    size_awg: Optional[str]  # AWG / kcmil, or the nearest equivalent for IEC rows
    material: ConductorMaterial
    resistance_ohm_per_1000ft: float  # DC at 75°C
    ampacity_60c: float
    ampacity_75c: float
    ampacity_90c: float
    standard: Standard

    @property
    def size_key(self) -> str:
        """Size used to identify the row within its own table."""
        if self.standard is Standard.NEC:
            return self.size_awg
        return self.size_metric

    def ampacity(self, insulation_rating: int) -> float:
        if insulation_rating >= 90:
            return self.ampacity_90c
        if insulation_rating >= 75:
            return self.ampacity_75c
        return self.ampacity_60c


def _table(standard, material, rows) -> Tuple[CableTableEntry, ...]:
    return tuple(
        CableTableEntry(metric, awg, material, ohm, a60, a75, a90, standard)
        for metric, awg, ohm, a60, a75, a90 in rows
    )


CU, AL = ConductorMaterial.COPPER, ConductorMaterial.ALUMINUM

# NEC Table 310.16 ampacity (30°C ambient, <= 3 current carrying conductors)
# with NEC Chapter 9 Table 8 resistance
# Format: (mm2, AWG/kcmil, ohm/1000ft, 60C, 75C, 90C)
NEC_COPPER_TABLE = _table(Standard.NEC, CU, [
    ("2.08", "14", 3.14, 15, 15, 15),
    ("3.31", "12", 1.98, 20, 25, 30),
    ("5.26", "10", 1.24, 30, 35, 40),
    ("8.37", "8", 0.778, 40, 50, 55),
    ("13.3", "6", 0.491, 55, 65, 75),
    ("21.2", "4", 0.308, 70, 85, 95),
    ("26.7", "3", 0.245, 85, 100, 115),
    ("33.6", "2", 0.194, 95, 115, 130),
    ("42.4", "1", 0.154, 110, 130, 145),
    ("53.5", "1/0", 0.122, 125, 150, 170),
    ("67.4", "2/0", 0.0967, 145, 175, 195),
    ("85.0", "3/0", 0.0766, 165, 200, 225),
    ("107", "4/0", 0.0608, 195, 230, 260),
    ("127", "250", 0.0515, 215, 255, 290),
    ("152", "300", 0.0429, 240, 285, 320),
    ("177", "350", 0.0367, 260, 310, 350),
    ("203", "400", 0.0321, 280, 335, 380),
    ("253", "500", 0.0258, 320, 380, 430),
    ("304", "600", 0.0214, 350, 420, 475),
    ("380", "750", 0.0171, 385, 475, 535),
    ("507", "1000", 0.0129, 445, 545, 615),
])

NEC_ALUMINUM_TABLE = _table(Standard.NEC, AL, [
    ("3.31", "12", 3.25, 15, 20, 25),
    ("5.26", "10", 2.04, 25, 30, 35),
    ("8.37", "8", 1.28, 35, 40, 45),
    ("13.3", "6", 0.808, 40, 50, 55),
    ("21.2", "4", 0.508, 55, 65, 75),
    ("26.7", "3", 0.403, 65, 75, 85),
    ("33.6", "2", 0.319, 75, 90, 100),
    ("42.4", "1", 0.253, 85, 100, 115),
    ("53.5", "1/0", 0.201, 100, 120, 135),
    ("67.4", "2/0", 0.159, 115, 135, 150),
    ("85.0", "3/0", 0.126, 130, 155, 175),
    ("107", "4/0", 0.100, 150, 180, 205),
    ("127", "250", 0.0847, 170, 205, 230),
    ("152", "300", 0.0707, 190, 230, 255),
    ("177", "350", 0.0605, 210, 250, 280),
    ("203", "400", 0.0529, 225, 270, 305),
    ("253", "500", 0.0424, 260, 310, 350),
    ("304", "600", 0.0353, 285, 340, 385),
    ("380", "750", 0.0282, 315, 385, 435),
    ("507", "1000", 0.0212, 375, 445, 500),
])

# IEC 60364-5-52 (Table B.52.x), PVC 70C / 75C equivalent / XLPE 90C columns
IEC_COPPER_TABLE = _table(Standard.IEC, CU, [
    ("1.5", "16", 4.59, 14, 17.5, 22),
    ("2.5", "14", 2.81, 19, 23, 30),
    ("4", "12", 1.75, 25, 31, 40),
    ("6", "10", 1.17, 32, 40, 51),
    ("10", "8", 0.695, 44, 54, 70),
    ("16", "6", 0.437, 59, 68, 94),
    ("25", "4", 0.276, 77, 89, 119),
    ("35", "2", 0.199, 96, 110, 148),
    ("50", "1/0", 0.147, 117, 133, 180),
    ("70", "2/0", 0.102, 149, 168, 232),
    ("95", "3/0", 0.0733, 180, 201, 282),
    ("120", "4/0", 0.0581, 208, 232, 328),
    ("150", "300", 0.0471, 236, 258, 374),
    ("185", "350", 0.0376, 268, 289, 424),
    ("240", "500", 0.0286, 315, 341, 500),
    ("300", "600", 0.0228, 360, 384, 561),
    ("400", "750", 0.0178, 410, 430, 656),
    ("500", "1000", 0.0139, 470, 490, 749),
    ("630", "1250", 0.0107, 540, 560, 855),
])

IEC_ALUMINUM_TABLE = _table(Standard.IEC, AL, [
    ("2.5", "14", 4.59, 14.5, 18, 23),
    ("4", "12", 2.86, 19.5, 24, 31),
    ("6", "10", 1.91, 25, 31, 40),
    ("10", "8", 1.14, 34, 42, 54),
    ("16", "6", 0.714, 46, 53, 73),
    ("25", "4", 0.452, 60, 69, 92),
    ("35", "2", 0.326, 75, 86, 115),
    ("50", "1/0", 0.240, 92, 104, 140),
    ("70", "2/0", 0.167, 116, 131, 180),
    ("95", "3/0", 0.120, 140, 157, 219),
    ("120", "4/0", 0.0950, 162, 181, 254),
    ("150", "300", 0.0771, 184, 201, 290),
    ("185", "350", 0.0615, 209, 225, 329),
    ("240", "500", 0.0467, 246, 266, 388),
    ("300", "600", 0.0374, 281, 300, 435),
    ("400", "750", 0.0292, 322, 335, 510),
    ("500", "1000", 0.0228, 368, 382, 582),
])

_TABLES: Dict[Tuple[Standard, ConductorMaterial], Tuple[CableTableEntry, ...]] = {
    (Standard.NEC, CU): NEC_COPPER_TABLE,
    (Standard.NEC, AL): NEC_ALUMINUM_TABLE,
    (Standard.IEC, CU): IEC_COPPER_TABLE,
    (Standard.IEC, AL): IEC_ALUMINUM_TABLE,
}

# NEC Table 250.122 - Minimum size equipment grounding conductors
# Format: (OCPD amps, Cu AWG, Cu mm2, Al AWG, Al mm2)
NEC_GROUNDING_CONDUCTOR_TABLE = [
    (15, "14", 2.08, "12", 3.31),
    (20, "12", 3.31, "10", 5.26),
    (60, "10", 5.26, "8", 8.37),
    (100, "8", 8.37, "6", 13.3),
    (200, "6", 13.3, "4", 21.2),
    (300, "4", 21.2, "2", 33.6),
    (400, "3", 26.7, "1", 42.4),
    (500, "2", 33.6, "1/0", 53.5),
    (600, "1", 42.4, "2/0", 67.4),
    (800, "1/0", 53.5, "3/0", 85.0),
    (1000, "2/0", 67.4, "4/0", 107),
    (1200, "3/0", 85.0, "250", 127),
    (1600, "4/0", 107, "350", 177),
    (2000, "250", 127, "400", 203),
    (2500, "350", 177, "600", 304),
    (3000, "400", 203, "600", 304),
    (4000, "500", 253, "750", 380),
    (5000, "700", 355, "1200", 608),
    (6000, "800", 405, "1200", 608),
]

IEC_PE_STANDARD_SIZES = [1.5, 2.5, 4, 6, 10, 16, 25, 35, 50, 70, 95, 120, 150, 185, 240, 300]


def get_available_cable_sizes(standard: Standard,
                              material: ConductorMaterial) -> Tuple[CableTableEntry, ...]:
    """Rows for one standard and material, in ascending size order."""
    return _TABLES[(standard, material)]


def lookup_cable_by_size(size: str, material: ConductorMaterial,
                         standard: Standard) -> Optional[CableTableEntry]:
    """Finds a row by AWG/kcmil designation (NEC) or by mm² value (IEC)."""
    table = get_available_cable_sizes(standard, material)
    if standard is Standard.IEC:
        try:
            wanted = float(size)
        except (TypeError, ValueError):
            return None
        for entry in table:
            if float(entry.size_metric) == wanted:
                return entry
        return None
    wanted = str(size).strip()
    for entry in table:
        if entry.size_awg == wanted:
            return entry
    return None


def find_minimum_cable_size(required_current: float, material: ConductorMaterial,
                            insulation_rating: int, standard: Standard) -> Optional[CableTableEntry]:
    """Smallest conductor whose ampacity at the insulation rating covers the current."""
    for entry in get_available_cable_sizes(standard, material):
        if entry.ampacity(insulation_rating) >= required_current:
            return entry
    return None


def is_kcmil(size: str) -> bool:
    return size.isdigit() and int(size) >= 250


def format_cable_size(entry: CableTableEntry) -> str:
    if entry.standard is Standard.IEC:
        return f"{entry.size_metric} mm²"
    size = entry.size_awg or entry.size_metric
    if is_kcmil(size):
        return f"{size} kcmil"
    return f"{size} AWG"


def lookup_nec_grounding_conductor(ocpd_rating: float, material: ConductorMaterial) -> dict:
    """NEC Table 250.122. Ratings above the table use its largest row."""
    row = NEC_GROUNDING_CONDUCTOR_TABLE[-1]
    for candidate in NEC_GROUNDING_CONDUCTOR_TABLE:
        if candidate[0] >= ocpd_rating:
            row = candidate
            break
    _, cu_awg, cu_mm2, al_awg, al_mm2 = row
    if material is ConductorMaterial.COPPER:
        size_awg, size_mm2 = cu_awg, cu_mm2
    else:
        size_awg, size_mm2 = al_awg, al_mm2
    return {
        "size_awg": size_awg,
        "size_mm2": size_mm2,
        "standard_reference": "NEC 2020 Table 250.122",
    }


def calculate_iec_earth_conductor(phase_size_mm2: float,
                                  mechanically_protected: bool = True) -> dict:
    """IEC 60364-5-54 Table 54.2 simplified method for the PE conductor."""
    if phase_size_mm2 <= 16:
        pe_mm2 = phase_size_mm2
        rule = "PE = Phase conductor size (Sph ≤ 16 mm²)"
    elif phase_size_mm2 <= 35:
        pe_mm2 = 16
        rule = "PE = 16 mm² (16 < Sph ≤ 35 mm²)"
    else:
        pe_mm2 = phase_size_mm2 / 2
        rule = "PE = Phase size ÷ 2 (Sph > 35 mm²)"

    # Separate PE conductors have a mechanical minimum
    min_size = 2.5 if mechanically_protected else 4
    if pe_mm2 < min_size:
        pe_mm2 = min_size
        protection = "protected" if mechanically_protected else "unprotected"
        rule += f" (minimum {min_size} mm² for {protection} PE)"

    rounded = next((s for s in IEC_PE_STANDARD_SIZES if s >= pe_mm2), pe_mm2)
    return {
        "size_mm2": rounded,
        "rule": rule,
        "standard_reference": "IEC 60364-5-54",
    }


def get_earth_conductor_recommendation(phase_size_mm2: float, current: float,
                                       material: ConductorMaterial, standard: Standard) -> dict:
    if standard is Standard.NEC:
        # OCPD estimated at 125% of the circuit current
        ocpd_rating = math.ceil(current * 1.25)
        nec = lookup_nec_grounding_conductor(ocpd_rating, material)
        size = nec["size_awg"]
        formatted = f"{size} kcmil" if is_kcmil(size) else f"{size} AWG"
        return {
            "size_mm2": nec["size_mm2"],
            "size_awg": size,
            "formatted_size": formatted,
            "rule": f"Based on {ocpd_rating}A OCPD rating (125% of {current}A)",
            "standard_reference": nec["standard_reference"],
        }

    iec = calculate_iec_earth_conductor(phase_size_mm2)
    return {
        "size_mm2": iec["size_mm2"],
        "size_awg": None,
        "formatted_size": f"{iec['size_mm2']} mm²",
        "rule": iec["rule"],
        "standard_reference": iec["standard_reference"],
    }


def list_size_keys(standard: Standard, material: ConductorMaterial) -> List[str]:
    return [e.size_key for e in get_available_cable_sizes(standard, material)]
