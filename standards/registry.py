from typing import Dict

from breaker_sizing.models import Standard
from standards.base import ElectricalStandard
from standards.iec import IECStandard
from standards.nec import NECStandard

_STANDARDS: Dict[Standard, ElectricalStandard] = {
    Standard.NEC: NECStandard(),
    Standard.IEC: IECStandard(),
}


def get_standard(standard: Standard) -> ElectricalStandard:
    # Instances hold no state, so one per code is shared
    return _STANDARDS[standard]
