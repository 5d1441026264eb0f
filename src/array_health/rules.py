from __future__ import annotations

from .calibration import AFR_TABLES, interpolate
from .models import AttributeSnapshot
from .poisson import tail_at_least


def device_annual_failure_rate(snapshot: AttributeSnapshot) -> float:
    # Attributes are summed as if independent, even if they likely are not.
    afr = 0.0
    for attr_id, table in AFR_TABLES.items():
        value = snapshot.get(attr_id)
        if value is None:
            continue
        afr += interpolate(table, value)
    return afr


def device_failure_probability(snapshot: AttributeSnapshot) -> float:
    """Probability that the device fails within the next year (AFP)."""
    return tail_at_least(device_annual_failure_rate(snapshot), 1)
