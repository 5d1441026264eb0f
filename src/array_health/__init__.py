"""Disk health and data loss estimation for parity arrays."""

from .models import AttributeSnapshot, DeviceRecord, DeviceTopology, Operation
from .calibration import AFR_TABLES, interpolate
from .rules import device_annual_failure_rate, device_failure_probability
from .poisson import pmf, tail_at_least
from .array_loss import MAX_REDUNDANCY, annual_data_loss_probability
from .config import load_config
from .topology import build_requested, resolve
from .report import format_probability, render_smart_report, render_topology, summarize

__all__ = [
    "AttributeSnapshot",
    "DeviceRecord",
    "DeviceTopology",
    "Operation",
    "AFR_TABLES",
    "interpolate",
    "device_annual_failure_rate",
    "device_failure_probability",
    "pmf",
    "tail_at_least",
    "MAX_REDUNDANCY",
    "annual_data_loss_probability",
    "load_config",
    "build_requested",
    "resolve",
    "format_probability",
    "render_smart_report",
    "render_topology",
    "summarize",
]
