from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from shutil import which
from typing import Any, Dict, Optional

from .errors import DeviceQueryError
from .models import SMART_ERROR, SMART_SIZE, AttributeSnapshot

TEMPERATURE_ATTRS = (194, 190)
POWER_ON_HOURS_ATTR = 9

_SMARTCTL_PATH: Optional[str] = None


@dataclass
class SmartData:
    snapshot: AttributeSnapshot
    serial: str = ""
    model: str = ""


def has_smartctl() -> bool:
    return _find_smartctl() is not None


def _find_smartctl() -> Optional[str]:
    global _SMARTCTL_PATH
    if _SMARTCTL_PATH:
        return _SMARTCTL_PATH
    path = which("smartctl")
    if path:
        _SMARTCTL_PATH = path
    return path


def _run_smartctl(device: str) -> Dict[str, Any]:
    exe = _find_smartctl()
    if not exe:
        raise DeviceQueryError("smartctl not found in PATH")
    cmd = [exe, "-a", "-j", device]
    # smartctl return codes are a bitmask; non-zero can still include valid JSON
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as exc:
        raise DeviceQueryError(f"Cannot run smartctl for {device}: {exc}") from exc
    if proc.stdout.strip():
        try:
            return json.loads(proc.stdout)
        except json.JSONDecodeError:
            raise DeviceQueryError(f"smartctl returned non-JSON output for {device}")
    raise DeviceQueryError(proc.stderr.strip() or f"smartctl failed for {device}")


def _get_attr_value(attr: Dict[str, Any]) -> Optional[int]:
    raw = attr.get("raw", {})
    if isinstance(raw, dict):
        val = raw.get("value")
    else:
        val = raw
    if val is None:
        return None
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, dict):
        value = value.get("hours", value.get("bytes"))
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_smart(data: Dict[str, Any]) -> SmartData:
    """Convert ``smartctl -a -j`` output to an attribute snapshot."""
    values: Dict[int, int] = {}

    if isinstance(data.get("ata_smart_attributes"), dict):
        for attr in data["ata_smart_attributes"].get("table", []):
            attr_id = attr.get("id")
            value = _get_attr_value(attr)
            if isinstance(attr_id, int) and value is not None:
                values[attr_id] = value

    nvme = data.get("nvme_smart_health_information_log")
    if isinstance(nvme, dict):
        if POWER_ON_HOURS_ATTR not in values:
            poh = _as_int(nvme.get("power_on_hours"))
            if poh is not None:
                values[POWER_ON_HOURS_ATTR] = poh
        errors = _as_int(nvme.get("num_err_log_entries"))
        if errors is not None:
            values[SMART_ERROR] = errors

    # ATA drives pack min/max temperatures in the high bytes of the raw value
    for attr_id in TEMPERATURE_ATTRS:
        if attr_id in values:
            values[attr_id] &= 0xFF
    current = None
    if isinstance(data.get("temperature"), dict):
        current = _as_int(data["temperature"].get("current"))
    if current is not None:
        values[TEMPERATURE_ATTRS[0]] = current

    if SMART_ERROR not in values and isinstance(data.get("ata_smart_error_log"), dict):
        summary = data["ata_smart_error_log"].get("summary") or {}
        errors = _as_int(summary.get("count"))
        if errors is not None:
            values[SMART_ERROR] = errors

    size = _as_int(data.get("user_capacity"))
    if size is None:
        size = _as_int(data.get("nvme_total_capacity"))
    if size is not None:
        values[SMART_SIZE] = size

    model = data.get("model_name") or data.get("model_number")
    serial = data.get("serial_number")
    return SmartData(
        snapshot=AttributeSnapshot(values),
        serial=str(serial) if serial is not None else "",
        model=str(model) if model is not None else "",
    )


def get_smart_data(device: str) -> SmartData:
    return parse_smart(_run_smartctl(device))
