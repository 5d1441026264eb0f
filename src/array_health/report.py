from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .array_loss import REPAIR_CADENCES, LossRow, loss_table
from .models import SMART_ERROR, SMART_SIZE, DeviceRecord, DeviceTopology, Operation
from .poisson import tail_at_least
from .rules import device_annual_failure_rate
from .smartctl import POWER_ON_HOURS_ATTR, TEMPERATURE_ATTRS

NOT_TRACKED = "- (not tracked)"
RULE = " " + "-" * 71

# (exclusive lower bound, decimals), checked in order
_PRECISION = (
    (1e-1, 2),
    (1e-2, 3),
    (1e-3, 4),
    (1e-4, 5),
    (1e-5, 6),
    (1e-6, 7),
    (1e-7, 8),
    (1e-8, 9),
    (1e-9, 10),
    (1e-10, 11),
    (1e-11, 12),
    (1e-12, 13),
)

_LOSS_PADS = (20, 18, 14)


def format_probability(value: float, width: int = 0) -> str:
    """Format a percentage with more decimals the smaller it is."""
    decimals = 14
    for bound, digits in _PRECISION:
        if value > bound:
            decimals = digits
            break
    return f"{value:.{decimals}f}%".ljust(width)


@dataclass
class DeviceRow:
    name: Optional[str]
    file: str
    serial: str
    temperature: Optional[int]
    power_on_days: Optional[int]
    error_count: Optional[int]
    size_tb: Optional[float]
    afr: float
    afp: float
    # physical disk backing the row
    device: str = ""


@dataclass
class SmartSummary:
    rows: List[DeviceRow] = field(default_factory=list)
    member_count: int = 0
    array_failure_rate: float = 0.0
    loss: List[LossRow] = field(default_factory=list)

    @property
    def failure_probability(self) -> float:
        """Probability of at least one member failure in the next year."""
        return tail_at_least(self.array_failure_rate, 1)


def _temperature(record: DeviceRecord) -> Optional[int]:
    for attr_id in TEMPERATURE_ATTRS:
        value = record.snapshot.get(attr_id)
        if value is not None:
            return value
    return None


def _row(record: DeviceRecord, name: Optional[str], device: str) -> DeviceRow:
    snapshot = record.snapshot
    hours = snapshot.get(POWER_ON_HOURS_ATTR)
    size = snapshot.get(SMART_SIZE)
    afr = device_annual_failure_rate(snapshot)
    return DeviceRow(
        name=name,
        file=record.file,
        serial=record.serial,
        temperature=_temperature(record),
        power_on_days=hours // 24 if hours is not None else None,
        error_count=snapshot.get(SMART_ERROR),
        size_tb=size / 1e12 if size is not None else None,
        afr=afr,
        afp=tail_at_least(afr, 1),
        device=device,
    )


def summarize(topology: DeviceTopology, member_count: int) -> SmartSummary:
    summary = SmartSummary(member_count=member_count)

    # every array member counts, also when members share a device
    for record in topology.logical():
        row = _row(record, record.name, topology.parent_of(record).file)
        summary.array_failure_rate += row.afr
        summary.rows.append(row)

    for record in topology.untracked():
        summary.rows.append(_row(record, None, record.file))

    summary.loss = loss_table(summary.array_failure_rate, member_count)
    return summary


def _column(value: Optional[int], width: int) -> str:
    if value is None:
        return "-".rjust(width)
    return f"{value:{width}d}"


def render_smart_report(summary: SmartSummary) -> str:
    serial_pad = max((len(row.serial) for row in summary.rows), default=0)
    file_pad = max((len(row.file) for row in summary.rows), default=0)

    lines = [
        "SMART report:",
        "",
        "   Temp  Power  Error  AFP Size",
        "      C OnDays  Count    %   TB  " + "Serial".ljust(serial_pad) + "  " + "Device".ljust(file_pad) + "  Disk",
        RULE,
    ]

    for row in summary.rows:
        size = f"  {row.size_tb:2.1f}" if row.size_tb is not None else "    -"
        lines.append(
            _column(row.temperature, 7)
            + _column(row.power_on_days, 7)
            + _column(row.error_count, 6)
            + f"{row.afp * 100:5.0f}"
            + size
            + "  "
            + (row.serial or "-").ljust(serial_pad)
            + "  "
            + (row.file or "-").ljust(file_pad)
            + "  "
            + (row.name or NOT_TRACKED)
        )

    lines += [
        "",
        "The AFP (Annual Failure Probability) is the probability that the disk is",
        "going to fail in the next year.",
        "",
        f"Probability that at least one disk is going to fail in the next year is {summary.failure_probability * 100:.0f}%.",
    ]

    if summary.loss:
        lines += [
            "",
            "Probability of data loss in the next year for different parity and",
            "scrub/repair times:",
            "",
            "  Parity  " + "".join(label.ljust(pad + 4) for (label, _), pad in zip(REPAIR_CADENCES, _LOSS_PADS)).rstrip(),
            RULE,
        ]
        for loss in summary.loss:
            line = f"{loss.redundancy:6d}"
            for probability, pad in zip(loss.probabilities, _LOSS_PADS):
                line += "    " + format_probability(probability * 100, pad)
            lines.append(line)
        lines += [
            "",
            "These are the probabilities that in the next year you'll have a sequence",
            "of failures that the parity WON'T be able to recover, assuming that you",
            "regularly scrub and repair the full array in the specified time.",
        ]

    return "\n".join(lines) + "\n"


def _device_id(device_id) -> str:
    if device_id is None:
        return "-"
    return f"{device_id[0]}:{device_id[1]}"


def render_topology(topology: DeviceTopology) -> str:
    lines = []
    for record in topology.logical():
        parent = topology.parent_of(record)
        lines.append(
            "\t".join(
                [
                    _device_id(record.device_id),
                    record.file,
                    _device_id(parent.device_id),
                    parent.file,
                    parent.name,
                ]
            )
        )
    return "".join(line + "\n" for line in lines)


def render_status(operation: Operation) -> str:
    return f"{operation.title}...\n"


def summary_to_dict(summary: SmartSummary) -> Dict[str, Any]:
    return {
        "member_count": summary.member_count,
        "array_failure_rate": summary.array_failure_rate,
        "failure_probability": summary.failure_probability,
        "devices": [
            {
                "name": row.name,
                "file": row.file,
                "device": row.device,
                "serial": row.serial,
                "temperature_c": row.temperature,
                "power_on_days": row.power_on_days,
                "error_count": row.error_count,
                "size_tb": row.size_tb,
                "afr": row.afr,
                "afp": row.afp,
            }
            for row in summary.rows
        ],
        "data_loss": [
            {
                "parity": loss.redundancy,
                **{label: p for (label, _), p in zip(REPAIR_CADENCES, loss.probabilities)},
            }
            for loss in summary.loss
        ],
    }
