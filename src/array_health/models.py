from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


# Synthetic attribute ids, outside the 0..255 range used by SMART.
SMART_ERROR = 256
SMART_SIZE = 257


class Operation(Enum):
    SPIN_UP = "spin-up"
    SPIN_DOWN = "spin-down"
    LIST = "list-topology"
    SMART = "smart-report"

    @property
    def title(self) -> str:
        return _OPERATION_TITLES[self]


_OPERATION_TITLES = {
    Operation.SPIN_UP: "Spinup",
    Operation.SPIN_DOWN: "Spindown",
    Operation.LIST: "List",
    Operation.SMART: "SMART",
}


class AttributeSnapshot:
    """Raw SMART counters of one device.

    An attribute missing from the snapshot is unassigned: the telemetry
    source does not expose it.
    """

    def __init__(self, values: Optional[Dict[int, int]] = None) -> None:
        self._values: Dict[int, int] = dict(values or {})

    def get(self, attr_id: int) -> Optional[int]:
        return self._values.get(attr_id)

    def is_assigned(self, attr_id: int) -> bool:
        return attr_id in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeSnapshot):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"AttributeSnapshot({self._values!r})"


@dataclass
class DeviceRecord:
    name: str
    mount: str = ""
    file: str = ""
    serial: str = ""
    model: str = ""
    device_id: Optional[Tuple[int, int]] = None
    snapshot: AttributeSnapshot = field(default_factory=AttributeSnapshot)
    parent: Optional[int] = None

    @property
    def is_physical(self) -> bool:
        return self.parent is None


@dataclass
class DeviceTopology:
    """Device records of one invocation.

    ``parent`` fields are indexes into ``records``.
    """

    records: List[DeviceRecord] = field(default_factory=list)

    def add(self, record: DeviceRecord) -> int:
        self.records.append(record)
        return len(self.records) - 1

    def parent_of(self, record: DeviceRecord) -> Optional[DeviceRecord]:
        if record.parent is None:
            return None
        return self.records[record.parent]

    def physical(self) -> List[DeviceRecord]:
        return [r for r in self.records if r.is_physical]

    def logical(self) -> List[DeviceRecord]:
        return [r for r in self.records if not r.is_physical]

    def untracked(self) -> List[DeviceRecord]:
        used = {r.parent for r in self.records if not r.is_physical}
        return [r for i, r in enumerate(self.records) if r.is_physical and i not in used]

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)


@dataclass
class DeviceQueryResult:
    topology: DeviceTopology = field(default_factory=DeviceTopology)
    supported: bool = True
    failures: List[str] = field(default_factory=list)


@dataclass
class DataDisk:
    name: str
    mount: str


@dataclass
class ParitySlot:
    level: int
    path: str

    @property
    def label(self) -> str:
        if self.level == 1:
            return "parity"
        return f"{self.level}-parity"


@dataclass
class ArrayConfig:
    disks: List[DataDisk] = field(default_factory=list)
    parities: List[ParitySlot] = field(default_factory=list)

    @property
    def redundancy(self) -> int:
        return len(self.parities)

    @property
    def member_count(self) -> int:
        return len(self.disks) + len(self.parities)
