"""Shared fixtures: a scripted device query and sample configurations."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pytest

from array_health.config import parse_config
from array_health.errors import DeviceQueryError
from array_health.models import (
    AttributeSnapshot,
    DeviceQueryResult,
    DeviceRecord,
    DeviceTopology,
    Operation,
)


class FakeDeviceQuery:
    """Device query resolving members from a fixed member -> device map.

    ``devices`` maps a physical device file to its snapshot. ``members``
    maps a member name to the device file backing it; members not in the
    map stay unresolved.
    """

    def __init__(
        self,
        devices: Dict[str, Dict[int, int]],
        members: Dict[str, str],
        supported: bool = True,
        error: Optional[str] = None,
        failing: Tuple[str, ...] = (),
    ) -> None:
        self.devices = devices
        self.members = members
        self.supported = supported
        self.error = error
        self.failing = failing
        self.calls: List[Tuple[List[str], Operation]] = []

    def query(self, requested: List[DeviceRecord], operation: Operation) -> DeviceQueryResult:
        self.calls.append(([r.name for r in requested], operation))
        if self.error:
            raise DeviceQueryError(self.error)
        if not self.supported:
            return DeviceQueryResult(supported=False)

        topology = DeviceTopology()
        index: Dict[str, int] = {}
        for minor, (file, values) in enumerate(self.devices.items()):
            snapshot = AttributeSnapshot(values) if operation is Operation.SMART else AttributeSnapshot()
            index[file] = topology.add(
                DeviceRecord(
                    name=f"model-{minor}",
                    file=file,
                    serial=f"SN{minor}",
                    device_id=(8, minor * 16),
                    snapshot=snapshot,
                )
            )

        for member in requested:
            file = self.members.get(member.name)
            if file is None:
                continue
            parent = index[file]
            topology.add(
                DeviceRecord(
                    name=member.name,
                    mount=member.mount,
                    file=file + "1",
                    serial=topology.records[parent].serial,
                    device_id=(8, parent * 16 + 1),
                    snapshot=topology.records[parent].snapshot,
                    parent=parent,
                )
            )

        failures = [f for f in self.failing if operation in (Operation.SPIN_UP, Operation.SPIN_DOWN)]
        return DeviceQueryResult(topology=topology, failures=failures)


SAMPLE_CONFIG = """\
# sample array
parity /mnt/parity1/snapraid.parity
2-parity /mnt/parity2/snapraid.2-parity
content /var/snapraid/content
data d1 /mnt/disk1/
data d2 /mnt/disk2/
"""


@pytest.fixture
def config():
    return parse_config(SAMPLE_CONFIG.splitlines())


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "snapraid.conf"
    path.write_text(SAMPLE_CONFIG)
    return path


@pytest.fixture
def fake_query():
    return FakeDeviceQuery
