from __future__ import annotations

import json
import logging
import os
import platform
import subprocess
from shutil import which
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .errors import DeviceQueryError
from .models import DeviceQueryResult, DeviceRecord, DeviceTopology, Operation
from .smartctl import get_smart_data, has_smartctl

logger = logging.getLogger(__name__)


class DeviceQuery(Protocol):
    """Resolves array members to the devices backing them.

    Returns one physical record per distinct device and one logical record
    per resolved member, whose ``parent`` is its physical record. SMART
    snapshots are filled only for ``Operation.SMART``. For spin-up and
    spin-down the power transition is performed and failing device files
    are listed in ``failures``.
    """

    def query(self, requested: List[DeviceRecord], operation: Operation) -> DeviceQueryResult:
        ...


def _run_lsblk() -> List[Dict[str, Any]]:
    cmd = [
        "lsblk",
        "-J",
        "-l",
        "-b",
        "-o",
        "NAME,KNAME,PKNAME,TYPE,SIZE,MAJ:MIN,MODEL,SERIAL",
    ]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as exc:
        raise DeviceQueryError(f"Cannot run lsblk: {exc}") from exc
    if not proc.stdout.strip():
        raise DeviceQueryError(proc.stderr.strip() or "lsblk returned no output")
    try:
        data = json.loads(proc.stdout)
    except json.JSONDecodeError as exc:
        raise DeviceQueryError("lsblk returned non-JSON output") from exc
    return data.get("blockdevices", []) or []


def _parse_majmin(value: Optional[str]) -> Optional[Tuple[int, int]]:
    if not value or ":" not in value:
        return None
    major, minor = value.strip().split(":", 1)
    try:
        return int(major), int(minor)
    except ValueError:
        return None


def _stat_device(path: str) -> Optional[Tuple[int, int]]:
    try:
        st = os.stat(path)
    except OSError as exc:
        logger.warning("Cannot stat %s: %s", path, exc.strerror or exc)
        return None
    return os.major(st.st_dev), os.minor(st.st_dev)


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


class SystemDeviceQuery:
    """Linux device query built on lsblk, smartctl, hdparm and dd."""

    def query(self, requested: List[DeviceRecord], operation: Operation) -> DeviceQueryResult:
        if platform.system() != "Linux":
            return DeviceQueryResult(supported=False)
        if not self._tools_available(operation):
            return DeviceQueryResult(supported=False)

        entries = _run_lsblk()
        topology = self._build_topology(requested, entries, include_all=operation is Operation.SMART)
        result = DeviceQueryResult(topology=topology)

        if operation is Operation.SMART:
            self._read_smart(topology)
        elif operation is Operation.SPIN_UP:
            result.failures = self._power(topology, self._spin_up)
        elif operation is Operation.SPIN_DOWN:
            result.failures = self._power(topology, self._spin_down)

        return result

    def _tools_available(self, operation: Operation) -> bool:
        if which("lsblk") is None:
            return False
        if operation is Operation.SMART:
            return has_smartctl()
        if operation is Operation.SPIN_DOWN:
            return which("hdparm") is not None
        if operation is Operation.SPIN_UP:
            return which("dd") is not None
        return True

    def _build_topology(
        self,
        requested: List[DeviceRecord],
        entries: List[Dict[str, Any]],
        include_all: bool,
    ) -> DeviceTopology:
        by_kname: Dict[str, Dict[str, Any]] = {}
        by_majmin: Dict[Tuple[int, int], Dict[str, Any]] = {}
        for entry in entries:
            kname = entry.get("kname") or entry.get("name")
            if not kname or kname in by_kname:
                continue
            by_kname[kname] = entry
            majmin = _parse_majmin(entry.get("maj:min"))
            if majmin is not None:
                by_majmin.setdefault(majmin, entry)

        topology = DeviceTopology()
        physical: Dict[str, int] = {}

        def physical_index(entry: Dict[str, Any]) -> int:
            kname = entry.get("kname") or entry.get("name")
            if kname not in physical:
                physical[kname] = topology.add(
                    DeviceRecord(
                        name=_text(entry.get("model")),
                        file=f"/dev/{kname}",
                        serial=_text(entry.get("serial")),
                        model=_text(entry.get("model")),
                        device_id=_parse_majmin(entry.get("maj:min")),
                    )
                )
            return physical[kname]

        for member in requested:
            device_id = _stat_device(member.mount)
            if device_id is None:
                continue
            entry = by_majmin.get(device_id)
            if entry is None:
                logger.warning("No block device %d:%d for %s", device_id[0], device_id[1], member.mount)
                continue
            disk = self._disk_of(entry, by_kname)
            parent = physical_index(disk)
            topology.add(
                DeviceRecord(
                    name=member.name,
                    mount=member.mount,
                    file=f"/dev/{entry.get('kname') or entry.get('name')}",
                    serial=topology.records[parent].serial,
                    device_id=device_id,
                    parent=parent,
                )
            )

        if include_all:
            for entry in by_kname.values():
                if entry.get("type") == "disk":
                    physical_index(entry)

        return topology

    @staticmethod
    def _disk_of(entry: Dict[str, Any], by_kname: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        seen = set()
        while entry.get("type") != "disk":
            pkname = entry.get("pkname")
            if not pkname or pkname in seen or pkname not in by_kname:
                break
            seen.add(pkname)
            entry = by_kname[pkname]
        return entry

    def _read_smart(self, topology: DeviceTopology) -> None:
        for record in topology.physical():
            try:
                smart = get_smart_data(record.file)
            except DeviceQueryError as exc:
                logger.warning("SMART unavailable for %s: %s", record.file, exc)
                continue
            record.snapshot = smart.snapshot
            record.serial = smart.serial or record.serial
            record.model = smart.model or record.model
            if not record.name:
                record.name = record.model

        for record in topology.logical():
            parent = topology.parent_of(record)
            record.snapshot = parent.snapshot
            record.serial = parent.serial

    def _power(self, topology: DeviceTopology, action) -> List[str]:
        failures: List[str] = []
        for record in topology.physical():
            if not action(record.file):
                logger.error("Power state change failed for %s", record.file)
                failures.append(record.file)
        return failures

    @staticmethod
    def _spin_up(device: str) -> bool:
        # a direct read wakes the device up
        cmd = ["dd", f"if={device}", "of=/dev/null", "bs=4096", "count=1", "iflag=direct"]
        proc = subprocess.run(cmd, capture_output=True, text=True)
        return proc.returncode == 0

    @staticmethod
    def _spin_down(device: str) -> bool:
        proc = subprocess.run(["hdparm", "-y", device], capture_output=True, text=True)
        return proc.returncode == 0
