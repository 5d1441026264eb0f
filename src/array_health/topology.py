from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import DeviceQueryError
from .models import ArrayConfig, DeviceRecord, DeviceTopology, Operation
from .platform import DeviceQuery

logger = logging.getLogger(__name__)


@dataclass
class TopologyResult:
    requested: List[DeviceRecord]
    topology: DeviceTopology = field(default_factory=DeviceTopology)
    supported: bool = True
    diagnostic: Optional[str] = None
    failures: List[str] = field(default_factory=list)

    @property
    def member_count(self) -> int:
        return len(self.requested)


def build_requested(config: ArrayConfig) -> List[DeviceRecord]:
    """One unresolved logical record per data disk, then per parity level."""
    requested: List[DeviceRecord] = []
    for disk in config.disks:
        requested.append(DeviceRecord(name=disk.name, mount=disk.mount))
    for slot in config.parities:
        requested.append(DeviceRecord(name=slot.label, mount=os.path.dirname(slot.path)))
    return requested


def resolve(config: ArrayConfig, query: DeviceQuery, operation: Operation) -> TopologyResult:
    requested = build_requested(config)
    result = TopologyResult(requested=requested)

    try:
        answer = query.query(requested, operation)
    except DeviceQueryError as exc:
        result.supported = False
        result.diagnostic = f"{operation.title} failed: {exc}"
        logger.debug(result.diagnostic)
        return result

    if not answer.supported:
        result.supported = False
        result.diagnostic = f"{operation.title} unsupported in this platform."
        logger.debug(result.diagnostic)
        return result

    result.topology = answer.topology
    result.failures = list(answer.failures)
    logger.debug(
        "%s: %d members resolved to %d records",
        operation.value,
        len(requested),
        len(answer.topology),
    )
    return result
