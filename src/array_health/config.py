"""Array configuration.

Reads the SnapRAID style configuration file:

    parity /mnt/parity1/snapraid.parity
    2-parity /mnt/parity2/snapraid.2-parity
    data d1 /mnt/disk1/
    data d2 /mnt/disk2/

Only the ``parity`` and ``data``/``disk`` directives matter here, other
directives are skipped.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from .array_loss import MAX_REDUNDANCY
from .errors import ConfigError
from .models import ArrayConfig, DataDisk, ParitySlot

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.environ.get("ARRAY_HEALTH_CONF", "/etc/snapraid.conf")

_PARITY_RE = re.compile(r"^(?:([1-9])-)?parity$")


def parse_config(lines: Iterable[str], source: str = "<config>") -> ArrayConfig:
    config = ArrayConfig()
    parities: Dict[int, ParitySlot] = {}
    names = set()

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        tag = parts[0]
        arg = parts[1].strip() if len(parts) > 1 else ""

        match = _PARITY_RE.match(tag)
        if match:
            level = int(match.group(1) or 1)
            if level > MAX_REDUNDANCY:
                raise ConfigError(f"{source}:{lineno}: parity level {level} exceeds {MAX_REDUNDANCY}")
            if level in parities:
                raise ConfigError(f"{source}:{lineno}: duplicate '{tag}'")
            if not arg:
                raise ConfigError(f"{source}:{lineno}: missing path for '{tag}'")
            # split parity files are comma separated, the first locates the device
            path = arg.split(",")[0].strip()
            parities[level] = ParitySlot(level=level, path=path)
        elif tag in ("data", "disk"):
            fields = arg.split(None, 1)
            if len(fields) != 2:
                raise ConfigError(f"{source}:{lineno}: expected '{tag} NAME DIR'")
            name, mount = fields[0], fields[1].strip()
            if name in names:
                raise ConfigError(f"{source}:{lineno}: duplicate disk name '{name}'")
            names.add(name)
            config.disks.append(DataDisk(name=name, mount=mount))
        else:
            logger.debug("%s:%d: ignoring '%s'", source, lineno, tag)

    for expected, level in enumerate(sorted(parities), start=1):
        if level != expected:
            raise ConfigError(f"{source}: missing parity level {expected}")
    config.parities = [parities[level] for level in sorted(parities)]

    if not config.disks:
        raise ConfigError(f"{source}: no data disk configured")
    if not config.parities:
        raise ConfigError(f"{source}: no parity configured")

    return config


def load_config(path: Optional[Union[str, Path]] = None) -> ArrayConfig:
    config_path = Path(path or DEFAULT_CONFIG_PATH)
    try:
        with open(config_path, encoding="utf-8") as f:
            config = parse_config(f, source=str(config_path))
    except OSError as exc:
        raise ConfigError(f"Cannot read {config_path}: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"{config_path}: not valid UTF-8 text ({exc.reason} at byte {exc.start})") from exc
    logger.debug(
        "Loaded %s: %d disks, %d parity levels",
        config_path,
        len(config.disks),
        len(config.parities),
    )
    return config
