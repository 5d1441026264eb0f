from __future__ import annotations


class ArrayHealthError(Exception):
    """Base error for array health operations."""


class ConfigError(ArrayHealthError):
    """The array configuration is missing or invalid."""


class InvalidRedundancyError(ConfigError):
    """Redundancy level out of range for the number of array members."""


class DeviceQueryError(ArrayHealthError):
    """The platform device query failed."""
