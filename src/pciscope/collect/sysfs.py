from __future__ import annotations

import os
from typing import Dict, List, Tuple

from ..errors import EnumerationError
from ..model import UNKNOWN

SYSFS_PCI_DEVICES = "/sys/bus/pci/devices"

IDENTITY_ATTRIBUTES: Tuple[str, ...] = (
    "vendor",
    "device",
    "subsystem_vendor",
    "subsystem_device",
    "class",
    "revision",
)

LINK_ATTRIBUTES: Tuple[str, ...] = (
    "current_link_speed",
    "current_link_width",
    "max_link_speed",
    "max_link_width",
    "power_state",
    "d3cold_allowed",
)

DEVICE_ATTRIBUTES: Tuple[str, ...] = IDENTITY_ATTRIBUTES + LINK_ATTRIBUTES


def list_devices(root: str = SYSFS_PCI_DEVICES) -> List[str]:
    """Return the PCI slot names (``0000:00:1f.2``) found under ``root``."""
    try:
        return sorted(os.listdir(root))
    except OSError as exc:
        raise EnumerationError(f"failed to list PCI devices: {exc}", path=root) from exc


def read_attribute(path: str) -> str:
    """Read a single-line sysfs attribute, ``"unknown"`` if it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except (OSError, UnicodeDecodeError):
        return UNKNOWN


def read_device_attributes(root: str, slot: str) -> Dict[str, str]:
    device_path = os.path.join(root, slot)
    return {name: read_attribute(os.path.join(device_path, name)) for name in DEVICE_ATTRIBUTES}
