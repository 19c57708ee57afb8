"""Resolve raw PCI identifiers to names, falling back to the identifier itself.

None of these functions raise: a miss in the tables degrades to echoing the
normalized id (or ``Unknown class (<id>)`` for classes).
"""

from __future__ import annotations

from ..model import PciIds


def normalize_id(raw: str) -> str:
    """``"0x8086"``, ``"0X8086"`` and ``"8086"`` all become ``"8086"``."""
    ident = raw.strip()
    if ident[:2] in ("0x", "0X"):
        ident = ident[2:]
    return ident.lower()


def vendor_name(ids: PciIds, vendor_id: str) -> str:
    vendor = normalize_id(vendor_id)
    return ids.vendors.get(vendor, vendor)


def device_name(ids: PciIds, vendor_id: str, device_id: str) -> str:
    vendor = normalize_id(vendor_id)
    device = normalize_id(device_id)
    return ids.devices.get(vendor, {}).get(device, device)


def subsystem_name(
    ids: PciIds,
    vendor_id: str,
    device_id: str,
    subsystem_vendor_id: str,
    subsystem_device_id: str,
) -> str:
    key = f"{normalize_id(vendor_id)}:{normalize_id(device_id)}"
    subdevice = normalize_id(subsystem_device_id)
    subkey = f"{normalize_id(subsystem_vendor_id)}:{subdevice}"
    # the subsystem vendor is reported separately, so a miss is just the subdevice id
    return ids.subsystems.get(key, {}).get(subkey, subdevice)


def class_name(ids: PciIds, class_id: str) -> str:
    """Name a class code such as ``0x060400``: subclass first, then base class."""
    ident = normalize_id(class_id)
    if len(ident) >= 4 and ident[:4] in ids.subclasses:
        return ids.subclasses[ident[:4]]
    if len(ident) >= 2 and ident[:2] in ids.classes:
        return ids.classes[ident[:2]]
    return f"Unknown class ({ident})"
