from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, TypedDict

from . import METRIC_NAMESPACE

UNKNOWN = "unknown"

Labels = List[Tuple[str, str]]


class Observation(TypedDict):
    name: str
    labels: Labels
    value: float


class DeviceRecord(TypedDict, total=False):
    slot: str
    vendor_id: str
    device_id: str
    subsystem_vendor_id: str
    subsystem_device_id: str
    class_id: str
    revision: str
    vendor_name: str
    device_name: str
    subsystem_vendor_name: str
    subsystem_device_name: str
    class_name: str
    current_link_speed: Optional[float]
    current_link_width: Optional[float]
    max_link_speed: Optional[float]
    max_link_width: Optional[float]
    power_state: Optional[float]
    d3cold_allowed: Optional[float]


class KernelModule(TypedDict):
    name: str
    size_bytes: float
    refcount: float
    state: float


def _freeze(table: Mapping) -> Mapping:
    return MappingProxyType(
        {k: _freeze(v) if isinstance(v, Mapping) else v for k, v in table.items()}
    )


@dataclass(frozen=True)
class PciIds:
    """Read-only lookup tables parsed from a pci.ids database.

    Keys are lowercase hex strings without a ``0x`` prefix. Nested tables are
    keyed ``vendor -> device`` and ``"vendor:device" -> "subvendor:subdevice"``.
    Construct with :func:`PciIds.build` so every level is frozen.
    """

    vendors: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    devices: Mapping[str, Mapping[str, str]] = field(default_factory=lambda: MappingProxyType({}))
    subsystems: Mapping[str, Mapping[str, str]] = field(default_factory=lambda: MappingProxyType({}))
    classes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    subclasses: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    source: Optional[str] = None

    @classmethod
    def build(
        cls,
        vendors: Dict[str, str],
        devices: Dict[str, Dict[str, str]],
        subsystems: Dict[str, Dict[str, str]],
        classes: Dict[str, str],
        subclasses: Dict[str, str],
        source: Optional[str] = None,
    ) -> PciIds:
        return cls(
            vendors=_freeze(vendors),
            devices=_freeze(devices),
            subsystems=_freeze(subsystems),
            classes=_freeze(classes),
            subclasses=_freeze(subclasses),
            source=source,
        )

    def is_empty(self) -> bool:
        return not (self.vendors or self.classes)


def metric_name(subsystem: str, name: str) -> str:
    return "_".join(part for part in (METRIC_NAMESPACE, subsystem, name) if part)
