from __future__ import annotations

import logging
from typing import Callable, Dict, List, NamedTuple, Optional

from ..errors import ParseError
from ..model import UNKNOWN, DeviceRecord, PciIds, metric_name
from ..sink import Sink
from . import resolve
from .normalize import parse_flag, parse_power_state, parse_speed, parse_width
from .sysfs import SYSFS_PCI_DEVICES, list_devices, read_device_attributes

logger = logging.getLogger(__name__)

INFO_METRIC = metric_name("pcie_device", "info")

INFO_LABELS: List[str] = [
    "slot",
    "vendor_id",
    "vendor_name",
    "device_id",
    "device_name",
    "subsystem_vendor_id",
    "subsystem_vendor_name",
    "subsystem_device_id",
    "subsystem_device_name",
    "class_id",
    "class",
    "revision",
]


class LinkMetric(NamedTuple):
    attribute: str
    metric: str
    parse: Callable[[str], float]


LINK_METRICS: List[LinkMetric] = [
    LinkMetric("current_link_speed", metric_name("pcie_slot", "current_speed_gts"), parse_speed),
    LinkMetric("current_link_width", metric_name("pcie_slot", "current_width_lanes"), parse_width),
    LinkMetric("max_link_speed", metric_name("pcie_slot", "max_speed_gts"), parse_speed),
    LinkMetric("max_link_width", metric_name("pcie_slot", "max_width_lanes"), parse_width),
    LinkMetric("power_state", metric_name("pcie_slot", "power_state"), parse_power_state),
    LinkMetric("d3cold_allowed", metric_name("pcie_slot", "d3cold_allowed"), parse_flag),
]


class PCIeCollector:
    """Per-poll PCIe inventory from sysfs.

    Every device yields one ``pcie_device_info`` observation with value 1 and
    its resolved names, followed by one observation per link attribute that
    is present and parses. The lookup tables are loaded once by the caller and
    shared read-only across polls.
    """

    name = "pcie"

    def __init__(self, ids: PciIds, root: str = SYSFS_PCI_DEVICES):
        self.ids = ids
        self.root = root

    def collect_device(self, slot: str) -> DeviceRecord:
        raw = read_device_attributes(self.root, slot)
        ids = self.ids
        link = {m.attribute: self._normalize(slot, m, raw[m.attribute]) for m in LINK_METRICS}
        return {
            "slot": slot,
            "vendor_id": raw["vendor"],
            "device_id": raw["device"],
            "subsystem_vendor_id": raw["subsystem_vendor"],
            "subsystem_device_id": raw["subsystem_device"],
            "class_id": raw["class"],
            "revision": raw["revision"],
            "vendor_name": resolve.vendor_name(ids, raw["vendor"]),
            "device_name": resolve.device_name(ids, raw["vendor"], raw["device"]),
            "subsystem_vendor_name": resolve.vendor_name(ids, raw["subsystem_vendor"]),
            "subsystem_device_name": resolve.subsystem_name(
                ids, raw["vendor"], raw["device"], raw["subsystem_vendor"], raw["subsystem_device"]
            ),
            "class_name": resolve.class_name(ids, raw["class"]),
            "current_link_speed": link["current_link_speed"],
            "current_link_width": link["current_link_width"],
            "max_link_speed": link["max_link_speed"],
            "max_link_width": link["max_link_width"],
            "power_state": link["power_state"],
            "d3cold_allowed": link["d3cold_allowed"],
        }

    def _normalize(self, slot: str, link: LinkMetric, value: str) -> Optional[float]:
        if value == UNKNOWN:
            logger.debug("%s: %s not available", slot, link.attribute)
            return None
        try:
            return link.parse(value)
        except ParseError as exc:
            logger.debug("%s: failed to parse %s: %s", slot, link.attribute, exc)
            return None

    def _emit_device(self, sink: Sink, record: DeviceRecord) -> None:
        info_values: Dict[str, str] = {
            "slot": record["slot"],
            "vendor_id": record["vendor_id"],
            "vendor_name": record["vendor_name"],
            "device_id": record["device_id"],
            "device_name": record["device_name"],
            "subsystem_vendor_id": record["subsystem_vendor_id"],
            "subsystem_vendor_name": record["subsystem_vendor_name"],
            "subsystem_device_id": record["subsystem_device_id"],
            "subsystem_device_name": record["subsystem_device_name"],
            "class_id": record["class_id"],
            "class": record["class_name"],
            "revision": record["revision"],
        }
        sink.emit(INFO_METRIC, [(k, info_values[k]) for k in INFO_LABELS], 1.0)

        for link in LINK_METRICS:
            value = record.get(link.attribute)
            if value is None:
                continue
            sink.emit(link.metric, [("slot", record["slot"])], value)

    def update(self, sink: Sink) -> int:
        """Run one poll, returning the number of devices emitted.

        Raises :class:`~pciscope.errors.EnumerationError` if the device list
        cannot be read; a failure inside one device only skips that device.
        """
        emitted = 0
        for slot in list_devices(self.root):
            try:
                record = self.collect_device(slot)
            except Exception as exc:
                logger.warning("skipping PCI device %s: %s", slot, exc)
                continue
            self._emit_device(sink, record)
            emitted += 1
        logger.debug("collected %d PCI devices from %s", emitted, self.root)
        return emitted
