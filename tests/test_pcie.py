"""
Tests for PCIeCollector: info observations, link observations, skip rules.
"""

import logging
from unittest.mock import patch

import pytest

from pciscope.collect.pcie import INFO_LABELS, INFO_METRIC, LINK_METRICS, PCIeCollector
from pciscope.errors import EnumerationError
from pciscope.model import PciIds
from pciscope.sink import ObservationList

from .conftest import INTEL_HOST_BRIDGE, NVIDIA_GPU

SPEED = "pciscope_pcie_slot_current_speed_gts"


def _labels(observation):
    return dict(observation["labels"])


@pytest.fixture
def collector(pci_ids, sysfs_root):
    return PCIeCollector(pci_ids, root=str(sysfs_root))


class TestInfoObservation:
    def test_resolved_names(self, collector, make_device):
        make_device("0000:01:00.0", **NVIDIA_GPU)
        sink = ObservationList()
        assert collector.update(sink) == 1

        (info,) = sink.named(INFO_METRIC)
        assert info["value"] == 1.0
        assert [k for k, _ in info["labels"]] == INFO_LABELS
        assert _labels(info) == {
            "slot": "0000:01:00.0",
            "vendor_id": "0x10de",
            "vendor_name": "NVIDIA Corporation",
            "device_id": "0x2204",
            "device_name": "GA102 [GeForce RTX 3090]",
            "subsystem_vendor_id": "0x10de",
            "subsystem_vendor_name": "NVIDIA Corporation",
            "subsystem_device_id": "0x147d",
            "subsystem_device_name": "GeForce RTX 3090 Founders Edition",
            "class_id": "0x030000",
            "class": "Unknown class (030000)",
            "revision": "0xa1",
        }

    def test_known_vendor_unknown_device(self, collector, make_device):
        make_device("0000:00:02.0", vendor="0x8086", device="0x1234", **{"class": "0x060400"})
        sink = ObservationList()
        collector.update(sink)

        labels = _labels(sink.named(INFO_METRIC)[0])
        assert labels["vendor_name"] == "Intel Corporation"
        assert labels["device_name"] == "1234"
        assert labels["class"] == "PCI bridge"

    def test_empty_device_directory(self, collector, make_device):
        make_device("0000:00:03.0")
        sink = ObservationList()
        collector.update(sink)

        assert len(sink) == 1
        labels = _labels(sink.observations[0])
        assert labels["vendor_id"] == "unknown"
        assert labels["vendor_name"] == "unknown"
        assert labels["class"] == "Unknown class (unknown)"


class TestLinkObservations:
    def test_all_link_metrics(self, collector, make_device):
        make_device("0000:01:00.0", **NVIDIA_GPU)
        sink = ObservationList()
        collector.update(sink)

        values = {o["name"]: o["value"] for o in sink if o["name"] != INFO_METRIC}
        assert values == {
            "pciscope_pcie_slot_current_speed_gts": 16.0,
            "pciscope_pcie_slot_current_width_lanes": 16.0,
            "pciscope_pcie_slot_max_speed_gts": 16.0,
            "pciscope_pcie_slot_max_width_lanes": 16.0,
            "pciscope_pcie_slot_power_state": 0.0,
            "pciscope_pcie_slot_d3cold_allowed": 1.0,
        }
        for o in sink:
            if o["name"] != INFO_METRIC:
                assert o["labels"] == [("slot", "0000:01:00.0")]

    def test_missing_current_speed_omits_only_that_metric(self, collector, make_device):
        attrs = dict(NVIDIA_GPU)
        del attrs["current_link_speed"]
        make_device("0000:01:00.0", **attrs)
        sink = ObservationList()
        collector.update(sink)

        assert len(sink.named(INFO_METRIC)) == 1
        assert sink.named(SPEED) == []
        assert len(sink.named("pciscope_pcie_slot_max_speed_gts")) == 1

    def test_unparseable_values_are_skipped(self, collector, make_device, caplog):
        attrs = dict(NVIDIA_GPU, current_link_speed="Unknown", power_state="error")
        make_device("0000:01:00.0", **attrs)
        sink = ObservationList()
        with caplog.at_level(logging.DEBUG, logger="pciscope.collect.pcie"):
            collector.update(sink)

        assert sink.named(SPEED) == []
        assert sink.named("pciscope_pcie_slot_power_state") == []
        assert len(sink.named("pciscope_pcie_slot_current_width_lanes")) == 1
        assert "failed to parse power_state" in caplog.text

    def test_legacy_pci_device_emits_info_only(self, collector, make_device):
        make_device("0000:00:00.0", **INTEL_HOST_BRIDGE)
        sink = ObservationList()
        collector.update(sink)

        assert [o["name"] for o in sink] == [INFO_METRIC]
        assert _labels(sink.observations[0])["subsystem_device_name"] == "Qemu virtual machine"
        assert _labels(sink.observations[0])["class"] == "Host bridge"


class TestCollectDevice:
    def test_record_fields(self, collector, make_device):
        make_device("0000:01:00.0", **dict(NVIDIA_GPU, max_link_width="x8"))
        record = collector.collect_device("0000:01:00.0")
        assert record["vendor_name"] == "NVIDIA Corporation"
        assert record["max_link_width"] == 8.0
        assert record["power_state"] == 0.0

    def test_missing_values_are_none(self, collector, make_device):
        make_device("0000:00:00.0", **INTEL_HOST_BRIDGE)
        record = collector.collect_device("0000:00:00.0")
        for link in LINK_METRICS:
            assert record[link.attribute] is None


class TestUpdate:
    def test_devices_in_slot_order(self, collector, make_device):
        make_device("0000:01:00.0", **NVIDIA_GPU)
        make_device("0000:00:00.0", **INTEL_HOST_BRIDGE)
        sink = ObservationList()
        assert collector.update(sink) == 2
        slots = [_labels(o)["slot"] for o in sink.named(INFO_METRIC)]
        assert slots == ["0000:00:00.0", "0000:01:00.0"]

    def test_enumeration_failure_propagates(self, tmp_path):
        collector = PCIeCollector(PciIds(), root=str(tmp_path / "missing"))
        with pytest.raises(EnumerationError):
            collector.update(ObservationList())

    def test_failing_device_is_skipped(self, collector, make_device, caplog):
        make_device("0000:00:00.0", **INTEL_HOST_BRIDGE)
        make_device("0000:01:00.0", **NVIDIA_GPU)
        original = collector.collect_device

        def flaky(slot):
            if slot == "0000:00:00.0":
                raise RuntimeError("boom")
            return original(slot)

        sink = ObservationList()
        with patch.object(collector, "collect_device", side_effect=flaky):
            with caplog.at_level(logging.WARNING):
                assert collector.update(sink) == 1
        assert [_labels(o)["slot"] for o in sink.named(INFO_METRIC)] == ["0000:01:00.0"]
        assert "skipping PCI device 0000:00:00.0" in caplog.text

    def test_without_database_names_fall_back(self, sysfs_root, make_device):
        make_device("0000:00:02.0", vendor="0x8086", device="0x1234", **{"class": "0x060400"})
        sink = ObservationList()
        PCIeCollector(PciIds(), root=str(sysfs_root)).update(sink)
        labels = _labels(sink.observations[0])
        assert labels["vendor_name"] == "8086"
        assert labels["device_name"] == "1234"
        assert labels["class"] == "Unknown class (060400)"
