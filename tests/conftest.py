"""
Shared fixtures: a small pci.ids database and a fake /sys/bus/pci/devices tree.
"""

from pathlib import Path
from typing import Callable

import pytest

from pciscope.collect.pciids import parse_pci_ids
from pciscope.model import PciIds

PCI_IDS_TEXT = """\
# pci.ids excerpt used by the tests
#	Version: 2024.01.01

8086  Intel Corporation
\t1237  440FX - 82441FX PMC [Natoma]
\t\t1af4 1100  Qemu virtual machine
\t7010  82371SB PIIX3 IDE [Natoma/Triton II]
10de  NVIDIA Corporation
\t2204  GA102 [GeForce RTX 3090]
\t\t10de 147d  GeForce RTX 3090 Founders Edition
1af4  Red Hat, Inc.
C 01  Mass storage controller
\t06  SATA controller
\t\t01  AHCI 1.0
\t08  Non-Volatile memory controller
\t\t02  NVM Express
C 06  Bridge
\t00  Host bridge
\t04  PCI bridge
C 0c  Serial bus controller
"""

INTEL_HOST_BRIDGE = {
    "vendor": "0x8086",
    "device": "0x1237",
    "subsystem_vendor": "0x1af4",
    "subsystem_device": "0x1100",
    "class": "0x060000",
    "revision": "0x02",
}

NVIDIA_GPU = {
    "vendor": "0x10de",
    "device": "0x2204",
    "subsystem_vendor": "0x10de",
    "subsystem_device": "0x147d",
    "class": "0x030000",
    "revision": "0xa1",
    "current_link_speed": "16.0 GT/s PCIe",
    "current_link_width": "16",
    "max_link_speed": "16.0 GT/s PCIe",
    "max_link_width": "16",
    "power_state": "D0",
    "d3cold_allowed": "1",
}


@pytest.fixture
def pci_ids_file(tmp_path: Path) -> Path:
    path = tmp_path / "pci.ids"
    path.write_text(PCI_IDS_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def pci_ids() -> PciIds:
    return parse_pci_ids(PCI_IDS_TEXT.splitlines(), source="fixture")


@pytest.fixture
def sysfs_root(tmp_path: Path) -> Path:
    root = tmp_path / "sys" / "bus" / "pci" / "devices"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def make_device(sysfs_root: Path) -> Callable[..., Path]:
    """
    Create a device directory with one file per attribute.

    Usage:
        make_device("0000:00:00.0", vendor="0x8086", device="0x1237")
    """
    def _make(slot: str, **attributes: str) -> Path:
        device_dir = sysfs_root / slot
        device_dir.mkdir()
        for name, value in attributes.items():
            (device_dir / name).write_text(value + "\n", encoding="utf-8")
        return device_dir
    return _make
