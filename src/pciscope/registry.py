from __future__ import annotations

from typing import Callable, Dict, List, Optional, Protocol

from .collect.kernelmodules import KernelModulesCollector
from .collect.pcie import PCIeCollector
from .collect.pciids import load_pci_ids
from .config import Settings
from .errors import ConfigError
from .model import PciIds
from .sink import Sink


class Collector(Protocol):
    name: str

    def update(self, sink: Sink) -> int: ...


def _pcie(settings: Settings, ids: Optional[PciIds]) -> Collector:
    if ids is None:
        ids = load_pci_ids(settings.pci_ids_paths)
    return PCIeCollector(ids, root=settings.sysfs_pci_root)


def _kernelmodules(settings: Settings, ids: Optional[PciIds]) -> Collector:
    return KernelModulesCollector(path=settings.proc_modules)


COLLECTORS: Dict[str, Callable[[Settings, Optional[PciIds]], Collector]] = {
    "pcie": _pcie,
    "kernelmodules": _kernelmodules,
}


def collector_names() -> List[str]:
    return sorted(COLLECTORS)


def build_collector(name: str, settings: Settings, ids: Optional[PciIds] = None) -> Collector:
    """Instantiate a collector by name; ``ids`` skips reloading pci.ids."""
    try:
        factory = COLLECTORS[name]
    except KeyError:
        raise ConfigError(
            f"unknown collector: {name}", {"available": ", ".join(collector_names())}
        ) from None
    return factory(settings, ids)
