from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from ..errors import EnumerationError
from ..model import KernelModule, metric_name
from ..sink import Sink

logger = logging.getLogger(__name__)

PROC_MODULES = "/proc/modules"

MODULE_STATES: Dict[str, float] = {
    "Live": 1.0,
    "Loading": 0.0,
    "Unloading": -1.0,
}

STATE_METRIC = metric_name("kernel_module", "state")
SIZE_METRIC = metric_name("kernel_module", "size_bytes")
REFCOUNT_METRIC = metric_name("kernel_module", "refcount")


def _parse_proc_modules(lines: Iterable[str]) -> List[KernelModule]:
    """Parse ``/proc/modules`` rows into modules.

    A row looks like ``nvme 61440 3 - Live 0xffffffffc0a5c000``: name, size in
    bytes, reference count, dependents, state, load address. Rows that are
    short, non-numeric, or in a state other than Live/Loading/Unloading are
    dropped with a warning.
    """
    modules: List[KernelModule] = []
    for line in lines:
        parts = line.split()
        if len(parts) < 5:
            continue
        name, size_str, refcount_str, state = parts[0], parts[1], parts[2], parts[4]
        try:
            size = float(int(size_str))
            refcount = float(int(refcount_str))
        except ValueError:
            logger.warning("kernel module %s: bad size/refcount %r/%r", name, size_str, refcount_str)
            continue
        if state not in MODULE_STATES:
            logger.warning("kernel module %s: unknown state %r", name, state)
            continue
        modules.append(
            {"name": name, "size_bytes": size, "refcount": refcount, "state": MODULE_STATES[state]}
        )
    return modules


class KernelModulesCollector:
    name = "kernelmodules"

    def __init__(self, path: str = PROC_MODULES):
        self.path = path

    def read_modules(self) -> List[KernelModule]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return _parse_proc_modules(f)
        except OSError as exc:
            raise EnumerationError(f"failed to read kernel modules: {exc}", path=self.path) from exc

    def update(self, sink: Sink) -> int:
        modules = self.read_modules()
        for module in modules:
            labels = [("module", module["name"])]
            sink.emit(STATE_METRIC, labels, module["state"])
            sink.emit(SIZE_METRIC, labels, module["size_bytes"])
            sink.emit(REFCOUNT_METRIC, labels, module["refcount"])
        return len(modules)
