"""Runtime settings, read from ``PCISCOPE_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from .collect.kernelmodules import PROC_MODULES
from .collect.sysfs import SYSFS_PCI_DEVICES
from .errors import ConfigError

DEFAULT_PCI_IDS_PATHS: List[str] = [
    "/usr/share/misc/pci.ids",
    "/usr/share/hwdata/pci.ids",
]


@dataclass
class Settings:
    pci_ids_paths: List[str] = field(default_factory=lambda: list(DEFAULT_PCI_IDS_PATHS))
    sysfs_pci_root: str = SYSFS_PCI_DEVICES
    proc_modules: str = PROC_MODULES
    log_level: str = "WARNING"

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)


def _paths(value: str) -> List[str]:
    return [p for p in value.split(os.pathsep) if p]


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    settings = Settings()
    if env.get("PCISCOPE_PCI_IDS"):
        settings.pci_ids_paths = _paths(env["PCISCOPE_PCI_IDS"])
    if env.get("PCISCOPE_SYSFS_PCI"):
        settings.sysfs_pci_root = env["PCISCOPE_SYSFS_PCI"]
    if env.get("PCISCOPE_PROC_MODULES"):
        settings.proc_modules = env["PCISCOPE_PROC_MODULES"]
    level = env.get("PCISCOPE_LOG_LEVEL", settings.log_level).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"invalid log level: {level!r}", {"variable": "PCISCOPE_LOG_LEVEL"})
    settings.log_level = level
    return settings
