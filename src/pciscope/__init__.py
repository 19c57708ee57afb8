"""pciscope: PCI device and kernel module inventory as numeric observations."""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

__all__ = ["__version__", "METRIC_NAMESPACE"]

METRIC_NAMESPACE = "pciscope"

try:
    __version__ = _pkg_version("pciscope")
except PackageNotFoundError:
    __version__ = "0.0.0"
