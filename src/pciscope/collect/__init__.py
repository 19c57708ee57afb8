"""pciscope.collect
Collectors and the helpers they share.

Modules
-------
pciids        : pci.ids loader (vendor/device/subsystem/class tables)
sysfs         : lists /sys/bus/pci/devices and reads device attributes
resolve       : id -> name lookups with raw-id fallback
normalize     : link speed/width and power state text -> numbers
pcie          : per-poll PCIe device collector
kernelmodules : /proc/modules collector
"""

__all__ = ["pciids", "sysfs", "resolve", "normalize", "pcie", "kernelmodules"]
