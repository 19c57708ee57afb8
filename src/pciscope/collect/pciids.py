"""Loader for the ``pci.ids`` vendor/device/class database.

The file is line oriented and nesting is implied by leading tabs::

    8086  Intel Corporation              vendor
    <tab>1237  440FX - 82441FX PMC [Natoma]   device of the vendor above
    <tab><tab>1af4 1100  Qemu virtual machine    subsystem (subvendor subdevice)
    C 06  Bridge                         class
    <tab>04  PCI bridge                     subclass 0604
    <tab><tab>01  Subtractive decode           programming interface (ignored)

Parsing is an explicit state machine: :func:`classify_line` maps the current
:class:`ParserState` and one line to the next state plus at most one table
insertion, so every transition can be exercised on its own.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, NamedTuple, Optional, Sequence, Tuple

from ..model import PciIds

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "  "


class LineState(enum.Enum):
    NONE = "none"
    IN_CLASS = "in_class"
    IN_VENDOR = "in_vendor"
    IN_VENDOR_DEVICE = "in_vendor_device"


@dataclass(frozen=True)
class ParserState:
    state: LineState = LineState.NONE
    vendor: Optional[str] = None
    device: Optional[str] = None
    base_class: Optional[str] = None
    subclass: Optional[str] = None


class Insertion(NamedTuple):
    table: str  # one of: vendors, devices, subsystems, classes, subclasses
    key: str
    subkey: Optional[str]
    name: str


def _split_declaration(body: str) -> Optional[Tuple[str, str]]:
    parts = body.split(FIELD_SEPARATOR, 1)
    if len(parts) < 2:
        return None
    ident = parts[0].strip().lower()
    name = parts[1].strip()
    if not ident:
        return None
    return ident, name


def _leading_tabs(line: str) -> int:
    return len(line) - len(line.lstrip("\t"))


def classify_line(state: ParserState, line: str) -> Tuple[ParserState, Optional[Insertion]]:
    """Advance the parser by one line.

    Returns the new state and the table insertion the line implies, if any.
    Lines that are blank, comments, malformed, or out of context leave the
    state untouched and insert nothing.
    """
    if not line.strip() or line.startswith("#"):
        return state, None

    depth = _leading_tabs(line)
    body = line[depth:]

    if depth == 0:
        if line.startswith("C"):
            decl = _split_declaration(body[1:])
            if decl is None:
                return state, None
            class_id, name = decl
            new_state = ParserState(state=LineState.IN_CLASS, base_class=class_id)
            return new_state, Insertion("classes", class_id, None, name)

        decl = _split_declaration(body)
        if decl is None:
            return state, None
        vendor_id, name = decl
        new_state = ParserState(state=LineState.IN_VENDOR, vendor=vendor_id)
        return new_state, Insertion("vendors", vendor_id, None, name)

    if depth == 1:
        if state.state is LineState.IN_CLASS:
            decl = _split_declaration(body)
            if decl is None:
                return state, None
            sub_id, name = decl
            full_id = f"{state.base_class}{sub_id}"
            return replace(state, subclass=full_id), Insertion("subclasses", full_id, None, name)

        if state.state in (LineState.IN_VENDOR, LineState.IN_VENDOR_DEVICE):
            decl = _split_declaration(body)
            if decl is None:
                return state, None
            device_id, name = decl
            new_state = replace(state, state=LineState.IN_VENDOR_DEVICE, device=device_id)
            return new_state, Insertion("devices", state.vendor or "", device_id, name)

        return state, None

    if depth == 2 and state.state is LineState.IN_VENDOR_DEVICE:
        decl = _split_declaration(body)
        if decl is None:
            return state, None
        subsys_id, name = decl
        # on disk the pair is "subvendor subdevice"
        subkey = ":".join(subsys_id.split())
        return state, Insertion("subsystems", f"{state.vendor}:{state.device}", subkey, name)

    # programming interfaces (two tabs under a class) and deeper nesting
    return state, None


def parse_pci_ids(lines: Iterable[str], source: Optional[str] = None) -> PciIds:
    """Parse ``pci.ids`` content into frozen lookup tables."""
    vendors: Dict[str, str] = {}
    devices: Dict[str, Dict[str, str]] = {}
    subsystems: Dict[str, Dict[str, str]] = {}
    classes: Dict[str, str] = {}
    subclasses: Dict[str, str] = {}

    flat = {"vendors": vendors, "classes": classes, "subclasses": subclasses}
    nested = {"devices": devices, "subsystems": subsystems}

    state = ParserState()
    for raw in lines:
        state, insertion = classify_line(state, raw.rstrip("\r\n"))
        if insertion is None:
            continue
        if insertion.subkey is None:
            flat[insertion.table][insertion.key] = insertion.name
        else:
            nested[insertion.table].setdefault(insertion.key, {})[insertion.subkey] = insertion.name

    return PciIds.build(vendors, devices, subsystems, classes, subclasses, source=source)


def load_pci_ids(paths: Sequence[str]) -> PciIds:
    """Load the first readable database among ``paths``.

    When no candidate can be opened the returned tables are empty and every
    later lookup falls back to the raw identifier.
    """
    for path in paths:
        try:
            f = open(path, "r", encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug("pci.ids candidate %s not readable: %s", path, exc)
            continue
        with f:
            ids = parse_pci_ids(f, source=path)
        logger.debug(
            "loaded %d vendors and %d classes from %s", len(ids.vendors), len(ids.classes), path
        )
        return ids

    logger.debug("no pci.ids database found in %s; names fall back to raw ids", list(paths))
    return PciIds()
