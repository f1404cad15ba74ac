from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union
import re

from .grammar import CommandNode


@dataclass(frozen=True)
class Success:
    node: CommandNode
    match: str  # canonical keyword, or the raw token for an argument slot


@dataclass(frozen=True)
class Ambiguous:
    token: str
    candidates: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f'% Ambiguous command: "{self.token}"'


@dataclass(frozen=True)
class NoMatch:
    token: str

    @property
    def message(self) -> str:
        return f"% Invalid input detected at '{self.token}'"


Resolution = Union[Success, Ambiguous, NoMatch]


def resolve(level: Dict[str, CommandNode], token: str) -> Resolution:
    """Match one token against one grammar level.

    Order: exact keyword, unique keyword prefix, ambiguous prefix, then the
    level's single argument slot. Keywords always win over argument capture.
    """

    low = token.lower()
    keywords = [k for k, n in level.items() if not n.is_argument]

    if low in keywords:
        return Success(node=level[low], match=low)

    matches = [k for k in keywords if k.startswith(low)]
    if len(matches) == 1:
        return Success(node=level[matches[0]], match=matches[0])
    if len(matches) > 1:
        return Ambiguous(token=token, candidates=sorted(matches))

    slots = [n for n in level.values() if n.is_argument]
    if len(slots) == 1:
        return Success(node=slots[0], match=token)

    return NoMatch(token=token)


# ───────────────────────────── Interface names ─────────────────────────────

# Preference order matters: "g" is GigabitEthernet, "e" is Ethernet, "t" is TenGig.
INTERFACE_TYPES: Tuple[Tuple[str, str], ...] = (
    ("gigabitethernet", "GigabitEthernet"),
    ("fastethernet", "FastEthernet"),
    ("ethernet", "Ethernet"),
    ("serial", "Serial"),
    ("loopback", "Loopback"),
    ("vlan", "Vlan"),
    ("tengigabitethernet", "TenGigabitEthernet"),
    ("port-channel", "Port-channel"),
)

SHORT_NAMES: Dict[str, str] = {
    "GigabitEthernet": "Gi",
    "FastEthernet": "Fa",
    "Ethernet": "Et",
    "Serial": "Se",
    "Loopback": "Lo",
    "Vlan": "Vl",
    "TenGigabitEthernet": "Te",
    "Port-channel": "Po",
}

# Interface kinds that come into existence on first reference.
VIRTUAL_TYPES = ("Loopback", "Vlan", "Port-channel")

_IFNAME = re.compile(r"^([a-z-]+)\s*(\d+(?:/\d+)*)(\.\d+)?$")


def split_interface_name(name: str) -> Optional[Tuple[str, str, str]]:
    """Return (canonical type, slot/port, sub-interface suffix) or None."""

    m = _IFNAME.match((name or "").strip().lower())
    if not m:
        return None
    prefix, number, suffix = m.group(1), m.group(2), m.group(3) or ""
    for full, canonical in INTERFACE_TYPES:
        if full.startswith(prefix):
            return canonical, number, suffix
    return None


def normalize_interface_name(name: str) -> Optional[str]:
    """IOS-like interface shortname expansion.

    Examples:
    - g0/0, gi0/0, Gig0/0 -> GigabitEthernet0/0
    - fa0/1 -> FastEthernet0/1
    - s0/0/0 -> Serial0/0/0
    - lo0 -> Loopback0
    """

    parts = split_interface_name(name)
    if parts is None:
        return None
    canonical, number, suffix = parts
    return f"{canonical}{number}{suffix}"


def short_interface_name(name: str) -> str:
    parts = split_interface_name(name)
    if parts is None:
        return name
    canonical, number, suffix = parts
    return f"{SHORT_NAMES.get(canonical, canonical)}{number}{suffix}"


def is_virtual_interface(name: str) -> bool:
    parts = split_interface_name(name)
    if parts is None:
        return False
    canonical, _number, suffix = parts
    return canonical in VIRTUAL_TYPES or bool(suffix)
