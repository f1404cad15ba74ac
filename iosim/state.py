from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Literal, Mapping, Optional, Tuple


Mode = Literal[
    "user",
    "privileged",
    "global_config",
    "interface_config",
    "router_config",
    "line_config",
    "dhcp_config",
    "vlan_config",
    "acl_config",
]

MODES: Tuple[str, ...] = (
    "user",
    "privileged",
    "global_config",
    "interface_config",
    "router_config",
    "line_config",
    "dhcp_config",
    "vlan_config",
    "acl_config",
)

CONFIG_MODES = frozenset(m for m in MODES if m not in ("user", "privileged"))

# Parenthetical shown between hostname and the prompt character.
MODE_PROMPTS: Dict[str, str] = {
    "user": "",
    "privileged": "",
    "global_config": "(config)",
    "interface_config": "(config-if)",
    "router_config": "(config-router)",
    "line_config": "(config-line)",
    "dhcp_config": "(dhcp-config)",
    "vlan_config": "(config-vlan)",
    "acl_config": "(config-ext-nacl)",
}

# Where "exit" goes when the mode stack is empty.
PARENT_MODES: Dict[str, str] = {
    "user": "user",
    "privileged": "user",
    "global_config": "privileged",
    "interface_config": "global_config",
    "router_config": "global_config",
    "line_config": "global_config",
    "dhcp_config": "global_config",
    "vlan_config": "global_config",
    "acl_config": "global_config",
}

MODE_LABELS: Dict[str, str] = {
    "user": "User EXEC mode (Router>)",
    "privileged": "Privileged EXEC mode (Router#)",
    "global_config": "Global Configuration mode (Router(config)#)",
    "interface_config": "Interface Configuration mode (Router(config-if)#)",
    "router_config": "Router Configuration mode (Router(config-router)#)",
    "line_config": "Line Configuration mode (Router(config-line)#)",
    "dhcp_config": "DHCP Pool Configuration mode (Router(dhcp-config)#)",
    "vlan_config": "VLAN Configuration mode (Router(config-vlan)#)",
    "acl_config": "Access List Configuration mode (Router(config-ext-nacl)#)",
}

ADMIN_DISTANCE: Dict[str, int] = {
    "connected": 0,
    "static": 1,
    "ospf": 110,
    "rip": 120,
}

STATUS_UP = "up"
STATUS_DOWN = "administratively down"


def prompt_for(hostname: str, mode: str) -> str:
    suffix = ">" if mode == "user" else "#"
    return f"{hostname}{MODE_PROMPTS.get(mode, '')}{suffix}"


@dataclass(frozen=True)
class Interface:
    ip: Optional[str] = None
    mask: Optional[str] = None
    status: str = STATUS_DOWN  # up|administratively down
    description: Optional[str] = None

    def has_ip(self) -> bool:
        return bool(self.ip and self.mask and self.ip != "unassigned")


@dataclass(frozen=True)
class Vlan:
    id: int
    name: str
    ports: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StaticRoute:
    network: str
    mask: str
    next_hop: str


@dataclass(frozen=True)
class RipConfig:
    version: int = 1
    # insertion ordered, no duplicates
    networks: Tuple[str, ...] = ()
    auto_summary: bool = True


@dataclass(frozen=True)
class OspfNetwork:
    network: str
    wildcard: str
    area: str


@dataclass(frozen=True)
class OspfConfig:
    process_id: int
    networks: Tuple[OspfNetwork, ...] = ()


@dataclass(frozen=True)
class LineConfig:
    password: Optional[str] = None
    login: bool = False


@dataclass(frozen=True)
class DhcpPool:
    network: Optional[str] = None
    mask: Optional[str] = None
    default_router: Optional[str] = None
    dns_server: Optional[str] = None


@dataclass(frozen=True)
class AccessListEntry:
    action: str  # permit|deny
    criteria: str


@dataclass(frozen=True)
class AccessList:
    kind: str  # standard|extended
    entries: Tuple[AccessListEntry, ...] = ()


@dataclass(frozen=True)
class RoutingEntry:
    network: str
    mask: str
    next_hop: str
    type: str  # connected|static|ospf|rip
    interface: Optional[str] = None
    metric: int = 0

    @property
    def distance(self) -> int:
        return ADMIN_DISTANCE[self.type]


def _frozen_mapping(value: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class DeviceState:
    """One snapshot of a simulated device.

    Snapshots are values: every engine function returns a new one. Mapping
    fields are exposed read-only and ``prompt`` is always derived from
    ``hostname`` and ``mode``.
    """

    device_type: str = "router"
    hostname: str = "Router"
    mode: str = "user"
    mode_history: Tuple[str, ...] = ()

    # Sub-mode context
    current_interface: Optional[str] = None
    current_vlan: Optional[int] = None
    current_router: Optional[str] = None  # rip|ospf
    current_line: Optional[str] = None
    current_pool: Optional[str] = None
    current_acl: Optional[str] = None

    interfaces: Mapping[str, Interface] = field(default_factory=dict)
    vlans: Tuple[Vlan, ...] = ()
    static_routes: Tuple[StaticRoute, ...] = ()
    rip: Optional[RipConfig] = None
    ospf: Optional[OspfConfig] = None
    lines: Mapping[str, LineConfig] = field(default_factory=dict)
    dhcp_pools: Mapping[str, DhcpPool] = field(default_factory=dict)
    access_lists: Mapping[str, AccessList] = field(default_factory=dict)

    # Compiled from interfaces, static_routes, rip and ospf. Never edited directly.
    routes: Tuple[RoutingEntry, ...] = ()

    prompt: str = field(init=False, default="")

    def __post_init__(self):
        for name in ("interfaces", "lines", "dhcp_pools", "access_lists"):
            object.__setattr__(self, name, _frozen_mapping(getattr(self, name)))
        object.__setattr__(self, "mode_history", tuple(self.mode_history))
        object.__setattr__(self, "vlans", tuple(self.vlans))
        object.__setattr__(self, "static_routes", tuple(self.static_routes))
        object.__setattr__(self, "routes", tuple(self.routes))
        object.__setattr__(self, "prompt", prompt_for(self.hostname, self.mode))

    def vlan(self, vlan_id: int) -> Optional[Vlan]:
        for v in self.vlans:
            if v.id == vlan_id:
                return v
        return None


ROUTER_INTERFACES: Tuple[str, ...] = ("GigabitEthernet0/0", "GigabitEthernet0/1", "Serial0/0/0")
SWITCH_INTERFACES: Tuple[str, ...] = tuple(f"FastEthernet0/{i}" for i in range(1, 25)) + (
    "GigabitEthernet0/1",
    "GigabitEthernet0/2",
)


def get_initial_state(device_type: str = "router", hostname: str = "Router") -> DeviceState:
    kind = (device_type or "router").lower()
    if kind not in ("router", "switch"):
        kind = "router"
    hostname = (hostname or "").strip() or ("Switch" if kind == "switch" else "Router")

    if kind == "switch":
        names = SWITCH_INTERFACES
        # Switch ports come up without "no shutdown"; all start in VLAN 1.
        interfaces = {n: Interface(status=STATUS_UP) for n in names}
        vlans: Tuple[Vlan, ...] = (Vlan(id=1, name="default", ports=names),)
    else:
        interfaces = {n: Interface() for n in ROUTER_INTERFACES}
        vlans = ()

    return DeviceState(device_type=kind, hostname=hostname, interfaces=interfaces, vlans=vlans)
