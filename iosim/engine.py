from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import ipaddress

from .state import (
    AccessList,
    AccessListEntry,
    DeviceState,
    DhcpPool,
    Interface,
    LineConfig,
    OspfConfig,
    OspfNetwork,
    PARENT_MODES,
    RipConfig,
    RoutingEntry,
    StaticRoute,
    Vlan,
)
from .validation import (
    classful_mask,
    is_valid_ipv4,
    is_valid_mask,
    is_valid_wildcard,
    network_address,
    wildcard_to_mask,
)

RIP_METRIC = 1
OSPF_METRIC = 2

# Sub-mode context owned by each mode; cleared when leaving it.
_MODE_CONTEXT: Dict[str, str] = {
    "interface_config": "current_interface",
    "vlan_config": "current_vlan",
    "router_config": "current_router",
    "line_config": "current_line",
    "dhcp_config": "current_pool",
    "acl_config": "current_acl",
}


# ───────────────────────────── Modes ─────────────────────────────


def transition_mode(state: DeviceState, new_mode: str) -> DeviceState:
    changes = {"mode": new_mode}
    for mode, attr in _MODE_CONTEXT.items():
        if mode != new_mode:
            changes[attr] = None
    return replace(state, **changes)


def enter_mode(state: DeviceState, new_mode: str, **context) -> DeviceState:
    """Descend into ``new_mode``, remembering the current mode for ``exit``."""
    nxt = transition_mode(state, new_mode)
    return replace(nxt, mode_history=state.mode_history + (state.mode,), **context)


def exit_mode(state: DeviceState) -> DeviceState:
    if state.mode_history:
        nxt = transition_mode(state, state.mode_history[-1])
        return replace(nxt, mode_history=state.mode_history[:-1])
    return transition_mode(state, PARENT_MODES.get(state.mode, "user"))


def leave_sub_mode(state: DeviceState) -> DeviceState:
    """Back out of a config sub-mode to global_config."""
    while state.mode in _MODE_CONTEXT:
        state = exit_mode(state)
    return state


def end_config(state: DeviceState) -> DeviceState:
    return replace(transition_mode(state, "privileged"), mode_history=())


def disable(state: DeviceState) -> DeviceState:
    return replace(transition_mode(state, "user"), mode_history=())


def update_hostname(state: DeviceState, name: str) -> DeviceState:
    return replace(state, hostname=name)


# ───────────────────────────── Interfaces ─────────────────────────────


def find_interface(state: DeviceState, name: str) -> Optional[str]:
    """Case-insensitive lookup of the canonical interface key."""
    low = (name or "").lower()
    for key in state.interfaces:
        if key.lower() == low:
            return key
    return None


def add_interface(state: DeviceState, name: str) -> DeviceState:
    if find_interface(state, name) is not None:
        return state
    interfaces = dict(state.interfaces)
    interfaces[name] = Interface()
    return replace(state, interfaces=interfaces)


def _update_interface(state: DeviceState, name: str, recompile: bool, **changes) -> DeviceState:
    key = find_interface(state, name)
    if key is None:
        return state
    interfaces = dict(state.interfaces)
    interfaces[key] = replace(interfaces[key], **changes)
    nxt = replace(state, interfaces=interfaces)
    return calculate_routing_table(nxt) if recompile else nxt


def set_interface_ip(state: DeviceState, name: str, ip: str, mask: str) -> DeviceState:
    return _update_interface(state, name, True, ip=ip, mask=mask)


def clear_interface_ip(state: DeviceState, name: str) -> DeviceState:
    return _update_interface(state, name, True, ip=None, mask=None)


def set_interface_status(state: DeviceState, name: str, status: str) -> DeviceState:
    return _update_interface(state, name, True, status=status)


def set_interface_description(state: DeviceState, name: str, description: Optional[str]) -> DeviceState:
    return _update_interface(state, name, False, description=description)


# ───────────────────────────── VLANs ─────────────────────────────


def configure_vlan(state: DeviceState, vlan_id: int, name: Optional[str] = None) -> DeviceState:
    """Insert-or-update by id; the sequence stays sorted by id."""
    vlans = list(state.vlans)
    for i, v in enumerate(vlans):
        if v.id == vlan_id:
            if name:
                vlans[i] = replace(v, name=name)
            return replace(state, vlans=tuple(vlans))
    vlans.append(Vlan(id=vlan_id, name=name or f"VLAN{vlan_id:04d}"))
    vlans.sort(key=lambda v: v.id)
    return replace(state, vlans=tuple(vlans))


def rename_vlan(state: DeviceState, vlan_id: int, name: str) -> DeviceState:
    if state.vlan(vlan_id) is None:
        return state
    return configure_vlan(state, vlan_id, name)


def remove_vlan(state: DeviceState, vlan_id: int) -> DeviceState:
    if vlan_id == 1 or state.vlan(vlan_id) is None:
        return state
    return replace(state, vlans=tuple(v for v in state.vlans if v.id != vlan_id))


def assign_access_vlan(state: DeviceState, name: str, vlan_id: int) -> DeviceState:
    """Move an interface into ``vlan_id`` (created if absent) as an access port."""
    key = find_interface(state, name)
    if key is None:
        return state
    state = configure_vlan(state, vlan_id)
    order = list(state.interfaces)
    vlans = []
    for v in state.vlans:
        ports = [p for p in v.ports if p != key]
        if v.id == vlan_id:
            ports.append(key)
            ports.sort(key=lambda p: order.index(p) if p in order else len(order))
        vlans.append(replace(v, ports=tuple(ports)))
    return replace(state, vlans=tuple(vlans))


# ───────────────────────────── Static routes ─────────────────────────────


def add_static_route(state: DeviceState, network: str, mask: str, next_hop: str) -> DeviceState:
    route = StaticRoute(network=network, mask=mask, next_hop=next_hop)
    if route in state.static_routes:
        return state
    return calculate_routing_table(replace(state, static_routes=state.static_routes + (route,)))


def remove_static_route(state: DeviceState, network: str, mask: str, next_hop: str) -> DeviceState:
    route = StaticRoute(network=network, mask=mask, next_hop=next_hop)
    if route not in state.static_routes:
        return state
    remaining = tuple(r for r in state.static_routes if r != route)
    return calculate_routing_table(replace(state, static_routes=remaining))


# ───────────────────────────── Dynamic routing ─────────────────────────────


def configure_rip(
    state: DeviceState,
    version: Optional[int] = None,
    auto_summary: Optional[bool] = None,
) -> DeviceState:
    rip = state.rip or RipConfig()
    if version is not None:
        rip = replace(rip, version=version)
    if auto_summary is not None:
        rip = replace(rip, auto_summary=auto_summary)
    return calculate_routing_table(replace(state, rip=rip))


def add_rip_network(state: DeviceState, network: str) -> DeviceState:
    rip = state.rip or RipConfig()
    if network not in rip.networks:
        rip = replace(rip, networks=rip.networks + (network,))
    return calculate_routing_table(replace(state, rip=rip))


def remove_rip(state: DeviceState) -> DeviceState:
    if state.rip is None:
        return state
    return calculate_routing_table(replace(state, rip=None))


def configure_ospf(state: DeviceState, process_id: int) -> DeviceState:
    # One OSPF process per device; a new process id replaces the old one.
    if state.ospf is not None and state.ospf.process_id == process_id:
        return state
    return calculate_routing_table(replace(state, ospf=OspfConfig(process_id=process_id)))


def add_ospf_network(state: DeviceState, network: str, wildcard: str, area: str) -> DeviceState:
    if state.ospf is None:
        return state
    stmt = OspfNetwork(network=network, wildcard=wildcard, area=area)
    if stmt in state.ospf.networks:
        return state
    ospf = replace(state.ospf, networks=state.ospf.networks + (stmt,))
    return calculate_routing_table(replace(state, ospf=ospf))


def remove_ospf(state: DeviceState, process_id: int) -> DeviceState:
    if state.ospf is None or state.ospf.process_id != process_id:
        return state
    return calculate_routing_table(replace(state, ospf=None))


# ───────────────────────────── Lines / DHCP / ACL ─────────────────────────────


def configure_line(
    state: DeviceState,
    line: str,
    password: Optional[str] = None,
    login: Optional[bool] = None,
) -> DeviceState:
    lines = dict(state.lines)
    cfg = lines.get(line, LineConfig())
    if password is not None:
        cfg = replace(cfg, password=password)
    if login is not None:
        cfg = replace(cfg, login=login)
    lines[line] = cfg
    return replace(state, lines=lines)


def configure_dhcp_pool(state: DeviceState, name: str, **changes) -> DeviceState:
    pools = dict(state.dhcp_pools)
    pools[name] = replace(pools.get(name, DhcpPool()), **changes)
    return replace(state, dhcp_pools=pools)


def ensure_access_list(state: DeviceState, name: str, kind: str) -> DeviceState:
    if name in state.access_lists:
        return state
    acls = dict(state.access_lists)
    acls[name] = AccessList(kind=kind)
    return replace(state, access_lists=acls)


def add_access_list_entry(state: DeviceState, name: str, action: str, criteria: str) -> DeviceState:
    acl = state.access_lists.get(name)
    if acl is None:
        return state
    entry = AccessListEntry(action=action, criteria=criteria)
    acls = dict(state.access_lists)
    acls[name] = replace(acl, entries=acl.entries + (entry,))
    return replace(state, access_lists=acls)


# ───────────────────────────── Routing table compiler ─────────────────────────────


def calculate_routing_table(state: DeviceState) -> DeviceState:
    routes = compile_routes(state.interfaces, state.static_routes, state.rip, state.ospf)
    return replace(state, routes=routes)


def compile_routes(
    interfaces: Mapping[str, Interface],
    static_routes: Iterable[StaticRoute],
    rip: Optional[RipConfig],
    ospf: Optional[OspfConfig],
) -> Tuple[RoutingEntry, ...]:
    """Full rebuild: connected, then static, then dynamic; best distance wins."""

    connected: List[RoutingEntry] = []
    for name, itf in interfaces.items():
        if itf.status != "up" or not itf.has_ip():
            continue
        if not is_valid_ipv4(itf.ip) or not is_valid_mask(itf.mask):
            continue
        connected.append(
            RoutingEntry(network=network_address(itf.ip, itf.mask), mask=itf.mask, next_hop=name, type="connected")
        )

    static = [
        RoutingEntry(network=r.network, mask=r.mask, next_hop=r.next_hop, type="static")
        for r in static_routes
    ]

    dynamic: List[RoutingEntry] = []
    if ospf is not None:
        stmts = [
            (n.network, wildcard_to_mask(n.wildcard))
            for n in ospf.networks
            if is_valid_ipv4(n.network) and is_valid_wildcard(n.wildcard)
        ]
        dynamic.extend(_learned_routes(stmts, connected, interfaces, "ospf", OSPF_METRIC))
    if rip is not None:
        stmts = [(n, classful_mask(n)) for n in rip.networks if is_valid_ipv4(n)]
        dynamic.extend(_learned_routes(stmts, connected, interfaces, "rip", RIP_METRIC))

    return _select_best(connected + static + dynamic)


def _learned_routes(
    statements: List[Tuple[str, str]],
    connected: List[RoutingEntry],
    interfaces: Mapping[str, Interface],
    route_type: str,
    metric: int,
) -> List[RoutingEntry]:
    """Approximate protocol learning without a neighbor model.

    Statements covering a connected subnet make that interface participate;
    the remaining statements are reported as learned from a simulated
    neighbor on the first participating interface that can have one
    (a /32 cannot).
    """

    def covers(stmt: Tuple[str, str], entry: RoutingEntry) -> bool:
        net, mask = stmt
        return network_address(entry.network, mask) == network_address(net, mask)

    uplink: Optional[RoutingEntry] = None
    neighbor: Optional[str] = None
    for c in connected:
        if not any(covers(s, c) for s in statements):
            continue
        neighbor = _neighbor_address(interfaces[c.next_hop].ip, c.network, c.mask)
        if neighbor is not None:
            uplink = c
            break
    if uplink is None:
        return []

    learned: List[RoutingEntry] = []
    for stmt in statements:
        if any(covers(stmt, c) for c in connected):
            continue
        net, mask = stmt
        learned.append(
            RoutingEntry(
                network=network_address(net, mask),
                mask=mask,
                next_hop=neighbor,
                type=route_type,
                interface=uplink.next_hop,
                metric=metric,
            )
        )
    return learned


def _neighbor_address(own_ip: str, network: str, mask: str) -> Optional[str]:
    net = ipaddress.IPv4Network(f"{network}/{mask}")
    base = int(net.network_address)
    if net.prefixlen == 32:
        return None
    candidates = [base, base + 1] if net.prefixlen == 31 else [base + 1, base + 2]
    for c in candidates:
        addr = str(ipaddress.IPv4Address(c))
        if addr != own_ip:
            return addr
    return None


def _select_best(entries: List[RoutingEntry]) -> Tuple[RoutingEntry, ...]:
    best: Dict[Tuple[str, str], int] = {}
    for e in entries:
        key = (e.network, e.mask)
        best[key] = min(best.get(key, e.distance), e.distance)

    out: List[RoutingEntry] = []
    for e in entries:
        if e.distance == best[(e.network, e.mask)] and e not in out:
            out.append(e)
    return tuple(out)
