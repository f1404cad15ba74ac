from __future__ import annotations

from typing import List

from .resolver import short_interface_name
from .state import DeviceState, STATUS_UP
from .validation import mask_to_prefixlen

ROUTE_CODES = {"connected": "C", "static": "S", "rip": "R", "ospf": "O"}


def show_ip_interface_brief(state: DeviceState) -> str:
    lines = ["Interface              IP-Address      OK? Method Status                Protocol"]
    for ifn, itf in state.interfaces.items():
        ip = itf.ip if itf.has_ip() else "unassigned"
        method = "manual" if itf.has_ip() else "unset"
        proto = "up" if itf.status == STATUS_UP else "down"
        lines.append(f"{ifn:<22} {ip:<15} YES {method:<6} {itf.status:<21} {proto}")
    return "\n".join(lines)


def show_ip_route(state: DeviceState) -> str:
    lines = [
        "Codes: C - connected, S - static, R - RIP, O - OSPF",
        "       * - candidate default",
        "",
    ]
    default = next((r for r in state.routes if r.network == "0.0.0.0" and r.mask == "0.0.0.0"), None)
    if default is not None:
        lines.append(f"Gateway of last resort is {default.next_hop} to network 0.0.0.0")
    else:
        lines.append("Gateway of last resort is not set")
    lines.append("")

    for r in state.routes:
        code = ROUTE_CODES[r.type]
        if r is default:
            code += "*"
        prefix = f"{r.network}/{mask_to_prefixlen(r.mask)}"
        if r.type == "connected":
            lines.append(f"{code:<5}{prefix} is directly connected, {r.next_hop}")
        elif r.type == "static":
            lines.append(f"{code:<5}{prefix} [{r.distance}/{r.metric}] via {r.next_hop}")
        else:
            lines.append(f"{code:<5}{prefix} [{r.distance}/{r.metric}] via {r.next_hop}, {r.interface}")
    return "\n".join(lines)


def show_ip_protocols(state: DeviceState) -> str:
    lines: List[str] = []
    if state.ospf is not None:
        lines.append(f'Routing Protocol is "ospf {state.ospf.process_id}"')
        if state.ospf.networks:
            lines.append("  Routing for Networks:")
            for n in state.ospf.networks:
                lines.append(f"    {n.network} {n.wildcard} area {n.area}")
        lines.append("  Distance: (default is 110)")
    if state.rip is not None:
        if lines:
            lines.append("")
        lines.append('Routing Protocol is "rip"')
        lines.append(f"  Default version control: send version {state.rip.version}, receive version {state.rip.version}")
        lines.append(f"  Automatic network summarization is {'in effect' if state.rip.auto_summary else 'not in effect'}")
        if state.rip.networks:
            lines.append("  Routing for Networks:")
            for n in state.rip.networks:
                lines.append(f"    {n}")
        lines.append("  Distance: (default is 120)")
    return "\n".join(lines)


def show_vlan(state: DeviceState) -> str:
    lines = [
        "VLAN Name                             Status    Ports",
        "---- -------------------------------- --------- -------------------------------",
    ]
    for v in state.vlans:
        ports = ", ".join(short_interface_name(p) for p in v.ports)
        lines.append(f"{v.id:<4} {v.name:<32} active    {ports}".rstrip())
    return "\n".join(lines)


def show_access_lists(state: DeviceState) -> str:
    lines: List[str] = []
    for name, acl in state.access_lists.items():
        label = "Standard" if acl.kind == "standard" else "Extended"
        lines.append(f"{label} IP access list {name}")
        for idx, e in enumerate(acl.entries, start=1):
            lines.append(f"    {idx * 10} {e.action} {e.criteria}")
    return "\n".join(lines)


def show_running_config(state: DeviceState) -> str:
    body: List[str] = ["!", "version 15.1", f"hostname {state.hostname}", "!"]

    for name, pool in state.dhcp_pools.items():
        body.append(f"ip dhcp pool {name}")
        if pool.network and pool.mask:
            body.append(f" network {pool.network} {pool.mask}")
        if pool.default_router:
            body.append(f" default-router {pool.default_router}")
        if pool.dns_server:
            body.append(f" dns-server {pool.dns_server}")
        body.append("!")

    for v in state.vlans:
        if v.id == 1:
            continue
        body.append(f"vlan {v.id}")
        body.append(f" name {v.name}")
        body.append("!")

    access_vlan = {p: v.id for v in state.vlans if v.id != 1 for p in v.ports}
    for ifn, itf in state.interfaces.items():
        body.append(f"interface {ifn}")
        if itf.description:
            body.append(f" description {itf.description}")
        if ifn in access_vlan:
            body.append(f" switchport access vlan {access_vlan[ifn]}")
        if itf.has_ip():
            body.append(f" ip address {itf.ip} {itf.mask}")
        elif state.device_type == "router":
            body.append(" no ip address")
        if itf.status != STATUS_UP:
            body.append(" shutdown")
        body.append("!")

    if state.rip is not None:
        body.append("router rip")
        if state.rip.version != 1:
            body.append(f" version {state.rip.version}")
        for n in state.rip.networks:
            body.append(f" network {n}")
        if not state.rip.auto_summary:
            body.append(" no auto-summary")
        body.append("!")

    if state.ospf is not None:
        body.append(f"router ospf {state.ospf.process_id}")
        for n in state.ospf.networks:
            body.append(f" network {n.network} {n.wildcard} area {n.area}")
        body.append("!")

    # Static intent, not the compiled table: a shadowed static route is still configured.
    for r in state.static_routes:
        body.append(f"ip route {r.network} {r.mask} {r.next_hop}")
    if state.static_routes:
        body.append("!")

    for name, acl in state.access_lists.items():
        if name.isdigit():
            for e in acl.entries:
                body.append(f"access-list {name} {e.action} {e.criteria}")
        else:
            body.append(f"ip access-list {acl.kind} {name}")
            for e in acl.entries:
                body.append(f" {e.action} {e.criteria}")
        body.append("!")

    for name, line in state.lines.items():
        body.append(f"line {name}")
        if line.password:
            body.append(f" password {line.password}")
        if line.login:
            body.append(" login")
        body.append("!")

    body.append("end")
    text = "\n".join(body)
    return f"Building configuration...\n\nCurrent configuration : {len(text)} bytes\n{text}"
