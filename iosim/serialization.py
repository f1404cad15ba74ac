from __future__ import annotations

from typing import Any, Dict, List, Optional

from . import engine
from .resolver import normalize_interface_name
from .state import (
    AccessList,
    AccessListEntry,
    DeviceState,
    DhcpPool,
    Interface,
    LineConfig,
    MODES,
    OspfConfig,
    OspfNetwork,
    RipConfig,
    StaticRoute,
    Vlan,
)
from .validation import is_valid_area, is_valid_ipv4, is_valid_ospf_pid, is_valid_wildcard

SCHEMA_VERSION = 1


def state_to_dict(state: DeviceState) -> Dict[str, Any]:
    """JSON-friendly snapshot, for session storage by the surrounding app."""

    data: Dict[str, Any] = {
        "schemaVersion": SCHEMA_VERSION,
        "deviceType": state.device_type,
        "hostname": state.hostname,
        "prompt": state.prompt,
        "mode": state.mode,
        "modeHistory": list(state.mode_history),
        "currentInterface": state.current_interface,
        "currentVlan": state.current_vlan,
        "currentRouter": state.current_router,
        "currentLine": state.current_line,
        "currentPool": state.current_pool,
        "currentAcl": state.current_acl,
        "interfaces": {
            name: {"ip": i.ip, "mask": i.mask, "status": i.status, "description": i.description}
            for name, i in state.interfaces.items()
        },
        "vlans": [{"id": v.id, "name": v.name, "ports": list(v.ports)} for v in state.vlans],
        "staticRoutes": [{"network": r.network, "mask": r.mask, "nextHop": r.next_hop} for r in state.static_routes],
        "ripConfig": None,
        "ospfConfig": None,
        "lines": {name: {"password": l.password, "login": l.login} for name, l in state.lines.items()},
        "dhcpPools": {
            name: {
                "network": p.network,
                "mask": p.mask,
                "defaultRouter": p.default_router,
                "dnsServer": p.dns_server,
            }
            for name, p in state.dhcp_pools.items()
        },
        "accessLists": {
            name: {"kind": a.kind, "entries": [{"action": e.action, "criteria": e.criteria} for e in a.entries]}
            for name, a in state.access_lists.items()
        },
        "routes": [
            {
                "network": r.network,
                "mask": r.mask,
                "nextHop": r.next_hop,
                "type": r.type,
                "interface": r.interface,
                "metric": r.metric,
            }
            for r in state.routes
        ],
    }
    if state.rip is not None:
        data["ripConfig"] = {
            "version": state.rip.version,
            "networks": list(state.rip.networks),
            "autoSummary": state.rip.auto_summary,
        }
    if state.ospf is not None:
        data["ospfConfig"] = {
            "processId": state.ospf.process_id,
            "networks": [{"network": n.network, "wildcard": n.wildcard, "area": n.area} for n in state.ospf.networks],
        }
    return data


def _is_address(value: Any) -> bool:
    return isinstance(value, str) and is_valid_ipv4(value)


def snapshot_problems(data: Dict[str, Any]) -> List[str]:
    """Structural problems that would leave a restored DeviceState unusable.

    Covers interface naming, mode history and the dynamic routing blocks.
    """

    problems: List[str] = []

    interfaces = data.get("interfaces")
    if isinstance(interfaces, dict):
        for name in interfaces:
            canonical = normalize_interface_name(name) if isinstance(name, str) else None
            if canonical != name:
                problems.append(f"interfaces key {name!r} is not a canonical interface name.")

    history = data.get("modeHistory")
    if history is not None:
        if not isinstance(history, list):
            problems.append("'modeHistory' must be a list when present.")
        else:
            for i, m in enumerate(history):
                if m not in MODES:
                    problems.append(f"modeHistory[{i}] is not a known mode: {m!r}.")

    rip = data.get("ripConfig")
    if rip is not None:
        if not isinstance(rip, dict):
            problems.append("'ripConfig' must be an object when present.")
        else:
            if rip.get("version", 1) not in (1, 2):
                problems.append("ripConfig.version must be 1 or 2.")
            networks = rip.get("networks") or []
            if not isinstance(networks, list) or not all(_is_address(n) for n in networks):
                problems.append("ripConfig.networks must be a list of IPv4 addresses.")

    ospf = data.get("ospfConfig")
    if ospf is not None:
        if not isinstance(ospf, dict):
            problems.append("'ospfConfig' must be an object when present.")
        else:
            pid = ospf.get("processId")
            if not isinstance(pid, int) or isinstance(pid, bool) or not is_valid_ospf_pid(str(pid)):
                problems.append("ospfConfig.processId must be an integer 1-65535.")
            networks = ospf.get("networks") or []
            if not isinstance(networks, list):
                problems.append("ospfConfig.networks must be a list.")
                networks = []
            for i, n in enumerate(networks):
                if (
                    not isinstance(n, dict)
                    or not _is_address(n.get("network"))
                    or not _is_address(n.get("wildcard"))
                    or not is_valid_wildcard(n["wildcard"])
                    or not is_valid_area(str(n.get("area", "")))
                ):
                    problems.append(f"ospfConfig.networks[{i}] needs a network, a wildcard mask and an area.")
    return problems


def state_from_dict(data: Dict[str, Any]) -> DeviceState:
    """Rebuild a snapshot. ``routes`` and ``prompt`` are always recomputed.

    Raises ValueError when the snapshot cannot describe a valid device.
    """

    if not isinstance(data, dict):
        raise ValueError("State must be a JSON object")

    mode = data.get("mode", "user")
    if mode not in MODES:
        raise ValueError(f"Unknown mode: {mode!r}")

    problems = snapshot_problems(data)
    if problems:
        raise ValueError(problems[0])

    try:
        state = _build_state(data, mode)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed state snapshot: {e!r}") from e
    # The stored table is never trusted; it is derived state.
    return engine.calculate_routing_table(state)


def _build_state(data: Dict[str, Any], mode: str) -> DeviceState:
    rip: Optional[RipConfig] = None
    rip_data = data.get("ripConfig")
    if rip_data:
        rip = RipConfig(
            version=int(rip_data.get("version", 1)),
            networks=tuple(rip_data.get("networks") or ()),
            auto_summary=bool(rip_data.get("autoSummary", True)),
        )

    ospf: Optional[OspfConfig] = None
    ospf_data = data.get("ospfConfig")
    if ospf_data:
        ospf = OspfConfig(
            process_id=int(ospf_data["processId"]),
            networks=tuple(
                OspfNetwork(network=n["network"], wildcard=n["wildcard"], area=str(n["area"]))
                for n in ospf_data.get("networks") or ()
            ),
        )

    vlans: List[Vlan] = [
        Vlan(id=int(v["id"]), name=v.get("name") or f"VLAN{int(v['id']):04d}", ports=tuple(v.get("ports") or ()))
        for v in data.get("vlans") or ()
    ]
    vlans.sort(key=lambda v: v.id)

    state = DeviceState(
        device_type=data.get("deviceType", "router"),
        hostname=data.get("hostname", "Router"),
        mode=mode,
        mode_history=tuple(data.get("modeHistory") or ()),
        current_interface=data.get("currentInterface"),
        current_vlan=data.get("currentVlan"),
        current_router=data.get("currentRouter"),
        current_line=data.get("currentLine"),
        current_pool=data.get("currentPool"),
        current_acl=data.get("currentAcl"),
        interfaces={
            name: Interface(
                ip=i.get("ip"),
                mask=i.get("mask"),
                status=i.get("status", "administratively down"),
                description=i.get("description"),
            )
            for name, i in (data.get("interfaces") or {}).items()
        },
        vlans=tuple(vlans),
        static_routes=tuple(
            StaticRoute(network=r["network"], mask=r["mask"], next_hop=r["nextHop"])
            for r in data.get("staticRoutes") or ()
        ),
        rip=rip,
        ospf=ospf,
        lines={
            name: LineConfig(password=l.get("password"), login=bool(l.get("login", False)))
            for name, l in (data.get("lines") or {}).items()
        },
        dhcp_pools={
            name: DhcpPool(
                network=p.get("network"),
                mask=p.get("mask"),
                default_router=p.get("defaultRouter"),
                dns_server=p.get("dnsServer"),
            )
            for name, p in (data.get("dhcpPools") or {}).items()
        },
        access_lists={
            name: AccessList(
                kind=a.get("kind", "standard"),
                entries=tuple(AccessListEntry(action=e["action"], criteria=e["criteria"]) for e in a.get("entries") or ()),
            )
            for name, a in (data.get("accessLists") or {}).items()
        },
    )
    return state
