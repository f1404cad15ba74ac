from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Set


@dataclass
class CommandNode:
    """One level of the command tree.

    Keyword nodes are keyed by their full keyword in the parent's ``children``.
    Argument nodes are keyed by a ``<placeholder>`` and capture the typed token
    under ``arg_name``. ``action`` marks a node where a command is complete; it
    is the dispatch tag handed to the processor.
    """

    children: Dict[str, "CommandNode"] = field(default_factory=dict)
    is_argument: bool = False
    arg_name: Optional[str] = None
    kind: str = "word"  # argument validator (see validation.validate_argument)
    rest: bool = False  # argument swallows the remainder of the line
    help: str = ""
    action: Optional[str] = None


def kw(help: str, action: Optional[str] = None, children: Optional[Dict[str, CommandNode]] = None) -> CommandNode:
    return CommandNode(children=dict(children or {}), help=help, action=action)


def arg(
    name: str,
    kind: str,
    help: str,
    action: Optional[str] = None,
    children: Optional[Dict[str, CommandNode]] = None,
    rest: bool = False,
) -> Dict[str, CommandNode]:
    node = CommandNode(
        children=dict(children or {}),
        is_argument=True,
        arg_name=name,
        kind=kind,
        rest=rest,
        help=help,
        action=action,
    )
    return {f"<{name}>": node}


# ───────────────────────────── Shared subtrees ─────────────────────────────


def _show_tree() -> CommandNode:
    return kw(
        "Show running system information",
        children={
            "ip": kw(
                "IP information",
                children={
                    "interface": kw(
                        "IP interface status and configuration",
                        children={"brief": kw("Brief summary of IP status and configuration", action="show_ip_interface_brief")},
                    ),
                    "route": kw("IP routing table", action="show_ip_route"),
                    "protocols": kw("IP routing protocol process parameters and statistics", action="show_ip_protocols"),
                },
            ),
            "running-config": kw("Current operating configuration", action="show_running_config"),
            "vlan": kw(
                "VTP VLAN status",
                action="show_vlan",
                children={"brief": kw("VTP all VLAN status in brief", action="show_vlan")},
            ),
            "access-lists": kw("List access lists", action="show_access_lists"),
        },
    )


def _exit() -> CommandNode:
    return kw("Exit from the current mode", action="exit")


def _end() -> CommandNode:
    return kw("Exit to privileged EXEC mode", action="end")


def _do() -> CommandNode:
    return kw("To run exec commands in config mode", children={"show": _show_tree()})


def _sub_mode(**commands: CommandNode) -> Dict[str, CommandNode]:
    level = {"exit": _exit(), "end": _end()}
    level.update(commands)
    return level


# ───────────────────────────── Mode roots ─────────────────────────────


def _user() -> Dict[str, CommandNode]:
    return {
        "enable": kw("Turn on privileged commands", action="enable"),
        "exit": kw("Exit from the EXEC", action="exit"),
        "show": _show_tree(),
    }


def _privileged() -> Dict[str, CommandNode]:
    return {
        "enable": kw("Turn on privileged commands", action="enable"),
        "disable": kw("Turn off privileged commands", action="disable"),
        "configure": kw(
            "Enter configuration mode",
            children={"terminal": kw("Configure from the terminal", action="configure_terminal")},
        ),
        "exit": kw("Exit from the EXEC", action="exit"),
        "show": _show_tree(),
    }


def _global_config() -> Dict[str, CommandNode]:
    def route(action: str) -> CommandNode:
        return kw(
            "Establish static routes",
            children=arg(
                "network",
                "network",
                "Destination prefix",
                children=arg(
                    "mask",
                    "mask",
                    "Destination prefix mask",
                    children=arg("nexthop", "nexthop", "Forwarding router's address or interface", action=action),
                ),
            ),
        )

    return _sub_mode(
        hostname=kw("Set system's network name", children=arg("name", "hostname", "This system's network name", action="hostname")),
        interface=kw("Select an interface to configure", children=arg("iface", "interface", "Interface name", action="interface", rest=True)),
        vlan=kw("VLAN commands", children=arg("id", "vlan_id", "ISL VLAN IDs 1-4094", action="vlan")),
        ip=kw(
            "Global IP configuration subcommands",
            children={
                "route": route("ip_route"),
                "dhcp": kw(
                    "Configure DHCP server and relay parameters",
                    children={"pool": kw("Configure DHCP address pools", children=arg("pool", "word", "Pool name", action="dhcp_pool"))},
                ),
                "access-list": kw(
                    "Named access-list",
                    children={
                        "standard": kw("Standard Access List", children=arg("acl", "word", "Access-list name", action="named_acl")),
                        "extended": kw("Extended Access List", children=arg("acl", "word", "Access-list name", action="named_acl")),
                    },
                ),
            },
        ),
        **{
            "access-list": kw(
                "Add an access list entry",
                children=arg(
                    "number",
                    "acl_number",
                    "IP access list number",
                    children={
                        "permit": kw("Specify packets to forward", children=arg("criteria", "text", "Match criteria", action="numbered_acl", rest=True)),
                        "deny": kw("Specify packets to reject", children=arg("criteria", "text", "Match criteria", action="numbered_acl", rest=True)),
                    },
                ),
            ),
        },
        router=kw(
            "Enable a routing process",
            children={
                "rip": kw("Routing Information Protocol (RIP)", action="router_rip"),
                "ospf": kw("Open Shortest Path First (OSPF)", children=arg("pid", "ospf_pid", "Process ID", action="router_ospf")),
            },
        ),
        line=kw(
            "Configure a terminal line",
            children={
                "console": kw("Primary terminal line", children=arg("first", "line_number", "First Line number", action="line")),
                "vty": kw(
                    "Virtual terminal",
                    children=arg(
                        "first",
                        "line_number",
                        "First Line number",
                        action="line",
                        children=arg("last", "line_number", "Last Line number", action="line"),
                    ),
                ),
            },
        ),
        no=kw(
            "Negate a command or set its defaults",
            children={
                "vlan": kw("VLAN commands", children=arg("id", "vlan_id", "ISL VLAN IDs 1-4094", action="no_vlan")),
                "ip": kw("Global IP configuration subcommands", children={"route": route("no_ip_route")}),
                "router": kw(
                    "Enable a routing process",
                    children={
                        "rip": kw("Routing Information Protocol (RIP)", action="no_router_rip"),
                        "ospf": kw("Open Shortest Path First (OSPF)", children=arg("pid", "ospf_pid", "Process ID", action="no_router_ospf")),
                    },
                ),
            },
        ),
        do=_do(),
    )


def _interface_config() -> Dict[str, CommandNode]:
    return _sub_mode(
        ip=kw(
            "Interface Internet Protocol config commands",
            children={
                "address": kw(
                    "Set the IP address of an interface",
                    children=arg("ip", "ipv4", "IP address", children=arg("mask", "mask", "IP subnet mask", action="ip_address")),
                ),
            },
        ),
        shutdown=kw("Shutdown the selected interface", action="shutdown"),
        description=kw("Interface specific description", children=arg("text", "text", "Up to 240 characters describing this interface", action="description", rest=True)),
        switchport=kw(
            "Set switching mode characteristics",
            children={
                "access": kw(
                    "Set access mode characteristics of the interface",
                    children={"vlan": kw("Set VLAN when interface is in access mode", children=arg("id", "vlan_id", "VLAN ID of the VLAN when this port is in access mode", action="switchport_access_vlan"))},
                ),
            },
        ),
        no=kw(
            "Negate a command or set its defaults",
            children={
                "shutdown": kw("Shutdown the selected interface", action="no_shutdown"),
                "ip": kw(
                    "Interface Internet Protocol config commands",
                    children={"address": kw("Set the IP address of an interface", action="no_ip_address")},
                ),
            },
        ),
        do=_do(),
    )


def _vlan_config() -> Dict[str, CommandNode]:
    return _sub_mode(
        name=kw("Ascii name of the VLAN", children=arg("name", "text", "The ascii name for the VLAN", action="vlan_name", rest=True)),
    )


def _router_config() -> Dict[str, CommandNode]:
    return _sub_mode(
        network=kw(
            "Enable routing on an IP network",
            children=arg(
                "network",
                "network",
                "Network number",
                action="network",
                children=arg(
                    "wildcard",
                    "wildcard",
                    "OSPF wild card bits",
                    children={"area": kw("Set the OSPF area ID", children=arg("area", "area", "OSPF area ID", action="network"))},
                ),
            ),
        ),
        version=kw("Set routing protocol version", children=arg("version", "rip_version", "version", action="version")),
        **{
            "auto-summary": kw("Enable automatic network number summarization", action="auto_summary"),
        },
        no=kw(
            "Negate a command or set its defaults",
            children={"auto-summary": kw("Enable automatic network number summarization", action="no_auto_summary")},
        ),
    )


def _line_config() -> Dict[str, CommandNode]:
    return _sub_mode(
        password=kw("Set a password", children=arg("password", "text", "The password", action="line_password", rest=True)),
        login=kw("Enable password checking", action="login"),
        no=kw("Negate a command or set its defaults", children={"login": kw("Enable password checking", action="no_login")}),
    )


def _dhcp_config() -> Dict[str, CommandNode]:
    return _sub_mode(
        network=kw(
            "Network number and mask",
            children=arg("network", "network", "Network number in dotted-decimal notation", children=arg("mask", "mask", "Network mask", action="dhcp_network")),
        ),
        **{
            "default-router": kw("Default routers", children=arg("router", "ipv4", "Router's IP address", action="dhcp_default_router")),
            "dns-server": kw("DNS servers", children=arg("server", "ipv4", "Server's IP address", action="dhcp_dns_server")),
        },
    )


def _acl_config() -> Dict[str, CommandNode]:
    return _sub_mode(
        permit=kw("Specify packets to forward", children=arg("criteria", "text", "Match criteria", action="acl_entry", rest=True)),
        deny=kw("Specify packets to reject", children=arg("criteria", "text", "Match criteria", action="acl_entry", rest=True)),
    )


def build_grammar() -> Dict[str, Dict[str, CommandNode]]:
    return {
        "user": _user(),
        "privileged": _privileged(),
        "global_config": _global_config(),
        "interface_config": _interface_config(),
        "vlan_config": _vlan_config(),
        "router_config": _router_config(),
        "line_config": _line_config(),
        "dhcp_config": _dhcp_config(),
        "acl_config": _acl_config(),
    }


def find_actions(grammar: Dict[str, Dict[str, CommandNode]]) -> Set[str]:
    """Every dispatch tag reachable in ``grammar``."""
    found: Set[str] = set()
    stack = [node for level in grammar.values() for node in level.values()]
    while stack:
        node = stack.pop()
        if node.action:
            found.add(node.action)
        stack.extend(node.children.values())
    return found


COMMAND_GRAMMAR: Dict[str, Dict[str, CommandNode]] = build_grammar()
