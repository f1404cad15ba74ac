from __future__ import annotations

from typing import Dict, Optional, Tuple
import ipaddress
import re


_OCTET = re.compile(r"^(0|[1-9][0-9]{0,2})$")
_HOSTNAME = re.compile(r"^[A-Za-z](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")

VALID_MASKS: Tuple[str, ...] = tuple(
    str(ipaddress.IPv4Address((0xFFFFFFFF << (32 - n)) & 0xFFFFFFFF)) for n in range(33)
)

VLAN_MIN, VLAN_MAX = 1, 4094
OSPF_PID_MIN, OSPF_PID_MAX = 1, 65535

STANDARD_ACL_RANGES = ((1, 99), (1300, 1999))
EXTENDED_ACL_RANGES = ((100, 199), (2000, 2699))


def is_valid_ipv4(text: str) -> bool:
    parts = (text or "").split(".")
    if len(parts) != 4:
        return False
    for part in parts:
        if not _OCTET.match(part) or int(part) > 255:
            return False
    return True


def is_valid_mask(text: str) -> bool:
    return is_valid_ipv4(text) and text in VALID_MASKS


def is_valid_wildcard(text: str) -> bool:
    return is_valid_ipv4(text) and wildcard_to_mask(text) in VALID_MASKS


def wildcard_to_mask(wildcard: str) -> str:
    wc = ipaddress.IPv4Address(wildcard)
    return str(ipaddress.IPv4Address((~int(wc)) & 0xFFFFFFFF))


def mask_to_prefixlen(mask: str) -> int:
    """Count of contiguous leading 1-bits."""
    value = int(ipaddress.IPv4Address(mask))
    n = 0
    bit = 1 << 31
    while n < 32 and value & bit:
        n += 1
        bit >>= 1
    return n


def network_address(ip: str, mask: str) -> str:
    return str(ipaddress.IPv4Address(int(ipaddress.IPv4Address(ip)) & int(ipaddress.IPv4Address(mask))))


def classful_mask(network: str) -> str:
    first = int(network.split(".")[0])
    if first < 128:
        return "255.0.0.0"
    if first < 192:
        return "255.255.0.0"
    return "255.255.255.0"


def parse_int(text: str) -> Optional[int]:
    if not re.match(r"^[0-9]+$", text or ""):
        return None
    return int(text)


def is_valid_vlan_id(text: str) -> bool:
    n = parse_int(text)
    return n is not None and VLAN_MIN <= n <= VLAN_MAX


def is_valid_ospf_pid(text: str) -> bool:
    n = parse_int(text)
    return n is not None and OSPF_PID_MIN <= n <= OSPF_PID_MAX


def acl_kind(text: str) -> Optional[str]:
    n = parse_int(text)
    if n is None:
        return None
    if any(lo <= n <= hi for lo, hi in STANDARD_ACL_RANGES):
        return "standard"
    if any(lo <= n <= hi for lo, hi in EXTENDED_ACL_RANGES):
        return "extended"
    return None


def is_valid_area(text: str) -> bool:
    n = parse_int(text)
    if n is not None:
        return n <= 0xFFFFFFFF
    return is_valid_ipv4(text)


def _check_mask(value: str, captured: Dict[str, str]) -> Optional[str]:
    ip = captured.get("ip")
    # 0.0.0.0 is a route mask, never an interface mask.
    if is_valid_mask(value) and not (ip and value == "0.0.0.0"):
        return None
    if ip and is_valid_ipv4(value):
        return f"% Bad mask 0x{int(ipaddress.IPv4Address(value)):08X} for address {ip}"
    return f"% Invalid subnet mask: {value}"


def validate_argument(kind: str, value: str, captured: Dict[str, str]) -> Optional[str]:
    """Return a Cisco-style error line for a bad argument, or None.

    ``captured`` holds the arguments captured before this one on the same line.
    """

    if kind == "ipv4" and not is_valid_ipv4(value):
        return f"% Invalid IP address: {value}"
    if kind == "network" and not is_valid_ipv4(value):
        return f"% Invalid network address: {value}"
    if kind == "mask":
        return _check_mask(value, captured)
    if kind == "wildcard" and not is_valid_wildcard(value):
        return f"% Invalid wildcard mask: {value}"
    if kind == "nexthop" and value[:1].isdigit() and not is_valid_ipv4(value):
        return f"% Invalid next hop address: {value}"
    if kind == "vlan_id" and not is_valid_vlan_id(value):
        return "% VLAN ID must be between 1 and 4094"
    if kind == "ospf_pid" and not is_valid_ospf_pid(value):
        return "% OSPF process ID must be between 1 and 65535"
    if kind == "acl_number" and acl_kind(value) is None:
        return "% Access list number must be 1-99, 1300-1999 (standard) or 100-199, 2000-2699 (extended)"
    if kind == "rip_version" and value not in ("1", "2"):
        return "% RIP version must be 1 or 2"
    if kind == "area" and not is_valid_area(value):
        return f"% Invalid OSPF area: {value}"
    if kind == "hostname" and not _HOSTNAME.match(value):
        return "% Hostname contains one or more illegal characters."
    if kind == "line_number" and parse_int(value) is None:
        return f"% Invalid line number: {value}"
    return None
