from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from . import engine, render
from .grammar import COMMAND_GRAMMAR, CommandNode, find_actions
from .resolver import Ambiguous, NoMatch, is_virtual_interface, normalize_interface_name, resolve
from .state import CONFIG_MODES, STATUS_DOWN, STATUS_UP, DeviceState
from .validation import acl_kind, classful_mask, is_valid_ipv4, network_address, validate_argument


INVALID_INPUT = "% Invalid input detected at '^' marker."
INCOMPLETE_COMMAND = "% Incomplete command."
CONFIG_BANNER = "Enter configuration commands, one per line.  End with CNTL/Z."

# Error categories carried in CLIResult.error
ERR_UNKNOWN_COMMAND = "Invalid command"
ERR_AMBIGUOUS = "Ambiguous command"
ERR_INVALID_ARGUMENT = "Invalid argument"
ERR_TOO_MANY_ARGUMENTS = "Too many arguments"
ERR_INCOMPLETE = "Incomplete command"
ERR_VALIDATION = "Invalid value"
ERR_MODE = "Command not valid here"
ERR_SYSTEM = "System error"


class CLIError(Exception):
    def __init__(self, message: str, error: str = ERR_UNKNOWN_COMMAND, depth: int = 0):
        super().__init__(message)
        self.message = message
        self.error = error
        # Tokens matched before the failure.
        self.depth = depth


@dataclass
class CLIResult:
    valid: bool
    output: str
    new_state: DeviceState
    mode_change: Optional[str] = None
    hostname_change: Optional[str] = None
    error: Optional[str] = None

    @property
    def prompt(self) -> str:
        return self.new_state.prompt


@dataclass
class ParsedCommand:
    action: str
    path: List[str] = field(default_factory=list)
    args: Dict[str, str] = field(default_factory=dict)
    # (arg name, validator kind, value) in the order they were typed
    captured: List[Tuple[str, str, str]] = field(default_factory=list)
    from_global: bool = False


Handler = Callable[[DeviceState, ParsedCommand], Tuple[DeviceState, str]]


class CLIEngine:
    """Cisco-like command processor.

    Walks one line through the grammar of the current mode, validates the
    captured arguments, then dispatches on the action tag of the matched node.
    The input state is never modified; a new snapshot is returned.
    """

    def __init__(self, grammar: Optional[Dict[str, Dict[str, CommandNode]]] = None):
        self.grammar = grammar if grammar is not None else COMMAND_GRAMMAR
        self._handlers: Dict[str, Handler] = {}
        for action in sorted(find_actions(self.grammar)):
            handler = getattr(self, f"_cmd_{action}", None)
            if handler is None:
                raise ValueError(f"No handler for grammar action {action!r}")
            self._handlers[action] = handler

    def process(self, state: DeviceState, line: str) -> CLIResult:
        stripped = (line or "").strip()
        if stripped == "":
            return CLIResult(valid=True, output="", new_state=state)

        if stripped.endswith("?"):
            return self._help(state, stripped[:-1])

        try:
            cmd = self.parse(state, stripped)
            self._validate(cmd)
            base = engine.leave_sub_mode(state) if cmd.from_global else state
            new_state, output = self._handlers[cmd.action](base, cmd)
        except CLIError as e:
            return CLIResult(valid=False, output=e.message, new_state=state, error=e.error)
        except Exception:
            return CLIResult(valid=False, output=INVALID_INPUT, new_state=state, error=ERR_SYSTEM)

        return CLIResult(
            valid=True,
            output=output,
            new_state=new_state,
            mode_change=new_state.mode if new_state.mode != state.mode else None,
            hostname_change=new_state.hostname if new_state.hostname != state.hostname else None,
        )

    # ───────────────────────────── Parsing ─────────────────────────────

    def _root(self, state: DeviceState) -> Dict[str, CommandNode]:
        level = self.grammar.get(state.mode)
        if level is None:
            raise CLIError(f"% Error: No grammar defined for mode {state.mode}", ERR_SYSTEM)
        return level

    def parse(self, state: DeviceState, line: str) -> ParsedCommand:
        """Resolve ``line`` in the current mode.

        Config sub-modes also accept global configuration commands, as IOS
        does; such a command is flagged ``from_global`` and runs from
        global_config. This covers lines that share a leading keyword with
        the sub-mode (``ip route`` under an interface). When both walks
        fail, the error from the walk that matched more tokens is raised.
        """

        tokens = line.split()
        try:
            return self._walk(self._root(state), tokens)
        except CLIError as e:
            if (
                e.error not in (ERR_UNKNOWN_COMMAND, ERR_INVALID_ARGUMENT)
                or state.mode not in CONFIG_MODES
                or state.mode == "global_config"
            ):
                raise
            local = e
        try:
            cmd = self._walk(self.grammar["global_config"], tokens)
        except CLIError as e:
            if e.depth > local.depth:
                raise
            raise local from None
        cmd.from_global = True
        return cmd

    def _walk(self, level: Dict[str, CommandNode], tokens: List[str]) -> ParsedCommand:
        node: Optional[CommandNode] = None
        path: List[str] = []
        args: Dict[str, str] = {}
        captured: List[Tuple[str, str, str]] = []

        i = 0
        while i < len(tokens):
            token = tokens[i]
            if node is not None and not node.children:
                raise CLIError(INVALID_INPUT, ERR_TOO_MANY_ARGUMENTS, len(path))

            res = resolve(level, token)
            if isinstance(res, Ambiguous):
                raise CLIError(res.message, ERR_AMBIGUOUS, len(path))
            if isinstance(res, NoMatch):
                if node is None:
                    raise CLIError(INVALID_INPUT, ERR_UNKNOWN_COMMAND)
                raise CLIError(res.message, ERR_INVALID_ARGUMENT, len(path))

            node = res.node
            value = res.match
            if node.is_argument and node.rest:
                value = " ".join(tokens[i:])
                i = len(tokens)
            else:
                i += 1
            if node.is_argument and node.arg_name:
                args[node.arg_name] = value
                captured.append((node.arg_name, node.kind, value))
            path.append(value)
            level = node.children

        if node is None or node.action is None:
            raise CLIError(INCOMPLETE_COMMAND, ERR_INCOMPLETE, len(path))
        return ParsedCommand(action=node.action, path=path, args=args, captured=captured)

    def _validate(self, cmd: ParsedCommand) -> None:
        seen: Dict[str, str] = {}
        for name, kind, value in cmd.captured:
            problem = validate_argument(kind, value, seen)
            if problem:
                raise CLIError(problem, ERR_VALIDATION)
            seen[name] = value

    # ───────────────────────────── Help ─────────────────────────────

    def _help(self, state: DeviceState, text: str) -> CLIResult:
        tokens = text.split()
        partial = "" if (not text or text.endswith(" ")) else tokens.pop()
        try:
            level = self._root(state)
            node: Optional[CommandNode] = None
            for token in tokens:
                if node is not None and node.is_argument and node.rest:
                    break
                res = resolve(level, token)
                if isinstance(res, Ambiguous):
                    raise CLIError(res.message, ERR_AMBIGUOUS)
                if isinstance(res, NoMatch):
                    raise CLIError(INVALID_INPUT if node is None else res.message, ERR_INVALID_ARGUMENT)
                node = res.node
                level = node.children
        except CLIError as e:
            return CLIResult(valid=False, output=e.message, new_state=state, error=e.error)

        entries: List[Tuple[str, str]] = []
        for key in sorted(level):
            child = level[key]
            if child.is_argument:
                if not partial:
                    entries.append((key, child.help))
            elif key.startswith(partial.lower()):
                entries.append((key, child.help))
        if node is not None and node.action and not partial:
            entries.append(("<cr>", ""))

        if not entries:
            return CLIResult(valid=False, output="% Unrecognized command", new_state=state, error=ERR_UNKNOWN_COMMAND)
        out = "\n".join(f"  {k:<16}{h}".rstrip() for k, h in entries)
        return CLIResult(valid=True, output=out, new_state=state)

    # ───────────────────────────── EXEC ─────────────────────────────

    def _cmd_enable(self, state: DeviceState, cmd: ParsedCommand):
        if state.mode == "user":
            return engine.transition_mode(state, "privileged"), ""
        return state, ""

    def _cmd_disable(self, state: DeviceState, cmd: ParsedCommand):
        return engine.disable(state), ""

    def _cmd_configure_terminal(self, state: DeviceState, cmd: ParsedCommand):
        return engine.enter_mode(state, "global_config"), CONFIG_BANNER

    def _cmd_exit(self, state: DeviceState, cmd: ParsedCommand):
        if state.mode == "user":
            return state, ""
        return engine.exit_mode(state), ""

    def _cmd_end(self, state: DeviceState, cmd: ParsedCommand):
        return engine.end_config(state), ""

    def _cmd_show_ip_interface_brief(self, state: DeviceState, cmd: ParsedCommand):
        return state, render.show_ip_interface_brief(state)

    def _cmd_show_ip_route(self, state: DeviceState, cmd: ParsedCommand):
        return state, render.show_ip_route(state)

    def _cmd_show_ip_protocols(self, state: DeviceState, cmd: ParsedCommand):
        return state, render.show_ip_protocols(state)

    def _cmd_show_running_config(self, state: DeviceState, cmd: ParsedCommand):
        if state.mode == "user":
            raise CLIError(INVALID_INPUT, ERR_MODE)
        return state, render.show_running_config(state)

    def _cmd_show_vlan(self, state: DeviceState, cmd: ParsedCommand):
        return state, render.show_vlan(state)

    def _cmd_show_access_lists(self, state: DeviceState, cmd: ParsedCommand):
        return state, render.show_access_lists(state)

    # ───────────────────────────── Global config ─────────────────────────────

    def _cmd_hostname(self, state: DeviceState, cmd: ParsedCommand):
        return engine.update_hostname(state, cmd.args["name"]), ""

    def _cmd_interface(self, state: DeviceState, cmd: ParsedCommand):
        name = normalize_interface_name(cmd.args["iface"])
        if name is None:
            raise CLIError(INVALID_INPUT, ERR_INVALID_ARGUMENT)
        key = engine.find_interface(state, name)
        if key is None:
            if not is_virtual_interface(name):
                raise CLIError(INVALID_INPUT, ERR_INVALID_ARGUMENT)
            state = engine.add_interface(state, name)
            key = name
        return engine.enter_mode(state, "interface_config", current_interface=key), ""

    def _cmd_vlan(self, state: DeviceState, cmd: ParsedCommand):
        vlan_id = int(cmd.args["id"])
        nxt = engine.configure_vlan(state, vlan_id)
        return engine.enter_mode(nxt, "vlan_config", current_vlan=vlan_id), ""

    def _cmd_no_vlan(self, state: DeviceState, cmd: ParsedCommand):
        vlan_id = int(cmd.args["id"])
        if vlan_id == 1:
            raise CLIError("% Default VLAN 1 may not be deleted.", ERR_VALIDATION)
        return engine.remove_vlan(state, vlan_id), ""

    def _next_hop(self, value: str) -> str:
        if is_valid_ipv4(value):
            return value
        name = normalize_interface_name(value)
        if name is None:
            raise CLIError(f"% Invalid input detected at '{value}'", ERR_INVALID_ARGUMENT)
        return name

    def _cmd_ip_route(self, state: DeviceState, cmd: ParsedCommand):
        a = cmd.args
        return engine.add_static_route(state, a["network"], a["mask"], self._next_hop(a["nexthop"])), ""

    def _cmd_no_ip_route(self, state: DeviceState, cmd: ParsedCommand):
        a = cmd.args
        return engine.remove_static_route(state, a["network"], a["mask"], self._next_hop(a["nexthop"])), ""

    def _cmd_dhcp_pool(self, state: DeviceState, cmd: ParsedCommand):
        name = cmd.args["pool"]
        nxt = engine.configure_dhcp_pool(state, name)
        return engine.enter_mode(nxt, "dhcp_config", current_pool=name), ""

    def _cmd_named_acl(self, state: DeviceState, cmd: ParsedCommand):
        name = cmd.args["acl"]
        kind = cmd.path[2]  # ip access-list <kind> <name>
        existing = state.access_lists.get(name)
        if existing is not None and existing.kind != kind:
            raise CLIError(f"% A {existing.kind} access list named {name} already exists", ERR_VALIDATION)
        nxt = engine.ensure_access_list(state, name, kind)
        return engine.enter_mode(nxt, "acl_config", current_acl=name), ""

    def _cmd_numbered_acl(self, state: DeviceState, cmd: ParsedCommand):
        number = str(int(cmd.args["number"]))
        action = cmd.path[2]  # access-list <n> <action> ...
        nxt = engine.ensure_access_list(state, number, acl_kind(number) or "standard")
        return engine.add_access_list_entry(nxt, number, action, cmd.args["criteria"]), ""

    def _cmd_router_rip(self, state: DeviceState, cmd: ParsedCommand):
        nxt = engine.configure_rip(state)
        return engine.enter_mode(nxt, "router_config", current_router="rip"), ""

    def _cmd_router_ospf(self, state: DeviceState, cmd: ParsedCommand):
        nxt = engine.configure_ospf(state, int(cmd.args["pid"]))
        return engine.enter_mode(nxt, "router_config", current_router="ospf"), ""

    def _cmd_no_router_rip(self, state: DeviceState, cmd: ParsedCommand):
        return engine.remove_rip(state), ""

    def _cmd_no_router_ospf(self, state: DeviceState, cmd: ParsedCommand):
        return engine.remove_ospf(state, int(cmd.args["pid"])), ""

    def _cmd_line(self, state: DeviceState, cmd: ParsedCommand):
        kind = cmd.path[1]  # line <console|vty> ...
        first = int(cmd.args["first"])
        last = int(cmd.args.get("last", first))
        if kind == "console":
            if first != 0:
                raise CLIError(INVALID_INPUT, ERR_VALIDATION)
            name = "con 0"
        else:
            if first > 15 or last > 15 or last < first:
                raise CLIError("% Invalid line range", ERR_VALIDATION)
            name = f"vty {first} {last}" if last != first else f"vty {first}"
        nxt = engine.configure_line(state, name)
        return engine.enter_mode(nxt, "line_config", current_line=name), ""

    # ───────────────────────────── Interface config ─────────────────────────────

    def _cmd_ip_address(self, state: DeviceState, cmd: ParsedCommand):
        iface = state.current_interface or ""
        return engine.set_interface_ip(state, iface, cmd.args["ip"], cmd.args["mask"]), ""

    def _cmd_no_ip_address(self, state: DeviceState, cmd: ParsedCommand):
        return engine.clear_interface_ip(state, state.current_interface or ""), ""

    def _cmd_shutdown(self, state: DeviceState, cmd: ParsedCommand):
        return engine.set_interface_status(state, state.current_interface or "", STATUS_DOWN), ""

    def _cmd_no_shutdown(self, state: DeviceState, cmd: ParsedCommand):
        return engine.set_interface_status(state, state.current_interface or "", STATUS_UP), ""

    def _cmd_description(self, state: DeviceState, cmd: ParsedCommand):
        return engine.set_interface_description(state, state.current_interface or "", cmd.args["text"]), ""

    def _cmd_switchport_access_vlan(self, state: DeviceState, cmd: ParsedCommand):
        return engine.assign_access_vlan(state, state.current_interface or "", int(cmd.args["id"])), ""

    # ───────────────────────────── VLAN config ─────────────────────────────

    def _cmd_vlan_name(self, state: DeviceState, cmd: ParsedCommand):
        if state.current_vlan is None:
            return state, ""
        return engine.rename_vlan(state, state.current_vlan, cmd.args["name"]), ""

    # ───────────────────────────── Router config ─────────────────────────────

    def _require_rip(self, state: DeviceState) -> None:
        if state.current_router != "rip":
            raise CLIError(INVALID_INPUT, ERR_MODE)

    def _cmd_network(self, state: DeviceState, cmd: ParsedCommand):
        a = cmd.args
        if state.current_router == "rip":
            if "wildcard" in a:
                raise CLIError(INVALID_INPUT, ERR_TOO_MANY_ARGUMENTS)
            net = network_address(a["network"], classful_mask(a["network"]))
            return engine.add_rip_network(state, net), ""
        if state.current_router == "ospf":
            if "area" not in a:
                raise CLIError(INCOMPLETE_COMMAND, ERR_INCOMPLETE)
            return engine.add_ospf_network(state, a["network"], a["wildcard"], a["area"]), ""
        return state, ""

    def _cmd_version(self, state: DeviceState, cmd: ParsedCommand):
        self._require_rip(state)
        return engine.configure_rip(state, version=int(cmd.args["version"])), ""

    def _cmd_auto_summary(self, state: DeviceState, cmd: ParsedCommand):
        self._require_rip(state)
        return engine.configure_rip(state, auto_summary=True), ""

    def _cmd_no_auto_summary(self, state: DeviceState, cmd: ParsedCommand):
        self._require_rip(state)
        return engine.configure_rip(state, auto_summary=False), ""

    # ───────────────────────────── Line / DHCP / ACL config ─────────────────────────────

    def _cmd_line_password(self, state: DeviceState, cmd: ParsedCommand):
        if state.current_line is None:
            return state, ""
        return engine.configure_line(state, state.current_line, password=cmd.args["password"]), ""

    def _cmd_login(self, state: DeviceState, cmd: ParsedCommand):
        if state.current_line is None:
            return state, ""
        return engine.configure_line(state, state.current_line, login=True), ""

    def _cmd_no_login(self, state: DeviceState, cmd: ParsedCommand):
        if state.current_line is None:
            return state, ""
        return engine.configure_line(state, state.current_line, login=False), ""

    def _pool_update(self, state: DeviceState, **changes):
        if state.current_pool is None:
            return state, ""
        return engine.configure_dhcp_pool(state, state.current_pool, **changes), ""

    def _cmd_dhcp_network(self, state: DeviceState, cmd: ParsedCommand):
        return self._pool_update(state, network=cmd.args["network"], mask=cmd.args["mask"])

    def _cmd_dhcp_default_router(self, state: DeviceState, cmd: ParsedCommand):
        return self._pool_update(state, default_router=cmd.args["router"])

    def _cmd_dhcp_dns_server(self, state: DeviceState, cmd: ParsedCommand):
        return self._pool_update(state, dns_server=cmd.args["server"])

    def _cmd_acl_entry(self, state: DeviceState, cmd: ParsedCommand):
        if state.current_acl is None:
            return state, ""
        return engine.add_access_list_entry(state, state.current_acl, cmd.path[0], cmd.args["criteria"]), ""


_DEFAULT_ENGINE = CLIEngine()


def process(state: DeviceState, line: str) -> CLIResult:
    return _DEFAULT_ENGINE.process(state, line)
