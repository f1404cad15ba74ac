"""
Optional: MCP server exposing the CLI simulation engine.

Lets an MCP client (MCP Inspector, Claude Desktop, OpenAI "Remote MCP" tools)
create a device, replay IOS command scripts against it, and check stored
state snapshots.

Run (example):
  pip install mcp
  python mcp_server/iosim_mcp_server.py

Then connect an MCP client to:
  http://localhost:8000/mcp
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from iosim.cli import CLIEngine
from iosim.serialization import SCHEMA_VERSION, snapshot_problems, state_from_dict, state_to_dict
from iosim.state import MODES, get_initial_state

mcp = FastMCP(
    "IOS Sim MCP Server",
    instructions="Tools for running Cisco-style CLI commands against a deterministic router/switch simulator.",
    stateless_http=True,
    json_response=True,
)

MAX_COMMANDS = 500

_engine = CLIEngine()


def _validate_state(data: Dict[str, Any]) -> List[str]:
    problems: List[str] = []
    if not isinstance(data, dict):
        return ["Top-level must be an object."]
    if data.get("schemaVersion") != SCHEMA_VERSION:
        problems.append(f"schemaVersion must be {SCHEMA_VERSION}.")
    if data.get("deviceType") not in ("router", "switch"):
        problems.append("deviceType must be 'router' or 'switch'.")
    if data.get("mode") not in MODES:
        problems.append(f"mode must be one of: {', '.join(MODES)}.")
    hostname = data.get("hostname")
    if not hostname or not isinstance(hostname, str):
        problems.append("hostname must be a non-empty string.")

    interfaces = data.get("interfaces")
    if not isinstance(interfaces, dict):
        problems.append("'interfaces' must be an object.")
    else:
        for name, itf in interfaces.items():
            if not isinstance(itf, dict):
                problems.append(f"interfaces[{name}] must be an object.")
                continue
            if itf.get("status") not in ("up", "administratively down"):
                problems.append(f"interfaces[{name}].status must be 'up' or 'administratively down'.")

    vlans = data.get("vlans")
    if vlans is not None and not isinstance(vlans, list):
        problems.append("'vlans' must be a list when present.")
    if isinstance(vlans, list):
        seen = set()
        for i, v in enumerate(vlans):
            if not isinstance(v, dict):
                problems.append(f"vlans[{i}] must be an object.")
                continue
            vid = v.get("id")
            if not isinstance(vid, int) or not 1 <= vid <= 4094:
                problems.append(f"vlans[{i}].id must be an integer 1-4094.")
                continue
            if vid in seen:
                problems.append(f"Duplicate VLAN id: {vid}")
            seen.add(vid)

    routes = data.get("staticRoutes")
    if routes is not None and not isinstance(routes, list):
        problems.append("'staticRoutes' must be a list when present.")
    if isinstance(routes, list):
        for i, r in enumerate(routes):
            if not isinstance(r, dict) or not all(k in r for k in ("network", "mask", "nextHop")):
                problems.append(f"staticRoutes[{i}] must include network, mask and nextHop.")
    problems.extend(snapshot_problems(data))
    return problems


@mcp.tool()
def initial_state(device_type: str = "router", hostname: str = "") -> Dict[str, Any]:
    """Return a fresh device state (router or switch) as JSON."""
    return state_to_dict(get_initial_state(device_type, hostname))


@mcp.tool()
def run_commands(commands: List[str], state_json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Run IOS commands in order; returns per-command transcript plus the final state.

    Starts from ``state_json`` when given, otherwise from a fresh router.
    """
    if state_json is not None:
        problems = _validate_state(state_json)
        if problems:
            return {"ok": False, "problems": problems}
        try:
            state = state_from_dict(state_json)
        except ValueError as e:
            return {"ok": False, "problems": [str(e)]}
    else:
        state = get_initial_state()

    transcript: List[Dict[str, Any]] = []
    for line in commands[:MAX_COMMANDS]:
        prompt = state.prompt
        result = _engine.process(state, line)
        state = result.new_state
        transcript.append(
            {
                "prompt": prompt,
                "command": line,
                "valid": result.valid,
                "output": result.output,
                "error": result.error,
            }
        )

    return {
        "ok": all(t["valid"] for t in transcript),
        "transcript": transcript,
        "truncated": len(commands) > MAX_COMMANDS,
        "state": state_to_dict(state),
    }


@mcp.tool()
def validate_state_json(state_json: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a device state JSON object; returns problems list."""
    problems = _validate_state(state_json)
    return {"ok": len(problems) == 0, "problems": problems}


if __name__ == "__main__":
    # Streamable HTTP transport is recommended in the MCP SDK docs.
    mcp.run(transport="streamable-http")
