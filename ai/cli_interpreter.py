import os
import re
from typing import Any, Dict, List, Literal, Optional

import openai
from openai import OpenAI
from pydantic import BaseModel, ConfigDict, Field

from iosim.validation import is_valid_ipv4, is_valid_mask


# IMPORTANT:
# OpenAI Structured Outputs requires "additionalProperties": false on ALL object schemas,
# so every model here uses extra="forbid".

ModeName = Literal[
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


class CLIResponse(BaseModel):
    """Structured reply for one command the grammar could not resolve.

    Same shape as an engine result, so the session merges it the same way.
    """

    model_config = ConfigDict(extra="forbid")

    valid: bool = Field(..., description="True if a real device would accept the command.")
    output: str = Field("", description="Exact terminal output, or empty string for silent config commands.")
    modeChange: Optional[ModeName] = Field(default=None, description="New CLI mode, or null if unchanged.")
    hostnameChange: Optional[str] = Field(default=None, description="New hostname, or null if unchanged.")
    error: Optional[str] = Field(default=None, description="Short reason when valid is false.")


SYSTEM_PROMPT = """\
You are a Cisco IOS CLI simulator for CCNA training. You must respond exactly like a real Cisco router or switch would.

CURRENT DEVICE STATE:
- Device type: {device_type}
- Current mode: {mode}
- Hostname: {hostname}

MODES AND PROMPTS:
- user: hostname>
- privileged: hostname#
- global_config: hostname(config)#
- interface_config: hostname(config-if)#
- router_config: hostname(config-router)#
- line_config: hostname(config-line)#
- dhcp_config: hostname(dhcp-config)#
- vlan_config: hostname(config-vlan)#
- acl_config: hostname(config-ext-nacl)#

RULES:
1. Only allow commands valid for the current mode.
2. Support Cisco IOS abbreviations (en=enable, conf t=configure terminal, sh=show, int=interface, ...).
3. Generate realistic output for show commands.
4. For configuration commands, acknowledge silently (empty output) unless there's an error.
5. Return proper error messages for invalid commands: "% Invalid input detected at '^' marker." or "% Incomplete command."
6. Validate IP addresses (each octet 0-255) and subnet masks before accepting configuration commands.

Always return JSON matching the CLIResponse schema (no extra keys).\
"""

SYSTEM_ERROR = "% System error - please try again"
PROCESSING_ERROR = "% Error processing command"

_IP_ADDRESS_RE = re.compile(r"ip\s+add(?:ress)?\s+(\S+)\s+(\S+)", re.IGNORECASE)
_IP_ROUTE_RE = re.compile(r"ip\s+route\s+(\S+)\s+(\S+)", re.IGNORECASE)


def pre_validate(command: str) -> Optional[CLIResponse]:
    """Reject malformed addresses locally, before spending a model call."""

    m = _IP_ADDRESS_RE.search(command or "")
    if m:
        ip, mask = m.group(1), m.group(2)
        if not is_valid_ipv4(ip):
            return CLIResponse(valid=False, output=f"% Invalid IP address: {ip}", error="Invalid IPv4 address format")
        if not is_valid_mask(mask):
            return CLIResponse(
                valid=False,
                output=f"% Invalid input detected at '{mask}'.\n% Bad mask /xx for address {ip}",
                error="Invalid subnet mask",
            )

    m = _IP_ROUTE_RE.search(command or "")
    if m:
        network, mask = m.group(1), m.group(2)
        if not is_valid_ipv4(network):
            return CLIResponse(
                valid=False, output=f"% Invalid network address: {network}", error="Invalid IPv4 network address"
            )
        if not is_valid_mask(mask):
            return CLIResponse(valid=False, output=f"% Invalid input detected at '{mask}'.", error="Invalid subnet mask")

    return None


class CLIInterpreter:
    """LLM fallback for commands outside the built-in grammar."""

    def __init__(self, model: Optional[str] = None, client: Optional[Any] = None):
        # Token / API key
        # ---------------------------------------------------------------------
        # Set your OpenAI API key as an environment variable:
        #   OPENAI_API_KEY="sk-..."   (do NOT hardcode it in code)
        # ---------------------------------------------------------------------
        self._client = client
        self.model = model or os.getenv("IOSIM_AI_MODEL", "gpt-4o-2024-08-06")

    @property
    def client(self):
        if self._client is None:
            self._client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
        return self._client

    def interpret(self, mode: str, hostname: str, command: str, device_type: str = "router") -> CLIResponse:
        rejected = pre_validate(command)
        if rejected is not None:
            return rejected

        if self._client is None and not os.getenv("OPENAI_API_KEY"):
            return CLIResponse(
                valid=False,
                output="% Command not recognized (AI fallback disabled: OPENAI_API_KEY is not set)",
                error="Missing OPENAI_API_KEY",
            )

        system_prompt = SYSTEM_PROMPT.format(device_type=device_type or "router", mode=mode, hostname=hostname)

        # NOTE (Responses API): content parts must use type="input_text" (not "text").
        input_messages: List[Dict[str, Any]] = [
            {"role": "system", "content": [{"type": "input_text", "text": system_prompt}]},
            {"role": "user", "content": [{"type": "input_text", "text": f'Command: "{command}"'}]},
        ]

        try:
            resp = self.client.responses.parse(
                model=self.model,
                input=input_messages,
                text_format=CLIResponse,
            )
        except openai.OpenAIError as e:
            return CLIResponse(valid=False, output=SYSTEM_ERROR, error=str(e) or type(e).__name__)

        parsed: Optional[CLIResponse] = resp.output_parsed
        if parsed is None:
            return CLIResponse(valid=False, output=PROCESSING_ERROR, error="Failed to parse response")
        return parsed
