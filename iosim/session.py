from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from . import engine
from .cli import CLIEngine, CLIResult, ERR_UNKNOWN_COMMAND
from .state import MODE_LABELS, MODES, DeviceState, get_initial_state


LogEventCallback = Callable[..., None]


@dataclass
class HistoryEntry:
    prompt: str
    command: str
    output: str
    valid: bool


class LabSession:
    """One simulated device session.

    Owns the current DeviceState and the command history, runs each line
    through the deterministic engine, and only consults ``fallback`` (an
    object with ``interpret(mode_label, hostname, command, device_type)``)
    when the grammar has no match for the first token.
    """

    def __init__(
        self,
        device_type: str = "router",
        hostname: str = "",
        fallback: Optional[Any] = None,
        log_event_cb: Optional[LogEventCallback] = None,
        cli: Optional[CLIEngine] = None,
    ):
        self.state: DeviceState = get_initial_state(device_type, hostname)
        self.fallback = fallback
        self.cli = cli or CLIEngine()
        self.history: List[HistoryEntry] = []
        self._log_event_cb = log_event_cb
        self._log("session_start", deviceType=self.state.device_type, hostname=self.state.hostname)

    def _log(self, kind: str, **data: Any) -> None:
        if self._log_event_cb is None:
            return
        try:
            self._log_event_cb(kind, **data)
        except Exception:
            # A broken logger must never break the CLI.
            pass

    @property
    def prompt(self) -> str:
        return self.state.prompt

    def execute(self, line: str) -> CLIResult:
        prompt = self.state.prompt
        self._log("cli_command", prompt=prompt, command=line)

        result = self.cli.process(self.state, line)
        if not result.valid and result.error == ERR_UNKNOWN_COMMAND and self.fallback is not None:
            result = self._ask_fallback(line, result)

        self.state = result.new_state
        if (line or "").strip():
            self.history.append(HistoryEntry(prompt=prompt, command=line, output=result.output, valid=result.valid))

        if result.valid:
            self._log("cli_output", prompt=self.state.prompt, output=result.output)
        else:
            self._log("cli_error", command=line, error=result.error, output=result.output)
        return result

    def run(self, lines: List[str]) -> List[CLIResult]:
        return [self.execute(line) for line in lines]

    def _ask_fallback(self, line: str, original: CLIResult) -> CLIResult:
        label = MODE_LABELS.get(self.state.mode, self.state.mode)
        self._log("fallback_request", mode=label, hostname=self.state.hostname, command=line)
        try:
            reply = self.fallback.interpret(label, self.state.hostname, line, self.state.device_type)
        except Exception as e:
            self._log("fallback_reply", ok=False, error=str(e))
            return original

        self._log(
            "fallback_reply",
            ok=True,
            valid=reply.valid,
            modeChange=reply.modeChange,
            hostnameChange=reply.hostnameChange,
        )

        # Merged exactly as a grammar result would be.
        nxt = self.state
        mode_change = None
        hostname_change = None
        if reply.valid and reply.modeChange in MODES and reply.modeChange != nxt.mode:
            nxt = engine.transition_mode(nxt, reply.modeChange)
            mode_change = nxt.mode
        if reply.valid and reply.hostnameChange and reply.hostnameChange != nxt.hostname:
            nxt = engine.update_hostname(nxt, reply.hostnameChange)
            hostname_change = nxt.hostname

        return CLIResult(
            valid=bool(reply.valid),
            output=reply.output or "",
            new_state=nxt,
            mode_change=mode_change,
            hostname_change=hostname_change,
            error=reply.error,
        )
