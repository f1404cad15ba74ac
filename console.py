"""Interactive terminal for the CLI simulator.

Run:
  python console.py [--device switch] [--hostname SW1]

Set OPENAI_API_KEY to let unknown commands fall through to the AI
interpreter. Set IOSIM_SESSION_LOG to a file path to save the session log
on exit.
"""

from __future__ import annotations

from typing import List, Optional
import argparse
import os
import sys

from iosim.session import LabSession
from session_log import SessionLogger


def build_session(device_type: str, hostname: str, session_log: SessionLogger, use_ai: bool = True) -> LabSession:
    fallback = None
    if use_ai and os.getenv("OPENAI_API_KEY"):
        from ai.cli_interpreter import CLIInterpreter

        fallback = CLIInterpreter()
    return LabSession(device_type, hostname, fallback=fallback, log_event_cb=session_log.add)


def save_session_log(session_log: SessionLogger, path: Optional[str]) -> None:
    if not path:
        return
    try:
        session_log.save_json(path)
    except OSError as e:
        print(f"% Could not save session log: {e}", file=sys.stderr)


def session_summary(session_log: SessionLogger) -> str:
    commands = [e for e in session_log.of_kind("cli_command") if e.data.get("command", "").strip()]
    rejected = session_log.of_kind("cli_error")
    text = f"% {len(commands)} commands, {len(rejected)} rejected"
    last_error = session_log.last("cli_error")
    if last_error is not None:
        text += f" (last: {last_error.data.get('command')!r})"
    return text


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Cisco-style router/switch CLI simulator")
    parser.add_argument("--device", choices=("router", "switch"), default="router")
    parser.add_argument("--hostname", default="")
    parser.add_argument("--no-ai", action="store_true", help="never consult the AI fallback")
    args = parser.parse_args(argv)

    session_log = SessionLogger()
    session = build_session(args.device, args.hostname, session_log, use_ai=not args.no_ai)

    try:
        while True:
            try:
                line = input(session.prompt)
            except EOFError:
                print()
                break
            # "exit" at the user prompt ends the session, like logging out.
            if line.strip().lower() in ("exit", "logout", "quit") and session.state.mode == "user":
                break
            result = session.execute(line)
            if result.output:
                print(result.output)
    except KeyboardInterrupt:
        print()
    finally:
        print(session_summary(session_log), file=sys.stderr)
        save_session_log(session_log, os.getenv("IOSIM_SESSION_LOG"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
