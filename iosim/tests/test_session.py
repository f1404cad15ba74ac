import unittest
from types import SimpleNamespace

from iosim.cli import INVALID_INPUT
from iosim.session import LabSession
from iosim.state import MODE_LABELS
from session_log import SessionLogger


class StubInterpreter:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def interpret(self, mode, hostname, command, device_type="router"):
        self.calls.append((mode, hostname, command, device_type))
        if self.error is not None:
            raise self.error
        return self.reply


def reply(valid=True, output="", modeChange=None, hostnameChange=None, error=None):
    return SimpleNamespace(
        valid=valid, output=output, modeChange=modeChange, hostnameChange=hostnameChange, error=error
    )


class TestLabSession(unittest.TestCase):
    def test_state_is_threaded_through_commands(self):
        session = LabSession()
        session.run(["enable", "conf t", "hostname Core"])
        self.assertEqual(session.prompt, "Core(config)#")
        self.assertEqual([h.command for h in session.history], ["enable", "conf t", "hostname Core"])
        self.assertEqual(session.history[0].prompt, "Router>")

    def test_blank_lines_are_not_recorded(self):
        session = LabSession()
        session.execute("")
        self.assertEqual(session.history, [])

    def test_fallback_only_for_unknown_commands(self):
        stub = StubInterpreter(reply(valid=False, output="% Invalid input detected"))
        session = LabSession(fallback=stub)
        session.run(["enable", "conf t", "vlan 4095", "e", "show version"])
        self.assertEqual(len(stub.calls), 1)
        self.assertEqual(stub.calls[0], (MODE_LABELS["global_config"], "Router", "show version", "router"))

    def test_fallback_result_is_merged(self):
        stub = StubInterpreter(reply(valid=True, output="ok", modeChange="privileged", hostnameChange="R9"))
        session = LabSession(fallback=stub)
        res = session.execute("terminal length 0")
        self.assertTrue(res.valid)
        self.assertEqual(res.output, "ok")
        self.assertEqual(res.mode_change, "privileged")
        self.assertEqual(res.hostname_change, "R9")
        self.assertEqual(session.state.mode, "privileged")
        self.assertEqual(session.prompt, "R9#")

    def test_invalid_fallback_reply_does_not_change_state(self):
        stub = StubInterpreter(reply(valid=False, output="% nope", modeChange="global_config", error="bad"))
        session = LabSession(fallback=stub)
        before = session.state
        res = session.execute("foo")
        self.assertFalse(res.valid)
        self.assertEqual(res.output, "% nope")
        self.assertIs(session.state, before)

    def test_failing_fallback_keeps_engine_result(self):
        stub = StubInterpreter(error=RuntimeError("network down"))
        session = LabSession(fallback=stub)
        res = session.execute("foo")
        self.assertFalse(res.valid)
        self.assertEqual(res.output, INVALID_INPUT)

    def test_events_are_logged(self):
        log = SessionLogger()
        stub = StubInterpreter(reply(valid=False, output="% no"))
        session = LabSession("switch", "SW1", fallback=stub, log_event_cb=log.add)
        session.run(["enable", "bogus"])

        kinds = [e.kind for e in log.events]
        self.assertEqual(kinds[0], "session_start")
        self.assertEqual(log.events[0].data["deviceType"], "switch")
        self.assertEqual(len(log.of_kind("cli_command")), 2)
        self.assertEqual(len(log.of_kind("fallback_request")), 1)
        self.assertEqual(log.last("fallback_reply").data["ok"], True)
        self.assertEqual(log.last().kind, "cli_error")
        self.assertEqual(log.to_dict()["schema"], "iosim-session-log/v1")

    def test_broken_logger_does_not_break_cli(self):
        def boom(kind, **data):
            raise RuntimeError("disk full")

        session = LabSession(log_event_cb=boom)
        self.assertTrue(session.execute("enable").valid)


if __name__ == "__main__":
    unittest.main()
