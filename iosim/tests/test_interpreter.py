import os
import unittest
from types import SimpleNamespace
from unittest import mock

import openai
from pydantic import ValidationError

from ai.cli_interpreter import (
    CLIInterpreter,
    CLIResponse,
    PROCESSING_ERROR,
    SYSTEM_ERROR,
    pre_validate,
)


class FakeResponses:
    def __init__(self, parsed=None, error=None):
        self.parsed = parsed
        self.error = error
        self.kwargs = None

    def parse(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(output_parsed=self.parsed)


def fake_client(**kwargs):
    return SimpleNamespace(responses=FakeResponses(**kwargs))


class TestPreValidation(unittest.TestCase):
    def test_bad_interface_address(self):
        res = pre_validate("ip address 300.1.1.1 255.255.255.0")
        self.assertFalse(res.valid)
        self.assertEqual(res.output, "% Invalid IP address: 300.1.1.1")

    def test_bad_interface_mask(self):
        res = pre_validate("ip add 10.0.0.1 255.0.255.0")
        self.assertFalse(res.valid)
        self.assertTrue(res.output.startswith("% Invalid input detected at '255.0.255.0'."))

    def test_bad_static_route(self):
        self.assertEqual(pre_validate("ip route 10.0.0.256 255.0.0.0 1.1.1.1").output, "% Invalid network address: 10.0.0.256")
        self.assertFalse(pre_validate("ip route 10.0.0.0 255.0.0.9 1.1.1.1").valid)

    def test_other_commands_pass(self):
        self.assertIsNone(pre_validate("show version"))
        self.assertIsNone(pre_validate("ip address 10.0.0.1 255.255.255.0"))


class TestCLIInterpreter(unittest.TestCase):
    def test_missing_key_is_reported_not_raised(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            res = CLIInterpreter().interpret("User EXEC mode (Router>)", "Router", "show version")
        self.assertFalse(res.valid)
        self.assertEqual(res.error, "Missing OPENAI_API_KEY")
        self.assertTrue(res.output.startswith("%"))

    def test_pre_validation_skips_the_model(self):
        client = fake_client(parsed=CLIResponse(valid=True, output=""))
        res = CLIInterpreter(client=client).interpret("mode", "R1", "ip address 1.2.3.999 255.0.0.0")
        self.assertFalse(res.valid)
        self.assertIsNone(client.responses.kwargs)

    def test_structured_reply(self):
        parsed = CLIResponse(valid=True, output="Cisco IOS Software", modeChange=None)
        client = fake_client(parsed=parsed)
        interp = CLIInterpreter(model="test-model", client=client)
        res = interp.interpret("Privileged EXEC mode (Router#)", "R1", "show version", "router")

        self.assertIs(res, parsed)
        kwargs = client.responses.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertIs(kwargs["text_format"], CLIResponse)
        system_text = kwargs["input"][0]["content"][0]["text"]
        self.assertIn("Hostname: R1", system_text)
        self.assertIn("Current mode: Privileged EXEC mode (Router#)", system_text)
        self.assertEqual(kwargs["input"][1]["content"][0]["text"], 'Command: "show version"')

    def test_model_env_override(self):
        with mock.patch.dict(os.environ, {"IOSIM_AI_MODEL": "my-model"}):
            self.assertEqual(CLIInterpreter().model, "my-model")

    def test_api_error_becomes_system_error(self):
        client = fake_client(error=openai.OpenAIError("boom"))
        res = CLIInterpreter(client=client).interpret("mode", "R1", "show version")
        self.assertFalse(res.valid)
        self.assertEqual(res.output, SYSTEM_ERROR)
        self.assertEqual(res.error, "boom")

    def test_unparsable_reply(self):
        res = CLIInterpreter(client=fake_client(parsed=None)).interpret("mode", "R1", "show version")
        self.assertEqual(res.output, PROCESSING_ERROR)

    def test_schema_is_closed(self):
        with self.assertRaises(ValidationError):
            CLIResponse(valid=True, output="", extra_field=1)
        with self.assertRaises(ValidationError):
            CLIResponse(valid=True, output="", modeChange="rommon")


if __name__ == "__main__":
    unittest.main()
