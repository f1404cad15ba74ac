import unittest

from iosim.serialization import state_to_dict
from iosim.state import get_initial_state
from mcp_server.iosim_mcp_server import initial_state, run_commands, validate_state_json


class TestMCPTools(unittest.TestCase):
    def test_initial_state(self):
        data = initial_state("switch", "SW1")
        self.assertEqual(data["deviceType"], "switch")
        self.assertEqual(data["prompt"], "SW1>")
        self.assertEqual(validate_state_json(data), {"ok": True, "problems": []})

    def test_run_commands_transcript(self):
        out = run_commands(["enable", "conf t", "hostname Lab", "vlan 9999"])
        self.assertFalse(out["ok"])
        self.assertEqual([t["prompt"] for t in out["transcript"]][:3], ["Router>", "Router#", "Router(config)#"])
        self.assertEqual(out["transcript"][3]["output"], "% VLAN ID must be between 1 and 4094")
        self.assertEqual(out["state"]["hostname"], "Lab")

    def test_run_commands_resumes_from_state(self):
        first = run_commands(["enable", "conf t"])
        second = run_commands(["int g0/0", "ip address 10.0.0.1 255.255.255.0", "no shut"], first["state"])
        self.assertTrue(second["ok"])
        self.assertEqual(second["state"]["routes"][0]["network"], "10.0.0.0")

    def test_invalid_state_is_reported(self):
        data = state_to_dict(get_initial_state())
        data["mode"] = "rommon"
        data["vlans"] = [{"id": 5000, "name": "x"}]
        res = validate_state_json(data)
        self.assertFalse(res["ok"])
        self.assertEqual(len(res["problems"]), 2)
        self.assertFalse(run_commands(["enable"], data)["ok"])

    def test_non_canonical_interface_key_is_reported(self):
        data = state_to_dict(get_initial_state())
        data["interfaces"]["gi0/0"] = data["interfaces"].pop("GigabitEthernet0/0")
        res = validate_state_json(data)
        self.assertFalse(res["ok"])
        self.assertIn("'gi0/0'", res["problems"][0])
        self.assertFalse(run_commands(["enable"], data)["ok"])

    def test_unknown_mode_history_is_reported(self):
        data = state_to_dict(get_initial_state())
        data["mode"] = "privileged"
        data["modeHistory"] = ["bogus"]
        res = validate_state_json(data)
        self.assertEqual(res["problems"], ["modeHistory[0] is not a known mode: 'bogus'."])

    def test_malformed_ospf_config_is_reported(self):
        data = state_to_dict(get_initial_state())
        data["ospfConfig"] = {"networks": [{"network": "10.0.0.0", "wildcard": "255.0.0.0", "area": "0"}]}
        res = validate_state_json(data)
        self.assertEqual(len(res["problems"]), 2)
        out = run_commands(["enable"], data)
        self.assertFalse(out["ok"])
        self.assertNotIn("transcript", out)

    def test_unbuildable_state_returns_problems(self):
        data = state_to_dict(get_initial_state())
        data["lines"] = {"vty 0 4": "cisco"}
        out = run_commands(["enable"], data)
        self.assertFalse(out["ok"])
        self.assertTrue(out["problems"][0].startswith("Malformed state snapshot"))


if __name__ == "__main__":
    unittest.main()
