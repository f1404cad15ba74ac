import unittest

from iosim.validation import (
    acl_kind,
    classful_mask,
    is_valid_ipv4,
    is_valid_mask,
    is_valid_wildcard,
    mask_to_prefixlen,
    network_address,
    validate_argument,
    wildcard_to_mask,
)


class TestAddressing(unittest.TestCase):
    def test_ipv4(self):
        self.assertTrue(is_valid_ipv4("192.168.1.1"))
        self.assertTrue(is_valid_ipv4("0.0.0.0"))
        for bad in ("300.1.1.1", "1.1.1", "1.1.1.1.1", "01.1.1.1", "1.1.1.1a", "a.b.c.d", ""):
            with self.subTest(bad=bad):
                self.assertFalse(is_valid_ipv4(bad))

    def test_masks_must_be_contiguous(self):
        self.assertTrue(is_valid_mask("255.255.255.0"))
        self.assertTrue(is_valid_mask("255.255.255.252"))
        self.assertTrue(is_valid_mask("0.0.0.0"))
        self.assertFalse(is_valid_mask("255.255.255.3"))
        self.assertFalse(is_valid_mask("255.0.255.0"))

    def test_wildcards(self):
        self.assertTrue(is_valid_wildcard("0.0.0.255"))
        self.assertFalse(is_valid_wildcard("0.0.255.0"))
        self.assertEqual(wildcard_to_mask("0.0.0.255"), "255.255.255.0")

    def test_prefixlen(self):
        self.assertEqual(mask_to_prefixlen("255.255.255.0"), 24)
        self.assertEqual(mask_to_prefixlen("255.255.255.255"), 32)
        self.assertEqual(mask_to_prefixlen("0.0.0.0"), 0)
        self.assertEqual(mask_to_prefixlen("255.255.240.0"), 20)

    def test_network_address(self):
        self.assertEqual(network_address("192.168.1.77", "255.255.255.0"), "192.168.1.0")
        self.assertEqual(network_address("10.1.2.3", "255.0.0.0"), "10.0.0.0")

    def test_classful(self):
        self.assertEqual(classful_mask("10.1.1.1"), "255.0.0.0")
        self.assertEqual(classful_mask("172.16.0.0"), "255.255.0.0")
        self.assertEqual(classful_mask("192.168.1.0"), "255.255.255.0")

    def test_acl_ranges(self):
        self.assertEqual(acl_kind("10"), "standard")
        self.assertEqual(acl_kind("1300"), "standard")
        self.assertEqual(acl_kind("150"), "extended")
        self.assertEqual(acl_kind("2000"), "extended")
        self.assertIsNone(acl_kind("200"))
        self.assertIsNone(acl_kind("abc"))


class TestValidateArgument(unittest.TestCase):
    def test_valid_values_pass(self):
        self.assertIsNone(validate_argument("ipv4", "10.0.0.1", {}))
        self.assertIsNone(validate_argument("vlan_id", "4094", {}))
        self.assertIsNone(validate_argument("ospf_pid", "65535", {}))
        self.assertIsNone(validate_argument("text", "anything at all", {}))

    def test_bad_ip(self):
        self.assertEqual(validate_argument("ipv4", "300.1.1.1", {}), "% Invalid IP address: 300.1.1.1")

    def test_bad_mask_mentions_address(self):
        msg = validate_argument("mask", "255.255.255.3", {"ip": "10.0.0.1"})
        self.assertEqual(msg, "% Bad mask 0xFFFFFF03 for address 10.0.0.1")

    def test_zero_mask_needs_a_route(self):
        msg = validate_argument("mask", "0.0.0.0", {"ip": "10.0.0.1"})
        self.assertEqual(msg, "% Bad mask 0x00000000 for address 10.0.0.1")
        self.assertIsNone(validate_argument("mask", "0.0.0.0", {"network": "0.0.0.0"}))

    def test_ranges(self):
        for v in ("0", "4095", "x"):
            with self.subTest(vlan=v):
                self.assertEqual(validate_argument("vlan_id", v, {}), "% VLAN ID must be between 1 and 4094")
        for p in ("0", "65536"):
            with self.subTest(pid=p):
                self.assertEqual(
                    validate_argument("ospf_pid", p, {}), "% OSPF process ID must be between 1 and 65535"
                )
        self.assertTrue(validate_argument("acl_number", "200", {}).startswith("% Access list number"))

    def test_hostname(self):
        self.assertIsNone(validate_argument("hostname", "Lab-R1", {}))
        self.assertEqual(
            validate_argument("hostname", "1bad", {}), "% Hostname contains one or more illegal characters."
        )


if __name__ == "__main__":
    unittest.main()
