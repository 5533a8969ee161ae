#!/usr/bin/env python3
"""
Tests for VCP code helpers.
"""

import sys
import unittest
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from source_switch.vcp import (
    VcpCode,
    feature_name,
    format_vcp_code,
    input_source_name,
    parse_vcp_code,
    parse_vcp_value,
)


class TestParseVcpCode(unittest.TestCase):

    def test_plain_and_prefixed_hex(self):
        self.assertEqual(parse_vcp_code("60"), 0x60)
        self.assertEqual(parse_vcp_code("0x60"), 0x60)
        self.assertEqual(parse_vcp_code("0XdC"), 0xDC)
        self.assertEqual(parse_vcp_code(" 10 "), 0x10)

    def test_int_passthrough(self):
        self.assertEqual(parse_vcp_code(0x14), 0x14)
        self.assertEqual(parse_vcp_code(VcpCode.INPUT_SOURCE), 0x60)

    def test_invalid_codes(self):
        for code in ("", "0x", "zz", "1_0", "-1", "100", None, 256, -1):
            with self.subTest(code=code):
                with self.assertRaises(ValueError):
                    parse_vcp_code(code)


class TestParseVcpValue(unittest.TestCase):

    def test_values_are_hex_like_report_tokens(self):
        self.assertEqual(parse_vcp_value("0F"), 0x0F)
        self.assertEqual(parse_vcp_value("11"), 0x11)
        self.assertEqual(parse_vcp_value("0x08"), 0x08)

    def test_sixteen_bit_range(self):
        self.assertEqual(parse_vcp_value("FFFF"), 0xFFFF)
        self.assertEqual(parse_vcp_value(300), 300)
        for value in ("10000", "", "12.5", -1):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_vcp_value(value)


class TestNames(unittest.TestCase):

    def test_format(self):
        self.assertEqual(format_vcp_code(0x0a), "0A")
        self.assertEqual(format_vcp_code(VcpCode.POWER_MODE), "D6")

    def test_feature_name(self):
        self.assertEqual(feature_name(0x60), "Input Source")
        self.assertEqual(feature_name(0xE3), "VCP 0xE3")

    def test_input_source_name(self):
        self.assertEqual(input_source_name(0x11), "HDMI-1")
        self.assertEqual(input_source_name(0x7F), "Input 0x7F")


if __name__ == '__main__':
    unittest.main()
