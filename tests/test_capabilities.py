#!/usr/bin/env python3
"""
Tests for the DDC/CI capabilities string parser.
"""

import sys
import unittest
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from source_switch.capabilities import (
    CapabilitiesError,
    CapabilityReport,
    FeatureEntry,
    build_report,
    parse_capabilities,
    parse_vcp_features,
    scan_groups,
    strip_outer_parens,
)


SAMPLE = (
    "(prot(monitor)type(lcd)model(ACME123)cmds(01 02 03 0C E3 F3)"
    "vcp(02 04 05 08 10 12 14(05 08 0B) 16 18 1A 60(01 03 11) 62 6C 6E 70 AC AE B6 "
    "C0 C6 C8 C9 D6(01 04 05) DF)mswhql(1)mccs_ver(2.1))"
)


class TestScanGroups(unittest.TestCase):
    """Top-level key/value scanning."""

    def test_simple_groups(self):
        groups = scan_groups("prot(monitor)type(lcd)")
        self.assertEqual(groups, {'prot': 'monitor', 'type': 'lcd'})

    def test_nested_value_kept_verbatim(self):
        groups = scan_groups("vcp(10 60(01 03) 12)mccs_ver(2.2)")
        self.assertEqual(groups['vcp'], '10 60(01 03) 12')
        self.assertEqual(groups['mccs_ver'], '2.2')

    def test_keys_trimmed_values_not(self):
        groups = scan_groups("  prot ( monitor )  type(lcd)")
        self.assertEqual(groups['prot'], ' monitor ')
        self.assertEqual(groups['type'], 'lcd')

    def test_duplicate_key_last_wins(self):
        groups = scan_groups("type(crt)type(lcd)")
        self.assertEqual(groups, {'type': 'lcd'})

    def test_trailing_text_without_group_ignored(self):
        groups = scan_groups("prot(monitor)garbage")
        self.assertEqual(groups, {'prot': 'monitor'})

    def test_unterminated_group_reads_to_end(self):
        groups = scan_groups("prot(monitor)vcp(10 12 60(01 03")
        self.assertEqual(groups['prot'], 'monitor')
        self.assertEqual(groups['vcp'], '10 12 60(01 03')

    def test_empty_content(self):
        self.assertEqual(scan_groups(""), {})
        self.assertEqual(scan_groups("   "), {})

    def test_strip_outer_parens(self):
        self.assertEqual(strip_outer_parens("  (prot(monitor))  "), "prot(monitor)")
        self.assertEqual(strip_outer_parens("prot(monitor)"), "prot(monitor)")


class TestParseVcpFeatures(unittest.TestCase):
    """Parsing of the vcp value list."""

    def test_continuous_and_discrete(self):
        features = parse_vcp_features("10 12 14(05 08 0B) 60(01 03 11)")
        self.assertEqual([f.code for f in features], ['10', '12', '14', '60'])
        self.assertEqual(features[0].supported_values, ())
        self.assertEqual(features[2].supported_values, ('05', '08', '0B'))
        self.assertEqual(features[3].supported_values, ('01', '03', '11'))

    def test_codes_uppercased_values_untouched(self):
        features = parse_vcp_features("a0 dc(0b 0c)")
        self.assertEqual(features[0].code, 'A0')
        self.assertEqual(features[1].code, 'DC')
        self.assertEqual(features[1].supported_values, ('0b', '0c'))

    def test_whitespace_before_value_group(self):
        features = parse_vcp_features("60 (0F 11)")
        self.assertEqual(len(features), 1)
        self.assertEqual(features[0].supported_values, ('0F', '11'))

    def test_duplicates_preserved_in_order(self):
        features = parse_vcp_features("60(01) 10 60(02 03)")
        self.assertEqual([f.code for f in features], ['60', '10', '60'])

    def test_non_hex_characters_skipped(self):
        features = parse_vcp_features("10 ?? 12 zz 14")
        self.assertEqual([f.code for f in features], ['10', '12', '14'])

    def test_adjacent_codes_without_spaces(self):
        features = parse_vcp_features("14(05 08)16")
        self.assertEqual([f.code for f in features], ['14', '16'])

    def test_empty_group_is_continuous(self):
        features = parse_vcp_features("60()")
        self.assertEqual(features[0].supported_values, ())
        self.assertFalse(features[0].has_discrete_values)

    def test_nested_group_inside_values(self):
        features = parse_vcp_features("60(01 (02) 03) 10")
        self.assertEqual([f.code for f in features], ['60', '10'])
        self.assertEqual(features[0].supported_values, ('01', '(02)', '03'))

    def test_unterminated_values_read_to_end(self):
        features = parse_vcp_features("10 60(01 03 11")
        self.assertEqual([f.code for f in features], ['10', '60'])
        self.assertEqual(features[1].supported_values, ('01', '03', '11'))

    def test_empty_input(self):
        self.assertEqual(parse_vcp_features(""), [])
        self.assertEqual(parse_vcp_features("   "), [])


class TestBuildReport(unittest.TestCase):
    """Assembly of the report from scanned groups."""

    def test_defaults_for_missing_keys(self):
        report = build_report({})
        self.assertEqual(report.protocol, "")
        self.assertEqual(report.display_type, "")
        self.assertEqual(report.command_set_version, "")
        self.assertIsNone(report.whql_flag)
        self.assertEqual(report.vendor_commands, ())
        self.assertEqual(len(report.features), 0)

    def test_vendor_commands_keep_order_and_duplicates(self):
        report = build_report({'MStarcmds': ' 01 02  01 '})
        self.assertEqual(report.vendor_commands, ('01', '02', '01'))

    def test_unknown_keys_ignored(self):
        report = build_report({'model': 'ACME', 'cmds': '01 02', 'prot': 'monitor'})
        self.assertEqual(report.protocol, 'monitor')

    def test_key_lookup_is_case_sensitive(self):
        report = build_report({'PROT': 'monitor', 'mstarcmds': '01'})
        self.assertEqual(report.protocol, '')
        self.assertEqual(report.vendor_commands, ())


class TestParseCapabilities(unittest.TestCase):
    """End-to-end parsing."""

    def test_basic_report(self):
        report = parse_capabilities("(prot(monitor)type(lcd)mccs_ver(2.1)vcp(10 12 60(01 03 11)))")
        self.assertEqual(report.protocol, "monitor")
        self.assertEqual(report.display_type, "lcd")
        self.assertEqual(report.command_set_version, "2.1")
        self.assertEqual(set(report.features), {"10", "12", "60"})
        self.assertEqual(report.features["60"].supported_values, ("01", "03", "11"))

    def test_full_sample(self):
        report = parse_capabilities(SAMPLE)
        self.assertEqual(report.whql_flag, "1")
        self.assertEqual(report.command_set_version, "2.1")
        self.assertEqual(len(report.features), 24)
        self.assertEqual(report.features["D6"].supported_values, ("01", "04", "05"))
        self.assertEqual(report.features["14"].supported_values, ("05", "08", "0B"))
        self.assertFalse(report.features["DF"].has_discrete_values)

    def test_missing_vcp_gives_no_features(self):
        report = parse_capabilities("(prot(monitor)type(lcd))")
        self.assertEqual(dict(report.features), {})

    def test_empty_input_rejected(self):
        for text in ("", "   ", "\n\t", None):
            with self.assertRaises(CapabilitiesError):
                parse_capabilities(text)

    def test_error_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_capabilities("")

    def test_code_casing_normalized(self):
        lower = parse_capabilities("(vcp(a0))")
        upper = parse_capabilities("(vcp(A0))")
        self.assertEqual(list(lower.features), ["A0"])
        self.assertEqual(list(upper.features), ["A0"])

    def test_duplicate_code_last_wins(self):
        report = parse_capabilities("(vcp(60(01) 60(02 03)))")
        self.assertEqual(list(report.features), ["60"])
        self.assertEqual(report.features["60"].supported_values, ("02", "03"))

    def test_missing_final_paren(self):
        report = parse_capabilities("(prot(monitor)vcp(10 12 60(01 03 11)")
        self.assertEqual(report.protocol, "monitor")
        self.assertEqual(set(report.features), {"10", "12", "60"})
        self.assertEqual(report.features["60"].supported_values, ("01", "03", "11"))

    def test_deeply_nested_groups(self):
        report = parse_capabilities("(prot(monitor)vcp(10 60(01 (02 (03 (04)))) 12)mccs_ver(2.2))")
        self.assertEqual(report.command_set_version, "2.2")
        self.assertEqual(set(report.features), {"10", "60", "12"})

    def test_garbage_does_not_raise(self):
        report = parse_capabilities(")))(((")
        self.assertIsInstance(report, CapabilityReport)

    def test_without_outer_parens(self):
        report = parse_capabilities("prot(monitor)vcp(10)")
        self.assertEqual(report.protocol, "monitor")
        self.assertIn("10", report.features)

    def test_continuous_feature(self):
        report = parse_capabilities("(vcp(10))")
        feature = report.features["10"]
        self.assertFalse(feature.has_discrete_values)
        self.assertEqual(feature.supported_values, ())


class TestReportIsReadOnly(unittest.TestCase):

    def test_features_mapping_cannot_be_modified(self):
        report = parse_capabilities(SAMPLE)
        with self.assertRaises(TypeError):
            report.features["FF"] = FeatureEntry(code="FF")

    def test_fields_frozen(self):
        report = parse_capabilities(SAMPLE)
        with self.assertRaises(AttributeError):
            report.protocol = "other"
        with self.assertRaises(AttributeError):
            report.features["60"].code = "61"


class TestReportQueries(unittest.TestCase):
    """Lookups used before reading or writing features."""

    def setUp(self):
        self.report = parse_capabilities(SAMPLE)

    def test_supports_int_and_text_codes(self):
        self.assertTrue(self.report.supports(0x60))
        self.assertTrue(self.report.supports("60"))
        self.assertTrue(self.report.supports("0x60"))
        self.assertTrue(self.report.supports("ac"))
        self.assertFalse(self.report.supports(0x87))
        self.assertFalse(self.report.supports("zz"))
        self.assertFalse(self.report.supports(0x1FF))

    def test_get_feature(self):
        self.assertEqual(self.report.get_feature(0xD6).supported_values, ("01", "04", "05"))
        self.assertIsNone(self.report.get_feature(0xDC))

    def test_allows_value_discrete(self):
        self.assertTrue(self.report.allows_value(0x60, 0x11))
        self.assertTrue(self.report.allows_value("60", "0x03"))
        self.assertFalse(self.report.allows_value(0x60, 0x0F))
        self.assertFalse(self.report.allows_value(0x60, "nope"))

    def test_allows_value_continuous(self):
        self.assertTrue(self.report.allows_value(0x10, 75))

    def test_allows_value_unsupported_code(self):
        self.assertFalse(self.report.allows_value(0x87, 1))

    def test_to_dict(self):
        data = parse_capabilities("(prot(monitor)MStarcmds(01 02)vcp(10 60(0F 11)))").to_dict()
        self.assertEqual(data, {
            'protocol': 'monitor',
            'display_type': '',
            'command_set_version': '',
            'whql_flag': None,
            'vendor_commands': ['01', '02'],
            'features': {'10': [], '60': ['0F', '11']},
        })


class TestFeatureEntry(unittest.TestCase):

    def test_str(self):
        self.assertEqual(str(FeatureEntry("60", ("01", "03"))), "VCP 60: [01, 03]")
        self.assertEqual(str(FeatureEntry("10")), "VCP 10: continuous")

    def test_value_codes_skip_non_hex(self):
        entry = FeatureEntry("60", ("0F", "(02)", "11"))
        self.assertEqual(entry.value_codes(), [0x0F, 0x11])


if __name__ == '__main__':
    unittest.main()
