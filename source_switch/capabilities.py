"""
Capabilities Parser - DDC/CI capabilities string to a structured report
=======================================================================

A monitor answers a DDC/CI capabilities request with an ASCII string such as::

    (prot(monitor)type(lcd)model(ACME123)cmds(01 02 03 0C E3 F3)
     vcp(02 04 10 12 14(05 08 0B) 60(01 03 11) D6(01 04 05))mccs_ver(2.1))

Parsing is lenient: vendors routinely emit strings that do not follow the
MCCS grammar exactly, so unterminated groups, stray characters and unknown
keys are tolerated instead of rejected.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .vcp import format_vcp_code, parse_vcp_code

logger = logging.getLogger(__name__)

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Top-level keys the report is built from; everything else is ignored
KEY_PROTOCOL = "prot"
KEY_DISPLAY_TYPE = "type"
KEY_MCCS_VERSION = "mccs_ver"
KEY_WHQL = "mswhql"
KEY_VENDOR_COMMANDS = "MStarcmds"
KEY_VCP = "vcp"

KNOWN_KEYS = frozenset({
    KEY_PROTOCOL,
    KEY_DISPLAY_TYPE,
    KEY_MCCS_VERSION,
    KEY_WHQL,
    KEY_VENDOR_COMMANDS,
    KEY_VCP,
})

CodeLike = Union[int, str]


class CapabilitiesError(ValueError):
    """Raised when a capabilities string cannot be parsed at all."""
    pass


@dataclass(frozen=True)
class FeatureEntry:
    """A VCP feature listed in the capabilities string."""
    code: str                               # Uppercase hex, e.g. "60"
    supported_values: Tuple[str, ...] = ()  # Empty for continuous features

    @property
    def has_discrete_values(self) -> bool:
        return len(self.supported_values) > 0

    def value_codes(self) -> List[int]:
        """Supported values as integers, skipping tokens that are not hex."""
        values = []
        for token in self.supported_values:
            try:
                values.append(int(token, 16))
            except ValueError:
                logger.debug(f"VCP {self.code}: ignoring non-hex value token {token!r}")
        return values

    def __str__(self):
        if self.has_discrete_values:
            return f"VCP {self.code}: [{', '.join(self.supported_values)}]"
        return f"VCP {self.code}: continuous"


@dataclass(frozen=True)
class CapabilityReport:
    """
    Parsed capabilities of a monitor.

    The report is read-only; ``features`` is exposed as a mapping proxy keyed
    by the uppercase hex feature code.
    """
    protocol: str = ""
    display_type: str = ""
    command_set_version: str = ""
    whql_flag: Optional[str] = None
    vendor_commands: Tuple[str, ...] = ()
    features: Mapping[str, FeatureEntry] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @staticmethod
    def _normalize_code(code: CodeLike) -> Optional[str]:
        if isinstance(code, int):
            return format_vcp_code(code) if 0 <= code <= 0xFF else None
        try:
            return format_vcp_code(parse_vcp_code(code))
        except ValueError:
            # Codes longer than one byte can still appear in a report
            text = str(code).strip().upper()
            return text or None

    def get_feature(self, code: CodeLike) -> Optional[FeatureEntry]:
        """Look up a feature by integer code or hex text (``"60"``, ``"0x60"``)."""
        key = self._normalize_code(code)
        if key is None:
            return None
        return self.features.get(key)

    def supports(self, code: CodeLike) -> bool:
        """Check whether the monitor lists a feature code."""
        return self.get_feature(code) is not None

    def allows_value(self, code: CodeLike, value: CodeLike) -> bool:
        """
        Check whether a value may be written to a feature.

        Continuous features accept any value; discrete features only accept
        one of the values they enumerate.
        """
        feature = self.get_feature(code)
        if feature is None:
            return False
        if not feature.has_discrete_values:
            return True
        if isinstance(value, str):
            try:
                value = parse_vcp_code(value)
            except ValueError:
                return False
        return value in feature.value_codes()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dicts and lists for JSON/YAML output."""
        return {
            'protocol': self.protocol,
            'display_type': self.display_type,
            'command_set_version': self.command_set_version,
            'whql_flag': self.whql_flag,
            'vendor_commands': list(self.vendor_commands),
            'features': {
                code: list(entry.supported_values)
                for code, entry in self.features.items()
            },
        }


def _find_group_end(text: str, start: int) -> int:
    """
    Find the ``)`` that closes a group whose ``(`` sits just before ``start``.

    Returns the index of the closing paren, or ``len(text)`` if the group is
    never closed.
    """
    depth = 1
    index = start
    while index < len(text):
        char = text[index]
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return len(text)


def strip_outer_parens(text: str) -> str:
    """Trim whitespace and remove one pair of enclosing parentheses."""
    content = text.strip()
    if len(content) >= 2 and content.startswith('(') and content.endswith(')'):
        content = content[1:-1]
    return content


def scan_groups(content: str) -> Dict[str, str]:
    """
    Split ``key(value)key(value)...`` into a dict of key -> raw value text.

    Values may contain nested groups. The value text is returned exactly as
    found between the matching parentheses. Later duplicate keys overwrite
    earlier ones.

    Args:
        content: Capabilities text with the outer parentheses already removed

    Returns:
        Dictionary of top-level keys to raw value text
    """
    groups: Dict[str, str] = {}
    index = 0
    length = len(content)

    while index < length:
        while index < length and content[index].isspace():
            index += 1
        if index >= length:
            break

        open_index = content.find('(', index)
        if open_index < 0:
            trailing = content[index:].strip()
            if trailing:
                logger.debug(f"Ignoring trailing text without a group: {trailing!r}")
            break

        key = content[index:open_index].strip()
        close_index = _find_group_end(content, open_index + 1)
        if close_index >= length:
            logger.debug(f"Group '{key}' is not terminated, reading to end of string")

        groups[key] = content[open_index + 1:close_index]
        index = close_index + 1

    return groups


def split_tokens(text: str) -> Tuple[str, ...]:
    """Split whitespace-separated tokens, dropping empties."""
    return tuple(text.split())


def parse_vcp_features(vcp_text: str) -> List[FeatureEntry]:
    """
    Parse the value of the ``vcp`` key into feature entries.

    Codes are runs of hex digits, optionally followed by a parenthesized list
    of discrete values: ``10 12 14(05 08 0B) 60(01 03 11)``. Source order and
    duplicates are preserved. Characters that cannot start a code are skipped.

    Args:
        vcp_text: Raw text of the ``vcp`` group

    Returns:
        Ordered list of FeatureEntry
    """
    features: List[FeatureEntry] = []
    index = 0
    length = len(vcp_text)

    while index < length:
        while index < length and vcp_text[index].isspace():
            index += 1
        if index >= length:
            break

        code_start = index
        while index < length and vcp_text[index] in HEX_DIGITS:
            index += 1

        if index == code_start:
            logger.debug(f"Skipping unexpected character {vcp_text[index]!r} in vcp list")
            index += 1
            continue

        code = vcp_text[code_start:index].upper()

        while index < length and vcp_text[index].isspace():
            index += 1

        values: Tuple[str, ...] = ()
        if index < length and vcp_text[index] == '(':
            close_index = _find_group_end(vcp_text, index + 1)
            if close_index >= length:
                logger.debug(f"Value list of VCP {code} is not terminated")
            values = split_tokens(vcp_text[index + 1:close_index])
            index = close_index + 1

        features.append(FeatureEntry(code=code, supported_values=values))

    return features


def build_report(groups: Mapping[str, str]) -> CapabilityReport:
    """
    Assemble a CapabilityReport from scanned top-level groups.

    Missing keys default to empty strings/sequences, except ``mswhql`` which
    stays None. Duplicate feature codes keep their last occurrence.
    """
    ignored = sorted(key for key in groups if key not in KNOWN_KEYS)
    if ignored:
        logger.debug(f"Ignoring capability keys: {', '.join(ignored)}")

    features: Dict[str, FeatureEntry] = {}
    for entry in parse_vcp_features(groups.get(KEY_VCP, "")):
        features[entry.code] = entry

    return CapabilityReport(
        protocol=groups.get(KEY_PROTOCOL, ""),
        display_type=groups.get(KEY_DISPLAY_TYPE, ""),
        command_set_version=groups.get(KEY_MCCS_VERSION, ""),
        whql_flag=groups.get(KEY_WHQL),
        vendor_commands=split_tokens(groups.get(KEY_VENDOR_COMMANDS, "")),
        features=MappingProxyType(features),
    )


def parse_capabilities(text: Optional[str]) -> CapabilityReport:
    """
    Parse a DDC/CI capabilities string.

    Args:
        text: Raw capabilities string as returned by the monitor

    Returns:
        Parsed CapabilityReport

    Raises:
        CapabilitiesError: If the string is None, empty or only whitespace
    """
    if text is None or not str(text).strip():
        raise CapabilitiesError("Capabilities string cannot be empty")

    groups = scan_groups(strip_outer_parens(str(text)))
    report = build_report(groups)
    logger.debug(
        f"Parsed capabilities: prot={report.protocol!r} type={report.display_type!r} "
        f"mccs={report.command_set_version!r} features={len(report.features)}"
    )
    return report
