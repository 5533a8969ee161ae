#!/usr/bin/env python3
"""
Source Switch - DDC/CI capabilities and input switching for Linux
=================================================================

Show what a monitor advertises in its DDC/CI capabilities string, read and
write single VCP features, and switch inputs by name.

Usage:
    python main.py [--config PATH] [--display N] [--debug] COMMAND

    Commands:
        --parse TEXT        Parse a capabilities string ('-' reads stdin)
        --capabilities      Query and show the monitor's capabilities
        --get CODE          Read a VCP feature (hex code, e.g. 10 or 0x60)
        --set CODE VALUE    Write a VCP feature (VALUE is hex too, e.g. 60 0F)
        --input NAME        Switch input (configured name, MCCS name or hex value)

    Options:
        --json              Print capability reports as JSON
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional


def setup_logging(debug: bool = False, log_file: Optional[Path] = None):
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO

    # Reports go to stdout, keep log output off it
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
    )

logger = logging.getLogger(__name__)


def print_report(report, as_json: bool = False):
    """Print a capability report."""
    from source_switch.vcp import feature_name, input_source_name, VcpCode

    if as_json:
        print(json.dumps(report.to_dict(), indent=2))
        return

    print(f"Protocol:     {report.protocol or 'Unknown'}")
    print(f"Display type: {report.display_type or 'Unknown'}")
    print(f"MCCS version: {report.command_set_version or 'Unknown'}")
    if report.whql_flag is not None:
        print(f"MS WHQL:      {report.whql_flag}")
    if report.vendor_commands:
        print(f"MStar cmds:   {' '.join(report.vendor_commands)}")

    print(f"\nSupported Features ({len(report.features)}):\n")
    for code, feature in sorted(report.features.items()):
        try:
            name = feature_name(int(code, 16))
        except ValueError:
            name = f"VCP {code}"
        print(f"  0x{code} - {name}")
        if code == f"{VcpCode.INPUT_SOURCE:02X}":
            for value in feature.value_codes():
                print(f"         {value:02X}: {input_source_name(value)}")
        elif feature.has_discrete_values:
            print(f"         values: {', '.join(feature.supported_values)}")


def read_capabilities_text(text: str) -> str:
    """Get the text for --parse, reading stdin for '-'."""
    if text == '-':
        return sys.stdin.read()
    return text


def load_config(config_path: Optional[Path]):
    """Load the given or default configuration, falling back to defaults."""
    from source_switch.config import Config

    config = Config(config_path)
    if config.config_path.exists():
        config.load()
    elif config_path:
        logger.warning(f"Configuration file not found: {config_path}, using defaults")
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Source Switch - DDC/CI capabilities and input switching",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to configuration file'
    )
    parser.add_argument(
        '--debug', '-d',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--display',
        type=int,
        help='ddcutil display number (overrides config)'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print capability reports as JSON'
    )

    commands = parser.add_mutually_exclusive_group(required=True)
    commands.add_argument(
        '--parse',
        metavar='TEXT',
        help="Parse a capabilities string and exit ('-' reads stdin)"
    )
    commands.add_argument(
        '--capabilities',
        action='store_true',
        help='Show monitor capabilities and exit'
    )
    commands.add_argument(
        '--get',
        metavar='CODE',
        help='Read a VCP feature and exit'
    )
    commands.add_argument(
        '--set',
        nargs=2,
        metavar=('CODE', 'VALUE'),
        help="Write a VCP feature and exit (CODE and VALUE in hex)"
    )
    commands.add_argument(
        '--input', '-i',
        metavar='NAME',
        help='Switch input source and exit'
    )

    args = parser.parse_args(argv)
    setup_logging(args.debug)

    from source_switch.capabilities import CapabilitiesError, parse_capabilities
    from source_switch.ddc import DDCController, DDCError
    from source_switch.vcp import parse_vcp_code, parse_vcp_value

    if args.parse is not None:
        try:
            report = parse_capabilities(read_capabilities_text(args.parse))
        except CapabilitiesError as e:
            logger.error(f"Cannot parse capabilities: {e}")
            return 1
        print_report(report, args.json)
        return 0

    config = load_config(args.config)
    ddc = DDCController(
        display=args.display if args.display is not None else config.ddc.display,
        retry_count=config.ddc.retry_count,
        sleep_multiplier=config.ddc.sleep_multiplier,
    )

    try:
        if args.capabilities:
            print_report(ddc.get_capabilities(), args.json)
            return 0

        if args.get:
            reading = ddc.get_vcp(args.get)
            if reading.feature_type == "C":
                print(f"{reading.name}: {reading.current_value} (0x{reading.current_value:02X}, max: {reading.max_value})")
            else:
                print(f"{reading.name}: 0x{reading.current_value:02X}")
            return 0

        if args.set:
            code = parse_vcp_code(args.set[0])
            value = parse_vcp_value(args.set[1])
            capabilities = ddc.get_capabilities()
            return 0 if ddc.set_vcp(code, value, capabilities) else 1

        value = config.resolve_input_source(args.input)
        if value is None:
            return 1
        capabilities = ddc.get_capabilities()
        if not ddc.set_input_source(value, capabilities):
            return 1
        print(f"Switched input to {config.get_input_source_name(value)}")
        return 0

    except DDCError as e:
        logger.error(f"{e}")
        return 1
    except ValueError as e:
        # Malformed codes/values and unparseable capabilities strings
        logger.error(f"{e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
