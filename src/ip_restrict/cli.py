#!/usr/bin/env python3
"""
Command-line interface for IP Restrict.

Subcommands:
- ip-restrict check: Decide whether an address may pass the gate
- ip-restrict validate: Normalize allow-list entries and report rejects

Usage:
    ip-restrict check 203.0.113.42
    ip-restrict check 203.0.113.42 -c config/ip_restrict.yaml --json
    ip-restrict validate < allow_list.txt
    ip-restrict --version

Exit Codes (check):
    0: Allowed
    1: Denied
    2: Configuration or usage error
"""

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .domain.address_validator import AddressValidator
from .domain.models import IPRestrictError
from .domain.services import AccessGateService
from .infrastructure.config import ConfigManager
from .infrastructure.logging_config import configure_stderr_logging
from .infrastructure.repositories import YamlSettingsRepository

EXIT_ALLOW = 0
EXIT_DENY = 1
EXIT_ERROR = 2


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="ip-restrict",
        description="Allow-list access gate for administrative endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check an address against the stored settings
  ip-restrict check 203.0.113.42 -s config/settings.yaml

  # Force the gate on and add a required range from the environment
  IP_RESTRICT_FORCE_ENABLED=1 IP_RESTRICT_REQUIRED_IPS=198.51.100.0/24 \\
      ip-restrict check 198.51.100.9

  # Clean up an allow list before saving it
  ip-restrict validate allow_list.txt
        """,
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at debug level on stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser(
        "check",
        help="Decide whether an address is allowed",
        description="Evaluate one requester address against the gate settings.",
    )
    check_parser.add_argument("address", help="Requester address")
    check_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to the gate configuration file",
    )
    check_parser.add_argument(
        "-s",
        "--settings",
        type=Path,
        help="Path to the settings file (overrides the configured one)",
    )
    check_parser.add_argument(
        "--path",
        help="Requested path, recorded in the audit log",
    )
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the decision as JSON",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Normalize allow-list entries",
        description="Print canonical entries for valid lines; report dropped lines on stderr.",
    )
    validate_parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="File with one entry per line (default: stdin)",
    )

    return parser


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    if args.config and not args.config.exists():
        print(
            f"Error: Specified config file does not exist: {args.config}",
            file=sys.stderr,
        )
        return EXIT_ERROR

    try:
        config_manager = ConfigManager(str(args.config) if args.config else None)
        config = config_manager.load_config()
    except IPRestrictError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    configure_stderr_logging(
        level="DEBUG" if args.verbose else config.log_level, json_logs=config.json_logs
    )

    service = AccessGateService(
        YamlSettingsRepository(args.settings or config.settings_file),
        required_rules_supplier=config_manager.required_rules_supplier(),
        enabled_override=config_manager.enabled_override(),
    )
    decision = service.check_access(args.address, path=args.path)

    if args.json:
        print(json.dumps(decision.model_dump(mode="json")))
    else:
        print(f"{decision.action.value}: {decision.reason}")

    return EXIT_ALLOW if decision.allowed else EXIT_DENY


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle the validate subcommand."""
    configure_stderr_logging(level="DEBUG" if args.verbose else "ERROR")

    if args.file:
        try:
            text = args.file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: Cannot read {args.file}: {e}", file=sys.stderr)
            return EXIT_ERROR
    else:
        text = sys.stdin.read()

    validator = AddressValidator()
    for line in text.splitlines():
        entry = validator.clean(line)
        if not entry:
            continue
        rule = validator.validate(line)
        if rule is None:
            print(f"dropped: {entry}", file=sys.stderr)
        else:
            print(rule.token)

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "check":
        return cmd_check(args)
    elif args.command == "validate":
        return cmd_validate(args)
    else:
        parser.print_help()
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
