"""
rotalabs-conditions Command Line Interface

Validate, describe and test condition expressions without a host
application.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from rotalabs_conditions.core.config import ConditionsConfig, EngineConfig
from rotalabs_conditions.core.subject import (
    StaticSubject,
    parse_attribute_assignments,
    static_attribute_resolver,
)
from rotalabs_conditions.evaluation.manager import ConditionManager
from rotalabs_conditions.parsing.parser import ConditionParseError, ConditionParser


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rotalabs-conditions",
        description="Validate and evaluate condition expressions",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--max-depth", type=int, default=32, help="Maximum nesting depth")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser("validate", help="Check that expressions parse")
    validate_parser.add_argument("expressions", nargs="+", help="Expressions to validate")

    describe_parser = subparsers.add_parser("describe", help="Print the parsed condition tree")
    describe_parser.add_argument("expression", help="Expression to describe")

    test_parser = subparsers.add_parser("test", help="Evaluate an expression")
    test_parser.add_argument("expression", help="Expression to evaluate")
    _add_subject_arguments(test_parser)

    check_parser = subparsers.add_parser("check", help="Evaluate every gate in a config file")
    check_parser.add_argument("config", help="Path to a .json/.yaml gate configuration")
    check_parser.add_argument("--gate", help="Only evaluate this gate")
    _add_subject_arguments(check_parser)

    return parser


def _add_subject_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p", "--permission", action="append", default=[], dest="permissions",
        help="Permission node held by the subject (repeatable)",
    )
    parser.add_argument(
        "-a", "--attribute", action="append", default=[], dest="attributes",
        help="Attribute value as TOKEN=VALUE (repeatable)",
    )
    parser.add_argument(
        "--no-attributes", action="store_true",
        help="Evaluate as if attribute resolution were unavailable",
    )
    parser.add_argument("--name", default="subject", help="Subject name")


def _build_subject(args: argparse.Namespace) -> StaticSubject:
    return StaticSubject(
        name=args.name,
        permissions=args.permissions,
        attributes=parse_attribute_assignments(args.attributes),
    )


def _build_manager(args: argparse.Namespace, config: Optional[EngineConfig] = None) -> ConditionManager:
    resolver = None if getattr(args, "no_attributes", False) else static_attribute_resolver
    return ConditionManager(resolver=resolver, config=config or EngineConfig(max_depth=args.max_depth))


def cmd_validate(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    all_valid = True
    for expression in args.expressions:
        valid = manager.is_valid_expression(expression)
        all_valid = all_valid and valid
        print(f"{'valid' if valid else 'invalid'}: {expression}")
    return 0 if all_valid else 1


def cmd_describe(args: argparse.Namespace) -> int:
    parser = ConditionParser(max_depth=args.max_depth)
    try:
        condition = parser.parse_strict(args.expression)
    except ConditionParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(condition.describe())
    return 0


def cmd_test(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    if not manager.is_valid_expression(args.expression):
        print(f"Error: invalid expression: {args.expression}", file=sys.stderr)
        return 1

    result = manager.evaluate(_build_subject(args), args.expression)
    print("true" if result else "false")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    config = ConditionsConfig.from_file(args.config)
    manager = _build_manager(args, config.engine)
    subject = _build_subject(args)

    gates = config.gates
    if args.gate:
        gate = config.get_gate(args.gate)
        if gate is None:
            print(f"Error: unknown gate: {args.gate}", file=sys.stderr)
            return 1
        gates = {gate.name: gate}

    invalid = ConditionsConfig(engine=config.engine, gates=gates).invalid_expressions(manager)
    for name, expressions in invalid.items():
        for expression in expressions:
            print(f"warning: gate {name}: invalid expression: {expression}", file=sys.stderr)

    for name, gate in gates.items():
        result = gate.evaluate(manager, subject)
        print(f"{name}: {'pass' if result else 'fail'}")
    return 1 if invalid else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "validate": cmd_validate,
        "describe": cmd_describe,
        "test": cmd_test,
        "check": cmd_check,
    }

    try:
        return commands[args.command](args)
    except (OSError, ValueError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
