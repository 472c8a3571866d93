"""
recordmatch CLI

Checks catalog files and compares record documents outside a test run.

Usage:
    recordmatch validate --catalog records.yaml
    recordmatch render AttributionNode node.yaml
    recordmatch compare ShellData expected.yaml actual.yaml --presence-policy presence

Without --catalog the built-in telemetry catalog is used. A record document
holding a list is treated as a sequence and compared pointwise; expected and
actual must then both hold lists.

Exit codes:
    0  valid catalog / records match
    1  records differ
    2  invalid catalog or settings, unreadable document, unknown record type,
       or expected and actual documents of different shapes

Ticket: 0091_record_matchers
"""

import argparse
import logging
import sys
from typing import Any

import yaml
from pydantic import BaseModel

from .catalog import Catalog, RecordType
from .config import MatchConfig, PresencePolicy
from .loader import load_catalog, load_document
from .telemetry import build_telemetry_catalog

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


def _load_catalog(args: argparse.Namespace) -> Catalog:
    config = MatchConfig.from_env().with_overrides(
        presence_policy=getattr(args, "presence_policy", None)
    )
    if args.catalog:
        return load_catalog(args.catalog, config)
    return build_telemetry_catalog(config)


def _load_records(record_type: RecordType, path: str) -> Any:
    """Read a record document; validate it into the type's model when it has one."""
    document = load_document(path)
    model = record_type.model
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        return document
    if isinstance(document, list):
        return [model.model_validate(item) for item in document]
    return model.model_validate(document)


def cmd_validate(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args)
    print(f"OK: {len(catalog)} record type(s)")
    for name in catalog.definition_order:
        record_type = catalog[name]
        kinds = ", ".join(f"{f.name}:{f.kind.value}" for f in record_type.fields)
        print(f"  {name:<24} {kinds}")
    return EXIT_OK


def cmd_render(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args)
    record_type = catalog[args.record_type]
    document = _load_records(record_type, args.record)
    if isinstance(document, list):
        for record in document:
            print(record_type.render(record))
    else:
        print(record_type.render(document))
    return EXIT_OK


def cmd_compare(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args)
    record_type = catalog[args.record_type]
    expected = _load_records(record_type, args.expected)
    actual = _load_records(record_type, args.actual)

    if isinstance(expected, list) != isinstance(actual, list):
        shapes = {True: "a list of records", False: "a single record"}
        print(
            f"Error: {args.expected} holds {shapes[isinstance(expected, list)]} "
            f"but {args.actual} holds {shapes[isinstance(actual, list)]}",
            file=sys.stderr,
        )
        return EXIT_ERROR

    if isinstance(expected, list):
        matcher = record_type.pointwise(expected)
    else:
        matcher = record_type.eq(expected)
    result = matcher.explain(actual)

    if result:
        print(f"MATCH: {result.type_name}")
        return EXIT_OK
    print("\n".join(result.describe(matcher.config.max_reported_mismatches)))
    return EXIT_MISMATCH


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="recordmatch",
        description="Validate record catalogs and compare record documents",
    )
    parser.add_argument(
        "--catalog",
        metavar="PATH",
        help="YAML/JSON catalog file (default: built-in telemetry catalog)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate
    p_validate = subparsers.add_parser("validate", help="Define every record type in the catalog")
    p_validate.set_defaults(func=cmd_validate)

    # render
    p_render = subparsers.add_parser("render", help="Print a record document")
    p_render.add_argument("record_type", help="Record type name (e.g. AttributionNode)")
    p_render.add_argument("record", help="YAML/JSON record document")
    p_render.set_defaults(func=cmd_render)

    # compare
    p_compare = subparsers.add_parser("compare", help="Compare an actual record with an expected one")
    p_compare.add_argument("record_type", help="Record type name (e.g. ShellData)")
    p_compare.add_argument("expected", help="Expected YAML/JSON record document")
    p_compare.add_argument("actual", help="Actual YAML/JSON record document")
    p_compare.add_argument(
        "--presence-policy",
        choices=[p.value for p in PresencePolicy],
        help="Optional-field comparison policy (default: RECORDMATCH_PRESENCE_POLICY or value)",
    )
    p_compare.set_defaults(func=cmd_compare)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except KeyError as exc:
        print(f"Error: {exc.args[0]}", file=sys.stderr)
        return EXIT_ERROR
    # DefinitionError, pydantic ValidationError, JSONDecodeError and bad
    # RECORDMATCH_* settings are all ValueErrors
    except (ValueError, OSError, yaml.YAMLError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
