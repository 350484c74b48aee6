"""CLI entry point for checking a connector form.

Usage:
    python -m connector_form postgres.yaml
    python -m connector_form postgres.yaml --values stored.yaml --edit
    python -m connector_form postgres.yaml --variant connectionConfiguration.ssl_mode=1
    python -m connector_form postgres.yaml --values stored.yaml --json

Exit codes:
    0 - The form values are valid
    1 - Validation found issues
    2 - The schema or definition could not be loaded
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional, Tuple

from connector_form.form.session import ServiceFormSession
from connector_form.lib.errors import FormError
from connector_form.lib.loader import load_specification, load_values
from connector_form.lib.logging import setup_logging
from connector_form.lib.paths import path_key
from connector_form.lib.settings import get_settings
from connector_form.models.field_descriptor import FieldDescriptor, FieldKind
from connector_form.schema.variants import active_variant_index

logger = logging.getLogger(__name__)


def _parse_variant(text: str) -> Tuple[str, int]:
    path, sep, index = text.rpartition("=")
    if not sep or not path or not index.isdigit():
        raise argparse.ArgumentTypeError(f"expected PATH=INDEX, got {text!r}")
    return path, int(index)


def format_tree(session: ServiceFormSession) -> List[str]:
    """Render the active field tree as indented outline lines."""
    lines: List[str] = []
    widgets = session.widgets

    def visit(node: FieldDescriptor, depth: int) -> None:
        indent = "  " * depth
        flags = []
        if node.required:
            flags.append("required")
        if node.has_const:
            flags.append(f"const={node.const!r}")
        elif node.has_default:
            flags.append(f"default={node.default!r}")
        if node.secret:
            flags.append("secret")

        if node.kind is FieldKind.UNION:
            active = active_variant_index(node, widgets)
            options = ", ".join(
                f"{const}*" if i == active else str(const)
                for i, const in enumerate(node.variant_consts)
            )
            lines.append(f"{indent}{node.label} (oneOf {node.discriminator}: {options})")
            for child in node.variants[active].children:
                visit(child, depth + 1)
            return

        kind = node.type if node.kind is not FieldKind.ARRAY else f"array of {node.items.type}"
        suffix = f", {', '.join(flags)}" if flags else ""
        lines.append(f"{indent}{node.label} ({kind}{suffix})")
        for child in node.children:
            visit(child, depth + 1)

    for child in session.field_tree.children:
        visit(child, 0)
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="connector_form",
        description="Build and validate a connector configuration form",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("specification", help="Connector definition (YAML or JSON)")
    parser.add_argument("--values", help="Stored form values to load (YAML or JSON)")
    parser.add_argument("--edit", action="store_true", help="Treat the values as an existing configuration")
    parser.add_argument(
        "--form-type",
        choices=["source", "destination"],
        default="source",
        help="Kind of connector (default: source)",
    )
    parser.add_argument(
        "--variant",
        action="append",
        type=_parse_variant,
        default=[],
        metavar="PATH=INDEX",
        help="Select a oneOf variant (repeatable)",
    )
    parser.add_argument("--json", action="store_true", help="Print the values to submit as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(
        verbose=args.verbose,
        json_format=settings.log_format == "json",
        log_file=settings.log_file,
        level=settings.log_level,
    )

    try:
        specification = load_specification(args.specification)
        values = load_values(args.values) if args.values else None
        session = ServiceFormSession(
            args.form_type,
            specification=specification,
            form_values=values,
            edit_mode=args.edit,
            settings=settings,
        )
        for path, index in args.variant:
            session.select_variant(path, index)
    except (FormError, ValueError) as e:
        logger.error("%s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    issues = session.validate()

    if args.json:
        print(json.dumps(session.get_values(), indent=2, sort_keys=False, default=str))
    else:
        print(f"{specification.name} ({specification.definition_id})")
        for line in format_tree(session):
            print(f"  {line}")
        print()
        if issues:
            print(f"{len(issues)} issue(s):")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print("Form is valid")

    if issues:
        for issue in issues:
            logger.debug("Validation issue at %s: %s", path_key(issue.path), issue.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
