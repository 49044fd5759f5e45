#!/usr/bin/env python3
"""Print an SVG file as markup ready to paste into an HTML page.

The file is sanitized the same way templates embed it: no XML declaration or
DOCTYPE, unique IDs and classes, and a viewBox when width and height allow.

Usage:
    python scripts/embed_svg.py icons/logo.svg --title "Company logo"

    # Let the page CSS control the colour
    python scripts/embed_svg.py icons/logo.svg --remove-style fill --fill currentColor

    # Drop fixed dimensions and add a class
    python scripts/embed_svg.py icons/logo.svg -r width -r height -a class=logo
"""

import argparse
import sys

from monolith.models import MonolithError
from monolith.svg import ScalableVectorGraphic, load_svg


def parse_attribute(value: str) -> tuple[str, str]:
    """Parse a NAME=VALUE command line argument."""
    name, sep, attribute_value = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {value!r}")
    return name, attribute_value


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, sanitize the SVG and print it."""
    parser = argparse.ArgumentParser(
        description="Sanitize an SVG file for inline embedding in HTML.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("file", help="Path to the SVG file")
    parser.add_argument("--title", "-t", help="Set the accessible <title>")
    parser.add_argument("--fill", "-f", metavar="COLOR", help="Set the root fill colour")
    parser.add_argument(
        "--remove-attribute",
        "-r",
        metavar="NAME",
        action="append",
        default=[],
        help="Remove an attribute from the root element (repeatable)",
    )
    parser.add_argument(
        "--remove-style",
        "-s",
        metavar="NAME",
        action="append",
        default=[],
        help="Remove a style property from every element (repeatable)",
    )
    parser.add_argument(
        "--attribute",
        "-a",
        metavar="NAME=VALUE",
        type=parse_attribute,
        action="append",
        default=[],
        help="Set an attribute on the root element (repeatable)",
    )
    parser.add_argument(
        "--source",
        action="store_true",
        help="Print the parsed, unsanitized document instead",
    )

    args = parser.parse_args(argv)

    try:
        if args.source:
            print(ScalableVectorGraphic().load(args.file).embed_source_dom())
            return 0

        svg = load_svg(
            args.file,
            attributes=dict(args.attribute),
            title=args.title,
            fill=args.fill,
            remove_attributes=args.remove_attribute,
            remove_styles=args.remove_style,
        )
    except MonolithError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(svg.embed())
    return 0


if __name__ == "__main__":
    sys.exit(main())
