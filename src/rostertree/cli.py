"""
rostertree.cli - Command-line interface.

Main entry point for the rostertree CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rostertree import __version__
from rostertree.commands import example, search, serve, show, validate


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rostertree",
        description="Editable organizational trees (conferences, divisions, teams)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rostertree example > league.json     # Write the sample league
  rostertree show league.json          # Print an outline
  rostertree show league.json --json   # Print the tree as JSON
  rostertree search league.json hawk   # Find nodes by name
  rostertree validate league.json      # Check structural invariants
  rostertree serve league.json         # Start the REST API

Configuration:
  .rostertree.toml is searched for upward from the current directory.
  ROSTERTREE_<SECTION>_<KEY> environment variables override it.

For detailed command help: rostertree <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"rostertree {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # show command
    show_parser = subparsers.add_parser("show", help="Print a tree as an outline or JSON")
    show_parser.add_argument(
        "file", nargs="?", type=Path, help="Tree JSON file (default: sample league)"
    )
    show_parser.add_argument("--node", help="Only show the subtree under this id", metavar="ID")
    show_parser.add_argument("--ids", action="store_true", help="Show node ids")
    show_parser.add_argument("-j", "--json", action="store_true", help="Output JSON")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Check a tree file against the structural invariants"
    )
    validate_parser.add_argument("file", type=Path, help="Tree JSON file")
    validate_parser.add_argument("-j", "--json", action="store_true", help="Output JSON")

    # search command
    search_parser = subparsers.add_parser("search", help="Search node names")
    search_parser.add_argument("file", type=Path, help="Tree JSON file")
    search_parser.add_argument("query", help="Case-insensitive substring")
    search_parser.add_argument("-j", "--json", action="store_true", help="Output JSON")

    # example command
    example_parser = subparsers.add_parser("example", help="Print the sample league tree")
    example_parser.add_argument(
        "--outline", action="store_true", help="Print an outline instead of JSON"
    )

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the REST API server")
    serve_parser.add_argument(
        "file", nargs="?", type=Path, help="Tree JSON file (default: sample league)"
    )
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send library log records to stderr at a level chosen by the flags."""
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install rostertree[completion]
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "show":
            return show.run(args)
        elif args.command == "validate":
            return validate.run(args)
        elif args.command == "search":
            return search.run(args)
        elif args.command == "example":
            return example.run(args)
        elif args.command == "serve":
            return serve.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
