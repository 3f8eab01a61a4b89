"""Main entry point for the relay CLI."""

import sys
from typing import List, Optional

from rich.console import Console

from relay_cli.cli.args import parse_args
from relay_cli.cli.commands import get_handler
from relay_cli.context import build_context
from relay_cli.exceptions import RelayError
from relay_cli.services.display_service import DisplayService
from relay_cli.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    debug = getattr(parsed_args, "debug", False)
    setup_logging(verbose=getattr(parsed_args, "verbose", False), debug=debug)

    if not parsed_args.command:
        parsed_args.parser.print_help()
        return 0

    ctx = None
    try:
        if debug:
            console.print("[yellow]Debug mode enabled[/yellow]")

        ctx = build_context(console=console, assume_yes=getattr(parsed_args, "yes", False))
        handler = get_handler(parsed_args)
        logger.debug(f"Running {handler.__name__}")
        return handler(parsed_args, ctx)
    except RelayError as e:
        DisplayService(console).display_error(e)
        if debug:
            console.print_exception()
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if debug:
            console.print_exception()
        return 1
    finally:
        if ctx is not None:
            ctx.close()


if __name__ == "__main__":
    sys.exit(main())
