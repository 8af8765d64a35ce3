"""touchrelay command-line interface"""

import argparse
import sys
from typing import NoReturn

from touchrelay import __version__


def arguments_parse(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments

    Args:
        argv: Argument list, defaults to sys.argv.

    Returns:
        Parsed CLI arguments.
    """
    parser = argparse.ArgumentParser(
        prog="touchrelay",
        description="Replay touch events from a local WebSocket as multitouch input",
    )

    parser.add_argument("--version", action="version", version=f"touchrelay {__version__}")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config file (default: search standard locations)",
    )

    parser.add_argument(
        "--endpoint",
        type=str,
        metavar="URL",
        default=None,
        help="WebSocket endpoint (overrides config, e.g., ws://127.0.0.1:8088)",
    )

    parser.add_argument(
        "--display", type=str, default=None, help="X11 display name (overrides config)"
    )

    parser.add_argument(
        "--screen",
        type=str,
        choices=["x11", "static"],
        default=None,
        help="Screen geometry source (overrides config)",
    )

    parser.add_argument(
        "--screen-width",
        type=int,
        default=None,
        help="Screen width in pixels for the static screen source.",
    )

    parser.add_argument(
        "--screen-height",
        type=int,
        default=None,
        help="Screen height in pixels for the static screen source.",
    )

    parser.add_argument(
        "--sink",
        type=str,
        choices=["uinput", "log"],
        default=None,
        help="Touch injection sink; 'log' only logs gestures (overrides config)",
    )

    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging (overrides config)"
    )

    parser.add_argument(
        "--info", action="store_true", help="Enable info logging (overrides config)"
    )

    parser.add_argument(
        "--warning", action="store_true", help="Enable warning logging (overrides config)"
    )

    parser.add_argument(
        "--error", action="store_true", help="Enable error logging (overrides config)"
    )

    parser.add_argument(
        "--critical", action="store_true", help="Enable critical logging (overrides config)"
    )

    return parser.parse_args(argv)


def logLevelOverride_get(args: argparse.Namespace) -> str | None:
    """
    Resolve explicit log level override flags.

    Args:
        args: Parsed CLI args.

    Returns:
        Selected log level or None.
    """
    if args.critical:
        return "CRITICAL"
    if args.error:
        return "ERROR"
    if args.warning:
        return "WARNING"
    if args.info:
        return "INFO"
    if args.debug:
        return "DEBUG"
    return None


def main() -> NoReturn:
    """Main entry point for the touchrelay command"""
    args = arguments_parse()

    log_level_override: str | None = logLevelOverride_get(args)
    if log_level_override is not None:
        setattr(args, "log_level", log_level_override)

    try:
        from touchrelay.client.bootstrap import relay_run

        relay_run(args)
        sys.exit(0)

    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
