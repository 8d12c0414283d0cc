"""yabaictl - a yabai wrapper for better multi-display support (CLI)."""

import argparse
import asyncio
import sys
from typing import Any

import shtab

from . import ipc
from .config import load_config
from .constants import DEFAULT_TIMEOUT, IPC_MAX_RETRIES
from .dispatcher import Dispatcher, get_commands_help
from .logging_setup import get_logger, init_logger
from .models import Direction, ExitCode, SpaceArg, SpaceKeyword, YabaictlError
from .version import VERSION

__all__ = ["get_parser", "main", "parse_direction", "parse_space_arg", "run_command"]


def parse_direction(text: str) -> Direction:
    """Argument type for directions, case insensitive."""
    try:
        return Direction(text.lower())
    except ValueError as e:
        msg = f"invalid direction: {text!r} (choose from {', '.join(Direction)})"
        raise argparse.ArgumentTypeError(msg) from e


def parse_space_arg(text: str) -> SpaceArg:
    """Argument type for `focus-space`: a keyword or a positive space number."""
    try:
        return SpaceKeyword(text.lower())
    except ValueError:
        pass
    if text.isdigit() and int(text) > 0:
        return int(text)
    msg = f"invalid space: {text!r} (use {', '.join(SpaceKeyword)} or a positive number)"
    raise argparse.ArgumentTypeError(msg)


_DIRECTION = {"type": parse_direction, "choices": list(Direction), "metavar": "|".join(Direction)}

# positional arguments of the dispatcher commands, in call order
COMMAND_ARGUMENTS: dict[str, list[tuple[str, dict[str, Any]]]] = {
    "focus-space": [("space", {"type": parse_space_arg, "metavar": "next|prev|recent|extra|N"})],
    "focus-window": [("direction", _DIRECTION)],
    "swap-window": [("direction", _DIRECTION)],
    "warp-window": [("direction", _DIRECTION)],
}


def get_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(prog="yabaictl", description="A yabai wrapper for better multi-display support.", allow_abbrev=False)
    parser.add_argument(
        "--debug",
        help="Enable debug mode and log to a file",
        metavar="filename",
    ).complete = shtab.FILE  # type: ignore[attr-defined]
    parser.add_argument(
        "--config",
        help="Use a different configuration file",
        metavar="filename",
    ).complete = shtab.FILE  # type: ignore[attr-defined]

    subparsers = parser.add_subparsers(dest="command", metavar="command", required=True)
    for name, doc in sorted(get_commands_help().items()):
        summary = doc.split("\n", 1)[0]
        if summary.startswith("<"):
            summary = summary.split("> ", 1)[-1]
        cmd = subparsers.add_parser(name, help=summary, description=summary)
        for arg_name, options in COMMAND_ARGUMENTS.get(name, []):
            cmd.add_argument(arg_name, **options)

    subparsers.add_parser("version", help="Show the version.")
    completions = subparsers.add_parser("completions", help="Print a shell completion script.")
    completions.add_argument("shell", choices=shtab.SUPPORTED_SHELLS)
    return parser


async def run_command(args: argparse.Namespace) -> str | None:
    """Run a dispatcher command, returning what it prints."""
    config = await load_config(get_logger("config"), args.config or "")
    ipc.init(
        socket_path=config.get_str("socket_path"),
        timeout=config.get_float("timeout", DEFAULT_TIMEOUT),
        retries=config.get_int("query_retries", IPC_MAX_RETRIES),
    )
    dispatcher = Dispatcher(config)
    handler = getattr(dispatcher, f"run_{args.command.replace('-', '_')}")
    params = [getattr(args, arg_name) for arg_name, _ in COMMAND_ARGUMENTS.get(args.command, [])]

    await dispatcher.prepare()
    result: str | None = await handler(*params)
    return result


def main(argv: list[str] | None = None) -> None:
    """Run the command."""
    parser = get_parser()
    # exits with USAGE_ERROR before any message is sent to yabai
    args = parser.parse_args(argv)

    init_logger(filename=args.debug, force_debug=bool(args.debug))
    log = get_logger("startup")

    if args.command == "version":
        print(VERSION)
        sys.exit(ExitCode.SUCCESS)
    if args.command == "completions":
        print(shtab.complete(parser, shell=args.shell))
        sys.exit(ExitCode.SUCCESS)

    try:
        output = asyncio.run(run_command(args))
    except KeyboardInterrupt:
        sys.exit(ExitCode.COMMAND_ERROR)
    except YabaictlError as e:
        log.debug("%s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(e.exit_code)
    except Exception:  # pylint: disable=W0718
        log.critical("Unhandled exception:", exc_info=True)
        sys.exit(ExitCode.COMMAND_ERROR)

    if output:
        print(output)
    sys.exit(ExitCode.SUCCESS)


if __name__ == "__main__":
    main()
