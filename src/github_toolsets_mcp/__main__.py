#!/usr/bin/env python3
"""github-toolsets-mcp MCP Server entry point.

Run:
  python -m github_toolsets_mcp                          # start server (stdio)
  python -m github_toolsets_mcp --toolsets repos,issues  # enable selected toolsets only
  python -m github_toolsets_mcp --read-only              # hide every write tool
  python -m github_toolsets_mcp --dynamic-toolsets       # let the agent enable toolsets itself
  python -m github_toolsets_mcp --test                   # run lightweight self-tests then exit
"""

import argparse
import asyncio
import sys

from github_toolsets_mcp.config import parse_toolsets
from github_toolsets_mcp.server import run_server, test_server


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(prog="github_toolsets_mcp", add_help=True)
    parser.add_argument(
        "--toolsets",
        default=None,
        help="Comma separated toolsets to enable (default: GITHUB_TOOLSETS or 'all').",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only expose read tools.",
    )
    parser.add_argument(
        "--dynamic-toolsets",
        action="store_true",
        help="Register the toolset discovery tools and start with only the named toolsets enabled.",
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help="Run built-in server self tests (tool & resource template listing) then exit.",
    )
    return parser.parse_args(argv)


def main() -> None:
    """CLI dispatcher for the MCP server."""
    args = parse_args(sys.argv[1:])
    try:
        if args.test:
            asyncio.run(test_server())
        else:
            asyncio.run(
                run_server(
                    toolsets=parse_toolsets(args.toolsets) if args.toolsets is not None else None,
                    read_only=args.read_only,
                    dynamic_toolsets=args.dynamic_toolsets,
                )
            )
    except KeyboardInterrupt:
        print("\nServer stopped by user", file=sys.stderr)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        print(f"Server error: {exc}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
