"""Entry point for `python -m nestbox`.

Subcommands:
    nestbox check      Verify the container engine and stop orphaned agents
    nestbox ps         List running agent containers
    nestbox runtime    Print the detected container engine
"""

from __future__ import annotations

import argparse
import sys

from nestbox.runtime.errors import (
    ConfigurationError,
    RuntimeNotFoundError,
    RuntimeUnavailableError,
)

_FATAL = (ConfigurationError, RuntimeNotFoundError, RuntimeUnavailableError)


def _check() -> None:
    from nestbox.system_checks import ensure_container_system_running

    stopped = ensure_container_system_running()
    print(f"Container system ready ({stopped} orphaned container(s) stopped)")


def _ps() -> None:
    from nestbox.config import get_settings
    from nestbox.runtime import get_runtime

    runtime = get_runtime()
    for container in runtime.list_running_containers(get_settings().container.name_prefix):
        print(f"{container.name}\t{container.status}")


def _runtime() -> None:
    from nestbox.runtime import get_runtime

    runtime = get_runtime()
    print(f"{runtime.name}\t{runtime.cli}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="nestbox",
        description="Container runtime and mailbox host for sandboxed agents",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("check", help="Ensure the container engine is running and clean up orphans")
    sub.add_parser("ps", help="List running agent containers")
    sub.add_parser("runtime", help="Print the detected container engine and its CLI")

    args = parser.parse_args(argv)

    try:
        match args.command:
            case "check":
                _check()
            case "ps":
                _ps()
            case "runtime":
                _runtime()
    except _FATAL as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
