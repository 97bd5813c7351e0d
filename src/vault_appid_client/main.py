"""CLI entry point: load settings, log in with App-ID and run one secret operation."""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys
from typing import Any

from rich.console import Console
from rich.markup import escape

from vault_appid_client.config import load_settings
from vault_appid_client.errors import VaultClientError
from vault_appid_client.vault.secrets import SecretStoreClient

logger = logging.getLogger(__name__)
console = Console()
err_console = Console(stderr=True)


def _parse_pairs(pairs: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` arguments into a mapping.  Values that parse as JSON are decoded."""
    data: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected key=value, got {pair!r}")
        try:
            data[key] = json.loads(value)
        except json.JSONDecodeError:
            data[key] = value
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault-appid-client",
        description="Read and write Vault secrets using App-ID authentication",
    )
    parser.add_argument(
        "--config",
        default=str(pathlib.Path.cwd() / "settings.yaml"),
        help="Path to settings.yaml",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("list", "List secrets under a path"),
        ("read", "Read a secret"),
        ("delete", "Delete a secret"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("path", help="Path relative to the configured secrets_path")
    write = sub.add_parser("write", help="Write a secret")
    write.add_argument("path", help="Path relative to the configured secrets_path")
    write.add_argument("pairs", nargs="+", metavar="key=value", help="Secret fields to write")
    return parser


def run(args: argparse.Namespace) -> int:
    try:
        data = _parse_pairs(args.pairs) if args.command == "write" else None
    except argparse.ArgumentTypeError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        return 2

    try:
        config, credentials = load_settings(args.config)
        with SecretStoreClient(config, credentials) as client:
            if args.command == "list":
                console.print_json(data=client.list(args.path))
            elif args.command == "read":
                console.print_json(data=client.read(args.path))
            elif args.command == "write":
                client.write(args.path, data)
                console.print(f"[green]Wrote[/green] {config.secret_path(args.path)}")
            else:
                client.delete(args.path)
                console.print(f"[green]Deleted[/green] {config.secret_path(args.path)}")
    except VaultClientError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        err_console.print(f"[red]{type(exc).__name__}:[/red] {escape(str(exc))}")
        return 1
    return 0


def main() -> None:
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    sys.exit(run(args))


if __name__ == "__main__":
    main()
