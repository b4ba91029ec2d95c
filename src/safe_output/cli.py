"""CLI for safe-output."""

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import questionary
from rich.console import Console

from . import config as cfg
from .config import Scope
from .logging_setup import configure
from .orphans import find_orphans, remove_orphans
from .writer import is_stderr_name, safe_output_writer, write_all

console = Console(stderr=True)


class _NoTTYError(SystemExit):
    def __init__(self, flag: str) -> None:
        super().__init__(f"No TTY detected. Use {flag} to run non-interactively.")


def _is_tty() -> bool:
    return sys.stdin.isatty()


def _require_tty(flag: str) -> None:
    if not _is_tty():
        raise _NoTTYError(flag)


def _confirm(message: str, *, default: bool = False) -> bool:
    _require_tty("--yes")
    result = questionary.confirm(message, default=default).ask()
    if result is None:
        raise SystemExit(1)
    return result


def _resolve_scope(args: argparse.Namespace) -> Scope:
    if getattr(args, "project", False):
        return Scope.PROJECT
    return Scope.GLOBAL


def _resolve_mode(args: argparse.Namespace, settings: dict[str, object]) -> int:
    raw = getattr(args, "mode", None) or settings.get("mode", cfg.DEFAULT_MODE)
    return cfg.parse_mode(raw)


def _resolve_chunk_size(args: argparse.Namespace, settings: dict[str, object]) -> int:
    size = getattr(args, "chunk_size", None)
    if size is None:
        size = settings.get("chunk_size", cfg.DEFAULT_CHUNK_SIZE)
    return cfg.parse_chunk_size(size)


def cmd_write(args: argparse.Namespace, settings: dict[str, object]) -> int:
    try:
        mode = _resolve_mode(args, settings)
        chunk_size = _resolve_chunk_size(args, settings)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 2

    source = sys.stdin.buffer
    try:
        # An error inside the block abandons the temp file, so a partial
        # payload never replaces the target.
        with safe_output_writer(args.target, mode) as writer:
            while True:
                chunk = source.read(chunk_size)
                if not chunk:
                    break
                write_all(writer, chunk)
    except OSError as e:
        console.print(f"[red]Failed to write {args.target}: {e}[/red]")
        return 1
    return 0


def cmd_clean(args: argparse.Namespace, _settings: dict[str, object]) -> int:
    from rich.table import Table

    directory = Path(args.directory)
    if not directory.is_dir():
        console.print(f"[red]Not a directory: {directory}[/red]")
        return 1

    orphans = find_orphans(directory, target=getattr(args, "target", None))
    if not orphans:
        console.print(f"[green]{directory}: No temporary files found.[/green]")
        return 0

    table = Table(title=f"Temporary files in {directory}")
    table.add_column("File")
    table.add_column("Target")
    table.add_column("Size", justify="right")
    for orphan in orphans:
        target = orphan.target.name if orphan.target_exists else f"[dim]{orphan.target.name} (missing)[/dim]"
        table.add_row(orphan.path.name, target, str(orphan.size))
    console.print(table)

    yes = getattr(args, "yes", False)
    if not yes and not _confirm(f"Delete {len(orphans)} file(s)?"):
        return 1

    removed = remove_orphans(orphans)
    console.print(f"[green]Removed {len(removed)} file(s).[/green]")
    return 0


def cmd_config_show(_args: argparse.Namespace, settings: dict[str, object]) -> int:
    from rich.table import Table

    table = Table(title="safe-output config")
    table.add_column("Key")
    table.add_column("Value")
    for key in cfg.KEYS:
        table.add_row(key, str(settings.get(key, "")))
    console.print(table)
    console.print(f"Global: {cfg.config_path(Scope.GLOBAL)}")
    console.print(f"Project: {cfg.config_path(Scope.PROJECT)}")
    return 0


def cmd_config_set(args: argparse.Namespace, _settings: dict[str, object]) -> int:
    try:
        value = cfg.coerce_value(args.key, args.value)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 2

    scope = _resolve_scope(args)
    data = cfg.load_raw_config(scope)
    data[args.key] = value
    try:
        cfg.save_config(data, scope)
    except OSError as e:
        console.print(f"[red]Failed to save {cfg.config_path(scope)}: {e}[/red]")
        return 1

    console.print(f"[green]Saved.[/green] {args.key} = {value} ({cfg.config_path(scope)})")
    return 0


def cmd_version(_args: argparse.Namespace, _settings: dict[str, object]) -> int:
    try:
        console.print(version("safe-output"))
    except PackageNotFoundError:
        console.print("unknown")
    return 0


def _add_scope_flags(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--global", dest="global_", action="store_true",
                       help="Use global scope (default)")
    group.add_argument("--project", action="store_true",
                       help="Use project scope")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="safe-output",
        description="Atomically replace files with streamed output",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    p_write = sub.add_parser("write", help="Copy stdin to a file atomically")
    p_write.add_argument("target", help="Target path ('-', '' or /dev/stdout for stdout)")
    p_write.add_argument("--mode", help="Permission mode of the target, e.g. 0644")
    p_write.add_argument("--chunk-size", type=int, help="Bytes read from stdin per write")

    p_clean = sub.add_parser("clean", help="Remove temporary files left by failed writes")
    p_clean.add_argument("directory", help="Directory to scan")
    p_clean.add_argument("--target", help="Only files belonging to this target name")
    p_clean.add_argument("--yes", "-y", action="store_true",
                         help="Delete without confirmation")

    p_config = sub.add_parser("config", help="Show or change configuration")
    config_sub = p_config.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Show effective configuration")
    p_set = config_sub.add_parser("set", help="Set a configuration value")
    p_set.add_argument("key", choices=cfg.KEYS)
    p_set.add_argument("value")
    _add_scope_flags(p_set)

    sub.add_parser("version", help="Show version")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(0)

    settings = cfg.load_config()
    payload_on_stderr = args.command == "write" and is_stderr_name(args.target)
    configure(settings, debug=args.debug, payload_on_stderr=payload_on_stderr)

    if args.command == "config":
        config_commands = {
            "show": cmd_config_show,
            "set": cmd_config_set,
        }
        sys.exit(config_commands[args.config_command or "show"](args, settings))

    commands = {
        "write": cmd_write,
        "clean": cmd_clean,
        "version": cmd_version,
    }
    sys.exit(commands[args.command](args, settings))


if __name__ == "__main__":
    main()
