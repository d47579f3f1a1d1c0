from __future__ import annotations

import argparse
import asyncio
import subprocess
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .core.config import get_settings
from .core.errors import MediaError
from .media.formats import Variant, infer_format
from .media.generator import backend_for, default_generator
from .media.video import VideoBackend
from .workers.sweeper import RetentionSweeper

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "check", False):
        _run_environment_check()
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="mediakit developer CLI")
    parser.add_argument("--check", action="store_true", help="Validate presence of the ffmpeg dependency")

    subparsers = parser.add_subparsers(dest="command")

    detect_parser = subparsers.add_parser("detect", help="Sniff the media format of a file")
    detect_parser.add_argument("--file", required=True, help="Path to the source media file")
    detect_parser.set_defaults(func=_cmd_detect)

    render_parser = subparsers.add_parser("render", help="Generate a variant locally and write it to disk")
    render_parser.add_argument("--file", required=True, help="Path to the source media file")
    render_parser.add_argument(
        "--variant",
        choices=[variant.value for variant in Variant],
        default=Variant.thumbnail.value,
        help="Target variant (default thumbnail).",
    )
    render_parser.add_argument("--out", required=True, help="Directory the derived file is written to")
    render_parser.set_defaults(func=_cmd_render)

    sweep_parser = subparsers.add_parser("sweep", help="Run one retention pass over the scratch directory")
    sweep_parser.add_argument("--stale-seconds", type=int, default=None, help="Override the staleness threshold.")
    sweep_parser.add_argument("--scratch-dir", default=None, help="Override the scratch directory.")
    sweep_parser.set_defaults(func=_cmd_sweep)
    return parser


def _read_source(path_arg: str) -> tuple[Path, bytes]:
    media_path = Path(path_arg).expanduser().resolve()
    if not media_path.exists():
        console.print(f"[red]File not found: {media_path}[/]")
        sys.exit(2)
    return media_path, media_path.read_bytes()


def _cmd_detect(args: argparse.Namespace) -> None:
    media_path, data = _read_source(args.file)
    try:
        fmt = infer_format(data)
    except MediaError as exc:
        console.print(f"[red]{type(exc).__name__}:[/] {exc}")
        sys.exit(3)
    console.print_json(
        data={
            "file": str(media_path),
            "format": fmt.value,
            "content_type": fmt.content_type,
            "extension": fmt.extension,
            "backend": backend_for(fmt),
        }
    )


def _cmd_render(args: argparse.Namespace) -> None:
    """Run the variant generator against a local file.

    Args:
        args: The command-line arguments.
    """
    media_path, data = _read_source(args.file)
    settings = get_settings()
    variant = Variant(args.variant)
    out_dir = Path(args.out).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)

    generator = default_generator(VideoBackend(settings.scratch_dir))
    try:
        input_format = infer_format(data)
        derived, output_format = asyncio.run(generator.generate(data, variant, input_format))
    except MediaError as exc:
        console.print(f"[red]{type(exc).__name__}:[/] {exc}")
        sys.exit(3)

    target = out_dir / f"{media_path.stem}.{variant.value}.{output_format.extension}"
    target.write_bytes(derived)
    console.print(f"[green]{input_format.value} -> {output_format.value} written to {target}[/]")


def _cmd_sweep(args: argparse.Namespace) -> None:
    settings = get_settings()
    scratch_dir = Path(args.scratch_dir) if args.scratch_dir else settings.scratch_dir
    stale_seconds = args.stale_seconds if args.stale_seconds is not None else settings.sweep_stale_seconds
    sweeper = RetentionSweeper(VideoBackend(scratch_dir), stale_seconds=stale_seconds)
    removed = asyncio.run(sweeper.run_once())
    if removed is None:
        console.print(f"[red]Sweep of {scratch_dir} failed, see logs.[/]")
        sys.exit(1)
    console.print(f"[green]Removed {removed} stale file(s) from {scratch_dir}[/]")


def _run_environment_check() -> None:
    """Check for the presence of required external dependencies."""
    checks = {
        "ffmpeg": ["ffmpeg", "-version"],
    }
    results = {}
    for label, cmd in checks.items():
        try:
            subprocess.run(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
            results[label] = True
        except (OSError, subprocess.CalledProcessError):
            results[label] = False

    console.rule("[bold]Environment Check")
    for label, ok in results.items():
        console.print(f"[bold]{label}[/]: {'✅' if ok else '❌'}")

    if not all(results.values()):
        console.print("[red]Missing dependencies detected. Install ffmpeg with libx264 support.[/]")
        sys.exit(1)
    console.print("[green]Environment looks good![/]")


if __name__ == "__main__":
    main()
