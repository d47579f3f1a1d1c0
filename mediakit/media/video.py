from __future__ import annotations

import asyncio
import subprocess
import time
from pathlib import Path
from typing import List, Tuple
from uuid import uuid4

from mediakit.core.errors import SweepIOFailed, TranscodeProcessFailed, TranscodeSpawnFailed
from mediakit.core.logging import get_logger

from .formats import Format, Variant

SCRATCH_DIR = Path("/tmp/mediakit")

VIDEO_FORMATS = frozenset({Format.gif, Format.mp4})

logger = get_logger(component="video_backend")


def build_transcode_command(input_path: Path, output_path: Path) -> List[str]:
    """Return the ffmpeg invocation used for every clip; the argument set is fixed."""
    return [
        "ffmpeg",
        "-i",
        str(input_path),
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
        "-an",
        "-r",
        "16",
        "-crf",
        "23",
        "-preset",
        "slow",
        "-c:v",
        "libx264",
        "-movflags",
        "+faststart",
        # yuv420p is required for Safari and Firefox playback.
        "-pix_fmt",
        "yuv420p",
        str(output_path),
    ]


class VideoBackend:
    """Transcode GIF/MP4 input to a silent, web-friendly MP4 through ffmpeg.

    Input and output files are written to the scratch directory under random names
    and are left in place; :meth:`clean` reclaims them once they go stale.
    """

    def __init__(self, scratch_dir: Path = SCRATCH_DIR) -> None:
        self.scratch_dir = Path(scratch_dir)

    async def generate(self, data: bytes, variant: Variant, input_format: Format) -> Tuple[bytes, Format]:
        # The variant does not influence the transcode parameters yet.
        return await asyncio.to_thread(self._transcode, data, input_format)

    async def clean(self, stale_seconds: float, *, now: float | None = None) -> int:
        return await asyncio.to_thread(self._remove_stale, stale_seconds, now)

    def scratch_path(self, fmt: Format) -> Path:
        return self.scratch_dir / f"{uuid4()}.{fmt.extension}"

    def _transcode(self, data: bytes, input_format: Format) -> Tuple[bytes, Format]:
        input_path = self.scratch_path(input_format)
        output_path = self.scratch_path(Format.mp4)
        try:
            self.scratch_dir.mkdir(parents=True, exist_ok=True)
            input_path.write_bytes(data)
        except OSError as exc:
            raise TranscodeSpawnFailed(f"could not write scratch input {input_path}: {exc}") from exc

        command = build_transcode_command(input_path, output_path)
        logger.debug("transcode_started", input=str(input_path), output=str(output_path))
        try:
            proc = subprocess.run(command, check=False, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except OSError as exc:
            raise TranscodeSpawnFailed(f"could not spawn video process: {exc}") from exc

        if proc.returncode != 0:
            logger.warning("transcode_failed", status=proc.returncode, stderr=proc.stderr)
            raise TranscodeProcessFailed(proc.returncode, proc.stderr)

        try:
            return output_path.read_bytes(), Format.mp4
        except OSError as exc:
            raise TranscodeProcessFailed(proc.returncode, f"could not read output {output_path}: {exc}") from exc

    def _remove_stale(self, stale_seconds: float, now: float | None) -> int:
        reference = time.time() if now is None else now
        if not self.scratch_dir.exists():
            return 0

        removed = 0
        try:
            entries = list(self.scratch_dir.iterdir())
        except OSError as exc:
            raise SweepIOFailed(f"could not read directory {self.scratch_dir}: {exc}") from exc

        for entry in entries:
            try:
                stat = entry.stat()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise SweepIOFailed(f"could not read metadata for {entry}: {exc}") from exc
            if not entry.is_file():
                continue
            if reference - stat.st_mtime > stale_seconds:
                try:
                    entry.unlink(missing_ok=True)
                except OSError as exc:
                    raise SweepIOFailed(f"could not remove file {entry}: {exc}") from exc
                removed += 1
        return removed


__all__ = ["SCRATCH_DIR", "VIDEO_FORMATS", "VideoBackend", "build_transcode_command"]
