from __future__ import annotations

import subprocess

from fastapi import APIRouter

from mediakit.api.deps import AuthDependency

from .schemas import EnvCheckResponse


router = APIRouter(prefix="/admin", tags=["admin"])


def _probe_binary(command: list[str]) -> bool:
    try:
        subprocess.run(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
        return True
    except (OSError, subprocess.CalledProcessError):
        return False


@router.get("/env-check", response_model=EnvCheckResponse, summary="Validate ffmpeg toolchain")
async def env_check(_: AuthDependency) -> EnvCheckResponse:
    return EnvCheckResponse(ffmpeg=_probe_binary(["ffmpeg", "-version"]))


__all__ = ["router"]
