"""Prepare the local OSS environment before using an LM Studio model.

- Ensures a local LM Studio server is reachable.
- Checks whether the model exists locally and downloads it with `lms` if missing.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from lmstudio_oss.core.client import LMStudioClient
from lmstudio_oss.core.config import DEFAULT_OSS_MODEL, OssConfig
from lmstudio_oss.core.errors import LMStudioError, SubprocessFailureError
from lmstudio_oss.core.lms_binary import locate_lms_binary
from lmstudio_oss.utils.log import get_logger

logger = get_logger()


class ReadinessStatus(str, Enum):
    PRESENT = "present"
    DOWNLOADED = "downloaded"
    # Listing failed; the model may or may not be available.
    UNVERIFIED = "unverified"


@dataclass
class ReadinessReport:
    model: str
    status: ReadinessStatus
    warning: Optional[str] = None


@dataclass
class ModelListing:
    """Outcome of the listing step: either models, or an advisory failure."""

    models: List[str] = field(default_factory=list)
    advisory_error: Optional[LMStudioError] = None

    @property
    def ok(self) -> bool:
        return self.advisory_error is None

    def contains(self, model: str) -> bool:
        return model in self.models


async def fetch_model_listing(client: LMStudioClient) -> ModelListing:
    """List models, turning any client error into an advisory result."""
    try:
        return ModelListing(models=await client.list_models())
    except LMStudioError as e:
        return ModelListing(advisory_error=e)


def lms_get_args(model: str) -> List[str]:
    return ["get", "--yes", model]


async def download_model(binary: str, model: str) -> None:
    """Run `lms get --yes <model>` with the user's terminal attached.

    No timeout is applied; a hung download blocks the caller.

    Raises:
        SubprocessFailureError: Spawning failed or the process exited non-zero.
    """
    argv: Sequence[str] = [binary, *lms_get_args(model)]
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        raise SubprocessFailureError(
            f"Failed to execute '{binary} get --yes {model}': {e}"
        ) from e

    exit_code = await process.wait()
    if exit_code != 0:
        raise SubprocessFailureError(
            f"lms command failed with status: {exit_code}",
            exit_code=exit_code,
        )


async def ensure_oss_ready(
    config: OssConfig,
    *,
    home_dir: Optional[Path] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ReadinessReport:
    """Make sure the configured model is available on the local LM Studio server.

    Fatal problems (missing configuration, unreachable server, no `lms`
    binary, failed download) raise ``LMStudioError`` subclasses. A failure
    to list models is only logged; higher layers will surface their own
    errors later if the model is really unusable.
    """
    model = config.model or DEFAULT_OSS_MODEL

    async with await LMStudioClient.try_from_provider(config, transport=transport) as client:
        listing = await fetch_model_listing(client)

    if not listing.ok:
        warning = f"Failed to query local models from LM Studio: {listing.advisory_error}."
        logger.warning(
            "[readiness] %s",
            warning,
            extra={"model": model, "error_code": listing.advisory_error.error_code},
        )
        return ReadinessReport(model=model, status=ReadinessStatus.UNVERIFIED, warning=warning)

    if listing.contains(model):
        logger.debug("[readiness] Model already available", extra={"model": model})
        return ReadinessReport(model=model, status=ReadinessStatus.PRESENT)

    binary = locate_lms_binary(home_dir)
    logger.info("[readiness] Downloading model: %s", model, extra={"binary": binary})
    await download_model(binary, model)
    logger.info("[readiness] Successfully downloaded model '%s'", model)
    return ReadinessReport(model=model, status=ReadinessStatus.DOWNLOADED)
