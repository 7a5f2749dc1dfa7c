"""Runtime configuration for diskextract.

Settings are read from the environment once per call to `load_settings`.
Unset or malformed values fall back to the defaults below so a bad
environment never prevents an extraction from running.

Environment variables:
    DISKEXTRACT_BUFFER_SIZE: Default output buffer size in bytes.
    DISKEXTRACT_MAX_WORKERS: Upper bound on concurrent file writes.
    DISKEXTRACT_TEMP_PREFIX: Prefix for the decode pipeline's temp directories.
    DISKEXTRACT_LOG_LEVEL: Logging level name used by the CLI.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1024 * 1024  # 1 MiB
DEFAULT_MAX_WORKERS = min(32, (os.cpu_count() or 1) + 4)
DEFAULT_TEMP_PREFIX = "diskextract"
DEFAULT_LOG_LEVEL = "INFO"

# Chunk size used when copying between streams (decompression, member reads)
COPY_CHUNK_SIZE = 128 * 1024  # 128 KB


@dataclass(frozen=True)
class Settings:
    """Resolved configuration values.

    Attributes:
        buffer_size (int): Output stream buffer size used when a caller passes none.
        max_workers (int): Maximum number of in-flight file writes in the concurrent driver.
        temp_prefix (str): Prefix passed to `tempfile.mkdtemp` by the decode pipeline.
        log_level (str): Logging level name.
    """
    buffer_size: int = DEFAULT_BUFFER_SIZE
    max_workers: int = DEFAULT_MAX_WORKERS
    temp_prefix: str = DEFAULT_TEMP_PREFIX
    log_level: str = DEFAULT_LOG_LEVEL


def _positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s %r; falling back to %d.", key, raw, default)
        return default
    if value < 1:
        logger.warning("%s must be positive, got %d; falling back to %d.", key, value, default)
        return default
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build a `Settings` instance from environment variables.

    Args:
        env (Mapping[str, str] | None): Mapping to read from. Defaults to `os.environ`.

    Returns:
        Settings: The resolved configuration.
    """
    if env is None:
        env = os.environ
    return Settings(
        buffer_size=_positive_int(env, "DISKEXTRACT_BUFFER_SIZE", DEFAULT_BUFFER_SIZE),
        max_workers=_positive_int(env, "DISKEXTRACT_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        temp_prefix=env.get("DISKEXTRACT_TEMP_PREFIX") or DEFAULT_TEMP_PREFIX,
        log_level=(env.get("DISKEXTRACT_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
