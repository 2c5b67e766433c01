"""
retail_config -- single public entrypoint for retail kernel settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``. YAML loading is internal to this package.

Architecture position:
    Configuration -- sits above ``retail_kernel`` and below
    ``retail_services``. The kernel MUST NEVER import from
    ``retail_config``; ``retail_config.bridges`` translates settings into
    kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the settings file does not exist.
    - ``KeyError`` / ``ValueError`` -- schema or structural validation
      failures.

Audit relevance:
    Every successful ``get_active_settings()`` call emits a
    ``settings_loaded`` log entry with the settings id, version and
    checksum, tying generated codes and credit decisions back to the exact
    settings that governed them.
"""

from __future__ import annotations

import os
from pathlib import Path

from retail_config.loader import load_yaml_file, parse_settings
from retail_config.schema import RetailSettings
from retail_kernel.logging_config import get_logger

_logger = get_logger("config")

# Packaged defaults
DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"

# Environment variable naming an alternative settings file
SETTINGS_PATH_ENV = "RETAIL_KERNEL_CONFIG"


def get_active_settings(path: Path | str | None = None) -> RetailSettings:
    """The ONLY public settings entrypoint.

    Resolution order: explicit ``path``, then ``$RETAIL_KERNEL_CONFIG``,
    then the packaged ``defaults.yaml``.

    Returns:
        Frozen RetailSettings with its checksum populated.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        KeyError, ValueError: If the document fails validation.
    """
    resolved = Path(path or os.environ.get(SETTINGS_PATH_ENV) or DEFAULT_SETTINGS_PATH)
    settings = parse_settings(load_yaml_file(resolved))

    _logger.info(
        "settings_loaded",
        extra={
            "settings_id": settings.settings_id,
            "settings_version": settings.version,
            "checksum": settings.checksum,
            "source_path": str(resolved),
            "store_name": settings.store.name,
            "currency": settings.store.currency,
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "SETTINGS_PATH_ENV",
    "RetailSettings",
    "get_active_settings",
]
