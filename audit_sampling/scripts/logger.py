"""Logging configuration for the audit sampling engine.

The engine only creates loggers under ``audit_sampling``; handlers are the
host application's business. Call ``setup_logging`` once at start-up to load
a TOML file in ``logging.config.dictConfig`` schema, from an explicit path,
the AUDIT_SAMPLING_LOG_CFG environment variable, or the sample
``logging_config.toml`` at the repo root.
"""

import logging
import logging.config
import os
from pathlib import Path
from typing import Optional, Union

import tomli

LOG_CFG_ENV = "AUDIT_SAMPLING_LOG_CFG"
DEFAULT_LOG_CFG = Path(__file__).parent.parent.parent / "logging_config.toml"


def _silence_engine_logger() -> None:
    engine_logger = logging.getLogger("audit_sampling")
    for handler in engine_logger.handlers[:]:
        engine_logger.removeHandler(handler)
    engine_logger.addHandler(logging.NullHandler())


def setup_logging(cfg_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Configure engine logging from a TOML file.

    Args:
        cfg_path: Config file; falls back to AUDIT_SAMPLING_LOG_CFG, then to
            the repo's ``logging_config.toml``

    Returns:
        The file that was applied, or None when no file exists and the
        engine logger was given a NullHandler

    Raises:
        FileNotFoundError: If the path exists but is not a file
    """
    path = Path(cfg_path or os.getenv(LOG_CFG_ENV) or DEFAULT_LOG_CFG)

    if not path.exists():
        _silence_engine_logger()
        return None

    if not path.is_file():
        raise FileNotFoundError(f"Logging config not found at {path}")

    with path.open("rb") as f:
        cfg = tomli.load(f)

    logging.config.dictConfig(cfg)
    logging.getLogger("audit_sampling.config").debug(f"Logging configured from {path}")
    return path
