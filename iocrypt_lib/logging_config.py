from __future__ import annotations
import logging
from pathlib import Path
import yaml
from typing import Optional


def configure_logging(config_path: Optional[Path] = None, default_level: int = logging.WARNING) -> logging.Logger:
    """Configure root logging for applications embedding iocrypt_lib.

    The level is read from an optional `log_level` key in the YAML settings
    file; anything unreadable falls back to `default_level`. Returns the
    module logger for the caller.
    """
    level = default_level

    cfg_path = config_path or Path('data/config/iocrypt.yml')
    if cfg_path.exists():
        try:
            with cfg_path.open('r', encoding='utf-8') as _f:
                _cfg = yaml.safe_load(_f) or {}
                _lvl = _cfg.get('log_level')
                if _lvl:
                    level = getattr(logging, str(_lvl).upper())
        except Exception:
            # If config parse fails, fall back to default level
            level = default_level

    # Reconfigure root handlers to use the selected level and format
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logger = logging.getLogger(__name__)

    # Third party crypto/XML libraries stay quiet by default
    logging.getLogger('cryptography').setLevel(logging.WARNING)
    logging.getLogger('lxml').setLevel(logging.WARNING)
    logger.info("Log level set to: %s", logging.getLevelName(level))

    return logger
