import logging
from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("data/config/iocrypt.yml")


class Settings(BaseModel):
    """Instance defaults for the renderer and the cipher helper."""

    compression_level: int = Field(default=5, ge=0, le=9)
    xml_simple: bool = False
    cdata: bool = False
    xml_unserializer: bool = False
    soap_xml: bool = False
    cipher: str = "aes-256-cbc"
    key_method: Literal["sha1", "md5", "plain"] = "sha1"
    legacy_over_modern: bool = False
    log_level: Optional[str] = None


def load_yaml_file(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Load `Settings` from a YAML file; a missing file gives the defaults.

    A file that does not parse or validate raises ValueError.
    """
    cfg_path = Path(path) if path is not None else CONFIG_PATH
    try:
        data = load_yaml_file(cfg_path)
    except yaml.YAMLError as e:
        raise ValueError(f"invalid settings file {cfg_path}: parse error") from e
    if not isinstance(data, dict):
        raise ValueError(f"invalid settings file {cfg_path}: expected mapping")
    try:
        settings = Settings(**data)
    except ValidationError as e:
        raise ValueError(f"invalid settings file {cfg_path}: {e}") from e
    logger.debug("Loaded settings from %s: %s", cfg_path, settings)
    return settings
