"""Configuration loader from YAML."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .schema import Config

logger = logging.getLogger("stakeledger.config.loader")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_config(yaml_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Load ledger configuration from a YAML file.

    Sections missing from the file fall back to the schema defaults, so a
    file holding only ``simulation: {steps: 20}`` is valid.

    Args:
        yaml_path: Path to YAML file (defaults to the packaged defaults.yaml)

    Returns:
        Validated Config
    """
    path = Path(yaml_path) if yaml_path is not None else DEFAULTS_PATH

    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    config = Config.from_dict(data)
    logger.debug(f"Loaded config {config.compute_hash()} from {path}")
    return config


def config_from_dict(data: Dict[str, Any]) -> Config:
    """
    Create ledger config from a dictionary.

    Args:
        data: Nested settings keyed by ``pool`` / ``simulation`` / ``log_level``

    Returns:
        Validated Config
    """
    return Config.from_dict(data)
