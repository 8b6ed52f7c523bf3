"""TOML configuration loading for attribute-declarations."""

import os
import tomllib
from pathlib import Path

from pydantic import ValidationError

from attribute_declarations.config.models import AttributeDeclarationsConfig

CONFIG_FILE_NAME = "attribute_declarations.toml"


def load_config(config_path: Path | None = None) -> AttributeDeclarationsConfig:
    """Load configuration from a TOML file.

    ``DATABASE_URL`` in the environment overrides ``database_url``.

    Args:
        config_path: Path to the config file
            (default: attribute_declarations.toml in the current directory)

    Returns:
        AttributeDeclarationsConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILE_NAME
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config not found: {config_path}\n"
            f"Create {CONFIG_FILE_NAME} with database_url and models."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path.name}: {e}") from e

    env_url = os.environ.get("DATABASE_URL")
    if env_url:
        data["database_url"] = env_url

    try:
        return AttributeDeclarationsConfig(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid config in {config_path.name}: {e}") from e
