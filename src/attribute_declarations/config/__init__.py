"""Configuration: TOML loading and config models.

Usage:
    >>> from attribute_declarations.config import load_config, AttributeDeclarationsConfig
"""

from attribute_declarations.config.loader import load_config
from attribute_declarations.config.models import AttributeDeclarationsConfig

__all__ = ["load_config", "AttributeDeclarationsConfig"]
