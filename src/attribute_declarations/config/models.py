"""Pydantic models for attribute-declarations configuration."""

from pydantic import BaseModel, Field


# ============================================================================
# Configuration Models
# ============================================================================


class AttributeDeclarationsConfig(BaseModel):
    """Complete configuration from attribute_declarations.toml."""

    database_url: str | None = None
    models: list[str] = Field(default_factory=list)  # Modules/packages holding models
    versions_dir: str = "migrations/versions"
    render_as_batch: bool = False  # Needed for SQLite ALTER support
