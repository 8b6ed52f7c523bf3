"""attribute-declarations: inline attribute declarations for models.

Models declare their attributes (type, storage, accessor and validation
options) in the class body. The declarations drive validation and accessor
behavior, and are compared with the live database schema to generate
Alembic migrations for whatever differs.

Usage:
    from attribute_declarations import Model, attribute, belongs_to, timestamps
    from attribute_declarations import SchemaReflector, compare_model
    from attribute_declarations import check_models, generate_migrations
"""

__version__ = "0.1.0"

# Declarations
from attribute_declarations.declarations.base import (
    Model,
    attribute,
    belongs_to,
    get_model,
    load_all_models,
    registered_models,
    timestamps,
)
from attribute_declarations.declarations.validations import ValidationErrors

# Config
from attribute_declarations.config.loader import load_config
from attribute_declarations.config.models import AttributeDeclarationsConfig

# Schema
from attribute_declarations.schema.comparator import compare_model, schema_matches
from attribute_declarations.schema.models import MigrationPlan
from attribute_declarations.schema.reflector import SchemaReflector

# Migrations
from attribute_declarations.migrations.generator import check_models, generate_migrations
from attribute_declarations.migrations.render import render_migration

# Errors
from attribute_declarations.errors import (
    AttributeDeclarationError,
    InvalidAttributeType,
    ModelNotFoundError,
    MultipleHeadsError,
    ReadOnlyAttributeError,
    RecordInvalid,
    SerializationTypeMismatch,
    UnknownAttributeOption,
)

__all__ = [
    # Declarations
    "Model",
    "attribute",
    "belongs_to",
    "timestamps",
    "get_model",
    "load_all_models",
    "registered_models",
    "ValidationErrors",
    # Config
    "load_config",
    "AttributeDeclarationsConfig",
    # Schema
    "SchemaReflector",
    "compare_model",
    "schema_matches",
    "MigrationPlan",
    # Migrations
    "check_models",
    "generate_migrations",
    "render_migration",
    # Errors
    "AttributeDeclarationError",
    "InvalidAttributeType",
    "UnknownAttributeOption",
    "ReadOnlyAttributeError",
    "SerializationTypeMismatch",
    "RecordInvalid",
    "ModelNotFoundError",
    "MultipleHeadsError",
]
