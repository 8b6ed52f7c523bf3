"""Model declarations: attributes, associations, validations and accessors.

Usage:
    from attribute_declarations.declarations import Model, attribute, timestamps
"""

from attribute_declarations.declarations.base import (
    Model,
    attribute,
    belongs_to,
    get_model,
    load_all_models,
    register_model,
    registered_models,
    timestamps,
)
from attribute_declarations.declarations.models import (
    ATTRIBUTE_TYPES,
    AttributeDeclaration,
    BelongsToDeclaration,
)
from attribute_declarations.declarations.validations import ValidationErrors, validators_for

__all__ = [
    "Model",
    "attribute",
    "belongs_to",
    "timestamps",
    "get_model",
    "load_all_models",
    "register_model",
    "registered_models",
    "ATTRIBUTE_TYPES",
    "AttributeDeclaration",
    "BelongsToDeclaration",
    "ValidationErrors",
    "validators_for",
]
