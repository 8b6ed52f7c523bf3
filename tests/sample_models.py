"""Models imported by the CLI and loader tests through ``load_all_models``."""

from attribute_declarations import Model, attribute, belongs_to, timestamps


class Publisher(Model):
    name = attribute("string", limit=100, null=False)


class Author(Model):
    name = attribute("string", required=True)
    email = attribute("string", unique=True)
    publisher = belongs_to()
    created_at, updated_at = timestamps()


class Draft(Model):
    __abstract__ = True

    body = attribute("text")
