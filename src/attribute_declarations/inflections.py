"""Name inflections used for table, class and file names."""

import re


def underscore(name: str) -> str:
    """``PersonAddress`` -> ``person_address``; ``HTTPLog`` -> ``http_log``."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()


def camelize(name: str) -> str:
    """``person_addresses`` -> ``PersonAddresses``."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def tableize(class_name: str) -> str:
    """Default table name for a model class (underscored, with an ``s``)."""
    return underscore(class_name) + "s"
