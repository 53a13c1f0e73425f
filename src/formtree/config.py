"""
Builder configuration.

Loaded from an optional YAML file, then overridden by FORMTREE_* environment
variables:

    FORMTREE_INITIAL_TEMPLATE   template key, or "" for an empty flat list
    FORMTREE_FORM_NAME
    FORMTREE_SCHEMA_NAME
    FORMTREE_LOG_LEVEL
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

import yaml


@dataclass(frozen=True)
class BuilderConfig:
    """
    Properties:
        initial_template: Template the store starts from (None: empty flat list)
        form_name: Name of the form being built
        schema_name: Name generated validation schemas are exported under
        log_level: Level applied by entry points that configure logging
    """

    initial_template: Optional[str] = "contact_us"
    form_name: str = "draft"
    schema_name: str = "draftFormSchema"
    log_level: str = "WARNING"


ENV_PREFIX = "FORMTREE_"


def load_config(
    path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> BuilderConfig:
    """
    Build a BuilderConfig from a YAML file and the environment.

    Unknown keys in the file are ignored.
    """
    environ = os.environ if environ is None else environ
    known = {f.name for f in fields(BuilderConfig)}
    values = {}

    if path is not None:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        values.update({k: v for k, v in data.items() if k in known})

    for name in known:
        env_value = environ.get(ENV_PREFIX + name.upper())
        if env_value is not None:
            values[name] = env_value

    if values.get("initial_template") == "":
        values["initial_template"] = None

    return replace(BuilderConfig(), **values)


__all__ = ["BuilderConfig", "load_config"]
