"""Backends for form output generation (JSON Schema, etc.)."""

from .json_schema import generate_json_schema, save_schema_file, schema_to_json

__all__ = ["generate_json_schema", "schema_to_json", "save_schema_file"]
