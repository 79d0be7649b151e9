"""Declared schema metadata."""

from nlquery.schema.catalog import SchemaCatalog

__all__ = ["SchemaCatalog"]
