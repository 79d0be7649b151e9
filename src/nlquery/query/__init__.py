"""Natural-language query layer over the relational store.

This module turns validated tool arguments into parameterized queries and
describes the queryable schema to the language model.

Architecture:
    1. Schema Context Builder - Generates the system context for the model
    2. Request Validator - Checks tool arguments against the declared schema
    3. Query Translator - Executes fetch/aggregate with bound parameters

Example:
    translator = QueryTranslator(connection, catalog)
    translator.fetch(filters={"brand": "Apple"}, order_by="price desc")
    translator.aggregate("avg", column="price", filters={"category": "Electronics"})
"""

from nlquery.query.context import SchemaContextBuilder, get_schema_context
from nlquery.query.translator import QueryTranslator
from nlquery.query.validator import RequestValidator, clamp_limit

__all__ = [
    "SchemaContextBuilder",
    "get_schema_context",
    "QueryTranslator",
    "RequestValidator",
    "clamp_limit",
]
