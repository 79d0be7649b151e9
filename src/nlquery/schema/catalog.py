"""Static schema metadata: the declared tables and columns the agent may query.

The catalog is loaded once (from a JSON file, a dict, or by reflecting the
live database) and is read-only afterwards. Its ``version`` is a digest of
the declared structure, so a session can tell which snapshot it was built on.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect, types as sqltypes

from nlquery.core.types import ColumnInfo, ColumnType, TableInfo
from nlquery.exceptions import ConfigurationError, NLQueryError, ValidationError

if TYPE_CHECKING:
    from nlquery.core.connection import DatabaseConnection

logger = logging.getLogger(__name__)


def _column_type_for(sql_type: sqltypes.TypeEngine[Any]) -> ColumnType:
    """Map a reflected SQLAlchemy type onto a declared column type."""
    if isinstance(sql_type, sqltypes.Boolean):
        return ColumnType.BOOLEAN
    if isinstance(sql_type, sqltypes.Integer):
        return ColumnType.INTEGER
    if isinstance(sql_type, sqltypes.Float):
        return ColumnType.FLOAT
    if isinstance(sql_type, sqltypes.Numeric):
        return ColumnType.NUMERIC
    if isinstance(sql_type, sqltypes.DateTime):
        return ColumnType.DATETIME
    if isinstance(sql_type, sqltypes.Date):
        return ColumnType.DATE
    if isinstance(sql_type, sqltypes.Text):
        return ColumnType.TEXT
    return ColumnType.STRING


class SchemaCatalog:
    """Immutable table/column metadata."""

    def __init__(self, tables: list[TableInfo]) -> None:
        if not tables:
            raise ConfigurationError("Schema catalog must declare at least one table")
        by_name: dict[str, TableInfo] = {}
        for table in tables:
            if table.name in by_name:
                raise ConfigurationError(f"Table '{table.name}' declared twice")
            if not table.columns:
                raise ConfigurationError(f"Table '{table.name}' declares no columns")
            by_name[table.name] = table
        self._tables = MappingProxyType(dict(sorted(by_name.items())))
        self._version = self._compute_version()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SchemaCatalog:
        """Build a catalog from ``{"tables": {name: {"columns": {...}}}}``.

        Columns may be given as ``{name: type}`` or as a list of
        ``{"name", "type", "description"}`` objects.
        """
        tables = []
        for table_name, table_data in (data.get("tables") or {}).items():
            raw_columns = table_data.get("columns") or {}
            if isinstance(raw_columns, Mapping):
                columns = [
                    ColumnInfo(name=name, type=ColumnType(col_type))
                    for name, col_type in raw_columns.items()
                ]
            else:
                columns = [ColumnInfo(**col) for col in raw_columns]
            tables.append(
                TableInfo(
                    name=table_name,
                    columns=tuple(columns),
                    description=table_data.get("description"),
                )
            )
        return cls(tables)

    @classmethod
    def from_file(cls, path: str | Path) -> SchemaCatalog:
        """Load a catalog from a JSON schema file."""
        try:
            data = json.loads(Path(path).read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read schema file '{path}': {e}", {"file": str(path)}
            ) from e
        try:
            return cls.from_dict(data)
        except (NLQueryError, ValueError, TypeError, AttributeError) as e:
            raise ConfigurationError(
                f"Invalid schema file '{path}': {e}", {"file": str(path)}
            ) from e

    @classmethod
    def reflect(
        cls, connection: DatabaseConnection, tables: list[str] | tuple[str, ...] | None = None
    ) -> SchemaCatalog:
        """Build a catalog by inspecting the live database.

        Args:
            connection: Database handle
            tables: Optional allow-list of table names (None = every table)
        """
        with connection.connect() as conn:
            inspector = inspect(conn)
            available = inspector.get_table_names()
            wanted = list(tables) if tables else available
            missing = sorted(set(wanted) - set(available))
            if missing:
                raise ConfigurationError(
                    f"Tables not found: {', '.join(missing)}. Available: {', '.join(available)}",
                    {"setting": "tables"},
                )
            declared = []
            for name in wanted:
                columns = tuple(
                    ColumnInfo(
                        name=col["name"],
                        type=_column_type_for(col["type"]),
                        description=col.get("comment"),
                    )
                    for col in inspector.get_columns(name)
                )
                declared.append(TableInfo(name=name, columns=columns))
        logger.info("Reflected %d table(s) from %s", len(declared), connection.dialect)
        return cls(declared)

    @property
    def tables(self) -> Mapping[str, TableInfo]:
        return self._tables

    @property
    def version(self) -> str:
        return self._version

    def table_names(self) -> list[str]:
        return list(self._tables)

    def __iter__(self) -> Iterator[TableInfo]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def get_table(self, name: str | None) -> TableInfo:
        """Resolve a table by name.

        With a single declared table the name may be omitted.

        Raises:
            ValidationError: If the name is missing and ambiguous, or unknown
        """
        if name is None:
            if len(self._tables) == 1:
                return next(iter(self._tables.values()))
            raise ValidationError(
                "table", f"required when several tables exist: {', '.join(self._tables)}"
            )
        table = self._tables.get(name)
        if table is None:
            raise ValidationError(
                "table", f"unknown table '{name}'. Available tables: {', '.join(self._tables)}"
            )
        return table

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self._version,
            "tables": {
                t.name: {
                    "description": t.description,
                    "columns": [c.model_dump(mode="json") for c in t.columns],
                }
                for t in self
            },
        }

    def _compute_version(self) -> str:
        canonical = json.dumps(
            [t.model_dump(mode="json", exclude={"description"}) for t in self._tables.values()],
            sort_keys=True,
        )
        return hashlib.sha256(canonical.encode()).hexdigest()[:12]
