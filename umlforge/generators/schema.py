# File: umlforge/generators/schema.py
"""
NexaFlow UMLForge - Schema Generator (MySQL DDL)
=================================================
Renders ``database_schema.sql``:

1. header and session settings, foreign-key checks disabled
2. ``CREATE TABLE`` per entity, parents before children
3. join tables for many-to-many associations
4. ``ALTER TABLE ... ADD CONSTRAINT`` for every key
5. indexes
6. one view per inheritance edge (optional)
7. commented sample inserts (optional)
8. foreign-key checks re-enabled, ``COMMIT``

Inheritance is realised as a key-per-child-table: the child keeps its own
``id`` and holds a required, unique ``<parent>_id`` referencing the
parent's ``id``.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional, Tuple

from umlforge.generators.base import (
    ArtifactGenerator,
    inheritance_key,
)
from umlforge.models import ClassEntity, JoinConstruct, ResolvedForeignKey, TargetKind, Visibility
from umlforge.naming import column_name, table_name, table_singular
from umlforge.utils import sql_string

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.generators.schema")

SCHEMA_FILE_NAME: str = "database_schema.sql"
TABLE_OPTIONS: str = "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci"
_MAX_IDENTIFIER_LENGTH: int = 64
_SECTION_RULE: str = "-- " + "-" * 53

_SAMPLE_SQL_VALUES: Dict[str, str] = {
    "INT": "1",
    "BIGINT": "1",
    "SMALLINT": "1",
    "FLOAT": "1.5",
    "BOOLEAN": "TRUE",
    "DATETIME": "'2024-01-15 10:30:00'",
    "TIMESTAMP": "'2024-01-15 10:30:00'",
    "DATE": "'2024-01-15'",
    "TIME": "'10:30:00'",
    "CHAR(1)": "'A'",
    "BLOB": "NULL",
    "JSON": "'[]'",
    "CHAR(36)": "'00000000-0000-0000-0000-000000000000'",
}


def _q(identifier: str) -> str:
    return f"`{identifier}`"


def _constraint_name(*parts: str) -> str:
    name: str = "_".join(p for p in parts if p)
    return name[:_MAX_IDENTIFIER_LENGTH]


class SchemaGenerator(ArtifactGenerator):
    """MySQL 8 DDL for the persistable classes of a diagram."""

    target = TargetKind.SCHEMA

    # -- Public API ------------------------------------------------------

    def generate(self) -> Dict[str, str]:
        return {SCHEMA_FILE_NAME: self.render()}

    def render(self) -> str:
        ordered: List[ClassEntity] = self.creation_order()
        lines: List[str] = []
        lines.extend(self._header(ordered))
        lines.extend(self._section("TABLES"))
        for cls in ordered:
            lines.extend(self._create_table(cls))
            lines.append("")
        if self.resolved.joins:
            lines.extend(self._section("MANY-TO-MANY JOIN TABLES"))
            for join in self.resolved.joins:
                lines.extend(self._create_join_table(join))
                lines.append("")
        lines.extend(self._section("FOREIGN KEYS"))
        lines.extend(self._foreign_keys(ordered))
        lines.append("")
        index_lines: List[str] = self._indexes(ordered)
        if index_lines:
            lines.extend(self._section("INDEXES"))
            lines.extend(index_lines)
            lines.append("")
        if self.config.include_views and self.resolved.generalizations:
            lines.extend(self._section("INHERITANCE VIEWS"))
            lines.extend(self._views())
            lines.append("")
        if self.config.include_sample_data and ordered:
            lines.extend(self._section("SAMPLE DATA (uncomment to use)"))
            lines.extend(self._sample_data(ordered))
            lines.append("")
        lines.extend(
            [
                "SET FOREIGN_KEY_CHECKS = 1;",
                "COMMIT;",
                "",
            ]
        )
        return "\n".join(lines)

    def creation_order(self) -> List[ClassEntity]:
        """
        Entities with every parent before its children.

        Kahn's algorithm over generalization edges, seeded in IR order so
        the output is stable. O(C + G).
        """
        entities: List[ClassEntity] = list(self.context.entities)
        names: List[str] = [c.name for c in entities]
        in_degree: Dict[str, int] = {n: 0 for n in names}
        children: Dict[str, List[str]] = {n: [] for n in names}
        for edge in self.resolved.generalizations:
            if edge.parent in in_degree and edge.child in in_degree:
                children[edge.parent].append(edge.child)
                in_degree[edge.child] += 1

        queue: Deque[str] = deque(n for n in names if in_degree[n] == 0)
        result: List[str] = []
        while queue:
            node: str = queue.popleft()
            result.append(node)
            for child in children[node]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    queue.append(child)

        if len(result) != len(names):
            logger.warning(
                "Inheritance cycle detected; falling back to declaration order "
                "for the remaining tables."
            )
            result.extend(n for n in names if n not in set(result))

        by_name: Dict[str, ClassEntity] = {c.name: c for c in entities}
        return [by_name[n] for n in result]

    # -- Sections --------------------------------------------------------

    def _section(self, title: str) -> List[str]:
        return [_SECTION_RULE, f"-- {title}", _SECTION_RULE, ""]

    def _header(self, ordered: List[ClassEntity]) -> List[str]:
        generated_at: str = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        lines: List[str] = [
            "-- " + "=" * 53,
            "-- SQL schema generated from UML class diagram",
            f"-- Project: {self.ir.title}",
            "-- Database: MySQL 8.0+",
            f"-- Generated: {generated_at}",
            f"-- Tables: {len(ordered)}",
            f"-- Relationships: {len(self.ir.relationships)}",
            "-- " + "=" * 53,
        ]
        for warning in self.resolved.warnings:
            lines.append(f"-- NOTICE: {warning}")
        lines.extend(
            [
                "",
                'SET SQL_MODE = "NO_AUTO_VALUE_ON_ZERO";',
                "SET AUTOCOMMIT = 0;",
                "START TRANSACTION;",
                'SET time_zone = "+00:00";',
                "",
                "SET FOREIGN_KEY_CHECKS = 0;",
                "",
            ]
        )
        return lines

    def _column_definitions(self, cls: ClassEntity) -> List[str]:
        columns: List[str] = [f"{_q('id')} INT AUTO_INCREMENT PRIMARY KEY"]

        parent: Optional[str] = self.resolved.parent_of(cls.name)
        if parent is not None:
            _base, _field, key_column = inheritance_key(parent)
            columns.append(f"{_q(key_column)} INT NOT NULL UNIQUE")

        for attribute in self.persisted(cls):
            sql_type: str = self.mapper.sql(attribute.type_name)
            definition: str = f"{_q(column_name(attribute.name))} {sql_type}"
            if attribute.visibility == Visibility.PRIVATE:
                definition += " NOT NULL"
            columns.append(definition)

        for fk in self.resolved.references_for(cls.name):
            definition = f"{_q(fk.column_name)} INT"
            definition += " NOT NULL" if fk.required else " NULL"
            if fk.one_to_one:
                definition += " UNIQUE"
            columns.append(definition)

        columns.append(f"{_q('created_at')} TIMESTAMP DEFAULT CURRENT_TIMESTAMP")
        columns.append(
            f"{_q('updated_at')} TIMESTAMP DEFAULT CURRENT_TIMESTAMP "
            "ON UPDATE CURRENT_TIMESTAMP"
        )
        return columns

    def _create_table(self, cls: ClassEntity) -> List[str]:
        columns: List[str] = self._column_definitions(cls)
        lines: List[str] = [f"-- Table {table_name(cls.name)} ({cls.name})"]
        parent: Optional[str] = self.resolved.parent_of(cls.name)
        if parent is not None:
            lines.append(f"-- Inherits from {parent} ({table_name(parent)})")
        lines.append(f"CREATE TABLE {_q(table_name(cls.name))} (")
        lines.extend(
            f"  {col}{',' if i < len(columns) - 1 else ''}" for i, col in enumerate(columns)
        )
        lines.append(f") {TABLE_OPTIONS};")
        return lines

    def _create_join_table(self, join: JoinConstruct) -> List[str]:
        return [
            f"-- Join table {join.name}: many-to-many between {join.left_class} and "
            f"{join.right_class}.",
            "-- Neither class holds a direct foreign key for this association.",
            f"CREATE TABLE {_q(join.name)} (",
            f"  {_q('id')} INT AUTO_INCREMENT PRIMARY KEY,",
            f"  {_q(join.left_column)} INT NOT NULL,",
            f"  {_q(join.right_column)} INT NOT NULL,",
            f"  {_q('created_at')} TIMESTAMP DEFAULT CURRENT_TIMESTAMP,",
            f"  UNIQUE KEY {_q(_constraint_name('unique', join.name))} "
            f"({_q(join.left_column)}, {_q(join.right_column)})",
            f") {TABLE_OPTIONS};",
        ]

    def _foreign_keys(self, ordered: List[ClassEntity]) -> List[str]:
        lines: List[str] = []
        for cls in ordered:
            table: str = table_name(cls.name)
            parent: Optional[str] = self.resolved.parent_of(cls.name)
            if parent is not None:
                _base, _field, key_column = inheritance_key(parent)
                lines.append(
                    self._alter(
                        table,
                        _constraint_name("fk", table, table_singular(parent)),
                        key_column,
                        table_name(parent),
                        "CASCADE",
                    )
                )
            for fk in self.resolved.references_for(cls.name):
                lines.append(
                    self._alter(
                        table,
                        _constraint_name("fk", table, fk.column_name[: -len("_id")]),
                        fk.column_name,
                        table_name(fk.related_class),
                        self._on_delete(fk),
                    )
                )
        for join in self.resolved.joins:
            for column, related in (
                (join.left_column, join.left_class),
                (join.right_column, join.right_class),
            ):
                lines.append(
                    self._alter(
                        join.name,
                        _constraint_name("fk", join.name, column[: -len("_id")]),
                        column,
                        table_name(related),
                        "CASCADE",
                    )
                )
        if not lines:
            lines.append("-- No foreign keys.")
        return lines

    @staticmethod
    def _on_delete(fk: ResolvedForeignKey) -> str:
        if fk.cascade_delete:
            return "CASCADE"
        if fk.required:
            return "RESTRICT"
        return "SET NULL"

    @staticmethod
    def _alter(table: str, constraint: str, column: str, referenced: str, on_delete: str) -> str:
        return (
            f"ALTER TABLE {_q(table)} ADD CONSTRAINT {_q(constraint)} "
            f"FOREIGN KEY ({_q(column)}) REFERENCES {_q(referenced)} ({_q('id')}) "
            f"ON DELETE {on_delete} ON UPDATE CASCADE;"
        )

    def _indexes(self, ordered: List[ClassEntity]) -> List[str]:
        fragments: Tuple[str, ...] = tuple(f.lower() for f in self.config.indexed_column_fragments)
        lines: List[str] = []
        for cls in ordered:
            table: str = table_name(cls.name)
            for fk in self.resolved.references_for(cls.name):
                if not fk.one_to_one:
                    lines.append(self._index(table, fk.column_name))
            for attribute in self.persisted(cls):
                column: str = column_name(attribute.name)
                if any(fragment in column for fragment in fragments):
                    lines.append(self._index(table, column))
        return lines

    @staticmethod
    def _index(table: str, column: str) -> str:
        return (
            f"CREATE INDEX {_q(_constraint_name('idx', table, column))} "
            f"ON {_q(table)} ({_q(column)});"
        )

    def _views(self) -> List[str]:
        lines: List[str] = []
        for edge in self.resolved.generalizations:
            child: Optional[ClassEntity] = self.ir.get_class(edge.child)
            parent: Optional[ClassEntity] = self.ir.get_class(edge.parent)
            if child is None or parent is None:
                continue
            child_table: str = table_name(child.name)
            parent_table: str = table_name(parent.name)
            parent_prefix: str = table_singular(parent.name)
            _base, _field, key_column = inheritance_key(parent.name)
            selected: List[str] = ["c.*"] + [
                f"p.{_q(column_name(a.name))} AS {_q(parent_prefix + '_' + column_name(a.name))}"
                for a in self.persisted(parent)
            ]
            lines.append(
                f"CREATE OR REPLACE VIEW {_q('v_' + child_table + '_completos')} AS"
            )
            lines.append(f"SELECT {', '.join(selected)}")
            lines.append(f"FROM {_q(child_table)} c")
            lines.append(
                f"JOIN {_q(parent_table)} p ON c.{_q(key_column)} = p.{_q('id')};"
            )
            lines.append("")
        return lines

    def _sample_value(self, sql_type: str, column: str) -> str:
        if sql_type.startswith("DECIMAL"):
            return "99.99"
        if sql_type in _SAMPLE_SQL_VALUES:
            return _SAMPLE_SQL_VALUES[sql_type]
        if "email" in column or "correo" in column:
            return sql_string("usuario@ejemplo.com")
        return sql_string(f"{column} ejemplo")

    def _sample_data(self, ordered: List[ClassEntity]) -> List[str]:
        lines: List[str] = []
        for cls in ordered:
            columns: List[str] = []
            values: List[str] = []
            parent: Optional[str] = self.resolved.parent_of(cls.name)
            if parent is not None:
                columns.append(inheritance_key(parent)[2])
                values.append("1")
            for attribute in self.persisted(cls):
                column: str = column_name(attribute.name)
                columns.append(column)
                values.append(self._sample_value(self.mapper.sql(attribute.type_name), column))
            for fk in self.resolved.references_for(cls.name):
                columns.append(fk.column_name)
                values.append("1")
            if not columns:
                continue
            lines.append(
                f"-- INSERT INTO {_q(table_name(cls.name))} "
                f"({', '.join(_q(c) for c in columns)}) VALUES ({', '.join(values)});"
            )
        return lines


__all__: List[str] = ["SCHEMA_FILE_NAME", "TABLE_OPTIONS", "SchemaGenerator"]
