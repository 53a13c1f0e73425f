"""
Tabular Importer (Raw CSV/JSON table -> Repeating Group).

Parses a pasted or uploaded table, detects its columns and seeds a
repeating group whose template has one field per column and whose
entries hold one row each.

Column type detection:
    - Each value is classified as string, number, boolean, date, object
      or array; the column takes the most common class (earliest wins ties)
    - A string column with exactly 2 distinct values is boolean-like
    - A string column with 3-10 distinct values, each repeated on average
      at least twice, is an enum
"""

import csv
import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime
from io import StringIO
from typing import Any, Dict, List, Optional, Sequence, Tuple

from formtree.fields import BaseField, FieldType, make_field
from formtree.model import RepeatingGroup
from formtree.reconcile import create_group, new_entry

logger = logging.getLogger(__name__)

DataRow = Dict[str, Any]

FILE_TYPES = ("csv", "json", "auto")

_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4}|\d{2}-\d{2}-\d{4})")
_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y")


class TabularParseError(Exception):
    """Raised when table parsing fails."""
    pass


@dataclass(frozen=True)
class Column:
    """
    Detected table column.

    Properties:
        accessor: Key of the column in each row
        label: Human-readable header ("firstName" -> "First Name")
        type: string | number | boolean | date | object | array | enum
        order: Position in the header
        possible_values: Distinct values of boolean-like and enum columns
    """
    accessor: str
    label: str
    type: str
    order: int
    possible_values: Optional[Tuple[str, ...]] = None


def parse_csv_table(content: str) -> List[DataRow]:
    """Header row plus at least one data row; missing cells become ""."""
    lines = content.strip().splitlines()
    if len(lines) < 2:
        raise TabularParseError("CSV must have at least headers and one data row")

    reader = csv.reader(StringIO("\n".join(lines)))
    headers = [h.strip() for h in next(reader)]
    rows = []
    for values in reader:
        rows.append({
            header: (values[i].strip() if i < len(values) else "")
            for i, header in enumerate(headers)
        })
    return rows


def parse_json_table(content: str) -> List[DataRow]:
    """A JSON array of objects, or one object treated as a single row."""
    parsed = json.loads(content)
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        return [parsed]
    return []


def parse_table_string(content: str, file_type: str = "auto") -> List[DataRow]:
    """
    Parse table content into rows.

    Args:
        content: CSV or JSON text
        file_type: "csv", "json" or "auto" (JSON first, then CSV)

    Raises:
        TabularParseError: empty content, malformed input, or no rows
    """
    if file_type not in FILE_TYPES:
        raise TabularParseError(f"Unsupported file type: {file_type}")
    if not content or not content.strip():
        raise TabularParseError("The content is empty")

    try:
        if file_type == "json":
            rows = parse_json_table(content)
        elif file_type == "csv":
            rows = parse_csv_table(content)
        else:
            try:
                rows = parse_json_table(content)
            except json.JSONDecodeError:
                logger.debug("Content is not JSON, parsing as CSV")
                rows = parse_csv_table(content)
    except (json.JSONDecodeError, csv.Error) as e:
        raise TabularParseError(f"Failed to parse data: {e}") from e

    if not rows:
        raise TabularParseError("No valid data found in the file")
    if not all(isinstance(row, dict) for row in rows):
        raise TabularParseError("Every row must be an object")
    return rows


def _is_date(value: str) -> bool:
    match = _DATE_PREFIX.match(value)
    if not match:
        return False
    for fmt in _DATE_FORMATS:
        try:
            datetime.strptime(match.group(1), fmt)
            return True
        except ValueError:
            continue
    return False


def detect_value_type(value: Any) -> str:
    if value is None:
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, str) and _is_date(value):
        return "date"
    return "string"


def humanize_label(key: str) -> str:
    """firstName -> First Name"""
    if not key:
        return key
    spaced = re.sub(r"([A-Z])", r" \1", key[1:])
    return (key[0].upper() + spaced).strip()


def _most_common(values: Sequence[str]) -> str:
    counts = Counter(values)
    return max(counts, key=lambda v: (counts[v], -values.index(v)))


def _as_text(value: Any) -> str:
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def detect_columns(rows: Sequence[DataRow]) -> List[Column]:
    """Columns of the first row, typed by sampling every row."""
    if not rows:
        return []

    columns = []
    for order, key in enumerate(rows[0].keys()):
        samples = [row.get(key) for row in rows]
        column_type = _most_common([detect_value_type(v) for v in samples])
        possible_values = None

        if column_type == "string":
            unique = list(dict.fromkeys(_as_text(v) for v in samples))
            if len(unique) == 2:
                column_type = "boolean"
                possible_values = tuple(unique)
            elif 2 < len(unique) <= 10 and len(samples) >= len(unique) * 2:
                column_type = "enum"
                possible_values = tuple(unique)

        columns.append(Column(
            accessor=key,
            label=humanize_label(key),
            type=column_type,
            order=order,
            possible_values=possible_values,
        ))

    return sorted(columns, key=lambda c: c.order)


def field_for_column(column: Column) -> BaseField:
    """Template field that edits one column's values."""
    common = {"name": column.accessor, "label": column.label, "required": False}

    if column.type == "number":
        return make_field(FieldType.INPUT, type="number", **common)
    if column.type == "date":
        return make_field(FieldType.DATE_PICKER, **common)
    if column.type == "boolean":
        if column.possible_values:
            return make_field(
                FieldType.RADIO_GROUP,
                options=[(v, v) for v in column.possible_values],
                **common,
            )
        return make_field(FieldType.CHECKBOX, **common)
    if column.type == "enum":
        return make_field(
            FieldType.SELECT,
            options=[(v, v) for v in column.possible_values or ()],
            **common,
        )
    if column.type in ("object", "array"):
        return make_field(FieldType.TEXTAREA, **common)
    return make_field(FieldType.INPUT, **common)


def template_from_columns(columns: Sequence[Column]) -> Tuple[BaseField, ...]:
    return tuple(field_for_column(c) for c in sorted(columns, key=lambda c: c.order))


def _entry_value(value: Any, column_type: str) -> Any:
    if column_type in ("object", "array"):
        return json.dumps(value, sort_keys=True)
    return value


def group_from_table(
    rows: Sequence[DataRow],
    columns: Optional[Sequence[Column]] = None,
    name: str = "rows",
    label: str = "Imported rows",
) -> RepeatingGroup:
    """
    Repeating group with one template field per column and one entry per row.

    Entry field names follow the "{group}[{i}].{column}" rule; each entry
    field's value is the row's cell.
    """
    if not rows:
        raise TabularParseError("No valid data found in the file")
    columns = list(columns) if columns is not None else detect_columns(rows)
    if not columns:
        raise TabularParseError("Could not detect any columns from the data")

    types = {c.accessor: c.type for c in columns}
    group = replace(
        create_group(template_from_columns(columns), name=name, label=label),
        entries=(),
    )

    for row in rows:
        entry = new_entry(group)
        filled = tuple(
            replace(f, value=_entry_value(row.get(t.name), types[t.name]))
            for t, f in zip(group.template, entry.fields)
        )
        group = replace(group, entries=group.entries + (replace(entry, fields=filled),))

    logger.debug("Imported %d rows into group %s", len(group.entries), group.name)
    return group


__all__ = [
    "TabularParseError",
    "Column",
    "parse_table_string",
    "parse_csv_table",
    "parse_json_table",
    "detect_value_type",
    "detect_columns",
    "humanize_label",
    "field_for_column",
    "template_from_columns",
    "group_from_table",
]
