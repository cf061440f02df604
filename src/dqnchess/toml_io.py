"""
TOML IO with strict typing.

Constraints:
- Reading: use tomllib
- Writing: a small serializer for scalars, flat lists and nested tables
- Deterministic output ordering
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import cast

type TomlScalar = str | int | float | bool
type TomlValue = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]


def load_toml(path: Path) -> dict[str, TomlValue]:
    """Load a TOML file into a strictly-typed nested dictionary.

    Args:
        path: Path to TOML file.

    Returns:
        Parsed TOML as nested dict[str, TomlValue].

    Raises:
        FileNotFoundError: If path does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
        ValueError: If parsed content contains unsupported types.
    """
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    checked = _check_value(data)
    if not isinstance(checked, dict):
        raise ValueError("TOML root must be a table.")
    return checked


def _check_value(value: object) -> TomlValue:
    """Recursively validate a parsed TOML value.

    Raises:
        ValueError: For datetimes, non-string keys, or tables inside arrays.
    """
    if isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, list):
        if any(isinstance(item, dict) for item in value):
            raise ValueError("dict values in lists are not supported")
        return [_check_value(item) for item in value]
    if isinstance(value, dict):
        if not all(isinstance(key, str) for key in value):
            raise ValueError("TOML tables must have string keys.")
        return {key: _check_value(item) for key, item in value.items()}
    raise ValueError(f"unsupported TOML value type: {type(value)}")


def dump_toml(data: dict[str, TomlValue]) -> str:
    """Serialize a TOML dictionary with sorted keys, scalars before tables.

    Raises:
        ValueError: If data contains unsupported types.
    """
    return "\n".join(_table_lines(data, prefix="")) + "\n"


def save_toml(path: Path, data: dict[str, TomlValue]) -> None:
    """Write TOML to disk with stable ordering."""
    path.write_text(dump_toml(data), encoding="utf-8")


def _table_lines(table: dict[str, TomlValue], prefix: str) -> list[str]:
    """Render one table (and its subtables) as TOML lines."""
    lines = [f"[{prefix}]"] if prefix else []
    subtables = sorted(
        key for key, value in table.items() if isinstance(value, dict)
    )
    for key in sorted(table):
        value = table[key]
        if not isinstance(value, dict):
            lines.append(f"{key} = {_format_value(value)}")
    for key in subtables:
        if lines:
            lines.append("")
        child = cast(dict[str, TomlValue], table[key])
        lines.extend(_table_lines(child, f"{prefix}.{key}" if prefix else key))
    return lines


def _format_value(value: TomlValue) -> str:
    """Format a scalar or list as a TOML literal.

    Raises:
        ValueError: If the value type is unsupported.
    """
    # bool first so that int formatting doesn't swallow it.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list):
        return "[" + ", ".join(_format_value(item) for item in value) + "]"
    raise ValueError("unsupported TOML value type")
