"""Common utilities for kubekit."""

import json
import math
import os
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

# Kubernetes quantity suffixes
_BINARY_SUFFIXES = {
    "Ki": 1024,
    "Mi": 1024**2,
    "Gi": 1024**3,
    "Ti": 1024**4,
    "Pi": 1024**5,
    "Ei": 1024**6,
}
_DECIMAL_SUFFIXES = {
    "k": 1000,
    "K": 1000,
    "M": 1000**2,
    "G": 1000**3,
    "T": 1000**4,
    "P": 1000**5,
    "E": 1000**6,
}

_JSONPATH_SEGMENT = re.compile(r"([^.\[\]]+)|\[(\d+)\]")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_QUANTITY = re.compile(
    r"^([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)(Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|K|M|G|T|P|E)?$"
)
_FRACTION_SUFFIXES = {"n": Decimal("1e-9"), "u": Decimal("1e-6"), "m": Decimal("1e-3")}


def _to_decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValueError(f"Invalid quantity: {value!r}")


def parse_quantity(quantity: str | int | float) -> Decimal:
    """Parse any Kubernetes quantity to a Decimal in base units.

    Raises:
        ValueError: If the value is not a quantity
    """
    if isinstance(quantity, (int, float)):
        return Decimal(str(quantity))
    match = _QUANTITY.match(str(quantity).strip())
    if not match:
        raise ValueError(f"Invalid quantity: {quantity!r}")
    number, suffix = match.groups()
    value = Decimal(number)
    if suffix in _BINARY_SUFFIXES:
        return value * _BINARY_SUFFIXES[suffix]
    if suffix in _DECIMAL_SUFFIXES:
        return value * _DECIMAL_SUFFIXES[suffix]
    if suffix:
        return value * _FRACTION_SUFFIXES[suffix]
    return value


def parse_cpu(quantity: str | int | float | None) -> int:
    """Parse a CPU quantity to millicores.

    Supports plain cores (``2``, ``0.5``), millicores (``250m``) and the
    nano/micro forms reported by metrics (``1500000n``, ``20u``).

    Args:
        quantity: CPU quantity string or number

    Returns:
        Millicores, rounded up like the API server does

    Raises:
        ValueError: If the quantity cannot be parsed
    """
    if quantity is None or quantity == "":
        return 0
    if isinstance(quantity, (int, float)):
        return math.ceil(Decimal(str(quantity)) * 1000)

    text = str(quantity).strip()
    if text.endswith("m"):
        return math.ceil(_to_decimal(text[:-1]))
    if text.endswith("u"):
        return math.ceil(_to_decimal(text[:-1]) / 1000)
    if text.endswith("n"):
        return math.ceil(_to_decimal(text[:-1]) / 1000000)
    return math.ceil(_to_decimal(text) * 1000)


def parse_memory(quantity: str | int | float | None) -> int:
    """Parse a memory quantity to bytes.

    Supports binary (``Ki``, ``Mi``, ``Gi``, ``Ti``, ``Pi``, ``Ei``) and
    decimal (``k``/``K``, ``M``, ``G``, ``T``, ``P``, ``E``) suffixes,
    exponent notation and plain byte counts.

    Args:
        quantity: Memory quantity string or number

    Returns:
        Bytes

    Raises:
        ValueError: If the quantity cannot be parsed
    """
    if quantity is None or quantity == "":
        return 0
    if isinstance(quantity, (int, float)):
        return math.ceil(Decimal(str(quantity)))

    text = str(quantity).strip()
    for suffix, multiplier in _BINARY_SUFFIXES.items():
        if text.endswith(suffix):
            return math.ceil(_to_decimal(text[: -len(suffix)]) * multiplier)
    if text[-1:] in _DECIMAL_SUFFIXES:
        return math.ceil(_to_decimal(text[:-1]) * _DECIMAL_SUFFIXES[text[-1]])
    if text.endswith("m"):
        return math.ceil(_to_decimal(text[:-1]) / 1000)
    return math.ceil(_to_decimal(text))


def parse_timestamp(timestamp: str | datetime | None) -> datetime | None:
    """Parse an RFC 3339 API timestamp to an aware datetime."""
    if timestamp is None or timestamp == "":
        return None
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=timezone.utc)
        return timestamp
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_age(timestamp: str | datetime | None, now: datetime | None = None) -> str:
    """Format a creation timestamp as a coarse relative age (``5d``, ``3h``).

    Args:
        timestamp: Creation timestamp
        now: Reference time, defaults to the current UTC time

    Returns:
        Age string, or ``<unknown>`` when the timestamp is missing
    """
    created = parse_timestamp(timestamp)
    if created is None:
        return "<unknown>"
    now = now or datetime.now(timezone.utc)
    delta = now - created
    if delta.total_seconds() < 0:
        return "0s"

    if delta.days > 0:
        return f"{delta.days}d"
    elif delta.seconds >= 3600:
        return f"{delta.seconds // 3600}h"
    elif delta.seconds >= 60:
        return f"{delta.seconds // 60}m"
    else:
        return f"{delta.seconds}s"


def jsonpath_get(obj: Any, path: str) -> Any:
    """Evaluate a simple kubectl-style JSONPath against a decoded object.

    Only dotted field access and integer indexes are supported, which covers
    every ``--sort-by`` expression kubectl accepts for plain fields, e.g.
    ``.metadata.name``, ``{.metadata.creationTimestamp}`` or
    ``.status.addresses[0].address``.

    Returns:
        The value found, or None when any segment is missing
    """
    expression = path.strip()
    if expression.startswith("{") and expression.endswith("}"):
        expression = expression[1:-1]
    expression = expression.lstrip(".")

    current = obj
    for field, index in _JSONPATH_SEGMENT.findall(expression):
        if current is None:
            return None
        if field:
            current = current.get(field) if isinstance(current, dict) else None
        else:
            position = int(index)
            current = (
                current[position]
                if isinstance(current, list) and position < len(current)
                else None
            )
    return current


def get_config_dir() -> Path:
    """Get the kubekit config directory."""
    return Path(os.environ.get("KUBEKIT_CONFIG_DIR", "~/.kubekit")).expanduser()


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def truncate_string(s: str, max_length: int = 50, suffix: str = "...") -> str:
    """Truncate a string to a maximum length.

    Args:
        s: String to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated string
    """
    if len(s) <= max_length:
        return s
    return s[: max_length - len(suffix)] + suffix


def gron(value: Any, path: str = "json") -> list[str]:
    """Flatten a decoded JSON value into gron-style assignments.

    Objects and arrays emit an empty container assignment followed by their
    members; object keys are visited in sorted order. Keys that are not
    plain identifiers are written in bracket form, e.g. ``json["app.kubernetes.io/name"]``.

    Args:
        value: Decoded JSON value
        path: Name of the root variable

    Returns:
        One ``path = value;`` statement per line
    """
    if isinstance(value, dict):
        lines = [f"{path} = {{}};"]
        for key in sorted(value):
            if _IDENTIFIER.match(key):
                child = f"{path}.{key}"
            else:
                child = f"{path}[{json.dumps(key)}]"
            lines.extend(gron(value[key], child))
        return lines
    if isinstance(value, list):
        lines = [f"{path} = [];"]
        for index, item in enumerate(value):
            lines.extend(gron(item, f"{path}[{index}]"))
        return lines
    return [f"{path} = {json.dumps(value, ensure_ascii=False)};"]
