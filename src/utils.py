"""Utility functions for the federal spending flow project."""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Tuple


def format_usd(value: float) -> str:
    """Format a dollar amount the way en-US currency formatting does.

    Examples:
        1234.5 -> '$1,234.50'
        -42 -> '-$42.00'
    """
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


# Smoke-check format_usd on known values
assert format_usd(1234.5) == "$1,234.50"
assert format_usd(0) == "$0.00"
assert format_usd(-42) == "-$42.00"
assert format_usd(4_474_546_991.02) == "$4,474,546,991.02"


def hex_to_rgba(hex_color: str, alpha: float = 1.0) -> Tuple[float, float, float, float]:
    """Convert '#rrggbb' to a matplotlib RGBA tuple."""
    r = int(hex_color[1:3], 16)
    g = int(hex_color[3:5], 16)
    b = int(hex_color[5:7], 16)
    return (r / 255, g / 255, b / 255, alpha)


def sum_matching(records: Iterable[Any], **constraints: str) -> float:
    """
    Sum ``amount`` over every record whose attributes equal all constraints.

    A full linear scan on every call; there is no caching.
    """
    total = 0.0
    for record in records:
        if all(getattr(record, key) == value for key, value in constraints.items()):
            total += record.amount
    return total


def write_json(data: Mapping[str, Any], path: Path) -> Path:
    """Write ``data`` as indented JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path


def count_by_layer(layers: Iterable[int]) -> Dict[int, int]:
    """Count how many nodes sit in each layer."""
    counts: Dict[int, int] = {}
    for layer in layers:
        counts[layer] = counts.get(layer, 0) + 1
    return counts
