"""Data conversion utilities for the resource recommender.

This module provides conversion functions between configuration strings and
typed values:
- camelCase keyword support for dataclasses
- Go-style duration strings (``168h``, ``1h30m``) to timedelta
- Kubernetes-style quantities (``500m``, ``512Mi``, ``1Gi``) to floats
- Boolean and float parsing with strict validation
- Memory unit conversions (bytes to GiB, etc.)
"""
import math
import re
from datetime import timedelta
from typing import Any
from typing import Type
from typing import TypeVar
from typing import Union

T = TypeVar("T")

_DURATION_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_QUANTITY_SUFFIXES = {
    "": 1.0,
    "m": 1e-3,
    "k": 1e3,
    "M": 1e6,
    "G": 1e9,
    "T": 1e12,
    "P": 1e15,
    "E": 1e18,
    "Ki": 1024.0,
    "Mi": 1024.0**2,
    "Gi": 1024.0**3,
    "Ti": 1024.0**4,
    "Pi": 1024.0**5,
    "Ei": 1024.0**6,
}
_QUANTITY = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)([A-Za-z]*)$")

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def camelcase(cls: Type[T]) -> Type[T]:
    """
    Decorator to allow a dataclass to be initialized from camelCase keys.
    Must be placed above the @dataclass decorator.
    """

    def _camel_to_snake(name: str) -> str:
        """
        Converts a camelCase string to snake_case, correctly handling acronyms.
        """
        name = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name)
        name = re.sub(r"([A-Z])([A-Z][a-z])", r"\1_\2", name)
        return name.lower()

    original_init = cls.__init__

    def __init__(self, *args, **kwargs: Any):
        if args:
            raise TypeError(
                f"{cls.__name__} only supports keyword arguments for initialization."
            )

        snake_case_kwargs = {_camel_to_snake(k): v for k, v in kwargs.items()}
        original_init(self, **snake_case_kwargs)

    cls.__init__ = __init__
    return cls


def parse_duration(value: Union[str, timedelta]) -> timedelta:
    """Parse a Go-style duration such as ``168h``, ``1m`` or ``1h30m``."""
    if isinstance(value, timedelta):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid duration {value!r}: expected a string")

    text = value.strip()
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError("Invalid duration: empty string")

    seconds = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_SECONDS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ValueError(f"Invalid duration {value!r}")
    return timedelta(seconds=seconds)


def parse_quantity(value: Union[str, int, float]) -> float:
    """Parse a resource quantity (``0.5``, ``500m``, ``512Mi``, ``2G``) to a float."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _QUANTITY.match(str(value).strip())
        if not match or match.group(2) not in _QUANTITY_SUFFIXES:
            raise ValueError(f"Invalid quantity {value!r}")
        number = float(match.group(1)) * _QUANTITY_SUFFIXES[match.group(2)]

    if not math.isfinite(number) or number < 0:
        raise ValueError(f"Invalid quantity {value!r}: must be a finite, non-negative number")
    return number


def parse_bool(value: Union[str, bool]) -> bool:
    """Parse a boolean configuration value."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean {value!r}")


def parse_float(value: Union[str, int, float]) -> float:
    """Parse a finite float configuration value."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid float {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Invalid float {value!r}: must be finite")
    return number


def bytes_to_gib(num_bytes: float) -> float:
    """Convert bytes to GiB."""
    return num_bytes / (1024**3)


def format_quantity(value: float, dimension: str) -> str:
    """Human readable quantity for CLI output."""
    if dimension in ("memory", "accelerator-memory"):
        if value >= 1024**3:
            return f"{bytes_to_gib(value):.2f}Gi"
        return f"{value / (1024**2):.0f}Mi"
    return f"{value:.3f}"
