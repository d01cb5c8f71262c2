"""Specification catalog parsing and loading.

A specification catalog is an ordered list of resource tiers, smallest first.
Two input formats are accepted:
- the compact ladder ``0.5c1g,1c2g,2c4g`` (CPU cores ``c``, memory GiB ``g``)
- a YAML/JSON list of mappings with ``name``, ``cpu``, ``memory``,
  ``acceleratorCompute`` and ``acceleratorMemory`` quantities
"""
import logging
import re
from pathlib import Path
from typing import Any
from typing import Iterable
from typing import Tuple
from typing import Union

import yaml

from resource_recommender.errors import ConfigurationError
from resource_recommender.models.resource import Specification

logger = logging.getLogger(__name__)

DEFAULT_SPECS = (
    "0.25c0.25g,0.25c0.5g,0.25c1g,0.5c0.5g,0.5c1g,1c1g,1c2g,2c2g,2c4g,2c8g,"
    "4c4g,4c8g,4c16g,8c8g,8c16g,8c32g,16c32g,16c64g,32c64g,32c128g,64c128g,64c256g"
)

_COMPACT_SPEC = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)c(\d+(?:\.\d*)?|\.\d+)g$")


def parse_compact_specification(token: str) -> Specification:
    """Parse one ``<cpu>c<memory GiB>g`` token."""
    match = _COMPACT_SPEC.match(token.strip().lower())
    if not match:
        raise ConfigurationError(f"Invalid specification {token!r}: expected <cpu>c<mem>g")
    return Specification(
        name=token.strip(),
        cpu=float(match.group(1)),
        memory=float(match.group(2)) * 1024**3,
    )


def _looks_structured(text: str) -> bool:
    return text.startswith(("[", "{", "-")) or "\n" in text or ":" in text


def parse_specifications(
    value: Union[str, Iterable[Any], None]
) -> Tuple[Specification, ...]:
    """Parse a catalog from configuration into an ordered tuple of specifications."""
    if value is None:
        return ()

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return ()
        if not _looks_structured(text):
            return tuple(
                parse_compact_specification(token)
                for token in text.split(",")
                if token.strip()
            )
        try:
            value = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid specification catalog: {e}") from e
        if value is None:
            return ()

    if isinstance(value, dict) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(
            f"Invalid specification catalog: expected a list, got {type(value).__name__}"
        )

    specifications = []
    for entry in value:
        if isinstance(entry, Specification):
            specifications.append(entry)
        elif isinstance(entry, str):
            specifications.append(parse_compact_specification(entry))
        elif isinstance(entry, dict):
            try:
                specifications.append(Specification.from_dict(entry))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid specification {entry!r}: {e}") from e
        else:
            raise ConfigurationError(f"Invalid specification entry {entry!r}")
    return tuple(specifications)


def load_specifications(path: Union[str, Path]) -> Tuple[Specification, ...]:
    """Load a catalog from a YAML file holding a list (or a ``specifications`` key)."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read specification catalog {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("specifications")
    specifications = parse_specifications(data)
    logger.info(f"Loaded {len(specifications)} specifications from {path}")
    return specifications
