"""Serialization of ledger entities for transports and event payloads."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


def to_dict(obj: Any, camel_case: bool = False) -> dict:
    """Convert a dataclass (or dict) to a JSON-ready dictionary.

    Parameters
    ----------
    obj : Any
        A dataclass instance or a plain dict.
    camel_case : bool
        Rename keys to camelCase, as the wallet API expects.

    Returns
    -------
    dict
        Serialized dictionary.
    """
    if is_dataclass(obj):
        result = dataclass_to_dict(obj)
    elif isinstance(obj, dict):
        result = {k: serialize_value(v) for k, v in obj.items()}
    else:
        result = {"value": str(obj)}
    return camelize(result) if camel_case else result


def dataclass_to_dict(obj: Any) -> dict:
    """Convert dataclass to dict without the deep copy ``asdict`` makes."""
    return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output.

    Amounts are integer minor units and pass through unchanged.
    """
    if isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif is_dataclass(value) and not isinstance(value, type):
        return dataclass_to_dict(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def to_camel(name: str) -> str:
    """``settlement_estimate`` -> ``settlementEstimate``."""
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def camelize(data: Any) -> Any:
    """Recursively rename dict keys to camelCase."""
    if isinstance(data, dict):
        return {to_camel(k): camelize(v) for k, v in data.items()}
    if isinstance(data, list):
        return [camelize(v) for v in data]
    return data
