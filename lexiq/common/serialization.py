"""
Serialization Utilities

This module provides utilities for turning engine objects into plain
dictionaries and JSON, with support for enums, datetimes, dataclasses and
the immutable containers used by questions and results.
"""

import json
import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from dataclasses import is_dataclass, fields


class SerializationFormat(Enum):
    """Supported serialization formats."""
    JSON = "json"
    DICT = "dict"


def serialize(
    obj: Any,
    format: SerializationFormat = SerializationFormat.DICT,
    exclude_none: bool = False,
    exclude_fields: Optional[List[str]] = None
) -> Union[Dict[str, Any], Any, str]:
    """
    Serialize an object to the specified format.

    Args:
        obj: The object to serialize
        format: Output format (JSON string or Python value)
        exclude_none: Whether to exclude None values from mappings
        exclude_fields: Optional list of field names to exclude

    Returns:
        Serialized object as a Python value or JSON string
    """
    exclude_fields = exclude_fields or []

    if format == SerializationFormat.JSON:
        value = serialize(obj, SerializationFormat.DICT, exclude_none, exclude_fields)
        return json.dumps(value, ensure_ascii=False)

    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (list, tuple)):
        return [serialize(item, format, exclude_none, exclude_fields) for item in obj]

    # Sets have no order of their own
    if isinstance(obj, (set, frozenset)):
        return sorted(serialize(item, format, exclude_none, exclude_fields) for item in obj)

    if isinstance(obj, dict):
        result = {}
        for key, value in obj.items():
            if key in exclude_fields:
                continue
            if exclude_none and value is None:
                continue
            result[serialize(key)] = serialize(value, format, exclude_none, exclude_fields)
        return result

    if hasattr(obj, 'to_dict') and callable(getattr(obj, 'to_dict')):
        return serialize(obj.to_dict(), format, exclude_none, exclude_fields)

    if is_dataclass(obj):
        return serialize(
            {f.name: getattr(obj, f.name) for f in fields(obj)},
            format,
            exclude_none,
            exclude_fields
        )

    return str(obj)


def to_json(obj: Any, pretty: bool = False, exclude_none: bool = False) -> str:
    """
    Serialize an object to a JSON string.

    Args:
        obj: The object to serialize
        pretty: Whether to format the JSON with indentation
        exclude_none: Whether to exclude None values

    Returns:
        JSON string representation
    """
    indent = 2 if pretty else None
    dict_data = serialize(obj, SerializationFormat.DICT, exclude_none)
    return json.dumps(dict_data, indent=indent, ensure_ascii=False, default=str)


class SerializableMixin:
    """
    Mixin that provides serialization capabilities to a class.

    Classes using this mixin must define __serializable_fields__, the list
    of attribute names to include in serialization, in output order.
    """

    __serializable_fields__: List[str] = []

    def to_dict(self) -> Dict[str, Any]:
        """Convert the object to a dictionary."""
        result = {}
        for field_name in self.__serializable_fields__:
            if hasattr(self, field_name):
                value = getattr(self, field_name)
                result[field_name] = serialize(value, SerializationFormat.DICT)
        return result

    def to_json(self, pretty: bool = False) -> str:
        """Convert the object to a JSON string."""
        return to_json(self.to_dict(), pretty)
