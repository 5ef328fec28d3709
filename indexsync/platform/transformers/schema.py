"""Schema projection helpers.

A field schema is a nested mapping of field name to either a type marker
(``"string"``, ``"number"``, ``"boolean"``, ``"string[]"``, ...) or a nested mapping
for relation sub-objects. Relations with many targets are represented by the
``"collection"`` marker or by a list of objects; those cannot be indexed without
flattening and are never selectable as searchable paths.
"""

import copy
from typing import Any, Dict, List, Optional, Sequence

COLLECTION_MARKER = "collection"

_MISSING = object()


def is_collection(value: Any) -> bool:
    """Whether a schema value describes a to-many relation."""
    if value == COLLECTION_MARKER:
        return True
    return isinstance(value, list) and len(value) > 0 and isinstance(value[0], dict)


def selected_paths(field_schema: Dict[str, Any], prefix: str = "") -> List[str]:
    """List the dotted leaf paths of a field schema in declaration order.

    Nested mappings contribute ``parent.child`` for each leaf under them; collections
    are skipped.
    """
    paths: List[str] = []
    for key, value in (field_schema or {}).items():
        path = f"{prefix}{key}"
        if isinstance(value, dict):
            paths.extend(selected_paths(value, prefix=f"{path}."))
        elif not is_collection(value):
            paths.append(path)
    return paths


def _lookup(obj: Dict[str, Any], parts: Sequence[str]) -> Any:
    current: Any = obj
    for part in parts:
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def project_schema(paths: Sequence[str], field_schema: Dict[str, Any]) -> Dict[str, Any]:
    """Build a reduced schema holding only the addressed paths.

    Paths that do not resolve in ``field_schema`` are skipped, so stale searchable
    attributes never break a sync.
    """
    projected: Dict[str, Any] = {}
    for path in paths:
        parts = path.split(".")
        value = _lookup(field_schema or {}, parts)
        if value is _MISSING:
            continue

        target = projected
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = copy.deepcopy(value)
    return projected


def selectable_fields(
    ui_schema: Dict[str, Any], included_relations: Sequence[str]
) -> List[Dict[str, Any]]:
    """Fields an admin can map into an index document.

    - object field in ``included_relations``: one searchable entry per sub-key
    - collection field in ``included_relations``: one non-searchable entry
    - any other scalar field: one searchable entry
    - object or collection fields not in ``included_relations`` are dropped
    """
    relations = set(included_relations or [])
    fields: List[Dict[str, Any]] = []

    for key, value in (ui_schema or {}).items():
        if is_collection(value):
            if key in relations:
                fields.append({"field": key, "searchable": False})
        elif isinstance(value, dict):
            if key in relations:
                fields.extend({"field": f"{key}.{sub}", "searchable": True} for sub in value)
        else:
            fields.append({"field": key, "searchable": True})

    return fields


def _scalar_type(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return None


def infer_type(value: Any) -> Any:
    """Type marker or nested schema describing one sample value, or None.

    Arrays of one scalar type map to ``"<type>[]"`` and arrays of objects to the
    collection marker. Nulls, empty values and mixed arrays carry no usable type.
    """
    if isinstance(value, dict):
        return schema_from_entry(value) or None
    if isinstance(value, list):
        if not value:
            return None
        if all(isinstance(item, dict) for item in value):
            return COLLECTION_MARKER
        types = {_scalar_type(item) for item in value}
        if len(types) == 1 and None not in types:
            return f"{types.pop()}[]"
        return None
    return _scalar_type(value)


def schema_from_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Infer a field schema from the values of one entry."""
    schema: Dict[str, Any] = {}
    for key, value in (entry or {}).items():
        inferred = infer_type(value)
        if inferred is not None:
            schema[key] = inferred
    return schema
