"""Per-index overrides declared in code.

A deployment can point ``COLLECTION_SETTINGS_MODULE`` at a module exporting::

    COLLECTION_SETTINGS = {
        "my-index-id": {
            "schema": {"title": "string", "author": {"name": "string"}},
            "transformer": lambda entry: {...},
        },
    }

Schema and transformer must be declared together. Partial entries are loaded as-is so
the orchestrator can refuse to sync the collection instead of failing at startup.
"""

import importlib
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from indexsync.core.exceptions import ConfigurationError

Transformer = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]


@dataclass(frozen=True)
class IndexOverride:
    """Custom schema and document transformer for one remote index."""

    schema: Optional[Dict[str, Any]] = None
    transformer: Optional[Transformer] = None

    @property
    def is_complete(self) -> bool:
        """Both schema and transformer are present."""
        return self.schema is not None and self.transformer is not None

    @property
    def is_partial(self) -> bool:
        """Exactly one of schema and transformer is present."""
        return (self.schema is None) != (self.transformer is None)


def parse_collection_settings(raw: Dict[str, Any]) -> Dict[str, IndexOverride]:
    """Convert a raw override mapping into ``IndexOverride`` objects.

    Raises:
        ConfigurationError: If the mapping or one of its entries has the wrong shape
    """
    if not isinstance(raw, dict):
        raise ConfigurationError("COLLECTION_SETTINGS must be a mapping of index id to settings")

    overrides: Dict[str, IndexOverride] = {}
    for index_id, entry in raw.items():
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Settings for index {index_id} must be a mapping")

        schema = entry.get("schema")
        transformer = entry.get("transformer")
        if schema is not None and not isinstance(schema, dict):
            raise ConfigurationError(f"Schema override for index {index_id} must be a mapping")
        if transformer is not None and not callable(transformer):
            raise ConfigurationError(f"Transformer override for index {index_id} must be callable")

        overrides[index_id] = IndexOverride(schema=schema, transformer=transformer)
    return overrides


def load_collection_settings(module_path: Optional[str]) -> Dict[str, IndexOverride]:
    """Import ``module_path`` and parse its ``COLLECTION_SETTINGS``.

    Returns an empty mapping when no module is configured.

    Raises:
        ConfigurationError: If the module cannot be imported or exports no settings
    """
    if not module_path:
        return {}

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import collection settings module {module_path}") from e

    raw = getattr(module, "COLLECTION_SETTINGS", None)
    if raw is None:
        raise ConfigurationError(f"Module {module_path} does not define COLLECTION_SETTINGS")
    return parse_collection_settings(raw)
