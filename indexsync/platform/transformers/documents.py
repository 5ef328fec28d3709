"""Preparation of CMS entries into index documents."""

from typing import Any, Dict, List, Optional

from indexsync.core.collection_settings import Transformer
from indexsync.core.exceptions import TransformerContractViolation

# Creator/updater references never reach the index
AUDIT_FIELDS = ("createdBy", "updatedBy")


def prepare_document(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Strip audit fields and coerce the identifier to a string."""
    document = {key: value for key, value in entry.items() if key not in AUDIT_FIELDS}
    if document.get("id") is not None:
        document["id"] = str(document["id"])
    return document


def transform_documents(
    documents: List[Dict[str, Any]], transformer: Optional[Transformer]
) -> List[Dict[str, Any]]:
    """Apply a user transformer to each document.

    Raises:
        TransformerContractViolation: If the transformer returns None for a document
    """
    if transformer is None:
        return documents

    transformed = []
    for document in documents:
        result = transformer(document)
        if result is None:
            raise TransformerContractViolation(
                f"documents transformer needs a return value (document {document.get('id')})"
            )
        transformed.append(result)
    return transformed
