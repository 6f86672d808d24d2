"""Knowledge file loader."""

import json
from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from grounded_rag.exceptions import ValidationError
from grounded_rag.ingestion.models import KnowledgeItem

_ITEMS = TypeAdapter(list[KnowledgeItem])


def load_knowledge(path: str | Path, encoding: str = "utf-8") -> list[KnowledgeItem]:
    """Load knowledge items from a JSON array of ``{"id", "text"}`` objects.

    Args:
        path: Path to the knowledge file.
        encoding: Text encoding of the file.

    Returns:
        Items in file order.

    Raises:
        ValidationError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)

    if not path.is_file():
        raise ValidationError(
            f"Knowledge file not found: {path}",
            details={"path": str(path)},
        )

    try:
        raw = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(
            f"Failed to read knowledge file: {path}",
            details={"path": str(path), "error": str(e)},
        ) from e

    try:
        return _ITEMS.validate_python(json.loads(raw))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise ValidationError(
            f"Malformed knowledge file: {path}",
            details={"path": str(path), "error": str(e)[:200]},
        ) from e
