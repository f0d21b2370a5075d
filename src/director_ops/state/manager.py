"""Persistent document store.

A document is a pydantic model loaded and saved as one unit. There is no
locking: each caller works on its own in-memory copy and the last `save`
wins.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError

from director_ops.core.errors import IOFailure, SecurityRejected

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")


def utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


class Document(BaseModel):
    """Base for every persisted document."""

    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


DocT = TypeVar("DocT", bound=Document)


def _atomic_write_text(path: Path, content: str) -> None:
    """Write `content` via a temp file in the same directory, then rename into place."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class DocumentStore(Generic[DocT]):
    """JSON-file backed store for keyed documents of one model type.

    Each key maps to `<root>/<key>.json`.
    """

    def __init__(
        self,
        root: Path,
        model: type[DocT],
        default_factory: Callable[[str], DocT] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            root: Directory holding the documents.
            model: Document model used to validate loaded data.
            default_factory: Builds the fresh document returned for a missing key.
                Defaults to the model's own defaults.
        """
        self.root = root
        self.model = model
        self._default_factory = default_factory or (lambda _key: model())

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key) or ".." in key:
            raise SecurityRejected(kind_checked="document_key", reason=f"Invalid document key: {key}")
        return self.root / f"{key}.json"

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def keys(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(p.stem for p in self.root.glob("*.json"))

    def load(self, key: str) -> DocT:
        """Load a document, or build a fresh default if none is stored.

        Raises:
            IOFailure: The file exists but cannot be read or does not match the model.
        """
        path = self.path_for(key)
        if not path.exists():
            logger.debug("No stored document, starting fresh", extra={"path": str(path)})
            return self._default_factory(key)

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return self.model.model_validate(raw)
        except OSError as e:
            logger.error("Failed to read document", extra={"path": str(path), "error": str(e)})
            raise IOFailure(path=str(path), message=str(e)) from e
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error("Stored document is invalid", extra={"path": str(path)})
            raise IOFailure(path=str(path), message=f"invalid document: {e}") from e

    def save(self, key: str, document: DocT) -> None:
        """Stamp `updated_at` and replace the stored document in a single write."""
        path = self.path_for(key)
        document.updated_at = utc_now_iso()
        payload = json.dumps(document.model_dump(mode="json"), indent=2, ensure_ascii=False)
        try:
            _atomic_write_text(path, payload + "\n")
        except OSError as e:
            logger.error("Failed to save document", extra={"path": str(path), "error": str(e)})
            raise IOFailure(path=str(path), message=str(e)) from e

        logger.debug("Document saved", extra={"path": str(path)})
