"""
Static database reference documents.

The table list and table structure are maintained by hand as text files and
served verbatim; there is no live schema introspection.
"""

from pathlib import Path

from sqlgate.logging_config import get_logger

logger = get_logger(__name__)

TABLES_UNAVAILABLE = "Failed to load database table information"
STRUCTURE_UNAVAILABLE = "Failed to load database table structure"


class ReferenceDocs:
    """Loads each reference document once and serves it from memory."""

    def __init__(self, tables_path: Path, structure_path: Path):
        self.tables_path = Path(tables_path)
        self.structure_path = Path(structure_path)
        self._loaded: dict[Path, str] = {}

    def _read(self, path: Path, fallback: str) -> str:
        if path in self._loaded:
            return self._loaded[path]
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("reference_doc_unavailable", path=str(path), error=str(e))
            return fallback
        self._loaded[path] = content
        return content

    def tables(self) -> str:
        """Names and descriptions of the queryable tables."""
        return self._read(self.tables_path, TABLES_UNAVAILABLE)

    def structure(self) -> str:
        """Column-level structure of the queryable tables."""
        return self._read(self.structure_path, STRUCTURE_UNAVAILABLE)
