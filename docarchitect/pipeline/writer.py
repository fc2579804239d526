"""
Document Writer - Persists generated artifacts under the docs directory.
"""

from pathlib import Path
from typing import Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)


class DocumentWriter:
    """
    Writes generated documents synchronously.

    Each call writes immediately so that a later failure leaves every
    earlier artifact on disk. Existing files are overwritten.
    """

    def __init__(self, docs_dir: Path | str = Path("docs")):
        self.docs_dir = Path(docs_dir)

    def path_for(self, filename: str, subdir: Optional[str] = None) -> Path:
        directory = self.docs_dir / subdir if subdir else self.docs_dir
        return directory / filename

    def save(self, content: str, filename: str, subdir: Optional[str] = None) -> Path:
        """
        Write content to ``docs_dir[/subdir]/filename``.

        Returns:
            Path of the written file
        """
        path = self.path_for(filename, subdir)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info(f"Saved {path}")
        return path
