"""Local filesystem access used by the syncer."""
import logging
import os
from typing import List

logger = logging.getLogger(__name__)


class LocalFileStore:
    """UTF-8 text files on the local disk."""

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def ensure_directory(self, path: str) -> None:
        """Create the directory and its parents if needed."""
        if not os.path.isdir(path):
            os.makedirs(path, exist_ok=True)
            logger.info("Directory created: %s", path)

    def read_text(self, path: str) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def write_text(self, path: str, content: str) -> None:
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)

    def list_files(self, directory: str) -> List[str]:
        """Return the names of the regular files in a directory, sorted."""
        return sorted(
            name for name in os.listdir(directory)
            if os.path.isfile(os.path.join(directory, name))
        )
