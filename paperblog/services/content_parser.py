import logging
from pathlib import Path

logger = logging.getLogger(__name__)

BOM = "\ufeff"


class ContentParser:
    def __init__(self, root: Path | str):
        self.root = Path(root)

    def get_markdown_content(self, relative: str) -> str:
        """Get the full markdown content of a file (decoded as text)."""
        raw = self._get_raw_content(relative)
        if raw is None:
            return ""
        # Drop undecodable bytes rather than failing the whole file
        return raw.decode("utf-8", errors="ignore").removeprefix(BOM)

    def write_markdown_content(self, relative: str, text: str) -> None:
        path = self.resolve(relative)
        path.write_text(text, encoding="utf-8")
        logger.debug(f"Wrote {relative}")

    def resolve(self, relative: str) -> Path:
        return self.root / relative

    def _get_raw_content(self, relative: str) -> bytes | None:
        path = self.resolve(relative)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.warning(f"Content file not found: {relative}")
            return None
        except IsADirectoryError:
            logger.warning(f"Expected a file but got a directory: {relative}")
            return None
