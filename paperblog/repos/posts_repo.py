from pathlib import Path
from typing import List

POST_SUFFIXES = (".md", ".markdown")


class FilesystemPostsRepo:
    def __init__(self, root: Path | str):
        self.root = Path(root)

    def list_post_files(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob("*")
            if path.is_file() and self._is_valid(path.relative_to(self.root))
        )

    @staticmethod
    def _is_valid(relative: Path) -> bool:
        # Underscore-prefixed files and directories are kept out of the site
        if any(part.startswith("_") for part in relative.parts):
            return False
        return relative.suffix.lower() in POST_SUFFIXES
