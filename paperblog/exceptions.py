class PaperBlogError(Exception):
    """Base error for content and build failures."""


class ContentError(PaperBlogError):
    """A post file that cannot be turned into a valid Post."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class BuildError(PaperBlogError):
    """Writing the output directory failed."""
