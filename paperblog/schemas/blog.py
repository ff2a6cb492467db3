import datetime as dt
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from paperblog.utils import tag_slug

DEFAULT_TAG = "others"


def _to_datetime(value: Any) -> Any:
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    if isinstance(value, str):
        try:
            return dt.datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(f"invalid ISO 8601 timestamp {value!r}")
    return value


class PostFrontmatter(BaseModel):
    """Metadata block at the top of a post file."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    datetime: dt.datetime = Field(
        validation_alias=AliasChoices("datetime", "pubDatetime")
    )
    mod_datetime: Optional[dt.datetime] = Field(
        default=None, validation_alias=AliasChoices("modDatetime", "mod_datetime")
    )
    slug: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("slug", "postSlug")
    )
    featured: bool = False
    draft: bool = False
    tags: List[str] = Field(default_factory=lambda: [DEFAULT_TAG])
    description: str = Field(min_length=1)
    og_image: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ogImage", "og_image")
    )
    canonical_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("canonicalURL", "canonical_url")
    )

    @field_validator("datetime", "mod_datetime", mode="before")
    @classmethod
    def _parse_timestamp(cls, value):
        return _to_datetime(value)

    @field_validator("title", "author", "description", mode="before")
    @classmethod
    def _strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        if value is None:
            return [DEFAULT_TAG]
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("tags must be a list of strings")
        tags: List[str] = []
        for item in value:
            if item is None:
                continue
            tag = str(item).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags or [DEFAULT_TAG]


class Post(BaseModel):
    source: str
    slug: str
    title: str
    author: str
    datetime: dt.datetime
    mod_datetime: Optional[dt.datetime] = None
    featured: bool = False
    draft: bool = False
    tags: List[str] = Field(default_factory=list)
    description: str
    og_image: Optional[str] = None
    canonical_url: Optional[str] = None
    body: str
    reading_time: str = "1 min"

    @property
    def url(self) -> str:
        return f"/posts/{self.slug}/"

    @property
    def tag_slugs(self) -> List[str]:
        return [tag_slug(tag) for tag in self.tags]


class TagSummary(BaseModel):
    name: str
    slug: str
    count: int


class ArchiveGroup(BaseModel):
    year: int
    month: int
    posts: List[Post]


class Page(BaseModel):
    items: List[Any]
    number: int
    total_pages: int
    base_url: str

    @property
    def prev_url(self) -> Optional[str]:
        if self.number <= 1:
            return None
        if self.number == 2:
            return self.base_url
        return f"{self.base_url}{self.number - 1}/"

    @property
    def next_url(self) -> Optional[str]:
        if self.number >= self.total_pages:
            return None
        return f"{self.base_url}{self.number + 1}/"


class PostSummary(BaseModel):
    id: str
    slug: str
    title: str
    author: str
    description: str
    publishedAt: str
    updatedAt: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    readingTime: Optional[str] = None
    featured: bool = False
    draft: bool = False


class PostDetail(PostSummary):
    content: str
    html: str
