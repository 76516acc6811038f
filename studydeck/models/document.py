from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints, field_validator

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def normalize_tags(value):
    """Accept a list or a comma-separated string; strip, drop blanks and duplicates."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return value
    tags: list[str] = []
    for tag in value:
        tag = str(tag).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class DocumentCreate(BaseModel):
    title: Title
    content: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)


class DocumentUpdate(BaseModel):
    title: Title | None = None
    tags: list[str] | None = None
    is_favorite: bool | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)


class Document(BaseModel):
    id: str
    user_id: str
    title: str
    content: str
    summary: str
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = False
    created_at: str
    updated_at: str


class DocumentSummary(BaseModel):
    """Listing view without the full text."""

    id: str
    title: str
    summary: str
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = False
    content_length: int
    created_at: str


class DocumentList(BaseModel):
    items: list[DocumentSummary]
    total: int
    offset: int
    limit: int
