from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Article(BaseModel):
    id: str
    title: str
    excerpt: str = ""
    author: str = "Stealth Mail Team"
    category: str = "General"
    date: str
    read_time: str = Field(default="5 min read", alias="readTime")
    url: str = "#"
    published: bool = False
    popular: bool = False
    views: int = 0
    tags: List[str] = Field(default_factory=list)
    cover_image: Optional[str] = Field(default=None, alias="coverImage")

    model_config = ConfigDict(populate_by_name=True)

    def matches(self, query: str) -> bool:
        needle = query.lower()
        return (
            needle in self.title.lower()
            or needle in self.excerpt.lower()
            or any(needle in tag.lower() for tag in self.tags)
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ArticlePage(BaseModel):
    articles: List[Article] = Field(default_factory=list)
    total: int = 0
    has_more: bool = False
