from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from stealthmail.api.deps import get_content_client
from stealthmail.api.errors import GatewayError
from stealthmail.models.results import Fallback, Result
from stealthmail.providers.notion_client import NotionContentClient


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/articles", tags=["articles"])


def _envelope(result: Result, **payload: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, **payload, "source": result.source}
    if isinstance(result, Fallback):
        body["fallbackReason"] = result.reason
    return body


@router.get("")
def list_articles(
    limit: int = Query(default=10, ge=1, le=100),
    category: Optional[str] = Query(default=None),
    published_only: bool = Query(default=True, alias="publishedOnly"),
    page: int = Query(default=1, ge=1),
    content: NotionContentClient = Depends(get_content_client),
):
    result = content.list_articles(limit=limit, category=category, published_only=published_only, page=page)
    if not result.success:
        raise GatewayError.from_result(result, "Failed to fetch articles")
    return _envelope(
        result,
        articles=[a.to_wire() for a in result.data.articles],
        total=result.data.total,
        page=page,
        limit=limit,
        hasMore=result.data.has_more,
    )


@router.get("/popular")
def popular_articles(
    limit: int = Query(default=6, ge=1, le=100),
    content: NotionContentClient = Depends(get_content_client),
):
    result = content.get_popular(limit)
    if not result.success:
        raise GatewayError.from_result(result, "Failed to fetch popular articles")
    return _envelope(result, articles=[a.to_wire() for a in result.data])


@router.get("/search")
def search_articles(
    query: Optional[str] = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    content: NotionContentClient = Depends(get_content_client),
):
    result = content.search(query or "", limit)
    if not result.success:
        raise GatewayError.from_result(result, "Failed to search articles")
    logger.info("Search %r matched %d articles", query, len(result.data))
    return _envelope(
        result,
        articles=[a.to_wire() for a in result.data],
        query=(query or "").strip(),
        total=len(result.data),
    )


@router.get("/categories")
def list_categories(content: NotionContentClient = Depends(get_content_client)):
    result = content.list_categories()
    if not result.success:
        raise GatewayError.from_result(result, "Failed to fetch categories")
    return _envelope(result, categories=result.data)


@router.get("/category/{category}")
def articles_by_category(
    category: str,
    limit: int = Query(default=10, ge=1, le=100),
    content: NotionContentClient = Depends(get_content_client),
):
    result = content.get_by_category(category, limit)
    if not result.success:
        raise GatewayError.from_result(result, "Failed to fetch articles by category")
    return _envelope(
        result,
        articles=[a.to_wire() for a in result.data.articles],
        category=category,
        total=result.data.total,
    )


@router.get("/{article_id}")
def get_article(article_id: str, content: NotionContentClient = Depends(get_content_client)):
    result = content.get_by_id(article_id)
    if not result.success:
        raise GatewayError.from_result(result, "Failed to fetch article")
    return _envelope(result, article=result.data.to_wire())
