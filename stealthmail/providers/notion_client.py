from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from notion_client import Client

from stealthmail.models.article_models import Article, ArticlePage
from stealthmail.models.results import Err, ErrorKind, Fallback, Ok, Result
from stealthmail.providers import fallback_articles


logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
MAX_PAGE_SIZE = 100

PUBLISHED_FILTER = {
    "or": [
        {"property": "Published", "date": {"is_not_empty": True}},
        {"property": "Public", "checkbox": {"equals": True}},
    ]
}
NEWEST_FIRST = [{"property": "Created", "direction": "descending"}]


def _rich_text_to_plain(rt_arr: list) -> str:
    return "".join((rt.get("plain_text") or "") for rt in rt_arr or []).strip()


def _prop(properties: dict, *names: str) -> Optional[dict]:
    for name in names:
        prop = properties.get(name)
        if prop:
            return prop
    return None


def _prop_text(properties: dict, *names: str) -> Optional[str]:
    for name in names:
        prop = properties.get(name)
        if not prop:
            continue
        t = prop.get("type")
        if t == "title" or "title" in prop:
            text = _rich_text_to_plain(prop.get("title", []))
        elif t == "rich_text" or "rich_text" in prop:
            text = _rich_text_to_plain(prop.get("rich_text", []))
        else:
            continue
        if text:
            return text
    return None


def _file_url(file_obj: Optional[dict]) -> Optional[str]:
    if not file_obj:
        return None
    if file_obj.get("type") == "external":
        return (file_obj.get("external") or {}).get("url")
    if file_obj.get("type") == "file":
        return (file_obj.get("file") or {}).get("url")
    return None


def _files_prop_url(prop: Optional[dict]) -> Optional[str]:
    if not prop:
        return None
    files = prop.get("files") or []
    if files:
        return _file_url(files[0])
    return prop.get("url")


def _cover_image(page: dict, properties: dict) -> Optional[str]:
    cover = _file_url(page.get("cover"))
    if cover:
        return cover

    image_urls = properties.get("ImageURLs")
    if image_urls:
        if image_urls.get("type") == "rich_text":
            candidate = _rich_text_to_plain(image_urls.get("rich_text", []))
            if candidate.startswith("http"):
                return candidate
        else:
            candidate = _files_prop_url(image_urls)
            if candidate:
                return candidate

    return _files_prop_url(properties.get("Cover"))


def _select_name(properties: dict, name: str) -> Optional[str]:
    return ((properties.get(name) or {}).get("select") or {}).get("name")


def _date_start(prop: Optional[dict]) -> Optional[str]:
    if not prop:
        return None
    return (prop.get("date") or {}).get("start")


def page_to_article(page: dict) -> Article:
    """Map a Notion page onto the article view model, tolerating schema drift."""
    props = page.get("properties", {}) or {}

    tags = [t.get("name") for t in (props.get("Tags") or {}).get("multi_select", []) if t.get("name")]

    category = _select_name(props, "Category")
    if not category and tags:
        category = tags[0]

    published_start = _date_start(props.get("Published"))
    date = (
        published_start
        or (props.get("Created") or {}).get("created_time")
        or (props.get("Last Updated") or {}).get("last_edited_time")
        or datetime.now(timezone.utc).isoformat()
    )

    url = (props.get("URL") or {}).get("url")
    if not url:
        slug = _prop_text(props, "Slug")
        url = f"/{slug}" if slug else "#"

    popular_prop = _prop(props, "Featured", "Popular") or {}

    return Article(
        id=page.get("id", ""),
        title=_prop_text(props, "Name", "Title") or "(Untitled)",
        excerpt=_prop_text(props, "Description", "Excerpt") or "",
        author=_prop_text(props, "Author") or "Stealth Mail Team",
        category=category or "General",
        date=date,
        read_time=_prop_text(props, "ReadTime") or "5 min read",
        url=url,
        published=bool(published_start) or (props.get("Public") or {}).get("checkbox") is True,
        popular=bool(popular_prop.get("checkbox", False)),
        views=int((props.get("Views") or {}).get("number") or 0),
        tags=tags,
        cover_image=_cover_image(page, props),
    )


class NotionContentClient:
    """Article source backed by a Notion database, with static fallback content."""

    def __init__(self, api_key: Optional[str], database_id: Optional[str], client: Any = None):
        self.api_key = api_key
        self.database_id = database_id
        self.client = client
        if self.client is None and self.configured:
            self.client = Client(auth=api_key)

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.database_id)

    def _query_db(self, payload: dict) -> dict:
        # Prefer SDK, but fall back to raw HTTP if query method is unavailable
        try:
            return self.client.databases.query(database_id=self.database_id, **payload)
        except AttributeError:
            resp = requests.post(
                f"{NOTION_API_URL}/databases/{self.database_id}/query",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Notion-Version": NOTION_VERSION,
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=30,
            )
            resp.raise_for_status()
            return resp.json()

    def _query_articles(self, filter_: Optional[dict], limit: int, page: int = 1) -> ArticlePage:
        payload: Dict[str, Any] = {"sorts": NEWEST_FIRST, "page_size": min(limit, MAX_PAGE_SIZE)}
        if filter_:
            payload["filter"] = filter_

        result = self._query_db(payload)
        # Notion paginates by cursor only, so earlier pages are walked to reach the requested one
        for _ in range(page - 1):
            cursor = result.get("next_cursor")
            if not result.get("has_more") or not cursor:
                return ArticlePage(articles=[], total=0, has_more=False)
            result = self._query_db({**payload, "start_cursor": cursor})

        articles = [page_to_article(p) for p in result.get("results", [])]
        return ArticlePage(articles=articles, total=len(articles), has_more=bool(result.get("has_more")))

    def _fallback_reason(self) -> str:
        return "Notion is not configured"

    def list_articles(
        self,
        limit: int = 10,
        category: Optional[str] = None,
        published_only: bool = True,
        page: int = 1,
    ) -> Result[ArticlePage]:
        if not self.configured:
            logger.info("Notion not configured, using fallback articles")
            return Fallback(self._fallback_page(limit, category), self._fallback_reason())

        parts: List[dict] = []
        if published_only:
            parts.append(PUBLISHED_FILTER)
        if category:
            parts.append({"property": "Category", "select": {"equals": category}})
        try:
            result = self._query_articles({"and": parts} if parts else None, limit, page)
            logger.info("Notion: found %d articles", len(result.articles))
            return Ok(result)
        except Exception as exc:  # noqa: BLE001
            logger.error("Notion article query failed: %s", exc)
            return Fallback(self._fallback_page(limit, category), f"Notion request failed: {exc}")

    def get_by_category(self, category: str, limit: int = 10) -> Result[ArticlePage]:
        return self.list_articles(limit=limit, category=category, published_only=True)

    def get_popular(self, limit: int = 6) -> Result[List[Article]]:
        if not self.configured:
            return Fallback(fallback_articles.popular(limit), self._fallback_reason())
        try:
            filter_ = {"and": [PUBLISHED_FILTER, {"property": "Featured", "checkbox": {"equals": True}}]}
            result = self._query_articles(filter_, limit)
            logger.info("Notion: found %d popular articles", len(result.articles))
            return Ok(result.articles)
        except Exception as exc:  # noqa: BLE001
            logger.error("Notion popular query failed: %s", exc)
            return Fallback(fallback_articles.popular(limit), f"Notion request failed: {exc}")

    def search(self, query: str, limit: int = 10) -> Result[List[Article]]:
        query = (query or "").strip()
        if not query:
            return Err("Search query is required", ErrorKind.INPUT)
        if not self.configured:
            return Fallback(fallback_articles.search(query, limit), self._fallback_reason())
        try:
            result = self._query_articles(PUBLISHED_FILTER, MAX_PAGE_SIZE)
            matches = [a for a in result.articles if a.matches(query)][:limit]
            logger.info("Notion: %d articles match %r", len(matches), query)
            return Ok(matches)
        except Exception as exc:  # noqa: BLE001
            logger.error("Notion search failed: %s", exc)
            return Fallback(fallback_articles.search(query, limit), f"Notion request failed: {exc}")

    def list_categories(self) -> Result[List[str]]:
        if not self.configured:
            return Fallback(list(fallback_articles.FALLBACK_CATEGORIES), self._fallback_reason())
        try:
            db = self.client.databases.retrieve(database_id=self.database_id)
            options = ((db.get("properties", {}).get("Category") or {}).get("select") or {}).get("options", [])
            categories = [o.get("name") for o in options if o.get("name")]
            if not categories:
                logger.warning("Notion category options empty, reading categories from pages")
                categories = self._categories_from_pages()
            if not categories:
                return Fallback(list(fallback_articles.FALLBACK_CATEGORIES), "Notion database has no categories")
            logger.info("Notion: found %d categories", len(categories))
            return Ok(categories)
        except Exception as exc:  # noqa: BLE001
            logger.error("Notion category lookup failed: %s", exc)
            return Fallback(list(fallback_articles.FALLBACK_CATEGORIES), f"Notion request failed: {exc}")

    def _categories_from_pages(self) -> List[str]:
        result = self._query_db({"page_size": MAX_PAGE_SIZE})
        names: List[str] = []
        for page in result.get("results", []):
            name = _select_name(page.get("properties") or {}, "Category")
            if name and name not in names:
                names.append(name)
        return names

    def get_by_id(self, article_id: str) -> Result[Article]:
        reason = self._fallback_reason()
        if self.configured:
            try:
                return Ok(page_to_article(self.client.pages.retrieve(page_id=article_id)))
            except Exception as exc:  # noqa: BLE001
                logger.error("Notion page fetch failed for %s: %s", article_id, exc)
                reason = f"Notion request failed: {exc}"

        article = fallback_articles.find(article_id)
        if article is None:
            return Err("Article not found", ErrorKind.NOT_FOUND)
        return Fallback(article, reason)

    def _fallback_page(self, limit: int, category: Optional[str]) -> ArticlePage:
        matching = fallback_articles.by_category(category)
        return ArticlePage(articles=matching[:limit], total=len(matching), has_more=len(matching) > limit)
