from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from stealthmail.models.results import Err, ErrorKind, Fallback, Ok
from stealthmail.providers import notion_client
from stealthmail.providers.notion_client import NotionContentClient, page_to_article


def _rt(text: str) -> List[Dict[str, Any]]:
    return [{"plain_text": text}]


def notion_page(page_id: str, title: str, excerpt: str = "", tags: Optional[List[str]] = None, **extra: Any) -> Dict[str, Any]:
    props: Dict[str, Any] = {
        "Name": {"type": "title", "title": _rt(title)},
        "Description": {"type": "rich_text", "rich_text": _rt(excerpt)},
        "Tags": {"type": "multi_select", "multi_select": [{"name": t} for t in tags or []]},
        "Published": {"type": "date", "date": {"start": "2025-09-01"}},
    }
    props.update(extra)
    return {"id": page_id, "properties": props, "cover": None}


class FakeDatabases:
    def __init__(self, responses: Optional[List[dict]] = None, error: Optional[Exception] = None, schema: Optional[dict] = None):
        self.responses = responses or [{"results": [], "has_more": False}]
        self.error = error
        self.schema = schema or {}
        self.calls: List[dict] = []

    def query(self, database_id: str, **payload: Any) -> dict:
        self.calls.append(payload)
        if self.error:
            raise self.error
        return self.responses[min(len(self.calls), len(self.responses)) - 1]

    def retrieve(self, database_id: str) -> dict:
        if self.error:
            raise self.error
        return self.schema


def live_client(databases: FakeDatabases, pages: Any = None) -> NotionContentClient:
    fake = SimpleNamespace(databases=databases, pages=pages)
    return NotionContentClient("secret", "db-1", client=fake)


def test_page_to_article_reads_alternate_property_names() -> None:
    page = {
        "id": "p1",
        "cover": None,
        "properties": {
            "Title": {"type": "title", "title": _rt("Inbox hygiene")},
            "Excerpt": {"type": "rich_text", "rich_text": _rt("Keep spam out")},
            "Tags": {"type": "multi_select", "multi_select": [{"name": "Tips"}, {"name": "spam"}]},
            "Created": {"type": "created_time", "created_time": "2025-08-01T00:00:00.000Z"},
            "Slug": {"type": "rich_text", "rich_text": _rt("inbox-hygiene")},
            "Popular": {"type": "checkbox", "checkbox": True},
            "Views": {"type": "number", "number": 42},
            "ImageURLs": {"type": "rich_text", "rich_text": _rt("https://img.test/cover.png")},
        },
    }
    article = page_to_article(page)

    assert article.title == "Inbox hygiene"
    assert article.excerpt == "Keep spam out"
    assert article.category == "Tips"
    assert article.date == "2025-08-01T00:00:00.000Z"
    assert article.url == "/inbox-hygiene"
    assert article.popular is True
    assert article.views == 42
    assert article.published is False
    assert article.cover_image == "https://img.test/cover.png"


def test_page_to_article_defaults_missing_fields() -> None:
    article = page_to_article({"id": "p2", "properties": {}})
    assert article.title == "(Untitled)"
    assert article.author == "Stealth Mail Team"
    assert article.category == "General"
    assert article.read_time == "5 min read"
    assert article.url == "#"
    assert article.cover_image is None


def test_page_cover_wins_over_properties() -> None:
    page = notion_page("p3", "Covered", Cover={"type": "files", "files": [{"type": "external", "external": {"url": "https://img.test/b.png"}}]})
    page["cover"] = {"type": "file", "file": {"url": "https://img.test/a.png"}}
    assert page_to_article(page).cover_image == "https://img.test/a.png"


def test_unconfigured_list_uses_fallback() -> None:
    result = NotionContentClient(None, None).list_articles(limit=2)
    assert isinstance(result, Fallback)
    assert result.reason == "Notion is not configured"
    assert len(result.data.articles) == 2
    assert result.data.total == 6
    assert result.data.has_more is True


def test_fallback_category_is_case_insensitive() -> None:
    result = NotionContentClient(None, None).get_by_category("security")
    assert [a.id for a in result.data.articles] == ["2", "5"]


def test_fallback_unknown_category_is_empty_not_error() -> None:
    result = NotionContentClient(None, None).get_by_category("Gardening")
    assert result.success
    assert result.data.articles == []
    assert result.data.total == 0


def test_search_requires_query() -> None:
    result = NotionContentClient(None, None).search("   ")
    assert isinstance(result, Err)
    assert result.kind == ErrorKind.INPUT


def test_fallback_search_matches_title_excerpt_or_tags() -> None:
    result = NotionContentClient(None, None).search("PRIVACY")
    ids = {a.id for a in result.data}
    # "6" also matches on tags
    assert ids == {"4", "5", "6"}
    for article in result.data:
        assert article.matches("privacy")


def test_fallback_popular_respects_limit() -> None:
    result = NotionContentClient(None, None).get_popular(2)
    assert [a.id for a in result.data] == ["1", "2"]
    assert all(a.popular for a in result.data)


def test_live_list_builds_filter_and_returns_ok() -> None:
    databases = FakeDatabases(responses=[{"results": [notion_page("p1", "Hello")], "has_more": True, "next_cursor": "c2"}])
    result = live_client(databases).list_articles(limit=5, category="Guide")

    assert isinstance(result, Ok)
    assert result.data.articles[0].title == "Hello"
    assert result.data.has_more is True
    payload = databases.calls[0]
    assert payload["page_size"] == 5
    assert payload["sorts"] == [{"property": "Created", "direction": "descending"}]
    assert {"property": "Category", "select": {"equals": "Guide"}} in payload["filter"]["and"]


def test_live_list_walks_cursor_for_later_pages() -> None:
    databases = FakeDatabases(responses=[
        {"results": [notion_page("p1", "First")], "has_more": True, "next_cursor": "c2"},
        {"results": [notion_page("p2", "Second")], "has_more": False, "next_cursor": None},
    ])
    result = live_client(databases).list_articles(limit=1, page=2)
    assert [a.id for a in result.data.articles] == ["p2"]
    assert databases.calls[1]["start_cursor"] == "c2"


def test_live_failure_falls_back_with_reason() -> None:
    databases = FakeDatabases(error=RuntimeError("rate limited"))
    result = live_client(databases).list_articles(category="Privacy")
    assert isinstance(result, Fallback)
    assert "rate limited" in result.reason
    assert [a.id for a in result.data.articles] == ["6"]


def test_live_search_post_filters_case_insensitively() -> None:
    databases = FakeDatabases(responses=[{"results": [
        notion_page("p1", "Burner addresses", "Why throwaway inboxes help"),
        notion_page("p2", "Release notes", "Nothing to see", tags=["Changelog"]),
        notion_page("p3", "Misc", "", tags=["burner"]),
    ], "has_more": False}])
    result = live_client(databases).search("BURNER")
    assert isinstance(result, Ok)
    assert [a.id for a in result.data] == ["p1", "p3"]


def test_live_categories_read_select_options() -> None:
    schema = {"properties": {"Category": {"type": "select", "select": {"options": [{"name": "Privacy"}, {"name": "News"}]}}}}
    result = live_client(FakeDatabases(schema=schema)).list_categories()
    assert isinstance(result, Ok)
    assert result.data == ["Privacy", "News"]


def test_get_by_id_falls_back_then_not_found() -> None:
    client = NotionContentClient(None, None)
    found = client.get_by_id("3")
    assert isinstance(found, Fallback)
    assert found.data.title == "API-based Mail Service"

    missing = client.get_by_id("nope")
    assert isinstance(missing, Err)
    assert missing.kind == ErrorKind.NOT_FOUND


def test_get_by_id_live() -> None:
    pages = SimpleNamespace(retrieve=lambda page_id: notion_page(page_id, "Live article"))
    result = live_client(FakeDatabases(), pages=pages).get_by_id("abc")
    assert isinstance(result, Ok)
    assert result.data.id == "abc"
    assert result.data.published is True


def test_query_falls_back_to_raw_http_without_sdk_query(monkeypatch) -> None:
    captured: Dict[str, Any] = {}

    class FakeResponse:
        def raise_for_status(self) -> None:
            pass

        def json(self) -> dict:
            return {"results": [notion_page("p9", "Over HTTP")], "has_more": False}

    def fake_post(url: str, headers: dict, json: dict, timeout: int) -> FakeResponse:
        captured.update(url=url, headers=headers, json=json)
        return FakeResponse()

    monkeypatch.setattr(notion_client.requests, "post", fake_post)
    fake = SimpleNamespace(databases=SimpleNamespace(), pages=None)
    result = NotionContentClient("secret", "db-1", client=fake).get_popular(3)

    assert isinstance(result, Ok)
    assert result.data[0].title == "Over HTTP"
    assert captured["url"].endswith("/databases/db-1/query")
    assert captured["headers"]["Authorization"] == "Bearer secret"


def test_categories_read_from_pages_when_schema_has_no_options() -> None:
    def categorised(page_id: str, name: str) -> Dict[str, Any]:
        return notion_page(page_id, page_id, Category={"type": "select", "select": {"name": name}})

    databases = FakeDatabases(
        responses=[{"results": [categorised("p1", "Guide"), categorised("p2", "Privacy"), categorised("p3", "Guide")]}],
        schema={"properties": {}},
    )
    result = live_client(databases).list_categories()
    assert isinstance(result, Ok)
    assert result.data == ["Guide", "Privacy"]
    assert databases.calls == [{"page_size": 100}]


def test_categories_fall_back_when_notion_has_none() -> None:
    result = live_client(FakeDatabases(schema={"properties": {}})).list_categories()
    assert isinstance(result, Fallback)
    assert result.reason == "Notion database has no categories"
    assert result.data == ["Privacy", "Security", "Guide", "Tips", "News"]
