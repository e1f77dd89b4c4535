from __future__ import annotations

from typing import List, Optional

from stealthmail.models.article_models import Article


FALLBACK_CATEGORIES = ["Privacy", "Security", "Guide", "Tips", "News"]

_FALLBACK = [
    {
        "id": "1",
        "title": "Best Temporary Email Services in 2025: Complete Guide",
        "excerpt": "Wondering what is the best service for temporary email service to use for your needs? Explore the top offerings along with stealthmail.com",
        "author": "Stealth Mail Team",
        "category": "Guide",
        "date": "2025-10-01T10:00:00Z",
        "readTime": "5 min read",
        "popular": True,
        "views": 1250,
        "tags": ["guide", "temporary-email", "services"],
        "coverImage": "https://images.unsplash.com/photo-1446776653964-20c1d3a81b06?w=800&h=400&fit=crop",
    },
    {
        "id": "2",
        "title": "Disposable Temporary Email vs Regular Email: Complete Security Comparison Guide 2025",
        "excerpt": "Comparison of features, pros and cons of a disposable email vs regular email from the perspective of security and other paradigms",
        "author": "Security Team",
        "category": "Security",
        "date": "2025-09-22T14:30:00Z",
        "readTime": "8 min read",
        "popular": True,
        "views": 980,
        "tags": ["security", "comparison", "email"],
        "coverImage": "https://images.unsplash.com/photo-1563013544-824ae1b704d3?w=800&h=400&fit=crop",
    },
    {
        "id": "3",
        "title": "API-based Mail Service",
        "excerpt": "Explore the use cases of an API based Mail service and understand what it can do for you",
        "author": "Tech Team",
        "category": "Technology",
        "date": "2025-09-16T09:15:00Z",
        "readTime": "6 min read",
        "popular": True,
        "views": 750,
        "tags": ["api", "mail-service", "technology"],
        "coverImage": "https://images.unsplash.com/photo-1611224923853-80b023f02d71?w=800&h=400&fit=crop",
    },
    {
        "id": "4",
        "title": "What Is Temporary Email and How Does It Work?",
        "excerpt": "Learn the fundamentals of temporary email services and understand how they protect your privacy online",
        "author": "Education Team",
        "category": "Education",
        "date": "2025-09-16T16:45:00Z",
        "readTime": "4 min read",
        "popular": False,
        "views": 1100,
        "tags": ["education", "how-to", "basics"],
        "coverImage": "https://images.unsplash.com/photo-1552664730-d307ca884978?w=800&h=400&fit=crop",
    },
    {
        "id": "5",
        "title": "Are Temporary Email Services Safe? Answers to 10 Common Questions",
        "excerpt": "Get answers to the most frequently asked questions about temporary email security and privacy",
        "author": "Security Team",
        "category": "Security",
        "date": "2025-09-01T16:45:00Z",
        "readTime": "7 min read",
        "popular": False,
        "views": 890,
        "tags": ["security", "faq", "safety"],
        "coverImage": "https://images.unsplash.com/photo-1550751827-4bd374c3f58b?w=800&h=400&fit=crop",
    },
    {
        "id": "6",
        "title": "Top 7 Reasons to Use Disposable Email Addresses in 2025",
        "excerpt": "Discover the key benefits of using disposable email addresses for online privacy and security",
        "author": "Privacy Team",
        "category": "Privacy",
        "date": "2025-09-01T16:45:00Z",
        "readTime": "5 min read",
        "popular": False,
        "views": 1050,
        "tags": ["privacy", "benefits", "disposable-email"],
        "coverImage": "https://images.unsplash.com/photo-1563986768609-322da13575f3?w=800&h=400&fit=crop",
    },
]


def all_articles() -> List[Article]:
    return [Article(url="#", published=True, **raw) for raw in _FALLBACK]


def by_category(category: Optional[str]) -> List[Article]:
    articles = all_articles()
    if not category:
        return articles
    wanted = category.lower()
    return [a for a in articles if a.category.lower() == wanted]


def popular(limit: int) -> List[Article]:
    return [a for a in all_articles() if a.popular][:limit]


def search(query: str, limit: int) -> List[Article]:
    return [a for a in all_articles() if a.matches(query)][:limit]


def find(article_id: str) -> Optional[Article]:
    return next((a for a in all_articles() if a.id == article_id), None)
