"""
Wiki catalog reads: entries of a category file, text search and guide tag filters.
Data files are either a bare array or an object wrapping the array under the
category name (or "items").
"""
from __future__ import annotations

from typing import Any

WIKI_CATEGORIES = ("items", "weapons", "enemies", "pacts", "locations", "regions", "guides")
TAG_FILTER_ALL = "all"
_TITLE_FIELDS = ("name", "id", "ItemID", "locationName", "title")


def category_filename(category: str) -> str:
    return f"{category}.json"


def extract_entries(data: Any, category: str) -> list[dict[str, Any]]:
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict):
        entries = data.get(category)
        if not isinstance(entries, list):
            entries = data.get("items")
        if not isinstance(entries, list):
            entries = []
    else:
        entries = []
    return [e for e in entries if isinstance(e, dict)]


def clean_wiki_markup(text: str) -> str:
    """Drop the wiki export's ''' bold markers."""
    return (text or "").replace("'''", "").strip()


def entry_title(entry: dict[str, Any]) -> str:
    for key in _TITLE_FIELDS:
        value = entry.get(key)
        if value:
            return str(value)
    return "Unknown"


def _text_values(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return [str(value)]
    if isinstance(value, dict):
        return [t for v in value.values() for t in _text_values(v)]
    if isinstance(value, list):
        return [t for v in value for t in _text_values(v)]
    return []


def entry_text(entry: dict[str, Any]) -> str:
    """Everything searchable in an entry, lowercased."""
    return " ".join(clean_wiki_markup(t) for t in _text_values(entry)).lower()


def search_entries(entries: list[dict[str, Any]], query: str | None) -> list[dict[str, Any]]:
    q = (query or "").strip().lower()
    if not q:
        return list(entries)
    return [e for e in entries if q in entry_text(e)]


def entry_tags(entry: dict[str, Any]) -> list[Any]:
    tags = entry.get("tags")
    return tags if isinstance(tags, list) else []


def filter_by_tag(entries: list[dict[str, Any]], tag: str | None) -> list[dict[str, Any]]:
    if not tag or tag == TAG_FILTER_ALL:
        return list(entries)
    return [e for e in entries if tag in entry_tags(e)]
