"""Documentation lookups over the full-text index."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from refdocs.config import CHARS_PER_TOKEN, DEFAULT_MAX_TOKENS
from refdocs.errors import InvalidArgumentError, OperationCancelled
from refdocs.index.storage import SearchHit, SearchQuery, SQLiteDocIndex
from refdocs.ingestion.class_parser import parse_class_doc
from refdocs.models import ClassReference

DOCS_RESULT_LIMIT = 10
TRUNCATION_MARKER = "..."

DOC_FIELDS = ("title", "source", "category", "content", "url")
CLASS_FIELDS = ("title", "source", "content", "url", "entities")


@dataclass(slots=True)
class DocResult:
    title: str
    source: str
    category: str
    snippet: str
    score: float
    url: str = ""

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "source": self.source,
            "category": self.category,
            "snippet": self.snippet,
        }
        if self.url:
            payload["url"] = self.url
        payload["score"] = self.score
        return payload


@dataclass(slots=True)
class LookupDocsResult:
    results: List[DocResult] = field(default_factory=list)
    total: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {"results": [r.as_dict() for r in self.results], "total": self.total}


@dataclass(slots=True)
class LookupClassResult:
    found: bool
    class_ref: ClassReference | None = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"found": self.found}
        if self.class_ref is not None:
            payload["class"] = self.class_ref.as_dict()
        return payload


def pick_best_hit(hits: Sequence[SearchHit], class_name: str) -> SearchHit:
    """Prefer the hit titled exactly after the class, else the top-ranked one.

    A document that merely mentions a class often outranks the page that
    defines it, so an exact title match overrides relevance.
    """
    wanted = class_name.casefold()
    for hit in hits:
        if hit.get("title").casefold() == wanted:
            return hit
    return hits[0]


class DocLookup:
    """High-level API answering ``lookup_docs`` and ``lookup_class``."""

    def __init__(
        self,
        index: SQLiteDocIndex,
        *,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
        chars_per_token: int = CHARS_PER_TOKEN,
    ) -> None:
        self.index = index
        self.default_max_tokens = default_max_tokens
        self.chars_per_token = chars_per_token

    @staticmethod
    def _check_cancel(cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise OperationCancelled("Lookup cancelled")

    def lookup_docs(
        self,
        query: str,
        category: str | None = None,
        max_tokens: int | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> LookupDocsResult:
        """Free-text search whose snippets fit inside a token budget."""
        if not query or not query.strip():
            raise InvalidArgumentError("query is required")
        if max_tokens is None or max_tokens <= 0:
            max_tokens = self.default_max_tokens

        filters = {"category": category} if category else {}
        self._check_cancel(cancel)
        hits = self.index.search(
            SearchQuery(text=query, text_fields=("title", "content"), filters=filters),
            size=DOCS_RESULT_LIMIT,
            fields=DOC_FIELDS,
        )

        results: List[DocResult] = []
        total_tokens = 0
        for hit in hits:
            self._check_cancel(cancel)
            content = hit.get("content")
            # Rough estimate: one token per chars_per_token characters.
            tokens = len(content) // self.chars_per_token
            truncated = False
            if total_tokens + tokens > max_tokens:
                remaining = (max_tokens - total_tokens) * self.chars_per_token
                if remaining <= 0 or len(content) <= remaining:
                    break
                content = content[:remaining] + TRUNCATION_MARKER
                truncated = True

            total_tokens += tokens
            results.append(
                DocResult(
                    title=hit.get("title"),
                    source=hit.get("source"),
                    category=hit.get("category"),
                    snippet=content,
                    url=hit.get("url"),
                    score=hit.score,
                )
            )
            if truncated:
                break

        return LookupDocsResult(results=results, total=len(results))

    def _resolve_class_hits(
        self, class_name: str, cancel: threading.Event | None
    ) -> List[SearchHit]:
        stages = (
            (SearchQuery(title=class_name), 5),
            (
                SearchQuery(
                    text=class_name,
                    text_fields=("title", "content", "entities"),
                    filters={"entities": class_name},
                ),
                10,
            ),
            (SearchQuery(text=class_name, text_fields=("title", "content", "entities")), 5),
        )
        for query, size in stages:
            self._check_cancel(cancel)
            hits = self.index.search(query, size=size, fields=CLASS_FIELDS)
            if hits:
                return hits
        return []

    def lookup_class(
        self, class_name: str, *, cancel: threading.Event | None = None
    ) -> LookupClassResult:
        """Find the reference page for a class and parse it."""
        if not class_name or not class_name.strip():
            raise InvalidArgumentError("class_name is required")
        class_name = class_name.strip()

        hits = self._resolve_class_hits(class_name, cancel)
        if not hits:
            return LookupClassResult(found=False)

        hit = pick_best_hit(hits, class_name)
        info = parse_class_doc(class_name, hit.get("content"))
        info.source = hit.get("source")
        info.url = hit.get("url")
        return LookupClassResult(found=True, class_ref=info)
