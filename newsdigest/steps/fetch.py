"""
Feed fetching: pull RSS/Atom feeds from the configured outlets.

Every source is fetched independently in a thread pool with its own HTTP
timeout. A dead or malformed feed yields ``FetchResult(success=False)`` and
never blocks or aborts the others.

Inputs:
- config keys: sources (list of {name, url}), timeout (seconds, default 10),
  max_workers (default 4), max_articles_per_source (optional)

Outputs:
- state.fetch_results: one FetchResult per source, in config order
- state.articles: merged articles of all successful sources
- state.error: set only when every source failed
"""

import calendar
import concurrent.futures
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import feedparser
import httpx

from ..core.base import PipelineStep
from ..core.models import DigestState, FeedSource, FetchResult, RawArticle

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "newsdigest/0.1 (+feed reader)"


def _entry_time(entry) -> Optional[datetime]:
    for attr in ("published_parsed", "updated_parsed"):
        parsed = entry.get(attr)
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return None


def _entry_body(entry) -> str:
    body = entry.get("summary") or entry.get("description")
    if not body and entry.get("content"):
        body = entry["content"][0].get("value", "")
    return body or ""


def entry_to_article(entry, source_name: str) -> RawArticle:
    return RawArticle(
        title=entry.get("title", ""),
        body=_entry_body(entry),
        source_name=source_name,
        url=entry.get("link", ""),
        publish_time=_entry_time(entry),
    )


def _failed(source: FeedSource, e: Exception) -> FetchResult:
    return FetchResult(source=source.name, success=False, error=str(e) or e.__class__.__name__)


def fetch_feed(source: FeedSource, timeout: float = DEFAULT_TIMEOUT,
               client: Optional[httpx.Client] = None) -> FetchResult:
    try:
        if client is not None:
            resp = client.get(source.url, timeout=timeout)
        else:
            resp = httpx.get(source.url, timeout=timeout, follow_redirects=True,
                             headers={"User-Agent": USER_AGENT})
        resp.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return _failed(source, e)

    try:
        feed = feedparser.parse(resp.content)
        if feed.get("bozo") and not feed.entries:
            return FetchResult(source=source.name, success=False,
                               error=f"Unparseable feed: {feed.get('bozo_exception')}")
        articles = [entry_to_article(entry, source.name) for entry in feed.entries]
    except Exception as e:
        # malformed entries fail this source only
        return _failed(source, e)
    return FetchResult(source=source.name, articles=articles)


def fetch_all(sources: Sequence[FeedSource], timeout: float = DEFAULT_TIMEOUT,
              max_workers: int = 4, client: Optional[httpx.Client] = None) -> List[FetchResult]:
    if not sources:
        return []

    results: Dict[int, FetchResult] = {}
    workers = max(1, min(max_workers, len(sources)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        future_map = {
            executor.submit(fetch_feed, source, timeout, client): i
            for i, source in enumerate(sources)
        }
        for future in concurrent.futures.as_completed(future_map):
            results[future_map[future]] = future.result()

    return [results[i] for i in range(len(sources))]


def article_stats(articles: Sequence[RawArticle]) -> Dict[str, Any]:
    stats: Dict[str, Any] = {
        "total": len(articles),
        "sources": sorted({a.source_name for a in articles}),
        "oldest": None,
        "newest": None,
    }
    if articles:
        times = [a.publish_time for a in articles]
        stats["oldest"] = min(times)
        stats["newest"] = max(times)
    return stats


class FetchFeedsStep(PipelineStep):
    def execute(self, state: DigestState) -> DigestState:
        sources = [FeedSource(**s) for s in self.config.get("sources", [])]
        if not sources:
            raise ValueError("fetch_feeds requires at least one source in settings.")

        results = fetch_all(
            sources,
            timeout=float(self.config.get("timeout", DEFAULT_TIMEOUT)),
            max_workers=int(self.config.get("max_workers", 4)),
        )

        per_source = self.config.get("max_articles_per_source")
        articles: List[RawArticle] = []
        for result in results:
            if result.success:
                print(f"  [ok] {result.source}: {len(result.articles)} articles")
                articles.extend(result.articles[:per_source] if per_source else result.articles)
            else:
                print(f"  [skip] {result.source}: {result.error}")

        ok = sum(1 for r in results if r.success)
        print(f"[{self.__class__.__name__}] {ok}/{len(sources)} sources, {len(articles)} articles.")
        self.log_artifact("Fetch Stats", article_stats(articles))

        state.fetch_results = results
        state.articles = articles
        if ok == 0:
            state.error = "All sources failed to fetch articles."
        return state
