from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest

from newsdigest.configs.sample_articles import SAMPLE_ARTICLES
from newsdigest.core.models import EvidenceItem, RawArticle
from newsdigest.steps.normalize import normalize_article

BASE_TIME = datetime(2024, 6, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_article() -> Callable[..., RawArticle]:
    counter = {"n": 0}

    def _make(body: str = "", title: str = "Untitled report", source: str = "The Hindu",
              minutes: int = 0, url: str = None) -> RawArticle:
        counter["n"] += 1
        return RawArticle(
            title=title,
            body=body,
            source_name=source,
            url=url or f"https://example.com/{counter['n']}",
            publish_time=BASE_TIME + timedelta(minutes=minutes),
        )

    return _make


@pytest.fixture
def sample_articles() -> List[RawArticle]:
    return [RawArticle(**a) for a in SAMPLE_ARTICLES]


@pytest.fixture
def make_evidence(make_article) -> Callable[..., List[EvidenceItem]]:
    def _make(*rows) -> List[EvidenceItem]:
        """Each row is (source, title, body)."""
        items = []
        for rank, (source, title, body) in enumerate(rows):
            fragment = normalize_article(make_article(body=body, title=title, source=source))
            items.append(EvidenceItem(fragment=fragment, rank=rank))
        return items

    return _make
