"""
Evidence Reducer: from the topic-filtered articles to the evidence set sent to
the synthesizer.

Algorithm
---------
1) Order candidates. Articles whose title contains the whole topic string
   (case-insensitive) come first; inside each tier, newest first. The sort is
   stable, so equal keys keep their input order. Whoever sorts first wins a
   duplicate collision.
   The tier uses the full topic string, not the per-word title hits the topic
   filter records in ``state.topic_matches``: a title sharing one word of a
   multi-word topic is not promoted. ``topic_matches`` stays an audit record.
2) Normalize each candidate in that order (lead sentences + fingerprint).
3) Single pass over the normalized candidates:
   - fingerprint already accepted        -> drop (exact duplicate)
   - near-duplicate of an accepted lead  -> drop (near duplicate)
   - otherwise                           -> accept
   Only *accepted* leads are compared against, so a dropped candidate never
   causes further drops. Cost is O(k^2) with k <= max_items.
4) Stop as soon as ``max_items`` leads are accepted. Candidates past that
   point are never screened for duplicates.
5) Rank = 0-based position in the accepted list.

Source diversity
----------------
When the budget filled up with a single outlet, the first unscreened candidate
from another outlet that duplicates none of the other accepted leads replaces
the lowest-ranked one. This keeps at least two outlets in the set whenever the
input has them and ``max_items >= 2``.

Outputs (step):
- state.evidence: list[EvidenceItem]
- state.dropped:  list[DroppedArticle] audit trail
"""

from typing import Dict, List, Optional

from loguru import logger

from ..core.base import PipelineStep
from ..core.models import DigestState, DroppedArticle, EvidenceItem, NormalizedFragment, RawArticle
from .deduplicate import DEFAULT_THRESHOLD, check_threshold, jaccard_similarity
from .normalize import normalize_article
from .topic_filter import no_relevant_articles

DEFAULT_MAX_ITEMS = 20


def order_candidates(articles: List[RawArticle], topic: str) -> List[RawArticle]:
    needle = (topic or "").strip().lower()

    def key(article: RawArticle):
        in_title = bool(needle) and needle in (article.title or "").lower()
        return (0 if in_title else 1, -article.publish_time.timestamp())

    return sorted(articles, key=key)


def _screen(
    fragment: NormalizedFragment,
    seen: Dict[str, str],
    accepted: List[NormalizedFragment],
    threshold: float,
) -> Optional[DroppedArticle]:
    """Return a drop record if ``fragment`` duplicates an accepted lead."""
    fp = fragment.content_fingerprint
    if fp in seen:
        return DroppedArticle(article=fragment.article, reason="exact_duplicate", duplicate_of=seen[fp])

    for kept in accepted:
        similarity = jaccard_similarity(fragment.canonical_text, kept.canonical_text)
        if similarity >= threshold:
            return DroppedArticle(
                article=fragment.article,
                reason="near_duplicate",
                duplicate_of=kept.article.url,
                similarity=round(similarity, 4),
            )
    return None


def _diversify(
    accepted: List[NormalizedFragment],
    remaining: List[RawArticle],
    threshold: float,
    max_sentences: int,
) -> Optional[NormalizedFragment]:
    """Swap the last accepted lead for one from another outlet. Returns the evicted lead."""
    outlets = {f.article.source_name for f in accepted}
    if len(accepted) < 2 or len(outlets) != 1:
        return None

    outlet = next(iter(outlets))
    kept = accepted[:-1]
    kept_seen = {f.content_fingerprint: f.article.url for f in kept}

    for article in remaining:
        if article.source_name == outlet:
            continue
        candidate = normalize_article(article, max_sentences=max_sentences)
        if _screen(candidate, kept_seen, kept, threshold) is not None:
            continue
        evicted = accepted[-1]
        accepted[-1] = candidate
        return evicted
    return None


def reduce_evidence(
    articles: List[RawArticle],
    topic: str,
    max_items: int = DEFAULT_MAX_ITEMS,
    threshold: float = DEFAULT_THRESHOLD,
    max_sentences: int = 2,
    ensure_diversity: bool = True,
    dropped: Optional[List[DroppedArticle]] = None,
) -> List[EvidenceItem]:
    """Deduplicate, order and budget ``articles`` into a ranked evidence set.

    Rejected candidates are appended to ``dropped`` when a list is given.
    """
    if max_items is None or int(max_items) <= 0:
        raise ValueError(f"max_items must be a positive integer, got {max_items!r}")
    if max_sentences is None or int(max_sentences) <= 0:
        raise ValueError(f"max_sentences must be a positive integer, got {max_sentences!r}")
    threshold = check_threshold(threshold)
    max_items = int(max_items)

    ordered = order_candidates(articles, topic)

    seen: Dict[str, str] = {}
    accepted: List[NormalizedFragment] = []
    consumed = 0

    for article in ordered:
        if len(accepted) >= max_items:
            break
        consumed += 1

        fragment = normalize_article(article, max_sentences=max_sentences)
        drop = _screen(fragment, seen, accepted, threshold)
        if drop is not None:
            label = "exact" if drop.reason == "exact_duplicate" else "near"
            logger.debug("Skipping {} duplicate from {}: {}", label, article.source_name, article.url)
            if dropped is not None:
                dropped.append(drop)
            continue

        seen[fragment.content_fingerprint] = article.url
        accepted.append(fragment)

    if ensure_diversity and len(accepted) == max_items:
        evicted = _diversify(accepted, ordered[consumed:], threshold, max_sentences)
        if evicted is not None:
            logger.debug("Replaced {} with {} for source diversity", evicted.article.url, accepted[-1].article.url)
            if dropped is not None:
                dropped.append(DroppedArticle(article=evicted.article, reason="displaced_for_diversity"))

    return [EvidenceItem(fragment=f, rank=i) for i, f in enumerate(accepted)]


class EvidenceReducerStep(PipelineStep):
    """
    Config keys:
      - max_items: int (default: 20)
      - similarity_threshold: float in [0, 1] (default: 0.8)
      - max_sentences: int (default: 2) lead sentences kept per article
      - ensure_source_diversity: bool (default: True)
    """

    def execute(self, state: DigestState) -> DigestState:
        if state.error:
            return state

        dropped: List[DroppedArticle] = []
        evidence = reduce_evidence(
            state.articles,
            state.topic,
            max_items=self.config.get("max_items", DEFAULT_MAX_ITEMS),
            threshold=self.config.get("similarity_threshold", DEFAULT_THRESHOLD),
            max_sentences=self.config.get("max_sentences", 2),
            ensure_diversity=self.config.get("ensure_source_diversity", True),
            dropped=dropped,
        )

        self.log_artifact(
            "Dedup Log",
            [{"url": d.article.url, "reason": d.reason, "duplicate_of": d.duplicate_of,
              "similarity": d.similarity} for d in dropped],
        )

        outlets = sorted({e.source_name for e in evidence})
        print(f"[{self.__class__.__name__}] {len(evidence)} evidence items from {len(outlets)} source(s); "
              f"{len(dropped)} dropped.")

        state.evidence = evidence
        state.dropped = dropped
        if not evidence:
            state.error = no_relevant_articles(state.topic)
        return state
