"""Offline stand-ins for the feed fetcher."""

from ..configs.sample_articles import SAMPLE_ARTICLES
from ..core.base import PipelineStep
from ..core.models import DigestState, RawArticle


class MockArticleLoader(PipelineStep):
    """Loads ``settings.articles`` (raw dicts) or the bundled sample articles into the state."""

    def execute(self, state: DigestState) -> DigestState:
        raw = self.config.get("articles") or SAMPLE_ARTICLES
        state.articles = [a if isinstance(a, RawArticle) else RawArticle(**a) for a in raw]
        print(f"[{self.__class__.__name__}] Loaded {len(state.articles)} articles.")
        return state
