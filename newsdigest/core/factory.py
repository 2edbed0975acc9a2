from typing import Dict, Any

from ..steps.fetch import FetchFeedsStep
from ..steps.mocks import MockArticleLoader
from ..steps.quality import QualityStep
from ..steps.reduce import EvidenceReducerStep
from ..steps.synthesis import SynthesisStep
from ..steps.topic_filter import TopicFilterStep


class StepFactory:
    # Do NOT put "module" in here to avoid circular imports
    _registry = {
        "fetch_feeds": FetchFeedsStep,
        "mock_articles": MockArticleLoader,
        "topic_filter": TopicFilterStep,
        "reduce_evidence": EvidenceReducerStep,
        "synthesize": SynthesisStep,
        "validate_quality": QualityStep,
    }

    @classmethod
    def register(cls, name: str, step_class):
        cls._registry[name] = step_class

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name == "module" or name in cls._registry

    @classmethod
    def create(cls, step_def: Dict[str, Any]):
        step_type = step_def["type"]
        step_config = step_def.get("settings", {})

        if step_type == "module":
            # Import locally to prevent circular dependency
            from .base import PipelineModule
            return PipelineModule(step_config)

        step_class = cls._registry.get(step_type)
        if not step_class:
            raise ValueError(f"Step type '{step_type}' not registered.")

        return step_class(step_config)
