import os
import uuid
from typing import Any, Dict, List, Optional

import openai

from .logging import PipelineObserver


class LLMService:
    """Thin wrapper over an OpenAI-compatible chat endpoint.

    Any transport failure (including the request timeout) surfaces as a
    ``RuntimeError``; callers decide how to degrade.
    """

    def __init__(self, config: Dict[str, Any], observer: Optional[PipelineObserver] = None):
        self.base_url = config.get("base_url") or os.environ.get("OPENAI_BASE_URL") or "https://api.openai.com/v1"
        self.api_key = config.get("api_key") or os.environ.get("OPENAI_API_KEY") or "missing-key"
        self.timeout = float(config.get("timeout", 60.0))
        if self.timeout <= 0:
            raise ValueError("llm_settings.timeout must be a positive number of seconds")
        self.max_retries = int(config.get("max_retries", 0))

        self.client = openai.OpenAI(
            base_url=self.base_url,
            api_key=self.api_key,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

        self.observer = observer

        # Accumulators
        self.token_usage = {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0
        }

    def call(self,
             prompt: str,
             model: str,
             temperature: float,
             max_tokens: Optional[int] = None,
             system: Optional[str] = None,
             ) -> str:

        if max_tokens is not None and max_tokens <= 0:
            raise ValueError("max_tokens must be a positive integer")
        if temperature is None or temperature < 0:
            raise ValueError("temperature must be a positive float")

        call_id = uuid.uuid4().hex

        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        if self.observer:
            self.observer.on_artifact(
                "LLM Prompt",
                {
                    "call_id": call_id,
                    "model": model,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                    "system": system,
                    "prompt": prompt,
                },
                depth=0,
            )

        usage_data: Dict[str, Any] = {
            "call_id": call_id,
            "model": model,
            "prompt": None,
            "completion": None,
            "total": None,
        }

        try:
            response = self.client.chat.completions.create(**kwargs)
        except Exception as e:
            if self.observer:
                usage_data["error"] = str(e)
                self.observer.on_artifact("LLM Usage Stats", usage_data, depth=0)
            raise RuntimeError(f"LLM Service Error [Model: {model}]: {e}") from e

        # --- TRACK USAGE ---
        if response.usage:
            u = response.usage
            self.token_usage["prompt_tokens"] += u.prompt_tokens
            self.token_usage["completion_tokens"] += u.completion_tokens
            self.token_usage["total_tokens"] += u.total_tokens
            usage_data["prompt"] = u.prompt_tokens
            usage_data["completion"] = u.completion_tokens
            usage_data["total"] = u.total_tokens

        if self.observer:
            self.observer.on_artifact("LLM Usage Stats", usage_data, depth=0)

        content = response.choices[0].message.content if response.choices else None
        return content.strip() if content else ""
