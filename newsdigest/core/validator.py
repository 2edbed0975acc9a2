import re
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

import httpx

from .factory import StepFactory


def _iter_steps(steps: List[Dict[str, Any]]) -> Iterator[Tuple[str, Dict[str, Any]]]:
    for step_def in steps or []:
        step_type = step_def.get("type", "")
        settings = step_def.get("settings") or {}
        yield step_type, settings
        if step_type == "module":
            yield from _iter_steps(settings.get("steps", []))


def _check_positive_int(errors: List[str], where: str, settings: Dict[str, Any], key: str):
    if key not in settings:
        return
    value = settings[key]
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        errors.append(f"{where}: '{key}' must be a positive integer, got {value!r}")


def _check_unit_interval(errors: List[str], where: str, settings: Dict[str, Any], key: str):
    if key not in settings:
        return
    value = settings[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
        errors.append(f"{where}: '{key}' must be within [0, 1], got {value!r}")


def validate_pipeline_config(config: Dict[str, Any]) -> None:
    """
    Fails fast on misconfiguration (the only errors the pipeline raises for):
    - unknown step types
    - max_items / max_sentences / max_workers not positive integers
    - similarity_threshold outside [0, 1]
    - min_words > max_words for the synthesizer
    - non-positive timeouts
    """
    errors: List[str] = []

    for step_type, settings in _iter_steps(config.get("steps", [])):
        where = f"step '{step_type}'"
        if not StepFactory.is_registered(step_type):
            errors.append(f"{where}: not registered")
            continue

        for key in ("max_items", "max_sentences", "max_workers", "min_words", "max_words", "min_persist_chars"):
            _check_positive_int(errors, where, settings, key)
        _check_unit_interval(errors, where, settings, "similarity_threshold")

        if isinstance(settings.get("min_words"), int) and isinstance(settings.get("max_words"), int):
            if settings["min_words"] > settings["max_words"]:
                errors.append(f"{where}: min_words ({settings['min_words']}) exceeds max_words ({settings['max_words']})")

        if "timeout" in settings and not (isinstance(settings["timeout"], (int, float)) and settings["timeout"] > 0):
            errors.append(f"{where}: 'timeout' must be a positive number, got {settings['timeout']!r}")

        if step_type == "fetch_feeds" and not settings.get("sources"):
            errors.append(f"{where}: no sources configured")

    llm_timeout = (config.get("llm_settings") or {}).get("timeout")
    if llm_timeout is not None and not (isinstance(llm_timeout, (int, float)) and llm_timeout > 0):
        errors.append(f"llm_settings: 'timeout' must be a positive number, got {llm_timeout!r}")

    if errors:
        raise ValueError("Invalid pipeline config:\n  - " + "\n  - ".join(errors))


def _collect_models(config: Dict[str, Any]) -> Set[str]:
    return {
        settings["model"]
        for _, settings in _iter_steps(config.get("steps", []))
        if isinstance(settings.get("model"), str)
    }


def validate_llm_models(config: Dict[str, Any],
                        transport: Optional[httpx.BaseTransport] = None) -> List[str]:
    """Checks that every configured 'model' is served by the OpenAI-compatible endpoint.

    Returns a list of problems; an unreachable server is reported, not raised.
    """
    models = _collect_models(config)
    if not models:
        return []

    llm_settings = config.get("llm_settings", {})
    base_url = (llm_settings.get("base_url") or "https://api.openai.com/v1").rstrip("/")
    headers = {}
    if llm_settings.get("api_key"):
        headers["Authorization"] = f"Bearer {llm_settings['api_key']}"

    try:
        with httpx.Client(timeout=5.0, headers=headers, transport=transport) as client:
            resp = client.get(f"{base_url}/models")
            if resp.status_code == 404:
                # Ollama native API
                resp = client.get(re.sub(r"/v1$", "", base_url) + "/api/tags")
                resp.raise_for_status()
                available = {m["name"] for m in resp.json().get("models", [])}
            else:
                resp.raise_for_status()
                available = {m["id"] for m in resp.json().get("data", [])}
    except (httpx.HTTPError, ValueError, KeyError) as e:
        return [f"LLM server unreachable: {e}"]

    return [
        f"Missing LLM: {m}"
        for m in sorted(models)
        if m not in available and f"{m}:latest" not in available
    ]
