import json
import os
import sys
import threading
from datetime import datetime
from typing import Any, Dict, Optional, Protocol

from loguru import logger


class PipelineObserver(Protocol):
    def on_run_start(self, name: str, run_id: str): ...

    def on_step_start(self, step_name: str, config: Dict[str, Any], depth: int): ...

    def on_step_end(self, step_name: str, duration: float, tokens: int, state_json: str, depth: int): ...

    def on_artifact(self, label: str, data: Any, depth: int): ...

    def on_run_end(self, duration: float): ...

    def log_summary(self, summary_text: str): ...


def _default_log_dir() -> str:
    # .../newsdigest/core/logging.py -> project root
    core_dir = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.dirname(os.path.dirname(core_dir))
    return os.path.join(project_root, "logs")


class PipelineLogger:
    """Writes a per-run debug log of steps, state snapshots and artifacts.

    Prompts sent to the synthesizer go to a separate ``*_prompts.log`` file,
    paired with their token usage by ``call_id``.
    """

    def __init__(self, run_id: str, debug: bool = True, log_dir: Optional[str] = None):
        self.debug = debug
        self.run_id = run_id
        self.log_file = None
        self.prompt_log_file = None
        self._pending_prompts: Dict[str, Dict[str, str]] = {}
        self._lock = threading.RLock()

        # Reset loguru to clear default handlers
        logger.remove()
        logger.add(sys.stderr, format="<level>{level}</level> {message}", level="WARNING")

        if self.debug:
            log_dir = log_dir or _default_log_dir()
            os.makedirs(log_dir, exist_ok=True)

            self.log_file = os.path.join(log_dir, f"digest_debug_{run_id}.log")
            self.prompt_log_file = os.path.join(log_dir, f"digest_debug_{run_id}_prompts.log")

            fmt = "<green>{time:H:mm:ss}</green>\n{message}\n"
            logger.add(self.log_file, format=fmt, level="DEBUG")

    def _format_json(self, data: Any) -> str:
        try:
            s = json.dumps(data, indent=2, default=str)
            return s.replace("\\n", "\n      ")
        except (TypeError, ValueError):
            return str(data)

    def _truncate_large_strings(self, obj: Any, max_len: int = 600) -> Any:
        if isinstance(obj, str):
            if len(obj) > max_len:
                return obj[:max_len] + f"... [truncated {len(obj) - max_len} chars]"
            return obj
        if isinstance(obj, dict):
            return {k: self._truncate_large_strings(v, max_len) for k, v in obj.items()}
        if isinstance(obj, list):
            return [self._truncate_large_strings(i, max_len) for i in obj]
        return obj

    def _log(self, text: str, depth: int):
        if not self.debug:
            return
        indent = "   " * depth
        lines = text.splitlines()
        if not lines:
            return
        logger.debug("\n".join(f"{indent}{line}" for line in lines))

    def _append_prompt_log(self, text: str):
        if not self.debug or not self.prompt_log_file:
            return
        with self._lock:
            with open(self.prompt_log_file, "a", encoding="utf-8") as f:
                f.write(text + "\n")

    def _write_prompt_entry(self, timestamp: str, content: str, usage: Optional[Dict[str, Any]]):
        if isinstance(usage, dict):
            tokens = " ".join(
                f"{k}={usage.get(k) if usage.get(k) is not None else '?'}"
                for k in ("prompt", "completion", "total")
            )
        else:
            tokens = "unknown"
        self._append_prompt_log(
            f"{timestamp}\n>>> [LLM Prompt]\nTOKENS: {tokens}\n{content}\n{'=' * 80}"
        )

    # -------------------------------------------------------------------------
    # PUBLIC EVENTS
    # -------------------------------------------------------------------------

    def on_run_start(self, name: str, run_id: str):
        divider = "=" * 80
        self._log(f"{divider}\nLAUNCHING PIPELINE: {name} (ID: {run_id})\n{divider}", 0)

    def on_step_start(self, step_name: str, config: Dict[str, Any], depth: int):
        safe_conf = {k: v for k, v in config.items() if k not in ["debug", "llm_settings", "articles"]}
        msg = (
            f"START STEP: {step_name}\n"
            f"--- SETTINGS ---\n"
            f"{self._format_json(safe_conf)}\n"
            f"----------------"
        )
        self._log(msg, depth)

    def on_step_end(self, step_name: str, duration: float, tokens: int, state_json: str, depth: int):
        try:
            clean_json_str = self._format_json(self._truncate_large_strings(json.loads(state_json)))
        except ValueError:
            clean_json_str = state_json

        stats = f"DURATION: {duration:.4f}s"
        if tokens > 0:
            stats += f" | TOKENS: {tokens}"

        divider = "=" * 80
        msg = (
            f"--- OUTPUT STATE ---\n"
            f"{clean_json_str}\n"
            f"{divider}\n"
            f"FINISHED: {step_name} | {stats}\n"
            f"{divider}"
        )
        self._log(msg, depth)

    def on_artifact(self, label: str, data: Any, depth: int):
        if label == "LLM Prompt":
            if not self.debug:
                return
            timestamp = datetime.now().strftime("%H:%M:%S")
            prompt_data = dict(data) if isinstance(data, dict) else data
            call_id = prompt_data.pop("call_id", None) if isinstance(prompt_data, dict) else None
            content = self._format_json(prompt_data) if isinstance(prompt_data, (dict, list)) else str(prompt_data)
            with self._lock:
                if call_id:
                    self._pending_prompts[call_id] = {"timestamp": timestamp, "content": content}
                else:
                    self._write_prompt_entry(timestamp, content, usage=None)
            return

        if label == "LLM Usage Stats" and isinstance(data, dict):
            with self._lock:
                entry = self._pending_prompts.pop(data.get("call_id"), None)
            if entry:
                self._write_prompt_entry(entry["timestamp"], entry["content"], data)

        content = self._format_json(data) if isinstance(data, (dict, list)) else str(data)
        self._log(f">>> [ARTIFACT] {label}\n{content}", depth=depth)

    def on_run_end(self, duration: float):
        with self._lock:
            for entry in self._pending_prompts.values():
                self._write_prompt_entry(entry["timestamp"], entry["content"], usage=None)
            self._pending_prompts.clear()
        divider = "=" * 80
        self._log(f"{divider}\nTOTAL PIPELINE TIME: {duration:.4f}s\n{divider}", 0)

    def log_summary(self, summary_text: str):
        if not self.debug or not self.log_file:
            return
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write("\n" + summary_text + "\n")
