import copy
import io
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

# Rich is still used for the pretty terminal table
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .factory import StepFactory
from .logging import PipelineLogger
from .models import DigestState
from .validator import validate_pipeline_config


class PipelineOrchestrator:
    def __init__(self, config: Dict, console: Optional[Console] = None):
        # Steps receive their own copy of the settings, so one config dict can be reused.
        self.config = copy.deepcopy(config)
        validate_pipeline_config(self.config)

        self.name = self.config.get("name", "Digest")
        self.run_id = self.config.get("run_id") or datetime.now().strftime("%Y%m%d_%H%M%S")
        self.debug = self.config.get("debug", False)
        self.console = console or Console()

        # 1. Initialize the Logger Service
        self.logger = PipelineLogger(self.run_id, debug=self.debug, log_dir=self.config.get("log_dir"))

        # 2. Build Steps
        llm_settings = self.config.get("llm_settings", {})
        self.steps = []
        for step_def in self.config.get("steps", []):
            # Inject global settings
            settings = step_def.setdefault("settings", {})
            settings.setdefault("debug", self.debug)
            settings.setdefault("llm_settings", llm_settings)

            step = StepFactory.create(step_def)
            step.observer = self.logger
            self.steps.append(step)

    def run(self, initial_state: DigestState) -> DigestState:
        self.logger.on_run_start(self.name, self.run_id)
        print(f"--- Launching Pipeline: {self.name} (ID={self.run_id}) ---")

        total_start = time.time()
        state = initial_state

        for step in self.steps:
            step.observer = self.logger
            state = step.run(state)

        total_duration = time.time() - total_start
        self.logger.on_run_end(total_duration)

        self._print_and_log_summary(state, total_duration)
        return state

    def run_topic(self, topic: str) -> DigestState:
        return self.run(DigestState(topic=topic))

    def _print_and_log_summary(self, state: DigestState, total_duration: float):
        """
        Generates the Rich table, prints it to stdout, and logs it to file.
        """
        ordered_log = self._reorder_logs_header_style(state.execution_log)
        total_tokens = 0

        table = Table(
            title=f"EXECUTION SUMMARY: {self.name}",
            title_justify="left",
            box=box.ROUNDED,
            show_header=True
        )
        table.add_column("Step Name", justify="left", no_wrap=True)
        table.add_column("Duration", justify="right")
        table.add_column("Articles", justify="right")
        table.add_column("Evidence", justify="right")
        table.add_column("Tokens", justify="right")

        for entry in ordered_log:
            padding = "   " * entry.get("indent", 0)
            name = str(entry.get("step", "Unknown"))
            tokens = entry.get("tokens", 0)
            total_tokens += tokens

            if entry.get("is_module", False):
                display_name = Text(f"{padding}>> {name.upper()}", style="bold magenta")
                token_display = ""
            else:
                display_name = f"{padding}{name}"
                token_display = str(tokens) if tokens > 0 else "-"

            table.add_row(
                display_name,
                f"{float(entry.get('duration', 0.0)):.4f}s",
                str(entry.get("articles", "-")),
                str(entry.get("evidence_total_after", "-")),
                token_display,
            )

        table.add_section()
        table.add_row("TOTAL", f"{total_duration:.4f}s", "", str(len(state.evidence)), str(total_tokens))

        self.console.print(table)

        # Render again without colour for the log file
        string_buffer = io.StringIO()
        Console(file=string_buffer, no_color=True, width=150).print(table)
        self.logger.log_summary(string_buffer.getvalue())

    def _reorder_logs_header_style(self, original_log: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Transforms the flat execution log into a list where parents appear BEFORE children.
        """
        levels: Dict[int, List[Dict[str, Any]]] = {}
        for entry in original_log:
            depth = entry.get("indent", 0)
            levels.setdefault(depth, [])

            if entry.get("is_module", False):
                children = levels.get(depth + 1, [])
                levels[depth + 1] = []  # Consume children
                levels[depth].append(entry)
                levels[depth].extend(children)
            else:
                levels[depth].append(entry)

        return levels.get(0, [])
