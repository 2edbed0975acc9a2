import argparse
import copy
import sys

from .configs.default_config import DIGEST_CONFIG, OFFLINE_DIGEST_CONFIG
from .core.models import DigestState
from .core.orchestrator import PipelineOrchestrator
from .core.validator import validate_llm_models


def print_report(state: DigestState):
    """
    Helper to pretty-print the final digest.
    """
    print("\n" + "=" * 80)
    print(f" DIGEST | Topic: {state.topic}")
    print("=" * 80 + "\n")

    if state.error:
        print(f"(!) {state.error}")
        return

    print(f"Evidence ({len(state.evidence)}):")
    for item in state.evidence:
        when = item.publish_time.strftime("%Y-%m-%d %H:%M")
        print(f"  [{item.rank}] {item.source_name} | {when} | {item.title}")
        print(f"      {item.url}")
    if state.dropped:
        print(f"Dropped ({len(state.dropped)}): " +
              ", ".join(f"{d.article.source_name} ({d.reason})" for d in state.dropped))

    synthesis = state.synthesis
    if synthesis is None:
        return
    print("\n--- Summary" + (" (fallback)" if synthesis.used_fallback else "") + " ---\n")
    print(synthesis.summary_text or "(empty)")
    print(f"\nSources used: {', '.join(synthesis.sources_used) or 'none'}")
    print(f"Articles used: {synthesis.matched_article_indices}")

    if state.validation:
        v = state.validation
        icon = "✅" if v.valid else "⚠️"
        print(f"\n{icon} {v.word_count} words, {v.source_count} sources"
              + (f" | issues: {', '.join(v.issues)}" if v.issues else ""))
        print(f"Persistable: {state.persistable}")
    print("-" * 60)


def build_config(args: argparse.Namespace) -> dict:
    config = copy.deepcopy(OFFLINE_DIGEST_CONFIG if args.offline else DIGEST_CONFIG)
    config["debug"] = args.debug
    for step_def in config["steps"]:
        settings = step_def.setdefault("settings", {})
        if step_def["type"] == "reduce_evidence" and args.max_items is not None:
            settings["max_items"] = args.max_items
        if step_def["type"] == "synthesize" and args.model:
            settings["model"] = args.model
    return config


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Synthesize one attributed summary per news topic.")
    parser.add_argument("topic", help="free-text topic, e.g. 'elections'")
    parser.add_argument("--offline", action="store_true", help="use the bundled sample articles instead of RSS")
    parser.add_argument("--max-items", type=int, default=None, help="evidence budget (default 20)")
    parser.add_argument("--model", default=None, help="synthesizer model name")
    parser.add_argument("--debug", action="store_true", help="write a debug log under ./logs")
    parser.add_argument("--json", dest="json_out", default=None, help="also write the final state to this file")
    parser.add_argument("--check-models", action="store_true",
                        help="verify the configured models are served before running")
    args = parser.parse_args(argv)

    try:
        orchestrator = PipelineOrchestrator(build_config(args))
    except ValueError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 2

    if args.check_models:
        print("--- Validating Model Availability ---")
        problems = validate_llm_models(orchestrator.config)
        if problems:
            for problem in problems:
                print(f"   - {problem}", file=sys.stderr)
            return 2
        print("[OK] All models available.")

    final_state = orchestrator.run_topic(args.topic)
    print_report(final_state)

    if args.json_out:
        with open(args.json_out, "w", encoding="utf-8") as f:
            f.write(final_state.model_dump_json(indent=2))
        print(f"\nFull structured data saved to '{args.json_out}'")

    return 1 if final_state.error else 0


if __name__ == "__main__":
    sys.exit(main())
