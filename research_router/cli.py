"""Research Router - hybrid retrieval turns from the command line."""

from __future__ import annotations

import argparse
import asyncio
import functools
import json
import sys
import time

from research_router.agents.orchestrator import research_turn
from research_router.api.deps import BackendPair, get_backends, load_corpus
from research_router.config import DEFAULT_CONFIG, settings
from research_router.services import logger as log_service
from research_router.services.action_planner import plan_actions, select_primary_action
from research_router.services.query_builder import build_search_query
from research_router.services.query_sanitizer import sanitize_query
from research_router.services.retrieval import RetrievalBackendError
from research_router.services.url_policy import (
    assess_url_security,
    classify_trust,
    decide_ingestion_level,
)
from research_router.tools import search_provider
from research_router.tools.exploratory_paths import generate_exploratory_paths
from research_router.tools.web_utils import extract_hostname


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _backends(provider: str | None, corpus_path: str | None) -> BackendPair:
    if provider is None and corpus_path is None:
        return get_backends()
    corpus = load_corpus(corpus_path or settings.corpus_path)
    keyword = corpus.keyword_backend
    if provider in ("brave", "tavily"):
        keyword = functools.partial(search_provider.keyword_backend, provider=provider)
    return BackendPair(keyword=keyword, dense=corpus.dense_backend)


async def run_turn(args: argparse.Namespace) -> int:
    config = DEFAULT_CONFIG.merged(settings.router_overrides())
    if args.max_per_domain is not None:
        config = config.merged({"max_per_domain": args.max_per_domain})
    backends = _backends(args.provider, args.corpus)

    started = time.perf_counter()
    try:
        output = await research_turn(args.query, backends.keyword, backends.dense, config)
    except RetrievalBackendError as e:
        print(f"\n[!] Error: {e}", file=sys.stderr)
        return 1
    log_service.log_turn(output, duration_ms=int((time.perf_counter() - started) * 1000), caller="cli")

    if args.json:
        print(json.dumps(output.to_dict(), indent=2))
        return 0

    print(f"Research query: {output.query}")
    print("-" * 50)
    print(f"[*] Actions: {', '.join(a.value for a in output.actions_planned)}")
    print(f"[*] Primary: {output.primary_action.value}")
    print(f"\n[+] {output.metrics.result_count} results ({output.request_id})")
    for i, r in enumerate(output.results, 1):
        print(f"  {i}. [{r.final_score:.3f}] {r.title or r.url}")
        print(f"     {r.url}")
        print(
            f"     trust={r.trust_tier.value} security={r.security_status.value} "
            f"ingest={decide_ingestion_level(r).value}"
        )
    m = output.metrics
    print(f"\n[*] coverage={m.coverage_score:.2f} authority={m.avg_authority_score:.2f} security={m.avg_security_score:.2f}")
    return 0


def run_plan(args: argparse.Namespace) -> int:
    query = sanitize_query(args.query)
    actions = plan_actions(query)
    primary = select_primary_action(actions)
    print(json.dumps(
        {
            "query": query,
            "actions": [a.value for a in actions],
            "primaryAction": primary.value,
            "searchQuery": build_search_query(query, primary).to_dict(),
        },
        indent=2,
    ))
    return 0


def run_explore(args: argparse.Namespace) -> int:
    candidates = generate_exploratory_paths(args.url)
    if not candidates:
        print("No exploratory candidates.")
        return 0
    for url in candidates:
        verdict = assess_url_security(url, DEFAULT_CONFIG)
        tier = classify_trust(extract_hostname(url), DEFAULT_CONFIG)
        print(f"  {url}  trust={tier.value} security={verdict.status.value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Research Router")
    parser.add_argument("--log-level", help="Log level (default: from config)")
    sub = parser.add_subparsers(dest="command", required=True)

    turn = sub.add_parser("turn", help="Run one research turn")
    turn.add_argument("--query", "-q", required=True, help="Research query")
    turn.add_argument("--corpus", "-c", help="JSON corpus for local backends")
    turn.add_argument("--provider", "-p", choices=["corpus", "brave", "tavily"], help="Keyword backend")
    turn.add_argument("--max-per-domain", type=_positive_int, help="Per-host result cap")
    turn.add_argument("--json", action="store_true", help="Print the turn output as JSON")

    plan = sub.add_parser("plan", help="Show planned actions and the built query")
    plan.add_argument("--query", "-q", required=True, help="Research query")

    explore = sub.add_parser("explore", help="Exploratory follow-up URLs for a seed")
    explore.add_argument("url", help="Seed URL")

    args = parser.parse_args(argv)
    log_service.configure_logging(level=args.log_level)

    if args.command == "turn":
        return asyncio.run(run_turn(args))
    if args.command == "plan":
        return run_plan(args)
    return run_explore(args)


if __name__ == "__main__":
    sys.exit(main())
