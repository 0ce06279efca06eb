# -*- coding: utf-8 -*-
"""
Pregnancy Companion - Main Entry Point

Coordinates all services:
- Database initialization
- Context cache
- Tracker registry
- Agent orchestrator (one-shot query or interactive loop)
"""

import argparse
import asyncio
import sys
from datetime import timedelta

from core import (
    AgentOrchestrator,
    ContextCache,
    IntentClassifier,
    MongoContextStore,
    OpenAIClient,
    RecordStore,
    init_database,
)
from core.categories import PROFILE
from core.config import load_config
from core.env_loader import get_settings
from core.exceptions import CompanionError
from trackers import TrackerRegistry
from utils.logger import get_logger

logger = get_logger("main")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Offline pregnancy companion")
    parser.add_argument("--user", default=None, help="User id (defaults to DEFAULT_USER_ID)")
    parser.add_argument("--query", default=None, help="Answer one query and exit")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--logout", action="store_true", help="Clear cached context and exit")
    parser.add_argument("--lmp", default=None, help="Set profile: last menstrual period (YYYY-MM-DD)")
    parser.add_argument("--cycle-length", type=int, default=28, help="Set profile: cycle length in days")
    parser.add_argument("--period-length", type=int, default=None, help="Set profile: period length in days")
    parser.add_argument("--age", type=int, default=None, help="Set profile: age")
    parser.add_argument("--weight", type=float, default=None, help="Set profile: weight in kg")
    parser.add_argument("--location", default=None, help="Set profile: location")
    return parser.parse_args(argv)


def build_services(config: dict, settings: dict):
    """
    Wire record store, cache, classifier, generator and trackers.

    Returns:
        (record_store, orchestrator)
    """
    # 1. Database
    mongodb_url = settings["MONGODB_URL"]
    db = init_database(mongodb_url)
    record_store = RecordStore(db, timezone=settings["TIMEZONE"])
    logger.info(f"✓ Database initialized: {mongodb_url}")

    # 2. Context cache
    cache_config = config.get("cache", {})
    context_cache = ContextCache(
        record_store,
        persistent_store=MongoContextStore(db),
        max_age=timedelta(days=cache_config.get("max_age_days", 30)),
        max_tracking_entries=cache_config.get("max_tracking_entries", 10),
        max_memory_entries=cache_config.get("max_memory_entries", 50),
    )
    logger.info("✓ Context cache initialized")

    # 3. Local text generation
    generation = config.get("generation", {})
    generator = OpenAIClient(
        base_url=settings["LLM_BASE_URL"],
        api_key=settings["LLM_API_KEY"],
        model=settings["LLM_MODEL"] or generation.get("model", "local-model"),
        max_tokens=generation.get("max_tokens", 512),
        temperature=generation.get("temperature", 0.7),
    )
    logger.info(f"✓ Text generation endpoint: {generator.client.base_url}")

    # 4. Trackers
    registry = TrackerRegistry(record_store, context_cache, config)
    logger.info("Active Trackers:")
    for tracker in registry.get_all_trackers():
        logger.info(f"  • {tracker.get_name()}")

    # 5. Orchestrator
    orchestrator = AgentOrchestrator(
        context_cache,
        IntentClassifier(),
        registry,
        generator=generator,
        guideline_config=config.get("guidelines", {}),
        default_user_id=settings["DEFAULT_USER_ID"],
    )
    logger.info("✓ Agent orchestrator initialized")
    return record_store, orchestrator


async def set_profile(record_store, orchestrator, args, user_id):
    fields = {
        "lmp": args.lmp,
        "cycle_length": args.cycle_length,
        "period_length": args.period_length,
        "age": args.age,
        "weight": args.weight,
        "location": args.location,
    }
    result = await record_store.set_profile({k: v for k, v in fields.items() if v is not None})
    await orchestrator.update_cache(user_id, PROFILE, "update")
    print(f"✅ Profile saved. Estimated due date: {result['due_date']}")


async def interactive_loop(orchestrator, user_id):
    print("Type a question, or 'quit' to exit.")
    while True:
        try:
            query = await asyncio.to_thread(input, "\n> ")
        except (EOFError, KeyboardInterrupt):
            break
        if query.strip().lower() in ("quit", "exit"):
            break
        response = await orchestrator.run(query, user_id)
        print(f"\n{response['message']}")


async def run(args) -> int:
    config = load_config(args.config)
    record_store, orchestrator = build_services(config, get_settings())
    await record_store.seed_default_tasks()
    user_id = args.user or orchestrator.default_user_id

    if args.logout:
        await orchestrator.invalidate_cache()
        print("Cached context cleared.")
        return 0

    if args.lmp:
        await set_profile(record_store, orchestrator, args, user_id)

    if args.query:
        response = await orchestrator.run(args.query, user_id)
        print(response["message"])
        return 1 if response.get("error") else 0

    if not args.lmp:
        await interactive_loop(orchestrator, user_id)
    return 0


def main():
    """Main application entry point."""
    print("=" * 60)
    print("  Pregnancy Companion")
    print("=" * 60)
    print()

    args = parse_args()
    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")
    except CompanionError as e:
        logger.critical(f"FATAL ERROR: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
