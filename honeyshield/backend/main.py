from __future__ import annotations

import argparse
import asyncio
import logging
import random
import signal
import sys
from typing import NoReturn

import uvicorn

from .api.main import AppServices, create_app
from .config import Settings, settings
from .engine import AnomalyAnalyzer, ThreatScorer
from .feed import LiveFeed
from .generation import MockDataGenerator
from .llm import LLMClient, LLMGatekeeper
from .metrics import FeedMetrics
from .storage import open_store

logger = logging.getLogger("honeyshield.main")


def build_llm_client(cfg: Settings) -> LLMClient:
    gatekeeper = LLMGatekeeper(
        enabled=bool(cfg.OPENAI_API_KEY),
        min_interval_seconds=cfg.LLM_MIN_INTERVAL_SECONDS,
        quota_cooldown_seconds=cfg.LLM_QUOTA_COOLDOWN_SECONDS,
    )
    return LLMClient(
        api_key=cfg.OPENAI_API_KEY,
        base_url=cfg.OPENAI_BASE_URL,
        model=cfg.OPENAI_MODEL,
        timeout=cfg.LLM_TIMEOUT_SECONDS,
        gatekeeper=gatekeeper,
    )


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

async def run(cfg: Settings, host: str, port: int, seed: bool) -> None:
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _signal_handler(_signum, _frame) -> None:
        logger.info("Shutdown signal received")
        loop.call_soon_threadsafe(shutdown_event.set)

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    rng = random.Random(cfg.RANDOM_SEED)
    demo = cfg.DEMO_RANDOM_PATTERNS

    # Storage
    store = open_store(cfg.DATABASE_URL)

    # Analysis
    scorer = ThreatScorer(rng=rng, random_new_pattern_rate=0.15 if demo else 0.0)
    analyzer = AnomalyAnalyzer()
    llm_client = build_llm_client(cfg)

    # Feed
    feed_metrics = FeedMetrics()
    feed = LiveFeed(
        store=store,
        generator=MockDataGenerator(rng=rng),
        scorer=scorer,
        analyzer=analyzer,
        llm_client=llm_client,
        metrics=feed_metrics,
        rng=rng,
        log_interval=(cfg.LOG_INTERVAL_MIN_SECONDS, cfg.LOG_INTERVAL_MAX_SECONDS),
        pattern_interval=(cfg.PATTERN_INTERVAL_MIN_SECONDS, cfg.PATTERN_INTERVAL_MAX_SECONDS),
        anomaly_interval=cfg.ANOMALY_INTERVAL_SECONDS,
        anomaly_batch_size=cfg.ANOMALY_BATCH_SIZE,
        pattern_injection_rate=0.4 if demo else 0.0,
    )
    if seed:
        await feed.seed()

    # FastAPI + uvicorn
    app = create_app(AppServices(
        store=store,
        scorer=scorer,
        llm_client=llm_client,
        settings=cfg,
        feed_metrics=feed_metrics,
        rng=rng,
    ))
    uv_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="warning",
        loop="none",
    )
    uv_server = uvicorn.Server(uv_config)

    tasks = [
        asyncio.create_task(feed.run(shutdown_event), name="feed"),
        asyncio.create_task(uv_server.serve(),        name="api"),
    ]
    # If the server exits on its own (bind failure, signal), stop the feed too
    tasks[-1].add_done_callback(lambda _t: shutdown_event.set())

    logger.info(
        "HoneyShield — env=%s API=http://%s:%d store=%s remote_analysis=%s",
        cfg.APP_ENV, host, port, cfg.DATABASE_URL,
        f"{cfg.OPENAI_MODEL}@{cfg.OPENAI_BASE_URL}" if llm_client.enabled else "off (heuristic only)",
    )

    await shutdown_event.wait()

    uv_server.should_exit = True
    await asyncio.gather(*tasks, return_exceptions=True)
    store.close()
    logger.info("Final stats — feed=%s llm=%s", feed_metrics.as_dict(), llm_client.stats)
    logger.info("HoneyShield stopped cleanly")


def _parse_args(cfg: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="HoneyShield dashboard backend")
    parser.add_argument("--host", default=cfg.API_HOST)
    parser.add_argument("--port", type=int, default=cfg.API_PORT)
    parser.add_argument(
        "--log-level", default=cfg.LOG_LEVEL.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument(
        "--no-seed", action="store_true",
        help="start without generating the initial demo data set",
    )
    return parser.parse_args()


def main() -> NoReturn:
    args = _parse_args(settings)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        asyncio.run(run(
            settings,
            host=args.host,
            port=args.port,
            seed=settings.SEED_ON_STARTUP and not args.no_seed,
        ))
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
