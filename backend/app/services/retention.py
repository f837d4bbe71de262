"""Retention sweeper.

Runs as an asyncio task inside the FastAPI process and deletes files whose
availability window has closed.
"""
import asyncio
import logging

from app.services.errors import EngineError

logger = logging.getLogger(__name__)


async def retention_loop(engine, interval_seconds: float):
    """Call engine.purge_expired() every ``interval_seconds`` until cancelled."""
    logger.info(f"Retention sweeper started (every {interval_seconds}s)")
    while True:
        try:
            await engine.purge_expired()
        except EngineError as e:
            logger.error(f"Retention sweep failed: {e.message}")
        await asyncio.sleep(interval_seconds)
