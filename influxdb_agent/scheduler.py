"""Scheduled self-trigger for the agent.

Uses APScheduler to call :meth:`InfluxDBWriteDataAgent.check` every
``schedule_seconds``.  A failed run is logged; the next tick tries again.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from influxdb_agent.agent import InfluxDBWriteDataAgent
from influxdb_agent.clients.influxdb import TransportError
from influxdb_agent.options import ConfigError

logger = logging.getLogger(__name__)

JOB_ID = "influxdb_write_check"


class AgentScheduler:
    """Runs the agent's scheduled check on a fixed interval."""

    def __init__(self, agent: InfluxDBWriteDataAgent, interval_seconds: int) -> None:
        self.agent = agent
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler()

    def start(self) -> None:
        """Start the scheduler (no-op when the interval is 0)."""
        if self.interval_seconds <= 0:
            logger.info("Agent scheduler disabled (schedule_seconds=%s)", self.interval_seconds)
            return

        self.scheduler.add_job(
            self.run_check,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            name=f"{self.agent.name} scheduled write",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Agent scheduler started. Writing every %ss", self.interval_seconds)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Agent scheduler stopped")

    async def run_check(self) -> None:
        """One scheduled tick."""
        try:
            await self.agent.check()
        except (ConfigError, TransportError) as exc:
            logger.warning("Scheduled write for agent %s failed: %s", self.agent.name, exc)
