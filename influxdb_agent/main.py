import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from influxdb_agent.deps import get_agent, get_settings
from influxdb_agent.routers import agent, health
from influxdb_agent.scheduler import AgentScheduler

_settings = get_settings()

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    scheduler = AgentScheduler(get_agent(), _settings.schedule_seconds)
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown()


app = FastAPI(
    title="InfluxDB Write Data Agent",
    description=(
        "Pipeline agent that POSTs line protocol to an InfluxDB v1 or v2 "
        "write endpoint on a schedule or per received event."
    ),
    version="0.1.0",
    # root_path allows FastAPI to generate correct OpenAPI URLs when served
    # behind a reverse proxy at a sub-path (e.g. nginx /api/ prefix).
    root_path=os.getenv("ROOT_PATH", ""),
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(agent.router)
