"""GET /health – liveness plus the agent's own working signal."""

from fastapi import APIRouter, Depends

from influxdb_agent.agent import InfluxDBWriteDataAgent
from influxdb_agent.deps import get_agent
from influxdb_agent.models import HealthResponse

router = APIRouter(tags=["ops"])


@router.get("/health", response_model=HealthResponse)
async def health(agent: InfluxDBWriteDataAgent = Depends(get_agent)) -> HealthResponse:
    """Always 200 while the process is up; ``working`` reflects recent writes."""
    return HealthResponse(agent=agent.name, working=agent.working())
