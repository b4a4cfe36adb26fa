"""FastAPI application entry point"""

from fastapi import FastAPI, HTTPException, Query
from typing import Optional
import logging

from star_history.config.settings import settings
from star_history.jobs.star_history import run_star_history
from star_history.orchestrator import StarHistoryOrchestrator

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Star history of GitHub users and repositories",
    version=settings.APP_VERSION
)

# Each request builds its own scheduler and star sets
orchestrator = StarHistoryOrchestrator()

_STATUS_BY_CODE = {
    "not_found": 404,
}


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "star-history",
        "version": settings.APP_VERSION
    }


@app.get("/api/star-history")
async def star_history(series: Optional[str] = Query(None, description="Comma-separated owners or owner/repo pairs")):
    """Cumulative star counts over time for each requested series"""
    try:
        result = await run_star_history(series or "", orchestrator=orchestrator)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not result.success:
        logger.warning(f"Star history request failed: {result.error}")
        status_code = _STATUS_BY_CODE.get(result.error.code, 502)
        raise HTTPException(status_code=status_code, detail=result.to_dict()["error"])

    return result.to_dict()
