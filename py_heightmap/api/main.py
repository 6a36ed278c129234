"""FastAPI main application."""

import uuid
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

import structlog
from fastapi import BackgroundTasks, FastAPI, HTTPException
from pydantic import BaseModel, Field

from ..config import settings
from ..config.extraction import ExtractionConfig
from ..core.bodies import Body
from ..core.errors import ConfigurationError, FormatError, HeightmapNotFoundError
from ..core.extractor import ExtractionSession, run_async, start_extraction
from ..core.heightmap import HeightmapGrid
from ..utils.logging import configure_logging

configure_logging(settings)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Heightmap Extractor API",
    description="Extract int16 heightmaps from spherical terrain bodies",
    version="0.1.0"
)

# Bodies the host makes available for extraction
_catalogue: List[Body] = []

# Running and finished sessions by job id
jobs: Dict[str, ExtractionSession] = {}


def register_bodies(bodies: List[Body]):
    """Replace the catalogue of extractable bodies."""
    _catalogue[:] = list(bodies)
    logger.info("Registered bodies", bodies=[b.name for b in _catalogue])


# Response models
class BodyResultResponse(BaseModel):
    """Outcome of one body."""

    body: str
    status: str
    paths: List[str] = Field(default_factory=list)
    elapsed_seconds: float
    error_kind: Optional[str] = None
    error_message: Optional[str] = None


class JobResponse(BaseModel):
    """Response with extraction job information."""

    job_id: str
    status: str
    progress_percent: int
    message: str
    elapsed_seconds: float
    current_body: Optional[str] = None
    results: List[BodyResultResponse] = Field(default_factory=list)


class HeightmapInfo(BaseModel):
    """Summary of a binary heightmap file."""

    path: str
    width: int
    height: int
    size: int
    byte_length: int
    min_value: int
    max_value: int


def _within_maps_dir(path: str) -> Path:
    """Resolve a client path against maps_dir, rejecting paths outside it."""
    root = Path(settings.maps_dir).resolve()
    resolved = (root / path).resolve()
    if resolved != root and root not in resolved.parents:
        logger.warning("Rejected path outside maps directory", path=path, maps_dir=str(root))
        raise HTTPException(status_code=403, detail=f"Path {path} is outside the maps directory")
    return resolved


def _job_response(job_id: str, session: ExtractionSession) -> JobResponse:
    report = session.report()
    return JobResponse(
        job_id=job_id,
        status="completed" if report.complete else "running",
        progress_percent=report.percent,
        message=report.message,
        elapsed_seconds=report.elapsed_seconds,
        current_body=report.current_body,
        results=[BodyResultResponse(**asdict(r)) for r in report.results],
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Heightmap Extractor API", bodies=len(_catalogue))


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Heightmap Extractor API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "bodies": len(_catalogue), "jobs": len(jobs)}


@app.get("/bodies")
async def list_bodies():
    """List registered bodies."""
    return [{"name": b.name, "has_terrain": b.has_terrain} for b in _catalogue]


async def run_extraction(job_id: str):
    """Drive a session to completion without blocking the event loop."""
    session = jobs[job_id]
    logger.info("Starting extraction job", job_id=job_id)
    await run_async(session)
    logger.info("Extraction job completed", job_id=job_id, seconds=round(session.elapsed_seconds, 3))


@app.post("/extractions", response_model=JobResponse)
async def start_extraction_job(request: ExtractionConfig, background_tasks: BackgroundTasks):
    """
    Start an extraction job.

    Returns immediately with a job ID. Use /extractions/{job_id} to check progress.
    """
    logger.info("Extraction requested", bodies=request.bodies)
    if "destination_path" in request.model_fields_set:
        destination = _within_maps_dir(request.destination_path)
    else:
        destination = Path(settings.maps_dir).resolve()
    request = request.model_copy(update={"destination_path": str(destination)})
    try:
        session = start_extraction(request, _catalogue)
    except ConfigurationError as e:
        logger.error("Extraction rejected", error_kind=e.kind, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    job_id = str(uuid.uuid4())
    jobs[job_id] = session
    background_tasks.add_task(run_extraction, job_id)

    return _job_response(job_id, session)


@app.get("/extractions/{job_id}", response_model=JobResponse)
async def get_job_status(job_id: str):
    """Get status of an extraction job."""
    session = jobs.get(job_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return _job_response(job_id, session)


@app.get("/heightmaps/inspect", response_model=HeightmapInfo)
async def inspect_heightmap(path: str):
    """Load a binary heightmap under maps_dir and describe it."""
    try:
        grid = HeightmapGrid.load(_within_maps_dir(path))
    except HeightmapNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except FormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return HeightmapInfo(
        path=path,
        width=grid.width,
        height=grid.height,
        size=grid.size,
        byte_length=len(grid.to_bytes()),
        min_value=int(grid.pixels.min()),
        max_value=int(grid.pixels.max()),
    )
