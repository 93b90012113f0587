"""
Runtime settings routes.
"""

from fastapi import APIRouter, Depends

from ..core import get_logger
from ..models import ParallelismSettings
from ..services import TAPService
from .queries import get_tap_service

router = APIRouter(prefix="/settings", tags=["settings"])
logger = get_logger(__name__, service="gateway")


@router.get("/parallelism", response_model=ParallelismSettings)
async def get_parallelism(service: TAPService = Depends(get_tap_service)):
    return ParallelismSettings(max_parallel=service.manager.max_parallel)


@router.put("/parallelism", response_model=ParallelismSettings)
async def set_parallelism(body: ParallelismSettings, service: TAPService = Depends(get_tap_service)):
    """Change how many jobs may run at once; applies to the next admission check."""
    service.manager.max_parallel = body.max_parallel
    logger.info("Updated max_parallel", extra={"max_parallel": body.max_parallel})
    return ParallelismSettings(max_parallel=service.manager.max_parallel)
