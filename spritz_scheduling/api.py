"""
HTTP surface for availability lookups.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from . import __version__
from .config import AppConfig
from .domain.exceptions import InvalidRequestError, StoreError
from .services.availability import AvailabilityService, parse_date_param
from .services.factory import build_availability_service

router = APIRouter()
logger = logging.getLogger(__name__)


def get_availability_service(request: Request) -> AvailabilityService:
    return request.app.state.availability_service


@router.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}


@router.get("/api/scheduling/availability")
async def get_availability(
    user_address: Optional[str] = Query(default=None, alias="userAddress"),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Available time slots for scheduling a call with a user."""
    try:
        result = await service.get_availability(
            user_address,
            start_date=parse_date_param(start_date, "startDate"),
            end_date=parse_date_param(end_date, "endDate"),
        )
    except InvalidRequestError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except StoreError as e:
        logger.error("Availability lookup failed for %s: %s", user_address, e)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch availability"})
    except Exception:
        logger.exception("Unexpected error computing availability for %s", user_address)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch availability"})

    return result.to_dict()


def create_app(
    config: Optional[AppConfig] = None,
    service: Optional[AvailabilityService] = None,
    mock: bool = False,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration (loaded from disk/environment if omitted)
        service: Pre-built service, mainly for tests
        mock: Serve the bundled mock data instead of Supabase/Google
    """
    app = FastAPI(title="Spritz Scheduling", version=__version__)
    if service is None:
        service = build_availability_service(config or AppConfig.load(), mock=mock)
    app.state.availability_service = service
    app.include_router(router)
    return app
