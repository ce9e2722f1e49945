"""Route optimization endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import PlainTextResponse

from ...schemas.routing import (
    NormalizeSequenceRequest,
    OptimizeRouteRequest,
    OptimizeRouteResponse,
    WritePlanResponse,
)
from ...services.outputs.routing_formatter import route_result_to_csv
from ...services.routing.cache import optimization_cache
from ...services.routing.service import normalize_tour, optimize_tour, route_result_from_model

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/optimize", response_model=OptimizeRouteResponse, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizeRouteRequest) -> OptimizeRouteResponse:
    try:
        return optimize_tour(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing tour {payload.tour_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize tour: {str(exc)}",
        ) from exc


@router.post("/optimize/csv", response_class=PlainTextResponse, status_code=status.HTTP_200_OK)
def optimize_csv(payload: OptimizeRouteRequest) -> PlainTextResponse:
    """Same as ``/optimize`` but returns the ordered stops as CSV."""
    response = optimize(payload)
    csv_body = route_result_to_csv(route_result_from_model(response.result))
    return PlainTextResponse(content=csv_body, media_type="text/csv")


@router.post("/normalize", response_model=WritePlanResponse, status_code=status.HTTP_200_OK)
def normalize(payload: NormalizeSequenceRequest) -> WritePlanResponse:
    try:
        return normalize_tour(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error normalizing sequence for tour {payload.tour_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to build write plan: {str(exc)}",
        ) from exc


@router.delete("/cache/{tour_id}", status_code=status.HTTP_200_OK)
def invalidate_cache(tour_id: int) -> dict:
    """Drop cached routes for a tour; call after any change to its stops."""
    optimization_cache.invalidate(tour_id)
    return {"success": True, "tour_id": tour_id}
