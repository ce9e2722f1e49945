"""Serializers for routing outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ..routing.models import RouteResult, RouteStop
from ..routing.sequence import WritePlan


def _stop_to_json(stop: RouteStop) -> dict:
    payload = {
        "venue_id": stop.venue_id,
        "date": stop.date,
        "status": stop.status.value,
        "is_fixed": stop.is_fixed,
        "gap_filling": stop.gap_filling,
    }
    candidate = stop.candidate
    if candidate is not None:
        payload.update(
            {
                "suggested_date": candidate.suggested_date,
                "detour_ratio": candidate.detour_ratio,
                "combined_score": candidate.combined_score,
                "priority_tier": candidate.priority_tier,
                "distance_from_start_km": candidate.distance_from_start,
                "distance_to_end_km": candidate.distance_to_end,
            }
        )
    return payload


def route_result_to_json(result: RouteResult) -> dict:
    return {
        "stops": [_stop_to_json(stop) for stop in result.stops],
        "gaps": [
            {
                "start_venue_id": gap.start_point.venue_id,
                "end_venue_id": gap.end_point.venue_id,
                "start_date": gap.start_point.date,
                "end_date": gap.end_point.date,
                "day_span": gap.day_span,
                "filled_venue_ids": list(gap.filled_venue_ids),
                "exceeds_max_spacing": gap.exceeds_max_spacing,
            }
            for gap in result.gaps
        ],
        "total_distance_km": result.total_distance_km,
        "total_travel_time_minutes": result.total_travel_time_minutes,
        "optimization_score": result.optimization_score,
        "skipped": [asdict(item) for item in result.skipped],
    }


def write_plan_to_json(plan: WritePlan) -> dict:
    return {
        "reset_stop_ids": list(plan.reset_stop_ids),
        "update": [{**asdict(item), "status": item.status.value} for item in plan.update],
        "insert": [{**asdict(item), "status": item.status.value} for item in plan.insert],
        "unchanged": [{**asdict(item), "status": item.status.value} for item in plan.unchanged],
        "tour_metrics": asdict(plan.tour_metrics),
        "unmatched_venue_ids": list(plan.unmatched_venue_ids),
    }


def route_result_to_csv(result: RouteResult) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "position",
        "venue_id",
        "date",
        "status",
        "is_fixed",
        "gap_filling",
        "detour_ratio",
        "combined_score",
        "priority_tier",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for position, stop in enumerate(result.stops, start=1):
        candidate = stop.candidate
        writer.writerow(
            {
                "position": position,
                "venue_id": stop.venue_id,
                "date": stop.date.isoformat() if stop.date else "",
                "status": stop.status.value,
                "is_fixed": stop.is_fixed,
                "gap_filling": stop.gap_filling,
                "detour_ratio": f"{candidate.detour_ratio:.3f}" if candidate else "",
                "combined_score": f"{candidate.combined_score:.1f}" if candidate else "",
                "priority_tier": candidate.priority_tier if candidate else "",
            }
        )
    return buffer.getvalue()
