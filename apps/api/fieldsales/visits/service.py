from __future__ import annotations

from fieldsales.appsettings.schemas import AppSettings
from fieldsales.visits.geo import haversine_meters
from fieldsales.visits.schemas import CheckInValidationRequest, GPSValidationResult


def validate_checkin(request: CheckInValidationRequest, settings: AppSettings) -> GPSValidationResult:
    """A check-in counts when the rep is inside the geofence and not moving faster than allowed."""
    distance = round(
        haversine_meters(request.customer_lat, request.customer_lng, request.checkin_lat, request.checkin_lng),
        2,
    )
    if distance > settings.visit_geofence_radius:
        return GPSValidationResult(
            is_valid=False,
            distance=distance,
            message=f"You are {distance:.0f}m away; check-in requires being within {settings.visit_geofence_radius:g}m",
        )
    if request.speed > settings.max_check_in_speed:
        return GPSValidationResult(
            is_valid=False,
            distance=distance,
            message=f"Moving at {request.speed:.1f} km/h; check-in allowed below {settings.max_check_in_speed:g} km/h",
        )
    return GPSValidationResult(is_valid=True, distance=distance, message="Location verified")
