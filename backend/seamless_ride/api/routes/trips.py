"""
Trip search and seat availability endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from seamless_ride.api.deps import get_services
from seamless_ride.schemas.trip import SeatMapResponse, TripResponse
from seamless_ride.services.container import Services

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("/", response_model=list[TripResponse])
async def search_trips(
    origin: str = Query(..., min_length=1),
    destination: str = Query(..., min_length=1),
    departure_date: date = Query(..., alias="date"),
    services: Services = Depends(get_services),
):
    """Trips matching origin, destination and date exactly, ordered by id."""
    return await services.catalog.find_trips(origin, destination, departure_date)


@router.get("/locations", response_model=list[str])
async def list_locations(services: Services = Depends(get_services)):
    return await services.catalog.list_locations()


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(trip_id: int, services: Services = Depends(get_services)):
    return await services.catalog.get_trip(trip_id)


@router.get("/{trip_id}/seats", response_model=SeatMapResponse)
async def get_seat_map(trip_id: int, services: Services = Depends(get_services)):
    """Confirmed seats on a trip. Always read from the ledger, never cached."""
    await services.catalog.get_trip(trip_id)
    occupied = sorted(await services.ledger.occupied_seats(trip_id))
    capacity = services.engine.capacity
    return SeatMapResponse(
        trip_id=trip_id,
        capacity=capacity,
        occupied=occupied,
        available=capacity - len(occupied),
    )
