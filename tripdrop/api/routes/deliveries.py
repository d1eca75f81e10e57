"""
Delivery endpoints
==================

POST /api/v1/deliveries                    -- create a delivery request (sender)
GET  /api/v1/deliveries/{delivery_id}      -- read one delivery
POST /api/v1/deliveries/check-orders       -- deliveries on a journey (traveler)
PUT  /api/v1/deliveries/{delivery_id}/accept    -- claim a pending delivery
PUT  /api/v1/deliveries/{delivery_id}/start     -- mark departure
PUT  /api/v1/deliveries/{delivery_id}/complete  -- finish with the receiver's OTP

Caller identity arrives in ``X-User-Id`` / ``X-User-Role`` headers set by
the upstream auth layer.
"""

from fastapi import APIRouter, Depends, Request

from tripdrop.api.dependencies import (
    Caller,
    get_caller,
    get_delivery_service,
    require_role,
)
from tripdrop.api.middleware import limiter
from tripdrop.api.schemas import (
    AcceptDeliveryResponse,
    CompleteDeliveryRequest,
    CompleteDeliveryResponse,
    DeliveryCreateRequest,
    DeliveryResponse,
    ErrorResponse,
    MatchQueryRequest,
)
from tripdrop.config import settings
from tripdrop.domain.enums import UserRole
from tripdrop.services.deliveries import DeliveryService

router = APIRouter(prefix="/deliveries", tags=["deliveries"])

_errors = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 422)
}


@router.post(
    "",
    status_code=201,
    response_model=DeliveryResponse,
    summary="Create a delivery request",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def create_delivery(
    request: Request,
    body: DeliveryCreateRequest,
    caller: Caller = Depends(require_role(UserRole.SENDER)),
    service: DeliveryService = Depends(get_delivery_service),
):
    delivery = await service.create_delivery(
        sender_id=caller.id,
        pickup=body.pickup.to_domain(),
        dropoff=body.dropoff.to_domain(),
        receiver_contact=body.receiver_contact,
        vehicle_type=body.vehicle_type,
        idempotency_key=body.idempotency_key,
    )
    return DeliveryResponse.from_entity(delivery)


@router.post(
    "/check-orders",
    response_model=list[DeliveryResponse],
    summary="List pending deliveries along a journey",
    description=(
        "Returns pending deliveries requiring the same vehicle type whose "
        "pickup and drop-off are both within the policy radius of the "
        "straight line from journey start to journey end."
    ),
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def check_orders(
    request: Request,
    body: MatchQueryRequest,
    caller: Caller = Depends(require_role(UserRole.TRAVELER)),
    service: DeliveryService = Depends(get_delivery_service),
):
    matches = await service.submit_match_query(body.to_journey(), body.radius_policy)
    return [DeliveryResponse.from_entity(d) for d in matches]


@router.get(
    "/{delivery_id}",
    response_model=DeliveryResponse,
    summary="Get a delivery",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def get_delivery(
    request: Request,
    delivery_id: int,
    caller: Caller = Depends(get_caller),
    service: DeliveryService = Depends(get_delivery_service),
):
    return DeliveryResponse.from_entity(await service.get_delivery(delivery_id))


@router.put(
    "/{delivery_id}/accept",
    response_model=AcceptDeliveryResponse,
    summary="Accept a pending delivery",
    description=(
        "Exactly one of several concurrent accepts succeeds; the others get "
        "409 DeliveryUnavailable.  The OTP is returned only here."
    ),
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def accept_delivery(
    request: Request,
    delivery_id: int,
    caller: Caller = Depends(require_role(UserRole.TRAVELER)),
    service: DeliveryService = Depends(get_delivery_service),
):
    result = await service.accept_delivery(delivery_id, caller.id)
    return AcceptDeliveryResponse(
        delivery=DeliveryResponse.from_entity(result.delivery), otp=result.otp
    )


@router.put(
    "/{delivery_id}/start",
    response_model=DeliveryResponse,
    summary="Start an accepted delivery",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def start_delivery(
    request: Request,
    delivery_id: int,
    caller: Caller = Depends(require_role(UserRole.TRAVELER)),
    service: DeliveryService = Depends(get_delivery_service),
):
    delivery = await service.start_delivery(delivery_id, caller.id)
    return DeliveryResponse.from_entity(delivery)


@router.put(
    "/{delivery_id}/complete",
    response_model=CompleteDeliveryResponse,
    summary="Complete a delivery with the receiver's OTP",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def complete_delivery(
    request: Request,
    delivery_id: int,
    body: CompleteDeliveryRequest,
    caller: Caller = Depends(require_role(UserRole.TRAVELER)),
    service: DeliveryService = Depends(get_delivery_service),
):
    delivery = await service.complete_delivery(delivery_id, caller.id, body.otp)
    return CompleteDeliveryResponse(delivery=DeliveryResponse.from_entity(delivery))
