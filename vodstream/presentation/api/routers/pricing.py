from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from ....core.dependencies import get_pricing_service
from ....domain.models import User
from ....services.pricing_service import PricingService
from ..dependencies import require_admin_user
from ..schemas.pricing import PlanCreateRequest, PlanUpdateRequest
from ..serializers import serialize_plan

router = APIRouter(prefix="/api/pricing", tags=["Pricing"])


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_plan(
    payload: PlanCreateRequest,
    _: User = Depends(require_admin_user),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> dict:
    """Create a plan together with its Stripe product and recurring price."""
    plan = pricing_service.create_plan(**payload.model_dump())
    return {"message": "Pricing plan created successfully", "plan": serialize_plan(plan)}


@router.get("")
@router.get("/", include_in_schema=False)
def list_plans(
    active: Optional[bool] = None,
    interval: Optional[Literal["month", "year"]] = None,
    pricing_service: PricingService = Depends(get_pricing_service),
) -> dict:
    plans = pricing_service.list_plans(active=active, interval=interval)
    return {"plans": [serialize_plan(plan) for plan in plans]}


@router.get("/{plan_id}")
def get_plan(plan_id: str, pricing_service: PricingService = Depends(get_pricing_service)) -> dict:
    return {"plan": serialize_plan(pricing_service.get_plan(plan_id))}


@router.put("/{plan_id}")
def update_plan(
    plan_id: str,
    payload: PlanUpdateRequest,
    _: User = Depends(require_admin_user),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> dict:
    plan = pricing_service.update_plan(plan_id, payload.model_dump(exclude_unset=True))
    return {"message": "Pricing plan updated successfully", "plan": serialize_plan(plan)}


@router.delete("/{plan_id}")
def delete_plan(
    plan_id: str,
    _: User = Depends(require_admin_user),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> dict:
    pricing_service.delete_plan(plan_id)
    return {"message": "Pricing plan deleted successfully"}


@router.post("/{plan_id}/deactivate")
def deactivate_plan(
    plan_id: str,
    _: User = Depends(require_admin_user),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> dict:
    plan = pricing_service.set_active(plan_id, False)
    return {"message": "Pricing plan deactivated successfully", "plan": serialize_plan(plan)}


@router.post("/{plan_id}/activate")
def activate_plan(
    plan_id: str,
    _: User = Depends(require_admin_user),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> dict:
    plan = pricing_service.set_active(plan_id, True)
    return {"message": "Pricing plan activated successfully", "plan": serialize_plan(plan)}
