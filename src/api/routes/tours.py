"""Tour routes: listing, reports and CRUD."""

import logging

from fastapi import APIRouter, Depends, Path, Request, Response, status

from api.dependencies import get_tour_repo
from api.models import (
    DifficultyStatsResponse,
    MonthlyPlanResponse,
    TourRequest,
    TourResponse,
    envelope,
)
from api.security import get_current_user_required, restrict_to
from domain.model.user import Role, User
from port.tour_repository import TourRepository
from services import tour_service
from services.query_translator import parse_query_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tours", tags=["tours"])

tour_editors = restrict_to(Role.ADMIN, Role.LEAD_GUIDE)
tour_planners = restrict_to(Role.ADMIN, Role.LEAD_GUIDE, Role.GUIDE)


def _query_params(request: Request) -> dict:
    return parse_query_params(request.query_params.multi_items())


@router.get("")
async def list_tours(
    request: Request,
    _: User = Depends(get_current_user_required),
    repo: TourRepository = Depends(get_tour_repo),
):
    """List tours.

    Supports filtering (`price[gte]=500`), sorting (`sort=-price`),
    projection (`fields=name,price`) and pagination (`page=2&limit=10`).
    """
    tours = tour_service.list_tours(repo, _query_params(request))
    return envelope(results=len(tours), tours=tours)


# ── reports ──────────────────────────────────────────────
# Declared before /{tour_id} so the literal paths win.


@router.get("/top-5-cheap")
async def top_five_cheap(request: Request, repo: TourRepository = Depends(get_tour_repo)):
    params = tour_service.alias_top_tours(_query_params(request))
    tours = tour_service.list_tours(repo, params)
    return envelope(results=len(tours), tours=tours)


@router.get("/tour-stats")
async def tour_stats(repo: TourRepository = Depends(get_tour_repo)):
    stats = tour_service.tour_stats(repo)
    return envelope(stats=[DifficultyStatsResponse.model_validate(s) for s in stats])


@router.get("/monthly-plan/{year}")
async def monthly_plan(
    year: int = Path(..., ge=1, le=9999),
    _: User = Depends(tour_planners),
    repo: TourRepository = Depends(get_tour_repo),
):
    plan = tour_service.monthly_plan(repo, year)
    return envelope(
        results=len(plan),
        plan=[MonthlyPlanResponse.model_validate(p) for p in plan],
    )


# ── single tour ──────────────────────────────────────────


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tour(
    request: TourRequest,
    current_user: User = Depends(tour_editors),
    repo: TourRepository = Depends(get_tour_repo),
):
    tour = tour_service.create_tour(repo, request.model_dump(exclude_unset=True))
    logger.info("Tour created by user", extra={"tourId": tour.id, "userId": current_user.id})
    return envelope(tour=TourResponse.from_domain(tour))


@router.get("/{tour_id}")
async def get_tour(tour_id: str, repo: TourRepository = Depends(get_tour_repo)):
    tour = tour_service.get_tour(repo, tour_id)
    return envelope(tour=TourResponse.from_domain(tour))


@router.patch("/{tour_id}")
async def update_tour(
    tour_id: str,
    request: TourRequest,
    _: User = Depends(tour_editors),
    repo: TourRepository = Depends(get_tour_repo),
):
    tour = tour_service.update_tour(repo, tour_id, request.model_dump(exclude_unset=True))
    return envelope(tour=TourResponse.from_domain(tour))


@router.delete("/{tour_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tour(
    tour_id: str,
    _: User = Depends(tour_editors),
    repo: TourRepository = Depends(get_tour_repo),
):
    tour_service.delete_tour(repo, tour_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
