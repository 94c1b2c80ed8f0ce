"""
API Endpoints for Local AI Authority

Handles:
1. Create or update a business profile
2. Generate the profile's prompt set
3. Start (or reuse a cached) authority run
4. Execute a queued run in the foreground
5. Get a run's results

Service errors map to HTTP responses by kind; the body is the error's
own dict so the client can render upgrade prompts and field messages.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from src.auth.dependencies import get_current_user
from src.auth.models import User
from src.collector.executor import RunExecutor
from src.context.models import CompetitorOverride, Location, ProfileInput, ServiceArea
from src.database import repository
from src.database.session import get_db
from src.services import local_authority
from src.services.errors import ScanServiceError
from src.services.run_queue import RunQueue, get_run_queue, simulated_caller_for

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/local-authority",
    tags=["Local Authority"],
)

ERROR_STATUS = {
    "validation_failed": 400,
    "no_prompts": 400,
    "subscription_required": 403,
    "plan_upgrade_required": 403,
    "access_denied": 403,
    "not_found": 404,
    "invalid_run_state": 409,
}


def to_http_error(error: ScanServiceError) -> HTTPException:
    """Translate a service error into an HTTPException."""
    return HTTPException(
        status_code=ERROR_STATUS.get(error.kind, 400),
        detail=error.to_dict(),
    )


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class LocationModel(BaseModel):
    city: str = ""
    state: str = ""
    country: str = "US"
    zip: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class ServiceAreaModel(BaseModel):
    city: str = ""
    state: str = ""
    zips: List[str] = Field(default_factory=list)
    priority: str = "primary"


class CompetitorModel(BaseModel):
    name: str = ""
    domain: Optional[str] = None


class ProfileRequest(BaseModel):
    """
    Profile create/update request.

    Required fields are checked by the service so every missing field
    is reported at once.
    """
    business_name: str = ""
    domain: str = ""
    primary_location: LocationModel = Field(default_factory=LocationModel)
    categories: List[str] = Field(default_factory=list)
    service_areas: List[ServiceAreaModel] = Field(default_factory=list)
    service_radius_miles: Optional[int] = None
    neighborhoods: List[str] = Field(default_factory=list)
    brand_synonyms: List[str] = Field(default_factory=list)
    competitor_overrides: List[CompetitorModel] = Field(default_factory=list)
    gbp_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    def to_input(self) -> ProfileInput:
        return ProfileInput(
            business_name=self.business_name,
            domain=self.domain,
            primary_location=Location(**self.primary_location.model_dump()),
            categories=list(self.categories),
            service_areas=[ServiceArea(**a.model_dump()) for a in self.service_areas],
            service_radius_miles=self.service_radius_miles,
            neighborhoods=list(self.neighborhoods),
            brand_synonyms=list(self.brand_synonyms),
            competitor_overrides=[CompetitorOverride(**c.model_dump()) for c in self.competitor_overrides],
            gbp_url=self.gbp_url,
            phone=self.phone,
            address=self.address,
        )


class ProfileResponse(BaseModel):
    profile_id: str
    updated: bool


class PromptGenerationResponse(BaseModel):
    counts_by_layer: Dict[str, int]
    total: int


class CreateRunRequest(BaseModel):
    profile_id: UUID
    models: Optional[List[str]] = None
    force: bool = False


class CreateRunResponse(BaseModel):
    run_id: str
    cached: bool
    models: List[str]
    prompt_count: int
    status: str


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/profiles", response_model=ProfileResponse)
async def upsert_profile(
    request: ProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or update the caller's profile for a domain."""
    try:
        result = local_authority.upsert_profile(db, current_user, request.to_input())
    except ScanServiceError as e:
        raise to_http_error(e)
    return ProfileResponse(profile_id=str(result.profile_id), updated=result.updated)


@router.post("/profiles/{profile_id}/prompts", response_model=PromptGenerationResponse)
async def generate_prompts(
    profile_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace the profile's prompt set."""
    try:
        return local_authority.generate_prompts(db, current_user, profile_id)
    except ScanServiceError as e:
        raise to_http_error(e)


@router.post("/runs", response_model=CreateRunResponse)
async def create_run(
    request: CreateRunRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    queue: RunQueue = Depends(get_run_queue),
):
    """
    Start an authority run.

    Returns the cached run when an identical one completed in the last
    24 hours, unless ``force`` is set. New runs execute in the background.
    """
    try:
        result = local_authority.create_run(
            db,
            current_user,
            request.profile_id,
            models_requested=request.models,
            force=request.force,
            queue=queue,
        )
    except ScanServiceError as e:
        raise to_http_error(e)

    task = result.get("task")
    if result["cached"]:
        status = "complete"
    else:
        status = task.status.value if task else "queued"

    return CreateRunResponse(
        run_id=str(result["run_id"]),
        cached=result["cached"],
        models=result["models"],
        prompt_count=result["prompt_count"],
        status=status,
    )


@router.post("/runs/{run_id}/execute")
async def execute_run(
    run_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Execute a queued run and wait for it to finish."""
    try:
        run = repository.get_owned_run(db, current_user.id, run_id)
        executor = RunExecutor(db, simulated_caller_for(run.profile))
        summary = await executor.execute(run.id)
    except ScanServiceError as e:
        raise to_http_error(e)
    return summary.to_dict()


@router.get("/runs/{run_id}")
async def get_run(
    run_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Get a run's status, score and results."""
    try:
        return local_authority.get_run(db, current_user, run_id)
    except ScanServiceError as e:
        raise to_http_error(e)
