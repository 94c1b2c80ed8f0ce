"""
API Endpoint for the Local Visibility Scan

The free checker: no account required. Identical inputs inside 24 hours
return the cached scan unless ``force`` is set.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from src.database.session import get_db
from src.services.errors import ScanServiceError
from src.services.local_scan import LocalScanInput, run_local_visibility_scan
from api.local_authority import to_http_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/local-scan",
    tags=["Local Scan"],
)


class LocalScanRequest(BaseModel):
    business_name: str = ""
    city: str = ""
    category: str = ""
    website: Optional[str] = None
    force: bool = False


@router.post("")
async def create_local_scan(
    request: LocalScanRequest,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Run (or reuse) a flat local visibility scan."""
    try:
        return run_local_visibility_scan(
            db,
            LocalScanInput(
                business_name=request.business_name,
                city=request.city,
                category=request.category,
                website=request.website,
            ),
            force=request.force,
        )
    except ScanServiceError as e:
        raise to_http_error(e)
