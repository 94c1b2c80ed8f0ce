"""
Business Profile Context Models

Defines the types describing a local business for scanning:
- Primary location and service areas
- Categories, neighborhoods, brand synonyms
- Known competitor overrides
- Profile upsert outcomes (created vs updated)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from src.database.models import ServiceAreaPriority


# =============================================================================
# PROFILE INPUT
# =============================================================================

@dataclass
class Location:
    """Primary business location."""
    city: str = ""
    state: str = ""
    country: str = "US"
    zip: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "zip": self.zip,
            "lat": self.lat,
            "lng": self.lng,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Location":
        data = data or {}
        return cls(
            city=data.get("city") or "",
            state=data.get("state") or "",
            country=data.get("country") or "US",
            zip=data.get("zip"),
            lat=data.get("lat"),
            lng=data.get("lng"),
        )


@dataclass
class ServiceArea:
    """Additional area the business serves."""
    city: str = ""
    state: str = ""
    zips: List[str] = field(default_factory=list)
    priority: str = ServiceAreaPriority.PRIMARY.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "city": self.city,
            "state": self.state,
            "zips": list(self.zips),
            "priority": self.priority,
        }


@dataclass
class CompetitorOverride:
    """A competitor the owner already knows about."""
    name: str
    domain: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "domain": self.domain}


@dataclass
class ProfileInput:
    """Everything needed to create or update a business profile."""
    business_name: str = ""
    domain: str = ""
    primary_location: Location = field(default_factory=Location)
    categories: List[str] = field(default_factory=list)
    service_areas: List[ServiceArea] = field(default_factory=list)
    service_radius_miles: Optional[int] = None
    neighborhoods: List[str] = field(default_factory=list)
    brand_synonyms: List[str] = field(default_factory=list)
    competitor_overrides: List[CompetitorOverride] = field(default_factory=list)
    gbp_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


_VALID_PRIORITIES = [p.value for p in ServiceAreaPriority]


def validate_profile_input(profile: ProfileInput) -> List[str]:
    """
    Validate a profile before upsert.

    Returns:
        List of per-field messages (empty when valid)
    """
    errors = []

    if not (profile.business_name or "").strip():
        errors.append("business_name is required")
    if not (profile.domain or "").strip():
        errors.append("domain is required")
    if not (profile.primary_location.city or "").strip():
        errors.append("primary_location.city is required")
    if not (profile.primary_location.state or "").strip():
        errors.append("primary_location.state is required")
    if not [c for c in profile.categories if c and c.strip()]:
        errors.append("At least one category is required")

    if profile.service_radius_miles is not None and profile.service_radius_miles <= 0:
        errors.append("service_radius_miles must be greater than 0")

    for i, area in enumerate(profile.service_areas):
        if not (area.city or "").strip():
            errors.append(f"service_areas[{i}].city is required")
        if not (area.state or "").strip():
            errors.append(f"service_areas[{i}].state is required")
        if area.priority not in _VALID_PRIORITIES:
            errors.append(
                f"service_areas[{i}].priority must be one of {', '.join(_VALID_PRIORITIES)}"
            )

    for i, competitor in enumerate(profile.competitor_overrides):
        if not (competitor.name or "").strip():
            errors.append(f"competitor_overrides[{i}].name is required")

    return errors


# =============================================================================
# UPSERT OUTCOME
# =============================================================================

@dataclass(frozen=True)
class ProfileCreated:
    """A new profile row was inserted."""
    profile_id: UUID

    @property
    def updated(self) -> bool:
        return False


@dataclass(frozen=True)
class ProfileUpdated:
    """An existing (user, domain) profile was overwritten."""
    profile_id: UUID

    @property
    def updated(self) -> bool:
        return True


ProfileUpsertResult = Union[ProfileCreated, ProfileUpdated]
