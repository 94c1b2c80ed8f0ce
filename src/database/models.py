"""
SQLAlchemy Models for the Local Authority Scan Pipeline

Design Principles:
1. Profiles are upserted, never deleted by the scan pipeline
2. Prompt templates are replaced wholesale on every generation
3. Runs move forward only (queued -> running -> complete | error)
4. Results and scores are write-once (citations are the one exception)
5. Raw AI responses are kept for debugging and sample display
"""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text,
    ForeignKey, Enum, Index, UniqueConstraint, JSON, Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in dev/tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# ENUMS
# =============================================================================

class PromptLayer(enum.Enum):
    """Semantic prompt family"""
    GEO_CLUSTER = "geo_cluster"                  # City-qualified superlatives
    IMPLICIT = "implicit"                        # No location tokens at all
    RADIUS_NEIGHBORHOOD = "radius_neighborhood"  # Neighborhood / radius scoped
    PROBLEM_INTENT = "problem_intent"            # Urgency, value, availability


class IntentTag(enum.Enum):
    """Intent carried by a prompt"""
    BEST = "best"
    NEAR_ME = "near_me"
    TRUST = "trust"
    PRICE = "price"
    EMERGENCY = "emergency"
    SPECIALTY = "specialty"
    COMPARISON = "comparison"
    HOURS = "hours"


class RunStatus(enum.Enum):
    """Status of a scan run"""
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETE, RunStatus.ERROR)


class CitationValidationStatus(enum.Enum):
    """Citation accessibility check state for a result"""
    NONE = "none"
    VALIDATING = "validating"
    COMPLETED = "completed"
    FAILED = "failed"


class ServiceAreaPriority(enum.Enum):
    """Priority tier of a service area"""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    EXPANSION = "expansion"


class ConfidenceLevel(enum.Enum):
    """Qualitative trust rating on a score"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# PROFILES & PROMPTS
# =============================================================================

class BusinessProfile(Base):
    """Local business being scanned, owned by a user"""
    __tablename__ = "business_profiles"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    # Identity
    business_name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=False)  # Normalized (no scheme, no www.)

    # Location
    primary_location = Column(JSONType, nullable=False)
    """
    {"city": "Austin", "state": "TX", "country": "US",
     "zip": "78701", "lat": 30.27, "lng": -97.74}
    """
    service_areas = Column(JSONType, default=list)
    """
    [{"city": "Round Rock", "state": "TX", "zips": ["78664"], "priority": "secondary"}]
    """
    service_radius_miles = Column(Integer, default=15)
    neighborhoods = Column(JSONType, default=list)

    # Brand & market
    categories = Column(JSONType, default=list)
    brand_synonyms = Column(JSONType, default=list)
    competitor_overrides = Column(JSONType, default=list)  # [{"name": ..., "domain": ...}]

    # Optional listing data
    gbp_url = Column(String(2000))
    phone = Column(String(50))
    address = Column(String(500))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    prompt_templates = relationship(
        "PromptTemplate", back_populates="profile", cascade="all, delete-orphan",
        order_by="PromptTemplate.sort_order",
    )
    runs = relationship("ScanRun", back_populates="profile")

    __table_args__ = (
        UniqueConstraint("user_id", "domain", name="uq_profile_user_domain"),
        Index("idx_profile_user", "user_id"),
    )

    @property
    def city(self) -> str:
        return (self.primary_location or {}).get("city", "")

    @property
    def state(self) -> str:
        return (self.primary_location or {}).get("state", "")


class PromptTemplate(Base):
    """Generated prompt for a profile - replaced on every generation"""
    __tablename__ = "prompt_templates"

    id = Column(Uuid, primary_key=True, default=uuid4)
    profile_id = Column(Uuid, ForeignKey("business_profiles.id"), nullable=False)

    layer = Column(Enum(PromptLayer), nullable=False)
    prompt_text = Column(Text, nullable=False)
    intent_tag = Column(String(30), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0)  # Generation order

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    profile = relationship("BusinessProfile", back_populates="prompt_templates")

    __table_args__ = (
        Index("idx_template_profile_active", "profile_id", "active"),
    )


# =============================================================================
# RUNS, RESULTS & SCORES
# =============================================================================

class ScanRun(Base):
    """One execution of a profile's prompt set across a model roster"""
    __tablename__ = "scan_runs"

    id = Column(Uuid, primary_key=True, default=uuid4)
    profile_id = Column(Uuid, ForeignKey("business_profiles.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    # Status tracking
    status = Column(Enum(RunStatus), default=RunStatus.QUEUED, nullable=False)

    # Configuration
    models_used = Column(JSONType, default=list)
    prompt_count = Column(Integer, default=0)
    cache_key = Column(String(500), nullable=False)

    # Quality
    error_count = Column(Integer, default=0)
    quality_flags = Column(JSONType, default=dict)
    """
    {"error_count": 2, "list_detection_low": false, "coverage": 97,
     "partial_results": false}
    """
    error_message = Column(Text)

    # Timing
    started_at = Column(DateTime)
    finished_at = Column(DateTime)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    profile = relationship("BusinessProfile", back_populates="runs")
    results = relationship("ScanResult", back_populates="run", cascade="all, delete-orphan")
    score = relationship("ScoreRecord", back_populates="run", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_run_cache_lookup", "cache_key", "status", "finished_at"),
        Index("idx_run_profile_time", "profile_id", "created_at"),
    )


class ScanResult(Base):
    """One (prompt, model) outcome inside a run - write-once except citations"""
    __tablename__ = "scan_results"

    id = Column(Uuid, primary_key=True, default=uuid4)
    run_id = Column(Uuid, ForeignKey("scan_runs.id"), nullable=False)

    # Prompt
    layer = Column(Enum(PromptLayer), nullable=False)
    intent_tag = Column(String(30))
    prompt_text = Column(Text, nullable=False)
    model = Column(String(50), nullable=False)

    # Outcome
    mentioned = Column(Boolean, default=False)
    recommended = Column(Boolean, default=False)
    position = Column(Integer)  # Rank in the answer's list, if any
    competitors = Column(JSONType, default=list)  # Competitor names found

    # Raw data
    raw_response = Column(Text)
    extracted = Column(JSONType, default=dict)
    """
    {"recommendations": [...], "places": [...],
     "brand_mentions": [...], "competitor_mentions": [...]}
    """

    # Citations (mutated by the citation verifier only)
    citations = Column(JSONType, default=list)      # Accessible citations after validation
    all_citations = Column(JSONType, default=list)  # Every citation with validation fields
    citation_validation = Column(JSONType)          # Summary metadata
    citations_validation_status = Column(
        Enum(CitationValidationStatus), default=CitationValidationStatus.NONE, nullable=False
    )

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    run = relationship("ScanRun", back_populates="results")

    __table_args__ = (
        Index("idx_result_run", "run_id"),
    )


class ScoreRecord(Base):
    """Aggregated authority score for a completed run - immutable"""
    __tablename__ = "score_records"

    id = Column(Uuid, primary_key=True, default=uuid4)
    run_id = Column(Uuid, ForeignKey("scan_runs.id"), nullable=False, unique=True)
    profile_id = Column(Uuid, ForeignKey("business_profiles.id"), nullable=False)

    # Scores (components 0-25, total 0-100)
    score_total = Column(Integer, nullable=False)
    score_geo = Column(Integer, nullable=False)
    score_implicit = Column(Integer, nullable=False)
    score_association = Column(Integer, nullable=False)
    score_sov = Column(Integer, nullable=False)

    breakdown = Column(JSONType, default=dict)
    top_competitors = Column(JSONType, default=list)
    recommendations = Column(JSONType, default=list)

    # Confidence
    confidence_level = Column(Enum(ConfidenceLevel), nullable=False)
    confidence_reasons = Column(JSONType, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    run = relationship("ScanRun", back_populates="score")


# =============================================================================
# FLAT LOCAL VISIBILITY SCANS
# =============================================================================

class LocalScan(Base):
    """Fingerprint-cached flat visibility scan (demo / sales path)"""
    __tablename__ = "local_scans"

    id = Column(Uuid, primary_key=True, default=uuid4)

    # Inputs
    business_name = Column(String(255), nullable=False)
    website = Column(String(2000))
    city = Column(String(255), nullable=False)
    category = Column(String(255), nullable=False)
    input_fingerprint = Column(String(64), nullable=False)

    # Results
    raw_score = Column(Float, default=0)
    max_possible_score = Column(Float, default=0)
    normalized_score = Column(Integer, default=0)
    status_label = Column(String(50))
    top_competitors = Column(JSONType, default=list)
    prompt_results = Column(JSONType, default=list)
    google_maps_estimate = Column(Integer)

    # Caching
    cache_expires_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_local_scan_fingerprint", "input_fingerprint", "cache_expires_at"),
    )
