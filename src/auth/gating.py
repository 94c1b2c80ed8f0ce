"""
Subscription Tier Gating

Decides whether a user may run authority scans and with which models.

Tiers:
    growth: openai + perplexity
    pro:    + gemini
    agency: + anthropic (on request; default roster stays at three)
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.auth.models import Subscriber
from src.services.errors import SubscriptionRequiredError, PlanUpgradeRequiredError

logger = logging.getLogger(__name__)

ELIGIBLE_TIERS = ("growth", "pro", "agency")
REQUIRED_TIER = "growth"


@dataclass(frozen=True)
class TierLimits:
    models_allowed: List[str] = field(default_factory=list)


TIER_LIMITS: Dict[str, TierLimits] = {
    "growth": TierLimits(["openai", "perplexity"]),
    "pro": TierLimits(["openai", "perplexity", "gemini"]),
    "agency": TierLimits(["openai", "perplexity", "gemini", "anthropic"]),
}

# Roster used when the caller does not pick models
DEFAULT_MODELS: Dict[str, List[str]] = {
    "growth": ["openai", "perplexity"],
    "pro": ["openai", "perplexity", "gemini"],
    "agency": ["openai", "perplexity", "gemini"],
}


@dataclass(frozen=True)
class TierAccess:
    """Granted access for an eligible subscriber."""
    tier: str
    limits: TierLimits
    default_models: List[str]

    def resolve_models(self, requested: Optional[List[str]] = None) -> List[str]:
        """
        Models for a run: the requested ones the tier allows, or the default roster.
        """
        if not requested:
            return list(self.default_models)
        allowed = [m for m in dict.fromkeys(requested) if m in self.limits.models_allowed]
        if len(allowed) < len(set(requested)):
            logger.info(f"Dropped models not allowed on {self.tier}: {sorted(set(requested) - set(allowed))}")
        return allowed or list(self.default_models)


def check_scan_access(subscriber: Optional[Subscriber]) -> TierAccess:
    """
    Gate authority scans on the caller's subscription.

    Raises:
        SubscriptionRequiredError: Missing, inactive or unpaid subscription
        PlanUpgradeRequiredError: Tier not in the allow-list
    """
    tier = subscriber.subscription_tier if subscriber else None

    if not subscriber or not subscriber.subscribed or not subscriber.payment_collected:
        raise SubscriptionRequiredError(
            "An active subscription is required to run Local AI Authority scans",
            current_tier=tier,
            required_tier=REQUIRED_TIER,
        )

    normalized = (tier or "").lower()
    if normalized not in ELIGIBLE_TIERS:
        raise PlanUpgradeRequiredError(
            f"Local AI Authority requires the {REQUIRED_TIER.title()} plan or higher",
            current_tier=tier,
            required_tier=REQUIRED_TIER,
        )

    return TierAccess(
        tier=normalized,
        limits=TIER_LIMITS[normalized],
        default_models=DEFAULT_MODELS[normalized],
    )
