"""
Scan Service Errors

Every structural or gating failure has its own kind so callers can
render the right message (upgrade prompt, "generate prompts first", ...)
instead of a generic failure.
"""

from typing import Any, Dict, List, Optional


class ScanServiceError(Exception):
    """Base class for errors returned to callers of the scan services."""
    kind = "scan_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class ValidationFailedError(ScanServiceError):
    """Missing or malformed profile fields."""
    kind = "validation_failed"

    def __init__(self, details: List[str], message: str = "Validation failed"):
        super().__init__(message)
        self.details = list(details)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["details"] = self.details
        return data


class GatingError(ScanServiceError):
    """Tier gating failure, carries current vs required tier."""

    def __init__(self, message: str, current_tier: Optional[str], required_tier: str):
        super().__init__(message)
        self.current_tier = current_tier
        self.required_tier = required_tier

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["current_tier"] = self.current_tier
        data["required_tier"] = self.required_tier
        return data


class SubscriptionRequiredError(GatingError):
    """No active, paid subscription."""
    kind = "subscription_required"


class PlanUpgradeRequiredError(GatingError):
    """Subscription tier is below the allow-listed tiers."""
    kind = "plan_upgrade_required"


class NoPromptsError(ScanServiceError):
    """Run requested before prompt generation."""
    kind = "no_prompts"

    def __init__(self, message: str = "No prompt templates found. Generate prompts first."):
        super().__init__(message)


class NotFoundError(ScanServiceError):
    kind = "not_found"


class AccessDeniedError(ScanServiceError):
    kind = "access_denied"


class InvalidRunStateError(ScanServiceError):
    """Run cannot move to the requested status."""
    kind = "invalid_run_state"
