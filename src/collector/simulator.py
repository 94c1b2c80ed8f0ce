"""
Deterministic Response Simulator

Stand-in for live AI model calls on demo and sales-tool paths.

Every decision is drawn from a string hash of the inputs plus a salt,
so the same (business name, prompt, model) always produces the same
outcome, across processes and machines. There is no module-level
random state.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Names containing these words are treated as slightly more visible
VISIBILITY_KEYWORDS = ("local", "city", "pro")

CATEGORY_COMPETITORS: Dict[str, List[str]] = {
    "Plumber": ["Quick Fix Plumbing", "City Plumbers Pro", "Emergency Pipe Masters", "Reliable Plumbing Co", "Local Drain Experts"],
    "HVAC": ["Cool Air Solutions", "Climate Control Pro", "AC Masters", "Heating & Cooling Experts", "Comfort Zone HVAC"],
    "Electrician": ["Spark Electric Co", "Power Pro Electricians", "Safe Wiring Services", "Lightning Fast Electric", "Certified Electric"],
    "Landscaper": ["Green Thumb Landscaping", "Perfect Lawns Inc", "Outdoor Living Designs", "Nature's Touch Gardens", "Premier Lawn Care"],
    "Dentist": ["Bright Smile Dental", "Family Dental Care", "Gentle Touch Dentistry", "Modern Dental Group", "Premier Dental Clinic"],
    "Doctor": ["City Medical Center", "Family Health Clinic", "Wellness Medical Group", "Premier Healthcare", "Community Health Partners"],
    "Lawyer": ["Smith & Associates Law", "Justice Legal Group", "Trusted Law Firm", "City Legal Services", "Expert Attorneys LLC"],
    "Real Estate Agent": ["Premier Realty Group", "Home Finders Realty", "Local Property Experts", "Dream Home Agents", "City Real Estate"],
    "Restaurant": ["The Local Kitchen", "City Bistro", "Neighborhood Grill", "Fresh Eats Cafe", "Downtown Dining"],
    "Auto Repair": ["Quick Fix Auto", "Reliable Mechanics", "City Auto Care", "Expert Car Service", "Precision Auto Repair"],
}


@dataclass(frozen=True)
class SimulatedResponse:
    """Outcome of one simulated prompt x model call."""
    mentioned: bool
    recommended: bool
    position: Optional[int]
    competitors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "mentioned": self.mentioned,
            "recommended": self.recommended,
            "position": self.position,
            "competitors": list(self.competitors),
        }


# =============================================================================
# SEEDED HASHING
# =============================================================================

def hash_string(value: str) -> int:
    """
    Java-style 32-bit string hash (h = h * 31 + c), absolute value.

    Characters are hashed as UTF-16 code units so results match the
    same hash computed in a browser.
    """
    h = 0
    data = value.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def seeded_random(seed: str) -> float:
    """Map a seed string into [0, 1) with three decimal places."""
    return (hash_string(seed) % 1000) / 1000


# =============================================================================
# SIMULATION
# =============================================================================

def competitor_pool(category: Optional[str], city: Optional[str]) -> List[str]:
    """Competitor names for a category, or generic names when unknown."""
    if category and category in CATEGORY_COMPETITORS:
        return CATEGORY_COMPETITORS[category]

    category = category or "Business"
    city = city or "Local"
    return [
        f"{city} {category} Pros",
        f"Premier {category} Services",
        f"Trusted {category} Co",
        f"Local {category} Experts",
        f"{city} {category} Masters",
    ]


def simulate_response(
    business_name: str,
    prompt: str,
    model: str,
    category: Optional[str] = None,
    city: Optional[str] = None,
) -> SimulatedResponse:
    """
    Simulate one AI answer for a business.

    Args:
        business_name: Business being scanned
        prompt: Prompt text sent to the model
        model: Model display name (e.g. "ChatGPT")
        category: Business category, selects the competitor pool
        city: Used for generic competitor names on unknown categories

    Returns:
        SimulatedResponse, identical for identical inputs
    """
    seed = f"{business_name.lower()}-{prompt}-{model}"
    name_lower = business_name.lower()

    has_keyword = any(k in name_lower for k in VISIBILITY_KEYWORDS)
    mention_threshold = 0.4 if has_keyword else 0.25
    recommend_threshold = 0.6 if has_keyword else 0.4

    mentioned = seeded_random(seed) < mention_threshold
    recommended = mentioned and seeded_random(seed + "-rec") < recommend_threshold

    position = None
    if mentioned:
        draw = seeded_random(seed + "-pos")
        if draw < 0.2:
            position = 1
        elif draw < 0.4:
            position = 2
        elif draw < 0.6:
            position = 3
        elif draw < 0.8:
            position = 4

    pool = competitor_pool(category, city)
    count = 2 + int(seeded_random(seed + "-comp-count") * 3)
    competitors: List[str] = []
    for i in range(min(count, len(pool))):
        index = int(seeded_random(f"{seed}-comp-{i}") * len(pool))
        # Collisions step to the next unused name so the set stays distinct
        while pool[index] in competitors:
            index = (index + 1) % len(pool)
        competitors.append(pool[index])

    return SimulatedResponse(
        mentioned=mentioned,
        recommended=recommended,
        position=position,
        competitors=competitors,
    )


def estimate_google_maps_visibility(business_name: str, city: str) -> int:
    """Seeded Google Maps visibility estimate in the 40-80 range."""
    seed = f"google-{business_name.lower()}-{city.lower()}"
    return int(40 + seeded_random(seed) * 40 + 0.5)
