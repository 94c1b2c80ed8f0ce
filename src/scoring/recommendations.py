"""
Action Plan Generation

Rule-based action items driven by weak authority components.
A component at or below 12 (of 25) triggers its bucket of actions.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List

from src.scoring.authority import AuthorityScore

WEAK_COMPONENT_THRESHOLD = 12
MAX_RECOMMENDATIONS = 10
MIN_RECOMMENDATIONS = 6


@dataclass
class ActionRecommendation:
    bucket: str       # on_site, citations, content, competitive
    title: str
    why: str
    how: str
    difficulty: str   # easy, med, hard
    impact: str       # low, med, high

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def generate_recommendations(score: AuthorityScore, city: str, state: str) -> List[ActionRecommendation]:
    """Build up to 10 actions for the weakest parts of a score."""
    city = city or "your city"
    state = state or "your state"
    actions: List[ActionRecommendation] = []

    if score.score_association <= WEAK_COMPONENT_THRESHOLD:
        actions.extend([
            ActionRecommendation(
                bucket="on_site",
                title=f'Add "Serving {city}" Language',
                why="AI models need explicit location signals to associate your brand with your service area.",
                how=f'Add "Serving {city}, {state}" language to your homepage hero, About page, Contact page, and footer.',
                difficulty="easy",
                impact="high",
            ),
            ActionRecommendation(
                bucket="on_site",
                title="Implement Local Schema Markup",
                why="Structured data helps AI understand your business location and service area.",
                how="Add LocalBusiness schema with your NAP (Name, Address, Phone) and embed a Google Map on your contact page.",
                difficulty="med",
                impact="med",
            ),
            ActionRecommendation(
                bucket="citations",
                title="Ensure NAP Consistency",
                why="Inconsistent business information across directories confuses AI models.",
                how="Audit your listings on Google, Yelp, BBB, and industry directories for consistent Name, Address, Phone.",
                difficulty="med",
                impact="high",
            ),
        ])

    if score.score_implicit <= WEAK_COMPONENT_THRESHOLD:
        actions.extend([
            ActionRecommendation(
                bucket="content",
                title="Create Category Authority Content",
                why="AI recommends brands it perceives as category experts, even without location keywords.",
                how="Publish educational articles, how-to guides, and case studies that demonstrate expertise in your category.",
                difficulty="med",
                impact="high",
            ),
            ActionRecommendation(
                bucket="content",
                title="Build FAQ Pages",
                why="Comprehensive FAQs signal expertise and help AI understand your service offerings.",
                how="Create an FAQ page answering common customer questions about your category and services.",
                difficulty="easy",
                impact="med",
            ),
        ])

    if score.score_sov <= WEAK_COMPONENT_THRESHOLD and score.top_competitors:
        names = ", ".join(c["name"] for c in score.top_competitors[:3])
        actions.append(ActionRecommendation(
            bucket="competitive",
            title="Analyze Top Competitors",
            why=f"Competitors ({names}) are appearing more frequently in AI recommendations.",
            how="Research their online presence, content strategy, and reviews. Identify what makes them stand out.",
            difficulty="med",
            impact="high",
        ))
        if score.losing_intents:
            intent = score.losing_intents[0]["intent_tag"]
            actions.append(ActionRecommendation(
                bucket="content",
                title=f'Target "{intent}" Queries',
                why=f'Competitors are winning in "{intent}" intent queries.',
                how=f'Create content specifically addressing "{intent}" queries with your brand as the answer.',
                difficulty="med",
                impact="med",
            ))

    if score.score_geo <= WEAK_COMPONENT_THRESHOLD:
        actions.extend([
            ActionRecommendation(
                bucket="on_site",
                title="Create Location-Specific Landing Pages",
                why="Dedicated pages for your service areas help AI associate your brand with those locations.",
                how='Create pages like "[Service] in [City]" with unique, valuable content (not just keyword stuffing).',
                difficulty="med",
                impact="high",
            ),
            ActionRecommendation(
                bucket="citations",
                title="Strengthen Local Directory Presence",
                why="Citations from local directories reinforce your geographic relevance.",
                how="Claim and optimize profiles on local business directories, chambers of commerce, and industry associations.",
                difficulty="easy",
                impact="med",
            ),
        ])

    if score.score_total < 50 and len(actions) < MIN_RECOMMENDATIONS:
        actions.append(ActionRecommendation(
            bucket="on_site",
            title="Optimize Google Business Profile",
            why="GBP is a primary source for local business information used by AI models.",
            how="Complete all GBP fields, add photos, respond to reviews, and post regular updates.",
            difficulty="easy",
            impact="high",
        ))

    return actions[:MAX_RECOMMENDATIONS]
