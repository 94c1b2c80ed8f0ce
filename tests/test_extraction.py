"""
Tests for AI Response Extraction
"""

import pytest

from src.collector.extraction import (
    BrandConfig,
    matches_brand,
    extract_recommendations,
    extract_competitors,
    extract_places,
    extract_brand_mentions,
    has_strong_association_language,
    extract_response,
)

ANSWER = (
    "Here are some options worth considering:\n"
    "\n"
    "1. Acme Plumbing - Great work on older homes.\n"
    "2. Quick Fix Plumbing - Fast response times.\n"
    "3. Reliable Plumbing Co - Honest pricing.\n"
    "\n"
    "Acme Plumbing is based in Austin, TX and answers calls on weekends."
)


@pytest.fixture
def brand():
    return BrandConfig(
        business_name="Acme Plumbing",
        domain="https://www.acmeplumbing.com/",
        brand_synonyms=["Acme Plumbing Co", "Acme Pipes"],
    )


class TestBrandMatching:
    """Tests for brand matching."""

    def test_name(self, brand):
        assert matches_brand("We recommend ACME plumbing!", brand)

    def test_domain_stem(self, brand):
        assert matches_brand("Check AcmePlumbing.com for rates", brand)

    def test_synonym(self, brand):
        assert matches_brand("Try Acme Pipes", brand)

    def test_other_business(self, brand):
        assert not matches_brand("Quick Fix Plumbing", brand)


class TestRecommendations:
    """Tests for ordered recommendation parsing."""

    def test_numbered_list(self, brand):
        recs = extract_recommendations(ANSWER, brand)

        assert [r.name for r in recs] == ["Acme Plumbing", "Quick Fix Plumbing", "Reliable Plumbing Co"]
        assert [r.position for r in recs] == [1, 2, 3]
        assert [r.is_brand for r in recs] == [True, False, False]
        assert recs[0].reason == "Great work on older homes."

    def test_bullet_fallback(self, brand):
        text = "- Quick Fix Plumbing: fast\n- Acme Plumbing: thorough"
        recs = extract_recommendations(text, brand)

        assert [r.name for r in recs] == ["Quick Fix Plumbing", "Acme Plumbing"]
        assert recs[1].position == 2
        assert recs[1].is_brand
        assert recs[1].confidence == 0.7

    def test_prose_has_no_recommendations(self, brand):
        assert extract_recommendations("there is no list in this answer", brand) == []


class TestCompetitors:
    """Tests for competitor extraction."""

    def test_known_overrides_first_and_brand_excluded(self, brand):
        competitors = extract_competitors(ANSWER, brand, [{"name": "Reliable Plumbing Co"}])
        names = [c.name for c in competitors]

        assert names == ["Reliable Plumbing Co", "Quick Fix Plumbing"]
        assert competitors[0].confidence == 0.9
        assert "Acme Plumbing" not in names

    def test_without_overrides(self, brand):
        names = [c.name for c in extract_competitors(ANSWER, brand)]
        assert names == ["Quick Fix Plumbing", "Reliable Plumbing Co"]


class TestPlacesAndAssociation:
    """Tests for place and association signals."""

    def test_places(self):
        places = extract_places(ANSWER, "Austin", "TX", ["Hyde Park"])
        assert [(p.name, p.type) for p in places] == [("Austin", "city"), ("TX", "state")]

    def test_neighborhood(self):
        places = extract_places("Great options near Hyde Park.", "Austin", "TX", ["Hyde Park"])
        assert [p.type for p in places] == ["neighborhood"]

    @pytest.mark.parametrize("text,expected", [
        ("Acme is based in Austin.", True),
        ("Proudly serving Austin since 1990.", True),
        ("Popular across the Austin area.", True),
        ("Acme does good work.", False),
    ])
    def test_strong_language(self, text, expected):
        assert has_strong_association_language(text, "Austin", "TX") is expected

    def test_no_city(self):
        assert not has_strong_association_language("based in Austin", "", "TX")

    def test_brand_mentions(self, brand):
        mentions = extract_brand_mentions(ANSWER, brand)
        assert any("based in Austin" in m.snippet for m in mentions)


class TestExtractResponse:
    """Tests for the combined extraction."""

    def test_full_answer(self, brand):
        extracted = extract_response(ANSWER, brand, "Austin", "TX", ["Hyde Park"])

        assert extracted.brand_hit
        assert extracted.brand_position == 1
        assert extracted.brand_in_top_three
        assert extracted.strong_association
        assert set(extracted.to_dict()) == {
            "recommendations", "places", "brand_mentions", "competitor_mentions", "strong_association",
        }

    def test_brand_absent(self, brand):
        text = "1. Quick Fix Plumbing - fast\n2. Reliable Plumbing Co - honest\n\nBoth serve Austin."
        extracted = extract_response(text, brand, "Austin", "TX")

        assert not extracted.brand_hit
        assert extracted.brand_position is None
        assert not extracted.strong_association
        assert len(extracted.competitors) == 2
