"""
modules/recommendation/candidate_filter.py
-------------------------------------------
Removes places that are irrelevant to leisure travel or below quality.

Rules, applied in order:
  1. type exclusion   — tags intersect EXCLUDED_TYPES (generic filler tags
                        such as "establishment" never count)
  2. name exclusion   — lower-cased name matches a corporate/business pattern
  3. quality          — rating ≥ 4.0 with ≥ 15 reviews, or the relaxed rule
                        for the place's category (e.g. parks: ≥ 8 reviews)

Pure filter: input order is preserved and nothing is mutated.
Caller-pinned endpoints are always kept.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Iterable

from schemas.places import Place


logger = logging.getLogger(__name__)


GENERIC_TYPES: frozenset[str] = frozenset({"establishment", "point_of_interest"})

EXCLUDED_TYPES: frozenset[str] = frozenset({
    # agencies
    "agency", "real_estate_agency", "insurance_agency", "travel_agency", "news_agency",
    "employment_agency", "government_office", "local_government_office", "embassy",
    "consulate", "city_hall", "courthouse", "police", "fire_station",
    # offices
    "office", "corporate_office", "business_center", "coworking_space", "headquarters",
    "professional_services", "consulting_agency", "accounting", "lawyer", "notary_public",
    # financial
    "bank", "atm", "finance", "credit_union", "mortgage_broker", "tax_consultant",
    # medical
    "hospital", "clinic", "doctor", "dentist", "pharmacy", "veterinary_care",
    "physiotherapist", "psychologist", "medical_lab", "urgent_care",
    # education
    "school", "primary_school", "secondary_school", "university", "college",
    "training_center", "driving_school",
    # industrial
    "industrial", "warehouse", "manufacturing", "factory", "distribution_center",
    "construction_company", "contractor", "moving_company", "storage",
    # automotive
    "car_dealer", "car_repair", "car_wash", "car_rental", "gas_station", "parking",
    "auto_parts_store",
    # trades and utilities
    "locksmith", "plumber", "electrician", "painter", "roofing_contractor",
    "post_office", "courier_service", "telecommunications", "internet_service_provider",
    "utility_company", "waste_management", "recycling_center",
    # lodging and personal care
    "lodging", "hotel", "beauty_salon", "hair_care", "gym",
    # funeral
    "funeral_home", "cemetery", "crematorium",
})

_NAME_PATTERNS: tuple[re.Pattern, ...] = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"\bagenc(y|ies)\b",
    r"\b(office|headquarters|corporate|business)\s*(building|center|centre|complex|tower|plaza|park)\b",
    r"\bheadquarters\b",
    r"\b(pvt\.?\s*ltd\.?|private\s+limited|corporation|corp\.|inc\.?|llc|llp|gmbh)(?=\s|$|,)",
    r"\b(technologies|solutions|services|consulting|consultancy)\b",
    r"\b(law\s*firm|legal\s*services|chartered\s*accountants?)\b",
    r"\b(medical\s*cent(er|re)|clinic|hospital|diagnostics?|pathology)\b",
    r"\b(manufacturing|factory|warehouse|distribution\s*cent(er|re))\b",
    r"\b(enterprises?|industries)\b",
    r"\b(tech\s*park|it\s*park|software\s*park|cyber\s*(city|park)|infotech)\b",
    r"\b(hotel|resort|serviced\s*apartments?)\b",
    r"\binternational\b(?!.*\bairport\b)",
))


@dataclass(frozen=True)
class QualityRule:
    min_rating: float
    min_reviews: int


DEFAULT_QUALITY = QualityRule(min_rating=4.0, min_reviews=15)

# Categories where small review counts are normal.
CATEGORY_QUALITY: dict[str, QualityRule] = {
    "park": QualityRule(min_rating=4.0, min_reviews=8),
    "natural_feature": QualityRule(min_rating=4.0, min_reviews=8),
    "place_of_worship": QualityRule(min_rating=4.0, min_reviews=8),
}


def has_excluded_type(place: Place) -> bool:
    return any(t in EXCLUDED_TYPES and t not in GENERIC_TYPES for t in place.types)


def matches_business_name(name: str) -> bool:
    lowered = name.lower()
    return any(p.search(lowered) for p in _NAME_PATTERNS)


def passes_quality(place: Place) -> bool:
    """Default threshold, or any relaxed rule of the place's categories."""
    rules = [DEFAULT_QUALITY] + [CATEGORY_QUALITY[t] for t in place.types if t in CATEGORY_QUALITY]
    return any(
        place.rating >= r.min_rating and place.review_count >= r.min_reviews
        for r in rules
    )


def _is_pinned(place: Place) -> bool:
    return place.is_start_point or place.is_end_point


def filter_candidates(places: Iterable[Place]) -> list[Place]:
    """
    Apply all three rules.

    Returns:
        Filtered places in input order; possibly empty.
    """
    kept: list[Place] = []
    dropped = 0
    for place in places:
        if _is_pinned(place):
            kept.append(place)
            continue
        if has_excluded_type(place):
            logger.debug("Filtered out (excluded type): %s %s", place.name, list(place.types))
        elif matches_business_name(place.name):
            logger.debug("Filtered out (business name): %s", place.name)
        elif not passes_quality(place):
            logger.debug(
                "Filtered out (quality): %s rating=%.1f reviews=%d",
                place.name, place.rating, place.review_count,
            )
        else:
            kept.append(place)
            continue
        dropped += 1

    logger.info("Candidate filter kept %d places (filtered out: %d)", len(kept), dropped)
    return kept
