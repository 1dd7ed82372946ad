"""Tie-break policy over matching zones."""

from __future__ import annotations

from typing import Optional, Sequence

from ...models.domain import DeliveryZone, MatchTier, ZoneMatch


def _fee_order(match: ZoneMatch) -> tuple[float, str]:
    return (match.zone.fee, str(match.zone.id))


def select_best(matches: Sequence[ZoneMatch]) -> Optional[DeliveryZone]:
    """Pick the single zone that applies, or ``None``.

    Certainty wins first (exact, then boundary, then tolerance); among
    equally certain zones the cheapest for the customer wins, with the zone
    id as the last resort so the answer never depends on input order.
    """
    candidates = [match for match in matches if match.classification.tier is not MatchTier.NONE]
    if not candidates:
        return None

    best_tier = max(match.classification.tier for match in candidates)
    tier_matches = [match for match in candidates if match.classification.tier is best_tier]
    return min(tier_matches, key=_fee_order).zone
