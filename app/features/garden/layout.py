"""
Garden layout.

Contacts are placed on concentric rings, either by target frequency
(six rings, weekly to yearly) or by importance tier (three rings). Within a
ring they are spread at golden-angle increments and nudged by a small jitter.
The jitter comes from a random.Random seeded with the caller's seed and the
contact id, so identical input always produces an identical layout.
"""

import math
import random
from typing import Dict, List, Optional

from app.features.health.decay import contact_garden_health

GOLDEN_ANGLE_DEGREES = 137.508
GOLDEN_ANGLE = math.radians(GOLDEN_ANGLE_DEGREES)

RING_RADIUS_START = 80
RING_RADIUS_STEP = 60
RING_ANGLE_OFFSET = 0.5

DEFAULT_FREQUENCY_DAYS = 365
DEFAULT_JITTER = 8.0

MODE_FREQUENCY = "frequency"
MODE_TIER = "tier"
MODES = (MODE_FREQUENCY, MODE_TIER)

# (upper bound in days, leaf size in tier mode)
_FREQUENCY_BUCKETS = [(7, 56), (14, 48), (30, 40), (90, 32), (180, 28)]
_LARGEST_BUCKET_SIZE = 24

_IMPORTANCE_SIZES = {"high": 48, "medium": 36}
_SMALL_LEAF = 28


def _frequency_ring(days: Optional[int]) -> int:
    days = days or DEFAULT_FREQUENCY_DAYS
    for ring, (bound, _) in enumerate(_FREQUENCY_BUCKETS):
        if days <= bound:
            return ring
    return len(_FREQUENCY_BUCKETS)


def _frequency_leaf_size(days: Optional[int]) -> int:
    ring = _frequency_ring(days)
    return _FREQUENCY_BUCKETS[ring][1] if ring < len(_FREQUENCY_BUCKETS) else _LARGEST_BUCKET_SIZE


def _tier_ring(importance: Optional[str]) -> int:
    tier = importance or "medium"
    if tier == "high":
        return 0
    if tier == "medium":
        return 1
    return 2


def _importance_leaf_size(importance: Optional[str]) -> int:
    return _IMPORTANCE_SIZES.get(importance or "medium", _SMALL_LEAF)


def ring_radius(ring_index: int) -> int:
    return RING_RADIUS_START + ring_index * RING_RADIUS_STEP


def compute_layout(
    contacts: List[Dict],
    mode: str = MODE_FREQUENCY,
    seed: int = 0,
    jitter: float = DEFAULT_JITTER,
) -> List[Dict]:
    """
    Position every contact.

    Each returned dict carries the contact's id, name, importance and
    target_frequency_days plus x, y, ring_index, leaf_size and the garden
    health status used to colour the leaf.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown garden mode: {mode}")

    ring_count = len(_FREQUENCY_BUCKETS) + 1 if mode == MODE_FREQUENCY else 3
    rings: List[List[Dict]] = [[] for _ in range(ring_count)]

    for contact in contacts:
        if mode == MODE_FREQUENCY:
            rings[_frequency_ring(contact.get("target_frequency_days"))].append(contact)
        else:
            rings[_tier_ring(contact.get("importance"))].append(contact)

    positioned = []
    for ring_index, ring_contacts in enumerate(rings):
        radius = ring_radius(ring_index)
        ordered = sorted(ring_contacts, key=lambda c: (c.get("name") or "").lower())

        for i, contact in enumerate(ordered):
            angle = ring_index * RING_ANGLE_OFFSET + i * GOLDEN_ANGLE
            rng = random.Random(f"{seed}:{contact.get('id')}")
            dx = rng.uniform(-jitter, jitter)
            dy = rng.uniform(-jitter, jitter)

            if mode == MODE_FREQUENCY:
                leaf_size = _importance_leaf_size(contact.get("importance"))
            else:
                leaf_size = _frequency_leaf_size(contact.get("target_frequency_days"))

            positioned.append({
                "id": contact.get("id"),
                "name": contact.get("name"),
                "photo_url": contact.get("photo_url"),
                "importance": contact.get("importance"),
                "target_frequency_days": contact.get("target_frequency_days"),
                "x": round(math.cos(angle) * radius + dx, 2),
                "y": round(math.sin(angle) * radius + dy, 2),
                "ring_index": ring_index,
                "leaf_size": leaf_size,
                "health": contact_garden_health(contact).status,
            })

    return positioned


def phyllotaxis_position(index: int, health_ratio: Optional[float], max_radius: float) -> Dict:
    """
    Fibonacci-spiral position where distance from the centre follows health.

    The ratio is clamped to 2 so overdue leaves stay inside the garden; a
    small sqrt(index) term keeps leaves of the same health apart.
    """
    ratio = min(health_ratio if health_ratio is not None else 2, 2)
    r = ratio * max_radius * 0.4 + math.sqrt(index) * 5
    theta = index * GOLDEN_ANGLE
    return {
        "x": r * math.cos(theta),
        "y": r * math.sin(theta),
        "rotation": math.degrees(theta) + 90,
    }
