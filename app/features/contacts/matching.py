"""
Duplicate contact detection.

Pairwise comparison of a user's contacts: exact email, exact phone (digits
only, more than 6 of them), fuzzy name via Levenshtein similarity, and a
first-name rule for records that only differ by a missing or abbreviated
last name. Candidates scoring at least DUPLICATE_THRESHOLD are grouped under
the most active contact, which becomes the keeper.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DUPLICATE_THRESHOLD = 0.85
NAME_SIMILARITY_THRESHOLD = 0.85
MIN_PHONE_DIGITS = 7


@dataclass
class DuplicateGroup:
    """A keeper contact and the records that look like the same person."""
    id: str
    keeper: Dict
    duplicates: List[Dict]
    score: float
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "keeper": self.keeper,
            "duplicates": self.duplicates,
            "score": self.score,
            "reasons": self.reasons,
        }


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(a) + 1))
    for i, char_b in enumerate(b, start=1):
        current = [i]
        for j, char_a in enumerate(a, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def similarity(s1: Optional[str], s2: Optional[str]) -> float:
    """Similarity in [0, 1]; 0 when either side is empty."""
    if not s1 or not s2:
        return 0.0
    longer, shorter = (s1, s2) if len(s1) > len(s2) else (s2, s1)
    return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


def _phone_digits(phone: Optional[str]) -> str:
    return re.sub(r"\D", "", phone or "")


def _compare(current: Dict, other: Dict) -> tuple[float, List[str]]:
    score = 0.0
    reasons: List[str] = []

    email_a = (current.get("email") or "").lower()
    email_b = (other.get("email") or "").lower()
    if email_a and email_a == email_b:
        score = 1.0
        reasons.append("Exact Email Match")

    phone_a = _phone_digits(current.get("phone"))
    phone_b = _phone_digits(other.get("phone"))
    if len(phone_a) >= MIN_PHONE_DIGITS and phone_a == phone_b:
        score = max(score, 1.0)
        reasons.append("Exact Phone Match")

    name_sim = similarity((current.get("name") or "").lower(), (other.get("name") or "").lower())
    if name_sim > NAME_SIMILARITY_THRESHOLD:
        score = max(score, 0.9)
        reasons.append(f"Similar Name ({round(name_sim * 100)}%)")

    first_a = (current.get("first_name") or "").lower()
    first_b = (other.get("first_name") or "").lower()
    if score < 0.8 and first_a and first_a == first_b:
        words_a = (current.get("name") or "").split()
        words_b = (other.get("name") or "").split()

        if (len(words_a) == 1 and len(words_b) > 1) or (len(words_b) == 1 and len(words_a) > 1):
            score = max(score, 0.85)
            reasons.append("First Name Match (Missing Last Name)")
        elif current.get("last_name") and other.get("last_name"):
            last_a = current["last_name"].lower()
            last_b = other["last_name"].lower()
            if (len(last_a) == 1 and last_b.startswith(last_a)) or (
                len(last_b) == 1 and last_a.startswith(last_b)
            ):
                score = max(score, 0.88)
                reasons.append("First Name + Last Initial Match")

    return score, reasons


def find_potential_duplicates(contacts: List[Dict]) -> List[DuplicateGroup]:
    """
    Group contacts that are probably the same person.

    Contacts are visited by interaction count (most active first), so the
    first member of each group is the keeper. A contact belongs to at most
    one group.
    """
    ordered = sorted(contacts, key=lambda c: c.get("interaction_count") or 0, reverse=True)
    grouped: set = set()
    groups: List[DuplicateGroup] = []

    for i, current in enumerate(ordered):
        if current["id"] in grouped:
            continue

        members = [current]
        reasons: List[str] = []
        max_score = 0.0

        for other in ordered[i + 1:]:
            if other["id"] in grouped:
                continue

            score, pair_reasons = _compare(current, other)
            if score >= DUPLICATE_THRESHOLD:
                members.append(other)
                grouped.add(other["id"])
                max_score = max(max_score, score)
                reasons.extend(pair_reasons)

        if len(members) > 1:
            grouped.add(current["id"])
            groups.append(
                DuplicateGroup(
                    id=f"group-{current['id']}",
                    keeper=members[0],
                    duplicates=members[1:],
                    score=max_score,
                    reasons=list(dict.fromkeys(reasons)),
                )
            )

    return groups
