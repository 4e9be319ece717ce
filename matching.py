# matching.py
"""Partner matching: rank other profiles by shared interests and location."""

import logging

from extensions import db
from models import Profile

logger = logging.getLogger(__name__)

SHARED_INTEREST_POINTS = 10
SAME_LOCATION_POINTS = 5


def _normalize(value):
    return (value or '').strip().casefold()


def profile_interests(profile):
    return list(profile.interests or profile.focus_areas or [])


def shared_interests(own, other):
    """Interests present in both lists, in ``own`` order and spelling."""
    theirs = {_normalize(i) for i in other}
    shared = []
    seen = set()
    for interest in own:
        key = _normalize(interest)
        if key and key in theirs and key not in seen:
            shared.append(interest)
            seen.add(key)
    return shared


def same_location(a, b):
    return bool(_normalize(a)) and _normalize(a) == _normalize(b)


def match_score(shared_count, location_match):
    return shared_count * SHARED_INTEREST_POINTS + (SAME_LOCATION_POINTS if location_match else 0)


def score_candidates(profile, candidates):
    own = profile_interests(profile)
    matches = []
    for candidate in candidates:
        if candidate.id == profile.id:
            continue
        theirs = profile_interests(candidate)
        shared = shared_interests(own, theirs)
        score = match_score(len(shared), same_location(profile.location, candidate.location))
        matches.append({
            'profile_id': candidate.id,
            'name': candidate.name,
            'profile_type': candidate.profile_type,
            'location': candidate.location,
            'interests': theirs,
            'match_score': score,
            'shared_interests': shared,
        })
    matches.sort(key=lambda m: (-m['match_score'], m['name'].casefold(), m['profile_id']))
    return matches


def get_partner_matches(profile_id, limit=None):
    """Ranked candidates for ``profile_id``; empty when the profile does not exist."""
    profile = db.session.get(Profile, profile_id) if profile_id is not None else None
    if profile is None:
        return []

    candidates = Profile.query.filter(Profile.id != profile.id).all()
    matches = score_candidates(profile, candidates)
    logger.debug("Scored %d candidates for profile %s", len(matches), profile_id)
    if limit:
        matches = matches[:limit]
    return matches


def match_percentages(scores):
    """Scores scaled against the best one, rounded half up. [10, 5, 0] -> [100, 50, 0]."""
    scores = list(scores)
    if not scores:
        return []
    top = max(max(scores), 1)
    return [int(score * 100 / top + 0.5) for score in scores]
