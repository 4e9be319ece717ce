# directory.py
"""Directory filtering for the unified profile listing.

Everything here is a pure function of (profiles, filter state). Route
handlers load rows, convert them with ``unify_profile`` and hand the result
to ``filter_profiles``.
"""

from collections import Counter, namedtuple
from datetime import datetime

DirectoryProfile = namedtuple(
    'DirectoryProfile',
    ['id', 'name', 'title', 'organization', 'location', 'email', 'tags',
     'description', 'type', 'user_id', 'created_at']
)
DirectoryProfile.__new__.__defaults__ = (None,)

SORT_OPTIONS = ('name', 'name-desc', 'organization', 'location', 'recent')

# Single-select region keywords used on the per-type pages
REGION_KEYWORDS = {
    'student': {
        'usa': ('usa',),
        'canada': ('canada',),
        'uk': ('uk',),
        'europe': ('uk', 'europe'),
    },
    'researcher': {
        'usa': ('usa',),
        'uk': ('uk',),
        'europe': ('uk', 'germany'),
        'apac': ('australia', 'singapore'),
    },
    'agency': {
        'usa': ('usa',),
        'canada': ('canada',),
        'uk': ('uk',),
        'international': ('switzerland', 'geneva'),
    },
}


def unify_profile(profile):
    """Flatten a stored Profile into the directory's common shape."""
    if profile.profile_type == 'student':
        if profile.year:
            title = f"{profile.year} - {profile.major or 'Student'}"
        else:
            title = profile.major or 'Student'
        organization = profile.university or ''
    elif profile.profile_type == 'researcher':
        title = profile.title or 'Researcher'
        organization = profile.institution or ''
    else:
        title = profile.agency_type or 'Agency'
        organization = profile.name

    return DirectoryProfile(
        id=profile.id,
        name=profile.name,
        title=title,
        organization=organization,
        location=profile.location or '',
        email=profile.email,
        tags=list(profile.interests or profile.focus_areas or []),
        description=profile.bio or '',
        type=profile.profile_type,
        user_id=profile.user_id,
        created_at=profile.created_at,
    )


def matches_query(profile, query):
    if not query:
        return True
    query = query.casefold()
    fields = (profile.name, profile.organization, profile.title, profile.description)
    if any(query in (value or '').casefold() for value in fields):
        return True
    return any(query in tag.casefold() for tag in profile.tags)


def matches_tags(profile, selected_tags):
    if not selected_tags:
        return True
    return any(tag in profile.tags for tag in selected_tags)


def matches_locations(profile, selected_locations):
    if not selected_locations:
        return True
    return profile.location in selected_locations


def region_terms(profile_type, location_filter):
    return REGION_KEYWORDS.get(profile_type, {}).get(location_filter, (location_filter,))


def matches_region(profile, location_filter):
    if not location_filter or location_filter == 'all':
        return True
    location = profile.location.lower()
    terms = region_terms(profile.type, location_filter.lower())
    return any(term in location for term in terms)


def sort_profiles(profiles, sort_by):
    if sort_by == 'name':
        return sorted(profiles, key=lambda p: p.name.casefold())
    if sort_by == 'name-desc':
        return sorted(profiles, key=lambda p: p.name.casefold(), reverse=True)
    if sort_by == 'organization':
        return sorted(profiles, key=lambda p: p.organization.casefold())
    if sort_by == 'location':
        return sorted(profiles, key=lambda p: p.location.casefold())
    if sort_by == 'recent':
        return sorted(profiles, key=lambda p: p.created_at or datetime.min, reverse=True)
    return list(profiles)


def filter_profiles(profiles, search_query='', selected_tags=(), selected_locations=(),
                    location_filter='all', profile_type='all', sort_by='name'):
    """Return the visible, sorted subset of ``profiles``.

    All active filters must pass. Tags use OR semantics within the tag
    filter. Sorting is stable, so ties keep their input order.
    """
    selected_tags = set(selected_tags or ())
    selected_locations = set(selected_locations or ())
    search_query = (search_query or '').strip()

    result = [
        p for p in profiles
        if (profile_type in (None, '', 'all') or p.type == profile_type)
        and matches_query(p, search_query)
        and matches_tags(p, selected_tags)
        and matches_locations(p, selected_locations)
        and matches_region(p, location_filter)
    ]
    return sort_profiles(result, sort_by)


def available_tags(profiles):
    return sorted({tag for p in profiles for tag in p.tags})


def available_locations(profiles):
    return sorted({p.location for p in profiles if p.location})


def location_counts(profiles, limit=None):
    """(location, count) pairs, most common first, ties by location name."""
    counts = Counter(p.location for p in profiles if p.location)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:limit] if limit else ranked


def profile_counts(profiles):
    counts = {'students': 0, 'researchers': 0, 'agencies': 0}
    keys = {'student': 'students', 'researcher': 'researchers', 'agency': 'agencies'}
    for p in profiles:
        if p.type in keys:
            counts[keys[p.type]] += 1
    return counts


def to_dict(profile):
    data = profile._asdict()
    data['tags'] = list(profile.tags)
    data['created_at'] = profile.created_at.isoformat() if profile.created_at else None
    return data
