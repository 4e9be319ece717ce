# routes/directory_routes.py

from flask import Blueprint, jsonify, request, abort

from models import Profile
import directory

directory_bp = Blueprint('directory', __name__, url_prefix='/directory')

TYPE_PAGES = {
    'students': 'student',
    'researchers': 'researcher',
    'agencies': 'agency',
}

TOP_LOCATIONS = 5


def list_arg(name):
    """Repeated (?tags=a&tags=b) or comma separated (?tags=a,b) query values."""
    values = []
    for raw in request.args.getlist(name):
        for value in raw.split(','):
            value = value.strip()
            if value and value not in values:
                values.append(value)
    return values


def load_directory_profiles(profile_type=None):
    query = Profile.query
    if profile_type:
        query = query.filter_by(profile_type=profile_type)
    return [directory.unify_profile(p) for p in query.order_by(Profile.id).all()]


@directory_bp.route('')
def browse_directory():
    profiles = load_directory_profiles()

    results = directory.filter_profiles(
        profiles,
        search_query=request.args.get('q', ''),
        selected_tags=list_arg('tags'),
        selected_locations=list_arg('locations'),
        location_filter=request.args.get('location', 'all'),
        profile_type=request.args.get('type', 'all'),
        sort_by=request.args.get('sort', 'name'),
    )

    return jsonify({
        'success': True,
        'profiles': [directory.to_dict(p) for p in results],
        'count': len(results),
        'total': len(profiles),
        'counts': directory.profile_counts(profiles),
        'available_tags': directory.available_tags(profiles),
        'available_locations': directory.available_locations(profiles),
        'top_locations': [
            {'location': location, 'count': count}
            for location, count in directory.location_counts(profiles, limit=TOP_LOCATIONS)
        ],
    })


@directory_bp.route('/<page>')
def browse_type(page):
    profile_type = TYPE_PAGES.get(page)
    if not profile_type:
        abort(404, "Directory page not found")

    profiles = load_directory_profiles(profile_type)
    results = directory.filter_profiles(
        profiles,
        search_query=request.args.get('q', ''),
        selected_tags=list_arg('tags'),
        location_filter=request.args.get('location', 'all'),
        profile_type=profile_type,
        sort_by=request.args.get('sort', 'name'),
    )

    return jsonify({
        'success': True,
        'profile_type': profile_type,
        'profiles': [directory.to_dict(p) for p in results],
        'count': len(results),
        'total': len(profiles),
        'available_tags': directory.available_tags(profiles),
        'regions': sorted(directory.REGION_KEYWORDS[profile_type]),
    })
