# routes/profile_routes.py

from functools import wraps

from flask import Blueprint, jsonify, current_app, abort
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import Profile, PROFILE_TYPES
from forms import PROFILE_FORMS, request_formdata, validation_failed
from extensions import db

profile_bp = Blueprint('profile', __name__, url_prefix='/profiles')


def get_current_profile():
    if not current_user.is_authenticated:
        return None
    return Profile.query.filter_by(user_id=current_user.id).first()


def profile_required(f):
    """Reject callers that have an account but no profile yet."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_profile() is None:
            return jsonify({
                'success': False,
                'message': 'Please complete your profile first.',
                'redirect': '/create-profile'
            }), 403
        return f(*args, **kwargs)
    return decorated_function


def profile_exists_response(profile):
    return jsonify({
        'success': False,
        'message': 'You already have a profile. Redirecting to directory...',
        'redirect': '/directory',
        'profile_id': profile.id
    }), 409


# ---------------- CREATE ----------------
@profile_bp.route('', methods=['POST'])
@login_required
def create_profile():
    existing = get_current_profile()
    if existing:
        return profile_exists_response(existing)

    formdata = request_formdata()
    profile_type = (formdata.get('profile_type') or '').strip().lower()
    if profile_type not in PROFILE_TYPES:
        return jsonify({
            'success': False,
            'message': 'Please choose a profile type.',
            'errors': {'profile_type': [f"Must be one of: {', '.join(PROFILE_TYPES)}"]}
        }), 400

    form = PROFILE_FORMS[profile_type](formdata=formdata)
    if not form.validate():
        return validation_failed(form)

    profile = Profile(user_id=current_user.id, profile_type=profile_type)
    form.populate_obj(profile)

    try:
        db.session.add(profile)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = get_current_profile()
        if existing:
            return profile_exists_response(existing)
        current_app.logger.error(f"Integrity error creating profile for user {current_user.id}")
        return jsonify({'success': False, 'message': 'Could not create profile.'}), 409
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating profile: {str(e)}")
        return jsonify({'success': False, 'message': 'Could not create profile. Please try again.'}), 500

    current_app.logger.info(f"Created {profile_type} profile {profile.id} for user {current_user.id}")
    return jsonify({'success': True, 'profile': profile.to_dict()}), 201


# ---------------- READ ----------------
@profile_bp.route('/me')
@login_required
def my_profile():
    profile = get_current_profile()
    if not profile:
        return jsonify({'success': False, 'message': 'Profile not found', 'redirect': '/create-profile'}), 404
    return jsonify({'success': True, 'profile': profile.to_dict()})


@profile_bp.route('')
def list_profiles():
    profiles = Profile.query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()
    return jsonify({'success': True, 'profiles': [p.to_dict() for p in profiles]})


@profile_bp.route('/<int:profile_id>')
def view_profile(profile_id):
    profile = db.session.get(Profile, profile_id)
    if not profile:
        abort(404, "Profile not found")
    return jsonify({'success': True, 'profile': profile.to_dict()})


# ---------------- UPDATE ----------------
@profile_bp.route('/<int:profile_id>', methods=['PUT'])
@login_required
def update_profile(profile_id):
    profile = db.session.get(Profile, profile_id)
    if not profile:
        abort(404, "Profile not found")
    if profile.user_id != current_user.id and not current_user.is_admin:
        abort(403, "You are not authorized to edit this profile")

    formdata = request_formdata()
    requested_type = (formdata.get('profile_type') or '').strip().lower()
    if requested_type and requested_type != profile.profile_type:
        return jsonify({
            'success': False,
            'message': 'Profile type cannot be changed.',
            'errors': {'profile_type': ['Profile type cannot be changed.']}
        }), 400

    form = PROFILE_FORMS[profile.profile_type](formdata=formdata)
    if not form.validate():
        return validation_failed(form)

    try:
        form.populate_obj(profile)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating profile {profile_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Could not save profile. Please try again.'}), 500

    return jsonify({'success': True, 'message': 'Profile updated successfully.', 'profile': profile.to_dict()})


# ---------------- DELETE ----------------
@profile_bp.route('/<int:profile_id>', methods=['DELETE'])
@login_required
def delete_profile(profile_id):
    profile = db.session.get(Profile, profile_id)
    if not profile:
        abort(404, "Profile not found")
    # admins delete through DELETE /admin/profiles/<id>, which requires confirmation
    if profile.user_id != current_user.id:
        abort(403, "You are not authorized to delete this profile")

    try:
        db.session.delete(profile)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting profile {profile_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Could not delete profile.'}), 500

    current_app.logger.info(f"Profile {profile_id} deleted by its owner")
    return jsonify({'success': True, 'message': 'Profile deleted'})
