# routes/resource_routes.py
from flask import Blueprint, request, jsonify, current_app, abort
from flask_login import login_required, current_user
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models import Resource, ResourceBookmark, RESOURCE_TYPES

resource_bp = Blueprint('resource', __name__)


# ---------------- RESOURCES ----------------
@resource_bp.route('/resources')
def list_resources():
    query = Resource.query

    resource_type = request.args.get('type', 'all')
    if resource_type in RESOURCE_TYPES:
        query = query.filter_by(resource_type=resource_type)
    category = request.args.get('category')
    if category and category != 'all':
        query = query.filter_by(category=category)
    if request.args.get('featured', '').lower() in ('1', 'true', 'yes'):
        query = query.filter_by(featured=True)

    resources = query.order_by(Resource.featured.desc(), Resource.created_at.desc(), Resource.id.desc()).all()
    return jsonify({'success': True, 'resources': [r.to_dict() for r in resources]})


@resource_bp.route('/resources/<int:resource_id>')
def view_resource(resource_id):
    resource = db.session.get(Resource, resource_id)
    if not resource:
        abort(404, "Resource not found")
    return jsonify({'success': True, 'resource': resource.to_dict()})


@resource_bp.route('/resources/<int:resource_id>/view', methods=['POST'])
def record_view(resource_id):
    resource = db.session.get(Resource, resource_id)
    if not resource:
        abort(404, "Resource not found")

    try:
        # increment in SQL so concurrent views are not lost
        Resource.query.filter_by(id=resource_id).update({Resource.view_count: func.coalesce(Resource.view_count, 0) + 1})
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error recording view for resource {resource_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Could not record view'}), 500

    db.session.refresh(resource)
    return jsonify({'success': True, 'view_count': resource.view_count})


@resource_bp.route('/resources/categories/<resource_type>')
def resource_categories(resource_type):
    if resource_type not in RESOURCE_TYPES:
        abort(404, "Unknown resource type")

    rows = db.session.query(Resource.category, func.count(Resource.id)) \
        .filter(Resource.resource_type == resource_type) \
        .group_by(Resource.category) \
        .order_by(Resource.category) \
        .all()
    return jsonify({
        'success': True,
        'categories': [{'name': name, 'count': count} for name, count in rows]
    })


# ---------------- BOOKMARKS ----------------
@resource_bp.route('/bookmarks/<int:resource_id>', methods=['POST'])
@login_required
def toggle_bookmark(resource_id):
    """Toggle bookmark status for a resource"""
    if not db.session.get(Resource, resource_id):
        return jsonify({'success': False, 'message': 'Resource not found'}), 404

    existing_bookmark = ResourceBookmark.query.filter_by(
        user_id=current_user.id,
        resource_id=resource_id
    ).first()

    try:
        if existing_bookmark:
            db.session.delete(existing_bookmark)
            db.session.commit()
            return jsonify({'success': True, 'bookmarked': False, 'message': 'Bookmark removed'})

        db.session.add(ResourceBookmark(user_id=current_user.id, resource_id=resource_id))
        db.session.commit()
        return jsonify({'success': True, 'bookmarked': True, 'message': 'Resource bookmarked'})
    except IntegrityError:
        # a parallel request added it first
        db.session.rollback()
        return jsonify({'success': True, 'bookmarked': True, 'message': 'Resource bookmarked'})
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error toggling bookmark on resource {resource_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Could not update bookmark'}), 500


@resource_bp.route('/bookmarks/status/<int:resource_id>')
@login_required
def check_bookmark_status(resource_id):
    bookmark = ResourceBookmark.query.filter_by(
        user_id=current_user.id,
        resource_id=resource_id
    ).first()
    return jsonify({'success': True, 'bookmarked': bookmark is not None})


@resource_bp.route('/bookmarks')
@login_required
def my_bookmarks():
    bookmarks = ResourceBookmark.query.filter_by(user_id=current_user.id) \
        .order_by(ResourceBookmark.created_at.desc(), ResourceBookmark.id.desc()).all()
    return jsonify({'success': True, 'bookmarks': [b.to_dict() for b in bookmarks]})


@resource_bp.route('/bookmarks/count')
@login_required
def bookmarks_count():
    """Badge count for the current user"""
    return jsonify({'success': True, 'count': current_user.bookmarks.count()})


@resource_bp.route('/bookmarks/clear', methods=['POST'])
@login_required
def clear_all_bookmarks():
    try:
        count = ResourceBookmark.query.filter_by(user_id=current_user.id).delete()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error clearing bookmarks for user {current_user.id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Could not clear bookmarks'}), 500

    return jsonify({
        'success': True,
        'message': 'All bookmarks cleared',
        'count': count
    })
