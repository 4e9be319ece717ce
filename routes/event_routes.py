# routes/event_routes.py

from datetime import datetime

from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import Event, EventRegistration, EVENT_TYPES, utcnow
from extensions import db

event_bp = Blueprint('event', __name__, url_prefix='/events')


def truthy(value):
    return str(value).lower() in ('1', 'true', 'yes', 'on')


def viewer_id():
    return current_user.id if current_user.is_authenticated else None


@event_bp.route('')
def list_events():
    query = Event.query

    event_type = request.args.get('type', 'all')
    if event_type in EVENT_TYPES:
        query = query.filter_by(event_type=event_type)
    if truthy(request.args.get('featured', '')):
        query = query.filter_by(featured=True)
    if truthy(request.args.get('upcoming', '')):
        query = query.filter(Event.start_date >= utcnow())

    events = query.order_by(Event.start_date.asc(), Event.id.asc()).all()
    user_id = viewer_id()
    return jsonify({'success': True, 'events': [e.to_dict(user_id) for e in events]})


@event_bp.route('/<int:event_id>')
def view_event(event_id):
    event = db.session.get(Event, event_id)
    if not event:
        abort(404, "Event not found")
    return jsonify({'success': True, 'event': event.to_dict(viewer_id())})


@event_bp.route('/calendar/<int:year>/<int:month>')
def calendar(year, month):
    if not 1 <= month <= 12:
        abort(400, "Month must be between 1 and 12")
    # the month after December 9998 must still be a valid datetime
    if not 1 <= year <= 9998:
        abort(400, "Year must be between 1 and 9998")
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)

    events = Event.query.filter(Event.start_date >= start, Event.start_date < end) \
        .order_by(Event.start_date.asc(), Event.id.asc()).all()
    user_id = viewer_id()
    return jsonify({
        'success': True,
        'year': year,
        'month': month,
        'events': [e.to_dict(user_id) for e in events]
    })


@event_bp.route('/my-registrations')
@login_required
def my_registrations():
    registrations = current_user.registrations \
        .order_by(EventRegistration.registered_at.desc(), EventRegistration.id.desc()).all()
    return jsonify({'success': True, 'registrations': [r.to_dict() for r in registrations]})


@event_bp.route('/<int:event_id>/register', methods=['POST'])
@login_required
def register(event_id):
    # Deadline, capacity and insert share one transaction with the event row locked
    event = Event.query.filter_by(id=event_id).with_for_update().first()
    if not event:
        abort(404, "Event not found")

    if event.registration_closed():
        db.session.rollback()
        return jsonify({'success': False, 'message': 'Registration Closed'}), 400

    already = EventRegistration.query.filter_by(event_id=event.id, user_id=current_user.id).first()
    if already:
        db.session.rollback()
        return jsonify({'success': False, 'message': 'You are already registered for this event'}), 409

    if event.max_attendees is not None and event.registration_count >= event.max_attendees:
        db.session.rollback()
        return jsonify({'success': False, 'message': 'Event is full'}), 409

    registration = EventRegistration(event_id=event.id, user_id=current_user.id)
    try:
        db.session.add(registration)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'success': False, 'message': 'You are already registered for this event'}), 409
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error registering user {current_user.id} for event {event_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to register for event'}), 500

    current_app.logger.info(f"User {current_user.id} registered for event {event_id}")
    return jsonify({
        'success': True,
        'message': f"You're registered for {event.title}",
        'registration': registration.to_dict()
    }), 201


@event_bp.route('/<int:event_id>/register', methods=['DELETE'])
@login_required
def cancel_registration(event_id):
    registration = EventRegistration.query.filter_by(event_id=event_id, user_id=current_user.id).first()
    if not registration:
        abort(404, "You are not registered for this event")
    if registration.event.start_date <= utcnow():
        return jsonify({'success': False, 'message': 'This event has already started'}), 400

    try:
        db.session.delete(registration)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error cancelling registration for event {event_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to cancel registration'}), 500

    return jsonify({'success': True, 'message': 'Registration cancelled'})
