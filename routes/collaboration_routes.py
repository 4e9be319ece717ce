# routes/collaboration_routes.py

from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required, current_user
from sqlalchemy import or_, and_
from sqlalchemy.exc import SQLAlchemyError

from models import Collaboration, Profile, ResearchQuestion, RESEARCH_QUESTION_STATUSES
from forms import (
    CollaborationForm, CollaborationStatusForm, ResearchQuestionForm, ResearchQuestionStatusForm,
    request_formdata, validation_failed
)
from extensions import db
from matching import get_partner_matches, match_percentages
from routes.profile_routes import get_current_profile, profile_required

collab_bp = Blueprint('collaboration', __name__)

OPEN_STATUSES = ('pending', 'accepted')


def between(a_id, b_id):
    """Collaborations linking two profiles, whichever side asked."""
    return or_(
        and_(Collaboration.requester_id == a_id, Collaboration.recipient_id == b_id),
        and_(Collaboration.requester_id == b_id, Collaboration.recipient_id == a_id),
    )


# ---------------- MATCHES ----------------
@collab_bp.route('/collaboration/matches')
@login_required
def partner_matches():
    profile = get_current_profile()
    if not profile:
        return jsonify({'success': True, 'matches': [], 'needs_profile': True})

    matches = get_partner_matches(profile.id, limit=current_app.config.get('MATCH_RESULT_LIMIT'))
    percents = match_percentages(m['match_score'] for m in matches)
    for match, percent in zip(matches, percents):
        match['match_percent'] = percent

    return jsonify({'success': True, 'matches': matches, 'needs_profile': False})


# ---------------- COLLABORATIONS ----------------
@collab_bp.route('/collaborations')
@login_required
@profile_required
def my_collaborations():
    profile = get_current_profile()
    rows = Collaboration.query.filter(
        or_(Collaboration.requester_id == profile.id, Collaboration.recipient_id == profile.id)
    ).order_by(Collaboration.created_at.desc(), Collaboration.id.desc()).all()

    connections = []
    for c in rows:
        if c.status == 'accepted':
            other = c.other_party(profile.id)
            connections.append({
                'collaboration_id': c.id,
                'connected_at': c.updated_at.isoformat() if c.updated_at else None,
                'profile': other.summary() if other else None,
            })

    return jsonify({
        'success': True,
        'collaborations': [c.to_dict() for c in rows],
        'connections': connections,
        'incoming': [c.to_dict() for c in rows if c.status == 'pending' and c.recipient_id == profile.id],
        'outgoing': [c.to_dict() for c in rows if c.status == 'pending' and c.requester_id == profile.id],
    })


@collab_bp.route('/collaborations', methods=['POST'])
@login_required
@profile_required
def send_request():
    profile = get_current_profile()
    form = CollaborationForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    recipient = db.session.get(Profile, form.recipient_id.data)
    if not recipient:
        abort(404, "Profile not found")
    if recipient.id == profile.id:
        return jsonify({'success': False, 'message': 'You cannot send a collaboration request to yourself'}), 400

    existing = Collaboration.query.filter(
        between(profile.id, recipient.id),
        Collaboration.status.in_(OPEN_STATUSES)
    ).first()
    if existing:
        return jsonify({
            'success': False,
            'message': 'You have already sent a request to this profile',
            'collaboration': existing.to_dict()
        }), 409

    collaboration = Collaboration(
        requester_id=profile.id,
        recipient_id=recipient.id,
        message=form.message.data or None,
        status='pending'
    )
    try:
        db.session.add(collaboration)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error sending collaboration request: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to send request'}), 500

    return jsonify({
        'success': True,
        'message': 'Collaboration request sent successfully',
        'collaboration': collaboration.to_dict()
    }), 201


@collab_bp.route('/collaborations/<int:collaboration_id>', methods=['PATCH'])
@login_required
@profile_required
def respond_to_request(collaboration_id):
    profile = get_current_profile()
    form = CollaborationStatusForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    collaboration = Collaboration.query.filter_by(id=collaboration_id).with_for_update().first()
    if not collaboration:
        abort(404, "Collaboration not found")
    if collaboration.recipient_id != profile.id:
        db.session.rollback()
        abort(403, "Only the recipient can respond to this request")
    if collaboration.status != 'pending':
        db.session.rollback()
        return jsonify({
            'success': False,
            'message': f"This request has already been {collaboration.status}",
            'collaboration': collaboration.to_dict()
        }), 409

    try:
        collaboration.status = form.status.data
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating collaboration {collaboration_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to update request'}), 500

    return jsonify({
        'success': True,
        'message': f"Request {collaboration.status}",
        'collaboration': collaboration.to_dict()
    })


# ---------------- RESEARCH QUESTIONS ----------------
@collab_bp.route('/research-questions')
def list_research_questions():
    topic = request.args.get('topic')
    region = request.args.get('region')
    population = request.args.get('population')
    status = request.args.get('status')

    query = ResearchQuestion.query
    if status in RESEARCH_QUESTION_STATUSES:
        query = query.filter_by(status=status)
    questions = query.order_by(ResearchQuestion.created_at.desc(), ResearchQuestion.id.desc()).all()

    # list columns are JSON, so containment is checked here
    if topic:
        questions = [q for q in questions if topic in (q.topics or [])]
    if region:
        questions = [q for q in questions if region in (q.regions or [])]
    if population:
        questions = [q for q in questions if population in (q.populations or [])]

    return jsonify({
        'success': True,
        'research_questions': [q.to_dict() for q in questions],
        'count': len(questions)
    })


@collab_bp.route('/research-questions', methods=['POST'])
@login_required
@profile_required
def create_research_question():
    profile = get_current_profile()
    form = ResearchQuestionForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    question = ResearchQuestion(author_id=profile.id, status='open')
    form.populate_obj(question)
    try:
        db.session.add(question)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error posting research question: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to post research question'}), 500

    return jsonify({
        'success': True,
        'message': 'Research question posted',
        'research_question': question.to_dict()
    }), 201


@collab_bp.route('/research-questions/<int:question_id>/status', methods=['PATCH'])
@login_required
def update_research_question_status(question_id):
    question = db.session.get(ResearchQuestion, question_id)
    if not question:
        abort(404, "Research question not found")

    profile = get_current_profile()
    is_author = profile is not None and question.author_id == profile.id
    if not is_author and not current_user.is_admin:
        abort(403, "You are not authorized to update this research question")

    form = ResearchQuestionStatusForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    try:
        question.status = form.status.data
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating research question {question_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to update status'}), 500

    return jsonify({'success': True, 'research_question': question.to_dict()})
