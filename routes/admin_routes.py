# routes/admin_routes.py
from functools import wraps
from datetime import datetime
import io

from flask import Blueprint, request, current_app, jsonify, send_file, abort
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import pandas as pd

from extensions import db, login_manager
from models import (
    Profile, Resource, Event, ForumTopic, ResearchQuestion, ResearchSubmission,
    EVENT_TYPES, is_admin
)
from forms import (
    EventForm, ResourceForm, ForumTopicForm, SubmissionStatusForm,
    request_formdata, validation_failed
)
from routes.submission_routes import remove_upload

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

EVENT_IMPORT_COLUMNS = [
    "Title", "Type", "Description", "Start Date", "End Date", "Location", "Virtual",
    "Virtual Link", "Max Attendees", "Registration Deadline", "Host", "Host Organization",
    "Tags", "Featured"
]
EVENT_REQUIRED_COLUMNS = ["Title", "Type", "Description", "Start Date", "End Date"]

PROFILE_EXPORT_COLUMNS = [
    "id", "profile_type", "name", "email", "location", "university", "major", "year",
    "institution", "department", "title", "publications", "agency_type", "employees",
    "founded", "website", "interests", "focus_areas", "created_at"
]


def admin_required(f):
    """Authenticated admins only; 401 for anonymous callers, 403 for everyone else."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if not is_admin(current_user.id):
            return jsonify({'success': False, 'message': 'Access denied. Admin privileges required.'}), 403
        return f(*args, **kwargs)
    return decorated_function


def confirmation_given():
    if request.args.get('confirm', '').lower() == 'true':
        return True
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload.get('confirm') in (True, 'true')
    return request.form.get('confirm', '').lower() == 'true'


def confirmation_required():
    return jsonify({
        'success': False,
        'message': 'Please confirm this action. Pass confirm=true to delete.'
    }), 400


def delete_record(record, label):
    """Shared body of the confirmed admin deletes."""
    if not confirmation_given():
        return confirmation_required()
    try:
        db.session.delete(record)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting {label}: {str(e)}")
        return jsonify({'success': False, 'message': f'Failed to delete {label}'}), 500

    current_app.logger.info(f"Admin {current_user.id} deleted {label}")
    return jsonify({'success': True, 'message': f'{label.capitalize()} deleted'}), 200


def get_or_404(model, record_id, label):
    record = db.session.get(model, record_id)
    if not record:
        abort(404, f"{label} not found")
    return record


@admin_bp.route('/check')
@login_required
def check_admin():
    return jsonify({'success': True, 'is_admin': is_admin(current_user.id)})


# ---------------- SUBMISSIONS ----------------
@admin_bp.route('/submissions')
@admin_required
def admin_submissions():
    submissions = ResearchSubmission.query.order_by(ResearchSubmission.created_at.desc()).all()
    data = []
    for s in submissions:
        item = s.to_dict()
        item['author_name'] = s.author.name if s.author else None
        item['author_email'] = s.author.email if s.author else None
        data.append(item)
    return jsonify({'success': True, 'submissions': data})


@admin_bp.route('/submissions/<int:submission_id>/status', methods=['PATCH'])
@admin_required
def admin_update_submission_status(submission_id):
    submission = get_or_404(ResearchSubmission, submission_id, "Submission")
    form = SubmissionStatusForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    try:
        submission.status = form.status.data
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating submission {submission_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to update submission'}), 500

    current_app.logger.info(f"Submission {submission_id} marked {submission.status} by admin {current_user.id}")
    return jsonify({'success': True, 'message': f'Submission {submission.status}', 'submission': submission.to_dict()})


@admin_bp.route('/submissions/<int:submission_id>', methods=['DELETE'])
@admin_required
def admin_delete_submission(submission_id):
    submission = get_or_404(ResearchSubmission, submission_id, "Submission")
    filename = submission.file_url.rsplit('/', 1)[-1]
    response, status = delete_record(submission, 'submission')
    if status == 200:
        remove_upload(filename)
    return response, status


# ---------------- PROFILES ----------------
@admin_bp.route('/profiles')
@admin_required
def admin_profiles():
    profiles = Profile.query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()
    return jsonify({'success': True, 'profiles': [p.to_dict() for p in profiles]})


@admin_bp.route('/profiles/<int:profile_id>', methods=['DELETE'])
@admin_required
def admin_delete_profile(profile_id):
    return delete_record(get_or_404(Profile, profile_id, "Profile"), 'profile')


@admin_bp.route('/profiles/export')
@admin_required
def export_profiles():
    rows = []
    for p in Profile.query.order_by(Profile.id).all():
        data = p.to_dict()
        data['interests'] = ', '.join(data['interests'])
        data['focus_areas'] = ', '.join(data['focus_areas'])
        rows.append(data)

    df = pd.DataFrame(rows, columns=PROFILE_EXPORT_COLUMNS)
    output = io.StringIO()
    df.to_csv(output, index=False)
    output.seek(0)

    return send_file(
        io.BytesIO(output.getvalue().encode('utf-8')),
        as_attachment=True,
        download_name=f"profiles_{datetime.now().strftime('%Y%m%d')}.csv",
        mimetype="text/csv"
    )


# ---------------- RESOURCES ----------------
@admin_bp.route('/resources')
@admin_required
def admin_resources():
    resources = Resource.query.order_by(Resource.created_at.desc(), Resource.id.desc()).all()
    return jsonify({'success': True, 'resources': [r.to_dict() for r in resources]})


@admin_bp.route('/resources', methods=['POST'])
@admin_required
def admin_add_resource():
    form = ResourceForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    resource = Resource()
    form.populate_obj(resource)
    try:
        db.session.add(resource)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding resource: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to add resource'}), 500

    current_app.logger.info(f"Resource {resource.id} created by admin {current_user.id}")
    return jsonify({'success': True, 'message': 'Resource created', 'resource': resource.to_dict()}), 201


@admin_bp.route('/resources/<int:resource_id>', methods=['PUT'])
@admin_required
def admin_edit_resource(resource_id):
    resource = get_or_404(Resource, resource_id, "Resource")
    form = ResourceForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    try:
        form.populate_obj(resource)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating resource {resource_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to update resource'}), 500

    return jsonify({'success': True, 'message': 'Resource updated', 'resource': resource.to_dict()})


@admin_bp.route('/resources/<int:resource_id>', methods=['DELETE'])
@admin_required
def admin_delete_resource(resource_id):
    return delete_record(get_or_404(Resource, resource_id, "Resource"), 'resource')


# ---------------- EVENTS ----------------
@admin_bp.route('/events')
@admin_required
def admin_events():
    events = Event.query.order_by(Event.start_date.desc(), Event.id.desc()).all()
    return jsonify({'success': True, 'events': [e.to_dict() for e in events]})


@admin_bp.route('/events', methods=['POST'])
@admin_required
def admin_add_event():
    form = EventForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    event = Event()
    form.populate_obj(event)
    try:
        db.session.add(event)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding event: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to add event'}), 500

    current_app.logger.info(f"Event {event.id} created by admin {current_user.id}")
    return jsonify({'success': True, 'message': 'Event created', 'event': event.to_dict()}), 201


@admin_bp.route('/events/<int:event_id>', methods=['PUT'])
@admin_required
def admin_edit_event(event_id):
    event = get_or_404(Event, event_id, "Event")
    form = EventForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    try:
        form.populate_obj(event)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating event {event_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to update event'}), 500

    return jsonify({'success': True, 'message': 'Event updated', 'event': event.to_dict()})


@admin_bp.route('/events/<int:event_id>', methods=['DELETE'])
@admin_required
def admin_delete_event(event_id):
    return delete_record(get_or_404(Event, event_id, "Event"), 'event')


@admin_bp.route('/events/template')
@admin_required
def download_event_template():
    sample_data = [
        {
            "Title": "Trauma-Informed Care Workshop",
            "Type": "workshop",
            "Description": "Hands-on session for caseworkers and researchers.",
            "Start Date": "2026-03-10 09:00",
            "End Date": "2026-03-10 12:00",
            "Location": "Toronto, Canada",
            "Virtual": "no",
            "Virtual Link": "",
            "Max Attendees": 40,
            "Registration Deadline": "2026-03-08",
            "Host": "Dr. Amara Lee",
            "Host Organization": "Child Welfare Institute",
            "Tags": "trauma, foster care",
            "Featured": "yes"
        }
    ]

    df = pd.DataFrame(sample_data, columns=EVENT_IMPORT_COLUMNS)
    output = io.StringIO()
    df.to_csv(output, index=False)
    output.seek(0)

    return send_file(
        io.BytesIO(output.getvalue().encode('utf-8')),
        as_attachment=True,
        download_name="event_template.csv",
        mimetype="text/csv"
    )


@admin_bp.route('/events/import', methods=['POST'])
@admin_required
def admin_bulk_upload_events():
    if 'file' not in request.files:
        return jsonify({'success': False, 'message': 'No file selected'}), 400

    file = request.files['file']
    if file.filename == '':
        return jsonify({'success': False, 'message': 'No file selected'}), 400
    if not allowed_file(file.filename):
        return jsonify({
            'success': False,
            'message': f'Invalid file type: {file.filename}. Please upload an .xlsx, .xls, or .csv file.'
        }), 400

    current_app.logger.info(f"Uploaded file: {file.filename}")
    try:
        result = process_events_file(file)
    except ValueError as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error saving imported events: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to save imported events'}), 500

    response = {
        'success': True,
        'message': f'Successfully uploaded {result["processed_count"]} events!',
        'processed_count': result['processed_count']
    }
    if result.get('errors'):
        response['errors'] = result['errors']
    return jsonify(response)


def allowed_file(filename):
    """Check if the file extension is allowed"""
    allowed_extensions = {'csv', 'xlsx', 'xls'}
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions


def clean_str(val):
    if pd.isna(val):
        return None
    val = str(val).strip()
    return val or None


def parse_flag(val):
    return (clean_str(val) or '').lower() in ('1', 'true', 'yes', 'y')


def parse_when(val):
    if pd.isna(val) or clean_str(val) is None:
        return None
    return pd.to_datetime(val).to_pydatetime().replace(tzinfo=None)


def process_events_file(file):
    """Read an uploaded CSV or Excel file and create one event per valid row."""
    extension = file.filename.rsplit('.', 1)[1].lower()
    try:
        if extension in {'xlsx', 'xls'}:
            df = pd.read_excel(file)
        else:
            df = pd.read_csv(file, encoding='utf-8')
    except Exception as e:
        current_app.logger.error(f"Error reading file {file.filename}: {str(e)}")
        raise ValueError(f"Failed to read file: {str(e)}")

    current_app.logger.info(f"File columns: {list(df.columns)}")
    missing_cols = [col for col in EVENT_REQUIRED_COLUMNS if col not in df.columns]
    if missing_cols:
        raise ValueError(f"File is missing required columns: {', '.join(missing_cols)}")

    processed_count = 0
    errors = []
    for index, row in df.iterrows():
        line = index + 2
        if any(clean_str(row[col]) is None for col in EVENT_REQUIRED_COLUMNS):
            errors.append(f"Row {line}: Missing required fields ({', '.join(EVENT_REQUIRED_COLUMNS)})")
            current_app.logger.warning(f"Row {line}: Missing required fields")
            continue

        event_type = clean_str(row["Type"]).lower()
        if event_type not in EVENT_TYPES:
            errors.append(f"Row {line}: Invalid event type '{row['Type']}'")
            current_app.logger.warning(f"Row {line}: Invalid event type '{row['Type']}'")
            continue

        try:
            start_date = parse_when(row["Start Date"])
            end_date = parse_when(row["End Date"])
            deadline = parse_when(row.get("Registration Deadline"))
        except (ValueError, TypeError):
            errors.append(f"Row {line}: Invalid date format")
            current_app.logger.warning(f"Row {line}: Invalid date format")
            continue

        if end_date <= start_date:
            errors.append(f"Row {line}: End date must be after the start date")
            current_app.logger.warning(f"Row {line}: End date before start date")
            continue

        if deadline and deadline > end_date:
            errors.append(f"Row {line}: Registration deadline must be before the event ends")
            current_app.logger.warning(f"Row {line}: Registration deadline after end date")
            continue

        max_attendees = row.get("Max Attendees")
        if pd.isna(max_attendees) or clean_str(max_attendees) is None:
            max_attendees = None
        else:
            try:
                max_attendees = int(float(max_attendees))
            except (ValueError, TypeError):
                errors.append(f"Row {line}: Invalid max attendees '{max_attendees}'")
                current_app.logger.warning(f"Row {line}: Invalid max attendees '{max_attendees}'")
                continue
            if max_attendees < 1:
                errors.append(f"Row {line}: Max attendees must be at least 1")
                current_app.logger.warning(f"Row {line}: Max attendees below 1")
                continue

        tags = [t.strip() for t in (clean_str(row.get("Tags")) or '').split(',') if t.strip()]
        event = Event(
            title=clean_str(row["Title"]),
            event_type=event_type,
            description=clean_str(row["Description"]),
            start_date=start_date,
            end_date=end_date,
            location=clean_str(row.get("Location")),
            is_virtual=parse_flag(row.get("Virtual")),
            virtual_link=clean_str(row.get("Virtual Link")),
            max_attendees=max_attendees,
            registration_deadline=deadline,
            host_name=clean_str(row.get("Host")),
            host_organization=clean_str(row.get("Host Organization")),
            tags=tags,
            featured=parse_flag(row.get("Featured"))
        )
        db.session.add(event)
        processed_count += 1

    if processed_count > 0:
        db.session.commit()
        current_app.logger.info(f"Committed {processed_count} imported events")
    else:
        current_app.logger.warning("No events to commit")

    return {'processed_count': processed_count, 'errors': errors}


# ---------------- FORUM TOPICS ----------------
@admin_bp.route('/forum-topics')
@admin_required
def admin_forum_topics():
    topics = ForumTopic.query.order_by(ForumTopic.name).all()
    return jsonify({'success': True, 'topics': [t.to_dict() for t in topics]})


@admin_bp.route('/forum-topics', methods=['POST'])
@admin_required
def admin_add_forum_topic():
    form = ForumTopicForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    topic = ForumTopic()
    form.populate_obj(topic)
    try:
        db.session.add(topic)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'success': False, 'message': 'A topic with this name already exists'}), 409
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding forum topic: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to add topic'}), 500

    return jsonify({'success': True, 'message': 'Topic created', 'topic': topic.to_dict()}), 201


@admin_bp.route('/forum-topics/<int:topic_id>', methods=['PUT'])
@admin_required
def admin_edit_forum_topic(topic_id):
    topic = get_or_404(ForumTopic, topic_id, "Topic")
    form = ForumTopicForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    try:
        form.populate_obj(topic)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'success': False, 'message': 'A topic with this name already exists'}), 409
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating forum topic {topic_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to update topic'}), 500

    return jsonify({'success': True, 'message': 'Topic updated', 'topic': topic.to_dict()})


@admin_bp.route('/forum-topics/<int:topic_id>', methods=['DELETE'])
@admin_required
def admin_delete_forum_topic(topic_id):
    return delete_record(get_or_404(ForumTopic, topic_id, "Topic"), 'topic')


# ---------------- RESEARCH QUESTIONS ----------------
@admin_bp.route('/research-questions')
@admin_required
def admin_research_questions():
    questions = ResearchQuestion.query.order_by(ResearchQuestion.created_at.desc(), ResearchQuestion.id.desc()).all()
    return jsonify({'success': True, 'research_questions': [q.to_dict() for q in questions]})


@admin_bp.route('/research-questions/<int:question_id>', methods=['DELETE'])
@admin_required
def admin_delete_research_question(question_id):
    return delete_record(get_or_404(ResearchQuestion, question_id, "Research question"), 'research question')
