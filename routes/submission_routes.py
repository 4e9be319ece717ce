# routes/submission_routes.py

import os
import logging

from flask import Blueprint, jsonify, request, current_app, abort, url_for, send_from_directory
from flask_login import login_required
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

from models import ResearchSubmission, SUBMISSION_TYPES, utcnow
from forms import SubmissionForm, request_formdata, validation_failed
from extensions import db
from routes.profile_routes import get_current_profile, profile_required

logger = logging.getLogger(__name__)

submission_bp = Blueprint('submission', __name__, url_prefix='/submissions')


def upload_folder():
    folder = os.path.abspath(current_app.config['SUBMISSION_UPLOAD_FOLDER'])
    os.makedirs(folder, exist_ok=True)
    return folder


def remove_upload(filename):
    filepath = os.path.join(upload_folder(), filename)
    try:
        if os.path.exists(filepath):
            os.remove(filepath)
    except OSError as e:
        logger.error(f"Could not remove upload {filename}: {str(e)}")


@submission_bp.route('')
def list_submissions():
    query = ResearchSubmission.query.filter_by(status='approved')
    submission_type = request.args.get('type', 'all')
    if submission_type in SUBMISSION_TYPES:
        query = query.filter_by(submission_type=submission_type)
    submissions = query.order_by(ResearchSubmission.created_at.desc(), ResearchSubmission.id.desc()).all()
    return jsonify({'success': True, 'submissions': [s.to_dict() for s in submissions]})


@submission_bp.route('/mine')
@login_required
@profile_required
def my_submissions():
    profile = get_current_profile()
    submissions = profile.submissions \
        .order_by(ResearchSubmission.created_at.desc(), ResearchSubmission.id.desc()).all()
    return jsonify({'success': True, 'submissions': [s.to_dict() for s in submissions]})


@submission_bp.route('/files/<path:filename>')
def download_file(filename):
    return send_from_directory(upload_folder(), filename, as_attachment=True)


@submission_bp.route('', methods=['POST'])
@login_required
@profile_required
def create_submission():
    profile = get_current_profile()
    form = SubmissionForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    upload = form.file.data
    original_name = secure_filename(upload.filename) or 'upload'
    stamp = utcnow().strftime('%Y%m%d%H%M%S%f')
    filename = f"submission_{profile.user_id}_{stamp}_{original_name}"
    filepath = os.path.join(upload_folder(), filename)
    upload.save(filepath)

    submission = ResearchSubmission(
        author_id=profile.id,
        title=form.title.data,
        description=form.description.data,
        submission_type=form.submission_type.data,
        tags=form.tags.data or [],
        file_url=url_for('submission.download_file', filename=filename),
        file_name=upload.filename,
        file_size=os.path.getsize(filepath),
        status='pending'
    )
    try:
        db.session.add(submission)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        remove_upload(filename)
        current_app.logger.error(f"Error saving submission: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to submit research. Please try again.'}), 500

    current_app.logger.info(f"Submission {submission.id} uploaded by profile {profile.id}")
    return jsonify({
        'success': True,
        'message': 'Your submission is pending review.',
        'submission': submission.to_dict()
    }), 201


@submission_bp.route('/<int:submission_id>', methods=['DELETE'])
@login_required
@profile_required
def delete_submission(submission_id):
    submission = db.session.get(ResearchSubmission, submission_id)
    if not submission:
        abort(404, "Submission not found")
    if submission.author_id != get_current_profile().id:
        abort(403, "You can only delete your own submissions")

    filename = submission.file_url.rsplit('/', 1)[-1]
    try:
        db.session.delete(submission)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting submission {submission_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to delete submission'}), 500

    remove_upload(filename)
    return jsonify({'success': True, 'message': 'Submission deleted'})
