# routes\contact_routes.py

from flask import Blueprint, jsonify, abort
from flask_login import current_user
from flask_mail import Message as MailMessage
from sqlalchemy.exc import SQLAlchemyError
import logging

from extensions import db, mail
from models import ContactMessage, Profile
from forms import ContactForm, request_formdata, validation_failed

# Setup logging
logger = logging.getLogger(__name__)

contact_bp = Blueprint('contact', __name__)


def build_notification(profile, form):
    msg = MailMessage(
        subject=f"ImpactLink: {form.subject.data}",
        recipients=[profile.email],
        reply_to=form.email.data
    )
    msg.body = (
        f"Hello {profile.name},\n\n"
        f"{form.name.data} ({form.email.data}) sent you a message through ImpactLink.\n\n"
        f"Subject: {form.subject.data}\n\n"
        f"{form.message.data}\n"
    )
    return msg


# Route to handle a message sent from a profile page
@contact_bp.route('/profiles/<int:profile_id>/contact', methods=['POST'])
def contact_profile(profile_id):
    profile = db.session.get(Profile, profile_id)
    if not profile:
        abort(404, "Profile not found")

    form = ContactForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    try:
        contact_message = ContactMessage(
            recipient_profile_id=profile.id,
            sender_user_id=current_user.id if current_user.is_authenticated else None,
            name=form.name.data,
            email=form.email.data,
            subject=form.subject.data,
            message=form.message.data
        )
        db.session.add(contact_message)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error processing contact form: {str(e)}")
        return jsonify({'success': False, 'message': 'An error occurred while sending your message. Please try again later.'}), 500

    try:
        mail.send(build_notification(profile, form))
    except Exception as e:
        logger.error(f"Failed to send email: {str(e)}")
        return jsonify({
            'success': True,
            'email_sent': False,
            'message': 'Your message was saved, but we encountered an issue notifying the recipient.'
        })

    return jsonify({
        'success': True,
        'email_sent': True,
        'message': f"Your message has been sent to {profile.name}."
    })
