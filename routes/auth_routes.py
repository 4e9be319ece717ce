# routes/auth_routes.py
from flask import Blueprint, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from models import User, utcnow
from forms import LoginForm, RegistrationForm, request_formdata, validation_failed
from extensions import db

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def session_payload(user):
    profile = user.profile
    return {
        'user': user.to_dict(),
        'profile': profile.to_dict() if profile else None,
        'is_admin': user.is_admin,
    }


@auth_bp.route('/register', methods=['POST'])
def register():
    form = RegistrationForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    try:
        user = User(email=form.email.data.lower())
        user.set_password(form.password.data)
        db.session.add(user)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Registration failed for {form.email.data}: {str(e)}")
        return jsonify({'success': False, 'message': 'Could not create your account. Please try again.'}), 500

    login_user(user)
    current_app.logger.info(f"New account registered: {user.email}")
    return jsonify({'success': True, **session_payload(user)}), 201


# LOGIN
@auth_bp.route('/login', methods=['POST'])
def login():
    form = LoginForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    user = User.query.filter_by(email=form.email.data.lower()).first()
    if not user or not user.check_password(form.password.data):
        return jsonify({'success': False, 'message': 'Invalid email or password'}), 401

    login_user(user, remember=form.remember_me.data)
    user.last_login = utcnow()
    db.session.commit()
    return jsonify({'success': True, **session_payload(user)})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True, 'message': 'You have been logged out.'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'success': True, **session_payload(current_user)})
