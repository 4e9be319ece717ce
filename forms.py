# forms.py

from flask import request, jsonify
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired, FileAllowed
from werkzeug.datastructures import CombinedMultiDict, MultiDict
from wtforms import Field, StringField, PasswordField, BooleanField, SelectField, TextAreaField, DateField, DateTimeField, IntegerField
from wtforms.validators import DataRequired, InputRequired, Email, EqualTo, Length, Optional, URL, Regexp, NumberRange, ValidationError
from wtforms.widgets import TextInput

from models import (
    EVENT_TYPES, RESOURCE_TYPES, RESOURCE_FORMATS, SUBMISSION_TYPES, SUBMISSION_STATUSES,
    RESEARCH_QUESTION_STATUSES
)

DATETIME_FORMATS = [
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%d',
]

SUBMISSION_EXTENSIONS = ['pdf', 'doc', 'docx', 'ppt', 'pptx', 'xls', 'xlsx', 'csv', 'zip']


def strip_filter(value):
    return value.strip() if isinstance(value, str) else value


def request_formdata():
    """Form data for the current request: multipart, urlencoded or JSON.

    JSON scalars are turned into strings and lists into repeated keys so the
    same forms validate browser posts and API clients alike.
    """
    if request.files:
        return CombinedMultiDict((request.files, request.form))
    if request.form:
        return request.form

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return MultiDict()

    items = []
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, list):
            items.extend((key, str(v)) for v in value if v is not None)
        elif isinstance(value, bool):
            items.append((key, 'true' if value else 'false'))
        else:
            items.append((key, str(value)))
    return MultiDict(items)


def validation_failed(form):
    return jsonify({
        'success': False,
        'message': 'Please correct the highlighted fields.',
        'errors': form.errors
    }), 400


class TagListField(Field):
    """Comma separated input (or repeated values) stored as an ordered, de-duplicated list."""
    widget = TextInput()

    def _value(self):
        return ', '.join(self.data or [])

    def process_formdata(self, valuelist):
        tags = []
        for value in valuelist:
            for tag in str(value).split(','):
                tag = tag.strip()
                if tag and tag not in tags:
                    tags.append(tag)
        self.data = tags


# ---------------------------------------------------------------- AUTH

class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()], filters=[strip_filter])
    password = PasswordField('Password', validators=[DataRequired()])
    remember_me = BooleanField('Remember Me')


class RegistrationForm(FlaskForm):
    email = StringField(
        'Email',
        validators=[DataRequired("Email is required."), Email("Invalid email format."), Length(max=255)],
        filters=[strip_filter]
    )
    password = PasswordField('Password', validators=[DataRequired("Password is required."), Length(min=8)])
    confirm_password = PasswordField(
        'Confirm Password',
        validators=[DataRequired(), EqualTo('password', message="Passwords must match.")]
    )

    def validate_email(self, field):
        from models import User
        if User.query.filter(User.email.ilike(field.data)).first():
            raise ValidationError('Email already registered.')


# ---------------------------------------------------------------- PROFILES

class StudentProfileForm(FlaskForm):
    name = StringField('Full Name', validators=[DataRequired(), Length(min=2, max=100, message="Name must be at least 2 characters")], filters=[strip_filter])
    email = StringField('Email', validators=[DataRequired(), Email("Invalid email address"), Length(max=255)], filters=[strip_filter])
    university = StringField('University', validators=[DataRequired("University name is required"), Length(min=2, max=200)], filters=[strip_filter])
    major = StringField('Major', validators=[DataRequired("Major is required"), Length(min=2, max=100)], filters=[strip_filter])
    year = StringField('Year', validators=[DataRequired("Year is required"), Length(max=20)], filters=[strip_filter])
    location = StringField('Location', validators=[DataRequired("Location is required"), Length(min=2, max=100)], filters=[strip_filter])
    bio = TextAreaField('Bio', validators=[DataRequired(), Length(min=10, max=500, message="Bio must be at least 10 characters")], filters=[strip_filter])
    interests = TagListField('Research Interests', validators=[DataRequired("At least one interest is required")])
    avatar_url = StringField('Avatar URL', validators=[Optional(), URL(), Length(max=500)])


class ResearcherProfileForm(FlaskForm):
    name = StringField('Full Name', validators=[DataRequired(), Length(min=2, max=100, message="Name must be at least 2 characters")], filters=[strip_filter])
    email = StringField('Email', validators=[DataRequired(), Email("Invalid email address"), Length(max=255)], filters=[strip_filter])
    title = StringField('Title', validators=[DataRequired("Title is required"), Length(min=2, max=100)], filters=[strip_filter])
    institution = StringField('Institution', validators=[DataRequired("Institution is required"), Length(min=2, max=200)], filters=[strip_filter])
    department = StringField('Department', validators=[DataRequired("Department is required"), Length(min=2, max=100)], filters=[strip_filter])
    location = StringField('Location', validators=[DataRequired("Location is required"), Length(min=2, max=100)], filters=[strip_filter])
    bio = TextAreaField('Bio', validators=[DataRequired(), Length(min=10, max=500, message="Bio must be at least 10 characters")], filters=[strip_filter])
    interests = TagListField('Research Interests', validators=[DataRequired("At least one interest is required")])
    publications = IntegerField('Publications', validators=[Optional(), NumberRange(min=0, message="Must be a number")])
    avatar_url = StringField('Avatar URL', validators=[Optional(), URL(), Length(max=500)])


class AgencyProfileForm(FlaskForm):
    name = StringField('Agency Name', validators=[DataRequired(), Length(min=2, max=200, message="Agency name must be at least 2 characters")], filters=[strip_filter])
    email = StringField('Email', validators=[DataRequired(), Email("Invalid email address"), Length(max=255)], filters=[strip_filter])
    agency_type = StringField('Agency Type', validators=[DataRequired("Agency type is required"), Length(max=100)], filters=[strip_filter])
    location = StringField('Location', validators=[DataRequired("Location is required"), Length(min=2, max=100)], filters=[strip_filter])
    bio = TextAreaField('Description', validators=[DataRequired(), Length(min=10, max=500, message="Description must be at least 10 characters")], filters=[strip_filter])
    focus_areas = TagListField('Focus Areas', validators=[DataRequired("At least one focus area is required")])
    employees = StringField('Employees', validators=[DataRequired("Employee count is required"), Length(max=50)], filters=[strip_filter])
    founded = StringField('Founded', validators=[Optional(), Regexp(r'^\d{4}$', message="Must be a valid year (e.g., 2020)")], filters=[strip_filter])
    website = StringField('Website', validators=[Optional(), URL(message="Must be a valid URL"), Length(max=500)], filters=[strip_filter])
    avatar_url = StringField('Avatar URL', validators=[Optional(), URL(), Length(max=500)])


PROFILE_FORMS = {
    'student': StudentProfileForm,
    'researcher': ResearcherProfileForm,
    'agency': AgencyProfileForm,
}


class ContactForm(FlaskForm):
    name = StringField('Full Name', validators=[DataRequired(message="Name is required"), Length(max=100, message="Name must be less than 100 characters")], filters=[strip_filter])
    email = StringField('Email Address', validators=[DataRequired(message="Email is required"), Email(message="Invalid email address"), Length(max=255)], filters=[strip_filter])
    subject = StringField('Subject', validators=[DataRequired(message="Subject is required"), Length(max=200, message="Subject must be less than 200 characters")], filters=[strip_filter])
    message = TextAreaField('Your Message', validators=[DataRequired(message="Message is required"), Length(min=10, max=2000, message="Message must be between 10 and 2000 characters")], filters=[strip_filter])


# ---------------------------------------------------------------- COLLABORATION

class CollaborationForm(FlaskForm):
    recipient_id = IntegerField('Recipient', validators=[InputRequired("Recipient is required")])
    message = TextAreaField('Message', validators=[Optional(), Length(max=1000)], filters=[strip_filter])


class CollaborationStatusForm(FlaskForm):
    status = SelectField('Status', choices=[('accepted', 'Accepted'), ('declined', 'Declined')], validators=[DataRequired()])


class ResearchQuestionForm(FlaskForm):
    title = StringField('Title', validators=[DataRequired(), Length(min=5, max=200)], filters=[strip_filter])
    description = TextAreaField('Description', validators=[DataRequired(), Length(min=20, max=5000)], filters=[strip_filter])
    topics = TagListField('Topics', validators=[DataRequired("At least one topic is required")])
    regions = TagListField('Regions')
    populations = TagListField('Populations')


class ResearchQuestionStatusForm(FlaskForm):
    status = SelectField('Status', choices=[(s, s) for s in RESEARCH_QUESTION_STATUSES], validators=[DataRequired()])


class ForumTopicForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(), Length(min=2, max=100)], filters=[strip_filter])
    description = TextAreaField('Description', validators=[Optional(), Length(max=1000)], filters=[strip_filter])
    icon = StringField('Icon', validators=[Optional(), Length(max=50)])
    color = StringField('Color', validators=[Optional(), Length(max=50)])


class ForumPostForm(FlaskForm):
    topic_id = IntegerField('Topic', validators=[InputRequired("Topic is required")])
    title = StringField('Title', validators=[DataRequired(), Length(min=5, max=200)], filters=[strip_filter])
    content = TextAreaField('Content', validators=[DataRequired(), Length(min=10, max=10000)], filters=[strip_filter])


class ForumReplyForm(FlaskForm):
    content = TextAreaField('Reply', validators=[DataRequired(), Length(max=5000)], filters=[strip_filter])


# ---------------------------------------------------------------- EVENTS / RESOURCES

class EventForm(FlaskForm):
    title = StringField('Title', validators=[DataRequired(), Length(max=200)], filters=[strip_filter])
    description = TextAreaField('Description', validators=[DataRequired()], filters=[strip_filter])
    event_type = SelectField('Event Type', choices=[(t, t.title()) for t in EVENT_TYPES], validators=[DataRequired()])
    start_date = DateTimeField('Start', format=DATETIME_FORMATS, validators=[DataRequired("Start date is required")])
    end_date = DateTimeField('End', format=DATETIME_FORMATS, validators=[DataRequired("End date is required")])
    location = StringField('Location', validators=[Optional(), Length(max=200)], filters=[strip_filter])
    is_virtual = BooleanField('Virtual')
    virtual_link = StringField('Virtual Link', validators=[Optional(), URL(), Length(max=500)])
    max_attendees = IntegerField('Max Attendees', validators=[Optional(), NumberRange(min=1)])
    registration_deadline = DateTimeField('Registration Deadline', format=DATETIME_FORMATS, validators=[Optional()])
    host_name = StringField('Host', validators=[Optional(), Length(max=100)], filters=[strip_filter])
    host_organization = StringField('Host Organization', validators=[Optional(), Length(max=200)], filters=[strip_filter])
    thumbnail_url = StringField('Thumbnail', validators=[Optional(), URL(), Length(max=500)])
    tags = TagListField('Tags')
    featured = BooleanField('Featured')

    def validate_end_date(self, field):
        if self.start_date.data and field.data and field.data <= self.start_date.data:
            raise ValidationError('End date must be after the start date.')

    def validate_registration_deadline(self, field):
        if field.data and self.end_date.data and field.data > self.end_date.data:
            raise ValidationError('Registration deadline must be before the event ends.')


class ResourceForm(FlaskForm):
    title = StringField('Title', validators=[DataRequired(), Length(max=200)], filters=[strip_filter])
    description = TextAreaField('Description', validators=[DataRequired()], filters=[strip_filter])
    category = StringField('Category', validators=[DataRequired(), Length(max=100)], filters=[strip_filter])
    resource_type = SelectField('Resource Type', choices=[(t, t.title()) for t in RESOURCE_TYPES], validators=[DataRequired()])
    format = SelectField('Format', choices=[(f, f.title()) for f in RESOURCE_FORMATS], validators=[DataRequired()])
    thumbnail_url = StringField('Thumbnail', validators=[Optional(), URL(), Length(max=500)])
    file_url = StringField('File URL', validators=[Optional(), URL(), Length(max=500)])
    external_url = StringField('External URL', validators=[Optional(), URL(), Length(max=500)])
    duration = StringField('Duration', validators=[Optional(), Length(max=50)])
    author = StringField('Author', validators=[Optional(), Length(max=200)], filters=[strip_filter])
    publication_date = DateField('Publication Date', validators=[Optional()])
    tags = TagListField('Tags')
    featured = BooleanField('Featured')


# ---------------------------------------------------------------- SUBMISSIONS

class SubmissionForm(FlaskForm):
    title = StringField('Title', validators=[DataRequired(), Length(min=5, max=200)], filters=[strip_filter])
    description = TextAreaField('Description', validators=[DataRequired(), Length(min=20, max=5000)], filters=[strip_filter])
    submission_type = SelectField('Submission Type', choices=[(t, t) for t in SUBMISSION_TYPES], validators=[DataRequired()])
    tags = TagListField('Tags')
    file = FileField('File', validators=[FileRequired("Please choose a file."), FileAllowed(SUBMISSION_EXTENSIONS, "Unsupported file type.")])


class SubmissionStatusForm(FlaskForm):
    status = SelectField('Status', choices=[(s, s) for s in SUBMISSION_STATUSES], validators=[DataRequired()])
