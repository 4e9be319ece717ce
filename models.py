from datetime import datetime, timezone

from extensions import db

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash


def utcnow():
    """Naive UTC timestamp, matching what the columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


PROFILE_TYPES = ('student', 'researcher', 'agency')
COLLABORATION_STATUSES = ('pending', 'accepted', 'declined')
RESEARCH_QUESTION_STATUSES = ('open', 'in_progress', 'completed', 'closed')
EVENT_TYPES = ('workshop', 'webinar', 'conference', 'networking', 'training')
RESOURCE_TYPES = ('workshop', 'toolkit', 'reading')
RESOURCE_FORMATS = ('live', 'recorded', 'pdf', 'article', 'report', 'book')
SUBMISSION_TYPES = ('student_project', 'faculty_research', 'agency_report', 'global_showcase')
SUBMISSION_STATUSES = ('pending', 'approved', 'rejected')


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    last_login = db.Column(db.DateTime)

    # Relationships
    profile = db.relationship('Profile', backref='user', uselist=False, cascade="all, delete-orphan")
    roles = db.relationship('UserRole', backref='user', lazy='dynamic', cascade="all, delete-orphan")
    registrations = db.relationship('EventRegistration', backref='user', lazy='dynamic', cascade="all, delete-orphan")
    bookmarks = db.relationship('ResourceBookmark', backref='user', lazy='dynamic', cascade="all, delete-orphan")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.roles.filter_by(role='admin').first() is not None

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<User {self.email}>'


class UserRole(db.Model):
    __tablename__ = 'user_roles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    role = db.Column(db.String(20), nullable=False)  # admin, moderator, user

    __table_args__ = (
        db.UniqueConstraint('user_id', 'role', name='unique_role_per_user'),
    )

    def __repr__(self):
        return f'<UserRole {self.user_id} - {self.role}>'


def is_admin(user_id):
    """Role check used by the admin layer."""
    if user_id is None:
        return False
    return UserRole.query.filter_by(user_id=user_id, role='admin').first() is not None


class Profile(db.Model):
    __tablename__ = 'profiles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    profile_type = db.Column(db.String(20), nullable=False)  # student, researcher, agency
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    avatar_url = db.Column(db.String(500))
    location = db.Column(db.String(100))
    bio = db.Column(db.Text)
    interests = db.Column(db.JSON, default=list)

    # student
    university = db.Column(db.String(200))
    major = db.Column(db.String(100))
    year = db.Column(db.String(20))

    # researcher
    institution = db.Column(db.String(200))
    department = db.Column(db.String(100))
    title = db.Column(db.String(100))
    publications = db.Column(db.Integer)

    # agency
    agency_type = db.Column(db.String(100))
    focus_areas = db.Column(db.JSON, default=list)
    employees = db.Column(db.String(50))
    founded = db.Column(db.String(4))
    website = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships - content owned by the profile goes with it
    sent_collaborations = db.relationship('Collaboration', backref='requester', lazy='dynamic',
                                          foreign_keys='Collaboration.requester_id', cascade="all, delete-orphan")
    received_collaborations = db.relationship('Collaboration', backref='recipient', lazy='dynamic',
                                              foreign_keys='Collaboration.recipient_id', cascade="all, delete-orphan")
    research_questions = db.relationship('ResearchQuestion', backref='author', lazy='dynamic', cascade="all, delete-orphan")
    forum_posts = db.relationship('ForumPost', backref='author', lazy='dynamic', cascade="all, delete-orphan")
    forum_replies = db.relationship('ForumReply', backref='author', lazy='dynamic', cascade="all, delete-orphan")
    submissions = db.relationship('ResearchSubmission', backref='author', lazy='dynamic', cascade="all, delete-orphan")
    contact_messages = db.relationship('ContactMessage', backref='recipient', lazy='dynamic', cascade="all, delete-orphan")

    def summary(self):
        """Shallow projection used when a profile is embedded in another record."""
        return {
            'id': self.id,
            'name': self.name,
            'profile_type': self.profile_type,
            'avatar_url': self.avatar_url,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'profile_type': self.profile_type,
            'name': self.name,
            'email': self.email,
            'avatar_url': self.avatar_url,
            'location': self.location,
            'bio': self.bio,
            'interests': list(self.interests or []),
            'university': self.university,
            'major': self.major,
            'year': self.year,
            'institution': self.institution,
            'department': self.department,
            'title': self.title,
            'publications': self.publications,
            'agency_type': self.agency_type,
            'focus_areas': list(self.focus_areas or []),
            'employees': self.employees,
            'founded': self.founded,
            'website': self.website,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Profile {self.id} - {self.profile_type}>'


class Collaboration(db.Model):
    __tablename__ = 'collaborations'

    id = db.Column(db.Integer, primary_key=True)
    requester_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    recipient_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='pending')  # pending, accepted, declined
    message = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.CheckConstraint('requester_id <> recipient_id', name='no_self_collaboration'),
    )

    def other_party(self, profile_id):
        return self.recipient if self.requester_id == profile_id else self.requester

    def to_dict(self):
        return {
            'id': self.id,
            'requester_id': self.requester_id,
            'recipient_id': self.recipient_id,
            'status': self.status,
            'message': self.message,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'requester': self.requester.summary() if self.requester else None,
            'recipient': self.recipient.summary() if self.recipient else None,
        }

    def __repr__(self):
        return f'<Collaboration {self.requester_id}->{self.recipient_id} {self.status}>'


class ResearchQuestion(db.Model):
    __tablename__ = 'research_questions'

    id = db.Column(db.Integer, primary_key=True)
    author_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    topics = db.Column(db.JSON, default=list)
    regions = db.Column(db.JSON, default=list)
    populations = db.Column(db.JSON, default=list)
    status = db.Column(db.String(20), nullable=False, default='open')
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        author = None
        if self.author:
            author = self.author.summary()
            author['institution'] = self.author.institution
            author['university'] = self.author.university
        return {
            'id': self.id,
            'author_id': self.author_id,
            'title': self.title,
            'description': self.description,
            'topics': list(self.topics or []),
            'regions': list(self.regions or []),
            'populations': list(self.populations or []),
            'status': self.status,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'author': author,
        }

    def __repr__(self):
        return f'<ResearchQuestion {self.title}>'


class ForumTopic(db.Model):
    __tablename__ = 'forum_topics'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text)
    icon = db.Column(db.String(50))
    color = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=utcnow)

    posts = db.relationship('ForumPost', backref='topic', lazy='dynamic', cascade="all, delete-orphan")

    @property
    def post_count(self):
        return self.posts.count()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'icon': self.icon,
            'color': self.color,
            'post_count': self.post_count,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<ForumTopic {self.name}>'


class ForumPost(db.Model):
    __tablename__ = 'forum_posts'

    id = db.Column(db.Integer, primary_key=True)
    topic_id = db.Column(db.Integer, db.ForeignKey('forum_topics.id'), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    replies = db.relationship('ForumReply', backref='post', lazy='dynamic', cascade="all, delete-orphan")

    @property
    def reply_count(self):
        return self.replies.count()

    def to_dict(self):
        return {
            'id': self.id,
            'topic_id': self.topic_id,
            'author_id': self.author_id,
            'title': self.title,
            'content': self.content,
            'reply_count': self.reply_count,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'author': self.author.summary() if self.author else None,
            'topic': self.topic.to_dict() if self.topic else None,
        }

    def __repr__(self):
        return f'<ForumPost {self.title}>'


class ForumReply(db.Model):
    __tablename__ = 'forum_replies'

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('forum_posts.id'), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'post_id': self.post_id,
            'author_id': self.author_id,
            'content': self.content,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'author': self.author.summary() if self.author else None,
        }

    def __repr__(self):
        return f'<ForumReply {self.id}>'


class Event(db.Model):
    __tablename__ = 'events'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    event_type = db.Column(db.String(20), nullable=False)  # workshop, webinar, conference, networking, training
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    location = db.Column(db.String(200))
    is_virtual = db.Column(db.Boolean, default=False)
    virtual_link = db.Column(db.String(500))
    max_attendees = db.Column(db.Integer)
    registration_deadline = db.Column(db.DateTime)
    host_name = db.Column(db.String(100))
    host_organization = db.Column(db.String(200))
    thumbnail_url = db.Column(db.String(500))
    tags = db.Column(db.JSON, default=list)
    featured = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    registrations = db.relationship('EventRegistration', backref='event', lazy='dynamic', cascade="all, delete-orphan")

    __table_args__ = (
        db.CheckConstraint('start_date < end_date', name='event_starts_before_end'),
    )

    @property
    def registration_count(self):
        return self.registrations.count()

    def registration_closed(self, now=None):
        """Past the deadline, or past the start when no deadline is set."""
        now = now or utcnow()
        cutoff = self.registration_deadline or self.start_date
        return cutoff < now

    def spots_left(self, count=None):
        if self.max_attendees is None:
            return None
        if count is None:
            count = self.registration_count
        return max(self.max_attendees - count, 0)

    def registration_status(self, now=None):
        if self.registration_closed(now):
            return 'closed'
        if self.spots_left() == 0:
            return 'full'
        return 'open'

    def to_dict(self, user_id=None):
        count = self.registration_count
        status = self.registration_status()
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'event_type': self.event_type,
            'start_date': _iso(self.start_date),
            'end_date': _iso(self.end_date),
            'location': self.location,
            'is_virtual': bool(self.is_virtual),
            'virtual_link': self.virtual_link,
            'max_attendees': self.max_attendees,
            'registration_deadline': _iso(self.registration_deadline),
            'host_name': self.host_name,
            'host_organization': self.host_organization,
            'thumbnail_url': self.thumbnail_url,
            'tags': list(self.tags or []),
            'featured': bool(self.featured),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'registration_count': count,
            'spots_left': self.spots_left(count),
            'registration_status': status,
            'is_registration_open': status == 'open',
        }
        if user_id is not None:
            data['is_registered'] = self.registrations.filter_by(user_id=user_id).first() is not None
        else:
            data['is_registered'] = False
        return data

    def __repr__(self):
        return f'<Event {self.title}>'


class EventRegistration(db.Model):
    __tablename__ = 'event_registrations'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    registered_at = db.Column(db.DateTime, default=utcnow)
    reminder_sent = db.Column(db.Boolean, default=False)
    attended = db.Column(db.Boolean, default=False)

    __table_args__ = (
        db.UniqueConstraint('event_id', 'user_id', name='unique_registration_per_user'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'user_id': self.user_id,
            'registered_at': _iso(self.registered_at),
            'reminder_sent': bool(self.reminder_sent),
            'attended': bool(self.attended),
            'event': self.event.to_dict(self.user_id) if self.event else None,
        }

    def __repr__(self):
        return f'<EventRegistration {self.user_id} -> {self.event_id}>'


class Resource(db.Model):
    __tablename__ = 'resources'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    resource_type = db.Column(db.String(20), nullable=False)  # workshop, toolkit, reading
    format = db.Column(db.String(20), nullable=False)  # live, recorded, pdf, article, report, book
    category = db.Column(db.String(100), nullable=False)
    thumbnail_url = db.Column(db.String(500))
    file_url = db.Column(db.String(500))
    external_url = db.Column(db.String(500))
    duration = db.Column(db.String(50))
    author = db.Column(db.String(200))
    publication_date = db.Column(db.Date)
    tags = db.Column(db.JSON, default=list)
    featured = db.Column(db.Boolean, default=False)
    view_count = db.Column(db.Integer, default=0)
    download_count = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    bookmarks = db.relationship('ResourceBookmark', backref='resource', lazy='dynamic', cascade="all, delete-orphan")

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'resource_type': self.resource_type,
            'format': self.format,
            'category': self.category,
            'thumbnail_url': self.thumbnail_url,
            'file_url': self.file_url,
            'external_url': self.external_url,
            'duration': self.duration,
            'author': self.author,
            'publication_date': _iso(self.publication_date),
            'tags': list(self.tags or []),
            'featured': bool(self.featured),
            'view_count': self.view_count or 0,
            'download_count': self.download_count or 0,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Resource {self.title}>'


class ResourceBookmark(db.Model):
    __tablename__ = 'resource_bookmarks'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    resource_id = db.Column(db.Integer, db.ForeignKey('resources.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'resource_id', name='unique_bookmark_per_user'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'resource_id': self.resource_id,
            'created_at': _iso(self.created_at),
            'resource': self.resource.to_dict() if self.resource else None,
        }


class ResearchSubmission(db.Model):
    __tablename__ = 'research_submissions'

    id = db.Column(db.Integer, primary_key=True)
    author_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    submission_type = db.Column(db.String(30), nullable=False)
    file_url = db.Column(db.String(500), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    file_size = db.Column(db.Integer)
    tags = db.Column(db.JSON, default=list)
    status = db.Column(db.String(20), nullable=False, default='pending')  # pending, approved, rejected
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'author_id': self.author_id,
            'title': self.title,
            'description': self.description,
            'submission_type': self.submission_type,
            'file_url': self.file_url,
            'file_name': self.file_name,
            'file_size': self.file_size,
            'tags': list(self.tags or []),
            'status': self.status,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'author': self.author.summary() if self.author else None,
        }

    def __repr__(self):
        return f'<ResearchSubmission {self.title}>'


class ContactMessage(db.Model):
    __tablename__ = 'contact_messages'

    id = db.Column(db.Integer, primary_key=True)
    recipient_profile_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    sender_user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<ContactMessage {self.id}>'
