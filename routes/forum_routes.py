# routes/forum_routes.py

from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required
from sqlalchemy.exc import SQLAlchemyError

from models import ForumTopic, ForumPost, ForumReply
from forms import ForumPostForm, ForumReplyForm, request_formdata, validation_failed
from extensions import db
from routes.profile_routes import get_current_profile, profile_required

forum_bp = Blueprint('forum', __name__, url_prefix='/forums')


@forum_bp.route('/topics')
def list_topics():
    topics = ForumTopic.query.order_by(ForumTopic.name).all()
    return jsonify({'success': True, 'topics': [t.to_dict() for t in topics]})


@forum_bp.route('/posts')
def list_posts():
    query = ForumPost.query
    topic_id = request.args.get('topic_id', type=int)
    if topic_id:
        query = query.filter_by(topic_id=topic_id)
    posts = query.order_by(ForumPost.created_at.desc(), ForumPost.id.desc()).all()
    return jsonify({'success': True, 'posts': [p.to_dict() for p in posts]})


@forum_bp.route('/posts/<int:post_id>')
def view_post(post_id):
    post = db.session.get(ForumPost, post_id)
    if not post:
        abort(404, "Post not found")
    return jsonify({'success': True, 'post': post.to_dict()})


@forum_bp.route('/posts', methods=['POST'])
@login_required
@profile_required
def create_post():
    form = ForumPostForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    if not db.session.get(ForumTopic, form.topic_id.data):
        return jsonify({
            'success': False,
            'message': 'Please correct the highlighted fields.',
            'errors': {'topic_id': ['Topic not found.']}
        }), 400

    post = ForumPost(author_id=get_current_profile().id)
    form.populate_obj(post)
    try:
        db.session.add(post)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating forum post: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to create post'}), 500

    return jsonify({'success': True, 'message': 'Post created', 'post': post.to_dict()}), 201


@forum_bp.route('/posts/<int:post_id>/replies')
def list_replies(post_id):
    post = db.session.get(ForumPost, post_id)
    if not post:
        abort(404, "Post not found")
    replies = post.replies.order_by(ForumReply.created_at.asc(), ForumReply.id.asc()).all()
    return jsonify({'success': True, 'replies': [r.to_dict() for r in replies]})


@forum_bp.route('/posts/<int:post_id>/replies', methods=['POST'])
@login_required
@profile_required
def create_reply(post_id):
    post = db.session.get(ForumPost, post_id)
    if not post:
        abort(404, "Post not found")

    form = ForumReplyForm(formdata=request_formdata())
    if not form.validate():
        return validation_failed(form)

    reply = ForumReply(post_id=post.id, author_id=get_current_profile().id, content=form.content.data)
    try:
        db.session.add(reply)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error replying to post {post_id}: {str(e)}")
        return jsonify({'success': False, 'message': 'Failed to post reply'}), 500

    return jsonify({'success': True, 'reply': reply.to_dict(), 'reply_count': post.reply_count}), 201
