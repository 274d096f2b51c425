from flask import Blueprint, abort
from sqlalchemy import select
from helpdesk import get_db
from helpdesk.decorators.auth import require_permissions
from helpdesk.models.comment import Comment
from helpdesk.models.ticket import Ticket
from helpdesk.schemas.directory import CommentCreateRequest
from helpdesk.services.history import add_history, user_display_name, UNKNOWN_USER
from helpdesk.services.policy import assert_ticket_access, current_user_id, has_permissions
from helpdesk.utils.listing import isoformat
from helpdesk.utils.validation import parse_body

comments_bp = Blueprint('comments', __name__)


def _comment_json(c: Comment):
    return {
        'id': c.id,
        'ticket_id': c.ticket_id,
        'user_id': c.user_id,
        'user_name': c.user.name if c.user else UNKNOWN_USER,
        'user_role': c.user.role if c.user else None,
        'content': c.content,
        'photo_urls': list(c.photo_urls or []),
        'created_at': isoformat(c.created_at),
        'updated_at': isoformat(c.updated_at),
    }


def _visible_ticket(ticket_id: int) -> Ticket:
    t = get_db().get(Ticket, ticket_id)
    if not t:
        abort(404, description='Ticket not found')
    assert_ticket_access(t)
    return t


@comments_bp.get('/tickets/<int:ticket_id>/comments')
@require_permissions('COMMENT.READ')
def list_comments(ticket_id: int):
    t = _visible_ticket(ticket_id)
    rows = get_db().execute(
        select(Comment)
        .where(Comment.ticket_id == t.id, Comment.is_deleted.is_(False))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    ).scalars().all()
    return {'data': [_comment_json(c) for c in rows]}


@comments_bp.post('/tickets/<int:ticket_id>/comments')
@require_permissions('COMMENT.CREATE')
def add_comment(ticket_id: int):
    body = parse_body(CommentCreateRequest)
    session = get_db()
    t = _visible_ticket(ticket_id)
    user_id = current_user_id()
    c = Comment(ticket_id=t.id, user_id=user_id, content=body.content, photo_urls=list(body.photo_urls))
    session.add(c)
    session.flush()
    add_history(t.id, f"Comment added by {user_display_name(user_id)}", user_id=user_id)
    session.commit()
    return {'success': True, 'comment_id': c.id}, 201


@comments_bp.delete('/comments/<int:comment_id>')
@require_permissions('COMMENT.READ')
def delete_comment(comment_id: int):
    session = get_db()
    c = session.get(Comment, comment_id)
    if not c or c.is_deleted:
        abort(404, description='Comment not found')
    if c.user_id != current_user_id() and not has_permissions('COMMENT.DELETE'):
        abort(403, description='Only the author or a moderator can delete this comment')
    c.is_deleted = True
    session.commit()
    return {'success': True}
