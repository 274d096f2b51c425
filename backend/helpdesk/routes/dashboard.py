from flask import Blueprint, request, abort
from sqlalchemy import select, func
from helpdesk import get_db
from helpdesk.config.pagination import normalize_pagination, RECENT_LIMIT
from helpdesk.decorators.auth import require_permissions
from helpdesk.models.client import Client
from helpdesk.models.service_tag import ServiceTag
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import User
from helpdesk.utils.serializers import ticket_json

dashboard_bp = Blueprint('dashboard', __name__)


def _grouped_counts(session, column, keys):
    counts = {k: 0 for k in keys}
    for value, n in session.execute(select(column, func.count(Ticket.id)).group_by(column)).all():
        counts[value] = n
    return counts


@dashboard_bp.get('/stats')
@require_permissions('RPT.READ')
def stats():
    session = get_db()
    total = session.execute(select(func.count(Ticket.id))).scalar_one()
    return {
        'tickets': {
            'total': total,
            'by_status': _grouped_counts(session, Ticket.status, Ticket.ALL_STATUSES),
            'by_priority': _grouped_counts(session, Ticket.priority, Ticket.ALL_PRIORITIES),
            'unassigned': session.execute(
                select(func.count(Ticket.id)).where(Ticket.assigned_to.is_(None))
            ).scalar_one(),
        },
        'clients': session.execute(select(func.count(Client.id))).scalar_one(),
        'service_tags': session.execute(select(func.count(ServiceTag.id))).scalar_one(),
        'users': session.execute(select(func.count(User.id))).scalar_one(),
    }


@dashboard_bp.get('/recent')
@require_permissions('RPT.READ')
def recent():
    try:
        limit, _ = normalize_pagination(request.args.get('limit', 5), 0, max_limit=RECENT_LIMIT)
    except ValueError as e:
        abort(400, description=str(e))
    rows = get_db().execute(
        select(Ticket).order_by(Ticket.created_at.desc(), Ticket.id.desc()).limit(limit)
    ).scalars().all()
    return {'data': [ticket_json(t) for t in rows]}
