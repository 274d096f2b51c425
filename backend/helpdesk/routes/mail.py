from flask import Blueprint, abort
from helpdesk.decorators.auth import require_permissions
from helpdesk.schemas.outbound import MailSendRequest, AccessEmailRequest
from helpdesk.services.mail import MailDeliveryError, MailMessage, get_mail_service, send_access_email
from helpdesk.utils.validation import parse_body

mail_bp = Blueprint('mail', __name__)


@mail_bp.post('/send')
@require_permissions('MAIL.SEND')
def send_mail():
    body = parse_body(MailSendRequest)
    message = MailMessage(to=body.to, subject=body.subject, html=body.html, sender=body.sender)
    try:
        result = get_mail_service().send(message)
    except MailDeliveryError as exc:
        abort(502, description=str(exc))
    return {'success': True, 'transport': result.transport, 'message_id': result.message_id}


@mail_bp.post('/access')
@require_permissions('USER.MANAGE')
def send_access():
    body = parse_body(AccessEmailRequest)
    try:
        result = send_access_email(
            body.email, body.password,
            login_url=body.login_url, company_name=body.company_name, client_name=body.client_name,
        )
    except MailDeliveryError as exc:
        abort(502, description=str(exc))
    return {'success': True, 'transport': result.transport, 'message_id': result.message_id}
