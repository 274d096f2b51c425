from flask import Blueprint, abort, send_file
from helpdesk.decorators.auth import require_permissions
from helpdesk.schemas.outbound import UploadRequest
from helpdesk.services.storage import StorageError, save_upload, storage_from_config
from helpdesk.utils.validation import parse_body

storage_bp = Blueprint('storage', __name__)


@storage_bp.post('/upload')
@require_permissions('STORAGE.UPLOAD')
def upload_file():
    body = parse_body(UploadRequest)
    try:
        key, url = save_upload(body.bucket, body.path, body.file, body.content_type)
    except StorageError as exc:
        abort(400, description=str(exc))
    return {'success': True, 'url': url, 'path': key}, 201


@storage_bp.get('/files/<path:key>')
def serve_file(key: str):
    storage = storage_from_config()
    if not storage.exists(key):
        abort(404, description='File not found')
    return send_file(storage.open(key), download_name=key.rsplit('/', 1)[-1])
