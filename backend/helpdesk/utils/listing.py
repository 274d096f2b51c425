from __future__ import annotations
from typing import Callable, Any, Dict, Optional, Tuple
from flask import request, abort, make_response
from helpdesk.config.pagination import normalize_pagination
import hashlib
import json
from datetime import datetime, timezone, timedelta
from email.utils import parsedate_to_datetime, format_datetime

TIMESTAMP_TOLERANCE = timedelta(seconds=1)

def canonicalize_timestamp(dt: datetime) -> datetime:
    """Return UTC tz-aware timestamp truncated to whole seconds (microseconds removed)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)

def isoformat(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a stored timestamp as ISO 8601 UTC ('Z' suffix); None passes through."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')

def apply_pagination(q, max_limit: Optional[int] = None) -> Tuple[Any, int, int, int]:
    try:
        if max_limit is None:
            limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
        else:
            limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'), max_limit)
    except ValueError as e:
        abort(400, description=str(e))
    total = q.order_by(None).count()
    return q.offset(offset).limit(limit), total, limit, offset

def compute_etag(payload: Any) -> str:
    """Hash the serialized response body; any visible change yields a new tag."""
    blob = json.dumps(payload, sort_keys=True, separators=(',', ':'), default=str)
    return hashlib.sha256(blob.encode()).hexdigest()[:32]

def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows)
        }
    }

def _http_date(dt: datetime) -> str:
    """Return RFC1123 HTTP-date string in GMT."""
    return format_datetime(dt, usegmt=True)

def _set_validators(resp, etag_value: str, latest_ts: Optional[datetime]):
    resp.headers['ETag'] = etag_value
    if latest_ts:
        latest_c = canonicalize_timestamp(latest_ts)
        resp.headers['Last-Modified'] = _http_date(latest_c)
        # Canonical ISO copy for clients that prefer it over HTTP-date
        resp.headers['X-Last-Modified-ISO'] = latest_c.isoformat().replace('+00:00', 'Z')
    return resp

def make_cached_list_response(rows: list, total: int, limit: int, offset: int, latest_ts: Optional[datetime] = None):
    latest_ts_c = canonicalize_timestamp(latest_ts) if isinstance(latest_ts, datetime) else None
    payload = build_list_payload(rows, total, limit, offset)
    etag = compute_etag(payload)
    resp = make_response(payload)
    _set_validators(resp, etag, latest_ts_c)
    return resp, etag

def make_cached_item_response(payload: Dict[str, Any], latest_ts: Optional[datetime] = None):
    latest_ts_c = canonicalize_timestamp(latest_ts) if isinstance(latest_ts, datetime) else None
    etag = compute_etag(payload)
    resp = make_response(payload)
    _set_validators(resp, etag, latest_ts_c)
    return resp, etag

def _parse_if_modified_since(header_val: str) -> Optional[datetime]:
    if not header_val:
        return None
    # Try ISO 8601 first
    try:
        dt = datetime.fromisoformat(header_val.replace('Z', '+00:00'))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        pass
    # Try HTTP-date (RFC 1123)
    try:
        dt = parsedate_to_datetime(header_val)
    except (TypeError, ValueError):
        return None
    if dt and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

def handle_conditional(etag_value: str, latest_ts: Optional[datetime]):
    """Evaluate conditional request headers.

    If-None-Match takes precedence over If-Modified-Since (RFC 9110).
    Returns a 304 response object if conditions satisfied, else None.
    """
    inm = request.headers.get('If-None-Match')
    if inm:
        # If-Modified-Since is ignored once If-None-Match is present
        tags = {t.strip().removeprefix('W/').strip('"') for t in inm.split(',')}
        if etag_value in tags or '*' in tags:
            return _set_validators(make_response('', 304), etag_value, latest_ts)
        return None
    ims_raw = request.headers.get('If-Modified-Since')
    if ims_raw and latest_ts:
        ims_dt = _parse_if_modified_since(ims_raw)
        if ims_dt:
            latest_c = canonicalize_timestamp(latest_ts)
            ims_c = canonicalize_timestamp(ims_dt)
            if latest_c <= ims_c + TIMESTAMP_TOLERANCE:
                return _set_validators(make_response('', 304), etag_value, latest_ts)
    return None

def _latest(rows: list, attr: str) -> Optional[datetime]:
    stamps = [canonicalize_timestamp(getattr(r, attr)) for r in rows if getattr(r, attr, None) is not None]
    return max(stamps) if stamps else None

def respond_list(q, serialize: Callable[[Any], Dict[str, Any]], *, ts_attr: str = 'updated_at', max_limit: Optional[int] = None):
    """Paginate ``q``, serialize rows and answer with cache validators.

    HEAD requests get the same validators with an empty body; conditional
    requests matching the current ETag / Last-Modified get a 304.
    """
    paged_q, total, limit, offset = apply_pagination(q, max_limit)
    rows = paged_q.all()
    rows_json = [serialize(r) for r in rows]
    latest_ts = _latest(rows, ts_attr)
    resp, etag = make_cached_list_response(rows_json, total, limit, offset, latest_ts)
    cond = handle_conditional(etag, latest_ts)
    if cond:
        return cond
    if request.method == 'HEAD':
        resp.set_data(b'')
    return resp

def respond_item(payload: Dict[str, Any], latest_ts: Optional[datetime]):
    resp, etag = make_cached_item_response(payload, latest_ts)
    cond = handle_conditional(etag, latest_ts)
    if cond:
        return cond
    if request.method == 'HEAD':
        resp.set_data(b'')
    return resp
