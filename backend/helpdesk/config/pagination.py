DEFAULT_LIMIT = 50
MAX_LIMIT = 200
RECENT_LIMIT = 20

def normalize_pagination(limit_raw, offset_raw, max_limit: int = MAX_LIMIT):
    try:
        limit = int(limit_raw) if limit_raw is not None else DEFAULT_LIMIT
        offset = int(offset_raw) if offset_raw is not None else 0
    except ValueError:
        raise ValueError('limit/offset must be int')
    limit = max(1, min(limit, max_limit))
    offset = max(0, offset)
    return limit, offset
