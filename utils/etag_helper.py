"""
ETag Helper

Conditional GET support for the list endpoints. The ETag is an MD5 of the
JSON body with sorted keys, so identical payloads always hash the same and
clients polling a site's zones or devices get a 304 when nothing changed.
"""

import hashlib
import json
from functools import wraps
from typing import Any, Callable

from flask import request, Response, make_response, jsonify


def generate_etag(data: Any) -> str:
    """Quoted MD5 of the stable JSON form of data."""
    json_str = json.dumps(data, sort_keys=True, default=str)
    return f'"{hashlib.md5(json_str.encode("utf-8")).hexdigest()}"'


def _not_modified(etag: str) -> Response:
    response = make_response('', 304)
    response.headers['ETag'] = etag
    response.headers['Cache-Control'] = 'no-cache'
    return response


def with_etag(f: Callable) -> Callable:
    """
    Add an ETag to successful JSON responses and answer 304 on If-None-Match.

    Usage:
        @zones_bp.route('', methods=['GET'])
        @with_etag
        def list_zones():
            return jsonify({'success': True, 'zones': [...]})
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        result = f(*args, **kwargs)

        status_code = 200
        if isinstance(result, tuple):
            body, status_code = result[0], result[1]
        else:
            body = result

        # errors pass through untouched
        if status_code != 200:
            return result

        if isinstance(body, Response):
            if not body.is_json:
                return result
            payload = body.get_json()
            response = body
        elif isinstance(body, (dict, list)):
            payload = body
            response = make_response(jsonify(payload), status_code)
        else:
            return result

        etag = generate_etag(payload)
        if_none_match = request.headers.get('If-None-Match')
        if if_none_match and if_none_match == etag:
            return _not_modified(etag)

        response.headers['ETag'] = etag
        response.headers['Cache-Control'] = 'no-cache'
        return response

    return decorated_function
