"""Reusable auth helpers for tests that bypass /auth/login.

``jwt_headers`` mints a token with explicit claims, which lets a test exercise a
single permission without creating a matching role preset.
"""
from __future__ import annotations
from typing import List, Optional
from flask_jwt_extended import create_access_token


def jwt_headers(user_id: int, perms: List[str], role: str = 'admin', client_id: Optional[int] = None):
    token = create_access_token(identity=str(user_id), additional_claims={
        'perms': perms,
        'role': role,
        'client_id': client_id,
    })
    return {'Authorization': f'Bearer {token}'}


__all__ = ['jwt_headers']
