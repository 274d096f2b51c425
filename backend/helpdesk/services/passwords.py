"""Readable initial passwords for newly created accounts (Word + 3 digits + symbol)."""
from __future__ import annotations
import secrets

WORDS = (
    'Secure', 'Access', 'User', 'System', 'Account', 'Entry',
    'Tech', 'Support', 'Service', 'Admin', 'Portal', 'Ticket',
    'Project', 'Team', 'Manage', 'Control', 'Module', 'Resource',
    'Data', 'File', 'Process', 'Client', 'Value', 'Desk',
)
SPECIALS = '!@#$%&*'


def generate_readable_password(min_length: int = 8) -> str:
    word = secrets.choice(WORDS)
    number = 100 + secrets.randbelow(900)
    password = f"{word}{number}{secrets.choice(SPECIALS)}"
    while len(password) < min_length:
        password += str(secrets.randbelow(10))
    return password
