#!/usr/bin/env python
"""Idempotent bootstrap for the first superadmin account.

Usage:
    python backend/scripts/seed_admin.py                 # create the admin if missing
    python backend/scripts/seed_admin.py --show-roles    # print role -> permission counts
    python backend/scripts/seed_admin.py --dry-run       # run logic then rollback (no DB changes)

Environment:
    SEED_ADMIN_EMAIL     (default admin@example.com)
    SEED_ADMIN_PASSWORD  (default: generated and printed once)
    SEED_ADMIN_NAME      (default Administrator)
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from helpdesk import create_app, get_db  # type: ignore
from helpdesk.constants.permissions import ROLE_PRESETS, ROLE_SUPERADMIN, expand_role_permissions
from helpdesk.models.base import Base
from helpdesk.models.user import User
from helpdesk.services.passwords import generate_readable_password


def ensure_initial_admin(session):
    """Create the superadmin unless a user with that email exists; returns (user, password or None)."""
    admin_email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com').strip().lower()
    existing = session.execute(select(User).where(User.email == admin_email)).scalar_one_or_none()
    if existing:
        if existing.role != ROLE_SUPERADMIN:
            print(f"[WARN] {admin_email} exists with role {existing.role}; leaving it untouched")
        return existing, None
    password = os.getenv('SEED_ADMIN_PASSWORD') or generate_readable_password()
    user = User(
        name=os.getenv('SEED_ADMIN_NAME', 'Administrator'),
        email=admin_email,
        role=ROLE_SUPERADMIN,
        password_hash='',
    )
    user.set_password(password)
    session.add(user)
    session.flush()
    return user, password


def print_role_summary():
    name_w = max(len(r) for r in ROLE_PRESETS)
    print(f"{'Role'.ljust(name_w)} | Count | Sample (up to 8)")
    print('-' * (name_w + 40))
    for role in ROLE_PRESETS:
        codes = expand_role_permissions(role)
        print(f"{role.ljust(name_w)} | {str(len(codes)).rjust(5)} | {', '.join(codes[:8])}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed the initial superadmin user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_admin.py\n  dry run: seed_admin.py --dry-run\n  show roles: seed_admin.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print role permission counts after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM users LIMIT 1'))
        except Exception:
            # Bootstrap schema when migrations have not been run; prefer `alembic upgrade head`
            session.rollback()
            Base.metadata.create_all(session.get_bind())

        user, password = ensure_initial_admin(session)
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) admin user {'would be created' if password else 'already present'}: {user.email}")
        else:
            session.commit()
            if password:
                print(f"[INFO] Created superadmin {user.email} with password: {password}")
            else:
                print(f"[DONE] Admin user already present: {user.email}")
        if args.show_roles:
            print_role_summary()


if __name__ == '__main__':
    main()
