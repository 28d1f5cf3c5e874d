# File: ucms/cli.py
"""
Operator commands.

Usage:
    python -m ucms.cli create-tables
    python -m ucms.cli seed-admin --email admin@example.com --name "Portal Admin"
    python -m ucms.cli purge-otps
"""
import argparse
import getpass
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import inspect  # noqa: E402

from ucms.core.logger import configure_logging  # noqa: E402
from ucms.core.security import hash_password  # noqa: E402
from ucms.db.base import Base  # noqa: E402
from ucms.db.session import SessionLocal, engine  # noqa: E402
from ucms.models import all as _models  # noqa: E402,F401
from ucms.models.user import User, UserRole, UserStatus  # noqa: E402
from ucms.services.otp_ledger import OtpLedger  # noqa: E402

logger = logging.getLogger("ucms.cli")


def create_tables(args) -> int:
    existing = set(inspect(engine).get_table_names())
    missing = [t for t in Base.metadata.sorted_tables if t.name not in existing]
    if not missing:
        logger.info("all tables already exist")
        return 0
    Base.metadata.create_all(bind=engine, tables=missing)
    for table in missing:
        logger.info("created table %s", table.name)
    return 0


def seed_admin(args) -> int:
    email = args.email.strip().lower()
    password = args.password or getpass.getpass("Admin password: ")
    if len(password) < 8:
        logger.error("password must be at least 8 characters")
        return 1
    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            logger.error("user %s already exists", email)
            return 1
        user = User(
            name=args.name.strip(),
            email=email,
            mobile=(args.mobile or "").strip() or None,
            hashed_password=hash_password(password),
            role=UserRole.admin,
            status=UserStatus.active,
        )
        db.add(user)
        db.commit()
        logger.info("admin %s created with id %s", email, user.id)
        return 0
    finally:
        db.close()


def purge_otps(args) -> int:
    db = SessionLocal()
    try:
        deleted = OtpLedger(db).purge_expired()
        db.commit()
        logger.info("purged %d expired OTPs", deleted)
        return 0
    finally:
        db.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ucms", description="Citizen Complaint Portal maintenance")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create-tables", help="create any missing tables")
    p.set_defaults(func=create_tables)

    p = sub.add_parser("seed-admin", help="create the first admin account")
    p.add_argument("--email", required=True)
    p.add_argument("--name", default="Administrator")
    p.add_argument("--mobile")
    p.add_argument("--password", help="prompted for when omitted")
    p.set_defaults(func=seed_admin)

    p = sub.add_parser("purge-otps", help="delete expired one-time codes")
    p.set_defaults(func=purge_otps)
    return parser


def main(argv=None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
