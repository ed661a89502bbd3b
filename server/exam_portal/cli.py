"""
Operator commands.

    exam-portal-admin create-admin [--email E] [--password P] [--name N]
    exam-portal-admin reset-db [--yes]
"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from exam_portal.config import settings
from exam_portal.database import SessionLocal, drop_db, init_db
from exam_portal.models import User, UserRole
from exam_portal.security import hash_password

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@cutmap.ac.in"
DEFAULT_ADMIN_PASSWORD = "Admin@123"
DEFAULT_ADMIN_NAME = "Admin"


def create_admin(db: Session, email: str = DEFAULT_ADMIN_EMAIL, password: str = DEFAULT_ADMIN_PASSWORD,
                 name: str = DEFAULT_ADMIN_NAME) -> User:
    """Create the admin account, or return it unchanged if the email is taken."""
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        print(f"⚠️ User {email} already exists (role: {existing.role.value})")
        return existing

    admin = User(name=name, email=email, password_hash=hash_password(password), role=UserRole.ADMIN)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    print(f"✅ Admin user created: {email}")
    return admin


def reset_db(bind=None) -> None:
    """Drop and recreate every table."""
    drop_db(bind)
    init_db(bind)
    print("🧹 Database reset")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="exam-portal-admin", description=f"{settings.app_name} admin tools")
    commands = parser.add_subparsers(dest="command", required=True)

    admin = commands.add_parser("create-admin", help="create the initial admin account")
    admin.add_argument("--email", default=DEFAULT_ADMIN_EMAIL)
    admin.add_argument("--password", default=DEFAULT_ADMIN_PASSWORD)
    admin.add_argument("--name", default=DEFAULT_ADMIN_NAME)

    reset = commands.add_parser("reset-db", help="drop and recreate all tables")
    reset.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    return parser


def main(argv=None) -> int:
    logging.basicConfig(level=settings.log_level.upper())
    args = build_parser().parse_args(argv)

    if args.command == "create-admin":
        init_db()
        db = SessionLocal()
        try:
            create_admin(db, args.email, args.password, args.name)
        finally:
            db.close()
    elif args.command == "reset-db":
        if not args.yes:
            answer = input(f"This deletes all data in {settings.database_url}. Continue? [y/N] ")
            if answer.strip().lower() != "y":
                print("Aborted")
                return 1
        reset_db()
    return 0


if __name__ == "__main__":
    sys.exit(main())
