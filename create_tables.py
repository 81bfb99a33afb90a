# create_tables.py
"""
Create the database schema and, optionally, a first manager account.

    python create_tables.py
    python create_tables.py --manager boss@example.com --password secret
"""

import argparse
import logging

from app.database import Base, SessionLocal, engine
from app.models.user import User, UserRole
from app.utils.auth import hash_password

logger = logging.getLogger(__name__)


def create_tables(drop: bool = False):
    """Create all tables"""
    if drop:
        Base.metadata.drop_all(bind=engine)
        logger.info("Dropped existing tables")
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created successfully")


def create_manager(email: str, password: str):
    """Create a manager account unless the email is already taken"""
    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            logger.info(f"User {email} already exists")
            return
        db.add(User(email=email, hashed_password=hash_password(password), role=UserRole.MANAGER))
        db.commit()
        logger.info(f"Manager {email} created")
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    parser.add_argument("--manager", help="email of a manager account to create")
    parser.add_argument("--password", default="admin123")
    args = parser.parse_args()

    create_tables(drop=args.drop)
    if args.manager:
        create_manager(args.manager, args.password)
