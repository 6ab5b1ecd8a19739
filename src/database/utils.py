"""
Database utilities for the Answer Paper Grader.

Seeds the default teacher and student accounts at startup and the sample
accounts used for demos.
"""

from typing import Any, Dict, Iterable, Mapping, Optional

from src.constants import ROLE_STUDENT, ROLE_TEACHER
from utils.logger import logger

from .models import User, db

SAMPLE_USERS = [
    {"role": ROLE_TEACHER, "email": "teacher@example.com", "password": "teach123"},
    {"role": ROLE_TEACHER, "email": "prof.smith@university.edu", "password": "password123"},
    {"role": ROLE_TEACHER, "email": "dr.johnson@university.edu", "password": "password123"},
    {"role": ROLE_TEACHER, "email": "ms.williams@university.edu", "password": "password123"},
    {"role": ROLE_STUDENT, "email": "student@example.com", "password": "stud123"},
    {"role": ROLE_STUDENT, "email": "alice.student@university.edu", "password": "password123"},
    {"role": ROLE_STUDENT, "email": "bob.student@university.edu", "password": "password123"},
    {"role": ROLE_STUDENT, "email": "charlie.student@university.edu", "password": "password123"},
    {"role": ROLE_STUDENT, "email": "diana.student@university.edu", "password": "password123"},
    {"role": ROLE_STUDENT, "email": "emma.student@university.edu", "password": "password123"},
    {"role": ROLE_STUDENT, "email": "frank.student@university.edu", "password": "password123"},
    {"role": ROLE_STUDENT, "email": "grace.student@university.edu", "password": "password123"},
]


class DatabaseUtils:
    """Utility class for database operations."""

    @staticmethod
    def find_user(email: str, role: str) -> Optional[User]:
        """Look up an account by normalized email and role."""
        return User.query.filter_by(
            email=User.normalize_email(email), role=role
        ).first()

    @staticmethod
    def create_user(email: str, password: str, role: str) -> User:
        """Create and commit a new account."""
        user = User(email=User.normalize_email(email), role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def seed_users(users: Iterable[Mapping[str, str]]) -> Dict[str, int]:
        """Create every listed account that does not exist yet.

        Returns:
            Counts of created and skipped accounts.
        """
        created = 0
        skipped = 0
        for entry in users:
            if DatabaseUtils.find_user(entry["email"], entry["role"]):
                skipped += 1
                continue
            DatabaseUtils.create_user(entry["email"], entry["password"], entry["role"])
            logger.info(f"Created {entry['role']}: {User.normalize_email(entry['email'])}")
            created += 1
        return {"created": created, "skipped": skipped}

    @staticmethod
    def ensure_default_users(config: Mapping[str, Any]) -> bool:
        """Create the configured default teacher and student accounts.

        Seeding is skipped with a warning unless all four credentials are set.

        Returns:
            True when seeding ran, False when it was skipped.
        """
        defaults = [
            {
                "role": ROLE_TEACHER,
                "email": config.get("TEACHER_EMAIL"),
                "password": config.get("TEACHER_PASSWORD"),
            },
            {
                "role": ROLE_STUDENT,
                "email": config.get("STUDENT_EMAIL"),
                "password": config.get("STUDENT_PASSWORD"),
            },
        ]
        if any(not entry["email"] or not entry["password"] for entry in defaults):
            logger.warning("Default user credentials not fully set; skipping seeding.")
            return False

        result = DatabaseUtils.seed_users(defaults)
        logger.info(
            f"Default users ready (created: {result['created']}, existing: {result['skipped']})"
        )
        return True

    @staticmethod
    def seed_sample_users() -> Dict[str, int]:
        """Seed the sample teacher and student accounts."""
        logger.info("Starting to seed sample users...")
        result = DatabaseUtils.seed_users(SAMPLE_USERS)
        logger.info(
            f"Seeding complete! Created: {result['created']}, "
            f"Skipped (already exist): {result['skipped']}"
        )
        return result
