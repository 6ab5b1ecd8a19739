"""Unit tests for User model."""

import pytest
from sqlalchemy.exc import IntegrityError

from src.constants import ROLE_STUDENT, ROLE_TEACHER
from src.database.models import User, db


class TestUserModel:
    """Test cases for User model."""

    def test_user_creation_valid(self, app):
        """Test creating a valid user."""
        user = User(email="teacher@example.com", role=ROLE_TEACHER)
        user.set_password("password123")

        db.session.add(user)
        db.session.commit()

        assert user.id is not None
        assert len(user.id) == 36
        assert user.roll_number == "N/A"
        assert user.created_at is not None
        assert user.updated_at is not None
        assert user.is_teacher is True

    def test_password_hashing(self, app):
        """Passwords are stored hashed and verified against the hash."""
        user = User(email="s@example.com", role=ROLE_STUDENT)
        user.set_password("secret-pass")

        assert user.password_hash != "secret-pass"
        assert user.check_password("secret-pass") is True
        assert user.check_password("wrong") is False

    def test_check_password_without_hash(self):
        assert User(email="x@example.com").check_password("anything") is False

    def test_normalize_email(self):
        assert User.normalize_email("  Teacher@Example.COM ") == "teacher@example.com"
        assert User.normalize_email(None) == ""

    def test_same_email_allowed_for_different_roles(self, app):
        for role in (ROLE_TEACHER, ROLE_STUDENT):
            user = User(email="both@example.com", role=role)
            user.set_password("password123")
            db.session.add(user)
        db.session.commit()

        assert User.query.filter_by(email="both@example.com").count() == 2

    def test_duplicate_email_and_role_rejected(self, app):
        for _ in range(2):
            user = User(email="dup@example.com", role=ROLE_STUDENT)
            user.set_password("password123")
            db.session.add(user)

        with pytest.raises(IntegrityError):
            db.session.commit()
        db.session.rollback()

    def test_to_dict_hides_password(self, app, teacher):
        data = teacher.to_dict()

        assert data == {"id": teacher.id, "email": teacher.email, "role": ROLE_TEACHER}
        assert "password_hash" not in data

    def test_to_student_dict(self, app, student):
        data = student.to_student_dict()

        assert data["id"] == student.id
        assert data["email"] == "student@testing.local"
        assert data["rollNumber"] == "N/A"
        assert data["createdAt"] is not None

    def test_get_id_returns_string(self, app, teacher):
        assert teacher.get_id() == str(teacher.id)
