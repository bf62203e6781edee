"""
Unit test fixtures. Pure-function tests use detached UserProgress records;
service tests use the in-memory db_session from the root conftest.
"""
from datetime import datetime

import pytest


@pytest.fixture
def record():
    """A fresh, unsaved progress record."""
    from learnhub.models.gamification import UserProgress

    return UserProgress(user_id=1)


@pytest.fixture
def day_one():
    return datetime(2025, 3, 10, 9, 0, 0)
