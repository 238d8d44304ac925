"""Pytest configuration and fixtures for ChoreQuest tests."""

from datetime import timedelta

import pytest

from chorequest.app import create_app
from chorequest.models import db, User, Household, HouseholdMember, Task
from chorequest.utils.timezone import utc_now


@pytest.fixture(autouse=True)
def utc_timezone(monkeypatch):
    """Pin the household timezone so calendar-day logic is deterministic."""
    monkeypatch.setenv('TZ', 'UTC')


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing."""
    app = create_app('testing')

    # Create database tables
    with app.app_context():
        db.create_all()

    yield app

    # Clean up
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for making requests."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create database session for tests."""
    with app.app_context():
        yield db.session


@pytest.fixture
def admin_user(db_session):
    """Create the household admin."""
    user = User(email='alice@example.com', name='Alice')
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def member_user(db_session):
    """Create a regular household member."""
    user = User(email='bob@example.com', name='Bob')
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def outsider_user(db_session):
    """Create a user who belongs to no household."""
    user = User(email='carol@example.com', name='Carol')
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def household(db_session, admin_user, member_user):
    """Create a household with Alice as admin and Bob as member."""
    household = Household(name='Test House', created_by=admin_user.id)
    db_session.add(household)
    db_session.flush()
    db_session.add(HouseholdMember(household_id=household.id, user_id=admin_user.id, role='admin'))
    db_session.add(HouseholdMember(household_id=household.id, user_id=member_user.id, role='member'))
    db_session.commit()
    return household


@pytest.fixture
def admin_headers(admin_user):
    """Create headers for admin authentication."""
    return {'X-Auth-User': admin_user.email}


@pytest.fixture
def member_headers(member_user):
    """Create headers for member authentication."""
    return {'X-Auth-User': member_user.email}


@pytest.fixture
def outsider_headers(outsider_user):
    """Create headers for a user outside the household."""
    return {'X-Auth-User': outsider_user.email}


@pytest.fixture
def make_task(db_session, household):
    """Factory for tasks in the test household."""
    def _make_task(**kwargs):
        defaults = {
            'household_id': household.id,
            'title': 'Take out trash',
            'points': 10,
            'difficulty': 'medium',
            'category': 'daily',
            'priority': 'medium',
            'status': 'pending',
        }
        defaults.update(kwargs)
        task = Task(**defaults)
        db_session.add(task)
        db_session.commit()
        return task
    return _make_task


@pytest.fixture
def sample_task(make_task, member_user):
    """A task assigned to Bob, due in two days."""
    return make_task(
        title='Wash dishes',
        points=10,
        assigned_to=member_user.id,
        due_at=utc_now() + timedelta(days=2)
    )
