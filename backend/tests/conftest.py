"""
Pytest configuration and fixtures for GearGuard testing.
"""
import os
import pytest
from datetime import datetime

# Set test environment variables before importing the app
os.environ['ENVIRONMENT'] = 'test'
os.environ['JWT_SECRET'] = 'test-secret-key-for-testing-only'

from fastapi.testclient import TestClient

from gearguard.config import Settings
from gearguard.main import create_app
from gearguard.models import (
    Equipment, EquipmentCategory, MaintenanceRequest, MaintenanceTeam,
    RequestStage, RequestType, TeamMember, User, UserRole
)
from gearguard.security import create_access_token, hash_password
from gearguard.services.request_service import format_request_number

TEST_PASSWORD = "Secret@123"


@pytest.fixture(scope='function')
def settings(tmp_path):
    """Settings pointing at a fresh SQLite file for each test."""
    return Settings(
        ENVIRONMENT='development',
        DATABASE_URL=f"sqlite:///{tmp_path / 'gearguard_test.db'}",
        AUTO_CREATE_DB=True,
        JWT_SECRET='test-secret-key-for-testing-only',
        BCRYPT_ROUNDS=4,
        LOG_LEVEL='WARNING',
    )


@pytest.fixture(scope='function')
def app(settings):
    return create_app(settings)


@pytest.fixture(scope='function')
def client(app):
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope='function')
def db(client):
    """Session bound to the engine the running app uses."""
    session = client.app.state.session_factory()
    yield session
    session.close()


# ==================== FACTORIES ====================

@pytest.fixture
def make_user(db, settings):
    def _make_user(email="tech@gearguard.io", name="Test User", role=UserRole.TECHNICIAN, **kwargs):
        user = User(
            email=email,
            name=name,
            role=role,
            password_hash=hash_password(TEST_PASSWORD, settings.BCRYPT_ROUNDS),
            **kwargs
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user(email="admin@gearguard.io", name="Admin User", role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(admin_user, settings):
    token = create_access_token(admin_user.id, admin_user.role.value, settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_category(db):
    def _make_category(name="Machinery", **kwargs):
        category = EquipmentCategory(name=name, **kwargs)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make_category


@pytest.fixture
def make_team(db):
    def _make_team(name="Mechanics", description="Mechanical repairs", members=(), **kwargs):
        team = MaintenanceTeam(name=name, description=description, **kwargs)
        db.add(team)
        db.flush()
        for user in members:
            db.add(TeamMember(team_id=team.id, user_id=user.id))
        db.commit()
        db.refresh(team)
        return team
    return _make_team


@pytest.fixture
def make_equipment(db, make_category):
    counter = {"n": 0}

    def _make_equipment(name="CNC Machine", equipment_code=None, category=None, **kwargs):
        counter["n"] += 1
        category = category or db.query(EquipmentCategory).first() or make_category()
        equipment = Equipment(
            name=name,
            equipment_code=equipment_code or f"EQ-{counter['n']:03d}",
            category_id=category.id,
            **kwargs
        )
        db.add(equipment)
        db.commit()
        db.refresh(equipment)
        return equipment
    return _make_equipment


@pytest.fixture
def make_request(db):
    def _make_request(equipment, subject="Routine check", stage=RequestStage.NEW,
                      request_type=RequestType.CORRECTIVE, created_at=None, **kwargs):
        created_at = created_at or datetime.now()
        request = MaintenanceRequest(
            subject=subject,
            request_type=request_type,
            equipment_id=equipment.id,
            equipment_category_id=equipment.category_id,
            maintenance_team_id=equipment.assigned_team_id,
            stage=stage,
            created_at=created_at,
            updated_at=created_at,
            **kwargs
        )
        db.add(request)
        db.flush()
        request.request_number = format_request_number(created_at.year, request.id)
        db.commit()
        db.refresh(request)
        return request
    return _make_request
