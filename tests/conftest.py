import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from ems.core.security import create_access_token, get_password_hash
from ems.db import mongodb
from ems.main import app

DEFAULT_PASSWORD = 'secret123'


@pytest.fixture
def db(monkeypatch):
    database = AsyncMongoMockClient()['ems_test']
    asyncio.run(mongodb.ensure_indexes(database))
    monkeypatch.setattr(mongodb, 'db', database)
    return database


@pytest.fixture
def client(db):
    # Not used as a context manager: startup would connect to a real MongoDB.
    return TestClient(app)


@pytest.fixture
def create_account(db):
    def _create(email: str, role: str = 'employee', password: str = DEFAULT_PASSWORD) -> dict:
        result = asyncio.run(db.users.insert_one({
            'email': email,
            'password_hash': get_password_hash(password),
            'role': role,
        }))
        user_id = str(result.inserted_id)
        token = create_access_token(user_id, role, email=email)
        return {
            'id': user_id,
            'email': email,
            'role': role,
            'headers': {'Authorization': f'Bearer {token}'},
        }

    return _create


@pytest.fixture
def admin(create_account) -> dict:
    return create_account('admin@example.com', 'admin')


@pytest.fixture
def hr(create_account) -> dict:
    return create_account('hr@example.com', 'HR')


@pytest.fixture
def employee(create_account) -> dict:
    return create_account('staff@example.com', 'employee')


@pytest.fixture
def department(client, admin) -> dict:
    response = client.post('/api/departments', json={'name': 'Engineering'}, headers=admin['headers'])
    assert response.status_code == 201
    return response.json()
