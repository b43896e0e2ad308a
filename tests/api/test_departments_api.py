import asyncio

from ems.api.v1 import departments

MISSING_ID = '64b0000000000000000000ff'


def test_list_requires_authentication(client) -> None:
    response = client.get('/api/departments')

    assert response.status_code == 401
    assert response.headers['www-authenticate'] == 'Bearer'


def test_list_is_sorted_by_name_and_open_to_employees(client, admin, employee) -> None:
    for name in ('Sales', 'Engineering', 'Marketing'):
        client.post('/api/departments', json={'name': name}, headers=admin['headers'])

    response = client.get('/api/departments', headers=employee['headers'])

    assert response.status_code == 200
    assert [d['name'] for d in response.json()] == ['Engineering', 'Marketing', 'Sales']


def test_create_returns_department(client, hr) -> None:
    response = client.post('/api/departments', json={'name': '  Finance '}, headers=hr['headers'])

    assert response.status_code == 201
    body = response.json()
    assert body['name'] == 'Finance'
    assert body['id']


def test_create_duplicate_name_fails(client, admin, department) -> None:
    response = client.post('/api/departments', json={'name': 'Engineering'}, headers=admin['headers'])

    assert response.status_code == 400
    assert response.json() == {'message': 'Duplicate department name.'}


def test_names_are_case_sensitive(client, admin, department) -> None:
    response = client.post('/api/departments', json={'name': 'engineering'}, headers=admin['headers'])

    assert response.status_code == 201


def test_create_rejects_empty_name(client, admin) -> None:
    for body in ({'name': ''}, {'name': '   '}, {}):
        response = client.post('/api/departments', json=body, headers=admin['headers'])
        assert response.status_code == 400


def test_employee_cannot_modify_departments(client, employee, department) -> None:
    headers = employee['headers']

    assert client.post('/api/departments', json={'name': 'Ops'}, headers=headers).status_code == 403
    assert client.put(f"/api/departments/{department['id']}", json={'name': 'Ops'}, headers=headers).status_code == 403
    assert client.delete(f"/api/departments/{department['id']}", headers=headers).status_code == 403


def test_employee_gets_403_before_missing_id_is_revealed(client, employee) -> None:
    response = client.delete(f'/api/departments/{MISSING_ID}', headers=employee['headers'])

    assert response.status_code == 403


def test_get_department(client, employee, department) -> None:
    response = client.get(f"/api/departments/{department['id']}", headers=employee['headers'])

    assert response.status_code == 200
    assert response.json()['name'] == 'Engineering'


def test_update_renames_department(client, hr, department) -> None:
    response = client.put(f"/api/departments/{department['id']}", json={'name': 'R&D'}, headers=hr['headers'])

    assert response.status_code == 200
    assert response.json()['id'] == department['id']
    assert response.json()['name'] == 'R&D'


def test_update_keeping_same_name_succeeds(client, hr, department) -> None:
    response = client.put(f"/api/departments/{department['id']}", json={'name': 'Engineering'}, headers=hr['headers'])

    assert response.status_code == 200


def test_update_to_existing_name_fails(client, admin, department) -> None:
    other = client.post('/api/departments', json={'name': 'Sales'}, headers=admin['headers']).json()

    response = client.put(f"/api/departments/{other['id']}", json={'name': 'Engineering'}, headers=admin['headers'])

    assert response.status_code == 400


def test_update_and_delete_missing_department_return_404(client, admin) -> None:
    for department_id in (MISSING_ID, 'not-an-id'):
        put = client.put(f'/api/departments/{department_id}', json={'name': 'X'}, headers=admin['headers'])
        delete = client.delete(f'/api/departments/{department_id}', headers=admin['headers'])
        assert put.status_code == 404
        assert delete.status_code == 404
        assert delete.json() == {'message': 'Department not found.'}


def test_delete_returns_204_then_404(client, admin, department) -> None:
    url = f"/api/departments/{department['id']}"

    first = client.delete(url, headers=admin['headers'])
    second = client.delete(url, headers=admin['headers'])

    assert first.status_code == 204
    assert first.content == b''
    assert second.status_code == 404


def test_delete_leaves_employee_reference_dangling(client, db, admin, department) -> None:
    created = client.post('/api/employees', json={
        'name': 'Bob',
        'email': 'bob@x.com',
        'role': 'employee',
        'department_id': department['id'],
        'joining_date': '2024-01-01',
    }, headers=admin['headers']).json()

    client.delete(f"/api/departments/{department['id']}", headers=admin['headers'])

    stored = asyncio.run(db.employees.find_one({'email': 'bob@x.com'}))
    assert stored['department_id'] == department['id']
    listed = client.get(f"/api/employees/{created['id']}", headers=admin['headers']).json()
    assert listed['department_id'] == department['id']
    assert listed['department_name'] is None


async def _name_always_available(db, name, exclude_id=None):
    return None


def test_create_duplicate_caught_by_unique_index(client, admin, department, monkeypatch) -> None:
    monkeypatch.setattr(departments, 'ensure_name_available', _name_always_available)

    response = client.post('/api/departments', json={'name': 'Engineering'}, headers=admin['headers'])

    assert response.status_code == 400
    assert response.json() == {'message': 'Duplicate department name.'}


def test_update_duplicate_caught_by_unique_index(client, admin, department, monkeypatch) -> None:
    other = client.post('/api/departments', json={'name': 'Sales'}, headers=admin['headers']).json()
    monkeypatch.setattr(departments, 'ensure_name_available', _name_always_available)

    response = client.put(f"/api/departments/{other['id']}", json={'name': 'Engineering'}, headers=admin['headers'])

    assert response.status_code == 400
    assert response.json() == {'message': 'Duplicate department name.'}
