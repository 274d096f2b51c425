import re

from test_utils_seed import ensure_client, ensure_user, ensure_service_tag, create_ticket, login

PASSWORD_RE = re.compile(r'^[A-Z][a-z]+\d{3}[!@#$%&*]$')


def _admin(client, email='users_admin@example.com'):
    ensure_user(email, role='admin')
    return login(client, email)


def test_create_user_generates_password(client):
    headers = _admin(client)
    resp = client.post('/users', json={'email': 'new.tech@example.com', 'name': 'New Tech', 'role': 'technician'}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['user']['role'] == 'technician'
    assert PASSWORD_RE.match(body['password'])
    assert 'email' not in body
    login(client, 'new.tech@example.com', body['password'])


def test_create_user_with_explicit_password(client):
    headers = _admin(client)
    resp = client.post('/users', json={
        'email': 'explicit.pw@example.com', 'name': 'Explicit', 'role': 'admin', 'password': 'secret123',
    }, headers=headers)
    assert resp.status_code == 201
    assert 'password' not in resp.get_json()
    short = client.post('/users', json={
        'email': 'short.pw@example.com', 'name': 'Short', 'role': 'admin', 'password': '123',
    }, headers=headers)
    assert short.status_code == 400


def test_create_client_user_requires_client(client):
    headers = _admin(client)
    missing = client.post('/users', json={'email': 'cu.missing@example.com', 'name': 'CU', 'role': 'client'}, headers=headers)
    assert missing.status_code == 400
    assert 'client_id' in missing.get_json()['error']['detail']
    unknown = client.post('/users', json={
        'email': 'cu.unknown@example.com', 'name': 'CU', 'role': 'client', 'client_id': 999999,
    }, headers=headers)
    assert unknown.status_code == 400
    c = ensure_client('Users Client Co')
    ok = client.post('/users', json={
        'email': 'cu.ok@example.com', 'name': 'CU', 'role': 'client', 'client_id': c.id,
    }, headers=headers)
    assert ok.status_code == 201
    assert ok.get_json()['user']['client_id'] == c.id


def test_duplicate_email(client):
    headers = _admin(client)
    ensure_user('dupe.user@example.com')
    resp = client.post('/users', json={'email': 'DUPE.user@example.com', 'name': 'Dupe', 'role': 'admin'}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()['error']['detail'] == 'A user with this email already exists'


def test_only_superadmin_grants_superadmin(client):
    admin = _admin(client)
    denied = client.post('/users', json={'email': 'sa.denied@example.com', 'name': 'SA', 'role': 'superadmin'}, headers=admin)
    assert denied.status_code == 403
    ensure_user('root@example.com', role='superadmin')
    root = login(client, 'root@example.com')
    ok = client.post('/users', json={'email': 'sa.ok@example.com', 'name': 'SA', 'role': 'superadmin'}, headers=root)
    assert ok.status_code == 201


def test_admin_cannot_modify_superadmin(client):
    admin = _admin(client)
    target = ensure_user('protected.root@example.com', role='superadmin')
    assert client.patch(f'/users/{target.id}', json={'name': 'Renamed'}, headers=admin).status_code == 403
    assert client.post(f'/users/{target.id}/status', json={'is_disabled': True}, headers=admin).status_code == 403
    assert client.delete(f'/users/{target.id}', headers=admin).status_code == 403


def test_role_is_immutable(client):
    headers = _admin(client)
    target = ensure_user('fixed.role@example.com', role='technician')
    resp = client.patch(f'/users/{target.id}', json={'role': 'admin'}, headers=headers)
    assert resp.status_code == 403
    same = client.patch(f'/users/{target.id}', json={'role': 'technician', 'name': 'Fixed Role'}, headers=headers)
    assert same.status_code == 200
    assert same.get_json()['user']['name'] == 'Fixed Role'


def test_disable_and_enable(client):
    headers = _admin(client, 'users_toggle_admin@example.com')
    target = ensure_user('toggle.me@example.com', role='technician')
    off = client.post(f'/users/{target.id}/status', json={'is_disabled': True}, headers=headers)
    assert off.status_code == 200
    assert off.get_json()['user']['is_disabled'] is True
    assert client.post('/auth/login', json={'email': 'toggle.me@example.com', 'password': 'pw'}).status_code == 403
    on = client.post(f'/users/{target.id}/status', json={'is_disabled': False}, headers=headers)
    assert on.get_json()['user']['is_disabled'] is False
    login(client, 'toggle.me@example.com')


def test_cannot_disable_or_delete_self(client):
    me = ensure_user('self.admin@example.com', role='admin')
    headers = login(client, 'self.admin@example.com')
    assert client.post(f'/users/{me.id}/status', json={'is_disabled': True}, headers=headers).status_code == 400
    assert client.delete(f'/users/{me.id}', headers=headers).status_code == 400


def test_delete_user_with_assigned_tickets(client):
    headers = _admin(client)
    tech = ensure_user('busy.tech@example.com', role='technician')
    c = ensure_client('Users Busy Co')
    create_ticket(c, [ensure_service_tag(c, 'BUSY-1')], assigned_to=tech.id)
    resp = client.delete(f'/users/{tech.id}', headers=headers)
    assert resp.status_code == 400
    assert 'assigned tickets' in resp.get_json()['error']['detail']
    idle = ensure_user('idle.tech@example.com', role='technician')
    assert client.delete(f'/users/{idle.id}', headers=headers).status_code == 200


def test_list_and_assignable(client):
    headers = _admin(client)
    ensure_user('assignable.tech@example.com', name='Assignable Tech', role='technician')
    c = ensure_client('Users Assignable Co')
    ensure_user('not.assignable@example.com', role='client', client_id=c.id)
    disabled = ensure_user('disabled.tech@example.com', role='technician')
    from helpdesk import get_db
    disabled.is_disabled = True
    get_db().commit()

    techs = client.get('/users?role=technician&limit=200', headers=headers).get_json()['data']
    assert all(u['role'] == 'technician' for u in techs)
    assert client.get('/users?role=janitor', headers=headers).status_code == 400

    assignable = client.get('/users/assignable', headers=headers).get_json()['data']
    emails = {u['email'] for u in assignable}
    assert 'assignable.tech@example.com' in emails
    assert 'not.assignable@example.com' not in emails
    assert 'disabled.tech@example.com' not in emails
    assert all(u['role'] in ('admin', 'technician') for u in assignable)


def test_technician_cannot_manage_users(client):
    ensure_user('users_tech@example.com', role='technician')
    headers = login(client, 'users_tech@example.com')
    assert client.get('/users', headers=headers).status_code == 200
    resp = client.post('/users', json={'email': 'x.tech@example.com', 'name': 'X', 'role': 'technician'}, headers=headers)
    assert resp.status_code == 403
