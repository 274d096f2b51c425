from test_utils_seed import ensure_user, login


def _submit(client, company):
    resp = client.post('/public/tickets', json={
        'title': 'Approval flow',
        'description': 'Needs staff review',
        'company_name': company,
        'service_tag_names': ['APR-1'],
        'contact_name': 'Ann Approver',
        'contact_email': 'ann@approval.example.com',
        'contact_phone': '555-0111',
    })
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['ticket_id']


def test_pending_list_and_approve(client):
    ensure_user('approver@example.com', name='Ada Approver', role='admin')
    headers = login(client, 'approver@example.com')
    tid = _submit(client, 'Approval Co')

    pending = client.get('/tickets/pending?limit=200', headers=headers).get_json()
    assert tid in [t['id'] for t in pending['data']]
    assert all(t['status'] == 'pending_approval' for t in pending['data'])

    resp = client.post(f'/tickets/{tid}/approve', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['status'] == 'open'
    assert body['approved_by'] is not None
    assert body['approved_at'] is not None
    assert body['time_open'] is not None

    # a second approval is not a valid transition
    again = client.post(f'/tickets/{tid}/approve', headers=headers)
    assert again.status_code == 400

    history = client.get(f'/tickets/{tid}/history', headers=headers).get_json()['data']
    approved = [h for h in history if 'approved' in h['message']]
    assert approved[0]['type'] == 'status_change'
    assert approved[0]['user_name'] == 'Ada Approver'


def test_reject_with_reason(client):
    ensure_user('rejecter@example.com', role='admin')
    headers = login(client, 'rejecter@example.com')
    tid = _submit(client, 'Rejection Co')
    resp = client.post(f'/tickets/{tid}/reject', json={'reason': 'Duplicate request'}, headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['status'] == 'closed'
    assert body['time_closed'] is not None
    history = client.get(f'/tickets/{tid}/history', headers=headers).get_json()['data']
    assert any(h['message'].endswith('Reason: Duplicate request') for h in history)
    assert client.post(f'/tickets/{tid}/reject', headers=headers).status_code == 400


def test_reject_without_body(client):
    ensure_user('rejecter2@example.com', role='admin')
    headers = login(client, 'rejecter2@example.com')
    tid = _submit(client, 'Rejection NoBody Co')
    resp = client.post(f'/tickets/{tid}/reject', headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['status'] == 'closed'


def test_technician_cannot_approve(client):
    ensure_user('approve_tech@example.com', role='technician')
    headers = login(client, 'approve_tech@example.com')
    tid = _submit(client, 'Approval Tech Co')
    assert client.post(f'/tickets/{tid}/approve', headers=headers).status_code == 403
    assert client.get('/tickets/pending', headers=headers).status_code == 403
