import pytest

from helpdesk.services.history import history_type
from test_utils_seed import ensure_client, ensure_user, ensure_service_tag, create_ticket, login


@pytest.mark.parametrize('message,expected', [
    ('Ticket status changed from open to resolved', 'status_change'),
    ('Ticket approved by Ada (status changed from pending_approval to open)', 'status_change'),
    ('Comment added by Ada', 'comment_added'),
    ('Ticket assigned to Bob', 'assigned_change'),
    ('Ticket unassigned from Bob', 'assigned_change'),
    ('Ticket created by Ada', 'other'),
    # precedence: a message naming both a status and a comment counts as a status change
    ('Comment added by Ada; status unchanged', 'status_change'),
])
def test_history_type(message, expected):
    assert history_type(message) == expected


def test_history_records_tracked_changes(client):
    ensure_user('history_admin@example.com', name='Hank History', role='admin')
    headers = login(client, 'history_admin@example.com')
    tech = ensure_user('history_tech@example.com', name='Tina Tech', role='technician')
    c = ensure_client('History Co')
    t = create_ticket(c, [ensure_service_tag(c, 'HIST-1')])

    client.patch(f'/tickets/{t.id}', json={'status': 'in_progress', 'priority': 'high', 'title': 'renamed'}, headers=headers)
    client.post(f'/tickets/{t.id}/assign', json={'assigned_user_id': tech.id}, headers=headers)
    # unchanged values leave no trace
    client.post(f'/tickets/{t.id}/status', json={'status': 'in_progress'}, headers=headers)

    history = client.get(f'/tickets/{t.id}/history', headers=headers).get_json()['data']
    messages = [h['message'] for h in history]
    assert 'Ticket status changed from open to in_progress' in messages
    assert 'Ticket priority changed from medium to high' in messages
    assert 'Ticket assigned to Tina Tech' in messages
    assert len(messages) == 3
    types = {h['message']: h['type'] for h in history}
    assert types['Ticket assigned to Tina Tech'] == 'assigned_change'
    assert all(h['user_name'] == 'Hank History' for h in history)


def test_created_ticket_history(client):
    ensure_user('history_creator@example.com', name='Cleo Creator', role='technician')
    headers = login(client, 'history_creator@example.com')
    c = ensure_client('History Create Co')
    st = ensure_service_tag(c, 'HISTC-1')
    tid = client.post('/tickets', json={
        'title': 'New', 'description': 'd', 'client_id': c.id, 'service_tag_ids': [st.id],
    }, headers=headers).get_json()['id']
    history = client.get(f'/tickets/{tid}/history', headers=headers).get_json()['data']
    assert history[-1]['message'] == 'Ticket created by Cleo Creator'
    assert history[-1]['type'] == 'other'
