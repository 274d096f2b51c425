from test_utils_seed import ensure_client, ensure_user, ensure_service_tag, create_ticket, login


def _ticket(company):
    c = ensure_client(company)
    return create_ticket(c, [ensure_service_tag(c, f'{company[:4].upper()}-CMT')])


def test_add_and_list_comments(client):
    ensure_user('commenter@example.com', name='Cora Commenter', role='technician')
    headers = login(client, 'commenter@example.com')
    t = _ticket('Comments List Co')
    resp = client.post(f'/tickets/{t.id}/comments', json={
        'content': 'Replaced the toner',
        'photo_urls': ['https://files.example.com/toner.jpg'],
    }, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['success'] is True
    listed = client.get(f'/tickets/{t.id}/comments', headers=headers).get_json()['data']
    assert len(listed) == 1
    assert listed[0]['id'] == body['comment_id']
    assert listed[0]['user_name'] == 'Cora Commenter'
    assert listed[0]['user_role'] == 'technician'
    assert listed[0]['photo_urls'] == ['https://files.example.com/toner.jpg']

    history = client.get(f'/tickets/{t.id}/history', headers=headers).get_json()['data']
    assert history[0]['message'] == 'Comment added by Cora Commenter'
    assert history[0]['type'] == 'comment_added'


def test_comment_validation(client):
    ensure_user('commenter_v@example.com', role='technician')
    headers = login(client, 'commenter_v@example.com')
    t = _ticket('Comments Valid Co')
    assert client.post(f'/tickets/{t.id}/comments', json={'content': '   '}, headers=headers).status_code == 400
    bad_url = client.post(f'/tickets/{t.id}/comments', json={'content': 'x', 'photo_urls': ['ftp://nope']}, headers=headers)
    assert bad_url.status_code == 400
    assert client.post('/tickets/999999/comments', json={'content': 'x'}, headers=headers).status_code == 404


def test_soft_delete_rules(client):
    ensure_user('author@example.com', role='technician')
    ensure_user('bystander@example.com', role='technician')
    ensure_user('moderator@example.com', role='admin')
    author = login(client, 'author@example.com')
    bystander = login(client, 'bystander@example.com')
    moderator = login(client, 'moderator@example.com')
    t = _ticket('Comments Delete Co')
    first = client.post(f'/tickets/{t.id}/comments', json={'content': 'first'}, headers=author).get_json()['comment_id']
    second = client.post(f'/tickets/{t.id}/comments', json={'content': 'second'}, headers=author).get_json()['comment_id']

    # technicians cannot remove someone else's comment
    assert client.delete(f'/comments/{first}', headers=bystander).status_code == 403
    assert client.delete(f'/comments/{first}', headers=author).status_code == 200
    assert client.delete(f'/comments/{second}', headers=moderator).status_code == 200
    assert client.delete(f'/comments/{second}', headers=moderator).status_code == 404

    remaining = client.get(f'/tickets/{t.id}/comments', headers=author).get_json()['data']
    assert remaining == []


def test_client_user_comments_on_own_ticket_only(client):
    mine = ensure_client('Comments Own Co')
    other_ticket = _ticket('Comments Foreign Co')
    own_ticket = create_ticket(mine, [ensure_service_tag(mine, 'OWN-CMT')])
    ensure_user('comment_client@example.com', role='client', client_id=mine.id)
    headers = login(client, 'comment_client@example.com')
    ok = client.post(f'/tickets/{own_ticket.id}/comments', json={'content': 'Any update?'}, headers=headers)
    assert ok.status_code == 201
    denied = client.post(f'/tickets/{other_ticket.id}/comments', json={'content': 'hello'}, headers=headers)
    assert denied.status_code == 403
    assert client.get(f'/tickets/{other_ticket.id}/comments', headers=headers).status_code == 403
