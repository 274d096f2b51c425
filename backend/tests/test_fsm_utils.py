from helpdesk.utils.fsm import TransitionValidator
from werkzeug.exceptions import BadRequest
import pytest


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'pending_approval': {'open', 'closed'}})
    assert fsm.assert_can_transition('pending_approval', 'open') is True
    assert fsm.can_transition('pending_approval', 'closed')


def test_transition_validator_blocks_invalid():
    fsm = TransitionValidator({'pending_approval': {'open', 'closed'}})
    assert not fsm.can_transition('open', 'closed')
    with pytest.raises(BadRequest) as exc_info:
        fsm.assert_can_transition('open', 'closed')
    assert 'open -> closed' in exc_info.value.description


def test_transition_validator_custom_message():
    fsm = TransitionValidator({})
    with pytest.raises(BadRequest) as exc_info:
        fsm.assert_can_transition('open', 'open', 'Only tickets pending approval can be approved')
    assert exc_info.value.description == 'Only tickets pending approval can be approved'


def test_ticket_schema_documents_transitions(client):
    body = client.get('/openapi.json').get_json()
    schema = body['components']['schemas']['Ticket']
    assert 'x-transitions' in schema
    assert 'pending_approval' in schema['x-transitions']
