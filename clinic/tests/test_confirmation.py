import pytest
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIRequestFactory
from rest_framework.request import Request
from rest_framework.parsers import JSONParser

from clinic.services.confirmation import confirmation_matches, confirmation_phrase, require_confirmation


def test_phrase_and_matching():
    phrase = confirmation_phrase('hospital')
    assert phrase == 'delete hospital'
    assert confirmation_matches('delete hospital', phrase)
    assert confirmation_matches('  delete hospital\n', phrase)
    assert not confirmation_matches('Delete Hospital', phrase)
    assert not confirmation_matches('delete  hospital', phrase)
    assert not confirmation_matches(None, phrase)


def _request(method, path, data=None):
    factory = APIRequestFactory()
    django_request = getattr(factory, method)(path, data, format='json') if data else getattr(factory, method)(path)
    return Request(django_request, parsers=[JSONParser()])


def test_require_confirmation_reads_body_then_query():
    require_confirmation(_request('delete', '/x', {'confirm': 'delete staff'}), 'staff')
    require_confirmation(_request('delete', '/x?confirm=delete+staff'), 'staff')
    with pytest.raises(ValidationError):
        require_confirmation(_request('delete', '/x', {'confirm': 'delete doctor'}), 'staff')
    with pytest.raises(ValidationError):
        require_confirmation(_request('delete', '/x'), 'staff')
