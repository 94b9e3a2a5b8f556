import re

import pytest

from rudderanalytics import Analytics, Config, EventKind
from rudderanalytics.errors import ConfigurationError, ValidationError
from rudderanalytics.testing.http_util import (BasicResponse, SequentialHandler,
                                               start_server)
from rudderanalytics.testing.stub_util import MockHttp

message_id_pattern = re.compile(r'^node-[0-9a-f]{32}-[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}$')
timestamp_pattern = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$')


def make_client(http=None, **options):
    options.setdefault('flush_interval', 0)
    return Analytics('write-key', 'http://localhost:4063', http=http or MockHttp(), **options)


def test_requires_write_key_and_url():
    with pytest.raises(ConfigurationError):
        Analytics(None, 'http://localhost:4063')
    with pytest.raises(ConfigurationError):
        Analytics('write-key', None)


def test_accepts_prebuilt_config():
    config = Config('write-key', 'http://localhost:4063/', flush_at=7)
    with Analytics(config=config, http=MockHttp()) as client:
        assert client.config is config
        assert client.config.flush_at == 7


def test_options_are_passed_to_config():
    with make_client(flush_at=3, max_queue_length=10) as client:
        assert client.config.flush_at == 3
        assert client.config.max_queue_length == 10
        assert client.config.data_plane_url == 'http://localhost:4063'


def test_event_methods_return_client():
    with make_client() as client:
        result = client.identify({'userId': 'u'}) \
            .group({'userId': 'u', 'groupId': 'g'}) \
            .track({'userId': 'u', 'event': 'Bought'}) \
            .page({'anonymousId': 'a', 'name': 'Home'}) \
            .screen({'anonymousId': 'a', 'name': 'Main'}) \
            .alias({'userId': 'u', 'previousId': 'p'})
        assert result is client


@pytest.mark.parametrize('method, message', [
    ('identify', {}),
    ('track', {'userId': 'u'}),
    ('group', {'userId': 'u'}),
    ('alias', {'userId': 'u'}),
    ('page', {'userId': 7, 'name': 1}),
])
def test_invalid_messages_are_rejected(method, message):
    http = MockHttp()
    with make_client(http) as client:
        with pytest.raises(ValidationError):
            getattr(client, method)(message)
    assert http.recorded_requests == []


def test_oversized_message_is_only_a_warning(caplog):
    http = MockHttp()
    with make_client(http) as client:
        client.track({'userId': 'u', 'event': 'big', 'properties': {'blob': 'x' * 40000}})
        client.flush().result(5)

    assert any('must be < 32KiB' in r.getMessage() for r in caplog.records)
    assert len(http.recorded_batches) == 1


def test_caller_message_is_not_modified():
    message = {'userId': 'u', 'event': 'e', 'context': {'ip': '1.2.3.4'}}
    with make_client() as client:
        client.track(message)
        client.flush().result(5)

    assert message == {'userId': 'u', 'event': 'e', 'context': {'ip': '1.2.3.4'}}


def test_flush_returns_responses_for_sent_batches():
    http = MockHttp()
    with make_client(http) as client:
        client.track({'userId': 'u', 'event': 'a'})
        client._event_processor._wait_until_inactive()
        client.track({'userId': 'u', 'event': 'b'})
        client.track({'userId': 'u', 'event': 'c'})
        responses = client.flush().result(5)

    assert all(r.error is None for r in responses)
    assert [m['event'] for r in responses for m in r.data['batch']] == ['b', 'c']


def test_disabled_client_calls_callback_and_sends_nothing():
    http = MockHttp()
    errors = []
    with make_client(http, enable=False) as client:
        client.track({'userId': 'u', 'event': 'a'}, errors.append)
    assert errors == [None]
    assert http.recorded_requests == []


def test_close_delivers_pending_messages():
    http = MockHttp()
    client = make_client(http, flush_at=100, flush_interval=60)
    client.track({'userId': 'u', 'event': 'a'})
    client.track({'userId': 'u', 'event': 'b'})
    client.close()

    assert [m['event'] for b in http.recorded_batches for m in b] == ['a', 'b']


def test_events_are_posted_to_data_plane():
    with start_server() as server:
        server.for_path('/v1/batch', BasicResponse(200))
        with Analytics('write-key', server.uri + '/v1/batch/', flush_interval=0) as client:
            client.identify({'userId': 42, 'traits': {'plan': 'pro'}})
            client.flush().result(5)

            request = server.await_request()

    assert request.method == 'POST'
    assert request.path == '/v1/batch'
    assert request.headers['Content-Type'] == 'application/json;charset=utf-8'
    assert request.headers['Authorization'] == 'Basic d3JpdGUta2V5Og=='
    assert request.headers['User-Agent'].startswith('rudder-analytics-python/')

    body = request.json()
    assert timestamp_pattern.match(body['sentAt'])
    message = body['batch'][0]
    assert message['type'] == EventKind.IDENTIFY.value
    assert message['userId'] == '42'
    assert message_id_pattern.match(message['messageId'])
    assert timestamp_pattern.match(message['originalTimestamp'])
    assert timestamp_pattern.match(message['sentAt'])
    assert message['context']['library']['name'] == 'rudder-analytics-python'
    assert message['context']['traits'] == {'plan': 'pro'}
    assert 'pythonVersion' in message['_metadata']


def test_rejected_batch_is_reported_to_callbacks():
    with start_server() as server:
        server.for_path('/v1/batch', BasicResponse(400))
        errors = []
        with Analytics('write-key', server.uri + '/v1/batch', flush_interval=0) as client:
            client.track({'userId': 'u', 'event': 'a'}, errors.append)
            client.flush().result(5)

    assert len(errors) == 1
    assert errors[0].status == 400


def test_transient_server_error_is_retried():
    with start_server() as server:
        server.for_path('/v1/batch', SequentialHandler(BasicResponse(503), BasicResponse(200)))
        errors = []
        with Analytics('write-key', server.uri + '/v1/batch', flush_interval=0) as client:
            client.track({'userId': 'u', 'event': 'a'}, errors.append)
            client.flush().result(5)

        first = server.await_request()
        second = server.await_request()
        server.should_have_requests(0)

    assert errors == [None]
    assert first.json()['batch'][0]['messageId'] == second.json()['batch'][0]['messageId']
