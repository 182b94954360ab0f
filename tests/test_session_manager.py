from dataclasses import replace
from typing import List

import requests

from libre_link_up_status.client import LibreLinkUpClient
from libre_link_up_status.display import present
from libre_link_up_status.session import AuthSession
from libre_link_up_status.session_manager import SessionManager
from libre_link_up_status.types import (
    PLACEHOLDER,
    AuthFailure,
    AuthTicket,
    ConnectionFailure,
    FetchFailure,
    GlucoseUnit,
)
from tests.conftest import EU, FakeResponse, FakeSession, login_payload, measurement_payload

NOW = 1_700_000_000
LOGIN = ('POST', f'{EU}/llu/auth/login')
CONNECTIONS = ('GET', f'{EU}/llu/connections')
GRAPH_P2 = ('GET', f'{EU}/llu/connections/P2/graph')
TWO_CONNECTIONS = {'data': [
    {'patientId': 'P1', 'firstName': 'Ann', 'lastName': 'One'},
    {'patientId': 'P2', 'firstName': 'Bob', 'lastName': 'Two'},
]}


def make_manager(routes, valid_ticket: bool = False):
    fake_session = FakeSession(routes)
    auth = AuthSession(clock=lambda: NOW)
    if valid_ticket:
        auth.set(AuthTicket(token='old-token', expires=NOW + 3600, duration=3600))
    notifications: List[str] = []
    manager = SessionManager(
        client=LibreLinkUpClient(session=fake_session),
        session=auth,
        notify=notifications.append,
    )
    return manager, fake_session, notifications


def graph_response(**kwargs) -> FakeResponse:
    return FakeResponse({'data': {'connection': {'patientId': 'P2', 'glucoseMeasurement': measurement_payload(**kwargs)}}})


def test_rejected_login_stops_pipeline(config) -> None:
    manager, fake_session, notifications = make_manager({LOGIN: FakeResponse({'status': 2})})

    result = manager.fetch_latest_reading(config)

    assert not result.ok
    assert result.stage == 'login'
    assert result.failure is AuthFailure.REJECTED
    assert manager.session.is_valid() is False
    assert [call['url'] for call in fake_session.calls] == [f'{EU}/llu/auth/login']
    assert len(notifications) == 1 and 'Bad credentials' in notifications[0]
    assert result.notification == notifications[0]
    assert present(result.measurement, config) is PLACEHOLDER


def test_wrong_region_is_notified(config) -> None:
    payload = {'status': 0, 'data': {'redirect': True, 'region': 'de'}}
    manager, _, notifications = make_manager({LOGIN: FakeResponse(payload)})

    result = manager.fetch_latest_reading(config)

    assert result.failure is AuthFailure.WRONG_REGION
    assert "'DE'" in notifications[0]


def test_network_error_on_login_is_not_notified(config) -> None:
    manager, _, notifications = make_manager({LOGIN: requests.ConnectionError("down")})

    result = manager.fetch_latest_reading(config)

    assert result.failure is AuthFailure.NETWORK_ERROR
    assert notifications == []


def test_login_then_fetch_stores_ticket(config) -> None:
    routes = {
        LOGIN: FakeResponse(login_payload(token='fresh', expires=NOW + 60)),
        CONNECTIONS: FakeResponse(TWO_CONNECTIONS),
        ('GET', f'{EU}/llu/connections/P1/graph'): graph_response(value=140),
    }
    manager, fake_session, _ = make_manager(routes)

    result = manager.fetch_latest_reading(config)

    assert result.ok
    assert result.measurement.value_in_mg_per_dl == 140
    assert manager.session.token == 'fresh'
    assert fake_session.calls[1]['headers']['Authorization'] == 'Bearer fresh'


def test_valid_ticket_skips_login_and_uses_preferred_connection(config) -> None:
    routes = {CONNECTIONS: FakeResponse(TWO_CONNECTIONS), GRAPH_P2: graph_response(value=95, trend=3)}
    manager, fake_session, _ = make_manager(routes, valid_ticket=True)

    result = manager.fetch_latest_reading(replace(config, connection_id='P2'))

    assert result.ok
    assert [call['url'] for call in fake_session.calls] == [f'{EU}/llu/connections', f'{EU}/llu/connections/P2/graph']
    state = present(result.measurement, config)
    assert state.text == '95.0 mg/dL →'
    assert state.warning is None
    assert state.background is None


def test_low_reading_in_millimolar(config) -> None:
    routes = {CONNECTIONS: FakeResponse(TWO_CONNECTIONS), GRAPH_P2: graph_response(value=55, trend=3, is_low=True)}
    manager, _, _ = make_manager(routes, valid_ticket=True)
    mmol_config = replace(config, connection_id='P2', glucose_units=GlucoseUnit.MILLIMOLAR)

    result = manager.fetch_latest_reading(mmol_config)
    state = present(result.measurement, mmol_config)

    assert state.text.startswith('3.1 mmol/L')
    assert state.warning == 'Low blood glucose!'


def test_connection_network_error_invalidates_ticket(config) -> None:
    manager, _, notifications = make_manager({CONNECTIONS: requests.ConnectionError("reset")}, valid_ticket=True)

    result = manager.fetch_latest_reading(config)

    assert not result.ok
    assert result.stage == 'connection'
    assert result.failure is ConnectionFailure.NETWORK_ERROR
    assert manager.session.is_valid() is False
    assert notifications == []


def test_next_tick_after_failure_logs_in_again(config) -> None:
    routes = {CONNECTIONS: requests.ConnectionError("reset")}
    manager, fake_session, _ = make_manager(routes, valid_ticket=True)
    manager.fetch_latest_reading(config)

    fake_session.routes.update({
        LOGIN: FakeResponse(login_payload(token='renewed', expires=NOW + 60)),
        CONNECTIONS: FakeResponse({'data': [{'patientId': 'P2'}]}),
        GRAPH_P2: graph_response(value=101),
    })
    result = manager.fetch_latest_reading(config)

    assert result.ok
    assert fake_session.calls[1]['url'] == f'{EU}/llu/auth/login'
    assert manager.session.token == 'renewed'


def test_preferred_connection_missing_invalidates_ticket(config) -> None:
    manager, _, _ = make_manager({CONNECTIONS: FakeResponse(TWO_CONNECTIONS)}, valid_ticket=True)

    result = manager.fetch_latest_reading(replace(config, connection_id='P9'))

    assert result.failure is ConnectionFailure.PREFERRED_NOT_FOUND
    assert manager.session.is_valid() is False


def test_measurement_failure_invalidates_ticket(config) -> None:
    routes = {CONNECTIONS: FakeResponse(TWO_CONNECTIONS), GRAPH_P2: FakeResponse({}, status_code=502)}
    manager, _, _ = make_manager(routes, valid_ticket=True)

    result = manager.fetch_latest_reading(replace(config, connection_id='P2'))

    assert result.stage == 'measurement'
    assert result.failure is FetchFailure.NETWORK_ERROR
    assert manager.session.is_valid() is False


def test_client_version_follows_config(config) -> None:
    routes = {CONNECTIONS: FakeResponse({'data': [{'patientId': 'P2'}]}), GRAPH_P2: graph_response()}
    manager, fake_session, _ = make_manager(routes, valid_ticket=True)

    manager.fetch_latest_reading(replace(config, client_version='4.16.0'))

    assert fake_session.calls[0]['headers']['version'] == '4.16.0'


def test_malformed_login_data_does_not_escape(config) -> None:
    manager, fake_session, notifications = make_manager({LOGIN: FakeResponse({'status': 0, 'data': 'maintenance'})})

    result = manager.fetch_latest_reading(config)

    assert not result.ok
    assert result.failure is AuthFailure.NETWORK_ERROR
    assert result.notification is None
    assert manager.session.is_valid() is False
    assert len(fake_session.calls) == 1
    assert notifications == []
