"""HTTP client for the LibreLinkUp API"""

import hashlib
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import AuthenticationError, ConnectionLookupError, MeasurementError
from .regions import resolve_region
from .types import (
    AuthFailure,
    AuthTicket,
    Connection,
    ConnectionFailure,
    FetchFailure,
    GlucoseMeasurement,
)

logger = logging.getLogger(__name__)

USER_AGENT = (
    'Mozilla/5.0 (iPhone; CPU OS 17_4.1 like Mac OS X) AppleWebKit/536.26 '
    '(KHTML, like Gecko) Version/17.4.1 Mobile/10A5355d Safari/8536.25'
)
LIBRE_LINK_UP_PRODUCT = 'llu.ios'
DEFAULT_CLIENT_VERSION = '4.12.0'

URL_MAP = {
    'login': '/llu/auth/login',
    'connections': '/llu/connections',
}


def select_connection(connections: List[Connection], preferred_id: Optional[str] = None) -> Connection:
    """
    Pick the connection to read from

    A single connection is always used. With several, the one matching
    ``preferred_id`` is used, or the first one when no id is configured.

    Raises:
        ConnectionLookupError: If the list is empty or the preferred id is unknown
    """
    if not connections:
        raise ConnectionLookupError(
            ConnectionFailure.NONE_FOUND,
            'Your account does not follow any patients. Please start following and try again.'
        )

    if len(connections) == 1:
        logger.info("Found 1 LibreLinkUp connection.")
        return connections[0]

    logger.debug(f"Found {len(connections)} LibreLinkUp connections:")
    for index, conn in enumerate(connections, 1):
        logger.debug(f"[{index}] {conn.full_name} (Patient-ID: {conn.patient_id})")

    if not preferred_id:
        logger.warning(
            "No Patient-ID configured, using the first connection. "
            "Set connection_id to pick a specific patient."
        )
        return connections[0]

    for conn in connections:
        if conn.patient_id == preferred_id:
            return conn

    raise ConnectionLookupError(
        ConnectionFailure.PREFERRED_NOT_FOUND,
        f"The specified Patient-ID '{preferred_id}' was not found."
    )


class LibreLinkUpClient:
    """Client for the LibreLinkUp login, connections and graph endpoints"""

    def __init__(
        self,
        client_version: str = DEFAULT_CLIENT_VERSION,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        max_retries: int = 0,
    ):
        """
        Initialize LibreLinkUp client

        Args:
            client_version: LibreLinkUp app version sent in the ``version`` header
            session: Optional pre-built session (cookies persist across calls)
            timeout: Per-request timeout in seconds
            max_retries: Transport-level retries for 429/5xx responses
        """
        self.client_version = client_version
        self.timeout = timeout

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=max_retries,
                backoff_factor=1,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=None,
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    def _get_headers(self, ticket: Optional[AuthTicket] = None) -> Dict[str, str]:
        """Get request headers, with authentication when a ticket is given"""
        headers = {
            'User-Agent': USER_AGENT,
            'Content-Type': 'application/json;charset=UTF-8',
            'product': LIBRE_LINK_UP_PRODUCT,
            'version': self.client_version,
        }
        if ticket is not None and ticket.token:
            headers['Authorization'] = f'Bearer {ticket.token}'
            if ticket.account_id:
                headers['account-id'] = hashlib.sha256(ticket.account_id.encode()).hexdigest()
        return headers

    def _url(self, region: str, path: str) -> str:
        return f"https://{resolve_region(region)}{path}"

    def _request(self, method: str, url: str, ticket: Optional[AuthTicket] = None, **kwargs) -> Dict[str, Any]:
        response = self.session.request(
            method,
            url,
            headers=self._get_headers(ticket),
            timeout=self.timeout,
            **kwargs
        )
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected response body from {url}")
        return body

    def login(self, username: str, password: str, region: str) -> AuthTicket:
        """
        Login to LibreLinkUp service

        Returns:
            The auth ticket embedded in the login response

        Raises:
            AuthenticationError: If login fails
        """
        logger.info("Logging in to LibreLinkUp")
        url = self._url(region, URL_MAP['login'])
        try:
            login_response = self._request('POST', url, json={'email': username, 'password': password})
        except (requests.RequestException, ValueError) as e:
            raise AuthenticationError(AuthFailure.NETWORK_ERROR, f"Login request failed: {e}") from e

        status = login_response.get('status')
        data = login_response.get('data') or {}

        if status != 0:
            step = data.get('step') if isinstance(data, dict) else None
            if status == 2:
                message = (
                    'Bad credentials. Please ensure that you have entered the credentials '
                    'of your LibreLinkUp account (and not of your LibreLink account).'
                )
            elif status == 4:
                component_name = step.get('componentName', 'unknown') if isinstance(step, dict) else 'unknown'
                message = (
                    f'Additional action required for your account: {component_name}. '
                    'Please login via app and perform required steps and try again.'
                )
            else:
                message = f'Login rejected with status {status}.'
            raise AuthenticationError(AuthFailure.REJECTED, message)

        if not isinstance(data, dict):
            raise AuthenticationError(
                AuthFailure.NETWORK_ERROR, f"Unexpected login response data: {data!r:.100}"
            )

        if data.get('redirect') and data.get('region'):
            correct_region = str(data['region']).upper()
            raise AuthenticationError(
                AuthFailure.WRONG_REGION,
                f"Logged in to the wrong region. Switch to '{correct_region}' region.",
                region=correct_region,
            )

        try:
            ticket = AuthTicket.from_api(data)
        except (KeyError, TypeError, ValueError) as e:
            raise AuthenticationError(
                AuthFailure.NETWORK_ERROR, 'Login response did not contain an auth ticket.'
            ) from e

        logger.info("Logged in to LibreLinkUp")
        return ticket

    def get_connections(self, ticket: AuthTicket, region: str) -> List[Connection]:
        """
        Get list of connections (patients being followed)

        Raises:
            ConnectionLookupError: If the request fails
        """
        url = self._url(region, URL_MAP['connections'])
        try:
            connections_response = self._request('GET', url, ticket=ticket)
            return [Connection.from_api(item) for item in connections_response.get('data') or []]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise ConnectionLookupError(
                ConnectionFailure.NETWORK_ERROR, f"Failed to get connections: {e}"
            ) from e

    def get_connection_id(self, ticket: AuthTicket, region: str, preferred_id: Optional[str] = None) -> str:
        """Resolve the patient id to read measurements for"""
        logger.info("Getting LibreLinkUp connection")
        connection = select_connection(self.get_connections(ticket, region), preferred_id)
        logger.info(
            f"-> The following connection will be used: {connection.full_name} "
            f"(Patient-ID: {connection.patient_id})"
        )
        return connection.patient_id

    def get_latest_measurement(self, ticket: AuthTicket, region: str, connection_id: str) -> GlucoseMeasurement:
        """
        Read the latest glucose measurement of a connection

        Raises:
            MeasurementError: If the request fails or the response has no measurement
        """
        logger.info("Getting glucose measurements")
        url = self._url(region, f"{URL_MAP['connections']}/{connection_id}/graph")
        try:
            graph_data = self._request('GET', url, ticket=ticket).get('data') or {}
            if not isinstance(graph_data, dict):
                raise ValueError(f"Unexpected graph response data: {graph_data!r:.100}")
            connection = graph_data.get('connection')
            measurement = connection.get('glucoseMeasurement') if isinstance(connection, dict) else None
            if not measurement:
                measurement = graph_data.get('glucoseMeasurement')
            if not isinstance(measurement, dict) or not measurement:
                raise KeyError('glucoseMeasurement')
            return GlucoseMeasurement.from_api(measurement)
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise MeasurementError(
                FetchFailure.NETWORK_ERROR, f"Failed to read glucose measurement: {e}"
            ) from e
