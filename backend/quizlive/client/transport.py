from typing import Optional

import requests


class TransportError(Exception):
    """The request did not complete; safe to retry reads on the next poll."""


class SessionNotFound(Exception):
    """Unknown join code or player; not retried."""


class RequestRejected(Exception):
    def __init__(self, status_code: int, payload: Optional[dict]):
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(self.payload.get('error') or f'HTTP {status_code}')


class HttpTransport:
    """JSON client for the session API. Every call is bounded by ``timeout``."""

    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = session or requests.Session()

    def _send(self, method: str, path: str, json=None, params=None):
        try:
            resp = self.http.request(
                method, f"{self.base_url}{path}", json=json, params=params, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc
        try:
            body = resp.json()
        except ValueError:
            body = None
        return resp.status_code, body

    def _request(self, method: str, path: str, json=None, params=None, accept=(200, 201)):
        status, body = self._send(method, path, json=json, params=params)
        if status in accept:
            return body
        if status == 404:
            raise SessionNotFound((body or {}).get('error') or path)
        if status >= 500:
            raise TransportError(f'HTTP {status} for {method} {path}')
        raise RequestRejected(status, body)

    def login(self, username: str, password: str) -> dict:
        return self._request('POST', '/api/auth/login', json={'username': username, 'password': password})

    def get_state(self, join_code: str, player_id: Optional[int] = None) -> dict:
        params = {'player_id': player_id} if player_id is not None else None
        return self._request('GET', f'/api/sessions/{join_code}/state', params=params)

    def join(self, join_code: str, nickname: str) -> dict:
        return self._request('POST', '/api/sessions/join', json={'join_code': join_code, 'nickname': nickname})

    def submit_answer(self, join_code: str, player_id: int, value, question_id: Optional[int] = None) -> dict:
        payload = {'player_id': player_id, 'value': value}
        if question_id is not None:
            payload['question_id'] = question_id
        # 409 carries a closed/stale ledger result, not an error
        return self._request('POST', f'/api/sessions/{join_code}/answer', json=payload, accept=(200, 409))

    def control(self, join_code: str, action: str, expected_index: Optional[int] = None) -> dict:
        payload = {} if expected_index is None else {'expected_index': expected_index}
        return self._request('POST', f'/api/sessions/{join_code}/{action}', json=payload)
