"""Thin JSON client over requests for the quiz backend services."""

import logging

import requests

from errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)


class ApiClient:
    """Blocking JSON client bound to one base URL and (optional) bearer token.

    Non-2xx responses raise NotFoundError (404) or ServiceError, using the
    `message` field of the error body when there is one. Transport failures
    raise ServiceError with no status code.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        params: dict | None = None,
    ):
        """Send a request and return the decoded JSON body (None if empty)."""
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)

        try:
            resp = self.session.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise ServiceError() from e

        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.info("%s %s -> %d %s", method, url, resp.status_code, message or "")
            if resp.status_code == 404:
                raise NotFoundError(message)
            raise ServiceError(message, status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ServiceError("The service returned an invalid response") from e

    def get(self, path: str, params: dict | None = None):
        return self.request("GET", path, params=params)

    def post(self, path: str, json: dict | None = None):
        return self.request("POST", path, json=json)

    def patch(self, path: str, json: dict | None = None):
        return self.request("PATCH", path, json=json)

    def delete(self, path: str):
        return self.request("DELETE", path)

    def close(self) -> None:
        self.session.close()


def _error_message(resp: requests.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return None
