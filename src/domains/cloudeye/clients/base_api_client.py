from typing import Any

import requests

from domains.cloudeye.clients.error import CloudApiConnectionError, CloudApiError
from utils.logging.logging_manager import LogManager


class BaseApiClient:
    """Shared HTTP plumbing of the token-authenticated OTC APIs (CES, RMS, EVS).

    Retries are not handled here; every call site wraps the client in a RetryExecutor,
    which reads `CloudApiError.retryable` to classify failures.
    """

    def __init__(
        self,
        base_url: str,
        auth_token: str,
        timeout: float = 30.0,
        proxy_url: str = "",
        verify_ssl: bool = True,
        session: requests.Session | None = None,
    ):
        """
        Args:
            base_url (str): Service endpoint, e.g. https://ces.eu-de.otc.t-systems.com.
            auth_token (str): Token sent in the X-Auth-Token header.
            timeout (float): Request timeout in seconds.
            proxy_url (str): Optional HTTP(S) proxy.
            verify_ssl (bool): Whether TLS certificates are verified.
            session (Optional[requests.Session]): Pre-built session, mainly for tests.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = verify_ssl
        if proxy_url:
            self.session.proxies.update({"http": proxy_url, "https": proxy_url})
        self.session.headers.update(
            {
                "X-Auth-Token": auth_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        self.logger = LogManager.get_instance().get_logger(type(self).__name__)

    def _request(self, method: str, endpoint: str, **kwargs) -> dict[str, Any]:
        """Sends a request and returns the decoded JSON body.

        Raises:
            CloudApiConnectionError: When the transport fails.
            CloudApiError: When the API answers with a non-2xx status or invalid JSON.
        """
        url = f"{self.base_url}{endpoint}"
        self.logger.debug(f"Sending {method.upper()} request to {url}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout, requests.exceptions.ChunkedEncodingError) as e:
            raise CloudApiConnectionError(f"Request to {endpoint} failed: {e}", endpoint=endpoint) from e
        except requests.RequestException as e:
            raise CloudApiError(f"Request to {endpoint} failed: {e}", endpoint=endpoint) from e

        if not response.ok:
            error_code, detail = self._extract_error(response)
            raise CloudApiError(
                f"{method.upper()} {endpoint} returned {response.status_code}: {detail}",
                endpoint=endpoint,
                status_code=response.status_code,
                error_code=error_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise CloudApiError(
                "Invalid JSON in response", endpoint=endpoint, status_code=response.status_code
            ) from e

    @staticmethod
    def _extract_error(response: requests.Response) -> tuple[str | None, str]:
        try:
            body = response.json()
        except ValueError:
            return None, response.text[:500]
        if not isinstance(body, dict):
            return None, str(body)[:500]
        # CES nests the error object, RMS and EVS put it at the top level
        error = body.get("error") if isinstance(body.get("error"), dict) else body
        code = error.get("code") or error.get("error_code")
        message = error.get("message") or error.get("error_msg") or response.reason or ""
        return code, message
