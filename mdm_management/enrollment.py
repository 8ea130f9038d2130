# mdm_management/enrollment.py

"""Client for the Apple Device Enrollment Program (DEP) API.

Only the device listing is used here. Authentication follows DEP's scheme:
an OAuth 1.0a signed ``GET /session`` returns a session token which is then
sent as ``X-ADM-Auth-Session`` on every other call.
"""

import json
import logging
import threading
import time

import httpx
from oauthlib.oauth1 import Client as OAuth1Client

from mdm_management.errors import ExternalServiceError
from mdm_management.models import Device

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://mdmenrollment.apple.com"
SESSION_HEADER = "X-ADM-Auth-Session"
PROTOCOL_VERSION = "3"


class DEPCredentials:
    def __init__(self, consumer_key, consumer_secret, access_token, access_secret):
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.access_token = access_token
        self.access_secret = access_secret

    def secrets(self):
        return [self.consumer_key, self.consumer_secret, self.access_token, self.access_secret]

    def __repr__(self):
        return "DEPCredentials(<redacted>)"


class EnrollmentClient:
    """Lists the devices assigned to this server in DEP."""

    def __init__(self, credentials, server_url=DEFAULT_SERVER_URL, timeout=30.0,
                 page_limit=100, transport=None):
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self.page_limit = page_limit
        self._credentials = credentials
        self._session_token = None
        self._token_lock = threading.Lock()
        self._client = httpx.Client(
            base_url=self.server_url,
            timeout=timeout,
            transport=transport,
            headers={
                "X-Server-Protocol-Version": PROTOCOL_VERSION,
                "Content-Type": "application/json;charset=UTF8",
                "User-Agent": "mdm-management/0.1",
            },
        )

    def __repr__(self):
        return f"EnrollmentClient(server_url={self.server_url!r})"

    def close(self):
        self._client.close()

    def fetch_devices(self, timeout=None):
        """Return every device DEP currently lists for this server.

        ``timeout`` bounds the whole fetch, all pages included. Any failure,
        including running out of time, raises ExternalServiceError and no
        devices are returned.
        """
        budget = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + budget

        found = []
        cursor = None
        while True:
            body = {"limit": self.page_limit}
            if cursor:
                body["cursor"] = cursor
            page = self._call("POST", "/server/devices", deadline, json=body)

            records = page.get("devices")
            if records is None:
                records = []
            if not isinstance(records, list):
                raise ExternalServiceError("enrollment service returned a malformed device list")
            for record in records:
                if not isinstance(record, dict):
                    raise ExternalServiceError("enrollment service returned a malformed device record")
                found.append(Device.from_dep(record))

            if not page.get("more_to_follow"):
                break
            cursor = page.get("cursor")
            if not cursor:
                raise ExternalServiceError("enrollment service asked for another page without a cursor")

        logger.info("fetched %d devices from enrollment service", len(found))
        return found

    def _call(self, method, path, deadline, **kwargs):
        token = self._session(deadline)
        status, content = self._send(method, path, deadline, headers={SESSION_HEADER: token}, **kwargs)
        if status in (401, 403):
            # session tokens expire; get a fresh one and retry once
            logger.info("enrollment session rejected, renewing")
            token = self._session(deadline, renew=True)
            status, content = self._send(method, path, deadline, headers={SESSION_HEADER: token}, **kwargs)
        return self._decode(path, status, content)

    def _session(self, deadline, renew=False):
        with self._token_lock:
            if self._session_token and not renew:
                return self._session_token

            signer = OAuth1Client(
                self._credentials.consumer_key,
                client_secret=self._credentials.consumer_secret,
                resource_owner_key=self._credentials.access_token,
                resource_owner_secret=self._credentials.access_secret,
            )
            _, headers, _ = signer.sign(self.server_url + "/session", http_method="GET")
            status, content = self._send("GET", "/session", deadline, headers=headers)
            token = self._decode("/session", status, content).get("auth_session_token")
            if not token:
                raise ExternalServiceError("enrollment service did not return a session token")
            self._session_token = token
            return token

    def _send(self, method, path, deadline, **kwargs):
        """Send one request and read its body before ``deadline``.

        httpx timeouts apply per socket operation, so a server trickling its
        body would never trip them. The body is streamed and the deadline is
        checked between chunks.
        """
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ExternalServiceError("enrollment service deadline exceeded")
        try:
            with self._client.stream(method, path, timeout=remaining, **kwargs) as response:
                chunks = []
                for chunk in response.iter_bytes():
                    if time.monotonic() >= deadline:
                        logger.warning("enrollment service deadline exceeded reading %s %s", method, path)
                        raise ExternalServiceError("enrollment service deadline exceeded")
                    chunks.append(chunk)
                return response.status_code, b"".join(chunks)
        except httpx.TimeoutException:
            logger.warning("enrollment service timed out on %s %s", method, path)
            raise ExternalServiceError("enrollment service timed out")
        except httpx.HTTPError as e:
            logger.warning("enrollment service request %s %s failed: %s", method, path, type(e).__name__)
            raise ExternalServiceError("enrollment service is unreachable")

    @staticmethod
    def _decode(path, status, content):
        if status >= 400:
            logger.warning("enrollment service answered %s for %s", status, path)
            raise ExternalServiceError(f"enrollment service returned HTTP {status}")
        try:
            payload = json.loads(content)
        except ValueError:
            raise ExternalServiceError("enrollment service returned a malformed response")
        if not isinstance(payload, dict):
            raise ExternalServiceError("enrollment service returned a malformed response")
        return payload
