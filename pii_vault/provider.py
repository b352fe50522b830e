"""
Key Provider — Client for the Vault transit engine.

Exports named AES-256 keys from the transit mount, provisioning an exportable
key when the name is unknown:

    GET  {url}/v1/{mount}/export/encryption-key/{hex(key_id)}
    POST {url}/v1/{mount}/keys/{hex(key_id)}   (only after a 404)
    GET  {url}/v1/{mount}/export/encryption-key/{hex(key_id)}   (once more)

Security Note:
    Never log the token or exported key material. Only log key names and
    HTTP status codes.
"""
import base64
import binascii
import logging
from typing import Any, Optional

import orjson
import requests

from .config import PiiVaultConfig
from .crypto import KEY_LENGTH
from .exceptions import (
    FormatError,
    NetworkError,
    NotFoundError,
    ProviderError,
)

logger = logging.getLogger("pii_vault")

TOKEN_HEADER = "X-Vault-Token"
KEY_TYPE = "aes256-gcm96"


def parse_export_response(body: bytes) -> bytes:
    """Extract the latest key version from a transit export response.

    The response maps version numbers to base64 keys:
    ``{"data": {"keys": {"1": "<b64>", "2": "<b64>"}}}``.
    The highest numeric version wins.

    Raises:
        FormatError: If the body is malformed or the key is not 32 bytes.
    """
    try:
        payload = orjson.loads(body)
        keys = payload["data"]["keys"]
    except (orjson.JSONDecodeError, KeyError, TypeError) as err:
        raise FormatError(f"Malformed key export response: {err}") from err
    if not isinstance(keys, dict) or not keys:
        raise FormatError("No key found in key export response")
    try:
        latest = max(keys, key=int)
    except ValueError as err:
        raise FormatError(f"Non-numeric key version in response: {err}") from err
    encoded = keys[latest]
    if not isinstance(encoded, str):
        raise FormatError(f"Key version {latest} is not a base64 string")
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise FormatError(f"Failed to decode key version {latest}: {err}") from err
    if len(key) != KEY_LENGTH:
        raise FormatError(f"Invalid key length: {len(key)}")
    return key


class VaultKeyProvider:
    """Fetches (and lazily creates) data keys in a Vault transit mount.

    Args:
        config: Service URL, token, mount and (connect, read) timeouts.
        session: Optional ``requests.Session``; one is created if omitted.
    """

    def __init__(
        self,
        config: PiiVaultConfig,
        session: Optional[requests.Session] = None,
    ):
        self._config = config
        self._session = session if session is not None else requests.Session()

    def _url(self, path: str) -> str:
        url, _ = self._config.require_remote()
        return f"{url}/v1/{self._config.mount}/{path}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        _, token = self._config.require_remote()
        headers = {TOKEN_HEADER: token, **kwargs.pop("headers", {})}
        try:
            return self._session.request(
                method,
                self._url(path),
                headers=headers,
                timeout=self._config.request_timeout,
                **kwargs,
            )
        except requests.RequestException as err:
            raise NetworkError(f"Key service request failed: {err}") from err

    def _export(self, key_name: str) -> bytes:
        resp = self._request("GET", f"export/encryption-key/{key_name}")
        if resp.status_code == 404:
            raise NotFoundError(f"Key {key_name} not found")
        if not resp.ok:
            raise ProviderError(
                f"Key service returned {resp.status_code} exporting {key_name}"
            )
        return parse_export_response(resp.content)

    def create_key(self, key_id: bytes) -> None:
        """Provision an exportable AES-256-GCM key named ``hex(key_id)``.

        Raises:
            ProviderError: If the service rejects the request.
        """
        key_name = bytes(key_id).hex()
        resp = self._request(
            "POST",
            f"keys/{key_name}",
            headers={"Content-Type": "application/json"},
            data=orjson.dumps({"type": KEY_TYPE, "exportable": True}),
        )
        if not resp.ok:
            raise ProviderError(
                f"Key service returned {resp.status_code} creating {key_name}"
            )
        logger.info("Created transit key %s", key_name)

    def fetch(self, key_id: bytes) -> bytes:
        """Return the 32-byte key for ``key_id``, creating it if unknown.

        Raises:
            ConfigError: If URL or token are not configured.
            NetworkError: On transport failure or timeout.
            ProviderError: On any other non-success response.
            FormatError: If the response or key material is malformed.
        """
        key_name = bytes(key_id).hex()
        try:
            return self._export(key_name)
        except NotFoundError:
            logger.debug("Transit key %s not found, provisioning", key_name)
        self.create_key(key_id)
        try:
            return self._export(key_name)
        except NotFoundError as err:
            raise ProviderError(
                f"Key {key_name} still missing after provisioning"
            ) from err

    def close(self) -> None:
        self._session.close()
