"""
GitHub OAuth device-code flow.

The operator is shown a verification URL and a short code; meanwhile the
token endpoint is polled until the code is authorized, denied or expires.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, Union

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from config.credentials import CredentialName, CredentialStore
from config.models import GitHubConfig
from utils.errors import DeviceFlowError, TransportError
from utils.logger import logger

DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
SLOW_DOWN_INCREMENT = 5


class DeviceCode(BaseModel):
    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    interval: int = 5


class AccessTokenGranted(BaseModel):
    access_token: str
    token_type: Optional[str] = None
    scope: Optional[str] = None


class AccessTokenDenied(BaseModel):
    error: str
    error_description: Optional[str] = None


AccessTokenResult = Union[AccessTokenGranted, AccessTokenDenied]
_access_token_result = TypeAdapter(AccessTokenResult)


class DeviceFlowAuthenticator:
    """
    Runs the device flow against GitHub and stores the resulting token.

    `sleep` and `clock` are injectable so the polling loop can be driven
    without waiting in real time.
    """

    def __init__(
        self,
        config: GitHubConfig,
        store: CredentialStore,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.store = store
        self._client = client or httpx.AsyncClient(timeout=config.timeout_sec)
        self._sleep = sleep
        self._clock = clock

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, url: str, payload: dict) -> httpx.Response:
        try:
            return await self._client.post(url, json=payload, headers={"Accept": "application/json"})
        except httpx.RequestError as e:
            raise TransportError(str(e)) from e

    async def request_device_code(self) -> DeviceCode:
        response = await self._post(
            self.config.device_code_url,
            {"client_id": self.config.client_id, "scope": self.config.scope},
        )
        if not response.is_success:
            raise DeviceFlowError(f"Failed to start device flow: {response.reason_phrase}")
        try:
            return DeviceCode.model_validate(response.json())
        except (ValidationError, ValueError) as e:
            raise DeviceFlowError(f"Unexpected device code response: {e}") from e

    async def _poll_once(self, device_code: str) -> AccessTokenResult:
        response = await self._post(
            self.config.access_token_url,
            {
                "client_id": self.config.client_id,
                "device_code": device_code,
                "grant_type": DEVICE_GRANT_TYPE,
            },
        )
        try:
            return _access_token_result.validate_python(response.json())
        except (ValidationError, ValueError) as e:
            raise DeviceFlowError(
                f"Unexpected response from token endpoint ({response.status_code})."
            ) from e

    async def poll_for_token(self, device_code: DeviceCode) -> str:
        """
        Polls the token endpoint every `interval` seconds until a terminal state.

        `authorization_pending` and `slow_down` keep polling; every other
        outcome either returns the token or raises DeviceFlowError.
        """
        interval = device_code.interval
        deadline = self._clock() + device_code.expires_in
        attempt = 0

        while self._clock() < deadline:
            await self._sleep(interval)
            if self._clock() >= deadline:
                break
            attempt += 1

            result = await self._poll_once(device_code.device_code)
            if isinstance(result, AccessTokenGranted):
                logger.info(f"Device flow authorized after {attempt} poll(s)")
                return result.access_token

            logger.debug(f"Poll {attempt}: {result.error}")
            if result.error == "authorization_pending":
                continue
            if result.error == "slow_down":
                interval += SLOW_DOWN_INCREMENT
                continue
            if result.error == "expired_token":
                raise DeviceFlowError("The device code has expired. Please try again.")
            if result.error == "access_denied":
                raise DeviceFlowError("Authorization was denied. Please try again and authorize access.")
            raise DeviceFlowError(result.error_description or result.error)

        raise DeviceFlowError("Authorization timed out. Please try again.")

    async def authenticate(self, on_verification: Callable[[DeviceCode], None]) -> str:
        """
        Runs the whole flow, persists the token and returns it.

        `on_verification` is called once with the device code so the caller
        can show the verification URL and user code.
        """
        device_code = await self.request_device_code()
        on_verification(device_code)
        token = await self.poll_for_token(device_code)
        self.store.set(CredentialName.GITHUB_TOKEN, token)
        return token
