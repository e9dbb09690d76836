from dataclasses import dataclass
from typing import Any, Optional

import httpx

from student_portal.config.settings import settings
from student_portal.utils.errors import LookupFailure
from student_portal.utils.logging import get_logger

logger = get_logger()

PIN_CODE_LENGTH = 6


@dataclass(frozen=True)
class ResolvedAddress:
    city: str
    state: str


class PostalLookupProvider:
    """Resolves an Indian PIN code to its district and state.

    The public endpoint answers ``GET {base_url}/{pin}`` with a list whose
    first element carries ``Status`` and a ``PostOffice`` list. Only the first
    post office is used. Failures of any kind are logged and reported as
    ``None``: autofill is best effort and must never block a form.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.POSTAL_LOOKUP_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.POSTAL_LOOKUP_TIMEOUT
        self.transport = transport

    async def resolve(self, zip_code: str) -> Optional[ResolvedAddress]:
        try:
            payload = await self._fetch(zip_code)
            return self._parse(zip_code, payload)
        except LookupFailure as e:
            logger.warning(f"Postal lookup failed for '{zip_code}': {e.message}")
            return None

    async def _fetch(self, zip_code: str) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(f"{self.base_url}/{zip_code}")
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise LookupFailure(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise LookupFailure(f"Malformed response body: {e}") from e

    @staticmethod
    def _parse(zip_code: str, payload: Any) -> Optional[ResolvedAddress]:
        if not isinstance(payload, list) or not payload:
            raise LookupFailure("Unexpected response shape")

        first = payload[0]
        if not isinstance(first, dict):
            raise LookupFailure("Unexpected response shape")

        if first.get("Status") != "Success":
            logger.info(f"No post office found for '{zip_code}' (status {first.get('Status')})")
            return None

        post_offices = first.get("PostOffice") or []
        if not isinstance(post_offices, list):
            raise LookupFailure("Unexpected response shape")
        if not post_offices or not isinstance(post_offices[0], dict):
            return None

        post_office = post_offices[0]
        city, state = post_office.get("District"), post_office.get("State")
        if not isinstance(city, str) or not isinstance(state, str):
            raise LookupFailure("Post office entry without District/State text")
        if not city.strip() or not state.strip():
            raise LookupFailure("Post office entry without District/State")

        logger.debug(f"Resolved '{zip_code}' to {city}, {state}")
        return ResolvedAddress(city=city, state=state)


def get_postal_lookup_provider() -> PostalLookupProvider:
    return PostalLookupProvider()
