"""Legacy Caseworker API client - Anti-Corruption Layer."""
import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from casework_sync.core.config import settings
from casework_sync.domain.exceptions import (
    LegacyApiError,
    LegacyAuthError,
    LegacyRateLimitError,
    LegacyTransportError,
)
from casework_sync.domain.models.legacy_credentials import LegacyCredentials
from casework_sync.domain.models.legacy_records import (
    LegacyCaseRecord,
    LegacyConstituentRecord,
    LegacyEmailRecord,
    LegacyPage,
)
from casework_sync.domain.models.reference_data import ReferenceKind
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.credentials_repo import LegacyCredentialsRepository
from casework_sync.domain.ports.legacy_api import (
    CaseSearchParams,
    ConstituentSearchParams,
    InboxSearchParams,
    LegacyApiClient,
)
from casework_sync.domain.services.credential_policy import CredentialPolicy
from casework_sync.infrastructure.integrations.caseworker.rate_limiter import (
    TokenBucketRateLimiter,
)

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _without_none(body: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in body.items() if value is not None}


class CaseworkerAPIClient(LegacyApiClient):
    """
    Legacy Caseworker API client implementing Anti-Corruption Layer.

    Responsibilities:
    - Resolve each office's legacy instance and login
    - Keep a session token per office and renew it before expiry
    - Rate limit, retry and classify failures
    - Return validated pages, never raw responses

    Caseworker wire shapes MUST NOT leak outside this class and
    legacy_records.
    """

    AUTH_PATH = "/auth"
    CASES_SEARCH_PATH = "/cases/search"
    CONSTITUENTS_SEARCH_PATH = "/constituents/search"
    INBOX_SEARCH_PATH = "/inbox/search"
    REFERENCE_PATHS = {
        ReferenceKind.CASE_TYPES: "/casetype",
        ReferenceKind.STATUS_TYPES: "/statustype",
        ReferenceKind.CATEGORY_TYPES: "/categorytype",
        ReferenceKind.CONTACT_TYPES: "/contacttype",
        ReferenceKind.CASEWORKERS: "/caseworkers/all",
    }

    MAX_ATTEMPTS = 3
    BACKOFF_BASE_SECONDS = 1.0
    BACKOFF_CAP_SECONDS = 30.0

    def __init__(
        self,
        credentials_repo: LegacyCredentialsRepository,
        http_client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
        token_ttl_minutes: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Initialize API client.

        Args:
            credentials_repo: Source of per-office logins, receives refreshed tokens
            http_client: Shared httpx client, one is created when omitted
            rate_limiter: Outbound limiter, defaults to settings.legacy_api_rps
            token_ttl_minutes: Assumed token lifetime, defaults to settings
            sleep: Awaitable used between retries
        """
        self.credentials_repo = credentials_repo
        self._http = http_client or httpx.AsyncClient(timeout=settings.legacy_api_timeout_seconds)
        self._owns_http = http_client is None
        self._rate_limiter = rate_limiter or TokenBucketRateLimiter(settings.legacy_api_rps)
        self._token_ttl_minutes = token_ttl_minutes or settings.legacy_token_ttl_minutes
        self._sleep = sleep
        self._credentials: Dict[OfficeId, LegacyCredentials] = {}

    async def __aenter__(self) -> "CaseworkerAPIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ----------------------------------------
    # Search endpoints
    # ----------------------------------------

    async def search_cases(
        self,
        office_id: OfficeId,
        params: CaseSearchParams
    ) -> LegacyPage[LegacyCaseRecord]:
        """Search cases by creation or modification date range."""
        body = {
            "dateRange": {
                "type": params.date_range.type.value,
                "from": _iso(params.date_range.from_),
                "to": _iso(params.date_range.to),
            },
            "pageNo": params.page_no,
            "resultsPerPage": params.results_per_page,
        }
        payload = await self._call(office_id, "POST", self.CASES_SEARCH_PATH, body)
        return LegacyPage.from_response(LegacyCaseRecord, payload)

    async def search_constituents(
        self,
        office_id: OfficeId,
        params: ConstituentSearchParams
    ) -> LegacyPage[LegacyConstituentRecord]:
        """Search constituents created or modified after a point in time."""
        body = _without_none({
            "term": "",
            "createdAfter": _iso(params.created_after),
            "modifiedAfter": _iso(params.modified_after),
            "page": params.page,
            "limit": params.limit,
        })
        payload = await self._call(office_id, "POST", self.CONSTITUENTS_SEARCH_PATH, body)
        return LegacyPage.from_response(LegacyConstituentRecord, payload)

    async def search_inbox(
        self,
        office_id: OfficeId,
        params: InboxSearchParams
    ) -> LegacyPage[LegacyEmailRecord]:
        """Search the office inbox."""
        body = _without_none({
            "actioned": params.actioned,
            "type": params.type,
            "dateFrom": _iso(params.date_from),
            "dateTo": _iso(params.date_to),
            "page": params.page,
            "limit": params.limit,
        })
        payload = await self._call(office_id, "POST", self.INBOX_SEARCH_PATH, body)
        return LegacyPage.from_response(LegacyEmailRecord, payload)

    # ----------------------------------------
    # Reference data endpoints
    # ----------------------------------------

    async def get_reference_data(self, office_id: OfficeId, kind: ReferenceKind) -> List[Any]:
        """Fetch one whole lookup list. Rows are returned unparsed."""
        path = self.REFERENCE_PATHS[kind]
        payload = await self._call(office_id, "GET", path)
        if not isinstance(payload, list):
            raise LegacyApiError(f"Expected a list from GET {path}, got {type(payload).__name__}")
        return payload

    # ----------------------------------------
    # Authentication
    # ----------------------------------------

    async def authenticate(self, office_id: OfficeId) -> str:
        """
        Log in with the office's stored credentials and persist the token.

        Raises:
            LegacyAuthError: If credentials are missing, incomplete or rejected
        """
        self._check_enabled()
        credentials = await self._load_credentials(office_id)
        if not CredentialPolicy.validate_credentials(credentials):
            raise LegacyAuthError(f"Incomplete legacy credentials for office {office_id}")

        logger.info(f"Authenticating with legacy API for office {office_id}")
        response = await self._send(
            credentials,
            "POST",
            self.AUTH_PATH,
            {"email": credentials.email, "password": credentials.password, "locale": "en-GB"}
        )
        token = self._parse_token(response)

        expires_at = CredentialPolicy.calculate_expiry_time(self._token_ttl_minutes)
        credentials.update_token(token, expires_at)
        await self.credentials_repo.update_token(office_id, token, expires_at)
        return token

    async def refresh_token(self, office_id: OfficeId) -> str:
        """Reload credentials and log in again regardless of the cached token."""
        self._credentials.pop(office_id, None)
        return await self.authenticate(office_id)

    async def _token_for(self, office_id: OfficeId) -> str:
        credentials = await self._load_credentials(office_id)
        if CredentialPolicy.should_refresh_token(credentials):
            return await self.authenticate(office_id)
        return credentials.token

    async def _load_credentials(self, office_id: OfficeId) -> LegacyCredentials:
        credentials = self._credentials.get(office_id)
        if credentials is None:
            credentials = await self.credentials_repo.find_by_office(office_id)
            if credentials is None:
                raise LegacyAuthError(f"No legacy credentials configured for office {office_id}")
            self._credentials[office_id] = credentials
        return credentials

    @staticmethod
    def _parse_token(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = response.text.strip()
        if isinstance(data, dict):
            data = data.get("token")
        if not isinstance(data, str) or not data:
            raise LegacyAuthError("Legacy API returned no session token", response.status_code)
        return data

    # ----------------------------------------
    # Low-level request handling
    # ----------------------------------------

    async def _call(
        self,
        office_id: OfficeId,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None
    ) -> Any:
        self._check_enabled()
        token = await self._token_for(office_id)
        credentials = await self._load_credentials(office_id)
        try:
            response = await self._send(credentials, method, path, body, token=token)
        except LegacyAuthError:
            # Force a fresh login on the next call
            credentials.token = None
            raise

        try:
            return response.json()
        except ValueError as e:
            raise LegacyApiError(f"Invalid JSON from {method} {path}: {e}", response.status_code) from e

    async def _send(
        self,
        credentials: LegacyCredentials,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None
    ) -> httpx.Response:
        """
        Send a request with rate limiting and retry.

        429 and network failures are retried with exponential backoff and
        jitter. 401 and other error statuses fail immediately.

        Raises:
            LegacyAuthError: On 401
            LegacyRateLimitError: If still rate limited after all attempts
            LegacyTransportError: If the network keeps failing
            LegacyApiError: On any other non-2xx status
        """
        url = f"{settings.legacy_api_base_url(credentials.api_subdomain)}{path}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = token

        delay = self.BACKOFF_BASE_SECONDS
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            await self._rate_limiter.acquire()
            try:
                response = await self._http.request(method, url, json=body, headers=headers)
            except httpx.TransportError as e:
                if attempt == self.MAX_ATTEMPTS:
                    raise LegacyTransportError(f"{method} {path} failed: {e}") from e
                wait = self._backoff(delay)
                logger.warning(
                    f"Network error on {method} {path}: {e}. Retrying in {wait:.1f}s "
                    f"(attempt {attempt}/{self.MAX_ATTEMPTS})"
                )
                await self._sleep(wait)
                delay = min(delay * 2, self.BACKOFF_CAP_SECONDS)
                continue

            if response.status_code == 429:
                if attempt == self.MAX_ATTEMPTS:
                    raise LegacyRateLimitError(f"Rate limit exceeded for {method} {path}", 429)
                wait = self._retry_after(response) or self._backoff(delay)
                logger.warning(
                    f"Rate limited on {method} {path}, waiting {wait:.1f}s "
                    f"(attempt {attempt}/{self.MAX_ATTEMPTS})"
                )
                await self._sleep(wait)
                delay = min(delay * 2, self.BACKOFF_CAP_SECONDS)
                continue

            if response.status_code == 401:
                raise LegacyAuthError(f"Legacy API rejected credentials for {method} {path}", 401)

            if not response.is_success:
                raise LegacyApiError(
                    f"{method} {path} failed with {response.status_code}: {response.text[:200]}",
                    response.status_code
                )

            return response

        raise LegacyApiError(f"{method} {path} failed after {self.MAX_ATTEMPTS} attempts")

    def _backoff(self, delay: float) -> float:
        return min(delay, self.BACKOFF_CAP_SECONDS) * random.uniform(0.5, 1.0)

    def _retry_after(self, response: httpx.Response) -> Optional[float]:
        value = response.headers.get("Retry-After")
        if value is None:
            return None
        try:
            return min(float(value), self.BACKOFF_CAP_SECONDS)
        except ValueError:
            return None

    @staticmethod
    def _check_enabled() -> None:
        if settings.legacy_api_disabled:
            raise LegacyApiError("Legacy API access is disabled")
