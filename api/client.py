"""
API client for the Via REST API

aiohttp-based HTTP client that exchanges a long-lived credential hash for a
short-lived bearer token, caches it until expiry, and attaches it to every
data call. Failures are translated into AuthenticationError or RequestError.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from typing import Any, AsyncIterator, Dict, Mapping, NoReturn, Optional, Tuple

import aiohttp
from pydantic import ValidationError

from config import get_config
from exceptions import AuthenticationError, ConfigurationException, RequestError
from models.client_config import ClientConfig, MISSING_FIELDS_MESSAGE
from models.token import CachedToken

logger = logging.getLogger(f'{__name__}.ViaClient')

TOKEN_ENDPOINT = "/auth/token"
NO_RESPONSE_DETAIL = "No response received from server"
LOG_TRUNCATE_LENGTH = 1200


def utcnow() -> datetime:
    """Current time; patched in tests to simulate token expiry."""
    return datetime.now(UTC)


def describe_failure(error: BaseException) -> Tuple[str, Optional[int]]:
    """
    Classify a transport failure by its shape.

    Args:
        error: Exception raised while sending a request or reading its response

    Returns:
        Tuple of (detail clause, status code). The status code is only set when
        the server answered with a non-2xx status.
    """
    if isinstance(error, aiohttp.ClientResponseError):
        return f"{error.status} {error.message}", error.status
    if isinstance(error, (aiohttp.ClientConnectionError, asyncio.TimeoutError)):
        return NO_RESPONSE_DETAIL, None
    return str(error), None


def _query_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop None values and render booleans as true/false for the query string."""
    query: Dict[str, Any] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        query[key] = value
    return query


def _truncate(data: Any) -> str:
    data_str = str(data)
    if len(data_str) > LOG_TRUNCATE_LENGTH:
        return data_str[:LOG_TRUNCATE_LENGTH] + "..."
    return data_str


class ViaClient:
    """
    Async HTTP client for the Via API.

    Features:
    - Lazy bearer token acquisition with expiry-based refresh
    - Per-request Authorization header injection
    - GET/POST/PUT/PATCH/DELETE helpers returning decoded bodies
    - Uniform error translation into AuthenticationError / RequestError

    Token refresh is not serialized: concurrent calls racing past an expired
    token may each perform a credential exchange, and the last one wins.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_hash: Optional[str] = None,
        email: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize Via client.

        Args:
            base_url: Override VIA_URL from config
            token_hash: Override VIA_TOKEN from config
            email: Override VIA_ACCOUNT_EMAIL from config
            timeout: Total request timeout in seconds (transport default if unset)

        Raises:
            ConfigurationException: If base_url, token_hash or email is missing
        """
        settings = get_config()
        try:
            self.config = ClientConfig(
                base_url=settings.via_url if base_url is None else base_url,
                token_hash=settings.via_token if token_hash is None else token_hash,
                email=settings.via_account_email if email is None else email
            )
        except ValidationError as e:
            raise ConfigurationException(MISSING_FIELDS_MESSAGE) from e

        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._token: Optional[CachedToken] = None
        self._session: Optional[aiohttp.ClientSession] = None

        logger.debug(f"ViaClient initialized with base_url: {self.config.base_url}")

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def email(self) -> str:
        return self.config.email

    @property
    def cached_token(self) -> Optional[CachedToken]:
        """The current token value, which may already be expired."""
        return self._token

    @property
    def has_valid_token(self) -> bool:
        return self._token is not None and self._token.is_valid(utcnow())

    def _build_url(self, url: str) -> str:
        """
        Resolve an endpoint against the base URL.

        Absolute http(s) URLs are returned unchanged; relative ones are joined
        with exactly one slash.
        """
        if url.startswith(('http://', 'https://')):
            return url
        return f"{self.config.base_url.rstrip('/')}/{url.lstrip('/')}"

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists and is not closed."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=100,  # Total connection pool size
                limit_per_host=30,  # Connections per host
                ttl_dns_cache=300,  # DNS cache TTL
                use_dns_cache=True
            )

            session_kwargs: Dict[str, Any] = {}
            if self.timeout is not None:
                session_kwargs['timeout'] = aiohttp.ClientTimeout(total=self.timeout)

            # No Authorization here; the bearer token is attached per request
            self._session = aiohttp.ClientSession(
                headers={
                    'Accept': 'application/json',
                    'User-Agent': 'via-api-client/1.0'
                },
                connector=connector,
                **session_kwargs
            )

            logger.debug("Created new aiohttp session with connection pooling")

    @staticmethod
    def _raise_for_status(response: aiohttp.ClientResponse) -> None:
        """Treat anything outside 2xx as a failed response."""
        if not 200 <= response.status < 300:
            raise aiohttp.ClientResponseError(
                response.request_info,
                response.history,
                status=response.status,
                message=response.reason or "",
                headers=response.headers
            )

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        """Decode a response body: JSON if it parses, raw text otherwise, None if empty."""
        raw = await response.read()
        try:
            text = raw.decode(response.charset or 'utf-8', errors='replace')
        except LookupError:
            text = raw.decode('utf-8', errors='replace')
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    async def ensure_token(self) -> str:
        """
        Return a valid access token, exchanging the credential hash for a new
        one when none is cached or the cached one has expired.

        Returns:
            Bearer access token

        Raises:
            AuthenticationError: If the exchange fails or returns no access token
        """
        now = utcnow()
        if self._token is not None and self._token.is_valid(now):
            return self._token.access_token

        token_url = self._build_url(TOKEN_ENDPOINT)
        payload = {'hash': self.config.token_hash, 'email': self.config.email}

        await self._ensure_session()

        try:
            logger.info(f"Requesting access token for {self.config.email}")

            async with self._session.post(token_url, json=payload) as response:
                self._raise_for_status(response)
                body = await self._read_body(response)

        except Exception as e:
            detail, _ = describe_failure(e)
            logger.error(f"Error obtaining access token from {token_url}: {detail}")
            raise AuthenticationError(f"Error obtaining access token: {detail}", e) from e

        token = CachedToken.from_token_response(body, now)
        if token is None:
            cause = ValueError("Invalid token data")
            logger.error(f"Token response from {token_url} has no access_token: {_truncate(body)}")
            raise AuthenticationError(
                "Failed to retrieve access token: Invalid response structure", cause
            ) from cause

        self._token = token
        logger.info(f"Access token acquired, valid for {token.seconds_remaining(now):.0f}s until {token.expires_at.isoformat()}")
        return token.access_token

    async def _authorize(self, headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Bearer step applied to every data call before dispatch.

        Args:
            headers: Caller-supplied headers

        Returns:
            New header mapping carrying the current bearer token
        """
        token = await self.ensure_token()
        merged = {k: v for k, v in (headers or {}).items() if k.lower() != 'authorization'}
        merged['Authorization'] = f'Bearer {token}'
        return merged

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """
        Perform an authenticated call and return the decoded body.

        Raises:
            AuthenticationError: If no token could be obtained
            RequestError: If the call itself failed
        """
        full_url = self._build_url(url)
        headers = await self._authorize(kwargs.pop('headers', None))

        await self._ensure_session()

        try:
            logger.debug(f"{method}: {full_url} params: {kwargs.get('params')} data: {_truncate(kwargs.get('json'))}")

            async with self._session.request(method, full_url, headers=headers, **kwargs) as response:
                self._raise_for_status(response)
                result = await self._read_body(response)

        except Exception as e:
            self._handle_api_error(method, url, e)

        logger.debug(f"{method} Response: {_truncate(result)}")
        return result

    def _handle_api_error(self, method: str, url: str, error: BaseException) -> NoReturn:
        """
        Translate a data call failure into RequestError.

        Args:
            method: HTTP method
            url: Endpoint as given by the caller
            error: Original exception

        Raises:
            RequestError: Always
        """
        detail, status_code = describe_failure(error)
        message = f"{method} Request to {url} failed: {detail}"
        logger.error(message)
        raise RequestError(message, method, url, status_code, error) from error

    async def get(self, url: str, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        """
        Make GET request to API.

        Args:
            url: Endpoint path relative to the base URL
            params: Query parameters
            **kwargs: Extra aiohttp request options (headers, timeout, ...)

        Returns:
            Decoded response body

        Raises:
            AuthenticationError: If no token could be obtained
            RequestError: For HTTP errors or network issues
        """
        return await self._request('GET', url, params=_query_params(params), **kwargs)

    async def post(self, url: str, data: Optional[Any] = None, **kwargs) -> Any:
        """Make POST request to API with a JSON body."""
        return await self._request('POST', url, json=data if data is not None else {}, **kwargs)

    async def put(self, url: str, data: Optional[Any] = None, **kwargs) -> Any:
        """Make PUT request to API with a JSON body."""
        return await self._request('PUT', url, json=data if data is not None else {}, **kwargs)

    async def patch(self, url: str, data: Optional[Any] = None, **kwargs) -> Any:
        """Make PATCH request to API with a JSON body."""
        return await self._request('PATCH', url, json=data if data is not None else {}, **kwargs)

    async def delete(self, url: str, **kwargs) -> Any:
        """Make DELETE request to API."""
        return await self._request('DELETE', url, **kwargs)

    async def close(self) -> None:
        """Close the HTTP session and clean up resources."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session")

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit with cleanup."""
        await self.close()


@asynccontextmanager
async def get_via_client() -> AsyncIterator[ViaClient]:
    """
    Get a configured Via client as async context manager.

    Usage:
        async with get_via_client() as client:
            info = await client.get('version')
    """
    client = ViaClient()
    try:
        yield client
    finally:
        await client.close()


# Global client instance for reuse
_global_client: Optional[ViaClient] = None


async def get_global_client() -> ViaClient:
    """
    Get global Via client instance with automatic session management.

    Returns:
        Shared ViaClient instance
    """
    global _global_client
    if _global_client is None:
        _global_client = ViaClient()

    await _global_client._ensure_session()
    return _global_client


async def cleanup_global_client() -> None:
    """Clean up global Via client. Call during application shutdown."""
    global _global_client
    if _global_client:
        await _global_client.close()
        _global_client = None
