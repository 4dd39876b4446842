"""
Base Client for Language Model Providers

This module provides the shared HTTP plumbing for the language model
clients: connection management, retry with exponential backoff, error
mapping and API key masking.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ...utils.api_key_validator import APIKeyValidator
from ...utils.error_handler import (
    AuthenticationError,
    ModelRequestError,
    RateLimitError,
    ServiceUnavailableError,
)

RETRYABLE_STATUS_CODES = {408, 423, 429, 500, 502, 503, 504}


def unique(names: Iterable[Optional[str]]) -> List[str]:
    """Drop empty names and duplicates, keeping first occurrences."""
    seen = set()
    result = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


class BaseLLMClient(ABC):
    """
    Abstract base class for language model clients.

    Every client exposes ``generate(prompt) -> str`` and
    ``list_models() -> list``. Clients can be used as async context
    managers; otherwise the HTTP client is created on first use and must be
    released with ``aclose()``.
    """

    provider_name = "llm"
    display_name = "LLM"
    default_model = ""
    default_base_url = ""
    fallback_models: tuple = ()

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Provider API key (not needed for local servers)
            model: Model name, defaults to the provider default
            base_url: Server base URL, defaults to the provider default
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_delay: Base delay for exponential backoff (seconds)
            max_delay: Maximum delay between retries (seconds)
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key or ""
        self.model = model or self.default_model
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._transport = transport

        self.logger = logging.getLogger(self.__class__.__name__)
        self._client: Optional[httpx.AsyncClient] = None

        # Request statistics
        self.request_count = 0
        self.error_count = 0
        self.retry_count = 0

    async def __aenter__(self) -> "BaseLLMClient":
        """Async context manager entry."""
        await self._initialize_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def _initialize_client(self) -> None:
        """Initialize the HTTP client with appropriate configuration."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            transport=self._transport,
        )

    async def aclose(self) -> None:
        """Clean up HTTP client resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def requires_key(self) -> bool:
        return APIKeyValidator.requires_key(self.provider_name)

    def _get_common_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": "BookmarkAgent/1.0",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _get_auth_headers(self) -> Dict[str, str]:
        """Authentication headers; providers using a header override this."""
        return {}

    def _calculate_retry_delay(self, attempt: int) -> float:
        """
        Calculate retry delay using exponential backoff with jitter.

        Args:
            attempt: Current retry attempt number (0-based)

        Returns:
            Delay in seconds
        """
        delay = min(self.base_delay * (2**attempt), self.max_delay)
        jitter = delay * 0.1 * (0.5 - asyncio.get_running_loop().time() % 1)
        return max(delay + jitter, 0.0)

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.max_retries:
            return False

        if isinstance(exception, AuthenticationError):
            return False

        if isinstance(exception, ModelRequestError):
            return exception.status_code in RETRYABLE_STATUS_CODES

        # Network errors
        return isinstance(exception, httpx.TransportError)

    def _sanitize_error_message(self, message: str) -> str:
        """Remove the API key from an error message."""
        return APIKeyValidator.mask_in_error_message(message, [self.api_key])

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        message = f"{self.display_name} API error {status}"
        if status in (401, 403):
            raise AuthenticationError(
                f"{message}: invalid API key or unauthorized access",
                provider=self.provider_name,
                status_code=status,
            )
        if status == 429:
            raise RateLimitError(
                f"{message}: rate limit exceeded",
                provider=self.provider_name,
                status_code=status,
            )
        if status >= 500:
            raise ServiceUnavailableError(
                f"{message}: service unavailable",
                provider=self.provider_name,
                status_code=status,
            )
        raise ModelRequestError(message, provider=self.provider_name, status_code=status)

    async def _make_request(
        self,
        method: str,
        url: str,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Make an HTTP request with retry logic and error handling.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            data: Request body (JSON encoded)
            params: Query parameters
            headers: Additional headers

        Returns:
            Decoded JSON response

        Raises:
            ModelRequestError: On any failure, or one of its subclasses
                (AuthenticationError, RateLimitError, ServiceUnavailableError)
        """
        await self._initialize_client()

        request_headers = self._get_common_headers()
        request_headers.update(self._get_auth_headers())
        if headers:
            request_headers.update(headers)

        attempt = 0
        while True:
            try:
                self.request_count += 1
                response = await self._client.request(
                    method=method,
                    url=url,
                    json=data,
                    params=params,
                    headers=request_headers,
                )
                self._raise_for_status(response)

                try:
                    return response.json()
                except ValueError as e:
                    raise ModelRequestError(
                        f"Invalid JSON response from {self.display_name}: {e}",
                        provider=self.provider_name,
                        status_code=response.status_code,
                    )

            except (httpx.HTTPError, ModelRequestError) as e:
                self.error_count += 1
                sanitized_msg = self._sanitize_error_message(str(e))

                if self._should_retry(e, attempt):
                    delay = self._calculate_retry_delay(attempt)
                    self.retry_count += 1
                    self.logger.warning(
                        f"Request failed (attempt {attempt + 1}/"
                        f"{self.max_retries + 1}): {sanitized_msg}. "
                        f"Retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    attempt += 1
                    continue

                self.logger.error(f"Request failed permanently: {sanitized_msg}")

                if isinstance(e, ModelRequestError):
                    raise type(e)(
                        sanitized_msg,
                        provider=self.provider_name,
                        status_code=e.status_code,
                    ) from None
                raise ModelRequestError(
                    f"{self.display_name} request failed: {sanitized_msg}",
                    provider=self.provider_name,
                ) from None

    def get_statistics(self) -> Dict[str, Any]:
        """Get client statistics."""
        return {
            "provider": self.provider_name,
            "model": self.model,
            "request_count": self.request_count,
            "error_count": self.error_count,
            "retry_count": self.retry_count,
        }

    async def list_models(self) -> List[str]:
        """
        List available model names.

        The configured model always comes first. Never raises: when the
        server cannot be asked, a static list is returned.
        """
        fallback = unique([self.model, *self.fallback_models])
        if self.requires_key and not self.api_key:
            return fallback

        try:
            names = await self._fetch_model_names()
        except (ModelRequestError, ValueError, TypeError, AttributeError) as e:
            self.logger.debug(f"Could not list models: {e}")
            return fallback

        return unique([self.model, *names])

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Prompt text

        Returns:
            Generated text ("" when the provider returned nothing)

        Raises:
            ModelRequestError: On network or HTTP failure
        """
        pass

    @abstractmethod
    async def _fetch_model_names(self) -> List[str]:
        """Ask the provider for its model names."""
        pass
