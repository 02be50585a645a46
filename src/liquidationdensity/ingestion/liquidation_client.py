"""HTTP client for the liquidation map API with retry and response validation."""

import logging
from typing import Optional

import httpx

from src.liquidationdensity.engine.config import get_source_config
from src.liquidationdensity.models.liquidation_map import LiquidationMap
from src.liquidationdensity.utils.retry import retry_on_error

logger = logging.getLogger(__name__)


class LiquidationMapError(Exception):
    """Raised when the liquidation map cannot be fetched or validated."""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class LiquidationMapClient:
    """Fetches the liquidation map (aggregated bins + raw events)."""

    MAP_ENDPOINT = "/liquidation-map"
    STATUS_ENDPOINT = "/status"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: API base URL (default: LIQUIDATION_API_BASE_URL)
            timeout: Request timeout in seconds (default: HTTP_TIMEOUT)
            max_retries: Attempts for transport errors (default: HTTP_MAX_RETRIES)
            backoff_seconds: Initial retry backoff (default: HTTP_BACKOFF_SECONDS)
            transport: Optional custom transport for testing
        """
        config = get_source_config()
        self.base_url = (base_url or config.liquidation_api_base_url).rstrip("/")
        self.max_retries = max_retries if max_retries is not None else config.max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else config.backoff_seconds
        )

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout if timeout is not None else config.timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def fetch_liquidation_map(self) -> LiquidationMap:
        """
        Fetch and validate the liquidation map.

        Returns:
            Validated LiquidationMap

        Raises:
            LiquidationMapError: On HTTP error status, transport failure after
                retries, or a payload that fails validation
        """
        try:
            response = retry_on_error(
                lambda: self._client.get(self.MAP_ENDPOINT),
                max_attempts=self.max_retries,
                backoff_seconds=self.backoff_seconds,
                retry_on=(httpx.TransportError,),
            )
        except httpx.HTTPError as e:
            raise LiquidationMapError(f"Failed to fetch liquidation map: {e}") from e

        if response.is_error:
            raise LiquidationMapError(
                f"Failed to fetch liquidation map: {response.reason_phrase}",
                status_code=response.status_code,
                reason=response.reason_phrase,
            )

        try:
            return LiquidationMap.model_validate(response.json())
        except ValueError as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            logger.error(f"API validation error: {e}")
            raise LiquidationMapError("Invalid API response format") from e

    def check_status(self) -> dict:
        """Report upstream API status; any failure reads as ``{"status": "error"}``."""
        try:
            response = self._client.get(self.STATUS_ENDPOINT)
            if response.is_error:
                return {"status": "error"}
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Status check failed: {e}")
            return {"status": "error"}

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "LiquidationMapClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
