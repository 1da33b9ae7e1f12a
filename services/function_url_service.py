"""
Function URL service for smoke-testing a deployed workshop function.
"""
import json
import requests
from dataclasses import dataclass
from typing import Any, Dict, Optional
from logger_config import get_logger
from utils.exceptions import FunctionURLCheckError

logger = get_logger(__name__)


@dataclass
class FunctionURLResponse:
    """Outcome of a Function URL call."""

    url: str
    status_code: int
    body: Any
    elapsed_ms: float


class FunctionURLService:
    """Service for calling a Lambda Function URL over HTTPS."""

    DEFAULT_HEADERS = {
        'Accept': 'application/json',
        'User-Agent': 'lambda-workshop-verify/1.0',
    }

    def __init__(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: int = 30
    ) -> None:
        """
        Initialize Function URL service.

        Args:
            url: The function's URL, as returned by GetFunctionUrlConfig
            headers: Optional custom headers (defaults to DEFAULT_HEADERS)
            timeout: Request timeout in seconds
        """
        self.url: str = url
        self.headers: Dict[str, str] = headers or self.DEFAULT_HEADERS
        self.timeout = timeout

    def invoke(self, payload: Optional[Dict[str, Any]] = None) -> FunctionURLResponse:
        """
        Call the function and require an HTTP 200 answer.

        A GET is sent without payload, a POST with the payload as JSON.

        Returns:
            The decoded response

        Raises:
            FunctionURLCheckError: If the request fails or the status is not 200
        """
        try:
            if payload is None:
                response = requests.get(
                    self.url, headers=self.headers, timeout=self.timeout
                )
            else:
                response = requests.post(
                    self.url, headers=self.headers, json=payload,
                    timeout=self.timeout
                )
        except requests.RequestException as e:
            logger.error(f'Function URL request failed: {str(e)}')
            raise FunctionURLCheckError(
                f'Request to {self.url} failed: {str(e)}', url=self.url
            ) from e

        if response.status_code != 200:
            logger.error(
                f'Function URL answered {response.status_code}: {response.text[:200]}'
            )
            raise FunctionURLCheckError(
                f'Expected HTTP 200 from {self.url}, got {response.status_code}',
                url=self.url,
                status_code=response.status_code
            )

        try:
            body = response.json()
        except (ValueError, json.JSONDecodeError):
            body = response.text

        elapsed_ms = response.elapsed.total_seconds() * 1000
        logger.info(f'Function URL answered 200 in {elapsed_ms:.0f}ms')
        return FunctionURLResponse(
            url=self.url,
            status_code=response.status_code,
            body=body,
            elapsed_ms=elapsed_ms,
        )
