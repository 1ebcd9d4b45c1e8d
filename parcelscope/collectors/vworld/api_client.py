"""
V-World API client

Handles communication with the V-World open API:
- Credential and domain parameters
- Timeout and transport error mapping
- JSON decoding (V-World answers some errors with XML documents)

No retries: callers decide what a failed call means.
"""

from typing import Dict, Any, Optional
import requests
from loguru import logger

from ...config import get_config, PipelineConfig, Credentials
from ...errors import (
    UpstreamError,
    UpstreamTimeout,
    UpstreamFormatError,
    UpstreamStatusError,
    MissingCredential,
)


class VWorldAPIClient:
    """Client for the V-World request endpoints (wfs, wms, search)"""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or get_config()
        self.session = session or requests.Session()
        self.timeout = self.config.api.geometry_timeout_s

    @property
    def api_key(self) -> str:
        key = self.config.credentials.vworld_api_key
        if not Credentials.is_usable(key):
            raise MissingCredential("V-World API Key is missing")
        return key

    @property
    def domain(self) -> str:
        return self.config.api.vworld_domain

    def get(self, url: str, params: Dict[str, Any]) -> requests.Response:
        """
        Issue one GET request

        Raises:
            UpstreamTimeout: on connect/read timeout
            UpstreamStatusError: on HTTP error status
            UpstreamError: on any other transport failure
        """
        headers = {"User-Agent": self.config.api.user_agent}
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(f"V-World timeout after {self.timeout}s: {url}")
            raise UpstreamTimeout(f"V-World request timed out after {self.timeout}s", url=url) from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"V-World request failed: {e}")
            raise UpstreamError(f"V-World request failed: {e}", url=url) from e

        if response.status_code >= 400:
            logger.warning(f"V-World HTTP {response.status_code}: {url}")
            raise UpstreamStatusError(
                f"V-World HTTP error {response.status_code}",
                code=str(response.status_code),
                url=url,
            )
        return response

    def get_json(self, url: str, params: Dict[str, Any]) -> Any:
        """GET and decode a JSON body; XML or other text raises UpstreamFormatError"""
        response = self.get(url, params)
        text = response.text or ""
        if text.lstrip().startswith("<"):
            logger.error(f"Received XML response instead of JSON from {url}")
            raise UpstreamFormatError(f"Received XML response from V-World: {text[:500]}", url=url)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFormatError(f"V-World returned non-JSON body: {text[:200]}", url=url) from e
