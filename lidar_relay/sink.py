import logging
from typing import Optional

import requests

from lidar_relay.config import SinkConfig
from lidar_relay.errors import DispatchError
from lidar_relay.pipeline import ScanResult

logger = logging.getLogger(__name__)


class HttpSink:
    """
    POSTs each scan result as JSON to the collector. The response body is ignored.
    """

    def __init__(self, url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: SinkConfig, session: Optional[requests.Session] = None) -> "HttpSink":
        return cls(config.url, timeout=config.timeout, session=session)

    def send(self, result: ScanResult) -> None:
        try:
            response = self.session.post(self.url, json=result.to_payload(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DispatchError(f"POST {self.url} failed: {e}") from e
        logger.debug("POST %s -> %s", self.url, response.status_code)

    def close(self) -> None:
        self.session.close()
