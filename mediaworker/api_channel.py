"""
ApiChannel - Authenticated HTTP channel to the coordinator or a shard.
"""

import json
import logging
from typing import Any, Dict, Optional

import urllib3


def build_pool(
    connect_timeout: float = 10.0,
    read_timeout: float = 300.0,
    verify_ssl: bool = True
) -> urllib3.PoolManager:
    """Create the connection pool shared by every channel of one worker."""
    return urllib3.PoolManager(
        timeout=urllib3.Timeout(connect=connect_timeout, read=read_timeout),
        retries=False,
        cert_reqs='CERT_REQUIRED' if verify_ssl else 'CERT_NONE',
    )


class ApiChannel:
    """
    HTTP channel bound to one base URL and one set of credentials.

    Every request carries the ``x-api-key`` and ``x-server-id`` headers.
    Responses are returned as-is; callers decide what a failure is.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        server_id: str,
        pool: Optional[urllib3.PoolManager] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize channel.

        Args:
            base_url: Scheme and host, e.g. https://shard-1.example.com
            api_key: API key header value
            server_id: Server identifier header value
            pool: Connection pool (a private one is created if omitted)
            logger: Optional logger instance
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.server_id = server_id
        self.pool = pool or build_pool()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'x-api-key': self.api_key or '',
            'x-server-id': self.server_id or '',
        }

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get(self, path: str) -> urllib3.HTTPResponse:
        url = self.url(path)
        self.logger.debug(f"GET {url}")
        return self.pool.request('GET', url, headers=self.headers)

    def post_json(self, path: str, payload: Any) -> urllib3.HTTPResponse:
        url = self.url(path)
        self.logger.debug(f"POST {url}")
        headers = self.headers
        headers['Content-Type'] = 'application/json'
        return self.pool.request(
            'POST', url,
            body=json.dumps(payload).encode('utf-8'),
            headers=headers,
        )

    def post_multipart(self, path: str, fields: Dict[str, Any]) -> urllib3.HTTPResponse:
        """
        POST a multipart/form-data body.

        Args:
            path: Endpoint path
            fields: Form fields; file parts are (filename, data, content_type)
        """
        url = self.url(path)
        self.logger.debug(f"POST multipart {url}")
        return self.pool.request(
            'POST', url,
            fields=fields,
            headers=self.headers,
        )


def is_success(response) -> bool:
    return 200 <= response.status < 300


def decode_json(response) -> Any:
    """Parse a JSON response body."""
    return json.loads(response.data.decode('utf-8'))
