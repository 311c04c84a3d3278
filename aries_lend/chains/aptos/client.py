"""Aptos REST client with fallback support."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import ExternalFailure, NotFoundError

logger = logging.getLogger(__name__)


class AptosClient:
    """Aptos fullnode REST client with automatic endpoint fallback.

    A 404 is an answer, not an outage: it raises ``NotFoundError`` straight
    away instead of trying the next endpoint.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = [url.rstrip("/") for url in config.rest_endpoints]
        self.timeout = config.rest_timeout
        self.current_rest_index = 0

    async def request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> Any:
        """Issue a REST request, falling back to alternative endpoints."""
        if not self.endpoints:
            raise ExternalFailure("No REST endpoints configured")

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rest_index = (self.current_rest_index + attempt) % len(self.endpoints)
            url = f"{self.endpoints[rest_index]}{path}"

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.request(
                        method,
                        url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        if response.status == 404:
                            body = await response.text()
                            raise NotFoundError(f"Not found: {path} ({body})")
                        if response.status >= 400:
                            body = await response.text()
                            raise ExternalFailure(
                                f"HTTP {response.status} from {url}",
                                status_code=response.status,
                                response_body=body,
                            )
                        result = await response.json()

                        if rest_index != self.current_rest_index:
                            logger.info("Switched to REST endpoint: %s", url)
                            self.current_rest_index = rest_index

                        return result
            except NotFoundError:
                raise
            except Exception as e:
                last_error = e
                logger.warning("REST endpoint %s failed: %s", url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        status_code = getattr(last_error, "status_code", None)
        response_body = getattr(last_error, "response_body", None)
        raise ExternalFailure(
            f"All REST endpoints failed. Last error: {last_error}",
            status_code=status_code,
            response_body=response_body,
        )

    async def get_account_resource(
        self, address: str, resource_type: str
    ) -> dict[str, Any]:
        """Get one Move resource stored under ``address``."""
        return await self.request(
            "GET", f"/accounts/{address}/resource/{resource_type}"
        )

    async def view(
        self, function: str, type_arguments: list[str], arguments: list[Any]
    ) -> list[Any]:
        """Call a view function and return its result list."""
        result = await self.request(
            "POST",
            "/view",
            {
                "function": function,
                "type_arguments": type_arguments,
                "arguments": arguments,
            },
        )
        logger.debug("view %s%s -> %s", function, type_arguments, result)
        return result

    async def get_table_item(
        self, handle: str, key_type: str, value_type: str, key: Any
    ) -> dict[str, Any]:
        """Get a table item by key."""
        return await self.request(
            "POST",
            f"/tables/{handle}/item",
            {"key_type": key_type, "value_type": value_type, "key": key},
        )
