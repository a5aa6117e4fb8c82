"""
RequestExecutor — the single path every network call takes.

For each call:
  1. build the request (method, url, headers, params, optional JSON body)
  2. send it over the httpx transport
  3. record one call, the request body length and the response body length
     in the client's Statistics, in a finally block (failed calls count too)

Status codes are not interpreted here: the caller compares them against the
operation's success codes and hands failures to the classifier. Transport
errors (httpx.TransportError: DNS, refused connection, timeout) propagate
unchanged after being counted.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any

import httpx

from racq.domain.models import Statistics

logger = logging.getLogger(__name__)
statistics_logger = logging.getLogger("racq.statistics")


@dataclasses.dataclass
class RequestExecutor:
    """
    Parameters
    ----------
    http       : the httpx.AsyncClient used as transport
    statistics : accumulator owned by the client instance
    """

    http: httpx.AsyncClient
    statistics: Statistics = dataclasses.field(default_factory=Statistics)

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        request = self.http.build_request(
            method,
            url,
            headers=headers,
            params=params or None,
            json=json,
        )
        sent = len(request.content)
        received = 0
        try:
            response = await self.http.send(request)
            received = len(response.content)
            logger.debug("%s %s -> %d", method, request.url, response.status_code)
            return response
        finally:
            self.statistics.record(sent, received)
            statistics_logger.debug(
                "Statistics: calls=%d bytes_sent=%d bytes_received=%d",
                self.statistics.calls,
                self.statistics.bytes_sent,
                self.statistics.bytes_received,
            )
