"""
Dispatcher: writes every record to every destination sheet via the webhook.

Pairs are sent with bounded concurrency. A transport failure on one pair is
recorded on that pair's result and does not cancel the others, unless
dispatch_fail_fast is set.
"""

import asyncio
import logging
from typing import Sequence

import httpx

from ..config import Settings, get_settings
from ..models import DispatchResult, Record
from .exceptions import DispatchTransportError

logger = logging.getLogger(__name__)

DEFAULT_DESTINATION = ""


def parse_destinations(sheet_names: str | None) -> list[str]:
    """
    Split a comma-separated list of sheet names.

    Parts are trimmed and blank parts dropped; duplicates are kept. An empty
    or absent value yields the single default destination "".
    """
    if not sheet_names:
        return [DEFAULT_DESTINATION]
    destinations = [part.strip() for part in sheet_names.split(",") if part.strip()]
    return destinations or [DEFAULT_DESTINATION]


class Dispatcher:
    """Sends (record, destination) writes to the spreadsheet webhook."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.webhook_url = settings.google_script_webhook_url
        self.timeout = settings.webhook_timeout
        self.concurrency = settings.dispatch_concurrency
        self.fail_fast = settings.dispatch_fail_fast
        self._transport = transport

    async def dispatch(
        self,
        records: Sequence[Record],
        destinations: Sequence[str],
        overwrite: bool = False,
    ) -> list[DispatchResult]:
        """
        Write every record to every destination.

        Args:
            records: Records in the order they were extracted.
            destinations: At least one destination ("" for the default sheet).
            overwrite: Forwarded to the webhook unchanged.

        Returns:
            One result per pair, record-major and destination-minor.

        Raises:
            DispatchTransportError: If no webhook URL is configured, or a
                pair fails while dispatch_fail_fast is set.
        """
        if not self.webhook_url:
            raise DispatchTransportError(
                "Webhook URL not configured. Set GOOGLE_SCRIPT_WEBHOOK_URL environment variable."
            )
        destinations = list(destinations) or [DEFAULT_DESTINATION]
        pairs = [(record, destination) for record in records for destination in destinations]
        if not pairs:
            return []

        logger.info(
            "Dispatching %d record(s) to %d destination(s) (%d writes, concurrency=%d)",
            len(records),
            len(destinations),
            len(pairs),
            self.concurrency,
        )

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            if self.fail_fast:
                # Sequential; the first transport failure aborts the rest
                results = []
                for record, destination in pairs:
                    results.append(await self.send(client, record, destination, overwrite))
            else:
                semaphore = asyncio.Semaphore(self.concurrency)

                async def run(record: Record, destination: str) -> DispatchResult:
                    async with semaphore:
                        return await self._send_captured(client, record, destination, overwrite)

                # gather preserves argument order, so results stay record-major
                results = await asyncio.gather(*(run(record, destination) for record, destination in pairs))

        failed = sum(1 for result in results if not result.ok)
        if failed:
            logger.warning("%d of %d webhook writes failed", failed, len(results))
        return list(results)

    async def _send_captured(
        self,
        client: httpx.AsyncClient,
        record: Record,
        destination: str,
        overwrite: bool,
    ) -> DispatchResult:
        try:
            return await self.send(client, record, destination, overwrite)
        except DispatchTransportError as e:
            return DispatchResult(
                imei=record.imei,
                name=record.name,
                sheet_name=destination,
                status=f"error: {e}",
                ok=False,
            )

    async def send(
        self,
        client: httpx.AsyncClient,
        record: Record,
        destination: str,
        overwrite: bool,
    ) -> DispatchResult:
        """POST one record to one destination and return the webhook's reply."""
        payload = {
            "imei": record.imei,
            "name": record.name,
            "sheetName": destination,
            "overwrite": overwrite,
        }
        try:
            response = await client.post(self.webhook_url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(
                "Webhook call failed for IMEI %s (sheet %r): %s",
                record.imei,
                destination,
                e,
            )
            raise DispatchTransportError(
                f"Webhook request failed: {e}",
                imei=record.imei,
                sheet_name=destination,
            ) from e

        ok = response.is_success
        if not ok:
            logger.warning(
                "Webhook answered %d for IMEI %s (sheet %r)",
                response.status_code,
                record.imei,
                destination,
            )
        return DispatchResult(
            imei=record.imei,
            name=record.name,
            sheet_name=destination,
            status=response.text,
            ok=ok,
        )


# =============================================================================
# Singleton Factory
# =============================================================================

_dispatcher: Dispatcher | None = None


def get_dispatcher() -> Dispatcher:
    """Get or create the dispatcher singleton."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = Dispatcher(get_settings())
    return _dispatcher
