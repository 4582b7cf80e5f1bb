"""Unsubscribe record store: a Supabase (Postgres) table keyed by email."""

from __future__ import annotations

import logging

from supabase import Client, create_client

from unsub.errors import StoreFailure
from unsub.models import UnsubscribeRecord

logger = logging.getLogger(__name__)


def get_client(url: str, key: str) -> Client:
    """Build a Supabase client. Construct once and inject it; nothing here caches it."""
    return create_client(url, key)


class UnsubscribeStore:
    """Get-by-key and put-by-key over the unsubscribe table.

    The table needs a unique constraint on ``email`` so upserts overwrite
    instead of appending.
    """

    def __init__(self, client: Client, table_name: str = "email_unsubscribes") -> None:
        self._client = client
        self.table_name = table_name

    def get(self, email: str) -> UnsubscribeRecord | None:
        """Return the record for an address, or None if it never unsubscribed."""
        try:
            result = (
                self._client.table(self.table_name)
                .select("*")
                .eq("email", email)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.exception("Failed to read unsubscribe record for %s", email)
            raise StoreFailure(str(e)) from e

        if not result.data:
            return None
        return UnsubscribeRecord.from_row(result.data[0])

    def put(self, record: UnsubscribeRecord) -> None:
        """Insert or fully overwrite the record for ``record.email``."""
        try:
            (
                self._client.table(self.table_name)
                .upsert(record.to_row(), on_conflict="email", ignore_duplicates=False)
                .execute()
            )
        except Exception as e:
            logger.exception("Failed to write unsubscribe record for %s", record.email)
            raise StoreFailure(str(e)) from e
        logger.info("Stored unsubscribe for %s (%s)", record.email, record.source)
