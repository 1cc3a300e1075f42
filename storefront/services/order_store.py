"""Append-only purchase storage backed by Supabase."""

import logging

from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import Client

from storefront.core.config import get_settings
from storefront.core.supabase import get_supabase_client
from storefront.schemas.purchase import PurchaseRecord

logger = logging.getLogger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class DuplicateOrderError(Exception):
    """A purchase with this id already exists. Callers treat it as success."""

    def __init__(self, user_id: str, purchase_id: str) -> None:
        self.user_id = user_id
        self.purchase_id = purchase_id
        super().__init__(f"Purchase {purchase_id} already recorded for user {user_id}")


class OrderStore:
    """Purchase records keyed by the processor payment id.

    The table's primary key is the purchase id, so two concurrent inserts for
    the same payment cannot both succeed; the loser gets DuplicateOrderError.
    """

    def __init__(self, client: Client | None = None, table: str | None = None) -> None:
        """Initialize order store with Supabase client.

        Args:
            client: Supabase client. Defaults to the cached singleton.
            table: Table name. Defaults to settings.purchases_table.
        """
        self.client = client if client is not None else get_supabase_client()
        self.table = table or get_settings().purchases_table

    async def get(self, user_id: str, purchase_id: str) -> PurchaseRecord | None:
        """Get one purchase owned by a user.

        Returns:
            PurchaseRecord | None: The record, or None if not found.
        """
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("id", purchase_id)
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
        row = response.data if response and response.data else None
        return PurchaseRecord.from_row(row) if row else None

    async def insert(self, record: PurchaseRecord) -> PurchaseRecord:
        """Create a purchase record.

        Raises:
            DuplicateOrderError: If a record with this purchase id exists.
        """
        try:
            response = self.client.table(self.table).insert(record.to_row()).execute()
        except PostgrestAPIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise DuplicateOrderError(record.user_id, record.purchase_id) from e
            raise

        rows = response.data or []
        return PurchaseRecord.from_row(rows[0]) if rows else record

    async def list_for_user(self, user_id: str) -> list[PurchaseRecord]:
        """Get all purchases of a user, newest first."""
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("user_id", user_id)
            .order("timestamp", desc=True)
            .execute()
        )
        return [PurchaseRecord.from_row(row) for row in response.data or []]

    async def has_purchases(self, user_id: str) -> bool:
        """Check whether a user has bought anything."""
        response = (
            self.client.table(self.table)
            .select("id")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return bool(response.data)
