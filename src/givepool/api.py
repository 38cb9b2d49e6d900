"""Supabase (PostgREST) client for organizations, orders and subscriptions."""

import logging
from typing import Optional

import requests

from .config import Settings
from .exceptions import StoreError

logger = logging.getLogger(__name__)

ORGANIZATIONS_TABLE = "organization_applications"
ORDERS_TABLE = "stripe_user_orders"
SUBSCRIPTIONS_TABLE = "stripe_user_subscriptions"


def build_headers(settings: Settings) -> dict:
    """Auth headers for the REST endpoint.

    The user's access token scopes the order and subscription views to that
    user; without one the anon key is sent as the bearer.
    """
    if not settings.has_store:
        raise StoreError("SUPABASE_URL and SUPABASE_KEY must be set")
    return {
        "apikey": settings.supabase_key,
        "Authorization": f"Bearer {settings.access_token or settings.supabase_key}",
        "User-Agent": "givepool/1.0",
    }


def rest_url(settings: Settings, table: str) -> str:
    return f"{settings.supabase_url.rstrip('/')}/rest/v1/{table}"


class SupabaseAPI:
    """Client for the Supabase REST API."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.timeout = settings.timeout
        self.session = requests.Session()
        self.session.headers.update(build_headers(settings))

    def get_approved_organizations(self) -> list[dict]:
        """Approved organization applications, oldest first."""
        return self._select(ORGANIZATIONS_TABLE, {
            "select": "*",
            "status": "eq.approved",
            "order": "created_at.asc",
        })

    def get_orders(self) -> list[dict]:
        """The signed-in user's order history, newest first."""
        return self._select(ORDERS_TABLE, {
            "select": "*",
            "order": "order_date.desc",
        })

    def get_subscription(self) -> Optional[dict]:
        """The signed-in user's subscription row, or None."""
        rows = self._select(SUBSCRIPTIONS_TABLE, {"select": "*", "limit": "1"})
        return rows[0] if rows else None

    def get_active_subscriptions(self) -> list[dict]:
        """All active subscriptions (requires a service key)."""
        return self._select(SUBSCRIPTIONS_TABLE, {
            "select": "*",
            "subscription_status": "eq.active",
        })

    def _select(self, table: str, params: dict) -> list[dict]:
        url = rest_url(self.settings, table)
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            if resp.status_code == 200:
                return resp.json()
            else:
                logger.warning(f"Supabase returned status {resp.status_code} for {table}")
                return []
        except requests.RequestException as e:
            logger.error(f"Error fetching {table}: {e}")
            return []
