"""Access the Sightline REST API notification group endpoints."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from sightline_api.rest.api import RestApi

ENDPOINT = "notification_groups"


class NotificationGroupApi(RestApi):
    cache_key_prefix = "sightline_rest_ng"

    def get_notification_groups(self, filters: Any = None, per_page: int = 50) -> list[dict[str, Any]]:
        """Get every notification group matching *filters*."""
        return self.find_rest(ENDPOINT, filters, per_page)

    def create_notification_group(
        self,
        name: str,
        email_addresses: Optional[list[str]] = None,
        extra_attributes: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Create a notification group.

        Email addresses are sent space-separated in ``smtp_email_addresses``.
        """
        attributes: dict[str, Any] = {"name": name}
        if email_addresses is not None:
            attributes["smtp_email_addresses"] = " ".join(email_addresses)
        if extra_attributes:
            attributes.update(extra_attributes)

        return self.create_record(ENDPOINT, attributes)

    def change_notification_group(self, sightline_id: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        return self.change_record(ENDPOINT, sightline_id, attributes)
