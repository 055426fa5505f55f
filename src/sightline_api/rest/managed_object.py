"""Access the Sightline REST API managed object endpoints."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from sightline_api.rest.api import RestApi

ENDPOINT = "managed_objects"

# Disables shared host detection unless the caller supplies relationships.
DEFAULT_RELATIONSHIPS: dict[str, Any] = {
    "shared_host_detection_settings": {
        "data": {"type": "shared_host_detection_setting", "id": "0"},
    },
}


class ManagedObjectApi(RestApi):
    """Managed objects: named traffic classifications (peer, profile, customer)."""

    cache_key_prefix = "sightline_rest_managed_object"

    def get_managed_objects(self, filters: Any = None, per_page: int = 50) -> list[dict[str, Any]]:
        """Get every managed object matching *filters*."""
        return self.find_rest(ENDPOINT, filters, per_page)

    def create_managed_object(
        self,
        name: str,
        family: str,
        tags: list[str],
        match_type: str,
        match: str,
        relationships: Optional[Mapping[str, Any]] = None,
        extra_attributes: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Create a managed object.

        Args:
            name: Name of the managed object.
            family: ``peer``, ``profile`` or ``customer``.
            tags: Tags to add to the managed object.
            match_type: What kind of match this is, e.g. ``cidr_blocks``.
            match: What to match against.
            relationships: Relationships of the managed object. Defaults to
                disabling shared host detection settings.
            extra_attributes: Further attributes merged over the required
                ones.
        """
        attributes: dict[str, Any] = {
            "name": name,
            "family": family,
            "tags": tags,
            "match": match,
            "match_type": match_type,
        }
        if extra_attributes:
            attributes.update(extra_attributes)

        if relationships is None:
            relationships = DEFAULT_RELATIONSHIPS

        return self.create_record(ENDPOINT, attributes, relationships)

    def change_managed_object(
        self,
        sightline_id: str,
        attributes: Mapping[str, Any],
        relationships: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Change attributes (and optionally relationships) of a managed object."""
        return self.change_record(ENDPOINT, sightline_id, attributes, relationships)
