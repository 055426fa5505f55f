"""Access the Sightline REST API mitigation template endpoints."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Optional

from sightline_api.rest.api import RestApi

ENDPOINT = "mitigation_templates"


class MitigationTemplateApi(RestApi):
    """Mitigation templates: reusable countermeasure configurations."""

    cache_key_prefix = "sightline_rest_mt"

    def get_mitigation_templates(self, filters: Any = None, per_page: int = 50) -> list[dict[str, Any]]:
        """Get every mitigation template matching *filters*."""
        return self.find_rest(ENDPOINT, filters, per_page)

    def copy_mitigation_template(self, template_id: str, name: str, description: str) -> dict[str, Any]:
        """Create a new template from the countermeasures of *template_id*.

        Args:
            template_id: ID of the template to copy.
            name: Name of the new template.
            description: Description of the new template.
        """
        existing = copy.deepcopy(self.get_by_id(ENDPOINT, template_id))
        data = existing["data"]
        attributes = data["attributes"]
        subobject = attributes.get("subobject") or {}

        # Some releases return an empty list here, which the API then rejects.
        if not subobject.get("ip_location_policing"):
            subobject.pop("ip_location_policing", None)

        return self.create_mitigation_template(
            name,
            attributes["ip_version"],
            description,
            subobject,
            data.get("relationships") or {},
            attributes.get("subtype", "tms"),
        )

    def create_mitigation_template(
        self,
        name: str,
        ip_version: str,
        description: str,
        countermeasures: Mapping[str, Any],
        relationships: Optional[Mapping[str, Any]] = None,
        subtype: str = "tms",
    ) -> dict[str, Any]:
        """Create a mitigation template.

        Args:
            name: Name of the template.
            ip_version: IP version of the template.
            description: Description of the template.
            countermeasures: Countermeasure settings (the ``subobject``).
            relationships: Relationships of the template.
            subtype: Template subtype.
        """
        attributes = {
            "name": name,
            "ip_version": ip_version,
            "description": description,
            "subtype": subtype,
            "subobject": dict(countermeasures),
        }
        return self.create_record(
            ENDPOINT,
            attributes,
            relationships if relationships is not None else {},
            resource_type="mitigation_template",
        )

    def change_mitigation_template(
        self,
        sightline_id: str,
        attributes: Mapping[str, Any],
        relationships: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        return self.change_record(ENDPOINT, sightline_id, attributes, relationships)
