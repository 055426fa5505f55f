"""Sightline REST API accessors.

:class:`RestApi` holds the shared paging and caching logic; the resource
classes add typed helpers for one endpoint each and keep their own cache
key prefix.
"""

from sightline_api.rest.api import RestApi
from sightline_api.rest.filters import filter_to_url
from sightline_api.rest.managed_object import ManagedObjectApi
from sightline_api.rest.mitigation_template import MitigationTemplateApi
from sightline_api.rest.notification_group import NotificationGroupApi
from sightline_api.rest.paged import PagedFetcher
from sightline_api.rest.traffic_query import TrafficQueryApi

__all__ = [
    "ManagedObjectApi",
    "MitigationTemplateApi",
    "NotificationGroupApi",
    "PagedFetcher",
    "RestApi",
    "TrafficQueryApi",
    "filter_to_url",
]
