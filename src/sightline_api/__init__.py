"""sightline_api -- Client library for the Arbor/NETSCOUT Sightline APIs.

This package wraps the three interfaces of a Sightline leader behind one
façade:

* the SOAP API (traffic graphs, XML traffic queries, CLI commands),
* the legacy web-services API (``/arborws/``),
* the REST API (``/api/sp/``, JSON:API).

Typical use::

    from sightline_api.client import SightlineClient
    from sightline_api.config import load_config

    with SightlineClient(load_config()) as client:
        for mo in client.managed_objects.get_managed_objects():
            print(mo["id"], mo["attributes"]["name"])

Modules:
    client: The :class:`~sightline_api.client.SightlineClient` façade.
    documents: XML query/graph and JSON traffic-query document builders.
    rest: REST accessors, paging and resource helpers.
    ws / soap: Web-services and SOAP traffic sources.
    traffic: Canned traffic reports over either traffic source.
    cache: diskcache-backed response cache and key derivation.
    config: XDG-aware configuration loading.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"
