"""Provider entry point.

One :class:`Provider` owns one authenticated client and one job poller and
hands out resource synchronizers bound to them.
"""

from __future__ import annotations

from typing import Any

import httpx

from keboola_provider.client import KeboolaClient
from keboola_provider.config import ProviderConfig
from keboola_provider.errors import UnknownResourceError
from keboola_provider.jobs import JobPoller
from keboola_provider.resources import RESOURCE_TYPES, Resource

REGISTRY: dict[str, type[Resource]] = {resource.type_name: resource for resource in RESOURCE_TYPES}


class Provider:
    """Keboola resources for an infrastructure-as-code host.

    Example::

        provider = Provider(ProviderConfig.from_env())
        buckets = provider.resource("keboola_storage_bucket")
        state = buckets.create(buckets.state_model(name="sales", stage="in"))
    """

    def __init__(self, config: ProviderConfig, http: httpx.Client | None = None) -> None:
        self.config = config
        self.client = KeboolaClient(
            config.api_key,
            base_urls=config.base_urls,
            timeout=config.request_timeout,
            http=http,
        )
        self.poller = JobPoller(
            self.client,
            poll_interval=config.poll_interval,
            timeout=config.job_timeout,
        )
        self._resources: dict[str, Resource] = {}

    def resource_types(self) -> list[str]:
        return sorted(REGISTRY)

    def resource(self, type_name: str) -> Resource:
        """Return the synchronizer for *type_name*, bound to this provider."""
        if type_name not in self._resources:
            self._resources[type_name] = _lookup(type_name)(self.client, self.poller)
        return self._resources[type_name]

    def schema(self, type_name: str) -> dict[str, Any]:
        """Describe the host-side attributes of *type_name*."""
        resource = _lookup(type_name)
        return {
            "type_name": resource.type_name,
            "attributes": resource.state_model.model_json_schema(),
            "force_new": sorted(resource.force_new),
            "supports_update": resource.supports_update,
            "deprecation_message": resource.deprecation_message,
        }


def _lookup(type_name: str) -> type[Resource]:
    try:
        return REGISTRY[type_name]
    except KeyError:
        raise UnknownResourceError(type_name) from None
