"""The Create/Read/Update/Delete template every resource kind follows.

A concrete resource is mostly data: where it lives (endpoint family and
path templates), what its host-side state looks like, and how that state
maps to and from the remote API.  Control flow lives here.

Operations take the host's state object, mutate it to reflect what the
remote API assigned or reports, and return it.  Failures propagate as
:class:`~keboola_provider.errors.KeboolaError` subclasses; a 404 on Read or
Delete means the resource is gone and only clears ``state.id``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar, Generic, Iterable, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict

from keboola_provider.client import KeboolaClient, raise_for_status
from keboola_provider.codec import ApiModel, KBCNumberString, Payload, decode_json
from keboola_provider.endpoints import EndpointFamily
from keboola_provider.errors import ValidationError
from keboola_provider.jobs import JobPoller, JobStatus, expect_success

logger = logging.getLogger(__name__)


class ResourceState(BaseModel):
    """Host-side attributes of one managed resource."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None


class CreatedResource(ApiModel):
    """Body of a successful create call: the new id, or a job reference."""

    id: KBCNumberString | None = None
    url: str | None = None
    status: str | None = None


StateT = TypeVar("StateT", bound=ResourceState)


class Resource(Generic[StateT]):
    type_name: ClassVar[str]
    display_name: ClassVar[str]
    state_model: ClassVar[type[ResourceState]]
    # Shape of the GET response; None keeps the raw JSON.
    remote_model: ClassVar[Any] = None

    family: ClassVar[EndpointFamily] = EndpointFamily.STORAGE
    collection_path: ClassVar[str] = ""
    item_path: ClassVar[str] = ""
    update_method: ClassVar[str] = "PUT"
    supports_update: ClassVar[bool] = True

    force_new: ClassVar[frozenset[str]] = frozenset()
    deprecation_message: ClassVar[str | None] = None

    job_backed: ClassVar[bool] = False
    job_family: ClassVar[EndpointFamily] = EndpointFamily.SYRUP

    def __init__(self, client: KeboolaClient, poller: JobPoller) -> None:
        self.client = client
        self.poller = poller

    # -- hooks -------------------------------------------------------------

    def validate(self, state: StateT) -> None:
        """Check client-side constraints before anything is sent."""

    def create_payload(self, state: StateT) -> Payload:
        raise NotImplementedError

    def update_payload(self, state: StateT, changed: frozenset[str]) -> Payload:
        return self.create_payload(state)

    def apply_remote(self, state: StateT, remote: Any) -> None:
        raise NotImplementedError

    def job_status_url(self, created: CreatedResource) -> str:
        if not created.url:
            raise ValidationError(f"{self.display_name} create response carries no job URL")
        return created.url

    def resource_id(self, state: StateT, created: CreatedResource, job: JobStatus | None) -> str | None:
        if job is not None:
            return job.result_id
        return created.id

    def after_create(self, state: StateT) -> None:
        """Follow-up calls once the resource has an id."""

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def path_for(template: str, state: ResourceState, **extra: Any) -> str:
        """Fill *template* with url-escaped scalar attributes of *state*."""
        values = {
            key: quote(str(value), safe="")
            for key, value in {**dict(state), **extra}.items()
            if isinstance(value, (str, int))
        }
        return template.format(**values)

    def _call(
        self,
        method: str,
        family: EndpointFamily,
        path: str,
        payload: Payload | None = None,
        *,
        absent_ok: bool = False,
    ) -> httpx.Response | None:
        response = self.client.request(method, family, path, payload)
        if absent_ok and response.status_code == 404:
            logger.debug("%s %s: resource absent", method, path)
            return None
        return raise_for_status(response)

    def _fetch(self, state: StateT) -> Any:
        response = self._call("GET", self.family, self.path_for(self.item_path, state), absent_ok=True)
        if response is None:
            return None
        return decode_json(response.content, self.remote_model)

    def _read_modify_write(
        self,
        get_path: str,
        splice: Callable[[dict[str, Any]], Payload],
        *,
        put_family: EndpointFamily | None = None,
        put_path: str | None = None,
    ) -> httpx.Response:
        """GET the current object, let *splice* build the new body, PUT it back."""
        current = decode_json(raise_for_status(self.client.get(self.family, get_path)).content)
        if not isinstance(current, dict):
            current = {}
        payload = splice(current)
        return self._call("PUT", put_family or self.family, put_path or get_path, payload)

    def _await_job(self, status_url: str, family: EndpointFamily | None = None) -> JobStatus:
        return expect_success(self.poller.await_completion(status_url, family or self.job_family))

    def _submit(self, state: StateT) -> CreatedResource:
        path = self.path_for(self.collection_path, state)
        response = self._call("POST", self.family, path, self.create_payload(state))
        return decode_json(response.content, CreatedResource)

    # -- lifecycle ---------------------------------------------------------

    def create(self, state: StateT) -> StateT:
        logger.info("Creating %s in Keboola.", self.display_name)
        if self.deprecation_message:
            logger.warning("%s: %s", self.type_name, self.deprecation_message)
        self.validate(state)

        created = self._submit(state)
        job = self._await_job(self.job_status_url(created)) if self.job_backed else None

        state.id = self.resource_id(state, created, job)
        if not state.id:
            raise ValidationError(f"{self.display_name} create response carries no id")
        self.after_create(state)
        return self.read(state)

    def read(self, state: StateT) -> StateT:
        logger.info("Reading %s from Keboola.", self.display_name)
        if not state.id:
            return state

        remote = self._fetch(state)
        if remote is None:
            logger.info("%s %s no longer exists.", self.display_name, state.id)
            state.id = None
            return state

        self.apply_remote(state, remote)
        return state

    def update(self, state: StateT, changed: Iterable[str] | None = None) -> StateT:
        changed_fields = self._changed_fields(state, changed)
        logger.info("Updating %s in Keboola: %s", self.display_name, state.id)
        if not self.supports_update or self.requires_replacement(changed_fields):
            raise ValidationError(
                f"{self.display_name} cannot be updated in place; changed: {', '.join(sorted(changed_fields))}"
            )
        self.validate(state)
        self._apply_update(state, changed_fields)
        return self.read(state)

    def _apply_update(self, state: StateT, changed: frozenset[str]) -> None:
        path = self.path_for(self.item_path, state)
        self._call(self.update_method, self.family, path, self.update_payload(state, changed))

    def delete(self, state: StateT) -> StateT:
        logger.info("Deleting %s in Keboola: %s", self.display_name, state.id)
        if state.id:
            self._call("DELETE", self.family, self.path_for(self.item_path, state), absent_ok=True)
        state.id = None
        return state

    def requires_replacement(self, changed: Iterable[str]) -> bool:
        if not self.supports_update:
            return True
        return bool(self.force_new.intersection(changed))

    def _changed_fields(self, state: StateT, changed: Iterable[str] | None) -> frozenset[str]:
        if changed is None:
            return frozenset(name for name in type(state).model_fields if name != "id")
        return frozenset(changed)
