"""Storage buckets."""

from __future__ import annotations

from keboola_provider.codec import ApiModel, Payload
from keboola_provider.resources.base import Resource, ResourceState
from keboola_provider.validators import BUCKET_BACKENDS, BUCKET_STAGES, check_one_of

# The API stores bucket names with this prefix.
BUCKET_NAME_PREFIX = "c-"


class StorageBucketState(ResourceState):
    name: str
    stage: str
    description: str = ""
    backend: str = ""


class StorageBucket(ApiModel):
    id: str | None = None
    name: str = ""
    stage: str = ""
    description: str | None = None
    backend: str | None = None


class StorageBucketResource(Resource[StorageBucketState]):
    type_name = "keboola_storage_bucket"
    display_name = "Storage Bucket"
    state_model = StorageBucketState
    remote_model = StorageBucket

    collection_path = "storage/buckets"
    item_path = "storage/buckets/{id}"
    supports_update = False
    force_new = frozenset({"name", "stage", "description", "backend"})

    def validate(self, state: StorageBucketState) -> None:
        check_one_of("stage", state.stage, BUCKET_STAGES)
        check_one_of("backend", state.backend, BUCKET_BACKENDS, allow_empty=True)

    def create_payload(self, state: StorageBucketState) -> Payload:
        return Payload.from_form(
            {
                "name": state.name,
                "stage": state.stage,
                "description": state.description,
                "backend": state.backend,
            }
        )

    def apply_remote(self, state: StorageBucketState, remote: StorageBucket) -> None:
        state.id = remote.id or state.id
        state.name = remote.name.removeprefix(BUCKET_NAME_PREFIX)
        state.stage = remote.stage
        state.description = remote.description or ""
        state.backend = remote.backend or ""
