"""Storage API access tokens."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from keboola_provider.codec import ZERO_TIME, ApiModel, KBCBoolean, KBCNumberString, KBCTime, Payload
from keboola_provider.resources.base import Resource, ResourceState
from keboola_provider.validators import check_bucket_permissions


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _permissions_map(value: Any) -> Any:
    # An empty map is serialized by the API as [].
    if value is None or value == []:
        return {}
    return value


class AccessTokenState(ResourceState):
    description: str = ""
    can_manage_buckets: bool = False
    can_manage_tokens: bool = False
    can_read_all_file_uploads: bool = False
    # Seconds until expiry; None for a token that never expires.
    expires_in: int | None = None
    component_access: list[str] = Field(default_factory=list)
    bucket_permissions: dict[str, str] = Field(default_factory=dict)


class AccessToken(ApiModel):
    id: KBCNumberString | None = None
    description: str | None = None
    created: KBCTime = ZERO_TIME
    expires: KBCTime = ZERO_TIME
    can_manage_buckets: KBCBoolean = Field(default=False, alias="canManageBuckets")
    can_manage_tokens: KBCBoolean = Field(default=False, alias="canManageTokens")
    can_read_all_file_uploads: KBCBoolean = Field(default=False, alias="canReadAllFileUploads")
    component_access: list[str] = Field(default_factory=list, alias="componentAccess")
    bucket_permissions: Annotated[dict[str, str], BeforeValidator(_permissions_map)] = Field(
        default_factory=dict, alias="bucketPermissions"
    )


def remaining_seconds(expires: datetime, now: datetime) -> int | None:
    if expires == ZERO_TIME:
        return None
    return max(0, int((expires - now).total_seconds()))


class AccessTokenResource(Resource[AccessTokenState]):
    type_name = "keboola_access_token"
    display_name = "Access Token"
    state_model = AccessTokenState
    remote_model = AccessToken

    collection_path = "storage/tokens"
    item_path = "storage/tokens/{id}"

    def validate(self, state: AccessTokenState) -> None:
        check_bucket_permissions("bucket_permissions", state.bucket_permissions)

    def create_payload(self, state: AccessTokenState) -> Payload:
        fields: dict[str, Any] = {
            "description": state.description,
            "canManageBuckets": state.can_manage_buckets,
            "canManageTokens": state.can_manage_tokens,
            "canReadAllFileUploads": state.can_read_all_file_uploads,
        }
        if state.expires_in is not None:
            fields["expiresIn"] = state.expires_in
        fields["componentAccess"] = state.component_access
        fields["bucketPermissions"] = state.bucket_permissions
        return Payload.from_form(fields)

    def apply_remote(self, state: AccessTokenState, remote: AccessToken) -> None:
        state.description = remote.description or ""
        state.can_manage_buckets = remote.can_manage_buckets
        state.can_manage_tokens = remote.can_manage_tokens
        state.can_read_all_file_uploads = remote.can_read_all_file_uploads
        state.expires_in = remaining_seconds(remote.expires, utcnow())
        state.component_access = list(remote.component_access)
        state.bucket_permissions = dict(remote.bucket_permissions)
