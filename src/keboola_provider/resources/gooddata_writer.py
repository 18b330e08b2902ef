"""GoodData writers and their tables.

Creating a writer provisions a GoodData project through Syrup, which runs
as a job, and then stores the writer configuration under the caller-chosen
writer id.  Writer tables live on Syrup only, keyed by their title.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from keboola_provider.client import raise_for_status
from keboola_provider.codec import ApiModel, KBCBoolean, KBCBooleanNumber, KBCNumberString, Payload, decode_json
from keboola_provider.endpoints import EndpointFamily
from keboola_provider.jobs import JobStatus
from keboola_provider.resources.base import CreatedResource, Resource, ResourceState
from keboola_provider.resources.configurations import (
    ComponentConfiguration,
    configs_path,
    configuration_form,
    object_or_empty,
)

GOODDATA_WRITER_COMPONENT = "gooddata-writer"
DEFAULT_AUTH_TOKEN = "keboola_demo"


class GoodDataWriterState(ResourceState):
    writer_id: str
    name: str
    description: str = ""
    auth_token: str = DEFAULT_AUTH_TOKEN


class CreateGoodDataProject(ApiModel):
    writer_id: str = Field(alias="writerId")
    description: str = ""
    auth_token: str = Field(alias="authToken")


class GoodDataWriterResource(Resource[GoodDataWriterState]):
    type_name = "keboola_gooddata_writer"
    display_name = "GoodData Writer"
    state_model = GoodDataWriterState
    remote_model = ComponentConfiguration
    deprecation_message = (
        "keboola_gooddata_writer provisions projects through the legacy GoodData writer API "
        "and will be removed in a future release."
    )

    item_path = configs_path(GOODDATA_WRITER_COMPONENT) + "/{id}"
    force_new = frozenset({"writer_id", "auth_token"})
    job_backed = True

    def _submit(self, state: GoodDataWriterState) -> CreatedResource:
        project = CreateGoodDataProject(
            writer_id=state.writer_id,
            description=state.description,
            auth_token=state.auth_token,
        )
        response = self._call("POST", EndpointFamily.SYRUP, "gooddata-writer/v2", Payload.from_json(project))
        return decode_json(response.content, CreatedResource)

    def resource_id(self, state: GoodDataWriterState, created: CreatedResource, job: JobStatus | None) -> str:
        return state.writer_id

    def create_payload(self, state: GoodDataWriterState) -> Payload:
        return configuration_form(name=state.name, description=state.description)

    def after_create(self, state: GoodDataWriterState) -> None:
        self._apply_update(state, frozenset({"name", "description"}))

    def apply_remote(self, state: GoodDataWriterState, remote: ComponentConfiguration) -> None:
        state.writer_id = remote.id or state.writer_id
        state.name = remote.name
        state.description = remote.description or ""

    def delete(self, state: GoodDataWriterState) -> GoodDataWriterState:
        """Remove the writer from Syrup, then its storage configuration."""
        if state.id:
            writer_path = self.path_for("gooddata-writer/configs/{id}", state)
            self._call("DELETE", EndpointFamily.SYRUP, writer_path, absent_ok=True)
        return super().delete(state)


# ---------------------------------------------------------------------------
# Writer tables
# ---------------------------------------------------------------------------

class GoodDataColumnState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    type: str
    title: str = ""
    data_type: str = ""
    data_type_size: str = ""
    format: str = ""


class GoodDataTableState(ResourceState):
    writer_id: str
    title: str
    export: bool
    identifier: str = ""
    # Days loaded incrementally; 0 loads the whole table.
    incremental_load: int = 0
    columns: list[GoodDataColumnState] = Field(default_factory=list)


class GoodDataColumn(ApiModel):
    name: str = ""
    type: str = ""
    title: str = ""
    data_type: str = Field(default="", alias="dataType")
    data_type_size: KBCNumberString = Field(default="", alias="dataTypeSize")
    format: str = ""
    reference: str | None = None
    schema_reference: str | None = Field(default=None, alias="schemaReference")
    sort_label: str | None = Field(default=None, alias="sortLabel")
    sort_order: str | None = Field(default=None, alias="sortOrder")
    date_dimension: str | None = Field(default=None, alias="dateDimension")


class GoodDataTable(ApiModel):
    table_id: str | None = Field(default=None, alias="tableId")
    title: str = ""
    export: KBCBoolean = False
    identifier: str = ""
    incremental_load: KBCBooleanNumber = Field(default=0, alias="incrementalLoad")
    columns: Annotated[dict[str, GoodDataColumn], BeforeValidator(object_or_empty)] = Field(default_factory=dict)


class GoodDataTableResource(Resource[GoodDataTableState]):
    type_name = "keboola_gooddata_writer_table"
    display_name = "GoodData Writer Table"
    state_model = GoodDataTableState
    remote_model = GoodDataTable
    deprecation_message = (
        "keboola_gooddata_writer_table manages tables through the legacy GoodData writer API "
        "and will be removed in a future release."
    )

    family = EndpointFamily.SYRUP
    collection_path = "gooddata-writer/v2/{writer_id}/tables/{title}"
    item_path = "gooddata-writer/v2/{writer_id}/tables/{id}"
    update_method = "PATCH"
    force_new = frozenset({"writer_id", "title"})

    def create_payload(self, state: GoodDataTableState) -> Payload:
        table = GoodDataTable(
            title=state.title,
            export=state.export,
            identifier=state.identifier,
            incremental_load=state.incremental_load,
            columns={
                column.name: GoodDataColumn(
                    name=column.name,
                    type=column.type,
                    title=column.title,
                    data_type=column.data_type,
                    data_type_size=column.data_type_size,
                    format=column.format,
                )
                for column in state.columns
            },
        )
        return Payload.from_json(table)

    def resource_id(self, state: GoodDataTableState, created: CreatedResource, job: JobStatus | None) -> str:
        return state.title

    def _fetch(self, state: GoodDataTableState) -> GoodDataTable | None:
        path = self.path_for(self.item_path, state) + "?include=columns"
        response = self.client.get(self.family, path)
        # An unknown writer answers 400 rather than 404.
        if response.status_code in (400, 404):
            return None
        return decode_json(raise_for_status(response).content, GoodDataTable)

    def apply_remote(self, state: GoodDataTableState, remote: GoodDataTable) -> None:
        state.title = remote.title or state.title
        state.export = remote.export
        state.identifier = remote.identifier
        state.incremental_load = remote.incremental_load
        state.columns = [
            GoodDataColumnState(
                name=column.name or name,
                type=column.type,
                title=column.title,
                data_type=column.data_type,
                data_type_size=column.data_type_size,
                format=column.format,
            )
            for name, column in remote.columns.items()
        ]
