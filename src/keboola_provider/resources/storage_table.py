"""Storage tables.

A table is created from its header row: the column names are uploaded as a
one-line CSV through the File Import API, then loaded asynchronously into
the bucket.  The table id only exists once the load job has finished.
"""

from __future__ import annotations

from pydantic import Field

from keboola_provider.codec import ApiModel, KBCBoolean, KBCNumberString, Payload, decode_json
from keboola_provider.endpoints import EndpointFamily
from keboola_provider.errors import ValidationError
from keboola_provider.resources.base import CreatedResource, Resource, ResourceState

UPLOAD_FILE_NAME = "from-text-input.csv"
DEFAULT_DELIMITER = ","
DEFAULT_ENCLOSURE = '"'


class StorageTableState(ResourceState):
    bucket_id: str
    name: str
    columns: list[str]
    delimiter: str = DEFAULT_DELIMITER
    enclosure: str = DEFAULT_ENCLOSURE
    transactional: bool = False
    primary_key: list[str] = Field(default_factory=list)
    indexed_columns: list[str] = Field(default_factory=list)


class UploadedFile(ApiModel):
    id: KBCNumberString


class TableBucket(ApiModel):
    id: str = ""


class StorageTable(ApiModel):
    id: str | None = None
    name: str = ""
    delimiter: str | None = None
    enclosure: str | None = None
    transactional: KBCBoolean = False
    columns: list[str] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list, alias="primaryKey")
    indexed_columns: list[str] = Field(default_factory=list, alias="indexedColumns")
    bucket: TableBucket | None = None


class StorageTableResource(Resource[StorageTableState]):
    type_name = "keboola_storage_table"
    display_name = "Storage Table"
    state_model = StorageTableState
    remote_model = StorageTable

    collection_path = "storage/buckets/{bucket_id}/tables-async"
    item_path = "storage/tables/{id}"
    supports_update = False
    force_new = frozenset(
        {"bucket_id", "name", "columns", "delimiter", "enclosure", "transactional", "primary_key", "indexed_columns"}
    )

    job_backed = True
    job_family = EndpointFamily.STORAGE

    def upload_header(self, state: StorageTableState) -> str:
        """Upload the header row and return the File Import id of the file."""
        response = self._call(
            "POST",
            EndpointFamily.FILE_IMPORT,
            "upload-file",
            Payload.from_multipart({"name": UPLOAD_FILE_NAME, "data": ",".join(state.columns)}),
        )
        return decode_json(response.content, UploadedFile).id

    def _submit(self, state: StorageTableState) -> CreatedResource:
        file_id = self.upload_header(state)
        path = self.path_for(self.collection_path, state)
        response = self._call("POST", self.family, path, self.load_payload(state, file_id))
        return decode_json(response.content, CreatedResource)

    def load_payload(self, state: StorageTableState, file_id: str) -> Payload:
        return Payload.from_form(
            {
                "name": state.name,
                "primaryKey": ",".join(state.primary_key),
                "dataFileId": file_id,
                "delimiter": state.delimiter or DEFAULT_DELIMITER,
                "enclosure": state.enclosure or DEFAULT_ENCLOSURE,
            }
        )

    def job_status_url(self, created: CreatedResource) -> str:
        if not created.id:
            raise ValidationError(f"{self.display_name} load response carries no job id")
        return f"storage/jobs/{created.id}"

    def after_create(self, state: StorageTableState) -> None:
        # Primary key columns are indexed by the load itself.
        for column in state.indexed_columns:
            if column in state.primary_key:
                continue
            path = self.path_for("storage/tables/{id}/indexed-columns?name={column}", state, column=column)
            self._call("POST", self.family, path, Payload.empty())

    def apply_remote(self, state: StorageTableState, remote: StorageTable) -> None:
        state.name = remote.name
        if remote.bucket and remote.bucket.id:
            state.bucket_id = remote.bucket.id
        state.delimiter = remote.delimiter or state.delimiter
        state.enclosure = remote.enclosure or state.enclosure
        state.transactional = remote.transactional
        state.columns = list(remote.columns)
        state.primary_key = list(remote.primary_key)
        state.indexed_columns = list(remote.indexed_columns)
