"""CSV import extractors."""

from __future__ import annotations

from pydantic import Field

from keboola_provider.codec import ApiModel, KBCBoolean, Payload
from keboola_provider.resources.base import Resource, ResourceState
from keboola_provider.resources.configurations import (
    ComponentConfiguration,
    configs_path,
    configuration_form,
)

CSV_IMPORT_COMPONENT = "keboola.csv-import"


class CSVImportExtractorState(ResourceState):
    name: str
    destination: str
    description: str = ""
    incremental: bool = False
    delimiter: str = ","
    enclosure: str = '"'
    primary_key: list[str] = Field(default_factory=list)


class CSVUploadSettings(ApiModel):
    destination: str = ""
    incremental: KBCBoolean = False
    delimiter: str = ","
    enclosure: str = '"'
    primary_key: list[str] = Field(default_factory=list, alias="primaryKey")


class CSVImportExtractorResource(Resource[CSVImportExtractorState]):
    type_name = "keboola_csvimport_extractor"
    display_name = "CSV Import Extractor"
    state_model = CSVImportExtractorState
    remote_model = ComponentConfiguration

    collection_path = configs_path(CSV_IMPORT_COMPONENT)
    item_path = configs_path(CSV_IMPORT_COMPONENT) + "/{id}"

    def create_payload(self, state: CSVImportExtractorState) -> Payload:
        return configuration_form(name=state.name, description=state.description)

    def update_payload(self, state: CSVImportExtractorState, changed: frozenset[str]) -> Payload:
        settings = CSVUploadSettings(
            destination=state.destination,
            incremental=state.incremental,
            delimiter=state.delimiter,
            enclosure=state.enclosure,
            primary_key=state.primary_key,
        )
        return configuration_form(name=state.name, description=state.description, configuration=settings)

    def after_create(self, state: CSVImportExtractorState) -> None:
        # The upload settings can only be stored once the configuration exists.
        self._apply_update(state, frozenset(type(state).model_fields))

    def apply_remote(self, state: CSVImportExtractorState, remote: ComponentConfiguration) -> None:
        settings = CSVUploadSettings.model_validate(remote.configuration)
        state.name = remote.name
        state.description = remote.description or ""
        state.destination = settings.destination
        state.incremental = settings.incremental
        state.delimiter = settings.delimiter
        state.enclosure = settings.enclosure
        state.primary_key = list(settings.primary_key)
