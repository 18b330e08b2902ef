"""Transformation buckets and the transformations stored in them.

A transformation bucket is a configuration of the ``transformation``
component; each transformation is a configuration row under it.  Host
attributes are snake_case, the stored configuration is camelCase.  Input
indexes are lists of column lists remotely and comma-joined strings on the
host side.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from keboola_provider.codec import ApiModel, KBCBoolean, KBCNumberString, Payload
from keboola_provider.resources.base import Resource, ResourceState
from keboola_provider.resources.configurations import (
    ComponentConfiguration,
    configs_path,
    configuration_form,
)

TRANSFORMATION_COMPONENT = "transformation"
DEFAULT_WHERE_OPERATOR = "eq"


# ---------------------------------------------------------------------------
# Transformation buckets
# ---------------------------------------------------------------------------

class TransformationBucketState(ResourceState):
    name: str
    description: str = ""


class TransformationBucketResource(Resource[TransformationBucketState]):
    type_name = "keboola_transformation_bucket"
    display_name = "Transformation Bucket"
    state_model = TransformationBucketState
    remote_model = ComponentConfiguration

    collection_path = configs_path(TRANSFORMATION_COMPONENT)
    item_path = configs_path(TRANSFORMATION_COMPONENT) + "/{id}"

    def create_payload(self, state: TransformationBucketState) -> Payload:
        return configuration_form(name=state.name, description=state.description)

    def apply_remote(self, state: TransformationBucketState, remote: ComponentConfiguration) -> None:
        state.name = remote.name
        state.description = remote.description or ""


# ---------------------------------------------------------------------------
# Transformations
# ---------------------------------------------------------------------------

class InputMappingState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: str
    destination: str
    where_column: str = ""
    where_operator: str = DEFAULT_WHERE_OPERATOR
    where_values: list[str] = Field(default_factory=list)
    # Each entry is one index: its column names joined by commas.
    indexes: list[str] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    datatypes: dict[str, Any] = Field(default_factory=dict)
    days: int = 0


class OutputMappingState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: str
    destination: str
    incremental: bool = False
    primary_key: list[str] = Field(default_factory=list)
    delete_where_column: str = ""
    delete_where_operator: str = ""
    delete_where_values: list[str] = Field(default_factory=list)


class TransformationState(ResourceState):
    bucket_id: str
    name: str
    backend: str
    type: str
    description: str = ""
    phase: int | None = None
    disabled: bool = False
    queries: list[str] = Field(default_factory=list)
    input: list[InputMappingState] = Field(default_factory=list)
    output: list[OutputMappingState] = Field(default_factory=list)


class InputMapping(ApiModel):
    source: str = ""
    destination: str = ""
    where_column: str | None = Field(default=None, alias="whereColumn")
    where_operator: str | None = Field(default=None, alias="whereOperator")
    where_values: list[str] | None = Field(default=None, alias="whereValues")
    indexes: list[list[str]] | None = None
    columns: list[str] = Field(default_factory=list)
    datatypes: dict[str, Any] | None = None
    days: int | None = None


class OutputMapping(ApiModel):
    source: str = ""
    destination: str = ""
    incremental: KBCBoolean | None = None
    primary_key: list[str] | None = Field(default=None, alias="primaryKey")
    delete_where_values: list[str] | None = Field(default=None, alias="deleteWhereValues")
    delete_where_operator: str | None = Field(default=None, alias="deleteWhereOperator")
    delete_where_column: str | None = Field(default=None, alias="deleteWhereColumn")


class TransformationConfiguration(ApiModel):
    id: KBCNumberString | None = None
    name: str = ""
    description: str | None = None
    backend: str = ""
    type: str = ""
    phase: int | None = None
    disabled: KBCBoolean | None = None
    queries: list[str] | None = None
    input: list[InputMapping] | None = None
    output: list[OutputMapping] | None = None


class TransformationRow(ApiModel):
    id: KBCNumberString | None = None
    configuration: TransformationConfiguration = Field(default_factory=TransformationConfiguration)


def input_to_api(mapping: InputMappingState) -> InputMapping:
    return InputMapping(
        source=mapping.source,
        destination=mapping.destination,
        where_column=mapping.where_column or None,
        where_operator=mapping.where_operator or None,
        where_values=mapping.where_values or None,
        indexes=[index.split(",") for index in mapping.indexes] or None,
        columns=mapping.columns,
        datatypes=mapping.datatypes,
        days=mapping.days or None,
    )


def input_from_api(mapping: InputMapping) -> InputMappingState:
    return InputMappingState(
        source=mapping.source,
        destination=mapping.destination,
        where_column=mapping.where_column or "",
        where_operator=mapping.where_operator or DEFAULT_WHERE_OPERATOR,
        where_values=mapping.where_values or [],
        indexes=[",".join(index) for index in mapping.indexes or []],
        columns=mapping.columns,
        datatypes=mapping.datatypes or {},
        days=mapping.days or 0,
    )


def output_to_api(mapping: OutputMappingState) -> OutputMapping:
    return OutputMapping(
        source=mapping.source,
        destination=mapping.destination,
        incremental=mapping.incremental or None,
        primary_key=mapping.primary_key or None,
        delete_where_values=mapping.delete_where_values or None,
        delete_where_operator=mapping.delete_where_operator or None,
        delete_where_column=mapping.delete_where_column or None,
    )


def output_from_api(mapping: OutputMapping) -> OutputMappingState:
    return OutputMappingState(
        source=mapping.source,
        destination=mapping.destination,
        incremental=bool(mapping.incremental),
        primary_key=mapping.primary_key or [],
        delete_where_column=mapping.delete_where_column or "",
        delete_where_operator=mapping.delete_where_operator or "",
        delete_where_values=mapping.delete_where_values or [],
    )


class TransformationResource(Resource[TransformationState]):
    type_name = "keboola_transformation"
    display_name = "Transformation"
    state_model = TransformationState
    remote_model = TransformationRow

    collection_path = configs_path(TRANSFORMATION_COMPONENT) + "/{bucket_id}/rows"
    item_path = configs_path(TRANSFORMATION_COMPONENT) + "/{bucket_id}/rows/{id}"
    force_new = frozenset({"bucket_id"})

    def configuration(self, state: TransformationState) -> TransformationConfiguration:
        return TransformationConfiguration(
            name=state.name,
            description=state.description,
            backend=state.backend,
            type=state.type,
            phase=state.phase,
            disabled=state.disabled or None,
            queries=state.queries or None,
            input=[input_to_api(mapping) for mapping in state.input] or None,
            output=[output_to_api(mapping) for mapping in state.output] or None,
        )

    def create_payload(self, state: TransformationState) -> Payload:
        return configuration_form(configuration=self.configuration(state))

    def apply_remote(self, state: TransformationState, remote: TransformationRow) -> None:
        config = remote.configuration
        state.name = config.name
        state.description = config.description or ""
        state.backend = config.backend
        state.type = config.type
        state.phase = config.phase
        state.disabled = bool(config.disabled)
        state.queries = list(config.queries or [])
        state.input = [input_from_api(mapping) for mapping in config.input or []]
        state.output = [output_from_api(mapping) for mapping in config.output or []]
