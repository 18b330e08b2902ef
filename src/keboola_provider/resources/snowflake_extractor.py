"""Snowflake extractors and the tables they extract.

Like database writers, an extractor is a component configuration holding
the source credentials under ``parameters.db``.  Its extracted tables live
under ``parameters.tables`` and are managed as a separate resource; both
sides update the configuration by read-modify-write.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from keboola_provider.codec import ApiModel, KBCBoolean, Payload, to_jsonable
from keboola_provider.errors import ValidationError
from keboola_provider.resources.base import Resource, ResourceState
from keboola_provider.resources.configurations import (
    ComponentConfiguration,
    configs_path,
    configuration_form,
    configuration_parameters,
)
from keboola_provider.resources.database_writer import (
    DatabaseParameters,
    database_credentials,
    database_parameters,
)
from keboola_provider.validators import check_encrypted

logger = logging.getLogger(__name__)

SNOWFLAKE_EXTRACTOR_COMPONENT = "keboola.ex-db-snowflake"


class SnowflakeExtractorState(ResourceState):
    name: str
    description: str = ""
    db_parameters: DatabaseParameters | None = None


class SnowflakeExtractorResource(Resource[SnowflakeExtractorState]):
    type_name = "keboola_snowflake_extractor"
    display_name = "Snowflake Extractor"
    state_model = SnowflakeExtractorState
    remote_model = ComponentConfiguration

    collection_path = configs_path(SNOWFLAKE_EXTRACTOR_COMPONENT)
    item_path = configs_path(SNOWFLAKE_EXTRACTOR_COMPONENT) + "/{id}"

    def validate(self, state: SnowflakeExtractorState) -> None:
        if state.db_parameters is not None:
            check_encrypted("hashed_password", state.db_parameters.hashed_password)

    def create_payload(self, state: SnowflakeExtractorState) -> Payload:
        return configuration_form(name=state.name, description=state.description)

    def after_create(self, state: SnowflakeExtractorState) -> None:
        if state.db_parameters is None:
            return
        configuration = {"parameters": {"db": database_credentials(state.db_parameters)}}
        self._call(
            "PUT",
            self.family,
            self.path_for(self.item_path, state),
            configuration_form(configuration=configuration, change_description="Created database credentials"),
        )

    def _apply_update(self, state: SnowflakeExtractorState, changed: frozenset[str]) -> None:
        def splice(current: dict[str, Any]) -> Payload:
            configuration = ComponentConfiguration.model_validate(current).configuration
            if state.db_parameters is not None:
                configuration_parameters(configuration)["db"] = to_jsonable(database_credentials(state.db_parameters))
            return configuration_form(
                name=state.name,
                description=state.description,
                configuration=configuration,
                change_description=f"Updated {self.display_name} configuration",
            )

        self._read_modify_write(self.path_for(self.item_path, state), splice)

    def apply_remote(self, state: SnowflakeExtractorState, remote: ComponentConfiguration) -> None:
        state.name = remote.name
        state.description = remote.description or ""
        db = configuration_parameters(remote.configuration).get("db")
        state.db_parameters = database_parameters(db) if db else None


# ---------------------------------------------------------------------------
# Extractor tables
# ---------------------------------------------------------------------------

class ExtractorTableState(BaseModel):
    """One extracted table: either a whole source table or a custom query."""

    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    name: str
    output_table: str
    enabled: bool = True
    incremental: bool = False
    primary_key: list[str] = Field(default_factory=list)
    query: str = ""
    schema_name: str = ""
    table_name: str = ""
    columns: list[str] = Field(default_factory=list)


class SnowflakeExtractorTablesState(ResourceState):
    extractor_id: str
    tables: list[ExtractorTableState] = Field(default_factory=list)


class ExtractorInputTable(ApiModel):
    schema_name: str = Field(default="", alias="schema")
    table_name: str = Field(default="", alias="tableName")


class ExtractorTable(ApiModel):
    id: int = 0
    name: str = ""
    enabled: KBCBoolean = True
    incremental: KBCBoolean = False
    output_table: str = Field(default="", alias="outputTable")
    table: ExtractorInputTable | None = None
    primary_key: list[str] | None = Field(default=None, alias="primaryKey")
    query: str | None = None
    columns: list[str] | None = None


def table_to_api(table: ExtractorTableState, table_id: int) -> ExtractorTable:
    extracted = ExtractorTable(
        id=table_id,
        name=table.name,
        enabled=table.enabled,
        incremental=table.incremental,
        output_table=table.output_table,
        primary_key=table.primary_key or None,
    )
    if table.query:
        extracted.query = table.query
    else:
        extracted.table = ExtractorInputTable(schema_name=table.schema_name, table_name=table.table_name)
        extracted.columns = table.columns or None
    return extracted


def table_from_api(table: ExtractorTable) -> ExtractorTableState:
    source = table.table or ExtractorInputTable()
    return ExtractorTableState(
        id=table.id,
        name=table.name,
        output_table=table.output_table,
        enabled=table.enabled,
        incremental=table.incremental,
        primary_key=table.primary_key or [],
        query=table.query or "",
        schema_name=source.schema_name,
        table_name=source.table_name,
        columns=table.columns or [],
    )


def assign_table_ids(tables: list[ExtractorTableState]) -> list[int]:
    """Keep the ids tables already carry and number the rest after them."""
    taken = {table.id for table in tables if table.id}
    ids = []
    next_id = 1
    for table in tables:
        if table.id:
            ids.append(table.id)
            continue
        while next_id in taken:
            next_id += 1
        taken.add(next_id)
        ids.append(next_id)
    return ids


class SnowflakeExtractorTablesResource(Resource[SnowflakeExtractorTablesState]):
    """Tables extracted by a Snowflake extractor; the resource id is the extractor id."""

    type_name = "keboola_snowflake_extractor_tables"
    display_name = "Snowflake Extractor Tables"
    state_model = SnowflakeExtractorTablesState
    remote_model = ComponentConfiguration

    item_path = configs_path(SNOWFLAKE_EXTRACTOR_COMPONENT) + "/{id}"
    force_new = frozenset({"extractor_id"})

    def validate(self, state: SnowflakeExtractorTablesState) -> None:
        names = set()
        for table in state.tables:
            if table.name in names:
                raise ValidationError(f"table with name already exists: {table.name}")
            names.add(table.name)
            if not table.query and not table.table_name:
                raise ValidationError(f'table "{table.name}" needs either "query" or "table_name"')

    def write_tables(self, state: SnowflakeExtractorTablesState, tables: list[ExtractorTableState]) -> None:
        """Replace ``parameters.tables`` of the extractor configuration *state* points at."""
        extracted = [table_to_api(table, table_id) for table, table_id in zip(tables, assign_table_ids(tables))]

        def splice(current: dict[str, Any]) -> Payload:
            configuration = ComponentConfiguration.model_validate(current).configuration
            configuration_parameters(configuration)["tables"] = to_jsonable(extracted)
            return configuration_form(configuration=configuration, change_description="Update Snowflake tables")

        self._read_modify_write(self.path_for(self.item_path, state), splice)

    def create(self, state: SnowflakeExtractorTablesState) -> SnowflakeExtractorTablesState:
        logger.info("Creating %s in Keboola.", self.display_name)
        self.validate(state)
        state.id = state.extractor_id
        self.write_tables(state, state.tables)
        return self.read(state)

    def _apply_update(self, state: SnowflakeExtractorTablesState, changed: frozenset[str]) -> None:
        self.write_tables(state, state.tables)

    def delete(self, state: SnowflakeExtractorTablesState) -> SnowflakeExtractorTablesState:
        logger.info("Clearing %s in Keboola: %s", self.display_name, state.id)
        if state.id and self._fetch(state) is not None:
            self.write_tables(state, [])
        state.id = None
        return state

    def apply_remote(self, state: SnowflakeExtractorTablesState, remote: ComponentConfiguration) -> None:
        tables = configuration_parameters(remote.configuration).get("tables") or []
        state.extractor_id = state.id or state.extractor_id
        state.tables = [table_from_api(ExtractorTable.model_validate(table)) for table in tables]
