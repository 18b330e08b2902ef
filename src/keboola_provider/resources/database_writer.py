"""Database writers (Snowflake, PostgreSQL) and their table mappings.

A writer is a component configuration whose ``parameters.db`` holds the
target database credentials.  Its table mappings live under
``parameters.tables`` of the same configuration and are managed as a
separate resource, so both sides update the configuration by
read-modify-write and never clobber each other.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from keboola_provider.codec import ApiModel, KBCBoolean, KBCNumberString, Payload, decode_json, to_jsonable
from keboola_provider.endpoints import EndpointFamily
from keboola_provider.errors import ValidationError
from keboola_provider.resources.base import Resource, ResourceState
from keboola_provider.resources.configurations import (
    ComponentConfiguration,
    configs_path,
    configuration_form,
    configuration_parameters,
)
from keboola_provider.validators import check_encrypted

logger = logging.getLogger(__name__)

SNOWFLAKE_WRITER_COMPONENT = "keboola.wr-db-snowflake"
POSTGRESQL_WRITER_COMPONENT = "keboola.wr-db-pgsql"


class DatabaseParameters(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    hostname: str
    port: str = ""
    database: str
    # "schema" would shadow a BaseModel attribute.
    schema_name: str = Field(default="", alias="schema")
    warehouse: str = ""
    username: str
    hashed_password: str


class DatabaseWriterState(ResourceState):
    name: str
    description: str = ""
    provision_new_instance: bool = False
    db_parameters: DatabaseParameters | None = None


class SnowflakeWriterState(DatabaseWriterState):
    provision_new_instance: bool = True


class PostgreSQLWriterState(DatabaseWriterState):
    pass


class DatabaseCredentials(ApiModel):
    host: str = ""
    port: KBCNumberString = ""
    database: str = ""
    schema_name: str = Field(default="", alias="schema")
    warehouse: str | None = None
    user: str = ""
    encrypted_password: str | None = Field(default=None, alias="#password")
    driver: str | None = None


def database_credentials(parameters: DatabaseParameters, driver: str | None = None) -> DatabaseCredentials:
    return DatabaseCredentials(
        host=parameters.hostname,
        port=parameters.port,
        database=parameters.database,
        schema_name=parameters.schema_name,
        warehouse=parameters.warehouse or None,
        user=parameters.username,
        encrypted_password=parameters.hashed_password,
        driver=driver,
    )


def database_parameters(db: dict[str, Any]) -> DatabaseParameters:
    """Read the ``parameters.db`` object of a configuration back into attributes."""
    credentials = DatabaseCredentials.model_validate(db)
    return DatabaseParameters(
        hostname=credentials.host,
        port=credentials.port,
        database=credentials.database,
        schema_name=credentials.schema_name,
        warehouse=credentials.warehouse or "",
        username=credentials.user,
        hashed_password=credentials.encrypted_password or "",
    )


class ProvisionedCredentials(ApiModel):
    id: KBCNumberString | None = None
    hostname: str = ""
    port: KBCNumberString = ""
    db: str = ""
    schema_name: str = Field(default="", alias="schema")
    warehouse: str = ""
    user: str = ""
    password: str = ""
    workspace_id: KBCNumberString | None = Field(default=None, alias="workspaceId")


class ProvisionedInstance(ApiModel):
    status: str | None = None
    credentials: ProvisionedCredentials


class DatabaseWriterResource(Resource[DatabaseWriterState]):
    component: ClassVar[str]
    driver: ClassVar[str]
    # Description prefix of the writer's dedicated storage token; None for
    # writers that run without one.
    token_prefix: ClassVar[str | None] = None
    supports_provisioning: ClassVar[bool] = False

    remote_model = ComponentConfiguration

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "component" in cls.__dict__:
            cls.collection_path = configs_path(cls.component)
            cls.item_path = configs_path(cls.component) + "/{id}"

    def validate(self, state: DatabaseWriterState) -> None:
        if state.provision_new_instance:
            if not self.supports_provisioning:
                raise ValidationError(f'"provision_new_instance" is not supported by {self.display_name}')
            return
        if state.db_parameters is None:
            raise ValidationError('"db_parameters" must be set unless a new instance is provisioned')
        check_encrypted("hashed_password", state.db_parameters.hashed_password)

    def create_payload(self, state: DatabaseWriterState) -> Payload:
        return configuration_form(name=state.name, description=state.description)

    def credentials(self, parameters: DatabaseParameters) -> DatabaseCredentials:
        return database_credentials(parameters, self.driver)

    def create_token(self, state: DatabaseWriterState) -> None:
        self._call(
            "POST",
            EndpointFamily.STORAGE,
            "storage/tokens",
            Payload.from_form({"description": f"{self.token_prefix}_{state.id}", "canManageBuckets": 1}),
        )

    def provision(self) -> DatabaseParameters:
        """Provision a database instance for the writer and return its credentials."""
        response = self._call(
            "POST", EndpointFamily.SYRUP, f"provisioning/{self.driver}", Payload.from_json({"type": "writer"})
        )
        provisioned = decode_json(response.content, ProvisionedInstance).credentials
        logger.info("Provisioned %s instance %s", self.driver, provisioned.id)
        return DatabaseParameters(
            hostname=provisioned.hostname,
            port=provisioned.port,
            database=provisioned.db,
            schema_name=provisioned.schema_name,
            warehouse=provisioned.warehouse,
            username=provisioned.user,
            hashed_password=provisioned.password,
        )

    def after_create(self, state: DatabaseWriterState) -> None:
        if self.token_prefix:
            self.create_token(state)

        parameters = self.provision() if state.provision_new_instance else state.db_parameters
        configuration = {"parameters": {"db": self.credentials(parameters)}}
        self._call(
            "PUT",
            self.family,
            self.path_for(self.item_path, state),
            configuration_form(configuration=configuration, change_description="Created database credentials"),
        )

    def _apply_update(self, state: DatabaseWriterState, changed: frozenset[str]) -> None:
        def splice(current: dict[str, Any]) -> Payload:
            configuration = ComponentConfiguration.model_validate(current).configuration
            if "db_parameters" in changed and not state.provision_new_instance:
                configuration_parameters(configuration)["db"] = to_jsonable(self.credentials(state.db_parameters))
            return configuration_form(
                name=state.name,
                description=state.description,
                configuration=configuration,
                change_description=f"Updated {self.display_name} configuration",
            )

        self._read_modify_write(self.path_for(self.item_path, state), splice)

    def apply_remote(self, state: DatabaseWriterState, remote: ComponentConfiguration) -> None:
        state.name = remote.name
        state.description = remote.description or ""
        db = configuration_parameters(remote.configuration).get("db")
        if not db:
            return
        state.db_parameters = database_parameters(db)


class SnowflakeWriterResource(DatabaseWriterResource):
    type_name = "keboola_snowflake_writer"
    display_name = "Snowflake Writer"
    state_model = SnowflakeWriterState
    component = SNOWFLAKE_WRITER_COMPONENT
    driver = "snowflake"
    token_prefix = "wrdbsnowflake"
    supports_provisioning = True


class PostgreSQLWriterResource(DatabaseWriterResource):
    type_name = "keboola_postgresql_writer"
    display_name = "PostgreSQL Writer"
    state_model = PostgreSQLWriterState
    component = POSTGRESQL_WRITER_COMPONENT
    driver = "pgsql"


# ---------------------------------------------------------------------------
# Writer tables
# ---------------------------------------------------------------------------

class WriterColumnState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    db_name: str
    type: str
    size: str = ""
    nullable: bool = False
    default: str = ""


class WriterTableState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    db_name: str
    table_id: str
    export: bool = True
    incremental: bool = False
    primary_key: list[str] = Field(default_factory=list)
    columns: list[WriterColumnState] = Field(default_factory=list)


class WriterTablesState(ResourceState):
    writer_id: str
    tables: list[WriterTableState] = Field(default_factory=list)


class WriterTableItem(ApiModel):
    name: str = ""
    db_name: str = Field(default="", alias="dbName")
    type: str = ""
    size: KBCNumberString = ""
    nullable: KBCBoolean = False
    default: str = ""


class WriterTable(ApiModel):
    db_name: str = Field(default="", alias="dbName")
    export: KBCBoolean = True
    incremental: KBCBoolean = False
    table_id: str = Field(default="", alias="tableId")
    primary_key: list[str] | None = Field(default=None, alias="primaryKey")
    items: list[WriterTableItem] = Field(default_factory=list)


def table_to_api(table: WriterTableState) -> WriterTable:
    return WriterTable(
        db_name=table.db_name,
        export=table.export,
        incremental=table.incremental,
        table_id=table.table_id,
        primary_key=table.primary_key or None,
        items=[WriterTableItem(**column.model_dump()) for column in table.columns],
    )


def table_from_api(table: WriterTable) -> WriterTableState:
    return WriterTableState(
        db_name=table.db_name,
        table_id=table.table_id,
        export=table.export,
        incremental=table.incremental,
        primary_key=table.primary_key or [],
        columns=[
            WriterColumnState(
                name=item.name,
                db_name=item.db_name,
                type=item.type,
                size=item.size,
                nullable=item.nullable,
                default=item.default,
            )
            for item in table.items
        ],
    )


class WriterTablesResource(Resource[WriterTablesState]):
    """Table mappings of a database writer; the resource id is the writer id.

    Reads go through the Storage API, writes through the Docker runner
    endpoint on Syrup.
    """

    component: ClassVar[str]
    remote_model = ComponentConfiguration
    force_new = frozenset({"writer_id"})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "component" in cls.__dict__:
            cls.item_path = configs_path(cls.component) + "/{id}"

    def write_tables(self, state: WriterTablesState, tables: list[WriterTableState]) -> None:
        """Replace ``parameters.tables`` of the writer configuration *state* points at."""

        def splice(current: dict[str, Any]) -> Payload:
            configuration = ComponentConfiguration.model_validate(current).configuration
            configuration_parameters(configuration)["tables"] = to_jsonable([table_to_api(table) for table in tables])
            return configuration_form(
                configuration=configuration,
                change_description=f"Update {self.display_name}",
            )

        self._read_modify_write(
            self.path_for(self.item_path, state),
            splice,
            put_family=EndpointFamily.SYRUP,
            put_path=self.path_for(f"docker/{self.component}/configs/{{id}}", state),
        )

    def create(self, state: WriterTablesState) -> WriterTablesState:
        logger.info("Creating %s in Keboola.", self.display_name)
        self.validate(state)
        state.id = state.writer_id
        self.write_tables(state, state.tables)
        return self.read(state)

    def _apply_update(self, state: WriterTablesState, changed: frozenset[str]) -> None:
        self.write_tables(state, state.tables)

    def delete(self, state: WriterTablesState) -> WriterTablesState:
        logger.info("Clearing %s in Keboola: %s", self.display_name, state.id)
        if state.id and self._fetch(state) is not None:
            self.write_tables(state, [])
        state.id = None
        return state

    def apply_remote(self, state: WriterTablesState, remote: ComponentConfiguration) -> None:
        tables = configuration_parameters(remote.configuration).get("tables") or []
        state.writer_id = state.id or state.writer_id
        state.tables = [table_from_api(WriterTable.model_validate(table)) for table in tables]


class SnowflakeWriterTablesResource(WriterTablesResource):
    type_name = "keboola_snowflake_writer_tables"
    display_name = "Snowflake Writer Tables"
    state_model = WriterTablesState
    component = SNOWFLAKE_WRITER_COMPONENT


class PostgreSQLWriterTablesResource(WriterTablesResource):
    type_name = "keboola_postgresql_writer_tables"
    display_name = "PostgreSQL Writer Tables"
    state_model = WriterTablesState
    component = POSTGRESQL_WRITER_COMPONENT
