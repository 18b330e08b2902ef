"""Snowflake and PostgreSQL writers and their table mappings."""

import json

import pytest

from conftest import API_KEY
from keboola_provider.errors import ValidationError
from keboola_provider.resources import (
    DatabaseParameters,
    PostgreSQLWriterState,
    SnowflakeWriterState,
    WriterColumnState,
    WriterTablesState,
    WriterTableState,
)

SNOWFLAKE_CONFIG = "/v2/storage/components/keboola.wr-db-snowflake/configs/1"
PGSQL_CONFIG = "/v2/storage/components/keboola.wr-db-pgsql/configs/1"
ENCRYPTED = "KBC::ProjectSecure::eJwBQAG"


def pg_parameters(**overrides):
    fields = {
        "hostname": "db.example.com",
        "port": "5432",
        "database": "analytics",
        "schema": "public",
        "username": "writer",
        "hashed_password": ENCRYPTED,
    }
    fields.update(overrides)
    return DatabaseParameters(**fields)


def stored_configuration(fake, component, config_id="1"):
    return fake.state["configs"][(component, config_id)]["configuration"]


class TestSnowflakeWriter:
    @pytest.fixture
    def writers(self, provider):
        return provider.resource("keboola_snowflake_writer")

    def test_create_provisions_instance(self, writers, fake):
        state = writers.create(SnowflakeWriterState(name="warehouse"))

        assert state.id == "1"
        assert state.db_parameters.hostname == "keboola.snowflakecomputing.com"
        assert state.db_parameters.port == "443"
        assert state.db_parameters.database == "WRITER_1"
        assert state.db_parameters.schema_name == "WRITER_1"
        assert state.db_parameters.warehouse == "KEBOOLA_PROD"

        [provisioning] = fake.requests_to("/provisioning/snowflake", "POST")
        assert provisioning["token"] == API_KEY
        assert provisioning["body"] == {"type": "writer"}

        assert len(fake.requests_to(SNOWFLAKE_CONFIG, "PUT")) == 1
        db = stored_configuration(fake, "keboola.wr-db-snowflake")["parameters"]["db"]
        assert db["driver"] == "snowflake"
        assert db["#password"] == "provisioned-secret"
        assert fake.state["configs"][("keboola.wr-db-snowflake", "1")]["changeDescription"] == (
            "Created database credentials"
        )

    def test_create_issues_writer_token(self, writers, fake):
        writers.create(SnowflakeWriterState(name="warehouse"))

        [token_request] = fake.requests_to("/v2/storage/tokens", "POST")
        assert token_request["token"] == API_KEY
        assert token_request["body"] == {"description": "wrdbsnowflake_1", "canManageBuckets": "1"}

    def test_create_with_own_database(self, writers, fake):
        state = writers.create(
            SnowflakeWriterState(
                name="warehouse",
                provision_new_instance=False,
                db_parameters=pg_parameters(hostname="acme.snowflakecomputing.com", warehouse="ETL"),
            )
        )

        assert fake.requests_to("/provisioning") == []
        assert state.db_parameters.hostname == "acme.snowflakecomputing.com"
        assert state.db_parameters.hashed_password == ENCRYPTED

    def test_unencrypted_password_is_rejected(self, writers, fake):
        with pytest.raises(ValidationError, match="KBC::ProjectSecure::"):
            writers.create(
                SnowflakeWriterState(
                    name="warehouse",
                    provision_new_instance=False,
                    db_parameters=pg_parameters(hashed_password="hunter2"),
                )
            )
        assert fake.requests_log == []


class TestPostgreSQLWriter:
    @pytest.fixture
    def writers(self, provider):
        return provider.resource("keboola_postgresql_writer")

    def test_create_stores_credentials_without_token(self, writers, fake):
        state = writers.create(PostgreSQLWriterState(name="reporting", db_parameters=pg_parameters()))

        assert state.db_parameters == pg_parameters()
        assert fake.requests_to("/v2/storage/tokens") == []
        assert fake.requests_to("/provisioning") == []
        db = stored_configuration(fake, "keboola.wr-db-pgsql")["parameters"]["db"]
        assert db == {
            "host": "db.example.com",
            "port": "5432",
            "database": "analytics",
            "schema": "public",
            "user": "writer",
            "#password": ENCRYPTED,
            "driver": "pgsql",
        }

    def test_provisioning_is_not_supported(self, writers):
        with pytest.raises(ValidationError, match="provision_new_instance"):
            writers.create(PostgreSQLWriterState(name="reporting", provision_new_instance=True))

    def test_missing_parameters(self, writers):
        with pytest.raises(ValidationError, match="db_parameters"):
            writers.create(PostgreSQLWriterState(name="reporting"))

    def test_update_keeps_table_mappings(self, provider, writers, fake):
        state = writers.create(PostgreSQLWriterState(name="reporting", db_parameters=pg_parameters()))
        provider.resource("keboola_postgresql_writer_tables").create(
            WriterTablesState(
                writer_id=state.id,
                tables=[WriterTableState(db_name="orders", table_id="out.c-main.orders")],
            )
        )

        state.db_parameters = pg_parameters(hostname="db2.example.com")
        state.description = "moved"
        state = writers.update(state, changed={"db_parameters", "description"})

        assert state.db_parameters.hostname == "db2.example.com"
        assert state.description == "moved"
        parameters = stored_configuration(fake, "keboola.wr-db-pgsql")["parameters"]
        assert parameters["db"]["host"] == "db2.example.com"
        assert parameters["tables"][0]["dbName"] == "orders"

    def test_empty_parameters_object(self, writers, fake):
        state = writers.create(PostgreSQLWriterState(name="reporting", db_parameters=pg_parameters()))
        fake.state["configs"][("keboola.wr-db-pgsql", "1")]["configuration"] = {"parameters": []}

        state = writers.read(state)
        assert state.id == "1"

        state.db_parameters = pg_parameters(hostname="db2.example.com")
        state = writers.update(state, changed={"db_parameters"})

        assert state.db_parameters.hostname == "db2.example.com"
        assert stored_configuration(fake, "keboola.wr-db-pgsql")["parameters"]["db"]["host"] == "db2.example.com"

    def test_delete(self, writers, fake):
        state = writers.create(PostgreSQLWriterState(name="reporting", db_parameters=pg_parameters()))
        writers.delete(state)
        assert fake.state["configs"] == {}


class TestWriterTables:
    @pytest.fixture
    def writer(self, provider):
        return provider.resource("keboola_postgresql_writer").create(
            PostgreSQLWriterState(name="reporting", db_parameters=pg_parameters())
        )

    @pytest.fixture
    def writer_tables(self, provider):
        return provider.resource("keboola_postgresql_writer_tables")

    def orders(self, writer_id):
        return WriterTablesState(
            writer_id=writer_id,
            tables=[
                WriterTableState(
                    db_name="orders",
                    table_id="out.c-main.orders",
                    incremental=True,
                    primary_key=["id"],
                    columns=[
                        WriterColumnState(name="id", db_name="id", type="int"),
                        WriterColumnState(name="total", db_name="total", type="numeric", size="10,2", nullable=True),
                    ],
                )
            ],
        )

    def test_create_writes_through_docker_endpoint(self, writer, writer_tables, fake):
        state = writer_tables.create(self.orders(writer.id))

        assert state.id == writer.id
        assert state.tables == self.orders(writer.id).tables

        [write] = fake.requests_to("/docker/keboola.wr-db-pgsql/configs/1", "PUT")
        assert write["token"] == API_KEY
        configuration = json.loads(write["body"]["configuration"])
        assert configuration["parameters"]["db"]["host"] == "db.example.com"
        assert configuration["parameters"]["tables"][0]["items"][1] == {
            "name": "total",
            "dbName": "total",
            "type": "numeric",
            "size": "10,2",
            "nullable": True,
            "default": "",
        }
        assert fake.requests_to(PGSQL_CONFIG, "GET")

    def test_empty_parameters_object(self, writer, writer_tables, fake):
        fake.state["configs"][("keboola.wr-db-pgsql", writer.id)]["configuration"] = {"parameters": []}

        state = writer_tables.create(self.orders(writer.id))
        assert state.tables == self.orders(writer.id).tables

        fake.state["configs"][("keboola.wr-db-pgsql", writer.id)]["configuration"] = {"parameters": []}
        assert writer_tables.read(state).tables == []

    def test_update_replaces_tables(self, writer, writer_tables, fake):
        state = writer_tables.create(self.orders(writer.id))
        state.tables[0].export = False

        state = writer_tables.update(state, changed={"tables"})

        assert state.tables[0].export is False
        assert len(stored_configuration(fake, "keboola.wr-db-pgsql")["parameters"]["tables"]) == 1

    def test_delete_empties_tables_but_keeps_writer(self, writer, writer_tables, fake):
        state = writer_tables.create(self.orders(writer.id))

        state = writer_tables.delete(state)

        assert state.id is None
        parameters = stored_configuration(fake, "keboola.wr-db-pgsql")["parameters"]
        assert parameters["tables"] == []
        assert parameters["db"]["user"] == "writer"

    def test_delete_after_writer_is_gone(self, writer, writer_tables, fake):
        state = writer_tables.create(self.orders(writer.id))
        fake.state["configs"].clear()

        assert writer_tables.delete(state).id is None
        assert len(fake.requests_to("/docker/", "PUT")) == 1

    def test_snowflake_tables_use_their_component(self, provider, fake):
        writer = provider.resource("keboola_snowflake_writer").create(SnowflakeWriterState(name="warehouse"))
        provider.resource("keboola_snowflake_writer_tables").create(self.orders(writer.id))

        assert fake.requests_to("/docker/keboola.wr-db-snowflake/configs/1", "PUT")
        tables = stored_configuration(fake, "keboola.wr-db-snowflake")["parameters"]["tables"]
        assert tables[0]["tableId"] == "out.c-main.orders"
