"""CSV import extractor configurations."""

import json

import pytest

from keboola_provider.resources import CSVImportExtractorState

CONFIGS_PATH = "/v2/storage/components/keboola.csv-import/configs"


@pytest.fixture
def extractors(provider):
    return provider.resource("keboola_csvimport_extractor")


def test_create_stores_settings_in_a_second_call(extractors, fake):
    state = extractors.create(
        CSVImportExtractorState(
            name="uploads",
            destination="in.c-csv.uploads",
            incremental=True,
            delimiter=";",
            primary_key=["id"],
        )
    )

    assert state.id == "1"
    [create] = fake.requests_to(CONFIGS_PATH, "POST")
    assert "configuration" not in create["body"]

    [settings] = fake.requests_to(f"{CONFIGS_PATH}/1", "PUT")
    assert json.loads(settings["body"]["configuration"]) == {
        "destination": "in.c-csv.uploads",
        "incremental": True,
        "delimiter": ";",
        "enclosure": '"',
        "primaryKey": ["id"],
    }

    assert state.destination == "in.c-csv.uploads"
    assert state.incremental is True
    assert state.delimiter == ";"
    assert state.primary_key == ["id"]


def test_update_rewrites_settings(extractors, fake):
    state = extractors.create(CSVImportExtractorState(name="uploads", destination="in.c-csv.uploads"))
    state.destination = "in.c-csv.archive"

    state = extractors.update(state, changed={"destination"})

    assert state.destination == "in.c-csv.archive"
    assert fake.state["configs"][("keboola.csv-import", "1")]["configuration"]["destination"] == "in.c-csv.archive"


def test_empty_remote_configuration_reads_as_defaults(extractors, fake):
    state = extractors.create(CSVImportExtractorState(name="uploads", destination="in.c-csv.uploads"))
    fake.state["configs"][("keboola.csv-import", "1")]["configuration"] = []

    state = extractors.read(state)

    assert state.destination == ""
    assert state.delimiter == ","


def test_delete(extractors, fake):
    state = extractors.create(CSVImportExtractorState(name="uploads", destination="in.c-csv.uploads"))
    assert extractors.delete(state).id is None
    assert fake.state["configs"] == {}
