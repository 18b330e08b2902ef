"""Storage table creation: header upload, async load job, indexed columns."""

import httpx
import pytest

from keboola_provider.codec import MULTIPART_BOUNDARY
from keboola_provider.errors import JobFailedError, ValidationError
from keboola_provider.resources import StorageBucketState, StorageTableResource, StorageTableState


@pytest.fixture
def tables(provider):
    provider.resource("keboola_storage_bucket").create(StorageBucketState(name="main", stage="in"))
    return provider.resource("keboola_storage_table")


def people(**overrides):
    fields = {
        "bucket_id": "in.c-main",
        "name": "people",
        "columns": ["id", "name", "email"],
        "primary_key": ["id"],
    }
    fields.update(overrides)
    return StorageTableState(**fields)


def test_create_uploads_header_and_waits_for_job(tables, fake):
    fake.plan_jobs("waiting", "processing", "success")

    state = tables.create(people())

    assert state.id == "in.c-main.people"
    assert state.columns == ["id", "name", "email"]
    assert state.primary_key == ["id"]

    [upload] = fake.requests_to("/upload-file", "POST")
    assert upload["content_type"] == f"multipart/form-data; boundary={MULTIPART_BOUNDARY}"
    assert upload["body"] == {"name": "from-text-input.csv", "data": "id,name,email"}

    [load] = fake.requests_to("/v2/storage/buckets/in.c-main/tables-async", "POST")
    assert load["body"]["name"] == "people"
    assert load["body"]["primaryKey"] == "id"
    assert load["body"]["dataFileId"] == "1"
    assert load["body"]["delimiter"] == ","

    assert len(fake.requests_to("/v2/storage/jobs/1", "GET")) == 3


def test_indexed_columns_skip_primary_key(tables, fake):
    state = tables.create(people(indexed_columns=["id", "email"]))

    posted = fake.requests_to("/v2/storage/tables/in.c-main.people/indexed-columns", "POST")
    assert [request["query"] for request in posted] == [{"name": "email"}]
    assert state.indexed_columns == ["id", "email"]


def test_failed_load_job_fails_create(tables, fake):
    fake.plan_jobs("waiting", "error")
    state = people()

    with pytest.raises(JobFailedError) as exc_info:
        tables.create(state)

    assert exc_info.value.job.status == "error"
    assert state.id is None
    assert fake.requests_to("/v2/storage/tables/", "GET") == []


def test_read_and_delete(tables, fake):
    state = tables.create(people())

    fake.state["tables"]["in.c-main.people"]["columns"].append("phone")
    assert tables.read(state).columns == ["id", "name", "email", "phone"]

    state = tables.delete(state)
    assert state.id is None
    assert fake.state["tables"] == {}


def test_tables_are_replaced_not_updated(tables):
    state = tables.create(people())
    with pytest.raises(ValidationError):
        tables.update(state, changed={"columns"})


def test_load_response_without_job_id(mock_client, poller_for):
    def handler(request):
        if request.url.path == "/upload-file":
            return httpx.Response(200, json={"id": 7})
        return httpx.Response(202, json={"status": "waiting"})

    client = mock_client(handler)
    tables = StorageTableResource(client, poller_for(client))
    state = people()

    with pytest.raises(ValidationError, match="no job id"):
        tables.create(state)

    assert state.id is None
