"""
Unit tests for the GraphQL request data model.
"""

import io

import pytest
from django.core.files.uploadedfile import TemporaryUploadedFile

from graphql_transport.exceptions import UnsupportedBatch, UploadCloneError
from graphql_transport.request import BatchRequest, GraphQLRequest, UploadValue

pytestmark = pytest.mark.unit


def _upload(content=b"hello", filename="hello.txt"):
    uploaded = TemporaryUploadedFile(filename, "text/plain", 0, None)
    uploaded.write(content)
    uploaded.flush()
    uploaded.seek(0)
    uploaded.size = len(content)
    return UploadValue.from_uploaded_file(uploaded)


def test_from_dict_reads_all_members():
    request = GraphQLRequest.from_dict(
        {
            "query": "query Q { ping }",
            "operationName": "Q",
            "variables": {"a": 1},
            "extensions": {"persistedQuery": {"version": 1}},
        }
    )

    assert request.query == "query Q { ping }"
    assert request.operation_name == "Q"
    assert request.variables == {"a": 1}
    assert request.extensions == {"persistedQuery": {"version": 1}}
    assert request.uploads == []


def test_from_dict_accepts_null_members():
    request = GraphQLRequest.from_dict({"query": "{ ping }", "variables": None, "extensions": None})

    assert request.variables == {}
    assert request.extensions == {}
    assert request.operation_name is None


@pytest.mark.parametrize(
    "payload",
    [
        [],
        "query",
        {"query": 1},
        {"query": "{ ping }", "variables": []},
        {"query": "{ ping }", "operationName": 5},
    ],
)
def test_from_dict_rejects_invalid_payloads(payload):
    with pytest.raises(ValueError):
        GraphQLRequest.from_dict(payload)


def test_from_query_params_decodes_json_members():
    request = GraphQLRequest.from_query_params(
        {"query": "{ ping }", "variables": '{"id": "1"}', "operationName": ""}
    )

    assert request.variables == {"id": "1"}
    assert request.operation_name is None


def test_from_query_params_requires_query():
    with pytest.raises(ValueError):
        GraphQLRequest.from_query_params({"variables": "{}"})


def test_from_query_params_rejects_invalid_variables():
    with pytest.raises(ValueError):
        GraphQLRequest.from_query_params({"query": "{ ping }", "variables": "{broken"})


def test_set_upload_replaces_existing_slots():
    request = GraphQLRequest(
        query="mutation",
        variables={"file": None, "files": [None, None], "input": {"doc": None}},
    )
    uploads = [UploadValue(io.BytesIO(b""), f"{i}.txt") for i in range(3)]

    assert request.set_upload("variables.file", uploads[0]) is True
    assert request.set_upload("variables.files.1", uploads[1]) is True
    assert request.set_upload("variables.input.doc", uploads[2]) is True

    assert request.variables["file"] is uploads[0]
    assert request.variables["files"] == [None, uploads[1]]
    assert request.variables["input"]["doc"] is uploads[2]
    assert request.uploads == uploads


@pytest.mark.parametrize(
    "path",
    [
        "file",
        "variables.missing",
        "variables.files.2",
        "variables.files.x",
        "variables.files.-1",
        "variables.file.inner",
    ],
)
def test_set_upload_ignores_unresolvable_paths(path):
    request = GraphQLRequest(variables={"file": None, "files": [None, None]})
    upload = UploadValue(io.BytesIO(b""), "a.txt")

    assert request.set_upload(path, upload) is False
    assert request.variables == {"file": None, "files": [None, None]}
    assert request.uploads == []


def test_try_clone_opens_an_independent_handle():
    upload = _upload(b"payload")
    try:
        clone = upload.try_clone()
        assert clone.read() == b"payload"
        assert clone.filename == "hello.txt"
        assert clone.content_type == "text/plain"
        assert clone.size == len(b"payload")
        clone.close()
        assert upload.read() == b"payload"
    finally:
        upload.close()


def test_try_clone_without_temporary_file_fails():
    upload = UploadValue(io.BytesIO(b"data"), "memory.txt")

    with pytest.raises(UploadCloneError):
        upload.try_clone()


def test_try_clone_of_deleted_file_fails(tmp_path):
    upload = UploadValue(io.BytesIO(b"data"), "gone.txt", path=str(tmp_path / "gone"))

    with pytest.raises(UploadCloneError):
        upload.try_clone()


def test_batch_request_shapes():
    single = BatchRequest.single(GraphQLRequest(query="{ a }"))
    batch = BatchRequest.batch([GraphQLRequest(query="{ a }"), GraphQLRequest(query="{ b }")])

    assert single.is_batch is False
    assert len(single) == 1
    assert single.into_single().query == "{ a }"

    assert batch.is_batch is True
    assert [request.query for request in batch] == ["{ a }", "{ b }"]
    with pytest.raises(UnsupportedBatch):
        batch.into_single()


def test_single_batch_requires_exactly_one_request():
    with pytest.raises(ValueError):
        BatchRequest([], is_batch=False)


def test_batch_close_releases_bound_uploads():
    upload = _upload()
    request = GraphQLRequest(variables={"file": None})
    clone = upload.try_clone()
    request.set_upload("variables.file", clone)
    upload.close()

    with BatchRequest.single(request):
        assert not clone.closed

    assert clone.closed
    assert request.uploads == []
