"""
Unit tests for binding uploaded files to variable paths.
"""

import io

import pytest
from django.core.files.uploadedfile import TemporaryUploadedFile

from graphql_transport.exceptions import MissingFiles, UploadCloneError
from graphql_transport.request import BatchRequest, GraphQLRequest, UploadValue
from graphql_transport.uploads.binder import PendingUpload, bind_uploads

pytestmark = pytest.mark.unit


def _pending(name, content=b"hello", filename="hello.txt"):
    uploaded = TemporaryUploadedFile(filename, "text/plain", 0, None)
    uploaded.write(content)
    uploaded.flush()
    uploaded.seek(0)
    uploaded.size = len(content)
    return PendingUpload(name, UploadValue.from_uploaded_file(uploaded))


@pytest.fixture
def pending_uploads():
    created = []

    def factory(*args, **kwargs):
        item = _pending(*args, **kwargs)
        created.append(item)
        return item

    yield factory
    for item in created:
        item.close()


def _single(variables):
    return BatchRequest.single(GraphQLRequest(query="mutation", variables=variables))


def _batch(*variables):
    return BatchRequest.batch([GraphQLRequest(query="mutation", variables=v) for v in variables])


def test_single_request_binds_direct_path(pending_uploads):
    batch = _single({"file": None})

    bind_uploads(batch, {"f": ["variables.file"]}, [pending_uploads("f", b"content")])

    upload = batch[0].variables["file"]
    assert isinstance(upload, UploadValue)
    assert upload.read() == b"content"
    assert upload.filename == "hello.txt"
    batch.close()


def test_same_file_bound_to_several_paths_gets_distinct_handles(pending_uploads):
    batch = _single({"files": [None, None]})

    bind_uploads(
        batch,
        {"f": ["variables.files.0", "variables.files.1"]},
        [pending_uploads("f", b"shared")],
    )

    first, second = batch[0].variables["files"]
    assert first is not second
    assert first.read() == b"shared"
    assert second.read() == b"shared"
    assert len(batch[0].uploads) == 2
    batch.close()


def test_batch_request_binds_only_the_indexed_operation(pending_uploads):
    batch = _batch({"file": None}, {"file": None})

    bind_uploads(batch, {"f": ["0.variables.file"]}, [pending_uploads("f")])

    assert isinstance(batch[0].variables["file"], UploadValue)
    assert batch[1].variables["file"] is None
    batch.close()


@pytest.mark.parametrize(
    "path",
    ["5.variables.file", "x.variables.file", "-1.variables.file", "variables", "1"],
)
def test_batch_request_skips_unusable_paths(pending_uploads, path):
    batch = _batch({"file": None}, {"file": None})

    bind_uploads(batch, {"f": [path]}, [pending_uploads("f")])

    assert batch[0].variables["file"] is None
    assert batch[1].variables["file"] is None
    assert batch[0].uploads == [] and batch[1].uploads == []


def test_unresolvable_variable_path_is_skipped(pending_uploads):
    batch = _single({"file": None})

    bind_uploads(batch, {"f": ["variables.other"]}, [pending_uploads("f")])

    assert batch[0].variables == {"file": None}
    assert batch[0].uploads == []


def test_unmapped_files_are_ignored(pending_uploads):
    batch = _single({"file": None})

    bind_uploads(batch, {}, [pending_uploads("unused")])

    assert batch[0].variables == {"file": None}


def test_unsatisfied_map_entries_raise_missing_files(pending_uploads):
    batch = _single({"file": None, "other": None})

    with pytest.raises(MissingFiles) as excinfo:
        bind_uploads(
            batch,
            {"f": ["variables.file"], "g": ["variables.other"]},
            [pending_uploads("f")],
        )

    assert excinfo.value.names == ["g"]
    batch.close()


def test_map_entries_are_consumed_once(pending_uploads):
    batch = _single({"a": None, "b": None})
    files_map = {"f": ["variables.a"]}

    bind_uploads(batch, files_map, [pending_uploads("f", b"1"), pending_uploads("f", b"2")])

    assert files_map == {}
    assert batch[0].variables["a"].read() == b"1"
    assert batch[0].variables["b"] is None
    batch.close()


def test_clone_failure_raises_upload_clone_error():
    batch = _single({"file": None})
    pending = PendingUpload("f", UploadValue(io.BytesIO(b"data"), "memory.txt"))

    with pytest.raises(UploadCloneError):
        bind_uploads(batch, {"f": ["variables.file"]}, [pending])
