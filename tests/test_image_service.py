"""Tests for image input normalization."""
import base64
import io

import pytest
from werkzeug.datastructures import FileStorage

from storefront.services import image_service
from storefront.services.image_service import (
    Absent,
    DataUri,
    FileHandle,
    RawBytes,
    classify,
    to_buffer,
)


@pytest.mark.parametrize(
    "value",
    [None, b"", "not-a-data-uri", b"x" * 50],
    ids=["none", "empty-bytes", "plain-string", "short-bytes"],
)
def test_to_buffer_returns_none_for_unusable_input(value):
    assert to_buffer(value) is None


def test_to_buffer_accepts_raw_png(png):
    data = png(1)
    assert to_buffer(data) == data


def test_to_buffer_decodes_data_uri(png):
    data = png(2)
    uri = "data:image/png;base64," + base64.b64encode(data).decode()
    assert to_buffer(uri) == data


def test_to_buffer_rejects_malformed_data_uri():
    assert to_buffer("data:image/png;charset=utf-8,abc") is None
    assert to_buffer("data:image/png;base64,@@@not base64@@@") is None


def test_to_buffer_reads_uploaded_file(png, upload):
    data = png(3)
    assert to_buffer(upload(data)) == data


def test_to_buffer_rejects_non_image_bytes():
    assert to_buffer(b"\x00\x01garbage" * 40) is None


def test_to_buffer_rejects_non_image_upload(upload):
    assert to_buffer(upload(b"plain text " * 30, "notes.txt", "text/plain")) is None


def test_to_buffer_empty_file_input_is_absent():
    empty = FileStorage(stream=io.BytesIO(b""), filename="")
    assert isinstance(classify(empty), Absent)
    assert to_buffer(empty) is None


def test_to_buffer_swallows_read_errors():
    class Broken:
        filename = "broken.png"

        def read(self):
            raise OSError("disk gone")

    assert to_buffer(Broken()) is None


def test_to_buffer_unsupported_type():
    assert to_buffer(12345) is None


def test_classify_variants(png, upload):
    assert isinstance(classify(None), Absent)
    assert isinstance(classify(""), Absent)
    assert isinstance(classify("data:image/png;base64,AAAA"), DataUri)
    assert isinstance(classify(bytearray(b"abc")), RawBytes)
    assert isinstance(classify(upload(png(1))), FileHandle)
    with pytest.raises(TypeError):
        classify(object())


def test_min_size_follows_config(app, png):
    data = png(4)
    app.config["IMAGE_MIN_BYTES"] = len(data) + 1
    try:
        assert to_buffer(data) is None
    finally:
        app.config["IMAGE_MIN_BYTES"] = 100


def test_mime_type_for(png):
    assert image_service.mime_type_for(png(1)) == "image/png"
    assert image_service.mime_type_for(b"nope" * 50) is None
