import json
import os
from datetime import timezone

import pytest

from fsdocstore.errors import InvalidArgument, InvalidData
from fsdocstore.storage.docstore.codec import (
    Document,
    DocumentMeta,
    decode_document,
    doc_id_from_filename,
    encode_document,
    validate_doc_id,
)


def _meta(doc_id="a"):
    return DocumentMeta(id=doc_id, created_ns=1_700_000_000_000_000_000, updated_ns=1_700_000_001_000_000_000)


def test_encode_strips_identity_field():
    raw = encode_document({"_id": "x", "name": "Bilbo", "tags": ["a"]})
    assert json.loads(raw) == {"name": "Bilbo", "tags": ["a"]}


def test_encode_rejects_non_json_content():
    with pytest.raises(InvalidArgument):
        encode_document({"when": object()})
    with pytest.raises(InvalidArgument):
        encode_document(["not", "a", "dict"])


def test_decode_overrides_stored_identity():
    doc = decode_document('{"_id": "liar", "n": 1}', _meta("truth"))
    assert isinstance(doc, Document)
    assert doc == {"_id": "truth", "n": 1}
    assert doc.id == "truth"
    assert doc.meta.id == "truth"


@pytest.mark.parametrize("raw", ["", "{not json", "[1, 2]", '"text"'])
def test_decode_invalid_content(raw):
    with pytest.raises(InvalidData) as ei:
        decode_document(raw, _meta("bad"), collection="c")
    assert ei.value.doc_id == "bad"
    assert ei.value.collection == "c"


def test_meta_timestamps_are_utc(tmp_path):
    p = tmp_path / "a.json"
    p.write_text("{}")
    meta = DocumentMeta.from_stat("a", os.stat(p))

    assert meta.created_at.tzinfo == timezone.utc
    assert meta.updated_ns == os.stat(p).st_mtime_ns
    assert meta.size == 2
    assert meta.to_dict()["_id"] == "a"


def test_doc_id_from_filename():
    assert doc_id_from_filename("abc.json") == "abc"
    assert doc_id_from_filename("abc.lock") is None
    assert doc_id_from_filename("abc.json.tmp") is None
    assert doc_id_from_filename(".json") is None


@pytest.mark.parametrize("bad", ["", ".", "..", "a/b", "a\x00b", None, 5])
def test_validate_doc_id_rejects(bad):
    with pytest.raises(InvalidArgument):
        validate_doc_id(bad)


def test_validate_doc_id_accepts_plain_ids():
    assert validate_doc_id("f1") == "f1"
    assert validate_doc_id("with space and-dash") == "with space and-dash"
