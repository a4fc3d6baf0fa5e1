import json

import pytest
from pydantic import ValidationError

from cinestream.catalog import Catalog, load_catalog


def test_builtin_catalogue_when_no_path():
    catalog = load_catalog(None)
    assert [e.id for e in catalog.list()] == ["1", "2"]
    assert catalog.get("1").remote_url.endswith("sample-1.mp4")
    assert catalog.get("missing") is None


def test_catalogue_from_json_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            [
                {"id": "a", "title": "Alpha", "year": 1999, "remoteUrl": "https://cdn.example.com/a.mp4"},
                {"id": "b", "title": "Beta", "remoteUrl": "https://cdn.example.com/b/index.m3u8"},
            ]
        ),
        encoding="utf-8",
    )

    catalog = load_catalog(str(path))

    assert catalog.get("b").year is None
    assert catalog.get("a").remote_url == "https://cdn.example.com/a.mp4"


def test_catalogue_rejects_entries_without_url(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{"id": "a", "title": "Alpha"}]), encoding="utf-8")

    with pytest.raises(ValidationError):
        Catalog.from_file(path)
