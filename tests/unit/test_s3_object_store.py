"""S3ObjectStore against moto's in-memory S3."""
from __future__ import annotations

from pathlib import Path

import boto3
import pytest
from moto import mock_aws

from sheetbridge.errors import StorageLifecycleError
from sheetbridge.storage.object_store import S3ObjectStore

BUCKET = "bucket-sheetbridge-test"


@pytest.fixture
def s3_store(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield S3ObjectStore(bucket=BUCKET, region="us-east-1")


def _put(store: S3ObjectStore, key: str, data: bytes = b"x") -> None:
    store._client.put_object(Bucket=BUCKET, Key=key, Body=data)


class TestListObjects:
    def test_lists_prefix_with_timestamps(self, s3_store):
        _put(s3_store, "Archivos_sheets/a.xlsx")
        _put(s3_store, "Archivos_sheets/b.xls")
        _put(s3_store, "other/c.xlsx")
        objs = s3_store.list_objects("Archivos_sheets/")
        assert sorted(o.key for o in objs) == ["Archivos_sheets/a.xlsx", "Archivos_sheets/b.xls"]
        assert all(o.updated.tzinfo is not None for o in objs)

    def test_handles_pagination(self, s3_store):
        for i in range(1005):
            _put(s3_store, f"bulk/{i:04d}.xlsx")
        assert len(s3_store.list_objects("bulk/")) == 1005

    def test_missing_bucket_raises(self, s3_store):
        store = S3ObjectStore(bucket="does-not-exist")
        with pytest.raises(StorageLifecycleError):
            store.list_objects("x/")


class TestTransfer:
    def test_download_and_upload(self, s3_store, tmp_path: Path):
        _put(s3_store, "in/a.xlsx", b"payload")
        dest = s3_store.download("in/a.xlsx", tmp_path / "work" / "source.xlsx")
        assert dest.read_bytes() == b"payload"
        key = s3_store.upload(dest, "out/a.json")
        assert key == "out/a.json"
        assert s3_store.exists("out/a.json")

    def test_download_missing_raises(self, s3_store, tmp_path: Path):
        with pytest.raises(StorageLifecycleError):
            s3_store.download("in/none.xlsx", tmp_path / "x.xlsx")


class TestLifecycle:
    def test_move_copies_and_deletes_source(self, s3_store):
        _put(s3_store, "in/a.xlsx", b"data")
        s3_store.move("in/a.xlsx", "archive/a.xlsx")
        assert s3_store.exists("archive/a.xlsx")
        assert not s3_store.exists("in/a.xlsx")

    def test_move_missing_raises(self, s3_store):
        with pytest.raises(StorageLifecycleError):
            s3_store.move("in/none.xlsx", "archive/none.xlsx")

    def test_delete(self, s3_store):
        _put(s3_store, "in/a.xlsx")
        s3_store.delete("in/a.xlsx")
        assert s3_store.list_objects("in/") == []
