import dataclasses

import boto3
import pytest
from moto import mock_aws

from warddost.config import get_settings
from warddost.storage import LocalStorage, build_image_key
from warddost.storage_s3 import S3Storage, StorageError


def _s3_settings(**overrides):
    values = dict(
        storage_provider="s3",
        s3_bucket="test-complaint-images",
        s3_region="us-east-1",
        s3_endpoint=None,
        s3_access_key_id="testing",
        s3_secret_access_key="testing",
        s3_public_url_base=None,
        kms_key_id=None,
    )
    values.update(overrides)
    return dataclasses.replace(get_settings(), **values)


@mock_aws
def test_put_object_uploads_to_bucket():
    boto3.client("s3", region_name="us-east-1").create_bucket(Bucket="test-complaint-images")
    storage = S3Storage(_s3_settings())

    storage.put_object("u1/c1/1.png", b"\x89PNG", content_type="image/png")

    obj = boto3.client("s3", region_name="us-east-1").get_object(Bucket="test-complaint-images", Key="u1/c1/1.png")
    assert obj["Body"].read() == b"\x89PNG"
    assert obj["ContentType"] == "image/png"


@mock_aws
def test_missing_bucket_raises_storage_error():
    storage = S3Storage(_s3_settings(s3_bucket="does-not-exist"))
    with pytest.raises(StorageError):
        storage.put_object("k", b"data")


@mock_aws
def test_ensure_bucket_creates_it():
    storage = S3Storage(_s3_settings(s3_bucket="fresh-bucket"))
    storage.ensure_bucket()
    names = [b["Name"] for b in boto3.client("s3", region_name="us-east-1").list_buckets()["Buckets"]]
    assert "fresh-bucket" in names


@mock_aws
def test_delete_object():
    client = boto3.client("s3", region_name="us-east-1")
    client.create_bucket(Bucket="test-complaint-images")
    client.put_object(Bucket="test-complaint-images", Key="k", Body=b"x")
    S3Storage(_s3_settings()).delete_object("k")
    assert client.list_objects_v2(Bucket="test-complaint-images").get("KeyCount") == 0


def test_public_urls():
    with mock_aws():
        assert (
            S3Storage(_s3_settings()).public_url("a/b.png")
            == "https://test-complaint-images.s3.us-east-1.amazonaws.com/a/b.png"
        )
        assert (
            S3Storage(_s3_settings(s3_endpoint="http://minio:9000")).public_url("a/b.png")
            == "http://minio:9000/test-complaint-images/a/b.png"
        )
        assert (
            S3Storage(_s3_settings(s3_public_url_base="https://cdn.example.com/")).public_url("a/b.png")
            == "https://cdn.example.com/a/b.png"
        )


def test_image_key_layout():
    key = build_image_key("user-1", "complaint-9", "Photo.JPEG")
    user, complaint, name = key.split("/")
    assert (user, complaint) == ("user-1", "complaint-9")
    stem, ext = name.split(".")
    assert stem.isdigit()
    assert ext == "jpeg"


def test_local_storage_roundtrip(tmp_path):
    storage = LocalStorage(tmp_path, "http://localhost:8000/")
    storage.put_object("u/c/1.png", b"abc")
    assert (tmp_path / "u/c/1.png").read_bytes() == b"abc"
    assert storage.public_url("u/c/1.png") == "http://localhost:8000/storage/u/c/1.png"
    storage.delete_object("u/c/1.png")
    assert not (tmp_path / "u/c/1.png").exists()
