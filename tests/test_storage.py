import io

import pytest
from botocore.exceptions import ClientError

from icewalk.config.catalog_config import StorageConfig
from icewalk.storage import LocalStorage, S3Storage, StorageRouter, open_storage, storage_family
from icewalk.storage.prefix_index import PrefixIndex, build_prefix_index, normalize_location
from icewalk.utils.exceptions import ObjectNotFoundError, StorageAccessError, StorageError
from icewalk.utils.s3_utils import build_s3_uri, get_scheme, normalize_s3_uri, parse_s3_uri


class _S3Client:
    def __init__(self, objects=None, head_errors=None, pages=None):
        self.objects = objects or {}
        self.head_errors = head_errors or {}
        self.pages = pages or []
        self.paginate_kwargs = None

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def head_object(self, Bucket, Key):
        if Key in self.head_errors:
            code = self.head_errors[Key]
            raise ClientError({"Error": {"Code": code, "Message": code}}, "HeadObject")
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {}

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        return self

    def paginate(self, **kwargs):
        self.paginate_kwargs = kwargs
        return iter(self.pages)


def test_s3_storage_reads_and_checks_objects():
    client = _S3Client(objects={("bucket", "t/metadata/v1.metadata.json"): b"{}"}, head_errors={"t/secret": "403"})
    storage = S3Storage(s3_client=client)

    assert storage.read_bytes("s3://bucket/t/metadata/v1.metadata.json") == b"{}"
    assert storage.read_bytes("s3a://bucket/t/metadata/v1.metadata.json") == b"{}"
    assert storage.exists("s3://bucket/t/metadata/v1.metadata.json") is True
    assert storage.exists("s3://bucket/t/data/gone.parquet") is False

    with pytest.raises(ObjectNotFoundError):
        storage.open("s3://bucket/t/data/gone.parquet")
    with pytest.raises(StorageAccessError) as exc_info:
        storage.exists("s3://bucket/t/secret")
    assert exc_info.value.details["error_code"] == "403"


def test_s3_storage_lists_prefix():
    client = _S3Client(pages=[
        {"Contents": [{"Key": "t/data/a.parquet"}, {"Key": "t/data/b.parquet"}]},
        {},
        {"Contents": [{"Key": "t/metadata/v1.metadata.json"}]},
    ])

    paths = list(S3Storage(s3_client=client).list_paths("s3://bucket/t/"))

    assert paths == [
        "s3://bucket/t/data/a.parquet",
        "s3://bucket/t/data/b.parquet",
        "s3://bucket/t/metadata/v1.metadata.json",
    ]
    assert client.paginate_kwargs == {"Bucket": "bucket", "Prefix": "t/"}


def test_local_storage(tmp_path):
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "a.parquet").write_bytes(b"PAR1")
    storage = LocalStorage()

    assert storage.read_bytes(str(tmp_path / "data" / "a.parquet")) == b"PAR1"
    assert storage.read_bytes((tmp_path / "data" / "a.parquet").as_uri()) == b"PAR1"
    assert storage.exists(str(tmp_path / "data" / "a.parquet")) is True
    assert storage.exists(str(tmp_path / "data")) is False
    assert list(storage.list_paths(str(tmp_path))) == [str(tmp_path / "data" / "a.parquet")]
    assert list(storage.list_paths(tmp_path.as_uri())) == [(tmp_path / "data" / "a.parquet").as_uri()]

    with pytest.raises(ObjectNotFoundError):
        storage.open(str(tmp_path / "missing.avro"))


def test_local_storage_rejects_remote_locations():
    storage = LocalStorage()

    with pytest.raises(StorageAccessError, match="Not a local location"):
        storage.exists("s3://bucket/t/data/a.parquet")
    with pytest.raises(StorageAccessError):
        storage.open("s3a://bucket/t/metadata/snap-1.avro")


def test_storage_router_dispatches_on_scheme(tmp_path):
    (tmp_path / "a.parquet").write_bytes(b"PAR1")
    client = _S3Client(objects={("bucket", "t/data/a.parquet"): b"PAR1"}, pages=[{"Contents": [{"Key": "t/data/a.parquet"}]}])
    created = []

    def factory(location, config=None, properties=None):
        created.append(location)
        return S3Storage(s3_client=client) if storage_family(location) == "s3" else LocalStorage()

    router = StorageRouter(storage_factory=factory)

    assert router.exists(str(tmp_path / "a.parquet")) is True
    assert router.exists("s3://bucket/t/data/a.parquet") is True
    assert router.exists("s3n://bucket/t/data/b.parquet") is False
    assert router.read_bytes(tmp_path.joinpath("a.parquet").as_uri()) == b"PAR1"
    assert list(router.list_paths("s3://bucket/t/")) == ["s3://bucket/t/data/a.parquet"]
    assert created == [str(tmp_path / "a.parquet"), "s3://bucket/t/data/a.parquet"]

    with pytest.raises(StorageError, match="Unsupported storage scheme"):
        StorageRouter().exists("gs://bucket/t/data/a.parquet")


def test_open_storage_dispatches_on_scheme():
    assert isinstance(open_storage("/tmp/table/metadata/v1.metadata.json"), LocalStorage)
    assert isinstance(open_storage("file:///tmp/table/metadata/v1.metadata.json"), LocalStorage)
    s3 = open_storage(
        "s3a://bucket/t/metadata/v1.metadata.json",
        StorageConfig(region_name="us-east-1"),
        {"s3.endpoint": "http://localhost:9000"},
    )
    assert isinstance(s3, S3Storage)

    with pytest.raises(StorageError, match="Unsupported storage scheme"):
        open_storage("gs://bucket/t/metadata/v1.metadata.json")


def test_storage_config_overlays_vended_properties():
    config = StorageConfig(access_key_id="configured", region_name="us-east-1")

    merged = config.with_properties({
        "s3.access-key-id": "vended",
        "s3.session-token": "token",
        "client.region": "eu-west-1",
    })

    assert merged.access_key_id == "vended"
    assert merged.session_token == "token"
    assert merged.region_name == "eu-west-1"
    assert config.with_properties({}) is config


def test_prefix_index_normalizes_locations():
    index = PrefixIndex("s3://bucket/t/", ["s3a://bucket/t/data/a.parquet", "s3://bucket/t/data/b.parquet"])

    assert len(index) == 2
    assert index.exists("s3://bucket/t/data/a.parquet")
    assert index.exists("s3n://bucket/t/data/b.parquet")
    assert not index.exists("s3://bucket/t/data/c.parquet")
    assert index.covers("s3://bucket/t/data/c.parquet")
    assert not index.covers("s3://bucket/t2/data/c.parquet")


def test_build_prefix_index_falls_back_to_none():
    class _NoListing:
        def exists(self, path):
            return True

    class _FailingListing:
        def list_paths(self, prefix):
            raise StorageAccessError("denied")

    assert build_prefix_index(_NoListing(), "s3://bucket/t") is None
    assert build_prefix_index(_FailingListing(), "s3://bucket/t") is None


def test_normalize_location():
    assert normalize_location("s3a://bucket/key") == "s3://bucket/key"
    assert normalize_location("file:///tmp/a%20b/x.parquet") == "/tmp/a b/x.parquet"


@pytest.mark.parametrize(
    ("uri", "expected"),
    [
        ("s3://bucket/path/to/object", ("bucket", "path/to/object")),
        ("s3a://bucket/path", ("bucket", "path")),
        ("s3://bucket", ("bucket", "")),
    ],
)
def test_parse_s3_uri(uri, expected):
    assert parse_s3_uri(uri) == expected


@pytest.mark.parametrize("uri", ["/local/path", "gs://bucket/key", "s3:///key"])
def test_parse_s3_uri_rejects_invalid(uri):
    with pytest.raises(StorageError):
        parse_s3_uri(uri)


def test_uri_helpers():
    assert normalize_s3_uri("s3n://b/k") == "s3://b/k"
    assert normalize_s3_uri("/tmp/x") == "/tmp/x"
    assert build_s3_uri("b", "/k") == "s3://b/k"
    assert get_scheme("/tmp/x") is None
    assert get_scheme("C:\\data\\x") is None
    assert get_scheme("S3://b/k") == "s3"
