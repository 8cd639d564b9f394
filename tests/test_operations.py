"""Tests for service, bucket and object operations against a scripted executor."""

import base64
import hashlib
import xml.etree.ElementTree as ET

import pytest

from aury.oss import (
    Acl,
    AuthenticationError,
    InvalidRequestError,
    InvalidResponseError,
    OssClient,
    RemoteError,
    RestoreTier,
    StorageClass,
)
from tests.conftest import REGION_HOST, error_xml, xml


@pytest.fixture
def bucket(client):
    return client.bucket("bucket")


@pytest.fixture
def obj(bucket):
    return bucket.object("dir/a b.txt")


class TestServiceOperations:
    """Test ListBuckets and DescribeRegions."""

    async def test_list_buckets(self, client, executor):
        executor.respond(
            200,
            content=xml(
                "<ListAllMyBucketsResult><Prefix>logs-</Prefix><MaxKeys>2</MaxKeys>"
                "<IsTruncated>true</IsTruncated><NextMarker>logs-b</NextMarker>"
                "<Owner><ID>512</ID><DisplayName>512</DisplayName></Owner>"
                "<Buckets>"
                "<Bucket><Name>logs-a</Name><CreationDate>2024-01-02T03:04:05.000Z</CreationDate>"
                "<Location>oss-cn-hangzhou</Location><StorageClass>Standard</StorageClass></Bucket>"
                "<Bucket><Name>logs-b</Name><Location>oss-cn-shanghai</Location></Bucket>"
                "</Buckets></ListAllMyBucketsResult>"
            ),
        )

        result = await client.list_buckets().set_prefix("logs-").set_max_keys(2).send()

        request = executor.last
        assert request.method == "GET"
        assert request.url == f"https://{REGION_HOST}/?prefix=logs-&max-keys=2"
        assert [b.name for b in result.buckets] == ["logs-a", "logs-b"]
        assert result.buckets[0].location == "oss-cn-hangzhou"
        assert result.is_truncated is True
        assert result.next_marker == "logs-b"
        assert result.owner.id == "512"

    async def test_list_buckets_single_and_empty(self, client, executor):
        """A single <Bucket> becomes a one-item list and an empty <Buckets/> an empty one."""
        executor.respond(
            200,
            content=xml("<ListAllMyBucketsResult><Buckets><Bucket><Name>only</Name></Bucket></Buckets></ListAllMyBucketsResult>"),
        )
        executor.respond(200, content=xml("<ListAllMyBucketsResult><Buckets/></ListAllMyBucketsResult>"))

        single = await client.list_buckets().send()
        empty = await client.list_buckets().send()

        assert [b.name for b in single.buckets] == ["only"]
        assert empty.buckets == []

    @pytest.mark.parametrize("max_keys", [0, 1001])
    def test_list_buckets_max_keys_range(self, client, max_keys):
        with pytest.raises(InvalidRequestError):
            client.list_buckets().set_max_keys(max_keys)

    async def test_describe_regions(self, client, executor):
        executor.respond(
            200,
            content=xml(
                "<RegionInfoList><RegionInfo><Region>oss-cn-hangzhou</Region>"
                "<InternetEndpoint>oss-cn-hangzhou.aliyuncs.com</InternetEndpoint>"
                "<InternalEndpoint>oss-cn-hangzhou-internal.aliyuncs.com</InternalEndpoint>"
                "<AccelerateEndpoint>oss-accelerate.aliyuncs.com</AccelerateEndpoint>"
                "</RegionInfo></RegionInfoList>"
            ),
        )

        regions = await client.describe_regions().set_regions("oss-cn-hangzhou").send()

        assert executor.last.url.endswith("/?regions=oss-cn-hangzhou")
        assert len(regions) == 1
        assert regions[0].internal_endpoint == "oss-cn-hangzhou-internal.aliyuncs.com"


class TestBucketOperations:
    """Test bucket-level operations."""

    async def test_put_bucket(self, bucket, executor):
        await bucket.put_bucket().set_acl(Acl.PUBLIC_READ).set_storage_class(StorageClass.IA).send()

        request = executor.last
        assert request.method == "PUT"
        assert request.url == f"https://bucket.{REGION_HOST}/"
        assert request.headers["x-oss-acl"] == "public-read"
        root = ET.fromstring(request.body)
        assert root.tag == "CreateBucketConfiguration"
        assert root.findtext("StorageClass") == "IA"
        assert root.find("DataRedundancyType") is None

    async def test_put_bucket_without_body(self, bucket, executor):
        await bucket.put_bucket().send()

        assert executor.last.body is None
        assert "Content-Type" not in executor.last.headers

    async def test_del_bucket(self, bucket, executor):
        executor.respond(204)

        await bucket.del_bucket().send()

        assert executor.last.method == "DELETE"

    async def test_get_bucket_info(self, bucket, executor):
        executor.respond(
            200,
            content=xml(
                "<BucketInfo><Bucket><Name>bucket</Name><Location>oss-cn-hangzhou</Location>"
                "<CreationDate>2024-01-02T03:04:05.000Z</CreationDate>"
                "<StorageClass>Standard</StorageClass><Versioning>Enabled</Versioning>"
                "<Owner><ID>512</ID><DisplayName>owner</DisplayName></Owner>"
                "<AccessControlList><Grant>private</Grant></AccessControlList>"
                "<ServerSideEncryptionRule><SSEAlgorithm>AES256</SSEAlgorithm></ServerSideEncryptionRule>"
                "<BucketPolicy><LogBucket>logs</LogBucket><LogPrefix></LogPrefix></BucketPolicy>"
                "</Bucket></BucketInfo>"
            ),
        )

        info = await bucket.get_bucket_info().send()

        assert executor.last.url.endswith("/?bucketInfo")
        assert info.name == "bucket"
        assert info.versioning == "Enabled"
        assert info.access_control_list.grant is Acl.PRIVATE
        assert info.server_side_encryption_rule.sse_algorithm == "AES256"
        assert info.bucket_policy.log_bucket == "logs"
        assert info.bucket_policy.log_prefix is None

    async def test_get_bucket_info_invalid_body(self, bucket, executor):
        """A 2xx response with an unparsable body raises InvalidResponseError."""
        executor.respond(200, content=b"not xml")

        with pytest.raises(InvalidResponseError) as exc_info:
            await bucket.get_bucket_info().send()

        assert exc_info.value.body == b"not xml"

    async def test_get_bucket_stat(self, bucket, executor):
        executor.respond(
            200,
            content=xml(
                "<BucketStat><Storage>1600</Storage><ObjectCount>230</ObjectCount>"
                "<MultipartUploadCount>40</MultipartUploadCount></BucketStat>"
            ),
        )

        stat = await bucket.get_bucket_stat().send()

        assert executor.last.url.endswith("/?stat")
        assert (stat.storage, stat.object_count, stat.multipart_upload_count) == (1600, 230, 40)

    async def test_del_objects(self, bucket, executor):
        """Batch delete sends a quiet XML body with its Content-MD5."""
        await bucket.del_objects(["a.txt", "dir/b.txt"]).send()

        request = executor.last
        assert request.method == "POST"
        assert request.url.endswith("/?delete")
        root = ET.fromstring(request.body)
        assert root.findtext("Quiet") == "true"
        assert [item.findtext("Key") for item in root.findall("Object")] == ["a.txt", "dir/b.txt"]
        expected_md5 = base64.b64encode(hashlib.md5(request.body).digest()).decode()
        assert request.headers["Content-MD5"] == expected_md5

    async def test_del_objects_requires_keys(self, bucket, executor):
        with pytest.raises(InvalidRequestError):
            await bucket.del_objects().send()

        assert executor.requests == []

    async def test_list_objects_pages(self, bucket, executor):
        """Pages are fetched by continuation token until max_objects is reached."""
        executor.respond(
            200,
            content=xml(
                "<ListBucketResult><Name>bucket</Name><Prefix>logs/</Prefix>"
                "<IsTruncated>true</IsTruncated><NextContinuationToken>token-1</NextContinuationToken>"
                "<Contents><Key>logs/a</Key><ETag>\"e1\"</ETag><Size>10</Size></Contents>"
                "<Contents><Key>logs/b</Key><ETag>\"e2\"</ETag><Size>20</Size></Contents>"
                "</ListBucketResult>"
            ),
        )
        executor.respond(
            200,
            content=xml(
                "<ListBucketResult><Name>bucket</Name><Prefix>logs/</Prefix>"
                "<IsTruncated>true</IsTruncated><NextContinuationToken>token-2</NextContinuationToken>"
                "<Contents><Key>logs/c</Key><Size>30</Size></Contents>"
                "</ListBucketResult>"
            ),
        )

        result = await bucket.list_objects().set_prefix("logs/").set_max_objects(3).send()

        first, second = executor.requests
        assert first.url.endswith("/?list-type=2&max-keys=3&fetch-owner=false&prefix=logs/")
        assert second.url.endswith("max-keys=1&fetch-owner=false&prefix=logs/&continuation-token=token-1")
        assert [item.key for item in result.contents] == ["logs/a", "logs/b", "logs/c"]
        assert result.contents[0].e_tag == "e1"
        assert result.next_continuation_token == "token-2"
        assert result.prefix == "logs/"

    async def test_list_objects_decodes_url_encoded_names(self, bucket, executor):
        executor.respond(
            200,
            content=xml(
                "<ListBucketResult><Name>bucket</Name><Delimiter>/</Delimiter>"
                "<IsTruncated>false</IsTruncated><EncodingType>url</EncodingType>"
                "<Contents><Key>a%20b.txt</Key><Size>1</Size></Contents>"
                "<CommonPrefixes><Prefix>dir%2F1/</Prefix></CommonPrefixes>"
                "</ListBucketResult>"
            ),
        )

        result = await bucket.list_objects().set_delimiter("/").set_encoding_type("url").send()

        assert len(executor.requests) == 1
        assert result.contents[0].key == "a b.txt"
        assert result.common_prefixes[0].prefix == "dir/1/"
        assert result.next_continuation_token is None

    async def test_list_objects_is_single_use(self, bucket, executor):
        executor.respond(200, content=xml("<ListBucketResult><IsTruncated>false</IsTruncated></ListBucketResult>"))
        listing = bucket.list_objects()
        await listing.send()

        with pytest.raises(InvalidRequestError):
            listing.set_prefix("again")

    async def test_custom_domain(self, bucket, executor):
        """Requests go to the custom domain while the signed resource keeps the bucket."""
        await bucket.set_custom_domain("static.example.com").object("a.txt").del_object().send()

        request = executor.last
        assert request.url == "https://static.example.com/a.txt"
        assert request.canonical_resource == "/bucket/a.txt"


class TestObjectOperations:
    """Test object-level operations."""

    async def test_put_object_options(self, obj, executor):
        executor.respond(200, headers={"ETag": '"etag-1"', "x-oss-version-id": "v1"})

        result = await (
            obj.put_object()
            .set_meta("Owner", "alice")
            .set_tagging("a", "1")
            .set_tagging("b")
            .set_acl(Acl.PRIVATE)
            .set_storage_class(StorageClass.ARCHIVE)
            .forbid_overwrite()
            .send_content("hello")
        )

        request = executor.last
        assert request.method == "PUT"
        assert request.url == f"https://bucket.{REGION_HOST}/dir/a%20b.txt"
        assert request.body == b"hello"
        assert request.headers["Content-Type"] == "application/octet-stream"
        assert request.headers["x-oss-meta-owner"] == "alice"
        assert request.headers["x-oss-tagging"] == "a=1&b"
        assert request.headers["x-oss-object-acl"] == "private"
        assert request.headers["x-oss-storage-class"] == "Archive"
        assert request.headers["x-oss-forbid-overwrite"] == "true"
        assert result.e_tag == "etag-1"
        assert result.version_id == "v1"

    @pytest.mark.parametrize("key", ["bad key", "bad_key", "", "元数据"])
    def test_invalid_metadata_key(self, obj, key):
        with pytest.raises(InvalidRequestError, match="元数据键"):
            obj.put_object().set_meta(key, "v")

    async def test_put_object_from_file_guesses_mime(self, obj, executor, tmp_path):
        path = tmp_path / "report.json"
        path.write_bytes(b'{"a": 1}')

        await obj.put_object().send_file(path)

        assert executor.last.body == b'{"a": 1}'
        assert executor.last.headers["Content-Type"] == "application/json"

    async def test_download_name(self, obj, executor):
        await obj.put_object().set_download_name("报告.pdf").send_content(b"x")

        disposition = executor.last.headers["Content-Disposition"]
        assert disposition.startswith("attachment;filename=\"%E6%8A%A5%E5%91%8A.pdf\"")

    async def test_append_object(self, obj, executor):
        executor.respond(200, headers={"x-oss-next-append-position": "11", "x-oss-hash-crc64ecma": "123"})

        result = await obj.append_object().set_position(5).send_content(b"world!")

        assert executor.last.method == "POST"
        assert executor.last.url.endswith("?append&position=5")
        assert result.next_append_position == 11
        assert result.hash_crc64ecma == "123"

    async def test_append_object_missing_position(self, obj, executor):
        with pytest.raises(InvalidResponseError):
            await obj.append_object().send_content(b"x")

    async def test_get_object_range(self, obj, executor):
        executor.respond(206, content=b"llo")

        data = await obj.get_object().set_range(2, 4).download()

        assert executor.last.headers["Range"] == "bytes=2-4"
        assert data == b"llo"

    async def test_download_to_file(self, obj, executor, tmp_path):
        executor.respond(200, content=b"payload")
        target = tmp_path / "nested" / "out.bin"

        written = await obj.get_object().download_to_file(target)

        assert written == 7
        assert target.read_bytes() == b"payload"

    async def test_download_to_existing_file(self, obj, executor, tmp_path):
        target = tmp_path / "out.bin"
        target.write_bytes(b"old")

        with pytest.raises(FileExistsError):
            await obj.get_object().download_to_file(target)

        assert target.read_bytes() == b"old"

    async def test_download_to_network_path(self, obj, executor):
        with pytest.raises(InvalidRequestError):
            await obj.get_object().download_to_file("http://example.com/out.bin")

        assert executor.requests == []

    async def test_head_object(self, obj, executor):
        """HEAD returns object headers with transport headers filtered out."""
        executor.respond(
            200,
            headers={
                "ETag": '"etag-1"',
                "Content-Length": "5",
                "Date": "Tue, 02 Jan 2024 03:04:05 GMT",
                "x-oss-request-id": "req-1",
                "x-oss-meta-owner": "alice",
                "x-oss-object-type": "Normal",
            },
        )

        headers = await obj.head_object().send()

        assert headers == {"etag": "etag-1", "x-oss-meta-owner": "alice", "x-oss-object-type": "Normal"}

    async def test_get_object_meta(self, obj, executor):
        executor.respond(200, headers={"ETag": '"etag-1"', "Content-Length": "5", "Last-Modified": "x"})

        meta = await obj.get_object_meta().send()

        assert executor.last.method == "HEAD"
        assert executor.last.url.endswith("?objectMeta")
        assert meta.e_tag == "etag-1"
        assert meta.content_length == 5

    async def test_copy_object(self, obj, executor):
        executor.respond(
            200,
            content=xml("<CopyObjectResult><LastModified>x</LastModified><ETag>\"copied\"</ETag></CopyObjectResult>"),
        )

        result = await obj.copy_object("src", "dir/源 1.txt").set_metadata_directive().send()

        headers = executor.last.headers
        assert headers["x-oss-copy-source"] == "/src/dir/%E6%BA%90%201.txt"
        assert headers["x-oss-metadata-directive"] == "REPLACE"
        assert result.e_tag == "copied"

    def test_copy_object_requires_source(self, obj):
        with pytest.raises(InvalidRequestError):
            obj.copy_object("", "key")

    async def test_tagging(self, obj, executor):
        executor.respond(200)
        executor.respond(
            200,
            content=xml(
                "<Tagging><TagSet><Tag><Key>a</Key><Value>1</Value></Tag>"
                "<Tag><Key>b</Key><Value></Value></Tag></TagSet></Tagging>"
            ),
        )

        await obj.put_object_tagging([("a", "1")]).add_tag("b").send()
        body = ET.fromstring(executor.last.body)
        tags = await obj.get_object_tagging().send()

        assert [(t.findtext("Key"), t.findtext("Value")) for t in body.iterfind("TagSet/Tag")] == [
            ("a", "1"),
            ("b", ""),
        ]
        assert [(tag.key, tag.value) for tag in tags] == [("a", "1"), ("b", "")]

    async def test_object_acl(self, obj, executor):
        executor.respond(200)
        executor.respond(
            200,
            content=xml(
                "<AccessControlPolicy><Owner><ID>1</ID></Owner>"
                "<AccessControlList><Grant>public-read</Grant></AccessControlList></AccessControlPolicy>"
            ),
        )

        await obj.put_object_acl(Acl.PUBLIC_READ).send()
        put_request = executor.last
        acl = await obj.get_object_acl().send()

        assert put_request.headers["x-oss-object-acl"] == "public-read"
        assert put_request.url.endswith("?acl")
        assert acl is Acl.PUBLIC_READ

    async def test_symlink(self, obj, executor):
        executor.respond(200)
        executor.respond(200, headers={"x-oss-symlink-target": "dir/%E7%9B%AE%E6%A0%87%20b.txt"})

        await obj.put_symlink("dir/目标 b.txt").send()
        put_headers = executor.last.headers
        target = await obj.get_symlink().send()

        assert put_headers["x-oss-symlink-target"] == "dir/%E7%9B%AE%E6%A0%87%20b.txt"
        assert target == "dir/目标 b.txt"

    async def test_restore_object(self, obj, executor):
        executor.respond(202)

        await obj.restore_object().set_days(2).set_tier(RestoreTier.EXPEDITED).send()

        root = ET.fromstring(executor.last.body)
        assert executor.last.url.endswith("?restore")
        assert root.findtext("Days") == "2"
        assert root.findtext("JobParameters/Tier") == "Expedited"

    async def test_restore_object_without_body(self, obj, executor):
        await obj.restore_object().send()

        assert executor.last.body is None


class TestRemoteErrors:
    """Non-2xx responses map to typed errors."""

    async def test_remote_error_fields(self, obj, executor):
        executor.respond(404, content=error_xml("NoSuchKey", "The specified key does not exist.", "req-9"))

        with pytest.raises(RemoteError) as exc_info:
            await obj.get_object().download()

        error = exc_info.value
        assert error.status_code == 404
        assert error.error_code == "NoSuchKey"
        assert error.error_message == "The specified key does not exist."
        assert error.request_id == "req-9"
        assert error.ec == "0003-00000001"
        assert not isinstance(error, AuthenticationError)

    async def test_signature_mismatch(self, obj, executor):
        executor.respond(403, content=error_xml("SignatureDoesNotMatch"))

        with pytest.raises(AuthenticationError):
            await obj.get_object().download()

    async def test_head_error_from_header(self, obj, executor):
        """HEAD responses carry the error document base64-encoded in x-oss-err."""
        document = base64.b64encode(error_xml("NoSuchKey")).decode()
        executor.respond(404, headers={"x-oss-err": document, "x-oss-request-id": "req-h"})

        with pytest.raises(RemoteError) as exc_info:
            await obj.head_object().send()

        assert exc_info.value.error_code == "NoSuchKey"

    async def test_error_without_body(self, obj, executor):
        executor.respond(500, headers={"x-oss-request-id": "req-5"})

        with pytest.raises(RemoteError) as exc_info:
            await obj.del_object().send()

        assert exc_info.value.error_code is None
        assert exc_info.value.request_id == "req-5"
        assert exc_info.value.message == "HTTP 500"


class TestOssClient:
    """Test client construction and lifecycle."""

    async def test_context_manager_keeps_external_executor(self, executor):
        async with OssClient("ak", "sk", REGION_HOST, executor=executor) as client:
            await client.bucket("bucket").object("a").del_object().send()

        assert len(executor.requests) == 1

    async def test_close_without_requests(self):
        client = OssClient("ak", "sk", REGION_HOST)

        await client.close()

    def test_repr_hides_secret(self):
        client = OssClient("ak", "super-secret", REGION_HOST)

        assert "super-secret" not in repr(client)
        assert "super-secret" not in repr(client.context)

    def test_empty_credentials(self):
        with pytest.raises(InvalidRequestError):
            OssClient("", "sk")
