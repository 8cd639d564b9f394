"""Tests for RequestBuilder: validation, freezing, signing and dispatch."""

import base64
import dataclasses
import hashlib

import pytest

from aury.oss import AuthenticationError, InvalidRequestError, RemoteError, TransportError
from aury.oss.core import Credential, ClientContext, Endpoint, RequestBuilder, Scope
from aury.oss.core.request import render_query
from aury.oss.core.sign import string_to_sign
from aury.oss.toolkit.http import HttpNetworkError, HttpTimeoutError
from tests.conftest import ACCESS_KEY_SECRET, FIXED_DATE, REGION_HOST, error_xml, fixed_clock, hmac_sha1


def object_endpoint(key="dir/file.txt", bucket="bucket"):
    return Endpoint(region_host=REGION_HOST, bucket_name=bucket, object_key=key)


class TestEndpoint:
    """Test host and path rendering."""

    def test_service_endpoint(self):
        endpoint = Endpoint(region_host=REGION_HOST)

        assert endpoint.base_url == f"https://{REGION_HOST}/"
        assert endpoint.canonical_resource == "/"

    def test_object_key_is_percent_encoded_in_path_only(self):
        """The path is encoded while the canonical resource keeps the raw key."""
        endpoint = object_endpoint("报告/a b+c.txt")

        assert endpoint.base_url == (
            f"https://bucket.{REGION_HOST}/%E6%8A%A5%E5%91%8A/a%20b%2Bc.txt"
        )
        assert endpoint.canonical_resource == "/bucket/报告/a b+c.txt"

    def test_custom_domain(self):
        """A custom domain replaces the host but not the signed resource."""
        endpoint = object_endpoint().with_custom_domain("cdn.example.com", enable_https=False)

        assert endpoint.base_url == "http://cdn.example.com/dir/file.txt"
        assert endpoint.canonical_resource == "/bucket/dir/file.txt"

    def test_render_query_keeps_order_and_bare_keys(self):
        assert render_query([("uploads", ""), ("prefix", "a b/c"), ("max-keys", "5")]) == (
            "?uploads&prefix=a%20b/c&max-keys=5"
        )


class TestRequestBuilderValidation:
    """Addressing is validated before any network call."""

    @pytest.mark.parametrize(
        ("endpoint", "scope"),
        [
            (Endpoint(region_host=REGION_HOST), Scope.BUCKET),
            (Endpoint(region_host=REGION_HOST, bucket_name="bucket"), Scope.OBJECT),
            (Endpoint(region_host=REGION_HOST, object_key="orphan"), Scope.SERVICE),
            (object_endpoint("/leading-slash"), Scope.OBJECT),
            (object_endpoint("k" * 1024), Scope.OBJECT),
        ],
    )
    async def test_invalid_addressing_rejected(self, context, executor, endpoint, scope):
        """Missing bucket/object or malformed keys raise InvalidRequestError."""
        with pytest.raises(InvalidRequestError):
            await RequestBuilder(context, "GET", endpoint, scope).send()

        assert executor.requests == []

    async def test_failed_validation_leaves_builder_usable(self, context):
        """A builder rejected by validation was never consumed."""
        builder = RequestBuilder(context, "GET", Endpoint(region_host=REGION_HOST), Scope.BUCKET)

        with pytest.raises(InvalidRequestError):
            builder.build()

        assert builder.consumed is False


class TestRequestBuilderSigning:
    """Test the frozen SignedRequest."""

    def test_build_signs_exactly_the_transmitted_fields(self, context):
        """The signature recomputes from the frozen headers and query."""
        request = (
            RequestBuilder(context, "PUT", object_endpoint(), Scope.OBJECT)
            .set_header("x-oss-meta-owner", "alice")
            .set_query("partNumber", 2)
            .set_query("uploadId", "u-1")
            .set_body(b"data")
            .build()
        )

        expected = hmac_sha1(
            ACCESS_KEY_SECRET,
            string_to_sign("PUT", "/bucket/dir/file.txt", request.headers, request.query, FIXED_DATE),
        )
        assert request.signature == expected
        assert request.headers["Authorization"] == f"OSS test-ak:{expected}"
        assert request.headers["Date"] == FIXED_DATE
        assert request.url == f"https://bucket.{REGION_HOST}/dir/file.txt?partNumber=2&uploadId=u-1"
        assert request.body == b"data"

    def test_body_without_content_type_gets_signed_default(self, context):
        """The default content type is fixed before signing."""
        request = RequestBuilder(context, "PUT", object_endpoint(), Scope.OBJECT).set_body("text").build()

        assert request.headers["Content-Type"] == "application/octet-stream"
        assert "\napplication/octet-stream\n" in string_to_sign(
            "PUT", request.canonical_resource, request.headers, request.query, request.timestamp
        )

    def test_content_md5_computed_from_body(self, context):
        request = (
            RequestBuilder(context, "POST", object_endpoint(), Scope.OBJECT)
            .set_body(b"<Delete/>")
            .set_content_md5()
            .build()
        )

        assert request.headers["Content-MD5"] == base64.b64encode(hashlib.md5(b"<Delete/>").digest()).decode()

    def test_security_token_header_is_signed(self, executor):
        """STS tokens travel as a signed x-oss-security-token header."""
        context = ClientContext(
            credential=Credential("ak", "sk", "sts-token"),
            endpoint=REGION_HOST,
            executor=executor,
            clock=fixed_clock,
        )

        request = RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT).build()

        assert request.headers["x-oss-security-token"] == "sts-token"
        assert "x-oss-security-token:sts-token\n" in string_to_sign(
            "GET", request.canonical_resource, request.headers, request.query, request.timestamp
        )

    def test_signed_request_is_immutable(self, context):
        """Nothing in a SignedRequest can be changed after signing."""
        request = RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT).set_query("acl").build()

        with pytest.raises(TypeError):
            request.headers["x-oss-meta-new"] = "value"
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.url = "https://elsewhere/"
        assert isinstance(request.query, tuple)

    def test_repr_hides_signature(self, context):
        request = RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT).build()

        assert request.signature not in repr(request)


class TestRequestBuilderSingleUse:
    """A builder is consumed by build/send."""

    async def test_setters_after_send_rejected(self, context):
        builder = RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT)
        await builder.send()

        with pytest.raises(InvalidRequestError):
            builder.set_header("x-oss-meta-late", "1")
        with pytest.raises(InvalidRequestError):
            builder.set_query("acl")
        with pytest.raises(InvalidRequestError):
            builder.set_body(b"late")

    async def test_second_send_rejected(self, context, executor):
        builder = RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT)
        await builder.send()

        with pytest.raises(InvalidRequestError):
            await builder.send()

        assert len(executor.requests) == 1


class TestRequestBuilderErrors:
    """Transport and status failures map to domain errors."""

    @pytest.mark.parametrize("error", [HttpNetworkError("refused"), HttpTimeoutError("timeout")])
    async def test_transport_failure(self, context, executor, error):
        executor.fail(error)

        with pytest.raises(TransportError) as exc_info:
            await RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT).send()

        assert exc_info.value.retriable is True
        assert exc_info.value.__cause__ is error

    async def test_signature_mismatch_is_authentication_error(self, context, executor):
        executor.respond(403, content=error_xml("SignatureDoesNotMatch", "bad signature"))

        with pytest.raises(AuthenticationError) as exc_info:
            await RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT).send()

        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code == "SignatureDoesNotMatch"

    async def test_remote_error_fields(self, context, executor):
        executor.respond(404, content=error_xml("NoSuchKey", "The specified key does not exist.", "req-9"))

        with pytest.raises(RemoteError, match="NoSuchKey") as exc_info:
            await RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT).send()

        error = exc_info.value
        assert not isinstance(error, AuthenticationError)
        assert error.error_message == "The specified key does not exist."
        assert error.request_id == "req-9"
        assert error.ec == "0003-00000001"
        assert error.body is not None

    async def test_head_error_decoded_from_header(self, context, executor):
        """HEAD responses carry the error document base64-encoded in x-oss-err."""
        encoded = base64.b64encode(error_xml("NoSuchKey")).decode()
        executor.respond(404, headers={"x-oss-err": encoded, "x-oss-request-id": "req-h"})

        with pytest.raises(RemoteError) as exc_info:
            await RequestBuilder(context, "HEAD", object_endpoint(), Scope.OBJECT).send()

        assert exc_info.value.error_code == "NoSuchKey"

    async def test_error_without_body(self, context, executor):
        executor.respond(503, headers={"x-oss-request-id": "req-x"})

        with pytest.raises(RemoteError, match="HTTP 503") as exc_info:
            await RequestBuilder(context, "GET", object_endpoint(), Scope.OBJECT).send()

        assert exc_info.value.request_id == "req-x"
        assert exc_info.value.error_code is None
