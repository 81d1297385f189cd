import httpx
import pytest

from oss_gateway.config import OssSettings
from oss_gateway.services import oss_uploader
from oss_gateway.services.oss_errors import ConfigurationError, UpstreamError, ValidationError
from oss_gateway.services.oss_signer import SigningRequest, build_authorization, sign
from oss_gateway.services.oss_uploader import (
    BinaryPayload,
    TextPayload,
    UploadRequest,
    prepare_signed_headers,
    upload_object,
)

_SETTINGS = OssSettings(
    access_key_id="AKID",
    access_key_secret="test-secret",
    bucket="test-bucket",
    region="oss-cn-shanghai",
)


def _install_fake_client(
    monkeypatch, statuses: list[int], bodies: list[str] | None = None
) -> tuple[list[dict], list[dict]]:
    client_kwargs: list[dict] = []
    calls: list[dict] = []
    bodies = bodies or [""] * len(statuses)

    class _FakeClient:
        def __init__(self, *args, **kwargs):
            del args
            client_kwargs.append(kwargs)

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            del exc_type, exc, tb
            return False

        def put(self, url: str, headers: dict, content: bytes | None = None):
            index = len(calls)
            calls.append({"url": url, "headers": dict(headers), "content": content})
            request = httpx.Request("PUT", url)
            return httpx.Response(status_code=statuses[index], text=bodies[index], request=request)

    monkeypatch.setattr(oss_uploader.httpx, "Client", _FakeClient)
    return client_kwargs, calls


def test_prepare_signed_headers_returns_url_and_oss_headers():
    signed = prepare_signed_headers(
        settings=_SETTINGS,
        object_key="episodes/ep1.txt",
        payload=TextPayload("hello world"),
        content_type="text/plain",
        date="Wed, 01 Jan 2025 00:00:00 GMT",
    )

    assert signed.url == "https://test-bucket.oss-cn-shanghai.aliyuncs.com/episodes/ep1.txt"
    assert signed.headers == {
        "Authorization": "OSS AKID:J883QoGgZy6QtCm31/mss37jlLQ=",
        "Date": "Wed, 01 Jan 2025 00:00:00 GMT",
        "Content-Type": "text/plain",
        "Content-MD5": "XrY7u+Ae7tCTyyK7j1rNww==",
    }


def test_prepare_signed_headers_is_stable_for_equal_dates():
    kwargs = {"settings": _SETTINGS, "object_key": "a.txt", "payload": TextPayload("abc")}

    first = prepare_signed_headers(date="Wed, 01 Jan 2025 00:00:00 GMT", **kwargs)
    again = prepare_signed_headers(date="Wed, 01 Jan 2025 00:00:00 GMT", **kwargs)
    later = prepare_signed_headers(date="Wed, 01 Jan 2025 00:00:05 GMT", **kwargs)

    assert first.headers == again.headers
    assert later.headers["Content-MD5"] == first.headers["Content-MD5"]
    assert later.headers["Date"] != first.headers["Date"]
    assert later.headers["Authorization"] != first.headers["Authorization"]


def test_prepare_signed_headers_requires_file_name_before_content():
    with pytest.raises(ValidationError, match="fileName is required"):
        prepare_signed_headers(settings=_SETTINGS, object_key="", payload=None)

    with pytest.raises(ValidationError, match="content is required"):
        prepare_signed_headers(settings=_SETTINGS, object_key="a.txt", payload=TextPayload(""))


def test_prepare_signed_headers_reports_missing_credentials():
    settings = OssSettings(access_key_id="AKID", access_key_secret=None, bucket=None)

    with pytest.raises(ConfigurationError) as exc_info:
        prepare_signed_headers(settings=settings, object_key="a.txt", payload=TextPayload("x"))

    assert exc_info.value.missing == ["ALIYUN_ACCESS_KEY_SECRET", "ALIYUN_BUCKET"]


def test_upload_object_counts_utf8_bytes_for_text(monkeypatch):
    _, calls = _install_fake_client(monkeypatch, statuses=[200])

    result = upload_object(
        settings=_SETTINGS,
        request=UploadRequest(object_key="notes/h.txt", payload=TextPayload("héllo")),
    )

    assert result.byte_size == 6
    assert calls[0]["content"] == "héllo".encode("utf-8")
    assert result.is_public is False
    assert result.message == "File uploaded successfully"
    assert len(calls) == 1


def test_upload_object_sends_decoded_binary_bytes(monkeypatch):
    _, calls = _install_fake_client(monkeypatch, statuses=[200])

    result = upload_object(
        settings=_SETTINGS,
        request=UploadRequest(
            object_key="audio/clip.mp3",
            payload=BinaryPayload(b"\x00\x01\x02\xff"),
            content_type="audio/mpeg",
        ),
    )

    assert result.byte_size == 4
    assert calls[0]["content"] == b"\x00\x01\x02\xff"
    assert calls[0]["headers"]["Content-MD5"] == "BBbauBmIczOvgx+MdlrCrg=="
    assert calls[0]["headers"]["Content-Type"] == "audio/mpeg"


def test_upload_object_uses_configured_timeout(monkeypatch):
    client_kwargs, _ = _install_fake_client(monkeypatch, statuses=[200])
    settings = OssSettings(access_key_id="AKID", access_key_secret="s", bucket="b", timeout=7.5)

    upload_object(settings=settings, request=UploadRequest(object_key="a.txt", payload=TextPayload("x")))

    assert client_kwargs == [{"timeout": 7.5}]


def test_upload_object_raises_upstream_error_and_skips_acl(monkeypatch):
    _, calls = _install_fake_client(monkeypatch, statuses=[403], bodies=["<Error>AccessDenied</Error>"])

    with pytest.raises(UpstreamError) as exc_info:
        upload_object(
            settings=_SETTINGS,
            request=UploadRequest(object_key="a.txt", payload=TextPayload("x"), make_public=True),
        )

    assert exc_info.value.status_code == 403
    assert exc_info.value.body == "<Error>AccessDenied</Error>"
    assert len(calls) == 1


def test_upload_object_sets_public_read_acl(monkeypatch):
    _, calls = _install_fake_client(monkeypatch, statuses=[200, 200])
    monkeypatch.setattr(oss_uploader, "http_date", lambda: "Wed, 01 Jan 2025 00:00:00 GMT")

    result = upload_object(
        settings=_SETTINGS,
        request=UploadRequest(object_key="episodes/ep1.txt", payload=TextPayload("hello world"), make_public=True),
    )

    acl_call = calls[1]
    assert acl_call["url"] == "https://test-bucket.oss-cn-shanghai.aliyuncs.com/episodes/ep1.txt?acl"
    assert acl_call["content"] is None
    assert acl_call["headers"] == {
        "Authorization": "OSS AKID:tpaeQhnaO2yarmlCV8NvAEpyEQE=",
        "Date": "Wed, 01 Jan 2025 00:00:00 GMT",
        "x-oss-object-acl": "public-read",
    }
    assert result.is_public is True
    assert result.message == "File uploaded successfully and is publicly accessible"


def test_upload_object_reports_acl_failure_as_partial_success(monkeypatch):
    _install_fake_client(monkeypatch, statuses=[200, 403], bodies=["", "<Error>AccessDenied</Error>"])

    result = upload_object(
        settings=_SETTINGS,
        request=UploadRequest(
            object_key="a.txt",
            payload=TextPayload("x"),
            make_public=True,
            passthrough_metadata={"x": 1},
        ),
    )

    assert result.success is True
    assert result.is_public is False
    assert result.upload_status == 200
    assert result.acl_error == "<Error>AccessDenied</Error>"
    assert result.warning_message == "File uploaded but failed to set public access"
    assert result.passthrough_metadata == {"x": 1}


def test_upload_object_reports_acl_transport_error_as_partial_success(monkeypatch):
    _, calls = _install_fake_client(monkeypatch, statuses=[200])
    fake_client = oss_uploader.httpx.Client
    original_put = fake_client.put

    def _put(self, url: str, headers: dict, content: bytes | None = None):
        if url.endswith("?acl"):
            raise httpx.ConnectError("connection reset", request=httpx.Request("PUT", url))
        return original_put(self, url, headers, content)

    monkeypatch.setattr(fake_client, "put", _put)

    result = upload_object(
        settings=_SETTINGS,
        request=UploadRequest(object_key="a.txt", payload=TextPayload("x"), make_public=True),
    )

    assert len(calls) == 1
    assert result.success is True
    assert result.is_public is False
    assert result.upload_status == 200
    assert result.acl_error == "connection reset"
    assert result.message == "File uploaded but failed to set public access"


def test_upload_object_signature_verifies_against_returned_headers(monkeypatch):
    _, calls = _install_fake_client(monkeypatch, statuses=[200])

    upload_object(settings=_SETTINGS, request=UploadRequest(object_key="a.txt", payload=TextPayload("abc")))

    headers = calls[0]["headers"]
    expected = sign(
        SigningRequest(
            verb="PUT",
            resource="/test-bucket/a.txt",
            date=headers["Date"],
            content_md5=headers["Content-MD5"],
            content_type=headers["Content-Type"],
        ),
        "test-secret",
    )
    assert headers["Authorization"] == build_authorization("AKID", expected)
