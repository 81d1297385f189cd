from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from oss_gateway.config import OssSettings
from oss_gateway.services.oss_errors import ConfigurationError, UpstreamError, ValidationError
from oss_gateway.services.oss_signer import (
    OSS_OBJECT_ACL_HEADER,
    SigningRequest,
    build_authorization,
    build_canonical_resource,
    compute_content_md5,
    http_date,
    sign,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"
PUBLIC_READ_ACL = "public-read"

MESSAGE_UPLOADED = "File uploaded successfully"
MESSAGE_UPLOADED_PUBLIC = "File uploaded successfully and is publicly accessible"
MESSAGE_ACL_FAILED = "File uploaded but failed to set public access"


@dataclass(frozen=True)
class TextPayload:
    text: str

    def to_bytes(self) -> bytes:
        return self.text.encode("utf-8")

    def is_empty(self) -> bool:
        return not self.text


@dataclass(frozen=True)
class BinaryPayload:
    data: bytes

    def to_bytes(self) -> bytes:
        return self.data

    def is_empty(self) -> bool:
        return not self.data


Payload = TextPayload | BinaryPayload


@dataclass(frozen=True)
class UploadRequest:
    object_key: str | None
    payload: Payload | None
    content_type: str = DEFAULT_CONTENT_TYPE
    make_public: bool = False
    passthrough_metadata: Any = None


@dataclass(frozen=True)
class SignedUpload:
    url: str
    headers: dict[str, str]
    body: bytes = field(repr=False, default=b"")


@dataclass(frozen=True)
class UploadResult:
    success: bool
    url: str
    object_key: str
    byte_size: int
    upload_status: int
    is_public: bool
    message: str
    warning_message: str | None = None
    acl_error: str | None = None
    passthrough_metadata: Any = None


def _validate_object_input(object_key: str | None, payload: Payload | None) -> None:
    if not object_key:
        raise ValidationError("fileName is required")
    if payload is None or payload.is_empty():
        raise ValidationError("content is required")


def _require_credentials(settings: OssSettings) -> None:
    missing = settings.missing_credentials()
    if missing:
        logger.error("OSS credentials not configured: missing %s", ", ".join(missing))
        raise ConfigurationError(missing)


def build_object_url(settings: OssSettings, object_key: str) -> str:
    return f"https://{settings.bucket}.{settings.region}.{settings.endpoint_domain}/{object_key}"


def prepare_signed_headers(
    *,
    settings: OssSettings,
    object_key: str | None,
    payload: Payload | None,
    content_type: str = DEFAULT_CONTENT_TYPE,
    date: str | None = None,
) -> SignedUpload:
    """Sign an object PUT without sending it.

    The returned headers are valid only for exactly ``payload``'s bytes and
    only for the returned URL; ``date`` defaults to now.
    """
    _validate_object_input(object_key, payload)
    _require_credentials(settings)

    body = payload.to_bytes()
    content_md5 = compute_content_md5(body)
    request_date = date or http_date()
    signature = sign(
        SigningRequest(
            verb="PUT",
            resource=build_canonical_resource(settings.bucket, object_key),
            date=request_date,
            content_md5=content_md5,
            content_type=content_type,
        ),
        settings.access_key_secret,
    )
    return SignedUpload(
        url=build_object_url(settings, object_key),
        headers={
            "Authorization": build_authorization(settings.access_key_id, signature),
            "Date": request_date,
            "Content-Type": content_type,
            "Content-MD5": content_md5,
        },
        body=body,
    )


def _sign_public_read_acl(settings: OssSettings, object_key: str) -> dict[str, str]:
    acl_date = http_date()
    acl_headers = {OSS_OBJECT_ACL_HEADER: PUBLIC_READ_ACL}
    signature = sign(
        SigningRequest(
            verb="PUT",
            resource=build_canonical_resource(settings.bucket, object_key, sub_resource="acl"),
            date=acl_date,
            oss_headers=acl_headers,
        ),
        settings.access_key_secret,
    )
    return {
        "Authorization": build_authorization(settings.access_key_id, signature),
        "Date": acl_date,
        **acl_headers,
    }


def upload_object(*, settings: OssSettings, request: UploadRequest) -> UploadResult:
    _validate_object_input(request.object_key, request.payload)
    _require_credentials(settings)

    signed = prepare_signed_headers(
        settings=settings,
        object_key=request.object_key,
        payload=request.payload,
        content_type=request.content_type,
    )
    byte_size = len(signed.body)
    logger.info("Uploading %s (%d bytes, %s)", request.object_key, byte_size, request.content_type)

    with httpx.Client(timeout=settings.timeout) as client:
        upload_response = client.put(signed.url, headers=signed.headers, content=signed.body)
        if not upload_response.is_success:
            logger.warning(
                "OSS rejected upload of %s with HTTP %d",
                request.object_key,
                upload_response.status_code,
            )
            raise UpstreamError(upload_response.status_code, upload_response.text)

        if not request.make_public:
            logger.info("Uploaded %s", request.object_key)
            return UploadResult(
                success=True,
                url=signed.url,
                object_key=request.object_key,
                byte_size=byte_size,
                upload_status=upload_response.status_code,
                is_public=False,
                message=MESSAGE_UPLOADED,
                passthrough_metadata=request.passthrough_metadata,
            )

        acl_error: str | None = None
        try:
            acl_response = client.put(
                f"{signed.url}?acl",
                headers=_sign_public_read_acl(settings, request.object_key),
            )
        except httpx.RequestError as exc:
            logger.warning("Uploaded %s but public-read ACL request failed: %s", request.object_key, exc)
            acl_error = str(exc)
        else:
            if not acl_response.is_success:
                logger.warning(
                    "Uploaded %s but OSS rejected public-read ACL with HTTP %d",
                    request.object_key,
                    acl_response.status_code,
                )
                acl_error = acl_response.text

    if acl_error is not None:
        # The object is already stored; the ACL failure is reported, not raised.
        return UploadResult(
            success=True,
            url=signed.url,
            object_key=request.object_key,
            byte_size=byte_size,
            upload_status=upload_response.status_code,
            is_public=False,
            message=MESSAGE_ACL_FAILED,
            warning_message=MESSAGE_ACL_FAILED,
            acl_error=acl_error,
            passthrough_metadata=request.passthrough_metadata,
        )

    logger.info("Uploaded %s with public-read ACL", request.object_key)
    return UploadResult(
        success=True,
        url=signed.url,
        object_key=request.object_key,
        byte_size=byte_size,
        upload_status=upload_response.status_code,
        is_public=True,
        message=MESSAGE_UPLOADED_PUBLIC,
        passthrough_metadata=request.passthrough_metadata,
    )
