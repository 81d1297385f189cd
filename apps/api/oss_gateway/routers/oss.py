import base64
import binascii
import logging
import re

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from oss_gateway.config import OssSettings, get_oss_settings
from oss_gateway.schemas.oss import (
    OssErrorResponse,
    OssSignedHeaders,
    OssSignRequest,
    OssSignResponse,
    OssUploadFailedResponse,
    OssUploadRequest,
    OssUploadResponse,
)
from oss_gateway.services.oss_errors import ConfigurationError, UpstreamError, ValidationError
from oss_gateway.services.oss_uploader import (
    BinaryPayload,
    Payload,
    TextPayload,
    UploadRequest,
    prepare_signed_headers,
    upload_object,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oss", tags=["oss"])

_BASE64_MEDIA_PREFIXES = ("audio/", "video/", "image/")
_ASCII_WHITESPACE = re.compile(r"[ \t\r\n\f\v]+")


def _is_base64_content(content_type: str, content_encoding: str | None) -> bool:
    if content_encoding is not None:
        return content_encoding == "base64"
    return content_type.lower().startswith(_BASE64_MEDIA_PREFIXES)


def _resolve_payload(body: OssSignRequest) -> Payload | None:
    """Turn the JSON ``content`` string into the bytes that will be stored.

    Callers send binary media base64-encoded; everything else is text.
    """
    if not body.file_name or not body.content:
        return None
    if not _is_base64_content(body.content_type, body.content_encoding):
        return TextPayload(body.content)
    # Line-wrapped and unpadded base64 are accepted.
    normalized = _ASCII_WHITESPACE.sub("", body.content)
    normalized += "=" * (-len(normalized) % 4)
    try:
        data = base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("content must be valid base64 for binary uploads") from exc
    logger.debug("Decoded base64 content: %d chars -> %d bytes", len(body.content), len(data))
    return BinaryPayload(data)


def _error_response(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=OssErrorResponse(error=error, message=message).model_dump(exclude_none=True),
    )


@router.post("/sign", response_model=OssSignResponse)
def sign_oss_upload(
    body: OssSignRequest,
    settings: OssSettings = Depends(get_oss_settings),
):
    try:
        signed = prepare_signed_headers(
            settings=settings,
            object_key=body.file_name,
            payload=_resolve_payload(body),
            content_type=body.content_type,
        )
    except ValidationError as exc:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)
    except ConfigurationError as exc:
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)
    except Exception as exc:
        logger.exception("Error generating signature for %s", body.file_name)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate signature", str(exc))

    return OssSignResponse(
        success=True,
        url=signed.url,
        headers=OssSignedHeaders.model_validate(signed.headers),
        file_name=body.file_name,
        bucket=settings.bucket,
    )


@router.post("/upload", response_model=OssUploadResponse, response_model_exclude_unset=True)
def upload_to_oss(
    body: OssUploadRequest,
    settings: OssSettings = Depends(get_oss_settings),
):
    try:
        result = upload_object(
            settings=settings,
            request=UploadRequest(
                object_key=body.file_name,
                payload=_resolve_payload(body),
                content_type=body.content_type,
                make_public=body.make_public,
                passthrough_metadata=body.episode_data,
            ),
        )
    except ValidationError as exc:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)
    except ConfigurationError as exc:
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)
    except UpstreamError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content=OssUploadFailedResponse(status=exc.status_code, message=exc.body).model_dump(),
        )
    except Exception as exc:
        logger.exception("Upload error for %s", body.file_name)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Upload failed", str(exc))

    response = OssUploadResponse(
        success=result.success,
        url=result.url,
        file_name=result.object_key,
        size=result.byte_size,
        status=result.upload_status,
        message=result.message,
        is_public=result.is_public,
        episode_data=result.passthrough_metadata,
    )
    if result.acl_error is not None:
        response.acl_error = result.acl_error
    return response
