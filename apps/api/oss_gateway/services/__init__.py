from oss_gateway.services.oss_errors import ConfigurationError, OssError, UpstreamError, ValidationError
from oss_gateway.services.oss_signer import (
    SigningRequest,
    build_authorization,
    build_canonical_resource,
    build_string_to_sign,
    compute_content_md5,
    sign,
)
from oss_gateway.services.oss_uploader import (
    BinaryPayload,
    SignedUpload,
    TextPayload,
    UploadRequest,
    UploadResult,
    prepare_signed_headers,
    upload_object,
)

__all__ = [
    "OssError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamError",
    "SigningRequest",
    "build_authorization",
    "build_canonical_resource",
    "build_string_to_sign",
    "compute_content_md5",
    "sign",
    "TextPayload",
    "BinaryPayload",
    "UploadRequest",
    "UploadResult",
    "SignedUpload",
    "prepare_signed_headers",
    "upload_object",
]
