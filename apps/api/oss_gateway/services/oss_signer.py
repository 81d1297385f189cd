from __future__ import annotations

import base64
import hashlib
import hmac
from collections.abc import Mapping
from dataclasses import dataclass, field
from email.utils import formatdate

OSS_AUTH_SCHEME = "OSS"
OSS_OBJECT_ACL_HEADER = "x-oss-object-acl"


@dataclass(frozen=True)
class SigningRequest:
    """Inputs of one OSS header signature.

    ``resource`` is the canonical path: ``/bucket/key`` or ``/bucket/key?acl``.
    ``oss_headers`` is only populated by the ACL variant.
    """

    verb: str
    resource: str
    date: str
    content_md5: str = ""
    content_type: str = ""
    oss_headers: Mapping[str, str] = field(default_factory=dict)


def build_canonical_resource(bucket: str, key: str, sub_resource: str | None = None) -> str:
    resource = f"/{bucket}/{key}"
    if sub_resource:
        resource = f"{resource}?{sub_resource}"
    return resource


def canonical_oss_headers(headers: Mapping[str, str]) -> list[str]:
    normalized = {name.strip().lower(): str(value).strip() for name, value in headers.items()}
    return [f"{name}:{normalized[name]}" for name in sorted(normalized)]


def build_string_to_sign(request: SigningRequest) -> str:
    # verb, Content-MD5, Content-Type and Date are always present, empty or not.
    lines = [
        request.verb,
        request.content_md5 or "",
        request.content_type or "",
        request.date,
    ]
    lines.extend(canonical_oss_headers(request.oss_headers))
    lines.append(request.resource)
    return "\n".join(lines)


def sign(request: SigningRequest, secret_key: str) -> str:
    string_to_sign = build_string_to_sign(request)
    digest = hmac.new(
        secret_key.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def build_authorization(access_key_id: str, signature: str) -> str:
    return f"{OSS_AUTH_SCHEME} {access_key_id}:{signature}"


def compute_content_md5(body: bytes) -> str:
    return base64.b64encode(hashlib.md5(body).digest()).decode("ascii")


def http_date() -> str:
    """Current time as an RFC 1123 GMT string, the format OSS expects in ``Date``."""
    return formatdate(usegmt=True)
