from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class OssSignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str | None = Field(default=None, alias="fileName")
    content: str | None = None
    content_type: str = Field(default="text/plain", alias="contentType")
    content_encoding: Literal["text", "base64"] | None = Field(default=None, alias="contentEncoding")


class OssSignedHeaders(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    authorization: str = Field(alias="Authorization")
    date: str = Field(alias="Date")
    content_type: str = Field(alias="Content-Type")
    content_md5: str = Field(alias="Content-MD5")


class OssSignResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    url: str
    headers: OssSignedHeaders
    file_name: str = Field(alias="fileName")
    bucket: str


class OssUploadRequest(OssSignRequest):
    make_public: bool = Field(default=False, alias="makePublic")
    episode_data: Any = Field(default=None, alias="episodeData")


class OssUploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    url: str
    file_name: str = Field(alias="fileName")
    size: int
    status: int
    message: str
    is_public: bool = Field(alias="isPublic")
    episode_data: Any = Field(default=None, alias="episodeData")
    acl_error: str | None = Field(default=None, alias="aclError")


class OssUploadFailedResponse(BaseModel):
    success: bool = False
    error: str = "Upload failed"
    status: int
    message: str


class OssErrorResponse(BaseModel):
    error: str
    message: str | None = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
