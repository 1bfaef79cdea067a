"""Pydantic models describing the Android Publisher v3 payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class GooglePlayBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AppEdit(GooglePlayBaseModel):
    id: str
    expiry_time_seconds: int | None = Field(default=None, alias="expiryTimeSeconds")


class ApkBinary(GooglePlayBaseModel):
    sha1: str | None = None
    sha256: str | None = None


class Apk(GooglePlayBaseModel):
    version_code: int = Field(alias="versionCode")
    binary: ApkBinary | None = None


class Bundle(GooglePlayBaseModel):
    version_code: int = Field(alias="versionCode")
    sha1: str | None = None
    sha256: str | None = None


class ExpansionFile(GooglePlayBaseModel):
    # int64 values arrive as JSON strings
    file_size: int | None = Field(default=None, alias="fileSize")
    references_version: int | None = Field(default=None, alias="referencesVersion")


class ExpansionFilesUploadResponse(GooglePlayBaseModel):
    expansion_file: ExpansionFile | None = Field(default=None, alias="expansionFile")


class DeobfuscationFile(GooglePlayBaseModel):
    symbol_type: str | None = Field(default=None, alias="symbolType")


class DeobfuscationFilesUploadResponse(GooglePlayBaseModel):
    deobfuscation_file: DeobfuscationFile | None = Field(default=None, alias="deobfuscationFile")


class LocalizedTextPayload(GooglePlayBaseModel):
    language: str
    text: str


class TrackReleasePayload(GooglePlayBaseModel):
    name: str | None = None
    version_codes: list[int] = Field(default_factory=list, alias="versionCodes")
    status: str | None = None
    user_fraction: float | None = Field(default=None, alias="userFraction")
    in_app_update_priority: int | None = Field(default=None, alias="inAppUpdatePriority")
    release_notes: list[LocalizedTextPayload] = Field(
        default_factory=list["LocalizedTextPayload"], alias="releaseNotes"
    )

    @field_serializer("version_codes")
    def _serialize_version_codes(self, version_codes: list[int]) -> list[str]:
        return [str(code) for code in version_codes]


class TrackPayload(GooglePlayBaseModel):
    track: str
    releases: list[TrackReleasePayload] = Field(default_factory=list["TrackReleasePayload"])


class ListingPayload(GooglePlayBaseModel):
    language: str
    title: str | None = None
    short_description: str | None = Field(default=None, alias="shortDescription")
    full_description: str | None = Field(default=None, alias="fullDescription")
    video: str | None = None


class ErrorDetail(GooglePlayBaseModel):
    code: int
    message: str
    status: str | None = None


class ErrorResponse(GooglePlayBaseModel):
    error: ErrorDetail
