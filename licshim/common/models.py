"""
Pydantic models for request/response validation.

Every response is serialized with ``model_dump_json(by_alias=True)``: compact
JSON in declaration order. Subclasses append their fields after the parent's,
which is how nested common fields are flattened into one object.
"""

from __future__ import annotations

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from licshim.common.checksum import ChecksumModel
from licshim.common.exceptions import ParseError

U32_MAX = 0xFFFFFFFF


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# Envelope protocol requests, a closed set keyed on "type".


class CommonRequest(WireModel):
    kind: str = Field(alias="type")
    sessionid: str | None = None
    sync_key: int = Field(alias="syncKey", ge=0, le=U32_MAX)


class HandshakeRequest(CommonRequest):
    kind: Literal["handshake"] = Field(alias="type")
    enckey: str


class LoginRequest(CommonRequest):
    kind: Literal["license_login"] = Field(alias="type")


class GetVariableRequest(CommonRequest):
    kind: Literal["get_variable"] = Field(alias="type")
    cid: str


class UnknownRequest(CommonRequest):
    """Fallback for kinds the server has no dedicated answer for."""


EnvelopeRequest = HandshakeRequest | LoginRequest | GetVariableRequest | UnknownRequest

REQUEST_KINDS: dict[str, type[CommonRequest]] = {
    "handshake": HandshakeRequest,
    "license_login": LoginRequest,
    "get_variable": GetVariableRequest,
}


def parse_envelope_request(text: str) -> EnvelopeRequest:
    """Parse a decrypted envelope into its request variant."""
    try:
        common = CommonRequest.model_validate_json(text)
        model = REQUEST_KINDS.get(common.kind, UnknownRequest)
        return model.model_validate_json(text)  # type: ignore[return-value]
    except ValidationError as err:
        msg = "malformed envelope request"
        raise ParseError(msg) from err


# Envelope protocol responses


class EnvelopePayload(WireModel):
    payload: str


class CommonResponse(WireModel):
    message: str = ""
    success: bool = True
    sync_key: int = Field(alias="syncKey")


class HandshakeResponse(CommonResponse):
    sessionid: str


class LoginResponse(CommonResponse):
    time_left: int
    sub_level: int


# Tagged JSON protocol


class BasicResponse(WireModel):
    success: bool
    message: str = ""
    nonce: str


class AppInfo(WireModel):
    num_users: str = Field("", alias="numUsers")
    num_online_users: str = Field("", alias="numOnlineUsers")
    num_keys: str = Field("", alias="numKeys")
    version: str = ""
    customer_panel_link: str = Field("", alias="customerPanelLink")


class InitResponse(BasicResponse):
    sessionid: str
    appinfo: AppInfo = Field(default_factory=AppInfo)
    new_session: bool = Field(True, alias="newSession")


class SubInfo(WireModel):
    subscription: str
    key: str = ""
    expiry: str = ""
    timeleft: int = 0
    level: int = 1


def _default_subscriptions() -> list[SubInfo]:
    return [SubInfo(subscription="default")]


class LicenseInfo(WireModel):
    username: str = "Unk"
    subscriptions: list[SubInfo] = Field(default_factory=_default_subscriptions)
    ip: str = "127.0.0.1"
    hwid: str = ""
    creation_date: str = Field("", alias="createdate")
    lastlogin: str = ""


class LicenseResponse(BasicResponse):
    info: LicenseInfo = Field(default_factory=LicenseInfo)


# Checksummed records


class UpdateDiff(ChecksumModel):
    model_config = ConfigDict(populate_by_name=True)

    added_features: list[str] = Field(default_factory=list)
    deleted_features: list[str] = Field(default_factory=list)
    total_size: str = ""


class ChangelogRecord(ChecksumModel):
    model_config = ConfigDict(populate_by_name=True)

    latest_version: str
    update_required: bool = False
    update_url: str = ""
    title: str = Field("", alias="announcement")
    updated_by: str = ""
    updated_at: str = ""
    update_diff: UpdateDiff = Field(default_factory=UpdateDiff)
    compatible_versions: list[str] = Field(default_factory=list)


class StatusRecord(ChecksumModel):
    model_config = ConfigDict(populate_by_name=True)

    created_by: str | None = Field(None, alias="createBy")
    creation_time: str = Field(alias="createTime")
    updated_by: str = Field(alias="updateBy")
    update_time: str = Field(alias="updateTime")
    deletion_flag: int = Field(0, alias="delFlag")
    remark: str = ""
    id: int = Field(ge=0, le=U32_MAX)
    role_value: int = Field(alias="roleValue")
    card_key: str | None = Field(None, alias="cardKey")
    expiry_time: str = Field(alias="expiryTime")
    last_login_time: str = Field(alias="lastLoginTime")
    hwid: str
    file_md5: str = Field(alias="fileMd5")
    reset_time: str | None = Field(None, alias="resetTime")
    reset_num: int = Field(0, alias="resetNum")
    pause_time: str | None = Field(None, alias="pauseTime")
    status: int = 0


RecordT = TypeVar("RecordT", bound=ChecksumModel)


class ChecksumResponse(WireModel, Generic[RecordT]):
    msg: str
    code: int
    data: RecordT
    signature: str


# RSA signed documents


class UserRecord(WireModel):
    hwid: str
    id: str
    nonce: str
    username: str


class SignedUser(WireModel):
    data: UserRecord
    sig: str


class HwidResponse(WireModel):
    msg: str
    sig: str
