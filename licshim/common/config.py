"""
Configuration settings for the license shim.

``Config`` holds process-level settings read from the environment. Protocol
secrets live in a TOML file loaded once into frozen ``Settings``, which is
passed explicitly to every handler.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from licshim.common.crypto import CryptoUtils
from licshim.common.exceptions import DecodeError, ParseError
from licshim.common.models import ChangelogRecord, LicenseInfo, UserRecord
from licshim.common.signing import load_rsa_private_key

logger = logging.getLogger(__name__)

AES_KEY_SIZES = (16, 24, 32)


class Section(BaseModel):
    """A protocol section; only mounted when ``enabled`` is true."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = False


def _check_rsa_key(value: str) -> str:
    try:
        load_rsa_private_key(value)
    except ParseError as err:
        raise ValueError(str(err)) from err
    return value


RsaKeyPem = Annotated[str, AfterValidator(_check_rsa_key)]


class EnvelopeSettings(Section):
    aes_key: str
    hmac_key: str
    xor_key: str
    variable_data: str = ""
    time_left: int = 133769420
    sub_level: int = 42

    @field_validator("aes_key")
    @classmethod
    def check_aes_key(cls, value: str) -> str:
        try:
            key = CryptoUtils.decode_hex(value)
        except DecodeError as err:
            raise ValueError(str(err)) from err
        if len(key) not in AES_KEY_SIZES:
            msg = f"aes_key must decode to 16, 24 or 32 bytes, got {len(key)}"
            raise ValueError(msg)
        return value

    @field_validator("xor_key")
    @classmethod
    def check_xor_key(cls, value: str) -> str:
        try:
            key = CryptoUtils.decode_hex(value)
        except DecodeError as err:
            raise ValueError(str(err)) from err
        if not key:
            msg = "xor_key must not be empty"
            raise ValueError(msg)
        return value


class TaggedInstance(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    app: str
    secret: str
    friendly_name: str | None = None
    license_info: LicenseInfo | None = None

    @property
    def display_name(self) -> str:
        return self.friendly_name or self.app


class TaggedSettings(Section):
    instances: list[TaggedInstance] = Field(default_factory=list)


class StatusTemplate(BaseModel):
    """Constant fields of status records; hwid and id come from the request."""

    model_config = ConfigDict(frozen=True)

    creation_time: str = "2024-01-01 00:00:00"
    updated_by: str = "anonymousUser"
    update_time: str = "2024-01-01 00:00:00"
    remark: str = ""
    role_value: int = 31
    expiry_time: str = "2099-01-01 00:00:00"
    last_login_time: str = "2024-01-01 00:00:00"
    reset_num: int = 0


class KeyfileSettings(Section):
    rsa_key: RsaKeyPem
    checksum: str
    salt: str
    user_id: int = 1
    role: int = 31
    cardstr: str = ""
    data_id: int = 1
    expiry_time: int = 4102444800
    status: StatusTemplate = Field(default_factory=StatusTemplate)
    changelog: ChangelogRecord | None = None

    @field_validator("checksum")
    @classmethod
    def check_checksum(cls, value: str) -> str:
        try:
            CryptoUtils.b64decode(value)
        except DecodeError as err:
            raise ValueError(str(err)) from err
        return value


class SignedSettings(Section):
    rsa_key: RsaKeyPem
    users: list[UserRecord] = Field(default_factory=list)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    envelope: EnvelopeSettings | None = None
    tagged: TaggedSettings | None = None
    keyfile: KeyfileSettings | None = None
    signed: SignedSettings | None = None

    def enabled_sections(self) -> list[str]:
        return [
            name
            for name in ("envelope", "tagged", "keyfile", "signed")
            if (section := getattr(self, name)) is not None and section.enabled
        ]


class Config:
    """Central configuration class for process-level settings."""

    def __init__(self) -> None:
        # Server settings
        self.SERVER_HOST: str = os.getenv("LICSHIM_SERVER_HOST", "127.0.0.1")
        self.SERVER_PORT: int = int(os.getenv("LICSHIM_SERVER_PORT", "8000"))
        self.SERVER_URL: str = f"http://{self.SERVER_HOST}:{self.SERVER_PORT}"

        # File paths
        self.BASE_DIR: Path = Path.cwd()
        self.CONFIG_PATH: Path = Path(
            os.getenv("LICSHIM_CONFIG", str(self.BASE_DIR / "config.toml"))
        )
        self.KEYS_DIR: Path = Path(
            os.getenv("LICSHIM_KEYS_DIR", str(self.BASE_DIR / "keys"))
        )
        self.PRIVATE_KEY_PATH: Path = self.KEYS_DIR / "private_pkcs1.pem"
        self.PUBLIC_KEY_PATH: Path = self.KEYS_DIR / "public.pem"

        # Protocol constants
        self.CANNED_NONCE: str = "A very random nonce ;)"
        self.RECORD_MESSAGE: str = "操作成功"
        self.CHANGELOG_MESSAGE: str = "OK"
        self.RECORD_CODE: int = 200

        # Logging
        self.LOG_LEVEL: int = getattr(
            logging, os.getenv("LICSHIM_LOG_LEVEL", "INFO").upper(), logging.INFO
        )
        log_file = os.getenv("LICSHIM_LOG_FILE")
        self.LOG_FILE: Path | None = Path(log_file) if log_file else None

    def load_settings(self, path: Path | None = None) -> Settings:
        """Load protocol sections from the TOML config file."""
        path = path or self.CONFIG_PATH
        try:
            with path.open("rb") as f:
                raw = tomllib.load(f)
        except FileNotFoundError:
            logger.warning("Config file %s not found, all sections disabled", path)
            return Settings()
        except tomllib.TOMLDecodeError as err:
            msg = f"malformed config file {path}"
            raise ParseError(msg) from err

        try:
            return Settings.model_validate(raw)
        except ValidationError as err:
            msg = f"invalid config file {path}: {err}"
            raise ParseError(msg) from err
