"""Nested keyfile envelope.

A keyfile artifact holds three base64 fields:

* ``Encrypted.md5`` - the checksum blob; its MD5 hex digest is the AES key.
* ``privatekey_pkcs1.pem.enc`` - the RSA private key PEM, AES-CBC encrypted
  under that key with a constant IV.
* ``encrypted.dat`` - the license payload JSON, RSA PKCS#1 v1.5 encrypted
  under the public half of that key.

Unwrapping walks the layers inward, exporting walks them outward.
"""

from __future__ import annotations

import logging

from cryptography.hazmat.primitives.asymmetric import padding
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from licshim.common.crypto import CryptoUtils
from licshim.common.exceptions import EnvelopeError, LicshimError, ParseError
from licshim.common.signing import load_rsa_private_key

logger = logging.getLogger(__name__)

KEYFILE_IV = b"ABCDEF0123456789"
U8_MAX = 0xFF
U32_MAX = 0xFFFFFFFF

# One message for every unwrap failure, so callers learn nothing about which
# layer rejected the artifact.
UNWRAP_FAILED = "keyfile could not be unwrapped"


class KeyData(BaseModel):
    """License payload carried in the innermost layer."""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(ge=0, le=U32_MAX)
    hwid: str
    role: int = Field(ge=0, le=U8_MAX)
    cardstr: str
    data_id: int = Field(ge=0, le=U32_MAX)
    expiry_time: int = Field(ge=0, le=U32_MAX)


class RawKeyFile(BaseModel):
    """Keyfile artifact as stored or transmitted."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    checksum: str = Field(alias="Encrypted.md5")
    encrypted_rsa_key: str = Field(alias="privatekey_pkcs1.pem.enc")
    encrypted_data: str = Field(alias="encrypted.dat")

    def get_key(self) -> bytes:
        return CryptoUtils.derive_key(self.checksum)

    def get_rsa_key(self) -> str:
        """Recover the PEM private key from the middle layer."""
        try:
            wrapped = CryptoUtils.b64decode(self.encrypted_rsa_key)
            pem = CryptoUtils.cbc_decrypt(wrapped, self.get_key(), KEYFILE_IV)
            return pem.decode("utf-8")
        except (LicshimError, UnicodeDecodeError) as err:
            logger.debug("Private key layer rejected: %s", err)
            raise EnvelopeError(UNWRAP_FAILED) from err

    def decrypt_data(self, rsa_key: str) -> KeyData:
        """Decrypt the payload layer with an already recovered private key."""
        try:
            private_key = load_rsa_private_key(rsa_key)
            plaintext = private_key.decrypt(
                CryptoUtils.b64decode(self.encrypted_data), padding.PKCS1v15()
            )
            return KeyData.model_validate_json(plaintext)
        except (LicshimError, ValueError) as err:
            logger.debug("Payload layer rejected: %s", err)
            raise EnvelopeError(UNWRAP_FAILED) from err

    def get_data(self) -> KeyData:
        return self.decrypt_data(self.get_rsa_key())

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class KeyFile(BaseModel):
    """Unwrapped keyfile: checksum, PEM private key and payload."""

    model_config = ConfigDict(frozen=True)

    checksum: str
    rsa_key: str
    data: KeyData

    @classmethod
    def from_artifact(cls, raw: RawKeyFile) -> KeyFile:
        rsa_key = raw.get_rsa_key()
        return cls(checksum=raw.checksum, rsa_key=rsa_key, data=raw.decrypt_data(rsa_key))

    @classmethod
    def from_string(cls, data: str | bytes) -> KeyFile:
        try:
            raw = RawKeyFile.model_validate_json(data)
        except ValidationError as err:
            msg = "malformed keyfile artifact"
            raise ParseError(msg) from err
        return cls.from_artifact(raw)

    def get_key(self) -> bytes:
        return CryptoUtils.derive_key(self.checksum)

    def export(self) -> RawKeyFile:
        """Wrap the key and payload back into an artifact.

        The private key layer uses the constant IV and is byte-identical on
        every export; the payload layer uses randomized PKCS#1 v1.5 padding.
        """
        wrapped_key = CryptoUtils.cbc_encrypt(
            self.rsa_key.encode("utf-8"), self.get_key(), KEYFILE_IV
        )
        public_key = load_rsa_private_key(self.rsa_key).public_key()
        try:
            encrypted_data = public_key.encrypt(
                self.data.model_dump_json().encode("utf-8"), padding.PKCS1v15()
            )
        except ValueError as err:
            msg = "license payload too large for the RSA key"
            raise EnvelopeError(msg) from err

        return RawKeyFile(
            checksum=self.checksum,
            encrypted_rsa_key=CryptoUtils.b64encode(wrapped_key),
            encrypted_data=CryptoUtils.b64encode(encrypted_data),
        )
