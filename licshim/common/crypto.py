"""Common cryptographic utilities.

Every routine here reproduces a wire convention fixed by an external client,
so the byte layout of each output is part of the contract.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
from itertools import cycle

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from licshim.common.exceptions import CryptoError, DecodeError

BLOCK_SIZE = 16

# Only satisfies the CBC API; the real IV travels as the first ciphertext block
# and the block it decrypts to is thrown away.
ENVELOPE_FIXED_IV = b"0000000000000000"


class CryptoUtils:
    """Utility class for cryptographic operations."""

    @staticmethod
    def b64decode(data: str | bytes) -> bytes:
        """Decode standard base64, rejecting characters outside the alphabet."""
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as err:
            msg = "invalid base64 input"
            raise DecodeError(msg) from err

    @staticmethod
    def b64encode(data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")

    @staticmethod
    def decode_hex(data: str) -> bytes:
        """Decode a hex string such as a configured key."""
        try:
            return bytes.fromhex(data)
        except ValueError as err:
            msg = "invalid hex input"
            raise DecodeError(msg) from err

    @staticmethod
    def derive_key(aux_blob: str) -> bytes:
        """Derive a 32 byte AES key from a base64 checksum blob.

        The key is the lowercase hex MD5 digest of the decoded blob, used as
        ASCII key material. No salt and no iterations: clients derive it the
        same way.
        """
        raw = CryptoUtils.b64decode(aux_blob)
        return hashlib.md5(raw).hexdigest().encode("ascii")  # noqa: S324

    @staticmethod
    def _cipher(key: bytes, iv: bytes) -> Cipher[modes.CBC]:
        try:
            return Cipher(algorithms.AES(key), modes.CBC(iv))
        except ValueError as err:
            msg = f"invalid key or IV length ({len(key)}/{len(iv)} bytes)"
            raise CryptoError(msg) from err

    @staticmethod
    def cbc_encrypt(data: bytes, key: bytes, iv: bytes) -> bytes:
        """AES-CBC encrypt with PKCS#7 padding."""
        cipher = CryptoUtils._cipher(key, iv)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(data) + padder.finalize()
        encryptor = cipher.encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    @staticmethod
    def cbc_decrypt(data: bytes, key: bytes, iv: bytes) -> bytes:
        """AES-CBC decrypt and strip PKCS#7 padding."""
        decryptor = CryptoUtils._cipher(key, iv).decryptor()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            padded = decryptor.update(data) + decryptor.finalize()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as err:
            msg = "ciphertext failed block or padding validation"
            raise CryptoError(msg) from err

    @staticmethod
    def encrypt_envelope(
        plaintext: str | bytes, key: bytes, iv: bytes | None = None
    ) -> str:
        """Encrypt a payload as base64(iv || ciphertext).

        A fresh random IV is drawn for every call. Passing ``iv`` pins it,
        which only fixture reproduction should do.
        """
        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")
        if iv is None:
            iv = os.urandom(BLOCK_SIZE)
        return CryptoUtils.b64encode(iv + CryptoUtils.cbc_encrypt(plaintext, key, iv))

    @staticmethod
    def decrypt_envelope(ciphertext_b64: str, key: bytes) -> str:
        """Decrypt an envelope with the fixed IV, dropping the first block."""
        try:
            data = CryptoUtils.b64decode(ciphertext_b64)
        except DecodeError as err:
            msg = "envelope is not valid base64"
            raise CryptoError(msg) from err
        plaintext = CryptoUtils.cbc_decrypt(data, key, ENVELOPE_FIXED_IV)
        if len(plaintext) < BLOCK_SIZE:
            msg = "envelope shorter than its IV block"
            raise CryptoError(msg)
        try:
            return plaintext[BLOCK_SIZE:].decode("utf-8")
        except UnicodeDecodeError as err:
            msg = "envelope plaintext is not UTF-8"
            raise CryptoError(msg) from err

    @staticmethod
    def xorcrypt(data: bytes, key: bytes) -> bytes:
        """XOR data with a repeating key. Applying it twice is the identity."""
        if not key:
            msg = "XOR key must not be empty"
            raise CryptoError(msg)
        return bytes(a ^ b for a, b in zip(data, cycle(key)))

    @staticmethod
    def obscure_variable(data: bytes, cid_hex: str, xor_key_hex: str) -> str:
        """Obscure a data blob under a key bound to the request's content id.

        The content id is hex-decoded and byte-reversed, then XOR-ed with the
        configured key; the result keys the XOR over ``data``.
        """
        cid = CryptoUtils.decode_hex(cid_hex)[::-1]
        request_key = CryptoUtils.xorcrypt(cid, CryptoUtils.decode_hex(xor_key_hex))
        return CryptoUtils.b64encode(CryptoUtils.xorcrypt(data, request_key))
