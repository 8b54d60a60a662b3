"""
Response authentication: keyed-hash tags and RSA signatures.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from licshim.common.crypto import CryptoUtils
from licshim.common.exceptions import DecodeError, ParseError, SigningError

logger = logging.getLogger(__name__)


def _as_bytes(data: bytes | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


def hmac_key(secret: str, session_id: str | None = None) -> bytes:
    """Signing key: ``"<session_id>-<secret>"`` inside a session, else the secret."""
    if session_id is not None:
        return f"{session_id}-{secret}".encode()
    return secret.encode()


def hmac_tag(body: bytes | str, secret: str, session_id: str | None = None) -> str:
    """HMAC-SHA256 over the exact body bytes, lowercase hex.

    The body must already be in its final serialized form; the tag is sent
    out of band and covers the literal bytes the client receives.
    """
    return hmac.new(
        hmac_key(secret, session_id), _as_bytes(body), hashlib.sha256
    ).hexdigest()


def verify_hmac_tag(
    body: bytes | str, tag: str, secret: str, session_id: str | None = None
) -> bool:
    return hmac.compare_digest(hmac_tag(body, secret, session_id), tag)


def load_rsa_private_key(pem: str | bytes) -> rsa.RSAPrivateKey:
    """Parse an unencrypted PEM private key (PKCS#1 or PKCS#8)."""
    try:
        key = serialization.load_pem_private_key(_as_bytes(pem), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as err:
        msg = "malformed private key"
        raise ParseError(msg) from err
    if not isinstance(key, rsa.RSAPrivateKey):
        msg = "private key is not an RSA key"
        raise ParseError(msg)
    return key


def rsa_sign(message: str | bytes, private_key: str | rsa.RSAPrivateKey) -> str:
    """Sign with RSASSA-PKCS1-v1_5 over SHA-256 and return base64.

    PKCS#1 v1.5 is deterministic, so a key and message always give the same
    signature.
    """
    if not isinstance(private_key, rsa.RSAPrivateKey):
        try:
            private_key = load_rsa_private_key(private_key)
        except ParseError as err:
            msg = "signing key cannot be parsed"
            raise SigningError(msg) from err

    signature = private_key.sign(_as_bytes(message), padding.PKCS1v15(), hashes.SHA256())
    modulus_len = (private_key.key_size + 7) // 8
    if len(signature) != modulus_len:
        msg = f"signature is {len(signature)} bytes, modulus is {modulus_len}"
        raise SigningError(msg)
    return CryptoUtils.b64encode(signature)


def rsa_verify(
    message: str | bytes, signature_b64: str, public_key: rsa.RSAPublicKey
) -> bool:
    try:
        public_key.verify(
            CryptoUtils.b64decode(signature_b64),
            _as_bytes(message),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except (InvalidSignature, DecodeError):
        logger.debug("RSA signature rejected")
        return False
    return True
