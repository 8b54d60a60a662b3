"""
Custom exceptions for the envelope engine.
"""

from __future__ import annotations


class LicshimError(Exception):
    """Base exception for codec, signing and keyfile failures."""

    def __init__(self, message: str, status_code: int = 404) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(LicshimError):
    """Exception for malformed base64 or hex input."""


class CryptoError(LicshimError):
    """Exception for padding, block length and key length failures."""


class ParseError(LicshimError):
    """Exception for malformed records, requests and key encodings."""


class SigningError(LicshimError):
    """Exception for signatures that cannot be produced."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 500)


class EnvelopeError(LicshimError):
    """Exception for any failure while unwrapping or wrapping a keyfile."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 500)


# Errors raised while reading an untrusted request; answered with a bare 404.
REQUEST_ERRORS = (DecodeError, CryptoError, ParseError)
