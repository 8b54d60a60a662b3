# License shim: wire-compatible envelopes, signatures and keyfiles

from licshim.common.checksum import ChecksumModel
from licshim.common.crypto import CryptoUtils
from licshim.common.keyfile import KeyData, KeyFile, RawKeyFile

__all__ = [
    "ChecksumModel",
    "CryptoUtils",
    "KeyData",
    "KeyFile",
    "RawKeyFile",
]
