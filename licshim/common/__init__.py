# Common utilities
from licshim.common.crypto import CryptoUtils as CryptoUtils
from licshim.common.logging_utils import setup_logger as setup_logger

__all__ = ["CryptoUtils", "setup_logger"]
