"""
Key generator for the RSA signing and keyfile key.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from licshim.common.config import Config

logger = logging.getLogger(__name__)

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


class KeyGenerator:
    """Key generator for RSA keys in the PKCS#1 PEM form clients expect."""

    def __init__(self, keys_dir: Path | None = None):
        config = Config()
        self.keys_dir = keys_dir or config.KEYS_DIR

    def generate_keys(self) -> tuple[Path, Path]:
        """Generate and save an RSA private/public key pair."""
        logger.info("Generating %d-bit RSA key...", RSA_KEY_SIZE)

        private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_SIZE
        )

        # "BEGIN RSA PRIVATE KEY" framing, which keyfile clients parse
        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

        private_path = self.keys_dir / "private_pkcs1.pem"
        public_path = self.keys_dir / "public.pem"
        self.keys_dir.mkdir(parents=True, exist_ok=True)

        with private_path.open("wb") as f:
            f.write(private_pem)

        with public_path.open("wb") as f:
            f.write(public_pem)

        logger.info("Keys generated and saved:")
        logger.info("  Private: %s", private_path)
        logger.info("  Public: %s", public_path)
        logger.info("Keep the private key secure!")
        return private_path, public_path
