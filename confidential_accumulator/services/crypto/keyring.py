"""
Paillier Key Material

Key management is an external concern. This module only loads or
generates a keypair so the engine and the decryption gateway can run.
"""

import json
from pathlib import Path
from typing import Optional

import structlog
from phe import paillier
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from confidential_accumulator.errors import KeyLoadError


logger = structlog.get_logger(__name__)


class PaillierKeyring:
    """
    Holds a Paillier keypair.

    The public key is all the engine and verifier need. The private key
    is only used by the DecryptionGateway.
    """

    def __init__(
        self,
        public_key: paillier.PaillierPublicKey,
        private_key: Optional[paillier.PaillierPrivateKey] = None,
    ):
        self.public_key = public_key
        self.private_key = private_key

    @classmethod
    def generate(cls, key_bits: int = 2048) -> "PaillierKeyring":
        """Generate a fresh keypair with an n of `key_bits` bits."""
        public_key, private_key = paillier.generate_paillier_keypair(n_length=key_bits)
        logger.info("paillier_keypair_generated", key_bits=key_bits)
        return cls(public_key, private_key)

    @classmethod
    def load(cls, path: str) -> "PaillierKeyring":
        """
        Load a keypair from a JSON key file ({"n": ..., "p": ..., "q": ...}).

        p and q are optional; without them the keyring cannot decrypt.

        Raises:
            KeyLoadError: If the file is missing, unreadable or inconsistent
        """
        try:
            raw = _read_key_file(path)
        except OSError as e:
            raise KeyLoadError(f"Key file could not be read: {path}") from e

        try:
            data = json.loads(raw)
            n = int(data["n"])
            public_key = paillier.PaillierPublicKey(n=n)
            private_key = None
            if data.get("p") is not None and data.get("q") is not None:
                p, q = int(data["p"]), int(data["q"])
                if p * q != n:
                    raise ValueError("p * q does not match n")
                private_key = paillier.PaillierPrivateKey(public_key, p, q)
        except (ValueError, KeyError, TypeError) as e:
            raise KeyLoadError(f"Invalid key file {path}: {e}") from e

        logger.info(
            "paillier_keypair_loaded",
            path=path,
            key_bits=n.bit_length(),
            can_decrypt=private_key is not None,
        )
        return cls(public_key, private_key)

    def save(self, path: str, include_private: bool = True) -> None:
        """Write the keypair in the format load() reads."""
        data = {"n": str(self.public_key.n)}
        if include_private and self.private_key is not None:
            data["p"] = str(self.private_key.p)
            data["q"] = str(self.private_key.q)
        Path(path).write_text(json.dumps(data), encoding="utf-8")

    @property
    def can_decrypt(self) -> bool:
        return self.private_key is not None


@retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    reraise=True,
)
def _read_key_file(path: str) -> str:
    # Key files are often mounted as secrets after process start
    return Path(path).read_text(encoding="utf-8")
