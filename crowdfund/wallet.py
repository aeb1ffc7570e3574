"""
crowdfund.wallet — Ed25519 keys for permit signing and named accounts.

An account that signs permits is identified by
`sha3_256(b"ed25519|" || pubkey)`, the same derivation the claim token uses to
bind a permit's owner to its public key.

    w = Wallet.from_seed(b"alice")
    sig = w.sign_permit(chain_id=1337, token=token_addr, spender=bob,
                        value=10, nonce=0, deadline=0)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .contracts.stdlib.token.permit import ALG_TAG, permit_digest
from .runtime.hash_api import sha3_256


@dataclass(frozen=True)
class Wallet:
    private_key: Ed25519PrivateKey

    @classmethod
    def generate(cls) -> "Wallet":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "Wallet":
        """Deterministic wallet: the private key is sha3_256(seed)."""
        return cls(Ed25519PrivateKey.from_private_bytes(sha3_256(bytes(seed))))

    @classmethod
    def from_secret_hex(cls, secret_hex: str) -> "Wallet":
        return cls(Ed25519PrivateKey.from_private_bytes(bytes.fromhex(secret_hex)))

    @property
    def pubkey(self) -> bytes:
        return self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @property
    def address(self) -> bytes:
        return sha3_256(ALG_TAG + self.pubkey)

    def secret_hex(self) -> str:
        raw = self.private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return raw.hex()

    def sign(self, message: bytes) -> bytes:
        return self.private_key.sign(bytes(message))

    def sign_permit(
        self,
        *,
        chain_id: int,
        token: bytes,
        spender: bytes,
        value: int,
        nonce: int,
        deadline: int = 0,
        owner: Optional[bytes] = None,
    ) -> bytes:
        """Sign a permit letting `spender` spend `value` of this wallet's tokens."""
        digest = permit_digest(
            chain_id,
            token,
            owner if owner is not None else self.address,
            spender,
            value,
            nonce,
            deadline,
        )
        return self.sign(digest)


__all__ = ["Wallet"]
