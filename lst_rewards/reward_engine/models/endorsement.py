"""Data model for off-chain endorsement signatures."""

from dataclasses import dataclass

from solders.pubkey import Pubkey
from solders.signature import Signature


@dataclass(frozen=True)
class EndorsementSignature:
    message_bytes: bytes
    signature: Signature
    signer_pubkey: Pubkey

    def verify(self) -> bool:
        return self.signature.verify(self.signer_pubkey, self.message_bytes)
