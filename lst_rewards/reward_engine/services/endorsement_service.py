"""Off-chain endorsement signatures made with a validator identity key."""

from typing import Union

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..models.endorsement import EndorsementSignature
from lst_rewards.utils.config import ENDORSE_MESSAGE
from lst_rewards.utils.error_handling import InputValidationError


class EndorsementSigner:
    """Signs and verifies endorsement messages. Stateless; ed25519 is deterministic."""

    def __init__(self, message: str = ENDORSE_MESSAGE):
        self.message = message

    def sign(self, identity_keypair: Keypair, message: Union[str, bytes, None] = None) -> EndorsementSignature:
        message_bytes = _to_bytes(self.message if message is None else message)
        return EndorsementSignature(
            message_bytes=message_bytes,
            signature=identity_keypair.sign_message(message_bytes),
            signer_pubkey=identity_keypair.pubkey(),
        )

    def verify(self, identity_pubkey: Pubkey, signature: Union[str, Signature],
               message: Union[str, bytes, None] = None) -> bool:
        """Check a base58 signature against the identity pubkey and message."""
        if isinstance(signature, str):
            try:
                signature = Signature.from_string(signature.strip())
            except ValueError as e:
                raise InputValidationError(f"Invalid signature: {e}") from e
        message_bytes = _to_bytes(self.message if message is None else message)
        return signature.verify(identity_pubkey, message_bytes)


def _to_bytes(message: Union[str, bytes]) -> bytes:
    return message.encode("utf-8") if isinstance(message, str) else bytes(message)
