"""Key material helpers: pubkey parsing and Solana CLI keypair files."""

import json
from pathlib import Path
from typing import Union

import bittensor as bt
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .error_handling import InvalidKeypairFile, InvalidPubkey


def parse_pubkey(value: Union[str, Pubkey], name: str = "pubkey") -> Pubkey:
    """Parse a base58 public key, raising InvalidPubkey on malformed input."""
    if isinstance(value, Pubkey):
        return value
    text = (value or "").strip()
    if not text:
        raise InvalidPubkey(f"Missing {name}")
    try:
        return Pubkey.from_string(text)
    except ValueError as e:
        raise InvalidPubkey(f"Invalid {name}: {text!r} is not a valid Solana public key") from e


def load_keypair(path: Union[str, Path], name: str = "keypair") -> Keypair:
    """
    Load a keypair from a Solana CLI keypair file.

    The file holds a JSON array of the 64 secret-key bytes.

    Raises:
        InvalidKeypairFile: If the file is missing, unreadable or malformed
    """
    keypair_path = Path(path).expanduser()
    try:
        with open(keypair_path, 'r') as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise InvalidKeypairFile(f"{name} file not found", path=str(keypair_path)) from e
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidKeypairFile(f"Could not read {name} file: {e}", path=str(keypair_path)) from e

    if not isinstance(raw, list) or len(raw) != 64:
        raise InvalidKeypairFile(f"{name} file must contain a 64-byte JSON array", path=str(keypair_path))

    try:
        keypair = Keypair.from_bytes(bytes(raw))
    except (ValueError, TypeError) as e:
        raise InvalidKeypairFile(f"Invalid {name} bytes: {e}", path=str(keypair_path)) from e

    bt.logging.debug(f"Loaded {name} {keypair.pubkey()} from {keypair_path}")
    return keypair


def resolve_identity(value: str) -> Pubkey:
    """
    Resolve a validator identity given as a base58 pubkey or a keypair file path.
    """
    text = (value or "").strip()
    if text and Path(text).expanduser().is_file():
        return load_keypair(text, name="identity keypair").pubkey()
    return parse_pubkey(text, name="identity pubkey")


def short_key(pubkey: Union[str, Pubkey]) -> str:
    """First six characters of a key, as used in progress messages."""
    return f"{str(pubkey)[:6]}..."
