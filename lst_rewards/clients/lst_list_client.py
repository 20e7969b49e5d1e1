"""Lookup of LST metadata from the public LST registry."""

import tomllib
from typing import Optional, Tuple

import bittensor as bt
import requests
from solders.pubkey import Pubkey

from lst_rewards.utils.config import LST_LIST_URL


def find_lst_for_pool(stake_pool: Pubkey, url: str = LST_LIST_URL) -> Optional[Tuple[str, str]]:
    """
    Find the (name, symbol) of the LST backed by ``stake_pool``.

    The lookup only decorates the transfer summary, so any failure is logged
    and reported as None.
    """
    try:
        response = requests.get(url, timeout=10)
        response.raise_for_status()
        registry = tomllib.loads(response.text)
    except (requests.exceptions.RequestException, tomllib.TOMLDecodeError) as e:
        bt.logging.warning(f"Could not load LST registry: {e}")
        return None

    pool_key = str(stake_pool)
    for lst in registry.get("sanctum_lst_list", []):
        pool = lst.get("pool") or {}
        if pool.get("pool") == pool_key:
            return lst.get("name", ""), lst.get("symbol", "")

    bt.logging.debug(f"No LST found for pool {pool_key}")
    return None
