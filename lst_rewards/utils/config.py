import os
from dotenv import load_dotenv
from pathlib import Path
import bittensor as bt

env_path = Path(__file__).parents[1] / '.env'
load_dotenv(dotenv_path=env_path)

# Solana RPC
SOLANA_PUBLIC_RPC = "https://api.mainnet-beta.solana.com"
SOLANA_RPC_URL = os.getenv('SOLANA_RPC_URL', SOLANA_PUBLIC_RPC)
COMMITMENT = os.getenv('SOLANA_COMMITMENT', 'confirmed')
RPC_TIMEOUT = 30  # seconds per HTTP request
RPC_MAX_WORKERS = int(os.getenv('RPC_MAX_WORKERS', '8'))

# Reward records
REWARDS_DIR = Path(os.getenv('LST_REWARDS_DIR', str(Path.home() / ".local" / "lst-rewards")))
EVENTS_RETENTION_SIZE = 5 * 1024 * 1024  # 5 MiB

# Epoch selection
RECENT_EPOCH_WINDOW = 5
PUBLIC_RPC_SLOT_WARNING = 200

# Dune Analytics
DUNE_API_URL = os.getenv('DUNE_API_URL', 'https://api.dune.com/api/v1')
DUNE_API_KEY = os.getenv('DUNE_API_KEY')
DUNE_QUERY_ID = int(os.getenv('DUNE_QUERY_ID', '4745888'))
DUNE_POLL_INTERVAL = 5  # seconds
DUNE_DEFAULT_TIMEOUT = 300  # 5 minutes

# Transaction submission
CONFIRMATION_TIMEOUT = int(os.getenv('CONFIRMATION_TIMEOUT', '90'))
CONFIRMATION_POLL_INTERVAL = 2
DEFAULT_FEE_LIMIT_CB = 1  # lamports
CU_BUFFER_RATIO = 1.1
CUS_REQUIRED_FOR_SET_CU_LIMIT_IXS = 300

LAMPORTS_PER_SOL = 1_000_000_000

# Endorsement
ENDORSE_MESSAGE = os.getenv(
    'ENDORSE_MESSAGE',
    "I endorse the liquid staking token backed by this validator and consent to "
    "sharing its block rewards with the token holders."
)

# LST registry
LST_LIST_URL = os.getenv(
    'LST_LIST_URL',
    "https://raw.githubusercontent.com/igneous-labs/sanctum-lst-list/refs/heads/master/sanctum-lst-list.toml"
)

# Log out all non-sensitive config variables
bt.logging.debug(f"SOLANA_RPC_URL: {SOLANA_RPC_URL}")
bt.logging.debug(f"COMMITMENT: {COMMITMENT}")
bt.logging.debug(f"RPC_MAX_WORKERS: {RPC_MAX_WORKERS}")
bt.logging.debug(f"REWARDS_DIR: {REWARDS_DIR}")
bt.logging.debug(f"DUNE_API_URL: {DUNE_API_URL}")
bt.logging.debug(f"DUNE_QUERY_ID: {DUNE_QUERY_ID}")
bt.logging.debug(f"CONFIRMATION_TIMEOUT: {CONFIRMATION_TIMEOUT}")
