from .query_poller import QueryPoller
from .reward_store import RewardRecordStore

__all__ = [
    "QueryPoller",
    "RewardRecordStore",
]
