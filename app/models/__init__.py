# Database models
from app.models.database import (
    User,
    Wallet,
    WalletActivity,
    DailyFitcoin,
)
from app.models.sync_log import SyncLog

__all__ = [
    "User",
    "Wallet",
    "WalletActivity",
    "DailyFitcoin",
    "SyncLog",
]
