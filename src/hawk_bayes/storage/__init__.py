# =============================================================================
# Storage Module
# =============================================================================
# Handles persistent storage of learned token counts using SQLite.
#
# Provides:
#   - Database initialization and migrations
#   - The TokenStore adapter: token counts and context aggregates
#   - Async operations via aiosqlite
#
# The database is stored in the XDG data directory
# (~/.local/share/hawk-bayes/) unless configured otherwise.
# =============================================================================

from hawk_bayes.storage.database import Database, StorageError
from hawk_bayes.storage.repository import TokenStore

__all__ = ["Database", "StorageError", "TokenStore"]
