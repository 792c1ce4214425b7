from .adapter import MemoryStore, PersistenceAdapter, PersistenceError
from .manager import DatabaseManager
from .settings_store import SettingsStore
from .sql_store import SqlStore
