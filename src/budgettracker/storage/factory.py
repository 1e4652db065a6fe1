from budgettracker.core import settings
from budgettracker.integration.supabase import SupabaseStore
from budgettracker.logger import get_logger

from .base import TransactionStore
from .local import JsonFileStore

logger = get_logger(__name__)

STORAGE_BACKENDS = ("local", "supabase")


def create_store(backend: str | None = None, data_dir: str | None = None) -> TransactionStore:
    """Build the configured store. There is no fallback between backends."""
    name = (backend or settings.get_storage_backend()).strip().lower()
    if name == "local":
        store_dir = data_dir or settings.DATA_DIR
        logger.info("[STORE] Using local JSON store in %s", store_dir)
        return JsonFileStore(data_dir=store_dir)
    if name == "supabase":
        logger.info("[STORE] Using Supabase store")
        return SupabaseStore()
    raise ValueError(f"Unknown STORAGE_BACKEND {name!r}; expected one of {', '.join(STORAGE_BACKENDS)}.")
