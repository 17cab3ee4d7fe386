# journal.app.common package
from journal.app.common.config import Config, get_config
from journal.app.common.supabase_client import JournalDataError, get_client

__all__ = ["Config", "get_config", "JournalDataError", "get_client"]
