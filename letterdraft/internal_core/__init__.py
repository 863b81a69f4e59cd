from .config import LetterConfig, load_config
from .session_store import InMemoryDraftStore

__all__ = ["LetterConfig", "load_config", "InMemoryDraftStore"]
