"""Process-wide QueryService used by the MCP tools."""
import threading
from pathlib import Path
from typing import Optional

from querytrail.logging_config import logger
from querytrail.service import QueryService
from querytrail.storage import open_store

_service: Optional[QueryService] = None
_lock = threading.Lock()


def get_service() -> QueryService:
    """Get the shared service, opening the configured store on first use."""
    global _service
    if _service is None:
        with _lock:
            if _service is None:
                store = open_store()
                logger.info(f"Opened {type(store).__name__} for MCP tools")
                _service = QueryService(store)
    return _service


def configure_service(db_path: Optional[Path] = None, backend: Optional[str] = None) -> QueryService:
    """Replace the shared service with one bound to an explicit store."""
    global _service
    with _lock:
        _service = QueryService(open_store(db_path, backend=backend))
    return _service


def reset_service() -> None:
    """Drop the shared service (useful for testing)."""
    global _service
    with _lock:
        if _service is not None:
            _service.store.close()
        _service = None
