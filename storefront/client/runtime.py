"""
Client runtime context

Stands in for the environment a page runs in. A browser context carries
the capabilities only a browser has (local storage, page globals such as
the pixel); a server or static render carries none of them.
"""

from typing import Any, Dict, Optional
import enum
import uuid

from storefront.services.storage import ClientStorage, MemoryStorage


class RenderMode(str, enum.Enum):
    SERVER = "server"
    STATIC = "static"
    BROWSER = "browser"


class ClientContext:
    """Capabilities available to components in one environment"""

    def __init__(
        self,
        mode: RenderMode,
        local_storage: Optional[ClientStorage] = None,
        window: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ):
        self.mode = RenderMode(mode)
        self.local_storage = local_storage if self.mode == RenderMode.BROWSER else None
        self.window = window if self.mode == RenderMode.BROWSER else None
        self.session_id = session_id

    @property
    def is_browser(self) -> bool:
        return self.mode == RenderMode.BROWSER

    @classmethod
    def server(cls) -> "ClientContext":
        return cls(RenderMode.SERVER)

    @classmethod
    def static(cls) -> "ClientContext":
        return cls(RenderMode.STATIC)

    @classmethod
    def browser(
        cls,
        local_storage: Optional[ClientStorage] = None,
        window: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> "ClientContext":
        """Browser context; a fresh in-memory storage and session id when none are given"""
        return cls(
            RenderMode.BROWSER,
            local_storage=local_storage if local_storage is not None else MemoryStorage(),
            window=window if window is not None else {},
            session_id=session_id or str(uuid.uuid4()),
        )

    def __repr__(self) -> str:
        return f"<ClientContext {self.mode.value}>"
