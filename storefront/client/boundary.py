"""
Client-only rendering boundary
"""

from typing import Callable, Generic, Optional, TypeVar
import enum
import logging

from storefront.client.runtime import ClientContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundaryState(str, enum.Enum):
    UNMOUNTED = "unmounted"
    CLIENT_MOUNTED = "client_mounted"


class ClientOnlyBoundary(Generic[T]):
    """
    Gate for a subtree that needs browser capabilities

    Starts UNMOUNTED and renders the placeholder. `mount()` in a browser
    context builds the subtree and moves to CLIENT_MOUNTED; there is no way
    back within one page load. Server and static contexts never build the
    subtree.
    """

    def __init__(self, factory: Callable[[ClientContext], T], placeholder: str = ""):
        self.factory = factory
        self.placeholder = placeholder
        self.state = BoundaryState.UNMOUNTED
        self._subtree: Optional[T] = None

    @property
    def mounted(self) -> bool:
        return self.state == BoundaryState.CLIENT_MOUNTED

    @property
    def subtree(self) -> Optional[T]:
        return self._subtree

    def mount(self, context: ClientContext) -> Optional[T]:
        """Build the subtree once the runtime is confirmed to be a browser"""
        if self.mounted:
            return self._subtree
        if not context.is_browser:
            logger.debug(f"Not mounting client-only subtree in {context.mode.value} context")
            return None

        try:
            subtree = self.factory(context)
        except Exception:
            logger.exception("Client-only subtree failed to mount, keeping placeholder")
            return None

        self._subtree = subtree
        self.state = BoundaryState.CLIENT_MOUNTED
        return subtree

    def render(self, context: ClientContext) -> str:
        if not self.mounted or not context.is_browser:
            return self.placeholder
        render = getattr(self._subtree, "render", None)
        return render() if callable(render) else self.placeholder
