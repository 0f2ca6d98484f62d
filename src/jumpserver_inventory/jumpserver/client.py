"""Public entry point: connect, enumerate all assets, close."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from ..ssh import KeyboardInteractiveHandler, ParamikoTransport, SessionConfig, Transport
from .correlator import DEFAULT_EXCHANGE_TIMEOUT
from .dialect import DEFAULT_DIALECT, MenuDialect
from .models import Asset
from .pagination import (
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_TOTAL_TIME,
    PageParser,
    PaginationDriver,
    StopReason,
)
from .parser import parse_jumpserver_output
from .session import (
    DEFAULT_MENU_POLL_INTERVAL,
    DEFAULT_MENU_POLL_RETRIES,
    AuthResultCallback,
    JumpServerSession,
    SessionState,
)

logger = logging.getLogger(__name__)


class JumpServerClient:
    """Enumerates the asset inventory behind a JumpServer bastion.

    One instance drives one session; calls must be serialised by the caller.

    Example::

        with JumpServerClient(SessionConfig(host="bastion", username="u", password="p")) as client:
            assets = client.get_all_assets()
    """

    def __init__(
        self,
        config: SessionConfig,
        *,
        transport_factory: Callable[[], Transport] = ParamikoTransport,
        parser: PageParser = parse_jumpserver_output,
        dialect: MenuDialect = DEFAULT_DIALECT,
        exchange_timeout: float = DEFAULT_EXCHANGE_TIMEOUT,
        menu_poll_interval: float = DEFAULT_MENU_POLL_INTERVAL,
        menu_poll_retries: int = DEFAULT_MENU_POLL_RETRIES,
        max_pages: int = DEFAULT_MAX_PAGES,
        max_total_time: float = DEFAULT_MAX_TOTAL_TIME,
        keyboard_interactive_handler: Optional[KeyboardInteractiveHandler] = None,
        auth_result_callback: Optional[AuthResultCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = JumpServerSession(
            config,
            transport_factory=transport_factory,
            dialect=dialect,
            exchange_timeout=exchange_timeout,
            menu_poll_interval=menu_poll_interval,
            menu_poll_retries=menu_poll_retries,
            keyboard_interactive_handler=keyboard_interactive_handler,
            auth_result_callback=auth_result_callback,
            sleep=sleep,
        )
        self.pagination = PaginationDriver(
            self.session.run_exchange,
            parser,
            dialect=dialect,
            max_pages=max_pages,
            max_total_time=max_total_time,
        )

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def last_stop_reason(self) -> Optional[StopReason]:
        return self.pagination.stop_reason

    def __enter__(self) -> "JumpServerClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def connect(self) -> None:
        self.session.connect()

    def get_all_assets(self) -> List[Asset]:
        """Return every asset, connecting first if needed."""
        if not self.session.is_ready:
            logger.info("Connection not established, starting connection...")
            self.session.connect()
        return self.pagination.enumerate_all()

    def close(self) -> None:
        self.session.close()
