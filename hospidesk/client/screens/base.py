# hospidesk/client/screens/base.py
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from hospidesk.client.context import ClientContext
from hospidesk.client.live import SubscriptionScope
from hospidesk.core.errors import BackendError, DeskError, NotFound
from hospidesk.schemas.users import UserProfile

log = logging.getLogger(__name__)


class Screen:
    """
    Screen model: the state a screen renders plus its actions.

    Backend actions run through `_run`: while one is in flight `busy` is set
    and further triggers are ignored; `busy` is restored on success and on
    failure. Errors end up in `error` for the screen to show.
    """

    # screens that make no sense without a signed-in user
    requires_user = True

    def __init__(self, ctx: ClientContext):
        self.ctx = ctx
        self.scope = SubscriptionScope()
        self.busy = False
        self.error: Optional[str] = None
        self.notice: Optional[str] = None
        self.closed = False

    @property
    def user(self) -> Optional[UserProfile]:
        return self.ctx.session.user

    def open(self) -> None:
        """Start live subscriptions; called once by the app."""

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.scope.close()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def dismiss_error(self) -> None:
        self.error = None

    def _read_failed(self, message: str) -> Callable[[Exception], None]:
        """on_error callback for live views: the view stays loading, the screen shows `message`."""

        def _fail(exc: Exception) -> None:
            self.error = message

        return _fail

    async def _run(self, action: Callable[[], Awaitable[None]], *, failure: str) -> bool:
        if self.busy:
            log.debug("%s: action ignored while busy", type(self).__name__)
            return False
        self.busy = True
        self.error = None
        self.notice = None
        try:
            await action()
            return True
        except (BackendError, NotFound) as e:
            log.exception("%s: %s", type(self).__name__, e)
            self.error = failure
            return False
        except DeskError as e:
            self.error = e.message
            return False
        finally:
            self.busy = False
