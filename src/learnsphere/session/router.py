"""Screen dispatch for a learner session."""

from enum import StrEnum

import structlog

from learnsphere.catalog import find_topic
from learnsphere.errors import NavigationError

logger = structlog.get_logger()


class Screen(StrEnum):
    LOGIN = "login"
    DASHBOARD = "dashboard"
    ASSISTED = "assisted"
    SELF = "self"
    BONUS = "bonus"


LEARNING_SCREENS = frozenset({Screen.ASSISTED, Screen.SELF, Screen.BONUS})


class ViewRouter:
    """Tracks the active screen and the topic it was opened with.

    There is no history stack: every learning screen returns to the dashboard.
    """

    def __init__(self) -> None:
        self._screen = Screen.LOGIN
        self._topic = ""

    @property
    def screen(self) -> Screen:
        return self._screen

    @property
    def topic(self) -> str:
        return self._topic

    def authenticated(self) -> None:
        self._require(Screen.LOGIN, "authenticate")
        self._go(Screen.DASHBOARD)

    def open(self, screen: Screen, topic: str = "", *, bonus_unlocked: bool = False) -> None:
        """Open a learning screen from the dashboard."""
        if screen not in LEARNING_SCREENS:
            raise NavigationError(f"Cannot open '{screen}' from the dashboard")
        self._require(Screen.DASHBOARD, f"open {screen}")
        if screen is Screen.BONUS:
            if not bonus_unlocked:
                raise NavigationError("The bonus zone is still locked")
            topic = ""
        elif find_topic(topic) is None:
            raise NavigationError(f"Unknown topic {topic!r}")
        self._go(screen, topic)

    def back(self) -> None:
        if self._screen not in LEARNING_SCREENS:
            raise NavigationError(f"No way back from '{self._screen}'")
        self._go(Screen.DASHBOARD)

    def logout(self) -> None:
        self._require(Screen.DASHBOARD, "log out")
        self._go(Screen.LOGIN)

    def _require(self, expected: Screen, action: str) -> None:
        if self._screen is not expected:
            raise NavigationError(f"Cannot {action} while on '{self._screen}'")

    def _go(self, screen: Screen, topic: str = "") -> None:
        logger.debug("screen_changed", old=self._screen.value, new=screen.value, topic=topic)
        self._screen = screen
        self._topic = topic
