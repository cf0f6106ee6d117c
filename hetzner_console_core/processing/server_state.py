"""
Power action rules for servers.

``off <-> running`` via poweron/poweroff, ``running -> running`` via
reboot, ``running -> off`` via shutdown. poweron and poweroff are accepted
from either stable state; reboot and shutdown need a running server. Any
transitional status (starting, stopping, migrating, ...) accepts nothing.
"""

from typing import Dict, FrozenSet, List

from ..constants import ServerAction, ServerStatus
from ..exceptions import InvalidServerStateError

ALLOWED_SOURCE_STATES: Dict[ServerAction, FrozenSet[ServerStatus]] = {
    ServerAction.POWERON: frozenset({ServerStatus.RUNNING, ServerStatus.OFF}),
    ServerAction.POWEROFF: frozenset({ServerStatus.RUNNING, ServerStatus.OFF}),
    ServerAction.REBOOT: frozenset({ServerStatus.RUNNING}),
    ServerAction.SHUTDOWN: frozenset({ServerStatus.RUNNING}),
}

EXPECTED_STATE: Dict[ServerAction, ServerStatus] = {
    ServerAction.POWERON: ServerStatus.RUNNING,
    ServerAction.POWEROFF: ServerStatus.OFF,
    ServerAction.REBOOT: ServerStatus.RUNNING,
    ServerAction.SHUTDOWN: ServerStatus.OFF,
}


def is_action_allowed(status: ServerStatus, action: ServerAction) -> bool:
    return ServerStatus(status) in ALLOWED_SOURCE_STATES[ServerAction(action)]


def allowed_actions(status: ServerStatus) -> List[ServerAction]:
    """Actions the UI should offer for a server in this status."""
    return [action for action in ServerAction if is_action_allowed(status, action)]


def expected_status_after(action: ServerAction) -> ServerStatus:
    return EXPECTED_STATE[ServerAction(action)]


def ensure_action_allowed(status: ServerStatus, action: ServerAction) -> ServerStatus:
    """
    Check an action against the server's current status.

    Returns:
        The status the server is expected to reach

    Raises:
        InvalidServerStateError: The action does not fit the current status
    """
    status = ServerStatus(status)
    action = ServerAction(action)
    if not is_action_allowed(status, action):
        raise InvalidServerStateError(
            f"Cannot {action.value} a server that is {status.value}",
            status=status.value,
            action=action.value,
        )
    return expected_status_after(action)


def ensure_running(status: ServerStatus, operation: str) -> None:
    """
    Require a running server, e.g. for a root password reset.

    Raises:
        InvalidServerStateError: The server is not running
    """
    status = ServerStatus(status)
    if status is not ServerStatus.RUNNING:
        raise InvalidServerStateError(
            f"Server must be running to {operation}. Current status: {status.value}",
            status=status.value,
            action=operation,
        )
