from pulse.domain.enums import ConnectionAction, ConnectionState
from pulse.domain.exceptions import InvalidConnectionTransition


class ConnectionLifecycle:
    """State machine for a realtime connection: connecting -> authenticating -> authenticated -> disconnected."""

    _allowed_transitions: dict[tuple[ConnectionState, ConnectionAction], ConnectionState] = {
        (ConnectionState.CONNECTING, ConnectionAction.BEGIN_HANDSHAKE): ConnectionState.AUTHENTICATING,
        (ConnectionState.CONNECTING, ConnectionAction.DISCONNECT): ConnectionState.DISCONNECTED,
        (ConnectionState.AUTHENTICATING, ConnectionAction.AUTHENTICATE): ConnectionState.AUTHENTICATED,
        (ConnectionState.AUTHENTICATING, ConnectionAction.REJECT): ConnectionState.DISCONNECTED,
        (ConnectionState.AUTHENTICATING, ConnectionAction.DISCONNECT): ConnectionState.DISCONNECTED,
        (ConnectionState.AUTHENTICATED, ConnectionAction.DISCONNECT): ConnectionState.DISCONNECTED,
    }

    @classmethod
    def transition(cls, current: ConnectionState, action: ConnectionAction) -> ConnectionState:
        # Transport close may be reported more than once.
        if current == ConnectionState.DISCONNECTED and action == ConnectionAction.DISCONNECT:
            return ConnectionState.DISCONNECTED

        next_state = cls._allowed_transitions.get((current, action))
        if not next_state:
            raise InvalidConnectionTransition(current=current, action=action)
        return next_state

    @staticmethod
    def is_terminal(state: ConnectionState) -> bool:
        return state == ConnectionState.DISCONNECTED

    @staticmethod
    def accepts_events(state: ConnectionState) -> bool:
        return state == ConnectionState.AUTHENTICATED
