from pulse.domain.enums import ConnectionAction, ConnectionState


class InvalidConnectionTransition(ValueError):
    def __init__(self, current: ConnectionState, action: ConnectionAction) -> None:
        super().__init__(
            f"Cannot apply action '{action.value}' from state '{current.value}'."
        )
        self.current = current
        self.action = action
