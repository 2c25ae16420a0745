from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PresenceEntry:
    account_id: str
    connection_id: str
    display_name: str
    email: str


class PresenceRegistry:
    """Which accounts currently hold an open realtime connection.

    One entry per account; a second connection for the same account replaces
    the first. Mutations happen on the event loop only, so no lock is held.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PresenceEntry] = {}

    def register(
        self,
        account_id: str,
        connection_id: str,
        display_name: str,
        email: str,
    ) -> PresenceEntry:
        entry = PresenceEntry(
            account_id=account_id,
            connection_id=connection_id,
            display_name=display_name,
            email=email,
        )
        self._entries[account_id] = entry
        return entry

    def unregister(self, account_id: str, connection_id: str | None = None) -> bool:
        """Drop the entry for ``account_id``.

        When ``connection_id`` is given the entry is only removed if it still
        belongs to that connection. Returns whether anything was removed.
        """
        entry = self._entries.get(account_id)
        if entry is None:
            return False
        if connection_id is not None and entry.connection_id != connection_id:
            return False
        del self._entries[account_id]
        return True

    def list(self) -> list[PresenceEntry]:
        return list(self._entries.values())

    def is_online(self, account_id: str) -> bool:
        return account_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
