PERSONAL_ROOM_PREFIX = "user_"
CONVERSATION_ROOM_SEPARATOR = "_"


def personal_room(account_id: str) -> str:
    return f"{PERSONAL_ROOM_PREFIX}{account_id}"


def conversation_room(first_account_id: str, second_account_id: str) -> str:
    """Room shared by two accounts; argument order does not matter."""
    return CONVERSATION_ROOM_SEPARATOR.join(
        sorted([str(first_account_id), str(second_account_id)])
    )
