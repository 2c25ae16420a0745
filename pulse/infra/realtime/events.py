from enum import Enum


class RealtimeEvent(str, Enum):
    USER_ONLINE = "user_online"
    ONLINE_USERS = "online_users"
    USER_OFFLINE = "user_offline"
    RECEIVE_MESSAGE = "receive_message"
    NEW_MESSAGE_NOTIFICATION = "new_message_notification"
    USER_TYPING_START = "user_typing_start"
    USER_TYPING_STOP = "user_typing_stop"
    ERROR = "error"
    PONG = "pong"


class DomainEvent(str, Enum):
    POST_CREATED = "post_created"
    COMMENT_CREATED = "comment_created"


class ClientAction(str, Enum):
    JOIN_CONVERSATION = "join_conversation"
    LEAVE_CONVERSATION = "leave_conversation"
    SEND_MESSAGE = "send_message"
    TYPING_START = "typing_start"
    TYPING_STOP = "typing_stop"
    PING = "ping"


OutboundEvent = RealtimeEvent | DomainEvent
