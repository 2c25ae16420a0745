from enum import Enum


class UserRole(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    USER = "user"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    DISCONNECTED = "disconnected"


class ConnectionAction(str, Enum):
    BEGIN_HANDSHAKE = "begin_handshake"
    AUTHENTICATE = "authenticate"
    REJECT = "reject"
    DISCONNECT = "disconnect"
