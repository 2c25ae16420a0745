import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from pulse.domain.enums import ConnectionAction, ConnectionState
from pulse.domain.state_machine import ConnectionLifecycle
from pulse.infra.db.models import User
from pulse.infra.realtime.channels import conversation_room, personal_room
from pulse.infra.realtime.events import ClientAction, RealtimeEvent
from pulse.infra.realtime.hub import InMemoryRealtimeHub, RealtimeConnection
from pulse.infra.realtime.presence import PresenceEntry, PresenceRegistry
from pulse.schemas.realtime import SendMessagePayload, TypingPayload
from pulse.services.credentials import (
    AccountLookup,
    AuthenticatedAccount,
    CredentialVerifier,
)
from pulse.services.errors import AuthenticationError

logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008
GOING_AWAY = 1001


@dataclass(slots=True)
class ConnectionSession:
    """Per-connection context, created once the handshake succeeds."""

    connection_id: str
    account_id: str
    display_name: str
    email: str
    role: str
    websocket: RealtimeConnection
    state: ConnectionState = ConnectionState.AUTHENTICATED

    @property
    def personal_room(self) -> str:
        return personal_room(self.account_id)


def _parse_uuid(raw: Any) -> UUID | None:
    if not isinstance(raw, str):
        return None
    try:
        return UUID(raw.strip())
    except ValueError:
        return None


class RealtimeGateway:
    """Authenticates websocket clients and relays presence and chat events.

    Chat traffic is relayed only; nothing sent through the gateway is stored.
    Every failure after the handshake is reported to the offending connection
    as an ``error`` event and never closes the socket.
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        accounts: AccountLookup,
        presence: PresenceRegistry | None = None,
        hub: InMemoryRealtimeHub | None = None,
        cookie_name: str = "accessToken",
    ) -> None:
        self.verifier = verifier
        self.accounts = accounts
        self.presence = presence or PresenceRegistry()
        self.hub = hub or InMemoryRealtimeHub()
        self.cookie_name = cookie_name
        self._handlers: dict[
            ClientAction, Callable[[ConnectionSession, Any], Awaitable[None]]
        ] = {
            ClientAction.JOIN_CONVERSATION: self.join_conversation,
            ClientAction.LEAVE_CONVERSATION: self.leave_conversation,
            ClientAction.SEND_MESSAGE: self.send_message,
            ClientAction.TYPING_START: self.typing_start,
            ClientAction.TYPING_STOP: self.typing_stop,
        }

    async def serve(self, websocket: WebSocket) -> None:
        session = await self.authenticate(websocket)
        if session is None:
            return

        try:
            await self.open(session)
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    return
                raw_message = message.get("text")
                if raw_message is None:
                    await self._send_error(session, "Expected text frame")
                    continue
                await self.handle(session, raw_message)
        except WebSocketDisconnect:
            return
        finally:
            await self.close(session)

    async def authenticate(self, websocket: Any) -> ConnectionSession | None:
        state = ConnectionLifecycle.transition(
            ConnectionState.CONNECTING, ConnectionAction.BEGIN_HANDSHAKE
        )
        try:
            account = await self._authenticate_cookies(websocket.cookies)
        except AuthenticationError as exc:
            reason = str(exc)
        except Exception as exc:
            logger.exception("Realtime handshake failed")
            reason = f"Authentication error: {exc}"
        else:
            user = account.user
            return ConnectionSession(
                connection_id=uuid4().hex,
                account_id=str(user.id),
                display_name=user.display_name,
                email=user.email,
                role=user.role.value,
                websocket=websocket,
                state=ConnectionLifecycle.transition(state, ConnectionAction.AUTHENTICATE),
            )

        ConnectionLifecycle.transition(state, ConnectionAction.REJECT)
        logger.warning("Rejected realtime connection: %s", reason)
        await websocket.close(code=POLICY_VIOLATION, reason=reason)
        return None

    async def open(self, session: ConnectionSession) -> None:
        await self.hub.connect(session.connection_id, session.websocket)
        entry = self.presence.register(
            session.account_id,
            session.connection_id,
            session.display_name,
            session.email,
        )
        await self.hub.join(session.connection_id, session.personal_room)

        await self.hub.broadcast(RealtimeEvent.USER_ONLINE, self._presence_payload(entry))
        await self.hub.send(
            session.connection_id,
            RealtimeEvent.ONLINE_USERS,
            [self._presence_payload(item) for item in self.presence.list()],
        )
        logger.info(
            "Account %s connected (connection %s, %d online)",
            session.account_id,
            session.connection_id,
            len(self.presence),
        )

    async def handle(self, session: ConnectionSession, raw_message: str) -> None:
        if raw_message.strip().lower() == "ping":
            await self.hub.send(session.connection_id, RealtimeEvent.PONG, {})
            return

        try:
            message = json.loads(raw_message)
        except json.JSONDecodeError:
            await self._send_error(session, "Expected JSON payload")
            return
        if not isinstance(message, dict):
            await self._send_error(session, "Expected JSON object")
            return

        try:
            action = ClientAction(message.get("action"))
        except ValueError:
            await self._send_error(session, "Unsupported action")
            return

        if action == ClientAction.PING:
            await self.hub.send(session.connection_id, RealtimeEvent.PONG, {})
            return

        handler = self._handlers[action]
        try:
            await handler(session, message.get("payload"))
        except Exception:
            logger.exception(
                "Realtime handler %s failed for account %s",
                action.value,
                session.account_id,
            )
            await self._send_error(session, f"Failed to handle {action.value}")

    async def join_conversation(self, session: ConnectionSession, payload: Any) -> None:
        if not await self._require_authenticated(session):
            return

        other_id = _parse_uuid(payload)
        if other_id is None:
            await self._send_error(session, "Invalid conversation participant")
            return
        if str(other_id) == session.account_id:
            await self._send_error(session, "Cannot open a conversation with yourself")
            return

        room = conversation_room(session.account_id, str(other_id))
        await self.hub.join(session.connection_id, room)
        logger.debug("Account %s joined conversation %s", session.account_id, room)

    async def leave_conversation(self, session: ConnectionSession, payload: Any) -> None:
        if not await self._require_authenticated(session):
            return

        other_id = _parse_uuid(payload)
        if other_id is None:
            await self._send_error(session, "Invalid conversation participant")
            return

        room = conversation_room(session.account_id, str(other_id))
        await self.hub.leave(session.connection_id, room)
        logger.debug("Account %s left conversation %s", session.account_id, room)

    async def send_message(self, session: ConnectionSession, payload: Any) -> None:
        if not await self._require_authenticated(session):
            return

        try:
            data = SendMessagePayload.model_validate(payload)
        except ValidationError:
            await self._send_error(session, "Invalid message payload")
            return

        # Profiles are read at send time so names and pictures are current.
        sender = await self._lookup_account(_parse_uuid(session.account_id))
        if sender is None:
            await self._send_error(session, "Sender not found")
            return
        recipient = await self._lookup_account(_parse_uuid(data.recipient_id))
        if recipient is None:
            await self._send_error(session, "Recipient not found")
            return
        if recipient.id == sender.id:
            await self._send_error(session, "Cannot send a message to yourself")
            return

        sender_id = str(sender.id)
        recipient_id = str(recipient.id)
        message = {
            "id": uuid4().hex,
            "tempId": data.temp_id,
            "senderId": self._profile_payload(sender),
            "recipientId": self._profile_payload(recipient),
            "content": data.content,
            "createdAt": datetime.now(UTC).isoformat(),
        }

        await self.hub.emit(
            [conversation_room(sender_id, recipient_id)],
            RealtimeEvent.RECEIVE_MESSAGE,
            message,
        )
        await self.hub.emit(
            [personal_room(recipient_id)],
            RealtimeEvent.NEW_MESSAGE_NOTIFICATION,
            {
                "messageId": message["id"],
                "senderId": message["senderId"],
                "content": message["content"],
                "createdAt": message["createdAt"],
            },
            exclude=session.connection_id,
        )
        logger.info("Relayed message from %s to %s", sender_id, recipient_id)

    async def typing_start(self, session: ConnectionSession, payload: Any) -> None:
        await self._relay_typing(
            session,
            payload,
            RealtimeEvent.USER_TYPING_START,
            {"userId": session.account_id, "userName": session.display_name},
        )

    async def typing_stop(self, session: ConnectionSession, payload: Any) -> None:
        await self._relay_typing(
            session,
            payload,
            RealtimeEvent.USER_TYPING_STOP,
            {"userId": session.account_id},
        )

    async def close(self, session: ConnectionSession) -> bool:
        """Tear down a session. Safe to call more than once."""
        if ConnectionLifecycle.is_terminal(session.state):
            return False
        session.state = ConnectionLifecycle.transition(
            session.state, ConnectionAction.DISCONNECT
        )

        await self.hub.disconnect(session.connection_id)
        removed = self.presence.unregister(
            session.account_id, connection_id=session.connection_id
        )
        if removed:
            await self.hub.broadcast(
                RealtimeEvent.USER_OFFLINE, {"userId": session.account_id}
            )
        logger.info(
            "Account %s disconnected (connection %s)",
            session.account_id,
            session.connection_id,
        )
        return removed

    async def shutdown(self) -> None:
        await self.hub.close_all(code=GOING_AWAY, reason="Server shutting down")

    async def _authenticate_cookies(
        self, cookies: Mapping[str, str] | None
    ) -> AuthenticatedAccount:
        if not cookies:
            raise AuthenticationError("Authentication error: No cookies provided")
        token = cookies.get(self.cookie_name)
        if not token:
            raise AuthenticationError("Authentication error: No access token in cookies")
        return await self.verifier.authenticate(token, self.accounts)

    async def _require_authenticated(self, session: ConnectionSession) -> bool:
        if ConnectionLifecycle.accepts_events(session.state):
            return True
        await self._send_error(session, "User not authenticated")
        return False

    async def _relay_typing(
        self,
        session: ConnectionSession,
        payload: Any,
        event: RealtimeEvent,
        body: dict[str, Any],
    ) -> None:
        if not await self._require_authenticated(session):
            return

        try:
            data = TypingPayload.model_validate(payload)
        except ValidationError:
            await self._send_error(session, "Invalid typing payload")
            return
        recipient_id = _parse_uuid(data.recipient_id)
        if recipient_id is None:
            await self._send_error(session, "Invalid typing payload")
            return

        await self.hub.emit(
            [personal_room(str(recipient_id))],
            event,
            body,
            exclude=session.connection_id,
        )

    async def _lookup_account(self, account_id: UUID | None) -> User | None:
        if account_id is None:
            return None
        user = await self.accounts.get_by_id(account_id)
        if user is None or user.is_deleted or not user.is_active:
            return None
        return user

    async def _send_error(self, session: ConnectionSession, message: str) -> None:
        await self.hub.send(session.connection_id, RealtimeEvent.ERROR, {"message": message})

    @staticmethod
    def _presence_payload(entry: PresenceEntry) -> dict[str, str]:
        return {
            "userId": entry.account_id,
            "userName": entry.display_name,
            "userEmail": entry.email,
        }

    @staticmethod
    def _profile_payload(user: User) -> dict[str, Any]:
        return {
            "id": str(user.id),
            "name": user.name,
            "email": user.email,
            "picture": user.picture,
        }
