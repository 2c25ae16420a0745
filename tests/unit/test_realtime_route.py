from dataclasses import dataclass
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from pulse.api.v1.routes import realtime
from pulse.core.security import create_access_token
from pulse.domain.enums import UserRole
from pulse.infra.realtime.gateway import RealtimeGateway
from pulse.services.credentials import CredentialVerifier

SECRET = "pulse-test-secret-with-at-least-32-bytes"


@dataclass(slots=True)
class FakeUser:
    id: UUID
    email: str
    name: str | None = None
    role: UserRole = UserRole.USER
    picture: str | None = None
    is_active: bool = True
    is_deleted: bool = False

    @property
    def display_name(self) -> str:
        return self.name or self.email


class FakeAccountDirectory:
    def __init__(self, *users: FakeUser) -> None:
        self.users = {user.id: user for user in users}

    async def get_by_id(self, user_id: UUID) -> FakeUser | None:
        return self.users.get(user_id)


def _build_app(gateway: RealtimeGateway | None) -> FastAPI:
    app = FastAPI()
    app.include_router(realtime.router, prefix="/realtime")
    if gateway is not None:
        app.state.realtime_gateway = gateway
    return app


def test_websocket_without_cookie_is_closed_with_policy_violation() -> None:
    gateway = RealtimeGateway(CredentialVerifier(SECRET), FakeAccountDirectory())
    client = TestClient(_build_app(gateway))

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/realtime/ws"):
            pass

    assert exc_info.value.code == 1008
    assert len(gateway.presence) == 0


def test_websocket_without_gateway_is_closed() -> None:
    client = TestClient(_build_app(None))

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/realtime/ws"):
            pass

    assert exc_info.value.code == 1011


def test_authenticated_websocket_receives_presence_and_pong() -> None:
    user = FakeUser(id=uuid4(), email="asha@pulse.local", name="Asha")
    token, _ = create_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        user_name=user.display_name,
        secret=SECRET,
        ttl_minutes=5,
    )
    gateway = RealtimeGateway(CredentialVerifier(SECRET), FakeAccountDirectory(user))
    client = TestClient(_build_app(gateway))

    with client.websocket_connect(
        "/realtime/ws", headers={"cookie": f"accessToken={token}"}
    ) as websocket:
        assert websocket.receive_json()["event"] == "user_online"
        online = websocket.receive_json()
        assert online["event"] == "online_users"
        assert online["payload"][0]["userId"] == str(user.id)

        websocket.send_text("ping")
        assert websocket.receive_json()["event"] == "pong"
        assert gateway.presence.is_online(str(user.id))


def test_binary_frame_is_answered_with_error_and_connection_survives() -> None:
    user = FakeUser(id=uuid4(), email="rohan@pulse.local", name="Rohan")
    token, _ = create_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        user_name=user.display_name,
        secret=SECRET,
        ttl_minutes=5,
    )
    gateway = RealtimeGateway(CredentialVerifier(SECRET), FakeAccountDirectory(user))
    client = TestClient(_build_app(gateway))

    with client.websocket_connect(
        "/realtime/ws", headers={"cookie": f"accessToken={token}"}
    ) as websocket:
        websocket.receive_json()
        websocket.receive_json()

        websocket.send_bytes(b"\x00\x01")
        error = websocket.receive_json()
        assert error["event"] == "error"
        assert error["payload"] == {"message": "Expected text frame"}

        websocket.send_text("ping")
        assert websocket.receive_json()["event"] == "pong"
        assert gateway.presence.is_online(str(user.id))
