# src/autopost/connectors/matrix_connector.py

from __future__ import annotations

"""
Matrix connector.

Two roles:
- send capability for the scheduler and responders (destinations are room ids)
- inbound event source: room messages go through core.dispatch

Login: an access token saved in <matrix_store_path>/session.json is reused
when it belongs to the configured user; otherwise a password login runs once
and writes a fresh one. After the first sync, allowlisted rooms the account
has not joined yet are joined so scheduled posts can reach them.

Shutdown model: the sync loop runs until stop_event is set; the caller stops
the scheduler before close() so no send races a closed client.
"""

import asyncio
import contextlib
import html
import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from nio import (
    AsyncClient,
    AsyncClientConfig,
    JoinResponse,
    LoginResponse,
    MatrixRoom,
    RoomMessageText,
    RoomSendResponse,
    exceptions,
)

from ..core.dispatch import handle_inbound
from ..core.errors import SendError
from ..core.state import AppState
from ..tasks.task_models import MessagePayload

logger = logging.getLogger(__name__)

try:
    import olm  # type: ignore  # noqa: F401

    OLM_AVAILABLE = True
except ImportError:
    OLM_AVAILABLE = False

SEND_TIMEOUT_S = 30.0
SYNC_TIMEOUT_MS = 30_000
SESSION_FILE = "session.json"


def _ms_now() -> int:
    return int(time.time() * 1000)


def _room_allowlist(settings_rooms: list[str]) -> set[str] | None:
    rooms = [r.strip() for r in (settings_rooms or []) if str(r).strip()]
    return set(rooms) if rooms else None


@dataclass(frozen=True, slots=True)
class MatrixSession:
    """Access token + device of a logged-in account, as kept in session.json."""

    user_id: str
    device_id: str
    access_token: str

    @classmethod
    def load(cls, path: Path) -> MatrixSession | None:
        """Read a saved session; None when missing, unreadable or incomplete."""
        try:
            data = json.loads(path.read_text("utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable Matrix session file %s", path, exc_info=True)
            return None

        if not isinstance(data, dict):
            logger.warning("Ignoring Matrix session file %s: not a JSON object", path)
            return None
        values = {k: str(data.get(k) or "").strip() for k in ("user_id", "device_id", "access_token")}
        if not all(values.values()):
            logger.warning("Ignoring Matrix session file %s: missing fields", path)
            return None
        return cls(**values)

    def save(self, path: Path) -> None:
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(asdict(self)), "utf-8")
        os.replace(tmp, path)
        # Holds a credential; best effort on filesystems without modes.
        with contextlib.suppress(OSError):
            os.chmod(path, 0o600)


def build_content(payload: MessagePayload) -> dict[str, Any]:
    """
    Render a payload as an m.room.message event.

    Matrix has no embeds: the attachment becomes an HTML block quote
    (bold title, optional colour) with a plain-text fallback in "body".
    """
    text = payload.text.strip()
    embed = payload.embed
    if embed is None:
        return {"msgtype": "m.text", "body": text}

    plain = [p for p in (text, embed.title, embed.body) if p]

    title_html = html.escape(embed.title)
    if title_html and embed.color:
        color = html.escape(embed.color, quote=True)
        title_html = f'<font data-mx-color="{color}" color="{color}">{title_html}</font>'
    quote = []
    if title_html:
        quote.append(f"<b>{title_html}</b>")
    if embed.body:
        quote.append(html.escape(embed.body).replace("\n", "<br>"))

    formatted = ""
    if text:
        formatted += html.escape(text).replace("\n", "<br>")
    formatted += "<blockquote>" + "<br>".join(quote) + "</blockquote>"

    return {
        "msgtype": "m.text",
        "body": "\n".join(plain),
        "format": "org.matrix.custom.html",
        "formatted_body": formatted,
    }


class MatrixConnector:
    def __init__(self, settings) -> None:
        self._settings = settings
        self._allowed_rooms = _room_allowlist(getattr(settings, "matrix_rooms", []) or [])
        self._client: AsyncClient | None = None
        self._startup_ts = _ms_now()

    @property
    def user_id(self) -> str | None:
        return self._client.user_id if self._client is not None else None

    async def connect(self) -> bool:
        """Log in (or reuse the saved session), sync once and join allowlisted rooms."""
        client = await self.open_client()
        if client is None:
            logger.error("Matrix client creation failed.")
            return False

        self._client = client
        self._startup_ts = _ms_now()
        logger.info("Matrix allowed_rooms=%s", self._allowed_rooms if self._allowed_rooms is not None else "ALL")

        logger.info("Matrix initial sync...")
        await client.sync(timeout=SYNC_TIMEOUT_MS, full_state=True)
        if await self._join_allowlisted_rooms():
            await client.sync(timeout=0, full_state=False)
        logger.info("Matrix initial sync done. Joined rooms: %d", len(client.rooms))
        return True

    async def open_client(self) -> AsyncClient | None:
        """
        Build an AsyncClient that is already authenticated.

        Returns None when Matrix is not configured, the data dir is unusable
        or the password login is refused.
        """
        s = self._settings
        homeserver = (getattr(s, "matrix_homeserver", "") or "").strip()
        user_id = (getattr(s, "matrix_user_id", "") or "").strip()
        password = (getattr(s, "matrix_password", "") or "").strip()
        store_dir = Path(s.matrix_store_path)

        if not homeserver or not user_id:
            logger.error("Matrix is not configured: set AUTOPOST_MATRIX_HOMESERVER and AUTOPOST_MATRIX_USER_ID")
            return None
        try:
            store_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.exception("Cannot create the Matrix store directory %s", store_dir)
            return None

        client = AsyncClient(
            homeserver,
            user_id,
            store_path=str(store_dir) if OLM_AVAILABLE else None,
            config=AsyncClientConfig(encryption_enabled=OLM_AVAILABLE, store_sync_tokens=True),
        )

        session_path = store_dir / SESSION_FILE
        session = MatrixSession.load(session_path)
        if session is not None and session.user_id == user_id:
            client.restore_login(
                user_id=session.user_id,
                device_id=session.device_id,
                access_token=session.access_token,
            )
            logger.info("Matrix session restored for %s (device %s)", session.user_id, session.device_id)
            return client
        if session is not None:
            logger.warning("Saved Matrix session belongs to %s, not %s; logging in again.", session.user_id, user_id)

        if not password:
            logger.error("No usable Matrix session and AUTOPOST_MATRIX_PASSWORD is empty.")
            await client.close()
            return None

        device_name = f"{getattr(s, 'app_name', 'autopost')} poster"
        resp = await client.login(password=password, device_name=device_name)
        if not isinstance(resp, LoginResponse):
            logger.error("Matrix login failed: %r", resp)
            await client.close()
            return None

        try:
            MatrixSession(resp.user_id, resp.device_id, resp.access_token).save(session_path)
            logger.info("Matrix session saved to %s", session_path)
        except OSError:
            # The token still works for this run; the next start logs in again.
            logger.exception("Failed to save Matrix session to %s", session_path)
        return client

    async def _join_allowlisted_rooms(self) -> int:
        client = self._client
        if client is None or self._allowed_rooms is None:
            return 0

        joined = 0
        for room_id in sorted(self._allowed_rooms - set(client.rooms)):
            resp = await client.join(room_id)
            if isinstance(resp, JoinResponse):
                logger.info("Joined allowlisted room %s", room_id)
                joined += 1
            else:
                logger.warning("Cannot join allowlisted room %s: %r", room_id, resp)
        return joined

    # ---- send capability ----

    async def resolve_destination(self, destination: str) -> str | None:
        client = self._client
        room_id = (destination or "").strip()
        if client is None or not room_id:
            return None
        if self._allowed_rooms is not None and room_id not in self._allowed_rooms:
            logger.info("Room %s is outside the allowlist.", room_id)
            return None
        if room_id not in client.rooms:
            return None
        return room_id

    async def send(self, handle: Any, payload: MessagePayload) -> None:
        client = self._client
        if client is None:
            raise SendError("Matrix client is not connected")

        try:
            resp = await asyncio.wait_for(
                client.room_send(
                    room_id=str(handle),
                    message_type="m.room.message",
                    content=build_content(payload),
                    ignore_unverified_devices=True,
                ),
                timeout=SEND_TIMEOUT_S,
            )
        except asyncio.TimeoutError as e:
            raise SendError(f"send to {handle} timed out") from e
        except exceptions.OlmUnverifiedDeviceError as e:
            raise SendError(f"send to {handle} blocked by an unverified device") from e

        if not isinstance(resp, RoomSendResponse):
            raise SendError(f"send to {handle} failed: {resp!r}")

    # ---- inbound ----

    async def run(self, state: AppState, stop_event: asyncio.Event) -> None:
        client = self._client
        if client is None:
            logger.error("Matrix connector not connected; not running.")
            return

        async def message_callback(room: MatrixRoom, event: RoomMessageText) -> None:
            # Ignore history delivered by the first sync.
            ts = getattr(event, "server_timestamp", None)
            if ts is not None and ts <= self._startup_ts:
                return

            if self._allowed_rooms is not None and room.room_id not in self._allowed_rooms:
                return

            body = (event.body or "").strip()
            if not body:
                return

            logger.debug("Matrix <%s> %s: %r", room.display_name, event.sender, body)

            reply = await handle_inbound(
                state,
                text=body,
                sender=event.sender,
                destination=room.room_id,
                self_id=client.user_id,
            )
            if not reply:
                return

            try:
                await self.send(room.room_id, MessagePayload(text=reply))
            except SendError:
                logger.exception("Failed to send command reply.")

        client.add_event_callback(message_callback, RoomMessageText)

        try:
            logger.info("Matrix sync loop started.")
            while not stop_event.is_set():
                await client.sync(timeout=SYNC_TIMEOUT_MS, full_state=False)
        except asyncio.CancelledError:
            logger.info("Matrix connector cancelled.")
            raise
        except Exception:
            logger.exception("Matrix connector crashed.")
        finally:
            stop_event.set()
            logger.info("Matrix sync loop stopped.")

    async def close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.close()
        except Exception:
            logger.debug("Matrix client close failed.", exc_info=True)
        self._client = None
