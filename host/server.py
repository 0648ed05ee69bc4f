from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

import websockets
from websockets.asyncio.server import ServerConnection, serve

from davinci.errors import GameError, InvariantError
from davinci.game import GameSession
from davinci.models import GameConfig, MatchState

LOGGER = logging.getLogger("davinci_host")

# HostServer glues the game session to WebSocket clients. Every network concern
# lives here; the GameSession stays pure. All mutations run under one lock, so
# each intent is applied in full before the next one is looked at.


@dataclass
class ClientSession:
    seat: int
    name: str
    websocket: ServerConnection


class HostServer:
    def __init__(self, config: GameConfig, session: Optional[GameSession] = None) -> None:
        self.config = config
        self.session = session or GameSession(config)
        self.sessions: Dict[int, ClientSession] = {}
        self.spectators: Set[ServerConnection] = set()
        self.lock = asyncio.Lock()
        self._handlers: Dict[str, Callable[[ClientSession, Dict[str, object]], Awaitable[None]]] = {
            "ready": self._handle_ready,
            "rename": self._handle_rename,
            "start": self._handle_start,
            "select_initial": self._handle_select_initial,
            "draw": self._handle_draw,
            "place": self._handle_place,
            "guess": self._handle_guess,
            "end_turn": self._handle_end_turn,
            "new_game": self._handle_new_game,
            "highlight": self._handle_highlight,
        }

    async def start(self, host: str = "0.0.0.0", port: int = 3000) -> None:
        async with serve(self._handle_connection, host, port, process_request=self._process_request):
            LOGGER.info("Da Vinci Code host listening on %s:%s", host, port)
            await asyncio.Future()

    def _process_request(self, connection: ServerConnection, request: Any) -> Any:
        """Answer plain HTTP health checks; let WebSocket upgrades through."""
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return None
        if request.path in {"/health", "/healthz"}:
            return connection.respond(HTTPStatus.OK, "ok\n")
        return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        # First message must be "hello" so we know who we are talking to.
        hello = await self._read_message(websocket)
        if hello is None or hello.get("type") != "hello":
            await self._send_error(websocket, code="BAD_HELLO", msg="Expected hello")
            await websocket.close()
            return
        role_raw = hello.get("role") or "player"
        role = role_raw.strip().casefold() if isinstance(role_raw, str) else "player"
        if role == "spectator":
            await self._handle_spectator_session(websocket)
            return

        name_raw = hello.get("name")
        client: Optional[ClientSession] = None
        try:
            async with self.lock:
                try:
                    seat = self.session.join(name_raw if isinstance(name_raw, str) else "")
                except GameError as exc:
                    await self._send_error(websocket, code=exc.code, msg=exc.msg)
                    await websocket.close()
                    return
                # Seat and connection are registered in one step.
                client = ClientSession(seat=seat.seat, name=seat.name, websocket=websocket)
                self.sessions[seat.seat] = client
            LOGGER.info("Seat %s claimed by %s", seat.seat, seat.name)

            await self._send_json(websocket, "welcome", {
                "seat": seat.seat,
                "config": {
                    "strict_placement": self.config.strict_placement,
                    "allow_joker_guess": self.config.allow_joker_guess,
                },
            })
            await self._publish_lobby()
            async with self.lock:
                state = self.session.masked_state(seat.seat)
            await self._send_json(websocket, "state", state)

            async for raw in websocket:
                message = self._decode(raw)
                await self._dispatch(client, message)
        except websockets.ConnectionClosed:
            pass
        finally:
            if client is not None:
                await self._handle_disconnect(client)

    async def _handle_disconnect(self, client: ClientSession) -> None:
        async with self.lock:
            was_in_match = self.session.state != MatchState.LOBBY
            if self.sessions.get(client.seat) is client:
                self.sessions.pop(client.seat, None)
                self.session.leave(client.seat)
            events = self.session.consume_events()
        LOGGER.info("Seat %s (%s) disconnected", client.seat, client.name)
        if was_in_match:
            await self._broadcast_events(events)
            await self._broadcast("reset", {"reason": "player_left", "seat": client.seat})
        await self._publish_lobby()

    async def _handle_spectator_session(self, websocket: ServerConnection) -> None:
        LOGGER.info("Spectator connected")
        async with self.lock:
            self.spectators.add(websocket)
            lobby_payload = self.session.lobby_state()
            state_payload = self.session.masked_state(None)
        await self._send_json(websocket, "lobby", lobby_payload)
        await self._send_json(websocket, "state", state_payload)
        try:
            async for raw in websocket:
                if not self._decode(raw):
                    continue
                LOGGER.warning("Spectator sent a message; closing connection")
                await websocket.close(code=4403, reason="Spectators are read-only")
                break
        except websockets.ConnectionClosed:
            pass
        finally:
            async with self.lock:
                self.spectators.discard(websocket)
            LOGGER.info("Spectator disconnected")

    async def _dispatch(self, client: ClientSession, message: Dict[str, object]) -> None:
        handler = self._handlers.get(message.get("type"))  # type: ignore[arg-type]
        if handler is None:
            await self._send_error(client.websocket, code="UNKNOWN_TYPE", msg="Unsupported message type")
            return
        await handler(client, message)

    async def _apply(self, client: ClientSession, op: Callable[..., Any], *args: Any) -> Tuple[bool, Any]:
        """Run one engine operation under the lock and broadcast what it changed."""
        async with self.lock:
            try:
                result = op(*args)
            except InvariantError as exc:
                LOGGER.exception("Engine invariant broken seat=%s op=%s", client.seat, op.__name__)
                await self._send_error(client.websocket, code=exc.code, msg=exc.msg)
                return False, None
            except GameError as exc:
                LOGGER.warning(
                    "Rejected %s seat=%s args=%s reason=%s",
                    op.__name__,
                    client.seat,
                    args,
                    exc,
                )
                await self._send_error(client.websocket, code=exc.code, msg=exc.msg)
                return False, None
            events = self.session.consume_events()

        await self._broadcast_events(events)
        await self._publish_state()
        return True, result

    # Intent handlers -------------------------------------------------

    async def _handle_ready(self, client: ClientSession, message: Dict[str, object]) -> None:
        ready = message.get("ready", True)
        if not isinstance(ready, bool):
            await self._send_error(client.websocket, code="BAD_SCHEMA", msg="ready must be a boolean")
            return
        ok, _ = await self._apply(client, self.session.set_ready, client.seat, ready)
        if ok:
            await self._publish_lobby()

    async def _handle_rename(self, client: ClientSession, message: Dict[str, object]) -> None:
        name = message.get("name")
        if not isinstance(name, str):
            await self._send_error(client.websocket, code="BAD_SCHEMA", msg="name required")
            return
        ok, seat = await self._apply(client, self.session.rename, client.seat, name)
        if ok:
            client.name = seat.name
            await self._publish_lobby()

    async def _handle_start(self, client: ClientSession, message: Dict[str, object]) -> None:
        ok, starting = await self._apply(client, self.session.initialize_game)
        if ok:
            await self._broadcast("game_started", {"starting_player": starting})
            await self._publish_lobby()

    async def _handle_select_initial(self, client: ClientSession, message: Dict[str, object]) -> None:
        slots = message.get("slots")
        if not isinstance(slots, list):
            await self._send_error(client.websocket, code="BAD_SCHEMA", msg="slots must be a list")
            return
        ok, dealt = await self._apply(client, self.session.select_initial_cards, client.seat, slots)
        if ok and dealt:
            await self._broadcast("game_playing", {})

    async def _handle_draw(self, client: ClientSession, message: Dict[str, object]) -> None:
        index = message.get("index")
        if not isinstance(index, int):
            await self._send_error(client.websocket, code="BAD_SCHEMA", msg="index required")
            return
        ok, card = await self._apply(client, self.session.draw_card, client.seat, index)
        if ok:
            await self._send_json(client.websocket, "drawn", {"pile_index": index, "card": card.to_dict()})

    async def _handle_place(self, client: ClientSession, message: Dict[str, object]) -> None:
        position = message.get("position")
        if position is not None and not isinstance(position, int):
            await self._send_error(client.websocket, code="BAD_SCHEMA", msg="position must be an integer")
            return
        await self._apply(client, self.session.place_card, client.seat, position)

    async def _handle_guess(self, client: ClientSession, message: Dict[str, object]) -> None:
        index = message.get("index")
        if not isinstance(index, int) or "value" not in message:
            await self._send_error(client.websocket, code="BAD_SCHEMA", msg="index and value required")
            return
        ok, result = await self._apply(client, self.session.guess_card, client.seat, index, message["value"])
        if not ok:
            return
        await self._broadcast("guess_result", {"seat": client.seat, **result.to_dict()})
        if result.game_over:
            seat = self.session.seats[result.winner]
            await self._broadcast("game_over", {"winner": result.winner, "name": seat.name if seat else None})

    async def _handle_end_turn(self, client: ClientSession, message: Dict[str, object]) -> None:
        await self._apply(client, self.session.end_turn, client.seat)

    async def _handle_new_game(self, client: ClientSession, message: Dict[str, object]) -> None:
        ok, _ = await self._apply(client, self.session.reset_game)
        if ok:
            await self._broadcast("reset", {"reason": "new_game", "seat": client.seat})
            await self._publish_lobby()

    async def _handle_highlight(self, client: ClientSession, message: Dict[str, object]) -> None:
        # Pure relay: shows the opponent which of their cards is being considered.
        index = message.get("index")
        if not isinstance(index, int):
            await self._send_error(client.websocket, code="BAD_SCHEMA", msg="index required")
            return
        targets = [s.websocket for seat, s in self.sessions.items() if seat != client.seat]
        message_out = self._envelope("highlight", {"seat": client.seat, "index": index})
        await asyncio.gather(*(socket.send(message_out) for socket in targets), return_exceptions=True)

    # Broadcast helpers -----------------------------------------------

    async def _publish_lobby(self) -> None:
        async with self.lock:
            lobby_state = self.session.lobby_state()
        await self._broadcast("lobby", lobby_state, include_spectators=True)

    async def _publish_state(self) -> None:
        async with self.lock:
            per_seat = [(s.websocket, self.session.masked_state(seat)) for seat, s in self.sessions.items()]
            public = self.session.masked_state(None)
            spectators = list(self.spectators)
        sends = [self._send_json(socket, "state", payload) for socket, payload in per_seat]
        sends.extend(self._send_json(socket, "state", public) for socket in spectators)
        await asyncio.gather(*sends, return_exceptions=True)

    async def _broadcast(
        self,
        msg_type: str,
        payload: Dict[str, object],
        include_spectators: bool = False,
    ) -> None:
        async with self.lock:
            targets = [session.websocket for session in self.sessions.values()]
            if include_spectators:
                targets.extend(self.spectators)
        if not targets:
            return
        message = self._envelope(msg_type, payload)
        await asyncio.gather(*(socket.send(message) for socket in targets), return_exceptions=True)

    async def _broadcast_events(self, events: List[Dict[str, object]]) -> None:
        for event in events:
            await self._broadcast("event", event, include_spectators=True)

    async def _send_json(self, websocket: ServerConnection, msg_type: str, payload: Dict[str, object]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(self, websocket: ServerConnection, code: str, msg: str) -> None:
        await self._send_json(websocket, "error", {"code": code, "msg": msg})

    def _envelope(self, msg_type: str, payload: Dict[str, object]) -> str:
        body = {"type": msg_type, "v": 1, "ts": datetime.now(timezone.utc).isoformat()}
        body.update(payload)
        return json.dumps(body)

    async def _read_message(self, websocket: ServerConnection) -> Optional[Dict[str, object]]:
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=5)
        except (asyncio.TimeoutError, websockets.ConnectionClosed):
            return None
        return self._decode(raw)

    def _decode(self, raw: Any) -> Dict[str, object]:
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return {}
        return message if isinstance(message, dict) else {}
