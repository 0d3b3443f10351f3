import logging
from datetime import datetime
from typing import Any, Dict, List

from fastapi import WebSocket

log = logging.getLogger(__name__)

EVENT_CONNECTED = "connected"
EVENT_PONG = "pong"
EVENT_MATCH_FINISHED = "match_finished"
EVENT_BETS_SETTLED = "bets_settled"


class TournamentFeed:
    """Live events per tournament: result recorded, bets settled, bracket advanced."""

    def __init__(self) -> None:
        self._subs: Dict[int, List[WebSocket]] = {}

    async def subscribe(self, tournament_id: int, ws: WebSocket) -> None:
        await ws.accept()
        self._subs.setdefault(tournament_id, []).append(ws)
        await self.send(ws, tournament_id, EVENT_CONNECTED, {"listeners": self.listeners(tournament_id)})

    def unsubscribe(self, tournament_id: int, ws: WebSocket) -> None:
        subs = [c for c in self._subs.get(tournament_id, []) if c is not ws]
        if subs:
            self._subs[tournament_id] = subs
        else:
            self._subs.pop(tournament_id, None)

    def listeners(self, tournament_id: int) -> int:
        return len(self._subs.get(tournament_id, []))

    @staticmethod
    def message(tournament_id: int, event: str, payload: Any) -> dict:
        return {
            "event": event,
            "tournament_id": tournament_id,
            "payload": payload,
            "ts": datetime.utcnow().isoformat(),
        }

    async def send(self, ws: WebSocket, tournament_id: int, event: str, payload: Any) -> None:
        await ws.send_json(self.message(tournament_id, event, payload))

    async def publish(self, tournament_id: int, event: str, payload: Any) -> int:
        """Send to every subscriber of the tournament; returns how many got it."""
        msg = self.message(tournament_id, event, payload)
        delivered = 0
        for ws in list(self._subs.get(tournament_id, [])):
            try:
                await ws.send_json(msg)
                delivered += 1
            except Exception:
                log.debug("dropping websocket for tournament %s", tournament_id)
                self.unsubscribe(tournament_id, ws)

        log.debug("%s for tournament %s delivered to %d listeners", event, tournament_id, delivered)
        return delivered


feed = TournamentFeed()
