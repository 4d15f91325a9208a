"""WebSocket temps reel pour suivi chauffeurs et SOS / Real-time WebSocket for driver tracking and SOS."""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


class TrackingConnectionManager:
    """Gestionnaire de connexions WebSocket / WebSocket connection manager."""

    def __init__(self):
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: dict):
        """Envoyer a tous les clients connectes / Broadcast to all connected clients."""
        data = json.dumps(message, ensure_ascii=False, default=str)
        disconnected = []
        for connection in self.active_connections:
            try:
                await connection.send_text(data)
            except (WebSocketDisconnect, RuntimeError):
                disconnected.append(connection)
        for conn in disconnected:
            self.disconnect(conn)
        if disconnected:
            logger.info("Dropped %d stale WebSocket connections", len(disconnected))


# Singleton global / Global singleton
manager = TrackingConnectionManager()


@router.websocket("/ws/tracking")
async def websocket_tracking(websocket: WebSocket):
    """Connexion observateur / Observer connection.

    Types de messages : gps_update, sos_alert, sos_resolved
    """
    await manager.connect(websocket)
    try:
        while True:
            # Garder la connexion ouverte, recevoir pings / Keep connection alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)
