import asyncio
import logging
import sys
import os
from typing import Any, Callable, Dict, Optional, Set

# Add current directory to path so we can import backend modules
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from config import CONFIG
from economy import UnknownUpgradeError
from notifications import CollectingNotifier
from persistence import RecordStore, create_store
from session import GameSession

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Clicker Progression Server", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- Command Models ----------

class ClickCommand(BaseModel):
    x: float = Field(0.0, description="Click x offset inside the target")
    y: float = Field(0.0, description="Click y offset inside the target")

class BuyUpgradeCommand(BaseModel):
    key: str


class SessionManager:
    def __init__(self, store_factory: Callable[[], RecordStore] = create_store):
        self.store_factory = store_factory
        self.session: Optional[GameSession] = None
        self.notifier = CollectingNotifier()
        self.active_websocket: Optional[WebSocket] = None
        self.render_task: Optional[asyncio.Task] = None

    async def initialize(self):
        # Re-initializing must not leave the previous session's timers running
        self.shutdown()
        self.notifier = CollectingNotifier()
        self.session = GameSession(self.store_factory(), notifier=self.notifier, config=CONFIG)
        await self.session.start()
        logger.info("Game session initialized")

    def shutdown(self):
        if self.render_task is not None:
            self.render_task.cancel()
            self.render_task = None
        if self.session is not None:
            self.session.stop()
            self.session = None
        self.active_websocket = None

    def snapshot(self, message_type: str) -> Dict[str, Any]:
        session = self.session
        return {
            "type": message_type,
            "state": session.state.to_dict(),
            "shop": session.machine.shop(),
            "saveId": session.synchronizer.record_id,
            "lastSaved": session.synchronizer.last_saved,
        }

    async def flush_notifications(self):
        for message in self.notifier.drain():
            await self.active_websocket.send_json({"type": "ACHIEVEMENT", **message})

    async def run_loop(self):
        logger.info("Starting render loop")
        try:
            while self.active_websocket and self.session:
                await asyncio.sleep(CONFIG.timing.render_interval)
                await self.flush_notifications()
                await self.active_websocket.send_json(self.snapshot("TICK"))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Render loop error: {e}")

    async def handle(self, data: Dict[str, Any]):
        if not isinstance(data, dict):
            await self.active_websocket.send_json({"type": "ERROR", "error": "Expected a JSON object"})
            return
        command = data.get("command")
        session = self.session

        if command == "CLICK":
            click = ClickCommand.model_validate(data)
            session.click(click.x, click.y)
        elif command == "BUY_UPGRADE":
            purchase = BuyUpgradeCommand.model_validate(data)
            session.buy_upgrade(purchase.key)
        elif command == "BUY_PRODUCER":
            session.buy_producer()
        elif command != "STATE":
            await self.active_websocket.send_json({"type": "ERROR", "error": f"Unknown command {command!r}"})
            return

        await self.flush_notifications()
        await self.active_websocket.send_json(self.snapshot("STATE"))


# Record store factory for new connections
store_factory: Callable[[], RecordStore] = create_store

# One manager per open websocket
connections: Set[SessionManager] = set()

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    manager = SessionManager(store_factory)
    connections.add(manager)
    logger.info(f"WebSocket connected ({len(connections)} open)")

    try:
        await manager.initialize()
        manager.active_websocket = websocket
        await websocket.send_json(manager.snapshot("STATE"))
        manager.render_task = asyncio.create_task(manager.run_loop())

        while True:
            data = await websocket.receive_json()
            try:
                await manager.handle(data)
            except ValidationError as e:
                await websocket.send_json({"type": "ERROR", "error": str(e)})
            except UnknownUpgradeError as e:
                await websocket.send_json({"type": "ERROR", "error": f"Unknown upgrade {e.args[0]!r}"})

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    finally:
        manager.shutdown()
        connections.discard(manager)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
