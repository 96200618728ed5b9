from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from typing import Any, Dict, List
import logging

from invoicer.core.auth import current_user, session_token, sessions
from invoicer.core.keymap import UiCommand, build_default_dispatcher, shortcut_help
from invoicer.core.shortcuts import KeyEvent, KeyEventSource

router = APIRouter(tags=["shortcuts"])
ws_router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/shortcuts")
async def list_shortcuts(user_id: str = Depends(current_user)) -> List[Dict[str, Any]]:
    return shortcut_help()

@ws_router.websocket("/ws/shortcuts")
async def shortcuts_websocket(websocket: WebSocket):
    """
    Key-down stream for one browser tab.

    The page sends each key-down as JSON (``key``, ``ctrlKey``, ``metaKey``,
    ``altKey``, ``shiftKey``, ``targetTag``, ``isContentEditable``). Every event
    is answered with the UI commands its shortcut emitted, if any, followed by
    ``{"type": "ack", "default_prevented": bool}``.

    The dispatcher lives exactly as long as the connection.
    """
    user_id = sessions.resolve(session_token(websocket.cookies, websocket.headers))
    if not user_id:
        await websocket.close(code=4401)
        return

    await websocket.accept()
    source = KeyEventSource()
    outbox: List[UiCommand] = []
    dispatcher = build_default_dispatcher(outbox.append)
    logger.info(f"Shortcut session opened for {user_id}")

    try:
        with dispatcher.attached(source):
            while True:
                data = await websocket.receive_text()
                try:
                    # Malformed JSON is reported as a ValidationError too
                    event = KeyEvent.model_validate_json(data)
                except ValidationError:
                    await websocket.send_json({"type": "error", "detail": "Invalid key event"})
                    continue

                source.dispatch(event)
                commands = list(outbox)
                outbox.clear()
                for command in commands:
                    await websocket.send_json(command)
                await websocket.send_json({"type": "ack", "default_prevented": event.default_prevented})
    except WebSocketDisconnect:
        logger.info(f"Shortcut session closed for {user_id}")
