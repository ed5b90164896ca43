"""API controller exposing the widget core to a presentation layer.

The routes are deliberately thin: they call into the app's
:class:`ChatWidget` and translate its results into response models.
Rejections raised by the core (empty input, request in flight, nothing
to export) reach the registered ``ChatError`` handler unchanged.
"""

from fastapi import APIRouter, Depends, Request, status
from loguru import logger

from ..models.chat_message import ChatMessage
from ..models.chat_request import SendMessageRequest
from ..models.chat_response import ClearResult, HistoryView, SendResult
from ..models.conversation import ConversationExport, SessionStats
from ..services.widget_service import ChatWidget

router = APIRouter(prefix="/widget", tags=["Widget"])


def get_widget(request: Request) -> ChatWidget:
    """Return the widget owned by the running application."""
    return request.app.state.widget


def _result(widget: ChatWidget, reply: ChatMessage | None) -> SendResult:
    controller = widget.controller
    error = controller.last_error if reply is None else None
    return SendResult(
        session_id=widget.session_id,
        state=controller.last_outcome or controller.state,
        reply=reply,
        error=str(error) if error else None,
        error_type=error.error_type if error else None,
        retry_available=controller.retry_available,
    )


@router.get("/messages", response_model=HistoryView)
async def list_messages_endpoint(widget: ChatWidget = Depends(get_widget)) -> HistoryView:
    """Return the visible conversation for rendering."""
    return HistoryView(
        session_id=widget.session_id,
        state=widget.controller.state,
        messages=list(widget.visible()),
    )


@router.post("/messages", response_model=SendResult)
async def send_message_endpoint(
    request: SendMessageRequest,
    widget: ChatWidget = Depends(get_widget),
) -> SendResult:
    """Submit user text and wait for the reply or the failure."""
    logger.info("Received message for session {}", widget.session_id)
    reply = await widget.send(request.text)
    return _result(widget, reply)


@router.post("/retry", response_model=SendResult)
async def retry_endpoint(widget: ChatWidget = Depends(get_widget)) -> SendResult:
    """Replay the last failed request."""
    reply = await widget.retry()
    return _result(widget, reply)


@router.delete("/messages", response_model=ClearResult)
async def clear_messages_endpoint(widget: ChatWidget = Depends(get_widget)) -> ClearResult:
    """Discard the conversation and start a new session."""
    return ClearResult(session_id=widget.clear())


@router.get("/export", response_model=ConversationExport, response_model_by_alias=True)
async def export_endpoint(widget: ChatWidget = Depends(get_widget)) -> ConversationExport:
    return widget.export()


@router.get("/stats", response_model=SessionStats, status_code=status.HTTP_200_OK)
async def stats_endpoint(widget: ChatWidget = Depends(get_widget)) -> SessionStats:
    return widget.stats()
