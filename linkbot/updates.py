"""Turn raw webhook payloads into one of a small set of message kinds.

Telegram updates are deeply nested and almost every field is optional. The
bot only cares about a handful of shapes, so :func:`parse_update` collapses
an update into a :class:`FileMessage`, :class:`CommandMessage` or
:class:`TextMessage`, or raises :class:`MalformedUpdateError` when the
update carries no usable message at all (edited messages, channel posts,
callback queries and so on).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import ValidationError

from linkbot.models import TelegramFile, TelegramMessage, TelegramUpdate


class MessageKind(str, Enum):
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    PHOTO = "photo"
    COMMAND = "command"
    TEXT = "text"


DEFAULT_FILE_NAMES = {
    MessageKind.DOCUMENT: "file",
    MessageKind.VIDEO: "video.mp4",
    MessageKind.AUDIO: "audio.mp3",
    MessageKind.PHOTO: "photo.jpg",
}


class MalformedUpdateError(ValueError):
    """The update has no message with both a chat id and a sender id."""


@dataclass(frozen=True)
class FileMessage:
    chat_id: int
    user_id: int
    kind: MessageKind
    file_id: str
    file_name: str
    file_size: int


@dataclass(frozen=True)
class CommandMessage:
    chat_id: int
    user_id: int
    command: str
    args: str = ""
    kind: MessageKind = MessageKind.COMMAND


@dataclass(frozen=True)
class TextMessage:
    """Anything that is neither a command nor a supported attachment."""

    chat_id: int
    user_id: int
    text: str = ""
    kind: MessageKind = MessageKind.TEXT


InboundMessage = Union[FileMessage, CommandMessage, TextMessage]


def parse_update(payload: Any) -> InboundMessage:
    try:
        update = TelegramUpdate.model_validate(payload)
    except ValidationError as exc:
        raise MalformedUpdateError("update has no message with chat and sender") from exc

    chat_id = update.message.chat.id
    user_id = update.message.from_user.id

    try:
        message = TelegramMessage.model_validate(payload["message"])
    except ValidationError:
        # Addressable, but the attachment fields are not what Telegram documents.
        return TextMessage(chat_id=chat_id, user_id=user_id)

    text = (message.text or "").strip()
    if text.startswith("/"):
        head, _, args = text.partition(" ")
        # "/start@SomeBot" is how commands arrive in group chats.
        command = head.split("@", 1)[0]
        return CommandMessage(chat_id=chat_id, user_id=user_id, command=command, args=args.strip())

    attachment = _pick_attachment(message)
    if attachment is None:
        return TextMessage(chat_id=chat_id, user_id=user_id, text=text)

    kind, file = attachment
    return FileMessage(
        chat_id=chat_id,
        user_id=user_id,
        kind=kind,
        file_id=file.file_id,
        file_name=file.file_name or DEFAULT_FILE_NAMES[kind],
        file_size=file.file_size or 0,
    )


def _pick_attachment(message: TelegramMessage) -> tuple[MessageKind, TelegramFile] | None:
    candidates = [
        (MessageKind.DOCUMENT, message.document),
        (MessageKind.VIDEO, message.video),
        (MessageKind.AUDIO, message.audio),
        # Telegram sends photo sizes smallest first.
        (MessageKind.PHOTO, message.photo[-1] if message.photo else None),
    ]
    for kind, file in candidates:
        if file is not None and file.file_id:
            return kind, file
    return None
