import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from linkbot import messages
from linkbot.links import LinkService
from linkbot.models import LinkRecord
from linkbot.telegram import TelegramBot
from linkbot.updates import CommandMessage, FileMessage, MalformedUpdateError, parse_update

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    IGNORED = "ignored"
    REJECTED = "rejected"
    HANDLED = "handled"
    LINK_ISSUED = "link_issued"


@dataclass(frozen=True)
class WebhookResult:
    outcome: Outcome
    chat_id: int | None = None
    reply: str | None = None
    link: str | None = None


class WebhookHandler:
    """Runs one inbound Telegram message through the bot flow.

    The handler never fails because of something the user sent: every path
    ends in a :class:`WebhookResult`, and any reply has already been handed
    to the bot by the time it returns.
    """

    def __init__(
        self,
        *,
        bot: TelegramBot,
        links: LinkService,
        channel_username: str,
        max_file_size_bytes: int,
    ):
        self.bot = bot
        self.links = links
        self.channel_username = channel_username
        self.max_file_size_bytes = max_file_size_bytes

    @property
    def _limit_mb(self) -> int:
        return self.max_file_size_bytes // (1024 * 1024)

    def handle(self, payload: Any) -> WebhookResult:
        try:
            message = parse_update(payload)
        except MalformedUpdateError as exc:
            logger.debug("ignoring update: %s", exc)
            return WebhookResult(Outcome.IGNORED)

        chat_id = message.chat_id
        user_id = message.user_id

        if not self.bot.is_member(user_id):
            text = messages.JOIN_CHANNEL.format(channel=self.channel_username)
            return self._reply(Outcome.REJECTED, chat_id, text)

        if isinstance(message, CommandMessage):
            if message.command == "/start":
                return self._reply(Outcome.HANDLED, chat_id, messages.WELCOME.format(limit_mb=self._limit_mb))
            if message.command.startswith("/links"):
                return self._reply(Outcome.HANDLED, chat_id, self.links.render_listing(user_id))

        if not isinstance(message, FileMessage):
            return self._reply(Outcome.REJECTED, chat_id, messages.INVALID_FILE)

        if message.file_size > self.max_file_size_bytes:
            text = messages.FILE_TOO_LARGE.format(limit_mb=self._limit_mb)
            return self._reply(Outcome.REJECTED, chat_id, text)

        issued = self.links.issue(
            user_id,
            LinkRecord(file_id=message.file_id, file_name=message.file_name, file_size=message.file_size),
        )
        link = self.links.url_for(user_id, issued.token)
        result = self._reply(Outcome.LINK_ISSUED, chat_id, messages.LINK_READY.format(link=link))
        return replace(result, link=link)

    def _reply(self, outcome: Outcome, chat_id: int, text: str) -> WebhookResult:
        # Delivery problems are logged by the bot; the flow carries on regardless.
        self.bot.send_message(chat_id, text)
        return WebhookResult(outcome, chat_id=chat_id, reply=text)
