import logging
from dataclasses import dataclass
from uuid import uuid4

from pydantic import ValidationError

from linkbot import messages
from linkbot.models import LinkRecord
from linkbot.repository import LinkRepository

logger = logging.getLogger(__name__)

KEY_PREFIX = "user"


def user_prefix(user_id) -> str:
    return f"{KEY_PREFIX}:{user_id}:"


def link_key(user_id, token: str) -> str:
    return f"{user_prefix(user_id)}{token}"


def new_token() -> str:
    return str(uuid4())


def build_link(base_url: str, user_id, token: str) -> str:
    return f"{base_url.rstrip('/')}/file/{user_id}/{token}"


@dataclass(frozen=True)
class IssuedLink:
    user_id: int
    token: str
    record: LinkRecord


class LinkService:
    """Issues, looks up and enumerates link records in the store."""

    def __init__(self, repository: LinkRepository, base_url: str):
        self.repository = repository
        self.base_url = base_url

    def url_for(self, user_id, token: str) -> str:
        return build_link(self.base_url, user_id, token)

    def issue(self, user_id: int, record: LinkRecord) -> IssuedLink:
        token = new_token()
        self.repository.put(link_key(user_id, token), record.to_json())
        logger.info("issued link for user %s (%s, %d bytes)", user_id, record.file_name, record.file_size)
        return IssuedLink(user_id=user_id, token=token, record=record)

    def lookup(self, user_id, token: str) -> LinkRecord | None:
        raw = self.repository.get(link_key(user_id, token))
        if raw is None:
            return None
        try:
            return LinkRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("unreadable link record for user %s", user_id)
            return None

    def revoke(self, user_id, token: str) -> None:
        self.repository.delete(link_key(user_id, token))

    def list_for_user(self, user_id) -> list[IssuedLink]:
        prefix = user_prefix(user_id)
        links = []
        for key, raw in self.repository.list_by_prefix(prefix, with_values=True):
            try:
                record = LinkRecord.model_validate_json(raw)
            except ValidationError:
                continue
            links.append(IssuedLink(user_id=user_id, token=key[len(prefix):], record=record))
        return links

    def render_listing(self, user_id) -> str:
        links = self.list_for_user(user_id)
        if not links:
            return messages.NO_LINKS
        text = messages.LINKS_HEADER
        for link in links:
            text += messages.LINK_LINE.format(
                name=link.record.file_name,
                size_mb=link.record.file_size / 1024 / 1024,
                link=self.url_for(user_id, link.token),
            )
        return text
