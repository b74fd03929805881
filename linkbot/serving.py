import logging
from collections.abc import Iterator
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from linkbot.links import LinkService
from linkbot.telegram import TelegramBot

logger = logging.getLogger(__name__)

# Headers that describe the upstream connection rather than the body.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


class LinkError(Exception):
    """Base class for failures while redeeming a link."""


class MissingLinkParamsError(LinkError):
    pass


class LinkNotFoundError(LinkError):
    pass


class ResolutionFailedError(LinkError):
    pass


class UpstreamUnavailableError(LinkError):
    pass


# Characters JavaScript's encodeURIComponent leaves alone, besides alphanumerics and "-_.".
URI_COMPONENT_SAFE = "!~*'()"


def content_disposition(file_name: str) -> str:
    return f'attachment; filename="{quote(file_name, safe=URI_COMPONENT_SAFE)}"'


@dataclass
class ServedFile:
    status_code: int
    headers: dict[str, str]
    upstream: httpx.Response

    def iter_bytes(self) -> Iterator[bytes]:
        try:
            yield from self.upstream.iter_raw()
        finally:
            self.upstream.close()

    def close(self) -> None:
        self.upstream.close()


class FileServer:
    def __init__(self, *, bot: TelegramBot, links: LinkService):
        self.bot = bot
        self.links = links

    def open(self, user_id: str | None, token: str | None) -> ServedFile:
        if not user_id or not token:
            raise MissingLinkParamsError("Missing user ID or token.")

        record = self.links.lookup(user_id, token)
        if record is None:
            raise LinkNotFoundError("This link is invalid or has expired.")

        file_url = self.bot.get_file_url(record.file_id)
        if not file_url:
            self.links.revoke(user_id, token)
            logger.info("removed stale link for user %s (%s)", user_id, record.file_name)
            raise ResolutionFailedError("Could not retrieve file from Telegram. The link may have expired.")

        try:
            upstream = self.bot.open_download(file_url)
        except httpx.HTTPError as exc:
            logger.warning("download of %s failed: %s", record.file_id, exc)
            raise UpstreamUnavailableError("Could not retrieve file from Telegram.") from exc

        headers = {
            name: value
            for name, value in upstream.headers.items()
            if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() != "content-disposition"
        }
        headers["content-disposition"] = content_disposition(record.file_name)
        return ServedFile(status_code=upstream.status_code, headers=headers, upstream=upstream)
