import logging

import httpx

logger = logging.getLogger(__name__)

MEMBER_STATUSES = frozenset({"member", "creator", "administrator"})


class TelegramBot:
    """Thin Bot API client covering the four calls the service makes.

    Every call is a single bounded request. Failures of the membership check
    and of file resolution degrade to ``False``/``None``; failed replies are
    logged and otherwise ignored.
    """

    def __init__(
        self,
        *,
        token: str,
        channel_id: int,
        api_base: str = "https://api.telegram.org",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.channel_id = channel_id
        self._api_base = api_base.rstrip("/")
        self._token = token
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def _method_url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._token}/{method}"

    def _call(self, method: str, *, params: dict | None = None, payload: dict | None = None) -> dict:
        if payload is not None:
            response = self._client.post(self._method_url(method), json=payload)
        else:
            response = self._client.get(self._method_url(method), params=params)
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"{method}: unexpected response body")
        return data

    def is_member(self, user_id: int) -> bool:
        try:
            data = self._call("getChatMember", params={"chat_id": self.channel_id, "user_id": user_id})
            return bool(data.get("ok")) and data["result"]["status"] in MEMBER_STATUSES
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("membership check failed for user %s: %s", user_id, exc)
            return False

    def send_message(self, chat_id: int, text: str) -> None:
        try:
            data = self._call(
                "sendMessage",
                payload={"chat_id": chat_id, "text": text, "parse_mode": "Markdown"},
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("sendMessage to chat %s failed: %s", chat_id, exc)
            return
        if not data.get("ok"):
            logger.warning("sendMessage to chat %s rejected: %s", chat_id, data.get("description"))

    def get_file_url(self, file_id: str) -> str | None:
        try:
            data = self._call("getFile", params={"file_id": file_id})
            if not data.get("ok"):
                logger.info("getFile refused %s: %s", file_id, data.get("description"))
                return None
            file_path = data["result"]["file_path"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("getFile failed for %s: %s", file_id, exc)
            return None
        if not file_path:
            return None
        return f"{self._api_base}/file/bot{self._token}/{file_path}"

    def open_download(self, url: str) -> httpx.Response:
        """Start a streamed GET; the caller must close the response."""
        request = self._client.build_request("GET", url)
        return self._client.send(request, stream=True)
