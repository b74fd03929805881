import json

import httpx
import pytest

BOT_TOKEN = "123:test-token"


class ChunkedStream(httpx.SyncByteStream):
    """Body served a few bytes at a time, like a real file host."""

    def __init__(self, content: bytes, chunk_size: int = 4):
        self.content = content
        self.chunk_size = chunk_size

    def __iter__(self):
        for start in range(0, len(self.content), self.chunk_size):
            yield self.content[start:start + self.chunk_size]


class FakeTelegram:
    """In-process stand-in for the Bot API and its file host."""

    def __init__(self, token: str = BOT_TOKEN):
        self.token = token
        self.members: dict[int, str] = {}
        self.files: dict[str, tuple[str, bytes]] = {}
        self.sent: list[dict] = []
        self.broken_methods: set[str] = set()
        self.download_status = 200
        self.download_headers: dict[str, str] = {}
        self.download_unreachable = False

    def add_member(self, user_id: int, status: str = "member") -> None:
        self.members[user_id] = status

    def add_file(self, file_id: str, content: bytes, file_path: str | None = None) -> None:
        self.files[file_id] = (file_path or f"documents/{file_id}.bin", content)

    def texts_for(self, chat_id: int) -> list[str]:
        return [m["text"] for m in self.sent if m["chat_id"] == chat_id]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        file_prefix = f"/file/bot{self.token}/"
        if path.startswith(file_prefix):
            return self._download(request, path[len(file_prefix):])

        method = path.rsplit("/", 1)[-1]
        if method in self.broken_methods:
            return httpx.Response(500, text="upstream exploded")
        if method == "getChatMember":
            status = self.members.get(int(request.url.params["user_id"]), "left")
            return httpx.Response(200, json={"ok": True, "result": {"status": status}})
        if method == "sendMessage":
            self.sent.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True, "result": {"message_id": len(self.sent)}})
        if method == "getFile":
            file_id = request.url.params["file_id"]
            if file_id not in self.files:
                return httpx.Response(400, json={"ok": False, "description": "Bad Request: invalid file_id"})
            file_path = self.files[file_id][0]
            return httpx.Response(200, json={"ok": True, "result": {"file_id": file_id, "file_path": file_path}})
        return httpx.Response(404, json={"ok": False, "description": "Not Found"})

    def _download(self, request: httpx.Request, file_path: str) -> httpx.Response:
        if self.download_unreachable:
            raise httpx.ConnectError("file host unreachable", request=request)
        for stored_path, content in self.files.values():
            if stored_path == file_path:
                headers = {"content-type": "application/pdf", "x-upstream": "telegram", **self.download_headers}
                return httpx.Response(self.download_status, headers=headers, stream=ChunkedStream(content))
        return httpx.Response(404, stream=ChunkedStream(b"not found"))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def telegram() -> FakeTelegram:
    return FakeTelegram()
