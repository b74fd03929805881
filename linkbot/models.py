from pydantic import BaseModel, ConfigDict, Field


class LinkRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(alias="fileId", min_length=1)
    file_name: str = Field(alias="fileName", min_length=1)
    file_size: int = Field(alias="fileSize", default=0, ge=0)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# Inbound Telegram payloads. Only the fields the bot reads are declared;
# everything else in an update is ignored.


class TelegramChat(BaseModel):
    id: int


class TelegramUser(BaseModel):
    id: int


class TelegramFile(BaseModel):
    file_id: str | None = None
    file_name: str | None = None
    file_size: int | None = None


class TelegramMessageRef(BaseModel):
    """The part of a message every update must carry to be answered."""

    model_config = ConfigDict(populate_by_name=True)

    chat: TelegramChat
    from_user: TelegramUser = Field(alias="from")


class TelegramMessage(TelegramMessageRef):
    text: str | None = None
    document: TelegramFile | None = None
    video: TelegramFile | None = None
    audio: TelegramFile | None = None
    photo: list[TelegramFile] | None = None


class TelegramUpdate(BaseModel):
    update_id: int | None = None
    message: TelegramMessageRef


class WebhookAck(BaseModel):
    ok: bool = True
    outcome: str
