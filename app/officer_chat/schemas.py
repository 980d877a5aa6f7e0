# app/officer_chat/schemas.py
from pydantic import BaseModel, Field, field_validator

OFFICER_CHAT_MAX_LENGTH = 255


class OfficerChatCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=OFFICER_CHAT_MAX_LENGTH)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value
