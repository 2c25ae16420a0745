from pydantic import BaseModel, ConfigDict, Field


class SendMessagePayload(BaseModel):
    recipient_id: str = Field(alias="recipientId", min_length=1)
    content: str = Field(min_length=1, max_length=1000)
    temp_id: str | None = Field(default=None, alias="tempId", max_length=120)

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class TypingPayload(BaseModel):
    recipient_id: str = Field(alias="recipientId", min_length=1)

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class OnlineUserResponse(BaseModel):
    user_id: str = Field(serialization_alias="userId")
    user_name: str = Field(serialization_alias="userName")
    user_email: str = Field(serialization_alias="userEmail")
