from pydantic import BaseModel


class ApiMessage(BaseModel):
    detail: str
