import uuid
from sqlmodel import SQLModel


def generate_uuid() -> str:
    return uuid.uuid4().hex


class BaseModel(SQLModel):
    pass
