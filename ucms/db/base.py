# File: ucms/db/base.py
from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    pass

def enum_values(enum_cls) -> list[str]:
    # persist the display value ("In Progress"), not the member name
    return [member.value for member in enum_cls]
