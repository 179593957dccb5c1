from sqlmodel import SQLModel

class UserOut(SQLModel):
    id: int
    username: str
    admin: bool
