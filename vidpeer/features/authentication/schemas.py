from pydantic import BaseModel, Field

# ---------- Inputs ----------

class SignUpIn(BaseModel):
    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=8, max_length=72)

class SignInIn(BaseModel):
    username: str
    password: str


# ---------- Outputs ----------

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # secondes
