from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from podio.schemas.race import utcnow

class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

class UserLogin(BaseModel):
    identifier: str    # email o username
    password: str

class UserOut(BaseModel):
    uid: str
    email: EmailStr
    username: str
    role: str
    created_at: datetime | None = None

class UserRecord(UserOut):
    hashed_password: str
    role: str = "user"
    created_at: datetime = Field(default_factory=utcnow)
