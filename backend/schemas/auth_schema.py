from pydantic import BaseModel
from typing import Optional

class AdminUser(BaseModel):
    admin_id: str
    email: str
    full_name: Optional[str] = None
    is_active: bool = True

    class Config:
        extra = "ignore"

class AdminUserInDB(AdminUser):
    hashed_password: str

class Token(BaseModel):
    access_token: str
    token_type: str

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
