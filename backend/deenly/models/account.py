from pydantic import BaseModel


class AccountResponse(BaseModel):
    id: str
    email: str
    is_guest: bool
    is_premium: bool
    questions_today: int
    daily_limit: int


class PremiumUpdate(BaseModel):
    is_premium: bool
