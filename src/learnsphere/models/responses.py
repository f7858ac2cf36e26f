"""Response payloads of the learning backend."""

from pydantic import BaseModel

from learnsphere.models.user import Rank, User


class AuthResponse(BaseModel):
    user: User | None = None
    message: str = ""


class SettingsResponse(BaseModel):
    user: User
    message: str = ""


class DashboardResponse(BaseModel):
    user: User


class XPUpdateResponse(BaseModel):
    """Backend verdict after a scored quiz. Authoritative for xp, level and rank."""

    message: str = ""
    new_xp: int
    new_level: int
    rank: Rank


class BonusResponse(BaseModel):
    message: str = ""
    new_xp: int


class ConnectionTestResponse(BaseModel):
    message: str = ""
