from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from deenly.config import settings
from deenly.services.entitlements import GUEST_USER_ID

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    x_guest_session: str | None = Header(default=None),
) -> dict:
    if credentials is None:
        if x_guest_session:
            return {
                "id": GUEST_USER_ID,
                "email": "invitado@deenly.app",
                "token": "",
                "is_guest": True,
                "is_premium": False,
                "guest_session": x_guest_session,
            }
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    token = credentials.credentials
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience="authenticated",
        )
        user_id = payload.get("sub")
        if user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: no sub claim",
            )
        metadata = payload.get("user_metadata") or {}
        return {
            "id": user_id,
            "email": payload.get("email", ""),
            "token": token,
            "is_guest": False,
            "is_premium": bool(metadata.get("is_premium", False)),
        }
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
