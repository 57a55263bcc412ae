from fastapi import Depends, Header, HTTPException, Request, status
from pydantic import BaseModel

from app import models
from app.db import SessionFactory, UnitOfWork, get_session_factory
from app.security import decode_access_token


class TokenData(BaseModel):
    sub: str


def _decode_token(token: str) -> TokenData:
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    return TokenData(sub=sub)


def get_current_user(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> models.User:
    token: str | None = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing credentials")

    token_data = _decode_token(token)
    with UnitOfWork(session_factory) as uow:
        user = uow.session.get(models.User, token_data.sub)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    request.state.user_id = user.id
    return user
