import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import ValidationError

from .. import models, schemas, security
from ..config import settings
from ..deps import SESSION_COOKIE, get_current_user, get_storage
from ..storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.LoginRequest, response: Response, storage: Storage = Depends(get_storage)):
    """Exchange the identity provider's signed assertion for a session."""
    try:
        claims = schemas.IdentityClaims.model_validate(security.decode_identity_assertion(payload.id_token))
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid identity assertion") from exc

    # Only claims the provider sent overwrite the stored profile
    profile = claims.model_dump(exclude={"sub"}, exclude_none=True)
    user = storage.upsert_user(schemas.UserUpsert(id=claims.sub, **profile))
    logger.info(f"User {user.id} signed in")

    access_token = security.create_access_token(subject=user.id, role=user.role)
    response.set_cookie(
        SESSION_COOKIE,
        access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
    )
    return schemas.Token(access_token=access_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def logout():
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.get("/user", response_model=schemas.UserOut)
def current_user(user: models.User = Depends(get_current_user)):
    return user
