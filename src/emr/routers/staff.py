from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from .. import models, schemas
from ..deps import get_storage, require_role
from ..storage import Storage

router = APIRouter(prefix="/api/staff", tags=["staff"])

admin_only = require_role(models.UserRole.ADMIN)


@router.get("", response_model=List[schemas.UserOut])
def list_staff(
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(admin_only),
):
    return storage.list_staff()


@router.post("", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def create_staff(
    payload: schemas.StaffCreate,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(admin_only),
):
    return storage.create_staff(payload)


@router.put("/{user_id}", response_model=schemas.UserOut)
def update_staff(
    user_id: str,
    payload: schemas.StaffUpdate,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(admin_only),
):
    member = storage.update_staff(user_id, payload)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff member not found")
    return member


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_staff(
    user_id: str,
    storage: Storage = Depends(get_storage),
    user: models.User = Depends(admin_only),
):
    if user_id == user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot remove your own account")
    storage.delete_staff(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
