from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from .. import models, schemas
from ..deps import get_current_user, get_storage
from ..storage import Storage

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


@router.get("", response_model=List[schemas.AppointmentWithPatient])
def list_appointments(
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_appointments()


@router.get("/today", response_model=List[schemas.AppointmentWithPatient])
def todays_appointments(
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_todays_appointments()


@router.get("/date/{day}", response_model=List[schemas.AppointmentWithPatient])
def appointments_by_date(
    day: date,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_appointments_by_date(day)


@router.get("/doctor/{doctor_id}", response_model=List[schemas.AppointmentWithPatient])
def appointments_by_doctor(
    doctor_id: str,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_appointments_by_doctor(doctor_id)


@router.get("/{appointment_id}", response_model=schemas.AppointmentWithPatient)
def get_appointment(
    appointment_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    appointment = storage.get_appointment(appointment_id)
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


@router.post("", response_model=schemas.AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: schemas.AppointmentCreate,
    storage: Storage = Depends(get_storage),
    user: models.User = Depends(get_current_user),
):
    return storage.create_appointment(payload, caller_id=user.id)


@router.put("/{appointment_id}", response_model=schemas.AppointmentOut)
def update_appointment(
    appointment_id: int,
    payload: schemas.AppointmentUpdate,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    appointment = storage.update_appointment(appointment_id, payload)
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_appointment(
    appointment_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    storage.delete_appointment(appointment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
