import datetime as dt
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import AppointmentStatus, NoteType, PatientStatus, PrescriptionStatus, UserRole


# The frontend speaks camelCase; snake_case is accepted too.
API_MODEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "use_enum_values": True,
    "validate_default": True,
}

ORM_MODEL_CONFIG = {**API_MODEL_CONFIG, "from_attributes": True}


class ApiModel(BaseModel):
    model_config = API_MODEL_CONFIG

    # Optional inputs posted as "" by the forms are treated as absent.
    blank_as_null: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _blank_strings_to_null(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not cls.blank_as_null:
            return data
        cleaned = dict(data)
        for name in cls.blank_as_null:
            for key in (name, to_camel(name)):
                if cleaned.get(key) == "":
                    cleaned[key] = None
        return cleaned


class PartialUpdate(ApiModel):
    """Patch payload: only fields the caller sent are applied."""

    # Columns that may be omitted from a patch but never set to null
    required_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_null_required(self):
        for name in self.required_fields:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# --- Auth ---
class LoginRequest(ApiModel):
    id_token: str = Field(min_length=1)


class Token(ApiModel):
    access_token: str
    token_type: str = "bearer"


class IdentityClaims(ApiModel):
    """Claims carried by the identity provider's signed login assertion."""

    model_config = {**API_MODEL_CONFIG, "extra": "ignore"}

    sub: str = Field(min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


# --- Users / staff ---
class UserOut(ApiModel):
    model_config = ORM_MODEL_CONFIG

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: UserRole
    specialty: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class UserUpsert(PartialUpdate):
    id: str = Field(min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: Optional[UserRole] = None
    specialty: Optional[str] = None

    required_fields = ("role",)


class StaffCreate(ApiModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    role: UserRole = UserRole.DOCTOR
    specialty: Optional[str] = None

    blank_as_null = ("specialty",)


class StaffUpdate(PartialUpdate):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    specialty: Optional[str] = None

    required_fields = ("role",)
    blank_as_null = ("specialty",)


# --- Patients ---
PATIENT_OPTIONAL_FIELDS = (
    "email", "phone", "date_of_birth", "gender", "address", "emergency_contact",
    "emergency_phone", "medical_history", "allergies", "medications",
)


class PatientBase(ApiModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[dt.date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None
    status: PatientStatus = PatientStatus.ACTIVE

    blank_as_null = PATIENT_OPTIONAL_FIELDS


class PatientCreate(PatientBase):
    pass


class PatientUpdate(PartialUpdate):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[dt.date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None
    status: Optional[PatientStatus] = None

    required_fields = ("first_name", "last_name", "status")
    blank_as_null = PATIENT_OPTIONAL_FIELDS


class PatientOut(PatientBase):
    model_config = ORM_MODEL_CONFIG

    id: int
    created_at: dt.datetime
    updated_at: dt.datetime


# --- Appointments ---
class AppointmentBase(ApiModel):
    patient_id: int
    doctor_id: str = Field(min_length=1)
    date: dt.date
    time: dt.time
    type: str = Field(min_length=1)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None
    duration: Optional[str] = "30"

    blank_as_null = ("notes",)


class AppointmentCreate(AppointmentBase):
    # Filled from the signed-in caller when omitted
    doctor_id: Optional[str] = Field(default=None, min_length=1)

    blank_as_null = ("notes", "doctor_id")


class AppointmentUpdate(PartialUpdate):
    patient_id: Optional[int] = None
    doctor_id: Optional[str] = Field(default=None, min_length=1)
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    type: Optional[str] = Field(default=None, min_length=1)
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    duration: Optional[str] = None

    required_fields = ("patient_id", "doctor_id", "date", "time", "type", "status")
    blank_as_null = ("notes",)


class AppointmentOut(AppointmentBase):
    model_config = ORM_MODEL_CONFIG

    id: int
    created_at: dt.datetime
    updated_at: dt.datetime


class AppointmentWithPatient(AppointmentOut):
    patient: PatientOut
    doctor: UserOut


# --- Clinical notes ---
class ClinicalNoteBase(ApiModel):
    patient_id: int
    doctor_id: str = Field(min_length=1)
    appointment_id: Optional[int] = None
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    type: NoteType

    blank_as_null = ("appointment_id",)


class ClinicalNoteCreate(ClinicalNoteBase):
    doctor_id: Optional[str] = Field(default=None, min_length=1)

    blank_as_null = ("appointment_id", "doctor_id")


class ClinicalNoteUpdate(PartialUpdate):
    patient_id: Optional[int] = None
    doctor_id: Optional[str] = Field(default=None, min_length=1)
    appointment_id: Optional[int] = None
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = Field(default=None, min_length=1)
    type: Optional[NoteType] = None

    required_fields = ("patient_id", "doctor_id", "title", "content", "type")
    blank_as_null = ("appointment_id",)


class ClinicalNoteOut(ClinicalNoteBase):
    model_config = ORM_MODEL_CONFIG

    id: int
    created_at: dt.datetime
    updated_at: dt.datetime


class ClinicalNoteWithDetails(ClinicalNoteOut):
    patient: PatientOut
    doctor: UserOut
    appointment: Optional[AppointmentOut] = None


# --- Prescriptions ---
PRESCRIPTION_OPTIONAL_FIELDS = ("appointment_id", "instructions", "end_date", "pharmacy_notes")


class PrescriptionBase(ApiModel):
    patient_id: int
    doctor_id: str = Field(min_length=1)
    appointment_id: Optional[int] = None
    medication_name: str = Field(min_length=1)
    dosage: str = Field(min_length=1)
    frequency: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    instructions: Optional[str] = None
    status: PrescriptionStatus = PrescriptionStatus.ACTIVE
    start_date: dt.date
    end_date: Optional[dt.date] = None
    refills_remaining: int = Field(default=0, ge=0)
    pharmacy_notes: Optional[str] = None

    blank_as_null = PRESCRIPTION_OPTIONAL_FIELDS

    @field_validator("refills_remaining", mode="before")
    @classmethod
    def _missing_refills_are_zero(cls, value):
        return 0 if value is None else value


class PrescriptionCreate(PrescriptionBase):
    doctor_id: Optional[str] = Field(default=None, min_length=1)

    blank_as_null = PRESCRIPTION_OPTIONAL_FIELDS + ("doctor_id",)


class PrescriptionUpdate(PartialUpdate):
    patient_id: Optional[int] = None
    doctor_id: Optional[str] = Field(default=None, min_length=1)
    appointment_id: Optional[int] = None
    medication_name: Optional[str] = Field(default=None, min_length=1)
    dosage: Optional[str] = Field(default=None, min_length=1)
    frequency: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[str] = Field(default=None, min_length=1)
    instructions: Optional[str] = None
    status: Optional[PrescriptionStatus] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    refills_remaining: Optional[int] = Field(default=None, ge=0)
    pharmacy_notes: Optional[str] = None

    required_fields = (
        "patient_id", "doctor_id", "medication_name", "dosage", "frequency",
        "duration", "status", "start_date", "refills_remaining",
    )
    blank_as_null = PRESCRIPTION_OPTIONAL_FIELDS


class PrescriptionOut(PrescriptionBase):
    model_config = ORM_MODEL_CONFIG

    id: int
    created_at: dt.datetime
    updated_at: dt.datetime


class PrescriptionWithDetails(PrescriptionOut):
    patient: PatientOut
    doctor: UserOut
    appointment: Optional[AppointmentOut] = None


# --- Dashboard ---
class DashboardMetrics(ApiModel):
    today_appointments: int
    active_patients: int
    pending_reports: int
    monthly_revenue: int
