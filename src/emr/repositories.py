"""Single-table repositories backing the records store.

Every write here touches exactly one table. Foreign keys are checked before
the write so a dangling reference is reported without anything being stored.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .exceptions import ConflictError, ReferentialIntegrityError, StorageError

logger = logging.getLogger(__name__)


class EntityRepository:
    model: Any = None
    default_order: Tuple = ()
    # foreign key column -> referenced model
    references: Dict[str, Any] = {}
    # (model, column) pairs whose rows block deleting the referenced record
    dependents: Tuple[Tuple[Any, str], ...] = ()

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, entity_id):
        if entity_id is None:
            return None
        return self.db.get(self.model, entity_id)

    def get_many(self, ids: Iterable) -> Dict[Any, Any]:
        wanted = {entity_id for entity_id in ids if entity_id is not None}
        if not wanted:
            return {}
        rows = self.db.query(self.model).filter(self.model.id.in_(wanted)).all()
        return {row.id: row for row in rows}

    def find(self, *criteria, order_by: Optional[Sequence] = None) -> list:
        query = self.db.query(self.model)
        if criteria:
            query = query.filter(*criteria)
        return query.order_by(*(order_by or self.default_order)).all()

    def count(self, *criteria) -> int:
        query = self.db.query(func.count(self.model.id))
        if criteria:
            query = query.filter(*criteria)
        return int(query.scalar() or 0)

    def insert(self, fields: Dict[str, Any]):
        self._check_references(fields)
        now = models.utcnow()
        record = self.model(**fields)
        record.created_at = now
        record.updated_at = now
        self.db.add(record)
        self._commit()
        self.db.refresh(record)
        return record

    def update(self, entity_id, fields: Dict[str, Any]):
        record = self.get_by_id(entity_id)
        if record is None:
            return None
        self._check_references(fields)
        for name, value in fields.items():
            setattr(record, name, value)
        record.updated_at = models.utcnow()
        self._commit()
        self.db.refresh(record)
        return record

    def delete(self, entity_id) -> bool:
        record = self.get_by_id(entity_id)
        if record is None:
            return False
        self._check_dependents(entity_id)
        self.db.delete(record)
        self._commit()
        return True

    def _check_references(self, fields: Dict[str, Any]) -> None:
        for column, target in self.references.items():
            value = fields.get(column)
            if value is None:
                continue
            if self.db.get(target, value) is None:
                raise ReferentialIntegrityError(
                    f"{_label(target)} {value} does not exist",
                    {"field": column, "value": value},
                )

    def _check_dependents(self, entity_id) -> None:
        for dependent, column in self.dependents:
            remaining = (
                self.db.query(func.count(dependent.id))
                .filter(getattr(dependent, column) == entity_id)
                .scalar()
            )
            if remaining:
                raise ReferentialIntegrityError(
                    f"{_label(self.model)} {entity_id} still has {remaining} {_label(dependent, plural=True)}",
                    {"dependent": dependent.__tablename__, "count": remaining},
                )

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            message = str(exc.orig).lower()
            if "unique" in message or "duplicate" in message:
                raise ConflictError(f"{_label(self.model)} already exists") from exc
            if "foreign key" in message:
                raise ReferentialIntegrityError(f"{_label(self.model)} references a missing record") from exc
            raise StorageError(f"Could not write {_label(self.model)}") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Database error writing {self.model.__tablename__}: {exc}")
            raise StorageError(f"Could not write {_label(self.model)}") from exc


def _label(model, plural: bool = False) -> str:
    label = model.__tablename__.replace("_", " ")
    return label if plural else label[:-1]


# Ids of rows an admin added before the person ever signed in
STAFF_ID_PREFIX = "staff:"


class UserRepository(EntityRepository):
    model = models.User
    default_order = (models.User.created_at.desc(),)
    dependents = (
        (models.Appointment, "doctor_id"),
        (models.ClinicalNote, "doctor_id"),
        (models.Prescription, "doctor_id"),
    )

    def upsert(self, fields: Dict[str, Any]) -> models.User:
        existing = self.get_by_id(fields["id"]) or self.find_added_staff(fields.get("email"))
        if existing is not None:
            changes = {name: value for name, value in fields.items() if name != "id"}
            return self.update(existing.id, changes)
        return self.insert({"role": models.UserRole.DOCTOR.value, **fields})

    def find_added_staff(self, email: Optional[str]) -> Optional[models.User]:
        """Admin-added row the identity provider's account with this email signs in as."""
        if not email:
            return None
        return (
            self.db.query(models.User)
            .filter(
                func.lower(models.User.email) == email.lower(),
                models.User.id.startswith(STAFF_ID_PREFIX, autoescape=True),
            )
            .first()
        )


class PatientRepository(EntityRepository):
    model = models.Patient
    default_order = (models.Patient.created_at.desc(), models.Patient.id.desc())
    dependents = (
        (models.Appointment, "patient_id"),
        (models.ClinicalNote, "patient_id"),
        (models.Prescription, "patient_id"),
    )

    def search(self, query: str) -> list:
        return self.find(
            or_(
                models.Patient.first_name.icontains(query, autoescape=True),
                models.Patient.last_name.icontains(query, autoescape=True),
                models.Patient.email.icontains(query, autoescape=True),
            )
        )


class AppointmentRepository(EntityRepository):
    model = models.Appointment
    default_order = (
        models.Appointment.date.desc(),
        models.Appointment.time.desc(),
        models.Appointment.id.desc(),
    )
    references = {"patient_id": models.Patient, "doctor_id": models.User}
    dependents = (
        (models.ClinicalNote, "appointment_id"),
        (models.Prescription, "appointment_id"),
    )

    def list_by_date(self, day) -> list:
        return self.find(
            models.Appointment.date == day,
            order_by=(models.Appointment.time.asc(), models.Appointment.id.asc()),
        )

    def list_by_doctor(self, doctor_id: str) -> list:
        return self.find(models.Appointment.doctor_id == doctor_id)


class ClinicalNoteRepository(EntityRepository):
    model = models.ClinicalNote
    default_order = (models.ClinicalNote.created_at.desc(), models.ClinicalNote.id.desc())
    references = {
        "patient_id": models.Patient,
        "doctor_id": models.User,
        "appointment_id": models.Appointment,
    }

    def list_by_patient(self, patient_id: int) -> list:
        return self.find(models.ClinicalNote.patient_id == patient_id)


class PrescriptionRepository(EntityRepository):
    model = models.Prescription
    default_order = (models.Prescription.created_at.desc(), models.Prescription.id.desc())
    references = {
        "patient_id": models.Patient,
        "doctor_id": models.User,
        "appointment_id": models.Appointment,
    }

    def list_by_patient(self, patient_id: int) -> list:
        return self.find(models.Prescription.patient_id == patient_id)
