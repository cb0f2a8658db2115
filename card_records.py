"""Card records: the per-person data printed on an ID card.

Two variants share one composer. ``EmployeeRecord`` prints a single front
face; ``StudentRecord`` also carries guardian and insurance data for a back
face.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import pandas as pd

PLACEHOLDER = "N/A"

SINGLE_FACE = "single"
DUAL_FACE = "dual"
VARIANTS = (SINGLE_FACE, DUAL_FACE)


class CardRecordError(ValueError):
    """Raised when a record cannot be turned into a card."""


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float):
        return math.isnan(value)
    return False


def _normalise_string(value: object, default: str = "") -> str:
    if _is_missing(value):
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    value_str = str(value).strip()
    return value_str if value_str else default


def _or_placeholder(value: Optional[str]) -> str:
    return _normalise_string(value, PLACEHOLDER)


def _require(value: object, field_name: str) -> str:
    text = _normalise_string(value)
    if not text:
        raise CardRecordError(f"{field_name} is required")
    return text


@dataclass(frozen=True)
class GuardianInfo:
    name: str
    identifier: str
    celular_1: str
    celular_2: Optional[str] = None
    email: Optional[str] = None

    def rows(self) -> List[Tuple[str, str]]:
        return [
            ("Nombre", _or_placeholder(self.name)),
            ("Documento", _or_placeholder(self.identifier)),
            ("Celular 1", _or_placeholder(self.celular_1)),
            ("Celular 2", _or_placeholder(self.celular_2)),
            ("Email", _or_placeholder(self.email)),
        ]


@dataclass(frozen=True)
class InsuranceInfo:
    policy_number: str
    emergency_line: str
    expiration_date: str

    def rows(self) -> List[Tuple[str, str]]:
        return [
            ("Póliza", _or_placeholder(self.policy_number)),
            ("Línea de emergencia", _or_placeholder(self.emergency_line)),
            ("Vence", _or_placeholder(self.expiration_date)),
        ]


@dataclass(frozen=True)
class EmployeeRecord:
    identifier: str
    name: str
    designation: str
    portrait_source: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    variant = SINGLE_FACE

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifier", _require(self.identifier, "identifier"))
        object.__setattr__(self, "name", _require(self.name, "name"))

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def role_label(self) -> str:
        return _normalise_string(self.designation)

    @property
    def has_back(self) -> bool:
        return False

    def field_rows(self, valid_until: str) -> List[Tuple[str, str]]:
        return [
            ("ID", self.identifier),
            ("Teléfono", _or_placeholder(self.phone)),
            ("Dirección", _or_placeholder(self.address)),
            ("Valido", _or_placeholder(valid_until)),
        ]


@dataclass(frozen=True)
class StudentRecord:
    identifier: str
    first_name: str
    last_name: str
    guardian: GuardianInfo
    insurance: InsuranceInfo
    portrait_source: Optional[str] = None
    institution: Optional[str] = None
    grade: Optional[str] = None
    blood_type: Optional[str] = None
    role: str = "ESTUDIANTE"

    variant = DUAL_FACE

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifier", _require(self.identifier, "identifier"))
        first = _normalise_string(self.first_name)
        last = _normalise_string(self.last_name)
        if not first and not last:
            raise CardRecordError("first_name or last_name is required")
        object.__setattr__(self, "first_name", first)
        object.__setattr__(self, "last_name", last)

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def role_label(self) -> str:
        return _normalise_string(self.role)

    @property
    def has_back(self) -> bool:
        return True

    def field_rows(self, valid_until: str) -> List[Tuple[str, str]]:
        return [
            ("ID", self.identifier),
            ("Grado", _or_placeholder(self.grade)),
            ("RH", _or_placeholder(self.blood_type)),
            ("Valido", _or_placeholder(valid_until)),
        ]


CardRecord = Union[EmployeeRecord, StudentRecord]


def _optional(row: Dict[str, object], key: str) -> Optional[str]:
    value = _normalise_string(row.get(key))
    return value or None


def employee_from_row(row: Dict[str, object]) -> EmployeeRecord:
    return EmployeeRecord(
        identifier=_normalise_string(row.get("id")),
        name=_normalise_string(row.get("name")),
        designation=_normalise_string(row.get("designation")),
        portrait_source=_optional(row, "image"),
        phone=_optional(row, "phone"),
        address=_optional(row, "address"),
    )


def student_from_row(row: Dict[str, object]) -> StudentRecord:
    guardian = GuardianInfo(
        name=_normalise_string(row.get("guardian_name")),
        identifier=_normalise_string(row.get("guardian_id")),
        celular_1=_normalise_string(row.get("guardian_celular_1")),
        celular_2=_optional(row, "guardian_celular_2"),
        email=_optional(row, "guardian_email"),
    )
    insurance = InsuranceInfo(
        policy_number=_normalise_string(row.get("policy_number")),
        emergency_line=_normalise_string(row.get("emergency_line")),
        expiration_date=_normalise_string(row.get("policy_expiration")),
    )
    return StudentRecord(
        identifier=_normalise_string(row.get("id")),
        first_name=_normalise_string(row.get("first_name")),
        last_name=_normalise_string(row.get("last_name")),
        guardian=guardian,
        insurance=insurance,
        portrait_source=_optional(row, "image"),
        institution=_optional(row, "institution"),
        grade=_optional(row, "grade"),
        blood_type=_optional(row, "blood_type"),
        role=_normalise_string(row.get("role"), "ESTUDIANTE"),
    )


def _guess_variant(columns: Sequence[str]) -> str:
    if "first_name" in columns or "guardian_name" in columns:
        return DUAL_FACE
    return SINGLE_FACE


def records_from_rows(rows: Iterable[Dict[str, object]], variant: Optional[str] = None) -> Iterator[CardRecord]:
    """Convert plain dict rows into card records.

    ``variant`` picks the record type; ``None`` guesses it from the keys of
    the first row. Errors carry the 1-based row number.
    """
    factory = None
    for index, row in enumerate(rows, start=1):
        if factory is None:
            chosen = variant or _guess_variant(list(row.keys()))
            if chosen not in VARIANTS:
                raise CardRecordError(f"Unknown card variant: {chosen}")
            factory = student_from_row if chosen == DUAL_FACE else employee_from_row
        try:
            record = factory(row)
        except CardRecordError as exc:
            raise CardRecordError(f"Row {index}: {exc}") from exc
        yield record


def _read_sheet(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix in {".xlsx", ".xls"}:
        return pd.read_excel(path, dtype=str)
    if suffix == ".json":
        # object columns keep integers intact when a column also holds nulls
        with path.open(encoding="utf-8") as handle:
            return pd.DataFrame(json.load(handle), dtype=object)
    return pd.read_csv(path, dtype=str, encoding="utf-8-sig")


def load_records(path: Path, variant: Optional[str] = None) -> List[CardRecord]:
    frame = _read_sheet(Path(path))
    frame.columns = [str(column).strip().lower() for column in frame.columns]
    rows = frame.to_dict(orient="records")
    return list(records_from_rows(rows, variant))
