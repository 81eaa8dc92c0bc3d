from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


AVAILABILITY_OPTIONS: Tuple[str, ...] = (
    "Available now",
    "Available this week",
    "Available next week",
    "Limited availability",
    "Fully booked",
)

Number = Union[int, float]


class Severity(str, Enum):
    SUCCESS = "success"
    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"


class FormMode(str, Enum):
    ADD = "add"
    EDIT = "edit"
    VIEW = "view"


@dataclass(frozen=True)
class Alert:
    severity: Severity
    message: str
    shown_at: float = 0.0


@dataclass(frozen=True)
class CountrySpecialization:
    country: str
    types: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"country": self.country, "types": list(self.types)}


@dataclass
class VisaForm:
    # list-valued fields hold comma-joined text while editing
    visa_type: str = ""
    description: str = ""
    eligible_applicants: str = ""
    duration: str = ""
    exempted_countries: str = ""
    restricted_countries: str = ""


@dataclass
class SpecialistForm:
    id: Optional[str] = None
    name: str = ""
    title: str = ""
    photo: str = ""
    bio: str = ""
    years_experience: Union[str, Number] = ""
    languages: str = ""
    rating: Union[str, Number] = 4.5
    review_count: Union[str, Number] = 0
    countries: List[str] = field(default_factory=list)
    visa_types: List[CountrySpecialization] = field(default_factory=list)
    success_rate: Union[str, Number] = 95
    consultation_fee: str = "$150"
    availability: str = "Available next week"
    verified: bool = True


FormModel = Union[VisaForm, SpecialistForm]


@dataclass
class FormSession:
    """The open add/edit/view form; discarded on close or successful submit."""

    kind: str
    mode: FormMode
    model: FormModel
    original_key: Optional[str] = None
