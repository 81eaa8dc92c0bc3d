from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


Availability = Literal[
    "Available now",
    "Available this week",
    "Available next week",
    "Limited availability",
    "Fully booked",
]


class VisaTypeModel(BaseModel):
    visa_type: str = Field(min_length=1)
    description: str = Field(min_length=1)
    eligible_applicants: List[str] = Field(default_factory=list)
    duration: str = ""
    exempted_countries: List[str] = Field(default_factory=list)
    restricted_countries: List[str] = Field(default_factory=list)


class CountrySpecializationModel(BaseModel):
    country: str
    types: List[str] = Field(default_factory=list)


class SpecializationModel(BaseModel):
    countries: List[str] = Field(default_factory=list)
    visaTypes: List[CountrySpecializationModel] = Field(default_factory=list)


class ExpertModel(BaseModel):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    title: str = Field(min_length=1)
    photo: str = ""
    bio: str = ""
    yearsExperience: int = Field(default=0, ge=0)
    languages: List[str] = Field(default_factory=list)
    rating: float = Field(default=4.5, ge=1, le=5)
    reviewCount: int = Field(default=0, ge=0)
    specialization: SpecializationModel = Field(default_factory=SpecializationModel)
    successRate: float = Field(default=95, ge=0, le=100)
    consultationFee: str = "$150"
    availability: Availability = "Available next week"
    verified: bool = True


class CountriesResponse(BaseModel):
    countries: List[str]


class VisaTypesResponse(BaseModel):
    country: str
    visa_types: List[VisaTypeModel]


class ExpertsResponse(BaseModel):
    experts: List[ExpertModel]


class MessageResponse(BaseModel):
    message: str
