"""Local datasets used when the remote catalog is empty or unreachable, and to seed the dev API."""

from __future__ import annotations

import copy
from typing import Any, Dict, List


MOCK_COUNTRIES = [
    "United States", "Canada", "United Kingdom", "Australia",
    "Germany", "Singapore", "United Arab Emirates", "Switzerland",
    "Netherlands", "Japan", "South Korea", "Hong Kong", "France",
    "Spain", "Italy", "Portugal", "Brazil", "Mexico", "Sweden", "Norway",
]

_VISA_TYPES: Dict[str, List[Dict[str, Any]]] = {
    "United States": [
        {
            "visa_type": "B-1/B-2",
            "description": "Visitor visa for business (B-1) or tourism/pleasure (B-2)",
            "eligible_applicants": ["Business travelers", "Tourists", "Visiting family/friends"],
            "duration": "Up to 6 months, may be extended",
            "exempted_countries": ["Canada", "United Kingdom", "Australia", "Japan"],
            "restricted_countries": ["Iran", "North Korea", "Syria"],
        },
        {
            "visa_type": "F-1",
            "description": "Student visa for academic studies",
            "eligible_applicants": ["Full-time students admitted to US educational institutions"],
            "duration": "Duration of study program plus 60 days",
            "exempted_countries": [],
            "restricted_countries": ["Iran", "North Korea", "Syria"],
        },
        {
            "visa_type": "H-1B",
            "description": "Temporary work visa for specialty occupations",
            "eligible_applicants": ["Professionals with bachelor's degree or higher in specialized fields"],
            "duration": "Up to 6 years (3 years initially, with possible 3-year extension)",
            "exempted_countries": [],
            "restricted_countries": [],
        },
    ],
    "Canada": [
        {
            "visa_type": "Visitor Visa",
            "description": "Temporary visa for tourism, visiting family/friends, or business visits",
            "eligible_applicants": ["Tourists", "Business visitors", "Family visitors"],
            "duration": "Up to 6 months",
            "exempted_countries": ["United States", "United Kingdom", "Australia"],
            "restricted_countries": [],
        },
        {
            "visa_type": "Study Permit",
            "description": "Permit for international students to study at designated learning institutions",
            "eligible_applicants": ["Students accepted by Canadian educational institutions"],
            "duration": "Length of study program plus 90 days",
            "exempted_countries": [],
            "restricted_countries": [],
        },
        {
            "visa_type": "Work Permit",
            "description": "Permit allowing foreign nationals to work temporarily in Canada",
            "eligible_applicants": ["Skilled workers", "Temporary foreign workers", "International graduates"],
            "duration": "Varies based on employment offer, typically 1-3 years",
            "exempted_countries": [],
            "restricted_countries": [],
        },
    ],
}

MOCK_EXPERTS: List[Dict[str, Any]] = [
    {
        "id": "mock-1",
        "name": "Sarah Johnson",
        "title": "Senior Immigration Consultant",
        "photo": "",
        "bio": "Former consular officer specializing in US business and student visas.",
        "yearsExperience": 12,
        "languages": ["English", "Spanish"],
        "rating": 4.9,
        "reviewCount": 214,
        "specialization": {
            "countries": ["United States", "Canada"],
            "visaTypes": [
                {"country": "United States", "types": ["B-1/B-2", "F-1", "H-1B"]},
                {"country": "Canada", "types": ["Study Permit"]},
            ],
        },
        "successRate": 98,
        "consultationFee": "$200",
        "availability": "Available this week",
        "verified": True,
    },
    {
        "id": "mock-2",
        "name": "Michael Chen",
        "title": "Work Visa Specialist",
        "photo": "",
        "bio": "Helps skilled workers relocate to Canada and Australia.",
        "yearsExperience": 8,
        "languages": ["English", "Mandarin", "Cantonese"],
        "rating": 4.7,
        "reviewCount": 132,
        "specialization": {
            "countries": ["Canada", "Australia"],
            "visaTypes": [{"country": "Canada", "types": ["Work Permit", "Visitor Visa"]}],
        },
        "successRate": 95,
        "consultationFee": "$150",
        "availability": "Available next week",
        "verified": True,
    },
    {
        "id": "mock-3",
        "name": "Elena Rossi",
        "title": "EU Residency Advisor",
        "photo": "",
        "bio": "Advises families and students moving within the Schengen area.",
        "yearsExperience": 6,
        "languages": ["Italian", "English", "French"],
        "rating": 4.6,
        "reviewCount": 87,
        "specialization": {
            "countries": ["Italy", "France", "Spain"],
            "visaTypes": [{"country": "Italy", "types": ["Tourist Visa", "Business Visa"]}],
        },
        "successRate": 93,
        "consultationFee": "$120",
        "availability": "Limited availability",
        "verified": False,
    },
]


def mock_countries() -> List[str]:
    return list(MOCK_COUNTRIES)


def mock_visa_types(country: str) -> List[Dict[str, Any]]:
    if country in _VISA_TYPES:
        return copy.deepcopy(_VISA_TYPES[country])
    return [
        {
            "visa_type": "Tourist Visa",
            "description": f"Tourist visa for {country}",
            "eligible_applicants": ["Tourists", "Visitors"],
            "duration": "Up to 90 days",
            "exempted_countries": [],
            "restricted_countries": [],
        },
        {
            "visa_type": "Business Visa",
            "description": f"Business visa for {country}",
            "eligible_applicants": ["Business travelers"],
            "duration": "Up to 60 days",
            "exempted_countries": [],
            "restricted_countries": [],
        },
    ]


def mock_experts() -> List[Dict[str, Any]]:
    return copy.deepcopy(MOCK_EXPERTS)
