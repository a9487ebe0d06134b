"""Domain layer for FHIR-Bridge.

This module contains the clinical domain model, the FHIR wire resources and
the ports (abstract contracts) the translation core depends on.
All domain models are pure Python with no external dependencies beyond Pydantic.
"""

from .models import (
    Allergy,
    Diagnosis,
    DomainEntity,
    Encounter,
    Location,
    Medication,
    Observation,
    Patient,
    Practitioner,
    Visit,
)

__all__ = [
    "Allergy",
    "Diagnosis",
    "DomainEntity",
    "Encounter",
    "Location",
    "Medication",
    "Observation",
    "Patient",
    "Practitioner",
    "Visit",
]
