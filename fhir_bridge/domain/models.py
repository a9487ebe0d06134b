"""Clinical Domain Model.

This module defines the in-process representation of the clinical records
that the translation layer converts to and from the wire format. The records
themselves are owned by an external store; the translators only ever hold
transient copies for the duration of a single translate call.

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Models validate on assignment so that merged updates stay well-typed
    - Every identified record derives from DomainEntity and carries a uuid
    - Value objects (names, concepts, ranges) are plain BaseModels
"""

from datetime import date, datetime
from typing import ClassVar, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fhir_bridge.domain.enums import (
    AllergenType,
    AllergySeverity,
    DiagnosisCertainty,
    Gender,
    Interpretation,
    ObservationStatus,
)


def new_uuid() -> str:
    """Generate a new record identifier."""
    return str(uuid4())


class DomainEntity(BaseModel):
    """Base class for every identified clinical record.

    Parameters:
        uuid: Globally unique identifier; becomes the wire resource id
        voided: Whether the record has been retracted
        date_created: When the record was created in the store
        date_changed: When the record was last modified in the store
    """

    kind: ClassVar[str] = "entity"

    uuid: str = Field(default_factory=new_uuid, description="Globally unique identifier")
    voided: bool = Field(default=False, description="Whether the record has been retracted")
    date_created: Optional[datetime] = Field(None, description="Creation timestamp")
    date_changed: Optional[datetime] = Field(None, description="Last modification timestamp")

    model_config = ConfigDict(
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    @field_validator("uuid")
    @classmethod
    def validate_uuid(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("uuid must be a non-empty string")
        return v


# ============================================================================
# Value Objects
# ============================================================================

class PersonName(BaseModel):
    """Structured person name.

    The wire format carries a single ordered list of given names; the domain
    keeps the first one as ``given_name`` and the remainder as ``middle_name``.
    """

    given_name: Optional[str] = None
    middle_name: Optional[str] = None
    family_name: Optional[str] = None
    prefix: Optional[str] = None
    degree: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    @property
    def full_name(self) -> str:
        parts = [self.prefix, self.given_name, self.middle_name, self.family_name, self.degree]
        return " ".join(p for p in parts if p)


class ReferenceRange(BaseModel):
    """Numeric bounds for interpreting an observation value.

    Parameters:
        low_normal / hi_normal: Normal range
        low_critical / hi_critical: Range outside of which treatment is needed
        low_absolute / hi_absolute: Physically possible range
    """

    low_normal: Optional[float] = None
    hi_normal: Optional[float] = None
    low_critical: Optional[float] = None
    hi_critical: Optional[float] = None
    low_absolute: Optional[float] = None
    hi_absolute: Optional[float] = None


class Concept(BaseModel):
    """Coded clinical concept (question, answer, diagnosis, allergen...).

    Numeric concepts may carry a default reference range and whether values
    may be fractional.
    """

    uuid: str = Field(default_factory=new_uuid)
    code: Optional[str] = None
    system: Optional[str] = None
    display: Optional[str] = None
    units: Optional[str] = None
    concept_class: Optional[str] = None
    allow_decimal: bool = True
    numeric_range: Optional[ReferenceRange] = None


class CodedOrFreeText(BaseModel):
    """A value that is either a coded concept, free text, or both."""

    coded: Optional[Concept] = None
    non_coded: Optional[str] = None


class Allergen(BaseModel):
    allergen_type: Optional[AllergenType] = None
    coded_allergen: Optional[Concept] = None
    non_coded_allergen: Optional[str] = None


class AllergyReaction(BaseModel):
    uuid: str = Field(default_factory=new_uuid)
    reaction: Optional[Concept] = None
    reaction_non_coded: Optional[str] = None


# ============================================================================
# Entities
# ============================================================================

class Patient(DomainEntity):
    """Patient demographic record.

    Parameters:
        name: Preferred name
        gender: Administrative gender
        birthdate: Date of birth
        dead: Whether the patient is deceased
        identifier: Preferred patient identifier (e.g. MRN)
        identifier_type: Display name of the identifier's type
    """

    kind: ClassVar[str] = "patient"

    name: Optional[PersonName] = None
    gender: Optional[Gender] = None
    birthdate: Optional[date] = None
    dead: bool = False
    identifier: Optional[str] = None
    identifier_type: Optional[str] = None


class Practitioner(DomainEntity):
    kind: ClassVar[str] = "practitioner"

    name: Optional[PersonName] = None
    identifier: Optional[str] = None


class Location(DomainEntity):
    kind: ClassVar[str] = "location"

    name: Optional[str] = None
    description: Optional[str] = None


class Visit(DomainEntity):
    """A stay or appointment grouping one or more encounters.

    Parameters:
        patient: Who the visit is for
        visit_type: Coded kind of visit
        location: Where the visit takes place
        start_datetime: When the visit started
        stop_datetime: When the visit ended
    """

    kind: ClassVar[str] = "visit"

    patient: Optional[Patient] = None
    visit_type: Optional[Concept] = None
    location: Optional[Location] = None
    start_datetime: Optional[datetime] = None
    stop_datetime: Optional[datetime] = None


class Encounter(DomainEntity):
    """A single point-in-time interaction between patient and providers.

    Parameters:
        patient: Who the encounter is with
        encounter_type: Coded kind of encounter
        location: Where it happened
        visit: Enclosing visit, if any
        encounter_datetime: When it happened
        providers: Practitioners taking part
    """

    kind: ClassVar[str] = "encounter"

    patient: Optional[Patient] = None
    encounter_type: Optional[Concept] = None
    location: Optional[Location] = None
    visit: Optional[Visit] = None
    encounter_datetime: Optional[datetime] = None
    providers: list[Practitioner] = Field(default_factory=list)


class Medication(DomainEntity):
    kind: ClassVar[str] = "medication"

    name: Optional[str] = None
    concept: Optional[Concept] = None
    dosage_form: Optional[Concept] = None
    retired: bool = False


class Observation(DomainEntity):
    """A single measurement or finding, optionally grouping other observations.

    Only one of the ``value_*`` fields is expected to be set. The observation's
    own ``reference_range`` overrides the concept's numeric range.
    """

    kind: ClassVar[str] = "observation"

    person: Optional[Patient] = None
    encounter: Optional[Encounter] = None
    concept: Optional[Concept] = None
    obs_datetime: Optional[datetime] = None
    status: Optional[ObservationStatus] = ObservationStatus.FINAL
    interpretation: Optional[Interpretation] = None
    value_numeric: Optional[float] = None
    value_text: Optional[str] = None
    value_coded: Optional[Concept] = None
    value_boolean: Optional[bool] = None
    reference_range: Optional[ReferenceRange] = None
    group_members: list["Observation"] = Field(default_factory=list)
    comment: Optional[str] = None

    @property
    def is_obs_grouping(self) -> bool:
        return bool(self.group_members)


class Diagnosis(DomainEntity):
    """Encounter diagnosis.

    Parameters:
        patient: Diagnosed patient
        encounter: Encounter the diagnosis was made in
        diagnosis: Coded and/or free-text diagnosis
        certainty: Confirmed or provisional
        rank: 1 for primary, 2 for secondary, ...
        creator: Who recorded the diagnosis
    """

    kind: ClassVar[str] = "diagnosis"

    patient: Optional[Patient] = None
    encounter: Optional[Encounter] = None
    diagnosis: Optional[CodedOrFreeText] = None
    certainty: Optional[DiagnosisCertainty] = None
    rank: Optional[int] = None
    creator: Optional[Practitioner] = None


class Allergy(DomainEntity):
    kind: ClassVar[str] = "allergy"

    patient: Optional[Patient] = None
    allergen: Optional[Allergen] = None
    severity: Optional[AllergySeverity] = None
    comment: Optional[str] = None
    reaction_non_coded: Optional[str] = None
    reactions: list[AllergyReaction] = Field(default_factory=list)
    creator: Optional[Practitioner] = None
