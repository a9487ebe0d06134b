"""Code Mapping Tables.

Immutable two-way maps between domain enums and wire codings. Each table
names every member of its domain enum, either with a wire code or in its
``unmapped`` set; construction fails otherwise. Domain ``None``, unmapped
members, and wire codes with no domain equivalent all translate to ``None``.
"""

from enum import Enum
from types import MappingProxyType
from typing import Generic, Iterable, Mapping, Optional, TypeVar

from fhir_bridge.domain.constants import (
    ADMINISTRATIVE_GENDER_SYSTEM_URI,
    CONDITION_VER_STATUS_SYSTEM_URI,
    OBSERVATION_INTERPRETATION_SYSTEM_URI,
)
from fhir_bridge.domain.enums import (
    AllergenType,
    AllergySeverity,
    DiagnosisCertainty,
    Gender,
    Interpretation,
    ObservationStatus,
)
from fhir_bridge.domain.resources import CodeableConcept, Coding

K = TypeVar('K', bound=Enum)


class CodeMapping(Generic[K]):
    """Closed two-way map between an enum and ``{system, code, display}``.

    Parameters:
        enum_type: The domain enum being mapped
        system: Code system URI of the wire codes
        table: Domain member -> (code, display)
        unmapped: Members deliberately without a wire equivalent
        aliases: Extra inbound codes accepted for a member

    Raises:
        ValueError: If a member of ``enum_type`` is neither mapped nor
            listed as unmapped, or if two members share a wire code
    """

    def __init__(
        self,
        enum_type: type[K],
        system: Optional[str],
        table: Mapping[K, tuple[str, Optional[str]]],
        unmapped: Iterable[K] = (),
        aliases: Optional[Mapping[str, K]] = None
    ):
        unmapped = frozenset(unmapped)
        missing = [m for m in enum_type if m not in table and m not in unmapped]
        if missing:
            raise ValueError(
                f"{enum_type.__name__} members without a mapping: {[m.name for m in missing]}"
            )

        inbound = {code: member for member, (code, _) in table.items()}
        if len(inbound) != len(table):
            raise ValueError(f"Duplicate wire codes in {enum_type.__name__} mapping")
        inbound.update(aliases or {})

        self.enum_type = enum_type
        self.system = system
        self.unmapped = unmapped
        self._outbound = MappingProxyType(dict(table))
        self._inbound = MappingProxyType(inbound)

    @property
    def mapped_values(self) -> frozenset:
        return frozenset(self._outbound)

    def to_code(self, value: Optional[K]) -> Optional[str]:
        entry = self._outbound.get(value) if value is not None else None
        return entry[0] if entry else None

    def to_coding(self, value: Optional[K]) -> Optional[Coding]:
        entry = self._outbound.get(value) if value is not None else None
        if entry is None:
            return None
        code, display = entry
        return Coding(system=self.system, code=code, display=display)

    def to_codeable_concept(self, value: Optional[K]) -> Optional[CodeableConcept]:
        coding = self.to_coding(value)
        return CodeableConcept(coding=[coding]) if coding else None

    def from_code(self, code: Optional[str]) -> Optional[K]:
        if not code:
            return None
        return self._inbound.get(code)

    def from_coding(self, coding: Optional[Coding]) -> Optional[K]:
        """Map a coding back, ignoring codings from a different system."""
        if coding is None:
            return None
        if coding.system and self.system and coding.system != self.system:
            return None
        return self.from_code(coding.code)

    def from_codeable_concept(self, concept: Optional[CodeableConcept]) -> Optional[K]:
        """Return the first coding in ``concept`` that maps to a domain value."""
        if concept is None:
            return None
        for coding in concept.coding or []:
            value = self.from_coding(coding)
            if value is not None:
                return value
        return None

    def __repr__(self) -> str:
        return f"CodeMapping({self.enum_type.__name__}, system={self.system!r})"


GENDER = CodeMapping(
    Gender,
    ADMINISTRATIVE_GENDER_SYSTEM_URI,
    {
        Gender.MALE: ("male", "Male"),
        Gender.FEMALE: ("female", "Female"),
        Gender.OTHER: ("other", "Other"),
        Gender.UNKNOWN: ("unknown", "Unknown"),
    },
)

DIAGNOSIS_CERTAINTY = CodeMapping(
    DiagnosisCertainty,
    CONDITION_VER_STATUS_SYSTEM_URI,
    {
        DiagnosisCertainty.CONFIRMED: ("confirmed", "Confirmed"),
        DiagnosisCertainty.PROVISIONAL: ("provisional", "Provisional"),
    },
    aliases={"unconfirmed": DiagnosisCertainty.PROVISIONAL},
)

OBSERVATION_STATUS = CodeMapping(
    ObservationStatus,
    "http://hl7.org/fhir/observation-status",
    {
        ObservationStatus.PRELIMINARY: ("preliminary", "Preliminary"),
        ObservationStatus.FINAL: ("final", "Final"),
        ObservationStatus.AMENDED: ("amended", "Amended"),
    },
)

INTERPRETATION = CodeMapping(
    Interpretation,
    OBSERVATION_INTERPRETATION_SYSTEM_URI,
    {
        Interpretation.NORMAL: ("N", "Normal"),
        Interpretation.ABNORMAL: ("A", "Abnormal"),
        Interpretation.CRITICALLY_ABNORMAL: ("AA", "Critically abnormal"),
        Interpretation.NEGATIVE: ("NEG", "Negative"),
        Interpretation.POSITIVE: ("POS", "Positive"),
        Interpretation.CRITICALLY_LOW: ("LL", "Critically low"),
        Interpretation.LOW: ("L", "Low"),
        Interpretation.HIGH: ("H", "High"),
        Interpretation.CRITICALLY_HIGH: ("HH", "Critically high"),
        Interpretation.SUSCEPTIBLE: ("S", "Susceptible"),
        Interpretation.INTERMEDIATE: ("I", "Intermediate"),
        Interpretation.RESISTANT: ("R", "Resistant"),
    },
)

ALLERGY_CATEGORY = CodeMapping(
    AllergenType,
    "http://hl7.org/fhir/allergy-intolerance-category",
    {
        AllergenType.DRUG: ("medication", "Medication"),
        AllergenType.FOOD: ("food", "Food"),
        AllergenType.ENVIRONMENT: ("environment", "Environment"),
    },
    unmapped={AllergenType.OTHER},
)

ALLERGY_SEVERITY = CodeMapping(
    AllergySeverity,
    "http://hl7.org/fhir/reaction-event-severity",
    {
        AllergySeverity.MILD: ("mild", "Mild"),
        AllergySeverity.MODERATE: ("moderate", "Moderate"),
        AllergySeverity.SEVERE: ("severe", "Severe"),
    },
    unmapped={AllergySeverity.OTHER},
)

# Outbound only: criticality is derived from severity and never read back.
SEVERITY_TO_CRITICALITY: Mapping[AllergySeverity, str] = MappingProxyType({
    AllergySeverity.MILD: "low",
    AllergySeverity.MODERATE: "low",
    AllergySeverity.SEVERE: "high",
    AllergySeverity.OTHER: "unable-to-assess",
})

ALL_MAPPINGS = (
    GENDER,
    DIAGNOSIS_CERTAINTY,
    OBSERVATION_STATUS,
    INTERPRETATION,
    ALLERGY_CATEGORY,
    ALLERGY_SEVERITY,
)

# Outbound only: observation category from the observed concept's class.
CONCEPT_CLASS_TO_OBSERVATION_CATEGORY: Mapping[str, tuple[str, str]] = MappingProxyType({
    "Test": ("laboratory", "Laboratory"),
    "LabSet": ("laboratory", "Laboratory"),
    "Procedure": ("procedure", "Procedure"),
    "Finding": ("exam", "Exam"),
    "Symptom": ("exam", "Exam"),
    "Symptom/Finding": ("exam", "Exam"),
})
