"""Domain enumerations.

Closed value sets of the clinical domain model. Their wire equivalents live
in the code mapping tables (``fhir_bridge.translators.code_mappings``); no
enum here knows about its FHIR coding.
"""

from enum import Enum


class Gender(str, Enum):
    """Administrative gender as recorded on a person."""
    MALE = "M"
    FEMALE = "F"
    OTHER = "O"
    UNKNOWN = "U"


class DiagnosisCertainty(str, Enum):
    """How certain the clinician is about an encounter diagnosis."""
    CONFIRMED = "CONFIRMED"
    PROVISIONAL = "PROVISIONAL"


class ObservationStatus(str, Enum):
    """Result status of an observation."""
    PRELIMINARY = "PRELIMINARY"
    FINAL = "FINAL"
    AMENDED = "AMENDED"


class Interpretation(str, Enum):
    """Clinical interpretation flag attached to an observation value."""
    NORMAL = "NORMAL"
    ABNORMAL = "ABNORMAL"
    CRITICALLY_ABNORMAL = "CRITICALLY_ABNORMAL"
    NEGATIVE = "NEGATIVE"
    POSITIVE = "POSITIVE"
    CRITICALLY_LOW = "CRITICALLY_LOW"
    LOW = "LOW"
    HIGH = "HIGH"
    CRITICALLY_HIGH = "CRITICALLY_HIGH"
    SUSCEPTIBLE = "SUSCEPTIBLE"
    INTERMEDIATE = "INTERMEDIATE"
    RESISTANT = "RESISTANT"


class AllergenType(str, Enum):
    """Kind of substance an allergy is recorded against."""
    DRUG = "DRUG"
    FOOD = "FOOD"
    ENVIRONMENT = "ENVIRONMENT"
    OTHER = "OTHER"


class AllergySeverity(str, Enum):
    """Severity of the reactions recorded for an allergy."""
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"
    OTHER = "OTHER"
