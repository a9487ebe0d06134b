"""Field Translators.

Stateless conversions for single concepts that need more than a code table:
person names, coded concepts, periods assembled from two timestamps,
observation reference ranges, and statuses derived from several domain flags.
"""

import logging
from datetime import datetime
from typing import Optional

from fhir_bridge.domain.constants import (
    OBSERVATION_REFERENCE_ABSOLUTE,
    OBSERVATION_REFERENCE_NORMAL,
    OBSERVATION_REFERENCE_RANGE_SYSTEM_URI,
    OBSERVATION_REFERENCE_TREATMENT,
    PERSON_NAME_EXTENSION_URL,
    REFERENCE_RANGE_ABSOLUTE_SYSTEM_URI,
)
from fhir_bridge.domain.enums import ObservationStatus
from fhir_bridge.domain.models import Concept, PersonName, ReferenceRange
from fhir_bridge.domain.ports import Translator
from fhir_bridge.domain.resources import (
    CodeableConcept,
    Coding,
    Extension,
    HumanName,
    ObservationReferenceRange,
    Period,
    Quantity,
    first_coding,
    get_extension_by_url,
)
from fhir_bridge.translators.code_mappings import OBSERVATION_STATUS

logger = logging.getLogger(__name__)


# ============================================================================
# Person names
# ============================================================================

NAME_PREFIX_EXTENSION_URL = f"{PERSON_NAME_EXTENSION_URL}#prefix"
NAME_DEGREE_EXTENSION_URL = f"{PERSON_NAME_EXTENSION_URL}#degree"


class PersonNameTranslator(Translator[PersonName, HumanName]):
    """Translates between a structured domain name and a wire HumanName.

    The wire ``given`` list is the domain given name followed by the middle
    name split on whitespace. On the way back the first entry becomes the
    given name and the remaining entries, joined with a single space, the
    middle name. Prefix and degree travel in a nested name extension.
    """

    def to_wire(self, name: Optional[PersonName]) -> Optional[HumanName]:
        if name is None:
            return None

        given = []
        if name.given_name:
            given.append(name.given_name)
        if name.middle_name:
            given.extend(name.middle_name.split())

        nested = []
        if name.prefix:
            nested.append(Extension(url=NAME_PREFIX_EXTENSION_URL, valueString=name.prefix))
        if name.degree:
            nested.append(Extension(url=NAME_DEGREE_EXTENSION_URL, valueString=name.degree))

        return HumanName(
            family=name.family_name,
            given=given or None,
            extension=[Extension(url=PERSON_NAME_EXTENSION_URL, extension=nested)]
            if nested else None,
        )

    def to_domain(self, human_name: Optional[HumanName]) -> Optional[PersonName]:
        if human_name is None:
            return None

        name = PersonName(family_name=human_name.family)

        if human_name.given:
            name.given_name = human_name.given[0]
            if len(human_name.given) > 1:
                name.middle_name = " ".join(human_name.given[1:])

        extension = get_extension_by_url(human_name, PERSON_NAME_EXTENSION_URL)
        if extension is not None:
            prefix = get_extension_by_url(extension, NAME_PREFIX_EXTENSION_URL)
            if prefix is not None and prefix.valueString:
                name.prefix = prefix.valueString
            degree = get_extension_by_url(extension, NAME_DEGREE_EXTENSION_URL)
            if degree is not None and degree.valueString:
                name.degree = degree.valueString

        return name


# ============================================================================
# Concepts
# ============================================================================

class ConceptTranslator(Translator[Concept, CodeableConcept]):
    """Translates a coded concept to a CodeableConcept with a single coding.

    Concepts are value objects carried inline; they are not resolved through
    a lookup port.
    """

    def to_wire(self, concept: Optional[Concept]) -> Optional[CodeableConcept]:
        if concept is None:
            return None

        coding = None
        if concept.code or concept.system:
            coding = [Coding(system=concept.system, code=concept.code, display=concept.display)]
        return CodeableConcept(coding=coding, text=concept.display)

    def to_domain(self, codeable: Optional[CodeableConcept]) -> Optional[Concept]:
        if codeable is None:
            return None

        coding = first_coding(codeable)
        if coding is None:
            if not codeable.text:
                return None
            return Concept(display=codeable.text)

        return Concept(
            code=coding.code,
            system=coding.system,
            display=coding.display or codeable.text,
        )


# ============================================================================
# Periods
# ============================================================================

def encounter_period_to_wire(encounter_datetime: Optional[datetime]) -> Period:
    """Encounter period: start is the encounter time; the slot is always present."""
    return Period(start=encounter_datetime)


def encounter_period_to_domain(
    period: Optional[Period],
    current: Optional[datetime]
) -> Optional[datetime]:
    """Resolve the encounter time from an inbound period.

    The period start wins; otherwise the end stands in for the occurrence
    time; with neither, ``current`` is returned unchanged.
    """
    if period is None:
        return current
    if period.start is not None:
        return period.start
    if period.end is not None:
        return period.end
    return current


def visit_period_to_wire(
    start_datetime: Optional[datetime],
    stop_datetime: Optional[datetime]
) -> Period:
    return Period(start=start_datetime, end=stop_datetime)


def visit_period_to_domain(
    period: Optional[Period],
    start_datetime: Optional[datetime],
    stop_datetime: Optional[datetime]
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Apply each side of an inbound visit period only when it is present."""
    if period is None:
        return start_datetime, stop_datetime
    return (
        period.start if period.start is not None else start_datetime,
        period.end if period.end is not None else stop_datetime,
    )


# ============================================================================
# Observation reference ranges
# ============================================================================

_RANGE_PAIRS = (
    ("low_normal", "hi_normal", OBSERVATION_REFERENCE_RANGE_SYSTEM_URI, OBSERVATION_REFERENCE_NORMAL),
    ("low_critical", "hi_critical", OBSERVATION_REFERENCE_RANGE_SYSTEM_URI, OBSERVATION_REFERENCE_TREATMENT),
    ("low_absolute", "hi_absolute", REFERENCE_RANGE_ABSOLUTE_SYSTEM_URI, OBSERVATION_REFERENCE_ABSOLUTE),
)


def _range_quantity(
    value: Optional[float],
    allow_decimal: bool,
    units: Optional[str]
) -> Optional[Quantity]:
    if value is None:
        return None
    return Quantity(value=value if allow_decimal else int(value), unit=units)


def reference_ranges_to_wire(
    reference_range: Optional[ReferenceRange],
    concept: Optional[Concept]
) -> list[ObservationReferenceRange]:
    """Expand numeric bounds into one wire range per populated bound pair.

    Parameters:
        reference_range: The observation's own bounds, which take precedence
        concept: The observed concept, supplying default bounds, units and
            whether values may be fractional

    Returns:
        Entries for the normal, critical (``treatment``) and absolute pairs,
        in that order, omitting pairs with neither side set
    """
    bounds = reference_range
    if bounds is None and concept is not None:
        bounds = concept.numeric_range
    if bounds is None:
        return []

    allow_decimal = concept.allow_decimal if concept is not None else True
    units = concept.units if concept is not None else None

    ranges = []
    for low_field, high_field, system, code in _RANGE_PAIRS:
        low = getattr(bounds, low_field)
        high = getattr(bounds, high_field)
        if low is None and high is None:
            continue

        ranges.append(
            ObservationReferenceRange(
                low=_range_quantity(low, allow_decimal, units),
                high=_range_quantity(high, allow_decimal, units),
                type=CodeableConcept(coding=[Coding(system=system, code=code)]),
            )
        )

    return ranges


def reference_ranges_to_domain(
    ranges: Optional[list[ObservationReferenceRange]]
) -> Optional[ReferenceRange]:
    """Collapse wire reference ranges back into a single set of bounds.

    Entries are matched on their type code; untyped or unrecognised entries
    are ignored.
    """
    if not ranges:
        return None

    by_code = {code: (low_field, high_field) for low_field, high_field, _, code in _RANGE_PAIRS}
    bounds = ReferenceRange()
    found = False

    for entry in ranges:
        coding = first_coding(entry.type)
        fields = by_code.get(coding.code) if coding is not None else None
        if fields is None:
            logger.debug("Ignoring reference range entry without a recognised type")
            continue

        low_field, high_field = fields
        if entry.low is not None and entry.low.value is not None:
            setattr(bounds, low_field, float(entry.low.value))
            found = True
        if entry.high is not None and entry.high.value is not None:
            setattr(bounds, high_field, float(entry.high.value))
            found = True

    return bounds if found else None


# ============================================================================
# Derived statuses
# ============================================================================

ACTIVE = "active"
INACTIVE = "inactive"
ENTERED_IN_ERROR = "entered-in-error"
UNKNOWN = "unknown"
FINISHED = "finished"
IN_PROGRESS = "in-progress"


def clinical_status_to_wire(voided: bool, system: str) -> CodeableConcept:
    """``inactive`` for a voided record, ``active`` otherwise."""
    code = INACTIVE if voided else ACTIVE
    return CodeableConcept(coding=[Coding(system=system, code=code, display=code.capitalize())])


def clinical_status_to_voided(
    clinical_status: Optional[CodeableConcept],
    current: bool
) -> bool:
    """Map an inbound clinical status onto the voided flag.

    ``inactive`` voids, ``active`` un-voids, anything else leaves ``current``.
    """
    if clinical_status is None:
        return current

    for coding in clinical_status.coding or []:
        if coding.code == INACTIVE:
            return True
        if coding.code == ACTIVE:
            return False
    return current


def observation_status_to_wire(voided: bool, status: Optional[ObservationStatus]) -> str:
    """``entered-in-error`` when voided, else the mapped status, else ``unknown``."""
    if voided:
        return ENTERED_IN_ERROR
    return OBSERVATION_STATUS.to_code(status) or UNKNOWN


def encounter_status_to_wire(voided: bool) -> str:
    return ENTERED_IN_ERROR if voided else UNKNOWN


def visit_status_to_wire(
    voided: bool,
    start_datetime: Optional[datetime],
    stop_datetime: Optional[datetime]
) -> str:
    if voided:
        return ENTERED_IN_ERROR
    if stop_datetime is not None:
        return FINISHED
    if start_datetime is not None:
        return IN_PROGRESS
    return UNKNOWN


def medication_status_to_wire(voided: bool, retired: bool) -> str:
    return INACTIVE if (retired or voided) else ACTIVE
