"""Helpers shared by the composite translators."""

from typing import Optional, TypeVar

from fhir_bridge.domain.constants import (
    DATA_ABSENT_REASON_EXTENSION_URL,
    DATA_ABSENT_REASON_UNKNOWN,
)
from fhir_bridge.domain.models import DomainEntity
from fhir_bridge.domain.resources import (
    CodeableConcept,
    Coding,
    Extension,
    FhirResource,
    Meta,
    Reference,
    get_extension_by_url,
)
from fhir_bridge.translators.reference import ReferenceTranslator

E = TypeVar('E', bound=DomainEntity)


def copy_or_create(entity_type: type[E], existing: Optional[E]) -> E:
    """Start an inbound translation: a deep copy of ``existing`` or a new entity."""
    if existing is None:
        return entity_type()
    return existing.model_copy(deep=True)


def apply_resource_id(entity: DomainEntity, resource: FhirResource) -> None:
    if resource.id:
        entity.uuid = resource.id


def build_meta(entity: DomainEntity, tag: Optional[Coding] = None) -> Optional[Meta]:
    """Resource meta carrying the last modification time and an optional tag."""
    last_updated = entity.date_changed or entity.date_created
    if last_updated is None and tag is None:
        return None
    return Meta(lastUpdated=last_updated, tag=[tag] if tag else None)


def resolve(
    translator: ReferenceTranslator[E],
    ref: Optional[Reference],
    current: Optional[E]
) -> Optional[E]:
    """Resolve ``ref``, keeping ``current`` when the reference is absent or unresolved.

    Type mismatches and lookup failures propagate.
    """
    if ref is None:
        return current
    resolved = translator.to_domain(ref)
    return resolved if resolved is not None else current


# ============================================================================
# Required elements the record cannot supply
# ============================================================================

def data_absent_extension() -> Extension:
    return Extension(url=DATA_ABSENT_REASON_EXTENSION_URL, valueCode=DATA_ABSENT_REASON_UNKNOWN)


def is_data_absent(element) -> bool:
    """Whether ``element`` is a placeholder marked with the data-absent-reason extension."""
    return get_extension_by_url(element, DATA_ABSENT_REASON_EXTENSION_URL) is not None


def reference_or_absent(ref: Optional[Reference]) -> Reference:
    """``ref`` itself, or a target-less reference flagged as data-absent.

    Inbound, a reference without a target decodes to "unknown", so the
    placeholder leaves the existing value in place.
    """
    if ref is not None:
        return ref
    return Reference(extension=[data_absent_extension()])


def concept_or_absent(codeable: Optional[CodeableConcept]) -> CodeableConcept:
    if codeable is not None:
        return codeable
    return CodeableConcept(extension=[data_absent_extension()])
