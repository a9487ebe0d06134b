"""Generic Reference Translator.

One translator class serves every entity kind: it is parameterised by the
resource-type tag it emits and accepts, the lookup port that resolves
identifiers for that kind, and an optional display function.
"""

import logging
from typing import Callable, Generic, Optional, TypeVar

from fhir_bridge.domain.models import DomainEntity
from fhir_bridge.domain.ports import EntityLookupPort, Translator
from fhir_bridge.domain.resources import Reference
from fhir_bridge.translators import reference_codec

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=DomainEntity)


class ReferenceTranslator(Translator[E, Reference], Generic[E]):
    """Converts a domain entity to a typed reference and back.

    Parameters:
        kind_tag: Resource-type tag for references of this kind
        lookup_port: Port used to resolve decoded identifiers
        display: Optional function producing the reference display text

    Example Usage:
        ```python
        patients = ReferenceTranslator(PATIENT, patient_store, display=patient_display)
        ref = patients.to_wire(patient)        # Reference(reference="Patient/<uuid>")
        same = patients.to_domain(ref)         # patient_store.get("<uuid>")
        ```
    """

    def __init__(
        self,
        kind_tag: str,
        lookup_port: EntityLookupPort[E],
        display: Optional[Callable[[E], Optional[str]]] = None
    ):
        if not reference_codec.is_known_resource_type(kind_tag):
            raise ValueError(f"Unknown resource type: {kind_tag!r}")
        self.kind_tag = kind_tag
        self.lookup_port = lookup_port
        self._display = display

    def to_wire(self, entity: Optional[E]) -> Optional[Reference]:
        if entity is None:
            return None

        display = self._display(entity) if self._display is not None else None
        return reference_codec.encode(self.kind_tag, entity.uuid, display or None)

    def to_domain(self, ref: Optional[Reference]) -> Optional[E]:
        """Resolve a reference through the lookup port.

        Returns:
            Whatever the port returns for the decoded identifier, or None when
            the reference is absent or its target cannot be decoded

        Raises:
            InvalidReferenceTypeError: If the reference is typed for another kind
        """
        if ref is None:
            return None

        reference_codec.validate_type(ref, self.kind_tag)

        identifier = reference_codec.decode(ref, self.kind_tag)
        if identifier is None:
            logger.debug(f"Could not decode {self.kind_tag} reference {ref.reference!r}")
            return None

        entity = self.lookup_port.get(identifier)
        if entity is None:
            logger.debug(f"No {self.kind_tag} found for identifier {identifier}")
        return entity

    def __repr__(self) -> str:
        return f"ReferenceTranslator(kind_tag={self.kind_tag!r})"


# ============================================================================
# Display functions
# ============================================================================

def patient_display(patient) -> Optional[str]:
    """``"<full name> (<identifier type>: <identifier>)"``, omitting missing parts."""
    parts = []
    if patient.name is not None and patient.name.full_name:
        parts.append(patient.name.full_name)

    if patient.identifier:
        if patient.identifier_type:
            parts.append(f"({patient.identifier_type}: {patient.identifier})")
        else:
            parts.append(f"({patient.identifier})")

    return " ".join(parts) or None


def practitioner_display(practitioner) -> Optional[str]:
    if practitioner.name is None:
        return None
    return practitioner.name.full_name or None


def name_display(entity) -> Optional[str]:
    """Display text for entities with a plain ``name`` (locations, medications)."""
    return entity.name
