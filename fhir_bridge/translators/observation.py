"""Observation Translator.

Translates observations, including observation groups whose members travel
as ``hasMember`` references, to and from the wire Observation resource.
"""

import logging
from typing import Optional

from fhir_bridge.domain import models
from fhir_bridge.domain import resources as fhir
from fhir_bridge.domain.constants import OBSERVATION_CATEGORY_SYSTEM_URI
from fhir_bridge.domain.ports import UpdatableTranslator
from fhir_bridge.translators import fields
from fhir_bridge.translators.code_mappings import (
    CONCEPT_CLASS_TO_OBSERVATION_CATEGORY,
    INTERPRETATION,
    OBSERVATION_STATUS,
)
from fhir_bridge.translators.common import (
    apply_resource_id,
    build_meta,
    concept_or_absent,
    copy_or_create,
    resolve,
)
from fhir_bridge.translators.fields import ConceptTranslator
from fhir_bridge.translators.reference import ReferenceTranslator

logger = logging.getLogger(__name__)

VALUE_FIELDS = ("value_numeric", "value_coded", "value_text", "value_boolean")


def observation_category(concept: Optional[models.Concept]) -> Optional[fhir.CodeableConcept]:
    if concept is None or concept.concept_class is None:
        return None

    entry = CONCEPT_CLASS_TO_OBSERVATION_CATEGORY.get(concept.concept_class)
    if entry is None:
        return None

    code, display = entry
    return fhir.CodeableConcept(coding=[
        fhir.Coding(system=OBSERVATION_CATEGORY_SYSTEM_URI, code=code, display=display)
    ])


def has_value(resource: fhir.Observation) -> bool:
    return any(
        value is not None
        for value in (
            resource.valueQuantity,
            resource.valueCodeableConcept,
            resource.valueString,
            resource.valueBoolean,
        )
    )


class ObservationTranslator(UpdatableTranslator[models.Observation, fhir.Observation]):
    """Translates an Observation to and from the wire Observation resource.

    The status is ``entered-in-error`` for a voided observation and the mapped
    domain status otherwise. Exactly one ``value[x]`` is emitted, chosen from
    the numeric, coded, text and boolean values in that order. Reference
    ranges are only emitted for numeric values. An observation without a
    concept gets a data-absent ``code``, since the element is required.

    Inbound, a resource carrying any ``value[x]`` replaces the stored value
    outright: the other value fields are cleared, and so is the reference
    range unless the new value is numeric.

    Parameters:
        patient_reference: Resolves ``subject``
        encounter_reference: Resolves ``encounter``
        observation_reference: Resolves each ``hasMember`` entry
        concept_translator: Translates the code and coded values
    """

    def __init__(
        self,
        patient_reference: ReferenceTranslator[models.Patient],
        encounter_reference: ReferenceTranslator[models.Encounter],
        observation_reference: ReferenceTranslator[models.Observation],
        concept_translator: Optional[ConceptTranslator] = None
    ):
        self.patient_reference = patient_reference
        self.encounter_reference = encounter_reference
        self.observation_reference = observation_reference
        self.concept_translator = concept_translator or ConceptTranslator()

    def to_wire(self, observation: Optional[models.Observation]) -> Optional[fhir.Observation]:
        if observation is None:
            return None

        resource = fhir.Observation(
            id=observation.uuid,
            status=fields.observation_status_to_wire(observation.voided, observation.status),
            subject=self.patient_reference.to_wire(observation.person),
            encounter=self.encounter_reference.to_wire(observation.encounter),
            code=concept_or_absent(self.concept_translator.to_wire(observation.concept)),
            effectiveDateTime=observation.obs_datetime,
            issued=observation.date_created,
            meta=build_meta(observation),
        )

        category = observation_category(observation.concept)
        if category is not None:
            resource.category = [category]

        self._set_value(resource, observation)

        interpretation = INTERPRETATION.to_codeable_concept(observation.interpretation)
        if interpretation is not None:
            resource.interpretation = [interpretation]

        if observation.value_numeric is not None:
            resource.referenceRange = fields.reference_ranges_to_wire(
                observation.reference_range, observation.concept
            ) or None

        if observation.group_members:
            resource.hasMember = [
                self.observation_reference.to_wire(member)
                for member in observation.group_members
            ]

        if observation.comment:
            resource.note = [fhir.Annotation(text=observation.comment)]

        return resource

    def _set_value(self, resource: fhir.Observation, observation: models.Observation) -> None:
        concept = observation.concept
        if observation.value_numeric is not None:
            allow_decimal = concept.allow_decimal if concept is not None else True
            value = observation.value_numeric
            resource.valueQuantity = fhir.Quantity(
                value=value if allow_decimal else int(value),
                unit=concept.units if concept is not None else None,
            )
        elif observation.value_coded is not None:
            resource.valueCodeableConcept = self.concept_translator.to_wire(
                observation.value_coded
            )
        elif observation.value_text is not None:
            resource.valueString = observation.value_text
        elif observation.value_boolean is not None:
            resource.valueBoolean = observation.value_boolean

    def to_domain(
        self,
        resource: Optional[fhir.Observation],
        existing: Optional[models.Observation] = None
    ) -> Optional[models.Observation]:
        if resource is None:
            return None

        observation = copy_or_create(models.Observation, existing)
        apply_resource_id(observation, resource)

        if resource.status == fields.ENTERED_IN_ERROR:
            observation.voided = True
        elif resource.status is not None:
            observation.status = OBSERVATION_STATUS.from_code(resource.status)

        observation.person = resolve(self.patient_reference, resource.subject, observation.person)
        observation.encounter = resolve(
            self.encounter_reference, resource.encounter, observation.encounter
        )

        concept = self.concept_translator.to_domain(resource.code)
        if concept is not None:
            observation.concept = concept

        if resource.effectiveDateTime is not None:
            observation.obs_datetime = resource.effectiveDateTime

        if has_value(resource):
            self._replace_value(observation, resource)

        if resource.interpretation:
            observation.interpretation = INTERPRETATION.from_codeable_concept(
                resource.interpretation[0]
            )

        reference_range = fields.reference_ranges_to_domain(resource.referenceRange)
        if reference_range is not None:
            observation.reference_range = reference_range

        if resource.hasMember:
            members = []
            for ref in resource.hasMember:
                member = self.observation_reference.to_domain(ref)
                if member is None:
                    logger.debug(f"Dropping unresolved group member {ref.reference!r}")
                    continue
                members.append(member)
            observation.group_members = members

        if resource.note:
            observation.comment = resource.note[0].text

        return observation

    def _replace_value(self, observation: models.Observation, resource: fhir.Observation) -> None:
        for field in VALUE_FIELDS:
            setattr(observation, field, None)

        if resource.valueQuantity is not None and resource.valueQuantity.value is not None:
            observation.value_numeric = float(resource.valueQuantity.value)
        elif resource.valueCodeableConcept is not None:
            observation.value_coded = self.concept_translator.to_domain(
                resource.valueCodeableConcept
            )
        elif resource.valueString is not None:
            observation.value_text = resource.valueString
        elif resource.valueBoolean is not None:
            observation.value_boolean = resource.valueBoolean

        if observation.value_numeric is None:
            observation.reference_range = None
