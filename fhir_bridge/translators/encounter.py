"""Encounter and Visit Translators.

Both domain encounters and visits travel as wire Encounter resources. They
are told apart by a meta tag (``encounter`` or ``visit``); an encounter
points at its visit through ``partOf``.

The two families assemble their period differently:
    - An encounter has a single occurrence time. It is emitted as the period
      start, always inside a Period. Inbound, the start wins, the end stands
      in when there is no start, and an empty period leaves the time alone.
    - A visit maps start and end independently, each applied only when set.
"""

import logging
from typing import Optional

from fhir_bridge.domain import models
from fhir_bridge.domain import resources as fhir
from fhir_bridge.domain.constants import (
    ENCOUNTER_CLASS_AMBULATORY,
    ENCOUNTER_CLASS_SYSTEM_URI,
    ENCOUNTER_TAG_SYSTEM_URI,
)
from fhir_bridge.domain.ports import UpdatableTranslator
from fhir_bridge.translators import fields
from fhir_bridge.translators.common import (
    apply_resource_id,
    build_meta,
    copy_or_create,
    resolve,
)
from fhir_bridge.translators.fields import ConceptTranslator
from fhir_bridge.translators.reference import ReferenceTranslator

logger = logging.getLogger(__name__)

ENCOUNTER_TAG = "encounter"
VISIT_TAG = "visit"


def encounter_tag(code: str) -> fhir.Coding:
    return fhir.Coding(system=ENCOUNTER_TAG_SYSTEM_URI, code=code, display=code.capitalize())


def encounter_class() -> fhir.Coding:
    """Every encounter and visit is emitted as ambulatory; ``class`` is required."""
    return fhir.Coding(
        system=ENCOUNTER_CLASS_SYSTEM_URI,
        code=ENCOUNTER_CLASS_AMBULATORY,
        display="ambulatory",
    )


def is_visit(resource: fhir.Encounter) -> bool:
    """Whether a wire Encounter carries the visit tag."""
    if resource.meta is None:
        return False
    return any(
        tag.code == VISIT_TAG and tag.system in (None, ENCOUNTER_TAG_SYSTEM_URI)
        for tag in resource.meta.tag or []
    )


class EncounterTranslator(UpdatableTranslator[models.Encounter, fhir.Encounter]):
    """Translates an Encounter to and from a wire Encounter tagged ``encounter``.

    Parameters:
        patient_reference: Resolves ``subject``
        practitioner_reference: Resolves each participant
        location_reference: Resolves the first location
        visit_reference: Resolves ``partOf``
        concept_translator: Translates the encounter type
    """

    def __init__(
        self,
        patient_reference: ReferenceTranslator[models.Patient],
        practitioner_reference: ReferenceTranslator[models.Practitioner],
        location_reference: ReferenceTranslator[models.Location],
        visit_reference: ReferenceTranslator[models.Visit],
        concept_translator: Optional[ConceptTranslator] = None
    ):
        self.patient_reference = patient_reference
        self.practitioner_reference = practitioner_reference
        self.location_reference = location_reference
        self.visit_reference = visit_reference
        self.concept_translator = concept_translator or ConceptTranslator()

    def to_wire(self, encounter: Optional[models.Encounter]) -> Optional[fhir.Encounter]:
        if encounter is None:
            return None

        resource = fhir.Encounter(
            id=encounter.uuid,
            status=fields.encounter_status_to_wire(encounter.voided),
            class_fhir=encounter_class(),
            subject=self.patient_reference.to_wire(encounter.patient),
            period=fields.encounter_period_to_wire(encounter.encounter_datetime),
            partOf=self.visit_reference.to_wire(encounter.visit),
            meta=build_meta(encounter, encounter_tag(ENCOUNTER_TAG)),
        )

        encounter_type = self.concept_translator.to_wire(encounter.encounter_type)
        if encounter_type is not None:
            resource.type = [encounter_type]

        if encounter.providers:
            resource.participant = [
                fhir.EncounterParticipant(individual=self.practitioner_reference.to_wire(provider))
                for provider in encounter.providers
            ]

        location = self.location_reference.to_wire(encounter.location)
        if location is not None:
            resource.location = [fhir.EncounterLocation(location=location)]

        return resource

    def to_domain(
        self,
        resource: Optional[fhir.Encounter],
        existing: Optional[models.Encounter] = None
    ) -> Optional[models.Encounter]:
        if resource is None:
            return None

        encounter = copy_or_create(models.Encounter, existing)
        apply_resource_id(encounter, resource)

        if resource.status == fields.ENTERED_IN_ERROR:
            encounter.voided = True

        encounter.patient = resolve(self.patient_reference, resource.subject, encounter.patient)

        if resource.type:
            encounter.encounter_type = self.concept_translator.to_domain(resource.type[0])

        if resource.participant:
            providers = []
            for participant in resource.participant:
                provider = self.practitioner_reference.to_domain(participant.individual)
                if provider is not None:
                    providers.append(provider)
            encounter.providers = providers

        if resource.location:
            encounter.location = resolve(
                self.location_reference, resource.location[0].location, encounter.location
            )

        encounter.visit = resolve(self.visit_reference, resource.partOf, encounter.visit)

        encounter.encounter_datetime = fields.encounter_period_to_domain(
            resource.period, encounter.encounter_datetime
        )

        return encounter


class VisitTranslator(UpdatableTranslator[models.Visit, fhir.Encounter]):
    """Translates a Visit to and from a wire Encounter tagged ``visit``.

    The status is derived: ``entered-in-error`` when voided, ``finished``
    once stopped, ``in-progress`` once started, ``unknown`` otherwise.

    Parameters:
        patient_reference: Resolves ``subject``
        location_reference: Resolves the first location
        concept_translator: Translates the visit type
    """

    def __init__(
        self,
        patient_reference: ReferenceTranslator[models.Patient],
        location_reference: ReferenceTranslator[models.Location],
        concept_translator: Optional[ConceptTranslator] = None
    ):
        self.patient_reference = patient_reference
        self.location_reference = location_reference
        self.concept_translator = concept_translator or ConceptTranslator()

    def to_wire(self, visit: Optional[models.Visit]) -> Optional[fhir.Encounter]:
        if visit is None:
            return None

        resource = fhir.Encounter(
            id=visit.uuid,
            status=fields.visit_status_to_wire(
                visit.voided, visit.start_datetime, visit.stop_datetime
            ),
            class_fhir=encounter_class(),
            subject=self.patient_reference.to_wire(visit.patient),
            period=fields.visit_period_to_wire(visit.start_datetime, visit.stop_datetime),
            meta=build_meta(visit, encounter_tag(VISIT_TAG)),
        )

        visit_type = self.concept_translator.to_wire(visit.visit_type)
        if visit_type is not None:
            resource.type = [visit_type]

        location = self.location_reference.to_wire(visit.location)
        if location is not None:
            resource.location = [fhir.EncounterLocation(location=location)]

        return resource

    def to_domain(
        self,
        resource: Optional[fhir.Encounter],
        existing: Optional[models.Visit] = None
    ) -> Optional[models.Visit]:
        if resource is None:
            return None

        visit = copy_or_create(models.Visit, existing)
        apply_resource_id(visit, resource)

        if resource.status == fields.ENTERED_IN_ERROR:
            visit.voided = True

        visit.patient = resolve(self.patient_reference, resource.subject, visit.patient)

        if resource.type:
            visit.visit_type = self.concept_translator.to_domain(resource.type[0])

        if resource.location:
            visit.location = resolve(
                self.location_reference, resource.location[0].location, visit.location
            )

        visit.start_datetime, visit.stop_datetime = fields.visit_period_to_domain(
            resource.period, visit.start_datetime, visit.stop_datetime
        )

        return visit
