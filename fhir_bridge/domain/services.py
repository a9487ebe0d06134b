"""Translation Service.

Entry point for callers that hold whole entities or whole wire resources and
do not want to pick translators themselves. Dispatches on the entity class or
on the resource type and, inbound, decides between create and update by
looking the resource id up in the matching store.
"""

import logging
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional, Union

from fhir_bridge.domain.models import DomainEntity
from fhir_bridge.domain.ports import Result, TranslationError
from fhir_bridge.domain.resources import FhirResource, parse_resource
from fhir_bridge.infrastructure.logging_config import translation_context

if TYPE_CHECKING:
    from fhir_bridge.registry import TranslatorRegistry

logger = logging.getLogger(__name__)


def _resource_identity(resource: Union[FhirResource, dict[str, Any]]) -> tuple[Optional[str], Optional[str]]:
    if isinstance(resource, dict):
        return resource.get("resourceType"), resource.get("id")
    return resource.get_resource_type(), resource.id


class TranslationService:
    """Translates entities and resources through a TranslatorRegistry.

    Parameters:
        registry: Registry holding the composite translators and lookup stores

    Example Usage:
        ```python
        service = TranslationService(build_registry())
        resource = service.to_wire(patient)
        patient = service.to_domain({"resourceType": "Patient", "id": "123", ...})
        ```
    """

    def __init__(self, registry: "TranslatorRegistry"):
        self.registry = registry

    def to_wire(self, entity: Optional[DomainEntity]) -> Optional[FhirResource]:
        """Translate a domain entity to its wire resource.

        Raises:
            UnsupportedResourceError: If the entity kind has no wire resource
            InvalidReferenceTypeError, LookupPortError: From reference translation
        """
        if entity is None:
            return None
        translator, _ = self.registry.for_entity(entity)
        return translator.to_wire(entity)

    def to_domain(
        self,
        resource: Optional[Union[FhirResource, dict[str, Any]]]
    ) -> Optional[DomainEntity]:
        """Translate a wire resource (model or FHIR JSON) to a domain entity.

        When the resource id names an entity already in the matching store,
        the result is that entity with the resource merged onto it; otherwise
        a new entity is built. Nothing is persisted.
        """
        if resource is None:
            return None
        if isinstance(resource, dict):
            resource = parse_resource(resource)

        translator, store = self.registry.for_resource(resource)
        resource_type = resource.get_resource_type()
        existing = store.get(resource.id) if resource.id else None
        if existing is not None:
            logger.debug(
                f"Merging {resource_type}/{resource.id} onto stored entity",
                extra=translation_context(resource_type, resource.id),
            )
        return translator.to_domain(resource, existing)

    def translate_many(self, entities: Iterable[DomainEntity]) -> Iterator[Result[FhirResource]]:
        """Translate entities one by one, yielding a Result per entity.

        Translation errors become failure results carrying the entity's index,
        class and uuid. Any other exception propagates.
        """
        for index, entity in enumerate(entities):
            try:
                yield Result.success_result(self.to_wire(entity))
            except TranslationError as e:
                logger.warning(
                    f"Failed to translate {type(entity).__name__} at index {index}: {str(e)}",
                    extra=translation_context(
                        None,
                        getattr(entity, "uuid", None),
                        entity_type=type(entity).__name__,
                        index=index,
                        error_type=type(e).__name__,
                    ),
                )
                yield Result.failure_result(
                    e,
                    error_details={
                        "index": index,
                        "entity_type": type(entity).__name__,
                        "uuid": getattr(entity, "uuid", None),
                    },
                )

    def ingest_many(
        self,
        resources: Iterable[Union[FhirResource, dict[str, Any]]]
    ) -> Iterator[Result[DomainEntity]]:
        """Inbound counterpart of ``translate_many``.

        FHIR JSON that does not parse becomes a failure result as well.
        """
        for index, resource in enumerate(resources):
            try:
                yield Result.success_result(self.to_domain(resource))
            except (TranslationError, ValueError) as e:
                logger.warning(
                    f"Failed to translate resource at index {index}: {str(e)}",
                    extra=translation_context(
                        *_resource_identity(resource), index=index, error_type=type(e).__name__
                    ),
                )
                yield Result.failure_result(e, error_details={"index": index})
