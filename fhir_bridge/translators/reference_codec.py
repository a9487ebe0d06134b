"""Reference Codec.

Encodes and decodes the typed-reference wire format. A reference target is
``"<ResourceType>/<id>"``, optionally prefixed by a server base URL and
optionally suffixed by ``/_history/<version>``. An embedded
``identifier.value`` always takes precedence over the parsed target.

Decoding never raises: anything that does not parse is an absent value.
Type validation is the only failing operation, and only when a reference
carries a type tag that differs from the expected one.
"""

import logging
import re
from typing import Optional

from fhir_bridge.domain.constants import KNOWN_RESOURCE_TYPES
from fhir_bridge.domain.ports import InvalidReferenceTypeError
from fhir_bridge.domain.resources import Reference

logger = logging.getLogger(__name__)

_TARGET_PATTERN = re.compile(
    r"(?:^|/)(?P<type>[A-Z][A-Za-z]*)/(?P<id>[^/]+)(?:/_history/[^/]+)?/?$"
)


def is_known_resource_type(resource_type: Optional[str]) -> bool:
    return resource_type in KNOWN_RESOURCE_TYPES


def _match_target(target: Optional[str]) -> Optional[re.Match]:
    if not target:
        return None
    return _TARGET_PATTERN.search(target)


def encode(
    resource_type: str,
    identifier: str,
    display: Optional[str] = None
) -> Reference:
    """Build a typed reference to ``resource_type`` with id ``identifier``.

    Parameters:
        resource_type: One of the known resource-type tags
        identifier: The referenced entity's uuid
        display: Optional human-readable text

    Returns:
        Reference with ``reference = resource_type + "/" + identifier``

    Raises:
        ValueError: If ``resource_type`` is not a known resource-type tag
    """
    if not is_known_resource_type(resource_type):
        raise ValueError(f"Unknown resource type: {resource_type!r}")

    return Reference(
        reference=f"{resource_type}/{identifier}",
        type=resource_type,
        display=display,
    )


def decode(ref: Optional[Reference], resource_type: Optional[str] = None) -> Optional[str]:
    """Extract the referenced identifier from a reference.

    Extraction order:
        1. An explicit ``identifier.value`` wins
        2. Otherwise the id parsed from ``<type>/<id>`` in the target, where
           ``type`` is ``resource_type`` if given, else ``ref.type`` if set,
           else any resource-type tag
        3. Otherwise None

    Parameters:
        ref: Reference to decode (may be None)
        resource_type: Expected resource-type tag in the target

    Returns:
        The identifier, or None if it cannot be extracted
    """
    if ref is None:
        return None

    if ref.identifier is not None and ref.identifier.value:
        return ref.identifier.value

    match = _match_target(ref.reference)
    if match is None:
        return None

    expected = resource_type or ref.type
    if expected is not None and match.group("type") != expected:
        logger.debug(
            f"Reference target {ref.reference!r} does not point at a {expected}"
        )
        return None

    return match.group("id")


def reference_to_type(target: Optional[str]) -> Optional[str]:
    """Parse the resource-type tag out of a reference target string."""
    match = _match_target(target)
    return match.group("type") if match else None


def get_reference_type(ref: Optional[Reference]) -> Optional[str]:
    """Return a reference's type tag, preferring the explicit ``type`` field."""
    if ref is None:
        return None
    if ref.type:
        return ref.type
    return reference_to_type(ref.reference)


def validate_type(ref: Optional[Reference], expected_type: str) -> None:
    """Fail when ``ref`` carries a type tag other than ``expected_type``.

    A reference without a type tag always passes.

    Raises:
        InvalidReferenceTypeError: If ``ref.type`` is set and differs
    """
    if ref is None or not ref.type:
        return

    if ref.type != expected_type:
        raise InvalidReferenceTypeError(
            expected_type=expected_type,
            actual_type=ref.type,
            reference=ref.reference,
        )
