"""Tests for encoding, decoding and validating typed references."""

import pytest

from fhir_bridge.domain.constants import KNOWN_RESOURCE_TYPES
from fhir_bridge.domain.ports import InvalidReferenceTypeError
from fhir_bridge.domain.resources import Identifier, Reference
from fhir_bridge.translators import reference_codec


class TestEncode:
    """Test building references from a type tag and an identifier."""

    @pytest.mark.parametrize("resource_type", sorted(KNOWN_RESOURCE_TYPES))
    def test_encode_known_types(self, resource_type):
        """Test every known tag produces '<type>/<id>' with the type set."""
        ref = reference_codec.encode(resource_type, "abc-123")

        assert ref.reference == f"{resource_type}/abc-123"
        assert ref.type == resource_type
        assert ref.display is None

    def test_encode_with_display(self):
        """Test the display text is carried on the reference."""
        ref = reference_codec.encode("Location", "loc-1", display="Ward 3")

        assert ref.display == "Ward 3"

    def test_encode_unknown_type_rejected(self):
        """Test that a tag outside the known set is refused."""
        with pytest.raises(ValueError) as exc_info:
            reference_codec.encode("Spaceship", "abc")

        assert "Spaceship" in str(exc_info.value)


class TestDecode:
    """Test extracting identifiers from references."""

    def test_decode_none(self):
        """Test an absent reference decodes to None."""
        assert reference_codec.decode(None) is None

    def test_decode_relative_reference(self):
        """Test a plain '<type>/<id>' target."""
        ref = Reference(reference="Observation/xyz")

        assert reference_codec.decode(ref) == "xyz"

    def test_decode_absolute_reference_with_history(self):
        """Test an absolute URL with a version suffix."""
        ref = Reference(reference="http://example.com/fhir/Condition/abc/_history/1")

        assert reference_codec.decode(ref, "Condition") == "abc"

    def test_explicit_identifier_wins(self):
        """Test the embedded identifier value takes precedence over the target."""
        ref = Reference(
            reference="Patient/from-target",
            type="Patient",
            identifier=Identifier(value="from-identifier"),
        )

        assert reference_codec.decode(ref, "Patient") == "from-identifier"

    def test_identifier_without_target(self):
        """Test an identifier alone is enough to decode."""
        ref = Reference(identifier=Identifier(value="only-identifier"))

        assert reference_codec.decode(ref, "Patient") == "only-identifier"

    def test_target_for_other_type_is_absent(self):
        """Test a target pointing at another resource type does not decode."""
        ref = Reference(reference="Practitioner/123")

        assert reference_codec.decode(ref, "Patient") is None

    @pytest.mark.parametrize("target", [
        "not-a-reference",
        "Patient/",
        "/123",
        "Patient//123",
        "Patient/123/extra/parts",
        "///",
        "Patient/123/_history/",
        "http://",
        "patient/123",
        None,
    ])
    def test_malformed_targets_never_raise(self, target):
        """Test malformed targets degrade to None instead of raising."""
        ref = Reference(reference=target, type="Patient")

        assert reference_codec.decode(ref, "Patient") is None

    @pytest.mark.parametrize("target", [
        "Patient/a/b/c/d",
        "a/b/c",
        "Encounter/Patient/123",
        "Patient/123/",
    ])
    def test_extra_separators_return_value_or_none(self, target):
        """Test targets with extra separators decode without raising."""
        result = reference_codec.decode(Reference(reference=target))

        assert result is None or isinstance(result, str)

    @pytest.mark.parametrize("target", ["", "   ", "/", None])
    def test_blank_target_strings(self, target):
        """Test blank target strings parse to no resource type."""
        assert reference_codec.reference_to_type(target) is None


class TestReferenceType:
    """Test resource-type helpers."""

    def test_reference_to_type(self):
        """Test the tag is parsed out of a target string."""
        assert reference_codec.reference_to_type("Encounter/enc-1") == "Encounter"
        assert reference_codec.reference_to_type("http://x.org/fhir/Patient/p/_history/2") == "Patient"
        assert reference_codec.reference_to_type("garbage") is None
        assert reference_codec.reference_to_type(None) is None

    def test_get_reference_type_prefers_explicit_type(self):
        """Test the explicit type field wins over the parsed target."""
        ref = Reference(reference="Patient/123", type="Practitioner")

        assert reference_codec.get_reference_type(ref) == "Practitioner"

    def test_get_reference_type_from_target(self):
        """Test the type is parsed from the target when not set."""
        assert reference_codec.get_reference_type(Reference(reference="Location/1")) == "Location"
        assert reference_codec.get_reference_type(None) is None

    def test_is_known_resource_type(self):
        """Test membership in the closed tag set."""
        assert reference_codec.is_known_resource_type("Medication")
        assert not reference_codec.is_known_resource_type("Group")
        assert not reference_codec.is_known_resource_type(None)


class TestValidateType:
    """Test type validation of inbound references."""

    def test_matching_type_passes(self):
        """Test a reference of the expected type is accepted."""
        reference_codec.validate_type(Reference(reference="Patient/1", type="Patient"), "Patient")

    def test_missing_type_passes(self):
        """Test a reference without a type tag is never rejected."""
        reference_codec.validate_type(Reference(reference="Practitioner/1"), "Patient")
        reference_codec.validate_type(Reference(), "Patient")

    def test_none_passes(self):
        """Test an absent reference is accepted."""
        reference_codec.validate_type(None, "Patient")

    def test_mismatched_type_fails(self):
        """Test a reference typed for another kind is rejected with details."""
        ref = Reference(reference="Practitioner/1", type="Practitioner")

        with pytest.raises(InvalidReferenceTypeError) as exc_info:
            reference_codec.validate_type(ref, "Patient")

        error = exc_info.value
        assert error.expected_type == "Patient"
        assert error.actual_type == "Practitioner"
        assert error.reference == "Practitioner/1"
        assert isinstance(error, ValueError)

    def test_unknown_inbound_type_fails_against_expected(self):
        """Test an unrecognised inbound tag still mismatches the expected one."""
        with pytest.raises(InvalidReferenceTypeError):
            reference_codec.validate_type(Reference(reference="Foo/1", type="Foo"), "Patient")
