"""Tests for the dictionary-backed entity store."""

import threading

import pytest

from fhir_bridge.adapters.lookup import InMemoryEntityStore
from fhir_bridge.domain import models
from fhir_bridge.domain.ports import LookupPortError


class TestInMemoryEntityStore:
    """Test lookups, creation and updates in the in-memory store."""

    def test_seeded_lookup(self, patient):
        """Test seeded entities are found by uuid and unknown ids are None."""
        store = InMemoryEntityStore([patient], name="patient")

        assert store.get("patient-uuid") is patient
        assert store.get("unknown") is None
        assert "patient-uuid" in store
        assert len(store) == 1

    def test_create_duplicate_rejected(self, patient):
        """Test creating an existing uuid fails."""
        store = InMemoryEntityStore([patient], name="patient")

        with pytest.raises(LookupPortError) as exc_info:
            store.create(patient)

        assert exc_info.value.operation == "create"
        assert exc_info.value.details == {"uuid": "patient-uuid"}

    def test_update_replaces_entity(self, patient):
        """Test updates replace the stored entity."""
        store = InMemoryEntityStore([patient], name="patient")
        changed = patient.model_copy(update={"dead": True})

        store.update(changed)

        assert store.get("patient-uuid").dead is True

    def test_update_unknown_rejected(self):
        """Test updating an unknown uuid fails."""
        store = InMemoryEntityStore(name="location")

        with pytest.raises(LookupPortError) as exc_info:
            store.update(models.Location(uuid="nowhere"))

        assert exc_info.value.operation == "update"

    def test_concurrent_creates(self):
        """Test concurrent writers do not lose entities."""
        store = InMemoryEntityStore(name="location")

        def create_batch(prefix):
            for i in range(50):
                store.create(models.Location(uuid=f"{prefix}-{i}"))

        threads = [threading.Thread(target=create_batch, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 200

    def test_repr(self, location):
        """Test the repr shows name and size."""
        store = InMemoryEntityStore([location], name="location")

        assert repr(store) == "InMemoryEntityStore(name='location', size=1)"
