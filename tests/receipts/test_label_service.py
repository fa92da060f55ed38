from __future__ import annotations

from contextlib import contextmanager

import pytest

from hr_backoffice.core.enums import DeleteOutcome
from hr_backoffice.core.exceptions import ConflictError, NotFoundError, ValidationError
from hr_backoffice.receipts.label_service import LabelService
from hr_backoffice.receipts.model import Label


class FakeTx:
    @contextmanager
    def transaction(self):
        yield


class InMemoryLabels:
    def __init__(self):
        self.rows: dict[int, Label] = {}
        self.references: dict[int, int] = {}
        self._next_id = 1

    def create(self, *, name, description, color):
        label_id = self._next_id
        self._next_id += 1
        self.rows[label_id] = Label(label_id, name, description, color, True)
        return label_id

    def get(self, *, label_id):
        return self.rows.get(label_id)

    def get_by_name(self, *, name):
        return next((label for label in self.rows.values() if label.name == name), None)

    def update(self, *, label_id, name, description, color, is_active):
        self.rows[label_id] = Label(label_id, name, description, color, is_active)

    def count_line_item_references(self, *, label_id):
        return self.references.get(label_id, 0)

    def delete(self, *, label_id):
        return self.rows.pop(label_id, None) is not None


@pytest.fixture()
def labels():
    return InMemoryLabels()


@pytest.fixture()
def service(labels):
    return LabelService(labels, FakeTx())


def test_create_trims_and_rejects_duplicates(service):
    label = service.create(name="  Stationery ", color=" #112233 ")

    assert (label.name, label.color, label.is_active) == ("Stationery", "#112233", True)
    with pytest.raises(ConflictError):
        service.create(name="Stationery")


def test_create_requires_name(service):
    with pytest.raises(ValidationError):
        service.create(name="   ")


def test_update_keeps_fields_not_given(service):
    label = service.create(name="Snacks", description="Pantry snacks", color="#ff0000")

    updated = service.update(label.label_id, color="#00ff00")

    assert updated.name == "Snacks"
    assert updated.description == "Pantry snacks"
    assert updated.color == "#00ff00"


def test_referenced_label_is_deactivated_not_deleted(service, labels):
    label = service.create(name="Snacks")
    labels.references[label.label_id] = 2

    result = service.delete(label.label_id)

    assert result.outcome == DeleteOutcome.DEACTIVATED
    assert result.record.is_active is False
    assert label.label_id in labels.rows


def test_unreferenced_label_is_deleted(service, labels):
    label = service.create(name="Snacks")

    result = service.delete(label.label_id)

    assert result.deleted
    assert labels.rows == {}
    with pytest.raises(NotFoundError):
        service.get(label.label_id)
