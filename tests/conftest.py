import pytest

from tests.factories import FakeAssessmentStore, FakeChecklistStore


@pytest.fixture
def checklist_store():
    return FakeChecklistStore()


@pytest.fixture
def assessment_store():
    return FakeAssessmentStore()
