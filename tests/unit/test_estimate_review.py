"""Unit tests for the estimate review session."""

import pytest

from config.errors import EmptyEstimateError, ErrorCode, ServiceNotFoundError, ValidationError
from models.service_item import Priority, ServicePrice
from services.estimate_review import EstimateReview


@pytest.fixture
def review(breakdown_report, id_factory) -> EstimateReview:
    return EstimateReview.from_report(breakdown_report, id_factory=id_factory)


class TestFromReport:
    """Tests for seeding a review from report text."""

    def test_seeds_parsed_services(self, review):
        assert [s.name for s in review.services] == ["Deep Cleaning & Wash", "Fringe Repair"]
        assert review.total() == 745.0

    def test_catalog_fills_zero_prices(self, id_factory):
        report = "Itemized list\n- Persian Binding: $0\n- Blocking: $45.00"
        catalog = [
            ServicePrice(service_name="Persian Binding", unit_price=14.0),
            ServicePrice(service_name="Blocking", unit_price=99.0),
        ]

        review = EstimateReview.from_report(report, catalog=catalog, id_factory=id_factory)

        assert [s.unit_price for s in review.services] == [14.0, 45.0]

    def test_empty_report(self, id_factory):
        review = EstimateReview.from_report("Nothing to see here.", id_factory=id_factory)

        assert review.services == []
        assert review.total() == 0.0


class TestEditing:
    """Tests for add/update/remove."""

    def test_add_service_defaults(self, review):
        service = review.add_service()

        assert service.id == "svc-3"
        assert service.name == "New Service"
        assert service.unit_price == 0.0
        assert service.priority == Priority.MEDIUM
        assert review.services[-1].id == "svc-3"

    def test_add_service_classifies_priority(self, review):
        service = review.add_service(name="Scotchgard", unit_price=60.0)

        assert service.priority == Priority.LOW
        assert review.total() == 805.0

    def test_add_service_invalid(self, review):
        with pytest.raises(ValidationError) as exc_info:
            review.add_service(name="Padding", quantity=0)

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert len(review.services) == 2

    def test_update_service(self, review):
        updated = review.update_service("svc-2", unitPrice=200.0, quantity=2)

        assert updated.id == "svc-2"
        assert review.services[1].unit_price == 200.0
        assert review.total() == 960.0

    def test_update_unknown_service(self, review):
        with pytest.raises(ServiceNotFoundError) as exc_info:
            review.update_service("missing", unit_price=1.0)

        assert exc_info.value.code == ErrorCode.SERVICE_NOT_FOUND

    @pytest.mark.parametrize("updates", [
        {"unit_price": -5},
        {"quantity": 0},
        {"colour": "red"},
    ])
    def test_update_invalid(self, review, updates):
        with pytest.raises(ValidationError):
            review.update_service("svc-1", **updates)

        assert review.services[0].unit_price == 560.0

    def test_remove_service(self, review):
        review.remove_service("svc-1")

        assert [s.id for s in review.services] == ["svc-2"]
        assert review.total() == 185.0

    def test_remove_unknown_service(self, review):
        with pytest.raises(ServiceNotFoundError):
            review.remove_service("missing")

    def test_services_is_a_copy(self, review):
        review.services.clear()

        assert len(review.services) == 2


class TestFeedback:
    """Tests for edits_needing_feedback."""

    def test_no_edits(self, review):
        assert review.edits_needing_feedback() == []

    def test_price_change_over_threshold(self, review):
        review.update_service("svc-1", unit_price=700.0)
        review.update_service("svc-2", unit_price=190.0)

        edits = review.edits_needing_feedback()

        assert [e.service_id for e in edits] == ["svc-1"]
        assert edits[0].original_price == 560.0
        assert edits[0].edited_price == 700.0

    def test_name_change(self, review):
        review.update_service("svc-2", name="Hand Fringe")

        edits = review.edits_needing_feedback()

        assert len(edits) == 1
        assert edits[0].original_name == "Fringe Repair"
        assert edits[0].edited_name == "Hand Fringe"

    def test_custom_threshold(self, review):
        review.update_service("svc-2", unit_price=190.0)

        assert len(review.edits_needing_feedback(threshold=0.01)) == 1

    def test_added_and_removed_ignored(self, review):
        review.add_service(name="Padding", unit_price=40.0)
        review.remove_service("svc-1")

        assert review.edits_needing_feedback() == []


class TestApprove:
    """Tests for approve."""

    def test_approve(self, review):
        estimate = review.approve(job_id="job-1", inspection_id="insp-1", approved_by="staff-1")

        assert estimate.total_amount == 745.0
        assert estimate.job_id == "job-1"
        assert estimate.approved_by_staff_user_id == "staff-1"
        assert estimate.approved_by_staff_at is not None
        assert [s.id for s in estimate.services] == ["svc-1", "svc-2"]

    def test_approve_total_matches_review_total(self, review):
        review.update_service("svc-1", quantity=3, unit_price=33.33)

        estimate = review.approve(job_id="job-1", inspection_id="insp-1")

        assert estimate.total_amount == review.total() == 284.99

    def test_approve_empty(self, id_factory):
        review = EstimateReview(id_factory=id_factory)

        with pytest.raises(EmptyEstimateError) as exc_info:
            review.approve(job_id="job-1", inspection_id="insp-1")

        assert exc_info.value.code == ErrorCode.EMPTY_ESTIMATE
