from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_payload
from errors import DuplicateEmail, InvalidPagination, RegistrationNotFound, StorageError, ValidationError
from extensions import db
from models import ProjectRegistration
from services import registration_store
from services.registration_store import RegistrationFilters, parse_pagination
from services.validator import validate_registration


@pytest.fixture
def dataset(create_registration):
    """Five mixed registrations, oldest first"""
    rows = [
        dict(fullName="Asha Menon", email="asha@college.edu", projectTitle="Smart Irrigation System",
             collegeName="Model Engineering College", batchType="B.Tech"),
        dict(fullName="Bala Krishnan", email="bala@college.edu", projectTitle="Face Recognition Attendance",
             collegeName="NIT Calicut", batchType="M.Tech"),
        dict(fullName="Chitra Nair", email="chitra@uni.edu", projectTitle="Smart Parking Assistant",
             collegeName="Model Engineering College", batchType="MCA"),
        dict(fullName="Deepak Rao", email="deepak@uni.edu", projectTitle="Hospital Portal",
             collegeName="CET Trivandrum", batchType="B.Tech",
             registrationType="Group Project", groupMembers=[{"name": "Esha", "phoneNumber": "9876500001"}]),
        dict(fullName="Farah Khan", email="farah@uni.edu", projectTitle="Smart Grid Analytics",
             collegeName="NIT Calicut", batchType="Diploma"),
    ]
    created = [create_registration(**row) for row in rows]

    base = created[0].created_at
    for offset, registration in enumerate(created):
        registration.created_at = base + timedelta(minutes=offset)
    statuses = ["approved", "approved", "rejected", "pending", "approved"]
    for registration, status in zip(created, statuses):
        registration.status = status
    db.session.commit()
    return created


def test_create_assigns_identifiers_and_defaults(create_registration):
    registration = create_registration()
    assert registration.id is not None
    assert registration.project_id == f"PROJ-{registration.id:06d}"
    assert registration.status == "pending"
    assert registration.group_members == []
    assert registration.created_at == registration.updated_at


def test_find_by_id_round_trip_matches_normalized_input(app):
    record = validate_registration(
        make_payload(fullName=" Jane Doe ", email=" JANE@X.com ", phoneNumber="98765 43210"),
        require_file=False,
    )
    created = registration_store.create(record)

    found = registration_store.find_by_id(created.id)
    assert found.full_name == "Jane Doe"
    assert found.email == "jane@x.com"
    assert found.phone_number == "9876543210"
    assert found.college_name == "ABC"
    assert found.batch_type == "B.Tech"


def test_find_by_id_missing(app):
    with pytest.raises(RegistrationNotFound):
        registration_store.find_by_id(999)


def test_find_by_email_is_case_insensitive(create_registration):
    create_registration(email="jane@x.com")
    assert registration_store.find_by_email("  JANE@X.COM ") is not None
    assert registration_store.find_by_email("other@x.com") is None


def test_unique_constraint_maps_to_duplicate_email(create_registration):
    """The pre-check is skipped here, so only the storage constraint can catch it."""
    create_registration(email="jane@x.com")
    record = validate_registration(make_payload(email="Jane@X.com"), require_file=False)

    with pytest.raises(DuplicateEmail):
        registration_store.create(record)
    assert ProjectRegistration.query.count() == 1


def test_filters_status(dataset):
    results = registration_store.find_with_filters(RegistrationFilters(status="approved"))
    assert len(results) == 3
    assert {r.status for r in results} == {"approved"}


def test_filters_status_and_search_narrow(dataset):
    results = registration_store.find_with_filters(RegistrationFilters(status="approved", search="smart"))
    assert sorted(r.full_name for r in results) == ["Asha Menon", "Farah Khan"]


def test_search_matches_any_of_four_columns(dataset):
    by_college = registration_store.find_with_filters(RegistrationFilters(search="nit calicut"))
    assert {r.full_name for r in by_college} == {"Bala Krishnan", "Farah Khan"}

    by_email = registration_store.find_with_filters(RegistrationFilters(search="@UNI.edu"))
    assert len(by_email) == 3

    by_name = registration_store.find_with_filters(RegistrationFilters(search="chitra"))
    assert [r.full_name for r in by_name] == ["Chitra Nair"]


def test_batch_and_registration_type_filters(dataset):
    btech = registration_store.find_with_filters(RegistrationFilters(batch_type="B.Tech"))
    assert {r.full_name for r in btech} == {"Asha Menon", "Deepak Rao"}

    group = registration_store.find_with_filters(RegistrationFilters(registration_type="Group Project"))
    assert [r.full_name for r in group] == ["Deepak Rao"]
    assert group[0].group_members == [{"name": "Esha", "phoneNumber": "9876500001"}]


def test_empty_filters_are_ignored(dataset):
    results = registration_store.find_with_filters(RegistrationFilters(search="", status="", batch_type=""))
    assert len(results) == 5


def test_default_order_is_newest_first(dataset):
    results = registration_store.find_with_filters()
    assert [r.full_name for r in results][0] == "Farah Khan"
    assert [r.full_name for r in results][-1] == "Asha Menon"


def test_sort_by_name_ascending(dataset):
    results = registration_store.find_with_filters(RegistrationFilters(sort_by="fullName", sort_order="asc"))
    assert [r.full_name for r in results] == sorted(r.full_name for r in results)


def test_unknown_sort_column_falls_back_to_created_at(dataset):
    results = registration_store.find_with_filters(RegistrationFilters(sort_by="password"))
    assert results[0].full_name == "Farah Khan"


def test_count_ignores_limit_and_offset(dataset):
    filters = RegistrationFilters(status="approved", limit=1, offset=1)
    assert len(registration_store.find_with_filters(filters)) == 1
    assert registration_store.count_with_filters(filters) == 3


def test_paginate_pages(app, create_registration):
    for i in range(25):
        create_registration(email=f"student{i}@x.com")

    first = registration_store.paginate(RegistrationFilters(), page=1, limit=10)
    assert len(first.items) == 10
    assert first.total_pages == 3
    assert first.has_next_page and not first.has_prev_page

    last = registration_store.paginate(RegistrationFilters(), page=3, limit=10)
    assert len(last.items) == 5
    assert not last.has_next_page and last.has_prev_page
    assert last.pagination()["totalCount"] == 25


def test_paginate_clamps_limit(app, create_registration):
    create_registration()
    assert registration_store.paginate(RegistrationFilters(), page=1, limit=1000).limit == 100
    assert registration_store.paginate(RegistrationFilters(), page=1, limit=0).limit == 1


def test_update_status_bumps_updated_at(create_registration):
    registration = create_registration()
    created_at = registration.created_at

    registration_store.update_status(registration.id, "rejected")

    found = registration_store.find_by_id(registration.id)
    assert found.status == "rejected"
    assert found.updated_at > created_at
    assert found.created_at == created_at


def test_update_status_missing(app):
    with pytest.raises(RegistrationNotFound):
        registration_store.update_status(42, "approved")


def test_update_fields_drops_unlisted_fields(create_registration):
    registration = create_registration()
    original_email = registration.email

    updated = registration_store.update_fields(registration.id, {
        "projectTitle": "Drip Irrigation Controller",
        "email": "hacker@x.com",
        "projectId": "PROJ-999999",
    })

    assert updated.project_title == "Drip Irrigation Controller"
    assert updated.email == original_email
    assert updated.project_id == f"PROJ-{registration.id:06d}"


def test_delete_returns_record(create_registration):
    registration = create_registration()
    registration_id = registration.id

    deleted = registration_store.delete(registration_id)

    assert deleted["id"] == registration_id
    assert deleted["email"] == "jane@x.com"
    with pytest.raises(RegistrationNotFound):
        registration_store.find_by_id(registration_id)


def test_delete_missing(app):
    with pytest.raises(RegistrationNotFound):
        registration_store.delete(7)


def test_stats(dataset):
    assert registration_store.get_stats() == {"total": 5, "pending": 1, "approved": 3, "rejected": 1}


def test_stats_empty(app):
    assert registration_store.get_stats() == {"total": 0, "pending": 0, "approved": 0, "rejected": 0}


def test_date_range_filter(dataset):
    for registration, day in zip(dataset, [1, 2, 3, 4, 5]):
        registration.created_at = registration.created_at.replace(year=2026, month=3, day=day, hour=23)
    db.session.commit()

    filters = RegistrationFilters.from_args({"dateFrom": "2026-03-02", "dateTo": "2026-03-04"})
    results = registration_store.find_with_filters(filters)

    assert sorted(r.full_name for r in results) == ["Bala Krishnan", "Chitra Nair", "Deepak Rao"]


def test_filters_from_args_rejects_bad_date():
    with pytest.raises(ValidationError):
        RegistrationFilters.from_args({"dateTo": "04/03/2026"})


def test_create_timestamps_match_after_reload(create_registration):
    registration = create_registration()
    registration_id = registration.id
    db.session.expire_all()

    found = registration_store.find_by_id(registration_id)
    assert found.project_id == f"PROJ-{registration_id:06d}"
    assert found.updated_at == found.created_at


def test_find_by_id_out_of_range_is_not_found(app):
    with pytest.raises(RegistrationNotFound):
        registration_store.find_by_id(10 ** 20)
    with pytest.raises(RegistrationNotFound):
        registration_store.find_by_id(0)


def test_find_by_id_wraps_database_errors(create_registration, monkeypatch):
    registration = create_registration()

    def broken_get(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(db.session, "get", broken_get)
    with pytest.raises(StorageError):
        registration_store.find_by_id(registration.id)


def test_search_treats_wildcards_literally(create_registration):
    create_registration(email="a@x.com", projectTitle="Data_Lake Builder")
    create_registration(email="b@x.com", projectTitle="DataXLake Builder")
    create_registration(email="c@x.com", projectTitle="100% Solar Campus")

    underscore = registration_store.find_with_filters(RegistrationFilters(search="data_lake"))
    assert [r.project_title for r in underscore] == ["Data_Lake Builder"]

    percent = registration_store.find_with_filters(RegistrationFilters(search="0% s"))
    assert [r.project_title for r in percent] == ["100% Solar Campus"]


def test_parse_pagination_rejects_unbindable_offset():
    with pytest.raises(InvalidPagination):
        parse_pagination({"page": str(10 ** 20), "limit": "10"})
    assert parse_pagination({"page": "3", "limit": "10"}) == (3, 10)
