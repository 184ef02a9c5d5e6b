import pytest

from ledgerbook.common.exceptions import NotFoundError, ValidationError
from ledgerbook.services.institute_service import (
    create_institute,
    get_all_institutes,
    institute_exists,
    require_institute,
)
from tests.conftest import OTHER_TENANT, TENANT


def test_institute_exists_is_tenant_scoped(db, institute):
    assert institute.id.startswith("INS-")
    assert institute_exists(db, TENANT, institute.id)
    assert not institute_exists(db, OTHER_TENANT, institute.id)
    assert not institute_exists(db, TENANT, "INS-MISSING")

    with pytest.raises(NotFoundError):
        require_institute(db, OTHER_TENANT, institute.id)


def test_list_and_search_institutes(db, institute, second_institute):
    institutes, total = get_all_institutes(db, TENANT)
    assert total == 2
    assert [i.name for i in institutes] == ["Central Mahallu", "North Madrasa"]

    found, total = get_all_institutes(db, TENANT, search="madrasa")
    assert [i.name for i in found] == ["North Madrasa"]


def test_institute_name_required(db):
    with pytest.raises(ValidationError):
        create_institute(db, TENANT, " ")
