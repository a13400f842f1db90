"""
折扣组管理服务测试
"""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import (
    DatabaseError,
    DiscountGroupNotFoundError,
    DuplicateDiscountGroupError,
    ValidationError,
)
from ..models.discount import DiscountGroupCreate, DiscountGroupUpdate, DiscountSource
from ..services.discount_group_repository import DiscountGroupRepository


class TestDiscountGroupService:
    """折扣组管理服务测试"""

    def test_create_group(self, service, test_db):
        group = service.create_group(
            DiscountGroupCreate(name="  Gast ", description="Gäste", discount_percentage=5),
            actor="admin@mensa.test",
        )

        assert group.name == "Gast"
        assert group.discount_percentage == 5
        assert group.created_at is not None

        log_row = test_db.execute_one(
            "SELECT actor, action, detail_json FROM logs WHERE action = 'discount_group_create'"
        )
        assert log_row[0] == "admin@mensa.test"
        assert json.loads(log_row[2])["group_id"] == group.id

    def test_list_groups_ordered_by_name(self, service, sample_groups):
        assert [g.name for g in service.list_groups()] == ["Externe", "Lehrer", "Schüler"]

    def test_create_duplicate_name_rejected(self, service, sample_groups):
        with pytest.raises(DuplicateDiscountGroupError):
            service.create_group(
                DiscountGroupCreate(name="schüler", description="dup", discount_percentage=1)
            )

        assert len(service.list_groups()) == 3

    @pytest.mark.parametrize("payload", [
        {"name": "", "description": "x", "discount_percentage": 10},
        {"name": "   ", "description": "x", "discount_percentage": 10},
        {"name": "x" * 51, "description": "x", "discount_percentage": 10},
        {"name": "Gast", "description": "", "discount_percentage": 10},
        {"name": "Gast", "description": "x" * 501, "discount_percentage": 10},
        {"name": "Gast", "description": "x", "discount_percentage": -0.1},
        {"name": "Gast", "description": "x", "discount_percentage": 100.1},
    ])
    def test_create_payload_validation(self, payload):
        with pytest.raises(PydanticValidationError):
            DiscountGroupCreate(**payload)

    def test_update_group(self, service, sample_groups):
        student = sample_groups[0]

        updated = service.update_group(
            student.id, DiscountGroupUpdate(discount_percentage=20), actor="admin"
        )

        assert updated.name == "Schüler"
        assert updated.discount_percentage == 20
        assert updated.updated_at >= student.updated_at

    def test_update_rename(self, service, sample_groups):
        updated = service.update_group(sample_groups[2].id, DiscountGroupUpdate(name="Gäste"))

        assert updated.name == "Gäste"
        assert [g.name for g in service.list_groups()] == ["Gäste", "Lehrer", "Schüler"]

    def test_update_same_name_different_case(self, service, sample_groups):
        updated = service.update_group(sample_groups[1].id, DiscountGroupUpdate(name="LEHRER"))

        assert updated.name == "LEHRER"

    def test_update_rename_onto_existing_rejected(self, service, sample_groups):
        with pytest.raises(DuplicateDiscountGroupError):
            service.update_group(sample_groups[0].id, DiscountGroupUpdate(name="Lehrer"))

    def test_update_unknown_group(self, service):
        with pytest.raises(DiscountGroupNotFoundError):
            service.update_group("missing", DiscountGroupUpdate(discount_percentage=1))

    def test_update_without_fields(self, service, sample_groups):
        with pytest.raises(ValidationError):
            service.update_group(sample_groups[0].id, DiscountGroupUpdate())

    def test_delete_group(self, service, sample_groups, test_db):
        service.delete_group(sample_groups[1].id, actor="admin")

        assert [g.name for g in service.list_groups()] == ["Externe", "Schüler"]
        assert test_db.execute_one(
            "SELECT COUNT(*) FROM logs WHERE action = 'discount_group_delete'"
        )[0] == 1

    def test_delete_unknown_group(self, service):
        with pytest.raises(DiscountGroupNotFoundError):
            service.delete_group("missing")

    def test_database_rejects_out_of_range_percentage(self, test_db):
        repository = DiscountGroupRepository(test_db)

        with pytest.raises(DatabaseError):
            with test_db.transaction() as conn:
                repository.insert(conn, "Kaputt", "x", 150)

        assert repository.list_ordered_by_name() == []


class TestCacheInvalidation:
    """管理操作后缓存失效"""

    def test_create_invalidates_cache(self, service, engine, sample_groups):
        assert engine.find_group_by_name("Gast") is None
        assert engine.cache.is_populated

        service.create_group(DiscountGroupCreate(name="Gast", description="x", discount_percentage=5))

        assert not engine.cache.is_populated
        assert engine.find_group_by_name("gast").discount_percentage == 5

    def test_update_invalidates_cache(self, service, engine, sample_groups):
        assert engine.calculate_discount_by_account_type(100, "Student").final_price == pytest.approx(85)

        service.update_group(sample_groups[0].id, DiscountGroupUpdate(discount_percentage=25))

        result = engine.calculate_discount_by_account_type(100, "Student")
        assert result.final_price == pytest.approx(75)
        assert result.source == DiscountSource.LIVE

    def test_delete_invalidates_cache(self, service, engine, sample_groups):
        assert engine.find_group_by_name("Lehrer") is not None

        service.delete_group(sample_groups[1].id)

        assert engine.find_group_by_name("Lehrer") is None

    def test_failed_mutation_keeps_cache(self, service, engine, sample_groups):
        engine.list_discount_groups()
        generation = engine.cache.generation

        with pytest.raises(DuplicateDiscountGroupError):
            service.create_group(DiscountGroupCreate(name="Lehrer", description="x", discount_percentage=1))
        with pytest.raises(DiscountGroupNotFoundError):
            service.delete_group("missing")

        assert engine.cache.is_populated
        assert engine.cache.generation == generation

    def test_engine_reads_database(self, engine, sample_groups):
        result = engine.calculate_discount_by_group_name(200, "SCHÜLER")

        assert result.group_name == "Schüler"
        assert result.final_price == pytest.approx(170)
        assert result.source == DiscountSource.LIVE

    def test_engine_falls_back_when_table_missing(self, engine, test_db, sample_groups):
        test_db.execute_query("DROP TABLE discount_groups")

        result = engine.calculate_discount_by_account_type(100, "Teacher")

        assert result.source == DiscountSource.FALLBACK
        assert result.final_price == pytest.approx(90)
        assert not engine.cache.is_populated
