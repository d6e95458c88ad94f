from __future__ import annotations

import pytest

from src.domain.value_objects.custom_field import (
    CustomFieldDefinition,
    CustomFieldError,
    CustomFieldType,
    validate_custom_data,
)
from src.domain.value_objects.role import Role
from src.domain.value_objects.stage import (
    NEXT_STAGE,
    STAGE_ORDER,
    Stage,
    allowed_targets,
    next_stage,
    parse_stage,
)


def test_next_stage_follows_production_order():
    for current, following in zip(STAGE_ORDER, STAGE_ORDER[1:]):
        assert next_stage(current) is following
    assert NEXT_STAGE[Stage.FINALIZADO] is None


def test_unlocated_lot_enters_through_entry_stages_only():
    assert allowed_targets(Stage.SIN_UBICACION) == {Stage.CRIA}
    assert allowed_targets(Stage.SIN_UBICACION, (Stage.CRIA, Stage.ENGORDE)) == {
        Stage.CRIA,
        Stage.ENGORDE,
    }


def test_non_adjacent_targets_are_not_allowed():
    assert allowed_targets(Stage.CRIA) == {Stage.ENGORDE}
    assert Stage.MATADERO not in allowed_targets(Stage.CRIA)
    assert allowed_targets(Stage.DISTRIBUCION) == {Stage.FINALIZADO}
    assert allowed_targets(Stage.FINALIZADO) == set()


def test_only_zone_stages_are_physical():
    assert not Stage.SIN_UBICACION.is_physical
    assert not Stage.FINALIZADO.is_physical
    assert Stage.SECADERO.is_physical


def test_parse_stage_rejects_unknown_names():
    assert parse_stage("engorde") is Stage.ENGORDE
    with pytest.raises(ValueError):
        parse_stage("curado")


def test_role_claim_fallback_is_read_only():
    assert Role.from_claim("manager") is Role.MANAGER
    assert Role.from_claim(None) is Role.WORKER
    assert not Role.WORKER.can_move()
    assert Role.MANAGER.can_move() and not Role.MANAGER.can_delete()


FIELDS = [
    CustomFieldDefinition(key="farm", label="Farm", required=True),
    CustomFieldDefinition(key="weight", label="Weight", type=CustomFieldType.NUMBER),
    CustomFieldDefinition(key="born", label="Born", type=CustomFieldType.DATE),
    CustomFieldDefinition(
        key="breed", label="Breed", type=CustomFieldType.SELECT, options=("puro", "cruzado")
    ),
]


def test_custom_data_is_coerced_by_type():
    cleaned = validate_custom_data(
        FIELDS, {"farm": "Dehesa Norte", "weight": "102.5", "born": "2024-01-03", "breed": "puro"}
    )
    assert cleaned == {
        "farm": "Dehesa Norte",
        "weight": 102.5,
        "born": "2024-01-03",
        "breed": "puro",
    }


@pytest.mark.parametrize(
    ("data", "key"),
    [
        ({}, "farm"),
        ({"farm": "x", "unknown": 1}, "unknown"),
        ({"farm": "x", "weight": "heavy"}, "weight"),
        ({"farm": "x", "born": "03/01/2024"}, "born"),
        ({"farm": "x", "breed": "otro"}, "breed"),
    ],
)
def test_invalid_custom_data_names_the_field(data, key):
    with pytest.raises(CustomFieldError) as exc_info:
        validate_custom_data(FIELDS, data)
    assert exc_info.value.key == key
