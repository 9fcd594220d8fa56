"""Unit tests for the default pydantic instantiator/validator pair.

Instantiation is best-effort and never raises; validation turns pydantic's
error list into ViolationRecord objects, one per failing top-level property.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from response_guard.validation import PydanticInstantiator, PydanticValidator, ViolationRecord
from response_guard.validation.pydantic_backend import UNKNOWN_VALUE


class Cat(BaseModel):
    id: int
    name: str


class Owner(BaseModel):
    name: str
    cats: List[Cat] = []


class Tagged(BaseModel):
    tag_id: int = Field(alias="tagId")


class Named(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _not_reserved(cls, value, info):
        reserved = (info.context or {}).get("reserved", ())
        if value in reserved:
            raise ValueError(f"{value} is reserved")
        return value


@dataclass
class CatRow:
    id: int
    name: str


# ------------------------------------------------------------------
# Instantiation
# ------------------------------------------------------------------


def test_instantiate_mapping_builds_unvalidated_instance():
    cat = PydanticInstantiator().instantiate(Cat, {"id": "x", "name": 5})

    assert isinstance(cat, Cat)
    assert cat.id == "x"
    assert cat.name == 5


def test_instantiate_preserves_collection_cardinality():
    cats = PydanticInstantiator().instantiate(Cat, ({"id": 1, "name": "a"}, {"id": 2, "name": "b"}))

    assert isinstance(cats, list)
    assert [cat.id for cat in cats] == [1, 2]


def test_instantiate_keeps_existing_instances():
    existing = Cat(id=1, name="a")

    assert PydanticInstantiator().instantiate(Cat, existing) is existing


def test_instantiate_converts_dataclasses_and_other_models():
    instantiator = PydanticInstantiator()

    from_row = instantiator.instantiate(Cat, CatRow(id=3, name="row"))
    from_model = instantiator.instantiate(Owner, Owner(name="o"))

    assert (from_row.id, from_row.name) == (3, "row")
    assert isinstance(from_model, Owner)


def test_instantiate_returns_unconvertible_values_unchanged():
    assert PydanticInstantiator().instantiate(Cat, 42) == 42
    assert PydanticInstantiator().instantiate(Cat, "cat") == "cat"


def test_instantiate_accepts_aliased_keys():
    tagged = PydanticInstantiator().instantiate(Tagged, {"tagId": 7})

    assert tagged.tag_id == 7


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


async def _validate(shape, value, options=None):
    instance = PydanticInstantiator().instantiate(shape, value)
    return await PydanticValidator().validate(instance, options)


@pytest.mark.anyio
async def test_valid_instance_has_no_violations():
    assert await _validate(Cat, {"id": 1, "name": "cat"}) == []


@pytest.mark.anyio
async def test_lax_mode_accepts_numeric_strings():
    assert await _validate(Cat, {"id": "1", "name": "cat"}) == []


@pytest.mark.anyio
async def test_strict_option_rejects_numeric_strings():
    records = await _validate(Cat, {"id": "1", "name": "cat"}, {"strict": True})

    assert [record.property for record in records] == ["id"]
    assert "int_type" in records[0].constraints


@pytest.mark.anyio
async def test_each_failing_property_gets_one_record():
    records = await _validate(Cat, {"id": "x", "name": 5})

    assert [record.property for record in records] == ["id", "name"]
    assert all(isinstance(record, ViolationRecord) for record in records)
    assert all(record.target is not None for record in records)


@pytest.mark.anyio
async def test_missing_field_is_reported():
    records = await _validate(Cat, {"id": 1})

    assert len(records) == 1
    assert records[0].property == "name"
    assert "missing" in records[0].constraints
    assert records[0].value is None


@pytest.mark.anyio
async def test_skip_missing_properties_ignores_absent_fields():
    assert await _validate(Cat, {"id": 1}, {"skip_missing_properties": True}) == []

    records = await _validate(Cat, {"id": "x"}, {"skip_missing_properties": True})
    assert [record.property for record in records] == ["id"]


@pytest.mark.anyio
async def test_nested_errors_become_children():
    """
    GIVEN: An owner whose second cat has a bad id
    WHEN: The owner is validated
    THEN: One record for 'cats' whose children point at index 1, field 'id'
    """
    records = await _validate(
        Owner,
        {"name": "jon", "cats": [{"id": 1, "name": "a"}, {"id": "bad", "name": "b"}]},
    )

    assert len(records) == 1
    cats = records[0]
    assert cats.property == "cats"
    assert cats.constraints == {}
    assert [child.property for child in cats.children] == ["1"]
    leaf = cats.children[0].children[0]
    assert leaf.property == "id"
    assert leaf.value == "bad"
    assert "int_parsing" in leaf.constraints


@pytest.mark.anyio
async def test_aliased_fields_validate_by_alias():
    assert await _validate(Tagged, {"tagId": 7}) == []

    records = await _validate(Tagged, {"tagId": "seven"})
    assert [record.property for record in records] == ["tagId"]
    assert records[0].value == "seven"


@pytest.mark.anyio
async def test_context_option_reaches_model_validators():
    assert await _validate(Named, {"name": "root"}) == []

    records = await _validate(Named, {"name": "root"}, {"context": {"reserved": ("root",)}})
    assert records[0].property == "name"
    assert "value_error" in records[0].constraints


@pytest.mark.anyio
async def test_non_model_instance_is_an_unknown_value():
    records = await PydanticValidator().validate(42)

    assert len(records) == 1
    assert records[0].property == ""
    assert records[0].value == 42
    assert UNKNOWN_VALUE in records[0].constraints


@pytest.mark.anyio
async def test_unknown_options_are_ignored():
    options: Optional[dict] = {"whitelist": True, "groups": ["admin"]}

    assert await _validate(Cat, {"id": 1, "name": "a"}, options) == []


# ------------------------------------------------------------------
# Typed instantiation & validating the original input
# ------------------------------------------------------------------


class StrictCat(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int


class ValidationAliased(BaseModel):
    tag_id: int = Field(validation_alias="tagId")


class Envelope(BaseModel):
    id: int

    @model_validator(mode="before")
    @classmethod
    def _unwrap(cls, data):
        if isinstance(data, dict) and "payload" in data:
            return data["payload"]
        return data


def test_instantiate_coerces_valid_data_into_typed_instances():
    owner = PydanticInstantiator().instantiate(Owner, {"name": "jon", "cats": [{"id": "1", "name": "a"}]})

    assert isinstance(owner.cats[0], Cat)
    assert owner.cats[0].id == 1


def test_instantiate_builds_nested_models_even_when_invalid():
    """
    GIVEN: An owner whose own name is wrong but whose cats are fine
    WHEN: It is instantiated
    THEN: The bad value is kept verbatim and the cats are still typed
    """
    owner = PydanticInstantiator().instantiate(Owner, {"name": 5, "cats": [{"id": "2", "name": "b"}]})

    assert owner.name == 5
    assert isinstance(owner.cats[0], Cat)
    assert owner.cats[0].id == 2


@pytest.mark.anyio
async def test_forbidden_extra_fields_are_reported():
    records = await _validate(StrictCat, {"id": 1, "secret": "leak"})

    assert [record.property for record in records] == ["secret"]
    assert "extra_forbidden" in records[0].constraints
    assert records[0].value == "leak"


@pytest.mark.anyio
async def test_validation_alias_accepts_conforming_data():
    assert await _validate(ValidationAliased, {"tagId": 7}) == []

    records = await _validate(ValidationAliased, {"tagId": "seven"})
    assert [record.property for record in records] == ["tagId"]


@pytest.mark.anyio
async def test_before_validators_receive_the_original_input():
    assert await _validate(Envelope, {"payload": {"id": 3}}) == []


@pytest.mark.anyio
async def test_instances_built_elsewhere_are_validated_from_their_fields():
    validator = PydanticValidator()

    assert await validator.validate(Cat(id=1, name="a")) == []
    records = await validator.validate(Cat.model_construct(id="x", name="a"))
    assert [record.property for record in records] == ["id"]
    assert await validator.validate(ValidationAliased(tagId=7)) == []


@pytest.mark.anyio
async def test_validated_instance_keeps_no_trace_of_its_input():
    cat = PydanticInstantiator().instantiate(Cat, {"id": 1, "name": "a", "ignored": True})

    await PydanticValidator().validate(cat)

    assert cat == Cat(id=1, name="a")
    assert cat.model_dump() == {"id": 1, "name": "a"}
