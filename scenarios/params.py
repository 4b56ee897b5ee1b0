"""
Scenario parameters — one strongly-typed model per decision type.

The ``type`` field is the discriminator, so a hiring scenario cannot be built
without a salary and an inventory scenario cannot carry store-launch fields.
Raw mappings (API payloads) go through ``parse_scenario_params``, which turns
pydantic's ValidationError into InvalidParameters naming the offending field.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from core.errors import InvalidParameters


class _ScenarioBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    cost: Decimal = Field(default=Decimal("0"), ge=0, description="One-time cost")
    timing: date = Field(description="Activation date, strictly after the evaluation date")
    duration_days: Optional[int] = Field(default=None, gt=0)


class HiringParams(_ScenarioBase):
    """A hire has no one-time cost; recruiting fees belong in a custom scenario."""
    type: Literal["hiring"] = "hiring"
    cost: Decimal = Field(default=Decimal("0"), ge=0, le=0, description="Always 0 for hiring")
    salary: Decimal = Field(ge=0, description="Monthly salary per hire")
    ramp_up_days: int = Field(default=0, ge=0)
    headcount: int = Field(default=1, ge=1)
    expected_revenue_uplift: float = Field(default=0.0, ge=0)


class InventoryParams(_ScenarioBase):
    type: Literal["inventory"] = "inventory"
    sell_through_rate: float = Field(ge=0)
    storage_cost: Decimal = Field(default=Decimal("0"), ge=0)
    storage_period_days: int = Field(default=30, gt=0)


class StoreLaunchParams(_ScenarioBase):
    type: Literal["store_launch"] = "store_launch"
    size_sqft: float = Field(gt=0)
    rent: Decimal = Field(ge=0, description="Monthly rent")
    staffing_estimate: Decimal = Field(default=Decimal("0"), ge=0)
    existing_location_sqft: Optional[float] = Field(default=None, gt=0)
    ramp_up_days: int = Field(default=30, ge=0)


class CustomParams(_ScenarioBase):
    type: Literal["custom"] = "custom"
    initial_cost: Optional[Decimal] = Field(default=None, ge=0)
    recurring_cost: Decimal = Field(default=Decimal("0"), ge=0)
    revenue_multiplier: float = Field(default=0.0, ge=0)
    ramp_days: int = Field(default=0, ge=0)
    operational_changes: Dict[str, float] = Field(default_factory=dict)


ScenarioParams = Annotated[
    Union[HiringParams, InventoryParams, StoreLaunchParams, CustomParams],
    Field(discriminator="type"),
]

_ADAPTER: TypeAdapter = TypeAdapter(ScenarioParams)

_TAGS = ("hiring", "inventory", "store_launch", "custom")

_GUIDANCE = {
    "missing": "supply a value for this field",
    "greater_than_equal": "use a non-negative value",
    "greater_than": "use a positive value",
    "less_than_equal": "this decision type takes no one-time cost; model fees as a custom scenario",
    "union_tag_not_found": f"set 'type' to one of {list(_TAGS)}",
    "union_tag_invalid": f"set 'type' to one of {list(_TAGS)}",
    "extra_forbidden": "remove this field; it does not apply to this decision type",
}


def _error_field(err: Mapping[str, Any]) -> str:
    if err.get("type") in ("union_tag_not_found", "union_tag_invalid"):
        return "type"
    loc = [str(p) for p in err.get("loc", ())]
    # discriminated unions prefix the location with the tag
    if loc and loc[0] in _TAGS:
        loc = loc[1:]
    return ".".join(loc) or "type"


def parse_scenario_params(raw: Union[Mapping[str, Any], BaseModel]):
    """Validate a raw mapping into the matching ScenarioParams variant."""
    if isinstance(raw, (HiringParams, InventoryParams, StoreLaunchParams, CustomParams)):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        raise InvalidParameters(
            f"Scenario parameters must be a mapping, got {type(raw).__name__}",
            field="type",
            guidance="pass a dict such as {\"type\": \"hiring\", ...}",
        )
    try:
        return _ADAPTER.validate_python(dict(raw))
    except ValidationError as exc:
        err = exc.errors()[0]
        name = _error_field(err)
        raise InvalidParameters(
            f"Invalid scenario parameters: {err.get('msg', 'invalid value')}",
            field=name,
            guidance=_GUIDANCE.get(err.get("type", ""), "check the value's type and range"),
        ) from exc
