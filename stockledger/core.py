# stockledger/core.py
from decimal import Decimal
from typing import Annotated, Optional, Dict, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import TransactionType

# Incoming payloads. Every value a caller hands the core passes through one of
# these models; nothing is coerced to a default on bad input.


def _reject_bool(value: Any) -> Any:
    # JSON true/false would otherwise pass as 1/0
    if isinstance(value, bool):
        raise ValueError("must be a number, not a boolean")
    return value


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Count = Annotated[int, BeforeValidator(_reject_bool), Field(ge=0)]
Money = Annotated[Decimal, BeforeValidator(_reject_bool), Field(ge=0, allow_inf_nan=False)]

# Patched through the catalog but never allowed to be null
_REQUIRED_ON_PATCH = ("name", "sku", "min_quantity", "price")

# Written once on creation
_IMMUTABLE = ("id", "initial_quantity", "created_at", "deleted_at")


class ProductIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: NonEmptyStr
    sku: NonEmptyStr
    description: Optional[str] = None
    category: Optional[str] = None
    quantity: Count = 0
    min_quantity: Count = 0
    price: Money


class ProductPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[NonEmptyStr] = None
    sku: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    category: Optional[str] = None
    min_quantity: Optional[Count] = None
    price: Optional[Money] = None


class MovementIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: TransactionType
    quantity: Annotated[int, BeforeValidator(_reject_bool), Field(gt=0)]
    notes: Optional[str] = None


def _first_error(exc: PydanticValidationError) -> ValidationError:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or None
    return ValidationError(f"{field}: {err['msg']}" if field else err["msg"], field=field)


def parse_product(fields: Dict[str, Any]) -> ProductIn:
    if not isinstance(fields, dict):
        raise ValidationError("product fields must be an object")
    try:
        return ProductIn.model_validate(fields)
    except PydanticValidationError as e:
        raise _first_error(e) from e


def parse_patch(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a partial product edit and return only the fields that were sent."""
    if not isinstance(fields, dict):
        raise ValidationError("product fields must be an object")
    if "quantity" in fields:
        raise ValidationError(
            "quantity cannot be edited directly; record a stock movement instead",
            field="quantity",
        )
    for key in _IMMUTABLE:
        if key in fields:
            raise ValidationError(f"{key} is read-only", field=key)
    try:
        patch = ProductPatch.model_validate(fields)
    except PydanticValidationError as e:
        raise _first_error(e) from e

    out = patch.model_dump(exclude_unset=True)
    for key in _REQUIRED_ON_PATCH:
        if key in out and out[key] is None:
            raise ValidationError(f"{key} cannot be empty", field=key)
    return out


def parse_movement(type_: Any, quantity: Any, notes: Optional[str] = None) -> MovementIn:
    try:
        return MovementIn.model_validate({"type": type_, "quantity": quantity, "notes": notes})
    except PydanticValidationError as e:
        raise _first_error(e) from e


def _make_product_dict(p: ProductIn, created_at) -> Dict[str, Any]:
    return {
        "sku": p.sku,
        "name": p.name,
        "description": p.description,
        "category": p.category,
        "quantity": p.quantity,
        "min_quantity": p.min_quantity,
        "price": p.price,
        "initial_quantity": p.quantity,
        "created_at": created_at,
        "deleted_at": None,
    }
