from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _blank_to_none(v):
    # HTML forms send "" for an unselected option
    if isinstance(v, str) and not v.strip():
        return None
    return v


# Largest value a 64-bit signed INTEGER column can hold
MAX_ID = 2**63 - 1

OptionalId = Annotated[
    Optional[int], BeforeValidator(_blank_to_none), Field(ge=1, le=MAX_ID)
]
OptionalStr = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
# Matches the Numeric(10, 2) columns
Amount = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class FieldsBase(BaseModel):
    """Write schema base: unknown keys are dropped, strings are stripped."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class CategoryFields(FieldsBase):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "Dairy"})


class MenuFields(FieldsBase):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "Lunch"})


class IngredientFields(FieldsBase):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "Milk"})
    presentation: str = Field("", json_schema_extra={"example": "1L carton"})
    purchase_price: Amount = Decimal("0")
    category_id: OptionalId = None
    supplier_id: OptionalId = None
    image: OptionalStr = None


class RecipeFields(FieldsBase):
    name: str = Field(
        ..., min_length=1, json_schema_extra={"example": "Simple Pancakes"}
    )
    description: str = ""


class UsageFields(FieldsBase):
    quantity_used: Amount
    cost_of_use: Amount


class Category(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class Menu(Category):
    pass


class Ingredient(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    presentation: str
    purchase_price: float
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    image: Optional[str] = None
    category_name: Optional[str] = None


class Recipe(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str


class UsageRow(BaseModel):
    """One (recipe, ingredient) pairing with ingredient metadata and totals."""

    model_config = ConfigDict(from_attributes=True)

    recipe_id: int
    ingredient_id: int
    ingredient_name: str
    presentation: str
    purchase_price: float
    category_name: str
    times_used: int
    total_quantity_used: float
    total_cost_of_use: float
    image: Optional[str] = None


class RecipeUsage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    recipe_id: int
    ingredient_id: int
    ingredient_name: str
    presentation: str
    quantity_used: float
    cost_of_use: float


class ReportSummary(BaseModel):
    ingredients_used: int
    total_uses: int
    total_cost: float


class DashboardStats(BaseModel):
    total_ingredients: int
    total_recipes: int
    total_categories: int
    total_menus: int
