"""Ingredient usage: the most-used-ingredients report and usage records.

A usage record (RecipeIngredient) ties one ingredient to one recipe with the
quantity used and what that quantity costs.
"""

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.orm import Session

from . import schemas
from .crud import storage_errors, validate_fields
from .exceptions import NotFoundError, StorageError
from .logging import get_logger
from .models import Category, Ingredient, Menu, Recipe, RecipeIngredient

_log = get_logger(__name__)

UNCATEGORIZED = "uncategorized"


def _usage_label(recipe_id, ingredient_id) -> str:
    return f"(recipe {recipe_id}, ingredient {ingredient_id})"


def most_used_ingredients(db: Session):
    """Return one UsageRow per (recipe, ingredient) usage record.

    `times_used` counts the usage records of the ingredient over every recipe
    and the same count is repeated on each of that ingredient's rows. The
    totals are summed per (recipe, ingredient) pair.
    """
    ri = RecipeIngredient
    usage_counts = (
        select(ri.ingredient_id, func.count().label("times_used"))
        .group_by(ri.ingredient_id)
        .subquery()
    )

    stmt = (
        select(
            ri.recipe_id,
            ri.ingredient_id,
            Ingredient.name.label("ingredient_name"),
            Ingredient.presentation,
            Ingredient.purchase_price,
            func.coalesce(Category.name, UNCATEGORIZED).label("category_name"),
            usage_counts.c.times_used,
            func.sum(ri.quantity_used).label("total_quantity_used"),
            func.sum(ri.cost_of_use).label("total_cost_of_use"),
            Ingredient.image,
        )
        .select_from(ri)
        .join(Ingredient, Ingredient.id == ri.ingredient_id)
        .outerjoin(Category, Category.id == Ingredient.category_id)
        .join(usage_counts, usage_counts.c.ingredient_id == ri.ingredient_id)
        .group_by(
            ri.recipe_id,
            ri.ingredient_id,
            Ingredient.name,
            Ingredient.presentation,
            Ingredient.purchase_price,
            Category.name,
            usage_counts.c.times_used,
            Ingredient.image,
        )
        .order_by(usage_counts.c.times_used.desc(), Ingredient.name, ri.recipe_id)
    )

    with storage_errors(db):
        rows = db.execute(stmt).all()
    return [schemas.UsageRow.model_validate(dict(r._mapping)) for r in rows]


def update_usage_row(
    db: Session, recipe_id: int, ingredient_id: int, quantity_used, cost_of_use
) -> bool:
    data = validate_fields(
        schemas.UsageFields,
        {"quantity_used": quantity_used, "cost_of_use": cost_of_use},
    )
    with storage_errors(db):
        row = db.get(RecipeIngredient, (recipe_id, ingredient_id))
    if row is None:
        raise NotFoundError("Recipe ingredient", _usage_label(recipe_id, ingredient_id))

    with storage_errors(db):
        row.quantity_used = data.quantity_used
        row.cost_of_use = data.cost_of_use
        db.commit()
    _log.info("Updated usage {}", _usage_label(recipe_id, ingredient_id))
    return True


def add_usage_row(
    db: Session, recipe_id: int, ingredient_id: int, quantity_used, cost_of_use
) -> bool:
    data = validate_fields(
        schemas.UsageFields,
        {"quantity_used": quantity_used, "cost_of_use": cost_of_use},
    )
    with storage_errors(db):
        existing = db.get(RecipeIngredient, (recipe_id, ingredient_id))
    if existing is not None:
        raise StorageError(
            f"Usage {_usage_label(recipe_id, ingredient_id)} already exists"
        )

    row = RecipeIngredient(
        recipe_id=recipe_id,
        ingredient_id=ingredient_id,
        quantity_used=data.quantity_used,
        cost_of_use=data.cost_of_use,
    )
    with storage_errors(db):
        db.add(row)
        db.commit()
    _log.info("Added usage {}", _usage_label(recipe_id, ingredient_id))
    return True


def remove_usage_row(db: Session, recipe_id: int, ingredient_id: int) -> bool:
    ri = RecipeIngredient
    with storage_errors(db):
        result = db.execute(
            delete(ri).where(
                ri.recipe_id == recipe_id, ri.ingredient_id == ingredient_id
            )
        )
        db.commit()
    return result.rowcount > 0


def recipe_usage(db: Session, recipe_id: int):
    """Usage records of one recipe, by ingredient name."""
    with storage_errors(db):
        if db.get(Recipe, recipe_id) is None:
            raise NotFoundError("Recipe", recipe_id)
        rows = db.execute(
            select(
                RecipeIngredient.recipe_id,
                RecipeIngredient.ingredient_id,
                Ingredient.name.label("ingredient_name"),
                Ingredient.presentation,
                RecipeIngredient.quantity_used,
                RecipeIngredient.cost_of_use,
            )
            .join(Ingredient, Ingredient.id == RecipeIngredient.ingredient_id)
            .where(RecipeIngredient.recipe_id == recipe_id)
            .order_by(Ingredient.name)
        ).all()
    return [schemas.RecipeUsage.model_validate(dict(r._mapping)) for r in rows]


def report_summary(db: Session) -> schemas.ReportSummary:
    ri = RecipeIngredient
    with storage_errors(db):
        used, uses, cost = db.execute(
            select(
                func.count(distinct(ri.ingredient_id)),
                func.count(),
                func.coalesce(func.sum(ri.cost_of_use), 0),
            ).select_from(ri)
        ).one()
    return schemas.ReportSummary(
        ingredients_used=used, total_uses=uses, total_cost=float(cost)
    )


def dashboard_stats(db: Session) -> schemas.DashboardStats:
    def count(model):
        return db.scalar(select(func.count()).select_from(model))

    with storage_errors(db):
        return schemas.DashboardStats(
            total_ingredients=count(Ingredient),
            total_recipes=count(Recipe),
            total_categories=count(Category),
            total_menus=count(Menu),
        )
