"""Load a starter data set (categories, menus, ingredients, recipes) from JSON.

Expected shape::

    {
      "categories": [{"name": "Dairy"}],
      "menus": [{"name": "Lunch"}],
      "ingredients": [{"name": "Milk", "presentation": "1L",
                       "purchase_price": 2.5, "category": "Dairy"}],
      "recipes": [{"name": "Pancakes", "description": "...",
                   "ingredients": [{"name": "Milk", "quantity_used": 0.5,
                                    "cost_of_use": 1.25}]}]
    }

Records whose name already exists are left untouched.
"""

import json
from pathlib import Path

from sqlalchemy.orm import Session

from . import crud, models, reports
from .logging import get_logger

_log = get_logger(__name__)


def load_seed(path):
    """Read the seed document; a missing file yields an empty data set."""
    p = Path(path)
    if not p.exists():
        return {}
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def _ids_by_name(db: Session, model):
    return {name: id_ for id_, name in db.query(model.id, model.name)}


def _import_named(db, resource, entries, known, prepare=None):
    added = 0
    for entry in entries:
        name = (entry.get("name") or "").strip()
        if not name or name in known:
            continue
        fields = dict(entry)
        if prepare:
            fields = prepare(fields)
        known[name] = crud.create_record(db, resource, fields)
        added += 1
    return added


def import_seed(db: Session, data: dict) -> dict:
    """Insert the records of `data` that are not in the database yet.

    Returns the number of records added per section.
    """
    counts = {}
    categories = _ids_by_name(db, models.Category)
    counts["categories"] = _import_named(
        db, crud.CATEGORIES, data.get("categories", []), categories
    )
    counts["menus"] = _import_named(
        db, crud.MENUS, data.get("menus", []), _ids_by_name(db, models.Menu)
    )

    def with_category_id(fields):
        category = fields.pop("category", None)
        if category:
            fields["category_id"] = categories.get(category)
        return fields

    ingredients = _ids_by_name(db, models.Ingredient)
    counts["ingredients"] = _import_named(
        db,
        crud.INGREDIENTS,
        data.get("ingredients", []),
        ingredients,
        prepare=with_category_id,
    )

    recipes = _ids_by_name(db, models.Recipe)
    # first entry wins when the document repeats a recipe name
    new_recipes = {}
    for entry in data.get("recipes", []):
        name = (entry.get("name") or "").strip()
        if name in recipes:
            continue
        if name in new_recipes:
            _log.warning("Recipe {!r} listed more than once; extra entry skipped", name)
            continue
        new_recipes[name] = entry
    counts["recipes"] = _import_named(
        db, crud.RECIPES, list(new_recipes.values()), recipes
    )

    usages = 0
    for name, entry in new_recipes.items():
        recipe_id = recipes.get(name)
        if recipe_id is None:
            continue
        seen = set()
        for use in entry.get("ingredients", []):
            ingredient_id = ingredients.get(use.get("name"))
            if ingredient_id is None:
                _log.warning(
                    "Recipe {!r} uses unknown ingredient {!r}; skipped",
                    name,
                    use.get("name"),
                )
                continue
            if ingredient_id in seen:
                _log.warning(
                    "Recipe {!r} lists ingredient {!r} twice; skipped",
                    name,
                    use.get("name"),
                )
                continue
            seen.add(ingredient_id)
            reports.add_usage_row(
                db,
                recipe_id,
                ingredient_id,
                use.get("quantity_used", 0),
                use.get("cost_of_use", 0),
            )
            usages += 1
    counts["usages"] = usages

    _log.info("Seed import finished: {}", counts)
    return counts
