import pytest

from recipe_manager import crud, reports
from recipe_manager.exceptions import NotFoundError, StorageError, ValidationError


@pytest.fixture
def kitchen(db):
    """Two recipes and three ingredients, one of them uncategorized."""
    dairy = crud.create_record(db, crud.CATEGORIES, {"name": "Dairy"})
    ids = {
        "milk": crud.create_record(
            db,
            crud.INGREDIENTS,
            {"name": "Milk", "presentation": "1L", "purchase_price": 2.5, "category_id": dairy},
        ),
        "butter": crud.create_record(
            db,
            crud.INGREDIENTS,
            {"name": "Butter", "presentation": "250g", "purchase_price": 3.2, "category_id": dairy},
        ),
        "salt": crud.create_record(
            db, crud.INGREDIENTS, {"name": "Salt", "presentation": "500g", "image": "salt.png"}
        ),
        "pancakes": crud.create_record(db, crud.RECIPES, {"name": "Pancakes"}),
        "soup": crud.create_record(db, crud.RECIPES, {"name": "Soup"}),
    }
    return ids


def test_no_usage_records_means_empty_report(db, kitchen):
    assert reports.most_used_ingredients(db) == []


def test_times_used_is_counted_per_ingredient(db):
    crud.create_record(db, crud.INGREDIENTS, {"name": "Milk", "presentation": "1L"})
    crud.create_record(db, crud.RECIPES, {"name": "Pancakes"})
    crud.create_record(db, crud.RECIPES, {"name": "Custard"})
    reports.add_usage_row(db, 1, 1, 2, "5.00")
    reports.add_usage_row(db, 2, 1, 3, "7.50")

    rows = reports.most_used_ingredients(db)
    assert len(rows) == 2
    assert [r.times_used for r in rows] == [2, 2]
    by_recipe = {r.recipe_id: r for r in rows}
    assert by_recipe[1].total_quantity_used == 2
    assert by_recipe[1].total_cost_of_use == 5.0
    assert by_recipe[2].total_quantity_used == 3
    assert by_recipe[2].total_cost_of_use == 7.5


def test_report_rows_carry_ingredient_metadata(db, kitchen):
    reports.add_usage_row(db, kitchen["soup"], kitchen["salt"], "0.01", "0.02")
    reports.add_usage_row(db, kitchen["pancakes"], kitchen["milk"], "0.5", "1.25")
    reports.add_usage_row(db, kitchen["soup"], kitchen["milk"], "0.2", "0.50")

    rows = reports.most_used_ingredients(db)
    # most used first, then by ingredient name and recipe
    assert [(r.ingredient_name, r.recipe_id) for r in rows] == [
        ("Milk", kitchen["pancakes"]),
        ("Milk", kitchen["soup"]),
        ("Salt", kitchen["soup"]),
    ]
    milk, salt = rows[0], rows[2]
    assert milk.category_name == "Dairy"
    assert milk.presentation == "1L"
    assert milk.purchase_price == 2.5
    assert milk.image is None
    assert salt.category_name == reports.UNCATEGORIZED
    assert salt.times_used == 1
    assert salt.image == "salt.png"


def test_update_usage_row(db, kitchen):
    reports.add_usage_row(db, kitchen["pancakes"], kitchen["butter"], "0.1", "0.32")

    assert reports.update_usage_row(db, kitchen["pancakes"], kitchen["butter"], "0.2", "0.64")

    (row,) = reports.most_used_ingredients(db)
    assert row.total_quantity_used == 0.2
    assert row.total_cost_of_use == 0.64


def test_update_missing_usage_row(db, kitchen):
    with pytest.raises(NotFoundError):
        reports.update_usage_row(db, kitchen["pancakes"], kitchen["milk"], 1, 1)


def test_update_usage_row_rejects_negative_amounts(db, kitchen):
    reports.add_usage_row(db, kitchen["pancakes"], kitchen["milk"], 1, 1)
    with pytest.raises(ValidationError):
        reports.update_usage_row(db, kitchen["pancakes"], kitchen["milk"], -1, 1)
    with pytest.raises(ValidationError):
        reports.update_usage_row(db, kitchen["pancakes"], kitchen["milk"], 1, "abc")


def test_add_usage_row_twice_is_storage_error(db, kitchen):
    reports.add_usage_row(db, kitchen["pancakes"], kitchen["milk"], 1, 1)
    with pytest.raises(StorageError):
        reports.add_usage_row(db, kitchen["pancakes"], kitchen["milk"], 2, 2)


def test_add_usage_row_for_unknown_recipe(db, kitchen):
    with pytest.raises(StorageError):
        reports.add_usage_row(db, 404, kitchen["milk"], 1, 1)


def test_remove_usage_row(db, kitchen):
    reports.add_usage_row(db, kitchen["pancakes"], kitchen["milk"], 1, 1)

    assert reports.remove_usage_row(db, kitchen["pancakes"], kitchen["milk"]) is True
    assert reports.remove_usage_row(db, kitchen["pancakes"], kitchen["milk"]) is False
    assert reports.most_used_ingredients(db) == []


def test_recipe_usage_lists_ingredients_by_name(db, kitchen):
    reports.add_usage_row(db, kitchen["pancakes"], kitchen["milk"], "0.5", "1.25")
    reports.add_usage_row(db, kitchen["pancakes"], kitchen["butter"], "0.1", "0.32")
    reports.add_usage_row(db, kitchen["soup"], kitchen["salt"], "0.01", "0.01")

    usage = reports.recipe_usage(db, kitchen["pancakes"])
    assert [u.ingredient_name for u in usage] == ["Butter", "Milk"]
    assert usage[1].quantity_used == 0.5


def test_recipe_usage_for_missing_recipe(db):
    with pytest.raises(NotFoundError):
        reports.recipe_usage(db, 1)


def test_summary_and_dashboard(db, kitchen):
    crud.create_record(db, crud.MENUS, {"name": "Lunch"})
    reports.add_usage_row(db, kitchen["pancakes"], kitchen["milk"], "0.5", "1.25")
    reports.add_usage_row(db, kitchen["soup"], kitchen["milk"], "0.2", "0.50")
    reports.add_usage_row(db, kitchen["soup"], kitchen["salt"], "0.01", "0.25")

    summary = reports.report_summary(db)
    assert summary.ingredients_used == 2
    assert summary.total_uses == 3
    assert summary.total_cost == pytest.approx(2.0)

    stats = reports.dashboard_stats(db)
    assert stats.model_dump() == {
        "total_ingredients": 3,
        "total_recipes": 2,
        "total_categories": 1,
        "total_menus": 1,
    }


def test_summary_without_usage(db):
    summary = reports.report_summary(db)
    assert summary.model_dump() == {"ingredients_used": 0, "total_uses": 0, "total_cost": 0.0}


def test_usage_amounts_keep_two_decimal_places(db, kitchen):
    with pytest.raises(ValidationError):
        reports.add_usage_row(db, kitchen["pancakes"], kitchen["milk"], "0.125", "1")
    assert reports.most_used_ingredients(db) == []
