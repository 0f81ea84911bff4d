# app/tests/test_pdf_service.py
from datetime import date

import pytest

from conftest import document_row, food_row, ingredient

from app.models.coach import Coach
from app.models.food import Food
from app.models.ingredient_document import IngredientDocument
from app.services.pdf_service import (
    PDFService,
    category_config,
    determine_food_category,
    format_category_name,
    generate_filename,
    optimal_columns,
    organize_by_category,
)


def make_doc(ingredients, **kwargs):
    return IngredientDocument.from_row(document_row(ingredients=ingredients, **kwargs))


FOODS = [
    Food.from_row(food_row("f1", "Spinach", "blue", "vegetables")),
    Food.from_row(food_row("f2", "Asparagus", "blue", "vegetables")),
    Food.from_row(food_row("f3", "Corn", "yellow", "vegetables")),
    Food.from_row(food_row("f4", "Dried mango", "red", "fruits")),
    Food.from_row(food_row("f5", "Salmon", "blue", "seafood")),
]


def test_category_config():
    assert category_config("seafood").display_name == "SEAFOOD"
    assert category_config("seafood").order == 2
    unknown = category_config("herbs-spices")
    assert unknown.display_name == "HERBS & SPICES"
    assert unknown.order == 99
    assert format_category_name("a-b-c") == "A & B & C"


def test_food_category_resolution():
    food = Food(id="x", name="Lentils", category="yellow", tags=["Legume", "protein"])
    entry = make_doc([ingredient("x", category_id="")]).ingredients[0]
    assert determine_food_category(entry, food) == "legumes"
    food_with_group = food.model_copy(update={"category_id": "grains"})
    assert determine_food_category(entry, food_with_group) == "grains"
    entry_with_group = make_doc([ingredient("x", category_id="pantry")]).ingredients[0]
    assert determine_food_category(entry_with_group, food_with_group) == "pantry"
    plain = Food(id="y", name="Thing", category="yellow")
    assert determine_food_category(entry, plain) == "other"


def test_organize_groups_sorts_and_filters():
    doc = make_doc(
        [
            ingredient("f3", "yellow"),
            ingredient("f1", "blue"),
            ingredient("f2", "blue"),
            ingredient("f4", "red", category_id="fruits"),
            ingredient("f5", "blue", category_id="seafood"),
            ingredient("f1", None),
            ingredient("f2", "blue", selected=False),
            ingredient("missing", "blue"),
        ]
    )
    groups = organize_by_category(doc, FOODS)
    assert [g.config.category_id for g in groups] == ["seafood", "vegetables", "fruits"]
    veg = groups[1]
    assert [food.name for _, food in veg.items] == ["Asparagus", "Spinach", "Corn"]


@pytest.mark.parametrize("count,columns", [(0, 3), (20, 3), (21, 4), (40, 4), (41, 5), (80, 5), (81, 6)])
def test_optimal_columns(count, columns):
    doc = make_doc([ingredient(f"f{i}") for i in range(count)])
    assert optimal_columns(doc) == columns


def test_generate_filename():
    assert generate_filename("Jane O'Neil", date(2024, 5, 1)) == "nutrition-plan-jane-o-neil-2024-05-01.pdf"


def test_generate_pdf_bytes():
    doc = make_doc(
        [ingredient("f1", "blue"), ingredient("f4", "red", category_id="fruits")],
        client_name="Jane <Doe> & Co",
    )
    coach = Coach(id="c", email="coach@example.com", name="Sam")
    content = PDFService().generate_pdf(doc, FOODS, coach=coach)
    assert content.startswith(b"%PDF")
    assert len(content) > 1000


def test_generate_pdf_with_nothing_selected():
    content = PDFService().generate_pdf(make_doc([]), [])
    assert content.startswith(b"%PDF")
