# app/services/pdf_service.py
"""
Printable nutrition guide for a published plan, rendered with reportlab.

Layout: title block, colour legend, a grid of food-group columns holding the
selected ingredients (blue, then yellow, then red, each by name), and usage
instructions with an optional coach line.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from io import BytesIO
from typing import Dict, Iterable, List, Optional, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.models.coach import Coach
from app.models.food import Food
from app.models.ingredient_document import IngredientDocument, IngredientEntry

logger = logging.getLogger(__name__)

BRAND_DARK = colors.HexColor("#191B24")
BRAND_GOLD = colors.HexColor("#BD9A60")

COLOR_STYLES = {
    "blue": {"bg": colors.HexColor("#DBEAFE"), "text": "#1E40AF", "mark": "(B)"},
    "yellow": {"bg": colors.HexColor("#FEF3C7"), "text": "#92400E", "mark": "(Y)"},
    "red": {"bg": colors.HexColor("#FEE2E2"), "text": "#991B1B", "mark": "(R)"},
}
COLOR_ORDER = {"blue": 0, "yellow": 1, "red": 2}

KNOWN_CATEGORIES: Dict[str, Tuple[str, int, str]] = {
    "meat-poultry": ("MEAT & POULTRY", 1, "unprocessed, grass-fed when possible"),
    "seafood": ("SEAFOOD", 2, "wild-caught preferred"),
    "eggs-dairy": ("EGGS & DAIRY", 3, "pasture-raised & organic"),
    "legumes": ("LEGUMES", 4, "beans, lentils, peas"),
    "grains": ("GRAINS", 5, "whole grains preferred"),
    "nuts-seeds": ("NUTS & SEEDS", 6, "raw & unsalted preferred"),
    "vegetables": ("VEGETABLES", 7, "fresh/frozen, variety emphasized"),
    "fruits": ("FRUITS", 8, "whole fruits, watch portions"),
}
UNKNOWN_CATEGORY_ORDER = 99

# tag substring(s) -> category id, first hit wins
TAG_CATEGORY_RULES = [
    (("meat", "poultry"), "meat-poultry"),
    (("fish", "seafood"), "seafood"),
    (("egg", "dairy"), "eggs-dairy"),
    (("bean", "lentil", "legume"), "legumes"),
    (("grain", "rice", "oat"), "grains"),
    (("nut", "seed"), "nuts-seeds"),
    (("vegetable",), "vegetables"),
    (("fruit",), "fruits"),
]


@dataclass
class CategoryConfig:
    category_id: str
    display_name: str
    order: int
    description: str


@dataclass
class CategoryGroup:
    config: CategoryConfig
    items: List[Tuple[IngredientEntry, Food]] = field(default_factory=list)


def format_category_name(category_id: str) -> str:
    return " & ".join(part.upper() for part in category_id.split("-"))


def category_config(category_id: str) -> CategoryConfig:
    known = KNOWN_CATEGORIES.get(category_id)
    if known:
        name, order, description = known
        return CategoryConfig(category_id, name, order, description)
    return CategoryConfig(
        category_id,
        format_category_name(category_id),
        UNKNOWN_CATEGORY_ORDER,
        "additional ingredients",
    )


def determine_food_category(entry: IngredientEntry, food: Food) -> str:
    if entry.category_id:
        return entry.category_id
    if food.category_id:
        return food.category_id
    tags = [t.lower() for t in food.tags]
    for needles, category_id in TAG_CATEGORY_RULES:
        if any(n in tag for tag in tags for n in needles):
            return category_id
    return "other"


def optimal_columns(doc: IngredientDocument) -> int:
    selected = sum(1 for i in doc.ingredients if i.is_selected and i.color_code)
    if selected <= 20:
        return 3
    if selected <= 40:
        return 4
    if selected <= 80:
        return 5
    return 6


def generate_filename(client_name: str, on: Optional[date] = None) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (client_name or "").lower()).strip("-")
    return f"nutrition-plan-{slug}-{(on or date.today()).isoformat()}.pdf"


def organize_by_category(doc: IngredientDocument, foods: Iterable[Food]) -> List[CategoryGroup]:
    by_id = {f.id: f for f in foods}
    groups: Dict[str, CategoryGroup] = {}
    for entry in doc.ingredients:
        if not (entry.is_selected and entry.color_code):
            continue
        food = by_id.get(entry.food_id)
        if food is None:
            logger.debug("Skipping unknown food %s in document %s", entry.food_id, doc.id)
            continue
        category_id = determine_food_category(entry, food)
        group = groups.setdefault(category_id, CategoryGroup(category_config(category_id)))
        group.items.append((entry, food))

    ordered = sorted(groups.values(), key=lambda g: (g.config.order, g.config.display_name))
    for group in ordered:
        group.items.sort(key=lambda pair: (COLOR_ORDER[pair[0].color_code], pair[1].name.lower()))
    return ordered


class PDFService:

    def __init__(self):
        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "PlanTitle",
            parent=styles["Heading1"],
            fontSize=24,
            textColor=BRAND_DARK,
            alignment=TA_CENTER,
            spaceAfter=6,
        )
        self.subtitle_style = ParagraphStyle(
            "PlanSubtitle",
            parent=styles["Normal"],
            fontSize=14,
            textColor=BRAND_GOLD,
            alignment=TA_CENTER,
            spaceAfter=6,
        )
        self.client_style = ParagraphStyle(
            "PlanClient",
            parent=styles["Heading2"],
            fontSize=16,
            textColor=BRAND_DARK,
            alignment=TA_CENTER,
        )
        self.category_style = ParagraphStyle(
            "CategoryHeader",
            parent=styles["Heading4"],
            fontSize=10,
            textColor=BRAND_DARK,
            spaceAfter=2,
        )
        self.category_desc_style = ParagraphStyle(
            "CategoryDescription",
            parent=styles["Italic"],
            fontSize=7,
            textColor=colors.grey,
            spaceAfter=4,
        )
        self.item_style = ParagraphStyle("FoodItem", parent=styles["Normal"], fontSize=8, leading=10)
        self.body_style = ParagraphStyle("Body", parent=styles["Normal"], fontSize=9, leading=12)

    def _legend(self) -> Table:
        cells = [
            Paragraph(
                f'<font color="{COLOR_STYLES[c]["text"]}"><b>{COLOR_STYLES[c]["mark"]} '
                f"{c.title()} Foods</b></font> {label}",
                self.body_style,
            )
            for c, label in (("blue", "Unlimited"), ("yellow", "Moderate"), ("red", "Limited"))
        ]
        table = Table([cells])
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (0, 0), COLOR_STYLES["blue"]["bg"]),
                    ("BACKGROUND", (1, 0), (1, 0), COLOR_STYLES["yellow"]["bg"]),
                    ("BACKGROUND", (2, 0), (2, 0), COLOR_STYLES["red"]["bg"]),
                    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        return table

    def _category_cell(self, group: CategoryGroup) -> list:
        flowables = [Paragraph(escape(group.config.display_name), self.category_style)]
        if group.config.description:
            flowables.append(Paragraph(escape(group.config.description), self.category_desc_style))
        for entry, food in group.items:
            style = COLOR_STYLES[entry.color_code]
            flowables.append(
                Paragraph(
                    f'<font color="{style["text"]}"><b>{style["mark"]}</b> '
                    f"{escape(food.name)}</font>",
                    self.item_style,
                )
            )
        return flowables

    def _category_grid(self, groups: List[CategoryGroup], columns: int, width: float) -> Optional[Table]:
        if not groups:
            return None
        cells = [self._category_cell(g) for g in groups]
        rows = [cells[i:i + columns] for i in range(0, len(cells), columns)]
        rows[-1] += [""] * (columns - len(rows[-1]))
        table = Table(rows, colWidths=[width / columns] * columns)
        table.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LEFTPADDING", (0, 0), (-1, -1), 4),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 4),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
                ]
            )
        )
        return table

    def generate_pdf(
        self,
        doc: IngredientDocument,
        foods: Iterable[Food],
        coach: Optional[Coach] = None,
        columns: Optional[int] = None,
    ) -> bytes:
        buffer = BytesIO()
        pdf = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
            title=f"Nutrition plan - {doc.client_name}",
        )
        story = [
            Paragraph("INGREDIENTS FOR OWNERSHIP", self.title_style),
            Paragraph("Your Personalized Nutrition Guide", self.subtitle_style),
            Paragraph(escape(doc.client_name), self.client_style),
            Spacer(1, 0.2 * inch),
            self._legend(),
            Spacer(1, 0.2 * inch),
        ]

        groups = organize_by_category(doc, foods)
        grid = self._category_grid(groups, columns or optimal_columns(doc), pdf.width)
        if grid is not None:
            story.append(grid)
        else:
            story.append(Paragraph("No ingredients selected yet.", self.body_style))

        story.append(Spacer(1, 0.25 * inch))
        story.append(Paragraph("<b>How to Use This Guide:</b>", self.body_style))
        story.append(Paragraph("<b>Blue Foods:</b> Eat freely as the foundation of your meals", self.body_style))
        story.append(
            Paragraph(
                "<b>Yellow Foods:</b> Include in appropriate portions for balanced nutrition",
                self.body_style,
            )
        )
        story.append(Paragraph("<b>Red Foods:</b> Enjoy occasionally and in moderation", self.body_style))

        if coach is not None and (coach.name or coach.email):
            parts = []
            if coach.name:
                parts.append(f"Your Coach: {escape(coach.name)}")
            if coach.email:
                parts.append(escape(coach.email))
            story.append(Spacer(1, 0.15 * inch))
            story.append(Paragraph(" | ".join(parts), self.body_style))

        pdf.build(story)
        logger.info(
            "Rendered PDF for document %s (%d categories)", doc.id, len(groups)
        )
        return buffer.getvalue()
