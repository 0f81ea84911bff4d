"""Pydantic models for plans, foods, clients and coaches."""
from app.models.client import Client, ClientCreate, ClientUpdate
from app.models.coach import Coach, LoginRequest, SignUpRequest
from app.models.food import Food, FoodCreate, FoodUpdate, NutritionalInfo
from app.models.ingredient_document import (
    DocumentStatus,
    IngredientDocument,
    IngredientEntry,
    PublicDocument,
)

__all__ = [
    "Client",
    "ClientCreate",
    "ClientUpdate",
    "Coach",
    "LoginRequest",
    "SignUpRequest",
    "Food",
    "FoodCreate",
    "FoodUpdate",
    "NutritionalInfo",
    "DocumentStatus",
    "IngredientDocument",
    "IngredientEntry",
    "PublicDocument",
]
