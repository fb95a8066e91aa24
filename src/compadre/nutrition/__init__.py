"""Nutrition triggers and analysis."""

from .analyzer import NutritionAnalyzer, default_nutrition
from .heuristics import (
    KeywordRecipeClassifier,
    RecipeSuggestionClassifier,
    asks_for_nutrition,
)

__all__ = [
    "KeywordRecipeClassifier",
    "NutritionAnalyzer",
    "RecipeSuggestionClassifier",
    "asks_for_nutrition",
    "default_nutrition",
]
