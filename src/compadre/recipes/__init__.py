"""Recipe learning from URLs and pasted content."""

from .fetch import FetchError, PageFetcher, is_private_ip, validate_url
from .learn import LearnResult, RecipeLearner, default_recipe, recipe_text

__all__ = [
    "FetchError",
    "LearnResult",
    "PageFetcher",
    "RecipeLearner",
    "default_recipe",
    "is_private_ip",
    "recipe_text",
    "validate_url",
]
