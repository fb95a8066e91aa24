"""Scripted replies used when the model cannot answer."""

PROCESSING_FALLBACK = "I'm having trouble processing that right now. Please try again."

BLOCKED_MESSAGE = (
    "I can only help with cooking and food-related questions. "
    "Please ask me about recipes, ingredients, or cooking techniques!"
)

CONNECTION_FALLBACK_PREFIX = "I'm having trouble connecting to my cooking knowledge right now. "

# Checked in order; first keyword match wins
_TOPIC_SUGGESTIONS = [
    (
        ("vegetarian", "vegan"),
        "For vegetarian options, try making a delicious veggie stir-fry with your "
        "favorite vegetables, or a hearty bean and vegetable soup!",
    ),
    (
        ("bread",),
        "For bread-based recipes, you could make garlic bread, bruschetta, or a "
        "simple grilled cheese sandwich!",
    ),
    (
        ("healthy",),
        "For healthy cooking, focus on fresh vegetables, lean proteins, and whole "
        "grains. Try steaming or roasting your ingredients!",
    ),
]

_GENERIC_SUGGESTION = (
    "Try asking me about specific ingredients you have, or what you'd like to cook today!"
)


def fallback_reply(text: str) -> str:
    """Context-aware reply for when a request fails outright."""
    lower = (text or "").lower()
    for keywords, suggestion in _TOPIC_SUGGESTIONS:
        if any(keyword in lower for keyword in keywords):
            return CONNECTION_FALLBACK_PREFIX + suggestion
    return CONNECTION_FALLBACK_PREFIX + _GENERIC_SUGGESTION
