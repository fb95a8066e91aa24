"""Pattern-based input gate.

Two pattern lists reject input outright (harmful content and unsafe cooking
practices). A separate metaphor check catches attempts to use cooking as a
figure of speech for off-topic subjects and answers them with a scripted
redirect instead of reaching the model.
"""

import re
from dataclasses import dataclass

HARMFUL_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"weapon|gun|knife.*attack|violence|harm.*person|hurt.*someone",
        r"poison|toxic|dangerous.*substance|harmful.*chemical",
        r"suicide|self.*harm|end.*life|kill.*myself",
        r"dangerous.*activity|risky.*behavior",
        r"illegal.*drug|substance.*abuse|drug.*recipe",
        r"steal|theft|robbery|illegal.*activity",
        r"explicit|adult.*content|inappropriate",
        r"hate.*speech|discrimination|offensive",
        r"unsafe.*cooking|dangerous.*kitchen|harmful.*food",
        r"contaminated.*food|food.*poisoning|unsafe.*ingredient",
    )
]

COOKING_SAFETY_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"raw.*meat.*without.*cooking",
        r"undercooked.*chicken|raw.*eggs.*unsafe",
        r"cross.*contamination|unsafe.*storage",
        r"expired.*food|moldy.*ingredient",
        r"allergen.*without.*warning",
    )
]

METAPHOR_PHRASES = ("in terms of", "represents", "symbolizes", "as if", "like a")

NON_FOOD_TOPICS = (
    "politics", "political", "economy", "economic", "recession", "depression",
    "government", "war", "conflict", "religion", "religious",
    "election", "president", "congress", "senate",
)

METAPHOR_REPLY = (
    "I appreciate the creative metaphor! However, I'm specifically designed to "
    "help with actual cooking and recipes. I'd love to help you make a real "
    "biryani, pasta, or any other dish though! What would you like to cook today? 🍳"
)

CATEGORY_INVALID = "invalid"
CATEGORY_HARMFUL = "harmful"
CATEGORY_UNSAFE_COOKING = "unsafe_cooking"


@dataclass(frozen=True)
class GateVerdict:
    """Outcome of validating raw user input."""

    safe: bool
    reason: str | None = None
    category: str | None = None


@dataclass(frozen=True)
class IntentCheck:
    """Outcome of the metaphor heuristic."""

    safe: bool
    message: str | None = None


def validate_input(text: object) -> GateVerdict:
    """Reject input that matches a harmful or cooking-safety pattern."""
    if not isinstance(text, str) or not text:
        return GateVerdict(safe=False, reason="Invalid input", category=CATEGORY_INVALID)

    for pattern in HARMFUL_PATTERNS:
        if pattern.search(text):
            return GateVerdict(
                safe=False,
                reason="Contains harmful content",
                category=CATEGORY_HARMFUL,
            )

    for pattern in COOKING_SAFETY_PATTERNS:
        if pattern.search(text):
            return GateVerdict(
                safe=False,
                reason="Unsafe cooking practice",
                category=CATEGORY_UNSAFE_COOKING,
            )

    return GateVerdict(safe=True)


def check_cooking_intent(message: str) -> IntentCheck:
    """Redirect messages that use cooking as a metaphor for off-topic subjects."""
    lower = message.lower()

    has_metaphor = any(phrase in lower for phrase in METAPHOR_PHRASES)
    has_non_food_topic = any(topic in lower for topic in NON_FOOD_TOPICS)

    if has_metaphor and has_non_food_topic:
        return IntentCheck(safe=False, message=METAPHOR_REPLY)

    return IntentCheck(safe=True)
