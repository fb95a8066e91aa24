"""Prompt builder for the cooking assistant."""

from datetime import datetime, timezone
from typing import Any

from ..store import ROLE_ASSISTANT, ROLE_USER, ConversationTurn, SavedRecipe

SAFE_SYSTEM_PROMPT = """You are Chef Compadre, a friendly AI cooking assistant focused on safe, healthy cooking practices.

SAFETY GUIDELINES:
- Only provide cooking advice and food-related information
- Never provide information about harmful substances, weapons, or dangerous activities
- Always emphasize food safety and proper cooking techniques
- If asked about non-cooking topics, politely redirect to cooking
- Never provide medical advice - suggest consulting healthcare professionals
- Always warn about food allergies and cross-contamination risks

COOKING FOCUS:
- Be concise, step-by-step, and proactive
- If the user lacks an ingredient, suggest 1–3 realistic substitutions
- Explain trade-offs and safety considerations
- Keep it kitchen-practical and safe
- Assume the user is already cooking; keep responses short and doable

If asked about anything outside of cooking, food, or kitchen safety, politely decline and redirect to cooking topics."""

CONTEXT_PROMPT = """You are Chef Compadre, a helpful cooking assistant with access to user data and tools.

🚨🚨🚨 CRITICAL MANDATORY INSTRUCTION:
If the user says ANYTHING about wanting to SEE, VIEW, SHOW, or LOOK AT something (including "show me", "can you show", "how does it look", "how it looks like", "what does it look like"), you MUST IMMEDIATELY call the show_reference_images function.
- Extract the subject from their message or recent conversation (if they use "it", "that", "this", figure out what they mean from context)
- DO NOT respond with text description - ALWAYS use the tool first to show actual images!
- This is NOT optional - if they want to see something visual, you MUST call the tool.

USER CONTEXT:
{user_context}

RECENT CONVERSATION:
{conversation}
{recipe_context}

CURRENT MESSAGE: {message}

INSTRUCTIONS:
- **CRITICAL**: Be conversational and maintain context throughout the ENTIRE conversation
- Remember EVERYTHING from the recent conversation history above
- **LEARNED RECIPES**: If a recipe was just learned (see ⭐ MOST RECENTLY LEARNED section):
  * You have FULL access to all ingredients, steps, times, difficulty
  * This recipe is NOW IN YOUR MEMORY - treat it as if you've always known it
  * When user asks about "the recipe" or "that recipe", they mean THIS one
  * Answer ALL questions directly from the recipe details above
  * Don't ask "which recipe?" - you already know!
  * Reference specific ingredients and amounts from the data provided
  * If they say "guide me" or "let's cook this", use the recipe data above

- **SAVED RECIPES** (listed above):
  * These are recipes the user has previously learned/saved
  * They can ask you about any of them
  * Recently learned recipes (⭐) have full details available
  * For older recipes, you may only have title/basic info

- **Use tools SMARTLY**:
  * show_reference_images: **MANDATORY - ALWAYS CALL THIS TOOL** when user says ANY of these:
    - "show me [X]" / "show [X]" / "show a picture" / "can you show me"
    - "picture of [X]" / "photo of [X]" / "image of [X]"
    - "what does [X] look like" / "how does [X] look" / "how it looks like" / "can you show me how it looks"
    - "I want to see [X]" / "can I see [X]" / "let me see [X]" / "see how it looks"
    - "reference for [X]" / "reference image" / "visual reference"
    - If user uses pronouns ("it", "that", "this"), extract what they're referring to from conversation context
    - DO NOT just describe visually - ALWAYS CALL THE TOOL so they can see actual images!
    - Example: User says "can you show me how it looks like" → Extract "it" from context (e.g., "fried rice") → Call tool with query="fried rice"
  * add_to_shopping_list: When user wants to save ingredients for later
  * save_recipe: ONLY for new recipes (learned recipes are already saved)
  * update_preferences: When user mentions dietary changes
  * suggest_substitutions: When user asks for alternatives
  * guide_recipe_step: For structured step-by-step cooking

- **DON'T use tools for**:
  * Answering questions (unless it's asking to SEE something - then use show_reference_images)
  * General conversation
  * Explaining things (unless they want to SEE - then use show_reference_images)
  * Just talk naturally!

- **Be SMART**:
  * Continue previous topics naturally
  * Don't repeat information
  * Reference earlier conversation
  * Act like you remember everything
  * Be concise and helpful
  * Don't suggest nutrition analysis - it happens automatically

Respond naturally as if you're having a continuous conversation with full memory and access to all learned recipes."""


def format_history(turns: list[ConversationTurn]) -> str:
    """Render turns as "User:" / "Assistant:" lines."""
    lines = []
    for turn in turns:
        if turn.role == ROLE_USER:
            lines.append(f"User: {turn.text}")
        elif turn.role == ROLE_ASSISTANT:
            lines.append(f"Assistant: {turn.text}")
        else:
            lines.append(f"{turn.role}: {turn.text}")
    return "\n".join(lines)


def _minutes(value: int | None) -> str:
    return "?" if value is None else str(value)


def format_recipe_list(recipes: list[SavedRecipe]) -> str:
    return "\n".join(
        f"- {r.title} ({r.difficulty}, {_minutes(r.prep_time)}min prep, {_minutes(r.cook_time)}min cook)"
        for r in recipes
    )


def _format_ingredient(index: int, ingredient: Any) -> str:
    if not isinstance(ingredient, dict):
        return f"{index}. {ingredient}"
    amount = str(ingredient.get("amount") or "").strip()
    name = str(ingredient.get("name") or "").strip()
    line = f"{index}. {amount} {name}".rstrip() if amount else f"{index}. {name}"
    notes = ingredient.get("notes")
    if notes:
        line += f" ({notes})"
    return line


def _format_step(index: int, step: Any) -> str:
    if not isinstance(step, dict):
        return f"{index}. {step}"
    number = step.get("step") or index
    return f"{number}. {step.get('instruction', '')}"


def format_recipe_details(
    recipe: SavedRecipe,
    max_ingredients: int = 10,
    max_steps: int = 5,
) -> str:
    """Full detail block for a recently saved recipe.

    Ingredients and steps may be stored as plain strings or as objects
    ({name, amount, notes} and {step, instruction}).
    """
    data = recipe.recipe_data or {}
    parts = [f'⭐ MOST RECENTLY LEARNED RECIPE: "{recipe.title}"']
    if not data:
        return "\n\n".join(parts)

    parts.append(
        "RECIPE DETAILS:\n"
        f"- Description: {data.get('description') or 'N/A'}\n"
        f"- Servings: {data.get('servings') or recipe.servings or 'N/A'}\n"
        f"- Difficulty: {data.get('difficulty') or recipe.difficulty or 'N/A'}"
    )

    ingredients = data.get("ingredients") or []
    if ingredients:
        lines = [f"INGREDIENTS ({len(ingredients)} items):"]
        lines.extend(
            _format_ingredient(i, ing)
            for i, ing in enumerate(ingredients[:max_ingredients], start=1)
        )
        parts.append("\n".join(lines))

    steps = data.get("steps") or []
    if steps:
        lines = [f"STEPS ({len(steps)} total):"]
        lines.extend(_format_step(i, step) for i, step in enumerate(steps[:max_steps], start=1))
        if len(steps) > max_steps:
            lines.append(f"... and {len(steps) - max_steps} more steps")
        parts.append("\n".join(lines))

    parts.append("✅ This recipe is ready for step-by-step guidance!")
    return "\n\n".join(parts)


def is_recent(recipe: SavedRecipe, now: datetime, recency_seconds: float) -> bool:
    """Whether the recipe was saved inside the recency window."""
    created_at = recipe.created_at
    if created_at is None:
        return False
    if created_at.tzinfo is None and now.tzinfo is not None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (now - created_at).total_seconds() < recency_seconds


def build_recipe_context(
    recipes: list[SavedRecipe],
    now: datetime,
    recency_seconds: float = 300,
    max_ingredients: int = 10,
    max_steps: int = 5,
) -> str:
    """Saved recipe titles, plus full detail for the newest one if it is recent."""
    if not recipes:
        return ""

    context = "\n\nSAVED RECIPES AVAILABLE FOR GUIDANCE:\n" + format_recipe_list(recipes)
    newest = recipes[0]
    if is_recent(newest, now, recency_seconds):
        context += "\n\n" + format_recipe_details(newest, max_ingredients, max_steps)
    return context


def build_context_prompt(
    message: str,
    user_context: str,
    history: list[ConversationTurn],
    recipe_context: str = "",
) -> str:
    """Assemble the full prompt for one turn.

    Args:
        message: The current user message.
        user_context: Itemized preference and memory lines.
        history: The turns to include, already sliced to the window.
        recipe_context: Output of build_recipe_context.

    Returns:
        The persona prompt followed by the per-turn context prompt.
    """
    context = CONTEXT_PROMPT.format(
        user_context=user_context,
        conversation=format_history(history),
        recipe_context=recipe_context,
        message=message,
    )
    return f"{SAFE_SYSTEM_PROMPT}\n\n{context}"
