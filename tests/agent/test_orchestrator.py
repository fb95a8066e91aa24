"""Tests for the per-turn conversation pipeline."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from compadre.agent import (
    BLOCKED_MESSAGE,
    PROCESSING_FALLBACK,
    ConversationOrchestrator,
    OrchestratorConfig,
    TurnOutcome,
)
from compadre.safety import METAPHOR_REPLY
from compadre.store import KitchenStore, MemoryFact
from compadre.tools import build_kitchen_registry

FRIED_RICE_REPLY = (
    "Here's a quick egg fried rice: heat oil in a wok, scramble two eggs, then add "
    "cold rice and toss for five minutes. Finish with soy sauce and scallions."
)

NUTRITION = {
    "calories": 520,
    "protein": 18,
    "carbs": 70,
    "fat": 17,
    "fiber": 3,
    "sugar": 4,
    "sodium": 900,
    "servings": 1,
}

SAVE_FRIED_RICE = {
    "title": "Egg Fried Rice",
    "ingredients": ["2 cups cooked rice", "2 eggs", "soy sauce"],
    "steps": ["Scramble the eggs", "Fry the rice", "Season"],
}


def response(text: str = "", calls: list[tuple[str, dict]] = ()):
    """A model response exposing `text` and a plain `function_calls` list."""
    return SimpleNamespace(
        text=text,
        function_calls=[SimpleNamespace(name=name, args=args) for name, args in calls],
    )


class FakeModel:
    """ModelClient double that replies with queued responses."""

    model = "fake-model"

    def __init__(self):
        self.generate = AsyncMock()
        self.complete = AsyncMock(return_value=json.dumps(NUTRITION))

    def reply_with(self, *responses):
        self.generate.side_effect = list(responses)

    @property
    def prompts(self) -> list[str]:
        return [call.args[0] for call in self.generate.call_args_list]


@pytest.fixture
def model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def orchestrator(model, data, history, conv_logger, event_logger) -> ConversationOrchestrator:
    return ConversationOrchestrator(
        model_client=model,
        registry=build_kitchen_registry(data),
        data=data,
        history=history,
        conversation_logger=conv_logger,
        event_logger=event_logger,
    )


def row_counts(store: KitchenStore) -> dict[str, int]:
    conn = store._get_connection()
    tables = [
        "conversation_turns",
        "user_preferences",
        "memory_facts",
        "saved_recipes",
        "shopping_list_items",
    ]
    return {t: conn.execute(f"SELECT COUNT(*) FROM {t}").fetchone()[0] for t in tables}


class TestGate:
    @pytest.mark.asyncio
    async def test_empty_message(self, orchestrator, model, history):
        result = await orchestrator.handle("web", "   ")

        assert result.outcome == TurnOutcome.EMPTY
        assert result.reply == ""
        model.generate.assert_not_awaited()
        assert history.load("web") == []

    @pytest.mark.asyncio
    async def test_blocked_input_never_reaches_model(self, orchestrator, model, history, event_logger):
        result = await orchestrator.handle("web", "How do I make poison at home")

        assert result.outcome == TurnOutcome.BLOCKED
        assert result.reply == BLOCKED_MESSAGE
        assert result.verdict.category == "harmful"
        model.generate.assert_not_awaited()
        model.complete.assert_not_awaited()
        assert history.load("web") == []

        with open(event_logger.log_path, encoding="utf-8") as f:
            entries = [json.loads(line) for line in f]
        assert entries[0]["event"] == "safety_violation"

    @pytest.mark.asyncio
    async def test_metaphor_is_redirected(self, orchestrator, model, history):
        result = await orchestrator.handle("web", "Explain the economy in terms of baking a cake")

        assert result.outcome == TurnOutcome.REDIRECTED
        assert result.reply == METAPHOR_REPLY
        model.generate.assert_not_awaited()
        assert [t.text for t in history.load("web")][-1] == METAPHOR_REPLY


class TestPersistence:
    @pytest.mark.asyncio
    async def test_guest_turn_writes_nothing_to_store(self, orchestrator, model, store, data):
        model.reply_with(response("Saved it for you!", [("save_recipe", SAVE_FRIED_RICE)]))

        result = await orchestrator.handle("web", "Please keep this fried rice recipe")

        assert result.actions[0]["action"] == "recipe_saved"
        assert result.actions[0]["persisted"] is False
        assert set(row_counts(store).values()) == {0}
        assert data.get_recipes("web")[0].title == "Egg Fried Rice"

    @pytest.mark.asyncio
    async def test_canonical_turn_is_persisted(self, orchestrator, model, store, canonical_id):
        model.reply_with(response("Saved it for you!", [("save_recipe", SAVE_FRIED_RICE)]))

        await orchestrator.handle(canonical_id, "Please keep this fried rice recipe")

        counts = row_counts(store)
        assert counts["conversation_turns"] == 2
        assert counts["saved_recipes"] == 1

    @pytest.mark.asyncio
    async def test_history_stays_capped(self, orchestrator, model, history, canonical_id, clock):
        model.generate.side_effect = lambda *args, **kwargs: response("Sure thing.")

        for i in range(15):
            await orchestrator.handle(canonical_id, f"tip number {i}")
            clock.advance(1)
            assert len(history.load(canonical_id)) <= 20
            assert len(history.sessions.get_turns(canonical_id)) <= 20

        assert history.load(canonical_id)[-1].text == "Sure thing."

    @pytest.mark.asyncio
    async def test_prompt_uses_recent_window(self, orchestrator, model, history):
        for i in range(5):
            history.append("web", f"q{i}", f"a{i}")
        model.reply_with(response("ok"))

        await orchestrator.handle("web", "and now?")

        prompt = model.prompts[0]
        assert "User: q1" not in prompt
        assert "User: q2" in prompt
        assert "Assistant: a4" in prompt
        assert "CURRENT MESSAGE: and now?" in prompt


class TestActions:
    @pytest.mark.asyncio
    async def test_model_tool_calls_become_actions(self, orchestrator, model):
        model.reply_with(
            response(
                "Added!",
                [("add_to_shopping_list", {"items": [{"name": "eggs"}]}), ("nope", {})],
            )
        )

        result = await orchestrator.handle("web", "I need eggs")

        assert result.actions[0]["action"] == "shopping_list_added"
        assert result.actions[1] == {"error": "Unknown function: nope"}

    @pytest.mark.asyncio
    async def test_visual_request_without_tool_call_gets_one_image_action(self, orchestrator, model):
        model.reply_with(response("It is golden and fluffy."))

        result = await orchestrator.handle("web", "Show me egg fried rice")

        images = [a for a in result.actions if a.get("action") == "reference_images"]
        assert len(result.actions) == 1
        assert len(images) == 1
        assert images[0]["query"] == "egg fried rice"

    @pytest.mark.asyncio
    async def test_pronoun_request_uses_latest_memory(self, orchestrator, model, store, canonical_id):
        store.save_memory_fact(canonical_id, MemoryFact("recipe", "Biryani, with saffron"))
        model.reply_with(response("It is layered and fragrant."))

        result = await orchestrator.handle(canonical_id, "Can you show me how it looks like?")

        assert len(result.actions) == 1
        assert result.actions[0]["query"] == "Biryani"

    @pytest.mark.asyncio
    async def test_no_fallback_when_model_called_tool(self, orchestrator, model):
        model.reply_with(response("Here you go", [("show_reference_images", {"query": "paella"})]))

        result = await orchestrator.handle("web", "show me paella")

        assert len(result.actions) == 1
        assert result.actions[0]["query"] == "paella"


class TestNutrition:
    @pytest.mark.asyncio
    async def test_new_recipe_gets_nutrition(self, orchestrator, model):
        model.reply_with(response(FRIED_RICE_REPLY))

        result = await orchestrator.handle("web", "How do I make fried rice?")

        assert result.outcome == TurnOutcome.COMPLETE
        assert result.reply == FRIED_RICE_REPLY
        assert {"calories", "protein", "carbs", "fat"} <= set(result.nutrition)
        model.complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_request_runs_once(self, orchestrator, model):
        model.reply_with(response(FRIED_RICE_REPLY))

        result = await orchestrator.handle("web", "Give me fried rice with calories")

        assert result.nutrition is not None
        assert model.complete.await_count == 1

    @pytest.mark.asyncio
    async def test_continuation_skips_nutrition(self, orchestrator, model, history):
        history.append("web", "Give me a fried rice recipe", "Egg fried rice coming up...")
        model.reply_with(response(FRIED_RICE_REPLY))

        result = await orchestrator.handle("web", "Great, go on")

        assert result.nutrition is None
        model.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_reply_skips_nutrition(self, orchestrator, model):
        model.reply_with(response("", [("save_recipe", SAVE_FRIED_RICE)]))

        result = await orchestrator.handle("web", "save the fried rice, and calories please")

        assert result.nutrition is None
        model.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nutrition_failure_is_swallowed(self, orchestrator, model):
        model.complete.side_effect = RuntimeError("quota")
        model.reply_with(response(FRIED_RICE_REPLY))

        result = await orchestrator.handle("web", "How do I make fried rice?")

        assert result.outcome == TurnOutcome.COMPLETE
        assert result.nutrition is None


class TestRecipeRecency:
    @pytest.mark.asyncio
    async def test_saved_recipe_detail_expires(self, orchestrator, model, canonical_id, clock):
        model.reply_with(
            response("Saved!", [("save_recipe", SAVE_FRIED_RICE)]),
            response("Step one: scramble the eggs."),
            response("Anything else?"),
        )

        await orchestrator.handle(canonical_id, "Please keep this fried rice recipe")
        clock.advance(60)
        await orchestrator.handle(canonical_id, "Walk me through the recipe")
        clock.advance(300)
        await orchestrator.handle(canonical_id, "Remind me which dishes I have")

        _, recent_prompt, late_prompt = model.prompts
        assert '⭐ MOST RECENTLY LEARNED RECIPE: "Egg Fried Rice"' in recent_prompt
        assert "1. 2 cups cooked rice" in recent_prompt
        assert "- Egg Fried Rice (medium" in late_prompt
        assert "MOST RECENTLY LEARNED RECIPE" not in late_prompt

    @pytest.mark.asyncio
    async def test_recency_window_is_configurable(self, model, data, history, conv_logger, event_logger, clock):
        orchestrator = ConversationOrchestrator(
            model_client=model,
            registry=build_kitchen_registry(data),
            data=data,
            history=history,
            config=OrchestratorConfig(recipe_recency_seconds=30),
            conversation_logger=conv_logger,
            event_logger=event_logger,
        )
        model.reply_with(
            response("Saved!", [("save_recipe", SAVE_FRIED_RICE)]),
            response("Sure."),
        )

        await orchestrator.handle("web", "Please keep this fried rice recipe")
        clock.advance(60)
        await orchestrator.handle("web", "Walk me through the recipe")

        assert "MOST RECENTLY LEARNED RECIPE" not in model.prompts[1]


class TestModelFailures:
    @pytest.mark.asyncio
    async def test_model_exception_falls_back(self, orchestrator, model, history):
        model.generate.side_effect = ConnectionError("unreachable")

        result = await orchestrator.handle("web", "How do I make fried rice?")

        assert result.outcome == TurnOutcome.FALLBACK
        assert result.reply == PROCESSING_FALLBACK
        assert result.actions == []
        assert history.load("web")[-1].text == PROCESSING_FALLBACK

    @pytest.mark.asyncio
    async def test_blocked_prompt_falls_back(self, orchestrator, model):
        model.reply_with(
            SimpleNamespace(
                text="",
                prompt_feedback=SimpleNamespace(block_reason=SimpleNamespace(name="SAFETY")),
            )
        )

        result = await orchestrator.handle("web", "How do I make fried rice?")

        assert result.outcome == TurnOutcome.FALLBACK
        assert result.reply == PROCESSING_FALLBACK
        model.complete.assert_not_awaited()


@pytest.mark.asyncio
async def test_turn_is_logged(orchestrator, model, conv_logger):
    model.reply_with(response(FRIED_RICE_REPLY, [("save_recipe", SAVE_FRIED_RICE)]))

    await orchestrator.handle("web", "How do I make fried rice?")

    with open(conv_logger._get_log_file("web"), encoding="utf-8") as f:
        events = [json.loads(line)["event"] for line in f]
    assert events == [
        "user_message",
        "llm_request",
        "llm_response",
        "tool_call",
        "tool_result",
        "nutrition_analysis",
        "assistant_message",
        "turn_end",
    ]

