"""Per-turn conversation pipeline.

gate -> assemble context -> call model -> interpret -> run actions ->
maybe nutrition -> record history. Each step runs once, in order; there is
no loop back to the model after tools run.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..conversation_logger import ConversationLogger, get_conversation_logger
from ..llm import SOURCE_FALLBACK, ModelClient, ToolCall, interpret_response
from ..logging import JSONLLogger, get_logger
from ..memory import ConversationHistory, UserDataService
from ..nutrition import (
    KeywordRecipeClassifier,
    NutritionAnalyzer,
    RecipeSuggestionClassifier,
    asks_for_nutrition,
)
from ..safety import GateVerdict, check_cooking_intent, validate_input
from ..store import ConversationTurn, MemoryFact
from ..tools import ToolRegistry
from ..tools.images import FALLBACK_REASON, reference_query_from_message, wants_to_see
from .prompt import build_context_prompt, build_recipe_context
from .replies import BLOCKED_MESSAGE, PROCESSING_FALLBACK

logger = logging.getLogger(__name__)


class TurnOutcome(Enum):
    """How a turn ended."""

    EMPTY = "empty"
    BLOCKED = "blocked"
    REDIRECTED = "redirected"
    COMPLETE = "complete"
    FALLBACK = "fallback"


@dataclass
class OrchestratorConfig:
    """Configuration for the conversation pipeline."""

    history_window: int = 6  # entries, i.e. three exchanges
    recipe_limit: int = 10
    recipe_recency_seconds: float = 300
    max_recipe_ingredients: int = 10
    max_recipe_steps: int = 5
    token_warning_threshold: int = 30000
    nutrition_servings: int = 1


@dataclass
class TurnResult:
    """Result of handling one user message."""

    reply: str
    outcome: TurnOutcome
    actions: list[dict[str, Any]] = field(default_factory=list)
    nutrition: dict[str, Any] | None = None
    verdict: GateVerdict | None = None


class ConversationOrchestrator:
    """Runs one conversation turn end to end."""

    def __init__(
        self,
        model_client: ModelClient,
        registry: ToolRegistry,
        data: UserDataService,
        history: ConversationHistory,
        config: OrchestratorConfig | None = None,
        classifier: RecipeSuggestionClassifier | None = None,
        nutrition_analyzer: NutritionAnalyzer | None = None,
        conversation_logger: ConversationLogger | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        self.model_client = model_client
        self.registry = registry
        self.data = data
        self.history = history
        self.config = config or OrchestratorConfig()
        self.classifier = classifier or KeywordRecipeClassifier()
        self.nutrition_analyzer = nutrition_analyzer or NutritionAnalyzer(model_client)
        self.conv_logger = conversation_logger or get_conversation_logger()
        self.event_logger = event_logger or get_logger()

    async def handle(self, user_id: str, text: str) -> TurnResult:
        """Handle a user message.

        Args:
            user_id: Canonical ids are persisted; anything else is a guest.
            text: The raw user message.

        Returns:
            TurnResult with the reply, actions taken and optional nutrition.
        """
        text = text or ""
        if not text.strip():
            return TurnResult(reply="", outcome=TurnOutcome.EMPTY)

        verdict = validate_input(text)
        if not verdict.safe:
            logger.info("Input blocked for %s: %s", user_id, verdict.reason)
            self.event_logger.log_safety_violation(
                user_id, text, verdict.reason or "", verdict.category or ""
            )
            return TurnResult(reply=BLOCKED_MESSAGE, outcome=TurnOutcome.BLOCKED, verdict=verdict)

        self.conv_logger.log_user_message(user_id, text)
        history = self.history.load(user_id)

        intent = check_cooking_intent(text)
        if not intent.safe:
            logger.info("Redirecting metaphorical request from %s", user_id)
            result = TurnResult(reply=intent.message or "", outcome=TurnOutcome.REDIRECTED)
        else:
            result = await self._run_model_turn(user_id, text, history)

        self.history.append(user_id, text, result.reply)

        self.conv_logger.log_assistant_message(user_id, result.reply)
        self.conv_logger.log_turn_end(
            user_id,
            outcome=result.outcome.value,
            actions_count=len(result.actions),
            has_nutrition=result.nutrition is not None,
        )
        return result

    def build_prompt(
        self,
        user_id: str,
        text: str,
        history: list[ConversationTurn],
    ) -> tuple[str, list[MemoryFact]]:
        """Assemble the prompt for a turn.

        Returns:
            The prompt and the memory facts it was built from.
        """
        cfg = self.config
        preferences = self.data.get_preferences(user_id)
        memory = self.data.get_memory(user_id)
        recipes = self.data.get_recipes(user_id, limit=cfg.recipe_limit)

        window = history[-cfg.history_window:] if cfg.history_window > 0 else []
        recipe_context = build_recipe_context(
            recipes,
            now=self.data.clock(),
            recency_seconds=cfg.recipe_recency_seconds,
            max_ingredients=cfg.max_recipe_ingredients,
            max_steps=cfg.max_recipe_steps,
        )
        prompt = build_context_prompt(
            message=text,
            user_context=self.data.format_for_prompt(preferences, memory),
            history=window,
            recipe_context=recipe_context,
        )
        return prompt, memory

    async def _run_model_turn(
        self,
        user_id: str,
        text: str,
        history: list[ConversationTurn],
    ) -> TurnResult:
        prompt, memory = self.build_prompt(user_id, text, history)
        declarations = self.registry.get_declarations()

        self.conv_logger.log_llm_request(
            user_id,
            model=self.model_client.model,
            prompt_chars=len(prompt),
            tools_count=len(declarations),
        )

        try:
            response = await self.model_client.generate(prompt, declarations)
            reply = interpret_response(response, self.config.token_warning_threshold)
        except Exception as e:
            logger.error("Model call failed for %s: %s", user_id, e)
            self.conv_logger.log_error(user_id, str(e), context="model_call")
            return TurnResult(reply=PROCESSING_FALLBACK, outcome=TurnOutcome.FALLBACK)

        self.conv_logger.log_llm_response(
            user_id,
            has_text=bool(reply.text),
            tool_calls_count=len(reply.tool_calls),
            finish_reason=reply.finish_reason,
            usage=reply.usage,
        )

        actions = []
        for call in reply.tool_calls:
            actions.append(await self._execute(user_id, call))

        if not actions and wants_to_see(text):
            fallback_call = ToolCall(
                name="show_reference_images",
                arguments={
                    "query": reference_query_from_message(text, memory),
                    "reason": FALLBACK_REASON,
                },
                source=SOURCE_FALLBACK,
            )
            logger.info(
                "No tool calls for a visual request, showing images for '%s'",
                fallback_call.arguments["query"],
            )
            actions.append(await self._execute(user_id, fallback_call))

        nutrition = await self._maybe_analyze_nutrition(user_id, text, reply.text, history)

        return TurnResult(
            reply=reply.text,
            outcome=TurnOutcome.COMPLETE,
            actions=actions,
            nutrition=nutrition,
        )

    async def _execute(self, user_id: str, call: ToolCall) -> dict[str, Any]:
        self.conv_logger.log_tool_call(
            user_id,
            tool_name=call.name,
            tool_args=call.arguments,
            source=call.source,
        )

        start_time = time.time()
        result = await self.registry.dispatch(call.name, call.arguments, user_id)
        duration_ms = (time.time() - start_time) * 1000

        self.conv_logger.log_tool_result(
            user_id,
            tool_name=call.name,
            success=result.success,
            output=result.output,
            error=result.error,
            duration_ms=duration_ms,
        )
        return result.to_action()

    def nutrition_trigger(
        self,
        text: str,
        reply_text: str,
        history: list[ConversationTurn],
    ) -> str | None:
        """Why nutrition should run for this turn, or None."""
        if not reply_text.strip():
            return None
        if asks_for_nutrition(text):
            return "explicit_request"
        if self.classifier.is_new_recipe_suggestion(reply_text, history):
            return "new_recipe"
        return None

    async def _maybe_analyze_nutrition(
        self,
        user_id: str,
        text: str,
        reply_text: str,
        history: list[ConversationTurn],
    ) -> dict[str, Any] | None:
        trigger = self.nutrition_trigger(text, reply_text, history)
        if trigger is None:
            return None

        logger.info("Analyzing nutrition for %s (%s)", user_id, trigger)
        try:
            nutrition = await self.nutrition_analyzer.analyze(
                reply_text, servings=self.config.nutrition_servings
            )
        except Exception as e:
            logger.warning("Nutrition analysis failed for %s: %s", user_id, e)
            self.conv_logger.log_nutrition(user_id, trigger=trigger, success=False)
            return None

        self.conv_logger.log_nutrition(user_id, trigger=trigger, success=True)
        return nutrition
