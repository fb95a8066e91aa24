"""Wires the assistant's components together from an AppConfig."""

from dataclasses import dataclass

from .agent import ConversationOrchestrator, OrchestratorConfig
from .config import AppConfig
from .conversation_logger import get_conversation_logger
from .llm import ModelClient, create_model_client
from .logging import configure_logger
from .memory import ConversationHistory, UserDataService
from .nutrition import NutritionAnalyzer
from .recipes import RecipeLearner
from .session import SessionConfig, SessionManager
from .store import KitchenStore
from .tools import build_kitchen_registry


@dataclass
class Services:
    """Everything a front end (HTTP or CLI) needs to run turns."""

    model_client: ModelClient
    store: KitchenStore
    sessions: SessionManager
    data: UserDataService
    orchestrator: ConversationOrchestrator
    learner: RecipeLearner

    def close(self) -> None:
        self.sessions.stop_cleanup_task()
        self.store.close()


def build_services(config: AppConfig, model_client: ModelClient | None = None) -> Services:
    """Build the service graph.

    Raises:
        ModelNotConfiguredError: If no model client is given and the
            configured provider has no API key.
    """
    configure_logger(config.log_dir)
    conv_logger = get_conversation_logger(config.log_dir / "conversations")

    if model_client is None:
        model_client = create_model_client(config.model)

    store = KitchenStore(config.db_path)
    store.init_db()

    sessions = SessionManager(
        SessionConfig(
            max_turns=config.history_max_turns,
            ttl_seconds=config.session_ttl_seconds,
        )
    )
    data = UserDataService(store, sessions)
    history = ConversationHistory(data, limit=config.history_max_turns)
    analyzer = NutritionAnalyzer(model_client)

    orchestrator = ConversationOrchestrator(
        model_client,
        build_kitchen_registry(data),
        data,
        history,
        config=OrchestratorConfig(recipe_recency_seconds=config.recipe_recency_seconds),
        nutrition_analyzer=analyzer,
        conversation_logger=conv_logger,
    )
    learner = RecipeLearner(model_client, data, nutrition_analyzer=analyzer)

    return Services(
        model_client=model_client,
        store=store,
        sessions=sessions,
        data=data,
        orchestrator=orchestrator,
        learner=learner,
    )
