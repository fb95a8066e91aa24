"""Interactive command-line interface for Chef Compadre."""

import json
import os
import uuid
from typing import Any

from . import __version__
from .agent import TurnOutcome, TurnResult
from .config import PROVIDER_GROQ, AppConfig, config_from_env
from .errors import ModelNotConfiguredError
from .logging import get_logger
from .services import Services, build_services

BANNER = f"""
╔══════════════════════════════════════════╗
║        🍳 Chef Compadre v{__version__}           ║
║      Your cooking assistant              ║
╚══════════════════════════════════════════╝

Commands:
  /exit, /quit   - Exit the CLI
  /reset         - Forget this session and start a new one
  /user <id>     - Chat as another user id (UUIDs are persisted)
  /learn <url>   - Learn a recipe from a web page
  /help          - Show this help

Type your message and press Enter.
"""


def _format_action(action: dict[str, Any]) -> str:
    if "error" in action:
        return f"  ✗ {action['error']}"
    return f"  ✓ {action.get('message') or action.get('action', 'done')}"


def format_result(result: TurnResult) -> str:
    """Format a turn result for display."""
    output = ["\n" + "─" * 40]
    output.append(result.reply or "(no reply)")
    output.append("─" * 40)

    if result.outcome is TurnOutcome.BLOCKED:
        output.append("⚠ Blocked by safety checks")

    if result.actions:
        output.append("Actions:")
        output.extend(_format_action(a) for a in result.actions)

    if result.nutrition:
        n = result.nutrition
        output.append(
            f"Nutrition: {n.get('calories', '?')} kcal, {n.get('protein', '?')}g protein, "
            f"{n.get('carbs', '?')}g carbs, {n.get('fat', '?')}g fat"
        )

    return "\n".join(output)


class CLI:
    """Interactive command-line interface."""

    def __init__(self, services: Services, user_id: str | None = None) -> None:
        self.services = services
        self.user_id = user_id or self._new_user_id()
        self.logger = get_logger()

    def _new_user_id(self) -> str:
        """Generate a new guest user id."""
        return f"cli-{uuid.uuid4().hex[:8]}"

    def _reset(self) -> None:
        """Drop the session and start over with a fresh guest id."""
        old_user_id = self.user_id
        self.services.sessions.destroy_session(old_user_id)
        self.user_id = self._new_user_id()
        self.logger.log("session_reset", user_id=self.user_id, old_user_id=old_user_id)
        print(f"\n✓ Session reset. New user id: {self.user_id}")

    async def _process_message(self, message: str) -> None:
        """Run one conversation turn."""
        try:
            result = await self.services.orchestrator.handle(self.user_id, message)
            print(format_result(result))
        except Exception as e:
            print(f"\n❌ Error: {e}")
            self.logger.log("error", user_id=self.user_id, error=str(e))

    async def _learn(self, url: str) -> None:
        if not url:
            print("Usage: /learn <url>")
            return
        try:
            result = await self.services.learner.learn(self.user_id, url=url)
        except Exception as e:
            print(f"\n❌ Error: {e}")
            self.logger.log("error", user_id=self.user_id, error=str(e))
            return

        print(f"\n📖 {result.message}")
        if result.note:
            print(f"   {result.note}")
        if result.nutrition:
            print(json.dumps(result.nutrition, indent=2, ensure_ascii=False))

    async def _handle_command(self, command: str) -> bool:
        """Handle a special command. Returns True if should continue, False to exit."""
        cmd, _, arg = command.strip().partition(" ")
        cmd = cmd.lower()
        arg = arg.strip()

        if cmd in ("/exit", "/quit", "exit", "quit"):
            print("\n👋 Goodbye!")
            self.logger.log("session_end", user_id=self.user_id)
            return False

        if cmd == "/reset":
            self._reset()
            return True

        if cmd == "/user":
            if arg:
                self.user_id = arg
                print(f"\n✓ Now chatting as {self.user_id}")
            else:
                print(f"Current user id: {self.user_id}")
            return True

        if cmd == "/learn":
            await self._learn(arg)
            return True

        if cmd == "/help":
            print(BANNER)
            return True

        return True  # Unknown command, continue

    async def run(self) -> None:
        """Run the interactive CLI."""
        print(BANNER)
        print(f"User: {self.user_id}\n")
        self.logger.log("session_start", user_id=self.user_id)

        try:
            while True:
                try:
                    user_input = input("you> ").strip()

                    if not user_input:
                        continue

                    if user_input.startswith("/") or user_input.lower() in ("exit", "quit"):
                        if not await self._handle_command(user_input):
                            break
                        continue

                    await self._process_message(user_input)

                except KeyboardInterrupt:
                    print("\n\n⚡ Interrupted")
                    try:
                        confirm = input("Exit? (y/n): ").strip().lower()
                        if confirm in ("y", "yes"):
                            print("👋 Goodbye!")
                            self.logger.log("session_interrupt", user_id=self.user_id)
                            break
                    except (KeyboardInterrupt, EOFError):
                        print("\n👋 Goodbye!")
                        break

                except EOFError:
                    print("\n👋 Goodbye!")
                    break
        finally:
            self.services.close()


async def run_cli(config: AppConfig | None = None) -> None:
    """Run the CLI with configuration from the environment."""
    config = config or config_from_env()

    try:
        services = build_services(config)
    except ModelNotConfiguredError:
        key_var = "GROQ_API_KEY" if config.model.provider == PROVIDER_GROQ else "GEMINI_API_KEY"
        print(f"❌ Error: {key_var} environment variable not set")
        print("Please set it in your .env file or environment")
        return

    cli = CLI(services, user_id=os.getenv("COMPADRE_USER_ID"))
    await cli.run()
