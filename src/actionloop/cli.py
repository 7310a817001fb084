"""Command-line interface for actionloop.

Provides the main entry point for running a browser-automation task
through the agent loop, or listing the actions exposed to the model.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="actionloop",
        description="Model-directed browser automation loop",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/actionloop.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run a task through the agent loop")
    run_parser.add_argument(
        "--task", type=str, required=True,
        help="Task description for the model",
    )
    run_parser.add_argument(
        "--session-id", type=str, default=None,
        help="Stable session id (default: a random one)",
    )
    run_parser.add_argument(
        "--max-steps", type=int, default=None,
        help="Maximum model steps before the run fails",
    )

    subparsers.add_parser("actions", help="List the actions exposed to the model")

    return parser.parse_args(argv)


def build_model_client(settings):
    """Create the configured model client, wrapped for retries if enabled."""
    from actionloop.model.retry import RetryingModelClient

    cfg = settings.model
    if cfg.provider == "anthropic":
        from actionloop.model.anthropic import AnthropicModelClient
        client = AnthropicModelClient(
            api_key=settings.anthropic_api_key.get_secret_value(),
            model=cfg.model,
            system_prompt=cfg.system_prompt_override,
            max_tokens=cfg.max_tokens,
        )
    else:
        from actionloop.model.openai import OpenAIModelClient
        api_key = settings.openai_api_key.get_secret_value()
        base_url = cfg.base_url
        # If OpenRouter key is set, use it
        or_key = settings.openrouter_api_key.get_secret_value()
        if or_key:
            api_key = or_key
            if not base_url:
                base_url = "https://openrouter.ai/api/v1"
        client = OpenAIModelClient(
            api_key=api_key,
            model=cfg.model,
            base_url=base_url,
            system_prompt=cfg.system_prompt_override,
            max_tokens=cfg.max_tokens,
        )

    if cfg.max_retries:
        return RetryingModelClient(client, max_retries=cfg.max_retries, backoff=cfg.retry_backoff)
    return client


async def _run_task(settings, args, transport=None) -> int:
    """Initialize all components and run the agent loop."""
    from actionloop.actions.base import ActionError, ActionRegistry
    from actionloop.actions.browser import HttpBrowserBackend, register_browser_actions
    from actionloop.agent.loop import run_automation
    from actionloop.errors import ActionLoopError

    session_id = args.session_id or f"session-{uuid.uuid4().hex[:12]}"
    model = build_model_client(settings)
    max_steps = args.max_steps or settings.agent.max_steps

    backend = HttpBrowserBackend(
        base_url=settings.browser.base_url,
        timeout=settings.browser.timeout,
        session_id=session_id,
        transport=transport,
    )
    try:
        async with backend:
            registry = register_browser_actions(ActionRegistry(), backend)
            session = await run_automation(
                session_id,
                args.task,
                model=model,
                registry=registry,
                concurrent_actions=settings.agent.concurrent_actions,
                action_timeout=settings.agent.action_timeout,
                max_steps=max_steps,
            )
    except (ActionLoopError, ActionError) as e:
        # ActionError here means the browser endpoint itself is unusable
        print(f"\nRun failed: {type(e).__name__}: {e}")
        failed_session = getattr(e, "session", None)
        if failed_session is not None:
            for line in failed_session.summary():
                print(f"  {line}")
        return 1

    print(f"\nSession: {session.session_id}")
    print(f"Result: {session.final_text}")
    print("\nTurns:")
    for line in session.summary():
        print(f"  {line}")
    return 0


def _list_actions(settings) -> None:
    """Print every browser action and its input schema."""
    from actionloop.actions.base import ActionRegistry
    from actionloop.actions.browser import HttpBrowserBackend, register_browser_actions

    registry = register_browser_actions(
        ActionRegistry(), HttpBrowserBackend(base_url=settings.browser.base_url)
    )
    for schema in registry.schemas():
        print(f"{schema['name']}: {schema['description']}")
        print(f"  {json.dumps(schema['input_schema'])}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the actionloop CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from actionloop.config.settings import load_settings
    from actionloop.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "run":
        logger.info("Starting run with task: %s", args.task)
        sys.exit(asyncio.run(_run_task(settings, args)))

    elif args.command == "actions":
        _list_actions(settings)


if __name__ == "__main__":
    main()
