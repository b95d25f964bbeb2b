"""Interactive command-line chat.

Type "exit" to quit and "clear" to reset the conversation.
"""

import os
from typing import Optional

import click

from deca_chat.config.settings import get_settings
from deca_chat.domain.exceptions import CompletionError, ConfigError
from deca_chat.infrastructure.logging.logger import setup_logger
from deca_chat.providers.registry import PRESET_REGISTRY, get_preset
from deca_chat.session import ChatSession, SessionConfig


def _resolve_api_key(explicit: Optional[str], provider: str, settings) -> str:
    """命令行参数 > Settings > 预设对应的环境变量 > 交互输入。"""

    if explicit:
        return explicit
    if settings.api_key:
        return settings.api_key
    env_name = get_preset(provider).api_key_env
    from_env = os.getenv(env_name)
    if from_env:
        return from_env
    return click.prompt(f"Enter your {provider} API key", hide_input=True)


@click.command()
@click.option(
    "--provider",
    type=click.Choice(sorted(PRESET_REGISTRY), case_sensitive=False),
    default=None,
    help="Endpoint preset (base URL and default model); defaults to settings.provider.",
)
@click.option("--api-key", default=None, help="API key; falls back to settings, then the preset's env var.")
@click.option("--model", default=None, help="Model name.")
@click.option("--base-url", default=None, help="Custom API base URL.")
@click.option("--system", "system_message", default=None, help="System message for the conversation.")
@click.option("--intro", default=None, help="Assistant intro shown before the first exchange.")
@click.option("--max-tokens", type=int, default=None, help="Maximum tokens per reply.")
@click.option("--temperature", type=float, default=None, help="Sampling temperature between 0 and 1.")
def main(
    provider: Optional[str],
    api_key: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
    system_message: Optional[str],
    intro: Optional[str],
    max_tokens: Optional[int],
    temperature: Optional[float],
) -> None:
    """Chat with an OpenAI-compatible model from the terminal."""

    try:
        settings = get_settings()
        provider = (provider or settings.provider).lower()
        key = _resolve_api_key(api_key, provider, settings)
        config = SessionConfig.from_settings(
            settings,
            preset=provider,
            api_key=key,
            model=model,
            base_url=base_url,
            system_message=system_message,
            intro=intro,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        setup_logger(log_dir=settings.log_dir, redact_content=settings.log_redact_content)
        session = ChatSession(config)
    except (ConfigError, KeyError) as e:
        message = e.message if isinstance(e, ConfigError) else str(e)
        raise click.ClickException(message) from e

    click.echo(f'\n{provider} chat started. Type "exit" to quit, "clear" to reset conversation.\n')
    if session.intro_text:
        click.echo(f"Assistant: {session.intro_text}\n")

    while True:
        try:
            line = click.prompt("You", default="", show_default=False)
        except click.Abort:
            break
        text = line.strip()
        if not text:
            continue
        if text.lower() == "exit":
            break
        if text.lower() == "clear":
            session.clear_conversation()
            click.echo("Conversation cleared.")
            continue
        try:
            reply = session.send_message(text)
        except CompletionError as e:
            click.echo(f"Error: {e.message}", err=True)
            continue
        click.echo(f"\nAssistant: {reply}\n")


if __name__ == "__main__":
    main()
