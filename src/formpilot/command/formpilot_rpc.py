"""
formpilot-rpc: serve set_value / type_value over stdin/stdout.

Each stdin line is one JSON request; each response is written as one JSON
line on stdout. Logs go to stderr and, with --log-file, to a file.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from dotenv import load_dotenv

from formpilot.command.command_utils import get_log_dir, get_package_root
from formpilot.common.logger import setup_logging
from formpilot.value_stack import PlaywrightDocumentProvider, ValueRpcService, ValueStackConfig
from formpilot.value_stack.errors import INVALID_REQUEST

DEFAULT_LOG_CONFIG = get_package_root() / "configs" / "logging_config.yaml"
DEFAULT_LOG_FILE = "formpilot-rpc.log"

logger = logging.getLogger(__name__)


def _parse_line(line: str) -> Optional[Dict[str, Any]]:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        logger.debug("formpilot_rpc parse_error error=%s", exc)
        return None
    return payload


async def _serve(
    *,
    url: Optional[str],
    headless: bool,
    refresh: bool,
    config: ValueStackConfig,
) -> None:
    from playwright.async_api import async_playwright

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            if url:
                await page.goto(url, wait_until="domcontentloaded")
            logger.info("formpilot_rpc ready url=%s headless=%s", url or page.url, headless)

            provider = PlaywrightDocumentProvider(context)
            service = ValueRpcService(provider, config=config)
            loop = asyncio.get_running_loop()

            while True:
                line = await loop.run_in_executor(None, sys.stdin.readline)
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue
                request = _parse_line(line)
                if request is None:
                    response: Dict[str, Any] = {
                        "error": {"code": INVALID_REQUEST, "message": "Invalid request: malformed JSON"}
                    }
                else:
                    if refresh:
                        provider.refresh()
                    response = await service.handle(request)
                click.echo(json.dumps(response, ensure_ascii=False))
        finally:
            await browser.close()


@click.command()
@click.option("--url", default=None, help="Page to open before serving requests.")
@click.option(
    "--headless/--headed",
    default=True,
    show_default=True,
    help="Run Chromium without a visible window.",
)
@click.option(
    "--refresh",
    is_flag=True,
    help="Rebuild the element inventory before every request.",
)
@click.option(
    "--log-config",
    "log_config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Logging config (YAML or JSON). Defaults to the packaged logging_config.yaml.",
)
@click.option("--log-file", "log_file", is_flag=True, help=f"Also log to ~/.formpilot/logs/{DEFAULT_LOG_FILE}.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def run(
    url: Optional[str],
    headless: bool,
    refresh: bool,
    log_config: Optional[str],
    log_file: bool,
    verbose: bool,
):
    load_dotenv()
    setup_logging(
        config_file_path=Path(log_config) if log_config else DEFAULT_LOG_CONFIG,
        log_file_path=get_log_dir() / DEFAULT_LOG_FILE if log_file else None,
        verbose=verbose,
    )
    config = ValueStackConfig.from_env()

    try:
        asyncio.run(_serve(url=url, headless=headless, refresh=refresh, config=config))
    except KeyboardInterrupt:
        logger.info("formpilot_rpc interrupted")
    except Exception as exc:
        logger.error("formpilot_rpc failed error=%s", exc)
        raise click.ClickException(str(exc)) from exc


if __name__ == "__main__":
    run()
