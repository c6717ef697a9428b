#!/usr/bin/env python3
"""
QA ToolHub - Jira/Confluence proxy

Command line entry point: runs the proxy server and exposes the offline
helpers (checklist rendering, ticket text parsing, translation) for scripting.
"""

import click
import json
import logging
import sys

import requests

from toolhub.config import Config
from toolhub.checklist import ChecklistDocument
from toolhub.confluence_client import ConfluenceClient, InvalidConfluenceResponse
from toolhub.ticket_parser import parse_ticket_text
from toolhub.translator import Translator


def setup_logging(verbose: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    # Formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    console_handler.setFormatter(formatter)

    # Configure root logger
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.addHandler(console_handler)

    # Reduce noise from external libraries
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


@click.group()
@click.option('--config', '-c', default='config.yaml', help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """QA ToolHub - Jira/Confluence proxy"""
    setup_logging(verbose)

    try:
        config_obj = Config(config)
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    ctx.obj = config_obj


@cli.command()
@click.option('--host', default='0.0.0.0', help='Interface to bind')
@click.option('--port', type=int, default=None, help='Port (defaults to PORT or server.port)')
@click.option('--reload', is_flag=True, help='Reload on code changes')
@click.pass_context
def serve(ctx, host, port, reload):
    """Run the proxy server"""
    import uvicorn

    config = ctx.obj
    uvicorn.run("api.main:app", host=host, port=port or config.get_port(), reload=reload, log_level="info")


@cli.command()
@click.argument('release_name')
@click.option('--format', 'output_format', type=click.Choice(['adf', 'html']), default='adf',
              help='Render as Atlassian Document Format or storage HTML')
def checklist(release_name, output_format):
    """Render the release checklist for RELEASE_NAME"""
    document = ChecklistDocument(release_name)
    summary = document.summary()
    click.echo(
        f"📋 {summary['template']} checklist: {summary['stepCount']} steps ({summary['rowCount']} rows), {summary['checkboxCount']} checkboxes",
        err=True
    )
    if output_format == 'html':
        click.echo(document.to_html())
    else:
        click.echo(json.dumps(document.to_adf(), indent=2, ensure_ascii=False))


@cli.command('parse-ticket')
@click.argument('source', type=click.File('r'), default='-')
def parse_ticket(source):
    """Parse a free-text report (file or stdin) into ticket fields"""
    ticket = parse_ticket_text(source.read())
    if ticket is None:
        click.echo("❌ Text is required", err=True)
        sys.exit(1)
    click.echo(json.dumps(ticket.model_dump(by_alias=True, exclude_none=True), indent=2, ensure_ascii=False))


@cli.command()
@click.argument('text')
@click.pass_context
def translate(ctx, text):
    """Translate Vietnamese TEXT to English"""
    settings = ctx.obj.translation
    translator = Translator(
        google_url=settings.get('google_url'),
        libretranslate_url=settings.get('libretranslate_url'),
        source=settings.get('source_language', 'vi'),
        target=settings.get('target_language', 'en'),
        timeout=settings.get('timeout', 10)
    )
    click.echo(translator.translate(text))


@cli.command()
@click.pass_context
def spaces(ctx):
    """List Confluence spaces of the configured account"""
    config = ctx.obj
    if not config.has_confluence_credentials():
        click.echo("❌ Confluence credentials are not configured", err=True)
        sys.exit(1)

    client = ConfluenceClient(
        server_url=config.confluence['server_url'],
        username=config.confluence['username'],
        api_token=config.confluence['api_token']
    )
    try:
        result = client.get_spaces()
    except (requests.exceptions.RequestException, InvalidConfluenceResponse) as e:
        click.echo(f"❌ Failed to fetch spaces: {e}", err=True)
        sys.exit(1)

    for space in result:
        click.echo(f"{space['key']}\t{space['name']}")
    click.echo(f"✅ {len(result)} spaces", err=True)


if __name__ == '__main__':
    cli()
