"""Command-line interface for the chain explainer."""

import sys
import json
import asyncio
from typing import Optional
import click
import structlog

from chain_explainer.core.errors import ChainExplainerError
from chain_explainer.core.explainer import ChainExplainer
from chain_explainer.core.identifier import classify_identifier
from chain_explainer.models.config import ExplainerSettings
from chain_explainer.models.networks import BITCOIN, SIDECHAIN_NAMES, STACKS, build_registry
from chain_explainer.utils.logging import setup_logging

logger = structlog.get_logger(__name__)

CHAIN_CHOICES = click.Choice([BITCOIN, STACKS, *SIDECHAIN_NAMES])


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _run(ctx, operation):
    """Run ``operation(explainer)`` on a fresh explainer and close it afterwards."""
    async def runner():
        async with ChainExplainer(settings=ctx.obj['settings'], transport=ctx.obj.get('transport')) as explainer:
            return await operation(explainer)

    return asyncio.run(runner())


@click.group()
@click.option('--env-file', '-e', type=click.Path(exists=True),
              help='Path to a .env configuration file')
@click.option('--log-level', '-l', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
@click.pass_context
def cli(ctx, env_file: Optional[str], log_level: str):
    """Chain Explainer CLI for Bitcoin, Stacks/sBTC and BIP300 sidechains."""
    ctx.ensure_object(dict)

    try:
        if env_file:
            settings = ExplainerSettings(_env_file=env_file)
        else:
            settings = ExplainerSettings()

        settings.log_level = log_level
        setup_logging(settings)

        ctx.obj['settings'] = settings

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('text')
@click.option('--context', '-c', 'context_chain', default=BITCOIN, type=CHAIN_CHOICES,
              help='Chain context for bare 64-hex ids')
def classify(text: str, context_chain: str):
    """Classify INPUT as a transaction id, address or query (no network access)."""
    result = classify_identifier(text, context_chain=context_chain)
    _echo_json({
        'kind': result.kind,
        'chain': result.chain,
        'subtype': result.subtype,
        'normalized': result.normalized,
    })


@cli.command()
@click.argument('text')
@click.option('--context', '-c', 'context_chain', default=BITCOIN, type=CHAIN_CHOICES,
              help='Chain context for bare 64-hex ids')
@click.pass_context
def analyze(ctx, text: str, context_chain: str):
    """Fetch and explain a transaction or address."""
    try:
        result = _run(ctx, lambda explainer: explainer.analyze_input(text, context_chain=context_chain))
        _echo_json(result.to_dict())
    except ChainExplainerError as e:
        click.echo(f"❌ Analysis failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--chain', default=BITCOIN, type=CHAIN_CHOICES, help='Chain to query')
@click.option('--limit', '-n', default=10, type=int, help='Number of blocks')
@click.option('--offset', default=0, type=int, help='Blocks to skip from the tip')
@click.pass_context
def blocks(ctx, chain: str, limit: int, offset: int):
    """List recent blocks, newest first."""
    try:
        result = _run(ctx, lambda explainer: explainer.adapter_for(chain).fetch_recent_blocks(limit, offset))
        _echo_json({
            'chain': chain,
            'is_synthetic': result.is_synthetic,
            'blocks': [block.model_dump(mode='json') for block in result.record],
        })
    except ChainExplainerError as e:
        click.echo(f"❌ Failed to fetch blocks: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--chain', default=BITCOIN, type=CHAIN_CHOICES, help='Chain to query')
@click.pass_context
def stats(ctx, chain: str):
    """Show network statistics."""
    try:
        result = _run(ctx, lambda explainer: explainer.adapter_for(chain).fetch_stats())
        data = result.record.model_dump(mode='json')
        data['is_synthetic'] = result.is_synthetic
        _echo_json(data)
    except ChainExplainerError as e:
        click.echo(f"❌ Failed to fetch stats: {e}", err=True)
        sys.exit(1)


@cli.command('sbtc-operations')
@click.option('--limit', '-n', default=20, type=int, help='Recent Stacks transactions to scan')
@click.option('--address', '-a', default=None, help='Only scan transactions of this Stacks address')
@click.pass_context
def sbtc_operations(ctx, limit: int, address: Optional[str]):
    """List recent sBTC operations on Stacks."""
    def list_operations(explainer):
        if address:
            return explainer.list_address_sbtc_operations(address, limit)
        return explainer.list_sbtc_operations(limit)

    try:
        operations = _run(ctx, list_operations)
        _echo_json([operation.to_dict() for operation in operations])
    except ChainExplainerError as e:
        click.echo(f"❌ Failed to list sBTC operations: {e}", err=True)
        sys.exit(1)


@cli.command('sbtc-balance')
@click.argument('address')
@click.pass_context
def sbtc_balance(ctx, address: str):
    """Show the sBTC balance of a Stacks address."""
    try:
        balance = _run(ctx, lambda explainer: explainer.sbtc_balance(address))
        _echo_json(balance.to_dict())
    except ChainExplainerError as e:
        click.echo(f"❌ Failed to fetch sBTC balance: {e}", err=True)
        sys.exit(1)


@cli.command('sidechain-status')
@click.option('--chain', default=None, type=click.Choice(list(SIDECHAIN_NAMES)),
              help='Sidechain to query (defaults to the configured one)')
@click.pass_context
def sidechain_status(ctx, chain: Optional[str]):
    """Show sidechain node sync status and mempool."""
    async def operation(explainer):
        adapter = explainer.adapter_for(chain or explainer.registry.sidechain().chain)
        node, mempool = await asyncio.gather(adapter.get_node_status(), adapter.get_mempool_info())
        return adapter.chain, node, mempool

    try:
        name, node, mempool = _run(ctx, operation)
        _echo_json({
            'chain': name,
            'node': node.model_dump(mode='json'),
            'mempool': mempool.model_dump(mode='json'),
        })
    except ChainExplainerError as e:
        click.echo(f"❌ Failed to fetch sidechain status: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def sources(ctx):
    """Show configured networks and provider URLs."""
    settings = ctx.obj['settings']
    registry = build_registry(settings)

    info = settings.get_source_info()
    info['providers'] = {
        key: list(descriptor.provider_urls)
        for key, descriptor in registry.items()
    }
    _echo_json(info)


@cli.command()
def version():
    """Show version information."""
    from chain_explainer import __version__, __description__

    click.echo(f"Chain Explainer v{__version__}")
    click.echo(__description__)


if __name__ == '__main__':
    cli()
