"""
FabricSim CLI Tool

This module provides a command-line interface for the transaction-flow simulator.
It runs one or more flows through the proposal, endorsement, ordering,
distribution and commit phases, prints the phase events and execution log as
they happen, and shows the resulting hash chain.
"""

import asyncio
import json
import logging
from collections import deque

import click

from fabricsim import __version__
from fabricsim.config.settings import get_settings
from fabricsim.consensus.flow_controller import FailurePolicy, PhaseEvent
from fabricsim.core.simulation_engine import SimulationEngine
from fabricsim.error_mitigation.validator import ValidationError, ConfigurationError
from fabricsim.network.topology import NetworkTopology


def _print_phase(event: PhaseEvent):
    click.echo(f"  [{event.phase.value:<12}] {event.status_text}")
    for edge in event.edges:
        click.echo(f"      {edge.source} -> {edge.target} ({edge.kind})")


def _print_chain(engine: SimulationEngine):
    state = engine.get_chain_state()
    click.echo("")
    click.echo(f"Chain height: {state['current_height']}")
    for block in state["blocks"]:
        tx_ids = ", ".join(tx.id[:8] for tx in block.transactions)
        click.echo(f"  Block #{block.height}: {block.hash[:16]}... prev={block.previous_hash[:16]}... txs=[{tx_ids}]")
    for tx in state["transactions"]:
        click.echo(f"  Tx {tx.id[:8]}: {tx.sender} -> {tx.receiver} {tx.status.value}")
    problems = engine.ledger.verify_chain()
    click.echo("Chain valid" if not problems else f"Chain INVALID: {problems}")


@click.group()
@click.version_option(__version__, prog_name="fsim")
@click.option('--log-level', default=None, help='Logging level (defaults to settings)')
@click.pass_context
def fsim(ctx, log_level):
    """FabricSim CLI - Transaction flow simulator"""
    ctx.ensure_object(dict)
    settings = get_settings()
    logging.basicConfig(level=(log_level or settings.LOG_LEVEL).upper(), format=settings.LOG_FORMAT)
    ctx.obj['settings'] = settings


@fsim.command()
@click.option('--sender', required=True, help='Submitting organization')
@click.option('--receiver', required=True, help='Receiving organization')
@click.option('--type', 'tx_type', default=None, help='Transaction type (defaults to settings)')
@click.option('--chaincode', default=None, help='Chaincode name (defaults to settings)')
@click.option('--function', 'function', default=None, help='Chaincode function (defaults to settings)')
@click.option('--args', 'args', default=None, help='Function arguments (defaults to settings)')
@click.option('--count', default=1, type=click.IntRange(min=1), help='Number of transactions to submit')
@click.option('--speed', default=None, type=float, help='Seconds between phases')
@click.option('--chaincode-flow/--no-chaincode-flow', default=None, help='Show chaincode execution edges')
@click.option('--ledger/--no-ledger', 'show_ledger', default=None, help='Show ledger commit edges')
@click.option('--endorsement-failure-rate', default=None, type=float, help='Probability of endorsement mismatch')
@click.option('--ordering-timeout-rate', default=None, type=float, help='Probability of ordering timeout')
@click.option('--seed', default=None, type=int, help='Seed for failure injection')
@click.option('--json', 'as_json', is_flag=True, help='Print the final chain state as JSON')
@click.pass_context
def simulate(ctx, sender, receiver, tx_type, chaincode, function, args, count, speed,
             chaincode_flow, show_ledger, endorsement_failure_rate, ordering_timeout_rate, seed, as_json):
    """Run transaction flows and print every phase"""
    settings = ctx.obj['settings']
    if chaincode_flow is not None:
        settings.SHOW_CHAINCODE_FLOW = chaincode_flow
    if show_ledger is not None:
        settings.SHOW_LEDGER = show_ledger

    try:
        failure_config = settings.get_failure_config()
        policy = FailurePolicy(
            endorsement_failure_rate if endorsement_failure_rate is not None else failure_config["endorsement_failure_rate"],
            ordering_timeout_rate if ordering_timeout_rate is not None else failure_config["ordering_timeout_rate"],
            seed if seed is not None else failure_config["seed"],
        )
        engine = SimulationEngine(settings=settings, failure_policy=policy)
        if speed is not None:
            engine.set_speed(speed)
    except ValidationError as e:
        raise click.BadParameter(e.message)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if not as_json:
        engine.on_phase_change(_print_phase)
        engine.on_log(lambda line: click.echo(f"  {line}"))

    draft = {
        "sender": sender,
        "receiver": receiver,
        "type": tx_type,
        "chaincode": chaincode,
        "function": function,
        "args": args,
    }

    async def run():
        in_flight = deque()
        for _ in range(count):
            # Wait for the oldest flow to finish while the admission queue is full
            while engine.queued_flows >= engine.max_queued_flows:
                await engine.wait_for(in_flight.popleft())
            tx = engine.submit(draft)
            in_flight.append(tx.id)
            if not as_json:
                click.echo(f"Submitted transaction {tx.id[:8]} ({sender} -> {receiver})")
        await engine.run_until_idle()

    try:
        asyncio.run(run())
    except ValidationError as e:
        raise click.ClickException(e.message)

    if as_json:
        state = engine.get_chain_state()
        click.echo(json.dumps({
            "blocks": [block.to_dict() for block in state["blocks"]],
            "transactions": [tx.to_dict() for tx in state["transactions"]],
            "current_height": state["current_height"],
            "valid": engine.ledger.is_chain_valid(),
        }, indent=2))
    else:
        _print_chain(engine)


@fsim.command()
@click.pass_context
def topology(ctx):
    """Show the nodes and connections of the simulated network"""
    net = NetworkTopology.from_settings(ctx.obj['settings'])
    click.echo("Nodes:")
    for node in net.nodes():
        owner = f" ({node.organization})" if node.organization else ""
        click.echo(f"  {node.node_id:<20} {node.kind.value:<13} {node.label}{owner}")
    click.echo("Connections:")
    for edge in net.connections():
        click.echo(f"  {edge.source} -> {edge.target}")


@fsim.command()
@click.option('--host', default=None, help='Bind address')
@click.option('--port', default=None, type=int, help='Bind port')
@click.pass_context
def serve(ctx, host, port):
    """Start the REST API server"""
    from fabricsim.api.server import run_server
    run_server(host=host, port=port, settings=ctx.obj['settings'])


if __name__ == '__main__':
    fsim()
