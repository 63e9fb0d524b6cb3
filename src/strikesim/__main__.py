import json
import logging

import click

from strikesim.config import Settings
from strikesim.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _target_options(f):
    f = click.option("--kind", "-k", type=click.Choice(["above", "range"]), required=True,
                     help="Target shape")(f)
    f = click.option("--strike", "-K", type=float, default=None,
                     help="Strike for 'above' targets")(f)
    f = click.option("--lower", "-L", type=float, default=None,
                     help="Lower bound for 'range' targets")(f)
    f = click.option("--upper", "-U", type=float, default=None,
                     help="Upper bound for 'range' targets")(f)
    return f


def _engine_options(f):
    f = click.argument("inputs_file", type=click.File("r"))(f)
    f = click.option("--paths", "-n", type=int, default=None,
                     help="Number of paths (default: SS_SIMULATION_NUM_PATHS)")(f)
    f = click.option("--seed", "-s", type=int, default=None,
                     help="Seed for reproducible runs (default: entropy)")(f)
    f = click.option("--vol-mult", type=click.FloatRange(min=0, min_open=True), default=1.0,
                     help="Volatility multiplier")(f)
    f = click.option("--jump-intensity-mult", type=click.FloatRange(min=0, min_open=True), default=1.0,
                     help="Jump intensity multiplier")(f)
    f = click.option("--jump-size-mult", type=click.FloatRange(min=0, min_open=True), default=1.0,
                     help="Jump size multiplier")(f)
    return f


def _build(inputs_file, seed, vol_mult, jump_intensity_mult, jump_size_mult, settings):
    from strikesim.engine import MonteCarloEngine
    from strikesim.schemas import SimulationInputs
    from strikesim.sensitivity import SensitivityParams, apply_sensitivity

    inputs = SimulationInputs.parse(inputs_file.read())
    inputs = apply_sensitivity(inputs, SensitivityParams(
        volatility_multiplier=vol_mult,
        jump_intensity_multiplier=jump_intensity_mult,
        jump_size_multiplier=jump_size_mult,
    ))
    if seed is None:
        seed = settings.simulation_seed
    return MonteCarloEngine(inputs, seed=seed, **settings.engine_kwargs())


def _target_dict(kind, strike, lower, upper) -> dict:
    return {"kind": kind, "K": strike, "L": lower, "U": upper}


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool):
    """strikesim - regime-switching Monte Carlo hit probabilities"""
    setup_logging(logging.DEBUG if verbose else None)


@cli.command()
@_engine_options
@_target_options
@click.option("--convergence", is_flag=True, help="Include running estimate per block")
@click.option("--distribution", is_flag=True, help="Include terminal price summary")
@click.option("--yes-bid", type=float, default=None, help="Market YES bid (cents)")
@click.option("--yes-ask", type=float, default=None, help="Market YES ask (cents)")
@click.option("--no-bid", type=float, default=None, help="Market NO bid (cents)")
@click.option("--no-ask", type=float, default=None, help="Market NO ask (cents)")
def run(inputs_file, paths, seed, vol_mult, jump_intensity_mult, jump_size_mult,
        kind, strike, lower, upper, convergence, distribution,
        yes_bid, yes_ask, no_bid, no_ask):
    """Run a full simulation and print the result as JSON."""
    from strikesim.edge import MarketQuotes, evaluate
    from strikesim.errors import SimulationError
    from strikesim.schemas import encode_result

    settings = Settings()
    try:
        engine = _build(inputs_file, seed, vol_mult, jump_intensity_mult, jump_size_mult, settings)
        result = engine.run(
            _target_dict(kind, strike, lower, upper),
            paths if paths is not None else settings.simulation_num_paths,
            track_convergence=convergence,
            include_distribution=distribution,
        )
        output = json.loads(encode_result(result))
    except SimulationError as e:
        logger.error("Simulation failed: %s", e)
        raise click.ClickException(str(e))

    quotes = MarketQuotes(yes_bid=yes_bid, yes_ask=yes_ask, no_bid=no_bid, no_ask=no_ask)
    if any(v is not None for v in (yes_bid, yes_ask, no_bid, no_ask)):
        report = evaluate(result.p, quotes, settings.min_edge_threshold)
        output["edge"] = report.model_dump(mode="json")

    click.echo(json.dumps(output))


@cli.command()
@_engine_options
@_target_options
@click.option("--batch-size", "-b", type=int, default=None,
              help="Paths per batch (default: SS_SIMULATION_BATCH_SIZE)")
def batch(inputs_file, paths, seed, vol_mult, jump_intensity_mult, jump_size_mult,
          kind, strike, lower, upper, batch_size):
    """Run a batched simulation, printing one JSON line per completed batch."""
    from strikesim.errors import SimulationError
    from strikesim.schemas import encode_result

    settings = Settings()
    try:
        engine = _build(inputs_file, seed, vol_mult, jump_intensity_mult, jump_size_mult, settings)
        batches = engine.run_batched(
            _target_dict(kind, strike, lower, upper),
            paths if paths is not None else settings.simulation_num_paths,
            batch_size if batch_size is not None else settings.simulation_batch_size,
        )
        for intermediate in batches:
            click.echo(encode_result(intermediate))
    except SimulationError as e:
        logger.error("Batched simulation failed: %s", e)
        raise click.ClickException(str(e))


if __name__ == "__main__":
    cli()
