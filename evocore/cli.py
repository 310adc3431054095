"""Headless runner: evolve a population for a number of generations.

Example:
    evocore-run --generations 20 --population 50 --seed 42 --task xor
"""

import argparse
import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from evocore.config.evolution_config import (
    EvolutionConfig,
    NeatMutationConfig,
    ReproductionConfig,
)
from evocore.evolution.agent_genome import AgentGenome
from evocore.evolution.generation import EvolutionEngine
from evocore.logging_config import configure_logging
from evocore.neural.decoder import FeedForwardNetwork
from evocore.serializers import dumps_models, dumps_population, loads_population

logger = logging.getLogger(__name__)

XOR_CASES = [
    ([0.0, 0.0], 0.0),
    ([0.0, 1.0], 1.0),
    ([1.0, 0.0], 1.0),
    ([1.0, 1.0], 0.0),
]


def xor_fitness(agent: AgentGenome, network: FeedForwardNetwork) -> float:
    """4 minus the squared error over the XOR truth table."""
    error = 0.0
    for inputs, expected in XOR_CASES:
        output = network.forward(inputs)[0]
        error += (output - expected) ** 2
    return 4.0 - error


def connection_fitness(agent: AgentGenome, network: FeedForwardNetwork) -> float:
    """Rewards structure: 1 + number of enabled connections."""
    return 1.0 + agent.brain.enabled_connection_count


TASKS: Dict[str, Callable[[AgentGenome, FeedForwardNetwork], float]] = {
    "xor": xor_fitness,
    "connections": connection_fitness,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run evocore generations headless")
    parser.add_argument("--generations", type=int, default=20, help="Generations to run")
    parser.add_argument("--population", type=int, default=50, help="Population size")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--task", choices=sorted(TASKS), default="xor", help="Fitness task")
    parser.add_argument("--add-node-prob", type=float, default=None, help="NEAT add-node rate")
    parser.add_argument("--workers", type=int, default=1, help="Reproduction worker threads")
    parser.add_argument("--load", type=Path, default=None, help="Resume from a saved population")
    parser.add_argument("--save", type=Path, default=None, help="Write the final population here")
    parser.add_argument(
        "--species-report", type=Path, default=None, help="Write species snapshots here"
    )
    parser.add_argument("--log-level", default=None, help="Overrides EVOCORE_LOG_LEVEL")
    return parser


def run(args: argparse.Namespace) -> EvolutionEngine:
    neat = NeatMutationConfig()
    if args.add_node_prob is not None:
        neat = NeatMutationConfig(add_node_prob=args.add_node_prob)
    config = EvolutionConfig(
        population_size=args.population,
        num_inputs=2,
        num_outputs=1,
        seed=args.seed,
        max_workers=args.workers,
        reproduction=ReproductionConfig(neat=neat),
    )
    engine = EvolutionEngine(config)
    if args.load is not None:
        engine.load_population(loads_population(args.load.read_bytes()))
    else:
        engine.seed_population()

    print("=" * 80)
    print(f"EVOCORE - {args.generations} generations, task={args.task}, seed={args.seed}")
    print("=" * 80)

    start_time = time.time()
    summaries = engine.run(TASKS[args.task], args.generations)
    for summary in summaries:
        print(
            f"Gen {summary.generation:4d}  best={summary.best_fitness:7.3f}  "
            f"mean={summary.mean_fitness:7.3f}  species={summary.neural_species_count:3d}  "
            f"hidden(max)={summary.max_hidden_nodes}"
        )
    print(f"\nFinished in {time.time() - start_time:.1f}s")

    if args.save is not None:
        args.save.write_bytes(dumps_population(engine.population))
        print(f"Population saved to {args.save}")
    if args.species_report is not None:
        args.species_report.write_bytes(dumps_models(engine.ledger.species_snapshots()))
        print(f"Species report saved to {args.species_report}")
    return engine


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level)
    run(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
