"""Tests for the headless runner."""

import orjson

from evocore.cli import XOR_CASES, build_parser, main, xor_fitness
from evocore.serializers import loads_population


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.generations == 20
    assert args.task == "xor"
    assert args.workers == 1


def test_xor_fitness_perfect_network():
    class Perfect:
        def forward(self, inputs):
            return [float(int(inputs[0]) ^ int(inputs[1]))]

    assert xor_fitness(None, Perfect()) == 4.0
    assert len(XOR_CASES) == 4


def test_run_save_and_resume(tmp_path, capsys):
    saved = tmp_path / "population.json"
    report = tmp_path / "species.json"

    code = main(
        [
            "--generations", "3",
            "--population", "12",
            "--seed", "4",
            "--task", "connections",
            "--save", str(saved),
            "--species-report", str(report),
            "--log-level", "WARNING",
        ]
    )

    assert code == 0
    assert "Gen    2" in capsys.readouterr().out
    assert len(loads_population(saved.read_bytes())) == 12
    assert all("species_id" in entry for entry in orjson.loads(report.read_bytes()))

    code = main(
        ["--generations", "1", "--population", "12", "--load", str(saved), "--log-level", "WARNING"]
    )
    assert code == 0


def test_configure_logging_quiets_per_offspring_debug():
    import logging

    from evocore.logging_config import PER_OFFSPRING_LOGGERS, configure_logging

    names = ("evocore",) + PER_OFFSPRING_LOGGERS
    saved = {name: logging.getLogger(name).level for name in names}
    try:
        package_logger = configure_logging(level="debug")
        assert package_logger.name == "evocore"
        assert package_logger.level == logging.DEBUG
        assert all(logging.getLogger(n).level == logging.INFO for n in PER_OFFSPRING_LOGGERS)
    finally:
        for name, level in saved.items():
            logging.getLogger(name).setLevel(level)
