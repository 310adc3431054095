"""Tests for diploid trait genomes.

Covers:
- Construction invariants (locus counts match the schema)
- Dominance-weighted expression and epigenetic multipliers
- Free-recombination crossover
- Bounded per-allele mutation
"""

import random

import pytest

from evocore.config.evolution_config import DiploidMutationConfig
from evocore.errors import InvalidLocusCount
from evocore.genetics import (
    DEFAULT_TRAIT_SCHEMA,
    Allele,
    Chromosome,
    DiploidGenome,
    EpigeneticMark,
    TraitSchema,
    TraitSpec,
    blend_alleles,
    genetic_distance,
    mean_heterozygosity,
)
from evocore.util.rng import MissingRNGError


def _genome(schema, maternal_values, paternal_values, dominance=0.5, **kwargs):
    return DiploidGenome(
        schema=schema,
        maternal=Chromosome([Allele(v, dominance) for v in maternal_values], schema),
        paternal=Chromosome([Allele(v, dominance) for v in paternal_values], schema),
        **kwargs,
    )


class TestConstruction:
    """Chromosome length must always match the trait schema."""

    def test_chromosome_rejects_wrong_length(self, small_schema):
        with pytest.raises(InvalidLocusCount) as excinfo:
            Chromosome([Allele(0.5)], small_schema)
        assert excinfo.value.expected == 3
        assert excinfo.value.actual == 1

    def test_genome_rejects_chromosome_from_other_schema(self, small_schema):
        other = TraitSchema([TraitSpec("only", 0.0, 1.0)])
        short = Chromosome([Allele(0.5)], other)
        full = Chromosome([Allele(0.5)] * 3, small_schema)
        with pytest.raises(InvalidLocusCount):
            DiploidGenome(schema=small_schema, maternal=full, paternal=short)

    def test_invalid_locus_count_is_value_error(self, small_schema):
        with pytest.raises(ValueError):
            Chromosome([], small_schema)

    def test_allele_range_is_validated(self):
        with pytest.raises(ValueError):
            Allele(1.5)
        with pytest.raises(ValueError):
            Allele(0.5, dominance=-0.1)

    def test_random_genome_requires_rng(self):
        with pytest.raises(MissingRNGError):
            DiploidGenome.random(DEFAULT_TRAIT_SCHEMA)

    def test_random_genome_is_valid(self, seeded_rng):
        genome = DiploidGenome.random(DEFAULT_TRAIT_SCHEMA, rng=seeded_rng, genome_id=1)
        assert len(genome.maternal) == len(DEFAULT_TRAIT_SCHEMA)
        assert len(genome.paternal) == len(DEFAULT_TRAIT_SCHEMA)
        assert genome.validate()["ok"]


class TestExpression:
    """Phenotype expression from allele pairs."""

    def test_dominance_weighted_blend(self):
        dominant = Allele(0.2, dominance=1.0)
        recessive = Allele(0.8, dominance=0.0)
        assert blend_alleles(dominant, recessive) == pytest.approx(0.2)

    def test_codominant_fallback_when_both_dominance_zero(self):
        assert blend_alleles(Allele(0.2, 0.0), Allele(0.8, 0.0)) == pytest.approx(0.5)

    def test_blend_scaled_into_trait_range(self, small_schema):
        genome = _genome(small_schema, [0.2, 0.2, 0.0], [0.6, 0.6, 1.0])
        phenotype = genome.express()
        assert phenotype["x"] == pytest.approx(4.0)
        assert phenotype["y"] == pytest.approx(0.4)
        assert phenotype["z"] == pytest.approx(0.0)

    def test_epigenetic_multiplier_applied_then_clamped(self, small_schema):
        genome = DiploidGenome.homozygous({"x": 0.5, "y": 0.8}, small_schema)
        genome.add_epigenetic_mark(EpigeneticMark("x", 1.5, 2))
        genome.add_epigenetic_mark(EpigeneticMark("y", 2.0, 2))
        phenotype = genome.express()
        assert phenotype["x"] == pytest.approx(7.5)
        assert phenotype["y"] == pytest.approx(1.0)  # 1.6 clamped to max

    def test_phenotype_cache_invalidated_by_marks(self, small_schema):
        genome = DiploidGenome.homozygous({"x": 0.5}, small_schema)
        before = genome.express()["x"]
        genome.add_epigenetic_mark(EpigeneticMark("x", 0.5, 1))
        assert genome.express()["x"] == pytest.approx(before * 0.5)

    def test_discrete_trait_is_rounded(self):
        genome = DiploidGenome.homozygous({"pattern_type": 0.55})
        value = genome.express()["pattern_type"]
        assert value == float(int(value))
        assert value == 2.0

    def test_unknown_mark_locus_rejected(self, small_schema):
        genome = DiploidGenome.homozygous({}, small_schema)
        with pytest.raises(ValueError):
            genome.add_epigenetic_mark(EpigeneticMark("missing", 1.2, 1))


class TestCrossover:
    """Per-locus independent assortment."""

    def test_identical_homozygous_parents_give_identical_phenotype(self, seeded_rng):
        values = {spec.name: 0.3 for spec in DEFAULT_TRAIT_SCHEMA}
        parent_a = DiploidGenome.homozygous(values, genome_id=1)
        parent_b = DiploidGenome.homozygous(values, genome_id=2)
        child = DiploidGenome.crossover(parent_a, parent_b, rng=seeded_rng, genome_id=3)
        assert child.express().as_dict() == parent_a.express().as_dict()

    def test_child_alleles_come_from_parents(self, small_schema, seeded_rng):
        parent_a = DiploidGenome.random(small_schema, rng=seeded_rng, genome_id=1)
        parent_b = DiploidGenome.random(small_schema, rng=seeded_rng, genome_id=2)
        for _ in range(20):
            child = DiploidGenome.crossover(parent_a, parent_b, rng=seeded_rng)
            for i in range(len(small_schema)):
                pool = {
                    parent_a.maternal[i],
                    parent_a.paternal[i],
                    parent_b.maternal[i],
                    parent_b.paternal[i],
                }
                assert child.maternal[i] in pool
                assert child.paternal[i] in pool

    def test_parents_are_not_modified(self, small_schema, seeded_rng):
        parent_a = DiploidGenome.random(small_schema, rng=seeded_rng, genome_id=1)
        parent_b = DiploidGenome.random(small_schema, rng=seeded_rng, genome_id=2)
        snapshot_a = parent_a.to_dict()
        snapshot_b = parent_b.to_dict()
        DiploidGenome.crossover(parent_a, parent_b, rng=seeded_rng, genome_id=3)
        assert parent_a.to_dict() == snapshot_a
        assert parent_b.to_dict() == snapshot_b

    def test_lineage_and_hybrid_flag(self, small_schema, seeded_rng):
        parent_a = DiploidGenome.homozygous({}, small_schema, genome_id=1)
        parent_b = DiploidGenome.homozygous({}, small_schema, genome_id=2)
        parent_a.species_id = 10
        parent_b.species_id = 10
        child = DiploidGenome.crossover(parent_a, parent_b, rng=seeded_rng, genome_id=3)
        assert child.parent_ids == (1, 2)
        assert not child.is_hybrid

        parent_b.species_id = 11
        hybrid = DiploidGenome.crossover(parent_a, parent_b, rng=seeded_rng, genome_id=4)
        assert hybrid.is_hybrid

    def test_schema_mismatch_rejected(self, small_schema, seeded_rng):
        parent_a = DiploidGenome.homozygous({}, small_schema)
        parent_b = DiploidGenome.homozygous({})
        with pytest.raises(InvalidLocusCount):
            DiploidGenome.crossover(parent_a, parent_b, rng=seeded_rng)

    def test_only_heritable_marks_are_inherited(self, small_schema, seeded_rng):
        parent_a = DiploidGenome.homozygous({}, small_schema)
        parent_b = DiploidGenome.homozygous({}, small_schema)
        parent_a.add_epigenetic_mark(EpigeneticMark("x", 0.7, 2, heritable=True))
        parent_b.add_epigenetic_mark(EpigeneticMark("y", 1.2, 2, heritable=False))
        child = DiploidGenome.crossover(parent_a, parent_b, rng=seeded_rng)
        assert [m.locus for m in child.epigenetic_marks] == ["x"]


class TestMutation:
    """Bounded gaussian allele mutation."""

    def test_rate_one_changes_every_allele(self, seeded_rng):
        genome = DiploidGenome.random(DEFAULT_TRAIT_SCHEMA, rng=seeded_rng)
        before = [a.value for a in (*genome.maternal, *genome.paternal)]
        changed = genome.mutate(1.0, rng=seeded_rng)
        after = [a.value for a in (*genome.maternal, *genome.paternal)]
        assert changed == 2 * len(DEFAULT_TRAIT_SCHEMA)
        assert all(b != a for b, a in zip(before, after))
        assert all(0.0 <= v <= 1.0 for v in after)
        assert all(a.mutated for a in (*genome.maternal, *genome.paternal))

    def test_rate_one_at_boundaries_stays_in_range(self, small_schema):
        rng = random.Random(7)
        for value in (0.0, 1.0):
            genome = DiploidGenome.homozygous({s.name: value for s in small_schema}, small_schema)
            assert genome.mutate(1.0, rng=rng) == 6
            for allele in (*genome.maternal, *genome.paternal):
                assert 0.0 <= allele.value <= 1.0
                assert allele.value != value

    def test_rate_zero_changes_nothing(self, seeded_rng):
        genome = DiploidGenome.random(DEFAULT_TRAIT_SCHEMA, rng=seeded_rng)
        maternal, paternal = genome.maternal, genome.paternal
        assert genome.mutate(0.0, rng=seeded_rng) == 0
        assert genome.maternal == maternal
        assert genome.paternal == paternal

    def test_step_magnitude_is_bounded(self, small_schema):
        config = DiploidMutationConfig(min_step=0.01, max_step=0.05)
        rng = random.Random(3)
        genome = DiploidGenome.homozygous({s.name: 0.5 for s in small_schema}, small_schema)
        genome.mutate(1.0, rng=rng, config=config)
        for allele in genome.maternal:
            assert 0.01 - 1e-12 <= abs(allele.value - 0.5) <= 0.05 + 1e-12

    def test_marks_decay_each_call(self, small_schema, seeded_rng):
        genome = DiploidGenome.homozygous({}, small_schema)
        genome.add_epigenetic_mark(EpigeneticMark("x", 0.5, 2))
        genome.mutate(0.0, rng=seeded_rng)
        assert genome.epigenetic_marks[0].remaining_generations == 1
        genome.mutate(0.0, rng=seeded_rng)
        assert genome.epigenetic_marks == []

    def test_invalid_rate_rejected(self, seeded_rng):
        genome = DiploidGenome.homozygous({})
        with pytest.raises(ValueError):
            genome.mutate(1.5, rng=seeded_rng)


class TestEnvironmentalEffects:
    """Stress and nutrition create epigenetic marks."""

    def test_stress_suppresses_expression(self, small_schema):
        genome = DiploidGenome.homozygous({"x": 0.5, "y": 0.5, "z": 1.0}, small_schema)
        baseline = genome.express().as_dict()
        marked = genome.apply_environmental_stress(1.0, random.Random(1))
        assert marked == len(genome.epigenetic_marks)
        for mark in genome.epigenetic_marks:
            assert mark.multiplier < 1.0
            assert mark.heritable
            assert genome.express()[mark.locus] < baseline[mark.locus]

    def test_good_nutrition_boosts_and_is_not_heritable(self, small_schema):
        genome = DiploidGenome.homozygous({"x": 0.5}, small_schema)
        assert genome.apply_nutrition_effect(1.0) == len(small_schema)
        assert genome.express()["x"] > 5.0
        assert all(not m.heritable for m in genome.epigenetic_marks)

    def test_neutral_nutrition_adds_nothing(self, small_schema):
        genome = DiploidGenome.homozygous({}, small_schema)
        assert genome.apply_nutrition_effect(0.5) == 0


class TestDiversity:
    """Heterozygosity, inbreeding and distance metrics."""

    def test_homozygous_genome(self, small_schema):
        genome = DiploidGenome.homozygous({"x": 0.1, "y": 0.9}, small_schema)
        assert genome.heterozygosity() == 0.0
        assert genome.inbreeding_coefficient() == 1.0

    def test_heterozygous_genome(self, small_schema):
        genome = _genome(small_schema, [0.0, 0.0, 0.0], [1.0, 0.5, 0.0])
        assert genome.heterozygosity() == pytest.approx(0.5)
        assert genome.inbreeding_coefficient() == pytest.approx(1 / 3)
        assert mean_heterozygosity([genome, genome]) == pytest.approx(0.5)

    def test_genetic_distance(self, small_schema):
        low = DiploidGenome.homozygous({"x": 0.0, "y": 0.0, "z": 0.0}, small_schema)
        high = DiploidGenome.homozygous({"x": 1.0, "y": 1.0, "z": 1.0}, small_schema)
        assert genetic_distance(low, low) == 0.0
        assert genetic_distance(low, high) == pytest.approx(1.0)
        assert genetic_distance(low, high) == genetic_distance(high, low)

    def test_population_summary(self, small_schema):
        from evocore.genetics import population_diversity_summary

        low = DiploidGenome.homozygous({"x": 0.0, "y": 0.0, "z": 0.0}, small_schema)
        high = DiploidGenome.homozygous({"x": 1.0, "y": 1.0, "z": 1.0}, small_schema)
        summary = population_diversity_summary([low, high])
        assert summary["size"] == 2.0
        assert summary["mean_pairwise_distance"] == pytest.approx(1.0)
        assert summary["mean_inbreeding"] == 1.0
        assert population_diversity_summary([])["mean_inbreeding"] == 0.0

    def test_assert_valid_reports_issues(self, small_schema):
        genome = DiploidGenome.homozygous({}, small_schema)
        genome.assert_valid()
        genome.epigenetic_marks.append(EpigeneticMark("missing", 1.5, 2))
        with pytest.raises(ValueError, match="unknown locus"):
            genome.assert_valid()


class TestMatePreferences:
    """Heritable mate preferences score candidate phenotypes."""

    def test_matching_candidate_scores_high(self, small_schema):
        from evocore.genetics import MatePreferences

        prefs = MatePreferences(targets={"y": 0.8}, tolerance=0.2)
        close = DiploidGenome.homozygous({"y": 0.8}, small_schema).express()
        far = DiploidGenome.homozygous({"y": 0.1}, small_schema).express()
        assert prefs.score(close) == pytest.approx(1.0)
        assert prefs.score(far) == 0.0
        assert prefs.accepts(close)
        assert not prefs.accepts(far)

    def test_empty_preferences_accept_everyone(self, small_schema):
        from evocore.genetics import MatePreferences

        phenotype = DiploidGenome.homozygous({}, small_schema).express()
        assert MatePreferences().score(phenotype) == 1.0
