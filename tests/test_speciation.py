"""Tests for the speciation service."""

import pytest

from evocore.config.evolution_config import SpeciationConfig
from evocore.evolution.speciation import (
    PARENT_CHILD,
    SAME_SPECIES,
    SIBLING,
    UNRELATED,
    SpeciationService,
)
from evocore.genetics import DiploidGenome
from evocore.genetics.diversity import genetic_distance
from evocore.neural.genome import NeuralGenome, compatibility_distance


def uniform(level, schema, genome_id):
    """Homozygous genome with every normalized trait at ``level``."""
    return DiploidGenome.homozygous(
        {spec.name: level for spec in schema}, schema, genome_id=genome_id
    )


class TestNeuralSpeciation:
    def test_every_genome_in_exactly_one_species(self, registry, seeded_rng):
        genomes = [
            NeuralGenome.minimal(3, 2, registry, rng=seeded_rng, genome_id=i) for i in range(12)
        ]
        service = SpeciationService()
        species = service.speciate(genomes, threshold=0.2)

        members = [m for sp in species for m in sp.member_ids]
        assert sorted(members) == list(range(12))
        for genome in genomes:
            assert genome.species_id is not None
            assert genome.genome_id in service.get(genome.species_id).member_ids

    def test_identical_genomes_share_species(self, registry, seeded_rng):
        base = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        genomes = [base.copy(genome_id=i) for i in range(5)]
        species = SpeciationService().speciate(genomes)
        assert len(species) == 1
        assert species[0].member_ids == [0, 1, 2, 3, 4]

    def test_requires_genome_ids(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        with pytest.raises(ValueError):
            SpeciationService().speciate([genome])

    def test_duplicate_ids_rejected(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng, genome_id=1)
        with pytest.raises(ValueError):
            SpeciationService().speciate([genome, genome.copy()])

    def test_threshold_must_be_positive(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng, genome_id=1)
        with pytest.raises(ValueError):
            SpeciationService().speciate([genome], threshold=0.0)

    def test_distance_equal_to_threshold_joins(self, registry, seeded_rng):
        a = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng, genome_id=1)
        b = a.copy(genome_id=2)
        b.connections[0].weight += 0.5
        cfg = SpeciationConfig()
        limit = compatibility_distance(
            b, a, c1=cfg.c1, c2=cfg.c2, c3=cfg.c3, small_genome_size=cfg.small_genome_size
        )
        assert limit > 0.0

        assert len(SpeciationService(cfg).speciate([a, b], threshold=limit)) == 1
        assert len(SpeciationService(cfg).speciate([a, b], threshold=limit * 0.999)) == 2


class TestPhenotypeSpeciation:
    def test_first_match_against_representative(self, small_schema):
        a = uniform(0.0, small_schema, 1)
        b = uniform(0.1, small_schema, 2)
        c = uniform(0.2, small_schema, 3)

        species = SpeciationService().speciate_phenotypes([a, b, c])

        # c is close to b but not to the representative a
        assert [sp.member_ids for sp in species] == [[1, 2], [3]]
        assert species[0].representative is a

    def test_distance_equal_to_threshold_joins(self, small_schema):
        a = uniform(0.0, small_schema, 1)
        b = uniform(0.3, small_schema, 2)
        limit = genetic_distance(b, a)

        assert len(SpeciationService().speciate_phenotypes([a, b], threshold=limit)) == 1
        assert len(SpeciationService().speciate_phenotypes([a, b], threshold=limit * 0.999)) == 2

    def test_representative_is_first_member(self, small_schema):
        service = SpeciationService()
        service.speciate_phenotypes([uniform(0.0, small_schema, 1)])
        newcomer = uniform(0.05, small_schema, 2)
        species = service.speciate_phenotypes([newcomer])
        assert len(species) == 1
        assert species[0].representative is newcomer

    def test_species_ids_unique_across_kinds(self, small_schema, registry, seeded_rng):
        service = SpeciationService()
        neural = service.speciate(
            [NeuralGenome.minimal(2, 1, registry, rng=seeded_rng, genome_id=1)]
        )
        phenotype = service.speciate_phenotypes([uniform(0.0, small_schema, 1)])
        assert neural[0].id != phenotype[0].id

    def test_extinction_after_grace_period(self, small_schema):
        service = SpeciationService(SpeciationConfig(extinction_grace_generations=1))
        a = uniform(0.0, small_schema, 1)
        b = uniform(1.0, small_schema, 2)
        service.speciate_phenotypes([a, b], generation=0)
        doomed = b.species_id
        service.drain_events()

        service.speciate_phenotypes([a], generation=1)
        assert not service.get(doomed).extinct

        service.speciate_phenotypes([a], generation=2)
        assert service.get(doomed).extinct
        assert (2, "phenotype", "extinction", doomed, None) in service.drain_events()
        assert [sp.id for sp in service.phenotype_species()] == [a.species_id]

        archived = service.archive_extinct()
        assert [sp.id for sp in archived] == [doomed]
        assert service.get(doomed) is None

    def test_returning_member_resets_empty_count(self, small_schema):
        service = SpeciationService(SpeciationConfig(extinction_grace_generations=1))
        a = uniform(0.0, small_schema, 1)
        b = uniform(1.0, small_schema, 2)
        service.speciate_phenotypes([a, b])
        sid = b.species_id
        service.speciate_phenotypes([a])
        service.speciate_phenotypes([a, uniform(1.0, small_schema, 3)])
        assert service.get(sid).empty_generations == 0
        assert service.get(sid).member_ids == [3]


class TestAncestry:
    def _family(self, small_schema):
        service = SpeciationService()
        root = uniform(0.0, small_schema, 1)
        service.speciate_phenotypes([root], generation=0)
        left = uniform(0.5, small_schema, 2)
        right = uniform(1.0, small_schema, 3)
        left.species_id = right.species_id = root.species_id
        service.speciate_phenotypes([root, left, right], generation=1)
        return service, root, left, right

    def test_new_species_records_parent(self, small_schema):
        service, root, left, right = self._family(small_schema)
        assert service.get(left.species_id).parent_species_id == root.species_id
        assert service.get(left.species_id).founding_generation == 1
        assert service.parent_of(right.species_id) == root.species_id

    def test_relationship_tiers(self, small_schema):
        service, root, left, right = self._family(small_schema)
        assert service.relationship(root.species_id, root.species_id) == SAME_SPECIES
        assert service.relationship(root.species_id, left.species_id) == PARENT_CHILD
        assert service.relationship(right.species_id, root.species_id) == PARENT_CHILD
        assert service.relationship(left.species_id, right.species_id) == SIBLING
        assert service.relationship(root.species_id, None) == UNRELATED
        assert service.relationship(None, None) == UNRELATED

    def test_speciation_events(self, small_schema):
        service, root, left, right = self._family(small_schema)
        events = service.drain_events()
        founded = [(g, sid, parent) for g, _, event, sid, parent in events if event == "speciation"]
        assert founded == [
            (0, root.species_id, None),
            (1, left.species_id, root.species_id),
            (1, right.species_id, root.species_id),
        ]
        assert service.drain_events() == []


class TestFitnessSharing:
    def _service(self, small_schema):
        service = SpeciationService()
        genomes = [
            uniform(0.0, small_schema, 1),
            uniform(0.0, small_schema, 2),
            uniform(1.0, small_schema, 3),
        ]
        service.speciate_phenotypes(genomes)
        return service, service.phenotype_species()

    def test_adjust_fitness_divides_by_member_count(self, small_schema):
        service, species = self._service(small_schema)
        shared = service.adjust_fitness({1: 4.0, 2: 2.0, 3: 3.0}, species)
        assert shared == {1: 2.0, 2: 1.0, 3: 3.0}
        assert species[0].shared_fitness_sum == pytest.approx(3.0)
        assert species[0].best_fitness == 4.0

    def test_staleness_tracks_best_fitness(self, small_schema):
        service, species = self._service(small_schema)
        service.adjust_fitness({1: 4.0, 2: 2.0, 3: 3.0}, species)
        service.adjust_fitness({1: 1.0, 2: 1.0, 3: 5.0}, species)
        assert species[0].stale_generation_count == 1
        assert species[1].stale_generation_count == 0
        assert species[1].best_fitness == 5.0

    def test_allocation_sums_to_total(self, small_schema):
        service, species = self._service(small_schema)
        service.adjust_fitness({1: 4.0, 2: 2.0, 3: 3.0}, species)
        assert service.allocate_offspring(10, species) == {species[0].id: 5, species[1].id: 5}
        # equal remainders go to the lower species id
        assert service.allocate_offspring(7, species) == {species[0].id: 4, species[1].id: 3}
        for total in (1, 2, 13, 50):
            assert sum(service.allocate_offspring(total, species).values()) == total

    def test_allocation_excludes_species(self, small_schema):
        service, species = self._service(small_schema)
        service.adjust_fitness({1: 4.0, 2: 2.0, 3: 3.0}, species)
        allocation = service.allocate_offspring(7, species, exclude=[species[1].id])
        assert allocation == {species[0].id: 7}

    def test_zero_fitness_allocates_by_size(self, small_schema):
        service, species = self._service(small_schema)
        service.adjust_fitness({}, species)
        assert service.allocate_offspring(9, species) == {species[0].id: 6, species[1].id: 3}


class TestCheckpoint:
    def test_restore_undoes_pass(self, small_schema):
        service = SpeciationService()
        a = uniform(0.0, small_schema, 1)
        service.speciate_phenotypes([a])
        state = service.checkpoint()

        service.speciate_phenotypes([a, uniform(1.0, small_schema, 2)], generation=1)
        service.adjust_fitness({1: 3.0}, service.phenotype_species())
        assert len(service.phenotype_species()) == 2

        service.restore(state)
        species = service.phenotype_species()
        assert [sp.member_ids for sp in species] == [[1]]
        assert species[0].best_fitness is None
