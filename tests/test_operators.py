"""
Tests for crossover and mutation operators.

Parents and inputs are never modified or returned as-is; offspring are fresh
clones whose age resets only when their content was recombined or mutated.
"""

import pytest
from hypothesis import given, strategies as st, settings

from evolab.evolution import (
    AlgorithmConfig,
    AlgorithmOperators,
    FunctionFitnessEvaluator,
    IncompatibleComponentError,
    IntegerListEntity,
    InvalidRateError,
    RankSelectionOperator,
    SimpleGeneticAlgorithm,
)
from evolab.evolution.lists import BinaryStringEntity
from evolab.evolution.randomness import RandomSource
from evolab.evolution.crossover import SinglePointCrossoverOperator
from evolab.evolution.mutation import (
    InversionOperator,
    UniformBitMutationOperator,
    UniformIntegerMutationOperator,
)


# =============================================================================
# Crossover
# =============================================================================

class TestSinglePointCrossover:
    """Single-point crossover exchanges the tails of two parent clones."""
    
    def test_crossover_exchanges_tails(self):
        first = BinaryStringEntity(values=[0, 0, 0, 0, 0])
        second = BinaryStringEntity(values=[1, 1, 1, 1, 1])
        first.age = second.age = 5
        operator = SinglePointCrossoverOperator(crossover_rate=1.0, random_source=RandomSource(seed=4))
        
        children = operator.crossover([first, second])
        
        assert len(children) == 2
        assert all(child is not first and child is not second for child in children)
        assert all(child.age == 0 for child in children)
        assert [len(child) for child in children] == [5, 5]
        assert sum(children[0].values) + sum(children[1].values) == 5
        # Child one is 0..0 1..1, child two is 1..1 0..0
        assert children[0].values == sorted(children[0].values)
        assert children[1].values == sorted(children[1].values, reverse=True)
        assert first.values == [0, 0, 0, 0, 0]
        assert second.values == [1, 1, 1, 1, 1]
    
    @given(
        first=st.lists(st.integers(0, 1), min_size=1, max_size=12),
        second=st.lists(st.integers(0, 1), min_size=1, max_size=12),
        seed=st.integers(0, 10_000),
    )
    @settings(max_examples=100)
    def test_genes_are_conserved(self, first, second, seed):
        operator = SinglePointCrossoverOperator(crossover_rate=1.0, random_source=RandomSource(seed))
        children = operator.crossover([
            BinaryStringEntity(values=first),
            BinaryStringEntity(values=second),
        ])
        assert len(children[0]) + len(children[1]) == len(first) + len(second)
        assert sorted(children[0].values + children[1].values) == sorted(first + second)
    
    def test_no_crossover_returns_clones_of_parents(self):
        first = BinaryStringEntity(values=[0, 1])
        second = BinaryStringEntity(values=[1, 0])
        first.age = 3
        first.set_raw_fitness(1.0)
        operator = SinglePointCrossoverOperator(crossover_rate=0.0)
        
        children = operator.crossover([first, second])
        
        assert children[0] is not first
        assert children[1] is not second
        assert children[0].values == [0, 1]
        assert children[0].age == 3
        assert children[0].raw_fitness == 1.0
    
    def test_wrong_parent_count_rejected(self):
        operator = SinglePointCrossoverOperator()
        with pytest.raises(ValueError, match="Expected 2 parents"):
            operator.crossover([BinaryStringEntity(values=[1])])
    
    def test_none_parent_rejected(self):
        operator = SinglePointCrossoverOperator()
        with pytest.raises(ValueError, match="cannot be None"):
            operator.crossover([BinaryStringEntity(values=[1]), None])
    
    def test_invalid_rate_rejected(self):
        with pytest.raises(InvalidRateError):
            SinglePointCrossoverOperator(crossover_rate=1.2)


# =============================================================================
# Mutation
# =============================================================================

class TestUniformBitMutation:
    """Each bit flips with probability mutation_rate."""
    
    def test_full_rate_flips_every_bit(self):
        entity = BinaryStringEntity(values=[0, 1, 0, 1])
        entity.age = 2
        mutant = UniformBitMutationOperator(mutation_rate=1.0).mutate(entity)
        assert mutant is not entity
        assert mutant.values == [1, 0, 1, 0]
        assert mutant.representation == "1010"
        assert mutant.age == 0
        assert entity.values == [0, 1, 0, 1]
    
    def test_zero_rate_returns_unchanged_clone(self):
        entity = BinaryStringEntity(values=[0, 1, 1])
        entity.age = 2
        mutant = UniformBitMutationOperator(mutation_rate=0.0).mutate(entity)
        assert mutant is not entity
        assert mutant.values == entity.values
        assert mutant.age == 2
    
    def test_default_rate(self):
        assert UniformBitMutationOperator().mutation_rate == 0.001
    
    def test_none_entity_rejected(self):
        with pytest.raises(ValueError, match="cannot be None"):
            UniformBitMutationOperator().mutate(None)
    
    def test_invalid_rate_rejected(self):
        with pytest.raises(InvalidRateError):
            UniformBitMutationOperator(mutation_rate=-0.1)


class TestUniformIntegerMutation:
    """Mutated genes are redrawn to a different in-range value."""
    
    @given(
        values=st.lists(st.integers(0, 5), min_size=1, max_size=10),
        seed=st.integers(0, 10_000),
    )
    @settings(max_examples=100)
    def test_every_gene_changes_at_full_rate(self, values, seed):
        entity = IntegerListEntity(min_element_value=0, max_element_value=5, values=values)
        operator = UniformIntegerMutationOperator(mutation_rate=1.0, random_source=RandomSource(seed))
        mutant = operator.mutate(entity)
        assert all(new != old for new, old in zip(mutant.values, values))
        assert all(0 <= value <= 5 for value in mutant.values)
    
    def test_single_valued_range_never_mutates(self):
        entity = IntegerListEntity(min_element_value=3, max_element_value=3, values=[3, 3])
        entity.age = 1
        mutant = UniformIntegerMutationOperator(mutation_rate=1.0).mutate(entity)
        assert mutant.values == [3, 3]
        assert mutant.age == 1


class TestInversion:
    """Inversion swaps two distinct positions."""
    
    def test_swaps_two_positions(self):
        entity = IntegerListEntity(values=[1, 2, 3, 4])
        mutant = InversionOperator(mutation_rate=1.0, random_source=RandomSource(seed=8)).mutate(entity)
        differing = [i for i, (a, b) in enumerate(zip(mutant.values, entity.values)) if a != b]
        assert sorted(mutant.values) == [1, 2, 3, 4]
        assert len(differing) == 2
        assert mutant.age == 0
    
    def test_short_entity_is_untouched(self):
        entity = IntegerListEntity(values=[7])
        assert InversionOperator(mutation_rate=1.0).mutate(entity).values == [7]


# =============================================================================
# Component Compatibility
# =============================================================================

class TestComponentCompatibility:
    """Operators check the entity type when an algorithm initializes."""
    
    def test_bit_mutation_requires_binary_strings(self):
        seed = IntegerListEntity(minimum_starting_length=3, maximum_starting_length=3)
        algorithm = SimpleGeneticAlgorithm(
            seed,
            AlgorithmOperators(
                fitness_evaluator=FunctionFitnessEvaluator(lambda entity: 0.0),
                selection_operator=RankSelectionOperator(),
                mutation_operator=UniformBitMutationOperator(),
            ),
            AlgorithmConfig(population_size=4),
        )
        
        with pytest.raises(IncompatibleComponentError, match="requires BinaryStringEntity"):
            algorithm.initialize()
        
        assert len(algorithm.environment) == 0
        assert not algorithm.is_initialized
