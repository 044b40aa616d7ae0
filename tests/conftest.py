"""
Shared fixtures for the evolab test suite.
"""

import pytest

from evolab.evolution import (
    AlgorithmConfig,
    AlgorithmOperators,
    BinaryStringEntity,
    ElitismStrategy,
    FunctionFitnessEvaluator,
    Population,
    RandomSource,
    RankSelectionOperator,
    SinglePointCrossoverOperator,
    UniformBitMutationOperator,
)


BIT_LENGTH = 16


def count_ones(entity) -> float:
    return float(sum(entity.values))


def make_entity(fitness: float, position: int) -> BinaryStringEntity:
    """Build a distinct bit-string entity carrying the given fitness."""
    entity = BinaryStringEntity(
        minimum_starting_length=1,
        maximum_starting_length=64,
        values=[int(bit) for bit in format(position, "b")],
    )
    entity.set_raw_fitness(fitness)
    return entity


@pytest.fixture
def random_source():
    return RandomSource(seed=1234)


@pytest.fixture
def population_factory():
    """Build populations whose raw and scaled fitness equal the given values."""
    def factory(fitness_values, index=0, target_size=None):
        population = Population(target_size or max(1, len(fitness_values)), index)
        for position, value in enumerate(fitness_values):
            population.add(make_entity(value, position + 1000 * index))
        if population.entities:
            population.update_statistics()
        return population
    return factory


@pytest.fixture
def bit_string_seed():
    return BinaryStringEntity(
        minimum_starting_length=BIT_LENGTH,
        maximum_starting_length=BIT_LENGTH,
        is_fixed_size=True,
    )


@pytest.fixture
def operators_factory():
    """Build one-max operators; keyword arguments override individual operators."""
    def factory(**overrides):
        operators = dict(
            fitness_evaluator=FunctionFitnessEvaluator(count_ones),
            selection_operator=RankSelectionOperator(),
            crossover_operator=SinglePointCrossoverOperator(crossover_rate=0.8),
            mutation_operator=UniformBitMutationOperator(mutation_rate=0.05),
            elitism_strategy=ElitismStrategy(elitist_ratio=0.1),
        )
        operators.update(overrides)
        return AlgorithmOperators(**operators)
    return factory


@pytest.fixture
def algorithm_factory(bit_string_seed, operators_factory):
    """Build a seeded one-max algorithm of the given strategy class."""
    def factory(
        strategy_class,
        population_size=10,
        environment_size=1,
        seed=7,
        metrics=None,
        plugins=None,
        operators=None,
        **strategy_options,
    ):
        config = AlgorithmConfig(
            population_size=population_size,
            environment_size=environment_size,
            seed=seed,
        )
        return strategy_class(
            bit_string_seed,
            operators or operators_factory(),
            config,
            metrics,
            plugins,
            **strategy_options,
        )
    return factory
