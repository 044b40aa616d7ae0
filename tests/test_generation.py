"""
Tests for the generation strategies and the algorithm lifecycle.

Covers size conservation, elitism exemption, steady-state truncation,
multi-deme migration, validation before mutation and lifecycle notifications.
"""

import pytest
from hypothesis import HealthCheck, given, strategies as st, settings

from evolab.evolution import (
    AlgorithmEvent,
    ElitismStrategy,
    FitnessTargetTerminator,
    GenerationalTerminator,
    MaximumFitness,
    MultiDemeGeneticAlgorithm,
    Plugin,
    PopulationReplacementValue,
    ReplacementValueKind,
    SimpleGeneticAlgorithm,
    SteadyStateGeneticAlgorithm,
    StepResult,
    TournamentSelectionOperator,
    UniformSelectionOperator,
)
from evolab.evolution.exceptions import (
    AlgorithmNotInitializedError,
    InvalidMigrantCountError,
    InvalidMigrationIntervalError,
    InvalidPopulationSizeError,
    InvalidRateError,
    MissingOperatorError,
)

fixture_settings = settings(
    max_examples=30,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)


# =============================================================================
# Property: Size Conservation
# Feature: generation strategies
# =============================================================================

class TestSizeConservation:
    """
    Property: Size Conservation
    
    For all strategies and all generations, every population holds exactly
    its target size after the next generation is created.
    """
    
    @given(
        population_size=st.integers(min_value=1, max_value=20),
        elitist_ratio=st.floats(min_value=0.0, max_value=1.0),
        seed=st.integers(min_value=0, max_value=10_000),
    )
    @fixture_settings
    def test_simple_strategy(self, algorithm_factory, operators_factory,
                             population_size, elitist_ratio, seed):
        algorithm = algorithm_factory(
            SimpleGeneticAlgorithm,
            population_size=population_size,
            seed=seed,
            operators=operators_factory(elitism_strategy=ElitismStrategy(elitist_ratio)),
        )
        algorithm.initialize()
        for _ in range(3):
            algorithm.step()
            assert algorithm.environment[0].size == population_size
    
    @given(
        population_size=st.integers(min_value=1, max_value=20),
        percentage=st.integers(min_value=0, max_value=100),
        seed=st.integers(min_value=0, max_value=10_000),
    )
    @fixture_settings
    def test_steady_state_strategy(self, algorithm_factory, population_size, percentage, seed):
        algorithm = algorithm_factory(
            SteadyStateGeneticAlgorithm,
            population_size=population_size,
            seed=seed,
            replacement_value=PopulationReplacementValue(percentage, ReplacementValueKind.PERCENTAGE),
        )
        algorithm.initialize()
        for _ in range(3):
            algorithm.step()
            assert algorithm.environment[0].size == population_size
    
    @given(
        population_size=st.integers(min_value=1, max_value=12),
        environment_size=st.integers(min_value=1, max_value=4),
        migrants=st.integers(min_value=0, max_value=12),
        seed=st.integers(min_value=0, max_value=10_000),
    )
    @fixture_settings
    def test_multi_deme_strategy(self, algorithm_factory, population_size,
                                 environment_size, migrants, seed):
        algorithm = algorithm_factory(
            MultiDemeGeneticAlgorithm,
            population_size=population_size,
            environment_size=environment_size,
            seed=seed,
            migrant_count=min(migrants, population_size),
            migrate_each_generation=1,
        )
        algorithm.initialize()
        for _ in range(3):
            algorithm.step()
            assert [p.size for p in algorithm.environment] == [population_size] * environment_size


# =============================================================================
# Property: Elitism Exemption
# Feature: simple strategy
# =============================================================================

class TestElitismExemption:
    """
    Property: Elitism Exemption
    
    Entities returned by get_elite_entities appear unmodified (same
    representation, same raw fitness) in the next generation.
    """
    
    def test_elites_survive_unmodified(self, algorithm_factory, operators_factory):
        algorithm = algorithm_factory(
            SimpleGeneticAlgorithm,
            population_size=20,
            operators=operators_factory(elitism_strategy=ElitismStrategy(0.2)),
        )
        algorithm.initialize()
        population = algorithm.environment[0]
        elites = algorithm.operators.elitism_strategy.get_elite_entities(population)
        snapshot = [(elite.representation, elite.raw_fitness) for elite in elites]
        
        algorithm.step()
        
        assert len(elites) == 4
        for elite, (representation, raw_fitness) in zip(elites, snapshot):
            assert any(entity is elite for entity in population)
            assert elite.representation == representation
            assert elite.raw_fitness == raw_fitness
            assert elite.age == 1
    
    def test_non_elites_are_fresh_entities(self, algorithm_factory, operators_factory):
        algorithm = algorithm_factory(
            SimpleGeneticAlgorithm,
            population_size=10,
            operators=operators_factory(elitism_strategy=None),
        )
        algorithm.initialize()
        before = {id(entity) for entity in algorithm.environment[0]}
        algorithm.step()
        after = {id(entity) for entity in algorithm.environment[0]}
        assert len(after) == 10
        assert not before & after


# =============================================================================
# Steady-State Strategy
# =============================================================================

class TestSteadyStateStrategy:
    """Children join the population, then the worst entities are discarded."""
    
    def test_replacement_count(self, algorithm_factory):
        algorithm = algorithm_factory(SteadyStateGeneticAlgorithm, population_size=50)
        assert algorithm.replacement_count(50) == 5
    
    def test_truncation_discards_the_worst(self, algorithm_factory, operators_factory,
                                           population_factory):
        algorithm = algorithm_factory(
            SteadyStateGeneticAlgorithm,
            population_size=50,
            operators=operators_factory(
                selection_operator=TournamentSelectionOperator(tournament_size=50),
                crossover_operator=None,
                mutation_operator=None,
            ),
            replacement_value=PopulationReplacementValue(5, ReplacementValueKind.FIXED_COUNT),
        )
        population = population_factory([float(value) for value in range(50)], target_size=50)
        
        algorithm._create_next_generation(population)
        
        assert population.size == 50
        assert sorted(entity.raw_fitness for entity in population) == sorted(
            [float(value) for value in range(5, 50)] + [49.0] * 5
        )
    
    def test_zero_replacement_leaves_population_alone(self, algorithm_factory, population_factory):
        algorithm = algorithm_factory(
            SteadyStateGeneticAlgorithm,
            replacement_value=PopulationReplacementValue(0, ReplacementValueKind.FIXED_COUNT),
        )
        population = population_factory([1.0, 2.0, 3.0])
        before = list(population.entities)
        algorithm._create_next_generation(population)
        assert population.entities == before


# =============================================================================
# Property: Migration Conservation
# Feature: multi-deme strategy
# =============================================================================

class TestMigration:
    """
    Property: Migration Conservation
    
    For N populations and M <= population size, migrate() keeps every
    population's size and moves entities without duplicating any of them.
    """
    
    def _algorithm(self, algorithm_factory, population_size, environment_size, migrants):
        return algorithm_factory(
            MultiDemeGeneticAlgorithm,
            population_size=population_size,
            environment_size=environment_size,
            migrant_count=migrants,
        )
    
    def test_ring_migration(self, algorithm_factory, population_factory):
        algorithm = self._algorithm(algorithm_factory, 4, 3, 2)
        algorithm.environment.populations = [
            population_factory([1.0, 5.0, 2.0, 4.0], index=0),
            population_factory([6.0, 3.0, 8.0, 7.0], index=1),
            population_factory([9.0, 13.0, 10.0, 12.0], index=2),
        ]
        
        algorithm.migrate()
        
        fitness = [
            sorted(entity.scaled_fitness for entity in population)
            for population in algorithm.environment
        ]
        assert fitness == [
            [1.0, 2.0, 3.0, 4.0],
            [5.0, 6.0, 7.0, 8.0],
            [9.0, 10.0, 12.0, 13.0],
        ]
    
    @given(
        sizes=st.tuples(
            st.integers(min_value=1, max_value=8),
            st.integers(min_value=1, max_value=5),
        ),
        migrant_fraction=st.floats(min_value=0.0, max_value=1.0),
        data=st.data(),
    )
    @fixture_settings
    def test_counts_and_identities_conserved(self, algorithm_factory, population_factory,
                                             sizes, migrant_fraction, data):
        population_size, environment_size = sizes
        migrants = int(migrant_fraction * population_size)
        algorithm = self._algorithm(algorithm_factory, population_size, environment_size, migrants)
        algorithm.environment.populations = [
            population_factory(
                data.draw(st.lists(
                    st.floats(min_value=-100, max_value=100, allow_nan=False),
                    min_size=population_size, max_size=population_size,
                )),
                index=index,
            )
            for index in range(environment_size)
        ]
        before = {id(entity) for population in algorithm.environment for entity in population}
        
        algorithm.migrate()
        
        after = [id(entity) for population in algorithm.environment for entity in population]
        assert [p.size for p in algorithm.environment] == [population_size] * environment_size
        assert len(after) == len(set(after))
        assert set(after) == before
    
    def test_single_population_is_noop(self, algorithm_factory, population_factory):
        algorithm = self._algorithm(algorithm_factory, 3, 1, 2)
        population = population_factory([1.0, 2.0, 3.0])
        algorithm.environment.populations = [population]
        before = list(population.entities)
        algorithm.migrate()
        assert population.entities == before
    
    def test_zero_migrants_is_noop(self, algorithm_factory, population_factory):
        algorithm = self._algorithm(algorithm_factory, 2, 2, 0)
        algorithm.environment.populations = [
            population_factory([1.0, 2.0], index=0),
            population_factory([3.0, 4.0], index=1),
        ]
        before = [list(population.entities) for population in algorithm.environment]
        algorithm.migrate()
        assert [population.entities for population in algorithm.environment] == before
    
    def test_migrant_count_above_population_size_rejected(self, algorithm_factory):
        with pytest.raises(InvalidMigrantCountError):
            self._algorithm(algorithm_factory, 4, 2, 5)
    
    def test_negative_migrant_count_rejected(self, algorithm_factory):
        with pytest.raises(InvalidMigrantCountError):
            self._algorithm(algorithm_factory, 4, 2, -1)
    
    def test_migration_interval_validated(self, algorithm_factory):
        with pytest.raises(InvalidMigrationIntervalError):
            algorithm_factory(
                MultiDemeGeneticAlgorithm,
                environment_size=2,
                migrant_count=1,
                migrate_each_generation=0,
            )
    
    def test_migrates_on_interval_generations(self, algorithm_factory):
        algorithm = algorithm_factory(
            MultiDemeGeneticAlgorithm,
            population_size=6,
            environment_size=2,
            migrant_count=1,
            migrate_each_generation=2,
        )
        migrated_at = []
        original_migrate = algorithm.migrate
        
        def recording_migrate():
            migrated_at.append(algorithm.current_generation)
            original_migrate()
        
        algorithm.migrate = recording_migrate
        algorithm.initialize()
        for _ in range(5):
            algorithm.step()
        
        assert migrated_at == [2, 4]


# =============================================================================
# Lifecycle
# =============================================================================

class RecordingPlugin(Plugin):
    """Plugin that records notifications and cancels at a given generation."""
    
    def __init__(self, cancel_at=None):
        super().__init__()
        self.cancel_at = cancel_at
        self.calls = []
    
    def on_algorithm_starting(self):
        self.calls.append("starting")
    
    def on_fitness_evaluated(self, environment, generation):
        self.calls.append(f"evaluated:{generation}")
        return generation == self.cancel_at
    
    def on_algorithm_completed(self):
        self.calls.append("completed")


class TestAlgorithmLifecycle:
    """Initialization, stepping, notifications and termination."""
    
    def test_step_before_initialize_fails(self, algorithm_factory):
        algorithm = algorithm_factory(SimpleGeneticAlgorithm)
        with pytest.raises(AlgorithmNotInitializedError):
            algorithm.step()
    
    def test_missing_selection_operator(self, algorithm_factory, operators_factory):
        with pytest.raises(MissingOperatorError, match="selection_operator"):
            algorithm_factory(
                SimpleGeneticAlgorithm,
                operators=operators_factory(selection_operator=None),
            )
    
    def test_invalid_configuration_leaves_environment_untouched(self, algorithm_factory):
        algorithm = algorithm_factory(SimpleGeneticAlgorithm)
        algorithm.initialize()
        populations = list(algorithm.environment.populations)
        entities = list(populations[0].entities)
        
        algorithm.operators.crossover_operator.crossover_rate = 1.5
        with pytest.raises(InvalidRateError):
            algorithm.initialize()
        
        assert algorithm.environment.populations == populations
        assert populations[0].entities == entities
        
        algorithm.operators.crossover_operator.crossover_rate = 0.5
        algorithm.config.population_size = 0
        with pytest.raises(InvalidPopulationSizeError):
            algorithm.initialize()
        assert algorithm.environment.populations == populations
    
    def test_notification_order(self, algorithm_factory, operators_factory):
        algorithm = algorithm_factory(
            SimpleGeneticAlgorithm,
            operators=operators_factory(terminator=GenerationalTerminator(2)),
        )
        events = []
        algorithm.subscribe(AlgorithmEvent.ALGORITHM_STARTING, lambda: events.append("starting"))
        algorithm.subscribe(AlgorithmEvent.GENERATION_CREATED, lambda g: events.append(f"created:{g}"))
        algorithm.subscribe(
            AlgorithmEvent.FITNESS_EVALUATED, lambda env, g: events.append(f"evaluated:{g}")
        )
        algorithm.subscribe(AlgorithmEvent.ALGORITHM_COMPLETED, lambda: events.append("completed"))
        
        assert algorithm.run() == StepResult.COMPLETED
        
        assert events == [
            "starting", "created:0", "evaluated:0",
            "created:1", "evaluated:1",
            "created:2", "evaluated:2",
            "completed",
        ]
        assert not algorithm.is_initialized
    
    def test_subscribe_is_idempotent(self, algorithm_factory):
        algorithm = algorithm_factory(SimpleGeneticAlgorithm)
        calls = []
        
        def on_starting():
            calls.append(1)
        
        algorithm.subscribe(AlgorithmEvent.ALGORITHM_STARTING, on_starting)
        algorithm.subscribe(AlgorithmEvent.ALGORITHM_STARTING, on_starting)
        algorithm.initialize()
        assert calls == [1]
        
        algorithm.unsubscribe(AlgorithmEvent.ALGORITHM_STARTING, on_starting)
        algorithm.initialize()
        assert calls == [1]
    
    def test_plugin_cancellation_ends_run(self, algorithm_factory):
        plugin = RecordingPlugin(cancel_at=2)
        algorithm = algorithm_factory(SimpleGeneticAlgorithm, plugins=[plugin])
        
        assert algorithm.run() == StepResult.CANCELED
        
        assert algorithm.current_generation == 2
        assert not algorithm.is_initialized
        assert plugin.calls == ["starting", "evaluated:0", "evaluated:1", "evaluated:2"]
    
    def test_observer_cancellation(self, algorithm_factory):
        algorithm = algorithm_factory(SimpleGeneticAlgorithm)
        algorithm.subscribe(AlgorithmEvent.FITNESS_EVALUATED, lambda env, g: g == 1)
        algorithm.initialize()
        assert algorithm.step() == StepResult.CANCELED
    
    def test_fitness_target_completes_run(self, algorithm_factory, operators_factory):
        algorithm = algorithm_factory(
            SimpleGeneticAlgorithm,
            population_size=30,
            operators=operators_factory(terminator=FitnessTargetTerminator(16.0)),
        )
        assert algorithm.run() == StepResult.COMPLETED
        best = max(entity.raw_fitness for entity in algorithm.environment[0])
        assert best == 16.0
    
    def test_ages_increase_each_generation(self, algorithm_factory, operators_factory):
        algorithm = algorithm_factory(
            SimpleGeneticAlgorithm,
            operators=operators_factory(
                selection_operator=UniformSelectionOperator(),
                crossover_operator=None,
                mutation_operator=None,
                elitism_strategy=None,
            ),
        )
        algorithm.initialize()
        algorithm.step()
        algorithm.step()
        assert all(entity.age == 2 for entity in algorithm.environment[0])
    
    def test_metrics_recorded_per_generation(self, algorithm_factory, operators_factory):
        metric = MaximumFitness()
        algorithm = algorithm_factory(
            SimpleGeneticAlgorithm,
            metrics=[metric],
            environment_size=2,
            operators=operators_factory(terminator=GenerationalTerminator(3)),
        )
        algorithm.run()
        for index in (0, 1):
            results = metric.get_results(index)
            assert [result.generation for result in results] == [0, 1, 2, 3]
            assert results[-1].value == algorithm.environment[index].scaled_max
    
    def test_same_seed_same_result(self, algorithm_factory, operators_factory):
        def best_representation():
            algorithm = algorithm_factory(
                SimpleGeneticAlgorithm,
                seed=99,
                operators=operators_factory(terminator=GenerationalTerminator(5)),
            )
            algorithm.run()
            return sorted(entity.representation for entity in algorithm.environment[0])
        
        assert best_representation() == best_representation()
