"""
演化計算引擎 (Evolutionary Computation Engine)

反覆評估適應度、選擇親代、施加交叉與突變、保留精英並替換族群，
直到終止條件成立；支援簡單、穩態與多族群三種世代策略，
以及可協作暫停、停止的執行控制器。
"""

from .models import (
    AlgorithmEvent,
    FitnessEvaluationMode,
    FitnessType,
    ReplacementValueKind,
    PopulationReplacementValue,
    GeneticComponent,
    GeneticEntity,
    round_half_away_from_zero,
    sort_by_fitness,
)

from .randomness import (
    RandomSource,
)

from .lists import (
    ListEntity,
    BinaryStringEntity,
    IntegerListEntity,
)

from .population import (
    Population,
    GeneticEnvironment,
)

from .fitness import (
    FitnessEvaluator,
    FunctionFitnessEvaluator,
    FitnessScalingStrategy,
    SigmaScalingStrategy,
    ExponentialScalingStrategy,
    FitnessSharingScalingStrategy,
)

from .selection import (
    WheelSlice,
    RouletteWheelSampler,
    SelectionOperator,
    WheelSelectionOperator,
    FitnessProportionateSelectionOperator,
    RankSelectionOperator,
    AnnealingSchedule,
    LinearAnnealingSchedule,
    GeometricAnnealingSchedule,
    BoltzmannSelectionOperator,
    UniformSelectionOperator,
    TournamentSelectionOperator,
    ElitismStrategy,
)

from .crossover import (
    CrossoverOperator,
    SinglePointCrossoverOperator,
)

from .mutation import (
    MutationOperator,
    UniformBitMutationOperator,
    UniformIntegerMutationOperator,
    InversionOperator,
)

from .terminators import (
    Terminator,
    NeverTerminator,
    GenerationalTerminator,
    FitnessTargetTerminator,
    TimeDurationTerminator,
)

from .metrics import (
    MetricResult,
    Metric,
    MinimumFitness,
    MaximumFitness,
    MeanFitness,
    FitnessStandardDeviation,
    BestMaximumFitness,
    BestMinimumFitness,
    Plugin,
    MetricLogger,
)

from .generation import (
    StepResult,
    AlgorithmConfig,
    AlgorithmOperators,
    GeneticAlgorithm,
    SimpleGeneticAlgorithm,
    SteadyStateGeneticAlgorithm,
    MultiDemeGeneticAlgorithm,
)

from .engine import (
    ExecutionState,
    ExecutionContext,
    ExecutionController,
)

from .exceptions import (
    EvolutionError,
    ConfigurationError,
    InvalidPopulationSizeError,
    InvalidEnvironmentSizeError,
    InvalidRateError,
    InvalidReplacementValueError,
    InvalidMigrantCountError,
    InvalidMigrationIntervalError,
    InvalidStartingLengthError,
    InvalidTemperatureError,
    MissingOperatorError,
    IncompatibleComponentError,
    BoltzmannOverflowError,
    EmptyPopulationError,
    FitnessScalingError,
    AlgorithmNotInitializedError,
    InvalidStateTransitionError,
)

__all__ = [
    # Models
    "AlgorithmEvent",
    "FitnessEvaluationMode",
    "FitnessType",
    "ReplacementValueKind",
    "PopulationReplacementValue",
    "GeneticComponent",
    "GeneticEntity",
    "round_half_away_from_zero",
    "sort_by_fitness",
    # Randomness
    "RandomSource",
    # List entities
    "ListEntity",
    "BinaryStringEntity",
    "IntegerListEntity",
    # Population
    "Population",
    "GeneticEnvironment",
    # Fitness
    "FitnessEvaluator",
    "FunctionFitnessEvaluator",
    "FitnessScalingStrategy",
    "SigmaScalingStrategy",
    "ExponentialScalingStrategy",
    "FitnessSharingScalingStrategy",
    # Selection
    "WheelSlice",
    "RouletteWheelSampler",
    "SelectionOperator",
    "WheelSelectionOperator",
    "FitnessProportionateSelectionOperator",
    "RankSelectionOperator",
    "AnnealingSchedule",
    "LinearAnnealingSchedule",
    "GeometricAnnealingSchedule",
    "BoltzmannSelectionOperator",
    "UniformSelectionOperator",
    "TournamentSelectionOperator",
    "ElitismStrategy",
    # Crossover
    "CrossoverOperator",
    "SinglePointCrossoverOperator",
    # Mutation
    "MutationOperator",
    "UniformBitMutationOperator",
    "UniformIntegerMutationOperator",
    "InversionOperator",
    # Terminators
    "Terminator",
    "NeverTerminator",
    "GenerationalTerminator",
    "FitnessTargetTerminator",
    "TimeDurationTerminator",
    # Metrics & Plugins
    "MetricResult",
    "Metric",
    "MinimumFitness",
    "MaximumFitness",
    "MeanFitness",
    "FitnessStandardDeviation",
    "BestMaximumFitness",
    "BestMinimumFitness",
    "Plugin",
    "MetricLogger",
    # Generation
    "StepResult",
    "AlgorithmConfig",
    "AlgorithmOperators",
    "GeneticAlgorithm",
    "SimpleGeneticAlgorithm",
    "SteadyStateGeneticAlgorithm",
    "MultiDemeGeneticAlgorithm",
    # Engine
    "ExecutionState",
    "ExecutionContext",
    "ExecutionController",
    # Exceptions
    "EvolutionError",
    "ConfigurationError",
    "InvalidPopulationSizeError",
    "InvalidEnvironmentSizeError",
    "InvalidRateError",
    "InvalidReplacementValueError",
    "InvalidMigrantCountError",
    "InvalidMigrationIntervalError",
    "InvalidStartingLengthError",
    "InvalidTemperatureError",
    "MissingOperatorError",
    "IncompatibleComponentError",
    "BoltzmannOverflowError",
    "EmptyPopulationError",
    "FitnessScalingError",
    "AlgorithmNotInitializedError",
    "InvalidStateTransitionError",
]
