#!/usr/bin/env python
"""evolab 示範程式

以二進位字串最大化「1」的數量，透過執行控制器驅動一次完整執行。

    python run.py --strategy steady-state --length 32 --generations 200
"""

import argparse
import logging
import sys

from evolab.evolution import (
    AlgorithmConfig,
    AlgorithmOperators,
    BinaryStringEntity,
    BoltzmannSelectionOperator,
    ElitismStrategy,
    ExecutionContext,
    ExecutionController,
    FitnessProportionateSelectionOperator,
    FunctionFitnessEvaluator,
    GenerationalTerminator,
    GeometricAnnealingSchedule,
    MaximumFitness,
    MeanFitness,
    MetricLogger,
    MultiDemeGeneticAlgorithm,
    PopulationReplacementValue,
    RankSelectionOperator,
    SimpleGeneticAlgorithm,
    SinglePointCrossoverOperator,
    SteadyStateGeneticAlgorithm,
    UniformBitMutationOperator,
    EvolutionError,
)

SELECTION_OPERATORS = {
    "proportionate": lambda: FitnessProportionateSelectionOperator(),
    "rank": lambda: RankSelectionOperator(),
    "boltzmann": lambda: BoltzmannSelectionOperator(
        initial_temperature=10.0,
        annealing_schedule=GeometricAnnealingSchedule(0.95, minimum_temperature=0.5),
    ),
}


def count_ones(entity) -> float:
    return float(sum(entity.values))


def build_algorithm(args):
    """依命令列參數組裝演算法"""
    seed_entity = BinaryStringEntity(
        minimum_starting_length=args.length,
        maximum_starting_length=args.length,
        is_fixed_size=True,
    )
    operators = AlgorithmOperators(
        fitness_evaluator=FunctionFitnessEvaluator(count_ones),
        selection_operator=SELECTION_OPERATORS[args.selection](),
        crossover_operator=SinglePointCrossoverOperator(crossover_rate=0.8),
        mutation_operator=UniformBitMutationOperator(mutation_rate=1.0 / args.length),
        elitism_strategy=ElitismStrategy(elitist_ratio=0.1),
        terminator=GenerationalTerminator(args.generations),
    )
    config = AlgorithmConfig(
        population_size=args.population_size,
        environment_size=args.demes if args.strategy == "multi-deme" else 1,
        seed=args.seed,
    )
    metrics = [MaximumFitness(), MeanFitness()]
    plugins = [MetricLogger(level=logging.DEBUG)]
    
    if args.strategy == "steady-state":
        return SteadyStateGeneticAlgorithm(
            seed_entity, operators, config, metrics, plugins,
            replacement_value=PopulationReplacementValue.parse(args.replacement),
        )
    if args.strategy == "multi-deme":
        return MultiDemeGeneticAlgorithm(
            seed_entity, operators, config, metrics, plugins,
            migrant_count=args.migrants,
            migrate_each_generation=args.migration_interval,
        )
    return SimpleGeneticAlgorithm(seed_entity, operators, config, metrics, plugins)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Maximize the number of ones in a bit string")
    parser.add_argument("--strategy", choices=["simple", "steady-state", "multi-deme"], default="simple")
    parser.add_argument("--selection", choices=sorted(SELECTION_OPERATORS), default="rank")
    parser.add_argument("--length", type=int, default=32, help="bit string length")
    parser.add_argument("--population-size", type=int, default=50)
    parser.add_argument("--generations", type=int, default=100)
    parser.add_argument("--replacement", default="10%", help='steady-state replacement, e.g. "10%%" or "5"')
    parser.add_argument("--demes", type=int, default=3)
    parser.add_argument("--migrants", type=int, default=2)
    parser.add_argument("--migration-interval", type=int, default=5)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true", help="log metrics every generation")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """執行示範"""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    
    print("=" * 50)
    print("  evolab: one-max")
    print("=" * 50)
    
    try:
        algorithm = build_algorithm(args)
        controller = ExecutionController(ExecutionContext(algorithm))
        controller.run()
    except EvolutionError as e:
        print(f"錯誤: {e}")
        return 1
    
    best = max(
        (entity for population in algorithm.environment for entity in population),
        key=lambda entity: entity.raw_fitness,
    )
    print("-" * 50)
    print(f"世代數: {algorithm.current_generation}")
    print(f"最佳個體: {best.representation} (fitness={best.raw_fitness:.0f}/{args.length})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
