"""
世代演算法 (Generation Algorithms)

負責控制演化迭代流程：初始化環境、逐代建立下一代並評估適應度，直到終止器回報完成。
提供三種世代替換策略：

- SimpleGeneticAlgorithm：精英保留後，以選擇、交叉、突變產生整個下一代
- SteadyStateGeneticAlgorithm：每代只加入部分子代，再截斷為原本的大小
- MultiDemeGeneticAlgorithm：多個族群各自以簡單策略演化，並定期環狀遷徙
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .models import (
    AlgorithmEvent,
    FitnessEvaluationMode,
    FitnessType,
    GeneticComponent,
    GeneticEntity,
    PopulationReplacementValue,
)
from .randomness import RandomSource
from .population import GeneticEnvironment, Population
from .fitness import FitnessEvaluator, FitnessScalingStrategy
from .selection import ElitismStrategy, SelectionOperator
from .crossover import CrossoverOperator
from .mutation import MutationOperator
from .terminators import NeverTerminator, Terminator
from .metrics import Metric, Plugin
from .exceptions import (
    AlgorithmNotInitializedError,
    MissingOperatorError,
    validate_environment_size,
    validate_migration,
    validate_population_size,
)

logger = logging.getLogger(__name__)


class StepResult(Enum):
    """單一世代執行結果

    Attributes:
        CONTINUE: 尚未完成，可繼續下一代
        CANCELED: 觀察者在適應度評估後要求提前終止
        COMPLETED: 終止器回報完成
    """
    CONTINUE = "continue"
    CANCELED = "canceled"
    COMPLETED = "completed"


@dataclass
class AlgorithmConfig:
    """演算法配置

    Attributes:
        population_size: 每個族群的目標大小，預設 50
        environment_size: 族群數量，預設 1
        seed: 隨機種子，None 表示不固定
    """
    population_size: int = 50
    environment_size: int = 1
    seed: Optional[int] = None

    def validate(self) -> None:
        """驗證配置

        Raises:
            InvalidPopulationSizeError: 若 population_size < 1
            InvalidEnvironmentSizeError: 若 environment_size < 1
        """
        validate_population_size(self.population_size)
        validate_environment_size(self.environment_size)


@dataclass
class AlgorithmOperators:
    """演算法使用的算子集合

    Attributes:
        fitness_evaluator: 適應度評估器（必要）
        selection_operator: 選擇算子（必要）
        crossover_operator: 交叉算子，None 表示直接複製親代
        mutation_operator: 突變算子，None 表示不突變
        elitism_strategy: 精英保留策略，None 表示不保留
        fitness_scaling_strategy: 縮放策略，None 表示縮放後適應度等於原始適應度
        terminator: 終止器，None 表示永不終止
    """
    fitness_evaluator: Optional[FitnessEvaluator] = None
    selection_operator: Optional[SelectionOperator] = None
    crossover_operator: Optional[CrossoverOperator] = None
    mutation_operator: Optional[MutationOperator] = None
    elitism_strategy: Optional[ElitismStrategy] = None
    fitness_scaling_strategy: Optional[FitnessScalingStrategy] = None
    terminator: Optional[Terminator] = None

    def validate(self) -> None:
        """驗證必要算子存在，並驗證每個算子的設定

        Raises:
            MissingOperatorError: 若缺少評估器或選擇算子
            ConfigurationError: 若任一算子設定無效
        """
        if self.fitness_evaluator is None:
            raise MissingOperatorError("fitness_evaluator")
        if self.selection_operator is None:
            raise MissingOperatorError("selection_operator")
        for component in self.components():
            component.validate()

    def components(self) -> List[GeneticComponent]:
        return [
            component
            for component in (
                self.fitness_evaluator,
                self.selection_operator,
                self.crossover_operator,
                self.mutation_operator,
                self.elitism_strategy,
                self.fitness_scaling_strategy,
                self.terminator,
            )
            if component is not None
        ]


class GeneticAlgorithm(ABC):
    """遺傳演算法基底

    世代迴圈的單次迭代由 step() 執行；initialize() 建立全新的環境。
    子類別只需實作 _create_next_generation() 定義替換策略。

    Attributes:
        entity_seed: 種子個體，用於建立初始族群
        operators: 算子集合
        config: 演算法配置
        metrics: 指標列表
        plugins: 外掛列表
        random_source: 所有組件共用的隨機來源
        environment: 族群環境（整個執行期間為同一物件）
        current_generation: 目前世代編號（初始族群為 0）
    """

    def __init__(
        self,
        entity_seed: GeneticEntity,
        operators: AlgorithmOperators,
        config: Optional[AlgorithmConfig] = None,
        metrics: Optional[List[Metric]] = None,
        plugins: Optional[List[Plugin]] = None,
        random_source: Optional[RandomSource] = None,
    ):
        """初始化演算法

        Args:
            entity_seed: 種子個體
            operators: 算子集合
            config: 演算法配置，預設使用 AlgorithmConfig()
            metrics: 指標列表
            plugins: 外掛列表
            random_source: 隨機來源，預設依 config.seed 建立

        Raises:
            ValueError: 若 entity_seed 或 operators 為 None
            ConfigurationError: 若配置或算子設定無效
        """
        if entity_seed is None:
            raise ValueError("Entity seed cannot be None")
        if operators is None:
            raise ValueError("Operators cannot be None")

        self.entity_seed = entity_seed
        self.operators = operators
        self.config = config or AlgorithmConfig()
        self.metrics: List[Metric] = list(metrics or [])
        self.plugins: List[Plugin] = list(plugins or [])
        self.random_source = random_source or RandomSource(self.config.seed)
        self.environment = GeneticEnvironment()
        self.current_generation = 0

        if self.operators.terminator is None:
            self.operators.terminator = NeverTerminator()

        self._observers: Dict[AlgorithmEvent, List[Callable]] = {
            event: [] for event in AlgorithmEvent
        }
        self._is_initialized = False
        self._cancel_requested = False

        self.validate()

    # -------------------------------------------------------------------------
    # 觀察者
    # -------------------------------------------------------------------------

    def subscribe(self, event: AlgorithmEvent, callback: Callable) -> None:
        """訂閱生命週期通知（同一回呼只會登記一次）

        FITNESS_EVALUATED 回呼接收 (environment, generation)，回傳真值表示要求提前終止；
        GENERATION_CREATED 回呼接收 (generation)；其餘不帶參數。
        """
        callbacks = self._observers[event]
        if callback not in callbacks:
            callbacks.append(callback)

    def unsubscribe(self, event: AlgorithmEvent, callback: Callable) -> None:
        callbacks = self._observers[event]
        if callback in callbacks:
            callbacks.remove(callback)

    def _notify(self, event: AlgorithmEvent, *args) -> bool:
        """通知觀察者與外掛，回傳是否有人要求提前終止"""
        cancel = False
        for callback in list(self._observers[event]):
            if callback(*args):
                cancel = True

        for plugin in self.plugins:
            if event == AlgorithmEvent.ALGORITHM_STARTING:
                plugin.on_algorithm_starting()
            elif event == AlgorithmEvent.GENERATION_CREATED:
                plugin.on_generation_created(*args)
            elif event == AlgorithmEvent.FITNESS_EVALUATED:
                if plugin.on_fitness_evaluated(*args):
                    cancel = True
            elif event == AlgorithmEvent.ALGORITHM_COMPLETED:
                plugin.on_algorithm_completed()
        return cancel

    # -------------------------------------------------------------------------
    # 屬性
    # -------------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def evaluation_mode(self) -> FitnessEvaluationMode:
        return self.operators.fitness_evaluator.evaluation_mode

    @property
    def selection_basis(self) -> FitnessType:
        return self.operators.selection_operator.selection_basis

    @property
    def terminator(self) -> Terminator:
        return self.operators.terminator

    # -------------------------------------------------------------------------
    # 生命週期
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """驗證配置、算子、種子個體與策略設定

        Raises:
            ConfigurationError: 若任一設定無效
        """
        self.config.validate()
        self.operators.validate()
        self.entity_seed.validate()
        for component in self.metrics + self.plugins:
            component.validate()
        self._validate_strategy()

    def _validate_strategy(self) -> None:
        """子類別驗證策略專屬設定"""

    def initialize(self) -> None:
        """開始一次全新執行

        先完成所有驗證與組件綁定，再重設環境；驗證失敗時環境不會被修改。
        初始族群（第 0 代）建立後立即評估適應度。

        Raises:
            ConfigurationError: 若設定無效
        """
        self.validate()
        for component in self.operators.components() + self.metrics + self.plugins:
            component.attach(self)

        self._is_initialized = False
        self._cancel_requested = False
        self.current_generation = 0
        self.environment.clear()
        for metric in self.metrics:
            metric.reset()

        logger.info(
            f"Initializing {type(self).__name__}: "
            f"{self.config.environment_size} population(s) x {self.config.population_size}"
        )
        self._notify(AlgorithmEvent.ALGORITHM_STARTING)

        self.environment.initialize(
            self.config.environment_size,
            self.config.population_size,
            self.entity_seed,
            self.random_source,
        )
        self._notify(AlgorithmEvent.GENERATION_CREATED, self.current_generation)
        self._cancel_requested = self._evaluate_generation()
        self._is_initialized = True

    def step(self) -> StepResult:
        """執行一個世代

        依序：所有個體年齡加一、建立下一代、評估適應度、通知觀察者、檢查終止器。

        Returns:
            執行結果；CANCELED 或 COMPLETED 後需重新 initialize()

        Raises:
            AlgorithmNotInitializedError: 若尚未初始化
        """
        if not self._is_initialized:
            raise AlgorithmNotInitializedError()

        if self._cancel_requested:
            return self._cancel()

        if not self.terminator.is_complete():
            self._create_generation()
            if self._evaluate_generation():
                return self._cancel()

        if self.terminator.is_complete():
            self._is_initialized = False
            logger.info(f"Algorithm completed at generation {self.current_generation}")
            self._notify(AlgorithmEvent.ALGORITHM_COMPLETED)
            return StepResult.COMPLETED

        return StepResult.CONTINUE

    def run(self) -> StepResult:
        """同步執行到完成或被取消（必要時先初始化）"""
        if not self._is_initialized:
            self.initialize()
        result = self.step()
        while result == StepResult.CONTINUE:
            result = self.step()
        return result

    def _cancel(self) -> StepResult:
        self._is_initialized = False
        self._cancel_requested = False
        logger.info(f"Algorithm canceled at generation {self.current_generation}")
        return StepResult.CANCELED

    def _create_generation(self) -> None:
        for population in self.environment.populations:
            for entity in population.entities:
                entity.age += 1

        for population in self.environment.populations:
            self._create_next_generation(population)

        self.current_generation += 1
        logger.debug(f"Generation {self.current_generation} created")
        self._notify(AlgorithmEvent.GENERATION_CREATED, self.current_generation)

    def _evaluate_generation(self) -> bool:
        """評估整個環境並通知觀察者，回傳是否要求提前終止"""
        self.environment.evaluate_fitness(
            self.operators.fitness_evaluator,
            self.operators.fitness_scaling_strategy,
        )
        self._after_fitness_evaluated()

        for metric in self.metrics:
            metric.calculate(self.environment, self.current_generation)

        return self._notify(
            AlgorithmEvent.FITNESS_EVALUATED, self.environment, self.current_generation
        )

    def _after_fitness_evaluated(self) -> None:
        """適應度評估完成、通知觀察者之前的掛鉤"""

    # -------------------------------------------------------------------------
    # 繁衍
    # -------------------------------------------------------------------------

    def _produce_children(self, population: Population) -> List[GeneticEntity]:
        """選擇親代並經交叉與突變產生子代（皆為新的複本）"""
        crossover_operator = self.operators.crossover_operator
        mutation_operator = self.operators.mutation_operator

        parent_count = crossover_operator.required_parent_count if crossover_operator else 1
        parents = self.operators.selection_operator.select_entities(parent_count, population)

        if crossover_operator is not None:
            children = crossover_operator.crossover(parents)
        else:
            children = [parent.clone() for parent in parents]

        if mutation_operator is not None:
            children = [mutation_operator.mutate(child) for child in children]
        return children

    @abstractmethod
    def _create_next_generation(self, population: Population) -> None:
        """就地將族群替換為下一代，結束時大小必須等於目標大小"""


class SimpleGeneticAlgorithm(GeneticAlgorithm):
    """簡單遺傳演算法

    1. 精英個體自工作集移出並原封不動進入下一代
    2. 自其餘個體選擇親代，經交叉、突變產生子代，直到下一代填滿
    3. 最後一輪多出來的子代捨棄
    """

    def _create_next_generation(self, population: Population) -> None:
        target_size = population.target_size
        elitism_strategy = self.operators.elitism_strategy

        elites = elitism_strategy.get_elite_entities(population) if elitism_strategy else []
        for elite in elites:
            population.remove(elite)

        next_generation = list(elites)
        while len(next_generation) < target_size:
            children = self._produce_children(population)
            next_generation.extend(children[: target_size - len(next_generation)])

        population.replace_entities(next_generation)


class SteadyStateGeneticAlgorithm(GeneticAlgorithm):
    """穩態遺傳演算法

    每代產生至少 R 個子代加入現有族群（最後一輪可能超出），
    再依適應度排序並截斷為目標大小，淘汰最差的個體。
    子代在下一次評估前沿用其來源複本的適應度。精英保留在此策略下沒有作用。

    Attributes:
        replacement_value: 族群替換值，預設為 10%
    """

    def __init__(
        self,
        entity_seed: GeneticEntity,
        operators: AlgorithmOperators,
        config: Optional[AlgorithmConfig] = None,
        metrics: Optional[List[Metric]] = None,
        plugins: Optional[List[Plugin]] = None,
        random_source: Optional[RandomSource] = None,
        replacement_value: Optional[PopulationReplacementValue] = None,
    ):
        self.replacement_value = replacement_value or PopulationReplacementValue()
        super().__init__(entity_seed, operators, config, metrics, plugins, random_source)

    def _validate_strategy(self) -> None:
        self.replacement_value.validate()

    def replacement_count(self, population_size: int) -> int:
        return self.replacement_value.replacement_count(population_size)

    def _create_next_generation(self, population: Population) -> None:
        target_size = population.target_size
        count = self.replacement_count(population.size)

        # 親代只從本代已評估的個體中選出
        parents_pool = Population(population.target_size, population.index)
        parents_pool.replace_entities(population.entities)

        added = 0
        while added < count:
            children = self._produce_children(parents_pool)
            population.entities.extend(children)
            added += len(children)

        ordered = population.sorted_entities(self.selection_basis, self.evaluation_mode)
        population.replace_entities(ordered[len(ordered) - target_size:])


class MultiDemeGeneticAlgorithm(SimpleGeneticAlgorithm):
    """多族群遺傳演算法

    每個族群以簡單策略獨立演化；每 migrate_each_generation 代，在適應度評估後
    進行環狀遷徙 0 → 1 → ... → N-1 → 0。

    Attributes:
        migrant_count: 每次遷徙的個體數量（0 表示不遷徙）
        migrate_each_generation: 遷徙間隔（世代數）
    """

    def __init__(
        self,
        entity_seed: GeneticEntity,
        operators: AlgorithmOperators,
        config: Optional[AlgorithmConfig] = None,
        metrics: Optional[List[Metric]] = None,
        plugins: Optional[List[Plugin]] = None,
        random_source: Optional[RandomSource] = None,
        migrant_count: int = 0,
        migrate_each_generation: int = 1,
    ):
        self.migrant_count = migrant_count
        self.migrate_each_generation = migrate_each_generation
        super().__init__(entity_seed, operators, config, metrics, plugins, random_source)

    def _validate_strategy(self) -> None:
        validate_migration(
            self.migrant_count,
            self.migrate_each_generation,
            self.config.population_size,
        )

    def _after_fitness_evaluated(self) -> None:
        generation = self.current_generation
        if generation > 0 and generation % self.migrate_each_generation == 0:
            self.migrate()
            for population in self.environment.populations:
                population.update_statistics()

    def migrate(self) -> None:
        """環狀遷徙

        族群 0 交出最好的 M 個個體；族群 1..N-1 依序收下遷徙者，
        再從擴增後的個體中交出最差的 M 個給下一個族群；
        最後一批遷徙者填回族群 0 空出的位置。每個族群的大小不變。
        """
        populations = self.environment.populations
        count = self.migrant_count
        if count == 0 or len(populations) < 2:
            return

        basis = self.selection_basis
        mode = self.evaluation_mode

        source = populations[0]
        migrants = source.sorted_entities(basis, mode)[-count:]
        for migrant in migrants:
            source.remove(migrant)

        for population in populations[1:]:
            population.entities.extend(migrants)
            evicted = population.sorted_entities(basis, mode)[:count]
            for entity in evicted:
                population.remove(entity)
            migrants = evicted

        source.entities.extend(migrants)
        logger.debug(
            f"Migrated {count} entities across {len(populations)} populations "
            f"at generation {self.current_generation}"
        )
