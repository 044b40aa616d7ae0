"""
選擇算子 (Selection Operators)

負責從族群中選擇親代。輪盤取樣器為共用的加權隨機選擇演算法，
適應度比例、排名與波茲曼選擇都透過它抽樣；另提供均勻、競賽選擇與精英保留策略。
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .models import (
    AlgorithmEvent,
    FitnessEvaluationMode,
    FitnessType,
    GeneticComponent,
    GeneticEntity,
    round_half_away_from_zero,
)
from .exceptions import (
    BoltzmannOverflowError,
    ConfigurationError,
    EmptyPopulationError,
    validate_positive,
    validate_rate,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Roulette Wheel
# =============================================================================

class WheelSlice:
    """輪盤切片
    
    Attributes:
        entity: 切片對應的個體
        size: 切片權重（非負）
    """
    
    __slots__ = ("entity", "size")
    
    def __init__(self, entity: GeneticEntity, size: float):
        if entity is None:
            raise ValueError("Wheel slice entity cannot be None")
        if size < 0:
            raise ValueError(f"Wheel slice size must be non-negative, got {size}")
        self.entity = entity
        self.size = size
    
    def __repr__(self) -> str:
        return f"WheelSlice(size={self.size})"


class RouletteWheelSampler:
    """輪盤取樣器
    
    無狀態的加權隨機選擇：依權重建立累積百分比區間，抽出 [0, 100) 的隨機值，
    回傳區間包含該值的個體。所有權重皆為 0 時改為均勻隨機選擇。
    """
    
    @staticmethod
    def get_entity(slices: Sequence[WheelSlice], random_source) -> GeneticEntity:
        """從輪盤抽出一個個體
        
        Args:
            slices: 輪盤切片
            random_source: 注入的隨機來源
            
        Returns:
            被抽中的個體
            
        Raises:
            ValueError: 若切片列表為空或包含 None
        """
        if not slices:
            raise ValueError("Roulette wheel requires at least one slice")
        if any(wheel_slice is None for wheel_slice in slices):
            raise ValueError("Roulette wheel slices cannot contain None")
        
        total = sum(wheel_slice.size for wheel_slice in slices)
        if total == 0:
            return slices[random_source.get_int(len(slices))].entity
        
        target = random_source.get_double() * 100
        cumulative = 0.0
        for wheel_slice in slices:
            cumulative += wheel_slice.size / total * 100
            if target < cumulative:
                return wheel_slice.entity
        
        # 浮點誤差使累積值略小於 100 時落到最後一個非零切片
        for wheel_slice in reversed(slices):
            if wheel_slice.size > 0:
                return wheel_slice.entity
        return slices[-1].entity


# =============================================================================
# Selection Operators
# =============================================================================

class SelectionOperator(GeneticComponent, ABC):
    """選擇算子基底
    
    Attributes:
        selection_basis: 選擇依據（原始或縮放後適應度），預設為縮放後
    """
    
    def __init__(
        self,
        selection_basis: FitnessType = FitnessType.SCALED,
        evaluation_mode: Optional[FitnessEvaluationMode] = None,
        random_source=None,
    ):
        super().__init__(random_source)
        self.selection_basis = selection_basis
        self._evaluation_mode = evaluation_mode
    
    @property
    def evaluation_mode(self) -> FitnessEvaluationMode:
        """評估方向：明確指定者優先，其次為所屬演算法的評估器"""
        if self._evaluation_mode is not None:
            return self._evaluation_mode
        if self.algorithm is not None:
            return self.algorithm.evaluation_mode
        return FitnessEvaluationMode.MAXIMIZE
    
    def select_entity(self, population) -> GeneticEntity:
        """從族群選出一個個體
        
        Raises:
            ValueError: 若族群為 None 或為空
        """
        if population is None:
            raise ValueError("Population cannot be None")
        if not population.entities:
            raise ValueError("Population cannot be empty")
        return self._select(population)
    
    def select_entities(self, count: int, population) -> List[GeneticEntity]:
        """選出 count 個個體（可重複）"""
        if count < 1:
            raise ValueError(f"Selection count must be at least 1, got {count}")
        return [self.select_entity(population) for _ in range(count)]
    
    @abstractmethod
    def _select(self, population) -> GeneticEntity:
        """實際的選擇邏輯（族群已確認非空）"""


class WheelSelectionOperator(SelectionOperator):
    """以輪盤取樣的選擇算子基底"""
    
    @abstractmethod
    def build_slices(self, population) -> List[WheelSlice]:
        """依族群建立輪盤切片"""
    
    def _select(self, population) -> GeneticEntity:
        return RouletteWheelSampler.get_entity(
            self.build_slices(population), self.random_source
        )


class FitnessProportionateSelectionOperator(WheelSelectionOperator):
    """適應度比例選擇
    
    權重為適應度本身。最小化時將第 i 差個體的適應度對應到第 i 好個體的切片
    （反轉分配而非取負值），使較小的適應度得到較大的切片；
    最小值不大於 0 時，所有權重加上 |min| + 1 使其皆為正。
    """
    
    def build_slices(self, population) -> List[WheelSlice]:
        ordered = population.sorted_entities(self.selection_basis, self.evaluation_mode)
        values = [entity.get_fitness_value(self.selection_basis) for entity in ordered]
        if self.evaluation_mode == FitnessEvaluationMode.MINIMIZE:
            values.reverse()
        
        minimum = min(values)
        offset = abs(minimum) + 1 if minimum <= 0 else 0.0
        return [
            WheelSlice(entity, value + offset)
            for entity, value in zip(ordered, values)
        ]


class RankSelectionOperator(WheelSelectionOperator):
    """排名選擇：由差到好，切片大小為 1..N，與適應度絕對值無關"""
    
    def build_slices(self, population) -> List[WheelSlice]:
        ordered = population.sorted_entities(self.selection_basis, self.evaluation_mode)
        return [WheelSlice(entity, rank) for rank, entity in enumerate(ordered, start=1)]


class AnnealingSchedule(ABC):
    """退火排程：每一代調整一次波茲曼溫度"""
    
    @abstractmethod
    def next_temperature(self, temperature: float) -> float:
        """由目前溫度計算下一代的溫度"""
    
    def validate(self) -> None:
        """驗證排程設定"""


class LinearAnnealingSchedule(AnnealingSchedule):
    """線性退火：T' = max(minimum_temperature, T - delta)"""
    
    def __init__(self, delta: float = 1.0, minimum_temperature: float = 1.0):
        self.delta = delta
        self.minimum_temperature = minimum_temperature
        self.validate()
    
    def validate(self) -> None:
        if self.delta < 0:
            raise ConfigurationError(
                f"Annealing delta must be non-negative, got {self.delta}"
            )
        validate_positive("minimum temperature", self.minimum_temperature)
    
    def next_temperature(self, temperature: float) -> float:
        return max(self.minimum_temperature, temperature - self.delta)


class GeometricAnnealingSchedule(AnnealingSchedule):
    """幾何退火：T' = max(minimum_temperature, T * cooling_rate)"""
    
    def __init__(self, cooling_rate: float = 0.95, minimum_temperature: float = 1.0):
        self.cooling_rate = cooling_rate
        self.minimum_temperature = minimum_temperature
        self.validate()
    
    def validate(self) -> None:
        if not 0 < self.cooling_rate <= 1:
            raise ConfigurationError(
                f"Cooling rate must be in (0, 1], got {self.cooling_rate}"
            )
        validate_positive("minimum temperature", self.minimum_temperature)
    
    def next_temperature(self, temperature: float) -> float:
        return max(self.minimum_temperature, temperature * self.cooling_rate)


class BoltzmannSelectionOperator(WheelSelectionOperator):
    """波茲曼選擇
    
    權重為 exp(fitness / temperature)。溫度在每次全新執行開始時重設為初始溫度，
    並在每個新世代建立時由退火排程調整一次。
    
    Attributes:
        initial_temperature: 初始溫度
        temperature: 目前溫度
        annealing_schedule: 退火排程，None 表示溫度固定
    """
    
    def __init__(
        self,
        initial_temperature: float = 100.0,
        annealing_schedule: Optional[AnnealingSchedule] = None,
        selection_basis: FitnessType = FitnessType.SCALED,
        evaluation_mode: Optional[FitnessEvaluationMode] = None,
        random_source=None,
    ):
        super().__init__(selection_basis, evaluation_mode, random_source)
        self.initial_temperature = initial_temperature
        self.temperature = initial_temperature
        self.annealing_schedule = annealing_schedule
        self.validate()
    
    def validate(self) -> None:
        validate_positive("initial temperature", self.initial_temperature)
        if self.annealing_schedule is not None:
            self.annealing_schedule.validate()
    
    def attach(self, algorithm) -> None:
        super().attach(algorithm)
        algorithm.subscribe(AlgorithmEvent.ALGORITHM_STARTING, self._on_algorithm_starting)
        algorithm.subscribe(AlgorithmEvent.GENERATION_CREATED, self._on_generation_created)
    
    def _on_algorithm_starting(self, *args) -> None:
        self.temperature = self.initial_temperature
    
    def _on_generation_created(self, *args) -> None:
        self.adjust_temperature()
    
    def adjust_temperature(self) -> None:
        """依退火排程調整溫度"""
        if self.annealing_schedule is None:
            return
        self.temperature = self.annealing_schedule.next_temperature(self.temperature)
        logger.debug(f"Boltzmann temperature adjusted to {self.temperature}")
    
    def build_slices(self, population) -> List[WheelSlice]:
        """建立波茲曼切片
        
        Raises:
            BoltzmannOverflowError: 若任一指數項或累加和超出浮點範圍
        """
        entities = population.entities
        terms = []
        total = 0.0
        for entity in entities:
            fitness = entity.get_fitness_value(self.selection_basis)
            if self.evaluation_mode == FitnessEvaluationMode.MINIMIZE:
                fitness = -fitness
            try:
                term = math.exp(fitness / self.temperature)
            except OverflowError:
                raise BoltzmannOverflowError(self.temperature, fitness) from None
            total += term
            if math.isinf(total) or math.isnan(total):
                raise BoltzmannOverflowError(self.temperature, fitness)
            terms.append(term)
        
        mean = total / len(entities)
        if mean == 0:
            return [WheelSlice(entity, 0.0) for entity in entities]
        return [WheelSlice(entity, term / mean) for entity, term in zip(entities, terms)]


class UniformSelectionOperator(SelectionOperator):
    """均勻選擇：忽略適應度，隨機挑選索引"""
    
    def _select(self, population) -> GeneticEntity:
        return population.entities[self.random_source.get_int(len(population.entities))]


class TournamentSelectionOperator(SelectionOperator):
    """競賽選擇
    
    從族群中隨機挑選 tournament_size 個不重複的個體，回傳其中最好者。
    
    Attributes:
        tournament_size: 競賽參與者數量
    """
    
    def __init__(
        self,
        tournament_size: int = 3,
        selection_basis: FitnessType = FitnessType.SCALED,
        evaluation_mode: Optional[FitnessEvaluationMode] = None,
        random_source=None,
    ):
        super().__init__(selection_basis, evaluation_mode, random_source)
        self.tournament_size = tournament_size
        self.validate()
    
    def validate(self) -> None:
        if self.tournament_size < 1:
            raise ConfigurationError(
                f"Tournament size must be at least 1, got {self.tournament_size}"
            )
    
    def _select(self, population) -> GeneticEntity:
        # 確保競賽大小不超過族群大小
        size = min(self.tournament_size, len(population.entities))
        participants = self.random_source.sample(population.entities, size)
        key = lambda entity: entity.get_fitness_value(self.selection_basis)
        if self.evaluation_mode == FitnessEvaluationMode.MINIMIZE:
            return min(participants, key=key)
        return max(participants, key=key)


# =============================================================================
# Elitism
# =============================================================================

class ElitismStrategy(GeneticComponent):
    """精英保留策略
    
    選出最好的 round(elitist_ratio * size) 個個體，直接進入下一代，
    不經過選擇、交叉與突變。
    
    Attributes:
        elitist_ratio: 精英比例 [0, 1]，預設 0.1
    """
    
    def __init__(
        self,
        elitist_ratio: float = 0.1,
        fitness_type: Optional[FitnessType] = None,
        evaluation_mode: Optional[FitnessEvaluationMode] = None,
    ):
        """初始化精英保留策略
        
        Args:
            elitist_ratio: 精英比例，預設 0.1 (10%)
            fitness_type: 排序依據，預設跟隨演算法的選擇算子（未綁定時為縮放後）
            evaluation_mode: 評估方向，預設跟隨演算法的評估器
            
        Raises:
            InvalidRateError: 若 elitist_ratio 不在 [0, 1] 範圍內
        """
        super().__init__()
        self.elitist_ratio = elitist_ratio
        self._fitness_type = fitness_type
        self._evaluation_mode = evaluation_mode
        self.validate()
    
    def validate(self) -> None:
        validate_rate("elitist ratio", self.elitist_ratio)
    
    @property
    def fitness_type(self) -> FitnessType:
        if self._fitness_type is not None:
            return self._fitness_type
        if self.algorithm is not None:
            return self.algorithm.selection_basis
        return FitnessType.SCALED
    
    @property
    def evaluation_mode(self) -> FitnessEvaluationMode:
        if self._evaluation_mode is not None:
            return self._evaluation_mode
        if self.algorithm is not None:
            return self.algorithm.evaluation_mode
        return FitnessEvaluationMode.MAXIMIZE
    
    def elite_count(self, population_size: int) -> int:
        return round_half_away_from_zero(self.elitist_ratio * population_size)
    
    def get_elite_entities(self, population) -> List[GeneticEntity]:
        """取得精英個體（由好到差）
        
        Raises:
            ValueError: 若族群為 None
            EmptyPopulationError: 若族群沒有任何個體
        """
        if population is None:
            raise ValueError("Population cannot be None")
        if population.size == 0:
            raise EmptyPopulationError(population.index)
        count = self.elite_count(population.size)
        if count == 0:
            return []
        ordered = population.sorted_entities(self.fitness_type, self.evaluation_mode)
        return list(reversed(ordered[-count:]))
