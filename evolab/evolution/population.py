"""
族群與環境 (Population & Environment)

族群持有個體並在適應度評估後重新計算彙總統計（原始與縮放後的最小、最大、
平均與標準差）；環境持有一或多個族群（deme）。
"""

import asyncio
import inspect
import logging
from typing import List, Optional, Sequence

import numpy as np

from .models import (
    FitnessEvaluationMode,
    FitnessType,
    GeneticEntity,
    sort_by_fitness,
)
from .exceptions import (
    EmptyPopulationError,
    validate_environment_size,
    validate_population_size,
)

logger = logging.getLogger(__name__)


async def _gather(results: Sequence) -> List[float]:
    async def resolve(result):
        if inspect.isawaitable(result):
            return await result
        return result
    
    return list(await asyncio.gather(*(resolve(result) for result in results)))


class Population:
    """族群
    
    有序、可變的個體集合，附帶彙總統計快取。
    
    Attributes:
        minimum_population_size: 目標大小，每一代結束時個體數量必須等於此值
        index: 在環境中的位置
        entities: 個體列表
    """
    
    def __init__(self, minimum_population_size: int, index: int = 0):
        """初始化族群
        
        Args:
            minimum_population_size: 目標大小
            index: 在環境中的位置，預設 0
            
        Raises:
            InvalidPopulationSizeError: 若目標大小小於 1
        """
        validate_population_size(minimum_population_size)
        self.minimum_population_size = minimum_population_size
        self.index = index
        self.entities: List[GeneticEntity] = []
        self._reset_statistics()
    
    def _reset_statistics(self) -> None:
        self.raw_min: Optional[float] = None
        self.raw_max: Optional[float] = None
        self.raw_mean: Optional[float] = None
        self.raw_std: Optional[float] = None
        self.scaled_min: Optional[float] = None
        self.scaled_max: Optional[float] = None
        self.scaled_mean: Optional[float] = None
        self.scaled_std: Optional[float] = None
    
    @property
    def target_size(self) -> int:
        return self.minimum_population_size
    
    @property
    def size(self) -> int:
        return len(self.entities)
    
    def __len__(self) -> int:
        return len(self.entities)
    
    def __iter__(self):
        return iter(self.entities)
    
    def add(self, entity: GeneticEntity) -> None:
        if entity is None:
            raise ValueError("Entity cannot be None")
        self.entities.append(entity)
    
    def remove(self, entity: GeneticEntity) -> None:
        """依身分（而非內容）移除個體
        
        Raises:
            ValueError: 若個體不在族群中
        """
        for position, candidate in enumerate(self.entities):
            if candidate is entity:
                del self.entities[position]
                return
        raise ValueError("Entity is not a member of this population")
    
    def clear(self) -> None:
        self.entities.clear()
        self._reset_statistics()
    
    def replace_entities(self, entities) -> None:
        """以新的個體集合取代目前內容（保留列表物件）"""
        self.entities[:] = list(entities)
    
    def initialize(self, entity_seed: GeneticEntity, random_source) -> None:
        """以種子個體建立初始族群
        
        Args:
            entity_seed: 種子個體，透過 create_new() 產生新個體
            random_source: 注入的隨機來源
        """
        self.clear()
        for _ in range(self.minimum_population_size):
            entity = entity_seed.create_new()
            entity.initialize(random_source)
            self.entities.append(entity)
    
    def sorted_entities(
        self,
        fitness_type: FitnessType,
        evaluation_mode: FitnessEvaluationMode,
    ) -> List[GeneticEntity]:
        """由差到好排序的個體列表（最後一個最好）"""
        return sort_by_fitness(self.entities, fitness_type, evaluation_mode)
    
    def evaluate_fitness(self, evaluator, scaling_strategy=None) -> None:
        """評估整個族群的適應度
        
        依序執行：
        1. 評估所有個體（可等待的結果全部完成後才繼續）
        2. 寫入原始適應度，縮放後適應度先等於原始值
        3. 計算原始統計
        4. 套用縮放策略並計算縮放後統計
        
        Args:
            evaluator: 適應度評估器
            scaling_strategy: 縮放策略，None 表示不縮放
            
        Raises:
            EmptyPopulationError: 若族群為空
        """
        if not self.entities:
            raise EmptyPopulationError(self.index)
        
        results = [evaluator.evaluate_fitness(entity) for entity in self.entities]
        if any(inspect.isawaitable(result) for result in results):
            results = asyncio.run(_gather(results))
        
        for entity, value in zip(self.entities, results):
            entity.set_raw_fitness(value)
        
        self._update_raw_statistics()
        if scaling_strategy is not None:
            scaling_strategy.update_scaled_fitness(self)
        self._update_scaled_statistics()
    
    def update_statistics(self) -> None:
        """重新計算彙總統計
        
        Raises:
            EmptyPopulationError: 若族群為空
        """
        self._update_raw_statistics()
        self._update_scaled_statistics()
    
    def _fitness_array(self, fitness_type: FitnessType) -> np.ndarray:
        if not self.entities:
            raise EmptyPopulationError(self.index)
        return np.array(
            [entity.get_fitness_value(fitness_type) for entity in self.entities],
            dtype=np.float64,
        )
    
    def _update_raw_statistics(self) -> None:
        values = self._fitness_array(FitnessType.RAW)
        self.raw_min = float(np.min(values))
        self.raw_max = float(np.max(values))
        self.raw_mean = float(np.mean(values))
        self.raw_std = float(np.std(values))
    
    def _update_scaled_statistics(self) -> None:
        values = self._fitness_array(FitnessType.SCALED)
        self.scaled_min = float(np.min(values))
        self.scaled_max = float(np.max(values))
        self.scaled_mean = float(np.mean(values))
        self.scaled_std = float(np.std(values))
    
    def __repr__(self) -> str:
        return (
            f"Population(index={self.index}, size={self.size}, "
            f"target_size={self.target_size})"
        )


class GeneticEnvironment:
    """環境
    
    有序的族群集合（索引 0..N-1），族群數量在一次執行期間固定。
    
    Attributes:
        populations: 族群列表
    """
    
    def __init__(self):
        self.populations: List[Population] = []
    
    def __len__(self) -> int:
        return len(self.populations)
    
    def __iter__(self):
        return iter(self.populations)
    
    def __getitem__(self, index: int) -> Population:
        return self.populations[index]
    
    @property
    def total_size(self) -> int:
        return sum(population.size for population in self.populations)
    
    def clear(self) -> None:
        self.populations.clear()
    
    def initialize(
        self,
        environment_size: int,
        population_size: int,
        entity_seed: GeneticEntity,
        random_source,
    ) -> None:
        """建立 environment_size 個族群並填入初始個體"""
        validate_environment_size(environment_size)
        validate_population_size(population_size)
        
        self.populations.clear()
        for index in range(environment_size):
            population = Population(population_size, index)
            population.initialize(entity_seed, random_source)
            self.populations.append(population)
        
        logger.debug(
            f"Environment initialized with {environment_size} population(s) "
            f"of {population_size} entities"
        )
    
    def evaluate_fitness(self, evaluator, scaling_strategy=None) -> None:
        for population in self.populations:
            population.evaluate_fitness(evaluator, scaling_strategy)
