"""
指標與外掛 (Metrics & Plugins)

指標在每次適應度評估後，為每個族群記錄一筆結果；外掛接收演算法的生命週期通知，
可在適應度評估後要求提前終止。MetricLogger 將指標輸出到 logging。
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import GeneticComponent

logger = logging.getLogger(__name__)


@dataclass
class MetricResult:
    """單一指標結果
    
    Attributes:
        generation: 世代編號
        population_index: 族群索引
        value: 指標數值
    """
    generation: int
    population_index: int
    value: float


class Metric(GeneticComponent, ABC):
    """指標基底
    
    Attributes:
        name: 指標名稱
    """
    
    name = "metric"
    
    def __init__(self):
        super().__init__()
        self._results: Dict[int, List[MetricResult]] = {}
    
    def reset(self) -> None:
        """清除所有結果（全新執行開始時呼叫）"""
        self._results = {}
    
    def calculate(self, environment, generation: int) -> None:
        """為環境中的每個族群計算並記錄一筆結果"""
        for population in environment.populations:
            value = self._compute(population)
            self._results.setdefault(population.index, []).append(
                MetricResult(generation, population.index, value)
            )
    
    def get_results(self, population_index: int) -> List[MetricResult]:
        return list(self._results.get(population_index, []))
    
    def latest(self, population_index: int) -> Optional[MetricResult]:
        results = self._results.get(population_index)
        return results[-1] if results else None
    
    @abstractmethod
    def _compute(self, population) -> float:
        """計算單一族群的指標值"""


class MinimumFitness(Metric):
    """族群的最小縮放後適應度"""
    
    name = "minimum_fitness"
    
    def _compute(self, population) -> float:
        return population.scaled_min


class MaximumFitness(Metric):
    """族群的最大縮放後適應度"""
    
    name = "maximum_fitness"
    
    def _compute(self, population) -> float:
        return population.scaled_max


class MeanFitness(Metric):
    name = "mean_fitness"
    
    def _compute(self, population) -> float:
        return population.scaled_mean


class FitnessStandardDeviation(Metric):
    name = "fitness_standard_deviation"
    
    def _compute(self, population) -> float:
        return population.scaled_std


class _BestFitness(Metric):
    """歷代最佳原始適應度（依族群分別追蹤）"""
    
    def __init__(self):
        super().__init__()
        self._best: Dict[int, float] = {}
    
    def reset(self) -> None:
        super().reset()
        self._best = {}
    
    def _compute(self, population) -> float:
        candidate = self._candidate(population)
        best = self._best.get(population.index)
        if best is None or self._is_better(candidate, best):
            best = candidate
        self._best[population.index] = best
        return best
    
    @abstractmethod
    def _candidate(self, population) -> float:
        """本代的候選值"""
    
    @abstractmethod
    def _is_better(self, candidate: float, best: float) -> bool:
        """候選值是否優於目前最佳值"""


class BestMaximumFitness(_BestFitness):
    """歷代最大原始適應度"""
    
    name = "best_maximum_fitness"
    
    def _candidate(self, population) -> float:
        return population.raw_max
    
    def _is_better(self, candidate: float, best: float) -> bool:
        return candidate > best


class BestMinimumFitness(_BestFitness):
    """歷代最小原始適應度"""
    
    name = "best_minimum_fitness"
    
    def _candidate(self, population) -> float:
        return population.raw_min
    
    def _is_better(self, candidate: float, best: float) -> bool:
        return candidate < best


class Plugin(GeneticComponent):
    """外掛基底
    
    覆寫需要的通知方法即可；on_fitness_evaluated 回傳 True 表示要求提前終止。
    """
    
    def on_algorithm_starting(self) -> None:
        pass
    
    def on_generation_created(self, generation: int) -> None:
        pass
    
    def on_fitness_evaluated(self, environment, generation: int) -> bool:
        return False
    
    def on_algorithm_completed(self) -> None:
        pass


class MetricLogger(Plugin):
    """將生命週期事件與每個指標值輸出到 logging 的外掛"""
    
    def __init__(self, level: int = logging.INFO):
        super().__init__()
        self.level = level
    
    def on_algorithm_starting(self) -> None:
        logger.log(self.level, "Algorithm starting")
    
    def on_fitness_evaluated(self, environment, generation: int) -> bool:
        for metric in self.algorithm.metrics:
            for population in environment.populations:
                result = metric.latest(population.index)
                if result is not None and result.generation == generation:
                    logger.log(
                        self.level,
                        f"Generation {generation} population {population.index} "
                        f"{metric.name}={result.value}",
                    )
        return False
    
    def on_algorithm_completed(self) -> None:
        logger.log(self.level, "Algorithm completed")
