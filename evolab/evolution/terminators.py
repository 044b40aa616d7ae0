"""
終止器 (Terminators)

在每個世代邊界輪詢，判斷演算法是否已完成。
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

from .models import AlgorithmEvent, FitnessType, GeneticComponent
from .exceptions import ConfigurationError


class Terminator(GeneticComponent, ABC):
    """終止器基底"""
    
    @abstractmethod
    def is_complete(self) -> bool:
        """演算法是否已完成"""


class NeverTerminator(Terminator):
    """永不終止，執行直到呼叫端停止"""
    
    def is_complete(self) -> bool:
        return False


class GenerationalTerminator(Terminator):
    """世代數終止器
    
    Attributes:
        final_generation: 最終世代編號（目前世代等於此值時完成）
    """
    
    def __init__(self, final_generation: int = 100):
        super().__init__()
        self.final_generation = final_generation
        self.validate()
    
    def validate(self) -> None:
        if self.final_generation < 1:
            raise ConfigurationError(
                f"Final generation must be at least 1, got {self.final_generation}"
            )
    
    def is_complete(self) -> bool:
        return self.algorithm.current_generation >= self.final_generation


class FitnessTargetTerminator(Terminator):
    """適應度目標終止器
    
    任一族群中任一個體的適應度等於目標值時完成。
    
    Attributes:
        fitness_target: 目標適應度
        fitness_type: 比較依據
    """
    
    def __init__(
        self,
        fitness_target: float,
        fitness_type: FitnessType = FitnessType.RAW,
    ):
        super().__init__()
        self.fitness_target = fitness_target
        self.fitness_type = fitness_type
    
    def is_complete(self) -> bool:
        return any(
            entity.get_fitness_value(self.fitness_type) == self.fitness_target
            for population in self.algorithm.environment.populations
            for entity in population.entities
        )


class TimeDurationTerminator(Terminator):
    """執行時間終止器
    
    在每次全新執行開始時記錄時間，經過 time_limit 後完成。
    只在世代邊界輪詢，不會中斷進行中的世代。
    
    Attributes:
        time_limit: 時間上限
    """
    
    def __init__(
        self,
        time_limit: timedelta,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__()
        self.time_limit = time_limit
        self._clock = clock or datetime.now
        self._start_time: Optional[datetime] = None
        self.validate()
    
    def validate(self) -> None:
        if self.time_limit <= timedelta(0):
            raise ConfigurationError(
                f"Time limit must be positive, got {self.time_limit}"
            )
    
    def attach(self, algorithm) -> None:
        super().attach(algorithm)
        algorithm.subscribe(AlgorithmEvent.ALGORITHM_STARTING, self._on_algorithm_starting)
    
    def _on_algorithm_starting(self, *args) -> None:
        self._start_time = self._clock()
    
    def is_complete(self) -> bool:
        if self._start_time is None:
            return False
        return self._clock() - self._start_time >= self.time_limit
