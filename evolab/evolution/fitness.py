"""
適應度評估與縮放 (Fitness Evaluation & Scaling)

適應度評估器計算每個個體的原始適應度；縮放策略在原始統計算出後，
由原始適應度（與族群彙總統計）推導出縮放後適應度，供選擇算子使用。
"""

import math
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Union

from .models import FitnessEvaluationMode, GeneticComponent, GeneticEntity
from .exceptions import ConfigurationError, FitnessScalingError


class FitnessEvaluator(GeneticComponent, ABC):
    """適應度評估器
    
    Attributes:
        evaluation_mode: 評估方向（最大化或最小化）
    """
    
    def __init__(
        self,
        evaluation_mode: FitnessEvaluationMode = FitnessEvaluationMode.MAXIMIZE,
    ):
        super().__init__()
        self.evaluation_mode = evaluation_mode
    
    @abstractmethod
    def evaluate_fitness(
        self,
        entity: GeneticEntity,
    ) -> Union[float, Awaitable[float]]:
        """評估單一個體
        
        可回傳數值，或回傳可等待物件（例如 I/O 密集的評估）；
        族群會等待所有個體完成後才繼續。
        
        Args:
            entity: 要評估的個體
            
        Returns:
            原始適應度
        """


class FunctionFitnessEvaluator(FitnessEvaluator):
    """以一般函式（或協程函式）作為評估邏輯的評估器"""
    
    def __init__(
        self,
        function: Callable[[GeneticEntity], Union[float, Awaitable[float]]],
        evaluation_mode: FitnessEvaluationMode = FitnessEvaluationMode.MAXIMIZE,
    ):
        super().__init__(evaluation_mode)
        if function is None:
            raise ValueError("Fitness function cannot be None")
        self.function = function
    
    def evaluate_fitness(self, entity: GeneticEntity):
        return self.function(entity)


class FitnessScalingStrategy(GeneticComponent, ABC):
    """縮放策略基底"""
    
    @abstractmethod
    def update_scaled_fitness(self, population) -> None:
        """依原始適應度與族群統計，就地更新每個個體的縮放後適應度"""


class SigmaScalingStrategy(FitnessScalingStrategy):
    """Sigma 截斷縮放
    
    scaled = max(0, raw - (mean - multiplier * std))
    
    Attributes:
        multiplier: 標準差倍數，預設 2
    """
    
    def __init__(self, multiplier: int = 2):
        super().__init__()
        self.multiplier = multiplier
        self.validate()
    
    def validate(self) -> None:
        if self.multiplier < 1:
            raise ConfigurationError(
                f"Sigma multiplier must be at least 1, got {self.multiplier}"
            )
    
    def update_scaled_fitness(self, population) -> None:
        threshold = population.raw_mean - self.multiplier * population.raw_std
        for entity in population.entities:
            entity.scaled_fitness = max(0.0, entity.raw_fitness - threshold)


class ExponentialScalingStrategy(FitnessScalingStrategy):
    """指數縮放：scaled = raw ** scaling_power
    
    Attributes:
        scaling_power: 指數（必須大於 0）
    """
    
    def __init__(self, scaling_power: float = 1.005):
        super().__init__()
        self.scaling_power = scaling_power
        self.validate()
    
    def validate(self) -> None:
        if not self.scaling_power > 0:
            raise ConfigurationError(
                f"Scaling power must be positive, got {self.scaling_power}"
            )
    
    def update_scaled_fitness(self, population) -> None:
        """以指數轉換原始適應度
        
        Raises:
            FitnessScalingError: 若負的原始適應度遇上非整數指數
        """
        for entity in population.entities:
            try:
                entity.scaled_fitness = math.pow(entity.raw_fitness, self.scaling_power)
            except ValueError:
                raise FitnessScalingError(entity.raw_fitness, self.scaling_power) from None


class FitnessSharingScalingStrategy(FitnessScalingStrategy):
    """適應度共享縮放
    
    將每個個體的適應度除以其小生境計數（niche count），
    降低擁擠區域的個體被選中的機率：
    
        niche(i) = Σ_j sh(d(i, j))，sh(d) = 1 - (d / cutoff) ** curvature（d < cutoff 時，否則為 0）
    
    Attributes:
        distance: 兩個個體之間的距離函式
        cutoff: 共享半徑
        curvature: 共享函式的曲率
    """
    
    def __init__(
        self,
        distance: Callable[[GeneticEntity, GeneticEntity], float],
        cutoff: float = 1.0,
        curvature: float = 1.0,
    ):
        super().__init__()
        if distance is None:
            raise ValueError("Distance function cannot be None")
        self.distance = distance
        self.cutoff = cutoff
        self.curvature = curvature
        self.validate()
    
    def validate(self) -> None:
        if not self.cutoff > 0:
            raise ConfigurationError(
                f"Fitness sharing cutoff must be greater than 0, got {self.cutoff}"
            )
    
    def _share(self, distance: float) -> float:
        if distance >= self.cutoff:
            return 0.0
        return 1.0 - (distance / self.cutoff) ** self.curvature
    
    def update_scaled_fitness(self, population) -> None:
        entities = population.entities
        niche_counts = [
            sum(self._share(self.distance(entity, other)) for other in entities)
            for entity in entities
        ]
        for entity, niche_count in zip(entities, niche_counts):
            # 自身距離為 0，niche_count 至少為 1
            if niche_count > 0:
                entity.scaled_fitness = entity.scaled_fitness / niche_count
