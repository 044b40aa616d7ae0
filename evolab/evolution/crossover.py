"""
交叉算子 (Crossover Operators)

以 crossover_rate 的機率將親代的複本重組為子代；未交叉時回傳親代的複本。
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from .models import GeneticComponent, GeneticEntity
from .exceptions import IncompatibleComponentError, validate_rate
from .lists import ListEntity


class CrossoverOperator(GeneticComponent, ABC):
    """交叉算子基底
    
    Attributes:
        crossover_rate: 交叉機率 [0, 1]，預設 0.7
        required_parent_count: 每次交叉需要的親代數量
    """
    
    def __init__(
        self,
        crossover_rate: float = 0.7,
        required_parent_count: int = 2,
        random_source=None,
    ):
        """初始化交叉算子
        
        Args:
            crossover_rate: 交叉機率，預設為 0.7
            required_parent_count: 親代數量，預設為 2
            random_source: 注入的隨機來源
            
        Raises:
            InvalidRateError: 若 crossover_rate 不在 [0, 1] 範圍內
            ValueError: 若 required_parent_count < 1
        """
        super().__init__(random_source)
        if required_parent_count < 1:
            raise ValueError(
                f"Required parent count must be at least 1, got {required_parent_count}"
            )
        self.crossover_rate = crossover_rate
        self.required_parent_count = required_parent_count
        self.validate()
    
    def validate(self) -> None:
        validate_rate("crossover rate", self.crossover_rate)
    
    def crossover(self, parents: Sequence[GeneticEntity]) -> List[GeneticEntity]:
        """執行交叉
        
        親代本身永遠不會被修改或直接回傳：交叉時子代為親代複本重組後的結果，
        年齡歸零；未交叉時回傳親代的複本（保留年齡與適應度）。
        
        Args:
            parents: 親代列表，數量必須等於 required_parent_count
            
        Returns:
            子代列表
            
        Raises:
            ValueError: 若親代數量不符或包含 None
        """
        if parents is None or any(parent is None for parent in parents):
            raise ValueError("Parents cannot be None")
        if len(parents) != self.required_parent_count:
            raise ValueError(
                f"Expected {self.required_parent_count} parents, got {len(parents)}"
            )
        
        # 根據交叉機率決定是否執行交叉
        if self.random_source.get_double() < self.crossover_rate:
            children = self._generate_crossover([parent.clone() for parent in parents])
            for child in children:
                child.age = 0
                child.invalidate_representation()
            return children
        
        return [parent.clone() for parent in parents]
    
    @abstractmethod
    def _generate_crossover(self, parents: List[GeneticEntity]) -> List[GeneticEntity]:
        """重組親代複本並回傳子代（可直接修改傳入的複本）"""


class SinglePointCrossoverOperator(CrossoverOperator):
    """單點交叉
    
    在 [0, 較短親代長度) 中隨機選一個切點，交換切點之後的基因片段。
    僅適用於列表個體。
    """
    
    def __init__(self, crossover_rate: float = 0.7, random_source=None):
        super().__init__(crossover_rate, required_parent_count=2, random_source=random_source)
    
    def attach(self, algorithm) -> None:
        super().attach(algorithm)
        seed = algorithm.entity_seed
        if not isinstance(seed, ListEntity):
            raise IncompatibleComponentError(
                type(self).__name__, ListEntity.__name__, type(seed).__name__
            )
    
    def _generate_crossover(self, parents: List[GeneticEntity]) -> List[GeneticEntity]:
        first, second = parents
        shortest = min(len(first.values), len(second.values))
        if shortest == 0:
            return parents
        
        locus = self.random_source.get_int(shortest)
        first_tail = first.values[locus:]
        first.values = first.values[:locus] + second.values[locus:]
        second.values = second.values[:locus] + first_tail
        return [first, second]
