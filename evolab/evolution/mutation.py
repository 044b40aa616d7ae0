"""
突變算子 (Mutation Operators)

對個體的複本引入隨機擾動；任何基因發生突變時，複本的年齡歸零。
"""

from abc import ABC, abstractmethod

from .models import GeneticComponent, GeneticEntity
from .exceptions import IncompatibleComponentError, validate_rate
from .lists import BinaryStringEntity, IntegerListEntity, ListEntity


class MutationOperator(GeneticComponent, ABC):
    """突變算子基底
    
    Attributes:
        mutation_rate: 突變機率 [0, 1]，預設 0.001
    """
    
    required_entity_type = GeneticEntity
    
    def __init__(self, mutation_rate: float = 0.001, random_source=None):
        super().__init__(random_source)
        self.mutation_rate = mutation_rate
        self.validate()
    
    def validate(self) -> None:
        validate_rate("mutation rate", self.mutation_rate)
    
    def attach(self, algorithm) -> None:
        super().attach(algorithm)
        seed = algorithm.entity_seed
        if not isinstance(seed, self.required_entity_type):
            raise IncompatibleComponentError(
                type(self).__name__,
                self.required_entity_type.__name__,
                type(seed).__name__,
            )
    
    def mutate(self, entity: GeneticEntity) -> GeneticEntity:
        """回傳可能已突變的複本（原個體不變）
        
        Raises:
            ValueError: 若個體為 None
        """
        if entity is None:
            raise ValueError("Entity cannot be None")
        mutant = entity.clone()
        if self._generate_mutation(mutant):
            mutant.age = 0
            mutant.invalidate_representation()
        return mutant
    
    @abstractmethod
    def _generate_mutation(self, entity: GeneticEntity) -> bool:
        """就地突變複本，回傳是否有任何基因改變"""


class UniformBitMutationOperator(MutationOperator):
    """均勻位元突變：每個位元以 mutation_rate 的機率翻轉"""
    
    required_entity_type = BinaryStringEntity
    
    def _generate_mutation(self, entity: GeneticEntity) -> bool:
        mutated = False
        for position, bit in enumerate(entity.values):
            if self.random_source.get_double() < self.mutation_rate:
                entity.values[position] = 1 - bit
                mutated = True
        return mutated


class UniformIntegerMutationOperator(MutationOperator):
    """均勻整數突變
    
    每個基因以 mutation_rate 的機率重新抽取一個不同的值（範圍內）。
    """
    
    required_entity_type = IntegerListEntity
    
    def _generate_mutation(self, entity: GeneticEntity) -> bool:
        if entity.min_element_value == entity.max_element_value:
            return False
        mutated = False
        for position, value in enumerate(entity.values):
            if self.random_source.get_double() < self.mutation_rate:
                new_value = value
                while new_value == value:
                    new_value = self.random_source.get_int(
                        entity.min_element_value, entity.max_element_value + 1
                    )
                entity.values[position] = new_value
                mutated = True
        return mutated


class InversionOperator(MutationOperator):
    """反轉突變：以 mutation_rate 的機率交換兩個隨機位置的基因"""
    
    required_entity_type = ListEntity
    
    def _generate_mutation(self, entity: GeneticEntity) -> bool:
        if len(entity.values) < 2:
            return False
        if self.random_source.get_double() >= self.mutation_rate:
            return False
        first, second = self.random_source.sample(range(len(entity.values)), 2)
        entity.values[first], entity.values[second] = (
            entity.values[second],
            entity.values[first],
        )
        return True
