"""
列表個體 (List Entities)

以列表表示的個體，支援固定長度或可變長度，並提供二進位字串與整數列表兩種實作。
"""

from abc import abstractmethod
from typing import List, Optional

from .models import GeneticEntity
from .exceptions import validate_starting_length


class ListEntity(GeneticEntity):
    """列表個體基底
    
    Attributes:
        minimum_starting_length: 初始長度下限
        maximum_starting_length: 初始長度上限
        is_fixed_size: 長度是否固定（固定時使用 maximum_starting_length）
        values: 基因值列表
    """
    
    def __init__(
        self,
        minimum_starting_length: int = 5,
        maximum_starting_length: int = 20,
        is_fixed_size: bool = False,
        values: Optional[List[int]] = None,
    ):
        """初始化列表個體
        
        Args:
            minimum_starting_length: 初始長度下限，預設 5
            maximum_starting_length: 初始長度上限，預設 20
            is_fixed_size: 長度是否固定
            values: 初始基因值，預設為空列表（尚未初始化）
            
        Raises:
            InvalidStartingLengthError: 若長度範圍無效
        """
        super().__init__()
        validate_starting_length(minimum_starting_length, maximum_starting_length)
        self.minimum_starting_length = minimum_starting_length
        self.maximum_starting_length = maximum_starting_length
        self.is_fixed_size = is_fixed_size
        self.values: List[int] = list(values) if values is not None else []
    
    def __len__(self) -> int:
        return len(self.values)
    
    def __getitem__(self, index: int) -> int:
        return self.values[index]
    
    def __setitem__(self, index: int, value: int) -> None:
        self.values[index] = value
        self.invalidate_representation()
    
    def validate(self) -> None:
        validate_starting_length(
            self.minimum_starting_length, self.maximum_starting_length
        )
    
    def _starting_length(self, random_source) -> int:
        if self.is_fixed_size:
            return self.maximum_starting_length
        return random_source.get_int(
            self.minimum_starting_length, self.maximum_starting_length + 1
        )
    
    def _randomize(self, random_source) -> None:
        length = self._starting_length(random_source)
        self.values = [self._random_value(random_source) for _ in range(length)]
    
    @abstractmethod
    def _random_value(self, random_source) -> int:
        """產生單一隨機基因值"""
    
    def _build_representation(self) -> str:
        return ", ".join(str(value) for value in self.values)
    
    def copy_to(self, entity: GeneticEntity) -> None:
        super().copy_to(entity)
        entity.values = list(self.values)
    
    def compare_to(self, other: GeneticEntity) -> int:
        if not isinstance(other, ListEntity):
            raise TypeError(
                f"Cannot compare {type(self).__name__} with {type(other).__name__}"
            )
        if self.values == other.values:
            return 0
        return -1 if self.values < other.values else 1


class BinaryStringEntity(ListEntity):
    """二進位字串個體，每個基因為 0 或 1"""
    
    def create_new(self) -> "BinaryStringEntity":
        return BinaryStringEntity(
            minimum_starting_length=self.minimum_starting_length,
            maximum_starting_length=self.maximum_starting_length,
            is_fixed_size=self.is_fixed_size,
        )
    
    def _random_value(self, random_source) -> int:
        return random_source.get_int(2)
    
    def _build_representation(self) -> str:
        return "".join(str(bit) for bit in self.values)


class IntegerListEntity(ListEntity):
    """整數列表個體
    
    Attributes:
        min_element_value: 基因值下限（含）
        max_element_value: 基因值上限（含）
    """
    
    def __init__(
        self,
        minimum_starting_length: int = 5,
        maximum_starting_length: int = 20,
        is_fixed_size: bool = False,
        min_element_value: int = 0,
        max_element_value: int = 10,
        values: Optional[List[int]] = None,
    ):
        if min_element_value > max_element_value:
            raise ValueError(
                f"min_element_value ({min_element_value}) must not exceed "
                f"max_element_value ({max_element_value})"
            )
        super().__init__(
            minimum_starting_length=minimum_starting_length,
            maximum_starting_length=maximum_starting_length,
            is_fixed_size=is_fixed_size,
            values=values,
        )
        self.min_element_value = min_element_value
        self.max_element_value = max_element_value
    
    def create_new(self) -> "IntegerListEntity":
        return IntegerListEntity(
            minimum_starting_length=self.minimum_starting_length,
            maximum_starting_length=self.maximum_starting_length,
            is_fixed_size=self.is_fixed_size,
            min_element_value=self.min_element_value,
            max_element_value=self.max_element_value,
        )
    
    def _random_value(self, random_source) -> int:
        return random_source.get_int(self.min_element_value, self.max_element_value + 1)
