"""
演化核心資料模型 (Evolution Core Models)

定義演化引擎的核心資料結構，包含列舉、族群替換值、基因組件基底與個體契約。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional
import math

from .exceptions import InvalidReplacementValueError
from .randomness import RandomSource


class FitnessEvaluationMode(Enum):
    """適應度評估方向
    
    Attributes:
        MAXIMIZE: 數值越大越好
        MINIMIZE: 數值越小越好
    """
    MAXIMIZE = "maximize"
    MINIMIZE = "minimize"


class FitnessType(Enum):
    """適應度種類
    
    Attributes:
        RAW: 原始適應度（評估器直接產生）
        SCALED: 縮放後適應度（經縮放策略轉換）
    """
    RAW = "raw"
    SCALED = "scaled"


class ReplacementValueKind(Enum):
    """族群替換值種類"""
    PERCENTAGE = "percentage"
    FIXED_COUNT = "fixed_count"


def round_half_away_from_zero(value: float) -> int:
    """四捨五入（遠離零）
    
    Python 內建 round() 使用銀行家捨入，此處固定採用遠離零的捨入，
    使 2.5 -> 3、-2.5 -> -3。
    
    Args:
        value: 要捨入的數值
        
    Returns:
        捨入後的整數
    """
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


@dataclass(frozen=True)
class PopulationReplacementValue:
    """族群替換值
    
    穩態演算法每一代要產生的子代數量，可為固定數量或族群大小的百分比。
    
    Attributes:
        value: 數值（百分比時介於 0-100）
        kind: 數值種類
    """
    value: int = 10
    kind: ReplacementValueKind = ReplacementValueKind.PERCENTAGE
    
    def __post_init__(self):
        self.validate()
    
    def validate(self) -> None:
        """驗證替換值
        
        Raises:
            InvalidReplacementValueError: 若數值為負，或百分比超過 100
        """
        if self.value < 0:
            raise InvalidReplacementValueError(self.value, self.kind.value)
        if self.kind == ReplacementValueKind.PERCENTAGE and self.value > 100:
            raise InvalidReplacementValueError(self.value, self.kind.value)
    
    def replacement_count(self, population_size: int) -> int:
        """計算替換數量
        
        Args:
            population_size: 目前族群大小
            
        Returns:
            要加入族群的子代數量
        """
        if self.kind == ReplacementValueKind.PERCENTAGE:
            return round_half_away_from_zero(population_size * self.value / 100)
        return self.value
    
    @classmethod
    def parse(cls, text: str) -> "PopulationReplacementValue":
        """從字串建立，例如 "10%" 或 "10"
        
        Raises:
            ValueError: 若字串無法解析
        """
        stripped = text.strip()
        if stripped.endswith("%"):
            number = stripped[:-1].strip()
            kind = ReplacementValueKind.PERCENTAGE
        else:
            number = stripped
            kind = ReplacementValueKind.FIXED_COUNT
        try:
            value = int(number)
        except ValueError:
            raise ValueError(
                f"Replacement value must be an integer or a percentage, got {text!r}"
            ) from None
        return cls(value=value, kind=kind)
    
    def __str__(self) -> str:
        if self.kind == ReplacementValueKind.PERCENTAGE:
            return f"{self.value}%"
        return str(self.value)


class GeneticComponent:
    """基因組件基底
    
    所有可插拔組件（算子、策略、終止器、指標）的共同基底。
    組件在演算法初始化時透過 attach() 取得演算法參考與共用的隨機來源，
    並透過 validate() 在任何環境變動前檢查設定。
    
    Attributes:
        algorithm: 所屬演算法，尚未綁定時為 None
    """
    
    def __init__(self, random_source: Optional[RandomSource] = None):
        self.algorithm = None
        self._random_source = random_source
    
    @property
    def random_source(self) -> RandomSource:
        """隨機來源；未注入也未綁定演算法時使用自己的產生器"""
        if self._random_source is None:
            self._random_source = RandomSource()
        return self._random_source
    
    @random_source.setter
    def random_source(self, value: RandomSource) -> None:
        self._random_source = value
    
    def attach(self, algorithm: Any) -> None:
        """綁定所屬演算法
        
        未明確注入隨機來源的組件改用演算法的隨機來源。
        子類別可覆寫以訂閱生命週期通知，但必須呼叫 super().attach()。
        """
        self.algorithm = algorithm
        if self._random_source is None:
            self._random_source = algorithm.random_source
    
    def validate(self) -> None:
        """驗證組件設定，無效時拋出 ConfigurationError"""


class GeneticEntity(ABC):
    """個體契約
    
    演化中的候選解。引擎僅依賴此契約：可比較、可複製，
    並帶有原始適應度、縮放後適應度、年齡與快取的文字表示。
    
    Attributes:
        age: 個體存活的世代數
        scaled_fitness: 縮放後適應度
    """
    
    def __init__(self):
        self.age = 0
        self.scaled_fitness = 0.0
        self._raw_fitness = 0.0
        self._representation: Optional[str] = None
    
    @property
    def raw_fitness(self) -> float:
        """原始適應度（由族群的適應度評估寫入）"""
        return self._raw_fitness
    
    def set_raw_fitness(self, value: float) -> None:
        """寫入原始適應度，縮放後適應度同步重設為相同數值"""
        self._raw_fitness = float(value)
        self.scaled_fitness = float(value)
    
    def get_fitness_value(self, fitness_type: FitnessType) -> float:
        """依種類取得適應度"""
        if fitness_type == FitnessType.RAW:
            return self._raw_fitness
        return self.scaled_fitness
    
    @property
    def representation(self) -> str:
        """文字表示（延遲計算並快取）"""
        if self._representation is None:
            self._representation = self._build_representation()
        return self._representation
    
    def invalidate_representation(self) -> None:
        """內容變動後呼叫以清除快取的文字表示"""
        self._representation = None
    
    def validate(self) -> None:
        """驗證個體設定，無效時拋出 ConfigurationError"""
    
    @abstractmethod
    def _build_representation(self) -> str:
        """建立文字表示"""
    
    @abstractmethod
    def create_new(self) -> "GeneticEntity":
        """建立相同設定、尚未初始化的新個體"""
    
    @abstractmethod
    def _randomize(self, random_source) -> None:
        """以隨機內容填充個體"""
    
    @abstractmethod
    def compare_to(self, other: "GeneticEntity") -> int:
        """比較兩個個體的內容
        
        Returns:
            負數、零或正數，分別表示小於、等於或大於 other
        """
    
    def initialize(self, random_source) -> None:
        """重設狀態並隨機化內容
        
        Args:
            random_source: 注入的隨機來源
        """
        self.age = 0
        self._raw_fitness = 0.0
        self.scaled_fitness = 0.0
        self._randomize(random_source)
        self.invalidate_representation()
    
    def copy_to(self, entity: "GeneticEntity") -> None:
        """將狀態複製到另一個個體，子類別擴充以複製內容"""
        entity.age = self.age
        entity._raw_fitness = self._raw_fitness
        entity.scaled_fitness = self.scaled_fitness
        entity._representation = self._representation
    
    def clone(self) -> "GeneticEntity":
        """建立獨立的複本（包含年齡與兩種適應度）"""
        entity = self.create_new()
        self.copy_to(entity)
        return entity
    
    def __str__(self) -> str:
        return self.representation


def sort_by_fitness(
    entities: Iterable[GeneticEntity],
    fitness_type: FitnessType,
    evaluation_mode: FitnessEvaluationMode,
) -> List[GeneticEntity]:
    """依適應度由差到好排序
    
    最大化時為遞增排序，最小化時為遞減排序；最後一個元素永遠是最好的個體。
    排序是穩定的，相同適應度的個體保持原有順序。
    
    Args:
        entities: 要排序的個體
        fitness_type: 排序依據（原始或縮放後）
        evaluation_mode: 評估方向
        
    Returns:
        由差到好排列的新列表
    """
    reverse = evaluation_mode == FitnessEvaluationMode.MINIMIZE
    return sorted(
        entities,
        key=lambda entity: entity.get_fitness_value(fitness_type),
        reverse=reverse,
    )


class AlgorithmEvent(Enum):
    """演算法生命週期通知
    
    Attributes:
        ALGORITHM_STARTING: 全新執行的第一代之前（僅一次）
        GENERATION_CREATED: 替換完成後、新世代評估適應度之前
        FITNESS_EVALUATED: 世代評估完成後，回呼回傳真值表示要求提前終止
        ALGORITHM_COMPLETED: 終止器回報完成時（僅一次）
    """
    ALGORITHM_STARTING = "algorithm_starting"
    GENERATION_CREATED = "generation_created"
    FITNESS_EVALUATED = "fitness_evaluated"
    ALGORITHM_COMPLETED = "algorithm_completed"
