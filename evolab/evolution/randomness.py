"""
隨機來源 (Random Source)

可注入的隨機數來源，讓每個組件共用同一個可設定種子的產生器，
使演化結果可重現、可測試。
"""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


class RandomSource:
    """隨機來源
    
    包裝 random.Random，提供演化組件需要的取樣方法。
    
    Attributes:
        seed: 建立時使用的種子（None 表示系統熵）
    """
    
    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)
    
    def get_int(self, lower: int, upper: Optional[int] = None) -> int:
        """取得半開區間內的整數
        
        get_int(n) 回傳 [0, n)，get_int(a, b) 回傳 [a, b)。
        
        Raises:
            ValueError: 若區間為空
        """
        if upper is None:
            lower, upper = 0, lower
        if upper <= lower:
            raise ValueError(f"Empty integer range [{lower}, {upper})")
        return self._random.randrange(lower, upper)
    
    def get_double(self) -> float:
        """取得 [0.0, 1.0) 的浮點數"""
        return self._random.random()
    
    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return self._random.choice(items)
    
    def sample(self, items: Sequence[T], count: int) -> List[T]:
        return self._random.sample(list(items), count)
    
    def shuffle(self, items: List[T]) -> None:
        self._random.shuffle(items)
