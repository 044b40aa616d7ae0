"""
執行控制器 (Execution Controller)

在背景執行緒中驅動世代迴圈，提供 start / step / pause / stop 操作並維護執行狀態機：

    IDLE ──start──> RUNNING ──pause──> PAUSE_PENDING ──(世代邊界)──> PAUSED
    RUNNING / PAUSED ──stop──> IDLE_PENDING ──(世代邊界)──> IDLE（PAUSED 時立即生效）
    RUNNING ──(終止器完成或觀察者取消)──> IDLE

世代邊界是唯一的暫停點，進行中的世代一定會執行完畢。
"""

import logging
import threading
from enum import Enum
from typing import Iterable, Optional

from .generation import GeneticAlgorithm, StepResult
from .exceptions import InvalidStateTransitionError

logger = logging.getLogger(__name__)


class ExecutionState(Enum):
    """執行狀態

    Attributes:
        IDLE: 閒置，下一次 start / step 為全新執行
        RUNNING: 背景迴圈執行中
        PAUSED: 已暫停，start 會在同一環境上繼續
        PAUSE_PENDING: 已要求暫停，等待目前世代結束
        IDLE_PENDING: 已要求停止，等待目前世代結束
    """
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    PAUSE_PENDING = "pause_pending"
    IDLE_PENDING = "idle_pending"


class ExecutionContext:
    """執行上下文

    外部呼叫端觀察執行狀態的唯一同步點。狀態的讀寫都在鎖內完成，
    進入 IDLE 時清除先前記錄的例外。

    Attributes:
        algorithm: 被控制的演算法
        algorithm_exception: 最近一次執行失敗的例外（成功或重新開始後為 None）
    """

    def __init__(self, algorithm: GeneticAlgorithm):
        if algorithm is None:
            raise ValueError("Algorithm cannot be None")
        self.algorithm = algorithm
        self.algorithm_exception: Optional[BaseException] = None
        self._state = ExecutionState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> ExecutionState:
        with self._lock:
            return self._state

    def set_state(self, state: ExecutionState) -> None:
        with self._lock:
            self._set_state_locked(state)

    def transition(
        self,
        expected: Iterable[ExecutionState],
        state: ExecutionState,
    ) -> bool:
        """若目前狀態屬於 expected 則切換為 state（比較並設定）

        Returns:
            是否完成切換
        """
        with self._lock:
            if self._state not in tuple(expected):
                return False
            self._set_state_locked(state)
            return True

    def record_failure(self, exception: BaseException) -> None:
        """回到 IDLE 並記錄例外"""
        with self._lock:
            self._set_state_locked(ExecutionState.IDLE)
            self.algorithm_exception = exception

    def _set_state_locked(self, state: ExecutionState) -> None:
        if state != self._state:
            logger.debug(f"Execution state {self._state.value} -> {state.value}")
        self._state = state
        if state == ExecutionState.IDLE:
            self.algorithm_exception = None


class ExecutionController:
    """執行控制器

    一次執行只會有一個世代迴圈執行緒。pause() 與 stop() 是協作式請求，
    可在任何時間安全呼叫且不會拋出例外；其他不合法的操作拋出
    InvalidStateTransitionError。

    Attributes:
        context: 執行上下文
    """

    def __init__(self, context: ExecutionContext):
        if context is None:
            raise ValueError("Execution context cannot be None")
        self.context = context
        self._control_lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self._settled = threading.Event()
        self._settled.set()
        self._loop_exception: Optional[BaseException] = None

    @property
    def algorithm(self) -> GeneticAlgorithm:
        return self.context.algorithm

    @property
    def state(self) -> ExecutionState:
        return self.context.state

    # -------------------------------------------------------------------------
    # 可用性
    # -------------------------------------------------------------------------

    def can_start(self) -> bool:
        return self.state in (ExecutionState.IDLE, ExecutionState.PAUSED)

    def can_step(self) -> bool:
        return self.state in (ExecutionState.IDLE, ExecutionState.PAUSED)

    def can_pause(self) -> bool:
        return self.state == ExecutionState.RUNNING

    def can_stop(self) -> bool:
        return self.state in (
            ExecutionState.RUNNING,
            ExecutionState.PAUSED,
            ExecutionState.PAUSE_PENDING,
        )

    # -------------------------------------------------------------------------
    # 操作
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """開始或繼續執行（非阻塞）

        IDLE 時先在呼叫端同步初始化（失敗時狀態維持 IDLE、例外被記錄並重新拋出），
        PAUSED 時在同一環境上繼續，不重新初始化。

        Raises:
            InvalidStateTransitionError: 若目前狀態不是 IDLE 或 PAUSED
            ConfigurationError: 若初始化驗證失敗
        """
        with self._control_lock:
            state = self.state
            if state not in (ExecutionState.IDLE, ExecutionState.PAUSED):
                raise InvalidStateTransitionError("start", state.value)

            self._wait_for_previous_loop()
            if state == ExecutionState.IDLE:
                self._initialize()

            self._loop_exception = None
            self._settled.clear()
            self.context.set_state(ExecutionState.RUNNING)
            self._thread = threading.Thread(
                target=self._run_loop,
                name="evolab-generation-loop",
                daemon=True,
            )
            self._thread.start()
            logger.info(f"Run started at generation {self.algorithm.current_generation}")

    def join(self, timeout: Optional[float] = None) -> bool:
        """等待背景迴圈停下（PAUSED 或 IDLE）

        Args:
            timeout: 最長等待秒數，None 表示無限等待

        Returns:
            迴圈是否已停下

        Raises:
            Exception: 迴圈中發生的例外（同時記錄在 context.algorithm_exception）
        """
        if not self._settled.wait(timeout):
            return False
        exception, self._loop_exception = self._loop_exception, None
        if exception is not None:
            raise exception
        return True

    def run(self) -> None:
        """開始執行並等待迴圈停下"""
        self.start()
        self.join()

    def step(self) -> StepResult:
        """同步執行單一世代

        只能在 IDLE 或 PAUSED 時呼叫；世代執行期間狀態為 RUNNING，
        完成後進入 PAUSED，若該世代使終止器回報完成（或被觀察者取消）則進入 IDLE。
        執行期間收到的 stop() 使其結束於 IDLE。

        Raises:
            InvalidStateTransitionError: 若目前狀態不是 IDLE 或 PAUSED
        """
        with self._control_lock:
            state = self.state
            if state not in (ExecutionState.IDLE, ExecutionState.PAUSED):
                raise InvalidStateTransitionError("step", state.value)

            self._wait_for_previous_loop()
            if state == ExecutionState.IDLE:
                self._initialize()

            self.context.set_state(ExecutionState.RUNNING)
            try:
                result = self.algorithm.step()
            except Exception as e:
                self._record_failure(e)
                raise

            if result != StepResult.CONTINUE:
                self.context.set_state(ExecutionState.IDLE)
            elif not self.context.transition(
                (ExecutionState.RUNNING, ExecutionState.PAUSE_PENDING),
                ExecutionState.PAUSED,
            ):
                self._settle_pending()
            return result

    def pause(self) -> None:
        """要求在下一個世代邊界暫停（僅 RUNNING 時有效）"""
        if self.context.transition((ExecutionState.RUNNING,), ExecutionState.PAUSE_PENDING):
            logger.info("Pause requested")
        else:
            logger.warning(f"Pause ignored in state {self.state.value}")

    def stop(self) -> None:
        """要求停止；PAUSED 時立即回到 IDLE，執行中則在下一個世代邊界生效"""
        if self.context.transition((ExecutionState.PAUSED,), ExecutionState.IDLE):
            logger.info("Stopped while paused")
        elif self.context.transition(
            (ExecutionState.RUNNING, ExecutionState.PAUSE_PENDING),
            ExecutionState.IDLE_PENDING,
        ):
            logger.info("Stop requested")
        else:
            logger.warning(f"Stop ignored in state {self.state.value}")

    # -------------------------------------------------------------------------
    # 內部
    # -------------------------------------------------------------------------

    def _initialize(self) -> None:
        try:
            self.algorithm.initialize()
        except Exception as e:
            self._record_failure(e)
            raise

    def _record_failure(self, exception: Exception) -> None:
        logger.error(f"Algorithm failed: {exception}")
        self.context.record_failure(exception)

    def _wait_for_previous_loop(self) -> None:
        # 狀態已停下時，舊執行緒只剩收尾
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _settle_pending(self) -> bool:
        """在世代邊界處理暫停或停止請求，回傳迴圈是否應結束"""
        if self.context.transition((ExecutionState.PAUSE_PENDING,), ExecutionState.PAUSED):
            logger.info(f"Paused at generation {self.algorithm.current_generation}")
            return True
        if self.context.transition((ExecutionState.IDLE_PENDING,), ExecutionState.IDLE):
            logger.info(f"Stopped at generation {self.algorithm.current_generation}")
            return True
        return False

    def _run_loop(self) -> None:
        try:
            while not self._settle_pending():
                result = self.algorithm.step()
                if result != StepResult.CONTINUE:
                    self.context.set_state(ExecutionState.IDLE)
                    logger.info(
                        f"Run finished ({result.value}) at generation "
                        f"{self.algorithm.current_generation}"
                    )
                    break
        except Exception as e:
            self._loop_exception = e
            self._record_failure(e)
        finally:
            self._settled.set()
