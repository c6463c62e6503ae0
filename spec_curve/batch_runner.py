"""
Batch Runner

명세 격자의 모든 명세에 대해 모델 구축 -> 추정 -> 결과 추출을 실행합니다.

명세 상태: PENDING -> RUNNING -> {SUCCEEDED, FAILED}
- 재시도 없음. 실패한 명세는 오류 메시지와 함께 기록되고 결과 컬럼은 NaN으로 남습니다.
- ConfigurationError, FitError, ExtractionError는 명세 단위로 격리됩니다.
- 그 밖의 예외는 배치 전체를 중단합니다.
- 결과 테이블은 명시적으로 전달/반환되며, 행 순서는 실행 순서와 무관하게 격자 순서입니다.
"""

from concurrent.futures import ProcessPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import logging
import signal
import threading
import time

import numpy as np
import pandas as pd
from tqdm import tqdm

from .config import SpecCurveConfig, create_default_config
from .exceptions import CONTAINED_ERRORS, ConfigurationError, SolverTimeoutError
from .fit_runner import FitRunner
from .model_builder import ModelBuilder
from .result_extractor import OUTPUT_COLUMNS, ResultExtractor
from .specification_grid import SpecStatus, Specification, SpecificationGrid, create_results_table

logger = logging.getLogger(__name__)


@dataclass
class SpecOutcome:
    """명세 하나의 실행 결과"""

    index: int
    status: SpecStatus
    row: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    elapsed: float = 0.0


@dataclass
class BatchSummary:
    """배치 실행 요약"""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    elapsed: float = 0.0

    @property
    def attempted(self) -> int:
        return self.succeeded + self.failed

    def as_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'attempted': self.attempted,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'skipped': self.skipped,
            'elapsed_seconds': round(self.elapsed, 2)
        }


@dataclass
class BatchResult:
    """배치 실행 결과 (결과 테이블 + 요약)"""

    table: pd.DataFrame
    summary: BatchSummary
    outcomes: List[SpecOutcome] = field(default_factory=list)

    @property
    def failures(self) -> pd.DataFrame:
        return self.table[self.table['status'] == SpecStatus.FAILED.value]


@contextmanager
def time_limit(seconds: Optional[float]):
    """
    명세별 제한시간 (SIGALRM 사용)

    메인 스레드가 아니거나 SIGALRM이 없는 플랫폼에서는 제한시간을 적용하지 않습니다.
    """
    if seconds is None:
        yield
        return

    if not hasattr(signal, 'SIGALRM') or threading.current_thread() is not threading.main_thread():
        logger.debug("이 환경에서는 명세별 제한시간을 적용할 수 없습니다.")
        yield
        return

    def _handle_alarm(signum, frame):
        raise SolverTimeoutError(f"제한시간 {seconds}초 초과")

    previous = signal.signal(signal.SIGALRM, _handle_alarm)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


def run_specification(spec: Specification,
                      fit_runner: FitRunner,
                      builder: ModelBuilder,
                      extractor: ResultExtractor,
                      timeout: Optional[float] = None,
                      random_seed: Optional[int] = None) -> SpecOutcome:
    """
    명세 하나 실행 (구축 -> 추정 -> 추출)

    Args:
        spec (Specification): 명세
        fit_runner (FitRunner): 추정 실행기
        builder (ModelBuilder): 모델 구축기
        extractor (ResultExtractor): 결과 추출기
        timeout (Optional[float]): 제한시간 (초)
        random_seed (Optional[int]): 기준 시드 (명세 번호를 더해 사용)

    Returns:
        SpecOutcome: 실행 결과
    """
    start_time = time.time()
    if random_seed is not None:
        np.random.seed(random_seed + spec.index)

    try:
        with time_limit(timeout):
            definition = builder.build(spec.outcome, spec.predictor, spec.wave_count, spec.controls)
            fitted = fit_runner.run(definition, spec.wave_count, spec.imputation,
                                    spec.estimator, spec.gender)
            row = extractor.extract(fitted)
    except CONTAINED_ERRORS as e:
        return SpecOutcome(spec.index, SpecStatus.FAILED,
                           error=f"{type(e).__name__}: {e}",
                           elapsed=time.time() - start_time)

    return SpecOutcome(spec.index, SpecStatus.SUCCEEDED, row=row, elapsed=time.time() - start_time)


# 워커 프로세스별 실행 컨텍스트 (initializer에서 한 번 설정)
_worker_context: Dict[str, Any] = {}


def _init_worker(fit_runner: FitRunner, builder: ModelBuilder, extractor: ResultExtractor,
                 timeout: Optional[float], random_seed: Optional[int]):
    _worker_context.update(
        fit_runner=fit_runner,
        builder=builder,
        extractor=extractor,
        timeout=timeout,
        random_seed=random_seed
    )


def _specification_worker(spec: Specification) -> SpecOutcome:
    """병렬 처리용 워커 함수"""
    return run_specification(spec, **_worker_context)


class BatchRunner:
    """명세곡선 배치 실행 클래스"""

    def __init__(self,
                 fit_runner: FitRunner,
                 builder: Optional[ModelBuilder] = None,
                 extractor: Optional[ResultExtractor] = None,
                 config: Optional[SpecCurveConfig] = None):
        """
        초기화

        Args:
            fit_runner (FitRunner): 추정 실행기
            builder (Optional[ModelBuilder]): 모델 구축기
            extractor (Optional[ResultExtractor]): 결과 추출기
            config (Optional[SpecCurveConfig]): 배치 설정 (n_jobs, timeout, progress_every)
        """
        self.config = config or getattr(fit_runner, 'config', None) or create_default_config()
        self.fit_runner = fit_runner
        self.builder = builder or ModelBuilder(self.config)
        self.extractor = extractor or ResultExtractor()

        logger.info(f"BatchRunner 초기화 완료: n_jobs={self.config.n_jobs}, "
                    f"timeout={self.config.timeout}")

    def run(self,
            grid: Iterable[Specification],
            results: Optional[pd.DataFrame] = None) -> BatchResult:
        """
        배치 실행

        Args:
            grid (Iterable[Specification]): 명세 목록 (격자 순서)
            results (Optional[pd.DataFrame]): 이전 결과 테이블 (성공한 행은 건너뜀)

        Returns:
            BatchResult: 결과 테이블과 요약
        """
        specifications = list(grid)
        table = self._prepare_table(specifications, results)

        done = set(table.index[table['status'] == SpecStatus.SUCCEEDED.value])
        pending = [spec for spec in specifications if spec.index not in done]

        summary = BatchSummary(total=len(specifications), skipped=len(specifications) - len(pending))
        if summary.skipped:
            logger.info(f"이전 실행에서 성공한 명세 {summary.skipped}개를 건너뜁니다.")

        logger.info(f"배치 실행 시작: {len(pending)}개 명세")
        start_time = time.time()

        outcomes = []
        for outcome in self._execute(pending):
            self._record(table, outcome, summary)
            outcomes.append(outcome)

            if summary.attempted % self.config.progress_every == 0:
                logger.info(f"진행: {summary.attempted}/{len(pending)} "
                            f"(성공 {summary.succeeded}, 실패 {summary.failed})")

        summary.elapsed = time.time() - start_time
        logger.info(f"배치 실행 완료: 시도 {summary.attempted}, 성공 {summary.succeeded}, "
                    f"실패 {summary.failed}, 건너뜀 {summary.skipped} ({summary.elapsed:.1f}초)")

        return BatchResult(table=table, summary=summary, outcomes=outcomes)

    def _prepare_table(self, specifications: List[Specification],
                       results: Optional[pd.DataFrame]) -> pd.DataFrame:
        """결과 테이블 생성 또는 이전 결과 검증"""
        if results is None:
            return create_results_table(specifications)

        expected_ids = [spec.index for spec in specifications]
        if list(results['spec_id']) != expected_ids:
            raise ConfigurationError("이전 결과 테이블의 명세 순서가 현재 격자와 다릅니다.")

        table = results.copy()
        table.index = expected_ids
        for column in OUTPUT_COLUMNS:
            if column not in table.columns:
                table[column] = np.nan
        return table

    def _execute(self, pending: List[Specification]):
        """명세 실행 (순차 또는 병렬), 격자 순서로 결과 반환"""
        timeout = self.config.timeout
        seed = self.config.random_seed
        show_progress = self.config.show_progress

        if self.config.n_jobs > 1 and len(pending) > 1:
            initargs = (self.fit_runner, self.builder, self.extractor, timeout, seed)
            with ProcessPoolExecutor(max_workers=self.config.n_jobs,
                                     initializer=_init_worker,
                                     initargs=initargs) as executor:
                results = executor.map(_specification_worker, pending)
                if show_progress:
                    results = tqdm(results, total=len(pending), desc="Specifications")
                for outcome in results:
                    yield outcome
        else:
            iterator = tqdm(pending, desc="Specifications") if show_progress else pending
            for spec in iterator:
                logger.debug(f"실행 중: {spec.describe()}")
                yield run_specification(spec, self.fit_runner, self.builder, self.extractor,
                                        timeout, seed)

    def _record(self, table: pd.DataFrame, outcome: SpecOutcome, summary: BatchSummary):
        """결과 행 기록 (성공 시 전체 출력 컬럼을 한 번에 기록, 실패 시 NaN 유지)"""
        if outcome.status == SpecStatus.SUCCEEDED:
            values = [outcome.row.get(column, np.nan) for column in OUTPUT_COLUMNS]
            table.loc[outcome.index, OUTPUT_COLUMNS] = values
            table.loc[outcome.index, 'status'] = SpecStatus.SUCCEEDED.value
            table.loc[outcome.index, 'error'] = None
            summary.succeeded += 1
        else:
            table.loc[outcome.index, OUTPUT_COLUMNS] = np.nan
            table.loc[outcome.index, 'status'] = SpecStatus.FAILED.value
            table.loc[outcome.index, 'error'] = outcome.error
            summary.failed += 1
            logger.warning(f"명세 #{outcome.index} 실패: {outcome.error}")


def run_specification_curve(fit_runner: FitRunner,
                            config: Optional[SpecCurveConfig] = None,
                            results: Optional[pd.DataFrame] = None) -> BatchResult:
    """
    명세곡선분석 실행 편의 함수

    Args:
        fit_runner (FitRunner): 추정 실행기
        config (Optional[SpecCurveConfig]): 분석 설정
        results (Optional[pd.DataFrame]): 이어서 실행할 이전 결과 테이블

    Returns:
        BatchResult: 결과 테이블과 요약
    """
    config = config or fit_runner.config
    grid = SpecificationGrid(config).build()
    return BatchRunner(fit_runner, config=config).run(grid, results)
