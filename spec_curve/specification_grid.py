"""
Specification Grid

분석 결정 축들의 데카르트 곱으로 명세 목록을 생성합니다.
통제변수 축은 곱을 취하기 전에 (없음, 단일 통제변수 각각, 전체) 조합으로 제한됩니다.
2^k 전체 부분집합은 사용하지 않습니다.
"""

from dataclasses import dataclass
from enum import Enum
from itertools import product
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from .config import SpecCurveConfig, create_default_config
from .result_extractor import OUTPUT_COLUMNS

logger = logging.getLogger(__name__)

AXIS_COLUMNS = [
    'spec_id',
    'outcome',
    'predictor',
    'wave_count',
    'controls',
    'n_controls',
    'estimator',
    'imputation',
    'gender'
]

STATUS_COLUMNS = ['status', 'error']

NO_CONTROLS = 'none'


class SpecStatus(Enum):
    """명세 실행 상태"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def control_set_variants(controls: Sequence[str]) -> List[Tuple[str, ...]]:
    """
    통제변수 조합 생성: 없음, 단일 통제변수 각각, 전체 통제변수

    Args:
        controls (Sequence[str]): 통제변수 목록

    Returns:
        List[Tuple[str, ...]]: 순서가 고정된 통제변수 조합
    """
    variants: List[Tuple[str, ...]] = [()]
    for control in controls:
        variants.append((control,))
    full_set = tuple(controls)
    if full_set not in variants:
        variants.append(full_set)
    return variants


def format_controls(controls: Sequence[str]) -> str:
    return "+".join(controls) if controls else NO_CONTROLS


def parse_controls(value: Any) -> Tuple[str, ...]:
    """결과 테이블의 controls 컬럼 값을 튜플로 변환"""
    if value is None or (isinstance(value, float) and np.isnan(value)) or value == NO_CONTROLS:
        return ()
    return tuple(str(value).split("+"))


@dataclass(frozen=True)
class Specification:
    """명세 하나 (축별 값 하나씩)"""

    index: int
    outcome: str
    predictor: str
    wave_count: int
    controls: Tuple[str, ...]
    estimator: str
    imputation: str
    gender: str

    def axis_values(self) -> Dict[str, Any]:
        return {
            'spec_id': self.index,
            'outcome': self.outcome,
            'predictor': self.predictor,
            'wave_count': self.wave_count,
            'controls': format_controls(self.controls),
            'n_controls': len(self.controls),
            'estimator': self.estimator,
            'imputation': self.imputation,
            'gender': self.gender
        }

    def describe(self) -> str:
        return (f"#{self.index} {self.outcome}~{self.predictor} W={self.wave_count} "
                f"controls={format_controls(self.controls)} {self.estimator}/"
                f"{self.imputation}/{self.gender}")


class SpecificationGrid:
    """명세 격자 생성 클래스"""

    def __init__(self, config: Optional[SpecCurveConfig] = None):
        """
        초기화

        Args:
            config (Optional[SpecCurveConfig]): 축 수준을 담은 설정
        """
        self.config = config or create_default_config()
        self._specifications: Optional[List[Specification]] = None

    @property
    def control_sets(self) -> List[Tuple[str, ...]]:
        return control_set_variants(self.config.controls)

    def build(self) -> List[Specification]:
        """
        명세 목록 생성 (결정적 순서)

        순서: 결과변수 -> 웨이브 수 -> 통제변수 조합 -> 추정방법 -> 대체 여부 -> 성별

        Returns:
            List[Specification]: 명세 목록
        """
        if self._specifications is not None:
            return self._specifications

        axes = product(
            self.config.outcomes,
            self.config.wave_counts,
            self.control_sets,
            self.config.estimators,
            self.config.imputations,
            self.config.genders
        )

        specifications = [
            Specification(
                index=index,
                outcome=outcome,
                predictor=self.config.predictor,
                wave_count=wave_count,
                controls=controls,
                estimator=estimator,
                imputation=imputation,
                gender=gender
            )
            for index, (outcome, wave_count, controls, estimator, imputation, gender) in enumerate(axes)
        ]

        logger.info(f"명세 격자 생성 완료: {len(specifications)}개 명세 "
                    f"(축별 수준: {self.config.axis_sizes()})")
        self._specifications = specifications
        return specifications

    def __len__(self) -> int:
        return len(self.build())

    def __iter__(self) -> Iterator[Specification]:
        return iter(self.build())

    def __getitem__(self, index: int) -> Specification:
        return self.build()[index]

    def to_frame(self) -> pd.DataFrame:
        """
        빈 결과 테이블 생성 (축 컬럼 + 출력 컬럼 NaN + 상태 컬럼)

        Returns:
            pd.DataFrame: 명세 순서와 같은 행 순서의 결과 테이블
        """
        return create_results_table(self.build())


def create_results_table(specifications: Sequence[Specification]) -> pd.DataFrame:
    """
    명세 목록으로 빈 결과 테이블 생성

    Args:
        specifications (Sequence[Specification]): 명세 목록

    Returns:
        pd.DataFrame: 인덱스가 명세 번호인 결과 테이블
    """
    rows = [spec.axis_values() for spec in specifications]
    table = pd.DataFrame(rows, columns=AXIS_COLUMNS, index=[spec.index for spec in specifications])
    table = table.reindex(columns=AXIS_COLUMNS + OUTPUT_COLUMNS)
    table['status'] = SpecStatus.PENDING.value
    table['error'] = None
    return table


def build_specification_grid(config: Optional[SpecCurveConfig] = None) -> List[Specification]:
    """명세 격자 생성 편의 함수"""
    return SpecificationGrid(config).build()
