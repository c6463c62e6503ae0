"""
Result Extractor

추정된 모델에서 고정된 스키마의 결과 행을 추출합니다.

라벨 7개 x (비표준화 추정치, 신뢰구간 하한/상한, 표준화 추정치,
표준화 신뢰구간 하한/상한, p값) + 적합도 5개 = 54개 출력 컬럼.

공유 라벨이 여러 경로에 붙어 있으면 추정기가 반환한 순서에서
첫 번째 행을 사용합니다 (평균이 아님).
"""

from typing import Any, Dict, List, Optional, Sequence
import logging

import numpy as np
import pandas as pd

from .exceptions import ExtractionError
from .model_builder import MODEL_LABELS
from .solver import FittedModel

logger = logging.getLogger(__name__)

RESULT_LABELS = list(MODEL_LABELS)

# 결과 컬럼 접미사 -> 파라미터 테이블 컬럼
ESTIMATE_FIELDS = {
    'est': 'est',
    'ci_lower': 'ci_lower',
    'ci_upper': 'ci_upper',
    'std_est': 'std_est',
    'std_ci_lower': 'std_ci_lower',
    'std_ci_upper': 'std_ci_upper',
    'pvalue': 'pvalue'
}

FIT_FIELDS = ['n', 'obs_per_param', 'cfi', 'rmsea', 'srmr']


def estimate_columns(labels: Sequence[str] = RESULT_LABELS) -> List[str]:
    return [f"{label}_{suffix}" for label in labels for suffix in ESTIMATE_FIELDS]


OUTPUT_COLUMNS = estimate_columns() + FIT_FIELDS


class ResultExtractor:
    """결과 행 추출 클래스"""

    def __init__(self, labels: Optional[Sequence[str]] = None):
        """
        초기화

        Args:
            labels (Optional[Sequence[str]]): 추출할 라벨 (기본값: RI-CLPM 라벨 7개)
        """
        self.labels = list(labels) if labels is not None else list(RESULT_LABELS)

    @property
    def columns(self) -> List[str]:
        return estimate_columns(self.labels) + FIT_FIELDS

    def extract(self, fitted: FittedModel) -> Dict[str, Any]:
        """
        결과 행 추출

        Args:
            fitted (FittedModel): 추정된 모델

        Returns:
            Dict[str, Any]: 출력 컬럼 -> 값
        """
        params = fitted.parameter_table()
        row: Dict[str, Any] = {}

        for label in self.labels:
            record = self._first_match(params, label)
            for suffix, source in ESTIMATE_FIELDS.items():
                row[f"{label}_{suffix}"] = float(record[source])

        row.update(self._fit_statistics(fitted))
        return row

    def _first_match(self, params: pd.DataFrame, label: str) -> pd.Series:
        """라벨이 붙은 첫 번째 파라미터 행"""
        matches = params[params['label'] == label]
        if matches.empty:
            raise ExtractionError(f"추정 결과에 '{label}' 파라미터가 없습니다.")
        if len(matches) > 1:
            logger.debug(f"'{label}' 라벨 행 {len(matches)}개 중 첫 번째 사용")
        return matches.iloc[0]

    def _fit_statistics(self, fitted: FittedModel) -> Dict[str, float]:
        n_params = fitted.free_parameter_count()
        if not n_params:
            raise ExtractionError("자유모수가 없는 모델입니다.")

        indices = fitted.fit_indices()
        return {
            'n': float(fitted.sample_size()),
            'obs_per_param': fitted.total_observations() / n_params,
            'cfi': float(indices.get('cfi', np.nan)),
            'rmsea': float(indices.get('rmsea', np.nan)),
            'srmr': float(indices.get('srmr', np.nan))
        }


def extract_result_row(fitted: FittedModel, labels: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """결과 행 추출 편의 함수"""
    return ResultExtractor(labels).extract(fitted)
