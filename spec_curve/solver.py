"""
SEM Solver Adapter

외부 SEM 추정기(semopy)와의 경계를 정의합니다.
FittedModel은 추정 결과에 대한 인터페이스이며, SemFit은 semopy 결과를
라벨이 붙은 파라미터 테이블과 적합도 지수로 변환하는 구현체입니다.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple
import logging
import warnings

import numpy as np
import pandas as pd
from scipy.stats import norm

# semopy 임포트
try:
    from semopy import Model, ModelMeans
    from semopy.stats import calc_stats
    SEMOPY_AVAILABLE = True
except ImportError as e:
    logging.error("semopy 라이브러리를 찾을 수 없습니다. pip install semopy로 설치해주세요.")
    SEMOPY_AVAILABLE = False

from .config import ESTIMATORS, SpecCurveConfig, create_default_config
from .exceptions import ConfigurationError, ExtractionError, FitError, SolverTimeoutError
from .model_builder import ModelDefinition

logger = logging.getLogger(__name__)

PARAMETER_COLUMNS = [
    'label',
    'lval',
    'op',
    'rval',
    'est',
    'ci_lower',
    'ci_upper',
    'std_est',
    'std_ci_lower',
    'std_ci_upper',
    'pvalue'
]


def _to_float(value) -> float:
    """semopy 출력값('-' 등 포함)을 float으로 변환"""
    converted = pd.to_numeric(pd.Series([value]), errors='coerce').iloc[0]
    return float(converted)


class FittedModel(ABC):
    """추정된 모델 인터페이스"""

    @abstractmethod
    def parameter_table(self) -> pd.DataFrame:
        """라벨 파라미터 테이블 (PARAMETER_COLUMNS, 추정기 행 순서 유지)"""

    @abstractmethod
    def sample_size(self) -> int:
        """유효 표본 수"""

    @abstractmethod
    def total_observations(self) -> int:
        """추정에 사용된 전체 관측치 수"""

    @abstractmethod
    def free_parameter_count(self) -> int:
        """자유모수 수"""

    @abstractmethod
    def fit_indices(self) -> Dict[str, float]:
        """적합도 지수 ('cfi', 'rmsea', 'srmr')"""


class SemFit(FittedModel):
    """semopy 추정 결과 래퍼"""

    def __init__(self,
                 model,
                 definition: ModelDefinition,
                 data: pd.DataFrame,
                 objective: str,
                 confidence_level: float = 0.95):
        self.model = model
        self.definition = definition
        self.data = data
        self.objective = objective
        self.confidence_level = confidence_level
        self._parameters: Optional[pd.DataFrame] = None
        self._fit_indices: Optional[Dict[str, float]] = None

    def _edge_labels(self) -> Dict[Tuple[str, str, str], str]:
        """(lval, op, rval) -> 라벨 (공분산은 양방향 등록)"""
        edge_labels = {}
        for label, edges in self.definition.labelled_edges().items():
            for lval, op, rval in edges:
                edge_labels[(lval, op, rval)] = label
                if op == '~~':
                    edge_labels[(rval, op, lval)] = label
        return edge_labels

    def parameter_table(self) -> pd.DataFrame:
        if self._parameters is not None:
            return self._parameters

        try:
            params = self.model.inspect(std_est=True)
        except Exception as e:
            raise ExtractionError(f"semopy 파라미터 테이블 생성 실패: {e}") from e

        edge_labels = self._edge_labels()
        z_crit = norm.ppf(1 - (1 - self.confidence_level) / 2)

        rows = []
        for _, row in params.iterrows():
            est = _to_float(row.get('Estimate'))
            se = _to_float(row.get('Std. Err'))
            std_est = _to_float(row.get('Est. Std'))

            ci_lower, ci_upper = est - z_crit * se, est + z_crit * se

            # 표준화 신뢰구간은 표준화/비표준화 비율로 환산
            if np.isfinite(est) and est != 0 and np.isfinite(std_est):
                ratio = std_est / est
                std_bounds = sorted((ci_lower * ratio, ci_upper * ratio))
            else:
                std_bounds = [np.nan, np.nan]

            rows.append({
                'label': edge_labels.get((row['lval'], row['op'], row['rval'])),
                'lval': row['lval'],
                'op': row['op'],
                'rval': row['rval'],
                'est': est,
                'ci_lower': ci_lower,
                'ci_upper': ci_upper,
                'std_est': std_est,
                'std_ci_lower': std_bounds[0],
                'std_ci_upper': std_bounds[1],
                'pvalue': _to_float(row.get('p-value'))
            })

        self._parameters = pd.DataFrame(rows, columns=PARAMETER_COLUMNS)
        return self._parameters

    def sample_size(self) -> int:
        n_samples = getattr(self.model, 'n_samples', None)
        return int(n_samples) if n_samples is not None else len(self.data)

    def total_observations(self) -> int:
        return len(self.data)

    def free_parameter_count(self) -> int:
        return len(self.model.param_vals)

    def fit_indices(self) -> Dict[str, float]:
        if self._fit_indices is not None:
            return self._fit_indices

        try:
            stats = calc_stats(self.model)
        except Exception as e:
            raise ExtractionError(f"semopy 적합도 지수 계산 실패: {e}") from e
        # calc_stats는 통계량이 컬럼인 1행 DataFrame을 반환
        values = stats.iloc[0] if 'CFI' in stats.columns else stats.iloc[:, 0]

        indices = {
            'cfi': _to_float(values.get('CFI')),
            'rmsea': _to_float(values.get('RMSEA')),
            'srmr': self._calculate_srmr()
        }
        # 자유도 0 모델에서 semopy는 RMSEA=inf를 반환
        self._fit_indices = {name: value if np.isfinite(value) else np.nan
                             for name, value in indices.items()}
        return self._fit_indices

    def _calculate_srmr(self) -> float:
        """표본 공분산과 모형 내재 공분산으로 SRMR 계산"""
        try:
            sigma, _ = self.model.calc_sigma()
            names = list(self.model.vars['observed'])
            if sigma.shape[0] != len(names):
                exogenous = set(self.model.vars.get('observed_exogenous', []))
                names = [name for name in names if name not in exogenous]
            if sigma.shape[0] != len(names):
                logger.warning("SRMR 계산 불가: 공분산 행렬 차원이 관측변수 수와 다릅니다.")
                return np.nan

            sample = self.data[names].cov().values
            scale = np.sqrt(np.outer(np.diag(sample), np.diag(sample)))
            residuals = (sample - sigma) / scale
            lower = residuals[np.tril_indices(len(names))]
            return float(np.sqrt(np.mean(lower ** 2)))

        except (KeyError, ValueError, np.linalg.LinAlgError) as e:
            logger.warning(f"SRMR 계산 오류: {e}")
            return np.nan


class SemopySolver:
    """semopy 기반 SEM 추정기"""

    def __init__(self, config: Optional[SpecCurveConfig] = None):
        """
        초기화

        Args:
            config (Optional[SpecCurveConfig]): 최적화 방법과 신뢰수준 설정
        """
        if not SEMOPY_AVAILABLE:
            raise ImportError("semopy 라이브러리가 필요합니다. pip install semopy로 설치하세요.")

        self.config = config or create_default_config()

    def model_description(self, definition: ModelDefinition, estimator: str) -> str:
        """추정방법에 맞는 semopy 모델 스펙 (서열 추정 시 DEFINE(ordinal) 추가)"""
        spec = self._estimator_spec(estimator)
        description = definition.render()
        if spec.ordinal:
            description = f"DEFINE(ordinal) {' '.join(definition.indicators())}\n{description}"
        return description

    def fit(self,
            definition: ModelDefinition,
            data: pd.DataFrame,
            estimator: str,
            meanstructure: bool = True) -> SemFit:
        """
        모델 추정

        Args:
            definition (ModelDefinition): 모델 정의
            data (pd.DataFrame): 분석 데이터
            estimator (str): 추정방법 ('ordinal', 'continuous_robust')
            meanstructure (bool): 평균구조 추정 여부

        Returns:
            SemFit: 추정 결과
        """
        spec = self._estimator_spec(estimator)
        use_means = meanstructure and spec.means_objective is not None
        if meanstructure and not use_means:
            logger.debug(f"'{estimator}' 추정방법은 평균구조를 지원하지 않아 공분산구조만 추정합니다.")

        description = self.model_description(definition, estimator)
        objective = spec.means_objective if use_means else spec.objective

        try:
            model = ModelMeans(description) if use_means else Model(description)
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                result = model.fit(data, obj=objective, solver=self.config.solver)
        except SolverTimeoutError:
            raise
        except Exception as e:
            raise FitError(f"semopy 추정 실패 ({objective}): {e}") from e

        if result is not None and not getattr(result, 'success', True):
            raise FitError(f"semopy 수렴 실패 ({objective}): {getattr(result, 'message', '')}")

        return SemFit(model, definition, data, objective, self.config.confidence_level)

    def _estimator_spec(self, estimator: str):
        if estimator not in ESTIMATORS:
            raise ConfigurationError(f"알 수 없는 추정방법입니다: {estimator}")
        return ESTIMATORS[estimator]
