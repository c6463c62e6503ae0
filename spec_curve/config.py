"""
Specification Curve Configuration Module

명세곡선분석을 위한 설정 클래스와 유틸리티 함수들을 제공합니다.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from pathlib import Path
import logging

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# 결과변수 (삶의 만족도 6개 영역 + 평균 합성점수)
DEFAULT_OUTCOMES = [
    'sat_schoolwork',
    'sat_appearance',
    'sat_family',
    'sat_friends',
    'sat_school',
    'sat_life',
    'sat_mean'
]

DEFAULT_PREDICTOR = 'social_media'

# 시간불변 통제변수
DEFAULT_CONTROLS = [
    'age',
    'ethnicity',
    'household_income',
    'parent_employed',
    'parent_depressed',
    'siblings',
    'long_term_illness'
]

# 웨이브 접두사 (a = 1차 웨이브)
DEFAULT_WAVE_PREFIXES = ['a', 'b', 'c', 'd', 'e', 'f']

OUTCOME_DESCRIPTIONS = {
    'sat_schoolwork': '학업 만족도',
    'sat_appearance': '외모 만족도',
    'sat_family': '가족 만족도',
    'sat_friends': '친구 만족도',
    'sat_school': '학교 만족도',
    'sat_life': '전반적 삶의 만족도',
    'sat_mean': '만족도 평균 (합성점수)'
}

MIN_WAVES = 3
MAX_WAVES = 6


@dataclass(frozen=True)
class EstimatorSpec:
    """추정방법 정의"""

    objective: str  # semopy Model 목적함수
    means_objective: Optional[str]  # semopy ModelMeans 목적함수 (None: 평균구조 미지원)
    ordinal: bool  # 지표를 서열변수로 선언할지 여부
    description: str = ''


ESTIMATORS: Dict[str, EstimatorSpec] = {
    'ordinal': EstimatorSpec(
        objective='DWLS',
        means_objective=None,
        ordinal=True,
        description='서열 지표, 대각가중최소제곱 (WLSMV 대응)'
    ),
    'continuous_robust': EstimatorSpec(
        objective='MLW',
        means_objective='ML',  # ModelMeans의 ML은 결측 자료에 FIML 적용
        ordinal=False,
        description='연속 지표, 최대우도 (MLR 대응)'
    ),
}

IMPUTATIONS = ['original', 'imputed']
GENDERS = ['female', 'male', 'all']


@dataclass
class SpecCurveConfig:
    """명세곡선분석 설정 클래스"""

    # 변수 설정
    outcomes: List[str] = field(default_factory=lambda: list(DEFAULT_OUTCOMES))
    predictor: str = DEFAULT_PREDICTOR
    controls: List[str] = field(default_factory=lambda: list(DEFAULT_CONTROLS))
    wave_prefixes: List[str] = field(default_factory=lambda: list(DEFAULT_WAVE_PREFIXES))

    # 분석 결정 축
    wave_counts: List[int] = field(default_factory=lambda: [3, 4, 5])
    estimators: List[str] = field(default_factory=lambda: ['ordinal', 'continuous_robust'])
    imputations: List[str] = field(default_factory=lambda: list(IMPUTATIONS))
    genders: List[str] = field(default_factory=lambda: list(GENDERS))

    # 추정 설정
    meanstructure: bool = True
    solver: str = 'SLSQP'  # SLSQP, L-BFGS-B, trust-constr
    confidence_level: float = 0.95

    # 배치 실행 설정
    n_jobs: int = 1  # 1이면 순차 실행
    timeout: Optional[float] = None  # 명세별 제한시간 (초)
    progress_every: int = 50
    show_progress: bool = False
    random_seed: Optional[int] = 42  # 명세별 시드 = random_seed + 명세 번호

    # 데이터 설정
    data_dir: str = "data/processed/panel"
    original_file: str = "panel_wide.csv"
    imputed_file: str = "panel_wide_imputed.csv"
    waves_column: str = 'waves'
    gender_column: str = 'male'

    # 결과 저장 설정
    results_dir: str = "results/current/spec_curve"
    results_filename: str = "spec_curve_results"

    def __post_init__(self):
        """설정 검증"""
        self._validate_variables()
        self._validate_axes()
        self._validate_batch_settings()

    def _validate_variables(self):
        """변수 목록 검증"""
        if not self.outcomes:
            raise ConfigurationError("outcomes는 최소 1개 이상이어야 합니다.")
        if len(set(self.outcomes)) != len(self.outcomes):
            raise ConfigurationError(f"outcomes에 중복된 변수가 있습니다: {self.outcomes}")
        if len(set(self.controls)) != len(self.controls):
            raise ConfigurationError(f"controls에 중복된 변수가 있습니다: {self.controls}")
        if self.predictor in self.outcomes:
            raise ConfigurationError(f"예측변수 '{self.predictor}'가 결과변수 목록에 포함되어 있습니다.")
        overlap = set(self.controls) & (set(self.outcomes) | {self.predictor})
        if overlap:
            raise ConfigurationError(f"통제변수와 모델 변수가 겹칩니다: {sorted(overlap)}")
        if len(set(self.wave_prefixes)) != len(self.wave_prefixes):
            raise ConfigurationError(f"wave_prefixes에 중복이 있습니다: {self.wave_prefixes}")

    def _validate_axes(self):
        """분석 결정 축 검증"""
        for wave_count in self.wave_counts:
            self.check_wave_count(wave_count)

        for estimator in self.estimators:
            if estimator not in ESTIMATORS:
                raise ConfigurationError(f"estimator는 {list(ESTIMATORS)} 중 하나여야 합니다: {estimator}")

        for imputation in self.imputations:
            if imputation not in IMPUTATIONS:
                raise ConfigurationError(f"imputation은 {IMPUTATIONS} 중 하나여야 합니다: {imputation}")

        for gender in self.genders:
            if gender not in GENDERS:
                raise ConfigurationError(f"gender는 {GENDERS} 중 하나여야 합니다: {gender}")

        if not 0 < self.confidence_level < 1:
            raise ConfigurationError("confidence_level은 0과 1 사이여야 합니다.")

    def _validate_batch_settings(self):
        """배치 실행 설정 검증"""
        if self.n_jobs < 1:
            raise ConfigurationError("n_jobs는 1 이상이어야 합니다.")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError("timeout은 양수여야 합니다.")
        if self.progress_every < 1:
            raise ConfigurationError("progress_every는 1 이상이어야 합니다.")

    @property
    def max_waves(self) -> int:
        """지원 가능한 최대 웨이브 수"""
        return min(MAX_WAVES, len(self.wave_prefixes))

    def check_wave_count(self, wave_count: int) -> int:
        """
        웨이브 수 검증

        Args:
            wave_count (int): 요청된 웨이브 수

        Returns:
            int: 검증된 웨이브 수
        """
        if isinstance(wave_count, bool) or not isinstance(wave_count, int):
            raise ConfigurationError(f"웨이브 수는 정수여야 합니다: {wave_count!r}")
        if not MIN_WAVES <= wave_count <= self.max_waves:
            raise ConfigurationError(
                f"지원하지 않는 웨이브 수입니다: {wave_count} "
                f"(지원 범위: {MIN_WAVES}-{self.max_waves})"
            )
        return wave_count

    def get_estimator(self, name: str) -> EstimatorSpec:
        """추정방법 정의 반환"""
        if name not in ESTIMATORS:
            raise ConfigurationError(f"알 수 없는 추정방법입니다: {name}")
        return ESTIMATORS[name]

    @property
    def original_path(self) -> Path:
        return Path(self.data_dir) / self.original_file

    @property
    def imputed_path(self) -> Path:
        return Path(self.data_dir) / self.imputed_file

    def axis_sizes(self) -> Dict[str, int]:
        """축별 수준 수 (통제변수 조합은 단일 + 전체 + 없음)"""
        n_control_sets = len(self.controls) + 2 if len(self.controls) > 1 else len(self.controls) + 1
        return {
            'outcome': len(self.outcomes),
            'wave_count': len(self.wave_counts),
            'controls': n_control_sets,
            'estimator': len(self.estimators),
            'imputation': len(self.imputations),
            'gender': len(self.genders)
        }


def create_default_config(**kwargs) -> SpecCurveConfig:
    """
    기본 명세곡선분석 설정 생성

    Args:
        **kwargs: 설정 오버라이드

    Returns:
        SpecCurveConfig: 설정 객체
    """
    return SpecCurveConfig(**kwargs)


def create_quick_config(**kwargs) -> SpecCurveConfig:
    """
    빠른 점검용 축소 설정 생성 (결과변수 1개, 3웨이브, 연속 추정)

    Args:
        **kwargs: 설정 오버라이드

    Returns:
        SpecCurveConfig: 축소된 설정
    """
    quick_defaults = {
        'outcomes': ['sat_mean'],
        'wave_counts': [3],
        'estimators': ['continuous_robust'],
        'imputations': ['original'],
        'genders': ['all'],
        'progress_every': 1
    }

    merged_kwargs = {**quick_defaults, **kwargs}
    return SpecCurveConfig(**merged_kwargs)


def get_outcome_description(outcome: str) -> str:
    """결과변수 설명 반환"""
    return OUTCOME_DESCRIPTIONS.get(outcome, outcome)


def list_estimators() -> List[Tuple[str, str]]:
    """사용 가능한 추정방법 목록 반환"""
    return [(name, spec.description) for name, spec in ESTIMATORS.items()]
