"""
명세곡선분석 테스트 유틸리티

semopy 없이 배치 실행을 검증하기 위한 합성 패널 데이터와 스텁 추정기를 제공합니다.
병렬 실행 테스트에서 피클링되므로 모든 스텁은 모듈 수준에 정의합니다.
"""

import sys
import time
from pathlib import Path

import numpy as np
import pandas as pd

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from spec_curve.config import (
    DEFAULT_CONTROLS,
    DEFAULT_OUTCOMES,
    DEFAULT_PREDICTOR,
    DEFAULT_WAVE_PREFIXES
)
from spec_curve.data_loader import make_datasets
from spec_curve.exceptions import FitError
from spec_curve.fit_runner import FitRunner
from spec_curve.model_builder import MODEL_LABELS, observed_name
from spec_curve.solver import PARAMETER_COLUMNS, FittedModel

# 라벨별 고정 추정치 (스텁 결과 확인용)
LABEL_ESTIMATES = {label: round(0.1 * (i + 1), 2) for i, label in enumerate(MODEL_LABELS)}


def make_panel_frame(n_subjects: int = 120, seed: int = 0) -> pd.DataFrame:
    """와이드 형식 합성 패널 데이터 생성"""
    rng = np.random.RandomState(seed)
    data = {}
    for variable in DEFAULT_OUTCOMES + [DEFAULT_PREDICTOR]:
        for prefix in DEFAULT_WAVE_PREFIXES:
            data[observed_name(prefix, variable)] = rng.randint(1, 8, n_subjects)
    for control in DEFAULT_CONTROLS:
        data[control] = rng.randint(0, 3, n_subjects)
    data['waves'] = rng.randint(1, 7, n_subjects)
    data['male'] = rng.randint(0, 2, n_subjects)
    return pd.DataFrame(data)


def make_riclpm_frame(n_subjects: int = 600, seed: int = 0) -> pd.DataFrame:
    """
    RI-CLPM 구조를 따르는 연속형 와이드 패널 데이터 생성

    개인별 무선절편에 웨이브 내 자기회귀/교차지연 동태를 더해 관측치를 만듭니다.
    """
    rng = np.random.RandomState(seed)
    n_waves = len(DEFAULT_WAVE_PREFIXES)
    data = {}

    controls = {control: rng.randint(0, 3, n_subjects).astype(float) for control in DEFAULT_CONTROLS}
    controls['age'] = rng.normal(13.0, 1.0, n_subjects)

    ri_x = rng.normal(0, 1.0, n_subjects)
    within_x = np.zeros((n_subjects, n_waves))
    within_x[:, 0] = rng.normal(0, 1.0, n_subjects)
    for t in range(1, n_waves):
        within_x[:, t] = 0.4 * within_x[:, t - 1] + rng.normal(0, 0.8, n_subjects)
    for t, prefix in enumerate(DEFAULT_WAVE_PREFIXES):
        data[observed_name(prefix, DEFAULT_PREDICTOR)] = 3.0 + ri_x + within_x[:, t]

    for outcome in DEFAULT_OUTCOMES:
        ri_y = 0.3 * ri_x + rng.normal(0, 0.95, n_subjects)
        within_y = np.zeros((n_subjects, n_waves))
        within_y[:, 0] = 0.2 * within_x[:, 0] + rng.normal(0, 0.95, n_subjects)
        for t in range(1, n_waves):
            within_y[:, t] = (0.3 * within_y[:, t - 1] + 0.1 * within_x[:, t - 1]
                              + rng.normal(0, 0.8, n_subjects))
        for t, prefix in enumerate(DEFAULT_WAVE_PREFIXES):
            data[observed_name(prefix, outcome)] = (4.0 + ri_y + within_y[:, t]
                                                    + 0.1 * (controls['age'] - 13.0))

    data.update(controls)
    data['waves'] = rng.choice([3, 4, 5, 6], n_subjects, p=[0.1, 0.2, 0.3, 0.4])
    data['male'] = rng.randint(0, 2, n_subjects)
    return pd.DataFrame(data)


def make_test_datasets(n_subjects: int = 120):
    original = make_panel_frame(n_subjects, seed=0)
    imputed = make_panel_frame(n_subjects, seed=1)
    return make_datasets(original, imputed)


class StubFit(FittedModel):
    """라벨 경로마다 한 행씩 고정 추정치를 돌려주는 추정 결과"""

    def __init__(self, definition, data, free_parameters: int = 20):
        self.definition = definition
        self.data = data
        self.free_parameters = free_parameters

    def parameter_table(self) -> pd.DataFrame:
        rows = []
        for label, edges in self.definition.labelled_edges().items():
            est = LABEL_ESTIMATES.get(label, 0.0)
            for position, (lval, op, rval) in enumerate(edges):
                # 공유 라벨이라도 행마다 값이 다르면 첫 행 사용 여부를 확인할 수 있음
                value = est + position * 0.001
                rows.append({
                    'label': label, 'lval': lval, 'op': op, 'rval': rval,
                    'est': value, 'ci_lower': value - 0.05, 'ci_upper': value + 0.05,
                    'std_est': value / 2, 'std_ci_lower': value / 2 - 0.025,
                    'std_ci_upper': value / 2 + 0.025, 'pvalue': 0.01
                })
        return pd.DataFrame(rows, columns=PARAMETER_COLUMNS)

    def sample_size(self) -> int:
        return len(self.data)

    def total_observations(self) -> int:
        return len(self.data)

    def free_parameter_count(self) -> int:
        return self.free_parameters

    def fit_indices(self):
        return {'cfi': 0.98, 'rmsea': 0.03, 'srmr': 0.04}


class StubSolver:
    """semopy 대신 StubFit을 반환하는 추정기"""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls = []

    def fit(self, definition, data, estimator, meanstructure=True):
        self.calls.append((definition.outcome, definition.wave_count, estimator, len(data)))
        if self.delay:
            time.sleep(self.delay)
        return StubFit(definition, data)


def spec_key(spec):
    return (spec.outcome, spec.wave_count, spec.controls, spec.estimator, spec.imputation, spec.gender)


class FailingFitRunner(FitRunner):
    """지정된 명세에서 FitError를 발생시키는 추정 실행기"""

    def __init__(self, datasets, solver=None, config=None, failing_keys=None, error_type=FitError):
        super().__init__(datasets, solver=solver or StubSolver(), config=config)
        self.failing_keys = set(failing_keys or ())
        self.error_type = error_type

    def run(self, definition, wave_count, imputation, estimator, gender):
        key = (definition.outcome, wave_count, definition.controls, estimator, imputation, gender)
        if key in self.failing_keys:
            raise self.error_type(f"수렴 실패 (테스트): {key}")
        return super().run(definition, wave_count, imputation, estimator, gender)
