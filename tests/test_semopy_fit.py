"""
semopy 실제 추정 테스트

합성 RI-CLPM 패널로 추정부터 결과 행 추출까지 한 번에 실행합니다.
"""

import numpy as np
import pytest

from spec_curve_test_utils import make_riclpm_frame

from spec_curve import (
    FitRunner,
    ModelBuilder,
    ResultExtractor,
    create_default_config,
    make_datasets
)
from spec_curve.result_extractor import RESULT_LABELS


class TestSemopyFit:
    """연속형(FIML) 추정 종단 테스트"""

    def setup_method(self):
        pytest.importorskip("semopy")
        data = make_riclpm_frame(600, seed=3)
        self.runner = FitRunner(make_datasets(data, data.copy()), config=create_default_config())
        self.extractor = ResultExtractor()

    def test_continuous_robust_result_row(self):
        definition = ModelBuilder().build('sat_mean', 'social_media', 4, ['age'])
        fitted = self.runner.run(definition, 4, 'original', 'continuous_robust', 'all')
        row = self.extractor.extract(fitted)

        for label in RESULT_LABELS:
            assert np.isfinite(row[f'{label}_est']), label
        assert np.isfinite(row['n'])
        assert np.isfinite(row['obs_per_param'])
        assert np.isfinite(row['cfi'])
        # 모의 자료의 자기회귀 계수는 양수
        assert row['ar_outcome_est'] > 0

    def test_just_identified_rmsea_not_infinite(self):
        definition = ModelBuilder().build('sat_mean', 'social_media', 3)
        fitted = self.runner.run(definition, 3, 'original', 'continuous_robust', 'all')
        row = self.extractor.extract(fitted)

        assert not np.isinf(row['rmsea'])
        assert np.isfinite(row['cov_wave1_est'])
