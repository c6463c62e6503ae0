"""
RI-CLPM 모델 구축 테스트

웨이브 수와 통제변수 조합에 따라 생성되는 모델 문장의 구조를 검증합니다.
"""

import pytest

import sys
from pathlib import Path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from spec_curve import (
    ConfigurationError,
    MODEL_LABELS,
    ModelBuilder,
    build_riclpm_model,
    create_default_config
)


class TestModelStructure:
    """웨이브 수별 모델 구조 테스트"""

    def setup_method(self):
        self.builder = ModelBuilder(create_default_config())

    @pytest.mark.parametrize("wave_count", [3, 4, 5])
    def test_wave_latents_per_variable(self, wave_count):
        definition = self.builder.build('sat_life', 'social_media', wave_count)
        loadings = definition.statements_of_kind('loading')

        for variable in ('sat_life', 'social_media'):
            wave_latents = [s for s in loadings if s.lhs.startswith('w') and s.lhs.endswith(variable)]
            assert len(wave_latents) == wave_count
            # 웨이브 잠재변수마다 지표 하나, 적재량 1 고정
            assert all(len(s.terms) == 1 and s.terms[0].modifier == '1' for s in wave_latents)

    @pytest.mark.parametrize("wave_count", [3, 4, 5])
    def test_structural_regressions(self, wave_count):
        definition = self.builder.build('sat_life', 'social_media', wave_count)
        regressions = definition.statements_of_kind('regression')

        for variable in ('sat_life', 'social_media'):
            per_variable = [s for s in regressions if s.lhs.endswith(variable)]
            assert len(per_variable) == wave_count - 1

    @pytest.mark.parametrize("wave_count", [3, 4, 5])
    def test_single_pooled_covariance(self, wave_count):
        definition = self.builder.build('sat_life', 'social_media', wave_count)

        pooled = definition.statements_of_kind('pooled_covariance')
        assert len(pooled) == 1
        assert len(pooled[0].pairs) == wave_count - 1

        wave1 = [s for s in definition.statements if 'cov_wave1' in s.labels()]
        assert len(wave1) == 1

        rendered = definition.render()
        assert rendered.count('cov_later*') == wave_count - 1
        assert rendered.count('cov_wave1*') == 1

    def test_random_intercepts_load_on_every_wave(self):
        definition = self.builder.build('sat_family', 'social_media', 4)
        intercepts = [s for s in definition.statements_of_kind('loading') if s.lhs.startswith('ri_')]

        assert [s.lhs for s in intercepts] == ['ri_sat_family', 'ri_social_media']
        for statement in intercepts:
            assert len(statement.terms) == 4
            assert all(term.modifier == '1' for term in statement.terms)

    def test_indicator_variances_fixed_to_zero(self):
        definition = self.builder.build('sat_life', 'social_media', 3)
        rendered = definition.render()

        assert 'a_sat_life ~~ 0*a_sat_life' in rendered
        assert 'c_social_media ~~ 0*c_social_media' in rendered
        assert len(definition.statements_of_kind('variance')) == 6

    def test_intercepts_uncorrelated_with_wave_latents(self):
        definition = self.builder.build('sat_life', 'social_media', 3)
        rendered = definition.render()

        assert 'ri_sat_life ~~ 0*wa_sat_life + 0*wb_sat_life + 0*wc_sat_life' in rendered
        assert 'ri_sat_life ~~ 0*wa_social_media + 0*wb_social_media + 0*wc_social_media' in rendered
        assert 'ri_social_media ~~ 0*wa_social_media + 0*wb_social_media + 0*wc_social_media' in rendered
        assert 'ri_sat_life ~~ ri_cov*ri_social_media' in rendered

    def test_cross_lagged_paths_share_labels(self):
        definition = self.builder.build('sat_life', 'social_media', 3)
        rendered = definition.render()

        assert 'wb_sat_life ~ ar_outcome*wa_sat_life + cl_predictor_outcome*wa_social_media' in rendered
        assert 'wc_social_media ~ ar_predictor*wb_social_media + cl_outcome_predictor*wb_sat_life' in rendered

    def test_all_labels_present(self):
        definition = self.builder.build('sat_mean', 'social_media', 3)
        assert set(definition.labels()) == set(MODEL_LABELS)
        assert len(definition.labels()) == 7


class TestControls:
    """통제변수 회귀 테스트"""

    def setup_method(self):
        self.config = create_default_config()
        self.builder = ModelBuilder(self.config)

    @pytest.mark.parametrize("controls", [None, [], ()])
    def test_no_controls(self, controls):
        definition = self.builder.build('sat_life', 'social_media', 4, controls)
        for control in self.config.controls:
            assert not any(s.references(control) for s in definition.statements)
        assert definition.controls == ()

    @pytest.mark.parametrize("wave_count", [3, 4, 5])
    def test_single_control(self, wave_count):
        definition = self.builder.build('sat_life', 'social_media', wave_count, ['age'])
        referencing = [s for s in definition.statements if s.references('age')]

        assert len(referencing) == 2 * wave_count
        assert all(s.kind == 'regression' for s in referencing)

    def test_controls_order_follows_config(self):
        first = self.builder.build('sat_life', 'social_media', 3, {'siblings', 'age'})
        second = self.builder.build('sat_life', 'social_media', 3, ['age', 'siblings'])

        assert first.controls == ('age', 'siblings')
        assert first.render() == second.render()
        assert 'a_sat_life ~ age + siblings' in first.render()

    def test_unknown_control(self):
        with pytest.raises(ConfigurationError):
            self.builder.build('sat_life', 'social_media', 3, ['shoe_size'])


class TestRendering:
    """모델 스펙 텍스트 생성 테스트"""

    def setup_method(self):
        self.builder = ModelBuilder()

    def test_render_is_idempotent(self):
        definition = self.builder.build('sat_school', 'social_media', 5, ['age', 'ethnicity'])
        assert definition.render() == definition.render()
        assert str(definition) == definition.render()

    def test_same_inputs_same_definition(self):
        first = self.builder.build('sat_school', 'social_media', 4, ['age'])
        second = build_riclpm_model('sat_school', 'social_media', 4, ['age'])
        assert first == second

    def test_no_blank_lines(self):
        rendered = self.builder.build('sat_life', 'social_media', 3).render()
        assert all(line.strip() for line in rendered.split("\n"))

    def test_observed_variables(self):
        definition = self.builder.build('sat_life', 'social_media', 3, ['age'])
        assert definition.observed_variables() == [
            'a_sat_life', 'b_sat_life', 'c_sat_life',
            'a_social_media', 'b_social_media', 'c_social_media',
            'age'
        ]

    def test_labelled_edges_for_pooled_label(self):
        definition = self.builder.build('sat_life', 'social_media', 4)
        edges = definition.labelled_edges()

        assert edges['cov_later'] == [
            ('wb_sat_life', '~~', 'wb_social_media'),
            ('wc_sat_life', '~~', 'wc_social_media'),
            ('wd_sat_life', '~~', 'wd_social_media')
        ]
        assert len(edges['ar_outcome']) == 3


class TestBuilderValidation:
    """입력 검증 테스트"""

    def setup_method(self):
        self.builder = ModelBuilder()

    @pytest.mark.parametrize("wave_count", [2, 7, 0, -1])
    def test_unsupported_wave_count(self, wave_count):
        with pytest.raises(ConfigurationError):
            self.builder.build('sat_life', 'social_media', wave_count)

    def test_non_integer_wave_count(self):
        with pytest.raises(ConfigurationError):
            self.builder.build('sat_life', 'social_media', 3.0)

    def test_six_waves_supported(self):
        definition = self.builder.build('sat_life', 'social_media', 6)
        assert definition.render().count('cov_later*') == 5

    def test_unknown_outcome(self):
        with pytest.raises(ConfigurationError):
            self.builder.build('sat_weather', 'social_media', 3)

    def test_unknown_predictor(self):
        with pytest.raises(ConfigurationError):
            self.builder.build('sat_life', 'television', 3)


def test_end_to_end_three_waves_no_controls():
    """3웨이브, 통제변수 없음: 라벨 7개, 통제 회귀 없음"""
    definition = build_riclpm_model('sat_life', 'social_media', 3)

    assert len(definition.labels()) == 7
    assert 'age' not in definition.render()
    assert len(definition.statements_of_kind('regression')) == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
