"""
명세 격자 테스트
"""

import numpy as np
import pytest

import sys
from pathlib import Path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from spec_curve import (
    OUTPUT_COLUMNS,
    SpecificationGrid,
    build_specification_grid,
    control_set_variants,
    create_default_config,
    create_quick_config,
    create_results_table
)
from spec_curve.specification_grid import AXIS_COLUMNS, format_controls, parse_controls


class TestControlSets:
    """통제변수 조합 테스트"""

    def test_default_variants(self):
        config = create_default_config()
        variants = control_set_variants(config.controls)

        assert len(variants) == 9
        assert variants[0] == ()
        assert variants[1] == ('age',)
        assert variants[-1] == tuple(config.controls)

    def test_single_control_not_duplicated(self):
        assert control_set_variants(['age']) == [(), ('age',)]

    def test_no_controls(self):
        assert control_set_variants([]) == [()]

    def test_format_and_parse(self):
        assert format_controls(()) == 'none'
        assert format_controls(('age', 'siblings')) == 'age+siblings'
        assert parse_controls('age+siblings') == ('age', 'siblings')
        assert parse_controls('none') == ()
        assert parse_controls(np.nan) == ()


class TestSpecificationGrid:
    """격자 생성 테스트"""

    def setup_method(self):
        self.config = create_default_config()
        self.grid = SpecificationGrid(self.config)

    def test_default_grid_size(self):
        # 7 결과변수 x 3 웨이브 x 9 통제조합 x 2 추정 x 2 대체 x 3 성별
        assert len(self.grid) == 2268

    def test_axis_sizes_multiply_to_grid_size(self):
        sizes = self.config.axis_sizes()
        assert int(np.prod(list(sizes.values()))) == len(self.grid)

    def test_deterministic_order(self):
        specs = self.grid.build()

        assert [spec.index for spec in specs] == list(range(len(specs)))
        first, second = specs[0], specs[1]
        assert (first.outcome, first.wave_count, first.controls) == ('sat_schoolwork', 3, ())
        assert (first.estimator, first.imputation, first.gender) == ('ordinal', 'original', 'female')
        # 성별이 가장 빠르게 변함
        assert second.gender == 'male'
        assert specs[-1].outcome == 'sat_mean'
        assert specs[-1].wave_count == 5

    def test_same_config_same_grid(self):
        other = build_specification_grid(create_default_config())
        assert other == self.grid.build()

    def test_every_spec_uses_predictor(self):
        assert {spec.predictor for spec in self.grid} == {'social_media'}

    def test_getitem(self):
        assert self.grid[5].index == 5

    def test_quick_grid(self):
        grid = SpecificationGrid(create_quick_config())
        assert len(grid) == 9


class TestResultsTable:
    """빈 결과 테이블 테스트"""

    def test_schema(self):
        specs = SpecificationGrid(create_quick_config()).build()
        table = create_results_table(specs)

        assert len(table) == len(specs)
        assert list(table.columns) == AXIS_COLUMNS + OUTPUT_COLUMNS + ['status', 'error']
        assert len(OUTPUT_COLUMNS) == 54
        assert table[OUTPUT_COLUMNS].isna().all().all()
        assert (table['status'] == 'pending').all()

    def test_axis_values(self):
        specs = SpecificationGrid(create_quick_config()).build()
        table = create_results_table(specs)

        assert table.loc[0, 'controls'] == 'none'
        assert table.loc[0, 'n_controls'] == 0
        assert table.loc[len(specs) - 1, 'n_controls'] == 7


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
