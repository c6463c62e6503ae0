"""
Specification Curve Analysis Module using semopy

이 모듈은 종단 패널 데이터에 대해 이론적으로 타당한 모든 분석 경로를 열거하고,
각 명세마다 무선절편 교차지연 패널모델(RI-CLPM)을 semopy로 추정하여
결과를 하나의 테이블로 모으는 명세곡선분석(Specification Curve Analysis)을 수행합니다.

주요 기능:
1. 분석 결정 축의 데카르트 곱으로 명세 격자 생성
2. 명세별 RI-CLPM 모델 스펙 생성 (웨이브 수, 통제변수 조합 반영)
3. 데이터 부분집합 선택 및 모델 추정
4. 라벨 파라미터와 적합도 지수 추출
5. 명세 단위 실패 격리와 병렬 실행
6. 결과 저장 및 요약

Author: Life Satisfaction Panel Research Team
Date: 2025-10-02
"""

from .exceptions import (
    SpecCurveError,
    ConfigurationError,
    FitError,
    ExtractionError,
    SolverTimeoutError
)
from .config import (
    SpecCurveConfig,
    EstimatorSpec,
    ESTIMATORS,
    create_default_config,
    create_quick_config,
    get_outcome_description,
    list_estimators
)
from .model_builder import (
    ModelBuilder,
    ModelDefinition,
    Statement,
    PooledCovariance,
    Term,
    MODEL_LABELS,
    build_riclpm_model
)
from .specification_grid import (
    Specification,
    SpecificationGrid,
    SpecStatus,
    control_set_variants,
    create_results_table,
    build_specification_grid
)
from .data_loader import (
    PanelDataLoader,
    PanelDatasets,
    make_datasets,
    load_panel_data
)
from .solver import (
    FittedModel,
    SemFit,
    SemopySolver
)
from .fit_runner import FitRunner
from .result_extractor import (
    ResultExtractor,
    RESULT_LABELS,
    OUTPUT_COLUMNS,
    extract_result_row
)
from .batch_runner import (
    BatchRunner,
    BatchResult,
    BatchSummary,
    SpecOutcome,
    run_specification,
    run_specification_curve
)
from .results_exporter import (
    SpecCurveResultsExporter,
    export_spec_curve_results
)

__version__ = "1.0.0"
__author__ = "Life Satisfaction Panel Research Team"
__all__ = [
    # Errors
    'SpecCurveError',
    'ConfigurationError',
    'FitError',
    'ExtractionError',
    'SolverTimeoutError',

    # Configuration
    'SpecCurveConfig',
    'EstimatorSpec',
    'ESTIMATORS',
    'create_default_config',
    'create_quick_config',
    'get_outcome_description',
    'list_estimators',

    # Model building
    'ModelBuilder',
    'ModelDefinition',
    'Statement',
    'PooledCovariance',
    'Term',
    'MODEL_LABELS',
    'build_riclpm_model',

    # Specification grid
    'Specification',
    'SpecificationGrid',
    'SpecStatus',
    'control_set_variants',
    'create_results_table',
    'build_specification_grid',

    # Data
    'PanelDataLoader',
    'PanelDatasets',
    'make_datasets',
    'load_panel_data',

    # Estimation
    'FittedModel',
    'SemFit',
    'SemopySolver',
    'FitRunner',

    # Extraction
    'ResultExtractor',
    'RESULT_LABELS',
    'OUTPUT_COLUMNS',
    'extract_result_row',

    # Batch
    'BatchRunner',
    'BatchResult',
    'BatchSummary',
    'SpecOutcome',
    'run_specification',
    'run_specification_curve',

    # Results export
    'SpecCurveResultsExporter',
    'export_spec_curve_results'
]
