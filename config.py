#!/usr/bin/env python3
"""
Life Satisfaction Panel Research - 설정 파일

이 파일은 전체 프로젝트의 경로와 로그 설정을 관리합니다.
명세곡선분석 세부 설정은 spec_curve.config.SpecCurveConfig를 사용합니다.

Author: Life Satisfaction Panel Research Team
Date: 2025-10-02
"""

from pathlib import Path

# 프로젝트 루트 디렉토리
PROJECT_ROOT = Path(__file__).parent

# 데이터 디렉토리 설정 (전처리 단계 산출물)
DATA_CONFIG = {
    "processed_data_dir": PROJECT_ROOT / "data" / "processed",
    "panel_data_dir": PROJECT_ROOT / "data" / "processed" / "panel",
    "original_file": "panel_wide.csv",
    "imputed_file": "panel_wide_imputed.csv"
}

# 결과 디렉토리 설정
RESULTS_CONFIG = {
    "current_results_dir": PROJECT_ROOT / "results" / "current",
    "archive_results_dir": PROJECT_ROOT / "results" / "archive",
    "spec_curve_dir": PROJECT_ROOT / "results" / "current" / "spec_curve",
    "results_filename": "spec_curve_results"
}

# 로그 설정
LOGGING_CONFIG = {
    "log_dir": PROJECT_ROOT / "logs",
    "spec_curve_log": PROJECT_ROOT / "logs" / "spec_curve.log",
    "log_level": "INFO",
    "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
}

# 배치 실행 설정
BATCH_CONFIG = {
    "n_jobs": 1,
    "timeout": None,
    "progress_every": 50,
    "random_seed": 42
}


def get_panel_data_path(imputed: bool = False) -> Path:
    """패널 데이터 파일 경로 반환"""
    filename = DATA_CONFIG["imputed_file"] if imputed else DATA_CONFIG["original_file"]
    return DATA_CONFIG["panel_data_dir"] / filename


def ensure_directories():
    """필요한 디렉토리들 생성"""
    directories = [
        DATA_CONFIG["panel_data_dir"],
        RESULTS_CONFIG["spec_curve_dir"],
        RESULTS_CONFIG["archive_results_dir"],
        LOGGING_CONFIG["log_dir"]
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
