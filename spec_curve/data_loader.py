"""
Panel Data Loader

전처리 단계에서 만들어진 와이드 형식 패널 데이터(원자료, 대체자료)를 로드합니다.
각 행은 응답자 1명이며, 웨이브 접두사가 붙은 측정변수 컬럼과
완료 웨이브 수(waves), 성별 플래그(male) 컬럼을 포함해야 합니다.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
import logging

import pandas as pd

from .config import SpecCurveConfig, create_default_config
from .exceptions import ConfigurationError
from .model_builder import observed_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class PanelDatasets:
    """원자료와 대체자료 쌍 (명세 실행 중 읽기 전용)"""

    original: pd.DataFrame
    imputed: pd.DataFrame

    def select(self, imputation: str) -> pd.DataFrame:
        """
        대체 여부에 따른 데이터 선택

        Args:
            imputation (str): 'original' 또는 'imputed'

        Returns:
            pd.DataFrame: 선택된 데이터
        """
        if imputation == 'original':
            return self.original
        if imputation == 'imputed':
            return self.imputed
        raise ConfigurationError(f"알 수 없는 대체 여부 값입니다: {imputation}")


class PanelDataLoader:
    """패널 데이터 로더 클래스"""

    READERS = {
        '.csv': pd.read_csv,
        '.pkl': pd.read_pickle,
        '.pickle': pd.read_pickle,
        '.parquet': pd.read_parquet
    }

    def __init__(self, config: Optional[SpecCurveConfig] = None):
        """
        초기화

        Args:
            config (Optional[SpecCurveConfig]): 데이터 경로와 컬럼 설정
        """
        self.config = config or create_default_config()
        logger.info(f"PanelDataLoader 초기화 완료: {self.config.data_dir}")

    def read_table(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """확장자에 맞는 리더로 테이블 로드"""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"데이터 파일을 찾을 수 없습니다: {file_path}")

        reader = self.READERS.get(file_path.suffix.lower())
        if reader is None:
            raise ConfigurationError(f"지원하지 않는 파일 형식입니다: {file_path.suffix}")

        data = reader(file_path)
        logger.info(f"데이터 로드 완료: {file_path.name} {data.shape}")
        return data

    def validate(self, data: pd.DataFrame, name: str = 'data') -> pd.DataFrame:
        """필수 컬럼 확인"""
        required = [self.config.waves_column, self.config.gender_column]
        missing = [column for column in required if column not in data.columns]
        if missing:
            raise ConfigurationError(f"{name}에 필수 컬럼이 없습니다: {missing}")

        expected = self.expected_columns()
        absent = [column for column in expected if column not in data.columns]
        if absent:
            logger.warning(f"{name}에 없는 모델 변수 {len(absent)}개: {absent[:10]}")
        return data

    def expected_columns(self) -> List[str]:
        """설정된 모든 명세가 사용할 수 있는 관측변수 목록"""
        prefixes = self.config.wave_prefixes[:max(self.config.wave_counts)]
        variables = list(self.config.outcomes) + [self.config.predictor]
        columns = [observed_name(p, var) for var in variables for p in prefixes]
        return columns + list(self.config.controls)

    def load(self,
             original_path: Optional[Union[str, Path]] = None,
             imputed_path: Optional[Union[str, Path]] = None) -> PanelDatasets:
        """
        원자료와 대체자료 로드

        Args:
            original_path: 원자료 경로 (기본값: 설정 경로)
            imputed_path: 대체자료 경로 (기본값: 설정 경로)

        Returns:
            PanelDatasets: 데이터 쌍
        """
        original = self.validate(self.read_table(original_path or self.config.original_path), 'original')
        imputed = self.validate(self.read_table(imputed_path or self.config.imputed_path), 'imputed')
        return make_datasets(original, imputed)


def make_datasets(original: pd.DataFrame, imputed: pd.DataFrame) -> PanelDatasets:
    """
    원자료와 대체자료 스키마 확인 후 PanelDatasets 생성

    Args:
        original (pd.DataFrame): 원자료
        imputed (pd.DataFrame): 대체자료 (원자료와 같은 컬럼)

    Returns:
        PanelDatasets: 데이터 쌍
    """
    missing = sorted(set(original.columns) - set(imputed.columns))
    if missing:
        raise ConfigurationError(f"대체자료에 원자료 컬럼이 없습니다: {missing[:10]}")
    return PanelDatasets(original=original, imputed=imputed)


def load_panel_data(config: Optional[SpecCurveConfig] = None) -> PanelDatasets:
    """패널 데이터 로드 편의 함수"""
    return PanelDataLoader(config).load()
