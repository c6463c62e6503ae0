"""
Fit Runner

명세 하나에 맞는 데이터 부분집합을 선택하고 SEM 추정기를 호출합니다.
호출 간에 상태를 유지하지 않습니다.

데이터 선택 규칙:
1. 대체 여부에 따라 원자료 또는 대체자료 선택
2. 성별 필터 ('all'이 아니면 male 플래그로 필터링)
3. 최소 완료 웨이브 필터 (waves > wave_count - 1, 응답자 단위 제외)
"""

from typing import Optional
import logging

import pandas as pd

from .config import GENDERS, SpecCurveConfig, create_default_config
from .data_loader import PanelDatasets
from .exceptions import ConfigurationError, FitError
from .model_builder import ModelDefinition
from .solver import FittedModel, SemopySolver

logger = logging.getLogger(__name__)


class FitRunner:
    """명세별 모델 추정 실행 클래스"""

    def __init__(self,
                 datasets: PanelDatasets,
                 solver=None,
                 config: Optional[SpecCurveConfig] = None):
        """
        초기화

        Args:
            datasets (PanelDatasets): 원자료/대체자료
            solver: fit(definition, data, estimator, meanstructure)를 제공하는 추정기
            config (Optional[SpecCurveConfig]): 분석 설정
        """
        self.datasets = datasets
        self.config = config or create_default_config()
        self.solver = solver if solver is not None else SemopySolver(self.config)

    def select_data(self,
                    wave_count: int,
                    imputation: str,
                    gender: str,
                    columns: Optional[list] = None) -> pd.DataFrame:
        """
        명세에 맞는 데이터 부분집합 선택

        Args:
            wave_count (int): 웨이브 수
            imputation (str): 'original' 또는 'imputed'
            gender (str): 'female', 'male', 'all'
            columns (Optional[list]): 유지할 컬럼 (None이면 전체)

        Returns:
            pd.DataFrame: 선택된 데이터 (복사본)
        """
        data = self.datasets.select(imputation)

        if gender not in GENDERS:
            raise ConfigurationError(f"gender는 {GENDERS} 중 하나여야 합니다: {gender}")

        mask = pd.Series(True, index=data.index)
        if gender != 'all':
            flag = 1 if gender == 'male' else 0
            mask &= data[self.config.gender_column] == flag

        # 요청한 웨이브 수보다 적게 완료한 응답자는 전체 제외
        mask &= data[self.config.waves_column] > wave_count - 1

        selected = data.loc[mask]
        if columns is not None:
            missing = [column for column in columns if column not in selected.columns]
            if missing:
                raise FitError(f"데이터에 모델 변수가 없습니다: {missing}")
            selected = selected[columns]

        logger.debug(f"데이터 선택: {imputation}/{gender}/W={wave_count} -> {len(selected)}명")
        return selected.copy()

    def run(self,
            definition: ModelDefinition,
            wave_count: int,
            imputation: str,
            estimator: str,
            gender: str) -> FittedModel:
        """
        모델 추정

        Args:
            definition (ModelDefinition): 모델 정의
            wave_count (int): 웨이브 수
            imputation (str): 대체 여부
            estimator (str): 추정방법
            gender (str): 성별 부분집합

        Returns:
            FittedModel: 추정 결과
        """
        if wave_count != definition.wave_count:
            raise ConfigurationError(
                f"웨이브 수가 모델 정의와 다릅니다: {wave_count} != {definition.wave_count}"
            )
        self.config.get_estimator(estimator)

        data = self.select_data(wave_count, imputation, gender, definition.observed_variables())
        if data.empty:
            raise FitError(f"선택된 데이터가 없습니다 ({imputation}/{gender}/W={wave_count})")

        return self.solver.fit(definition, data, estimator, self.config.meanstructure)
