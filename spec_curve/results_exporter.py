"""
Specification Curve Results Exporter

명세곡선분석 결과 테이블을 저장하고 불러옵니다.
후속 시각화/보고 단계에서 사용할 수 있도록 pickle과 CSV로 저장하며,
실패한 명세 목록과 라벨별 요약 통계를 함께 생성합니다.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Sequence, Union
import json
import logging

import numpy as np
import pandas as pd

from .result_extractor import RESULT_LABELS
from .specification_grid import SpecStatus

logger = logging.getLogger(__name__)


class SpecCurveResultsExporter:
    """명세곡선 결과 내보내기 클래스"""

    def __init__(self, output_dir: str = "results/current/spec_curve"):
        """
        초기화

        Args:
            output_dir (str): 결과 저장 디렉토리
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"SpecCurveResultsExporter 초기화 완료: {self.output_dir}")

    def save_results(self, table: pd.DataFrame, filename: str = "spec_curve_results") -> Dict[str, str]:
        """
        결과 테이블 저장 (pickle + CSV)

        Args:
            table (pd.DataFrame): 결과 테이블
            filename (str): 파일명 (확장자 제외)

        Returns:
            Dict[str, str]: 저장된 파일 경로
        """
        pickle_file = self.output_dir / f"{filename}.pkl"
        csv_file = self.output_dir / f"{filename}.csv"

        table.to_pickle(pickle_file)
        table.to_csv(csv_file, index=False, encoding='utf-8-sig')

        logger.info(f"결과 테이블 저장 완료: {pickle_file} ({len(table)}행)")
        return {'pickle': str(pickle_file), 'csv': str(csv_file)}

    def load_results(self, path: Union[str, Path, None] = None,
                     filename: str = "spec_curve_results") -> pd.DataFrame:
        """
        저장된 결과 테이블 로드

        Args:
            path: 결과 파일 경로 (.pkl 또는 .csv). None이면 output_dir/filename.pkl
            filename (str): path가 없을 때 사용할 파일명

        Returns:
            pd.DataFrame: 결과 테이블 (인덱스 = 명세 번호)
        """
        path = Path(path) if path is not None else self.output_dir / f"{filename}.pkl"
        if not path.exists():
            raise FileNotFoundError(f"결과 파일을 찾을 수 없습니다: {path}")

        if path.suffix.lower() == '.csv':
            table = pd.read_csv(path)
        else:
            table = pd.read_pickle(path)

        table.index = table['spec_id'].astype(int).tolist()
        logger.info(f"결과 테이블 로드 완료: {path} ({len(table)}행)")
        return table

    def save_failures(self, table: pd.DataFrame, filename: str = "spec_curve_failures") -> Optional[str]:
        """실패한 명세 목록 저장 (없으면 저장하지 않음)"""
        failures = table.loc[table['status'] == SpecStatus.FAILED.value, ['spec_id', 'error']]
        if failures.empty:
            logger.info("실패한 명세가 없습니다.")
            return None

        failure_file = self.output_dir / f"{filename}.csv"
        failures.to_csv(failure_file, index=False, encoding='utf-8-sig')
        logger.info(f"실패 명세 {len(failures)}개 저장: {failure_file}")
        return str(failure_file)

    def summarize(self,
                  table: pd.DataFrame,
                  labels: Sequence[str] = RESULT_LABELS,
                  alpha: float = 0.05) -> pd.DataFrame:
        """
        라벨별 명세곡선 요약

        Args:
            table (pd.DataFrame): 결과 테이블
            labels (Sequence[str]): 요약할 라벨
            alpha (float): 유의수준

        Returns:
            pd.DataFrame: 라벨별 추정 수, 표준화 추정치 중앙값/최솟값/최댓값,
                양수 비율, 유의한 비율
        """
        succeeded = table[table['status'] == SpecStatus.SUCCEEDED.value]
        records = []

        for label in labels:
            std_est = succeeded[f"{label}_std_est"].dropna()
            pvalues = succeeded[f"{label}_pvalue"].dropna()
            n_estimates = len(std_est)

            records.append({
                'label': label,
                'n_specifications': n_estimates,
                'median_std_est': float(std_est.median()) if n_estimates else np.nan,
                'min_std_est': float(std_est.min()) if n_estimates else np.nan,
                'max_std_est': float(std_est.max()) if n_estimates else np.nan,
                'share_positive': float((std_est > 0).mean()) if n_estimates else np.nan,
                'share_significant': float((pvalues < alpha).mean()) if len(pvalues) else np.nan
            })

        return pd.DataFrame(records)

    def save_summary(self,
                     table: pd.DataFrame,
                     run_summary: Optional[Dict] = None,
                     filename: str = "spec_curve_summary") -> Dict[str, str]:
        """요약 통계(CSV)와 실행 요약(JSON) 저장"""
        summary_table = self.summarize(table)
        csv_file = self.output_dir / f"{filename}.csv"
        summary_table.to_csv(csv_file, index=False, encoding='utf-8-sig')

        json_file = self.output_dir / f"{filename}.json"
        payload = {
            'created': datetime.now().isoformat(),
            'run_summary': run_summary or {},
            'status_counts': {str(k): int(v) for k, v in table['status'].value_counts().items()}
        }
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

        logger.info(f"요약 저장 완료: {csv_file}")
        return {'summary_csv': str(csv_file), 'summary_json': str(json_file)}


def export_spec_curve_results(batch_result,
                              output_dir: str = "results/current/spec_curve",
                              filename: str = "spec_curve_results") -> Dict[str, str]:
    """
    배치 실행 결과 내보내기 편의 함수

    Args:
        batch_result (BatchResult): 배치 실행 결과
        output_dir (str): 저장 디렉토리
        filename (str): 결과 파일명

    Returns:
        Dict[str, str]: 저장된 파일 경로
    """
    exporter = SpecCurveResultsExporter(output_dir)
    saved_files = exporter.save_results(batch_result.table, filename)

    failure_file = exporter.save_failures(batch_result.table)
    if failure_file:
        saved_files['failures'] = failure_file

    saved_files.update(exporter.save_summary(batch_result.table, batch_result.summary.as_dict()))
    return saved_files
