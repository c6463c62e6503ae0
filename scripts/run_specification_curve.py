#!/usr/bin/env python3
"""
명세곡선분석 실행 스크립트

이 스크립트는 SNS 사용과 삶의 만족도 간 RI-CLPM 명세곡선분석을 실행합니다:
1. 명세 격자 생성 (결과변수 x 웨이브 수 x 통제변수 x 추정방법 x 대체 여부 x 성별)
2. 원자료/대체자료 로드
3. 명세별 모델 구축, 추정, 결과 추출
4. 결과 테이블, 실패 목록, 요약 저장

Author: Life Satisfaction Panel Research Team
Date: 2025-10-02
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# 프로젝트 루트 디렉토리를 Python 경로에 추가
sys.path.append(str(Path(__file__).resolve().parent.parent))

from config import DATA_CONFIG, LOGGING_CONFIG, RESULTS_CONFIG, BATCH_CONFIG, ensure_directories
from spec_curve import (
    BatchRunner,
    FitRunner,
    ModelBuilder,
    PanelDataLoader,
    SpecCurveResultsExporter,
    SpecificationGrid,
    create_default_config,
    create_quick_config,
    export_spec_curve_results
)

logger = logging.getLogger(__name__)


def setup_logging(log_file: Path, level: str = "INFO"):
    """로깅 설정"""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOGGING_CONFIG["log_format"],
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler()
        ]
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='RI-CLPM 명세곡선분석 실행')
    parser.add_argument('--data-dir', default=str(DATA_CONFIG["panel_data_dir"]),
                        help='패널 데이터 디렉토리')
    parser.add_argument('--original', default=DATA_CONFIG["original_file"],
                        help='원자료 파일명')
    parser.add_argument('--imputed', default=DATA_CONFIG["imputed_file"],
                        help='대체자료 파일명')
    parser.add_argument('--output-dir', default=str(RESULTS_CONFIG["spec_curve_dir"]),
                        help='결과 저장 디렉토리')
    parser.add_argument('--n-jobs', type=int, default=BATCH_CONFIG["n_jobs"],
                        help='병렬 작업 수 (1: 순차 실행)')
    parser.add_argument('--timeout', type=float, default=BATCH_CONFIG["timeout"],
                        help='명세별 제한시간 (초)')
    parser.add_argument('--quick', action='store_true',
                        help='축소 격자로 빠른 점검 실행')
    parser.add_argument('--resume', action='store_true',
                        help='이전 결과 테이블에서 성공한 명세는 건너뜀')
    parser.add_argument('--dry-run', action='store_true',
                        help='격자 크기와 첫 모델 스펙만 출력')
    parser.add_argument('--progress', action='store_true',
                        help='진행 막대 표시')
    parser.add_argument('--log-level', default=LOGGING_CONFIG["log_level"],
                        help='로그 수준')
    return parser.parse_args(argv)


def main(argv=None):
    """메인 실행 함수"""
    args = parse_args(argv)
    ensure_directories()
    setup_logging(LOGGING_CONFIG["spec_curve_log"], args.log_level)

    factory = create_quick_config if args.quick else create_default_config
    config = factory(
        data_dir=args.data_dir,
        original_file=args.original,
        imputed_file=args.imputed,
        results_dir=args.output_dir,
        n_jobs=args.n_jobs,
        timeout=args.timeout,
        show_progress=args.progress,
        progress_every=1 if args.quick else BATCH_CONFIG["progress_every"],
        random_seed=BATCH_CONFIG["random_seed"]
    )

    print("🔍 RI-CLPM 명세곡선분석 실행")
    print("=" * 60)
    print(f"실행 시간: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    # 1. 명세 격자
    grid = SpecificationGrid(config)
    specifications = grid.build()
    print(f"명세 수: {len(specifications)}개 {config.axis_sizes()}")

    if args.dry_run:
        first = specifications[0]
        definition = ModelBuilder(config).build(first.outcome, first.predictor,
                                                first.wave_count, first.controls)
        print(f"\n첫 번째 명세: {first.describe()}")
        print(definition.render())
        return 0

    # 2. 데이터 로드
    datasets = PanelDataLoader(config).load()

    # 3. 이전 결과 (이어서 실행)
    exporter = SpecCurveResultsExporter(config.results_dir)
    previous = None
    if args.resume:
        try:
            previous = exporter.load_results(filename=config.results_filename)
        except FileNotFoundError:
            logger.info("이전 결과가 없어 처음부터 실행합니다.")

    # 4. 배치 실행
    runner = BatchRunner(FitRunner(datasets, config=config), config=config)
    batch_result = runner.run(specifications, previous)

    # 5. 결과 저장
    saved_files = export_spec_curve_results(batch_result, config.results_dir, config.results_filename)

    summary = batch_result.summary
    print("\n" + "=" * 60)
    print("✅ 명세곡선분석 완료!")
    print("=" * 60)
    print(f"  전체 명세: {summary.total}")
    print(f"  시도: {summary.attempted} (성공 {summary.succeeded}, 실패 {summary.failed})")
    if summary.skipped:
        print(f"  건너뜀 (이전 성공): {summary.skipped}")
    print(f"\n📁 결과 파일:")
    for name, path in saved_files.items():
        print(f"  - {name}: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
