"""
Specification Curve Exceptions

명세곡선분석(SCA) 엔진에서 사용하는 예외 클래스들을 정의합니다.
ConfigurationError는 모델 구성 단계, FitError와 ExtractionError는
개별 명세의 추정/추출 단계에서 발생하며 BatchRunner가 명세 단위로 격리합니다.
"""


class SpecCurveError(Exception):
    """명세곡선분석 예외 기본 클래스"""


class ConfigurationError(SpecCurveError):
    """지원하지 않는 축 값 또는 잘못된 설정"""


class FitError(SpecCurveError):
    """SEM 추정 실패 (수렴 실패, 랭크 결손, 추정방법-데이터 불일치)"""


class ExtractionError(SpecCurveError):
    """추정 결과에서 필요한 라벨 파라미터를 찾을 수 없음"""


class SolverTimeoutError(FitError):
    """명세별 제한시간 초과 (추정 실패와 동일하게 처리)"""


# BatchRunner가 명세 단위로 격리하는 예외
CONTAINED_ERRORS = (ConfigurationError, FitError, ExtractionError)
