"""
RI-CLPM Model Builder

무선절편 교차지연 패널모델(RI-CLPM)을 구축하는 클래스와 함수들을 제공합니다.
모델은 문장 단위의 내부 표현(Statement)으로 조립되며,
semopy 모델 스펙 텍스트로는 render() 시점에만 변환됩니다.

생성되는 모델 구성:
1. 웨이브별 잠재변수 (관측지표에 1로 고정된 적재량)
2. 변수별 무선절편 (모든 웨이브 지표에 1로 고정된 적재량)
3. 관측지표 잔차분산 0 고정
4. 무선절편과 웨이브 잠재변수 간 공분산 0 고정
5. 무선절편 간 공분산 (ri_cov)
6. 1차 웨이브 공분산 (cov_wave1), 2차 이후 웨이브 공분산 (cov_later, 공유 라벨)
7. 자기회귀/교차지연 경로 (전이 간 공유 라벨)
8. 통제변수 회귀 (통제변수가 있을 때만)
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from .config import SpecCurveConfig, create_default_config
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# 공유 파라미터 라벨
AR_OUTCOME = 'ar_outcome'
AR_PREDICTOR = 'ar_predictor'
CL_PREDICTOR_OUTCOME = 'cl_predictor_outcome'  # 예측변수(t-1) -> 결과변수(t)
CL_OUTCOME_PREDICTOR = 'cl_outcome_predictor'  # 결과변수(t-1) -> 예측변수(t)
RI_COV = 'ri_cov'
COV_WAVE1 = 'cov_wave1'
COV_LATER = 'cov_later'

MODEL_LABELS = (
    AR_OUTCOME,
    AR_PREDICTOR,
    CL_PREDICTOR_OUTCOME,
    CL_OUTCOME_PREDICTOR,
    RI_COV,
    COV_WAVE1,
    COV_LATER
)

OPERATORS = {
    'loading': '=~',
    'regression': '~',
    'covariance': '~~',
    'variance': '~~'
}

# 고정값 수식자 (라벨이 아닌 수식자)
FIXED_ONE = '1'
FIXED_ZERO = '0'


def observed_name(prefix: str, variable: str) -> str:
    """웨이브 관측지표 이름 (예: a_sat_life)"""
    return f"{prefix}_{variable}"


def wave_latent_name(prefix: str, variable: str) -> str:
    """웨이브 잠재변수 이름 (예: wa_sat_life)"""
    return f"w{prefix}_{variable}"


def intercept_name(variable: str) -> str:
    """무선절편 이름 (예: ri_sat_life)"""
    return f"ri_{variable}"


@dataclass(frozen=True)
class Term:
    """우변 항 (수식자는 고정값 또는 공유 라벨)"""

    name: str
    modifier: Optional[str] = None

    @property
    def label(self) -> Optional[str]:
        if self.modifier is None or self.modifier in (FIXED_ONE, FIXED_ZERO):
            return None
        return self.modifier

    def render(self) -> str:
        if self.modifier is None:
            return self.name
        return f"{self.modifier}*{self.name}"


@dataclass(frozen=True)
class Statement:
    """모델 문장 하나 (적재량, 회귀, 공분산, 분산)"""

    kind: str
    lhs: str
    terms: Tuple[Term, ...]

    def __post_init__(self):
        if self.kind not in OPERATORS:
            raise ConfigurationError(f"알 수 없는 문장 유형입니다: {self.kind}")

    @property
    def operator(self) -> str:
        return OPERATORS[self.kind]

    def references(self, name: str) -> bool:
        return self.lhs == name or any(term.name == name for term in self.terms)

    def labels(self) -> List[str]:
        return [term.label for term in self.terms if term.label]

    def labelled_edges(self) -> List[Tuple[str, Tuple[str, str, str]]]:
        """
        (라벨, (lval, op, rval)) 목록

        semopy inspect() 기준 방향으로 반환합니다. 적재량은 'x ~ eta'로 표시됩니다.
        """
        edges = []
        for term in self.terms:
            if not term.label:
                continue
            if self.kind == 'loading':
                edges.append((term.label, (term.name, '~', self.lhs)))
            else:
                edges.append((term.label, (self.lhs, self.operator, term.name)))
        return edges

    def render(self) -> str:
        if not self.terms:
            return ''
        return f"{self.lhs} {self.operator} " + " + ".join(term.render() for term in self.terms)


@dataclass(frozen=True)
class PooledCovariance:
    """
    여러 웨이브의 동시 공분산을 하나의 공유 라벨로 묶은 문장

    2차~W차 웨이브의 결과변수-예측변수 공분산을 하나의 추정치로 통합합니다.
    """

    label: str
    pairs: Tuple[Tuple[str, str], ...]
    kind: str = field(default='pooled_covariance', init=False)

    @property
    def operator(self) -> str:
        return '~~'

    def references(self, name: str) -> bool:
        return any(name in pair for pair in self.pairs)

    def labels(self) -> List[str]:
        return [self.label] if self.pairs else []

    def labelled_edges(self) -> List[Tuple[str, Tuple[str, str, str]]]:
        return [(self.label, (lhs, '~~', rhs)) for lhs, rhs in self.pairs]

    def render(self) -> str:
        return "\n".join(f"{lhs} ~~ {self.label}*{rhs}" for lhs, rhs in self.pairs)


@dataclass(frozen=True)
class ModelDefinition:
    """RI-CLPM 모델 정의 (데이터와 무관한 순수 데이터)"""

    outcome: str
    predictor: str
    wave_count: int
    controls: Tuple[str, ...]
    wave_prefixes: Tuple[str, ...]
    statements: Tuple = ()

    def render(self) -> str:
        """semopy 모델 스펙 텍스트 생성 (빈 문장 제거)"""
        lines = []
        for statement in self.statements:
            for line in statement.render().split("\n"):
                if line.strip():
                    lines.append(line.strip())
        return "\n".join(lines)

    def statements_of_kind(self, kind: str) -> List:
        return [s for s in self.statements if s.kind == kind]

    def labels(self) -> List[str]:
        """등장 순서대로 중복 없는 라벨 목록"""
        seen = []
        for statement in self.statements:
            for label in statement.labels():
                if label not in seen:
                    seen.append(label)
        return seen

    def labelled_edges(self) -> Dict[str, List[Tuple[str, str, str]]]:
        """라벨 -> 해당 라벨이 붙은 경로 목록 (문장 순서)"""
        edges: Dict[str, List[Tuple[str, str, str]]] = {}
        for statement in self.statements:
            for label, edge in statement.labelled_edges():
                edges.setdefault(label, []).append(edge)
        return edges

    def indicators(self) -> List[str]:
        """결과변수와 예측변수의 웨이브별 관측지표"""
        prefixes = self.wave_prefixes[:self.wave_count]
        return [observed_name(p, var) for var in (self.outcome, self.predictor) for p in prefixes]

    def observed_variables(self) -> List[str]:
        """데이터에 필요한 관측변수 (지표 + 통제변수)"""
        return self.indicators() + list(self.controls)

    def latent_variables(self) -> List[str]:
        prefixes = self.wave_prefixes[:self.wave_count]
        latents = [wave_latent_name(p, var) for var in (self.outcome, self.predictor) for p in prefixes]
        return latents + [intercept_name(self.outcome), intercept_name(self.predictor)]

    def __str__(self) -> str:
        return self.render()


class ModelBuilder:
    """RI-CLPM 모델 구축 클래스"""

    def __init__(self, config: Optional[SpecCurveConfig] = None):
        """
        초기화

        Args:
            config (Optional[SpecCurveConfig]): 변수 목록과 웨이브 접두사를 담은 설정
        """
        self.config = config or create_default_config()

    def build(self,
              outcome: str,
              predictor: str,
              wave_count: int,
              controls: Optional[Iterable[str]] = None) -> ModelDefinition:
        """
        RI-CLPM 모델 정의 생성

        Args:
            outcome (str): 결과변수 (삶의 만족도 영역)
            predictor (str): 예측변수
            wave_count (int): 웨이브 수
            controls (Optional[Iterable[str]]): 통제변수 (없으면 통제 회귀 생략)

        Returns:
            ModelDefinition: 모델 정의
        """
        self._check_variables(outcome, predictor)
        wave_count = self.config.check_wave_count(wave_count)
        control_tuple = self._normalize_controls(controls)

        prefixes = tuple(self.config.wave_prefixes[:wave_count])
        variables = (outcome, predictor)

        statements = []
        statements += self._wave_latents(variables, prefixes)
        statements += self._random_intercepts(variables, prefixes)
        statements += self._indicator_variances(variables, prefixes)
        statements += self._intercept_constraints(outcome, predictor, prefixes)
        statements += self._concurrent_covariances(outcome, predictor, prefixes)
        statements += self._structural_paths(outcome, predictor, prefixes)
        statements += self._control_regressions(variables, prefixes, control_tuple)

        definition = ModelDefinition(
            outcome=outcome,
            predictor=predictor,
            wave_count=wave_count,
            controls=control_tuple,
            wave_prefixes=tuple(self.config.wave_prefixes),
            statements=tuple(statements)
        )

        logger.debug(f"RI-CLPM 생성: {outcome} ~ {predictor}, {wave_count}웨이브, "
                     f"통제변수 {len(control_tuple)}개, 문장 {len(statements)}개")
        return definition

    def _check_variables(self, outcome: str, predictor: str):
        if outcome not in self.config.outcomes:
            raise ConfigurationError(f"알 수 없는 결과변수입니다: {outcome}")
        if predictor != self.config.predictor:
            raise ConfigurationError(f"알 수 없는 예측변수입니다: {predictor}")

    def _normalize_controls(self, controls: Optional[Iterable[str]]) -> Tuple[str, ...]:
        """통제변수를 설정 순서로 정렬 (집합 입력도 결정적 순서 보장)"""
        if not controls:
            return ()
        requested = set(controls)
        unknown = requested - set(self.config.controls)
        if unknown:
            raise ConfigurationError(f"알 수 없는 통제변수입니다: {sorted(unknown)}")
        return tuple(c for c in self.config.controls if c in requested)

    def _wave_latents(self, variables: Sequence[str], prefixes: Sequence[str]) -> List[Statement]:
        return [
            Statement('loading', wave_latent_name(p, var), (Term(observed_name(p, var), FIXED_ONE),))
            for var in variables
            for p in prefixes
        ]

    def _random_intercepts(self, variables: Sequence[str], prefixes: Sequence[str]) -> List[Statement]:
        return [
            Statement('loading', intercept_name(var),
                      tuple(Term(observed_name(p, var), FIXED_ONE) for p in prefixes))
            for var in variables
        ]

    def _indicator_variances(self, variables: Sequence[str], prefixes: Sequence[str]) -> List[Statement]:
        return [
            Statement('variance', observed_name(p, var), (Term(observed_name(p, var), FIXED_ZERO),))
            for var in variables
            for p in prefixes
        ]

    def _intercept_constraints(self, outcome: str, predictor: str,
                               prefixes: Sequence[str]) -> List[Statement]:
        """무선절편과 웨이브 잠재변수 간 공분산 0 고정 (같은 변수, 다른 변수 모두)"""
        statements = []
        for intercept_var, other_var in ((outcome, predictor), (predictor, outcome)):
            for var in (intercept_var, other_var):
                statements.append(Statement(
                    'covariance',
                    intercept_name(intercept_var),
                    tuple(Term(wave_latent_name(p, var), FIXED_ZERO) for p in prefixes)
                ))
        return statements

    def _concurrent_covariances(self, outcome: str, predictor: str,
                                prefixes: Sequence[str]) -> List:
        first, later = prefixes[0], prefixes[1:]
        return [
            Statement('covariance', intercept_name(outcome), (Term(intercept_name(predictor), RI_COV),)),
            Statement('covariance', wave_latent_name(first, outcome),
                      (Term(wave_latent_name(first, predictor), COV_WAVE1),)),
            PooledCovariance(COV_LATER, tuple(
                (wave_latent_name(p, outcome), wave_latent_name(p, predictor)) for p in later
            ))
        ]

    def _structural_paths(self, outcome: str, predictor: str,
                          prefixes: Sequence[str]) -> List[Statement]:
        """2차 웨이브부터 자기회귀 및 교차지연 경로"""
        statements = []
        for previous, current in zip(prefixes, prefixes[1:]):
            statements.append(Statement('regression', wave_latent_name(current, outcome), (
                Term(wave_latent_name(previous, outcome), AR_OUTCOME),
                Term(wave_latent_name(previous, predictor), CL_PREDICTOR_OUTCOME)
            )))
            statements.append(Statement('regression', wave_latent_name(current, predictor), (
                Term(wave_latent_name(previous, predictor), AR_PREDICTOR),
                Term(wave_latent_name(previous, outcome), CL_OUTCOME_PREDICTOR)
            )))
        return statements

    def _control_regressions(self, variables: Sequence[str], prefixes: Sequence[str],
                             controls: Tuple[str, ...]) -> List[Statement]:
        if not controls:
            return []
        control_terms = tuple(Term(control) for control in controls)
        return [
            Statement('regression', observed_name(p, var), control_terms)
            for var in variables
            for p in prefixes
        ]


def build_riclpm_model(outcome: str,
                       predictor: str,
                       wave_count: int,
                       controls: Optional[Iterable[str]] = None,
                       config: Optional[SpecCurveConfig] = None) -> ModelDefinition:
    """
    RI-CLPM 모델 정의 생성 편의 함수

    Args:
        outcome (str): 결과변수
        predictor (str): 예측변수
        wave_count (int): 웨이브 수
        controls (Optional[Iterable[str]]): 통제변수
        config (Optional[SpecCurveConfig]): 설정

    Returns:
        ModelDefinition: 모델 정의
    """
    return ModelBuilder(config).build(outcome, predictor, wave_count, controls)
