from __future__ import annotations

"""Pipeline 领域模型。"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class JournalisticStyle(str, Enum):
    """新闻写作风格。"""

    NOTICIA_OBJETIVA = "noticia-objetiva"
    REPORTAJE = "reportaje"
    CRONICA = "cronica"
    OPINION = "opinion"
    ENTREVISTA = "entrevista"
    INVESTIGACION = "investigacion"
    INFORME_ESPECIAL = "informe-especial"
    NOTA_BREVE = "nota-breve"
    REESCRITURA_VOZ_DEL_NORTE = "reescritura-voz-del-norte"
    OPINION_NEUTRAL_DATOS = "opinion-neutral-datos"
    OPINION_CRITICA_SOCIAL = "opinion-critica-social"
    OPINION_CRITICA_POLITICA = "opinion-critica-politica"
    OPINION_LIBERAL_ECONOMICA = "opinion-liberal-economica"


class OutcomeKind(str, Enum):
    """单次供应商调用的结果类别。"""

    SUCCESS = "success"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSIENT_ERROR = "transient_error"
    FATAL_ERROR = "fatal_error"


@dataclass(frozen=True)
class GenerationRequest:
    """文章生成请求。

    topic / custom_prompt / existing_body 至少一项非空（去除空白后），
    否则在任何网络调用之前被拒绝。
    """

    topic: Optional[str] = None
    style: JournalisticStyle = JournalisticStyle.NOTICIA_OBJETIVA
    custom_prompt: Optional[str] = None
    use_custom_prompt: bool = False
    category: str = ""
    research_context: Optional[str] = None
    existing_body: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "style", JournalisticStyle(self.style))

    def is_empty(self) -> bool:
        return not any(
            (value or "").strip()
            for value in (self.topic, self.custom_prompt, self.existing_body)
        )


@dataclass(frozen=True)
class ProviderConfig:
    """供应商配置快照（每次调用时从配置构建）。"""

    name: str
    model_candidates: tuple[str, ...]
    min_call_interval_ms: int = 0
    is_configured: bool = False


@dataclass(frozen=True)
class PromptPayload:
    """各适配器共用的请求结构。"""

    system: str
    user: str
    temperature: float = 0.7
    max_tokens: int = 4000


@dataclass(frozen=True)
class AttemptOutcome:
    """一次供应商调用的结构化结果。"""

    kind: OutcomeKind
    text: str = ""
    message: str = ""
    model: Optional[str] = None

    @classmethod
    def success(cls, text: str, model: Optional[str] = None) -> "AttemptOutcome":
        return cls(OutcomeKind.SUCCESS, text=text, model=model)

    @classmethod
    def quota_exceeded(cls, message: str, model: Optional[str] = None) -> "AttemptOutcome":
        return cls(OutcomeKind.QUOTA_EXCEEDED, message=message, model=model)

    @classmethod
    def transient(cls, message: str, model: Optional[str] = None) -> "AttemptOutcome":
        return cls(OutcomeKind.TRANSIENT_ERROR, message=message, model=model)

    @classmethod
    def fatal(cls, message: str, model: Optional[str] = None) -> "AttemptOutcome":
        return cls(OutcomeKind.FATAL_ERROR, message=message, model=model)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


@dataclass(frozen=True)
class ChainResult:
    """回退链中第一个成功的结果。"""

    provider: str
    model: Optional[str]
    text: str


@dataclass(frozen=True)
class ExtractedFields:
    """从模型原始输出中抽取的结构化字段。"""

    title: str
    description: str
    body: str


@dataclass
class GeneratedArticle:
    """最终生成的文章，所有权交给调用方。"""

    title: str
    description: str
    body_html: str
    provider_used: str
    prompt_used: str
    model_used: Optional[str] = None
    style: Optional[str] = None
    category: str = ""
