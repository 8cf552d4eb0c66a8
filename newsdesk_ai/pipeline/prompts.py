"""
提示词目录

13 种新闻写作风格的系统提示词与元信息，以及标准生成、自定义提示词、
改写、标题与摘要生成的提示词构建函数。提示词正文为西班牙语。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config import settings
from ..utils.html_utils import extract_text_content
from .models import GenerationRequest, JournalisticStyle, PromptPayload

DEFAULT_TOPIC = "Artículo sin título"
EXISTING_BODY_HINT_CHARS = 100
AUXILIARY_CONTENT_CHARS = 2000

_MARKDOWN_HINT = """

IMPORTANTE: Usa formato Markdown para resaltar elementos importantes:
- **Negritas** para nombres propios, términos clave y datos importantes
- *Cursivas* para énfasis sutil o citas textuales
- Mantén el formato natural y no abuses del resaltado"""

_VOZ_DEL_NORTE = (
    "Eres un periodista experimentado de La Voz del Norte Diario, un periódico "
    "regional argentino con más de 50 años de trayectoria."
)


@dataclass(frozen=True)
class StyleTemplate:
    """单个写作风格的提示词模板。"""

    style: JournalisticStyle
    name: str
    description: str
    system_prompt: str
    suggested_categories: tuple[str, ...]
    min_words: int
    max_words: int
    tone: str
    structure: tuple[str, ...]


_STYLES: dict[JournalisticStyle, StyleTemplate] = {
    JournalisticStyle.REESCRITURA_VOZ_DEL_NORTE: StyleTemplate(
        style=JournalisticStyle.REESCRITURA_VOZ_DEL_NORTE,
        name="Reescritura La Voz del Norte",
        description="Reescribe contenido existente con el estilo periodístico profesional de La Voz del Norte Diario",
        system_prompt=_VOZ_DEL_NORTE + """
Tu estilo periodístico se caracteriza por:
- Lenguaje claro, preciso y accesible para todo público
- Tono neutral pero cercano, evitando sensacionalismo
- Enfoque en hechos verificables y contexto regional
- Estructura clásica de noticia con pirámide invertida""" + _MARKDOWN_HINT,
        suggested_categories=("Nacionales", "Regionales", "Economía", "Deportes", "Espectaculos", "Medio Ambiente", "Opinión"),
        min_words=150,
        max_words=400,
        tone="neutral-profesional",
        structure=("Titular", "Lead", "Cuerpo", "Contexto", "Cierre"),
    ),
    JournalisticStyle.NOTICIA_OBJETIVA: StyleTemplate(
        style=JournalisticStyle.NOTICIA_OBJETIVA,
        name="Noticia Objetiva",
        description="Estilo clásico de noticia con pirámide invertida, objetiva y directa",
        system_prompt="""Eres un periodista profesional especializado en redacción objetiva de noticias.
Tu estilo sigue la estructura de pirámide invertida: lo más importante primero.
Respondes a las 6 preguntas fundamentales: qué, quién, cuándo, dónde, por qué y cómo.
No incluyes opiniones personales.""" + _MARKDOWN_HINT,
        suggested_categories=("Nacionales", "Regionales", "Internacionales", "Economía"),
        min_words=150,
        max_words=400,
        tone="neutral-formal",
        structure=("Titular", "Lead", "Cuerpo", "Contexto", "Cierre"),
    ),
    JournalisticStyle.REPORTAJE: StyleTemplate(
        style=JournalisticStyle.REPORTAJE,
        name="Reportaje",
        description="Narración profunda con investigación, testimonios y análisis detallado",
        system_prompt="""Eres un periodista de investigación especializado en reportajes extensos.
Combinas investigación rigurosa con narrativa envolvente, siempre basada en hechos.""" + _MARKDOWN_HINT,
        suggested_categories=("Nacionales", "Medio Ambiente", "Economía", "Regionales"),
        min_words=400,
        max_words=700,
        tone="narrativo-investigativo",
        structure=("Título", "Entrada", "Contexto", "Desarrollo", "Testimonios", "Análisis", "Cierre"),
    ),
    JournalisticStyle.CRONICA: StyleTemplate(
        style=JournalisticStyle.CRONICA,
        name="Crónica",
        description="Relato detallado con estilo narrativo, describe acontecimientos de forma vívida",
        system_prompt="""Eres un cronista con dominio del relato periodístico.
Narras los hechos en orden cronológico con descripciones vívidas y precisas.""" + _MARKDOWN_HINT,
        suggested_categories=("Regionales", "Deportes", "Espectaculos", "Nacionales"),
        min_words=300,
        max_words=600,
        tone="narrativo-literario",
        structure=("Título", "Escena inicial", "Desarrollo cronológico", "Descripciones", "Cierre"),
    ),
    JournalisticStyle.OPINION: StyleTemplate(
        style=JournalisticStyle.OPINION,
        name="Artículo de Opinión",
        description="Análisis subjetivo con argumentación sólida y postura definida",
        system_prompt="""Eres un columnista de opinión con criterio propio.
Defiendes una tesis clara con argumentos sólidos y refutas las objeciones principales.""" + _MARKDOWN_HINT,
        suggested_categories=("Opinión", "Economía", "Medio Ambiente", "Nacionales"),
        min_words=300,
        max_words=500,
        tone="persuasivo-personal",
        structure=("Título", "Tesis", "Argumentos", "Refutación", "Conclusión"),
    ),
    JournalisticStyle.ENTREVISTA: StyleTemplate(
        style=JournalisticStyle.ENTREVISTA,
        name="Entrevista",
        description="Formato pregunta-respuesta con introducción contextual del entrevistado",
        system_prompt="""Eres un periodista especializado en entrevistas.
Presentas al entrevistado con contexto y estructuras el texto en preguntas y respuestas.""" + _MARKDOWN_HINT,
        suggested_categories=("Nacionales", "Deportes", "Espectaculos", "Economía"),
        min_words=400,
        max_words=700,
        tone="conversacional-formal",
        structure=("Presentación", "Contexto", "Preguntas", "Respuestas", "Cierre"),
    ),
    JournalisticStyle.INVESTIGACION: StyleTemplate(
        style=JournalisticStyle.INVESTIGACION,
        name="Periodismo de Investigación",
        description="Revelación de información oculta con rigor documental y fuentes verificables",
        system_prompt="""Eres un periodista de investigación con rigor documental.
Expones hallazgos respaldados por evidencias y explicas la metodología empleada.""" + _MARKDOWN_HINT,
        suggested_categories=("Nacionales", "Economía", "Medio Ambiente"),
        min_words=500,
        max_words=800,
        tone="investigativo-riguroso",
        structure=("Revelación", "Metodología", "Hallazgos", "Evidencias", "Reacciones", "Contexto", "Conclusiones"),
    ),
    JournalisticStyle.INFORME_ESPECIAL: StyleTemplate(
        style=JournalisticStyle.INFORME_ESPECIAL,
        name="Informe Especial",
        description="Análisis profundo de temas complejos con datos, gráficos y múltiples ángulos",
        system_prompt="""Eres un periodista analítico que elabora informes especiales.
Explicas temas complejos con datos, antecedentes, comparativas y proyecciones.""" + _MARKDOWN_HINT,
        suggested_categories=("Economía", "Medio Ambiente", "Nacionales"),
        min_words=600,
        max_words=900,
        tone="analítico-educativo",
        structure=("Resumen", "Panorama", "Antecedentes", "Análisis", "Comparativa", "Expertos", "Proyecciones", "Conclusiones"),
    ),
    JournalisticStyle.NOTA_BREVE: StyleTemplate(
        style=JournalisticStyle.NOTA_BREVE,
        name="Nota Breve",
        description="Información concisa y directa, ideal para noticias de última hora",
        system_prompt="""Eres un redactor de noticias de última hora.
Escribes notas breves, directas y precisas, sin adornos.""" + _MARKDOWN_HINT,
        suggested_categories=("Nacionales", "Internacionales", "Regionales", "Deportes"),
        min_words=100,
        max_words=200,
        tone="directo-urgente",
        structure=("Titular", "Qué-quién-cuándo-dónde", "Cómo-contexto", "Consecuencia"),
    ),
    JournalisticStyle.OPINION_NEUTRAL_DATOS: StyleTemplate(
        style=JournalisticStyle.OPINION_NEUTRAL_DATOS,
        name="Opinión Neutral - Datos",
        description="Análisis basado primordialmente en datos, estadísticas y hechos verificables",
        system_prompt="""Eres un analista que escribe columnas basadas en datos.
Interpretas estadísticas y hechos verificables sin tomar partido.""" + _MARKDOWN_HINT,
        suggested_categories=("Economía", "Medio Ambiente", "Nacionales", "Regionales"),
        min_words=400,
        max_words=600,
        tone="analítico-neutral",
        structure=("Título", "Contexto estadístico", "Análisis cuantitativo", "Interpretación", "Conclusiones"),
    ),
    JournalisticStyle.OPINION_CRITICA_SOCIAL: StyleTemplate(
        style=JournalisticStyle.OPINION_CRITICA_SOCIAL,
        name="Opinión Crítica Social",
        description="Análisis crítico desde la perspectiva de justicia social, equidad e inclusión",
        system_prompt="""Eres un columnista con mirada crítica sobre la realidad social.
Analizas los hechos desde la justicia social, la equidad y la inclusión.""" + _MARKDOWN_HINT,
        suggested_categories=("Nacionales", "Medio Ambiente", "Economía", "Regionales", "Opinión"),
        min_words=400,
        max_words=700,
        tone="crítico-social",
        structure=("Título", "Contexto social", "Análisis crítico", "Alternativas", "Llamado a acción"),
    ),
    JournalisticStyle.OPINION_CRITICA_POLITICA: StyleTemplate(
        style=JournalisticStyle.OPINION_CRITICA_POLITICA,
        name="Opinión Crítica Política",
        description="Análisis político con mirada nacional y popular, enfocada en el pueblo y la democracia",
        system_prompt="""Eres un columnista político con mirada nacional y popular.
Analizas la coyuntura poniendo el foco en el pueblo y la democracia.""" + _MARKDOWN_HINT,
        suggested_categories=("Nacionales", "Economía", "Regionales", "Opinión"),
        min_words=500,
        max_words=800,
        tone="crítico-nacional-popular",
        structure=("Título", "Contexto nacional", "Análisis político", "Propuestas democráticas", "Visión nacional"),
    ),
    JournalisticStyle.OPINION_LIBERAL_ECONOMICA: StyleTemplate(
        style=JournalisticStyle.OPINION_LIBERAL_ECONOMICA,
        name="Opinión Liberal Económica",
        description="Análisis económico con enfoque en el mercado, emprendimiento y libertad económica",
        system_prompt="""Eres un columnista económico de orientación liberal.
Analizas los temas desde los mercados eficientes, los incentivos y el emprendimiento.""" + _MARKDOWN_HINT,
        suggested_categories=("Economía", "Nacionales", "Regionales", "Opinión"),
        min_words=400,
        max_words=700,
        tone="liberal-económico",
        structure=("Título", "Contexto económico", "Análisis liberal", "Propuestas de mercado", "Proyección de crecimiento"),
    ),
}


def get_style(style: JournalisticStyle | str) -> StyleTemplate:
    """按风格取模板，未知风格抛出 ValueError。"""
    return _STYLES[JournalisticStyle(style)]


def styles_for_category(category: str) -> list[JournalisticStyle]:
    """返回推荐用于某个分类的风格列表。"""
    return [t.style for t in _STYLES.values() if category in t.suggested_categories]


def _payload(system: str, user: str, *, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> PromptPayload:
    return PromptPayload(
        system=system,
        user=user,
        temperature=settings.generation_temperature if temperature is None else temperature,
        max_tokens=settings.generation_max_tokens if max_tokens is None else max_tokens,
    )


def _plain(body: Optional[str]) -> str:
    return extract_text_content(body or "")


def build_custom_prompt(request: GenerationRequest, research: str) -> PromptPayload:
    topic = (request.topic or "").strip() or DEFAULT_TOPIC
    system = (
        "Eres un periodista profesional experto. Genera contenido de alta calidad basado "
        "ÚNICAMENTE en hechos verificables. NO inventes información, nombres o eventos que "
        "no estén en los datos proporcionados."
    )
    user = f"INSTRUCCIONES DEL USUARIO:\n{(request.custom_prompt or '').strip()}\n\n"
    user += f"TEMA PRINCIPAL: {topic}\n"
    user += f"CATEGORÍA: {request.category}\n\n"
    if research:
        user += (
            "INFORMACIÓN VERIFICABLE DE FUENTES CONFIABLES (USA ÚNICAMENTE ESTA INFORMACIÓN):\n"
            f"{research}\n\n"
            "REGLAS CRÍTICAS: NO inventes nombres, personas, fechas, eventos o datos que no "
            "estén explícitamente en la información proporcionada.\n\n"
        )
    user += (
        "IMPORTANTE: Si no hay información de referencia verificada, genera contenido genérico "
        "basado en conocimientos generales, pero evita cualquier detalle específico inventado.\n\n"
    )
    user += "Genera el artículo ahora:"
    return _payload(system, user)


def build_standard_prompt(request: GenerationRequest, research: str) -> PromptPayload:
    template = get_style(request.style)
    topic = (request.topic or "").strip() or DEFAULT_TOPIC
    system = (
        template.system_prompt
        + " CRÍTICO: Usa ÚNICAMENTE información verificable del contexto proporcionado. "
        "NO inventes nombres, personas, eventos, fechas o datos específicos. Si no hay "
        "información suficiente, genera contenido genérico pero factual."
    )

    user = f"TEMA DEL ARTÍCULO: {topic}\n"
    user += f"CATEGORÍA: {request.category}\n"
    user += f"ESTILO REQUERIDO: {template.name}\n\n"
    if research:
        user += (
            "INFORMACIÓN VERIFICABLE DE FUENTES CONFIABLES (USA ÚNICAMENTE ESTA INFORMACIÓN):\n"
            f"{research}\n\n"
            "REGLAS ESTRICTAS - NO VIOLACIÓN PERMITIDA:\n"
            "- NO inventes nombres de personas, lugares específicos, fechas o eventos\n"
            "- NO agregues información que no esté explícitamente en las fuentes\n"
            "- Mantén toda la información basada en hechos verificables de las fuentes proporcionadas\n\n"
        )
    else:
        user += (
            "NOTA: No hay información específica verificada disponible. Genera contenido basado "
            "en conocimientos generales del tema, pero evita cualquier detalle específico inventado.\n\n"
        )

    if len(_plain(request.existing_body)) > EXISTING_BODY_HINT_CHARS:
        user += (
            "NOTA: Hay contenido previo que puedes usar como base si es relevante, pero "
            f'concéntrate en desarrollar el tema "{topic}" de forma completa.\n\n'
        )

    sources_rule = (
        "Incorpora ÚNICAMENTE datos verificados de las fuentes proporcionadas, sin invenciones ni especulaciones"
        if research
        else "Desarrolla el tema con información general verificable, sin detalles específicos inventados"
    )
    user += "INSTRUCCIONES:\n"
    user += f'- Escribe un artículo periodístico completo sobre "{topic}"\n'
    user += f"- Longitud: {template.min_words}-{template.max_words} palabras\n"
    user += f"- Estilo: {template.description}\n"
    user += f"- {sources_rule}\n"
    user += "- Si no tienes información específica sobre un aspecto, dilo explícitamente\n"
    user += "- Comienza con el título en negrita (**Título**) y una entradilla en cursiva (*Entradilla*)\n"
    user += "- Usa un formato estructurado con párrafos bien organizados\n\n"
    user += "Genera el artículo ahora:"
    return _payload(system, user)


def build_rewrite_prompt(request: GenerationRequest, research: str) -> PromptPayload:
    template = get_style(JournalisticStyle.REESCRITURA_VOZ_DEL_NORTE)
    user = (
        "Reescribe el siguiente artículo mejorando su calidad, claridad y estilo periodístico. "
        "Mantén el mismo tema y enfoque principal.\n\n"
        f"Título: {(request.topic or '').strip()}\n"
        f"Categoría: {request.category}\n\n"
        f"Contenido original:\n{_plain(request.existing_body)}\n\n"
        "Reescribe el artículo de forma profesional y atractiva."
    )
    if research:
        user += (
            f"\n\n{research}\n\nIMPORTANTE: Usa la información verificada de arriba como base "
            "para la reescritura, especialmente si proviene de la fuente original del artículo."
        )
    return _payload(template.system_prompt, user)


def build_generation_prompt(request: GenerationRequest, research: str = "") -> PromptPayload:
    """
    根据请求选择提示词模式

    - 有自定义提示词且启用（或没有主题）→ 自定义模式
    - 有主题 → 标准风格模式
    - 只有待改写正文 → 改写模式
    """
    custom = (request.custom_prompt or "").strip()
    topic = (request.topic or "").strip()
    if custom and (request.use_custom_prompt or not topic):
        return build_custom_prompt(request, research)
    if topic:
        return build_standard_prompt(request, research)
    return build_rewrite_prompt(request, research)


def build_title_prompt(body: str, category: str, current_title: str = "") -> PromptPayload:
    user = f"""{_VOZ_DEL_NORTE}

Tu tarea es crear un título impactante y periodístico para el siguiente artículo. El título debe:

- Ser atractivo y llamativo para captar la atención del lector
- Mantener el rigor periodístico y la objetividad
- Reflejar fielmente el contenido del artículo
- Tener entre 8-15 palabras aproximadamente
- Usar mayúsculas SOLO en la primera palabra y en nombres propios
- Ser apropiado para la categoría: {category}

CONTENIDO DEL ARTÍCULO:
{_plain(body)[:AUXILIARY_CONTENT_CHARS]}

INSTRUCCIONES ESPECÍFICAS:
- Si ya hay un título existente ("{current_title}"), úsalo como inspiración pero crea uno nuevo y mejor
- El título debe resumir la esencia del artículo en pocas palabras

Responde ÚNICAMENTE con el título generado, sin comillas ni explicaciones adicionales."""
    system = (
        "Eres un periodista experimentado especializado en crear títulos periodísticos "
        "impactantes, objetivos y basados en hechos verificables."
    )
    return _payload(system, user, temperature=0.0, max_tokens=100)


def build_description_prompt(body: str, category: str, current_description: str = "") -> PromptPayload:
    user = f"""{_VOZ_DEL_NORTE}

Tu tarea es crear una descripción breve y atractiva para el siguiente artículo. La descripción debe:

- Ser un resumen conciso pero completo del contenido principal (entre 200-300 caracteres)
- Captar la atención del lector y motivarlo a leer el artículo completo
- Mantener el tono periodístico profesional
- Ser apropiada para la categoría: {category}

CONTENIDO DEL ARTÍCULO:
{_plain(body)[:AUXILIARY_CONTENT_CHARS]}

INSTRUCCIONES ESPECÍFICAS:
- Si ya hay una descripción existente ("{current_description}"), úsala como inspiración pero crea una nueva
- NO uses comillas en la descripción

Responde ÚNICAMENTE con la descripción generada, sin explicaciones adicionales."""
    system = (
        "Eres un periodista experimentado especializado en crear descripciones periodísticas "
        "breves y atractivas."
    )
    return _payload(system, user, temperature=0.0, max_tokens=200)
