"""
HTML 工具函数
"""

import re

from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction

ALLOWED_TAGS = frozenset({
    "p", "br", "strong", "em", "b", "i", "u",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "a", "img", "blockquote", "figure", "figcaption",
    "table", "thead", "tbody", "tr", "th", "td",
    "code", "pre", "span", "div",
})

ALLOWED_ATTRIBUTES = frozenset({
    "href", "title", "target", "rel", "src", "alt", "width", "height", "class",
})

# 连同内容一起移除的元素
DROP_WITH_CONTENT = frozenset({
    "script", "style", "iframe", "object", "embed", "noscript", "template",
    "svg", "math", "head", "title", "textarea", "select", "frame", "frameset",
    "applet",
})

URL_ATTRIBUTES = frozenset({"href", "src"})
_DANGEROUS_SCHEMES = ("javascript:", "vbscript:", "data:")
_URL_NOISE_RE = re.compile(r"[\x00-\x20\x7f]+")

_NON_ELEMENT_NODES = (Comment, Declaration, Doctype, CData, ProcessingInstruction)


def _is_dangerous_url(value: str) -> bool:
    compact = _URL_NOISE_RE.sub("", value or "").lower()
    return compact.startswith(_DANGEROUS_SCHEMES)


def sanitize_html(html_content: str) -> str:
    """
    按白名单清理 HTML 内容

    白名单之外的标签被展开（保留文本），script/style 等元素连同内容一起移除，
    注释被删除，白名单之外的属性（包括 data-* 与 on*）被删除，
    href/src 中的 javascript:/vbscript:/data: 链接被删除。

    Args:
        html_content: 原始 HTML 内容

    Returns:
        清理后的 HTML 内容
    """
    if not html_content:
        return ""

    # html.parser 不会额外包裹 <html><body>，适合处理片段
    soup = BeautifulSoup(str(html_content), "html.parser")

    for node in soup.find_all(string=lambda s: isinstance(s, _NON_ELEMENT_NODES)):
        node.extract()

    for tag in soup.find_all(list(DROP_WITH_CONTENT)):
        if not tag.decomposed:
            tag.decompose()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
            continue
        for attr in list(tag.attrs.keys()):
            if attr not in ALLOWED_ATTRIBUTES:
                del tag[attr]
            elif attr in URL_ATTRIBUTES and _is_dangerous_url(str(tag.get(attr, ""))):
                del tag[attr]

    return str(soup).strip()


def extract_text_content(html_content: str) -> str:
    """
    从 HTML 中提取纯文本内容

    Args:
        html_content: HTML 内容

    Returns:
        纯文本内容
    """
    if not html_content or not str(html_content).strip():
        return ""
    soup = BeautifulSoup(html_content, "lxml")
    return soup.get_text(separator=" ", strip=True)


def clean_llm_response(response: str) -> str:
    """
    清理 LLM 返回的文本

    移除包裹整段输出的 markdown 代码块标记以及泄漏的思维链标签

    Args:
        response: LLM 响应

    Returns:
        清理后的文本
    """
    clean = (response or "").strip()

    # 清理模型可能泄漏的思维链标签
    clean = re.sub(
        r"<\s*think\b[^>]*>.*?<\s*/\s*think\s*>",
        "",
        clean,
        flags=re.IGNORECASE | re.DOTALL,
    ).strip()

    # 移除 markdown 代码块
    fence = re.match(r"^```[a-zA-Z]*\s*\n", clean)
    if fence and clean.endswith("```"):
        clean = clean[fence.end():-3]

    return clean.strip()
