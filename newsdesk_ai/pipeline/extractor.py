"""
字段抽取（Field Extractor）。

把模型返回的松散文本拆成标题、摘要和正文：

- 第一行非空文本整行为 ``**标题**`` 且内容超过 5 个字符 → 标题
- 紧随其后的非空行整行为 ``*摘要*`` 且内容超过 10 个字符 → 摘要（最多 300 字符）
- 其余部分 → 正文

抽取永不抛出异常；没有任何标记时整段文本都是正文。
"""

from __future__ import annotations

import re
from typing import Optional

from .models import ExtractedFields

TITLE_MIN_CHARS = 5
DESCRIPTION_MIN_CHARS = 10
DESCRIPTION_MAX_CHARS = 300
FALLBACK_TITLE_CHARS = 80

_TITLE_LINE_RE = re.compile(r"^\*\*((?:(?!\*\*).)+)\*\*$")
_DESCRIPTION_LINE_RE = re.compile(r"^\*(?!\*)(.+?)(?<!\*)\*$")
_MARKUP_RE = re.compile(r"(\*\*|__|\*|_|`|^#{1,6}\s*)", re.MULTILINE)
_TAG_RE = re.compile(r"<[^>]+>")

# 常见的助手式开场白与结尾追问（西班牙语）
_INTRO_PATTERNS = [
    re.compile(r"^\s*claro[,!.]?\s*aqu[ií] tienes[^\n]*\n+", re.IGNORECASE),
    re.compile(r"^\s*aqu[ií] tienes[^\n]*\n+", re.IGNORECASE),
    re.compile(r"^\s*te presento[^\n]*\n+", re.IGNORECASE),
    re.compile(r"^\s*esta es una[^\n]*:\s*\n+", re.IGNORECASE),
    re.compile(r"^\s*basado en[^\n]*:\s*\n+", re.IGNORECASE),
    re.compile(r"^\s*seg[uú]n la informaci[oó]n[^\n]*:\s*\n+", re.IGNORECASE),
]
_SEPARATOR_RE = re.compile(r"^\s*-{3,}\s*$", re.MULTILINE)
_OUTRO_PATTERNS = [
    re.compile(r"\n+\s*¿(?:quieres|te gustar[ií]a|necesitas)[^\n]*\?\s*$", re.IGNORECASE),
    re.compile(r"\n+\s*si tienes[^\n]*\.?\s*$", re.IGNORECASE),
    re.compile(r"\n+\s*para cualquier[^\n]*\.?\s*$", re.IGNORECASE),
]


def clean_ai_generated_content(text: Optional[str]) -> str:
    """去掉模型常见的开场白、分隔线和结尾追问。"""
    if not text:
        return ""
    cleaned = text.replace("\r\n", "\n")
    for pattern in _INTRO_PATTERNS:
        cleaned = pattern.sub("", cleaned, count=1)
    cleaned = _SEPARATOR_RE.sub("", cleaned)

    # 结尾追问可能连续出现多条
    changed = True
    while changed:
        changed = False
        for pattern in _OUTRO_PATTERNS:
            stripped = pattern.sub("", cleaned.rstrip())
            if stripped != cleaned.rstrip():
                cleaned = stripped
                changed = True

    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


def _plain_text(text: str) -> str:
    text = _TAG_RE.sub(" ", text)
    text = _MARKUP_RE.sub("", text)
    return " ".join(text.split())


def fallback_title(body: str, fallback_topic: Optional[str]) -> str:
    topic = (fallback_topic or "").strip()
    if topic:
        return topic[0].upper() + topic[1:]
    plain = _plain_text(body)
    if len(plain) > FALLBACK_TITLE_CHARS:
        return plain[:FALLBACK_TITLE_CHARS].rstrip() + "..."
    return plain


def truncate_description(text: str) -> str:
    text = text.strip()
    if len(text) > DESCRIPTION_MAX_CHARS:
        return text[: DESCRIPTION_MAX_CHARS - 3] + "..."
    return text


def _next_content_line(lines: list[str], start: int) -> int:
    index = start
    while index < len(lines) and not lines[index].strip():
        index += 1
    return index


def extract_fields(raw_text: Optional[str], fallback_topic: Optional[str] = None) -> ExtractedFields:
    """
    从模型输出中抽取标题、摘要和正文

    Args:
        raw_text: 模型原始输出
        fallback_topic: 没有标题标记时使用的主题

    Returns:
        ExtractedFields
    """
    lines = (raw_text or "").replace("\r\n", "\n").split("\n")

    title = ""
    description = ""

    cursor = _next_content_line(lines, 0)
    if cursor < len(lines):
        match = _TITLE_LINE_RE.match(lines[cursor].strip())
        if match and len(match.group(1).strip()) > TITLE_MIN_CHARS:
            title = match.group(1).strip()
            del lines[cursor]

    cursor = _next_content_line(lines, cursor)
    if cursor < len(lines):
        match = _DESCRIPTION_LINE_RE.match(lines[cursor].strip())
        if match and len(match.group(1).strip()) > DESCRIPTION_MIN_CHARS:
            description = truncate_description(match.group(1))
            del lines[cursor]

    body = "\n".join(lines).strip()
    if not title:
        title = fallback_title(body, fallback_topic)
    return ExtractedFields(title=title, description=description, body=body)
