"""
内容规范化（Content Normalizer）。

两个方向的转换都是全函数（从不抛出异常）且幂等：

- markdown_to_html: 模型输出的 Markdown → 经过白名单清理的富文本
- html_to_document: 已存储的富文本 → 编辑表单使用的纯文本文档

每个方向都由若干小的转换步骤组成，最后重复执行直到结果不再变化。
"""

from __future__ import annotations

import html
import re
from typing import Callable, Optional

from ..logging_config import get_logger
from ..utils.html_utils import sanitize_html

logger = get_logger(__name__)

_MAX_PASSES = 5

_HEADING_RE = re.compile(r"^(#{1,3})\s+(.+?)\s*#*\s*$")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"(?<!\*)\*([^*\n]+)\*(?!\*)")
_BLOCK_HTML_RE = re.compile(
    r"<\s*(p|h[1-6]|ul|ol|li|blockquote|div|table|pre|figure)\b", re.IGNORECASE
)
# 以块级标签开头的段落视为已有 HTML，原样保留
_BLOCK_START_RE = re.compile(
    r"^\s*<\s*(p|h[1-6]|ul|ol|li|blockquote|div|table|thead|tbody|tr|th|td|pre|figure)\b",
    re.IGNORECASE,
)
_EMPTY_PARAGRAPH_RE = re.compile(
    r"<p>(?:\s|&nbsp;|\xa0|<br\s*/?>)*</p>", re.IGNORECASE
)

EMPTY_DOCUMENT_SENTINELS = frozenset({"<p><br></p>", "<p><br/></p>", "<p></p>"})

ENTITY_TABLE: dict[str, str] = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "hellip": "…",
    "mdash": "—",
    "ndash": "–",
    "lsquo": "‘",
    "rsquo": "’",
    "ldquo": "“",
    "rdquo": "”",
    "bull": "•",
    "deg": "°",
    "frac12": "½",
    "frac14": "¼",
    "frac34": "¾",
}

_ENTITY_RE = re.compile(r"&(#[xX][0-9a-fA-F]+|#[0-9]+|[a-zA-Z][a-zA-Z0-9]*);")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _until_stable(step: Callable[[str], str], value: str) -> str:
    result = step(value)
    for _ in range(_MAX_PASSES):
        again = step(result)
        if again == result:
            break
        result = again
    return result


# ---------------------------------------------------------------------------
# Markdown → 富文本
# ---------------------------------------------------------------------------

def _inline(text: str) -> str:
    text = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    return _ITALIC_RE.sub(r"<em>\1</em>", text)


def _render_markdown(text: str) -> str:
    text = text.replace("\r\n", "\n").strip()
    text = re.sub(r"\n{3,}", "\n\n", text)

    parts: list[str] = []
    for block in re.split(r"\n\s*\n", text):
        if _BLOCK_START_RE.match(block):
            parts.append(block.strip())
            continue
        paragraph: list[str] = []

        def flush() -> None:
            content = "<br>".join(_inline(line) for line in paragraph)
            if content.strip():
                parts.append(f"<p>{content}</p>")
            paragraph.clear()

        for line in block.split("\n"):
            line = line.strip()
            if not line:
                continue
            heading = _HEADING_RE.match(line)
            if heading:
                flush()
                level = len(heading.group(1))
                parts.append(f"<h{level}>{_inline(heading.group(2))}</h{level}>")
            else:
                paragraph.append(line)
        flush()

    return "".join(parts)


def _finalize_html(markup: str) -> str:
    clean = sanitize_html(markup)
    clean = _EMPTY_PARAGRAPH_RE.sub("", clean).strip()
    if clean and not _BLOCK_HTML_RE.search(clean):
        clean = f"<p>{clean}</p>"
    return clean


def _simple_conversion(text: str) -> str:
    """最简转换：粗体/斜体 + 换行，整体包成一个段落。"""
    body = _inline(text.strip()).replace("\n", "<br>")
    try:
        if _BLOCK_START_RE.match(body):
            return _finalize_html(body)
        return _finalize_html(f"<p>{body}</p>")
    except Exception as e:
        logger.error("markdown_fallback_failed", error=f"{type(e).__name__}: {e}")
        return f"<p>{html.escape(text.strip())}</p>"


def _markdown_to_html_once(text: str) -> str:
    if not text.strip():
        return ""
    try:
        return _finalize_html(_render_markdown(text))
    except Exception as e:
        logger.warning(
            "markdown_conversion_failed",
            error=f"{type(e).__name__}: {e}",
            chars=len(text),
        )
        return _simple_conversion(text)


def markdown_to_html(text: Optional[str]) -> str:
    """
    将 Markdown 转换为清理后的 HTML

    以块级标签开头的段落（包括已经是 HTML 的整段输入）只做清理，不会被再次包裹；
    其余段落按 Markdown 转换。

    Args:
        text: Markdown 文本

    Returns:
        清理后的 HTML；空输入返回空字符串
    """
    if text is None:
        return ""
    return _until_stable(_markdown_to_html_once, str(text))


# ---------------------------------------------------------------------------
# 富文本 → 纯文本文档
# ---------------------------------------------------------------------------

def _decode_entity(match: re.Match) -> str:
    name = match.group(1)
    if name[0] == "#":
        try:
            codepoint = int(name[2:], 16) if name[1] in "xX" else int(name[1:])
            return chr(codepoint)
        except (ValueError, OverflowError):
            return ""
    return ENTITY_TABLE.get(name.lower(), "")


def decode_entities(text: str) -> str:
    """单次解码实体表与数字实体，未知实体直接删除。"""
    return _ENTITY_RE.sub(_decode_entity, text)


def _normalize_whitespace(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\xa0", " ")
    text = _CONTROL_RE.sub("", text)
    text = re.sub(r"[ \t\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _html_to_document_once(markup: str) -> str:
    stripped = markup.strip()
    if not stripped or stripped.lower() in EMPTY_DOCUMENT_SENTINELS:
        return ""

    try:
        text = sanitize_html(stripped)
    except Exception as e:
        logger.warning("html_sanitize_failed", error=f"{type(e).__name__}: {e}")
        text = stripped

    text = re.sub(r"</p>\s*<p\b[^>]*>", "\n\n", text, flags=re.IGNORECASE)
    text = re.sub(r"(?:<br\s*/?>\s*){2,}", "\n\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"</(?:li|tr)>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(
        r"</(?:p|div|h[1-6]|blockquote|pre|figure|figcaption|ul|ol|table)>",
        "\n\n",
        text,
        flags=re.IGNORECASE,
    )
    text = re.sub(r"<[^>]*>", "", text)
    text = decode_entities(text)
    return _normalize_whitespace(text)


def html_to_document(markup: Optional[str]) -> str:
    """
    将富文本转换为可编辑的纯文本文档

    Args:
        markup: 已存储的 HTML

    Returns:
        段落之间以空行分隔的纯文本；空输入或空段落占位符返回空字符串
    """
    if markup is None:
        return ""
    return _until_stable(_html_to_document_once, str(markup))
