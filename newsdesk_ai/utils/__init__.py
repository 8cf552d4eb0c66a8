"""工具函数模块。"""

from .html_utils import clean_llm_response, extract_text_content, sanitize_html

__all__ = ["sanitize_html", "extract_text_content", "clean_llm_response"]
