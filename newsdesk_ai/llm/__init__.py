"""LLM 供应商适配器模块。"""
