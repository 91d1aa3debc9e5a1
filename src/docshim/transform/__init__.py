"""Shorthand transform stages and the ordered pipeline applying them."""

from docshim.transform.pipeline import DEFAULT_STAGES, TransformResult, TransformStage, Transpiler

__all__ = ["DEFAULT_STAGES", "TransformResult", "TransformStage", "Transpiler"]
