"""Ordered pipeline applying the shorthand rules to one page."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from docshim.config import PluginConfig
from docshim.transform import rules

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class StageContext:
    path: str
    config: PluginConfig


@dataclass(frozen=True, slots=True)
class TransformStage:
    """A named rewrite, optionally restricted to some pages."""

    name: str
    func: Callable[[str], str]
    applies: Callable[[StageContext], bool] | None = None

    def enabled_for(self, context: StageContext) -> bool:
        return self.applies is None or self.applies(context)


@dataclass(slots=True)
class TransformResult:
    content: str
    applied: list[str] = field(default_factory=list)
    failed_stage: str | None = None

    @property
    def ok(self) -> bool:
        return self.failed_stage is None


def _needs_script_escape(context: StageContext) -> bool:
    return context.config.requires_script_escape(context.path)


# Later stages consume the output of earlier ones: content-ref bodies may
# hold unwrapped variables, tab and column bodies may hold expanded steps.
DEFAULT_STAGES: tuple[TransformStage, ...] = (
    TransformStage("embed", rules.rewrite_embeds),
    TransformStage("escape_braces", rules.escape_bare_variables),
    TransformStage("unwrap_escaped_braces", rules.unwrap_escaped_variables),
    TransformStage("content_ref", rules.expand_content_refs),
    TransformStage("stepper", rules.expand_steppers),
    TransformStage("tabs", rules.expand_tabs),
    TransformStage("columns", rules.expand_columns),
    TransformStage("script_escape", rules.escape_embedded_templates, _needs_script_escape),
    TransformStage("formatted_code", rules.expand_formatted_code),
)


class Transpiler:
    """Runs the shorthand stages in order over a page's content.

    A stage that raises stops the chain; the content produced by the last
    successful stage is returned and the failure is logged. Running the
    chain twice over its own output is not idempotent (escaped braces are
    unwrapped into code spans on the first pass).
    """

    def __init__(
        self,
        config: PluginConfig | None = None,
        stages: Sequence[TransformStage] = DEFAULT_STAGES,
    ) -> None:
        self.config = config or PluginConfig()
        self.stages = tuple(stages)

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    def run(self, content: str | None, path: str = "") -> TransformResult:
        result = TransformResult(content=content or "")
        context = StageContext(path=path, config=self.config)

        for stage in self.stages:
            if not stage.enabled_for(context):
                continue
            try:
                result.content = stage.func(result.content)
            except Exception:
                LOGGER.exception("Stage %s failed on page %s", stage.name, path or "<unknown>")
                result.failed_stage = stage.name
                break
            result.applied.append(stage.name)

        LOGGER.debug("Transformed %s with stages %s", path or "<unknown>", result.applied)
        return result

    def transform(self, content: str | None, path: str = "") -> str:
        return self.run(content, path).content
