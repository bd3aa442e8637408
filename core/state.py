"""Pipeline state models shared across all stages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class GenerationStep(str, enum.Enum):
    IDLE = "idle"
    PLANNING = "planning"
    CODING = "coding"
    REVIEWING = "reviewing"
    READY = "ready"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStep.READY, GenerationStep.ERROR)

    @property
    def is_busy(self) -> bool:
        return self in (GenerationStep.PLANNING, GenerationStep.CODING,
                        GenerationStep.REVIEWING)


STEP_MESSAGES = {
    GenerationStep.IDLE: "Starting generation...",
    GenerationStep.PLANNING: "Analyzing video and planning the app...",
    GenerationStep.CODING: "Generating code...",
    GenerationStep.REVIEWING: "Testing and reviewing code...",
    GenerationStep.READY: "Content ready!",
    GenerationStep.ERROR: "An error occurred.",
}

CONSOLE_KINDS = ("log", "info", "warn", "error")


@dataclass(frozen=True)
class SourceFile:
    name: str           # e.g. "index.html", "style.css"
    content: str

    @property
    def is_entry(self) -> bool:
        return self.name.lower() == "index.html"


@dataclass(frozen=True)
class Analysis:
    title: str = ""
    summary: str = ""
    key_topics: tuple[str, ...] = ()
    target_audience: str = ""
    learning_goals: tuple[str, ...] = ()


@dataclass(frozen=True)
class Plan:
    files_to_create: tuple[str, ...] = ()
    implementation_notes: str = ""


@dataclass(frozen=True)
class ConsoleMessage:
    kind: str           # one of CONSOLE_KINDS
    args: list
    timestamp: float


@dataclass
class GenerationRequest:
    video_url: str
    spec: str | None = None
    files: list[SourceFile] | None = None

    @property
    def is_pre_seeded(self) -> bool:
        return bool(self.spec) and bool(self.files)


@dataclass
class PipelineState:
    request: GenerationRequest
    step: GenerationStep = GenerationStep.IDLE
    transitions: list[GenerationStep] = field(
        default_factory=lambda: [GenerationStep.IDLE])
    analysis: Analysis | None = None
    spec: str = ""
    plan: Plan | None = None
    draft_files: list[SourceFile] = field(default_factory=list)   # coder output
    files: list[SourceFile] = field(default_factory=list)         # final, reviewed
    probe_errors: list[ConsoleMessage] = field(default_factory=list)
    render_html: str = ""
    error: str | None = None
    cancelled: bool = False

    @property
    def title(self) -> str:
        if self.analysis and self.analysis.title:
            return self.analysis.title
        return self.request.video_url

    @property
    def active_file(self) -> str | None:
        for f in self.files:
            if f.is_entry:
                return f.name
        return self.files[0].name if self.files else None


@dataclass
class HistoryItem:
    id: int
    title: str
    video_url: str
    spec: str
    files: list[SourceFile]
    timestamp: str


def unique_files(files):
    """Collapse duplicate names: first position is kept, last content wins."""
    order = []
    latest = {}
    for f in files:
        if f.name not in latest:
            order.append(f.name)
        latest[f.name] = f
    return [latest[name] for name in order]


def files_to_dicts(files):
    return [{"name": f.name, "content": f.content} for f in files]


def message_to_dict(message: ConsoleMessage) -> dict:
    return {"kind": message.kind, "args": message.args, "timestamp": message.timestamp}


def state_to_dict(state: PipelineState) -> dict:
    """Serialize PipelineState to a JSON-safe dict."""
    analysis = None
    if state.analysis is not None:
        analysis = {
            "title": state.analysis.title,
            "summary": state.analysis.summary,
            "key_topics": list(state.analysis.key_topics),
            "target_audience": state.analysis.target_audience,
            "learning_goals": list(state.analysis.learning_goals),
        }
    plan = None
    if state.plan is not None:
        plan = {
            "files_to_create": list(state.plan.files_to_create),
            "implementation_notes": state.plan.implementation_notes,
        }
    return {
        "video_url": state.request.video_url,
        "step": state.step.value,
        "step_message": STEP_MESSAGES[state.step],
        "busy": state.step.is_busy,
        "transitions": [s.value for s in state.transitions],
        "title": state.title,
        "analysis": analysis,
        "spec": state.spec,
        "plan": plan,
        "files": files_to_dicts(state.files),
        "active_file": state.active_file,
        "probe_errors": [message_to_dict(m) for m in state.probe_errors],
        "render_html": state.render_html,
        "error": state.error,
    }
